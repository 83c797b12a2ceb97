"""Asset publishing: upload one file to a resolved release."""

from __future__ import annotations

import stat
from dataclasses import dataclass
from enum import Enum
from typing import NoReturn, Optional

from .errors import DuplicateAssetError, ReleaseUploadError, TransportError
from .github import (
    AssetUpload,
    Created,
    Deleted,
    Found,
    GitHubClient,
    NotFound,
    TransportFailure,
)
from .models import AssetCandidate, ReleaseDescriptor, RemoteAsset
from .utils import format_bold, log_debug, log_info, log_success, log_warning, retry

UPLOAD_ATTEMPTS = 3
UPLOAD_RETRY_DELAY = 1.0

__all__ = [
    "PublishStatus",
    "PublishResult",
    "publish_asset",
    "find_duplicate",
    "UPLOAD_ATTEMPTS",
]


class PublishStatus(Enum):
    """Outcome of publishing a single candidate."""

    UPLOADED = "uploaded"
    REPLACED = "replaced"
    SKIPPED = "skipped"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class PublishResult:
    candidate: AssetCandidate
    name: str
    status: PublishStatus
    download_url: Optional[str] = None


def _unexpected(result: object) -> NoReturn:
    raise TypeError(f"unexpected remote result: {result!r}")


def _list_assets(client: GitHubClient, release: ReleaseDescriptor) -> list[RemoteAsset]:
    result = client.list_assets(release.id)
    if isinstance(result, Found):
        return result.value
    if isinstance(result, NotFound):
        raise TransportError(result.message, status=404)
    if isinstance(result, TransportFailure):
        raise result.to_error()
    _unexpected(result)


def find_duplicate(assets: list[RemoteAsset], name: str) -> Optional[RemoteAsset]:
    """Return the asset whose name matches ``name`` exactly, if any."""
    for asset in assets:
        if asset.name == name:
            return asset
    return None


def _delete(client: GitHubClient, asset: RemoteAsset) -> None:
    result = client.delete_asset(asset.id)
    if isinstance(result, Deleted):
        return
    if isinstance(result, NotFound):
        # Already gone; the upload can proceed.
        log_debug(f"asset {asset.id} disappeared before it could be deleted.")
        return
    if isinstance(result, TransportFailure):
        raise result.to_error()
    _unexpected(result)


def _upload(
    client: GitHubClient,
    release: ReleaseDescriptor,
    name: str,
    data: bytes,
    *,
    attempts: int,
    delay: float,
) -> RemoteAsset:
    def _attempt() -> AssetUpload:
        return client.upload_asset(release.upload_endpoint, name, data)

    def _should_retry(outcome: AssetUpload) -> bool:
        return isinstance(outcome, TransportFailure)

    def _on_retry(attempt: int, outcome: AssetUpload) -> None:
        message = getattr(outcome, "message", "") or "unknown error"
        log_warning(f"upload attempt {attempt}/{attempts} for {name} failed: {message}")

    result = retry(
        _attempt,
        attempts=attempts,
        should_retry=_should_retry,
        delay=delay,
        on_retry=_on_retry,
    )
    if isinstance(result, Created):
        return result.value
    if isinstance(result, NotFound):
        raise TransportError(result.message, status=404)
    if isinstance(result, TransportFailure):
        raise result.to_error()
    _unexpected(result)


def publish_asset(
    client: GitHubClient,
    release: ReleaseDescriptor,
    candidate: AssetCandidate,
    *,
    overwrite: bool,
    check_duplicates: bool = True,
    tag: Optional[str] = None,
    attempts: int = UPLOAD_ATTEMPTS,
    retry_delay: float = UPLOAD_RETRY_DELAY,
) -> PublishResult:
    """Upload ``candidate`` to ``release``.

    Directories and empty files are skipped. With ``check_duplicates`` an
    existing asset of the same name is deleted first when ``overwrite`` is
    set, and reported through ``DuplicateAssetError`` otherwise. The upload
    itself is attempted up to ``attempts`` times. The ``$tag`` placeholder in
    the declared name expands to ``tag``, defaulting to the release tag.
    """

    path = candidate.path
    name = candidate.resolved_name(tag if tag is not None else release.tag)
    try:
        file_stat = path.stat()
    except OSError as exc:
        log_warning(f"skipping {path}, since it cannot be accessed: {exc.strerror or exc}")
        return PublishResult(candidate, name, PublishStatus.SKIPPED)
    if not stat.S_ISREG(file_stat.st_mode):
        log_debug(f"skipping {path}, since it's not a file.")
        return PublishResult(candidate, name, PublishStatus.SKIPPED)
    if file_stat.st_size == 0:
        log_debug(f"skipping {path}, since its size is 0.")
        return PublishResult(candidate, name, PublishStatus.SKIPPED)

    replaced = False
    if check_duplicates:
        duplicate = find_duplicate(_list_assets(client, release), name)
        if duplicate is None:
            log_debug(f"no pre-existing asset called {name} in release {release.tag}.")
        elif overwrite:
            log_info(f"overwriting existing asset {format_bold(name)} in release {release.tag}.")
            _delete(client, duplicate)
            replaced = True
        else:
            raise DuplicateAssetError(name, release.tag, duplicate.download_url)

    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ReleaseUploadError(f"cannot read {path}: {exc.strerror or exc}") from exc
    log_debug(f"uploading {path} to {name} in release {release.tag} ({len(data)} bytes).")
    asset = _upload(client, release, name, data, attempts=attempts, delay=retry_delay)
    log_success(f"uploaded {format_bold(name)} to release {release.tag}.")
    status = PublishStatus.REPLACED if replaced else PublishStatus.UPLOADED
    return PublishResult(candidate, name, status, asset.download_url)
