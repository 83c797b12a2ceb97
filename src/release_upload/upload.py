"""Batch driver: resolve the release once, then publish every matched file."""

from __future__ import annotations

import glob
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .assets import PublishResult, PublishStatus, publish_asset
from .config import UploadConfig
from .errors import ConfigError, DuplicateAssetError, NoMatchError, ReleaseUploadError
from .github import GitHubClient
from .models import AssetCandidate, ReleaseDescriptor
from .releases import resolve_release
from .utils import log_debug, log_error, log_info, log_warning

__all__ = ["UploadReport", "collect_candidates", "upload_release_assets"]


@dataclass
class UploadReport:
    """Everything an invocation produced."""

    release: ReleaseDescriptor
    created_release_id: Optional[int] = None
    results: list[PublishResult] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return bool(self.failures)

    @property
    def browser_download_url(self) -> Optional[str]:
        """Download URL of the last file that produced one."""
        url: Optional[str] = None
        for result in self.results:
            if result.download_url:
                url = result.download_url
        return url

    def outputs(self) -> dict[str, str]:
        """Return the step outputs for this run."""
        values: dict[str, str] = {}
        url = self.browser_download_url
        if url:
            values["browser_download_url"] = url
        if self.created_release_id is not None:
            values["draft_id"] = str(self.created_release_id)
        return values


def collect_candidates(config: UploadConfig) -> list[AssetCandidate]:
    """Return the files to upload, in match order.

    Glob mode names every asset after its file; literal mode honours
    ``asset_name``, falling back to the file's base name.
    """

    if config.file_glob:
        if config.asset_name:
            log_warning("asset_name is ignored when file_glob is enabled; using file names.")
        matches = sorted(glob.glob(config.file, recursive=True))
        if not matches:
            raise NoMatchError(f"No files matching the glob pattern found: {config.file}")
        log_debug(f"glob {config.file} matched {len(matches)} paths.")
        paths = [Path(match) for match in matches]
        return [AssetCandidate(path=path, declared_name=path.name) for path in paths]

    path = Path(config.file)
    if not path.exists():
        raise ConfigError(f"File not found: {config.file}")
    return [AssetCandidate(path=path, declared_name=config.asset_name or path.name)]


def upload_release_assets(client: GitHubClient, config: UploadConfig) -> UploadReport:
    """Resolve the release for ``config.tag`` and upload the configured files.

    Duplicate assets without ``overwrite`` are recorded as failures and the
    remaining files are still processed. Any other error aborts the batch and
    carries the results gathered so far as ``partial_report``.
    """

    candidates = collect_candidates(config)
    resolution = resolve_release(client, config.tag, config.release_settings())
    release = resolution.release
    if release.html_url:
        log_info(f"release: {release.html_url}")

    report = UploadReport(release=release, created_release_id=resolution.created_id)
    for candidate in candidates:
        try:
            result = publish_asset(
                client,
                release,
                candidate,
                overwrite=config.overwrite,
                check_duplicates=config.check_duplicates,
                tag=config.tag,
            )
        except DuplicateAssetError as exc:
            log_error(str(exc))
            report.failures.append(str(exc))
            result = PublishResult(
                candidate,
                exc.asset_name,
                PublishStatus.DUPLICATE,
                exc.download_url,
            )
        except ReleaseUploadError as exc:
            exc.partial_report = report
            raise
        report.results.append(result)
    return report
