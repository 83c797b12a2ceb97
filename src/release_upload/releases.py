"""Release resolution: find, create or reconcile the release for a tag."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NoReturn, Optional

from .errors import NotFoundError, TransportError
from .github import (
    Created,
    Found,
    GitHubClient,
    NotFound,
    TransportFailure,
    Updated,
)
from .models import ReleaseDescriptor, ReleaseSettings
from .utils import format_bold, log_debug, log_info, log_success, log_warning

__all__ = [
    "ReleaseResolution",
    "resolve_release",
    "plan_release_update",
]


@dataclass(frozen=True)
class ReleaseResolution:
    """Resolved release plus how it was obtained."""

    release: ReleaseDescriptor
    created: bool = False
    updated: bool = False

    @property
    def created_id(self) -> Optional[int]:
        """Id of a release created during this invocation, if any."""
        return self.release.id if self.created else None


def _unexpected(result: object) -> NoReturn:
    raise TypeError(f"unexpected remote result: {result!r}")


def _lookup_existing(
    client: GitHubClient, tag: str, settings: ReleaseSettings
) -> Optional[ReleaseDescriptor]:
    if settings.draft_id is not None and settings.draft:
        log_debug(f"fetching draft release {settings.draft_id} by id.")
        result = client.get_release(settings.draft_id)
    else:
        log_debug(f"getting release by tag {tag}.")
        result = client.get_release_by_tag(tag)

    if isinstance(result, Found):
        return result.value
    if isinstance(result, NotFound):
        return _find_draft_by_tag(client, tag)
    if isinstance(result, TransportFailure):
        raise result.to_error()
    _unexpected(result)


def _find_draft_by_tag(client: GitHubClient, tag: str) -> Optional[ReleaseDescriptor]:
    # Drafts have no tag yet, so the tag lookup cannot see them.
    log_debug(f"no published release for tag {tag}; checking release drafts.")
    result = client.list_releases()
    if isinstance(result, Found):
        for release in result.value:
            if release.draft and release.tag == tag:
                log_info(f"found release draft {release.id} for tag {format_bold(tag)}.")
                return release
        return None
    if isinstance(result, NotFound):
        return None
    if isinstance(result, TransportFailure):
        raise result.to_error()
    _unexpected(result)


def _tag_exists(client: GitHubClient, tag: str) -> bool:
    result = client.get_tag_ref(tag)
    if isinstance(result, Found):
        return True
    if isinstance(result, NotFound):
        return False
    if isinstance(result, TransportFailure):
        raise result.to_error()
    _unexpected(result)


def _create(client: GitHubClient, tag: str, settings: ReleaseSettings) -> ReleaseDescriptor:
    target_commit = settings.target_commit
    if target_commit and _tag_exists(client, tag):
        log_warning(f"ignoring target_commit as the tag {tag} already exists.")
        target_commit = ""

    log_debug(f"release for tag {tag} doesn't exist yet; creating it now.")
    result = client.create_release(
        tag,
        draft=settings.draft,
        prerelease=settings.prerelease,
        make_latest=settings.make_latest,
        name=settings.name,
        body=settings.body,
        target_commit=target_commit,
    )
    if isinstance(result, Created):
        log_success(f"created release {result.value.id} for tag {format_bold(tag)}.")
        return result.value
    if isinstance(result, NotFound):
        raise NotFoundError(
            f"no release found for tag {tag} and creating one failed: {result.message}"
        )
    if isinstance(result, TransportFailure):
        raise result.to_error()
    _unexpected(result)


def plan_release_update(release: ReleaseDescriptor, settings: ReleaseSettings) -> dict[str, Any]:
    """Return the fields that must change for ``release`` to match ``settings``.

    An empty mapping means no update is needed.
    """

    changes: dict[str, Any] = {}
    if settings.promote and release.prerelease:
        log_debug(f"release {release.tag} is a prerelease; promoting it.")
        changes["prerelease"] = False
    if settings.overwrite:
        if settings.name and release.name != settings.name:
            changes["name"] = settings.name
        if settings.body and release.body != settings.body:
            changes["body"] = settings.body
    return changes


def resolve_release(
    client: GitHubClient, tag: str, settings: ReleaseSettings
) -> ReleaseResolution:
    """Find or create the release for ``tag`` and reconcile its metadata.

    Freshly created releases are returned as-is. Existing releases receive at
    most one update request that merges every differing field.
    """

    existing = _lookup_existing(client, tag, settings)
    if existing is None:
        return ReleaseResolution(release=_create(client, tag, settings), created=True)

    changes = plan_release_update(existing, settings)
    if not changes:
        log_info(f"using existing release {existing.id} for tag {format_bold(tag)}.")
        return ReleaseResolution(release=existing)

    fields = ", ".join(sorted(changes))
    log_info(f"updating release {existing.id} ({fields}).")
    result = client.update_release(existing.id, changes)
    if isinstance(result, Updated):
        return ReleaseResolution(release=result.value, updated=True)
    if isinstance(result, NotFound):
        # The release vanished between read and write.
        raise TransportError(result.message, status=404)
    if isinstance(result, TransportFailure):
        raise result.to_error()
    _unexpected(result)
