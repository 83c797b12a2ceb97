"""Value objects shared by the resolver, the publisher and the REST client."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

TAG_PLACEHOLDER = "$tag"


@dataclass(frozen=True)
class ReleaseTarget:
    """Repository that owns the release."""

    owner: str
    repo: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class ReleaseDescriptor:
    """Snapshot of a remote release.

    ``upload_endpoint`` is the asset upload URL exactly as the API reports it,
    including the ``{?name,label}`` URI template suffix.
    """

    id: int
    tag: str
    draft: bool
    prerelease: bool
    name: str
    body: str
    upload_endpoint: str
    target_commit: str = ""
    html_url: str = ""

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "ReleaseDescriptor":
        return cls(
            id=int(data["id"]),
            tag=str(data.get("tag_name") or ""),
            draft=bool(data.get("draft", False)),
            prerelease=bool(data.get("prerelease", False)),
            name=str(data.get("name") or ""),
            body=str(data.get("body") or ""),
            upload_endpoint=str(data.get("upload_url") or ""),
            target_commit=str(data.get("target_commitish") or ""),
            html_url=str(data.get("html_url") or ""),
        )


@dataclass(frozen=True)
class RemoteAsset:
    """Asset already attached to a release."""

    id: int
    name: str
    download_url: str

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "RemoteAsset":
        return cls(
            id=int(data["id"]),
            name=str(data.get("name") or ""),
            download_url=str(data.get("browser_download_url") or ""),
        )


@dataclass(frozen=True)
class AssetCandidate:
    """Local file staged for upload under ``declared_name``."""

    path: Path
    declared_name: str

    def resolved_name(self, tag: str) -> str:
        """Return the asset name with the tag placeholder substituted."""
        return render_asset_name(self.declared_name, tag)


@dataclass(frozen=True)
class ReleaseSettings:
    """Desired state of the release for one invocation."""

    draft: bool = False
    prerelease: bool = False
    make_latest: bool = True
    name: str = ""
    body: str = ""
    target_commit: str = ""
    draft_id: Optional[int] = None
    overwrite: bool = False
    promote: bool = False


def render_asset_name(template: str, tag: str) -> str:
    """Replace every ``$tag`` placeholder in ``template`` with ``tag``."""
    return template.replace(TAG_PLACEHOLDER, tag)
