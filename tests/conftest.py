"""Shared fixtures: an in-memory stand-in for the GitHub REST client."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any, Iterator, Mapping

import pytest

from release_upload.github import (
    Created,
    Deleted,
    Found,
    NotFound,
    TransportFailure,
    Updated,
)
from release_upload.models import ReleaseDescriptor, ReleaseTarget, RemoteAsset

_UPLOAD_RE = re.compile(r"/releases/(\d+)/assets")


class FakeGitHub:
    """Mimics ``GitHubClient`` against an in-memory repository."""

    def __init__(self, owner: str = "octo", repo: str = "app") -> None:
        self.target = ReleaseTarget(owner, repo)
        self.releases: dict[int, ReleaseDescriptor] = {}
        self.assets: dict[int, list[RemoteAsset]] = {}
        self.tags: set[str] = set()
        self.calls: list[tuple[Any, ...]] = []
        self.created_payloads: list[dict[str, Any]] = []
        self.upload_failures = 0
        self.uploaded: list[tuple[str, bytes]] = []
        self.closed = False
        self._next_id = 100

    # Helpers for arranging state.

    def _allocate_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def add_release(
        self,
        tag: str,
        *,
        draft: bool = False,
        prerelease: bool = False,
        name: str = "",
        body: str = "",
    ) -> ReleaseDescriptor:
        release_id = self._allocate_id()
        release = ReleaseDescriptor(
            id=release_id,
            tag=tag,
            draft=draft,
            prerelease=prerelease,
            name=name,
            body=body,
            upload_endpoint=(
                f"https://uploads.example.com/repos/{self.target.slug}"
                f"/releases/{release_id}/assets{{?name,label}}"
            ),
            html_url=f"https://github.com/{self.target.slug}/releases/tag/{tag}",
        )
        self.releases[release_id] = release
        self.assets[release_id] = []
        if not draft:
            self.tags.add(tag)
        return release

    def add_asset(self, release: ReleaseDescriptor, name: str) -> RemoteAsset:
        asset_id = self._allocate_id()
        asset = RemoteAsset(
            id=asset_id,
            name=name,
            download_url=(
                f"https://github.com/{self.target.slug}/releases/download/"
                f"{release.tag}/{name}?id={asset_id}"
            ),
        )
        self.assets[release.id].append(asset)
        return asset

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def asset_names(self, release: ReleaseDescriptor) -> list[str]:
        return [asset.name for asset in self.assets[release.id]]

    # Client interface.

    def __enter__(self) -> "FakeGitHub":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.closed = True

    def get_release_by_tag(self, tag: str) -> Any:
        self.calls.append(("get_release_by_tag", tag))
        for release in self.releases.values():
            if release.tag == tag and not release.draft:
                return Found(release)
        return NotFound("Not Found")

    def get_release(self, release_id: int) -> Any:
        self.calls.append(("get_release", release_id))
        release = self.releases.get(release_id)
        return Found(release) if release is not None else NotFound("Not Found")

    def list_releases(self) -> Any:
        self.calls.append(("list_releases",))
        return Found(list(self.releases.values()))

    def get_tag_ref(self, tag: str) -> Any:
        self.calls.append(("get_tag_ref", tag))
        return Found("0" * 40) if tag in self.tags else NotFound("Not Found")

    def create_release(self, tag: str, **fields: Any) -> Any:
        self.calls.append(("create_release", tag))
        self.created_payloads.append({"tag": tag, **fields})
        release = self.add_release(
            tag,
            draft=fields["draft"],
            prerelease=fields["prerelease"],
            name=fields["name"],
            body=fields["body"],
        )
        if fields["target_commit"]:
            release = replace(release, target_commit=fields["target_commit"])
            self.releases[release.id] = release
        return Created(release)

    def update_release(self, release_id: int, changes: Mapping[str, Any]) -> Any:
        self.calls.append(("update_release", release_id, dict(changes)))
        release = self.releases.get(release_id)
        if release is None:
            return NotFound("Not Found")
        release = replace(release, **dict(changes))
        self.releases[release_id] = release
        return Updated(release)

    def list_assets(self, release_id: int) -> Any:
        self.calls.append(("list_assets", release_id))
        if release_id not in self.assets:
            return NotFound("Not Found")
        return Found(list(self.assets[release_id]))

    def delete_asset(self, asset_id: int) -> Any:
        self.calls.append(("delete_asset", asset_id))
        for assets in self.assets.values():
            for asset in assets:
                if asset.id == asset_id:
                    assets.remove(asset)
                    return Deleted()
        return NotFound("Not Found")

    def upload_asset(self, upload_endpoint: str, name: str, data: bytes) -> Any:
        self.calls.append(("upload_asset", name))
        if self.upload_failures > 0:
            self.upload_failures -= 1
            return TransportFailure("failed to upload asset: HTTP 502 Bad Gateway", 502)
        match = _UPLOAD_RE.search(upload_endpoint)
        assert match is not None, upload_endpoint
        release = self.releases[int(match.group(1))]
        self.uploaded.append((name, data))
        return Created(self.add_asset(release, name))


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    # configure_logging() disables propagation, which hides records from caplog.
    logger = logging.getLogger("release_upload")
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    while logger.handlers:
        logger.handlers.pop().close()
    yield


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()
