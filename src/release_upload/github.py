"""Thin GitHub REST client returning tagged results.

Every remote operation returns one of the result variants below instead of
raising on HTTP status codes. Callers dispatch on the variant with
``isinstance`` and turn ``TransportFailure`` into ``TransportError`` where
the failure is fatal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Iterator, Mapping, Optional, TypeVar, Union
from urllib.parse import quote

import requests

from .errors import TransportError
from .models import ReleaseDescriptor, ReleaseTarget, RemoteAsset
from .utils import log_debug

DEFAULT_API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"
UPLOAD_CONTENT_TYPE = "binary/octet-stream"
PAGE_SIZE = 100
DEFAULT_TIMEOUT = 60.0

T = TypeVar("T")

__all__ = [
    "Found",
    "Created",
    "Updated",
    "Deleted",
    "NotFound",
    "TransportFailure",
    "GitHubClient",
    "strip_upload_template",
]


@dataclass(frozen=True)
class Found(Generic[T]):
    value: T


@dataclass(frozen=True)
class Created(Generic[T]):
    value: T


@dataclass(frozen=True)
class Updated(Generic[T]):
    value: T


@dataclass(frozen=True)
class Deleted:
    pass


@dataclass(frozen=True)
class NotFound:
    message: str = ""


@dataclass(frozen=True)
class TransportFailure:
    message: str
    status: Optional[int] = None

    def to_error(self) -> TransportError:
        return TransportError(self.message, status=self.status)


ReleaseLookup = Union[Found[ReleaseDescriptor], NotFound, TransportFailure]
ReleaseCreation = Union[Created[ReleaseDescriptor], NotFound, TransportFailure]
ReleaseUpdate = Union[Updated[ReleaseDescriptor], NotFound, TransportFailure]
ReleaseListing = Union[Found[list[ReleaseDescriptor]], NotFound, TransportFailure]
RefLookup = Union[Found[str], NotFound, TransportFailure]
AssetListing = Union[Found[list[RemoteAsset]], NotFound, TransportFailure]
AssetDeletion = Union[Deleted, NotFound, TransportFailure]
AssetUpload = Union[Created[RemoteAsset], NotFound, TransportFailure]


def strip_upload_template(upload_endpoint: str) -> str:
    """Drop the ``{?name,label}`` URI template GitHub appends to upload URLs."""
    return upload_endpoint.split("{", 1)[0]


def _path_segment(value: str) -> str:
    return quote(value, safe="")


def _failure_message(response: requests.Response, action: str) -> str:
    detail = ""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, Mapping):
        detail = str(payload.get("message") or "")
    if not detail:
        detail = (response.text or "").strip() or (response.reason or "")
    return f"failed to {action}: HTTP {response.status_code} {detail}".rstrip()


def _decode_json(response: requests.Response, action: str) -> Union[Found[Any], TransportFailure]:
    try:
        return Found(response.json())
    except ValueError:
        return TransportFailure(
            f"failed to {action}: HTTP {response.status_code} response is not valid JSON",
            response.status_code,
        )


class GitHubClient:
    """Release and asset operations against one repository."""

    def __init__(
        self,
        token: str,
        target: ReleaseTarget,
        *,
        api_url: str = DEFAULT_API_URL,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.target = target
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._session = session if session is not None else requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
                "User-Agent": "release-upload",
            }
        )

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def _repo_url(self, path: str) -> str:
        return f"{self.api_url}/repos/{self.target.owner}/{self.target.repo}/{path}"

    def _request(
        self,
        method: str,
        url: str,
        action: str,
        **kwargs: Any,
    ) -> Union[requests.Response, NotFound, TransportFailure]:
        log_debug(f"{method} {url}")
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = self._session.request(method, url, **kwargs)
        except requests.RequestException as exc:
            return TransportFailure(f"failed to {action}: {exc}")
        if response.status_code == 404:
            return NotFound(_failure_message(response, action))
        if response.status_code >= 300:
            return TransportFailure(_failure_message(response, action), response.status_code)
        return response

    def _request_json(
        self,
        method: str,
        url: str,
        action: str,
        **kwargs: Any,
    ) -> Union[Found[Any], NotFound, TransportFailure]:
        outcome = self._request(method, url, action, **kwargs)
        if isinstance(outcome, (NotFound, TransportFailure)):
            return outcome
        return _decode_json(outcome, action)

    def _paginate(
        self, url: str, action: str
    ) -> Iterator[Union[list[Any], NotFound, TransportFailure]]:
        next_url: Optional[str] = url
        params: Optional[dict[str, Any]] = {"per_page": PAGE_SIZE}
        while next_url:
            outcome = self._request("GET", next_url, action, params=params)
            if isinstance(outcome, (NotFound, TransportFailure)):
                yield outcome
                return
            decoded = _decode_json(outcome, action)
            if isinstance(decoded, TransportFailure):
                yield decoded
                return
            page = decoded.value
            yield list(page) if isinstance(page, list) else []
            next_url = outcome.links.get("next", {}).get("url")
            # The next link already carries the query string.
            params = None

    def get_release_by_tag(self, tag: str) -> ReleaseLookup:
        outcome = self._request_json(
            "GET",
            self._repo_url(f"releases/tags/{_path_segment(tag)}"),
            f"get release by tag {tag}",
        )
        if isinstance(outcome, Found):
            return Found(ReleaseDescriptor.from_payload(outcome.value))
        return outcome

    def get_release(self, release_id: int) -> ReleaseLookup:
        outcome = self._request_json(
            "GET", self._repo_url(f"releases/{release_id}"), f"get release {release_id}"
        )
        if isinstance(outcome, Found):
            return Found(ReleaseDescriptor.from_payload(outcome.value))
        return outcome

    def list_releases(self) -> ReleaseListing:
        releases: list[ReleaseDescriptor] = []
        for page in self._paginate(self._repo_url("releases"), "list releases"):
            if not isinstance(page, list):
                return page
            releases.extend(ReleaseDescriptor.from_payload(item) for item in page)
        return Found(releases)

    def get_tag_ref(self, tag: str) -> RefLookup:
        outcome = self._request_json(
            "GET", self._repo_url(f"git/ref/tags/{_path_segment(tag)}"), f"look up ref tags/{tag}"
        )
        if isinstance(outcome, Found):
            payload = outcome.value
            sha = ""
            if isinstance(payload, Mapping):
                sha = str((payload.get("object") or {}).get("sha") or "")
            return Found(sha)
        return outcome

    def create_release(
        self,
        tag: str,
        *,
        draft: bool,
        prerelease: bool,
        make_latest: bool,
        name: str,
        body: str,
        target_commit: str,
    ) -> ReleaseCreation:
        payload: dict[str, Any] = {
            "tag_name": tag,
            "draft": draft,
            "prerelease": prerelease,
            "make_latest": "true" if make_latest else "false",
        }
        if name:
            payload["name"] = name
        if body:
            payload["body"] = body
        if target_commit:
            payload["target_commitish"] = target_commit
        outcome = self._request_json(
            "POST", self._repo_url("releases"), f"create release for tag {tag}", json=payload
        )
        if isinstance(outcome, Found):
            return Created(ReleaseDescriptor.from_payload(outcome.value))
        return outcome

    def update_release(self, release_id: int, changes: Mapping[str, Any]) -> ReleaseUpdate:
        outcome = self._request_json(
            "PATCH",
            self._repo_url(f"releases/{release_id}"),
            f"update release {release_id}",
            json=dict(changes),
        )
        if isinstance(outcome, Found):
            return Updated(ReleaseDescriptor.from_payload(outcome.value))
        return outcome

    def list_assets(self, release_id: int) -> AssetListing:
        assets: list[RemoteAsset] = []
        url = self._repo_url(f"releases/{release_id}/assets")
        for page in self._paginate(url, f"list assets of release {release_id}"):
            if not isinstance(page, list):
                return page
            assets.extend(RemoteAsset.from_payload(item) for item in page)
        return Found(assets)

    def delete_asset(self, asset_id: int) -> AssetDeletion:
        outcome = self._request(
            "DELETE", self._repo_url(f"releases/assets/{asset_id}"), f"delete asset {asset_id}"
        )
        if isinstance(outcome, (NotFound, TransportFailure)):
            return outcome
        return Deleted()

    def upload_asset(self, upload_endpoint: str, name: str, data: bytes) -> AssetUpload:
        outcome = self._request_json(
            "POST",
            strip_upload_template(upload_endpoint),
            f"upload asset {name}",
            params={"name": name},
            data=data,
            headers={
                "Content-Type": UPLOAD_CONTENT_TYPE,
                "Content-Length": str(len(data)),
            },
        )
        if isinstance(outcome, Found):
            return Created(RemoteAsset.from_payload(outcome.value))
        return outcome
