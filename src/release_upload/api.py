"""Python-friendly facade for invoking release-upload functionality."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from .assets import PublishResult, publish_asset
from .config import UploadConfig, build_config, parse_release_target
from .github import DEFAULT_API_URL, GitHubClient
from .models import AssetCandidate, ReleaseSettings
from .releases import ReleaseResolution, resolve_release
from .upload import UploadReport, upload_release_assets
from .utils import configure_logging


class ReleaseUploader:
    """High-level helper that mirrors the CLI for Python callers.

    The uploader owns an HTTP session; use it as a context manager or call
    ``close()`` when done.
    """

    def __init__(
        self,
        token: str,
        *,
        repository: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        debug: bool = False,
        client: Optional[GitHubClient] = None,
    ) -> None:
        configure_logging(debug)
        self._token = token
        self._api_url = api_url
        self._client = (
            client
            if client is not None
            else GitHubClient(token, parse_release_target(repository), api_url=api_url)
        )

    def __enter__(self) -> "ReleaseUploader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def client(self) -> GitHubClient:
        """Expose the underlying REST client for advanced scenarios."""

        return self._client

    def close(self) -> None:
        self._client.close()

    def resolve(self, tag: str, **settings: Any) -> ReleaseResolution:
        """Find or create the release for ``tag``.

        Keyword arguments are the fields of ``ReleaseSettings`` (draft,
        prerelease, make_latest, name, body, target_commit, draft_id,
        overwrite, promote).
        """

        return resolve_release(self._client, tag, ReleaseSettings(**settings))

    def publish(
        self,
        resolution: ReleaseResolution,
        path: Path | str,
        *,
        asset_name: Optional[str] = None,
        tag: Optional[str] = None,
        overwrite: bool = False,
        check_duplicates: bool = True,
    ) -> PublishResult:
        """Upload a single file to a resolved release."""

        file_path = Path(path)
        candidate = AssetCandidate(path=file_path, declared_name=asset_name or file_path.name)
        return publish_asset(
            self._client,
            resolution.release,
            candidate,
            overwrite=overwrite,
            check_duplicates=check_duplicates,
            tag=tag,
        )

    def upload(self, *, file: str, tag: str, **inputs: Any) -> UploadReport:
        """Run a full upload with the same inputs the CLI accepts.

        Returns the report; duplicate failures are listed in
        ``report.failures`` instead of being raised.
        """

        values: dict[str, Any] = dict(inputs)
        values.update(
            {
                "repo_token": self._token,
                "file": file,
                "tag": tag,
                "repo_name": self._client.target.slug,
                "api_url": self._api_url,
            }
        )
        config: UploadConfig = build_config(values)
        return upload_release_assets(self._client, config)
