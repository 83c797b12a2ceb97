"""Error taxonomy for release uploads."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .upload import UploadReport

__all__ = [
    "ReleaseUploadError",
    "ConfigError",
    "NotFoundError",
    "TransportError",
    "DuplicateAssetError",
    "NoMatchError",
]


class ReleaseUploadError(RuntimeError):
    """Base class for all failures raised by release-upload."""

    #: Results of the batch that was running when the error was raised.
    partial_report: Optional["UploadReport"] = None


class ConfigError(ReleaseUploadError):
    """Raised for missing or malformed inputs."""


class NotFoundError(ReleaseUploadError):
    """Raised when a release or ref cannot be found or created."""


class TransportError(ReleaseUploadError):
    """Raised for non-2xx responses (other than 404) and network faults."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class DuplicateAssetError(ReleaseUploadError):
    """Raised when an asset of the same name exists and overwriting is off.

    The batch driver records this failure and keeps processing the remaining
    files. ``download_url`` points at the asset that is already attached.
    """

    def __init__(self, asset_name: str, tag: str, download_url: str) -> None:
        super().__init__(
            f"an asset called {asset_name} already exists in release {tag} "
            "so it will not be overwritten."
        )
        self.asset_name = asset_name
        self.tag = tag
        self.download_url = download_url


class NoMatchError(ReleaseUploadError):
    """Raised when a glob pattern matches no files."""
