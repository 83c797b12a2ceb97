"""Core package exports for release-upload."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as metadata_version
from typing import TYPE_CHECKING, Any

__all__ = ["__version__", "ReleaseUploader", "main"]

try:
    __version__ = metadata_version("release-upload")
except PackageNotFoundError:  # pragma: no cover - fallback for editable installs
    __version__ = "0.0.0"

if TYPE_CHECKING:  # pragma: no cover
    from .api import ReleaseUploader
    from .cli import main


def __getattr__(name: str) -> Any:  # pragma: no cover - simple delegation
    if name == "ReleaseUploader":
        from .api import ReleaseUploader as _ReleaseUploader

        return _ReleaseUploader
    if name == "main":
        from .cli import main as _main

        return _main
    raise AttributeError(f"module 'release_upload' has no attribute {name!r}")
