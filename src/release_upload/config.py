"""Configuration helpers for release-upload."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

import yaml

from .errors import ConfigError
from .github import DEFAULT_API_URL
from .models import ReleaseSettings, ReleaseTarget

REPOSITORY_ENV = "GITHUB_REPOSITORY"
API_URL_ENV = "GITHUB_API_URL"
TAG_REF_PREFIXES = ("refs/tags/", "refs/heads/")

BOOL_OPTIONS = (
    "file_glob",
    "overwrite",
    "draft",
    "prerelease",
    "promote",
    "make_latest",
    "check_duplicates",
)
STRING_OPTIONS = (
    "file",
    "tag",
    "asset_name",
    "release_name",
    "body",
    "target_commit",
    "repo_name",
    "api_url",
)
INT_OPTIONS = ("draft_id",)
SECRET_OPTIONS = ("repo_token",)


@dataclass
class UploadConfig:
    """Structured representation of one invocation's inputs."""

    repo_token: str
    file: str
    tag: str
    target: ReleaseTarget
    file_glob: bool = False
    asset_name: str = ""
    overwrite: bool = False
    draft: bool = False
    prerelease: bool = False
    promote: bool = False
    make_latest: bool = True
    release_name: str = ""
    body: str = ""
    target_commit: str = ""
    draft_id: Optional[int] = None
    check_duplicates: bool = True
    api_url: str = DEFAULT_API_URL

    def release_settings(self) -> ReleaseSettings:
        return ReleaseSettings(
            draft=self.draft,
            prerelease=self.prerelease,
            make_latest=self.make_latest,
            name=self.release_name,
            body=self.body,
            target_commit=self.target_commit,
            draft_id=self.draft_id,
            overwrite=self.overwrite,
            promote=self.promote,
        )


def normalize_tag(value: str) -> str:
    """Strip ``refs/tags/`` and ``refs/heads/`` prefixes from a tag input."""
    tag = value.strip()
    for prefix in TAG_REF_PREFIXES:
        if tag.startswith(prefix):
            tag = tag[len(prefix) :]
    if not tag:
        raise ConfigError("Input 'tag' must not be empty.")
    return tag


def decode_body(value: str) -> str:
    """Decode the ``%0A``, ``%0D`` and ``%25`` escapes used by workflow inputs."""
    decoded = re.sub("%0A", "\n", value, flags=re.IGNORECASE)
    decoded = re.sub("%0D", "\r", decoded, flags=re.IGNORECASE)
    return decoded.replace("%25", "%")


def parse_release_target(
    repo_name: Optional[str],
    *,
    env: Mapping[str, str] | None = None,
) -> ReleaseTarget:
    """Return the target repository from ``repo_name`` or the environment.

    An explicit ``owner/repo`` value is split on the first slash. Without one,
    the invoking repository from ``GITHUB_REPOSITORY`` is used.
    """

    env_mapping = env if env is not None else os.environ
    value = (repo_name or "").strip()
    source = "repo_name"
    if not value:
        value = env_mapping.get(REPOSITORY_ENV, "").strip()
        source = REPOSITORY_ENV
        if not value:
            raise ConfigError(
                f"Set 'repo_name' or {REPOSITORY_ENV} to select the target repository."
            )
    owner, _, repo = value.partition("/")
    if not owner:
        raise ConfigError(f"Could not extract 'owner' from '{source}': {value}")
    if not repo:
        raise ConfigError(f"Could not extract 'repo' from '{source}': {value}")
    return ReleaseTarget(owner=owner, repo=repo)


def parse_draft_id(value: object) -> Optional[int]:
    """Return the draft id as an integer, treating blanks as unset."""
    if isinstance(value, bool):
        raise ConfigError("Input 'draft_id' must be an integer.")
    if value is None:
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    if not text.isdigit():
        raise ConfigError(f"Input 'draft_id' must be an integer, got: {text}")
    return int(text)


def load_defaults(path: Path) -> dict[str, Any]:
    """Load default input values from a YAML file.

    The file holds a flat mapping of input names to values. Values given on
    the command line or through the environment take precedence.
    """

    try:
        with path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file {path} is not valid YAML: {exc}") from exc
    if not isinstance(raw, MutableMapping):
        raise ConfigError("Config root must be a mapping")

    defaults: dict[str, Any] = {}
    for key, value in raw.items():
        name = str(key).strip().replace("-", "_")
        if name in SECRET_OPTIONS:
            raise ConfigError(
                f"Config option '{name}' must not be stored in a file; "
                "pass it through the environment instead."
            )
        if value is None:
            continue
        if name in BOOL_OPTIONS:
            if not isinstance(value, bool):
                raise ConfigError(f"Config option '{name}' must be a boolean.")
            defaults[name] = value
        elif name in STRING_OPTIONS:
            if not isinstance(value, (str, int, float)) or isinstance(value, bool):
                raise ConfigError(f"Config option '{name}' must be a string.")
            defaults[name] = str(value)
        elif name in INT_OPTIONS:
            defaults[name] = parse_draft_id(value)
        else:
            raise ConfigError(f"Unknown config option '{name}'.")
    return defaults


def build_config(
    values: Mapping[str, Any],
    *,
    env: Mapping[str, str] | None = None,
) -> UploadConfig:
    """Validate raw input values and return an ``UploadConfig``."""

    def _text(name: str) -> str:
        value = values.get(name)
        return "" if value is None else str(value)

    token = _text("repo_token").strip()
    if not token:
        raise ConfigError("Input required and not supplied: repo_token")
    file_value = _text("file").strip()
    if not file_value:
        raise ConfigError("Input required and not supplied: file")
    if not _text("tag").strip():
        raise ConfigError("Input required and not supplied: tag")

    env_mapping = env if env is not None else os.environ
    api_url = _text("api_url").strip() or env_mapping.get(API_URL_ENV, "").strip()

    return UploadConfig(
        repo_token=token,
        file=file_value,
        tag=normalize_tag(_text("tag")),
        target=parse_release_target(_text("repo_name"), env=env_mapping),
        file_glob=bool(values.get("file_glob", False)),
        asset_name=_text("asset_name"),
        overwrite=bool(values.get("overwrite", False)),
        draft=bool(values.get("draft", False)),
        prerelease=bool(values.get("prerelease", False)),
        promote=bool(values.get("promote", False)),
        make_latest=bool(values.get("make_latest", True)),
        release_name=_text("release_name"),
        body=decode_body(_text("body")),
        target_commit=_text("target_commit").strip(),
        draft_id=parse_draft_id(values.get("draft_id")),
        check_duplicates=bool(values.get("check_duplicates", True)),
        api_url=api_url or DEFAULT_API_URL,
    )
