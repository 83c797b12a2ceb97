"""Integration-style tests for the release-upload CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml
from click.testing import CliRunner

from conftest import FakeGitHub
from release_upload import __version__
from release_upload.cli import cli, main
from release_upload.github import NotFound

WORKFLOW_ENV = (
    "GITHUB_OUTPUT",
    "GITHUB_REPOSITORY",
    "GITHUB_API_URL",
    "RELEASE_UPLOAD_CONFIG",
)
INPUT_NAMES = (
    "REPO_TOKEN",
    "FILE",
    "TAG",
    "FILE_GLOB",
    "ASSET_NAME",
    "OVERWRITE",
    "DRAFT",
    "PRERELEASE",
    "PROMOTE",
    "MAKE_LATEST",
    "RELEASE_NAME",
    "BODY",
    "TARGET_COMMIT",
    "REPO_NAME",
    "DRAFT_ID",
    "CHECK_DUPLICATES",
)


@pytest.fixture
def workflow(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> FakeGitHub:
    """Isolate the process environment and route API calls to a fake."""

    for name in WORKFLOW_ENV:
        monkeypatch.delenv(name, raising=False)
    for name in INPUT_NAMES:
        monkeypatch.delenv(f"INPUT_{name}", raising=False)
    monkeypatch.setenv("GITHUB_REPOSITORY", "octo/app")
    monkeypatch.setenv("GITHUB_OUTPUT", str(tmp_path / "github_output"))
    fake = FakeGitHub()
    monkeypatch.setattr(
        "release_upload.cli._upload.GitHubClient",
        lambda token, target, api_url: fake,
    )
    return fake


def _outputs(tmp_path: Path) -> dict[str, str]:
    output_file = tmp_path / "github_output"
    if not output_file.exists():
        return {}
    lines = output_file.read_text(encoding="utf-8").splitlines()
    return dict(line.split("=", 1) for line in lines)


def _artifact(tmp_path: Path, name: str = "app.bin") -> Path:
    path = tmp_path / "dist" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"artifact")
    return path


def test_cli_version_option(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["--version"])
    captured = capsys.readouterr()
    assert exit_code == 0
    assert captured.out.strip() == __version__


def test_main_reads_workflow_inputs(
    workflow: FakeGitHub, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    path = _artifact(tmp_path)
    monkeypatch.setenv("INPUT_REPO_TOKEN", "secret")
    monkeypatch.setenv("INPUT_FILE", str(path))
    monkeypatch.setenv("INPUT_TAG", "refs/tags/v1.0.0")
    monkeypatch.setenv("INPUT_DRAFT", "true")
    monkeypatch.setenv("INPUT_ASSET_NAME", "")
    monkeypatch.setenv("INPUT_MAKE_LATEST", "false")

    exit_code = main([])

    assert exit_code == 0
    release = next(iter(workflow.releases.values()))
    assert release.tag == "v1.0.0"
    assert release.draft is True
    assert workflow.created_payloads[0]["make_latest"] is False
    assert workflow.asset_names(release) == ["app.bin"]
    outputs = _outputs(tmp_path)
    assert outputs["draft_id"] == str(release.id)
    assert outputs["browser_download_url"].endswith("/v1.0.0/app.bin?id=" + str(release.id + 1))
    assert workflow.closed


def test_duplicate_asset_fails_but_reports_existing_url(
    workflow: FakeGitHub, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    release = workflow.add_release("v1.0.0")
    existing = workflow.add_asset(release, "app.bin")
    path = _artifact(tmp_path)

    exit_code = main(["--repo-token", "secret", "--file", str(path), "--tag", "v1.0.0"])

    assert exit_code == 1
    assert "1 of 1 assets could not be published" in capsys.readouterr().err
    assert _outputs(tmp_path) == {"browser_download_url": existing.download_url}
    assert workflow.asset_names(release) == ["app.bin"]


def test_overwrite_replaces_existing_asset(workflow: FakeGitHub, tmp_path: Path) -> None:
    release = workflow.add_release("v1.0.0")
    existing = workflow.add_asset(release, "app.bin")
    path = _artifact(tmp_path)

    exit_code = main(
        [
            "upload",
            "--repo-token",
            "secret",
            "--file",
            str(path),
            "--tag",
            "v1.0.0",
            "--overwrite",
            "true",
        ]
    )

    assert exit_code == 0
    assert workflow.asset_names(release) == ["app.bin"]
    assert workflow.assets[release.id][0].id != existing.id
    assert "draft_id" not in _outputs(tmp_path)


def test_glob_without_matches_exits_with_error(
    workflow: FakeGitHub, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = main(
        [
            "--repo-token",
            "secret",
            "--file",
            str(tmp_path / "*.bin"),
            "--file-glob",
            "true",
            "--tag",
            "v1.0.0",
        ]
    )

    assert exit_code == 1
    assert "No files matching the glob pattern found" in capsys.readouterr().err
    assert workflow.calls == []


def test_missing_token_exits_with_error(
    workflow: FakeGitHub, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = _artifact(tmp_path)

    exit_code = main(["--file", str(path), "--tag", "v1.0.0"])

    assert exit_code == 1
    assert "Input required and not supplied: repo_token" in capsys.readouterr().err
    assert workflow.calls == []


def test_config_file_supplies_defaults(
    workflow: FakeGitHub, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    _artifact(tmp_path, "a.bin")
    _artifact(tmp_path, "b.bin")
    config_path = tmp_path / "release-upload.yaml"
    config_path.write_text(
        yaml.safe_dump(
            {
                "file": str(tmp_path / "dist" / "*.bin"),
                "file-glob": True,
                "release_name": "From config",
                "prerelease": True,
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("INPUT_REPO_TOKEN", "secret")
    monkeypatch.setenv("INPUT_TAG", "v2.0.0")

    exit_code = main(["--config", str(config_path), "--release-name", "From CLI"])

    assert exit_code == 0
    release = next(iter(workflow.releases.values()))
    assert release.name == "From CLI"
    assert release.prerelease is True
    assert sorted(workflow.asset_names(release)) == ["a.bin", "b.bin"]


def test_config_file_rejects_tokens(
    workflow: FakeGitHub, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config_path = tmp_path / "release-upload.yaml"
    config_path.write_text("repo_token: ghp_secret\n", encoding="utf-8")

    exit_code = main(["--config", str(config_path)])

    assert exit_code == 1
    assert "must not be stored in a file" in capsys.readouterr().err


def test_upload_command_prints_outputs_outside_workflows(
    workflow: FakeGitHub, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("GITHUB_OUTPUT")
    path = _artifact(tmp_path)
    runner = CliRunner()

    result = runner.invoke(
        cli,
        [
            "upload",
            "--repo-token",
            "secret",
            "--repo-name",
            "octo/other",
            "--file",
            str(path),
            "--asset-name",
            "app-$tag.bin",
            "--tag",
            "v3",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "browser_download_url=" in result.output
    assert "app-v3.bin" in result.output
    assert "draft_id=" in result.output


def test_failed_upload_still_records_outputs(
    workflow: FakeGitHub, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    _artifact(tmp_path, "a.bin")
    _artifact(tmp_path, "b.bin")
    upload_asset = workflow.upload_asset

    def failing_upload(upload_endpoint: str, name: str, data: bytes) -> Any:
        if name == "b.bin":
            return NotFound("failed to upload asset b.bin: HTTP 404 Not Found")
        return upload_asset(upload_endpoint, name, data)

    monkeypatch.setattr(workflow, "upload_asset", failing_upload)

    exit_code = main(
        [
            "--repo-token",
            "secret",
            "--file",
            str(tmp_path / "dist" / "*.bin"),
            "--file-glob",
            "true",
            "--draft",
            "true",
            "--tag",
            "v1",
        ]
    )

    assert exit_code == 1
    release = next(iter(workflow.releases.values()))
    outputs = _outputs(tmp_path)
    assert outputs["draft_id"] == str(release.id)
    assert outputs["browser_download_url"] == workflow.assets[release.id][0].download_url
