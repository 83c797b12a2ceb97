"""The ``upload`` command: publish local files to a GitHub release."""

from __future__ import annotations

from typing import Any

import click
from click.core import ParameterSource
from rich.table import Table
from rich.text import Text

from ..assets import PublishStatus
from ..config import UploadConfig, build_config
from ..errors import ReleaseUploadError
from ..github import GitHubClient
from ..upload import UploadReport, upload_release_assets
from ..utils import (
    format_bold,
    log_success,
    print_renderable,
    write_step_outputs,
)
from ._core import CLIContext, input_option

__all__ = ["run_upload", "upload_cmd"]

STATUS_TABLE_CELLS = {
    PublishStatus.UPLOADED: Text("+", style="green bold"),
    PublishStatus.REPLACED: Text("↻", style="yellow bold"),
    PublishStatus.SKIPPED: Text("•", style="dim"),
    PublishStatus.DUPLICATE: Text("✘", style="red bold"),
}


def _render_upload_summary(report: UploadReport) -> None:
    if not report.results:
        return
    table = Table()
    table.add_column("✓", no_wrap=True, justify="center", header_style="dim")
    table.add_column("Asset")
    table.add_column("File", style="dim")
    table.add_column("Download URL", style="cyan", overflow="fold")
    for result in report.results:
        status_cell = STATUS_TABLE_CELLS.get(result.status, Text("•")).copy()
        table.add_row(
            status_cell,
            result.name,
            str(result.candidate.path),
            result.download_url or "",
        )
    print_renderable(table)


def run_upload(config: UploadConfig) -> UploadReport:
    """Python wrapper for a full upload run that mirrors CLI behavior.

    Step outputs are written even when the run fails, so a created draft id
    and the download URLs of files published before the failure survive.
    """

    try:
        with GitHubClient(config.repo_token, config.target, api_url=config.api_url) as client:
            report = upload_release_assets(client, config)
    except ReleaseUploadError as exc:
        if exc.partial_report is not None:
            write_step_outputs(exc.partial_report.outputs())
        raise click.ClickException(str(exc)) from exc

    write_step_outputs(report.outputs())
    _render_upload_summary(report)

    if report.failed:
        raise click.ClickException(
            f"{len(report.failures)} of {len(report.results)} assets could not be published."
        )
    log_success(
        f"published assets to release {format_bold(config.tag)} in {config.target.slug}."
    )
    return report


def _merge_defaults(ctx: CLIContext, values: dict[str, Any]) -> dict[str, Any]:
    """Fill options left at their defaults from the config file."""
    click_ctx = click.get_current_context()
    merged = dict(values)
    for name, value in ctx.ensure_defaults().items():
        source = click_ctx.get_parameter_source(name)
        if source is None or source == ParameterSource.DEFAULT:
            merged[name] = value
    return merged


@click.command("upload")
@input_option("repo_token", help="Token used to authenticate against the GitHub API.")
@input_option("file", help="File to upload, or a glob pattern with --file-glob.")
@input_option("tag", help="Release tag; refs/tags/ and refs/heads/ prefixes are stripped.")
@input_option(
    "file_glob",
    type=click.BOOL,
    default=False,
    help="Treat FILE as a glob pattern.",
)
@input_option(
    "asset_name",
    help="Asset name; $tag expands to the tag. Defaults to the file name.",
)
@input_option(
    "overwrite",
    type=click.BOOL,
    default=False,
    help="Replace existing assets and differing release name/body.",
)
@input_option("draft", type=click.BOOL, default=False, help="Create the release as a draft.")
@input_option(
    "prerelease",
    type=click.BOOL,
    default=False,
    help="Create the release as a prerelease.",
)
@input_option(
    "promote",
    type=click.BOOL,
    default=False,
    help="Turn an existing prerelease into a full release.",
)
@input_option(
    "make_latest",
    type=click.BOOL,
    default=True,
    help="Mark a newly created release as the latest release.",
)
@input_option("release_name", help="Display name of the release.")
@input_option("body", help="Release description; %0A, %0D and %25 escapes are decoded.")
@input_option("target_commit", help="Commit to tag when the tag does not exist yet.")
@input_option("repo_name", help="Target repository as owner/repo.")
@input_option("draft_id", help="Id of a draft release created by an earlier step.")
@input_option(
    "check_duplicates",
    type=click.BOOL,
    default=True,
    help="Check the release for assets with the same name before uploading.",
)
@click.option(
    "--api-url",
    "api_url",
    envvar="GITHUB_API_URL",
    help="Base URL of the GitHub REST API.",
)
@click.pass_obj
def upload_cmd(ctx: CLIContext, **options: Any) -> None:
    """Upload files to the release for a tag, creating the release if needed."""

    values = _merge_defaults(ctx, options)
    try:
        config = build_config(values)
    except ReleaseUploadError as exc:
        raise click.ClickException(str(exc)) from exc
    run_upload(config)
