"""Core CLI infrastructure: context, option helpers, and the main entry point."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError, version as metadata_version
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import click

from .. import __version__ as package_version
from ..config import load_defaults
from ..errors import ConfigError
from ..utils import abort_on_user_interrupt, configure_logging, log_debug

F = TypeVar("F", bound=Callable[..., Any])

__all__ = [
    "CLIContext",
    "create_cli_context",
    "input_option",
    "VERSION_FLAGS",
    "DEFAULT_COMMAND",
    "_create_cli_group",
    "main",
]

VERSION_FLAGS = {"--version", "-V"}
DEFAULT_COMMAND = "upload"
GROUP_FLAGS = {"--debug", "-d"}
INPUT_ENV_PREFIX = "INPUT_"


def _resolve_cli_version() -> str:
    try:
        return metadata_version("release-upload")
    except PackageNotFoundError:
        return package_version


def input_option(name: str, **kwargs: Any) -> Callable[[F], F]:
    """Option bound to the ``INPUT_<NAME>`` variable GitHub Actions sets.

    Empty environment values count as unset, so inputs a workflow leaves
    blank fall through to the config file or the option default.
    """

    flag = "--" + name.replace("_", "-")
    envvar = INPUT_ENV_PREFIX + name.upper()

    def decorator(f: F) -> F:
        return click.option(flag, name, envvar=envvar, show_envvar=True, **kwargs)(f)

    return decorator


@dataclass
class CLIContext:
    """Shared command context."""

    config_path: Optional[Path] = None
    debug: bool = False
    _defaults: Optional[dict[str, Any]] = field(default=None, repr=False)

    def ensure_defaults(self) -> dict[str, Any]:
        """Return input defaults from the config file, loading it once."""
        if self._defaults is None:
            if self.config_path is None:
                self._defaults = {}
            else:
                try:
                    self._defaults = load_defaults(self.config_path)
                except ConfigError as error:
                    raise click.ClickException(str(error)) from error
                log_debug(f"loaded {len(self._defaults)} defaults from {self.config_path}")
        return self._defaults


def create_cli_context(
    *,
    config: Optional[Path] = None,
    debug: bool = False,
) -> CLIContext:
    """Return a CLIContext using the same resolution logic as the CLI entry point."""

    configure_logging(debug)
    config_path = config.resolve() if config else None
    if config_path is not None:
        log_debug(f"using config path: {config_path}")
    return CLIContext(config_path=config_path, debug=debug)


def _create_cli_group() -> click.Group:
    """Create the main CLI group. Called after all commands are defined."""

    @click.group(context_settings={"help_option_names": ["-h", "--help"]})
    @click.option(
        "--config",
        type=click.Path(path_type=Path, dir_okay=False, exists=True),
        envvar="RELEASE_UPLOAD_CONFIG",
        help="YAML file with default input values.",
    )
    @click.option(
        "--debug",
        "-d",
        is_flag=True,
        help="Enable debug logging.",
    )
    @click.pass_context
    def _cli(ctx: click.Context, config: Optional[Path], debug: bool) -> None:
        """Upload build artifacts to a GitHub release."""

        ctx.obj = create_cli_context(config=config, debug=debug)

    return click.version_option(version=_resolve_cli_version())(_cli)


def _insert_default_command(args: list[str]) -> list[str]:
    """Place the default command after any leading group options."""
    index = 0
    while index < len(args):
        arg = args[index]
        if arg in GROUP_FLAGS or arg.startswith("--config="):
            index += 1
        elif arg == "--config":
            index += 2
        else:
            break
    return args[:index] + [DEFAULT_COMMAND] + args[index:]


def main(argv: list[str] | None = None) -> int:
    """Entry point for console_scripts."""
    # Import cli here to avoid circular import at module load time
    from . import cli

    args = list(argv) if argv is not None else list(sys.argv[1:])

    if any(flag in args for flag in VERSION_FLAGS):
        click.echo(_resolve_cli_version())
        return 0

    # Workflow steps run the bare executable; default to 'upload'.
    has_command = any(arg in cli.commands for arg in args)
    if not has_command:
        args = _insert_default_command(args)

    try:
        result = cli.main(args=args, prog_name="release-upload", standalone_mode=False)
    except click.ClickException as exc:
        exc.show(file=sys.stderr)
        exit_code = getattr(exc, "exit_code", 1)
        return exit_code if isinstance(exit_code, int) else 1
    except KeyboardInterrupt as exc:
        try:
            abort_on_user_interrupt(exc)
        except click.exceptions.Exit as exit_exc:
            exit_code = getattr(exit_exc, "exit_code", 130)
            return exit_code if isinstance(exit_code, int) else 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 0
    # Without standalone mode click returns the code of a raised Exit.
    return result if isinstance(result, int) else 0
