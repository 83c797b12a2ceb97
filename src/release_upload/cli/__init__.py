"""CLI package for release-upload.

This package contains the modular CLI implementation:
- _core.py: CLIContext, option helpers, main entry point
- _upload.py: upload command
"""

from __future__ import annotations

# Re-export core types and utilities
from ._core import (
    CLIContext,
    DEFAULT_COMMAND,
    VERSION_FLAGS,
    create_cli_context,
    input_option,
    _create_cli_group,
    main,
)

# Re-export upload command
from ._upload import (
    run_upload,
    upload_cmd,
)

# Create the main CLI group
cli = _create_cli_group()

# Register all commands with the cli group
cli.add_command(upload_cmd)


__all__ = [
    # Core
    "cli",
    "main",
    "CLIContext",
    "DEFAULT_COMMAND",
    "VERSION_FLAGS",
    "create_cli_context",
    "input_option",
    # Upload
    "run_upload",
    "upload_cmd",
]
