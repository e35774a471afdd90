"""CLI utility functions and error handling.

Errors go to stderr as plain text with a non-zero exit code; command output
(the signed command document) goes to stdout.

Example:
    from workload_signer.cli.utils import error_exit, ExitCode

    if not path.exists():
        error_exit("File not found", path=str(path))
"""

from __future__ import annotations

import json
import sys
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
import yaml

if TYPE_CHECKING:
    from typing import NoReturn


class ExitCode(IntEnum):
    """Standard exit codes for CLI commands."""

    SUCCESS = 0
    """Command completed successfully."""

    GENERAL_ERROR = 1
    """General error, including a request where nothing was signed."""

    FILE_NOT_FOUND = 3
    """Required file or directory not found."""

    PERMISSION_ERROR = 4
    """Permission denied accessing file or resource."""

    VALIDATION_ERROR = 5
    """Input validation failed."""

    NETWORK_ERROR = 8
    """Kubernetes API or other remote service error."""


def error(message: str, **context: str | int | bool | None) -> None:
    """Print an error message to stderr.

    Args:
        message: Error message to display.
        **context: Optional context key-value pairs to include.
    """
    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items() if v is not None)
        full_message = f"Error: {message} ({context_str})"
    else:
        full_message = f"Error: {message}"

    click.echo(full_message, err=True)


def error_exit(
    message: str,
    exit_code: ExitCode = ExitCode.GENERAL_ERROR,
    **context: str | int | bool | None,
) -> NoReturn:
    """Print an error message to stderr and exit with a code.

    Raises:
        SystemExit: Always exits with the specified code.
    """
    error(message, **context)
    sys.exit(exit_code)


def success(message: str) -> None:
    """Print a success message to stdout."""
    click.echo(message)


def info(message: str) -> None:
    """Print an informational message to stderr."""
    click.echo(message, err=True)


def load_document(path: Path) -> dict[str, Any]:
    """Load a JSON or YAML command document.

    YAML is a superset of JSON, so both formats go through yaml.safe_load.

    Args:
        path: Path to the document.

    Returns:
        The parsed document.

    Raises:
        SystemExit: If the file is missing, unreadable or not a mapping.
    """
    if not path.exists():
        error_exit("Command file not found", exit_code=ExitCode.FILE_NOT_FOUND, path=str(path))
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except PermissionError:
        error_exit("Cannot read command file", exit_code=ExitCode.PERMISSION_ERROR, path=str(path))
    except yaml.YAMLError as e:
        error_exit(
            f"Invalid command file: {e}", exit_code=ExitCode.VALIDATION_ERROR, path=str(path)
        )

    if not isinstance(document, dict):
        error_exit(
            "Command file must contain a mapping",
            exit_code=ExitCode.VALIDATION_ERROR,
            path=str(path),
        )
    return document


def command_args(document: dict[str, Any]) -> dict[str, Any] | None:
    """Return the argument bag of a command document.

    A document is either a full command (``{"args": {...}}``) or the bare
    argument bag itself.
    """
    args = document.get("args", document)
    if not isinstance(args, dict):
        return None
    return args


def dump_document(document: dict[str, Any]) -> str:
    """Render a command document as indented JSON."""
    return json.dumps(document, indent=2, default=str)


__all__ = [
    "ExitCode",
    "command_args",
    "dump_document",
    "error",
    "error_exit",
    "info",
    "load_document",
    "success",
]
