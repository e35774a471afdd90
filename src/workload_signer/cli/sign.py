"""Sign CLI command.

Signs every process listed in a command document and writes the document
back with a statusResponse recorded in each envelope.

Example:
    $ workload-signer sign command.json --output signed.json

Environment Variables:
    WORKLOAD_SIGNER_PROFILE_DIR: Directory for transient signing profiles
    WORKLOAD_SIGNER_EXECUTABLE: Signer executable
    WORKLOAD_SIGNER_TIMEOUT: Seconds before a signer invocation is killed
    WORKLOAD_SIGNER_MAX_WORKERS: Processes signed concurrently
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
from pydantic import ValidationError

from workload_signer.cli.utils import (
    ExitCode,
    command_args,
    dump_document,
    error_exit,
    info,
    load_document,
    success,
)
from workload_signer.config import SignerConfig
from workload_signer.credentials import StaticCredentialProvider
from workload_signer.errors import MissingInputError, NoSuccessError
from workload_signer.models import Credentials
from workload_signer.orchestrator import SigningOrchestrator


@click.command(
    name="sign",
    help="""\b
Sign the images listed in a command document.

The document holds args.signingProfiles as
container -> process -> signing profile. Each process
is signed with the external signer; its outcome is
written back as statusResponse and the document is
printed (or written to --output) as JSON.

Exits 0 if at least one process was signed, 1 if none.

Examples:
    $ workload-signer sign command.json
    $ workload-signer sign command.yaml -o signed.json --workers 4
""",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.argument(
    "command_file",
    type=click.Path(path_type=Path, dir_okay=False),
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Write the signed document here instead of stdout.",
)
@click.option(
    "--profile-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Directory for transient signing profiles.",
)
@click.option(
    "--signer",
    type=str,
    default=None,
    help="Signer executable name or path.",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Seconds before a signer invocation is killed.",
)
@click.option(
    "--workers",
    type=int,
    default=None,
    help="Number of processes signed concurrently.",
)
@click.option(
    "--user",
    type=str,
    default=None,
    envvar="WORKLOAD_SIGNER_USER",
    help="Signer login user; skips the credentials secret.",
)
@click.option(
    "--password",
    type=str,
    default=None,
    envvar="WORKLOAD_SIGNER_PASSWORD",
    help="Signer login password (used with --user).",
)
def sign_command(
    command_file: Path,
    output: Path | None,
    profile_dir: Path | None,
    signer: str | None,
    timeout: float | None,
    workers: int | None,
    user: str | None,
    password: str | None,
) -> None:
    """Sign the images listed in a command document."""
    try:
        overrides = {
            "profile_dir": profile_dir,
            "executable": signer,
            "timeout": timeout,
            "max_workers": workers,
        }
        config = SignerConfig(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        error_exit(f"Invalid configuration: {e}", exit_code=ExitCode.VALIDATION_ERROR)

    credentials = None
    if user is not None:
        credentials = StaticCredentialProvider(
            Credentials(user=user, password=password or "", customer="")
        )

    document = load_document(command_file)
    orchestrator = SigningOrchestrator.from_config(config, credentials=credentials)

    exit_code = ExitCode.SUCCESS
    try:
        report = orchestrator.sign_command_args(command_args(document))
        info(f"Signed {len(report.succeeded)} of {len(report)} processes")
    except MissingInputError as e:
        error_exit(str(e), exit_code=ExitCode.VALIDATION_ERROR, path=str(command_file))
    except NoSuccessError as e:
        info(f"Error: {e}")
        exit_code = ExitCode.GENERAL_ERROR

    rendered = dump_document(document)
    if output is None:
        success(rendered)
    else:
        output.write_text(rendered + "\n", encoding="utf-8")
        info(f"Signed document written to {output}")

    if exit_code != ExitCode.SUCCESS:
        sys.exit(exit_code)


__all__ = ["sign_command"]
