"""Validate CLI command.

Checks every envelope of a command document against the documented signing
profile shape without running the signer.

Example:
    $ workload-signer validate command.json
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import click
from pydantic import ValidationError

from workload_signer.cli.utils import (
    ExitCode,
    command_args,
    error,
    error_exit,
    load_document,
    success,
)
from workload_signer.models import SigningProfile
from workload_signer.orchestrator import SIGNING_PROFILES_ARG


@click.command(
    name="validate",
    help="""\b
Validate the signing profiles in a command document.

Every envelope under args.signingProfiles must carry a
dockerImageTag and match the signing profile shape.
Nothing is signed.

Examples:
    $ workload-signer validate command.json
""",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.argument(
    "command_file",
    type=click.Path(path_type=Path, dir_okay=False),
)
def validate_command(command_file: Path) -> None:
    """Validate the signing profiles in a command document."""
    document = load_document(command_file)
    args = command_args(document)
    if not args or SIGNING_PROFILES_ARG not in args:
        error_exit(
            f"{SIGNING_PROFILES_ARG!r} not found in command args",
            exit_code=ExitCode.VALIDATION_ERROR,
            path=str(command_file),
        )

    request = args[SIGNING_PROFILES_ARG]
    if not isinstance(request, Mapping):
        error_exit(
            f"{SIGNING_PROFILES_ARG!r} must be a mapping of containers",
            exit_code=ExitCode.VALIDATION_ERROR,
        )

    checked = 0
    invalid = 0
    for container_name, processes in request.items():
        if not isinstance(processes, Mapping):
            error(f"container {container_name!r} is not a mapping of processes")
            invalid += 1
            continue
        for process_name, envelope in processes.items():
            checked += 1
            try:
                SigningProfile.model_validate(envelope)
            except ValidationError as e:
                invalid += 1
                error(
                    f"invalid signing profile: {e.error_count()} error(s)",
                    container=str(container_name),
                    process=str(process_name),
                )
                for detail in e.errors():
                    location = ".".join(str(part) for part in detail["loc"])
                    error(f"  {location}: {detail['msg']}")

    if invalid:
        error_exit(
            f"{invalid} invalid signing profile(s)",
            exit_code=ExitCode.VALIDATION_ERROR,
        )
    success(f"{checked} signing profile(s) valid")


__all__ = ["validate_command"]
