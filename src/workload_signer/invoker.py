"""Invocation of the external image signer.

The signer is run once per process as::

    casigner --docker_image_id <image> --configuration_file <profile>
             --user_name <user> --password <password>

Standard output and standard error are captured separately and logged
together, with labels, after every invocation. The customer name is never
passed on the command line.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

import structlog

from workload_signer.config import DEFAULT_INVOCATION_TIMEOUT, DEFAULT_SIGNER_EXECUTABLE
from workload_signer.errors import InvocationError
from workload_signer.models import Credentials
from workload_signer.observability import REDACTED

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class InvocationResult:
    """Captured output of a signer run.

    Attributes:
        returncode: Process exit status.
        stdout: Captured standard output.
        stderr: Captured standard error.
    """

    returncode: int
    stdout: str
    stderr: str


def format_output(stdout: str, stderr: str) -> str:
    """Join signer stdout and stderr with labels."""
    return f"signer stdout:\n{stdout}\nsigner stderr:\n{stderr}"


def redact_args(args: list[str]) -> list[str]:
    """Return a copy of a signer command line with the password value masked."""
    redacted = list(args)
    for i, arg in enumerate(redacted[:-1]):
        if arg == "--password":
            redacted[i + 1] = REDACTED
    return redacted


def build_signer_args(
    executable: str,
    profile_path: str | Path,
    image_reference: str,
    credentials: Credentials,
) -> list[str]:
    """Build the signer command line.

    Args:
        executable: Signer executable name or path.
        profile_path: Path of the signing profile file.
        image_reference: Image to sign (e.g., "nginx:1.25").
        credentials: Login passed as user name and password.

    Returns:
        Argument vector, executable first.
    """
    return [
        executable,
        "--docker_image_id",
        image_reference,
        "--configuration_file",
        str(profile_path),
        "--user_name",
        credentials.user,
        "--password",
        credentials.password,
    ]


class SignerInvoker:
    """Runs the external signer and reports its outcome.

    No retries are performed. Each run is bounded by ``timeout``; a run that
    exceeds it is killed and reported as an InvocationError.

    Attributes:
        executable: Signer executable name or path.
        timeout: Seconds before an invocation is killed.
    """

    def __init__(
        self,
        executable: str = DEFAULT_SIGNER_EXECUTABLE,
        timeout: float = DEFAULT_INVOCATION_TIMEOUT,
    ) -> None:
        self.executable = executable
        self.timeout = timeout

    def invoke(
        self,
        profile_path: str | Path,
        image_reference: str,
        credentials: Credentials,
    ) -> InvocationResult:
        """Sign one image with the given profile.

        Args:
            profile_path: Path of the signing profile file.
            image_reference: Image to sign.
            credentials: Login for the signer.

        Returns:
            InvocationResult of the successful run.

        Raises:
            InvocationError: If the signer cannot be started (including an
                argument holding a NUL byte), times out or exits with a
                non-zero status.
        """
        cmd = build_signer_args(self.executable, profile_path, image_reference, credentials)
        log = logger.bind(image=image_reference, profile=str(profile_path))
        log.info("signer_executing", command=" ".join(redact_args(cmd)))

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            stdout = _decode(e.stdout)
            stderr = _decode(e.stderr)
            log.error(
                "signer_timed_out", timeout=self.timeout, output=format_output(stdout, stderr)
            )
            raise InvocationError(
                image_reference,
                f"signer timed out after {self.timeout:g} seconds",
                stdout=stdout,
                stderr=stderr,
                timed_out=True,
            ) from e
        except (OSError, ValueError) as e:
            log.error("signer_spawn_failed", error=str(e))
            raise InvocationError(image_reference, f"could not run {self.executable}: {e}") from e

        output = format_output(result.stdout, result.stderr)
        if result.returncode != 0:
            log.error("signer_failed", returncode=result.returncode, output=output)
            raise InvocationError(
                image_reference,
                f"exit status {result.returncode}",
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )

        log.info("signer_succeeded", output=output)
        return InvocationResult(
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )


def _decode(value: str | bytes | None) -> str:
    """Normalize output captured by TimeoutExpired."""
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


__all__ = [
    "InvocationResult",
    "SignerInvoker",
    "build_signer_args",
    "format_output",
    "redact_args",
]
