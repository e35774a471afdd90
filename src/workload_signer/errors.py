"""Exception hierarchy for workload-signer.

Exception Hierarchy:
    WorkloadSignerError (base)
    ├── SerializationError     # Envelope cannot be encoded as a signing profile
    ├── PersistenceError       # Signing profile could not be written
    ├── InvocationError        # casigner failed, timed out, or could not start
    ├── MissingInputError      # Command args carry no usable signingProfiles
    ├── NoSuccessError         # No process was signed
    └── ClusterOperationError  # Kubernetes resource operation failed

SerializationError, PersistenceError and InvocationError are per-process
failures: the orchestrator records them into the envelope's statusResponse
and moves on. Only MissingInputError and NoSuccessError leave the
orchestrator.

Exit Codes:
    0 - Success
    1 - General error / nothing signed (WorkloadSignerError, NoSuccessError)
    5 - Invalid input (MissingInputError)

Example:
    >>> from workload_signer.errors import MissingInputError
    >>> raise MissingInputError("signingProfiles")
    Traceback (most recent call last):
        ...
    MissingInputError: 'signingProfiles' not found in command args
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from workload_signer.models import SigningReport


class WorkloadSignerError(Exception):
    """Base exception for all workload-signer errors.

    Attributes:
        exit_code: CLI exit code for this error type (default: 1).
    """

    exit_code: int = 1

    pass


class SerializationError(WorkloadSignerError):
    """Raised when an envelope cannot be serialized into a signing profile.

    Attributes:
        cause: The underlying encoder exception.

    Example:
        >>> envelope = {}
        >>> envelope["self"] = envelope
        >>> serialize_profile(envelope)
        Traceback (most recent call last):
            ...
        SerializationError: Failed to serialize signing profile: Circular reference detected
    """

    def __init__(self, cause: Exception) -> None:
        """Initialize SerializationError.

        Args:
            cause: The underlying encoder exception.
        """
        self.cause = cause
        super().__init__(f"Failed to serialize signing profile: {cause}")


class PersistenceError(WorkloadSignerError):
    """Raised when a signing profile cannot be written to the profile directory.

    Attributes:
        path: The file path that could not be written.
        reason: Description of the failure.
    """

    def __init__(self, path: str, reason: str) -> None:
        """Initialize PersistenceError.

        Args:
            path: The file path that could not be written.
            reason: Description of the failure.
        """
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to save signing profile {path}: {reason}")


class InvocationError(WorkloadSignerError):
    """Raised when the external signer does not complete successfully.

    Covers a non-zero exit status, a failure to spawn the executable and an
    invocation that exceeded its timeout.

    Attributes:
        image: The image reference being signed.
        reason: Description of the failure.
        returncode: Process exit status, None if the process never finished.
        stdout: Captured standard output.
        stderr: Captured standard error.
        timed_out: True if the invocation was killed after its timeout.

    Example:
        >>> raise InvocationError("nginx:1.25", "exit status 2", returncode=2)
        Traceback (most recent call last):
            ...
        InvocationError: Signing nginx:1.25 failed: exit status 2
    """

    def __init__(
        self,
        image: str,
        reason: str,
        *,
        returncode: int | None = None,
        stdout: str = "",
        stderr: str = "",
        timed_out: bool = False,
    ) -> None:
        """Initialize InvocationError.

        Args:
            image: The image reference being signed.
            reason: Description of the failure.
            returncode: Process exit status, if the process finished.
            stdout: Captured standard output.
            stderr: Captured standard error.
            timed_out: Whether the invocation hit its timeout.
        """
        self.image = image
        self.reason = reason
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.timed_out = timed_out
        super().__init__(f"Signing {image} failed: {reason}")


class MissingInputError(WorkloadSignerError):
    """Raised when the command args do not carry a usable signing request.

    Attributes:
        field: The argument that is missing or malformed.
        reason: Optional detail about a malformed value.
        exit_code: CLI exit code (5).
    """

    exit_code: int = 5

    def __init__(self, field: str, reason: str = "") -> None:
        """Initialize MissingInputError.

        Args:
            field: The argument that is missing or malformed.
            reason: Optional detail about a malformed value.
        """
        self.field = field
        self.reason = reason
        if reason:
            message = f"Invalid {field!r} in command args: {reason}"
        else:
            message = f"{field!r} not found in command args"
        super().__init__(message)


class NoSuccessError(WorkloadSignerError):
    """Raised when a signing request completes without signing any process.

    Per-process failure detail lives in each envelope's statusResponse and
    in ``report``; this error only says that nothing succeeded.

    Attributes:
        report: The SigningReport for the traversal (may be empty).
    """

    def __init__(self, report: SigningReport) -> None:
        """Initialize NoSuccessError.

        Args:
            report: The SigningReport for the traversal.
        """
        self.report = report
        super().__init__(f"Did not sign any images ({len(report)} processes attempted)")


class ClusterOperationError(WorkloadSignerError):
    """Raised when a Kubernetes resource operation fails.

    Attributes:
        resource: The resource the operation targeted.
        reason: Description of the failure.
    """

    def __init__(self, resource: str, reason: str) -> None:
        """Initialize ClusterOperationError.

        Args:
            resource: The resource the operation targeted.
            reason: Description of the failure.
        """
        self.resource = resource
        self.reason = reason
        super().__init__(f"Cluster operation on {resource} failed: {reason}")


__all__ = [
    "WorkloadSignerError",
    "SerializationError",
    "PersistenceError",
    "InvocationError",
    "MissingInputError",
    "NoSuccessError",
    "ClusterOperationError",
]
