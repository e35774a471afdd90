"""Data model for signing requests, envelopes and outcomes.

A signing request arrives as plain nested mappings taken from the upstream
command args (``args["signingProfiles"]``)::

    {
        "<container name>": {
            "<process name>": {"dockerImageTag": "nginx:1.25", ...},
        },
    }

Each innermost mapping is an *envelope*. The core reads ``dockerImageTag``
and forwards every other field untouched to the signing profile. The outcome
of signing is written back into the same mapping under ``statusResponse``,
so the caller sees results through the structure it supplied.

Example:
    >>> envelope = Envelope("web", "nginx", {"dockerImageTag": "nginx:1.25"})
    >>> envelope.record_status(StatusResponse.success())
    >>> envelope.data["statusResponse"]
    {'status': True, 'message': ''}
"""

from __future__ import annotations

from collections.abc import Iterator, MutableMapping
from dataclasses import dataclass, field
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

IMAGE_TAG_FIELD = "dockerImageTag"
STATUS_FIELD = "statusResponse"


class StatusResponse(BaseModel):
    """Outcome of signing one process.

    Attributes:
        status: True if the process was signed.
        message: Failure description; always empty on success.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: bool = Field(description="True if the process was signed")
    message: str = Field(default="", description="Failure description")

    @model_validator(mode="after")
    def validate_message(self) -> StatusResponse:
        """A success carries no message and a failure always carries one."""
        if self.status and self.message:
            raise ValueError("message must be empty when status is true")
        if not self.status and not self.message:
            raise ValueError("message required when status is false")
        return self

    @classmethod
    def success(cls) -> StatusResponse:
        """Build a successful StatusResponse."""
        return cls(status=True)

    @classmethod
    def failure(cls, error: Exception | str) -> StatusResponse:
        """Build a failed StatusResponse from an error or message."""
        message = str(error) or type(error).__name__
        return cls(status=False, message=message)

    def to_dict(self) -> dict[str, Any]:
        """Return the form written into an envelope."""
        return {"status": self.status, "message": self.message}


@dataclass(frozen=True)
class Credentials:
    """Login used to authenticate the external signer.

    Attributes:
        user: Login user name.
        password: Login password.
        customer: Customer (tenant) name. Never passed to the signer.
    """

    user: str
    password: str = field(repr=False)
    customer: str


class Envelope:
    """Typed view over one process's envelope mapping.

    The wrapped mapping belongs to the caller; ``record_status`` writes into
    it directly.

    Attributes:
        container: Name of the container holding the process.
        process: Name of the process.
        data: The caller's envelope mapping.
    """

    def __init__(self, container: str, process: str, data: MutableMapping[str, Any]) -> None:
        self.container = container
        self.process = process
        self.data = data

    def __repr__(self) -> str:
        return f"Envelope(container={self.container!r}, process={self.process!r})"

    @property
    def image_reference(self) -> str | None:
        """Return the dockerImageTag to sign, or None if absent or empty."""
        value = self.data.get(IMAGE_TAG_FIELD)
        if value is None or value == "":
            return None
        return str(value)

    def record_status(self, status: StatusResponse) -> None:
        """Write ``status`` into the envelope, replacing any prior value."""
        self.data[STATUS_FIELD] = status.to_dict()


@dataclass
class SigningReport:
    """Per-process outcomes of one signing request, in traversal order.

    The report mirrors what the orchestrator writes into each envelope.

    Example:
        >>> report = SigningReport()
        >>> report.record(("web", "nginx"), StatusResponse.success())
        >>> report.any_succeeded
        True
    """

    results: dict[tuple[str, str], StatusResponse] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self.results)

    def __getitem__(self, key: tuple[str, str]) -> StatusResponse:
        return self.results[key]

    def record(self, key: tuple[str, str], status: StatusResponse) -> None:
        """Record the outcome for a (container, process) pair."""
        self.results[key] = status

    @property
    def any_succeeded(self) -> bool:
        """Return True if at least one process was signed."""
        return any(status.status for status in self.results.values())

    @property
    def succeeded(self) -> list[tuple[str, str]]:
        """Return the (container, process) pairs that were signed."""
        return [key for key, status in self.results.items() if status.status]

    @property
    def failed(self) -> dict[tuple[str, str], str]:
        """Return failure messages keyed by (container, process)."""
        return {key: status.message for key, status in self.results.items() if not status.status}


class ProfileFilter(BaseModel):
    """File filter for an executables list entry."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    include_paths: list[str] = Field(default_factory=list, alias="includePaths")
    include_extensions: list[str] = Field(default_factory=list, alias="includeExtensions")


class ModuleInfo(BaseModel):
    """One executable module to be signed."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    mandatory: int = 0
    version: str = ""
    signature_mismatch_action: int = Field(default=0, alias="signatureMismatchAction")
    type: int = 0


class ExecutablesList(BaseModel):
    """Executables belonging to one main process."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    filter: ProfileFilter = Field(default_factory=ProfileFilter)
    main_process: str = Field(default="", alias="mainProcess")
    modules_info: list[ModuleInfo] = Field(default_factory=list, alias="modulesInfo")


class SigningProfile(BaseModel):
    """Documented shape of a signing envelope.

    Used for validating command documents before signing. The orchestrator
    itself never requires an envelope to match this model: unknown fields are
    allowed and everything is forwarded verbatim.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    component: str = ""
    url: str = ""
    platform: int = 0
    architecture: int = 0
    component_type: int = Field(default=0, alias="componentType")
    signature_mismatch_action: int = Field(default=0, alias="signatureMismatchAction")
    executables_list: list[ExecutablesList] = Field(
        default_factory=list, alias="executablesList"
    )
    container_name: str = Field(default="", alias="containerName")
    docker_image_tag: Annotated[str, Field(min_length=1, alias="dockerImageTag")]
    docker_image_sha256: str = Field(default="", alias="dockerImageSHA256")


__all__ = [
    "IMAGE_TAG_FIELD",
    "STATUS_FIELD",
    "Credentials",
    "Envelope",
    "ExecutablesList",
    "ModuleInfo",
    "ProfileFilter",
    "SigningProfile",
    "SigningReport",
    "StatusResponse",
]
