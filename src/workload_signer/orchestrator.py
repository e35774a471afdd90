"""Signing orchestration.

Walks a signing request (container -> process -> envelope) and signs every
process in turn:

    1. serialize the envelope into a signing profile
    2. save the profile to a transient file
    3. run the signer against the envelope's dockerImageTag
    4. delete the profile file, whatever happened in step 3

A failure in any step is recorded in that envelope's statusResponse and the
walk moves on to the next process; one failed process never aborts the
request. The request as a whole succeeds if at least one process was signed.

Example:
    >>> from workload_signer import SignerConfig, SigningOrchestrator
    >>> orchestrator = SigningOrchestrator.from_config(SignerConfig())
    >>> report = orchestrator.sign_command_args(command["args"])
    >>> command["args"]["signingProfiles"]["web"]["nginx"]["statusResponse"]
    {'status': True, 'message': ''}
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, MutableMapping
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Protocol

import structlog

from workload_signer.config import SignerConfig
from workload_signer.credentials import CredentialProvider, KubernetesCredentialProvider
from workload_signer.errors import (
    InvocationError,
    MissingInputError,
    NoSuccessError,
    PersistenceError,
    SerializationError,
)
from workload_signer.invoker import SignerInvoker
from workload_signer.models import Credentials, Envelope, SigningReport, StatusResponse
from workload_signer.observability import record_process_outcome, signing_span
from workload_signer.serializer import serialize_profile
from workload_signer.store import ProfileStore

logger = structlog.get_logger(__name__)

SIGNING_PROFILES_ARG = "signingProfiles"


class ProfileStorage(Protocol):
    """Storage for transient signing profiles."""

    def save(self, content: bytes) -> Path: ...

    def cleanup(self, path: Path) -> None: ...


class Signer(Protocol):
    """Runs the external signer for one profile."""

    def invoke(
        self, profile_path: Path, image_reference: str, credentials: Credentials
    ) -> Any: ...


class SigningOrchestrator:
    """Signs every process of a signing request.

    Thread Safety:
        With ``max_workers > 1`` envelopes are signed on a thread pool. Each
        envelope is handled by a single worker and gets its own profile
        file; outcomes are collected on the calling thread.

    Attributes:
        credentials: Provider of the signer login, read once and cached.
        store: Storage for transient signing profiles.
        invoker: Runs the external signer.
        serializer: Converts an envelope mapping into profile bytes.
        max_workers: Number of envelopes signed concurrently.
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        store: ProfileStorage,
        invoker: Signer,
        *,
        serializer: Callable[[Mapping[str, Any]], bytes] = serialize_profile,
        max_workers: int = 1,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.credentials = credentials
        self.store = store
        self.invoker = invoker
        self.serializer = serializer
        self.max_workers = max_workers

    @classmethod
    def from_config(
        cls,
        config: SignerConfig,
        credentials: CredentialProvider | None = None,
    ) -> SigningOrchestrator:
        """Build an orchestrator wired to the real store, signer and secret.

        Args:
            config: Signer configuration.
            credentials: Credential provider override. Defaults to the
                Kubernetes secret provider.

        Returns:
            Configured SigningOrchestrator.
        """
        return cls(
            credentials=credentials or KubernetesCredentialProvider(config),
            store=ProfileStore(config.profile_dir),
            invoker=SignerInvoker(config.executable, config.timeout),
            max_workers=config.max_workers,
        )

    def sign_command_args(self, args: Mapping[str, Any] | None) -> SigningReport:
        """Sign the request carried in an upstream command's args.

        Args:
            args: Command argument bag holding ``signingProfiles``.

        Returns:
            SigningReport if at least one process was signed.

        Raises:
            MissingInputError: If args hold no usable ``signingProfiles``.
            NoSuccessError: If no process was signed.
        """
        if not args or SIGNING_PROFILES_ARG not in args:
            logger.error("signing_profiles_missing")
            raise MissingInputError(SIGNING_PROFILES_ARG)
        return self.sign_request(args[SIGNING_PROFILES_ARG])

    def sign_request(self, request: Any) -> SigningReport:
        """Sign every process of a container -> process -> envelope mapping.

        Each envelope mapping receives a ``statusResponse`` entry in place.

        Args:
            request: The signing request.

        Returns:
            SigningReport if at least one process was signed.

        Raises:
            MissingInputError: If the request or a container is not a mapping.
            NoSuccessError: If no process was signed, including an empty
                request.
        """
        items = _collect(request)
        report = SigningReport()

        with signing_span("request", extra_attributes={"signing.processes": len(items)}):
            if self.max_workers == 1 or len(items) <= 1:
                for key, envelope in items:
                    report.record(key, self._sign_item(key, envelope))
            else:
                with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                    outcomes = list(
                        executor.map(lambda item: self._sign_item(*item), items)
                    )
                for (key, _), status in zip(items, outcomes):
                    report.record(key, status)

        logger.info(
            "signing_request_completed",
            processes=len(report),
            signed=len(report.succeeded),
            failed=len(report.failed),
        )
        if not report.any_succeeded:
            raise NoSuccessError(report)
        return report

    def _sign_item(self, key: tuple[str, str], envelope: Envelope | None) -> StatusResponse:
        if envelope is None:
            container, process = key
            logger.error("envelope_not_a_mapping", container=container, process=process)
            record_process_outcome("invalid")
            return StatusResponse.failure(f"envelope for process {process!r} is not a mapping")
        return self.sign_envelope(envelope)

    def sign_envelope(self, envelope: Envelope) -> StatusResponse:
        """Sign one process and record the outcome in its envelope.

        Args:
            envelope: The process envelope.

        Returns:
            The StatusResponse written into the envelope.
        """
        log = logger.bind(container=envelope.container, process=envelope.process)

        with signing_span(
            "process",
            container=envelope.container,
            process=envelope.process,
            image=envelope.image_reference,
        ) as span:
            try:
                content = self.serializer(envelope.data)
            except SerializationError as e:
                log.error("profile_serialization_failed", error=str(e))
                return self._record(envelope, StatusResponse.failure(e), "serialization", span)

            log.info("signing_container", image=envelope.image_reference)

            try:
                profile_path = self.store.save(content)
            except PersistenceError as e:
                log.error("profile_save_failed", error=str(e))
                return self._record(envelope, StatusResponse.failure(e), "persistence", span)

            try:
                status = self._invoke(envelope, profile_path, log)
            finally:
                self.store.cleanup(profile_path)

            if status.status:
                return self._record(envelope, status, "signed", span)
            return self._record(envelope, status, "invocation", span)

    def _invoke(self, envelope: Envelope, profile_path: Path, log: Any) -> StatusResponse:
        image = envelope.image_reference
        try:
            if image is None:
                raise InvocationError("<none>", "envelope has no dockerImageTag")
            self.invoker.invoke(profile_path, image, self.credentials.get())
        except InvocationError as e:
            log.error("signing_failed", image=image, error=str(e))
            return StatusResponse.failure(e)
        except Exception as e:
            log.exception("signer_error", image=image)
            reason = str(e) or type(e).__name__
            return StatusResponse.failure(InvocationError(image or "<none>", reason))
        log.info("signing_succeeded", image=image)
        return StatusResponse.success()

    @staticmethod
    def _record(
        envelope: Envelope, status: StatusResponse, outcome: str, span: Any
    ) -> StatusResponse:
        envelope.record_status(status)
        span.set_attribute("signing.outcome", outcome)
        record_process_outcome(outcome)
        return status


def _collect(request: Any) -> list[tuple[tuple[str, str], Envelope | None]]:
    """Flatten a signing request, rejecting malformed containers up front."""
    if not isinstance(request, Mapping):
        raise MissingInputError(SIGNING_PROFILES_ARG, "expected a mapping of containers")

    items: list[tuple[tuple[str, str], Envelope | None]] = []
    for container_name, processes in request.items():
        if not isinstance(processes, Mapping):
            raise MissingInputError(
                SIGNING_PROFILES_ARG,
                f"container {container_name!r} is not a mapping of processes",
            )
        for process_name, data in processes.items():
            key = (str(container_name), str(process_name))
            if isinstance(data, MutableMapping):
                items.append((key, Envelope(key[0], key[1], data)))
            else:
                items.append((key, None))
    return items


__all__ = [
    "SIGNING_PROFILES_ARG",
    "ProfileStorage",
    "Signer",
    "SigningOrchestrator",
]
