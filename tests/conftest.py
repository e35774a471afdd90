"""Pytest configuration for workload-signer tests.

Fixtures:
    - signer_config: SignerConfig pointing at a temporary profile directory
    - credentials: Fixed signer login
    - credential_provider: StaticCredentialProvider returning ``credentials``
    - recording_store: ProfileStorage fake recording save/cleanup calls
    - fake_invoker: Signer fake recording invocations
    - signing_request: Factory for nested signing requests
    - clean_environment: Drops inherited WORKLOAD_SIGNER_* variables (autouse)
    - reset_logging: Restores structlog defaults after each test (autouse)
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
import structlog

from workload_signer.config import ENV_PREFIX, SignerConfig
from workload_signer.credentials import StaticCredentialProvider
from workload_signer.errors import InvocationError, PersistenceError
from workload_signer.models import Credentials

# =============================================================================
# Fakes
# =============================================================================


class RecordingStore:
    """Profile store fake that keeps profiles in memory.

    Attributes:
        saved: Paths returned by save(), in call order.
        contents: Profile bytes keyed by path.
        cleaned: Paths passed to cleanup(), in call order.
        fail_saves: When True, save() raises PersistenceError.
    """

    def __init__(self) -> None:
        self.saved: list[Path] = []
        self.contents: dict[Path, bytes] = {}
        self.cleaned: list[Path] = []
        self.fail_saves = False

    def save(self, content: bytes) -> Path:
        if self.fail_saves:
            raise PersistenceError("/signing_profile/x.cfg", "No space left on device")
        path = Path(f"/signing_profile/profile-{len(self.saved)}.cfg")
        self.saved.append(path)
        self.contents[path] = content
        return path

    def cleanup(self, path: Path) -> None:
        self.cleaned.append(path)


class FakeInvoker:
    """Signer fake that fails for selected images.

    Attributes:
        calls: (profile_path, image, credentials) per invocation.
        failing_images: Images whose invocation raises InvocationError.
    """

    def __init__(self, failing_images: set[str] | None = None) -> None:
        self.calls: list[tuple[Path, str, Credentials]] = []
        self.failing_images = failing_images or set()

    def invoke(self, profile_path: Path, image_reference: str, credentials: Credentials) -> None:
        self.calls.append((profile_path, image_reference, credentials))
        if image_reference in self.failing_images or "*" in self.failing_images:
            raise InvocationError(image_reference, "exit status 1", returncode=1)

    @property
    def images(self) -> list[str]:
        return [image for _, image, _ in self.calls]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def signer_config(tmp_path: Path) -> SignerConfig:
    """SignerConfig writing profiles into a temporary directory."""
    return SignerConfig(profile_dir=tmp_path, timeout=5)


@pytest.fixture
def credentials() -> Credentials:
    """Fixed signer login."""
    return Credentials(user="signer@example.com", password="s3cret-pw", customer="acme")


@pytest.fixture
def credential_provider(credentials: Credentials) -> StaticCredentialProvider:
    """Credential provider returning the fixed login."""
    return StaticCredentialProvider(credentials)


@pytest.fixture
def recording_store() -> RecordingStore:
    """In-memory profile store."""
    return RecordingStore()


@pytest.fixture
def fake_invoker() -> FakeInvoker:
    """Signer fake where every invocation succeeds."""
    return FakeInvoker()


@pytest.fixture
def signing_request() -> Callable[..., dict[str, Any]]:
    """Factory building container -> process -> envelope requests.

    Example:
        >>> request = signing_request({"web": {"nginx": "nginx:1.25"}})
    """

    def _build(layout: dict[str, dict[str, str]]) -> dict[str, Any]:
        return {
            container: {
                process: {
                    "component": process,
                    "containerName": container,
                    "dockerImageTag": image,
                    "executablesList": [
                        {
                            "mainProcess": f"/usr/bin/{process}",
                            "filter": {"includePaths": ["/usr/bin"], "includeExtensions": []},
                            "modulesInfo": [{"name": process, "mandatory": 1, "type": 1}],
                        }
                    ],
                }
                for process, image in processes.items()
            }
            for container, processes in layout.items()
        }

    return _build


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove WORKLOAD_SIGNER_* variables inherited from the shell."""
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name)


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Restore structlog defaults after tests that configure logging."""
    yield
    structlog.reset_defaults()
