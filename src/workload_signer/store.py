"""Transient storage for signing profiles.

Each signer invocation reads its profile from a file in a fixed directory.
The file exists for exactly one invocation: it is written just before the
signer runs and removed right after, whatever the outcome.

File names combine a uuid4 token with the Unix timestamp and are created
exclusively, so two invocations never share or overwrite a profile.

Example:
    >>> store = ProfileStore("/signing_profile")
    >>> path = store.save(b'{"dockerImageTag":"nginx:1.25"}')
    >>> store.cleanup(path)
"""

from __future__ import annotations

import os
import time
import uuid
from pathlib import Path

import structlog

from workload_signer.errors import PersistenceError

logger = structlog.get_logger(__name__)

PROFILE_SUFFIX = ".cfg"
PROFILE_FILE_MODE = 0o644


class ProfileStore:
    """Writes signing profiles into a pre-existing directory.

    Thread Safety:
        save() and cleanup() may be called concurrently; every call to
        save() creates its own file.

    Attributes:
        directory: Directory holding the profiles. Never created by the store.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _new_path(self) -> Path:
        return self.directory / f"{uuid.uuid4().hex}{int(time.time())}{PROFILE_SUFFIX}"

    def save(self, content: bytes) -> Path:
        """Write profile bytes to a new, uniquely named file.

        Args:
            content: Serialized signing profile.

        Returns:
            Path of the written profile.

        Raises:
            PersistenceError: If the file cannot be created or written.
        """
        path = self._new_path()
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, PROFILE_FILE_MODE)
        except OSError as e:
            raise PersistenceError(str(path), e.strerror or str(e)) from e

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
        except OSError as e:
            self.cleanup(path)
            raise PersistenceError(str(path), e.strerror or str(e)) from e

        logger.debug("profile_saved", path=str(path), size=len(content))
        return path

    def cleanup(self, path: str | Path) -> None:
        """Delete a profile, logging instead of raising on failure.

        Args:
            path: Profile path returned by save().
        """
        try:
            os.remove(path)
        except OSError as e:
            logger.error("profile_cleanup_failed", path=str(path), error=str(e))
            return
        logger.debug("profile_deleted", path=str(path))


__all__ = ["ProfileStore"]
