"""Unit tests for transient signing profile storage."""

from __future__ import annotations

import re
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from workload_signer.errors import PersistenceError
from workload_signer.store import ProfileStore

PROFILE_NAME = re.compile(r"^[0-9a-f]{32}\d+\.cfg$")


class TestSave:
    """Tests for ProfileStore.save()."""

    def test_writes_content(self, tmp_path: Path) -> None:
        """The profile holds exactly the given bytes."""
        store = ProfileStore(tmp_path)

        path = store.save(b'{"dockerImageTag":"nginx:1.25"}')

        assert path.parent == tmp_path
        assert path.read_bytes() == b'{"dockerImageTag":"nginx:1.25"}'

    def test_file_name_and_mode(self, tmp_path: Path) -> None:
        """Profiles get a token-plus-timestamp .cfg name and are not world-writable."""
        path = ProfileStore(tmp_path).save(b"{}")

        assert PROFILE_NAME.match(path.name)
        mode = stat.S_IMODE(path.stat().st_mode)
        assert not mode & stat.S_IWOTH
        assert mode & stat.S_IRUSR

    def test_each_save_creates_new_file(self, tmp_path: Path) -> None:
        """Repeated saves never reuse a path."""
        store = ProfileStore(tmp_path)

        paths = {store.save(b"{}") for _ in range(20)}

        assert len(paths) == 20
        assert len(list(tmp_path.iterdir())) == 20

    def test_existing_file_not_overwritten(self, tmp_path: Path) -> None:
        """A name collision fails instead of replacing the existing profile."""
        store = ProfileStore(tmp_path)
        existing = tmp_path / "taken.cfg"
        existing.write_bytes(b"original")

        with patch.object(store, "_new_path", return_value=existing):
            with pytest.raises(PersistenceError):
                store.save(b"replacement")

        assert existing.read_bytes() == b"original"

    def test_missing_directory_not_created(self, tmp_path: Path) -> None:
        """The store never creates its directory."""
        directory = tmp_path / "missing"
        store = ProfileStore(directory)

        with pytest.raises(PersistenceError) as exc_info:
            store.save(b"{}")

        assert not directory.exists()
        assert str(directory) in exc_info.value.path

    def test_write_failure_removes_partial_file(self, tmp_path: Path) -> None:
        """A failed write leaves no profile behind."""
        store = ProfileStore(tmp_path)

        with patch("workload_signer.store.os.fdopen", side_effect=OSError(28, "No space left")):
            with pytest.raises(PersistenceError, match="No space left"):
                store.save(b"{}")

        assert list(tmp_path.iterdir()) == []


class TestCleanup:
    """Tests for ProfileStore.cleanup()."""

    def test_removes_profile(self, tmp_path: Path) -> None:
        """cleanup() deletes the saved file."""
        store = ProfileStore(tmp_path)
        path = store.save(b"{}")

        store.cleanup(path)

        assert not path.exists()

    def test_missing_file_does_not_raise(self, tmp_path: Path) -> None:
        """Deleting an already-removed profile only logs."""
        store = ProfileStore(tmp_path)

        with patch("workload_signer.store.logger") as mock_logger:
            store.cleanup(tmp_path / "gone.cfg")

        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.args[0] == "profile_cleanup_failed"
