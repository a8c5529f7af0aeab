"""
Tests for moving old artifacts into the archive and enforcing retention.
"""
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from devcert.services.archive_rotator import ArchiveRotator
from devcert.security.errors import (
    ArchiveCollisionError,
    DirectoryAccessError,
    FileMoveError,
)


BASE_MTIME = 1_700_000_000


class TestArchiveRotator(unittest.TestCase):
    """Test cases for ArchiveRotator."""

    def setUp(self):
        """Set up a temporary working directory."""
        self.temp_dir = tempfile.mkdtemp()
        self.cert_dir = Path(self.temp_dir) / "certificate"
        self.archive_dir = self.cert_dir / "old"
        self.rotator = ArchiveRotator(str(self.cert_dir), "old", max_archived_files=100)

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write(self, path: Path, content: str = "data", mtime: float = None) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    def _populate_archive(self, count: int):
        for i in range(count):
            self._write(self.archive_dir / f"localhost_{i:04d}.crt", mtime=BASE_MTIME + i)

    def test_missing_working_directory_is_nothing_to_rotate(self):
        """A missing working directory is not an error."""
        result = self.rotator.rotate()

        self.assertEqual(result.moved, [])
        self.assertFalse(self.cert_dir.exists())

    def test_empty_working_directory_creates_archive(self):
        """First run with an existing but empty directory creates an empty archive."""
        self.cert_dir.mkdir()

        result = self.rotator.rotate()

        self.assertEqual(result.moved, [])
        self.assertTrue(self.archive_dir.is_dir())
        self.assertEqual(os.listdir(self.archive_dir), [])

    def test_moves_previous_pair_with_same_names(self):
        """localhost.crt/.key from a prior run move into old/ unchanged."""
        self._write(self.cert_dir / "localhost.crt", "CERT")
        self._write(self.cert_dir / "localhost.key", "KEY")

        result = self.rotator.rotate()

        self.assertEqual(len(result.moved), 2)
        self.assertFalse((self.cert_dir / "localhost.crt").exists())
        self.assertFalse((self.cert_dir / "localhost.key").exists())
        self.assertEqual((self.archive_dir / "localhost.crt").read_text(), "CERT")
        self.assertEqual((self.archive_dir / "localhost.key").read_text(), "KEY")

    def test_only_artifact_extensions_are_moved(self):
        """Only .crt, .key and .pem files move; case is ignored."""
        self._write(self.cert_dir / "localhost_ca_20260101_000000.pem")
        self._write(self.cert_dir / "UPPER.CRT")
        self._write(self.cert_dir / "notes.txt")
        self._write(self.cert_dir / "README")

        self.rotator.rotate()

        self.assertEqual(
            sorted(os.listdir(self.archive_dir)),
            ["UPPER.CRT", "localhost_ca_20260101_000000.pem"]
        )
        self.assertTrue((self.cert_dir / "notes.txt").exists())
        self.assertTrue((self.cert_dir / "README").exists())

    def test_subdirectories_are_skipped(self):
        """Directories, including ones named like artifacts, stay in place."""
        (self.cert_dir / "nested.crt").mkdir(parents=True)
        self._write(self.cert_dir / "nested.crt" / "inner.key")
        self._write(self.archive_dir / "already.crt")

        self.rotator.rotate()

        self.assertTrue((self.cert_dir / "nested.crt" / "inner.key").exists())
        self.assertEqual(os.listdir(self.archive_dir), ["already.crt"])

    def test_name_collision_archives_under_mtime_name(self):
        """An existing archive name keeps its content; the newcomer gets an mtime suffix."""
        self._write(self.archive_dir / "localhost.crt", "FIRST")
        self._write(self.cert_dir / "localhost.crt", "SECOND", mtime=BASE_MTIME)

        result = self.rotator.rotate()

        self.assertEqual((self.archive_dir / "localhost.crt").read_text(), "FIRST")
        self.assertEqual(len(result.moved), 1)
        moved = result.moved[0]
        self.assertTrue(moved.name.startswith("localhost_"))
        self.assertEqual(moved.suffix, ".crt")
        self.assertEqual(moved.read_text(), "SECOND")

    def test_unresolvable_collision_raises_before_moving(self):
        """If the mtime name is taken too, nothing moves and the collision is raised."""
        source = self._write(self.cert_dir / "localhost.crt", "NEW", mtime=BASE_MTIME)
        self._write(self.cert_dir / "localhost.key", "KEY")
        self._write(self.archive_dir / "localhost.crt", "OLD")
        taken = self.rotator._disambiguated_name(source)
        self._write(self.archive_dir / taken, "OLDER")

        with self.assertRaises(ArchiveCollisionError):
            self.rotator.rotate()

        self.assertTrue(source.exists())
        self.assertTrue((self.cert_dir / "localhost.key").exists())

    def test_move_failure_raises_file_move_error(self):
        """A failing rename is reported as FileMoveError."""
        self._write(self.cert_dir / "localhost.crt")

        with patch('devcert.services.archive_rotator.os.rename', side_effect=OSError("cross-device link")):
            with self.assertRaises(FileMoveError) as cm:
                self.rotator.rotate()

        self.assertIn("cross-device link", str(cm.exception))
        self.assertTrue((self.cert_dir / "localhost.crt").exists())

    def test_unreadable_directory_raises_directory_access_error(self):
        """Listing failures are reported as DirectoryAccessError."""
        self.cert_dir.mkdir()

        with patch('devcert.services.archive_rotator.os.scandir', side_effect=PermissionError("denied")):
            with self.assertRaises(DirectoryAccessError):
                self.rotator.rotate()

    def test_no_eviction_at_cap(self):
        """An archive exactly at the cap is left alone."""
        self._populate_archive(100)
        self.cert_dir.mkdir(exist_ok=True)

        result = self.rotator.rotate()

        self.assertEqual(result.evicted, [])
        self.assertEqual(len(os.listdir(self.archive_dir)), 100)

    def test_eviction_removes_oldest_until_cap(self):
        """100 archived entries plus 2 rotated ones evict exactly the two oldest."""
        self._populate_archive(100)
        self._write(self.cert_dir / "localhost.crt", mtime=BASE_MTIME + 1000)
        self._write(self.cert_dir / "localhost.key", mtime=BASE_MTIME + 1000)

        result = self.rotator.rotate()

        self.assertEqual(
            [p.name for p in result.evicted],
            ["localhost_0000.crt", "localhost_0001.crt"]
        )
        names = os.listdir(self.archive_dir)
        self.assertEqual(len(names), 100)
        self.assertEqual(result.archive_count, 100)
        self.assertIn("localhost.crt", names)
        self.assertIn("localhost.key", names)

    def test_eviction_ties_broken_by_name(self):
        """Entries with the same mtime are evicted in name order."""
        rotator = ArchiveRotator(str(self.cert_dir), "old", max_archived_files=2)
        for name in ["c.crt", "a.crt", "b.crt"]:
            self._write(self.archive_dir / name, mtime=BASE_MTIME)
        self.cert_dir.mkdir(exist_ok=True)

        result = rotator.rotate()

        self.assertEqual([p.name for p in result.evicted], ["a.crt"])
        self.assertEqual(sorted(os.listdir(self.archive_dir)), ["b.crt", "c.crt"])

    def test_retention_over_many_runs_keeps_newest(self):
        """After more runs than the cap, only the cap newest entries remain."""
        rotator = ArchiveRotator(str(self.cert_dir), "old", max_archived_files=3)

        for run in range(6):
            self._write(self.cert_dir / f"localhost_{run}.crt", mtime=BASE_MTIME + run)
            rotator.rotate()

        self.assertEqual(
            sorted(os.listdir(self.archive_dir)),
            ["localhost_3.crt", "localhost_4.crt", "localhost_5.crt"]
        )

    def test_eviction_failure_is_reported_not_raised(self):
        """A failed deletion is recorded and does not abort the rotation."""
        rotator = ArchiveRotator(str(self.cert_dir), "old", max_archived_files=1)
        self._write(self.archive_dir / "old1.crt", mtime=BASE_MTIME)
        self._write(self.cert_dir / "localhost.crt", mtime=BASE_MTIME + 10)

        with patch.object(Path, 'unlink', side_effect=PermissionError("locked")):
            with self.assertLogs('devcert.services.archive_rotator', level='WARNING'):
                result = rotator.rotate()

        self.assertEqual(len(result.moved), 1)
        self.assertEqual(result.evicted, [])
        self.assertEqual(len(result.eviction_errors), 2)
        self.assertIn("locked", str(result.eviction_errors[0]))
        self.assertEqual(len(os.listdir(self.archive_dir)), 2)


if __name__ == '__main__':
    unittest.main()
