"""
Rotation of old certificate artifacts into a bounded archive directory.

A file whose name is already taken in the archive is stored under its name
plus the file's modification time, so the fixed-name current pair can be
archived on every run. ArchiveCollisionError is raised only when that
suffixed name is taken as well.
"""
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import List, Tuple

from ..models.certificate import RotationResult
from ..security.errors import (
    ArchiveCollisionError,
    DirectoryAccessError,
    EvictionError,
    FileMoveError,
)


ARTIFACT_EXTENSIONS = (".crt", ".key", ".pem")


class ArchiveRotator:
    """Moves .crt/.key/.pem files from the working directory into the archive."""

    def __init__(self, cert_dir: str, archive_dir_name: str = "old", max_archived_files: int = 100):
        """
        Initialize the rotator.

        Args:
            cert_dir: Working directory holding the current artifacts
            archive_dir_name: Name of the archive subdirectory
            max_archived_files: Retention cap for the archive directory
        """
        self.cert_dir = Path(cert_dir)
        self.archive_dir = self.cert_dir / archive_dir_name
        self.max_archived_files = max_archived_files
        self.logger = logging.getLogger(__name__)

    def rotate(self) -> RotationResult:
        """
        Move every artifact file into the archive, then enforce the retention cap.

        Returns:
            RotationResult listing moved and evicted files

        Raises:
            DirectoryAccessError: If a directory cannot be listed or created
            ArchiveCollisionError: If an artifact cannot be given a free archive name
            FileMoveError: If a rename fails; files moved before it stay moved
        """
        result = RotationResult()

        if not self.cert_dir.exists():
            self.logger.debug(f"Certificate directory {self.cert_dir} does not exist, nothing to rotate")
            return result

        try:
            self.archive_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryAccessError(
                self.archive_dir, f"failed to create archive directory {self.archive_dir}: {e}"
            ) from e

        for source, destination in self._plan_moves():
            try:
                os.rename(source, destination)
            except OSError as e:
                raise FileMoveError(
                    source, destination,
                    f"failed to move file '{source}' to '{destination}': {e}"
                ) from e
            result.moved.append(destination)
            self.logger.debug(f"Archived {source.name} as {destination.name}")

        if result.moved:
            self.logger.info(f"Moved {len(result.moved)} old certificate file(s) to {self.archive_dir}")

        self._evict_oldest(result)
        return result

    def _plan_moves(self) -> List[Tuple[Path, Path]]:
        """Pick an archive name for every artifact before anything is moved."""
        archived = set(self._list_names(self.archive_dir))
        moves = []

        for entry in self._scan(self.cert_dir):
            if not entry.is_file(follow_symlinks=False):
                continue
            if os.path.splitext(entry.name)[1].lower() not in ARTIFACT_EXTENSIONS:
                continue

            source = Path(entry.path)
            name = entry.name
            if name in archived:
                name = self._disambiguated_name(source)
                if name in archived:
                    raise ArchiveCollisionError(
                        self.archive_dir / name,
                        f"archive already contains '{entry.name}' and '{name}'"
                    )

            archived.add(name)
            moves.append((source, self.archive_dir / name))

        return moves

    def _disambiguated_name(self, source: Path) -> str:
        """Name an artifact after its modification time, keeping the extension."""
        try:
            mtime = datetime.fromtimestamp(source.stat().st_mtime)
        except OSError as e:
            raise DirectoryAccessError(source.parent, f"failed to stat '{source}': {e}") from e
        return f"{source.stem}_{mtime:%Y%m%d_%H%M%S_%f}{source.suffix}"

    def _evict_oldest(self, result: RotationResult) -> None:
        """Delete the oldest archive entries while the archive is over the cap."""
        entries = []
        for entry in self._scan(self.archive_dir):
            if not entry.is_file(follow_symlinks=False):
                continue
            try:
                mtime = entry.stat(follow_symlinks=False).st_mtime
            except OSError as e:
                raise DirectoryAccessError(
                    self.archive_dir, f"failed to stat '{entry.path}': {e}"
                ) from e
            entries.append((mtime, entry.name))

        excess = len(entries) - self.max_archived_files
        result.archive_count = len(entries)
        if excess <= 0:
            return

        # oldest first, name breaks mtime ties
        entries.sort()
        for _, name in entries:
            if excess <= 0:
                break
            path = self.archive_dir / name
            try:
                path.unlink()
            except OSError as e:
                error = EvictionError(path, f"failed to delete oldest file '{path}': {e}")
                result.eviction_errors.append(error)
                self.logger.warning(str(error))
                continue
            result.evicted.append(path)
            result.archive_count -= 1
            excess -= 1
            self.logger.info(f"Deleted the oldest file: {path}")

    def _scan(self, directory: Path) -> List[os.DirEntry]:
        try:
            with os.scandir(directory) as it:
                return list(it)
        except OSError as e:
            raise DirectoryAccessError(directory, f"failed to read directory {directory}: {e}") from e

    def _list_names(self, directory: Path) -> List[str]:
        return [entry.name for entry in self._scan(directory)]
