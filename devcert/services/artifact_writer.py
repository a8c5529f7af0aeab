"""
Persistence of certificate and key files under timestamped and current names.
"""
import logging
import os
from pathlib import Path
from typing import Optional

from ..models.certificate import ArtifactPaths, CertificateArtifacts
from ..security.errors import PersistenceError


CERT_FILE_MODE = 0o644  # public read, owner write
KEY_FILE_MODE = 0o600  # owner read/write only
DIR_MODE = 0o700


class ArtifactWriter:
    """Writes the PEM pair as <base>_<timestamp>.crt/.key and <base>.crt/.key."""

    def __init__(self, cert_dir: str):
        self.cert_dir = Path(cert_dir)
        self.logger = logging.getLogger(__name__)

    def write(self, artifacts: CertificateArtifacts, timestamp: str,
              base_name: str = "localhost",
              paths: Optional[ArtifactPaths] = None) -> ArtifactPaths:
        """
        Write the four artifact files.

        Args:
            artifacts: PEM encoded certificate and key
            timestamp: Run timestamp (YYYYMMDD_HHMMSS)
            base_name: Base file name
            paths: Record updated as each file lands, so callers see partial progress

        Returns:
            ArtifactPaths with all four files set

        Raises:
            PersistenceError: Naming the write that failed; earlier writes are kept
        """
        paths = paths if paths is not None else ArtifactPaths()

        try:
            self.cert_dir.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(
                "certificate directory", self.cert_dir,
                f"failed to create certificate directory {self.cert_dir}: {e}"
            ) from e

        paths.timestamped_cert = self._write_file(
            "timestamped certificate", self.cert_dir / f"{base_name}_{timestamp}.crt",
            artifacts.cert_pem, CERT_FILE_MODE
        )
        paths.timestamped_key = self._write_file(
            "timestamped key", self.cert_dir / f"{base_name}_{timestamp}.key",
            artifacts.key_pem, KEY_FILE_MODE
        )
        paths.current_cert = self._write_file(
            "current certificate", self.cert_dir / f"{base_name}.crt",
            artifacts.cert_pem, CERT_FILE_MODE
        )
        paths.current_key = self._write_file(
            "current key", self.cert_dir / f"{base_name}.key",
            artifacts.key_pem, KEY_FILE_MODE
        )

        self.logger.info(
            f"Certificate and private key have been written to "
            f"'{paths.timestamped_cert}' and '{paths.timestamped_key}'"
        )
        return paths

    def _write_file(self, target: str, path: Path, data: bytes, mode: int) -> Path:
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
            # O_CREAT mode is filtered by the umask and ignored for existing files
            os.chmod(path, mode)
        except OSError as e:
            raise PersistenceError(target, path, f"error writing {target} to {path}: {e}") from e
        return path
