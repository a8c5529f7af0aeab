"""
Per-user trust store installers and the reconciler that keeps exactly the
newest development certificate trusted.
"""
import logging
import os
import platform
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional, Sequence

from .errors import (
    PersistenceError,
    TrustStoreImportError,
    TrustStoreRemovalError,
    TrustStoreUnsupportedError,
)


CURRENT_USER_ROOT = r"Cert:\CurrentUser\Root"

REMOVE_SCRIPT = """$subjectName = {subject}
$certificates = Get-ChildItem -Path {store} | Where-Object {{$_.Subject.Contains($subjectName)}}
foreach ($cert in $certificates) {{
    Remove-Item -Path $cert.PSPath -Force
}}"""

IMPORT_SCRIPT = "Import-Certificate -FilePath {path} -CertStoreLocation {store}"


def powershell_literal(value: str) -> str:
    """Quote a value as a single-quoted PowerShell string literal."""
    return "'" + value.replace("'", "''") + "'"


class TrustStoreInstaller(ABC):
    """Capability interface for adding and removing trusted root certificates."""

    @abstractmethod
    def remove(self, subject_substrings: Sequence[str]) -> None:
        """Remove every trusted entry whose subject contains one of the substrings."""

    @abstractmethod
    def import_certificate(self, path: Path) -> None:
        """Import the PEM file at path as a trusted root for the current user."""


class WindowsTrustStoreInstaller(TrustStoreInstaller):
    """Uses PowerShell against Cert:\\CurrentUser\\Root; no admin rights required."""

    def __init__(self, runner: Optional[Callable[..., subprocess.CompletedProcess]] = None,
                 executable: str = "powershell"):
        self.runner = runner or subprocess.run
        self.executable = executable
        self.logger = logging.getLogger(__name__)

    def _run(self, script: str) -> subprocess.CompletedProcess:
        return self.runner(
            [self.executable, "-NoProfile", "-Command", script],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True
        )

    def remove(self, subject_substrings: Sequence[str]) -> None:
        for org in subject_substrings:
            script = REMOVE_SCRIPT.format(subject=powershell_literal(org), store=CURRENT_USER_ROOT)
            try:
                result = self._run(script)
            except OSError as e:
                raise TrustStoreRemovalError(
                    org, None,
                    f"failed to remove certificate for '{org}' from CurrentUser CA store: {e}"
                ) from e

            if result.returncode != 0:
                raise TrustStoreRemovalError(
                    org, result.stdout,
                    f"failed to remove certificate for '{org}' from CurrentUser CA store: "
                    f"exit status {result.returncode}, output: {result.stdout}"
                )
            self.logger.info(f"Removed trusted certificates matching '{org}'")

    def import_certificate(self, path: Path) -> None:
        script = IMPORT_SCRIPT.format(path=powershell_literal(str(path)), store=CURRENT_USER_ROOT)
        try:
            result = self._run(script)
        except OSError as e:
            raise TrustStoreImportError(
                path, None, f"failed to add certificate to Windows CA store: {e}"
            ) from e

        if result.returncode != 0:
            raise TrustStoreImportError(
                path, result.stdout,
                f"failed to add certificate to Windows CA store: "
                f"exit status {result.returncode}, output: {result.stdout}"
            )


class UnsupportedTrustStoreInstaller(TrustStoreInstaller):
    """Stand-in for platforms without a trust store installer."""

    def __init__(self, system: str):
        self.system = system

    def remove(self, subject_substrings: Sequence[str]) -> None:
        raise TrustStoreUnsupportedError(
            f"trust store installation is not implemented for {self.system}"
        )

    def import_certificate(self, path: Path) -> None:
        raise TrustStoreUnsupportedError(
            f"trust store installation is not implemented for {self.system}"
        )


def get_trust_store_installer(system: Optional[str] = None) -> TrustStoreInstaller:
    """Select the installer for the running (or given) platform."""
    system = system or platform.system()
    if system == "Windows":
        return WindowsTrustStoreInstaller()
    return UnsupportedTrustStoreInstaller(system)


def is_trust_store_supported(system: Optional[str] = None) -> bool:
    return not isinstance(get_trust_store_installer(system), UnsupportedTrustStoreInstaller)


class TrustStoreReconciler:
    """Removes stale trusted entries by organization name, then imports the new certificate."""

    def __init__(self, installer: TrustStoreInstaller):
        self.installer = installer
        self.logger = logging.getLogger(__name__)

    def reconcile(self, cert_dir: Path, base_name: str, timestamp: str,
                  organization_names: Sequence[str], cert_pem: bytes) -> Path:
        """
        Bring the current user's trust store in line with the new certificate.

        Args:
            cert_dir: Working directory receiving the trust bundle
            base_name: Base file name of the certificate
            timestamp: Run timestamp (YYYYMMDD_HHMMSS)
            organization_names: Subject substrings whose trusted entries are removed
            cert_pem: PEM encoded certificate to trust

        Returns:
            Path of the trust bundle that was imported

        Raises:
            TrustStoreRemovalError: If removing old entries fails; nothing is imported
            PersistenceError: If the trust bundle cannot be written
            TrustStoreImportError: If the import command fails
        """
        self.installer.remove(list(organization_names))

        bundle_path = Path(cert_dir) / f"{base_name}_ca_{timestamp}.pem"
        self._write_bundle(bundle_path, cert_pem)

        self.installer.import_certificate(bundle_path)
        self.logger.info(f"Certificate {bundle_path} added to the current user's trust store")
        return bundle_path

    def _write_bundle(self, bundle_path: Path, cert_pem: bytes) -> None:
        try:
            fd = os.open(bundle_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)
            with os.fdopen(fd, 'wb') as f:
                f.write(cert_pem)
            os.chmod(bundle_path, 0o644)
        except OSError as e:
            raise PersistenceError(
                "trust bundle", bundle_path, f"failed to write trust bundle {bundle_path}: {e}"
            ) from e
