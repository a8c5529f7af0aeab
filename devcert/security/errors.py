"""
Exception hierarchy for the certificate lifecycle.
"""
from typing import Optional


class CertificateLifecycleError(Exception):
    """Base class for every failure raised by the lifecycle steps."""


# Generation phase

class GenerationError(CertificateLifecycleError):
    """Key pair or certificate could not be produced."""


class KeyGenerationError(GenerationError):
    pass


class CertificateCreationError(GenerationError):
    pass


class KeyEncodingError(GenerationError):
    pass


# Rotation phase

class RotationError(CertificateLifecycleError):
    """Old artifacts could not be moved into the archive."""


class DirectoryAccessError(RotationError):
    def __init__(self, directory, message: str):
        self.directory = directory
        super().__init__(message)


class FileMoveError(RotationError):
    def __init__(self, source, destination, message: str):
        self.source = source
        self.destination = destination
        super().__init__(message)


class ArchiveCollisionError(RotationError):
    def __init__(self, destination, message: str):
        self.destination = destination
        super().__init__(message)


class EvictionError(RotationError):
    """Oldest archive entry could not be deleted. Reported, never raised by the rotator."""

    def __init__(self, path, message: str):
        self.path = path
        super().__init__(message)


# Write phase

class PersistenceError(CertificateLifecycleError):
    """One of the artifact writes failed."""

    def __init__(self, target: str, path, message: str):
        self.target = target
        self.path = path
        super().__init__(message)


# Trust store phase

class TrustStoreError(CertificateLifecycleError):
    """Trust store could not be brought in line with the new certificate."""


class TrustStoreRemovalError(TrustStoreError):
    def __init__(self, organization: str, output: Optional[str], message: str):
        self.organization = organization
        self.output = output
        super().__init__(message)


class TrustStoreImportError(TrustStoreError):
    def __init__(self, path, output: Optional[str], message: str):
        self.path = path
        self.output = output
        super().__init__(message)


class TrustStoreUnsupportedError(TrustStoreError):
    """Raised on platforms without a trust store installer."""


# Loader collaborator

class CertificateLoadError(CertificateLifecycleError):
    """Certificate/key pair could not be loaded for TLS."""
