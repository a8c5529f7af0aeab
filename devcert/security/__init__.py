"""
Security package: error taxonomy, trust store installers and certificate loading.
"""
from .errors import (
    CertificateLifecycleError,
    GenerationError,
    KeyGenerationError,
    CertificateCreationError,
    KeyEncodingError,
    RotationError,
    DirectoryAccessError,
    FileMoveError,
    ArchiveCollisionError,
    EvictionError,
    PersistenceError,
    TrustStoreError,
    TrustStoreRemovalError,
    TrustStoreImportError,
    TrustStoreUnsupportedError,
    CertificateLoadError,
)
from .models import CertificateInfo, LoadedCertificate
from .certificate_loader import CertificateLoader, load_certificate_pair, get_certificate_info
from .trust_store import (
    TrustStoreInstaller,
    WindowsTrustStoreInstaller,
    UnsupportedTrustStoreInstaller,
    TrustStoreReconciler,
    get_trust_store_installer,
)

__all__ = [
    'CertificateLifecycleError',
    'GenerationError',
    'KeyGenerationError',
    'CertificateCreationError',
    'KeyEncodingError',
    'RotationError',
    'DirectoryAccessError',
    'FileMoveError',
    'ArchiveCollisionError',
    'EvictionError',
    'PersistenceError',
    'TrustStoreError',
    'TrustStoreRemovalError',
    'TrustStoreImportError',
    'TrustStoreUnsupportedError',
    'CertificateLoadError',
    'CertificateInfo',
    'LoadedCertificate',
    'CertificateLoader',
    'load_certificate_pair',
    'get_certificate_info',
    'TrustStoreInstaller',
    'WindowsTrustStoreInstaller',
    'UnsupportedTrustStoreInstaller',
    'TrustStoreReconciler',
    'get_trust_store_installer',
]
