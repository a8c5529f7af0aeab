"""
Services package for the development certificate tool.
"""

from .config_service import ConfigService
from .lifecycle_service import CertificateLifecycleManager

__all__ = [
    'ConfigService',
    'CertificateLifecycleManager'
]
