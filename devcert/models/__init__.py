"""
Models package for the development certificate tool.
"""

from .config import Config, ConfigValidationError, ConfigValidationResult
from .certificate import (
    CertificateArtifacts,
    ArtifactPaths,
    RotationResult,
    LifecycleStage,
    LifecycleResult,
)

__all__ = [
    'Config',
    'ConfigValidationError',
    'ConfigValidationResult',
    'CertificateArtifacts',
    'ArtifactPaths',
    'RotationResult',
    'LifecycleStage',
    'LifecycleResult',
]
