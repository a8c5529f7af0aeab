"""
Data models describing one certificate lifecycle run.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from ..security.errors import CertificateLifecycleError, EvictionError


@dataclass
class CertificateArtifacts:
    """PEM encoded certificate and private key produced by one generation."""
    cert_pem: bytes
    key_pem: bytes


@dataclass
class ArtifactPaths:
    """Files written by the artifact writer and the trust store step."""
    timestamped_cert: Optional[Path] = None
    timestamped_key: Optional[Path] = None
    current_cert: Optional[Path] = None
    current_key: Optional[Path] = None
    trust_bundle: Optional[Path] = None

    def written(self) -> List[Path]:
        """All paths written so far, in write order."""
        candidates = [
            self.timestamped_cert,
            self.timestamped_key,
            self.current_cert,
            self.current_key,
            self.trust_bundle,
        ]
        return [p for p in candidates if p is not None]


@dataclass
class RotationResult:
    """Outcome of moving old artifacts into the archive."""
    moved: List[Path] = field(default_factory=list)
    evicted: List[Path] = field(default_factory=list)
    eviction_errors: List[EvictionError] = field(default_factory=list)
    archive_count: int = 0


class LifecycleStage(Enum):
    """States of the lifecycle run, in execution order."""
    START = "start"
    GENERATE = "generate"
    ROTATE = "rotate_old_artifacts"
    WRITE = "write_artifacts"
    RECONCILE = "reconcile_trust_store"
    DONE = "done"
    ERROR = "error"


@dataclass
class LifecycleResult:
    """Result of a lifecycle run."""
    success: bool
    stage: LifecycleStage
    timestamp: str
    failed_stage: Optional[LifecycleStage] = None
    error: Optional[CertificateLifecycleError] = None
    paths: ArtifactPaths = field(default_factory=ArtifactPaths)
    rotation: Optional[RotationResult] = None
    trust_store_installed: bool = False
    finished_at: Optional[datetime] = None

    def __post_init__(self):
        if self.finished_at is None:
            self.finished_at = datetime.now()

    @property
    def error_message(self) -> Optional[str]:
        """Human readable '<stage> failed: <cause>' message."""
        if self.success or self.failed_stage is None:
            return None
        return f"{self.failed_stage.value} failed: {self.error}"
