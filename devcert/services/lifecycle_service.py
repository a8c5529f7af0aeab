"""
Certificate lifecycle orchestration: generate, rotate, write, trust.
"""
import logging
from contextlib import nullcontext
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Sequence

from ..models.certificate import ArtifactPaths, LifecycleResult, LifecycleStage
from ..models.config import Config
from ..security.errors import CertificateLifecycleError
from ..security.trust_store import TrustStoreInstaller, TrustStoreReconciler, get_trust_store_installer
from .archive_rotator import ArchiveRotator
from .artifact_writer import ArtifactWriter
from .key_pair_generator import KeyPairGenerator, utc_now


TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


class CertificateLifecycleManager:
    """
    Runs Start -> Generate -> RotateOldArtifacts -> WriteArtifacts ->
    ReconcileTrustStore -> Done. The first failing stage moves the run to Error;
    nothing after it runs and nothing already written is cleaned up.
    """

    def __init__(self, config: Config,
                 installer: Optional[TrustStoreInstaller] = None,
                 logging_service=None,
                 clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the lifecycle manager.

        Args:
            config: Application configuration
            installer: Trust store installer, selected for the platform if not given
            logging_service: Optional LoggingService used to time each stage
            clock: Callable returning the current time, used for validity and file names
        """
        self.config = config
        self.clock = clock or utc_now
        self.logging_service = logging_service
        self.logger = logging.getLogger(__name__)

        self.generator = KeyPairGenerator(validity_days=config.validity_days, clock=self.clock)
        self.rotator = ArchiveRotator(
            config.cert_dir,
            archive_dir_name=config.archive_dir_name,
            max_archived_files=config.max_archived_files
        )
        self.writer = ArtifactWriter(config.cert_dir)
        self.reconciler = TrustStoreReconciler(installer or get_trust_store_installer())

    def run(self, organization_names: Optional[Sequence[str]] = None,
            dns_names: Optional[Sequence[str]] = None) -> LifecycleResult:
        """
        Run the lifecycle once.

        Args:
            organization_names: Overrides config.organization_names
            dns_names: Overrides config.dns_names

        Returns:
            LifecycleResult; on failure it names the failed stage and the cause
        """
        org_names = list(self.config.organization_names if organization_names is None
                         else organization_names)
        dns = list(self.config.dns_names if dns_names is None else dns_names)

        now = self.clock()
        timestamp = now.astimezone().strftime(TIMESTAMP_FORMAT)
        paths = ArtifactPaths()
        result = LifecycleResult(success=False, stage=LifecycleStage.START,
                                 timestamp=timestamp, paths=paths)

        try:
            result.stage = LifecycleStage.GENERATE
            with self._measure(result.stage):
                artifacts = self.generator.generate(org_names, dns, now=now)

            result.stage = LifecycleStage.ROTATE
            with self._measure(result.stage):
                result.rotation = self.rotator.rotate()

            result.stage = LifecycleStage.WRITE
            with self._measure(result.stage):
                self.writer.write(artifacts, timestamp, base_name=self.config.base_name, paths=paths)

            result.stage = LifecycleStage.RECONCILE
            if self.config.install_trust_store:
                with self._measure(result.stage):
                    paths.trust_bundle = self.reconciler.reconcile(
                        Path(self.config.cert_dir), self.config.base_name, timestamp,
                        org_names, artifacts.cert_pem
                    )
                result.trust_store_installed = True
            else:
                self.logger.info("Trust store installation disabled, skipping")

        except CertificateLifecycleError as e:
            result.failed_stage = result.stage
            result.stage = LifecycleStage.ERROR
            result.error = e
            result.finished_at = datetime.now()
            self.logger.error(result.error_message)
            return result

        result.stage = LifecycleStage.DONE
        result.success = True
        result.finished_at = datetime.now()
        self.logger.info(f"Certificate lifecycle completed ({timestamp})")
        return result

    def _measure(self, stage: LifecycleStage):
        if self.logging_service is None:
            return nullcontext()
        return self.logging_service.measure_performance(stage.value)
