"""
Command line entry point for the development certificate tool.
Generates and trusts a localhost certificate, or serves the HTTPS test page.
"""

import os
import sys
import logging
from typing import Optional

from .models.certificate import LifecycleResult
from .models.config import Config
from .services.config_service import ConfigService
from .services.logging_service import LoggingService
from .services.lifecycle_service import CertificateLifecycleManager
from .security.certificate_loader import load_certificate_pair
from .security.errors import CertificateLoadError
from .security.trust_store import TrustStoreInstaller
from .app import DevHTTPSServer


class DevCertApplication:
    """Wires configuration, logging and the certificate lifecycle together."""

    def __init__(self, config_path: Optional[str] = None,
                 installer: Optional[TrustStoreInstaller] = None):
        """
        Initialize the application.

        Args:
            config_path: Path to configuration file (optional)
            installer: Trust store installer override (optional)
        """
        self.config_path = config_path or self._get_default_config_path()
        self.installer = installer
        self.logger = None
        self.config_service = None
        self.config: Optional[Config] = None
        self.logging_service = None

    def _get_default_config_path(self) -> str:
        """Get the default configuration file path."""
        possible_paths = [
            "devcert.properties",
            "config/devcert.properties",
            os.path.expanduser("~/.devcert/devcert.properties"),
        ]

        for path in possible_paths:
            if os.path.exists(path):
                return path

        return possible_paths[0]

    def initialize(self, install_trust_store: Optional[bool] = None) -> bool:
        """
        Load configuration and set up logging.

        Args:
            install_trust_store: Overrides the configured trust store setting

        Returns:
            True if initialization successful, False otherwise
        """
        try:
            self.config_service = ConfigService()
            if os.path.exists(self.config_path):
                self.config = self.config_service.load_config(self.config_path)
            else:
                self.config = self.config_service.use_defaults()

            if install_trust_store is not None:
                self.config.install_trust_store = install_trust_store

            self.logging_service = LoggingService(self.config)
            self.logger = logging.getLogger(__name__)
            if os.path.exists(self.config_path):
                self.logger.info(f"Configuration loaded from: {self.config_path}")
            else:
                self.logger.info("No configuration file found, using defaults")
            return True

        except (OSError, ValueError) as e:
            print(f"Failed to initialize application: {str(e)}")
            return False

    def create_certificate(self) -> LifecycleResult:
        """Run the certificate lifecycle once."""
        manager = CertificateLifecycleManager(
            self.config,
            installer=self.installer,
            logging_service=self.logging_service
        )
        result = manager.run()

        if result.success and result.trust_store_installed:
            self.logger.info("Certificate successfully added to the current user's trust store.")
        if result.rotation:
            for error in result.rotation.eviction_errors:
                self.logger.warning(f"Archive eviction failed: {error}")
        for stage, duration_ms in self.logging_service.get_performance_stats().items():
            self.logger.info(f"Stage {stage} took {duration_ms:.1f} ms")
        return result

    def verify_current_pair(self, result: LifecycleResult) -> bool:
        """Load the freshly written current pair the way the TLS server would."""
        try:
            with open(result.paths.current_cert, 'rb') as f:
                cert_pem = f.read()
            with open(result.paths.current_key, 'rb') as f:
                key_pem = f.read()
            loaded = load_certificate_pair(cert_pem, key_pem)
        except (OSError, CertificateLoadError) as e:
            self.logger.error(f"Error loading TLS config: {e}")
            return False

        self.logger.info(f"TLS configuration loaded successfully (sha256 {loaded.info.fingerprint})")
        return True

    def serve(self):
        """Run the HTTPS test server."""
        DevHTTPSServer(self.config).run()


def main(argv=None):
    """Main entry point for the application."""
    import argparse

    parser = argparse.ArgumentParser(description='Self-signed development certificate tool')
    parser.add_argument('--config', '-c', help='Configuration file path')
    parser.add_argument('--serve', action='store_true',
                        help='Serve the HTTPS test page with the current certificate')
    parser.add_argument('--no-trust-store', action='store_true',
                        help='Skip removing and importing trust store entries')
    parser.add_argument('--check-config', action='store_true', help='Check configuration and exit')
    parser.add_argument('--init-config', metavar='PATH', help='Write a default configuration file and exit')

    args = parser.parse_args(argv)

    if args.init_config:
        ConfigService().create_default_config_file(args.init_config)
        print(f"Default configuration created at: {args.init_config}")
        return 0

    app = DevCertApplication(config_path=args.config)
    if not app.initialize(install_trust_store=False if args.no_trust_store else None):
        return 1

    if args.check_config:
        print("Configuration check passed")
        print(f"Certificate directory: {app.config.cert_dir}")
        print(f"Trust store install: {app.config.install_trust_store}")
        return 0

    if args.serve:
        try:
            app.serve()
        except CertificateLoadError as e:
            app.logger.error(f"selfsigning failed: {e}")
            return 1
        except OSError as e:
            app.logger.error(f"Failed to start HTTPS server: {e}")
            return 1
        except KeyboardInterrupt:
            print("\nShutdown requested by user")
        return 0

    result = app.create_certificate()
    if not result.success:
        print(result.error_message, file=sys.stderr)
        return 1

    if not app.verify_current_pair(result):
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
