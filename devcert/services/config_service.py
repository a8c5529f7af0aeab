"""
Configuration service for loading and validating application settings.
"""
import os
import configparser
from typing import Optional, Dict, Any, List
import logging

from ..models.config import Config, ConfigValidationError, ConfigValidationResult
from ..security.trust_store import is_trust_store_supported


class ConfigService:
    """Service for loading and validating application configuration."""

    # Map configuration keys to Config fields
    CONFIG_MAPPING = {
        # Certificate settings
        "certificate.directory": ("cert_dir", str),
        "cert_dir": ("cert_dir", str),
        "certificate.base_name": ("base_name", str),
        "base_name": ("base_name", str),
        "certificate.validity_days": ("validity_days", int),
        "validity_days": ("validity_days", int),
        "certificate.organization_names": ("organization_names", list),
        "organization_names": ("organization_names", list),
        "certificate.dns_names": ("dns_names", list),
        "dns_names": ("dns_names", list),

        # Archive settings
        "archive.directory_name": ("archive_dir_name", str),
        "archive_dir_name": ("archive_dir_name", str),
        "archive.max_files": ("max_archived_files", int),
        "max_archived_files": ("max_archived_files", int),

        # Trust store settings
        "trust_store.install": ("install_trust_store", bool),
        "install_trust_store": ("install_trust_store", bool),

        # Test server settings
        "server.host": ("server_host", str),
        "server_host": ("server_host", str),
        "server.port": ("server_port", int),
        "server_port": ("server_port", int),
        "server.cert_path": ("server_cert_path", str),
        "server_cert_path": ("server_cert_path", str),
        "server.key_path": ("server_key_path", str),
        "server_key_path": ("server_key_path", str),

        # Application settings
        "app.log_level": ("log_level", str),
        "log_level": ("log_level", str),
        "app.log_file_path": ("log_file_path", str),
        "log_file_path": ("log_file_path", str),
    }

    def __init__(self, config_path: Optional[str] = None):
        self.logger = logging.getLogger(__name__)
        self._config = None
        if config_path:
            self._config = self.load_config(config_path)

    def get_config(self) -> Config:
        """
        Get the loaded configuration.

        Returns:
            Config object

        Raises:
            ValueError: If no configuration has been loaded
        """
        if self._config is None:
            raise ValueError("No configuration loaded. Call load_config() first.")
        return self._config

    def use_defaults(self) -> Config:
        """Use the built-in defaults when no configuration file is present."""
        self._config = Config()
        return self._config

    def load_config(self, config_path: str) -> Config:
        """
        Load configuration from a property file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Config object with loaded settings

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid or has validation errors
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        config_data = self._load_config_file(config_path)
        config = self._create_config_from_data(config_data)

        validation_result = self.validate_config(config)

        if validation_result.has_errors():
            error_summary = validation_result.get_error_summary()
            raise ValueError(f"Configuration validation failed:\n{error_summary}")

        if validation_result.has_warnings():
            warning_summary = validation_result.get_error_summary()
            self.logger.warning(f"Configuration warnings:\n{warning_summary}")

        self._config = config
        return config

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """Load configuration data from file."""
        # Values are literal; organization names may contain %
        config_parser = configparser.ConfigParser(interpolation=None)

        # Convert to flat dictionary, section.key for namespacing
        config_data = {}
        try:
            config_parser.read(config_path)
            for section in config_parser.sections():
                for key, value in config_parser.items(section):
                    config_data[f"{section}.{key}"] = value
        except configparser.Error as e:
            raise ValueError(f"Failed to parse configuration file: {e}") from e

        for key, value in config_parser.defaults().items():
            if key not in config_data:
                config_data[key] = value

        return config_data

    def _create_config_from_data(self, config_data: Dict[str, Any]) -> Config:
        """Create Config object from configuration data."""
        config_kwargs = {}

        for config_key, raw_value in config_data.items():
            if config_key not in self.CONFIG_MAPPING:
                continue
            field_name, field_type = self.CONFIG_MAPPING[config_key]
            try:
                if field_type == bool:
                    value = self._parse_bool(raw_value)
                elif field_type == int:
                    value = int(raw_value)
                elif field_type == list:
                    value = self._parse_list(raw_value)
                else:
                    value = str(raw_value).strip()

                config_kwargs[field_name] = value
            except (ValueError, TypeError) as e:
                raise ValueError(f"Invalid value for {config_key}: {raw_value} ({e})")

        return Config(**config_kwargs)

    def _parse_bool(self, value: Any) -> bool:
        """Parse boolean value from string."""
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in ("true", "yes", "1", "on", "enabled")
        return bool(value)

    def _parse_list(self, value: Any) -> List[str]:
        """Parse a comma separated list, dropping empty items."""
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value]
        return [item.strip() for item in str(value).split(",") if item.strip()]

    def validate_config(self, config: Config) -> ConfigValidationResult:
        """
        Validate configuration settings.

        Args:
            config: Configuration object to validate

        Returns:
            ConfigValidationResult with validation results
        """
        errors = []
        warnings = []

        if not config.cert_dir:
            errors.append(ConfigValidationError(
                "cert_dir",
                "Certificate directory is required"
            ))

        if not config.dns_names:
            warnings.append(ConfigValidationError(
                "dns_names",
                "No DNS names configured; the certificate will have no subject alternative names "
                "and most TLS clients will reject it",
                "warning"
            ))

        if not config.organization_names:
            warnings.append(ConfigValidationError(
                "organization_names",
                "No organization names configured; stale trust store entries cannot be matched",
                "warning"
            ))

        if config.install_trust_store and not is_trust_store_supported():
            warnings.append(ConfigValidationError(
                "install_trust_store",
                "Trust store installation is not implemented on this platform",
                "warning"
            ))

        if config.log_file_path:
            log_dir = os.path.dirname(config.log_file_path)
            if log_dir and not os.path.exists(log_dir):
                warnings.append(ConfigValidationError(
                    "log_file_path",
                    f"Log directory does not exist: {log_dir}",
                    "warning"
                ))

        all_issues = errors + warnings
        return ConfigValidationResult(
            is_valid=len(errors) == 0,
            errors=all_issues,
            warnings=[]
        )

    def create_default_config_file(self, config_path: str) -> None:
        """
        Create a default configuration file with example settings.

        Args:
            config_path: Path where to create the config file
        """
        config_content = """# Development certificate configuration

[certificate]
directory = certificate
base_name = localhost
validity_days = 365
# comma separated
organization_names = Local MyCompany Cert
dns_names = localhost

[archive]
directory_name = old
max_files = 100

[trust_store]
install = true

[server]
host = localhost
port = 443
cert_path = certificate/localhost.crt
key_path = certificate/localhost.key

[app]
log_level = INFO
log_file_path = logs/devcert.log
"""

        config_dir = os.path.dirname(config_path)
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)

        with open(config_path, 'w') as f:
            f.write(config_content)

        self.logger.info(f"Created default configuration file: {config_path}")
