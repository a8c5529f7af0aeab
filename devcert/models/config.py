"""
Configuration data models for the development certificate tool.
"""
from dataclasses import dataclass, field
from typing import List


@dataclass
class Config:
    """Main configuration class containing all application settings."""

    # Certificate settings
    cert_dir: str = "certificate"
    base_name: str = "localhost"
    validity_days: int = 365
    organization_names: List[str] = field(default_factory=lambda: ["Local MyCompany Cert"])
    dns_names: List[str] = field(default_factory=lambda: ["localhost"])

    # Archive settings
    archive_dir_name: str = "old"
    max_archived_files: int = 100

    # Trust store settings
    install_trust_store: bool = True

    # Test server settings
    server_host: str = "localhost"
    server_port: int = 443
    server_cert_path: str = "certificate/localhost.crt"
    server_key_path: str = "certificate/localhost.key"

    # Application settings
    log_level: str = "INFO"
    log_file_path: str = "logs/devcert.log"

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_types()

    def _validate_types(self):
        """Ensure all configuration values have correct types."""
        if not self.base_name or "/" in self.base_name or "\\" in self.base_name:
            raise ValueError("base_name must be a non-empty file name without path separators")

        if not self.archive_dir_name or "/" in self.archive_dir_name or "\\" in self.archive_dir_name:
            raise ValueError("archive_dir_name must be a non-empty directory name without path separators")

        if not isinstance(self.validity_days, int) or self.validity_days <= 0:
            raise ValueError("validity_days must be a positive integer")

        if not isinstance(self.max_archived_files, int) or self.max_archived_files <= 0:
            raise ValueError("max_archived_files must be a positive integer")

        if not isinstance(self.server_port, int) or not (1 <= self.server_port <= 65535):
            raise ValueError("server_port must be an integer between 1 and 65535")

        if self.log_level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError("log_level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")


@dataclass
class ConfigValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    severity: str = "error"  # error, warning

    def __str__(self):
        return f"{self.severity.upper()}: {self.field} - {self.message}"


@dataclass
class ConfigValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: list[ConfigValidationError]
    warnings: list[ConfigValidationError]

    def __post_init__(self):
        """Separate errors and warnings."""
        all_issues = self.errors + self.warnings
        self.errors = [e for e in all_issues if e.severity == "error"]
        self.warnings = [e for e in all_issues if e.severity == "warning"]

    def has_errors(self) -> bool:
        """Check if there are any validation errors."""
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        """Check if there are any validation warnings."""
        return len(self.warnings) > 0

    def get_error_summary(self) -> str:
        """Get a formatted summary of all errors and warnings."""
        lines = []

        if self.errors:
            lines.append("Configuration Errors:")
            for error in self.errors:
                lines.append(f"  - {error}")

        if self.warnings:
            lines.append("Configuration Warnings:")
            for warning in self.warnings:
                lines.append(f"  - {warning}")

        return "\n".join(lines) if lines else "Configuration is valid"
