"""
Configuration management (SSOT).

This module defines ALL configuration for the statement import pipeline.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- The API token is only ever sent as a bearer header, never logged
- File limits are enforced locally before any upload happens
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path

import yaml


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class ApiConfig:
    """Ledger REST API configuration."""

    base_url: str
    token: str = ""
    # Request timeout (seconds)
    timeout_seconds: int = 30
    # Connection-level retries handled by the transport
    max_retries: int = 2


@dataclass
class ImportConfig:
    """Statement upload and duplicate detection settings."""

    # Upper bound for a single statement upload
    max_upload_mb: int = 10
    accepted_extensions: list[str] = field(default_factory=lambda: [".pdf"])
    accepted_content_types: list[str] = field(default_factory=lambda: ["application/pdf"])
    # Reject files that do not start with the %PDF marker
    check_magic_bytes: bool = True
    # Currency-unit epsilon for duplicate matching (strictly less than)
    amount_tolerance: Decimal = Decimal("0.01")

    @property
    def max_upload_bytes(self) -> int:
        """Upload limit in bytes."""
        return self.max_upload_mb * 1024 * 1024


@dataclass
class Config:
    """Application configuration (SSOT)."""

    api: ApiConfig
    importing: ImportConfig = field(default_factory=ImportConfig)

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if not self.api.base_url:
            errors.append("api.base_url is required")
        elif not self.api.base_url.startswith(("http://", "https://")):
            errors.append("api.base_url must start with http:// or https://")

        if self.api.timeout_seconds <= 0:
            errors.append("api.timeout_seconds must be positive")

        if self.importing.max_upload_mb <= 0:
            errors.append("import.max_upload_mb must be positive")
        if not self.importing.accepted_extensions:
            errors.append("import.accepted_extensions must not be empty")
        if self.importing.amount_tolerance <= 0:
            errors.append("import.amount_tolerance must be positive")

        return errors


def _parse_tolerance(value: object) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ConfigValidationError(f"import.amount_tolerance is not a number: {value!r}") from e


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    Environment variables can override config values:
    - STATEMENT_IMPORT_API_URL
    - STATEMENT_IMPORT_API_TOKEN
    - STATEMENT_IMPORT_API_TIMEOUT (request timeout in seconds)
    - STATEMENT_IMPORT_MAX_UPLOAD_MB
    """
    if config_path.exists():
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Invalid YAML in {config_path}: {e}") from e
    else:
        data = {}

    if not isinstance(data, dict):
        raise ConfigValidationError(f"{config_path} must contain a mapping at the top level")

    # API config
    api_data = data.get("api", {}) or {}
    api = ApiConfig(
        base_url=os.environ.get(
            "STATEMENT_IMPORT_API_URL", api_data.get("base_url", "http://localhost:8080")
        ),
        token=os.environ.get("STATEMENT_IMPORT_API_TOKEN", api_data.get("token", "")),
        timeout_seconds=int(
            os.environ.get("STATEMENT_IMPORT_API_TIMEOUT", api_data.get("timeout_seconds", 30))
        ),
        max_retries=api_data.get("max_retries", 2),
    )

    # Import config
    import_data = data.get("import", {}) or {}
    max_upload_env = os.environ.get("STATEMENT_IMPORT_MAX_UPLOAD_MB", "")
    max_upload_mb = import_data.get("max_upload_mb", 10)
    if max_upload_env:
        try:
            max_upload_mb = int(max_upload_env)
        except ValueError:
            pass  # Keep file/default value

    importing = ImportConfig(
        max_upload_mb=max_upload_mb,
        accepted_extensions=[
            ext.lower() for ext in import_data.get("accepted_extensions", [".pdf"])
        ],
        accepted_content_types=import_data.get("accepted_content_types", ["application/pdf"]),
        check_magic_bytes=import_data.get("check_magic_bytes", True),
        amount_tolerance=_parse_tolerance(import_data.get("amount_tolerance", "0.01")),
    )

    return Config(api=api, importing=importing)


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = """# Statement import configuration
#
# Environment variables override these values:
#   STATEMENT_IMPORT_API_URL, STATEMENT_IMPORT_API_TOKEN,
#   STATEMENT_IMPORT_API_TIMEOUT, STATEMENT_IMPORT_MAX_UPLOAD_MB

api:
  base_url: "http://localhost:8080"       # Ledger API URL
  token: "YOUR_API_TOKEN"                 # Sent as Bearer token
  timeout_seconds: 30
  max_retries: 2                          # Connection retries only

# Statement upload and duplicate detection
import:
  max_upload_mb: 10                       # Rejected locally above this size
  accepted_extensions: [".pdf"]
  accepted_content_types: ["application/pdf"]
  check_magic_bytes: true                 # File must start with %PDF
  amount_tolerance: "0.01"                # Same day and |diff| < tolerance = duplicate
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)
