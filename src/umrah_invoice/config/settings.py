"""
Centralized settings and path configuration for the invoice tool.

Paths are derived from the project layout; deployment values (record store
connection, output location, log level) come from ``UMRAH_INVOICE_*``
environment variables or a ``.env`` file.
"""
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


ENV_PREFIX = "UMRAH_INVOICE_"


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


class EnvironmentSettings(BaseSettings):
    """Values overridable per deployment."""

    output_dir: Optional[str] = None
    mongodb_uri: str = ""
    db_name: str = "umrah_invoices"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def from_mapping(cls, env: dict) -> 'EnvironmentSettings':
        """Build from an explicit mapping of ``UMRAH_INVOICE_*`` variables only."""
        values = {
            key[len(ENV_PREFIX):].lower(): value
            for key, value in env.items()
            if key.upper().startswith(ENV_PREFIX)
        }
        # model_validate skips the environment and .env sources
        return cls.model_validate(values)


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Output files
    output_dir: Path
    cumulative_workbook: Path
    staging_file: Path

    # Optional letterhead drawn behind the PDF invoice
    pdf_template_image: Optional[Path] = None

    # Record store (empty URI -> in-memory store)
    mongodb_uri: str = ""
    mongodb_db_name: str = "umrah_invoices"
    records_collection: str = "invoices"
    diagnostics_collection: str = "__diagnostics"
    history_page_size: int = 20

    log_level: str = "INFO"

    @classmethod
    def load(cls, project_root: Optional[Path] = None, env: Optional[dict] = None) -> 'Settings':
        """
        Load settings from the project structure and environment.

        ``env`` replaces the process environment when given.
        """
        root = project_root or get_project_root()
        overrides = EnvironmentSettings() if env is None else EnvironmentSettings.from_mapping(env)

        output_dir = Path(overrides.output_dir) if overrides.output_dir else root / 'output'
        template = root / 'assets' / 'invoice_template.png'

        return cls(
            project_root=root,
            output_dir=output_dir,
            cumulative_workbook=output_dir / 'hotel_invoices.xlsx',
            staging_file=output_dir / 'temp_invoice_buffer_v1.json',
            pdf_template_image=template if template.exists() else None,
            mongodb_uri=overrides.mongodb_uri,
            mongodb_db_name=overrides.db_name,
            log_level=overrides.log_level,
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
