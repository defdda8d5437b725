"""Configuration management for the DataForSEO MCP server.

Supports YAML configuration files and environment variable overrides.
Configuration is loaded once and cached; after startup it is read-only.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.models import Credentials


class ServerSettings(BaseSettings):
    """HTTP listener configuration."""
    host: str = Field(default="0.0.0.0")
    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("PORT", "MCP_SERVER_PORT", "port"),
    )
    enable_audit: bool = Field(default=False)
    audit_log_path: str = Field(default="logs/audit.log")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    model_config = SettingsConfigDict(
        env_prefix="MCP_SERVER_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )


class DataForSEOSettings(BaseSettings):
    """Upstream API configuration and default credentials."""
    username: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DATAFORSEO_USERNAME"),
    )
    password: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("DATAFORSEO_PASSWORD"),
    )
    base_url: str = Field(default="https://api.dataforseo.com")
    timeout_seconds: float = Field(default=60.0, gt=0)
    enabled_modules: str = Field(
        default="",
        validation_alias=AliasChoices("ENABLED_MODULES", "enabled_modules"),
        description="Comma separated module keys; empty enables all modules",
    )
    field_config_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("FIELD_CONFIG_PATH", "field_config_path"),
    )

    model_config = SettingsConfigDict(
        env_prefix="DATAFORSEO_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def enabled_module_keys(self) -> list[str]:
        """Parsed ``enabled_modules`` value, upper-cased."""
        return [
            key.strip().upper()
            for key in self.enabled_modules.split(",")
            if key.strip()
        ]

    def default_credentials(self) -> Optional[Credentials]:
        """Return the process-wide default credentials, if both halves are set."""
        password = self.password.get_secret_value() if self.password else ""
        if not self.username or not password:
            return None
        return Credentials(username=self.username, password=password)


class Settings(BaseSettings):
    """Main application settings."""
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Component settings
    server: ServerSettings = Field(default_factory=ServerSettings)
    dataforseo: DataForSEOSettings = Field(default_factory=DataForSEOSettings)

    model_config = SettingsConfigDict(
        env_prefix="MCP_",
        env_file=".env",
        extra="ignore"
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        data = load_yaml_config(path)
        if not data:
            return cls()

        # Nested sections are built explicitly so their env overrides still apply
        server = ServerSettings(**(data.pop("server", None) or {}))
        dataforseo = DataForSEOSettings(**(data.pop("dataforseo", None) or {}))
        return cls(server=server, dataforseo=dataforseo, **data)


def load_yaml_config(path: str | Path) -> dict[str, Any]:
    """Load a YAML (or JSON) configuration file."""
    path = Path(path)
    if not path.exists():
        return {}

    with open(path) as f:
        return yaml.safe_load(f) or {}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    config_path = os.environ.get("MCP_CONFIG_PATH", "config/settings.yaml")
    return Settings.from_yaml(config_path)
