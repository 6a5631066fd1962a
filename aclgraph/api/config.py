"""
Application Configuration
=========================

Centralized configuration management using Pydantic Settings.
Environment variables take precedence over config file values.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Backing store and cache connection settings."""

    # Neo4j
    neo4j_uri: str = Field(default="bolt://localhost:7687", alias="NEO4J_URI", description="Neo4j connection URI")
    neo4j_user: str = Field(default="neo4j", alias="NEO4J_USER", description="Neo4j username")
    neo4j_password: str = Field(default="", alias="NEO4J_PASSWORD", description="Neo4j password")
    neo4j_database: str | None = Field(default=None, alias="NEO4J_DATABASE", description="Neo4j database name")

    # Redis
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL", description="Redis connection URL")


class AclLookupSettings(BaseSettings):
    """ACL lookup tuning and schema customization."""

    model_config = SettingsConfigDict(env_prefix="ACL_", extra="ignore")

    batch_size: int = Field(default=50, ge=1, description="Max top-level identities per store round trip")
    cache_backend: Literal["memory", "redis"] = Field(default="memory", description="ACL cache implementation")
    cache_ttl_seconds: int = Field(default=3600, ge=1, description="Redis ACL cache entry TTL")
    cache_key_prefix: str = Field(default="acl_cache", description="Redis ACL cache key prefix")

    # Query fragments; None keeps the built-in Neo4j schema
    match_clause: str | None = Field(default=None, description="Cypher MATCH fragment")
    return_clause: str | None = Field(default=None, description="Cypher RETURN fragment")
    order_by_clause: str | None = Field(default=None, description="Cypher ORDER BY fragment")
    identity_where_clause: str | None = Field(default=None, description="Per-identity WHERE block, with {index}")
    internal_id_where_clause: str | None = Field(default=None, description="Per-id WHERE block, with {index}")

    @field_validator("identity_where_clause", "internal_id_where_clause")
    @classmethod
    def validate_where_clause(cls, v: str | None) -> str | None:
        """Where blocks are numbered per batch item."""
        if v is not None and "{index}" not in v:
            raise ValueError("Where clause must contain an '{index}' placeholder")
        return v


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from:
    1. Environment variables (highest priority)
    2. config/settings.yaml file
    3. Default values (lowest priority)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="aclgraph", description="Application name")
    log_level: str = Field(default="INFO", description="Logging level")
    tracing_enabled: bool = Field(default=False, description="Install the OpenTelemetry span decorator")

    # Nested settings (loaded separately)
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    acl: AclLookupSettings = Field(default_factory=AclLookupSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @classmethod
    def load_yaml_config(cls, config_path: Path | None = None) -> dict[str, Any]:
        """Load configuration from YAML file."""
        if config_path is None:
            config_path = Path(__file__).parent.parent.parent / "config" / "settings.yaml"

        if config_path.exists():
            with open(config_path) as f:
                return yaml.safe_load(f) or {}
        return {}


def apply_yaml_config(settings: Settings, yaml_config: dict[str, Any]) -> Settings:
    """Overlay the ``acl`` section of a YAML config onto ``settings``.

    Values already set through ``ACL_*`` environment variables win.
    """
    acl_config = yaml_config.get("acl") or {}
    if acl_config:
        explicit = settings.acl.model_fields_set
        merged = {k: v for k, v in acl_config.items() if k not in explicit}
        merged.update({k: getattr(settings.acl, k) for k in explicit})
        settings.acl = AclLookupSettings(**merged)
    return settings


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance
    """
    return apply_yaml_config(Settings(), Settings.load_yaml_config())
