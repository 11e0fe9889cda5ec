"""Connector settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. Environment variables (SOLRCONNECTOR_ prefix)
  2. YAML config file (if specified)
  3. Default values
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

_VERSION_OVERRIDE = re.compile(r"^\d+(\.\d+){0,2}$")

# Fields that together make up the server link.
ADDRESS_FIELDS = ("scheme", "host", "port", "path", "core")


class EndpointConfig(BaseModel):
    """Connection parameters for a single Solr server/core pair.

    Timeouts are in seconds. ``timeout`` applies to queries,
    ``index_timeout`` to update requests and ``optimize_timeout`` to
    administrative REST calls.
    """

    model_config = {"frozen": True}

    scheme: Literal["http", "https"] = Field(default="http", description="HTTP scheme")
    host: str = Field(default="localhost", min_length=1, description="Solr host name")
    port: int = Field(default=8983, ge=0, le=65535, description="Solr port")
    path: str = Field(default="/solr", description="Path of the Solr web application")
    core: str = Field(default="", description="Name of the Solr core or collection")
    timeout: int = Field(default=5, ge=1, le=180, description="Query timeout in seconds")
    index_timeout: int = Field(default=5, ge=1, le=180, description="Indexing timeout in seconds")
    optimize_timeout: int = Field(default=10, ge=1, le=180, description="Optimize/admin timeout in seconds")
    username: str = Field(default="", description="HTTP basic auth username")
    password: str = Field(default="", description="HTTP basic auth password")
    solr_version: str = Field(default="", description="Solr version override, e.g. '6' or '6.2'")
    http_method: Literal["AUTO", "GET", "POST"] = Field(default="AUTO", description="HTTP method for queries")

    @field_validator("path")
    @classmethod
    def _check_path(cls, v: str) -> str:
        if v and not v.startswith("/"):
            raise ValueError('If provided the path has to start with "/".')
        return v.rstrip("/")

    @field_validator("core")
    @classmethod
    def _check_core(cls, v: str) -> str:
        if v.startswith("/"):
            raise ValueError('The core must not start with "/".')
        return v

    @field_validator("solr_version", mode="before")
    @classmethod
    def _check_solr_version(cls, v: Any) -> str:
        v = "" if v is None else str(v).strip()
        if v and not _VERSION_OVERRIDE.match(v):
            raise ValueError("The Solr version override has to look like '6' or '6.2.1'.")
        return v


def validate_configuration(values: dict[str, Any]) -> dict[str, str]:
    """Validate raw form values and report errors per field.

    Args:
        values: Flat mapping of option names to submitted values.

    Returns:
        Mapping of field name to error message. Empty if the values are valid.
    """
    errors: dict[str, str] = {}
    try:
        config = EndpointConfig(**values)
    except ValidationError as e:
        for err in e.errors():
            field = str(err["loc"][0]) if err["loc"] else "__root__"
            errors.setdefault(field, err["msg"].removeprefix("Value error, "))
        return errors

    # Try to orchestrate a server link from the values.
    from solrconnector.connectors.base.connection import ConnectionManager

    manager = ConnectionManager(config)
    try:
        manager.server_link()
    except ValueError:
        for field in ADDRESS_FIELDS:
            errors[field] = "The server link generated from the form values is illegal."
    finally:
        manager.close()
    return errors


class ConnectorSettings(BaseModel):
    """Which connector variant to build and how to reach Solr."""

    type: str = Field(default="standard", description="Connector variant id: standard, basic_auth")
    endpoint: EndpointConfig = Field(default_factory=EndpointConfig)


class CacheSettings(BaseModel):
    """Metadata cache configuration."""

    backend: Literal["memory", "redis"] = Field(default="memory", description="Cache backend: memory, redis")
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    state_key: str = Field(
        default="solrconnector.endpoint.data",
        description="Key of the durable entry holding endpoint metadata",
    )


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root settings.

    Configuration is loaded from environment variables with the SOLRCONNECTOR_ prefix.
    Nested settings use double underscores.

    Example:
        SOLRCONNECTOR_CONNECTOR__TYPE=basic_auth
        SOLRCONNECTOR_CONNECTOR__ENDPOINT__HOST=solr.internal
        SOLRCONNECTOR_CACHE__BACKEND=redis
    """

    model_config = {
        "env_prefix": "SOLRCONNECTOR_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    connector: ConnectorSettings = Field(default_factory=ConnectorSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file are passed as init arguments and therefore
        override environment variables for the keys they define.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)
