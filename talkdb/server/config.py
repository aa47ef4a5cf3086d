"""
Configuration management for TalkDB Server.

All configuration is done via environment variables.
This module provides typed configuration classes with validation.

Invariants:
    - All settings have sensible defaults for local development
    - Secrets (API keys, database passwords) are never logged
    - Each live database is identified by its driver; at most one per driver

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Keep TALKDB_DATABASES a JSON array so it fits in one variable
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import quote_plus

logger = logging.getLogger(__name__)


class Driver(Enum):
    """Supported live-database drivers."""

    POSTGRES = "postgres"
    MYSQL = "mysql"
    COCKROACH = "cockroach"
    SQLITE = "sqlite"

    @classmethod
    def from_str(cls, value: str) -> Driver:
        """Convert a driver name to Driver.

        Raises:
            ValueError: If value is not a supported driver
        """
        for driver in cls:
            if driver.value == value.lower():
                return driver
        valid = [d.value for d in cls]
        raise ValueError(f"Unknown database driver '{value}'. Valid drivers: {valid}")


@dataclass(frozen=True)
class ConnectionConfig:
    """Connection settings for one live database.

    Attributes:
        driver: Which driver this connection uses
        host: Server host
        port: Server port (driver default when empty)
        user: Login user
        password: Login password
        name: Database name (file path for sqlite)
        schema: Schema to introspect (postgres/cockroach default "public")
        url: Full SQLAlchemy URL, overriding the discrete fields
    """

    driver: Driver
    host: str = "localhost"
    port: str = ""
    user: str = ""
    password: str = ""
    name: str = ""
    schema: str | None = None
    url: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> ConnectionConfig:
        """Create from one entry of the TALKDB_DATABASES array."""
        driver = Driver.from_str(data["driver"])
        schema = data.get("schema")
        if schema is None and driver in (Driver.POSTGRES, Driver.COCKROACH):
            schema = "public"
        return cls(
            driver=driver,
            host=data.get("host", "localhost"),
            port=str(data.get("port", "")),
            user=data.get("user", ""),
            password=data.get("password", data.get("pass", "")),
            name=data.get("name", ""),
            schema=schema,
            url=data.get("url"),
        )

    def sqlalchemy_url(self) -> str:
        """Build the SQLAlchemy URL for this connection."""
        if self.url:
            return self.url
        if self.driver == Driver.SQLITE:
            return f"sqlite:///{self.name}"

        scheme = {
            Driver.POSTGRES: "postgresql+psycopg",
            Driver.COCKROACH: "postgresql+psycopg",
            Driver.MYSQL: "mysql+pymysql",
        }[self.driver]
        default_port = {
            Driver.POSTGRES: "5432",
            Driver.COCKROACH: "26257",
            Driver.MYSQL: "3306",
        }[self.driver]
        auth = quote_plus(self.user)
        if self.password:
            auth += f":{quote_plus(self.password)}"
        port = self.port or default_port
        return f"{scheme}://{auth}@{self.host}:{port}/{self.name}"


def _connections_from_env() -> tuple[ConnectionConfig, ...]:
    raw = os.getenv("TALKDB_DATABASES", "").strip()
    if not raw:
        return ()
    try:
        entries = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"TALKDB_DATABASES is not valid JSON: {e}")
    if not isinstance(entries, list):
        raise ValueError("TALKDB_DATABASES must be a JSON array")
    try:
        return tuple(ConnectionConfig.from_dict(entry) for entry in entries)
    except KeyError as e:
        raise ValueError(f"TALKDB_DATABASES entry is missing {e}")


@dataclass(frozen=True)
class CatalogConfig:
    """Schema catalog configuration.

    Attributes:
        path: JSON file holding the catalog
    """

    path: str = "./data/catalog.json"

    @classmethod
    def from_env(cls) -> CatalogConfig:
        """Load configuration from environment variables."""
        return cls(path=os.getenv("CATALOG_PATH", "./data/catalog.json"))


@dataclass(frozen=True)
class TranslatorConfig:
    """SQL translator (chat completions) configuration.

    Attributes:
        api_key: Bearer token for the completions API
        base_url: OpenAI-compatible API root
        model: Model name
        temperature: Sampling temperature
        timeout_seconds: Request timeout
    """

    api_key: str = ""
    base_url: str = "https://api.avalai.ir/v1"
    model: str = "gpt-4o"
    temperature: float = 0.3
    timeout_seconds: float = 30.0

    @classmethod
    def from_env(cls) -> TranslatorConfig:
        """Load configuration from environment variables."""
        return cls(
            api_key=os.getenv("TRANSLATOR_API_KEY", ""),
            base_url=os.getenv("TRANSLATOR_BASE_URL", "https://api.avalai.ir/v1"),
            model=os.getenv("TRANSLATOR_MODEL", "gpt-4o"),
            temperature=float(os.getenv("TRANSLATOR_TEMPERATURE", "0.3")),
            timeout_seconds=float(os.getenv("TRANSLATOR_TIMEOUT_SECONDS", "30")),
        )


@dataclass(frozen=True)
class HttpConfig:
    """HTTP API configuration."""

    host: str = "0.0.0.0"
    port: int = 8080

    @classmethod
    def from_env(cls) -> HttpConfig:
        """Load configuration from environment variables."""
        return cls(
            host=os.getenv("HTTP_HOST", "0.0.0.0"),
            port=int(os.getenv("HTTP_PORT", "8080")),
        )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
        )


@dataclass
class ServerConfig:
    """Complete server configuration.

    Attributes:
        debug_mode: Force DEBUG logging
        catalog: Catalog file configuration
        translator: SQL translator configuration
        http: HTTP API configuration
        observability: Logging configuration
        databases: Live databases available for registration
    """

    debug_mode: bool = False
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    translator: TranslatorConfig = field(default_factory=TranslatorConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)
    databases: tuple[ConnectionConfig, ...] = ()

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Load complete configuration from environment variables.

        Raises:
            ValueError: If required configuration is missing or invalid.
        """
        config = cls(
            debug_mode=os.getenv("DEBUG_MODE", "false").lower() == "true",
            catalog=CatalogConfig.from_env(),
            translator=TranslatorConfig.from_env(),
            http=HttpConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
            databases=_connections_from_env(),
        )

        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if not self.catalog.path:
            raise ValueError("CATALOG_PATH must not be empty")

        drivers = [c.driver for c in self.databases]
        duplicates = {d.value for d in drivers if drivers.count(d) > 1}
        if duplicates:
            raise ValueError(f"TALKDB_DATABASES lists drivers more than once: {sorted(duplicates)}")

        if self.observability.log_format not in ("json", "text"):
            raise ValueError(
                f"Invalid LOG_FORMAT '{self.observability.log_format}'. Must be one of: json, text"
            )

        if not self.translator.api_key:
            logger.warning("TRANSLATOR_API_KEY is not set; natural-language queries will fail")

    def log_config(self) -> None:
        """Log configuration (redacting secrets)."""
        logger.info(
            "Server configuration loaded",
            extra={
                "debug_mode": self.debug_mode,
                "catalog_path": self.catalog.path,
                "translator_base_url": self.translator.base_url,
                "translator_model": self.translator.model,
                "http_bind": f"{self.http.host}:{self.http.port}",
                "drivers": [c.driver.value for c in self.databases],
                "log_level": self.observability.log_level,
            },
        )
