"""
TalkDB Server - Main entry point.

This module starts the TalkDB server with all components:
- Metadata store (loaded from the catalog file)
- Live-database introspectors (one per configured driver)
- SQL translator (chat completions client)
- HTTP API (FastAPI served by uvicorn)

Usage:
    python -m talkdb.server.main

Configuration is entirely via environment variables.
See config.py for all available settings.

Invariants:
    - Exactly one MetadataStore per process, passed explicitly to its users
    - The catalog is loaded before the HTTP API accepts requests
    - Live connections are closed on shutdown
"""

from __future__ import annotations

import logging
import sys

import json_log_formatter
import uvicorn

from .api import create_app
from .catalog import MetadataStore
from .config import ServerConfig
from .handler import QueryOrchestrator
from .translate import SqlTranslator

logger = logging.getLogger(__name__)


def setup_logging(config: ServerConfig) -> None:
    """Configure logging based on configuration.

    Args:
        config: Server configuration
    """
    level_name = "DEBUG" if config.debug_mode else config.observability.log_level.upper()
    level = getattr(logging, level_name, logging.INFO)

    if config.observability.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def build_orchestrator(config: ServerConfig) -> QueryOrchestrator:
    """Wire the store, translator and introspectors together."""
    store = MetadataStore(config.catalog.path)
    translator = SqlTranslator(
        api_key=config.translator.api_key,
        base_url=config.translator.base_url,
        model=config.translator.model,
        temperature=config.translator.temperature,
        timeout_seconds=config.translator.timeout_seconds,
    )
    return QueryOrchestrator.from_connections(store, config.databases, translator)


def main() -> None:
    """Main entry point."""
    try:
        config = ServerConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config)
    config.log_config()

    orchestrator = build_orchestrator(config)
    app = create_app(orchestrator)

    logger.info(
        f"Starting TalkDB server on {config.http.host}:{config.http.port} "
        f"with drivers {orchestrator.drivers}"
    )
    try:
        uvicorn.run(app, host=config.http.host, port=config.http.port, log_config=None)
    finally:
        orchestrator.close()
        logger.info("TalkDB server stopped")


if __name__ == "__main__":
    main()
