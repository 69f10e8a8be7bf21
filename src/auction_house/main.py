"""Application bootstrap.

Wires settings → persistence → engine → HTTP app and runs it under uvicorn.
"""

from __future__ import annotations

import logging
from typing import Any

from .core.clock import IClock
from .core.config import Settings, load_settings
from .engine import AuctionEngine
from .observability.logger import setup_logging
from .storage import JsonFilePersistence

logger = logging.getLogger(__name__)


def build_engine(settings: Settings, clock: IClock | None = None) -> AuctionEngine:
    """Load the data file and seed default admin credentials if needed."""
    persistence = JsonFilePersistence(
        settings.persistence.data_file,
        max_attempts=settings.persistence.max_attempts,
        retry_backoff_ms=settings.persistence.retry_backoff_ms,
    )
    engine = AuctionEngine.from_persistence(
        persistence,
        clock=clock,
        hash_iterations=settings.admin.hash_iterations,
    )
    engine.ensure_admin(
        settings.admin.default_username,
        settings.admin.default_password,
    )
    return engine


def serve(
    config_path: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> None:
    """Main entry point. Load config, wire modules, run the HTTP server."""
    import uvicorn

    from .ui.app import create_app

    settings = load_settings(config_path=config_path, overrides=overrides)
    setup_logging(
        level=settings.observability.log_level,
        format=settings.observability.log_format,
    )

    engine = build_engine(settings)
    app = create_app(engine, settings=settings)

    logger.info(
        "Auction site running on http://%s:%d",
        settings.server.host, settings.server.port,
    )
    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )
