"""Entry point for embedding the style assistant.

Configures logging, loads the bundled catalog, and creates a session for
presentation code to drive.
"""

from __future__ import annotations

import structlog

from common import setup_logging

from style_assistant.catalog.store import CatalogStore
from style_assistant.config import Settings, get_settings
from style_assistant.session import StylistSession
from style_assistant.streaming import SessionEventStream

logger = structlog.get_logger(__name__)


def build_session(
    settings: Settings | None = None,
    store: CatalogStore | None = None,
    stream: SessionEventStream | None = None,
) -> StylistSession:
    """Construct a fully-configured session.

    The ecommerce mode is read from *settings* once here and stays fixed for
    the session's lifetime.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.environment)

    store = store or CatalogStore.load()
    session = StylistSession(settings, store, stream=stream)

    logger.info(
        "session_ready",
        service=settings.service_name,
        version=settings.service_version,
        session_id=session.id,
        mode=session.mode.value,
        catalog_products=len(store),
    )
    return session
