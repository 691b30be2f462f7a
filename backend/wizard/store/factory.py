"""Storage backend selection."""

import structlog

from wizard.store.database import Database
from wizard.store.hosted import HostedGameRepository
from wizard.store.repository import GameRepository
from wizard.store.settings import StoreSettings
from wizard.store.sqlite import SqliteGameRepository

logger = structlog.get_logger()


def create_game_repository(settings: StoreSettings | None = None) -> GameRepository:
    """Pick the storage backend once at startup.

    The hosted store is used when both its URL and key are configured,
    the local SQLite file otherwise.
    """
    settings = settings or StoreSettings()
    if settings.cloud_configured:
        logger.info("using hosted game store", table=settings.table)
        return HostedGameRepository(
            settings.cloud_url,
            settings.cloud_key,
            table=settings.table,
            poll_interval=settings.poll_interval_seconds,
            timeout=settings.request_timeout_seconds,
        )

    db = Database(settings.database_path)
    db.connect()
    logger.info("using local game store", database_path=settings.database_path)
    return SqliteGameRepository(db, owns_db=True)
