"""Game persistence: repository interface, local and hosted backends, backend selection."""

from wizard.store.database import Database
from wizard.store.factory import create_game_repository
from wizard.store.hosted import HostedGameRepository
from wizard.store.repository import GameRepository, StoreError
from wizard.store.settings import StoreSettings
from wizard.store.sqlite import SqliteGameRepository

__all__ = [
    "Database",
    "GameRepository",
    "HostedGameRepository",
    "SqliteGameRepository",
    "StoreError",
    "StoreSettings",
    "create_game_repository",
]
