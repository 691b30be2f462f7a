"""SQLite-backed game repository for local play."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from wizard.logic.state import Game
from wizard.store.database import UPSERT_GAME_SQL, game_row
from wizard.store.repository import GameRepository, StoreError

if TYPE_CHECKING:
    from wizard.store.database import Database

logger = structlog.get_logger()


class SqliteGameRepository(GameRepository):
    """SQLite implementation of GameRepository.

    Stores full game documents as JSON with indexed columns for queries.
    Live updates are not supported: subscribe_to_game returns a no-op.
    """

    storage_mode = "local"

    def __init__(self, db: Database, *, owns_db: bool = False) -> None:
        self._db = db
        self._owns_db = owns_db
        self._lock = asyncio.Lock()

    async def save_game(self, game: Game) -> None:
        """Insert or replace the stored document for this game."""
        async with self._lock:
            try:
                self._db.connection.execute(UPSERT_GAME_SQL, game_row(game))
                self._db.connection.commit()
            except sqlite3.Error as exc:
                self._db.connection.rollback()
                raise StoreError(f"Failed to save game {game.id}") from exc
        logger.debug("game saved", game_id=game.id, storage="local")

    async def load_games(self) -> list[Game]:
        """Return every stored game, newest first. Unreadable documents are skipped."""
        rows = self._fetch("SELECT data FROM games ORDER BY created_at DESC", ())
        games = []
        for (data,) in rows:
            game = self._parse(data)
            if game is not None:
                games.append(game)
        return games

    async def load_game(self, game_id: str) -> Game | None:
        rows = self._fetch("SELECT data FROM games WHERE id = ?", (game_id,))
        if not rows:
            return None
        return self._parse(rows[0][0])

    async def load_game_by_code(self, game_code: str) -> Game | None:
        rows = self._fetch(
            "SELECT data FROM games WHERE game_code = ? ORDER BY updated_at DESC LIMIT 1",
            (game_code,),
        )
        if not rows:
            return None
        return self._parse(rows[0][0])

    async def delete_game(self, game_id: str) -> None:
        async with self._lock:
            try:
                cursor = self._db.connection.execute("DELETE FROM games WHERE id = ?", (game_id,))
                self._db.connection.commit()
            except sqlite3.Error as exc:
                self._db.connection.rollback()
                raise StoreError(f"Failed to delete game {game_id}") from exc
        if cursor.rowcount == 0:
            logger.warning("delete_game had no effect (not found)", game_id=game_id)

    async def close(self) -> None:
        if self._owns_db:
            self._db.close()

    def _fetch(self, sql: str, params: tuple[str, ...]) -> list[tuple[str]]:
        try:
            return self._db.connection.execute(sql, params).fetchall()
        except (sqlite3.Error, RuntimeError) as exc:
            raise StoreError("Failed to read games from the local store") from exc

    @staticmethod
    def _parse(data: str) -> Game | None:
        try:
            return Game.model_validate(json.loads(data))
        except (ValueError, ValidationError):
            logger.warning("skipping unreadable game document")
            return None
