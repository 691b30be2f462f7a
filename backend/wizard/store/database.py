"""SQLite database connection and schema management."""

import json
import os
import sqlite3
from pathlib import Path

import structlog
from pydantic import ValidationError

from wizard.logic.state import Game

logger = structlog.get_logger()

_DB_FILE_PERMISSIONS = 0o600

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS games (
    id TEXT PRIMARY KEY,
    game_code TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    data TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_games_game_code ON games (game_code);

CREATE INDEX IF NOT EXISTS idx_games_created_at ON games (created_at);
"""

UPSERT_GAME_SQL = """\
INSERT INTO games (id, game_code, created_at, updated_at, data) VALUES (?, ?, ?, ?, ?)
ON CONFLICT (id) DO UPDATE SET
    game_code = excluded.game_code,
    updated_at = excluded.updated_at,
    data = excluded.data
"""


def game_row(game: Game) -> tuple[str, str | None, str, str, str]:
    """Return the column values stored for a game."""
    return (
        game.id,
        game.game_code,
        game.created_at.isoformat(),
        game.updated_at.isoformat(),
        game.model_dump_json(by_alias=True),
    )


class Database:
    """SQLite database wrapper with schema management and JSON import support."""

    def __init__(self, path: str | Path) -> None:
        self._path = str(path)
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Return the active connection or raise if disconnected."""
        if self._conn is None:
            raise RuntimeError("Database is not connected")
        return self._conn

    def connect(self) -> None:
        """Open the database, apply pragmas, create schema, and harden file permissions."""
        parent = Path(self._path).parent
        parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(self._path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA busy_timeout=5000")
        self._conn.executescript(_SCHEMA_SQL)

        self._harden_permissions()

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def import_games_from_json(self, json_path: str | Path) -> int:
        """Import games exported from browser storage (a JSON array of game documents).

        Returns the number of games imported. Games whose id is already stored
        are skipped. The import runs in a single transaction; any invalid
        document aborts it with a full rollback.
        """
        path = Path(json_path)
        if not path.exists():
            return 0

        games = self._parse_games_json(path)
        conn = self.connection
        imported = 0
        try:
            conn.execute("BEGIN")
            for game in games:
                cursor = conn.execute(
                    "INSERT OR IGNORE INTO games (id, game_code, created_at, updated_at, data) VALUES (?, ?, ?, ?, ?)",
                    game_row(game),
                )
                imported += cursor.rowcount
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            raise

        logger.info("imported games from json export", count=imported, path=str(path))
        return imported

    @staticmethod
    def _parse_games_json(path: Path) -> list[Game]:
        """Parse and validate the exported game list."""
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            msg = f"Failed to read game export: {path}"
            raise OSError(msg) from exc
        except ValueError as exc:
            msg = f"Malformed JSON in game export: {path}"
            raise OSError(msg) from exc

        if not isinstance(data, list):
            msg = f"Expected a JSON array of games in {path}"
            raise OSError(msg)

        games: list[Game] = []
        for index, record in enumerate(data):
            try:
                games.append(Game.model_validate(record))
            except ValidationError as exc:
                msg = f"Invalid game record at index {index} in {path}"
                raise OSError(msg) from exc
        return games

    def _harden_permissions(self) -> None:
        """Set restrictive file permissions on POSIX systems (best effort).

        Covers the WAL/SHM sibling files as well, since they hold game data too.
        """
        if os.name != "posix":  # pragma: no cover
            return
        for suffix in ("", "-wal", "-shm"):
            p = Path(self._path + suffix)
            if p.exists():
                try:
                    p.chmod(_DB_FILE_PERMISSIONS)
                except OSError:
                    logger.warning("could not set file permissions", permissions=oct(_DB_FILE_PERMISSIONS), path=str(p))
