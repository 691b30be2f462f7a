"""Read-only live view of a game joined by its share code."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from wizard.logic.state_utils import utc_now
from wizard.store.game_code import normalize_game_code
from wizard.store.repository import StoreError

if TYPE_CHECKING:
    from collections.abc import Callable

    from wizard.logic.state import Game
    from wizard.store.repository import GameRepository, Unsubscribe

logger = structlog.get_logger()

LIVE_SYNC_UNAVAILABLE_MESSAGE = "Live sync requires a cloud connection. Please check your setup."


class ConnectionStatus(StrEnum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class LiveViewerError(Exception):
    """Recoverable failure to follow a live game; the message is shown to the viewer."""


class LiveSyncUnavailableError(LiveViewerError):
    def __init__(self) -> None:
        super().__init__(LIVE_SYNC_UNAVAILABLE_MESSAGE)


class GameCodeNotFoundError(LiveViewerError):
    def __init__(self, game_code: str) -> None:
        self.game_code = game_code
        super().__init__(f'Game not found. Please check the game code "{game_code}".')


class LiveGameViewer:
    """
    Follows one game as a spectator.

    Every snapshot pushed by the repository replaces the local copy
    (last write wins). Snapshots for other games are ignored.
    """

    def __init__(self, repository: GameRepository, on_snapshot: Callable[[Game], None] | None = None) -> None:
        self._repository = repository
        self._on_snapshot = on_snapshot
        self._game: Game | None = None
        self._status = ConnectionStatus.DISCONNECTED
        self._last_update: datetime | None = None
        self._unsubscribe: Unsubscribe | None = None

    @property
    def game(self) -> Game | None:
        return self._game

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def last_update(self) -> datetime | None:
        return self._last_update

    async def connect(self, raw_code: str) -> Game:
        """
        Load the game with this share code and subscribe to its updates.

        Raises:
            GameCodeNotFoundError: When the code is malformed or no game uses it
            LiveSyncUnavailableError: When no game is found and the store has no live support
            LiveViewerError: When the store fails

        """
        self.close()
        self._game = None
        code = normalize_game_code(raw_code)
        if code is None:
            raise GameCodeNotFoundError(raw_code.strip().upper())

        self._status = ConnectionStatus.CONNECTING
        try:
            game = await self._repository.load_game_by_code(code)
        except StoreError as e:
            self._status = ConnectionStatus.DISCONNECTED
            raise LiveViewerError(f"Failed to connect to game: {e}") from e

        if game is None:
            self._status = ConnectionStatus.DISCONNECTED
            if not self._repository.supports_live_updates:
                raise LiveSyncUnavailableError
            raise GameCodeNotFoundError(code)

        self._apply(game)
        if self._repository.supports_live_updates:
            self._unsubscribe = self._repository.subscribe_to_game(
                game.id,
                self._apply,
                last_seen=game.updated_at,
            )
        self._status = ConnectionStatus.CONNECTED
        logger.info("live viewer connected", game_id=game.id, game_code=code)
        return game

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._status != ConnectionStatus.DISCONNECTED:
            logger.info("live viewer disconnected", game_id=self._game.id if self._game else None)
        self._status = ConnectionStatus.DISCONNECTED

    def _apply(self, game: Game) -> None:
        if self._game is not None and game.id != self._game.id:
            return
        self._game = game
        self._last_update = utc_now()
        if self._on_snapshot is not None:
            self._on_snapshot(game)
