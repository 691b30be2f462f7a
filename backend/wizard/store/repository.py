"""Abstract interface for game persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from wizard.store.game_code import create_game_code

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from wizard.logic.state import Game

    GameUpdateCallback = Callable[[Game], None]
    Unsubscribe = Callable[[], None]


class StoreError(Exception):
    """The backing store is unreachable, misconfigured, or rejected the request."""


def _noop_unsubscribe() -> None:
    return None


class GameRepository(ABC):
    """
    Abstract interface for game persistence.

    Saves are whole-document upserts keyed by game id: the last write wins.
    Every method raises StoreError when the backing store fails.
    Implementations: SqliteGameRepository (local), HostedGameRepository (cloud).
    """

    supports_live_updates: ClassVar[bool] = False
    storage_mode: ClassVar[str] = "local"

    @abstractmethod
    async def save_game(self, game: Game) -> None: ...

    @abstractmethod
    async def load_games(self) -> list[Game]:
        """Return all stored games, newest first."""
        ...

    @abstractmethod
    async def load_game(self, game_id: str) -> Game | None: ...

    @abstractmethod
    async def delete_game(self, game_id: str) -> None: ...

    async def update_game(self, game: Game) -> None:
        await self.save_game(game)

    async def load_game_by_code(self, game_code: str) -> Game | None:
        """Return the most recently updated game with this share code."""
        matches = [g for g in await self.load_games() if g.game_code == game_code]
        if not matches:
            return None
        return max(matches, key=lambda g: g.updated_at)

    def subscribe_to_game(  # noqa: ARG002
        self,
        game_id: str,
        on_update: GameUpdateCallback,
        *,
        last_seen: datetime | None = None,
    ) -> Unsubscribe:
        """Deliver full-game snapshots to ``on_update`` until unsubscribed.

        ``last_seen`` is the ``updated_at`` of the snapshot the subscriber already
        holds; that snapshot is not delivered again. Backends without live support
        return a no-op unsubscribe and never call back.
        """
        return _noop_unsubscribe

    def create_game_code(self) -> str:
        return create_game_code()

    async def close(self) -> None:
        """Release connections held by the repository."""
