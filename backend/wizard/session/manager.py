from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from wizard.logic import penalties
from wizard.logic import round as round_logic
from wizard.logic.enums import GameAction
from wizard.logic.exceptions import InvalidActionError
from wizard.logic.scoring import final_standings, running_totals, score_progression, winner
from wizard.logic.setup import create_game
from wizard.logic.state_utils import replace_active_round
from wizard.session.types import (
    AdjustActionData,
    CorrectBidActionData,
    GameNotFoundError,
    GameStandings,
    MultiplierActionData,
    PenaltyActionData,
    PlayerActionData,
    SetValueActionData,
    TrumpSuitActionData,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from wizard.logic.setup import GameSetup
    from wizard.logic.state import Game, Round
    from wizard.store.repository import GameRepository

    GameEndCallback = Callable[[Game], None]
    ActionHandler = Callable[[Game, dict[str, Any]], Game]

logger = structlog.get_logger()


def _round_action(game: Game, apply: Callable[[Round], Round]) -> Game:
    return replace_active_round(game, apply(round_logic.open_round(game)))


def _adjust_bid(game: Game, data: dict[str, Any]) -> Game:
    args = AdjustActionData.model_validate(data)
    return _round_action(game, lambda r: round_logic.adjust_bid(r, args.player_id, args.delta))


def _set_bid(game: Game, data: dict[str, Any]) -> Game:
    args = SetValueActionData.model_validate(data)
    return _round_action(game, lambda r: round_logic.set_bid(r, args.player_id, args.value))


def _adjust_tricks(game: Game, data: dict[str, Any]) -> Game:
    args = AdjustActionData.model_validate(data)
    return _round_action(game, lambda r: round_logic.adjust_tricks(r, args.player_id, args.delta))


def _set_tricks(game: Game, data: dict[str, Any]) -> Game:
    args = SetValueActionData.model_validate(data)
    return _round_action(game, lambda r: round_logic.set_tricks(r, args.player_id, args.value))


def _complete_bidding(game: Game, _data: dict[str, Any]) -> Game:
    return _round_action(game, lambda r: round_logic.complete_bidding(r, game.rules))


def _complete_round(game: Game, _data: dict[str, Any]) -> Game:
    return round_logic.complete_round(game)


def _toggle_voided_trick(game: Game, _data: dict[str, Any]) -> Game:
    return _round_action(game, lambda r: round_logic.toggle_voided_trick(r, game.rules))


def _correct_bid(game: Game, data: dict[str, Any]) -> Game:
    args = CorrectBidActionData.model_validate(data)
    return _round_action(
        game,
        lambda r: round_logic.correct_bid(r, game.rules, args.player_id, increase=args.increase),
    )


def _set_trump_suit(game: Game, data: dict[str, Any]) -> Game:
    args = TrumpSuitActionData.model_validate(data)
    return _round_action(game, lambda r: round_logic.set_trump_suit(r, args.trump_suit))


def _add_penalty(game: Game, data: dict[str, Any]) -> Game:
    args = PenaltyActionData.model_validate(data)
    return penalties.add_penalty(game, args.player_id, args.penalty_type, args.description, args.points)


def _reset_penalty_multiplier(game: Game, data: dict[str, Any]) -> Game:
    args = PlayerActionData.model_validate(data)
    return penalties.reset_penalty_multiplier(game, args.player_id)


def _set_penalty_multiplier(game: Game, data: dict[str, Any]) -> Game:
    args = MultiplierActionData.model_validate(data)
    return penalties.set_penalty_multiplier(game, args.player_id, args.multiplier)


_ACTION_HANDLERS: dict[GameAction, ActionHandler] = {
    GameAction.ADJUST_BID: _adjust_bid,
    GameAction.SET_BID: _set_bid,
    GameAction.ADJUST_TRICKS: _adjust_tricks,
    GameAction.SET_TRICKS: _set_tricks,
    GameAction.COMPLETE_BIDDING: _complete_bidding,
    GameAction.COMPLETE_ROUND: _complete_round,
    GameAction.TOGGLE_VOIDED_TRICK: _toggle_voided_trick,
    GameAction.CORRECT_BID: _correct_bid,
    GameAction.SET_TRUMP_SUIT: _set_trump_suit,
    GameAction.ADD_PENALTY: _add_penalty,
    GameAction.RESET_PENALTY_MULTIPLIER: _reset_penalty_multiplier,
    GameAction.SET_PENALTY_MULTIPLIER: _set_penalty_multiplier,
}


class GameSessionManager:
    """
    Holds the games being scored and applies user intents to them.

    Every successful mutation replaces the in-memory game and schedules a
    background save. Saves are fire-and-forget: the session never waits on
    them and a failed save is logged without rolling back the game.
    """

    def __init__(self, repository: GameRepository, on_game_end: GameEndCallback | None = None) -> None:
        self._repository = repository
        self._on_game_end = on_game_end
        self._games: dict[str, Game] = {}
        self._game_locks: dict[str, asyncio.Lock] = {}
        self._load_lock = asyncio.Lock()
        self._save_locks: dict[str, asyncio.Lock] = {}
        self._latest_snapshots: dict[str, Game] = {}  # newest snapshot scheduled for saving, per game
        self._pending_saves: set[asyncio.Task[None]] = set()

    @property
    def repository(self) -> GameRepository:
        return self._repository

    @property
    def game_count(self) -> int:
        return len(self._games)

    @property
    def pending_save_count(self) -> int:
        return len(self._pending_saves)

    def get_game(self, game_id: str) -> Game | None:
        return self._games.get(game_id)

    async def start_game(self, setup: GameSetup, name: str | None = None) -> Game:
        """
        Create a game from the setup form and start tracking it.

        Every game gets a share code; it is only marked live when the
        repository can push updates to viewers.

        Raises:
            InvalidSetupError: When the setup does not validate

        """
        game = create_game(setup, name=name, game_code=self._repository.create_game_code())
        if not self._repository.supports_live_updates:
            game = game.model_copy(update={"is_live": False})
        self._track(game)
        self._schedule_save(game)
        return game

    async def open_game(self, game_id: str) -> Game:
        """Return the tracked game, loading it from the store on first access.

        Raises:
            GameNotFoundError: When the game is neither tracked nor stored

        """
        game = self._games.get(game_id)
        if game is not None:
            return game
        async with self._load_lock:
            # another request may have loaded it while we waited
            game = self._games.get(game_id)
            if game is not None:
                return game
            stored = await self.load_game(game_id)
            if stored is None:
                raise GameNotFoundError(game_id)
            return self._track(round_logic.ensure_active_round(stored))

    async def handle_action(self, game_id: str, action: GameAction, data: dict[str, Any] | None = None) -> Game:
        """
        Apply one user intent to a game.

        Raises:
            GameNotFoundError: When the game is unknown
            InvalidActionError: When the intent or its data is not valid now
            PhaseTransitionError: When a phase gate blocks

        """
        game = await self.open_game(game_id)
        handler = _ACTION_HANDLERS.get(action)
        if handler is None:  # pragma: no cover
            raise InvalidActionError(f"Unsupported action: {action}")

        async with self._game_locks[game_id]:
            game = self._games[game_id]
            try:
                updated = handler(game, data or {})
            except ValidationError as e:
                raise InvalidActionError(f"Invalid data for {action}: {e.errors(include_url=False)}") from e

            if updated is game:
                return game
            self._games[game_id] = updated

        logger.debug("game action applied", game_id=game_id, action=action)
        self._schedule_save(updated)
        if updated.is_complete and not game.is_complete:
            self._notify_game_end(updated)
        return updated

    def get_standings(self, game: Game) -> GameStandings:
        return GameStandings(
            game_id=game.id,
            is_complete=game.is_complete,
            standings=final_standings(game),
            progression=score_progression(game),
            running_totals=running_totals(game),
            winner=winner(game),
        )

    async def list_games(self) -> list[Game]:
        """Return stored games, newest first. A failing store yields an empty list."""
        try:
            return await self._repository.load_games()
        except Exception:
            logger.exception("failed to load games")
            return []

    async def load_game(self, game_id: str) -> Game | None:
        try:
            return await self._repository.load_game(game_id)
        except Exception:
            logger.exception("failed to load game", game_id=game_id)
            return None

    async def delete_game(self, game_id: str) -> bool:
        """Forget a game and remove it from the store. Returns False when the store failed."""
        self._games.pop(game_id, None)
        self._game_locks.pop(game_id, None)
        self._latest_snapshots.pop(game_id, None)
        try:
            await self._repository.delete_game(game_id)
        except Exception:
            logger.exception("failed to delete game", game_id=game_id)
            return False
        logger.info("game deleted", game_id=game_id)
        return True

    async def wait_for_pending_saves(self) -> None:
        while self._pending_saves:
            await asyncio.gather(*self._pending_saves, return_exceptions=True)

    async def close(self) -> None:
        await self.wait_for_pending_saves()
        await self._repository.close()

    def _track(self, game: Game) -> Game:
        self._game_locks.setdefault(game.id, asyncio.Lock())
        return self._games.setdefault(game.id, game)

    def _schedule_save(self, game: Game) -> None:
        self._latest_snapshots[game.id] = game
        task = asyncio.get_running_loop().create_task(self._save(game))
        self._pending_saves.add(task)
        task.add_done_callback(self._pending_saves.discard)

    async def _save(self, game: Game) -> None:
        """
        Best-effort persist of a game snapshot.

        Saves of one game run one at a time, and a snapshot that a newer one
        has replaced is skipped, so the store never goes back to an older state.
        """
        async with self._save_locks.setdefault(game.id, asyncio.Lock()):
            if self._latest_snapshots.get(game.id) is not game:
                logger.debug("skipping superseded save", game_id=game.id)
                return
            try:
                await self._repository.save_game(game)
            except Exception:
                logger.exception("failed to save game", game_id=game.id)
            finally:
                if self._latest_snapshots.get(game.id) is game:
                    del self._latest_snapshots[game.id]

    def _notify_game_end(self, game: Game) -> None:
        logger.info("game complete", game_id=game.id)
        if self._on_game_end is None:
            return
        try:
            self._on_game_end(game)
        except Exception:
            logger.exception("game end callback failed", game_id=game.id)
