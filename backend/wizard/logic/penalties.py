"""
Penalty accumulation.

Penalties are logged against the current round and counted when that round
is scored. Each logged penalty raises the player's multiplier, which doubles
the suggested amount of the next one. Resetting the multiplier never removes
penalties already logged.
"""

from datetime import datetime
from uuid import uuid4

import structlog

from wizard.logic.enums import PenaltyType
from wizard.logic.exceptions import InvalidActionError
from wizard.logic.state import Game, Penalty
from wizard.logic.state_utils import get_player, update_player, utc_now

logger = structlog.get_logger()

BASE_PENALTY_POINTS = -10


def default_penalty_points(multiplier: int) -> int:
    """Suggested penalty for a player at the given multiplier: -10, -20, -40, ..."""
    if multiplier < 1:
        raise ValueError(f"penalty multiplier must be at least 1, got {multiplier}")
    return BASE_PENALTY_POINTS * 2 ** (multiplier - 1)


def suggested_penalty_points(game: Game, player_id: str) -> int:
    return default_penalty_points(get_player(game, player_id).penalty_multiplier)


def add_penalty(  # noqa: PLR0913
    game: Game,
    player_id: str,
    penalty_type: PenaltyType,
    description: str,
    points: int | None = None,
    *,
    now: datetime | None = None,
    penalty_id: str | None = None,
) -> Game:
    """
    Log a penalty against a player for the current round.

    A description that is blank after trimming makes this a no-op and the
    game is returned unchanged. When ``points`` is omitted the suggested
    amount for the player's multiplier is used; any given value is taken
    as-is.

    Raises:
        InvalidActionError: If the game is complete or the player is unknown

    """
    if game.is_complete:
        raise InvalidActionError("Cannot add a penalty to a completed game")
    player = get_player(game, player_id)
    text = description.strip()
    if not text:
        return game

    timestamp = now or utc_now()
    penalty = Penalty(
        id=penalty_id or str(uuid4()),
        type=penalty_type,
        description=text,
        points=default_penalty_points(player.penalty_multiplier) if points is None else points,
        round_number=game.current_round,
        timestamp=timestamp,
    )
    logger.info(
        "penalty added",
        game_id=game.id,
        player_id=player_id,
        penalty_type=penalty_type,
        points=penalty.points,
        round_number=penalty.round_number,
    )
    updated = update_player(
        game,
        player_id,
        penalties=(*player.penalties, penalty),
        penalty_multiplier=player.penalty_multiplier + 1,
    )
    return updated.model_copy(update={"updated_at": timestamp})


def set_penalty_multiplier(game: Game, player_id: str, multiplier: int, now: datetime | None = None) -> Game:
    """Set a player's multiplier to an explicit value. Logged penalties are kept."""
    if multiplier < 1:
        raise InvalidActionError(f"Penalty multiplier must be at least 1, got {multiplier}")
    updated = update_player(game, player_id, penalty_multiplier=multiplier)
    return updated.model_copy(update={"updated_at": now or utc_now()})


def reset_penalty_multiplier(game: Game, player_id: str, now: datetime | None = None) -> Game:
    return set_penalty_multiplier(game, player_id, 1, now)
