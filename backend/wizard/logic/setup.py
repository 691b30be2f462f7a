"""
Game setup: validation of the setup form and creation of a new game.
"""

from datetime import datetime
from uuid import uuid4

import structlog
from pydantic import Field

from wizard.logic.exceptions import InvalidSetupError
from wizard.logic.round import new_round
from wizard.logic.settings import (
    DEFAULT_TOTAL_ROUNDS,
    MAX_PLAYERS,
    MAX_ROUNDS,
    MIN_PLAYERS,
    MIN_ROUNDS,
    GameRules,
)
from wizard.logic.state import Game, Player
from wizard.logic.state_utils import utc_now
from wizard.logic.types import DocumentModel

logger = structlog.get_logger()


class GameSetup(DocumentModel):
    """Input of the setup form. Validated by validate_setup, not by the model."""

    player_names: list[str]
    total_rounds: int = DEFAULT_TOTAL_ROUNDS
    rules: GameRules = Field(default_factory=GameRules)


def validate_setup(player_names: list[str], total_rounds: int) -> list[str]:
    """Return every user-facing problem with the setup; empty when it is valid."""
    errors: list[str] = []
    names = [name.strip() for name in player_names]

    if sum(1 for name in names if name) < MIN_PLAYERS:
        errors.append(f"You need at least {MIN_PLAYERS} players")
    if len(names) > MAX_PLAYERS:
        errors.append(f"You can have at most {MAX_PLAYERS} players")
    if any(not name for name in names):
        errors.append("All player names must be filled")
    if len({name.lower() for name in names}) != len(names):
        errors.append("Player names must be unique")
    if not MIN_ROUNDS <= total_rounds <= MAX_ROUNDS:
        errors.append(f"Total rounds must be between {MIN_ROUNDS} and {MAX_ROUNDS}")

    return errors


def default_game_name(now: datetime) -> str:
    return f"Wizard Game - {now:%Y-%m-%d}"


def create_game(
    setup: GameSetup,
    *,
    game_id: str | None = None,
    name: str | None = None,
    game_code: str | None = None,
    now: datetime | None = None,
) -> Game:
    """
    Create a new game from a validated setup, with its first round open.

    Raises:
        InvalidSetupError: With every validation message; no game is created

    """
    errors = validate_setup(setup.player_names, setup.total_rounds)
    if errors:
        raise InvalidSetupError(errors)

    created_at = now or utc_now()
    players = tuple(Player(id=f"player-{index}", name=name.strip()) for index, name in enumerate(setup.player_names))
    game = Game(
        id=game_id or str(uuid4()),
        name=name or default_game_name(created_at),
        players=players,
        current_round=1,
        total_rounds=setup.total_rounds,
        rules=setup.rules,
        created_at=created_at,
        updated_at=created_at,
        game_code=game_code,
        is_live=game_code is not None,
        active_round=new_round(1, setup.total_rounds, players),
    )
    logger.info(
        "game created",
        game_id=game.id,
        num_players=len(players),
        total_rounds=game.total_rounds,
        edition=game.rules.edition,
    )
    return game
