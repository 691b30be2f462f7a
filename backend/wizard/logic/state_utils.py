"""
Immutable state update utilities using Pydantic model_copy.

These functions never mutate the input state. They always return new
state objects with the requested changes applied.
"""

from datetime import UTC, datetime

from wizard.logic.exceptions import InvalidActionError
from wizard.logic.state import Game, Player, Round, RoundPlayer

_PLAYER_FIELDS = set(Player.model_fields)
_ROUND_PLAYER_FIELDS = set(RoundPlayer.model_fields)


def utc_now() -> datetime:
    return datetime.now(UTC)


def _index_of(players: tuple[Player, ...] | tuple[RoundPlayer, ...], player_id: str) -> int:
    for index, player in enumerate(players):
        if player.id == player_id:
            return index
    raise InvalidActionError(f"Unknown player {player_id!r}")


def get_player(game: Game, player_id: str) -> Player:
    """
    Return the game player with the given id.

    Raises:
        InvalidActionError: If no such player exists

    """
    return game.players[_index_of(game.players, player_id)]


def get_round_player(round_state: Round, player_id: str) -> RoundPlayer:
    return round_state.players[_index_of(round_state.players, player_id)]


def update_player(game: Game, player_id: str, **updates: object) -> Game:
    """
    Return new game with updated player.

    Args:
        game: Current game
        player_id: Player to update
        **updates: Fields to update on the player

    Returns:
        New Game with updated player

    Raises:
        InvalidActionError: If the player does not exist
        ValueError: If update fields are invalid

    """
    invalid_fields = set(updates) - _PLAYER_FIELDS
    if invalid_fields:
        raise ValueError(f"Invalid player fields: {invalid_fields}")
    index = _index_of(game.players, player_id)
    players = list(game.players)
    players[index] = game.players[index].model_copy(update=updates)
    return game.model_copy(update={"players": tuple(players)})


def update_round_player(round_state: Round, player_id: str, **updates: object) -> Round:
    """Return new round with the player's bid/tricks snapshot updated."""
    invalid_fields = set(updates) - _ROUND_PLAYER_FIELDS
    if invalid_fields:
        raise ValueError(f"Invalid round player fields: {invalid_fields}")
    index = _index_of(round_state.players, player_id)
    players = list(round_state.players)
    players[index] = round_state.players[index].model_copy(update=updates)
    return round_state.model_copy(update={"players": tuple(players)})


def replace_active_round(game: Game, round_state: Round, now: datetime | None = None) -> Game:
    """Return new game with the open round replaced and the update time bumped."""
    if game.is_complete:
        raise InvalidActionError("Game is already complete")
    if round_state.round_number != game.current_round:
        raise InvalidActionError(
            f"Round {round_state.round_number} is not the current round ({game.current_round})",
        )
    return game.model_copy(update={"active_round": round_state, "updated_at": now or utc_now()})


def touch(game: Game, now: datetime | None = None) -> Game:
    """Return new game with ``updated_at`` set to now."""
    return game.model_copy(update={"updated_at": now or utc_now()})
