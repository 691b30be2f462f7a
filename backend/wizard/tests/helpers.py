"""Game state builders shared by unit and integration tests."""

from collections.abc import Sequence
from datetime import UTC, datetime

from wizard.logic.enums import Edition
from wizard.logic.round import complete_bidding, complete_round, open_round, set_bid, set_tricks
from wizard.logic.settings import CustomRules, GameRules
from wizard.logic.setup import GameSetup, create_game
from wizard.logic.state import Game, Round, RoundPlayer
from wizard.logic.state_utils import replace_active_round

FIXED_NOW = datetime(2025, 3, 1, 18, 0, 0, tzinfo=UTC)


def make_rules(*, edition: Edition = Edition.STANDARD, no_round_number_bid: bool = False) -> GameRules:
    return GameRules(edition=edition, custom_rules=CustomRules(no_round_number_bid=no_round_number_bid))


def make_game(
    names: Sequence[str] = ("Alice", "Bob", "Carol"),
    total_rounds: int = 10,
    *,
    rules: GameRules | None = None,
    game_id: str = "game-1",
    game_code: str | None = None,
) -> Game:
    """Create a fresh game with round 1 open, at a fixed point in time."""
    setup = GameSetup(player_names=list(names), total_rounds=total_rounds, rules=rules or GameRules())
    return create_game(setup, game_id=game_id, game_code=game_code, now=FIXED_NOW)


def make_round(
    round_number: int,
    cards: int,
    *,
    bids: Sequence[int | None] = (),
    tricks: Sequence[int | None] = (),
    **fields: object,
) -> Round:
    """Build a round directly, one RoundPlayer per bid (ids p0, p1, ...)."""
    count = max(len(bids), len(tricks))
    players = tuple(
        RoundPlayer(
            id=f"p{i}",
            name=f"Player {i}",
            bid=bids[i] if i < len(bids) else None,
            tricks=tricks[i] if i < len(tricks) else None,
        )
        for i in range(count)
    )
    return Round(round_number=round_number, cards_in_hand=cards, players=players, **fields)


def play_round(game: Game, bids: Sequence[int], tricks: Sequence[int]) -> Game:
    """Enter bids and tricks for the open round in seating order and score it."""
    round_state = open_round(game)
    for player, bid in zip(round_state.players, bids, strict=True):
        round_state = set_bid(round_state, player.id, bid)
    round_state = complete_bidding(round_state, game.rules)
    for player, count in zip(round_state.players, tricks, strict=True):
        round_state = set_tricks(round_state, player.id, count)
    return complete_round(replace_active_round(game, round_state, FIXED_NOW), FIXED_NOW)
