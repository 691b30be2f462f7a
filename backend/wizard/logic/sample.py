"""Sample game generation for development and demos."""

import random
from datetime import datetime

from wizard.logic.enums import Edition, PenaltyType, RoundPhase
from wizard.logic.round import cards_in_hand, dealer_index
from wizard.logic.scoring import replay_totals
from wizard.logic.settings import CustomRules, GameRules
from wizard.logic.state import Game, Penalty, Player, Round, RoundPlayer
from wizard.logic.state_utils import utc_now

SAMPLE_TOTAL_ROUNDS = 10
SAMPLE_GAME_CODE = "SAMPLE"

# (player name, [(penalty id, round, type, description, points), ...])
_SAMPLE_PLAYERS: list[tuple[str, list[tuple[str, int, PenaltyType, str, int]]]] = [
    (
        "Alice",
        [
            ("p1", 3, PenaltyType.WRONG_PLAY, "Wrong card played", -10),
            ("p2", 7, PenaltyType.WRONG_DEAL, "Dealt wrong", -20),
        ],
    ),
    ("Bob", [("p3", 5, PenaltyType.WRONG_BID, "Forgot to bid", -10)]),
    ("Charlie", []),
    (
        "Diana",
        [
            ("p4", 2, PenaltyType.WRONG_PLAY, "Played out of turn", -10),
            ("p5", 6, PenaltyType.WRONG_PLAY, "Wrong suit", -20),
            ("p6", 9, PenaltyType.OTHER_MISTAKE, "Miscounted tricks", -40),
        ],
    ),
    ("Eve", []),
    ("Frank", [("p7", 4, PenaltyType.OTHER_MISTAKE, "Dropped cards", -10)]),
]

_MISS_CHANCE = 0.2
_EXCEED_CHANCE = 0.1


def _sample_tricks(rng: random.Random, bid: int, cards: int) -> int:
    roll = rng.random()
    if roll < _MISS_CHANCE:
        return max(0, bid - 1)
    if roll < _MISS_CHANCE + _EXCEED_CHANCE:
        return min(cards, bid + 1)
    return bid


def generate_sample_game(seed: int | None = None, now: datetime | None = None) -> Game:
    """
    Build a completed six-player, ten-round game with plausible results.

    Bids are random; most players make their bid, some miss or exceed it by
    one. Trick totals are not forced to match the hand size, so the rounds
    are display data and do not pass the tricks gate. Stored scores come from
    the same replay used for final standings.
    """
    rng = random.Random(seed)  # noqa: S311
    created_at = now or utc_now()

    players = tuple(
        Player(
            id=str(index),
            name=name,
            penalties=tuple(
                Penalty(
                    id=penalty_id,
                    type=penalty_type,
                    description=description,
                    points=points,
                    round_number=round_number,
                    timestamp=created_at,
                )
                for penalty_id, round_number, penalty_type, description, points in penalties
            ),
            penalty_multiplier=len(penalties) + 1,
        )
        for index, (name, penalties) in enumerate(_SAMPLE_PLAYERS, start=1)
    )

    rounds = []
    for round_number in range(1, SAMPLE_TOTAL_ROUNDS + 1):
        cards = cards_in_hand(round_number, SAMPLE_TOTAL_ROUNDS)
        dealer = dealer_index(round_number, len(players))
        snapshots = []
        for index, player in enumerate(players):
            bid = rng.randint(0, cards)
            snapshots.append(
                RoundPlayer(
                    id=player.id,
                    name=player.name,
                    bid=bid,
                    tricks=_sample_tricks(rng, bid, cards),
                    is_dealer=index == dealer,
                ),
            )
        rounds.append(
            Round(
                round_number=round_number,
                cards_in_hand=cards,
                players=tuple(snapshots),
                is_complete=True,
                dealer_index=dealer,
                phase=RoundPhase.COMPLETE,
            ),
        )

    totals = replay_totals(players, tuple(rounds))
    return Game(
        id=f"sample-game-{int(created_at.timestamp() * 1000)}",
        name="Sample Game (Dev)",
        players=tuple(p.model_copy(update={"score": totals[p.id]}) for p in players),
        rounds=tuple(rounds),
        current_round=SAMPLE_TOTAL_ROUNDS + 1,
        total_rounds=SAMPLE_TOTAL_ROUNDS,
        is_complete=True,
        rules=GameRules(edition=Edition.ANNIVERSARY, custom_rules=CustomRules(no_round_number_bid=True)),
        created_at=created_at,
        updated_at=created_at,
        game_code=SAMPLE_GAME_CODE,
        is_live=False,
    )
