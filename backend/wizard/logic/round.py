"""
Round initialization, bid/trick entry and phase transitions.

A round moves strictly forward: bidding -> tricks -> complete. Bids are
only editable while bidding, tricks only while counting tricks. The two
transitions are guarded by gates (check_bidding_gate / check_tricks_gate).
"""

from datetime import datetime

import structlog

from wizard.logic.enums import RoundPhase, TrumpSuit
from wizard.logic.exceptions import InvalidActionError, PhaseTransitionError
from wizard.logic.scoring import replay_totals
from wizard.logic.settings import GameRules
from wizard.logic.state import Game, Player, Round, RoundPlayer
from wizard.logic.state_utils import (
    get_round_player,
    update_round_player,
    utc_now,
)
from wizard.logic.types import GateResult

logger = structlog.get_logger()


def cards_in_hand(round_number: int, total_rounds: int) -> int:
    """
    Return the hand size for a round of a pyramid schedule.

    Hand size climbs by one per round through the first half and falls back
    to one over the second half. For 10 rounds: 1,2,3,4,5,5,4,3,2,1. For an
    odd count the middle round is the single peak (5 rounds: 1,2,3,2,1).
    """
    if not 1 <= round_number <= total_rounds:
        raise ValueError(f"round {round_number} outside 1..{total_rounds}")
    if 2 * round_number <= total_rounds:
        return round_number
    return total_rounds - round_number + 1


def dealer_index(round_number: int, player_count: int) -> int:
    """Return the seat of the dealer; the deal rotates one seat per round."""
    if player_count < 1:
        raise ValueError("at least one player is required to deal")
    return (round_number - 1) % player_count


def new_round(round_number: int, total_rounds: int, players: tuple[Player, ...]) -> Round:
    """
    Create a fresh open round with every bid and trick count unset.

    Entries start as None rather than 0 so the gates can tell "bid zero" from
    "not entered yet"; stepping an unset entry counts it as 0.
    """
    dealer = dealer_index(round_number, len(players))
    return Round(
        round_number=round_number,
        cards_in_hand=cards_in_hand(round_number, total_rounds),
        players=tuple(
            RoundPlayer(id=p.id, name=p.name, is_dealer=index == dealer) for index, p in enumerate(players)
        ),
        dealer_index=dealer,
    )


def open_round(game: Game) -> Round:
    """
    Return the round currently being played.

    Rehydrates the persisted open round when it belongs to the current round
    number, otherwise creates a fresh one.
    """
    if game.is_complete:
        raise InvalidActionError("Game is already complete")
    active = game.active_round
    if active is not None and active.round_number == game.current_round and not active.is_complete:
        return active
    return new_round(game.current_round, game.total_rounds, game.players)


def ensure_active_round(game: Game) -> Game:
    """Return the game with its open round materialized in ``active_round``."""
    if game.is_complete:
        return game
    round_state = open_round(game)
    if round_state is game.active_round:
        return game
    return game.model_copy(update={"active_round": round_state})


def _require_phase(round_state: Round, phase: RoundPhase, what: str) -> None:
    if round_state.phase != phase:
        raise InvalidActionError(f"Cannot change {what} during the {round_state.phase} phase")


def _clamp(value: int, upper: int) -> int:
    return max(0, min(upper, value))


def _check_entry(value: int, round_state: Round, what: str) -> None:
    if not 0 <= value <= round_state.cards_in_hand:
        raise InvalidActionError(f"{what} must be between 0 and {round_state.cards_in_hand}, got {value}")


def adjust_bid(round_state: Round, player_id: str, delta: int) -> Round:
    """Step a player's bid up or down, clamped to [0, cards_in_hand]. Unset counts as 0."""
    _require_phase(round_state, RoundPhase.BIDDING, "bids")
    current = get_round_player(round_state, player_id).bid or 0
    return update_round_player(round_state, player_id, bid=_clamp(current + delta, round_state.cards_in_hand))


def set_bid(round_state: Round, player_id: str, bid: int | None) -> Round:
    """Enter (or clear, with None) a player's bid directly."""
    _require_phase(round_state, RoundPhase.BIDDING, "bids")
    if bid is not None:
        _check_entry(bid, round_state, "Bid")
    get_round_player(round_state, player_id)
    return update_round_player(round_state, player_id, bid=bid)


def adjust_tricks(round_state: Round, player_id: str, delta: int) -> Round:
    """Step a player's trick count up or down, clamped to [0, cards_in_hand]. Unset counts as 0."""
    _require_phase(round_state, RoundPhase.TRICKS, "tricks")
    current = get_round_player(round_state, player_id).tricks or 0
    return update_round_player(round_state, player_id, tricks=_clamp(current + delta, round_state.cards_in_hand))


def set_tricks(round_state: Round, player_id: str, tricks: int | None) -> Round:
    """Enter (or clear, with None) a player's trick count directly."""
    _require_phase(round_state, RoundPhase.TRICKS, "tricks")
    if tricks is not None:
        _check_entry(tricks, round_state, "Tricks")
    get_round_player(round_state, player_id)
    return update_round_player(round_state, player_id, tricks=tricks)


def set_trump_suit(round_state: Round, trump_suit: TrumpSuit | None) -> Round:
    if round_state.phase == RoundPhase.COMPLETE:
        raise InvalidActionError("Round is already complete")
    return round_state.model_copy(update={"trump_suit": trump_suit})


def toggle_voided_trick(round_state: Round, rules: GameRules) -> Round:
    """Flip the bomb toggle: while on, one trick of the round is voided."""
    if not rules.has_edition_cards:
        raise InvalidActionError(f"The bomb is not part of the {rules.edition} edition")
    _require_phase(round_state, RoundPhase.TRICKS, "the voided trick")
    return round_state.model_copy(update={"trick_voided": not round_state.trick_voided})


def correct_bid(round_state: Round, rules: GameRules, player_id: str, *, increase: bool) -> Round:
    """
    Apply the 9 3/4 card: change one player's bid by one during trick counting.

    Usable once per round. The corrected bid stays within [0, cards_in_hand].
    """
    if not rules.has_edition_cards:
        raise InvalidActionError(f"The bid correction is not part of the {rules.edition} edition")
    _require_phase(round_state, RoundPhase.TRICKS, "bids by correction")
    if round_state.bid_correction_used:
        raise InvalidActionError("The bid correction was already used this round")
    current = get_round_player(round_state, player_id).bid or 0
    new_bid = _clamp(current + (1 if increase else -1), round_state.cards_in_hand)
    updated = update_round_player(round_state, player_id, bid=new_bid)
    return updated.model_copy(update={"bid_correction_used": True})


def check_bidding_gate(round_state: Round, rules: GameRules) -> GateResult:
    """
    Decide whether bidding may end.

    Every player needs a bid. With the no-round-number-bid house rule the
    total of all bids may not equal the round number; that block is the only
    one that comes with an explanation.
    """
    if round_state.phase != RoundPhase.BIDDING:
        return GateResult(allowed=False)
    if any(p.bid is None for p in round_state.players):
        return GateResult(allowed=False)
    if rules.custom_rules.no_round_number_bid:
        total = round_state.total_bids
        if total == round_state.round_number:
            return GateResult(
                allowed=False,
                reason=(
                    f"Cannot complete bidding: Total bids ({total}) equals round number ({round_state.round_number})"
                ),
            )
    return GateResult(allowed=True)


def expected_total_tricks(round_state: Round) -> int:
    """Number of tricks that count this round: one fewer when the bomb voided a trick."""
    if round_state.trick_voided:
        return round_state.cards_in_hand - 1
    return round_state.cards_in_hand


def check_tricks_gate(round_state: Round) -> GateResult:
    """Decide whether the round may be scored: every count entered and the total adds up."""
    if round_state.phase != RoundPhase.TRICKS:
        return GateResult(allowed=False)
    if any(p.tricks is None for p in round_state.players):
        return GateResult(allowed=False)
    return GateResult(allowed=round_state.total_tricks == expected_total_tricks(round_state))


def complete_bidding(round_state: Round, rules: GameRules) -> Round:
    """
    Move the round from bidding to trick counting.

    Raises:
        PhaseTransitionError: If the bidding gate blocks

    """
    gate = check_bidding_gate(round_state, rules)
    if not gate.allowed:
        raise PhaseTransitionError(gate.reason)
    return round_state.model_copy(update={"phase": RoundPhase.TRICKS})


def complete_round(game: Game, now: datetime | None = None) -> Game:
    """
    Score the open round and advance the game.

    The round is appended to the history as complete, every player's score
    is rewritten from the replayed history (so penalties logged against this
    round land now), and the game moves to the next round. After the last
    round the game is marked complete and has no open round.

    Raises:
        InvalidActionError: If the game is already complete
        PhaseTransitionError: If the tricks gate blocks

    """
    round_state = open_round(game)
    gate = check_tricks_gate(round_state)
    if not gate.allowed:
        raise PhaseTransitionError(gate.reason)

    finished = round_state.model_copy(update={"phase": RoundPhase.COMPLETE, "is_complete": True})
    rounds = (*game.rounds, finished)
    totals = replay_totals(game.players, rounds)
    players = tuple(p.model_copy(update={"score": totals[p.id]}) for p in game.players)
    next_round_number = game.current_round + 1
    is_complete = next_round_number > game.total_rounds

    updated = game.model_copy(
        update={
            "players": players,
            "rounds": rounds,
            "current_round": next_round_number,
            "is_complete": is_complete,
            "active_round": None if is_complete else new_round(next_round_number, game.total_rounds, players),
            "updated_at": now or utc_now(),
        },
    )
    logger.info(
        "round complete",
        game_id=game.id,
        round_number=finished.round_number,
        game_complete=is_complete,
    )
    return updated

