"""
Game state models for Wizard score keeping.

Every model is frozen. State changes go through the helpers in
state_utils / round / penalties, which return new objects via
model_copy and never mutate their inputs.
"""

from datetime import datetime
from typing import Self

from pydantic import Field, NonNegativeInt, PositiveInt, model_validator

from wizard.logic.enums import PenaltyType, RoundPhase, TrumpSuit
from wizard.logic.settings import GameRules
from wizard.logic.types import DocumentModel


class Penalty(DocumentModel):
    """A point adjustment logged against one player in one round."""

    id: str
    type: PenaltyType = PenaltyType.OTHER_MISTAKE
    description: str
    points: int  # conventionally negative
    round_number: PositiveInt
    timestamp: datetime


class Player(DocumentModel):
    """A player and their cumulative game totals."""

    id: str
    name: str
    score: int = 0  # replayed total over completed rounds, may go negative
    penalties: tuple[Penalty, ...] = ()
    penalty_multiplier: PositiveInt = 1  # escalates the suggested penalty amount

    def penalties_for_round(self, round_number: int) -> tuple[Penalty, ...]:
        return tuple(p for p in self.penalties if p.round_number == round_number)


class RoundPlayer(DocumentModel):
    """Per-round snapshot of a player's bid and tricks. None means not yet entered."""

    id: str
    name: str
    bid: NonNegativeInt | None = None
    tricks: NonNegativeInt | None = None
    is_dealer: bool = False


class Round(DocumentModel):
    """
    A single round. Open (mutable through replacement) until marked complete;
    once appended to the game's history it is never changed again.
    """

    round_number: PositiveInt
    cards_in_hand: NonNegativeInt
    players: tuple[RoundPlayer, ...]
    is_complete: bool = False
    dealer_index: NonNegativeInt = 0

    phase: RoundPhase = RoundPhase.BIDDING
    trick_voided: bool = False  # bomb played: one trick of the round does not count
    bid_correction_used: bool = False  # 9 3/4 card: one +/-1 bid change per round
    trump_suit: TrumpSuit | None = None

    @property
    def total_bids(self) -> int:
        return sum(p.bid or 0 for p in self.players)

    @property
    def total_tricks(self) -> int:
        return sum(p.tricks or 0 for p in self.players)


class Game(DocumentModel):
    """
    Root of all game state: players, completed round history and the open round.

    ``rounds`` holds completed rounds only. ``active_round`` is the round being
    played, persisted so a reloaded game resumes mid-round.
    """

    id: str
    name: str
    players: tuple[Player, ...]
    rounds: tuple[Round, ...] = ()
    current_round: PositiveInt = 1
    total_rounds: PositiveInt
    is_complete: bool = False
    rules: GameRules = Field(default_factory=GameRules)
    created_at: datetime
    updated_at: datetime
    game_code: str | None = None
    is_live: bool = False
    active_round: Round | None = None

    @model_validator(mode="after")
    def _check_round_history(self) -> Self:
        for index, round_ in enumerate(self.rounds, start=1):
            if round_.round_number != index:
                raise ValueError(f"round history out of order: position {index} holds round {round_.round_number}")
        if self.is_complete:
            if len(self.rounds) != self.total_rounds or self.current_round != self.total_rounds + 1:
                raise ValueError("a complete game must hold every round and point past the last one")
        elif len(self.rounds) != self.current_round - 1 or self.current_round > self.total_rounds:
            raise ValueError(
                f"round history has {len(self.rounds)} rounds but current round is {self.current_round}",
            )
        return self

    def find_player(self, player_id: str) -> Player | None:
        return next((p for p in self.players if p.id == player_id), None)
