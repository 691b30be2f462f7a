"""Game rules and setup limits."""

from pydantic import Field

from wizard.logic.enums import Edition
from wizard.logic.types import DocumentModel

MIN_PLAYERS = 2
MAX_PLAYERS = 6
MIN_ROUNDS = 1
MAX_ROUNDS = 20
DEFAULT_TOTAL_ROUNDS = 10


class CustomRules(DocumentModel):
    """House rules that can be toggled at setup."""

    # total bids of all players may not equal the round number (round 1: total bids != 1)
    no_round_number_bid: bool = False


class GameRules(DocumentModel):
    """Edition tag plus house-rule toggles, fixed at setup."""

    edition: Edition = Edition.STANDARD
    custom_rules: CustomRules = Field(default_factory=CustomRules)

    @property
    def has_edition_cards(self) -> bool:
        """Whether the bomb and 9 3/4 special cards are in play."""
        return self.edition == Edition.ANNIVERSARY
