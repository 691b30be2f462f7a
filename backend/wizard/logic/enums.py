"""Enumerations shared across the scoring engine, storage and server layers."""

from enum import StrEnum


class Edition(StrEnum):
    """Rule edition of the Wizard deck in use."""

    STANDARD = "standard"
    ANNIVERSARY = "25year"  # 25 Year Edition: bomb (voided trick) and 9 3/4 (bid correction) cards


class PenaltyType(StrEnum):
    """Category of a manually logged penalty."""

    WRONG_PLAY = "wrong_play"
    WRONG_DEAL = "wrong_deal"
    WRONG_BID = "wrong_bid"
    OTHER_MISTAKE = "other_mistake"


class RoundPhase(StrEnum):
    """Phase of a single round. Transitions only move forward."""

    BIDDING = "bidding"
    TRICKS = "tricks"
    COMPLETE = "complete"


class TrumpSuit(StrEnum):
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"
    NONE = "none"


class GameAction(StrEnum):
    """User intents forwarded by the presentation layer."""

    ADJUST_BID = "adjust_bid"
    SET_BID = "set_bid"
    ADJUST_TRICKS = "adjust_tricks"
    SET_TRICKS = "set_tricks"
    COMPLETE_BIDDING = "complete_bidding"
    COMPLETE_ROUND = "complete_round"
    TOGGLE_VOIDED_TRICK = "toggle_voided_trick"
    CORRECT_BID = "correct_bid"
    SET_TRUMP_SUIT = "set_trump_suit"
    ADD_PENALTY = "add_penalty"
    RESET_PENALTY_MULTIPLIER = "reset_penalty_multiplier"
    SET_PENALTY_MULTIPLIER = "set_penalty_multiplier"
