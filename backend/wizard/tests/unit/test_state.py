import json

import pytest
from pydantic import ValidationError

from wizard.logic.enums import Edition, PenaltyType, TrumpSuit
from wizard.logic.penalties import add_penalty
from wizard.logic.round import open_round, set_bid, set_trump_suit
from wizard.logic.state import Game
from wizard.logic.state_utils import replace_active_round
from wizard.tests.helpers import FIXED_NOW, make_game, make_rules, play_round


def _played_game() -> Game:
    rules = make_rules(edition=Edition.ANNIVERSARY, no_round_number_bid=True)
    game = make_game(("Alice", "Bob", "Carol"), total_rounds=4, rules=rules, game_code="ABC123")
    game = add_penalty(game, "player-0", PenaltyType.WRONG_DEAL, "Dealt wrong", now=FIXED_NOW)
    game = play_round(game, [1, 1, 0], [1, 0, 0])
    game = add_penalty(game, "player-0", PenaltyType.WRONG_PLAY, "Wrong suit", now=FIXED_NOW)
    game = add_penalty(game, "player-2", PenaltyType.OTHER_MISTAKE, "Dropped cards", -5, now=FIXED_NOW)
    game = play_round(game, [1, 0, 0], [1, 1, 0])
    round_state = set_trump_suit(set_bid(open_round(game), "player-1", 2), TrumpSuit.SPADES)
    return replace_active_round(game, round_state, FIXED_NOW)


class TestDocumentShape:
    def test_round_trip_preserves_game(self):
        game = _played_game()
        restored = Game.model_validate_json(game.model_dump_json(by_alias=True))

        assert restored.model_dump() == game.model_dump()

    def test_serializes_camel_case_keys(self):
        document = json.loads(_played_game().model_dump_json(by_alias=True))

        assert {"currentRound", "totalRounds", "isComplete", "gameCode", "isLive", "activeRound"} <= document.keys()
        assert document["players"][0]["penaltyMultiplier"] == 3
        assert document["players"][0]["penalties"][0]["roundNumber"] == 1
        assert document["rounds"][0]["cardsInHand"] == 1
        assert document["rules"] == {"edition": "25year", "customRules": {"noRoundNumberBid": True}}
        assert document["activeRound"]["trumpSuit"] == "spades"
        assert document["activeRound"]["players"][1]["bid"] == 2
        assert document["activeRound"]["players"][0]["bid"] is None

    def test_accepts_snake_case_keys(self):
        game = _played_game()
        restored = Game.model_validate(game.model_dump(mode="json"))
        assert restored.model_dump() == game.model_dump()


class TestInvariants:
    def test_models_are_frozen(self):
        game = make_game()
        with pytest.raises(ValidationError):
            game.current_round = 2  # type: ignore[misc]

    def test_rejects_history_that_skips_rounds(self):
        document = _played_game().model_dump(mode="json")
        document["rounds"] = document["rounds"][1:] + document["rounds"][:1]

        with pytest.raises(ValidationError, match="out of order"):
            Game.model_validate(document)

    def test_rejects_history_not_matching_current_round(self):
        document = _played_game().model_dump(mode="json")
        document["current_round"] = 4

        with pytest.raises(ValidationError, match="current round is 4"):
            Game.model_validate(document)

    def test_complete_game_must_hold_every_round(self):
        document = _played_game().model_dump(mode="json")
        document["is_complete"] = True

        with pytest.raises(ValidationError, match="complete game"):
            Game.model_validate(document)

    def test_negative_bid_rejected(self):
        document = _played_game().model_dump(mode="json")
        document["active_round"]["players"][0]["bid"] = -1

        with pytest.raises(ValidationError):
            Game.model_validate(document)
