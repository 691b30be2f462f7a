from pydantic import BaseModel, ConfigDict, Field

from wizard.logic.enums import GameAction
from wizard.logic.settings import MAX_PLAYERS, GameRules
from wizard.logic.setup import GameSetup


class CreateGameRequest(BaseModel):
    """Setup form as posted by the client. Rule messages come from validate_setup."""

    model_config = ConfigDict(extra="forbid")

    player_names: list[str] = Field(max_length=MAX_PLAYERS * 2)
    total_rounds: int = 10
    rules: GameRules = Field(default_factory=GameRules)
    name: str | None = Field(default=None, max_length=100)

    def to_setup(self) -> GameSetup:
        return GameSetup(player_names=self.player_names, total_rounds=self.total_rounds, rules=self.rules)


class ActionRequest(BaseModel):
    """An intent plus its data; every key besides ``action`` is passed to the handler."""

    model_config = ConfigDict(extra="allow")

    action: GameAction

    def action_data(self) -> dict[str, object]:
        return dict(self.model_extra or {})
