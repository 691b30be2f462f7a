"""
Pydantic base and view models that cross component boundaries.

DocumentModel is the base of every persisted state model: frozen, and
serialized with camelCase keys so the stored document keeps the shape
shared by the local and hosted stores.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    """Frozen model serialized with camelCase aliases."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class GateResult(BaseModel):
    """Outcome of a phase gate check.

    ``reason`` is only present when the block must be explained to the players.
    """

    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: str | None = None


class PlayerStanding(DocumentModel):
    """A player's final placement computed from the replayed round history."""

    player_id: str
    name: str
    position: int  # 1-based, in descending score order
    score: int
    penalty_points: int


class ScoreProgression(DocumentModel):
    """Running totals per player at every round boundary, starting with 0."""

    player_id: str
    name: str
    scores: tuple[int, ...]
