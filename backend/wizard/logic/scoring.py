"""
Round scoring and score reconstruction.

The round history is the single source of truth for totals: a player's
score is the replay of ``round_score`` plus that round's penalties over
every completed round. ``complete_round`` writes the stored ``score``
field from this replay, and the end-of-game views recompute it from the
persisted rounds alone.
"""

from wizard.logic.state import Game, Player, Round
from wizard.logic.types import PlayerStanding, ScoreProgression

CORRECT_BID_BONUS = 20
POINTS_PER_TRICK = 10
POINTS_PER_MISSED_TRICK = 10


def round_score(bid: int, tricks: int) -> int:
    """
    Score a single player's round.

    An exact bid earns 20 plus 10 per trick taken. Any miss costs 10 per
    trick of difference, in either direction.
    """
    if bid == tricks:
        return CORRECT_BID_BONUS + POINTS_PER_TRICK * tricks
    return -POINTS_PER_MISSED_TRICK * abs(bid - tricks)


def penalty_points(player: Player, round_number: int | None = None) -> int:
    """Sum a player's penalty points, optionally only those logged against one round."""
    if round_number is None:
        return sum(p.points for p in player.penalties)
    return sum(p.points for p in player.penalties_for_round(round_number))


def round_delta(player: Player, round_state: Round) -> int:
    """Return the change to a player's total from one round, penalties included."""
    snapshot = next((p for p in round_state.players if p.id == player.id), None)
    delta = penalty_points(player, round_state.round_number)
    if snapshot is not None:
        delta += round_score(snapshot.bid or 0, snapshot.tricks or 0)
    return delta


def _replay(players: tuple[Player, ...], rounds: tuple[Round, ...]) -> dict[str, list[int]]:
    progression = {player.id: [0] for player in players}
    for round_state in rounds:
        for player in players:
            scores = progression[player.id]
            scores.append(scores[-1] + round_delta(player, round_state))
    return progression


def replay_totals(players: tuple[Player, ...], rounds: tuple[Round, ...]) -> dict[str, int]:
    """Return each player's total after replaying the given round history."""
    return {player_id: scores[-1] for player_id, scores in _replay(players, rounds).items()}


def score_progression(game: Game) -> list[ScoreProgression]:
    """Return per-player running totals at each round boundary, starting at 0."""
    progression = _replay(game.players, game.rounds)
    return [
        ScoreProgression(player_id=player.id, name=player.name, scores=tuple(progression[player.id]))
        for player in game.players
    ]


def final_standings(game: Game) -> list[PlayerStanding]:
    """Rank players by replayed total, highest first. Ties keep seating order."""
    totals = replay_totals(game.players, game.rounds)
    ranked = sorted(game.players, key=lambda p: totals[p.id], reverse=True)
    return [
        PlayerStanding(
            player_id=player.id,
            name=player.name,
            position=position,
            score=totals[player.id],
            penalty_points=penalty_points(player),
        )
        for position, player in enumerate(ranked, start=1)
    ]


def winner(game: Game) -> PlayerStanding | None:
    """Return the leader of a completed game, or None while it is in progress."""
    if not game.is_complete or not game.players:
        return None
    return final_standings(game)[0]


def running_totals(game: Game) -> dict[str, int]:
    """
    Return live display totals.

    Completed rounds come from the replay; penalties logged against the
    still-open round are added on top so they show up immediately.
    """
    totals = replay_totals(game.players, game.rounds)
    if game.is_complete:
        return totals
    return {player.id: totals[player.id] + penalty_points(player, game.current_round) for player in game.players}
