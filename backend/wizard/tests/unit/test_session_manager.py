import asyncio

import pytest

from wizard.logic.enums import GameAction, RoundPhase
from wizard.logic.exceptions import InvalidActionError, InvalidSetupError, PhaseTransitionError
from wizard.logic.setup import GameSetup
from wizard.session.manager import GameSessionManager
from wizard.session.types import GameNotFoundError
from wizard.tests.helpers import make_game, make_rules
from wizard.tests.mocks import InMemoryGameRepository


@pytest.fixture
def repo() -> InMemoryGameRepository:
    return InMemoryGameRepository()


@pytest.fixture
def manager(repo: InMemoryGameRepository) -> GameSessionManager:
    return GameSessionManager(repo)


async def _play_round(manager: GameSessionManager, game_id: str, bids: list[int], tricks: list[int]):
    game = manager.get_game(game_id)
    for player, bid in zip(game.players, bids, strict=True):
        await manager.handle_action(game_id, GameAction.SET_BID, {"player_id": player.id, "value": bid})
    await manager.handle_action(game_id, GameAction.COMPLETE_BIDDING)
    for player, count in zip(game.players, tricks, strict=True):
        await manager.handle_action(game_id, GameAction.SET_TRICKS, {"player_id": player.id, "value": count})
    return await manager.handle_action(game_id, GameAction.COMPLETE_ROUND)


class TestStartGame:
    async def test_start_tracks_and_saves(self, manager: GameSessionManager, repo: InMemoryGameRepository):
        game = await manager.start_game(GameSetup(player_names=["Alice", "Bob"]), name="Friday night")
        await manager.wait_for_pending_saves()

        assert manager.get_game(game.id) is game
        assert repo.games[game.id].name == "Friday night"
        assert game.game_code == "ABC123"

    async def test_not_live_without_live_store(self, manager: GameSessionManager):
        game = await manager.start_game(GameSetup(player_names=["Alice", "Bob"]))
        assert not game.is_live

    async def test_live_with_live_store(self):
        manager = GameSessionManager(InMemoryGameRepository(live=True))
        game = await manager.start_game(GameSetup(player_names=["Alice", "Bob"]))
        assert game.is_live

    async def test_invalid_setup_creates_nothing(self, manager: GameSessionManager):
        with pytest.raises(InvalidSetupError):
            await manager.start_game(GameSetup(player_names=["Alice"]))
        assert manager.game_count == 0
        assert manager.pending_save_count == 0


class TestHandleAction:
    async def test_full_round(self, manager: GameSessionManager, repo: InMemoryGameRepository):
        game = await manager.start_game(GameSetup(player_names=["Alice", "Bob"]))
        game = await _play_round(manager, game.id, [1, 0], [1, 0])
        await manager.wait_for_pending_saves()

        assert [p.score for p in game.players] == [30, 20]
        assert game.current_round == 2
        assert repo.games[game.id].current_round == 2

    async def test_adjust_actions(self, manager: GameSessionManager):
        game = await manager.start_game(GameSetup(player_names=["Alice", "Bob"], total_rounds=10))
        await _play_round(manager, game.id, [0, 0], [1, 0])

        game = await manager.handle_action(game.id, GameAction.ADJUST_BID, {"player_id": "player-0", "delta": 1})
        game = await manager.handle_action(game.id, GameAction.ADJUST_BID, {"player_id": "player-0", "delta": 1})
        game = await manager.handle_action(game.id, GameAction.ADJUST_BID, {"player_id": "player-0", "delta": 1})

        assert game.active_round.players[0].bid == 2

    async def test_gate_block_propagates(self, manager: GameSessionManager):
        setup = GameSetup(player_names=["Alice", "Bob"], rules=make_rules(no_round_number_bid=True))
        game = await manager.start_game(setup)
        await manager.handle_action(game.id, GameAction.SET_BID, {"player_id": "player-0", "value": 1})
        await manager.handle_action(game.id, GameAction.SET_BID, {"player_id": "player-1", "value": 0})

        with pytest.raises(PhaseTransitionError) as exc_info:
            await manager.handle_action(game.id, GameAction.COMPLETE_BIDDING)

        assert "equals round number (1)" in exc_info.value.reason
        assert manager.get_game(game.id).active_round.phase == RoundPhase.BIDDING

    async def test_invalid_data_rejected(self, manager: GameSessionManager):
        game = await manager.start_game(GameSetup(player_names=["Alice", "Bob"]))

        with pytest.raises(InvalidActionError, match="Invalid data"):
            await manager.handle_action(game.id, GameAction.SET_BID, {"player": "player-0"})

    async def test_unknown_game(self, manager: GameSessionManager):
        with pytest.raises(GameNotFoundError):
            await manager.handle_action("missing", GameAction.COMPLETE_BIDDING)

    async def test_penalty_actions(self, manager: GameSessionManager):
        game = await manager.start_game(GameSetup(player_names=["Alice", "Bob"]))
        data = {"player_id": "player-1", "penalty_type": "wrong_bid", "description": "Forgot to bid"}

        await manager.handle_action(game.id, GameAction.ADD_PENALTY, data)
        game = await manager.handle_action(game.id, GameAction.ADD_PENALTY, data)
        assert [p.points for p in game.players[1].penalties] == [-10, -20]

        game = await manager.handle_action(game.id, GameAction.RESET_PENALTY_MULTIPLIER, {"player_id": "player-1"})
        assert game.players[1].penalty_multiplier == 1

        game = await manager.handle_action(
            game.id,
            GameAction.SET_PENALTY_MULTIPLIER,
            {"player_id": "player-1", "multiplier": 3},
        )
        assert game.players[1].penalty_multiplier == 3

    async def test_blank_penalty_saves_nothing(self, manager: GameSessionManager, repo: InMemoryGameRepository):
        game = await manager.start_game(GameSetup(player_names=["Alice", "Bob"]))
        await manager.wait_for_pending_saves()
        saves = len(repo.saved)

        result = await manager.handle_action(
            game.id,
            GameAction.ADD_PENALTY,
            {"player_id": "player-0", "description": "  "},
        )
        await manager.wait_for_pending_saves()

        assert result is game
        assert len(repo.saved) == saves

    async def test_save_failure_keeps_game(self, manager: GameSessionManager, repo: InMemoryGameRepository, caplog):
        game = await manager.start_game(GameSetup(player_names=["Alice", "Bob"]))
        repo.fail_saves = True

        game = await manager.handle_action(game.id, GameAction.SET_BID, {"player_id": "player-0", "value": 1})
        await manager.wait_for_pending_saves()

        assert manager.get_game(game.id).active_round.players[0].bid == 1
        assert "failed to save game" in caplog.text

    async def test_game_end_callback(self, repo: InMemoryGameRepository):
        finished = []
        manager = GameSessionManager(repo, on_game_end=finished.append)
        game = await manager.start_game(GameSetup(player_names=["Alice", "Bob"], total_rounds=1))

        game = await _play_round(manager, game.id, [1, 0], [1, 0])

        assert game.is_complete
        assert finished == [game]


class TestStoredGames:
    async def test_open_game_loads_from_store(self, manager: GameSessionManager, repo: InMemoryGameRepository):
        stored = make_game(("Alice", "Bob")).model_copy(update={"active_round": None})
        repo.games[stored.id] = stored

        game = await manager.open_game(stored.id)

        assert game.active_round is not None
        assert manager.get_game(stored.id) is game

    async def test_list_games_swallows_store_errors(self, manager: GameSessionManager, repo, caplog):
        repo.fail_loads = True

        assert await manager.list_games() == []
        assert "failed to load games" in caplog.text

    async def test_load_game_returns_none_on_error(self, manager: GameSessionManager, repo):
        repo.fail_loads = True
        assert await manager.load_game("game-1") is None

    async def test_delete_game(self, manager: GameSessionManager, repo: InMemoryGameRepository):
        game = await manager.start_game(GameSetup(player_names=["Alice", "Bob"]))
        await manager.wait_for_pending_saves()

        assert await manager.delete_game(game.id) is True
        assert manager.get_game(game.id) is None
        assert game.id not in repo.games

    async def test_delete_failure_reported(self, manager: GameSessionManager, repo: InMemoryGameRepository):
        repo.fail_deletes = True
        assert await manager.delete_game("game-1") is False

    async def test_standings(self, manager: GameSessionManager):
        game = await manager.start_game(GameSetup(player_names=["Alice", "Bob"], total_rounds=1))
        game = await _play_round(manager, game.id, [0, 1], [0, 1])

        standings = manager.get_standings(game)

        assert standings.is_complete
        assert standings.winner is not None
        assert standings.winner.name == "Bob"
        assert [p.scores for p in standings.progression] == [(0, 20), (0, 30)]

    async def test_close_waits_and_closes_store(self, manager: GameSessionManager, repo: InMemoryGameRepository):
        await manager.start_game(GameSetup(player_names=["Alice", "Bob"]))
        await manager.close()

        assert manager.pending_save_count == 0
        assert repo.closed
        assert len(repo.saved) == 1


class TestConcurrency:
    async def test_overlapping_saves_keep_newest_state(self, manager: GameSessionManager, repo: InMemoryGameRepository):
        game = await manager.start_game(GameSetup(player_names=["Alice", "Bob"]))
        await manager.wait_for_pending_saves()
        repo.save_delays = [0.05]

        await manager.handle_action(game.id, GameAction.SET_BID, {"player_id": "player-0", "value": 1})
        await asyncio.sleep(0.01)  # first save is now in flight
        await manager.handle_action(game.id, GameAction.SET_BID, {"player_id": "player-0", "value": 0})
        await manager.wait_for_pending_saves()

        assert [g.active_round.players[0].bid for g in repo.saved[-2:]] == [1, 0]
        assert repo.games[game.id].active_round.players[0].bid == 0

    async def test_superseded_snapshot_not_written(self, manager: GameSessionManager, repo: InMemoryGameRepository):
        game = await manager.start_game(GameSetup(player_names=["Alice", "Bob"]))
        await manager.wait_for_pending_saves()
        saves = len(repo.saved)

        await manager.handle_action(game.id, GameAction.SET_BID, {"player_id": "player-0", "value": 1})
        await manager.handle_action(game.id, GameAction.SET_BID, {"player_id": "player-1", "value": 0})
        await manager.wait_for_pending_saves()

        assert len(repo.saved) == saves + 1
        assert [p.bid for p in repo.games[game.id].active_round.players] == [1, 0]

    async def test_concurrent_actions_on_stored_game(self, manager: GameSessionManager, repo: InMemoryGameRepository):
        repo.games["game-1"] = make_game(("Alice", "Bob"))
        repo.load_delay = 0.01

        await asyncio.gather(
            manager.handle_action("game-1", GameAction.SET_BID, {"player_id": "player-0", "value": 1}),
            manager.handle_action("game-1", GameAction.SET_BID, {"player_id": "player-1", "value": 0}),
        )
        await manager.wait_for_pending_saves()

        assert [p.bid for p in manager.get_game("game-1").active_round.players] == [1, 0]
        assert [p.bid for p in repo.games["game-1"].active_round.players] == [1, 0]

    async def test_pending_save_dropped_after_delete(self, manager: GameSessionManager, repo: InMemoryGameRepository):
        game = await manager.start_game(GameSetup(player_names=["Alice", "Bob"]))

        assert await manager.delete_game(game.id) is True
        await manager.wait_for_pending_saves()

        assert game.id not in repo.games
