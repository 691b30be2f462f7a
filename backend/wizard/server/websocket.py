from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

from wizard.session.live import LiveGameViewer, LiveSyncUnavailableError, LiveViewerError

if TYPE_CHECKING:
    from wizard.logic.state import Game
    from wizard.session.manager import GameSessionManager

logger = structlog.get_logger()

# Application close codes (4000-4999 range)
_CLOSE_CODE_UNAVAILABLE = 4003
_CLOSE_CODE_NOT_FOUND = 4004


def snapshot_message(game: Game) -> dict[str, Any]:
    return {"type": "snapshot", "game": game.model_dump(mode="json", by_alias=True)}


async def _send_error_and_close(websocket: WebSocket, message: str, code: int) -> None:
    with contextlib.suppress(WebSocketDisconnect, RuntimeError):
        await websocket.send_json({"type": "error", "message": message})
        await websocket.close(code=code)


async def _forward_snapshots(websocket: WebSocket, queue: asyncio.Queue[Game]) -> None:
    while True:
        game = await queue.get()
        await websocket.send_json(snapshot_message(game))


async def live_endpoint(websocket: WebSocket) -> None:
    """Stream snapshots of the game with the given share code to a spectator.

    The first message is the current snapshot; later ones arrive whenever the
    store reports a change. Anything the spectator sends is ignored.
    """
    session_manager: GameSessionManager = websocket.app.state.session_manager
    repository = session_manager.repository
    await websocket.accept()

    if not repository.supports_live_updates:
        await _send_error_and_close(websocket, str(LiveSyncUnavailableError()), _CLOSE_CODE_UNAVAILABLE)
        return

    queue: asyncio.Queue[Game] = asyncio.Queue()
    viewer = LiveGameViewer(repository, on_snapshot=queue.put_nowait)
    try:
        await viewer.connect(websocket.path_params["game_code"])
    except LiveViewerError as e:
        logger.info("live viewer rejected", reason=str(e))
        await _send_error_and_close(websocket, str(e), _CLOSE_CODE_NOT_FOUND)
        return

    sender = asyncio.create_task(_forward_snapshots(websocket, queue))
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    except (WebSocketDisconnect, RuntimeError):  # fmt: skip
        pass
    finally:
        viewer.close()
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
            await sender
        logger.info("live viewer websocket closed")
