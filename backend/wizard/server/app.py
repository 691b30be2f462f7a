from __future__ import annotations

import contextlib
import json
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response
from starlette.routing import Route, WebSocketRoute

from shared.logging import setup_logging
from wizard.logic.exceptions import InvalidActionError, InvalidSetupError, PhaseTransitionError
from wizard.server.settings import WizardServerSettings
from wizard.server.types import ActionRequest, CreateGameRequest
from wizard.server.websocket import live_endpoint
from wizard.session.manager import GameSessionManager
from wizard.session.types import GameNotFoundError
from wizard.store.factory import create_game_repository
from wizard.store.settings import StoreSettings

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

    from wizard.logic.state import Game


class _BodyError(Exception):
    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _game_json(game: Game) -> dict[str, Any]:
    return game.model_dump(mode="json", by_alias=True)


def _error(message: str, status_code: int, **extra: object) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


async def _read_json(request: Request) -> Any:  # noqa: ANN401
    settings: WizardServerSettings = request.app.state.settings
    raw_body = await request.body()
    if len(raw_body) > settings.max_request_body_bytes:
        raise _BodyError("Request body too large", 413)
    try:
        return json.loads(raw_body)
    except (ValueError, UnicodeDecodeError) as e:
        raise _BodyError("Invalid request body", 400) from e


async def health(request: Request) -> JSONResponse:
    session_manager: GameSessionManager = request.app.state.session_manager
    return JSONResponse({"status": "ok", "storage": session_manager.repository.storage_mode})


async def list_games(request: Request) -> JSONResponse:
    session_manager: GameSessionManager = request.app.state.session_manager
    games = await session_manager.list_games()
    return JSONResponse({"games": [_game_json(g) for g in games]})


async def create_game(request: Request) -> JSONResponse:
    session_manager: GameSessionManager = request.app.state.session_manager
    try:
        body = await _read_json(request)
        game_request = CreateGameRequest.model_validate(body)
    except _BodyError as e:
        return _error(e.message, e.status_code)
    except ValidationError:
        return _error("Invalid request body", 400)

    try:
        game = await session_manager.start_game(game_request.to_setup(), name=game_request.name)
    except InvalidSetupError as e:
        return _error("Invalid game setup", 400, errors=e.errors)

    return JSONResponse(_game_json(game), status_code=201)


async def get_game(request: Request) -> JSONResponse:
    session_manager: GameSessionManager = request.app.state.session_manager
    try:
        game = await session_manager.open_game(request.path_params["game_id"])
    except GameNotFoundError as e:
        return _error(str(e), 404)
    return JSONResponse(_game_json(game))


async def delete_game(request: Request) -> Response:
    session_manager: GameSessionManager = request.app.state.session_manager
    if not await session_manager.delete_game(request.path_params["game_id"]):
        return _error("Failed to delete game", 503)
    return Response(status_code=204)


async def game_action(request: Request) -> JSONResponse:
    session_manager: GameSessionManager = request.app.state.session_manager
    try:
        body = await _read_json(request)
        action_request = ActionRequest.model_validate(body)
    except _BodyError as e:
        return _error(e.message, e.status_code)
    except ValidationError:
        return _error("Invalid request body", 400)

    try:
        game = await session_manager.handle_action(
            request.path_params["game_id"],
            action_request.action,
            action_request.action_data(),
        )
    except GameNotFoundError as e:
        return _error(str(e), 404)
    except PhaseTransitionError as e:
        return _error(str(e), 409, reason=e.reason)
    except InvalidActionError as e:
        logger.warning("invalid game action", action=action_request.action, reason=str(e))
        return _error(str(e), 400)

    return JSONResponse(_game_json(game))


async def game_standings(request: Request) -> JSONResponse:
    session_manager: GameSessionManager = request.app.state.session_manager
    try:
        game = await session_manager.open_game(request.path_params["game_id"])
    except GameNotFoundError as e:
        return _error(str(e), 404)
    standings = session_manager.get_standings(game)
    return JSONResponse(standings.model_dump(mode="json", by_alias=True))


def create_app(
    settings: WizardServerSettings | None = None,
    store_settings: StoreSettings | None = None,
    session_manager: GameSessionManager | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = WizardServerSettings()

    # When the app creates its own GameSessionManager, it owns the store lifecycle.
    owns_session = session_manager is None
    if session_manager is None:
        session_manager = GameSessionManager(create_game_repository(store_settings))

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/games", list_games, methods=["GET"]),
        Route("/games", create_game, methods=["POST"]),
        Route("/games/{game_id}", get_game, methods=["GET"]),
        Route("/games/{game_id}", delete_game, methods=["DELETE"]),
        Route("/games/{game_id}/actions", game_action, methods=["POST"]),
        Route("/games/{game_id}/standings", game_standings, methods=["GET"]),
        WebSocketRoute("/live/{game_code}", live_endpoint),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        yield
        if owns_session:
            await session_manager.close()
        else:
            await session_manager.wait_for_pending_saves()

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.session_manager = session_manager

    logger.info("score keeper server ready", storage=session_manager.repository.storage_mode)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    settings = WizardServerSettings()
    setup_logging(settings.log_dir)
    return create_app(settings=settings)
