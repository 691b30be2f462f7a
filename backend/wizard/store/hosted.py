"""Hosted game repository backed by a PostgREST-style ``games`` table."""

from __future__ import annotations

import asyncio
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

import httpx
import structlog
from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from wizard.logic.state import Game
from wizard.store.repository import GameRepository, StoreError

if TYPE_CHECKING:
    from datetime import datetime

    from wizard.store.repository import GameUpdateCallback, Unsubscribe

logger = structlog.get_logger()

_UPSERT_PREFER = "resolution=merge-duplicates,return=minimal"


def game_to_row(game: Game) -> dict[str, Any]:
    """Map a game to a table row: snake_case columns, camelCase nested documents."""
    document = game.model_dump(mode="json", by_alias=True)
    return {name: document[to_camel(name)] for name in Game.model_fields}


def row_to_game(row: dict[str, Any]) -> Game:
    return Game.model_validate(row)


class HostedGameRepository(GameRepository):
    """
    Game storage in a hosted Postgres table exposed over a REST API.

    Requests carry the project key both as ``apikey`` and as a bearer token.
    Live updates are delivered by polling the game row and emitting a full
    snapshot whenever its ``updated_at`` changes.
    """

    supports_live_updates = True
    storage_mode = "cloud"

    def __init__(  # noqa: PLR0913
        self,
        base_url: str,
        api_key: str,
        *,
        table: str = "games",
        poll_interval: float = 2.0,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._table = table
        self._poll_interval = poll_interval
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers={"apikey": api_key, "Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            transport=transport,
        )
        self._pollers: set[asyncio.Task[None]] = set()

    async def save_game(self, game: Game) -> None:
        await self._request(
            "POST",
            params={"on_conflict": "id"},
            json=game_to_row(game),
            headers={"Prefer": _UPSERT_PREFER},
        )
        logger.debug("game saved", game_id=game.id, storage="cloud")

    async def load_games(self) -> list[Game]:
        response = await self._request("GET", params={"select": "*", "order": "created_at.desc"})
        return self._parse_rows(response)

    async def load_game(self, game_id: str) -> Game | None:
        response = await self._request("GET", params={"select": "*", "id": f"eq.{game_id}"})
        games = self._parse_rows(response)
        return games[0] if games else None

    async def load_game_by_code(self, game_code: str) -> Game | None:
        response = await self._request(
            "GET",
            params={
                "select": "*",
                "game_code": f"eq.{game_code}",
                "order": "updated_at.desc",
                "limit": "1",
            },
        )
        games = self._parse_rows(response)
        return games[0] if games else None

    async def delete_game(self, game_id: str) -> None:
        await self._request("DELETE", params={"id": f"eq.{game_id}"})

    def subscribe_to_game(
        self,
        game_id: str,
        on_update: GameUpdateCallback,
        *,
        last_seen: datetime | None = None,
    ) -> Unsubscribe:
        """Poll the game row and call ``on_update`` with every new snapshot.

        The first successful poll emits unless the row still carries
        ``last_seen``, so a subscriber never misses a change made between its
        initial load and the subscription, and never gets its own copy twice.
        Must be called from a running event loop.
        """
        task = asyncio.get_running_loop().create_task(self._poll(game_id, on_update, last_seen))
        self._pollers.add(task)
        task.add_done_callback(self._pollers.discard)

        def unsubscribe() -> None:
            task.cancel()

        return unsubscribe

    async def close(self) -> None:
        for task in list(self._pollers):
            task.cancel()
        if self._pollers:
            await asyncio.gather(*self._pollers, return_exceptions=True)
        await self._client.aclose()

    async def _poll(self, game_id: str, on_update: GameUpdateCallback, last_seen: datetime | None) -> None:
        while True:
            try:
                game = await self.load_game(game_id)
            except StoreError:
                logger.warning("live update poll failed", game_id=game_id)
                game = None
            if game is not None and game.updated_at != last_seen:
                last_seen = game.updated_at
                try:
                    on_update(game)
                except Exception:
                    logger.exception("live update callback failed", game_id=game_id)
            await asyncio.sleep(self._poll_interval)

    async def _request(self, method: str, **kwargs: Any) -> httpx.Response:  # noqa: ANN401
        try:
            response = await self._client.request(method, f"/{self._table}", **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in (HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN):
                raise StoreError(f"Hosted store rejected the credentials ({status})") from e
            raise StoreError(f"Hosted store returned {status}: {e.response.text}") from e
        except httpx.RequestError as e:
            raise StoreError(f"Failed to reach hosted store: {e}") from e
        return response

    @staticmethod
    def _parse_rows(response: httpx.Response) -> list[Game]:
        try:
            rows = response.json()
        except ValueError as e:
            raise StoreError("Hosted store returned a malformed response") from e
        if not isinstance(rows, list):
            raise StoreError("Hosted store returned a malformed response")
        games = []
        for row in rows:
            try:
                games.append(row_to_game(row))
            except ValidationError:
                logger.warning("skipping unreadable game row", game_id=row.get("id") if isinstance(row, dict) else None)
        return games
