# server/services/websocket_service.py
"""WebSocket connection management and the per-connection game loop."""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Optional, Set

from fastapi import WebSocket, WebSocketDisconnect

from models.entities import Controls
from .game_service import GameService, GameSession
from .leaderboard_service import LeaderboardService
from config.settings import get_game_config, UPDATE_RATE

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class ClientConnection:
    """State kept for one connected browser."""

    websocket: WebSocket
    player_name: str = ""
    controls: Controls = field(default_factory=Controls)
    session: Optional[GameSession] = None
    tick_task: Optional[asyncio.Task] = None
    leaderboard_visible: bool = False


class WebSocketService:
    """Runs one game session per connection and streams its frames."""

    def __init__(self, game_service: GameService, leaderboard_service: LeaderboardService):
        self.game_service = game_service
        self.leaderboard_service = leaderboard_service
        self.connected_clients: Set[ClientConnection] = set()
        self._background_tasks: Set[asyncio.Task] = set()

    async def handle_connection(self, websocket: WebSocket):
        """Handle a new WebSocket connection."""
        logger.info("WebSocket connection attempt from %s", websocket.client)
        await websocket.accept()

        client = ClientConnection(
            websocket=websocket, player_name=websocket.query_params.get("name", "")
        )
        self.connected_clients.add(client)

        try:
            await self._start_session(client)
            await self._handle_client_messages(client)
        except WebSocketDisconnect:
            logger.info("Client %s disconnected", websocket.client)
        except Exception:
            logger.exception("WebSocket error for client %s", websocket.client)
        finally:
            await self._handle_disconnect(client)

    async def _start_session(self, client: ClientConnection):
        """Create a fresh game, send its initial state and start ticking it."""
        session = self.game_service.create_session(
            client.player_name, on_game_end=self._schedule_score_submission(client)
        )
        client.session = session
        client.controls = Controls()

        await client.websocket.send_json(
            {
                "type": "init",
                "sessionId": session.id,
                "config": get_game_config(),
                "state": session.snapshot(),
            }
        )
        client.tick_task = asyncio.create_task(self._run_session(client, session))

    async def _run_session(self, client: ClientConnection, session: GameSession):
        """Tick the session once per frame until it reaches a terminal state."""
        interval = 1 / UPDATE_RATE
        websocket = client.websocket

        try:
            while not session.is_over:
                await asyncio.sleep(interval)
                events = session.tick(client.controls)
                await websocket.send_json(
                    {"type": "frame", "state": session.snapshot(), "events": events.to_dict()}
                )

            await websocket.send_json(
                {
                    "type": "game_over",
                    "result": session.status.value,
                    "score": session.score,
                    "level": session.level,
                }
            )
        except (RuntimeError, WebSocketDisconnect):
            logger.debug("Stopped streaming session %s, client went away", session.id)
        except Exception:
            logger.exception("Session %s crashed", session.id)
            try:
                await websocket.close(code=1011)
            except RuntimeError:
                logger.debug("Socket for session %s already closed", session.id)

    async def _handle_client_messages(self, client: ClientConnection):
        """Handle incoming messages from a client."""
        while True:
            text = await client.websocket.receive_text()
            try:
                data = json.loads(text)
            except ValueError:
                logger.debug("Ignoring malformed message from %s", client.websocket.client)
                continue
            if isinstance(data, dict):
                await self._process_message(client, data)

    async def _process_message(self, client: ClientConnection, data: dict):
        """Process a single message from a client."""
        message_type = data.get("type")

        if message_type == "input":
            client.controls = Controls(left=bool(data.get("left")), right=bool(data.get("right")))
        elif message_type == "toggle_leaderboard":
            await self._handle_toggle_leaderboard(client)
        elif message_type == "replay":
            await self._handle_replay(client)

    async def _handle_toggle_leaderboard(self, client: ClientConnection):
        client.leaderboard_visible = not client.leaderboard_visible
        scores = []
        if client.leaderboard_visible:
            scores = await self.leaderboard_service.fetch_leaderboard()
        await client.websocket.send_json(
            {"type": "leaderboard", "visible": client.leaderboard_visible, "scores": scores}
        )

    async def _handle_replay(self, client: ClientConnection):
        """Throw away the current game and start a new one with the same name."""
        await self._stop_session(client)
        await self._start_session(client)

    def _schedule_score_submission(self, client: ClientConnection):
        def on_game_end(name: str, score: int, level: int):
            task = asyncio.create_task(self._submit_final_score(client, name, score, level))
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)

        return on_game_end

    async def _submit_final_score(self, client: ClientConnection, name: str, score: int, level: int):
        """Submit a finished game's score, then push refreshed standings."""
        result = await self.leaderboard_service.submit_score(name, score, level)
        logger.info("Score submission for %s: %s", name or "anonymous", result)

        scores = await self.leaderboard_service.fetch_leaderboard(force_refresh=True)
        if client not in self.connected_clients:
            return
        try:
            await client.websocket.send_json(
                {
                    "type": "leaderboard",
                    "visible": client.leaderboard_visible,
                    "scores": scores,
                    "submitResult": result,
                }
            )
        except (RuntimeError, WebSocketDisconnect):
            logger.debug("Client left before the leaderboard refresh was delivered")

    async def _stop_session(self, client: ClientConnection):
        task, client.tick_task = client.tick_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if client.session is not None:
            self.game_service.remove_session(client.session.id)
            client.session = None

    async def _handle_disconnect(self, client: ClientConnection):
        """Handle client disconnection."""
        self.connected_clients.discard(client)
        await self._stop_session(client)

    async def shutdown(self):
        """Cancel running games and pending submissions."""
        for client in list(self.connected_clients):
            await self._stop_session(client)
        for task in list(self._background_tasks):
            task.cancel()
