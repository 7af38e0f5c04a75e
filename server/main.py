# server/main.py
"""Polybounce game server: FastAPI app wiring and entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from api.routes import GameAPI
from services.game_service import GameService
from services.leaderboard_service import LeaderboardService, create_score_store
from services.websocket_service import WebSocketService
from config.settings import DEBUG

logging.basicConfig(
    level=logging.DEBUG if DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(leaderboard_service: LeaderboardService = None) -> FastAPI:
    """Build the app with its services."""
    game_service = GameService()
    if leaderboard_service is None:
        leaderboard_service = LeaderboardService(create_score_store())
    websocket_service = WebSocketService(game_service, leaderboard_service)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Polybounce server starting")
        yield
        await websocket_service.shutdown()
        close = getattr(leaderboard_service.store, "close", None)
        if close is not None:
            await close()

    app = FastAPI(lifespan=lifespan)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, specify your client URL
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(GameAPI(game_service, leaderboard_service).router)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        await websocket_service.handle_connection(websocket)

    app.state.game_service = game_service
    app.state.leaderboard_service = leaderboard_service
    app.state.websocket_service = websocket_service
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
