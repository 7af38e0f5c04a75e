# server/api/routes.py
"""API routes for the game server."""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from services.game_service import GameService, normalize_player_name
from services.leaderboard_service import LeaderboardService
from config.settings import MAX_LEVEL, get_game_config


class ScoreSubmission(BaseModel):
    """Body of a leaderboard submission."""

    name: str = Field("", max_length=64)
    score: int = Field(..., ge=0)
    level: int = Field(..., ge=1, le=MAX_LEVEL)


class GameAPI:
    """API routes for game-related endpoints."""

    def __init__(self, game_service: GameService, leaderboard_service: LeaderboardService):
        self.game_service = game_service
        self.leaderboard_service = leaderboard_service
        self.router = APIRouter()
        self._setup_routes()

    def _setup_routes(self):
        """Set up all API routes."""

        @self.router.get("/")
        async def root():
            """Root endpoint."""
            return {"message": "Polybounce Server Running"}

        @self.router.get("/api/game/config")
        async def get_game_config_endpoint():
            """Get game configuration including canvas size, polygon size, etc."""
            return get_game_config()

        @self.router.get("/api/game/stats")
        async def get_game_stats():
            """Get statistics about running games."""
            return self.game_service.get_stats()

        @self.router.get("/api/leaderboard")
        async def get_leaderboard(refresh: bool = False):
            """Get the top scores, best first."""
            scores = await self.leaderboard_service.fetch_leaderboard(force_refresh=refresh)
            return {"scores": scores}

        @self.router.post("/api/leaderboard")
        async def submit_score(submission: ScoreSubmission):
            """Submit a finished game's score."""
            result = await self.leaderboard_service.submit_score(
                normalize_player_name(submission.name), submission.score, submission.level
            )
            return {"result": result}
