# server/services/game_service.py
"""Core game logic and state management."""

import logging
import random
import time
import uuid
from typing import Callable, Dict, List, Optional

from models.entities import (
    Ball,
    Collision,
    Controls,
    EdgeState,
    FrameEvents,
    GameStatus,
    Outcome,
    ParticleSpawn,
)
from models.polygon import Polygon
from services.hazard_service import HazardState
from services.physics_service import PhysicsEngine
from config.settings import *

logger = logging.getLogger(__name__)

GameEndCallback = Callable[[str, int, int], None]


def normalize_player_name(name: Optional[str]) -> str:
    """Trim and upper-case a player name; empty means anonymous."""
    return (name or "").strip().upper()


class GameSession:
    """One player's game: ball, polygon, hazards and level progression.

    All state is owned by the session and only mutated by ``tick``. Ticks
    never overlap, so no locking is needed.
    """

    def __init__(
        self,
        player_name: str = "",
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        on_game_end: Optional[GameEndCallback] = None,
        session_id: Optional[str] = None,
    ):
        self.id = session_id or str(uuid.uuid4())
        self.player_name = normalize_player_name(player_name)
        self.rng = rng or random.Random()
        self.on_game_end = on_game_end

        self.spawn = (CENTER_X, CENTER_Y + SPAWN_OFFSET_Y)
        self.ball = Ball(x=self.spawn[0], y=self.spawn[1])
        self.polygon = Polygon(center=(CENTER_X, CENTER_Y), radius=POLYGON_RADIUS, sides=START_SIDES)
        self.hazards = HazardState(START_SIDES, rng=self.rng)
        self.physics = PhysicsEngine(rng=self.rng, clock=clock)

        self.level = START_LEVEL
        self.lives = START_LIVES
        self.max_lives = START_LIVES
        self.score = 0
        self.status = GameStatus.PLAYING
        self.score_submitted = False
        self.ticks = 0

        self.hazards.rotate_hazards()

    @property
    def sides(self) -> int:
        return self.polygon.sides

    @property
    def is_over(self) -> bool:
        return self.status is not GameStatus.PLAYING

    def tick(self, controls: Optional[Controls] = None) -> FrameEvents:
        """Advance the simulation by one frame and return what it emitted."""
        events = FrameEvents()
        if self.is_over:
            return events

        controls = controls or Controls()
        self.ticks += 1

        self.polygon.apply_controls(controls.left, controls.right)
        self.physics.integrate(self.ball)
        self._emit_trail_particle(events)

        vertices = self.polygon.vertices()
        self.physics.contain(self.ball, vertices)
        collision = self.physics.detect_and_resolve(self.ball, vertices, self.hazards)
        if collision is not None:
            self._dispatch_collision(collision, events)
        if self.is_over:
            return events

        self._emit_hazard_particles(events)

        if self.hazards.tick():
            events.outcomes.append(Outcome.HAZARDS_ROTATED)
            # Rotation can leave nothing to clear
            self.check_level_completion(events)

        return events

    def _dispatch_collision(self, collision: Collision, events: FrameEvents):
        if collision.kind is EdgeState.EXPLOSIVE:
            self.explode(events)
        elif collision.kind is EdgeState.NEUTRAL:
            self.hazards.on_edge_cleared(collision.edgeIndex)
            self.ball.previousColor = self.ball.color
            self.ball.color = self.rng.choice(BALL_COLORS)

            frequency, duration = BOUNCE_SOUND
            events.sound("bounce", frequency + self.rng.random() * BOUNCE_SOUND_SPREAD, duration)
            self._burst(events, collision.x, collision.y, IMPACT_PARTICLES, IMPACT_COLORS)
            events.outcomes.append(Outcome.EDGE_CLEARED)

            self.score += EDGE_SCORE * self.level
            self.check_level_completion(events)
        else:
            events.sound("bounce-soft", *BOUNCE_SOFT_SOUND)
            events.outcomes.append(Outcome.EDGE_BOUNCE)

    def check_level_completion(self, events: Optional[FrameEvents] = None):
        """Advance the level once every non-explosive edge is cleared."""
        if self.hazards.remaining_edges() == 0:
            self.next_level(events)

    def next_level(self, events: Optional[FrameEvents] = None):
        events = events if events is not None else FrameEvents()
        if self.level >= MAX_LEVEL:
            self._finish(GameStatus.WON, events)
            return

        self.level += 1
        self.polygon.sides += 1
        self.lives += 1
        self.max_lives += 1
        self.score += LEVEL_BONUS * self.level
        self.hazards.reset_for_level(self.polygon.sides)

        events.sound("level-complete", *LEVEL_COMPLETE_SOUND)
        events.outcomes.append(Outcome.LEVEL_COMPLETE)
        logger.info(
            "Session %s reached level %d (%d sides, score %d)",
            self.id,
            self.level,
            self.sides,
            self.score,
        )

    def explode(self, events: Optional[FrameEvents] = None):
        """Handle contact with an explosive edge."""
        events = events if events is not None else FrameEvents()
        events.sound("explosion", *EXPLOSION_SOUND)
        self._burst(events, self.ball.x, self.ball.y, EXPLOSION_PARTICLES, EXPLOSION_COLORS)
        events.outcomes.append(Outcome.EXPLOSION)

        self.lives -= 1
        logger.debug("Session %s exploded, %d lives left", self.id, self.lives)

        if self.lives <= 0:
            self._finish(GameStatus.LOST, events)
        else:
            self.ball.respawn(*self.spawn)

    def _finish(self, status: GameStatus, events: FrameEvents):
        if self.is_over:
            return
        self.status = status
        events.outcomes.append(Outcome.GAME_WON if status is GameStatus.WON else Outcome.GAME_OVER)
        logger.info(
            "Session %s ended (%s): score %d at level %d",
            self.id,
            status.value,
            self.score,
            self.level,
        )
        self.submit_final_score()

    def submit_final_score(self):
        """Hand the final score to the game-end callback, at most once."""
        if self.score_submitted:
            return
        self.score_submitted = True
        if self.on_game_end is not None:
            self.on_game_end(self.player_name, self.score, self.level)

    def _burst(self, events: FrameEvents, x: float, y: float, count: int, colors: List[str]):
        for _ in range(count):
            events.particles.append(ParticleSpawn(x=x, y=y, color=self.rng.choice(colors)))

    def _emit_trail_particle(self, events: FrameEvents):
        if self.rng.random() < TRAIL_PARTICLE_CHANCE:
            color = self.ball.color if self.rng.random() < 0.5 else self.ball.previousColor
            events.particles.append(ParticleSpawn(x=self.ball.x, y=self.ball.y, color=color))

    def _emit_hazard_particles(self, events: FrameEvents):
        theme = self.theme()
        for i in range(self.sides):
            if i in self.hazards.explosive:
                if self.rng.random() < EXPLOSIVE_EDGE_PARTICLE_CHANCE:
                    x, y = self.polygon.edge_midpoint(i)
                    events.particles.append(ParticleSpawn(x=x, y=y, color=theme["explosive"]))
                continue

            intensity = self.hazards.warning_intensity(i)
            if intensity is not None and self.rng.random() < WARNING_EDGE_PARTICLE_CHANCE:
                x, y = self.polygon.edge_midpoint(i)
                color = f"rgba(255, {int(100 * (1 - intensity))}, 0, {0.5 + 0.5 * intensity})"
                events.particles.append(ParticleSpawn(x=x, y=y, color=color))

    def theme(self) -> dict:
        return LEVEL_COLORS[(self.level - 1) % len(LEVEL_COLORS)]

    def progress(self) -> dict:
        cleared, total = self.hazards.progress()
        return {
            "cleared": cleared,
            "total": total,
            "fraction": cleared / total if total else 1.0,
            "text": f"{cleared}/{total} sides hit",
        }

    def snapshot(self) -> dict:
        """Render and UI state for presentation layers."""
        return {
            "status": self.status.value,
            "ball": self.ball.to_dict(),
            "vertices": [list(v) for v in self.polygon.vertices()],
            "edges": [
                {
                    "index": i,
                    "state": self.hazards.edge_state(i).value,
                    "warning": self.hazards.warning_intensity(i),
                }
                for i in range(self.sides)
            ],
            "theme": self.theme(),
            "ui": {
                "playerName": self.player_name or "Anonymous",
                "level": self.level,
                "score": self.score,
                "lives": self.lives,
                "maxLives": self.max_lives,
                "progress": self.progress(),
            },
        }


class GameService:
    """Registry of running game sessions."""

    def __init__(self):
        self.sessions: Dict[str, GameSession] = {}

    def create_session(
        self, player_name: str = "", on_game_end: Optional[GameEndCallback] = None
    ) -> GameSession:
        """Start a new game for a player."""
        session = GameSession(player_name=player_name, on_game_end=on_game_end)
        self.sessions[session.id] = session
        logger.info("Created session %s for %s", session.id, session.player_name or "anonymous")
        return session

    def remove_session(self, session_id: str):
        if session_id in self.sessions:
            del self.sessions[session_id]

    def get_session(self, session_id: str) -> Optional[GameSession]:
        return self.sessions.get(session_id)

    def get_stats(self) -> dict:
        """Get statistics about running sessions."""
        sessions = list(self.sessions.values())
        return {
            "totalSessions": len(sessions),
            "activeSessions": sum(1 for s in sessions if not s.is_over),
            "highestLevel": max((s.level for s in sessions), default=0),
        }
