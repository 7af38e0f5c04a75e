# server/models/entities.py
"""Game entity models and data classes."""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, List, Optional, Tuple

from config.settings import BALL_COLORS, TRAIL_LENGTH


class EdgeState(str, Enum):
    """Classification of one polygon edge."""

    NEUTRAL = "neutral"
    CLEARED = "cleared"
    EXPLOSIVE = "explosive"


class GameStatus(str, Enum):
    """Where a game session sits in its lifecycle."""

    PLAYING = "playing"
    LOST = "lost"
    WON = "won"


class Outcome(str, Enum):
    """Notable things that happened during one tick."""

    EDGE_CLEARED = "edge_cleared"
    EDGE_BOUNCE = "edge_bounce"
    EXPLOSION = "explosion"
    LEVEL_COMPLETE = "level_complete"
    HAZARDS_ROTATED = "hazards_rotated"
    GAME_OVER = "game_over"
    GAME_WON = "game_won"


def _new_trail() -> Deque[Tuple[float, float]]:
    return deque(maxlen=TRAIL_LENGTH)


@dataclass
class Ball:
    """Represents the bouncing ball."""

    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    color: str = BALL_COLORS[0]
    previousColor: str = BALL_COLORS[0]
    trail: Deque[Tuple[float, float]] = field(default_factory=_new_trail)
    lastCollisionTime: Optional[float] = None

    @property
    def speed(self) -> float:
        return (self.vx * self.vx + self.vy * self.vy) ** 0.5

    def respawn(self, x: float, y: float):
        """Put the ball back at the spawn point at rest, keeping its colours."""
        self.x = x
        self.y = y
        self.vx = 0.0
        self.vy = 0.0
        self.trail.clear()

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "vx": self.vx,
            "vy": self.vy,
            "color": self.color,
            "previousColor": self.previousColor,
            "trail": [list(point) for point in self.trail],
        }


@dataclass
class Controls:
    """Held input state, sampled once per tick."""

    left: bool = False
    right: bool = False


@dataclass
class Collision:
    """A registered ball/edge contact resolved this tick."""

    edgeIndex: int
    x: float
    y: float
    kind: EdgeState


@dataclass
class ParticleSpawn:
    """Request for the renderer to emit one particle."""

    x: float
    y: float
    color: str


@dataclass
class SoundCue:
    """Named sound trigger for the audio collaborator."""

    name: str
    frequency: float
    duration: float


@dataclass
class FrameEvents:
    """Everything a single tick emitted for presentation layers."""

    particles: List[ParticleSpawn] = field(default_factory=list)
    sounds: List[SoundCue] = field(default_factory=list)
    outcomes: List[Outcome] = field(default_factory=list)

    def sound(self, name: str, frequency: float, duration: float):
        self.sounds.append(SoundCue(name=name, frequency=frequency, duration=duration))

    def to_dict(self) -> dict:
        return {
            "particles": [[p.x, p.y, p.color] for p in self.particles],
            "sounds": [
                {"name": s.name, "frequency": s.frequency, "duration": s.duration}
                for s in self.sounds
            ],
            "outcomes": [o.value for o in self.outcomes],
        }


@dataclass
class ScoreEntry:
    """Represents one leaderboard record."""

    name: str
    score: int
    level: int
    timestamp: str = ""
