import random

import pytest

from services.game_service import GameSession
from utils.geometry import normalize


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def submissions():
    return []


@pytest.fixture
def session(rng, clock, submissions):
    return GameSession(
        "tester",
        rng=rng,
        clock=clock,
        on_game_end=lambda name, score, level: submissions.append((name, score, level)),
    )


def _touch_edge(session, index, depth=10.0, speed=2.0):
    """Park the ball just inside edge ``index``, drifting towards it."""
    mx, my = session.polygon.edge_midpoint(index)
    cx, cy = session.polygon.center
    nx, ny = normalize(cx - mx, cy - my)
    session.ball.x = mx + nx * depth
    session.ball.y = my + ny * depth
    session.ball.vx = -nx * speed
    session.ball.vy = -ny * speed


@pytest.fixture
def touch_edge():
    return _touch_edge


@pytest.fixture
def all_neutral(session):
    """Strip every hazard so no edge can explode."""
    session.hazards.explosive = set()
    session.hazards.pending = set()
    return session
