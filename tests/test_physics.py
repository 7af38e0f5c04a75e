import math
import random

import pytest

from models.entities import Ball, EdgeState
from models.polygon import compute_vertices
from services.hazard_service import HazardState
from services.physics_service import PhysicsEngine
from utils.geometry import point_in_polygon

# Axis-aligned square: edge 0 right, 1 bottom, 2 left, 3 top
HALF = 300 * math.cos(math.pi / 4)
SQUARE = compute_vertices((400, 400), 300, 4, math.pi / 4)


@pytest.fixture
def engine(clock):
    return PhysicsEngine(rng=random.Random(3), clock=clock)


@pytest.fixture
def hazards():
    return HazardState(4, rng=random.Random(3))


def test_integrate_applies_gravity_and_records_trail(engine):
    ball = Ball(x=400, y=300, vx=2)

    engine.integrate(ball)

    assert ball.vy == pytest.approx(0.3)
    assert (ball.x, ball.y) == pytest.approx((402, 300.3))
    assert list(ball.trail) == [(ball.x, ball.y)]


def test_trail_keeps_twenty_most_recent_points(engine):
    ball = Ball(x=400, y=300)

    for _ in range(30):
        engine.integrate(ball)

    assert len(ball.trail) == 20
    assert ball.trail[-1] == (ball.x, ball.y)


def test_contain_pulls_escaped_ball_back_inside(engine):
    ball = Ball(x=400 + HALF + 40, y=420, vx=6, vy=1)

    assert engine.contain(ball, SQUARE)

    assert point_in_polygon(SQUARE, (ball.x, ball.y))
    assert ball.x == pytest.approx(400 + HALF - 20)
    assert (ball.vx, ball.vy) == pytest.approx((-3, -0.5))


def test_contain_keeps_inward_velocity(engine):
    ball = Ball(x=400 + HALF + 3, y=420, vx=-4, vy=0)

    engine.contain(ball, SQUARE)

    assert (ball.vx, ball.vy) == (-4, 0)


def test_contain_leaves_inside_ball_alone(engine):
    ball = Ball(x=400, y=400, vx=1, vy=1)

    assert not engine.contain(ball, SQUARE)
    assert (ball.x, ball.y) == (400, 400)


@pytest.mark.parametrize("seed", range(20))
def test_contain_always_lands_inside(engine, seed):
    rng = random.Random(seed)
    angle = rng.uniform(0, 2 * math.pi)
    reach = rng.uniform(310, 600)
    ball = Ball(x=400 + reach * math.cos(angle), y=400 + reach * math.sin(angle))

    engine.contain(ball, SQUARE)

    assert point_in_polygon(SQUARE, (ball.x, ball.y))


def test_bounce_off_floor_sends_ball_up(engine, hazards):
    ball = Ball(x=400, y=400 + HALF - 10, vx=0, vy=5)

    collision = engine.detect_and_resolve(ball, SQUARE, hazards)

    assert collision.edgeIndex == 1
    assert collision.kind is EdgeState.NEUTRAL
    assert ball.y == pytest.approx(400 + HALF - 16)
    assert ball.vy < 0
    assert ball.speed == pytest.approx(5 * 0.95 * 1.5)


def test_bounce_speed_is_capped(engine, hazards):
    ball = Ball(x=400, y=400 + HALF - 10, vx=0, vy=40)

    engine.detect_and_resolve(ball, SQUARE, hazards)

    assert ball.speed <= 15 + 1e-9
    assert ball.speed == pytest.approx(15)


def test_no_collision_away_from_edges(engine, hazards):
    ball = Ball(x=400, y=400, vx=3, vy=3)

    assert engine.detect_and_resolve(ball, SQUARE, hazards) is None
    assert ball.lastCollisionTime is None


def test_collision_reports_hazard_classification(engine, hazards):
    hazards.explosive = {1}
    ball = Ball(x=400, y=400 + HALF - 10, vy=5)

    assert engine.detect_and_resolve(ball, SQUARE, hazards).kind is EdgeState.EXPLOSIVE


def test_collisions_within_debounce_window_are_ignored(engine, hazards, clock):
    ball = Ball(x=400, y=400 + HALF - 10, vy=5)
    assert engine.detect_and_resolve(ball, SQUARE, hazards) is not None

    clock.advance(0.03)
    ball.x, ball.y, ball.vx, ball.vy = 400 + HALF - 10, 400, 5, 0
    assert engine.detect_and_resolve(ball, SQUARE, hazards) is None
    assert (ball.vx, ball.vy) == (5, 0)

    clock.advance(0.03)
    collision = engine.detect_and_resolve(ball, SQUARE, hazards)
    assert collision is not None
    assert collision.edgeIndex == 0
