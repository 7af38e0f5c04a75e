# server/services/physics_service.py
"""Ball kinematics and collision against the rotating polygon."""

import random
import time
from typing import Callable, Optional, Sequence

from models.entities import Ball, Collision
from services.hazard_service import HazardState
from config.settings import (
    BALL_RADIUS,
    BOUNCE_DAMPING,
    BOUNCE_JITTER,
    BOUNCE_SPEED_MULTIPLIER,
    COLLISION_DEBOUNCE,
    CONTACT_OFFSET,
    ESCAPE_DAMPING,
    ESCAPE_MARGIN,
    GRAVITY,
    MAX_BALL_SPEED,
)
from utils.geometry import (
    Point,
    calculate_distance,
    cap_speed,
    closest_edge_point,
    dot,
    normalize,
    perturb_angle,
    point_in_polygon,
    project_point_onto_segment,
    reflect,
)


class PhysicsEngine:
    """Advances a ball and resolves its contacts with polygon edges."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        radius: float = BALL_RADIUS,
    ):
        self.rng = rng or random.Random()
        self.clock = clock
        self.radius = radius

    def integrate(self, ball: Ball):
        """Apply gravity, move the ball and record the new trail point."""
        ball.vy += GRAVITY
        ball.x += ball.vx
        ball.y += ball.vy
        ball.trail.append((ball.x, ball.y))

    def contain(self, ball: Ball, vertices: Sequence[Point]) -> bool:
        """Pull an escaped ball back inside the polygon.

        Returns True when a correction was applied.
        """
        if point_in_polygon(vertices, (ball.x, ball.y)):
            return False

        closest = closest_edge_point(vertices, (ball.x, ball.y))
        if closest is None:
            return False
        _, (px, py), _ = closest

        # Points from the boundary towards the escaped ball, i.e. outward
        nx, ny = normalize(ball.x - px, ball.y - py)
        ball.x = px - nx * (self.radius + ESCAPE_MARGIN)
        ball.y = py - ny * (self.radius + ESCAPE_MARGIN)

        if dot(ball.vx, ball.vy, nx, ny) > 0:
            ball.vx = -ball.vx * ESCAPE_DAMPING
            ball.vy = -ball.vy * ESCAPE_DAMPING
        return True

    def detect_and_resolve(
        self, ball: Ball, vertices: Sequence[Point], hazards: HazardState
    ) -> Optional[Collision]:
        """Bounce the ball off the first touching edge, at most one per tick."""
        count = len(vertices)
        center = _centroid(vertices)

        for i in range(count):
            v1, v2 = vertices[i], vertices[(i + 1) % count]
            projection = project_point_onto_segment(v1, v2, (ball.x, ball.y))
            if not projection.within_segment:
                continue

            px, py = projection.proj_point
            dist = calculate_distance(ball.x, ball.y, px, py)
            if dist > self.radius:
                continue

            now = self.clock()
            if (
                ball.lastCollisionTime is not None
                and now - ball.lastCollisionTime < COLLISION_DEBOUNCE
            ):
                continue
            ball.lastCollisionTime = now

            if dist > 0:
                nx, ny = (ball.x - px) / dist, (ball.y - py) / dist
            else:
                # Centre exactly on the edge line: push towards the interior
                nx, ny = normalize(center[0] - px, center[1] - py)

            ball.x = px + nx * (self.radius + CONTACT_OFFSET)
            ball.y = py + ny * (self.radius + CONTACT_OFFSET)
            self.bounce(ball, nx, ny)

            return Collision(edgeIndex=i, x=px, y=py, kind=hazards.edge_state(i))

        return None

    def bounce(self, ball: Ball, nx: float, ny: float):
        """Reflect, amplify, jitter and cap the ball velocity."""
        vx, vy = reflect(ball.vx, ball.vy, nx, ny)
        scale = BOUNCE_DAMPING * BOUNCE_SPEED_MULTIPLIER
        vx, vy = vx * scale, vy * scale

        jitter = (self.rng.random() - 0.5) * BOUNCE_JITTER
        vx, vy = perturb_angle(vx, vy, jitter)
        ball.vx, ball.vy = cap_speed(vx, vy, MAX_BALL_SPEED)


def _centroid(vertices: Sequence[Point]) -> Point:
    n = len(vertices)
    return sum(v[0] for v in vertices) / n, sum(v[1] for v in vertices) / n
