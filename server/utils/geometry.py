# server/utils/geometry.py
"""Point and vector helpers for polygon collision."""

import math
from typing import NamedTuple, Optional, Sequence, Tuple

Point = Tuple[float, float]


class EdgeProjection(NamedTuple):
    """Projection of a point onto the line through one polygon edge."""

    edge: Point  # unit direction from v1 to v2
    edge_length: float
    proj_length: float  # signed, measured from v1
    proj_point: Point  # on the infinite line
    clamped_point: Point  # on the segment

    @property
    def within_segment(self) -> bool:
        return 0 <= self.proj_length <= self.edge_length


def calculate_distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Calculate distance between two points."""
    return math.hypot(x2 - x1, y2 - y1)


def dot(ax: float, ay: float, bx: float, by: float) -> float:
    return ax * bx + ay * by


def normalize(x: float, y: float) -> Point:
    """Scale a vector to unit length; the zero vector is returned unchanged."""
    length = math.hypot(x, y)
    if length == 0:
        return 0.0, 0.0
    return x / length, y / length


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def reflect(vx: float, vy: float, nx: float, ny: float) -> Point:
    """Reflect a velocity across a unit normal: v' = v - 2(v.n)n."""
    d = dot(vx, vy, nx, ny)
    return vx - 2 * d * nx, vy - 2 * d * ny


def perturb_angle(vx: float, vy: float, offset: float) -> Point:
    """Rotate a vector by ``offset`` radians, keeping its speed."""
    speed = math.hypot(vx, vy)
    angle = math.atan2(vy, vx) + offset
    return speed * math.cos(angle), speed * math.sin(angle)


def cap_speed(vx: float, vy: float, max_speed: float) -> Point:
    """Uniformly rescale a vector so its length does not exceed max_speed."""
    speed = math.hypot(vx, vy)
    if speed > max_speed:
        return vx / speed * max_speed, vy / speed * max_speed
    return vx, vy


def project_point_onto_segment(v1: Point, v2: Point, p: Point) -> EdgeProjection:
    """Project ``p`` onto the edge v1 -> v2.

    Returns the unit edge direction, the edge length, the signed projection
    length along the edge, the projected point on the infinite line and the
    same point clamped to the segment.
    """
    ex, ey = v2[0] - v1[0], v2[1] - v1[1]
    edge_length = math.hypot(ex, ey)
    ux, uy = normalize(ex, ey)

    proj_length = dot(p[0] - v1[0], p[1] - v1[1], ux, uy)
    proj_point = (v1[0] + ux * proj_length, v1[1] + uy * proj_length)

    clamped_length = clamp(proj_length, 0, edge_length)
    clamped_point = (v1[0] + ux * clamped_length, v1[1] + uy * clamped_length)

    return EdgeProjection((ux, uy), edge_length, proj_length, proj_point, clamped_point)


def point_in_polygon(vertices: Sequence[Point], p: Point) -> bool:
    """Crossing-number test of ``p`` against the ordered vertex ring."""
    x, y = p
    inside = False
    j = len(vertices) - 1
    for i in range(len(vertices)):
        xi, yi = vertices[i]
        xj, yj = vertices[j]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def closest_edge_point(
    vertices: Sequence[Point], p: Point
) -> Optional[Tuple[int, Point, float]]:
    """Find the edge whose clamped projection lies nearest to ``p``.

    Returns ``(edge_index, clamped_point, distance)``, or None for an empty ring.
    """
    best = None
    count = len(vertices)
    for i in range(count):
        projection = project_point_onto_segment(vertices[i], vertices[(i + 1) % count], p)
        cx, cy = projection.clamped_point
        dist = calculate_distance(p[0], p[1], cx, cy)
        if best is None or dist < best[2]:
            best = (i, projection.clamped_point, dist)
    return best
