# server/models/polygon.py
"""The rotating arena polygon."""

import math
from dataclasses import dataclass
from typing import List

from config.settings import (
    MAX_ROTATION_SPEED,
    ROTATION_ACCELERATION,
    ROTATION_DAMPING,
)
from utils.geometry import Point, clamp


def compute_vertices(center: Point, radius: float, sides: int, rotation: float) -> List[Point]:
    """Vertex i sits at angle i*(2pi/N) - pi/2 + rotation, so vertex 0 points up at rest."""
    assert sides >= 3 and radius > 0, f"degenerate polygon: sides={sides} radius={radius}"
    cx, cy = center
    step = 2 * math.pi / sides
    vertices = []
    for i in range(sides):
        angle = i * step - math.pi / 2 + rotation
        vertices.append((cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
    return vertices


@dataclass
class Polygon:
    """Represents the arena: a regular polygon spun by player input."""

    center: Point
    radius: float
    sides: int
    rotation: float = 0.0
    rotation_speed: float = 0.0

    def vertices(self) -> List[Point]:
        return compute_vertices(self.center, self.radius, self.sides, self.rotation)

    def edge_midpoint(self, index: int) -> Point:
        vertices = self.vertices()
        v1, v2 = vertices[index], vertices[(index + 1) % self.sides]
        return (v1[0] + v2[0]) / 2, (v1[1] + v2[1]) / 2

    def apply_controls(self, rotate_left: bool, rotate_right: bool):
        """Accelerate from held input, damp when idle, then advance the rotation."""
        if rotate_left:
            self.rotation_speed -= ROTATION_ACCELERATION
        elif rotate_right:
            self.rotation_speed += ROTATION_ACCELERATION
        else:
            self.rotation_speed *= ROTATION_DAMPING

        self.rotation_speed = clamp(self.rotation_speed, -MAX_ROTATION_SPEED, MAX_ROTATION_SPEED)
        self.rotation += self.rotation_speed
