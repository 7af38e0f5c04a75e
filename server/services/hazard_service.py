# server/services/hazard_service.py
"""Edge classification and the timed explosive-edge rotation."""

import logging
import math
import random
from typing import Optional, Set, Tuple

from models.entities import EdgeState
from config.settings import (
    EXPLOSIVE_CHANGE_INTERVAL,
    EXPLOSIVE_FRACTION,
    WARNING_START,
)

logger = logging.getLogger(__name__)


class HazardState:
    """Tracks cleared, explosive and pending-explosive edges for one polygon.

    The pending set is chosen a full period ahead so that clients can warn
    about it once the timer passes ``warning_start``.
    """

    def __init__(
        self,
        sides: int,
        rng: Optional[random.Random] = None,
        change_interval: int = EXPLOSIVE_CHANGE_INTERVAL,
        warning_start: int = WARNING_START,
    ):
        assert 0 <= warning_start < change_interval
        self.sides = sides
        self.rng = rng or random.Random()
        self.change_interval = change_interval
        self.warning_start = warning_start

        self.cleared: Set[int] = set()
        self.explosive: Set[int] = set()
        self.pending: Set[int] = set()
        self.timer = 0

    @property
    def hazard_count(self) -> int:
        return math.ceil(self.sides * EXPLOSIVE_FRACTION)

    def _sample_pending(self) -> Set[int]:
        available = [i for i in range(self.sides) if i not in self.cleared]
        count = min(self.hazard_count, len(available))
        return set(self.rng.sample(available, count))

    def rotate_hazards(self):
        """Promote the pending set to active and pick the next pending set.

        Edges cleared since the pending set was drawn are dropped on
        promotion. If nothing is left active (always the case on the first
        call) the fresh pending set is promoted straight away.
        """
        self.explosive = self.pending - self.cleared
        self.pending = self._sample_pending()

        if not self.explosive:
            self.explosive = self.pending
            self.pending = self._sample_pending()

        logger.debug(
            "Hazards rotated: explosive=%s pending=%s",
            sorted(self.explosive),
            sorted(self.pending),
        )
        self.check_invariants()

    def on_edge_cleared(self, index: int):
        assert index not in self.explosive, f"explosive edge {index} cannot be cleared"
        self.cleared.add(index)

    def reset_cleared_for_new_level(self):
        self.cleared.clear()

    def reset_for_level(self, sides: int):
        """Start a fresh level: regenerate both hazard sets against ``sides``."""
        self.sides = sides
        self.reset_cleared_for_new_level()
        self.explosive = set()
        self.pending = set()
        self.timer = 0
        self.rotate_hazards()

    def tick(self) -> bool:
        """Advance the hazard timer; returns True when a rotation happened."""
        self.timer += 1
        if self.timer >= self.change_interval:
            self.timer = 0
            self.rotate_hazards()
            return True
        return False

    def warning_intensity(self, index: int) -> Optional[float]:
        """Warning level in [0, 1] for an edge about to turn explosive, else None."""
        if (
            index not in self.pending
            or index in self.explosive
            or index in self.cleared
            or self.timer < self.warning_start
        ):
            return None
        span = self.change_interval - self.warning_start
        return min(1.0, (self.timer - self.warning_start) / span)

    def edge_state(self, index: int) -> EdgeState:
        if index in self.cleared:
            return EdgeState.CLEARED
        if index in self.explosive:
            return EdgeState.EXPLOSIVE
        return EdgeState.NEUTRAL

    def remaining_edges(self) -> int:
        """Count edges that are neither explosive nor cleared."""
        return sum(
            1
            for i in range(self.sides)
            if i not in self.explosive and i not in self.cleared
        )

    def progress(self) -> Tuple[int, int]:
        """Return ``(cleared, non_explosive)`` edge counts."""
        non_explosive = [i for i in range(self.sides) if i not in self.explosive]
        cleared = sum(1 for i in non_explosive if i in self.cleared)
        return cleared, len(non_explosive)

    def check_invariants(self):
        assert not (self.cleared & self.explosive), "edge both cleared and explosive"
        edges = set(range(self.sides))
        assert self.cleared <= edges and self.explosive <= edges and self.pending <= edges
