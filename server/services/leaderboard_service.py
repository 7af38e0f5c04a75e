# server/services/leaderboard_service.py
"""Leaderboard storage, submission rules and fetch caching."""

import asyncio
import logging
import time
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Callable, List, Optional

import httpx

from models.entities import ScoreEntry
from config.settings import (
    JSONBIN_API_KEY,
    JSONBIN_BASE_URL,
    JSONBIN_BIN_ID,
    JSONBIN_TIMEOUT,
    LEADERBOARD_CACHE_TTL,
    LEADERBOARD_MAX_ENTRIES,
    LEADERBOARD_TOP,
    is_jsonbin_configured,
)

logger = logging.getLogger(__name__)

SUBMIT_OK = "ok"
SUBMIT_SKIPPED = "skipped"
SUBMIT_ERROR = "error"


class LeaderboardStoreError(Exception):
    """Raised when the score store cannot be read or written."""


def _entry_from_record(record: dict) -> ScoreEntry:
    # Older records were written with a "username" key
    name = record.get("name", record.get("username"))
    if not isinstance(name, str):
        raise LeaderboardStoreError(f"score record without a name: {record!r}")
    return ScoreEntry(
        name=name,
        score=int(record.get("score", 0)),
        level=int(record.get("level", 1)),
        timestamp=record.get("timestamp", ""),
    )


class InMemoryScoreStore:
    """Keeps the score list in process memory."""

    def __init__(self, scores: Optional[List[ScoreEntry]] = None):
        self.scores: List[ScoreEntry] = list(scores or [])

    async def load(self) -> List[ScoreEntry]:
        return [ScoreEntry(**asdict(entry)) for entry in self.scores]

    async def save(self, scores: List[ScoreEntry]):
        self.scores = [ScoreEntry(**asdict(entry)) for entry in scores]


class JsonBinScoreStore:
    """Keeps the score list in a JSONBin bin as ``{"scores": [...]}``."""

    def __init__(
        self,
        bin_id: str = JSONBIN_BIN_ID,
        api_key: str = JSONBIN_API_KEY,
        base_url: str = JSONBIN_BASE_URL,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.bin_id = bin_id
        self.api_key = api_key
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=JSONBIN_TIMEOUT)

    async def load(self) -> List[ScoreEntry]:
        try:
            response = await self.client.get(
                f"/b/{self.bin_id}/latest", headers={"X-Master-Key": self.api_key}
            )
            if response.status_code == 404:
                logger.debug("Bin %s not found, starting with no scores", self.bin_id)
                return []
            response.raise_for_status()
            records = response.json().get("record", {}).get("scores") or []
            return [_entry_from_record(record) for record in records]
        except (httpx.HTTPError, ValueError, AttributeError, TypeError) as e:
            raise LeaderboardStoreError(f"failed to load scores: {e}") from e

    async def save(self, scores: List[ScoreEntry]):
        try:
            response = await self.client.put(
                f"/b/{self.bin_id}",
                headers={"X-Master-Key": self.api_key},
                json={"scores": [asdict(entry) for entry in scores]},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise LeaderboardStoreError(f"failed to save scores: {e}") from e

    async def close(self):
        await self.client.aclose()


def create_score_store():
    """Use JSONBin when credentials are configured, process memory otherwise."""
    if is_jsonbin_configured():
        logger.info("Leaderboard backed by JSONBin bin %s", JSONBIN_BIN_ID)
        return JsonBinScoreStore()
    logger.info("JSONBin not configured, leaderboard kept in memory")
    return InMemoryScoreStore()


class LeaderboardService:
    """Applies the submission rules and caches fetched standings.

    Submissions read the whole score list and write it back, so every store
    round trip runs under one lock to keep concurrent sessions from
    overwriting each other.
    """

    def __init__(self, store=None, clock: Callable[[], float] = time.monotonic):
        self.store = store if store is not None else InMemoryScoreStore()
        self.clock = clock
        self._cache: Optional[List[dict]] = None
        self._cache_time = 0.0
        self._lock = asyncio.Lock()

    async def submit_score(self, name: str, score: int, level: int) -> str:
        """Record a score if it beats the player's best.

        Returns ``"ok"``, ``"skipped"`` (anonymous player or no new best) or
        ``"error"`` when the store failed.
        """
        name = (name or "").strip()
        if not name:
            logger.debug("Anonymous player - score not submitted")
            return SUBMIT_SKIPPED

        async with self._lock:
            try:
                scores = await self.store.load()

                key = name.lower()
                existing = next((i for i, s in enumerate(scores) if s.name.lower() == key), None)
                entry = ScoreEntry(
                    name=name,
                    score=score,
                    level=level,
                    timestamp=datetime.now(timezone.utc).isoformat(),
                )

                if existing is not None:
                    previous = scores[existing].score
                    if score <= previous:
                        logger.debug("Score %d does not beat %s's best of %d", score, name, previous)
                        return SUBMIT_SKIPPED
                    scores[existing] = entry
                    logger.info("New high score for %s: %d (previous %d)", name, score, previous)
                else:
                    scores.append(entry)

                scores.sort(key=lambda s: s.score, reverse=True)
                await self.store.save(scores[:LEADERBOARD_MAX_ENTRIES])
            except LeaderboardStoreError:
                logger.exception("Error submitting score for %s", name)
                return SUBMIT_ERROR

            self.invalidate_cache()
        return SUBMIT_OK

    async def fetch_leaderboard(self, force_refresh: bool = False) -> List[dict]:
        """Top scores, best first, served from a short-lived cache."""
        async with self._lock:
            now = self.clock()
            if (
                not force_refresh
                and self._cache is not None
                and now - self._cache_time < LEADERBOARD_CACHE_TTL
            ):
                logger.debug("Using cached leaderboard data")
                return list(self._cache)

            try:
                scores = await self.store.load()
            except LeaderboardStoreError:
                logger.exception("Error fetching leaderboard")
                scores = []

            scores.sort(key=lambda s: s.score, reverse=True)
            self._cache = [
                {"name": s.name, "score": s.score, "level": s.level}
                for s in scores[:LEADERBOARD_TOP]
            ]
            self._cache_time = now
            return list(self._cache)

    def invalidate_cache(self):
        self._cache = None
