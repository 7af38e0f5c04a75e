import asyncio
import json

import httpx
import pytest

from models.entities import ScoreEntry
from services.leaderboard_service import (
    InMemoryScoreStore,
    JsonBinScoreStore,
    LeaderboardService,
    LeaderboardStoreError,
)


class FailingStore:
    async def load(self):
        raise LeaderboardStoreError("store offline")

    async def save(self, scores):
        raise LeaderboardStoreError("store offline")


@pytest.fixture
def store():
    return InMemoryScoreStore()


@pytest.fixture
def leaderboard(store, clock):
    return LeaderboardService(store, clock=clock)


def test_anonymous_scores_are_not_submitted(leaderboard, store):
    assert asyncio.run(leaderboard.submit_score("", 500, 3)) == "skipped"
    assert asyncio.run(leaderboard.submit_score("   ", 500, 3)) == "skipped"
    assert store.scores == []


def test_new_player_is_recorded(leaderboard, store):
    assert asyncio.run(leaderboard.submit_score("ANN", 120, 2)) == "ok"

    [entry] = store.scores
    assert (entry.name, entry.score, entry.level) == ("ANN", 120, 2)
    assert entry.timestamp


def test_lower_second_score_is_skipped(leaderboard, store):
    first = asyncio.run(leaderboard.submit_score("BOB", 500, 4))
    second = asyncio.run(leaderboard.submit_score("bob", 300, 6))

    assert (first, second) == ("ok", "skipped")
    [entry] = store.scores
    assert (entry.name, entry.score, entry.level) == ("BOB", 500, 4)


def test_equal_score_is_not_a_new_best(leaderboard):
    asyncio.run(leaderboard.submit_score("BOB", 500, 4))

    assert asyncio.run(leaderboard.submit_score("BOB", 500, 5)) == "skipped"


def test_higher_score_replaces_entry(leaderboard, store):
    asyncio.run(leaderboard.submit_score("BOB", 500, 4))

    assert asyncio.run(leaderboard.submit_score("Bob", 900, 7)) == "ok"

    [entry] = store.scores
    assert (entry.name, entry.score, entry.level) == ("Bob", 900, 7)


def test_store_keeps_only_top_hundred(leaderboard, store):
    store.scores = [ScoreEntry(f"P{i}", 1000 + i, 1) for i in range(100)]

    asyncio.run(leaderboard.submit_score("NEW", 5000, 9))

    assert len(store.scores) == 100
    assert store.scores[0].name == "NEW"
    assert "P0" not in {s.name for s in store.scores}


def test_fetch_returns_top_twenty_best_first(leaderboard, store):
    store.scores = [ScoreEntry(f"P{i}", i * 10, 1 + i % 5) for i in range(30)]

    scores = asyncio.run(leaderboard.fetch_leaderboard())

    assert len(scores) == 20
    assert scores[0] == {"name": "P29", "score": 290, "level": 5}
    assert [s["score"] for s in scores] == sorted((s["score"] for s in scores), reverse=True)


def test_fetch_is_cached_for_a_minute(leaderboard, store, clock):
    store.scores = [ScoreEntry("ANN", 10, 1)]
    asyncio.run(leaderboard.fetch_leaderboard())

    store.scores = [ScoreEntry("ANN", 10, 1), ScoreEntry("BOB", 20, 1)]
    clock.advance(30)
    assert len(asyncio.run(leaderboard.fetch_leaderboard())) == 1
    assert len(asyncio.run(leaderboard.fetch_leaderboard(force_refresh=True))) == 2

    store.scores = []
    clock.advance(61)
    assert asyncio.run(leaderboard.fetch_leaderboard()) == []


def test_submission_invalidates_cache(leaderboard):
    assert asyncio.run(leaderboard.fetch_leaderboard()) == []

    asyncio.run(leaderboard.submit_score("ANN", 40, 1))

    assert asyncio.run(leaderboard.fetch_leaderboard()) == [{"name": "ANN", "score": 40, "level": 1}]


class SlowStore(InMemoryScoreStore):
    async def load(self):
        scores = await super().load()
        await asyncio.sleep(0.01)
        return scores


def test_overlapping_submissions_are_all_stored(clock):
    store = SlowStore()
    leaderboard = LeaderboardService(store, clock=clock)

    async def submit_both():
        return await asyncio.gather(
            leaderboard.submit_score("ANN", 100, 1),
            leaderboard.submit_score("BOB", 200, 2),
        )

    assert asyncio.run(submit_both()) == ["ok", "ok"]
    assert sorted((s.name, s.score) for s in store.scores) == [("ANN", 100), ("BOB", 200)]


def test_fetch_started_before_submission_does_not_leave_stale_cache(clock):
    leaderboard = LeaderboardService(SlowStore(), clock=clock)

    async def fetch_while_submitting():
        await asyncio.gather(
            leaderboard.fetch_leaderboard(),
            leaderboard.submit_score("ANN", 40, 1),
        )
        return await leaderboard.fetch_leaderboard()

    assert asyncio.run(fetch_while_submitting()) == [{"name": "ANN", "score": 40, "level": 1}]


def test_store_failures_stay_local(clock):
    leaderboard = LeaderboardService(FailingStore(), clock=clock)

    assert asyncio.run(leaderboard.submit_score("ANN", 40, 1)) == "error"
    assert asyncio.run(leaderboard.fetch_leaderboard()) == []


def _jsonbin(handler):
    client = httpx.AsyncClient(
        base_url="https://jsonbin.test/v3", transport=httpx.MockTransport(handler)
    )
    return JsonBinScoreStore(bin_id="bin42", api_key="secret", client=client)


def test_jsonbin_load_reads_scores_and_legacy_names():
    def handler(request):
        assert request.url.path == "/v3/b/bin42/latest"
        assert request.headers["X-Master-Key"] == "secret"
        record = {"scores": [{"username": "OLD", "score": 50, "level": 2, "timestamp": "t"}]}
        return httpx.Response(200, json={"record": record})

    [entry] = asyncio.run(_jsonbin(handler).load())

    assert (entry.name, entry.score, entry.level) == ("OLD", 50, 2)


def test_jsonbin_missing_bin_is_empty():
    store = _jsonbin(lambda request: httpx.Response(404))

    assert asyncio.run(store.load()) == []


def test_jsonbin_server_error_raises_store_error():
    store = _jsonbin(lambda request: httpx.Response(500))

    with pytest.raises(LeaderboardStoreError):
        asyncio.run(store.load())


def test_jsonbin_save_puts_whole_list():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={})

    asyncio.run(_jsonbin(handler).save([ScoreEntry("ANN", 10, 1, "t")]))

    assert seen["method"] == "PUT"
    assert seen["path"] == "/v3/b/bin42"
    assert seen["body"] == {"scores": [{"name": "ANN", "score": 10, "level": 1, "timestamp": "t"}]}
