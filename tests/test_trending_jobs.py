from __future__ import annotations

import asyncio
import math
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, call, patch

from bookclub.trending.aggregator import aggregate_trending_scores
from bookclub.trending.config import TrendingConfig
from bookclub.trending.decay import decay_score, decay_trending_scores
from bookclub.trending.pool import refresh_trending_pool
from bookclub.trending.repository import TrendingRepository
from bookclub.trending.retention import cleanup_search_events
from tests.fake_firestore import FakeFirestore, FakeFirestoreClient

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class _FirestoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = FakeFirestore()
        self.config = TrendingConfig(cleanup_pause_seconds=0)
        self.repo = self._make_repo(self.config)
        self._event_seq = 0

    def _make_repo(self, config: TrendingConfig) -> TrendingRepository:
        return TrendingRepository(FakeFirestoreClient(self.db), config=config)  # type: ignore[arg-type]

    def _event(self, query: str, *, age: timedelta) -> None:
        self._event_seq += 1
        self.db.seed(
            "search_events",
            f"e{self._event_seq:06d}",
            {"query": query, "timestamp": NOW - age},
        )

    def _book(self, slug: str, **fields) -> None:
        self.db.seed("books", slug, {"slug": slug, "title": slug.title(), **fields})


class AggregatorTestCase(_FirestoreTestCase):
    def _run(self, config: TrendingConfig | None = None):
        cfg = config or self.config
        repo = self.repo if config is None else self._make_repo(cfg)
        return asyncio.run(aggregate_trending_scores(repo, cfg, NOW))

    def test_normalized_variants_are_counted_together(self) -> None:
        self._book("dune")
        for _ in range(3):
            self._event("dune", age=timedelta(hours=1))
        self._event("Dune ", age=timedelta(hours=2))

        result = self._run()

        book = self.db.docs("books")["dune"]
        self.assertEqual(book["search_score_24h"], 4)
        self.assertEqual(book["last_score_update"], NOW)
        self.assertEqual(result.events_scanned, 4)
        self.assertEqual(result.terms_aggregated, 1)
        self.assertEqual(result.entries_updated, 1)
        self.assertEqual(result.updated_ids, ["dune"])

    def test_window_lower_bound_is_inclusive(self) -> None:
        self._book("emma")
        self._event("emma", age=timedelta(hours=24))
        self._event("emma", age=timedelta(hours=24, seconds=1))

        result = self._run()

        self.assertEqual(result.events_scanned, 1)
        self.assertEqual(self.db.docs("books")["emma"]["search_score_24h"], 1)

    def test_unmatched_terms_are_dropped_and_other_scores_stick(self) -> None:
        self._book("emma", search_score_24h=7)
        self._event("unknown title", age=timedelta(hours=1))

        result = self._run()

        self.assertEqual(result.terms_aggregated, 1)
        self.assertEqual(result.entries_updated, 0)
        self.assertEqual(self.db.docs("books")["emma"]["search_score_24h"], 7)

    def test_slug_match_is_case_sensitive(self) -> None:
        self.db.seed("books", "Dune", {"slug": "Dune"})
        self._event("DUNE", age=timedelta(hours=1))

        result = self._run()

        self.assertEqual(result.entries_updated, 0)
        self.assertNotIn("search_score_24h", self.db.docs("books")["Dune"])

    def test_running_twice_is_idempotent(self) -> None:
        self._book("dune")
        self._book("emma")
        for query in ["dune", "emma", "dune", "Emma", "dune"]:
            self._event(query, age=timedelta(minutes=30))

        self._run()
        first = self.db.docs("books")
        self._run()
        second = self.db.docs("books")

        self.assertEqual(first, second)
        self.assertEqual(second["dune"]["search_score_24h"], 3)
        self.assertEqual(second["emma"]["search_score_24h"], 2)

    def test_zero_events_commits_empty_batch(self) -> None:
        self._book("dune", search_score_24h=5)

        result = self._run()

        self.assertEqual((result.events_scanned, result.terms_aggregated, result.entries_updated), (0, 0, 0))
        self.assertEqual(self.db.commit_sizes, [0])
        self.assertEqual(self.db.docs("books")["dune"]["search_score_24h"], 5)

    def test_only_top_terms_are_considered(self) -> None:
        # t0..t50：t50 次数最少，处于前 50 之外
        for i in range(51):
            self._book(f"t{i}")
            for _ in range(60 - i):
                self._event(f"t{i}", age=timedelta(hours=1))

        result = self._run()

        books = self.db.docs("books")
        self.assertEqual(result.terms_aggregated, 50)
        self.assertEqual(result.entries_updated, 50)
        self.assertEqual(books["t49"]["search_score_24h"], 11)
        self.assertNotIn("search_score_24h", books["t50"])

    def test_top_terms_limit_is_configurable(self) -> None:
        self._book("a")
        self._book("b")
        self._event("a", age=timedelta(hours=1))
        self._event("a", age=timedelta(hours=1))
        self._event("b", age=timedelta(hours=1))

        result = self._run(TrendingConfig(top_terms_limit=1, cleanup_pause_seconds=0))

        self.assertEqual(result.updated_ids, ["a"])

    def test_commit_failure_writes_nothing_and_propagates(self) -> None:
        self._book("dune")
        self._event("dune", age=timedelta(hours=1))
        self.db.fail_commit_numbers = {1}

        with self.assertRaises(RuntimeError):
            self._run()
        self.assertNotIn("search_score_24h", self.db.docs("books")["dune"])


class DecayTestCase(_FirestoreTestCase):
    def _run(self, config: TrendingConfig | None = None):
        cfg = config or self.config
        repo = self.repo if config is None else self._make_repo(cfg)
        return asyncio.run(decay_trending_scores(repo, cfg, NOW))

    def test_single_pass_multiplies_by_decay_rate(self) -> None:
        self._book("dune", trendingScore=10)

        result = self._run()

        self.assertAlmostEqual(self.db.docs("books")["dune"]["trendingScore"], 9.0, places=9)
        self.assertEqual((result.scanned, result.decayed, result.truncated), (1, 1, False))

    def test_score_freezes_once_at_or_below_threshold(self) -> None:
        self._book("dune", trendingScore=10)
        expected = 10.0
        runs = 0
        while expected > 0.5:
            self._run()
            expected *= 0.9
            runs += 1
            self.assertAlmostEqual(self.db.docs("books")["dune"]["trendingScore"], expected, places=9)

        self.assertEqual(runs, math.ceil(math.log(0.05) / math.log(0.9)))
        frozen = self.db.docs("books")["dune"]["trendingScore"]
        self.assertGreater(frozen, 0)

        result = self._run()
        self.assertEqual(result.scanned, 0)
        self.assertEqual(self.db.docs("books")["dune"]["trendingScore"], frozen)

    def test_threshold_is_strict_and_missing_scores_ignored(self) -> None:
        self._book("edge", trendingScore=0.5)
        self._book("plain")
        self._book("hot", trendingScore=2)

        result = self._run()

        books = self.db.docs("books")
        self.assertEqual(result.decayed, 1)
        self.assertEqual(books["edge"]["trendingScore"], 0.5)
        self.assertNotIn("trendingScore", books["plain"])
        self.assertAlmostEqual(books["hot"]["trendingScore"], 1.8, places=9)

    def test_batch_cap_truncates_selection(self) -> None:
        for i in range(5):
            self._book(f"b{i}", trendingScore=100)

        result = self._run(TrendingConfig(decay_batch_size=3, cleanup_pause_seconds=0))

        scores = [b["trendingScore"] for b in self.db.docs("books").values()]
        self.assertEqual(result.decayed, 3)
        self.assertTrue(result.truncated)
        self.assertEqual(sorted(scores), [90.0, 90.0, 90.0, 100, 100])

    def test_exactly_at_cap_is_not_truncated(self) -> None:
        for i in range(3):
            self._book(f"b{i}", trendingScore=100)

        result = self._run(TrendingConfig(decay_batch_size=3, cleanup_pause_seconds=0))

        self.assertEqual((result.scanned, result.decayed, result.truncated), (3, 3, False))
        self.assertEqual([b["trendingScore"] for b in self.db.docs("books").values()], [90.0] * 3)

    def test_nothing_above_threshold_skips_commit(self) -> None:
        self._book("cold", trendingScore=0.1)

        result = self._run()

        self.assertEqual(result.scanned, 0)
        self.assertEqual(self.db.commit_sizes, [])

    def test_decay_score_never_negative(self) -> None:
        self.assertEqual(decay_score(-3.0, 0.9), 0.0)
        self.assertAlmostEqual(decay_score(1.0, 0.9), 0.9)


class RetentionTestCase(_FirestoreTestCase):
    def _run(self, config: TrendingConfig | None = None):
        cfg = config or self.config
        repo = self.repo if config is None else self._make_repo(cfg)
        return asyncio.run(cleanup_search_events(repo, cfg, NOW))

    def test_drains_old_events_in_batches(self) -> None:
        for i in range(301):
            self._event("old", age=timedelta(days=8, seconds=i))
        for _ in range(5):
            self._event("recent", age=timedelta(days=1))

        result = self._run()

        self.assertEqual(result.deleted, 301)
        self.assertEqual(result.batches, 2)
        self.assertEqual(self.db.commit_sizes, [300, 1])
        # 两次有结果的查询 + 一次空查询
        self.assertEqual(self.db.query_count, 3)
        remaining = self.db.docs("search_events")
        self.assertEqual(len(remaining), 5)
        self.assertTrue(all(doc["query"] == "recent" for doc in remaining.values()))

    def test_batch_count_is_ceil_of_total(self) -> None:
        for i in range(20):
            self._event("old", age=timedelta(days=30, minutes=i))

        result = self._run(TrendingConfig(cleanup_batch_size=7, cleanup_pause_seconds=0))

        self.assertEqual(result.batches, math.ceil(20 / 7))
        self.assertEqual(self.db.commit_sizes, [7, 7, 6])

    def test_pauses_between_batches(self) -> None:
        for i in range(10):
            self._event("old", age=timedelta(days=30, minutes=i))
        config = TrendingConfig(cleanup_batch_size=5, cleanup_pause_seconds=0.25)

        with patch("bookclub.trending.retention.asyncio.sleep", new=AsyncMock()) as sleep:
            result = self._run(config)

        self.assertEqual(result.batches, 2)
        self.assertEqual(sleep.await_args_list, [call(0.25), call(0.25)])

    def test_cutoff_is_exclusive(self) -> None:
        self._event("boundary", age=timedelta(days=7))

        result = self._run()

        self.assertEqual(result.deleted, 0)
        self.assertEqual(len(self.db.docs("search_events")), 1)

    def test_interrupted_run_keeps_progress_and_resumes(self) -> None:
        for days in (14, 13, 12, 11, 10):
            self._event(f"d{days}", age=timedelta(days=days))
        self.db.fail_commit_numbers = {2}
        config = TrendingConfig(cleanup_batch_size=2, cleanup_pause_seconds=0)

        with self.assertRaises(RuntimeError):
            self._run(config)

        remaining = sorted(doc["query"] for doc in self.db.docs("search_events").values())
        self.assertEqual(remaining, ["d10", "d11", "d12"])

        self.db.fail_commit_numbers = set()
        result = self._run(config)
        self.assertEqual(result.deleted, 3)
        self.assertEqual(self.db.docs("search_events"), {})

    def test_nothing_to_delete(self) -> None:
        self._event("recent", age=timedelta(hours=3))

        result = self._run()

        self.assertEqual((result.deleted, result.batches), (0, 0))
        self.assertEqual(self.db.commit_sizes, [])


class PoolPublisherTestCase(_FirestoreTestCase):
    def _run(self):
        return asyncio.run(refresh_trending_pool(self.repo, self.config, NOW))

    def test_publishes_top_slugs_and_tolerates_club_failure(self) -> None:
        letters = "abcdefghijkl"
        for i, slug in enumerate(letters):
            self._book(slug, search_score_24h=100 - i)
        for club_id in ("club-a", "club-b", "club-c"):
            self.db.seed("clubs", club_id, {"name": club_id})
        self.db.fail_update_ids = {"club-b"}

        result = self._run()

        expected = list("abcdefghij")
        clubs = self.db.docs("clubs")
        self.assertEqual(result.slugs, expected)
        self.assertEqual(clubs["club-a"]["trendingPool"], expected)
        self.assertEqual(clubs["club-c"]["trendingPool"], expected)
        self.assertEqual(clubs["club-a"]["lastTrendingUpdate"], NOW)
        self.assertNotIn("trendingPool", clubs["club-b"])
        self.assertEqual(result.clubs_total, 3)
        self.assertEqual(result.clubs_updated, 2)
        self.assertEqual(result.failed_club_ids, ["club-b"])

    def test_pool_is_overwritten_not_merged(self) -> None:
        self._book("dune", search_score_24h=3)
        self._book("unscored")
        self.db.seed("clubs", "c1", {"trendingPool": ["old-1", "old-2"]})

        result = self._run()

        self.assertEqual(result.slugs, ["dune"])
        self.assertEqual(self.db.docs("clubs")["c1"]["trendingPool"], ["dune"])

    def test_no_clubs(self) -> None:
        self._book("dune", search_score_24h=3)

        result = self._run()

        self.assertEqual((result.clubs_total, result.clubs_updated), (0, 0))
        self.assertEqual(result.failed_club_ids, [])


if __name__ == "__main__":
    unittest.main()
