"""Tests for the tiered lookup cascade."""

import time

from pymongo.errors import OperationFailure

from fmea_bot.cascade import DEFAULT_STRATEGIES, ResolutionCascade, Strategy, collated_search, phrase_search, substring_search
from fmea_bot.models import ResolutionResult

from tests.fakes import FakeStore, make_record


class TestTierOrder:
    """First non-empty tier wins; later tiers are never touched."""

    def test_default_tier_order_and_deadlines(self):
        assert [s.name for s in DEFAULT_STRATEGIES] == ["phrase", "collated", "substring"]
        assert [s.deadline for s in DEFAULT_STRATEGIES] == [5.0, 4.0, 4.0]

    def test_phrase_hit_stops_cascade(self):
        store = FakeStore(phrase=[make_record(1), make_record(2)], exact=[make_record(3)])

        result = ResolutionCascade().resolve(store, "Shaft tidak berputar")

        assert result.strategy == "phrase"
        assert len(result) == 2
        assert store.calls == {"phrase": 1, "exact": 0, "substring": 0}

    def test_collated_runs_only_after_empty_phrase(self):
        store = FakeStore(exact=[make_record(1)], substring=[make_record(2)])

        result = ResolutionCascade().resolve(store, "pompa")

        assert result.strategy == "collated"
        assert result.records == (make_record(1),)
        assert store.calls == {"phrase": 1, "exact": 1, "substring": 0}

    def test_substring_is_last_resort(self):
        store = FakeStore(substring=[make_record(7)])

        result = ResolutionCascade().resolve(store, "bearing")

        assert result.strategy == "substring"
        assert store.calls == {"phrase": 1, "exact": 1, "substring": 1}

    def test_all_tiers_empty_returns_empty_result(self):
        store = FakeStore()

        result = ResolutionCascade().resolve(store, "oli bocor")

        assert result == ResolutionResult()
        assert not result
        assert result.strategy is None
        assert store.calls == {"phrase": 1, "exact": 1, "substring": 1}

    def test_blank_query_skips_every_tier(self):
        store = FakeStore(substring=[make_record(1)])

        for query in ("", "   "):
            assert ResolutionCascade().resolve(store, query) == ResolutionResult()

        assert store.calls == {"phrase": 0, "exact": 0, "substring": 0}


class TestCap:
    def test_results_capped_at_five(self):
        store = FakeStore(phrase=[make_record(i) for i in range(9)])

        result = ResolutionCascade().resolve(store, "motor")

        assert len(result) == 5
        assert result.records == tuple(make_record(i) for i in range(5))


class TestTierFailures:
    """Errors and timeouts fall through to the next tier."""

    def test_store_error_falls_through(self):
        store = FakeStore(
            phrase=OperationFailure("$search is not allowed", code=6047401),
            exact=[make_record(1)],
        )

        result = ResolutionCascade().resolve(store, "gearbox")

        assert result.strategy == "collated"
        assert store.calls["exact"] == 1

    def test_every_tier_failing_returns_empty(self):
        boom = RuntimeError("boom")
        store = FakeStore(phrase=boom, exact=boom, substring=boom)

        result = ResolutionCascade().resolve(store, "gearbox")

        assert not result

    def test_hanging_tier_reports_empty_within_deadline(self, release):
        def hang():
            release.wait(5)
            return [make_record(99)]

        store = FakeStore(phrase=hang, exact=[make_record(1)])
        cascade = ResolutionCascade(
            [
                Strategy("phrase", 0.2, phrase_search),
                Strategy("collated", 0.2, collated_search),
                Strategy("substring", 0.2, substring_search),
            ]
        )

        started = time.monotonic()
        result = cascade.resolve(store, "seal")
        elapsed = time.monotonic() - started

        assert result.strategy == "collated"
        assert result.records == (make_record(1),)
        assert elapsed < 0.2 + 0.5

    def test_none_from_tier_treated_as_empty(self):
        store = FakeStore(phrase=lambda: None, substring=[make_record(1)])

        result = ResolutionCascade().resolve(store, "kopling")

        assert result.strategy == "substring"
