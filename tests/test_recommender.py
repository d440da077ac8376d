"""Tests for the recommendation engine."""

from datetime import date, datetime, time, timedelta

import pytest

from crewplan.domain.availability import AvailabilityStore
from crewplan.domain.errors import InvalidJob
from crewplan.domain.models import Assignment, Job, Rationale, TimeWindow, Worker
from crewplan.scheduling.recommender import (
    RecommendationEngine,
    RecommendationWeights,
    RecommenderConfig,
)

MONDAY = date(2024, 1, 15)
WEEK = TimeWindow.for_week(MONDAY)


def at(day_offset: int, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(MONDAY + timedelta(days=day_offset), time(hour, minute))


def make_worker(worker_id: str, windows: list[tuple[int, int, int]], **kwargs) -> Worker:
    """Worker with (day_offset, start_hour, end_hour) windows."""
    availability: dict[date, list[TimeWindow]] = {}
    for day_offset, start, end in windows:
        day = MONDAY + timedelta(days=day_offset)
        availability.setdefault(day, []).append(TimeWindow(at(day_offset, start), at(day_offset, end)))
    return Worker(id=worker_id, name=worker_id, availability=availability, **kwargs)


def make_job(job_id: str = "J1", minutes: int = 120, earliest=None, latest=None, skills=()) -> Job:
    return Job(
        id=job_id,
        duration_minutes=minutes,
        earliest_start=earliest or at(0, 8),
        latest_finish=latest or at(0, 17),
        required_skills=frozenset(skills),
    )


class TestRecommend:
    """Tests for RecommendationEngine.recommend."""

    @pytest.fixture
    def engine(self):
        return RecommendationEngine()

    def test_morning_window_example(self, engine):
        """A two-hour job in a 09:00-12:00 window starts at 09:00."""
        store = AvailabilityStore([make_worker("W1", [(0, 9, 12)])])

        ranked = engine.recommend(make_job(), store, [], WEEK)

        assert len(ranked) == 1
        assert ranked[0].worker_id == "W1"
        assert ranked[0].start == at(0, 9)
        assert ranked[0].end == at(0, 11)
        assert ranked[0].score == pytest.approx(0.8)
        assert Rationale.BALANCES_WORKLOAD in ranked[0].rationale

    def test_earliest_start_ranks_above_later_starts(self):
        engine = RecommendationEngine(RecommenderConfig(alternative_step_minutes=30))
        store = AvailabilityStore([make_worker("W1", [(0, 9, 12)])])

        ranked = engine.recommend(make_job(), store, [], WEEK)

        assert [r.start for r in ranked] == [at(0, 9), at(0, 9, 30), at(0, 10)]
        assert ranked[0].score > ranked[1].score > ranked[2].score

    def test_exact_fit_accepted(self, engine):
        store = AvailabilityStore([make_worker("W1", [(0, 9, 11)])])
        ranked = engine.recommend(make_job(minutes=120), store, [], WEEK)
        assert [(r.start, r.end) for r in ranked] == [(at(0, 9), at(0, 11))]

    def test_one_minute_too_long_rejected(self, engine):
        store = AvailabilityStore([make_worker("W1", [(0, 9, 11)])])
        assert engine.recommend(make_job(minutes=121), store, [], WEEK) == []

    def test_tighter_fit_scores_higher(self, engine):
        """An exact-fit gap beats a roomier one when everything else is equal."""
        store = AvailabilityStore([make_worker("W1", [(0, 9, 12)]), make_worker("W2", [(0, 9, 11)])])
        job = make_job(earliest=at(0, 9))

        ranked = engine.recommend(job, store, [], WEEK)

        assert [r.worker_id for r in ranked] == ["W2", "W1"]
        assert ranked[0].score >= ranked[1].score
        assert Rationale.FILLS_GAP in ranked[0].rationale

    def test_ties_keep_worker_order(self, engine):
        store = AvailabilityStore([make_worker("W2", [(0, 9, 12)]), make_worker("W1", [(0, 9, 12)])])
        ranked = engine.recommend(make_job(), store, [], WEEK)
        assert [r.worker_id for r in ranked] == ["W1", "W2"]
        assert ranked[0].score == ranked[1].score

    def test_deterministic(self, engine):
        store = AvailabilityStore(
            [make_worker(f"W{i}", [(d, 8, 12) for d in range(5)]) for i in range(1, 4)]
        )
        existing = [Assignment(start=at(0, 8), end=at(0, 9), worker_id="W2", job_id="J9")]
        job = make_job(latest=at(4, 17))

        first = engine.recommend(job, store, existing, WEEK)
        second = engine.recommend(job, store, list(existing), WEEK)

        assert first == second
        assert len(first) == 15

    def test_skills_filter_workers(self, engine):
        store = AvailabilityStore(
            [
                make_worker("W1", [(0, 9, 12)], skills={"hvac"}),
                make_worker("W2", [(0, 9, 12)], skills={"gas", "hvac"}),
            ]
        )
        ranked = engine.recommend(make_job(skills={"gas"}), store, [], WEEK)

        assert [r.worker_id for r in ranked] == ["W2"]
        assert ranked[0].rationale[0] == Rationale.SKILL_MATCH

    def test_existing_assignments_are_avoided(self, engine):
        store = AvailabilityStore([make_worker("W1", [(0, 9, 12)])])
        existing = [Assignment(start=at(0, 9), end=at(0, 10), worker_id="W1", job_id="J2")]

        ranked = engine.recommend(make_job(), store, existing, WEEK)

        assert [r.start for r in ranked] == [at(0, 10)]
        assert Rationale.BALANCES_WORKLOAD not in ranked[0].rationale

    def test_rescheduling_ignores_own_slot(self, engine):
        store = AvailabilityStore([make_worker("W1", [(0, 9, 12)])])
        existing = [Assignment(start=at(0, 9), end=at(0, 11), worker_id="W1", job_id="J1")]

        ranked = engine.recommend(make_job("J1"), store, existing, WEEK)

        assert ranked[0].start == at(0, 9)

    def test_envelope_limits_start(self, engine):
        store = AvailabilityStore([make_worker("W1", [(0, 8, 17)])])
        ranked = engine.recommend(make_job(earliest=at(0, 13)), store, [], WEEK)
        assert [r.start for r in ranked] == [at(0, 13)]

    def test_envelope_outside_week(self, engine):
        store = AvailabilityStore([make_worker("W1", [(0, 9, 12)])])
        job = make_job(earliest=at(8, 8), latest=at(8, 17))
        assert engine.recommend(job, store, [], WEEK) == []

    def test_no_candidates_is_empty_not_error(self, engine):
        store = AvailabilityStore([make_worker("W1", [])])
        assert engine.recommend(make_job(), store, [], WEEK) == []

    def test_invalid_job(self, engine):
        store = AvailabilityStore([make_worker("W1", [(0, 9, 12)])])
        with pytest.raises(InvalidJob):
            engine.recommend(make_job(minutes=0), store, [], WEEK)
        with pytest.raises(InvalidJob):
            engine.recommend(make_job(earliest=at(0, 17), latest=at(0, 8)), store, [], WEEK)

    def test_weekly_capacity(self, engine):
        store = AvailabilityStore(
            [
                make_worker("W1", [(0, 9, 12)], weekly_capacity_minutes=60),
                make_worker("W2", [(0, 9, 12)], weekly_capacity_minutes=None),
            ]
        )
        ranked = engine.recommend(make_job(), store, [], WEEK)
        assert [r.worker_id for r in ranked] == ["W2"]

    def test_capacity_can_be_ignored(self):
        engine = RecommendationEngine(RecommenderConfig(enforce_weekly_capacity=False))
        store = AvailabilityStore([make_worker("W1", [(0, 9, 12)], weekly_capacity_minutes=60)])
        assert len(engine.recommend(make_job(), store, [], WEEK)) == 1

    def test_max_results(self):
        engine = RecommendationEngine(RecommenderConfig(max_results=2))
        store = AvailabilityStore([make_worker(f"W{i}", [(0, 9, 12)]) for i in range(1, 5)])
        assert len(engine.recommend(make_job(), store, [], WEEK)) == 2

    def test_inputs_not_modified(self, engine):
        store = AvailabilityStore([make_worker("W1", [(0, 9, 12)])])
        existing = [Assignment(start=at(0, 9), end=at(0, 10), worker_id="W1", job_id="J2")]
        snapshot = list(existing)

        engine.recommend(make_job(), store, existing, WEEK)

        assert existing == snapshot
        assert store.get_windows("W1", MONDAY) == [TimeWindow(at(0, 9), at(0, 12))]


class TestNextAvailable:
    """Tests for RecommendationEngine.next_available."""

    def test_first_slot_per_worker(self):
        engine = RecommendationEngine()
        store = AvailabilityStore(
            [
                make_worker("W1", [(0, 9, 12), (1, 9, 12)]),
                make_worker("W2", [(0, 10, 17)]),
            ]
        )

        results = engine.next_available(make_job(), store, [], after=at(0, 10, 30))

        assert [(r.worker_id, r.start) for r in results] == [("W2", at(0, 10, 30)), ("W1", at(1, 9))]

    def test_capacity_counted_per_calendar_week(self):
        """Bookings in two different weeks do not add up against one weekly cap."""
        engine = RecommendationEngine()
        store = AvailabilityStore([make_worker("W1", [(3, 8, 17)])])
        existing = [
            Assignment(start=at(week * 7 + d, 7), end=at(week * 7 + d, 17), worker_id="W1", job_id=f"B{week}{d}")
            for week in range(2)
            for d in range(3)
        ]

        results = engine.next_available(make_job(minutes=60), store, existing, after=at(0, 0))

        assert [(r.worker_id, r.start) for r in results] == [("W1", at(3, 8))]

    def test_invalid_duration(self):
        engine = RecommendationEngine()
        store = AvailabilityStore([make_worker("W1", [(0, 9, 12)])])
        with pytest.raises(InvalidJob):
            engine.next_available(make_job(minutes=0), store, [], after=at(0, 8))


class TestRecommendationWeights:
    """Tests for weight configuration."""

    def test_defaults(self):
        weights = RecommendationWeights()
        assert (weights.fit_weight, weights.earliness_weight, weights.balance_weight) == (0.5, 0.3, 0.2)

    def test_from_options(self):
        weights = RecommendationWeights.from_options({"fitWeight": 1, "balanceWeight": 0})
        assert weights.fit_weight == 1.0
        assert weights.earliness_weight == 0.3
        assert weights.balance_weight == 0.0

    def test_unknown_option(self):
        with pytest.raises(ValueError):
            RecommendationWeights.from_options({"travelWeight": 0.5})

    def test_negative_weight(self):
        with pytest.raises(ValueError):
            RecommendationWeights(fit_weight=-0.1)

    def test_weights_change_ranking(self):
        """With only earliness weighted, the earliest start wins regardless of fit."""
        store = AvailabilityStore([make_worker("W1", [(0, 9, 17)]), make_worker("W2", [(0, 10, 12)])])
        job = make_job(earliest=at(0, 9))

        by_fit = RecommendationEngine(
            RecommenderConfig(weights=RecommendationWeights(1.0, 0.0, 0.0))
        ).recommend(job, store, [], WEEK)
        by_time = RecommendationEngine(
            RecommenderConfig(weights=RecommendationWeights(0.0, 1.0, 0.0))
        ).recommend(job, store, [], WEEK)

        assert by_fit[0].worker_id == "W2"
        assert by_time[0].worker_id == "W1"
