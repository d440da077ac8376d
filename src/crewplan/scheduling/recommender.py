"""Recommendation engine for placing a single job.

For a job and a week of availability, the engine enumerates every worker who
holds the required skills, finds the free sub-intervals of their availability
once existing assignments are subtracted, and proposes an earliest-fit start
in each sub-interval long enough for the job. Candidates are scored with a
weighted sum of three components:

- fit: how tightly the job fills its free sub-interval,
- earliness: how close the start is to the beginning of the search envelope,
- balance: how few assignments the worker already holds that week.

Output is fully deterministic for a given snapshot.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import ClassVar, Iterable, Iterator, Mapping, Optional

from crewplan.domain.availability import AvailabilityStore
from crewplan.domain.errors import InvalidJob
from crewplan.domain.models import (
    Assignment,
    Job,
    Rationale,
    Recommendation,
    TimeWindow,
    Worker,
)
from crewplan.scheduling.intervals import restrict, subtract

logger = logging.getLogger(__name__)


@dataclass
class RecommendationWeights:
    """Weights of the score components.

    Attributes:
        fit_weight: Reward for leaving little idle time in the free sub-interval.
        earliness_weight: Reward for starting early in the envelope.
        balance_weight: Reward for workers holding fewer assignments this week.
    """

    fit_weight: float = 0.5
    earliness_weight: float = 0.3
    balance_weight: float = 0.2

    OPTION_KEYS: ClassVar[dict[str, str]] = {
        "fitWeight": "fit_weight",
        "earlinessWeight": "earliness_weight",
        "balanceWeight": "balance_weight",
        "fit_weight": "fit_weight",
        "earliness_weight": "earliness_weight",
        "balance_weight": "balance_weight",
    }

    def __post_init__(self):
        for name in ("fit_weight", "earliness_weight", "balance_weight"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")

    @classmethod
    def from_options(cls, options: Mapping[str, float]) -> "RecommendationWeights":
        """Create weights from ``{fitWeight, earlinessWeight, balanceWeight}`` options.

        Missing keys keep their defaults.

        Raises:
            ValueError: On an unrecognized key or a negative weight.
        """
        kwargs = {}
        for key, value in options.items():
            if key not in cls.OPTION_KEYS:
                raise ValueError(
                    f"Unrecognized weight option '{key}'. "
                    f"Expected one of fitWeight, earlinessWeight, balanceWeight"
                )
            kwargs[cls.OPTION_KEYS[key]] = float(value)
        return cls(**kwargs)


@dataclass
class RecommenderConfig:
    """Configuration for the recommendation engine.

    Attributes:
        weights: Score component weights.
        alternative_step_minutes: If set, also propose later starts every
            this many minutes inside each free sub-interval.
        max_results: Truncate the ranked list to this many entries.
        enforce_weekly_capacity: Skip workers whose weekly capacity is used up.
    """

    weights: RecommendationWeights = field(default_factory=RecommendationWeights)
    alternative_step_minutes: Optional[int] = None
    max_results: Optional[int] = None
    enforce_weekly_capacity: bool = True


@dataclass(frozen=True)
class _Candidate:
    worker: Worker
    start: datetime
    free: TimeWindow
    held: int


class RecommendationEngine:
    """Ranks candidate (worker, time slot) placements for a job.

    Example:
        >>> engine = RecommendationEngine()
        >>> ranked = engine.recommend(job, store, existing, TimeWindow.for_week(monday))
        >>> best = ranked[0].assignment if ranked else None
    """

    def __init__(self, config: Optional[RecommenderConfig] = None):
        self.config = config or RecommenderConfig()

    def recommend(
        self,
        job: Job,
        availability: AvailabilityStore,
        existing: Iterable[Assignment],
        week_range: TimeWindow,
    ) -> list[Recommendation]:
        """Produce ranked recommendations for a job, best first.

        Args:
            job: The job to place.
            availability: Availability snapshot.
            existing: Committed assignments (not modified).
            week_range: Planning horizon.

        Returns:
            Recommendations sorted by score descending. Empty when no worker
            can take the job.

        Raises:
            InvalidJob: If the job's duration or envelope is malformed.
        """
        job.validate()
        search = job.envelope.clip(week_range)
        if search is None:
            logger.debug("Job %s envelope lies outside %r", job.id, week_range)
            return []

        candidates = self._generate(job, availability, list(existing), week_range, search)
        ranked = [self._score(job, c, search) for c in candidates]
        # sorted() is stable, so equal scores keep worker-id generation order
        ranked = sorted(ranked, key=lambda r: -r.score)

        if self.config.max_results is not None:
            ranked = ranked[: self.config.max_results]

        logger.debug("Job %s: %d candidates", job.id, len(ranked))
        return ranked

    def next_available(
        self,
        job: Job,
        availability: AvailabilityStore,
        existing: Iterable[Assignment],
        after: datetime,
        search_days: int = 14,
    ) -> list[Recommendation]:
        """Find each worker's first slot that fits the job after ``after``.

        The job's own envelope is ignored; only its duration and skills count.

        Returns:
            At most one recommendation per worker, ordered by start then worker id.
        """
        if job.duration_minutes <= 0:
            raise InvalidJob(f"Job {job.id}: duration must be positive, got {job.duration_minutes}")
        horizon = TimeWindow(after, after + timedelta(days=search_days))
        first_by_worker: dict[str, _Candidate] = {}
        for candidate in self._generate(job, availability, list(existing), horizon, horizon):
            first_by_worker.setdefault(candidate.worker.id, candidate)

        results = [self._score(job, c, horizon) for c in first_by_worker.values()]
        return sorted(results, key=lambda r: (r.start, r.worker_id))

    def _generate(
        self,
        job: Job,
        availability: AvailabilityStore,
        existing: list[Assignment],
        week_range: TimeWindow,
        search: TimeWindow,
    ) -> list[_Candidate]:
        """Enumerate candidates in worker id, day, then start order."""
        others = [a for a in existing if a.job_id != job.id]
        candidates = []

        for worker in availability.workers():
            if not worker.has_skills(job.required_skills):
                continue

            mine = [a for a in others if a.worker_id == worker.id]
            busy = [a.window for a in mine]
            for day in week_range.days():
                period = self._capacity_period(day, week_range)
                held = [a for a in mine if a.window.overlaps(period)]
                if self._over_capacity(worker, held, job):
                    logger.debug("Worker %s has no capacity left for %s on %s", worker.id, job.id, day)
                    continue

                windows = availability.get_windows(worker.id, day)
                for free in restrict(subtract(windows, busy), search):
                    if free.duration < job.duration:
                        continue
                    for start in self._starts(free, job):
                        candidates.append(_Candidate(worker, start, free, len(held)))

        return candidates

    @staticmethod
    def _capacity_period(day: date, week_range: TimeWindow) -> TimeWindow:
        """Week that weekly capacity is counted over for candidates on ``day``.

        A range of at most seven days is itself the week; longer horizons are
        split into Monday-based calendar weeks.
        """
        if week_range.duration <= timedelta(days=7):
            return week_range
        return TimeWindow.for_week(day - timedelta(days=day.weekday()))

    def _over_capacity(self, worker: Worker, held: list[Assignment], job: Job) -> bool:
        if not self.config.enforce_weekly_capacity or worker.weekly_capacity_minutes is None:
            return False
        booked = sum(a.duration_minutes for a in held)
        return booked + job.duration_minutes > worker.weekly_capacity_minutes

    def _starts(self, free: TimeWindow, job: Job) -> Iterator[datetime]:
        start = free.start
        yield start
        step = self.config.alternative_step_minutes
        if not step:
            return
        start += timedelta(minutes=step)
        while start + job.duration <= free.end:
            yield start
            start += timedelta(minutes=step)

    def _score(self, job: Job, candidate: _Candidate, search: TimeWindow) -> Recommendation:
        """Weighted sum of fit, earliness and balance, each in [0, 1]."""
        weights = self.config.weights
        fit = job.duration / candidate.free.duration
        earliness = 1.0 - (candidate.start - search.start) / search.duration
        balance = 1.0 / (1 + candidate.held)

        components = [
            (weights.fit_weight * fit, Rationale.FILLS_GAP, fit >= 0.9),
            (weights.earliness_weight * earliness, Rationale.EARLIEST_START, earliness >= 0.9),
            (weights.balance_weight * balance, Rationale.BALANCES_WORKLOAD, candidate.held == 0),
        ]
        score = round(sum(value for value, _, _ in components), 6)

        rationale = []
        if job.required_skills:
            rationale.append(Rationale.SKILL_MATCH)
        for value, tag, earned in sorted(components, key=lambda c: -c[0]):
            if earned and value > 0:
                rationale.append(tag)

        assignment = Assignment.for_job(job, candidate.worker.id, candidate.start)
        return Recommendation(assignment=assignment, score=score, rationale=tuple(rationale))
