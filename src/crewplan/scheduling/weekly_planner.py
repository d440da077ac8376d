"""Weekly planner that assigns a batch of jobs over a 7-day horizon.

This module provides the WeeklyPlanner class, which dispatches to the greedy
or CP-SAT planner and double-checks the outcome with the conflict detector
before handing it back.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from crewplan.domain.availability import AvailabilityStore
from crewplan.domain.models import Assignment, Conflict, Job, TimeWindow
from crewplan.scheduling.cpsat_planner import CPSATPlanner
from crewplan.scheduling.heuristic_planner import (
    GreedyPlanner,
    PlannerConfig,
    PlannerStrategy,
    PlanResult,
)
from crewplan.validation.conflicts import ConflictDetector

logger = logging.getLogger(__name__)


class WeeklyPlanner:
    """Plans many jobs at once without introducing conflicts.

    Example:
        >>> planner = WeeklyPlanner(PlannerConfig(strategy=PlannerStrategy.CPSAT))
        >>> result = planner.plan_week(jobs, store, existing, date(2024, 1, 15))
        >>> for assignment in result.assignments:
        ...     persist(assignment.to_record())
    """

    def __init__(self, config: Optional[PlannerConfig] = None):
        self.config = config or PlannerConfig()
        self.detector = ConflictDetector()

    def plan(
        self,
        jobs: Iterable[Job],
        availability: AvailabilityStore,
        existing: Iterable[Assignment],
        week_range: TimeWindow,
    ) -> PlanResult:
        """Assign as many jobs as possible within ``week_range``.

        Raises:
            InvalidJob: If any job is malformed.
        """
        jobs = list(jobs)
        existing = list(existing)

        if self.config.strategy == PlannerStrategy.CPSAT:
            result = CPSATPlanner(self.config).plan(jobs, availability, existing, week_range)
            if result.status not in ("OPTIMAL", "FEASIBLE") and self.config.fallback_to_greedy:
                logger.warning("Falling back to greedy planning after CP-SAT status %s", result.status)
                result = GreedyPlanner(self.config).plan(jobs, availability, existing, week_range)
        else:
            result = GreedyPlanner(self.config).plan(jobs, availability, existing, week_range)

        result.conflicts = self.verify(result, availability, existing, jobs)
        if result.conflicts:
            logger.error("Plan contains %d conflicts; first: %s", len(result.conflicts), result.conflicts[0])
        return result

    def plan_week(
        self,
        jobs: Iterable[Job],
        availability: AvailabilityStore,
        existing: Iterable[Assignment],
        first_day: date,
        days: int = 7,
    ) -> PlanResult:
        """Plan the ``days``-day horizon starting at midnight of ``first_day``."""
        return self.plan(jobs, availability, existing, TimeWindow.for_week(first_day, days))

    def verify(
        self,
        result: PlanResult,
        availability: AvailabilityStore,
        existing: list[Assignment],
        jobs: list[Job],
    ) -> list[Conflict]:
        """Check every placed assignment against the snapshot and earlier placements."""
        committed = [job.committed_assignment() for job in jobs if job.is_committed]
        committed_ids = {a.job_id for a in committed}
        snapshot = [a for a in existing if a.job_id not in committed_ids] + committed
        placed = []
        conflicts = []
        for assignment in result.assignments:
            conflicts.extend(self.detector.find_conflicts(assignment, snapshot + placed, availability))
            placed.append(assignment)
        return conflicts
