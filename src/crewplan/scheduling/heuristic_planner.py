"""Greedy heuristic for planning a batch of jobs across a week.

Jobs are placed one at a time, most constrained first, each taking the top
recommendation against the assignments placed so far. Fast and deterministic,
but not guaranteed to place as many jobs as the CP-SAT planner.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from crewplan.domain.availability import AvailabilityStore
from crewplan.domain.models import Assignment, Conflict, Job, TimeWindow
from crewplan.scheduling.recommender import (
    RecommendationEngine,
    RecommendationWeights,
    RecommenderConfig,
)

logger = logging.getLogger(__name__)


class PlannerStrategy(Enum):
    """Batch planning strategies."""

    GREEDY = "greedy"  # Most constrained job first, best recommendation wins
    CPSAT = "cpsat"  # OR-Tools CP-SAT over all recommendation candidates


@dataclass
class PlannerConfig:
    """Configuration for weekly batch planning.

    Attributes:
        strategy: Which planner to run.
        weights: Recommendation score weights.
        time_limit_seconds: CP-SAT solver time limit.
        num_workers: CP-SAT parallel workers (0 = auto).
        candidate_step_minutes: Spacing of alternative starts offered to CP-SAT.
        fallback_to_greedy: Run the greedy planner when CP-SAT finds nothing.
    """

    strategy: PlannerStrategy = PlannerStrategy.GREEDY
    weights: RecommendationWeights = field(default_factory=RecommendationWeights)
    time_limit_seconds: float = 10.0
    num_workers: int = 0
    candidate_step_minutes: int = 30
    fallback_to_greedy: bool = True


@dataclass
class PlanResult:
    """Outcome of planning a batch of jobs.

    Attributes:
        assignments: Newly proposed assignments (committed jobs excluded).
        unassigned_job_ids: Jobs no worker could take.
        status: Planner status (HEURISTIC, OPTIMAL, FEASIBLE, ...).
        objective_value: Solver objective, 0 for the heuristic.
        conflicts: Conflicts found when verifying the plan (normally empty).
    """

    assignments: list[Assignment] = field(default_factory=list)
    unassigned_job_ids: list[str] = field(default_factory=list)
    status: str = "HEURISTIC"
    objective_value: int = 0
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def scheduled_count(self) -> int:
        return len(self.assignments)

    @property
    def is_complete(self) -> bool:
        return not self.unassigned_job_ids


def split_committed(
    jobs: Iterable[Job],
    existing: Iterable[Assignment],
) -> tuple[list[Job], list[Assignment]]:
    """Separate pending jobs from committed ones.

    Returns:
        Pending jobs (validated) and the working assignment snapshot, where a
        committed job's fixed slot replaces any existing entry for that job.
    """
    pending = []
    committed = {}
    for job in jobs:
        job.validate()
        assignment = job.committed_assignment()
        if assignment is None:
            pending.append(job)
        else:
            committed[job.id] = assignment

    working = [a for a in existing if a.job_id not in committed]
    working.extend(committed[job_id] for job_id in sorted(committed))
    return pending, working


def planning_order(jobs: Iterable[Job]) -> list[Job]:
    """Tightest deadline first, then longest job, then id."""
    return sorted(jobs, key=lambda j: (j.latest_finish, -j.duration_minutes, j.id))


class GreedyPlanner:
    """Places jobs one at a time using the recommendation engine."""

    def __init__(self, config: Optional[PlannerConfig] = None):
        self.config = config or PlannerConfig()
        self.engine = RecommendationEngine(RecommenderConfig(weights=self.config.weights))

    def plan(
        self,
        jobs: Iterable[Job],
        availability: AvailabilityStore,
        existing: Iterable[Assignment],
        week_range: TimeWindow,
    ) -> PlanResult:
        pending, working = split_committed(jobs, existing)
        result = PlanResult(status="HEURISTIC")

        for job in planning_order(pending):
            ranked = self.engine.recommend(job, availability, working, week_range)
            if not ranked:
                result.unassigned_job_ids.append(job.id)
                continue
            assignment = ranked[0].assignment
            result.assignments.append(assignment)
            working.append(assignment)

        logger.info(
            "Greedy plan: %d placed, %d unassigned",
            result.scheduled_count,
            len(result.unassigned_job_ids),
        )
        return result
