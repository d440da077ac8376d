"""OR-Tools CP-SAT planner for placing a batch of jobs optimally.

Every recommendation the engine produces for a pending job (including
alternative later starts) becomes a boolean decision. The model picks at most
one candidate per job, forbids overlaps between candidates of the same worker,
respects weekly capacity, and maximizes first the number of placed jobs and
then the summed recommendation score.
"""

import logging
from collections import defaultdict
from typing import Iterable, Optional

from ortools.sat.python import cp_model

from crewplan.domain.availability import AvailabilityStore
from crewplan.domain.models import Assignment, Job, Recommendation, TimeWindow
from crewplan.scheduling.heuristic_planner import (
    PlannerConfig,
    PlanResult,
    planning_order,
    split_committed,
)
from crewplan.scheduling.recommender import RecommendationEngine, RecommenderConfig

logger = logging.getLogger(__name__)

SCORE_SCALE = 1000


def scaled_score(score: float) -> int:
    """Recommendation score as an integer objective coefficient."""
    return int(round(score * SCORE_SCALE))


def placement_bonus(scores: Iterable[float], job_count: int) -> int:
    """Objective reward for placing a job.

    Exceeds the summed scaled scores of any set of ``job_count`` placements,
    so scheduling one more job always beats any score improvement.
    """
    best = max((scaled_score(s) for s in scores), default=0)
    return best * max(1, job_count) + 1


class CPSATPlanner:
    """Constraint programming planner using OR-Tools CP-SAT."""

    def __init__(self, config: Optional[PlannerConfig] = None):
        self.config = config or PlannerConfig()
        self.engine = RecommendationEngine(
            RecommenderConfig(
                weights=self.config.weights,
                alternative_step_minutes=self.config.candidate_step_minutes,
            )
        )

    def plan(
        self,
        jobs: Iterable[Job],
        availability: AvailabilityStore,
        existing: Iterable[Assignment],
        week_range: TimeWindow,
    ) -> PlanResult:
        """Solve the batch placement problem.

        Args:
            jobs: Jobs to place; committed jobs are kept where they are.
            availability: Availability snapshot.
            existing: Committed assignments (not modified).
            week_range: Planning horizon.

        Returns:
            PlanResult whose status is the CP-SAT status name.
        """
        pending, working = split_committed(jobs, existing)
        ordered = planning_order(pending)

        candidates: dict[str, list[Recommendation]] = {
            job.id: self.engine.recommend(job, availability, working, week_range)
            for job in ordered
        }
        durations = {job.id: job.duration_minutes for job in ordered}

        model = cp_model.CpModel()
        x: dict[str, list[cp_model.IntVar]] = {}
        intervals_by_worker: dict[str, list] = defaultdict(list)
        load_by_worker: dict[str, list] = defaultdict(list)

        bonus = placement_bonus(
            (r.score for recs in candidates.values() for r in recs),
            len(ordered),
        )

        objective_terms = []
        for job_id, recs in candidates.items():
            x[job_id] = []
            for idx, rec in enumerate(recs):
                var = model.NewBoolVar(f"x_{job_id}_{idx}")
                x[job_id].append(var)

                start = self._offset(rec.start, week_range)
                duration = durations[job_id]
                interval = model.NewOptionalIntervalVar(
                    start, duration, start + duration, var, f"iv_{job_id}_{idx}"
                )
                intervals_by_worker[rec.worker_id].append(interval)
                load_by_worker[rec.worker_id].append(var * duration)

                objective_terms.append(var * (bonus + scaled_score(rec.score)))

            if x[job_id]:
                model.AddAtMostOne(x[job_id])

        for worker_id, intervals in intervals_by_worker.items():
            model.AddNoOverlap(intervals)

        for worker_id, load in load_by_worker.items():
            capacity = availability.get_worker(worker_id).weekly_capacity_minutes
            if capacity is None:
                continue
            booked = sum(
                int(a.duration_minutes)
                for a in working
                if a.worker_id == worker_id and a.window.overlaps(week_range)
            )
            model.Add(sum(load) <= max(0, capacity - booked))

        model.Maximize(sum(objective_terms))

        solver = cp_model.CpSolver()
        solver.parameters.max_time_in_seconds = self.config.time_limit_seconds
        if self.config.num_workers > 0:
            solver.parameters.num_workers = self.config.num_workers

        status = solver.Solve(model)

        status_map = {
            cp_model.OPTIMAL: "OPTIMAL",
            cp_model.FEASIBLE: "FEASIBLE",
            cp_model.INFEASIBLE: "INFEASIBLE",
            cp_model.MODEL_INVALID: "MODEL_INVALID",
            cp_model.UNKNOWN: "UNKNOWN",
        }
        status_str = status_map.get(status, "UNKNOWN")

        if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            logger.warning("CP-SAT planner returned %s for %d jobs", status_str, len(ordered))
            return PlanResult(
                assignments=[],
                unassigned_job_ids=[job.id for job in ordered],
                status=status_str,
            )

        result = PlanResult(status=status_str, objective_value=int(solver.ObjectiveValue()))
        for job in ordered:
            chosen = None
            for idx, var in enumerate(x[job.id]):
                if solver.Value(var) == 1:
                    chosen = candidates[job.id][idx].assignment
                    break
            if chosen is None:
                result.unassigned_job_ids.append(job.id)
            else:
                result.assignments.append(chosen)

        logger.info(
            "CP-SAT plan (%s): %d placed, %d unassigned in %.2fs",
            status_str,
            result.scheduled_count,
            len(result.unassigned_job_ids),
            solver.WallTime(),
        )
        return result

    @staticmethod
    def _offset(instant, week_range: TimeWindow) -> int:
        """Whole minutes from the start of the horizon."""
        return int((instant - week_range.start).total_seconds() // 60)
