"""Recommendation and batch planning engines."""

from crewplan.scheduling.cpsat_planner import CPSATPlanner
from crewplan.scheduling.heuristic_planner import (
    GreedyPlanner,
    PlannerConfig,
    PlannerStrategy,
    PlanResult,
)
from crewplan.scheduling.recommender import (
    RecommendationEngine,
    RecommendationWeights,
    RecommenderConfig,
)
from crewplan.scheduling.weekly_planner import WeeklyPlanner

__all__ = [
    # Single-job recommendations
    "RecommendationEngine",
    "RecommendationWeights",
    "RecommenderConfig",
    # Batch planning
    "WeeklyPlanner",
    "GreedyPlanner",
    "CPSATPlanner",
    "PlannerConfig",
    "PlannerStrategy",
    "PlanResult",
]
