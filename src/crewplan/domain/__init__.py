"""Domain models, availability, and snapshot I/O."""

from crewplan.domain.availability import AvailabilityStore
from crewplan.domain.errors import InvalidJob, InvalidRange, NotFound, SchedulingError
from crewplan.domain.models import (
    Assignment,
    AvailabilityException,
    Conflict,
    ConflictKind,
    EfficiencyRating,
    Job,
    Rationale,
    Recommendation,
    TimeWindow,
    WeeklyHours,
    Worker,
    efficiency_rating,
    worker_utilization,
)
from crewplan.domain.snapshot import Snapshot, load_snapshot, snapshot_from_dict

__all__ = [
    # Models
    "Assignment",
    "AvailabilityException",
    "Conflict",
    "ConflictKind",
    "EfficiencyRating",
    "Job",
    "Rationale",
    "Recommendation",
    "TimeWindow",
    "WeeklyHours",
    "Worker",
    "efficiency_rating",
    "worker_utilization",
    # Availability
    "AvailabilityStore",
    # Errors
    "SchedulingError",
    "InvalidRange",
    "InvalidJob",
    "NotFound",
    # Snapshots
    "Snapshot",
    "load_snapshot",
    "snapshot_from_dict",
]
