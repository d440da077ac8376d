"""Domain models for the scheduling engine.

This module contains the core data structures shared by every component:
time windows, workers and their availability, jobs, assignments, and the
transient outputs (recommendations and conflicts) produced on demand.

All instants are naive ``datetime`` values in the business's local time and
all durations are whole minutes.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterable, Optional

from crewplan.domain.errors import InvalidJob, InvalidRange

DEFAULT_WEEKLY_CAPACITY_MINUTES = 2400  # 40 hours


@dataclass(frozen=True, order=True)
class TimeWindow:
    """A half-open interval of calendar time ``[start, end)``.

    Attributes:
        start: First instant inside the window.
        end: First instant after the window.
    """

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end <= self.start:
            raise InvalidRange(
                f"Window end {self.end.isoformat()} is not after start {self.start.isoformat()}"
            )

    @classmethod
    def for_day(cls, day: date) -> "TimeWindow":
        """Window covering a whole calendar day."""
        start = datetime.combine(day, time.min)
        return cls(start, start + timedelta(days=1))

    @classmethod
    def for_week(cls, first_day: date, days: int = 7) -> "TimeWindow":
        """Window covering ``days`` calendar days starting at ``first_day``."""
        start = datetime.combine(first_day, time.min)
        return cls(start, start + timedelta(days=days))

    @classmethod
    def from_times(cls, day: date, start_time: time, end_time: time) -> "TimeWindow":
        """Create a window on ``day`` from wall-clock times.

        An ``end_time`` of midnight means the end of ``day``.
        """
        start = datetime.combine(day, start_time)
        end = datetime.combine(day, end_time)
        if end_time == time.min:
            end += timedelta(days=1)
        return cls(start, end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def duration_minutes(self) -> float:
        return self.duration.total_seconds() / 60

    def overlaps(self, other: "TimeWindow") -> bool:
        """Half-open overlap: touching endpoints do not overlap."""
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeWindow") -> bool:
        """True if ``other`` lies entirely inside this window."""
        return self.start <= other.start and other.end <= self.end

    def contains_instant(self, instant: datetime) -> bool:
        return self.start <= instant < self.end

    def clip(self, other: "TimeWindow") -> Optional["TimeWindow"]:
        """Intersection with ``other``, or None when they do not overlap."""
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if end <= start:
            return None
        return TimeWindow(start, end)

    def days(self) -> list[date]:
        """Calendar days touched by this window, ascending."""
        last = (self.end - timedelta(microseconds=1)).date()
        current = self.start.date()
        result = []
        while current <= last:
            result.append(current)
            current += timedelta(days=1)
        return result

    def __repr__(self) -> str:
        return f"TimeWindow({self.start.strftime('%a %H:%M')}-{self.end.strftime('%a %H:%M')})"


@dataclass
class WeeklyHours:
    """Recurring weekly availability template.

    Attributes:
        hours: Maps weekday (0 = Monday) to a list of (start, end) wall-clock pairs.
    """

    hours: dict[int, list[tuple[time, time]]] = field(default_factory=dict)

    def windows_for(self, day: date) -> list[TimeWindow]:
        """Dated windows this template yields on ``day``."""
        return sorted(
            TimeWindow.from_times(day, start, end)
            for start, end in self.hours.get(day.weekday(), [])
        )

    def expand(self, first_day: date, days: int = 7) -> dict[date, list[TimeWindow]]:
        """Expand the template into dated windows for a range of days."""
        result = {}
        for offset in range(days):
            day = first_day + timedelta(days=offset)
            windows = self.windows_for(day)
            if windows:
                result[day] = windows
        return result


@dataclass(frozen=True)
class AvailabilityException:
    """Date-specific override of a worker's availability.

    When ``is_available`` is False the worker is off for the whole day.
    Otherwise ``start_time``/``end_time`` replace that day's regular hours;
    without both of them the regular hours stay.
    """

    worker_id: str
    day: date
    is_available: bool = False
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    def windows(self) -> list[TimeWindow]:
        if not self.is_available or self.start_time is None or self.end_time is None:
            return []
        return [TimeWindow.from_times(self.day, self.start_time, self.end_time)]


@dataclass
class Worker:
    """A field worker who can be assigned jobs.

    Attributes:
        id: Unique identifier for the worker.
        name: Display name for the worker.
        skills: Capabilities the worker holds.
        availability: Dict mapping dates to ordered availability windows.
        weekly_capacity_minutes: Maximum booked minutes per week (None = unlimited).
    """

    id: str
    name: str
    skills: frozenset[str] = field(default_factory=frozenset)
    availability: dict[date, list[TimeWindow]] = field(default_factory=dict)
    weekly_capacity_minutes: Optional[int] = DEFAULT_WEEKLY_CAPACITY_MINUTES

    def __post_init__(self):
        self.skills = frozenset(self.skills)

    def has_skills(self, required: Iterable[str]) -> bool:
        """Check if the worker's skills are a superset of ``required``."""
        return self.skills.issuperset(required)


@dataclass(frozen=True)
class Job:
    """A unit of field work waiting to be scheduled.

    Attributes:
        id: Unique identifier for the job.
        duration_minutes: Estimated time on site.
        earliest_start: Start of the scheduling envelope.
        latest_finish: End of the scheduling envelope.
        required_skills: Skills a worker must hold to take the job.
        title: Human-readable label.
        assigned_worker_id: Worker of the committed assignment, if any.
        scheduled_start: Start of the committed assignment, if any.
    """

    id: str
    duration_minutes: int
    earliest_start: datetime
    latest_finish: datetime
    required_skills: frozenset[str] = frozenset()
    title: str = ""
    assigned_worker_id: Optional[str] = None
    scheduled_start: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "required_skills", frozenset(self.required_skills))

    def validate(self) -> None:
        """Raise InvalidJob if the duration or envelope is malformed."""
        if self.duration_minutes <= 0:
            raise InvalidJob(f"Job {self.id}: duration must be positive, got {self.duration_minutes}")
        if self.earliest_start >= self.latest_finish:
            raise InvalidJob(
                f"Job {self.id}: earliest start {self.earliest_start.isoformat()} "
                f"is not before latest finish {self.latest_finish.isoformat()}"
            )

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.duration_minutes)

    @property
    def envelope(self) -> TimeWindow:
        self.validate()
        return TimeWindow(self.earliest_start, self.latest_finish)

    @property
    def is_committed(self) -> bool:
        return self.assigned_worker_id is not None and self.scheduled_start is not None

    def committed_assignment(self) -> Optional["Assignment"]:
        """The fixed assignment of a committed job, else None."""
        if not self.is_committed:
            return None
        return Assignment.for_job(self, self.assigned_worker_id, self.scheduled_start)


@dataclass(frozen=True, order=True)
class Assignment:
    """A job bound to a worker over ``[start, end)``."""

    start: datetime
    end: datetime
    worker_id: str
    job_id: str

    def __post_init__(self):
        if self.end <= self.start:
            raise InvalidRange(f"Assignment {self.job_id}: end is not after start")

    @classmethod
    def for_job(cls, job: Job, worker_id: str, start: datetime) -> "Assignment":
        """Build an assignment whose end is ``start + job.duration``."""
        return cls(start=start, end=start + job.duration, worker_id=worker_id, job_id=job.id)

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(self.start, self.end)

    @property
    def duration_minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60

    def overlaps(self, other: "Assignment") -> bool:
        """Same worker and half-open interval overlap."""
        return (
            self.worker_id == other.worker_id
            and self.start < other.end
            and other.start < self.end
        )

    def to_record(self) -> dict:
        """Outbound representation for the persistence layer."""
        return {
            "job_id": self.job_id,
            "worker_id": self.worker_id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
        }

    def __repr__(self) -> str:
        return (
            f"Assignment({self.job_id}->{self.worker_id}: "
            f"{self.start.strftime('%a %H:%M')}-{self.end.strftime('%H:%M')})"
        )


class Rationale:
    """Tags explaining why a recommendation scored the way it did."""

    SKILL_MATCH = "skill match"
    FILLS_GAP = "fills gap"
    EARLIEST_START = "earliest start"
    BALANCES_WORKLOAD = "balances workload"


@dataclass(frozen=True)
class Recommendation:
    """A scored, not-yet-committed candidate assignment."""

    assignment: Assignment
    score: float
    rationale: tuple[str, ...] = ()

    @property
    def worker_id(self) -> str:
        return self.assignment.worker_id

    @property
    def start(self) -> datetime:
        return self.assignment.start

    @property
    def end(self) -> datetime:
        return self.assignment.end


class ConflictKind(Enum):
    """Why an assignment is in conflict."""

    OVERLAP = "overlap"
    OUTSIDE_AVAILABILITY = "outside_availability"


@dataclass(frozen=True)
class Conflict:
    """An overlap between two assignments, or an assignment outside availability.

    Attributes:
        kind: Type of conflict.
        assignment: The assignment being checked.
        other: The overlapping assignment (OVERLAP only).
    """

    kind: ConflictKind
    assignment: Assignment
    other: Optional[Assignment] = None

    @property
    def worker_id(self) -> str:
        return self.assignment.worker_id

    @property
    def job_ids(self) -> tuple[str, ...]:
        if self.other is None:
            return (self.assignment.job_id,)
        return tuple(sorted((self.assignment.job_id, self.other.job_id)))

    @property
    def window(self) -> TimeWindow:
        """The overlapping region, or the whole assignment for availability conflicts."""
        if self.other is None:
            return self.assignment.window
        clipped = self.assignment.window.clip(self.other.window)
        return clipped if clipped is not None else self.assignment.window

    def __str__(self) -> str:
        if self.kind == ConflictKind.OVERLAP:
            return (
                f"[{self.kind.value}] Worker {self.worker_id}: "
                f"{self.assignment.job_id} overlaps {self.other.job_id}"
            )
        return f"[{self.kind.value}] Worker {self.worker_id}: {self.assignment.job_id} outside availability"


class EfficiencyRating(Enum):
    """Workload band derived from weekly utilization."""

    OPTIMAL = "optimal"
    GOOD = "good"
    BUSY = "busy"
    OVERLOADED = "overloaded"


def worker_utilization(
    worker: Worker,
    assignments: Iterable[Assignment],
    week: TimeWindow,
) -> float:
    """Percent of the worker's weekly capacity booked within ``week`` (0-100)."""
    booked = sum(
        a.duration_minutes
        for a in assignments
        if a.worker_id == worker.id and a.window.overlaps(week)
    )
    capacity = worker.weekly_capacity_minutes
    if not capacity:
        return 0.0
    return min(100.0, round(booked / capacity * 100, 1))


def efficiency_rating(utilization: float) -> EfficiencyRating:
    if utilization <= 60:
        return EfficiencyRating.OPTIMAL
    if utilization <= 80:
        return EfficiencyRating.GOOD
    if utilization <= 95:
        return EfficiencyRating.BUSY
    return EfficiencyRating.OVERLOADED
