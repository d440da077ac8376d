"""Loading and saving scheduling snapshots as JSON.

A snapshot is everything the engine needs for one planning pass: workers with
their availability, date exceptions, jobs, and already committed assignments.
"""

import json
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Optional, Union

from crewplan.domain.availability import AvailabilityStore
from crewplan.domain.models import (
    Assignment,
    AvailabilityException,
    Job,
    TimeWindow,
    WeeklyHours,
    Worker,
)


@dataclass
class Snapshot:
    """One request/response worth of scheduling data."""

    workers: list[Worker] = field(default_factory=list)
    jobs: list[Job] = field(default_factory=list)
    assignments: list[Assignment] = field(default_factory=list)
    exceptions: list[AvailabilityException] = field(default_factory=list)
    weekly_hours: dict[str, WeeklyHours] = field(default_factory=dict)

    def availability_store(self, first_day: Optional[date] = None, days: int = 7) -> AvailabilityStore:
        """Build the availability store, expanding weekly templates from ``first_day``."""
        if self.weekly_hours and first_day is not None:
            return AvailabilityStore.from_weekly_hours(
                self.workers, self.weekly_hours, first_day, days, self.exceptions
            )
        return AvailabilityStore(self.workers, self.exceptions)

    def get_job(self, job_id: str) -> Optional[Job]:
        for job in self.jobs:
            if job.id == job_id:
                return job
        return None


def _parse_time(value: str) -> time:
    hours, minutes = value.split(":")[:2]
    return time(hour=int(hours), minute=int(minutes))


def _parse_pairs(day: date, pairs: list) -> list[TimeWindow]:
    return [TimeWindow.from_times(day, _parse_time(start), _parse_time(end)) for start, end in pairs]


def _parse_worker(data: dict[str, Any]) -> tuple[Worker, Optional[WeeklyHours]]:
    availability = {}
    for day_str, pairs in data.get("availability", {}).items():
        day = date.fromisoformat(day_str)
        availability[day] = _parse_pairs(day, pairs)

    weekly = None
    if "weekly_hours" in data:
        weekly = WeeklyHours(
            hours={
                int(weekday): [(_parse_time(s), _parse_time(e)) for s, e in pairs]
                for weekday, pairs in data["weekly_hours"].items()
            }
        )

    worker = Worker(
        id=data["id"],
        name=data.get("name", data["id"]),
        skills=frozenset(data.get("skills", [])),
        availability=availability,
        weekly_capacity_minutes=data.get("weekly_capacity_minutes", 2400),
    )
    return worker, weekly


def _parse_job(data: dict[str, Any]) -> Job:
    scheduled = data.get("scheduled_start")
    return Job(
        id=data["id"],
        title=data.get("title", ""),
        required_skills=frozenset(data.get("required_skills", [])),
        duration_minutes=int(data["duration_minutes"]),
        earliest_start=datetime.fromisoformat(data["earliest_start"]),
        latest_finish=datetime.fromisoformat(data["latest_finish"]),
        assigned_worker_id=data.get("assigned_worker_id"),
        scheduled_start=datetime.fromisoformat(scheduled) if scheduled else None,
    )


def _parse_exception(data: dict[str, Any]) -> AvailabilityException:
    start = data.get("start_time")
    end = data.get("end_time")
    return AvailabilityException(
        worker_id=data["worker_id"],
        day=date.fromisoformat(data["date"]),
        is_available=bool(data.get("is_available", False)),
        start_time=_parse_time(start) if start else None,
        end_time=_parse_time(end) if end else None,
    )


def snapshot_from_dict(data: dict[str, Any]) -> Snapshot:
    """Build a Snapshot from its JSON-compatible dict form.

    Raises:
        ValueError: If a required field is missing or malformed.
    """
    snapshot = Snapshot()
    try:
        for worker_data in data.get("workers", []):
            worker, weekly = _parse_worker(worker_data)
            snapshot.workers.append(worker)
            if weekly is not None:
                snapshot.weekly_hours[worker.id] = weekly
        snapshot.jobs = [_parse_job(j) for j in data.get("jobs", [])]
        snapshot.exceptions = [_parse_exception(e) for e in data.get("exceptions", [])]
        snapshot.assignments = [
            Assignment(
                job_id=a["job_id"],
                worker_id=a["worker_id"],
                start=datetime.fromisoformat(a["start"]),
                end=datetime.fromisoformat(a["end"]),
            )
            for a in data.get("assignments", [])
        ]
    except KeyError as e:
        raise ValueError(f"Snapshot is missing required field {e}") from e
    except TypeError as e:
        raise ValueError(f"Snapshot has a malformed entry: {e}") from e
    return snapshot


def load_snapshot(path: Union[str, Path]) -> Snapshot:
    """Read a snapshot from a JSON file."""
    with open(path, encoding="utf-8") as f:
        return snapshot_from_dict(json.load(f))


def save_assignments(assignments: list[Assignment], path: Union[str, Path]) -> None:
    """Write committed assignments as JSON records for the persistence layer."""
    records = [a.to_record() for a in sorted(assignments)]
    Path(path).write_text(json.dumps({"assignments": records}, indent=2), encoding="utf-8")
