"""Availability store: read access to worker availability windows.

The store wraps an immutable snapshot of workers and their dated windows,
with date-specific exceptions overlaid. Every operation is a pure read.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, Mapping, Optional

from crewplan.domain.errors import InvalidRange, NotFound
from crewplan.domain.models import (
    AvailabilityException,
    TimeWindow,
    WeeklyHours,
    Worker,
)


def _normalize(worker_id: str, day: date, windows: Iterable[TimeWindow]) -> tuple[TimeWindow, ...]:
    """Sort windows and reject overlaps."""
    ordered = tuple(sorted(windows))
    for previous, current in zip(ordered, ordered[1:]):
        if previous.overlaps(current):
            raise InvalidRange(
                f"Worker {worker_id} has overlapping availability on {day.isoformat()}: "
                f"{previous!r} and {current!r}"
            )
    return ordered


class AvailabilityStore:
    """Holds, per worker, the ordered availability windows of each day.

    Example:
        >>> store = AvailabilityStore(workers)
        >>> store.get_windows("W1", date(2024, 1, 15))
        [TimeWindow(Mon 09:00-Mon 12:00)]
    """

    def __init__(
        self,
        workers: Iterable[Worker],
        exceptions: Iterable[AvailabilityException] = (),
    ):
        self._workers: dict[str, Worker] = {}
        self._windows: dict[str, dict[date, tuple[TimeWindow, ...]]] = {}

        for worker in workers:
            self._workers[worker.id] = worker
            self._windows[worker.id] = {
                day: _normalize(worker.id, day, windows)
                for day, windows in worker.availability.items()
            }

        overrides: dict[tuple[str, date], list[TimeWindow]] = {}
        for exception in exceptions:
            if exception.worker_id not in self._workers:
                raise NotFound(f"Unknown worker: {exception.worker_id}")
            # Available without replacement hours keeps the regular hours
            if exception.is_available and (exception.start_time is None or exception.end_time is None):
                continue
            key = (exception.worker_id, exception.day)
            overrides.setdefault(key, []).extend(exception.windows())

        for (worker_id, day), windows in overrides.items():
            self._windows[worker_id][day] = _normalize(worker_id, day, windows)

    @classmethod
    def from_weekly_hours(
        cls,
        workers: Iterable[Worker],
        weekly_hours: Mapping[str, WeeklyHours],
        first_day: date,
        days: int = 7,
        exceptions: Iterable[AvailabilityException] = (),
    ) -> "AvailabilityStore":
        """Build a store by expanding recurring weekly templates.

        Dated windows already present on a worker take precedence over the
        template for that day.
        """
        expanded = []
        for worker in workers:
            template = weekly_hours.get(worker.id)
            availability = template.expand(first_day, days) if template else {}
            availability.update(worker.availability)
            expanded.append(
                Worker(
                    id=worker.id,
                    name=worker.name,
                    skills=worker.skills,
                    availability=availability,
                    weekly_capacity_minutes=worker.weekly_capacity_minutes,
                )
            )
        return cls(expanded, exceptions)

    def workers(self) -> list[Worker]:
        """All workers, sorted by id."""
        return [self._workers[worker_id] for worker_id in sorted(self._workers)]

    def get_worker(self, worker_id: str) -> Worker:
        try:
            return self._workers[worker_id]
        except KeyError:
            raise NotFound(f"Unknown worker: {worker_id}") from None

    def has_worker(self, worker_id: str) -> bool:
        return worker_id in self._workers

    def get_windows(self, worker_id: str, day: date) -> list[TimeWindow]:
        """Ordered availability windows for a worker on a day (empty if none)."""
        self.get_worker(worker_id)
        return list(self._windows[worker_id].get(day, ()))

    def is_available(self, worker_id: str, instant: datetime) -> bool:
        """Check if ``instant`` falls inside one of the worker's windows."""
        day = instant.date()
        return any(
            w.contains_instant(instant)
            for candidate_day in (day - timedelta(days=1), day)
            for w in self.get_windows(worker_id, candidate_day)
        )

    def intersect(self, worker_id: str, day: date, interval: TimeWindow) -> list[TimeWindow]:
        """Availability sub-windows of ``day`` overlapping ``interval``, clipped to it."""
        result = []
        for window in self.get_windows(worker_id, day):
            clipped = window.clip(interval)
            if clipped is not None:
                result.append(clipped)
        return result

    def windows_in_range(self, worker_id: str, interval: TimeWindow) -> list[TimeWindow]:
        """All availability windows touching ``interval``, clipped and ordered."""
        days = [interval.start.date() - timedelta(days=1)] + interval.days()
        result = []
        for day in days:
            result.extend(self.intersect(worker_id, day, interval))
        return sorted(result)

    def containing_window(self, worker_id: str, interval: TimeWindow) -> Optional[TimeWindow]:
        """The availability window that fully contains ``interval``, if any."""
        day = interval.start.date()
        # Windows are keyed by their start day, so overnight windows live on the day before.
        for candidate_day in (day - timedelta(days=1), day):
            for window in self.get_windows(worker_id, candidate_day):
                if window.contains(interval):
                    return window
        return None

    def available_minutes(self, worker_id: str, day: date) -> float:
        return sum(w.duration_minutes for w in self.get_windows(worker_id, day))
