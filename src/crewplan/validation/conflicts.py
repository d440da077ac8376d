"""Conflict detection for proposed and committed assignments.

Two assignments conflict when they belong to the same worker and their
half-open intervals overlap; touching endpoints are fine. An assignment also
conflicts with availability when no single availability window contains it.
"""

from dataclasses import dataclass, field
from itertools import groupby
from typing import Iterable, Optional, Sequence

from crewplan.domain.availability import AvailabilityStore
from crewplan.domain.models import (
    Assignment,
    Conflict,
    ConflictKind,
    TimeWindow,
)


def _conflict_sort_key(conflict: Conflict) -> tuple:
    reference = conflict.other if conflict.other is not None else conflict.assignment
    return (
        conflict.kind != ConflictKind.OUTSIDE_AVAILABILITY,
        reference.start,
        reference.worker_id,
        reference.job_id,
        reference.end,
    )


@dataclass
class AvailabilityCheck:
    """Result of checking one worker for one time slot."""

    is_available: bool
    reason: str
    within_available_hours: bool
    conflicting_job_ids: list[str] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicting_job_ids)


class ConflictDetector:
    """Finds overlaps and availability violations.

    Results never depend on the order of the input collections.

    Example:
        >>> detector = ConflictDetector()
        >>> conflicts = detector.find_conflicts(candidate, existing, store)
        >>> for conflict in conflicts:
        ...     print(conflict)
    """

    def find_conflicts(
        self,
        candidate: Assignment,
        existing: Iterable[Assignment],
        availability: AvailabilityStore,
    ) -> list[Conflict]:
        """Find every conflict a candidate assignment would introduce.

        Entries of ``existing`` for the candidate's own job are ignored, so a
        job being rescheduled never conflicts with its previous slot.

        Args:
            candidate: The proposed assignment.
            existing: Committed assignments to check against.
            availability: Store holding the candidate worker's windows.

        Returns:
            Conflicts, availability first, then overlaps by start time.

        Raises:
            NotFound: If the candidate's worker is unknown to the store.
        """
        conflicts = []

        if availability.containing_window(candidate.worker_id, candidate.window) is None:
            conflicts.append(Conflict(ConflictKind.OUTSIDE_AVAILABILITY, candidate))

        for other in existing:
            if other.job_id == candidate.job_id:
                continue
            if candidate.overlaps(other):
                conflicts.append(Conflict(ConflictKind.OVERLAP, candidate, other))

        return sorted(conflicts, key=_conflict_sort_key)

    def find_all_conflicts(
        self,
        assignments: Iterable[Assignment],
        availability: Optional[AvailabilityStore] = None,
    ) -> list[Conflict]:
        """Find every conflict inside a snapshot of assignments.

        Each overlapping pair is reported once, with the earlier assignment
        (by start, then job id) as ``assignment``.
        """
        ordered = sorted(assignments, key=lambda a: (a.worker_id, a.start, a.end, a.job_id))
        conflicts = []

        for _, group in groupby(ordered, key=lambda a: a.worker_id):
            row = list(group)
            for i, first in enumerate(row):
                for second in row[i + 1:]:
                    if second.start >= first.end:
                        break
                    if first.job_id != second.job_id and first.overlaps(second):
                        conflicts.append(Conflict(ConflictKind.OVERLAP, first, second))

        if availability is not None:
            for assignment in ordered:
                if availability.containing_window(assignment.worker_id, assignment.window) is None:
                    conflicts.append(Conflict(ConflictKind.OUTSIDE_AVAILABILITY, assignment))

        return sorted(
            conflicts,
            key=lambda c: (c.window.start, c.worker_id, c.job_ids, c.kind.value),
        )

    def check_availability(
        self,
        worker_id: str,
        interval: TimeWindow,
        existing: Sequence[Assignment],
        availability: AvailabilityStore,
        exclude_job_id: Optional[str] = None,
    ) -> AvailabilityCheck:
        """Check whether a worker can take ``interval``.

        Args:
            worker_id: Worker to check.
            interval: Proposed time slot.
            existing: Committed assignments.
            availability: Availability store.
            exclude_job_id: Job whose current slot should be ignored.
        """
        within_hours = availability.containing_window(worker_id, interval) is not None
        conflicting = sorted(
            a.job_id
            for a in existing
            if a.worker_id == worker_id
            and a.job_id != exclude_job_id
            and a.window.overlaps(interval)
        )

        if not within_hours:
            reason = "Outside available hours"
        elif conflicting:
            reason = f"Conflicts: {', '.join(conflicting)}"
        else:
            reason = "Available"

        return AvailabilityCheck(
            is_available=within_hours and not conflicting,
            reason=reason,
            within_available_hours=within_hours,
            conflicting_job_ids=conflicting,
        )


_default_detector = ConflictDetector()


def find_conflicts(
    candidate: Assignment,
    existing: Iterable[Assignment],
    availability: AvailabilityStore,
) -> list[Conflict]:
    """Module-level shortcut for :meth:`ConflictDetector.find_conflicts`."""
    return _default_detector.find_conflicts(candidate, existing, availability)
