"""Timeline view model: the renderable structure behind daily and weekly views.

The view model combines workers, assignments and a coordinate space into rows
of positioned blocks. It holds no state between builds; building twice from
the same inputs yields equal structures, so presentation layers can diff them
cheaply.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from crewplan.domain.availability import AvailabilityStore
from crewplan.domain.models import (
    Assignment,
    Conflict,
    ConflictKind,
    TimeWindow,
    Worker,
    worker_utilization,
)
from crewplan.timeline.axis import Granularity, Tick, boundaries_for
from crewplan.timeline.coordinates import (
    Rect,
    TimelineCoordinateSpace,
    interval_to_rect,
)
from crewplan.validation.conflicts import ConflictDetector

logger = logging.getLogger(__name__)


@dataclass
class TimelineConfig:
    """Layout settings for timeline rows.

    Attributes:
        row_height: Height of one worker row.
        min_block_width: Narrowest width a job block is drawn at.
    """

    row_height: float = 100.0
    min_block_width: float = 0.0


@dataclass(frozen=True)
class JobBlock:
    """An assignment positioned on the timeline."""

    job_id: str
    worker_id: str
    start: datetime
    end: datetime
    rect: Rect
    in_conflict: bool = False
    clipped: bool = False


@dataclass(frozen=True)
class ConflictMarker:
    """Highlight for a conflict inside a worker row."""

    kind: ConflictKind
    job_ids: tuple[str, ...]
    rect: Rect


@dataclass(frozen=True)
class WorkerRow:
    """One worker's lane on the timeline."""

    worker_id: str
    worker_name: str
    row_index: int
    blocks: tuple[JobBlock, ...] = ()
    conflicts: tuple[ConflictMarker, ...] = ()
    availability: tuple[Rect, ...] = ()
    utilization: float = 0.0


@dataclass(frozen=True)
class TimelineView:
    """Complete renderable timeline for one coordinate space."""

    granularity: Granularity
    space: TimelineCoordinateSpace
    rows: tuple[WorkerRow, ...] = ()
    boundaries: tuple[Tick, ...] = ()
    hidden_job_ids: tuple[str, ...] = ()

    def row_for(self, worker_id: str) -> Optional[WorkerRow]:
        for row in self.rows:
            if row.worker_id == worker_id:
                return row
        return None

    @property
    def conflict_count(self) -> int:
        return sum(len(row.conflicts) for row in self.rows)


class TimelineViewModel:
    """Builds TimelineView structures.

    Example:
        >>> space = TimelineCoordinateSpace(monday, monday + timedelta(days=7), 1400)
        >>> view = TimelineViewModel().build(workers, assignments, space, Granularity.WEEK)
        >>> view.rows[0].blocks[0].rect
        Rect(x=..., y=0.0, width=..., height=100.0)
    """

    def __init__(self, config: Optional[TimelineConfig] = None):
        self.config = config or TimelineConfig()
        self.detector = ConflictDetector()

    def build(
        self,
        workers: Sequence[Worker],
        assignments: Iterable[Assignment],
        space: TimelineCoordinateSpace,
        granularity: Granularity,
        availability: Optional[AvailabilityStore] = None,
    ) -> TimelineView:
        """Assemble rows of positioned blocks, one row per worker.

        Args:
            workers: Workers in display order.
            assignments: Assignment snapshot (not modified).
            space: Coordinate space of this render pass.
            granularity: Day or week presentation.
            availability: If given, availability is shaded and assignments
                outside it are marked as conflicts.

        Returns:
            TimelineView. Assignments of workers not in ``workers`` are
            listed in ``hidden_job_ids``.
        """
        row_ids = {w.id for w in workers}
        assignments = list(assignments)
        shown = [a for a in assignments if a.worker_id in row_ids]
        hidden = tuple(sorted({a.job_id for a in assignments if a.worker_id not in row_ids}))

        conflicts = self.detector.find_all_conflicts(shown, availability)
        visible_range = space.window
        week = space.window if granularity == Granularity.WEEK else self._week_of(space.range_start)

        rows = []
        for index, worker in enumerate(workers):
            mine = sorted(
                (a for a in shown if a.worker_id == worker.id),
                key=lambda a: (a.start, a.end, a.job_id),
            )
            row_conflicts = [c for c in conflicts if c.worker_id == worker.id]
            conflicted_ids = {job_id for c in row_conflicts for job_id in c.job_ids}

            blocks = tuple(
                self._block(a, space, index, a.job_id in conflicted_ids)
                for a in mine
                if a.window.overlaps(visible_range)
            )
            markers = tuple(
                self._marker(c, space, index)
                for c in row_conflicts
                if c.window.overlaps(visible_range)
            )

            shading: tuple[Rect, ...] = ()
            if availability is not None and availability.has_worker(worker.id):
                shading = tuple(
                    interval_to_rect(w, space, index, self.config.row_height)
                    for w in availability.windows_in_range(worker.id, visible_range)
                )

            rows.append(
                WorkerRow(
                    worker_id=worker.id,
                    worker_name=worker.name,
                    row_index=index,
                    blocks=blocks,
                    conflicts=markers,
                    availability=shading,
                    utilization=worker_utilization(worker, mine, week),
                )
            )

        logger.debug(
            "Built %s view: %d rows, %d conflicts",
            granularity.value,
            len(rows),
            len(conflicts),
        )
        return TimelineView(
            granularity=granularity,
            space=space,
            rows=tuple(rows),
            boundaries=boundaries_for(space, granularity),
            hidden_job_ids=hidden,
        )

    def _block(
        self,
        assignment: Assignment,
        space: TimelineCoordinateSpace,
        row_index: int,
        in_conflict: bool,
    ) -> JobBlock:
        visible = assignment.window.clip(space.window)
        rect = interval_to_rect(visible, space, row_index, self.config.row_height)
        if rect.width < self.config.min_block_width:
            rect = Rect(rect.x, rect.y, self.config.min_block_width, rect.height)
        return JobBlock(
            job_id=assignment.job_id,
            worker_id=assignment.worker_id,
            start=assignment.start,
            end=assignment.end,
            rect=rect,
            in_conflict=in_conflict,
            clipped=visible != assignment.window,
        )

    def _marker(self, conflict: Conflict, space: TimelineCoordinateSpace, row_index: int) -> ConflictMarker:
        visible = conflict.window.clip(space.window)
        return ConflictMarker(
            kind=conflict.kind,
            job_ids=conflict.job_ids,
            rect=interval_to_rect(visible, space, row_index, self.config.row_height),
        )

    @staticmethod
    def _week_of(instant: datetime) -> TimeWindow:
        monday = instant.date() - timedelta(days=instant.weekday())
        return TimeWindow.for_week(monday)
