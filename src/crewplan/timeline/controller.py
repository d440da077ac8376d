"""View toggle controller for switching between daily and weekly timelines."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterable, Optional, Sequence

from crewplan.domain.availability import AvailabilityStore
from crewplan.domain.models import Assignment, Worker
from crewplan.timeline.axis import Granularity
from crewplan.timeline.coordinates import TimelineCoordinateSpace
from crewplan.timeline.view_model import TimelineConfig, TimelineView, TimelineViewModel

logger = logging.getLogger(__name__)


class ViewMode(Enum):
    """Presentation states of the timeline."""

    DAILY = "daily"
    WEEKLY = "weekly"

    @property
    def granularity(self) -> Granularity:
        return Granularity.DAY if self == ViewMode.DAILY else Granularity.WEEK


@dataclass
class ControllerConfig:
    """Configuration for the view toggle controller.

    Attributes:
        initial_mode: State the controller starts in.
        pixel_width: Width of the timeline container.
        week_starts_on: Weekday a weekly view starts on (0 = Monday).
        timeline: Layout settings passed to the view model.
    """

    initial_mode: ViewMode = ViewMode.DAILY
    pixel_width: float = 1440.0
    week_starts_on: int = 0
    timeline: TimelineConfig = field(default_factory=TimelineConfig)


class ViewToggleController:
    """Two-state machine (DAILY, WEEKLY) driving the timeline view model.

    Only an explicit ``toggle()`` or ``set_mode()`` changes the mode. Each
    change recreates the coordinate space for the new granularity and rebuilds
    the view from the loaded snapshot.

    Example:
        >>> controller = ViewToggleController(date(2024, 1, 17))
        >>> controller.load(workers, assignments, store)
        >>> weekly = controller.toggle()
        >>> weekly.granularity
        <Granularity.WEEK: 'week'>
    """

    def __init__(
        self,
        anchor: date,
        config: Optional[ControllerConfig] = None,
        view_model: Optional[TimelineViewModel] = None,
    ):
        self.config = config or ControllerConfig()
        self.view_model = view_model or TimelineViewModel(self.config.timeline)
        self._mode = self.config.initial_mode
        self._anchor = anchor
        self._pixel_width = self.config.pixel_width
        self._space = self._make_space()

        self._workers: Sequence[Worker] = ()
        self._assignments: tuple[Assignment, ...] = ()
        self._availability: Optional[AvailabilityStore] = None
        self._loaded = False
        self._view: Optional[TimelineView] = None

    @property
    def mode(self) -> ViewMode:
        return self._mode

    @property
    def space(self) -> TimelineCoordinateSpace:
        return self._space

    @property
    def anchor(self) -> date:
        return self._anchor

    @property
    def view(self) -> Optional[TimelineView]:
        """The most recently built view, or None before a snapshot is loaded."""
        return self._view

    def range_start(self) -> datetime:
        """First instant of the visible range for the current mode."""
        if self._mode == ViewMode.DAILY:
            first = self._anchor
        else:
            back = (self._anchor.weekday() - self.config.week_starts_on) % 7
            first = self._anchor - timedelta(days=back)
        return datetime.combine(first, time.min)

    def load(
        self,
        workers: Sequence[Worker],
        assignments: Iterable[Assignment],
        availability: Optional[AvailabilityStore] = None,
    ) -> TimelineView:
        """Take a fresh snapshot and build the view for the current mode."""
        self._workers = tuple(workers)
        self._assignments = tuple(assignments)
        self._availability = availability
        self._loaded = True
        return self._rebuild()

    def toggle(self) -> Optional[TimelineView]:
        """Switch DAILY <-> WEEKLY and rebuild."""
        target = ViewMode.WEEKLY if self._mode == ViewMode.DAILY else ViewMode.DAILY
        return self.set_mode(target)

    def set_mode(self, mode: ViewMode) -> Optional[TimelineView]:
        if mode == self._mode:
            return self._view
        logger.debug("Timeline mode %s -> %s", self._mode.value, mode.value)
        self._mode = mode
        self._space = self._make_space()
        return self._rebuild()

    def navigate(self, steps: int) -> Optional[TimelineView]:
        """Move the visible range by whole days or weeks; the mode is unchanged."""
        period = 1 if self._mode == ViewMode.DAILY else 7
        self._anchor = self._anchor + timedelta(days=steps * period)
        self._space = self._make_space()
        return self._rebuild()

    def resize(self, pixel_width: float) -> Optional[TimelineView]:
        """Recreate the space for a new container width."""
        space = TimelineCoordinateSpace(self._space.range_start, self._space.range_end, pixel_width)
        self._pixel_width = pixel_width
        self._space = space
        return self._rebuild()

    def _make_space(self) -> TimelineCoordinateSpace:
        start = self.range_start()
        return TimelineCoordinateSpace(
            range_start=start,
            range_end=start + self._mode.granularity.span,
            pixel_width=self._pixel_width,
        )

    def _rebuild(self) -> Optional[TimelineView]:
        if not self._loaded:
            return None
        self._view = self.view_model.build(
            self._workers,
            self._assignments,
            self._space,
            self._mode.granularity,
            self._availability,
        )
        return self._view
