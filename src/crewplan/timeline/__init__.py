"""Timeline coordinate mapping, view model, and view toggle controller."""

from crewplan.timeline.axis import Granularity, Tick, snap_to_grid
from crewplan.timeline.controller import ControllerConfig, ViewMode, ViewToggleController
from crewplan.timeline.coordinates import (
    Rect,
    TimelineCoordinateSpace,
    interval_to_rect,
    position_to_time,
    time_to_position,
)
from crewplan.timeline.view_model import (
    ConflictMarker,
    JobBlock,
    TimelineConfig,
    TimelineView,
    TimelineViewModel,
    WorkerRow,
)

__all__ = [
    # Coordinates
    "Rect",
    "TimelineCoordinateSpace",
    "interval_to_rect",
    "position_to_time",
    "time_to_position",
    # Axis
    "Granularity",
    "Tick",
    "snap_to_grid",
    # View model
    "ConflictMarker",
    "JobBlock",
    "TimelineConfig",
    "TimelineView",
    "TimelineViewModel",
    "WorkerRow",
    # Controller
    "ControllerConfig",
    "ViewMode",
    "ViewToggleController",
]
