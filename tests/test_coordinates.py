"""Tests for time/pixel coordinate mapping."""

from datetime import datetime, timedelta

import pytest

from crewplan.domain.errors import InvalidRange
from crewplan.domain.models import TimeWindow
from crewplan.timeline.coordinates import (
    Rect,
    TimelineCoordinateSpace,
    interval_to_rect,
    position_to_time,
    time_to_position,
)

MONDAY = datetime(2024, 1, 15)


class TestTimelineCoordinateSpace:
    """Tests for TimelineCoordinateSpace construction."""

    def test_empty_range_rejected(self):
        with pytest.raises(InvalidRange):
            TimelineCoordinateSpace(MONDAY, MONDAY, 1440)

    def test_non_positive_width_rejected(self):
        with pytest.raises(InvalidRange):
            TimelineCoordinateSpace(MONDAY, MONDAY + timedelta(days=1), 0)

    def test_pixels_per_minute(self):
        space = TimelineCoordinateSpace(MONDAY, MONDAY + timedelta(days=1), 1440)
        assert space.pixels_per_minute == pytest.approx(1.0)

    def test_for_window(self):
        window = TimeWindow(MONDAY, MONDAY + timedelta(days=7))
        space = TimelineCoordinateSpace.for_window(window, 1400)
        assert space.window == window
        assert space.span == timedelta(days=7)


class TestMapping:
    """Tests for time_to_position and position_to_time."""

    @pytest.fixture
    def day_space(self):
        """Monday 00:00 to Tuesday 00:00 over 1440 pixels."""
        return TimelineCoordinateSpace(MONDAY, MONDAY + timedelta(days=1), 1440)

    @pytest.fixture
    def week_space(self):
        return TimelineCoordinateSpace(MONDAY, MONDAY + timedelta(days=7), 1400)

    def test_noon_is_center_of_day(self, day_space):
        assert time_to_position(MONDAY + timedelta(hours=12), day_space) == 720

    def test_range_edges(self, day_space):
        assert time_to_position(MONDAY, day_space) == 0
        assert time_to_position(MONDAY + timedelta(days=1), day_space) == pytest.approx(1440)

    def test_day_boundary_in_week(self, week_space):
        assert time_to_position(MONDAY + timedelta(days=1), week_space) == pytest.approx(200)

    def test_outside_range_maps_outside(self, day_space):
        assert time_to_position(MONDAY - timedelta(hours=1), day_space) == pytest.approx(-60)
        assert time_to_position(MONDAY + timedelta(hours=25), day_space) == pytest.approx(1500)

    @pytest.mark.parametrize("width", [1440, 1000, 733.5])
    def test_round_trip(self, width):
        """Position and time conversions invert each other."""
        space = TimelineCoordinateSpace(MONDAY, MONDAY + timedelta(days=7), width)
        for minutes in range(0, 7 * 24 * 60, 457):
            instant = MONDAY + timedelta(minutes=minutes)
            back = position_to_time(time_to_position(instant, space), space)
            assert abs(back - instant) <= timedelta(milliseconds=1)

    def test_mapping_is_pure(self, day_space):
        instant = MONDAY + timedelta(hours=9, minutes=17)
        assert time_to_position(instant, day_space) == time_to_position(instant, day_space)


class TestIntervalToRect:
    """Tests for interval_to_rect."""

    def test_rect_in_row(self):
        space = TimelineCoordinateSpace(MONDAY, MONDAY + timedelta(days=1), 1440)
        interval = TimeWindow(MONDAY + timedelta(hours=9), MONDAY + timedelta(hours=11))
        rect = interval_to_rect(interval, space, row_index=2, row_height=50)

        assert rect.x == pytest.approx(540)
        assert rect.width == pytest.approx(120)
        assert rect.y == 100
        assert rect.height == 50
        assert rect.right == pytest.approx(660)

    def test_rect_is_value_object(self):
        assert Rect(1.0, 2.0, 3.0, 4.0) == Rect(1.0, 2.0, 3.0, 4.0)
