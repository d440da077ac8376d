"""Tests for time axis helpers."""

from datetime import date, datetime, time, timedelta

import pytest

from crewplan.domain.models import TimeWindow
from crewplan.timeline.axis import (
    Granularity,
    boundaries_for,
    day_boundaries,
    format_duration,
    format_time_12h,
    hour_ticks,
    optimal_day_range,
    snap_to_grid,
)
from crewplan.timeline.coordinates import TimelineCoordinateSpace

MONDAY = date(2024, 1, 15)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime.combine(MONDAY, time(hour, minute))


class TestFormatting:
    """Tests for label formatting."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (time(0, 0), "12:00 AM"),
            (time(9, 5), "9:05 AM"),
            (time(12, 0), "12:00 PM"),
            (time(13, 30), "1:30 PM"),
        ],
    )
    def test_format_time_12h(self, value, expected):
        assert format_time_12h(value) == expected

    @pytest.mark.parametrize("minutes,expected", [(45, "45m"), (120, "2h"), (150, "2h 30m")])
    def test_format_duration(self, minutes, expected):
        assert format_duration(minutes) == expected


class TestSnapToGrid:
    """Tests for snap_to_grid."""

    def test_rounds_down(self):
        assert snap_to_grid(at(9, 7)) == at(9, 0)

    def test_rounds_up(self):
        assert snap_to_grid(at(9, 8)) == at(9, 15)

    def test_custom_step(self):
        assert snap_to_grid(at(9, 20), minutes=30) == at(9, 30)


class TestTicks:
    """Tests for hour ticks and day boundaries."""

    def test_hour_ticks_for_day(self):
        space = TimelineCoordinateSpace(at(0), at(0) + timedelta(days=1), 1440)
        ticks = hour_ticks(space)

        assert len(ticks) == 25
        assert ticks[0].label == "12 AM"
        assert ticks[0].position == 0
        assert ticks[12].label == "12 PM"
        assert ticks[12].position == pytest.approx(720)
        assert ticks[9].label == "9 AM"

    def test_hour_ticks_start_on_next_whole_hour(self):
        space = TimelineCoordinateSpace(at(8, 30), at(12), 210)
        ticks = hour_ticks(space)
        assert [t.instant for t in ticks] == [at(9), at(10), at(11), at(12)]

    def test_day_boundaries_for_week(self):
        space = TimelineCoordinateSpace(at(0), at(0) + timedelta(days=7), 1400)
        ticks = day_boundaries(space)

        assert len(ticks) == 8
        assert ticks[0].label == "Mon 15"
        assert ticks[1].position == pytest.approx(200)
        assert all(t.major for t in ticks)

    def test_boundaries_follow_granularity(self):
        space = TimelineCoordinateSpace(at(0), at(0) + timedelta(days=7), 1400)
        assert boundaries_for(space, Granularity.WEEK) == day_boundaries(space)
        assert Granularity.WEEK.span == timedelta(days=7)
        assert Granularity.DAY.span == timedelta(days=1)


class TestOptimalDayRange:
    """Tests for optimal_day_range."""

    def test_default_range_with_padding(self):
        assert optimal_day_range(MONDAY, []) == TimeWindow(at(5), at(21))

    def test_long_day_centres_on_business_hours(self):
        window = optimal_day_range(MONDAY, [TimeWindow(at(4), at(23))])
        assert window == TimeWindow(at(7), at(19))

    def test_other_days_ignored(self):
        tuesday = TimeWindow(at(2) + timedelta(days=1), at(23) + timedelta(days=1))
        assert optimal_day_range(MONDAY, [tuesday]) == TimeWindow(at(5), at(21))
