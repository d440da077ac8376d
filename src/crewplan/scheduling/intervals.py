"""Interval arithmetic over half-open time windows."""

from typing import Iterable

from crewplan.domain.models import TimeWindow


def merge(windows: Iterable[TimeWindow]) -> list[TimeWindow]:
    """Merge overlapping or touching windows into an ordered disjoint list."""
    merged: list[TimeWindow] = []
    for window in sorted(windows):
        if merged and window.start <= merged[-1].end:
            last = merged[-1]
            if window.end > last.end:
                merged[-1] = TimeWindow(last.start, window.end)
        else:
            merged.append(window)
    return merged


def subtract(windows: Iterable[TimeWindow], busy: Iterable[TimeWindow]) -> list[TimeWindow]:
    """Remove every busy interval from ``windows``.

    Args:
        windows: Ordered, non-overlapping availability windows.
        busy: Intervals already taken, in any order.

    Returns:
        The free sub-intervals, ascending.
    """
    blocked = merge(busy)
    free = []
    for window in windows:
        cursor = window.start
        for b in blocked:
            if b.end <= cursor:
                continue
            if b.start >= window.end:
                break
            if b.start > cursor:
                free.append(TimeWindow(cursor, b.start))
            cursor = max(cursor, b.end)
            if cursor >= window.end:
                break
        if cursor < window.end:
            free.append(TimeWindow(cursor, window.end))
    return free


def restrict(windows: Iterable[TimeWindow], bounds: TimeWindow) -> list[TimeWindow]:
    """Clip each window to ``bounds``, dropping those outside it."""
    result = []
    for window in windows:
        clipped = window.clip(bounds)
        if clipped is not None:
            result.append(clipped)
    return result
