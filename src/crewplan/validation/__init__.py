"""Conflict detection for assignments."""

from crewplan.validation.conflicts import AvailabilityCheck, ConflictDetector, find_conflicts

__all__ = ["AvailabilityCheck", "ConflictDetector", "find_conflicts"]
