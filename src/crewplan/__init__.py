"""crewplan - weekly job planning and timeline scheduling for field service teams."""

__version__ = "0.1.0"
