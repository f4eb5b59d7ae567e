"""Read-only JSON HTTP API over public transport timetables loaded from GTFS files."""

__version__ = "1.0.0"

__all__ = ["__version__"]