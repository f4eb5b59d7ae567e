"""In-memory indexes that hold the loaded entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Generic, List, TypeVar

from journeysapi.model import (
    Journey,
    JourneyPattern,
    Line,
    Municipality,
    Route,
    StopPoint,
)

T = TypeVar("T")


@dataclass
class EntityIndex(Generic[T]):
    """Entities in listing order together with a lookup by identifier."""

    all: List[T] = field(default_factory=list)
    by_id: Dict[str, T] = field(default_factory=dict)

    def add(self, key: str, item: T) -> None:
        """Append an item to the listing and register it under a key."""
        self.all.append(item)
        self.by_id[key] = item


@dataclass
class JourneyIndex:
    """Journeys, looked up either by trip id or by vehicle activity id."""

    all: List[Journey] = field(default_factory=list)
    by_id: Dict[str, Journey] = field(default_factory=dict)
    by_activity_id: Dict[str, Journey] = field(default_factory=dict)

    def add(self, key: str, activity_id: str, journey: Journey) -> None:
        """Append a journey and register it under both of its identifiers."""
        self.all.append(journey)
        self.by_id[key] = journey
        self.by_activity_id[activity_id] = journey


@dataclass
class JourneysRepository:
    """All entity indexes of one loaded data set."""

    lines: EntityIndex[Line] = field(default_factory=EntityIndex)
    stop_points: EntityIndex[StopPoint] = field(default_factory=EntityIndex)
    municipalities: EntityIndex[Municipality] = field(default_factory=EntityIndex)
    routes: EntityIndex[Route] = field(default_factory=EntityIndex)
    journeys: JourneyIndex = field(default_factory=JourneyIndex)
    journey_patterns: EntityIndex[JourneyPattern] = field(default_factory=EntityIndex)