"""
U.S. Geography Records

Hierarchical geography records shared by the backend interface and the
conversation engine. Hierarchical ids nest by prefix, e.g. ``US-CA`` (state),
``US-CA-037`` (county) and ``US-CA-037-44000`` (place).
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


class HierarchyLevel(str, Enum):
    """Levels of the U.S. geography hierarchy."""

    COUNTRY = "country"
    STATE = "state"
    COUNTY = "county"
    PLACE = "place"


@dataclass(frozen=True)
class USState:
    """A U.S. state."""

    hierarchical_id: str
    short_name: str  # Postal abbreviation, e.g. "CA"
    long_name: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class USCounty:
    """A county within a state."""

    hierarchical_id: str
    full_name: str  # e.g. "Los Angeles County"
    short_name: str  # e.g. "Los Angeles"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class USPlace:
    """A city, town or other place within a county."""

    hierarchical_id: str
    full_name: str
    short_name: str
    county_full_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


GeographyRecord = Union[USState, USCounty, USPlace]


def derive_location_id(
    state: Optional[USState],
    county: Optional[USCounty],
    place: Optional[USPlace],
) -> Optional[str]:
    """Return the hierarchical id of the most specific record given."""
    return most_specific_level(state, county, place)[1]


def most_specific_level(
    state: Optional[USState],
    county: Optional[USCounty],
    place: Optional[USPlace],
) -> Tuple[Optional[HierarchyLevel], Optional[str]]:
    """Return ``(level, hierarchical_id)`` for the most specific record, place first."""
    if place is not None:
        return HierarchyLevel.PLACE, place.hierarchical_id
    if county is not None:
        return HierarchyLevel.COUNTY, county.hierarchical_id
    if state is not None:
        return HierarchyLevel.STATE, state.hierarchical_id
    return None, None


def location_label(
    state: Optional[USState],
    county: Optional[USCounty],
    place: Optional[USPlace],
) -> str:
    """Human-readable label, most specific name first."""
    parts = []
    if place is not None:
        parts.append(place.short_name)
    if county is not None:
        parts.append(county.short_name)
    if state is not None:
        parts.append(state.long_name)
    return ", ".join(parts)


__all__ = [
    "HierarchyLevel",
    "USState",
    "USCounty",
    "USPlace",
    "GeographyRecord",
    "derive_location_id",
    "most_specific_level",
    "location_label",
]
