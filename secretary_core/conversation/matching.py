"""
Text Matchers

Deterministic matching of free text against already-fetched geography lists,
and derivation of an issue description from a free-text message.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, TypeVar

from secretary_core.geography import USCounty, USPlace, USState, derive_location_id


_PUNCTUATION = re.compile(r"[.,!?;]")
_WHITESPACE = re.compile(r"\s+")
_EDGE_PUNCTUATION = re.compile(r"^[,.\s]+|[,.\s]+$")

LOCATION_CONNECTORS = ("in", "at", "near", "around", "by", "on", "off", "from")

R = TypeVar("R", USState, USCounty, USPlace)


def normalize_text(text: str) -> str:
    """Lowercase, trim and strip sentence punctuation."""
    return _PUNCTUATION.sub("", text.lower().strip())


def contains_word(text: str, word: str) -> bool:
    """Whole-word, case-insensitive containment."""
    if not word:
        return False
    return re.search(rf"\b{re.escape(word)}\b", text, re.IGNORECASE) is not None


def _find_by_names(
    text: str,
    candidates: Sequence[R],
    full_name: str,
    short_name: str,
) -> Optional[R]:
    normalized = normalize_text(text)

    for candidate in candidates:
        name = normalize_text(getattr(candidate, full_name))
        if name and name in normalized:
            return candidate

    # Short names only count as whole words, so "in" never matches Indiana
    # inside arbitrary words.
    for candidate in candidates:
        if contains_word(normalized, normalize_text(getattr(candidate, short_name))):
            return candidate

    return None


def find_state_in_text(text: str, states: Sequence[USState]) -> Optional[USState]:
    """First state whose long name, then abbreviation, appears in the text."""
    return _find_by_names(text, states, "long_name", "short_name")


def find_state_mention(text: str, states: Sequence[USState]) -> Optional[USState]:
    """
    Stricter ``find_state_in_text`` for text that was not a state answer.

    Abbreviations only count when written in capitals, so "in" and "me"
    inside a sentence never read as Indiana or Maine.
    """
    normalized = normalize_text(text)
    for state in states:
        name = normalize_text(state.long_name)
        if name and name in normalized:
            return state

    for state in states:
        abbreviation = state.short_name.upper()
        if abbreviation and re.search(rf"\b{re.escape(abbreviation)}\b", text):
            return state

    return None


def find_county_in_text(text: str, counties: Sequence[USCounty]) -> Optional[USCounty]:
    """First county whose full name, then short name, appears in the text."""
    return _find_by_names(text, counties, "full_name", "short_name")


def find_place_in_text(text: str, places: Sequence[USPlace]) -> Optional[USPlace]:
    """First place whose full name, then short name, appears in the text."""
    return _find_by_names(text, places, "full_name", "short_name")


def filter_to_state(records: Iterable[R], state: USState) -> List[R]:
    """Keep the records inside a state's hierarchical namespace."""
    return [r for r in records if r.hierarchical_id.startswith(state.hierarchical_id)]


def county_for_place(place: USPlace, counties: Iterable[USCounty]) -> Optional[USCounty]:
    """County whose hierarchical id prefixes the place's id."""
    for county in counties:
        if place.hierarchical_id.startswith(county.hierarchical_id):
            return county
    return None


@dataclass
class GeographyMatch:
    """Most specific geography found in a piece of text."""

    state: Optional[USState] = None
    county: Optional[USCounty] = None
    place: Optional[USPlace] = None

    @property
    def found(self) -> bool:
        return self.state is not None

    @property
    def location_id(self) -> Optional[str]:
        return derive_location_id(self.state, self.county, self.place)


def extract_geography_from_text(
    text: str,
    states: Sequence[USState],
    counties: Sequence[USCounty],
    places: Sequence[USPlace],
) -> GeographyMatch:
    """
    Match state first, then place, then county within that state.

    County and place candidates are scoped to the matched state before
    matching; without a state match nothing else is tried.
    """
    state = find_state_in_text(text, states)
    if state is None:
        return GeographyMatch()

    state_counties = filter_to_state(counties, state)
    state_places = filter_to_state(places, state)

    place = find_place_in_text(text, state_places)
    if place is not None:
        return GeographyMatch(
            state=state,
            county=county_for_place(place, state_counties),
            place=place,
        )

    county = find_county_in_text(text, state_counties)
    if county is not None:
        return GeographyMatch(state=state, county=county)

    return GeographyMatch(state=state)


def _remove(pattern: str, text: str) -> str:
    return re.sub(pattern, "", text, flags=re.IGNORECASE)


def extract_issue_description(
    text: str,
    state: Optional[USState] = None,
    county: Optional[USCounty] = None,
    place: Optional[USPlace] = None,
    min_length: int = 3,
) -> str:
    """
    Derive an issue description by stripping geography names and location
    connectors from the text.

    Falls back to the original text when fewer than ``min_length``
    characters survive.
    """
    cleaned = text

    if place is not None:
        cleaned = _remove(re.escape(place.full_name), cleaned)
        cleaned = _remove(re.escape(place.short_name), cleaned)

    if county is not None:
        cleaned = _remove(re.escape(county.full_name), cleaned)
        cleaned = _remove(re.escape(county.short_name), cleaned)

    if state is not None:
        cleaned = _remove(re.escape(state.long_name), cleaned)
        cleaned = _remove(rf"\b{re.escape(state.short_name)}\b", cleaned)

    for connector in LOCATION_CONNECTORS:
        cleaned = _remove(rf"\b{connector}\b", cleaned)

    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    cleaned = _EDGE_PUNCTUATION.sub("", cleaned)

    if len(cleaned) < min_length:
        return text
    return cleaned


__all__ = [
    "LOCATION_CONNECTORS",
    "normalize_text",
    "contains_word",
    "find_state_in_text",
    "find_state_mention",
    "find_county_in_text",
    "find_place_in_text",
    "filter_to_state",
    "county_for_place",
    "GeographyMatch",
    "extract_geography_from_text",
    "extract_issue_description",
]
