"""
Repair Handling

Detects correction utterances ("actually, I meant Oregon") and works out
which slot the user wants to change. Resolving the slot is best effort:
``parse_repair_slot`` returns None when the text does not name a field, and
callers must ask the user rather than guess.
"""

import re
from typing import Any, Optional, Tuple

from secretary_core.conversation.base import SlotName
from secretary_core.conversation.matching import contains_word, normalize_text
from secretary_core.conversation.slots import SlotStore


REPAIR_CUES: Tuple[str, ...] = (
    "actually",
    "sorry",
    "i meant",
    "no wait",
    "change",
    "instead",
    "rather",
    "correction",
)

# Checked in order; the first keyword found decides the slot.
REPAIR_SLOT_KEYWORDS: Tuple[Tuple[Tuple[str, ...], SlotName], ...] = (
    (("state",), SlotName.STATE),
    (("county",), SlotName.COUNTY),
    (("city", "town", "place"), SlotName.PLACE),
    (("description",), SlotName.ISSUE_DESCRIPTION),
    (("category",), SlotName.ISSUE_CATEGORY),
)

TASK_REPAIR_SLOT_KEYWORDS: Tuple[Tuple[Tuple[str, ...], SlotName], ...] = (
    (("title", "name"), SlotName.TASK_TITLE),
    (("description", "details"), SlotName.TASK_DESCRIPTION),
    (("category", "type"), SlotName.TASK_CATEGORY),
    (("location", "place", "city", "state"), SlotName.TASK_LOCATION_ID),
    (("task id", "task #", "id"), SlotName.TASK_ID),
    (("status",), SlotName.TASK_STATUS),
)

_TWO_LETTER_WORD = re.compile(r"^[a-z]{2}$")

# Two-letter words that are not state abbreviations in practice
_COMMON_TWO_LETTER_WORDS = frozenset(
    {
        "am", "an", "as", "at", "be", "by", "do", "go", "he", "if", "in", "is",
        "it", "me", "my", "no", "of", "ok", "on", "or", "so", "to", "up", "us", "we",
    }
)


def looks_like_repair(text: str) -> bool:
    """True if the text starts with or contains a correction cue."""
    normalized = normalize_text(text)
    return any(
        normalized.startswith(cue) or contains_word(normalized, cue)
        for cue in REPAIR_CUES
    )


def _match_keywords(
    normalized: str,
    table: Tuple[Tuple[Tuple[str, ...], SlotName], ...],
) -> Optional[SlotName]:
    for keywords, slot in table:
        if any(contains_word(normalized, k) for k in keywords):
            return slot
    return None


def parse_repair_slot(text: str) -> Optional[SlotName]:
    """Best-effort guess at the slot a correction refers to."""
    normalized = normalize_text(text)

    slot = _match_keywords(normalized, REPAIR_SLOT_KEYWORDS)
    if slot is not None:
        return slot

    # A bare two-letter word reads as a state abbreviation
    if any(
        _TWO_LETTER_WORD.match(word) and word not in _COMMON_TWO_LETTER_WORDS
        for word in normalized.split()
    ):
        return SlotName.STATE

    return None


def parse_task_repair_slot(text: str) -> Optional[SlotName]:
    """Task-slot variant of ``parse_repair_slot``."""
    return _match_keywords(normalize_text(text), TASK_REPAIR_SLOT_KEYWORDS)


def apply_repair(slots: SlotStore, slot: SlotName, value: Any = None) -> None:
    """Replace (or clear, when ``value`` is None) a slot and clear its dependents."""
    slots.set(slot, value)
    slots.clear_dependents(slot)


__all__ = [
    "REPAIR_CUES",
    "looks_like_repair",
    "parse_repair_slot",
    "parse_task_repair_slot",
    "apply_repair",
]
