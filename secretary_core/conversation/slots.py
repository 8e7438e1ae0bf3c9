"""
Slot Store

Typed key/value bag for the slots collected during a conversation, with
dependency-aware clearing.
"""

from typing import Any, Dict, Optional, Tuple

from secretary_core.conversation.base import SlotName
from secretary_core.geography import USCounty, USPlace, USState


# Clearing a key clears every slot listed for it.
SLOT_DEPENDENTS: Dict[SlotName, Tuple[SlotName, ...]] = {
    SlotName.STATE: (SlotName.COUNTY, SlotName.PLACE),
    SlotName.COUNTY: (SlotName.PLACE,),
    SlotName.TASK_LOCATION_ID: (SlotName.TASK_ID,),
}

# Slots whose empty value is "" rather than None.
TEXT_SLOTS = frozenset(
    {
        SlotName.ISSUE_DESCRIPTION,
        SlotName.ISSUE_CATEGORY,
        SlotName.TASK_TITLE,
        SlotName.TASK_DESCRIPTION,
        SlotName.TASK_CATEGORY,
        SlotName.TASK_LOCATION_ID,
        SlotName.TASK_ID,
    }
)


def empty_value(slot: SlotName) -> Any:
    return "" if slot in TEXT_SLOTS else None


class SlotStore:
    """Holds one value per ``SlotName``; every operation is total."""

    def __init__(self) -> None:
        self._values: Dict[SlotName, Any] = {}
        self.reset()

    def reset(self) -> None:
        """Empty every slot."""
        self._values = {slot: empty_value(slot) for slot in SlotName}

    def get(self, slot: SlotName) -> Any:
        return self._values[slot]

    def set(self, slot: SlotName, value: Any) -> None:
        if value is None:
            value = empty_value(slot)
        self._values[slot] = value

    def clear(self, slot: SlotName) -> None:
        self._values[slot] = empty_value(slot)

    def clear_dependents(self, changed_slot: SlotName) -> None:
        """Clear the slots that depend on ``changed_slot``."""
        for dependent in SLOT_DEPENDENTS.get(changed_slot, ()):
            self.clear(dependent)

    def is_filled(self, slot: SlotName) -> bool:
        value = self._values[slot]
        if isinstance(value, str):
            return bool(value.strip())
        return value is not None

    # Typed accessors for the geography slots

    @property
    def state(self) -> Optional[USState]:
        return self._values[SlotName.STATE]

    @property
    def county(self) -> Optional[USCounty]:
        return self._values[SlotName.COUNTY]

    @property
    def place(self) -> Optional[USPlace]:
        return self._values[SlotName.PLACE]

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for slot, value in self._values.items():
            if hasattr(value, "to_dict"):
                value = value.to_dict()
            elif hasattr(value, "value"):
                value = value.value
            result[slot.value] = value
        return result


__all__ = [
    "SLOT_DEPENDENTS",
    "TEXT_SLOTS",
    "SlotStore",
]
