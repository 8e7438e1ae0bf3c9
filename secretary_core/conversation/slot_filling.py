"""
Slot-Filling Runner

Drives an intent's slots to completion using the flow registry: finds the
next unfilled required slot, builds its prompt and runs the completion
closure once nothing is missing.
"""

from typing import Any, Optional

import structlog

from secretary_core.conversation.base import SecretaryIntent, SlotName
from secretary_core.conversation.prompts import build_slot_prompt
from secretary_core.conversation.registry import FlowRegistry
from secretary_core.conversation.slots import SlotStore

logger = structlog.get_logger()


class SlotFillingRunner:
    """
    Slot-filling loop over the flow registry.

    An intent with no registry entry has no next slot and nothing to
    complete.
    """

    def __init__(self, registry: FlowRegistry):
        self.registry = registry

    def get_next_missing_slot(
        self,
        intent: Optional[SecretaryIntent],
        slots: SlotStore,
    ) -> Optional[SlotName]:
        """
        First required slot in prompt order that is still unfilled.

        None means there is nothing to ask, not that the intent is complete:
        ask_category has no required slots, so it never prompts and never
        completes. ``are_all_required_slots_filled`` is the completion test.
        """
        flow = self.registry.get(intent)
        if flow is None:
            return None

        for slot in flow.prompt_order:
            if slot in flow.required_slots and not slots.is_filled(slot):
                return slot
        return None

    def current_slot(
        self,
        intent: Optional[SecretaryIntent],
        slots: SlotStore,
        focus: Optional[SlotName] = None,
    ) -> Optional[SlotName]:
        """Slot to ask about now: an unfilled repair focus, else the next missing slot."""
        if focus is not None and not slots.is_filled(focus):
            return focus
        return self.get_next_missing_slot(intent, slots)

    def are_all_required_slots_filled(
        self,
        intent: Optional[SecretaryIntent],
        slots: SlotStore,
    ) -> bool:
        flow = self.registry.get(intent)
        # Nothing required means slot filling never completes the intent
        if flow is None or not flow.required_slots:
            return False
        return all(slots.is_filled(slot) for slot in flow.required_slots)

    def get_slot_prompt(self, slot: SlotName, slots: SlotStore) -> str:
        return build_slot_prompt(slot, slots.state, slots.county)

    def fill_slot(
        self,
        intent: Optional[SecretaryIntent],
        slots: SlotStore,
        slot: SlotName,
        value: Any,
    ) -> bool:
        """Fill a slot; returns True when the intent is now complete."""
        slots.set(slot, value)
        logger.debug(
            "slot_filled",
            intent=intent.value if intent else None,
            slot=slot.value,
        )
        return self.are_all_required_slots_filled(intent, slots)

    def execute_completion(
        self,
        intent: Optional[SecretaryIntent],
        slots: SlotStore,
    ) -> bool:
        """Run the intent's completion closure; returns False if there is none."""
        flow = self.registry.get(intent)
        if flow is None or flow.on_complete is None:
            return False

        flow.on_complete(slots)
        logger.info("intent_completed", intent=flow.intent.value)
        return True


__all__ = ["SlotFillingRunner"]
