"""
View-model projection.

``project_view_model`` is a pure function of the conversation context: it
never mutates state, so calling it twice without an intervening action gives
equal results. In ``intent-slot-filling`` the view depends on the slot being
asked for rather than on the node's static definition.
"""

from typing import List

import structlog

from secretary_core.conversation.base import NodeId, SecretaryIntent, SlotName
from secretary_core.conversation.context import ConversationContext
from secretary_core.conversation.matching import filter_to_state
from secretary_core.conversation.nodes import get_node_definition
from secretary_core.conversation.prompts import COPY, SLOT_PLACEHOLDERS
from secretary_core.conversation.slot_filling import SlotFillingRunner
from secretary_core.conversation.view_model import (
    TypeaheadOption,
    ViewModel,
    back_to_menu_button,
    county_options,
    default_view_model,
    place_options,
    state_options,
)
from secretary_core.exceptions import UnknownNodeError

logger = structlog.get_logger()


def geography_slot_options(context: ConversationContext, slot: SlotName) -> List[TypeaheadOption]:
    """Typeahead options for a geography slot, scoped by the filled parents."""
    slots = context.slots

    if slot == SlotName.STATE:
        return state_options(context.available_states)

    counties = context.available_counties
    places = context.available_places
    if slots.state is not None:
        counties = filter_to_state(counties, slots.state)
        places = filter_to_state(places, slots.state)

    if slot == SlotName.COUNTY:
        return county_options(counties)

    if slots.county is not None:
        places = [p for p in places if p.hierarchical_id.startswith(slots.county.hierarchical_id)]
    return place_options(places)


def _slot_filling_view(context: ConversationContext, runner: SlotFillingRunner) -> ViewModel:
    intent = context.active_intent
    slot = runner.current_slot(intent, context.slots, context.repair_focus)
    buttons = [back_to_menu_button(COPY["back_to_menu"])]

    if slot is not None and slot.is_geography:
        return ViewModel(
            show_typeahead=True,
            typeahead_placeholder=SLOT_PLACEHOLDERS[slot],
            typeahead_options=geography_slot_options(context, slot),
            buttons=buttons,
        )

    if slot == SlotName.ISSUE_CATEGORY or (
        slot is None and intent == SecretaryIntent.ASK_CATEGORY
    ):
        suggestions = list(context.report_issue_suggestions)
        return ViewModel(
            show_text_input=True,
            text_input_placeholder=SLOT_PLACEHOLDERS[SlotName.ISSUE_CATEGORY],
            buttons=buttons,
            show_suggestions=bool(suggestions),
            suggestions=suggestions,
        )

    return ViewModel(
        show_text_input=True,
        text_input_placeholder=SLOT_PLACEHOLDERS.get(slot, "Type your response..."),
        buttons=buttons,
    )


def project_view_model(context: ConversationContext, runner: SlotFillingRunner) -> ViewModel:
    """Build the view model for the context's current node."""
    if context.current_node == NodeId.INTENT_SLOT_FILLING and context.active_intent is not None:
        return _slot_filling_view(context, runner)

    try:
        node = get_node_definition(context.current_node)
    except UnknownNodeError:
        logger.error("unknown_node", node=str(context.current_node))
        return default_view_model(COPY["error"], COPY["back_to_menu"])

    return node.view(context)


__all__ = [
    "geography_slot_options",
    "project_view_model",
]
