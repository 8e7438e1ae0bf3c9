"""
Flow graph transitions.

``TRANSITIONS`` is scanned in declaration order and the first entry matching
``(current node, action type)`` wins. Targets are either a constant node or a
function of ``(context, payload)``; an optional guard suppresses the
transition, and ``actions`` run once the guard has passed, before the exit
hook of the current node.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple, Union

from secretary_core.conversation.base import ActionType, NodeId
from secretary_core.conversation.context import ConversationContext
from secretary_core.conversation.decisions import can_proceed_with_report_issue
from secretary_core.conversation.matching import county_for_place
from secretary_core.geography import USCounty, USPlace, USState


Guard = Callable[[ConversationContext, Any], bool]
TargetFn = Callable[[ConversationContext, Any], NodeId]
TransitionAction = Callable[[ConversationContext, Any], None]


@dataclass(frozen=True)
class Transition:
    """Edge of the flow graph."""

    from_node: NodeId
    action: ActionType
    to: Union[NodeId, TargetFn]
    guard: Optional[Guard] = None
    actions: Tuple[TransitionAction, ...] = field(default_factory=tuple)

    def can_transition(self, context: ConversationContext, payload: Any) -> bool:
        if self.guard is None:
            return True
        return self.guard(context, payload)

    def resolve_target(self, context: ConversationContext, payload: Any) -> NodeId:
        if isinstance(self.to, NodeId):
            return self.to
        return self.to(context, payload)


# Targets

MENU_OPTION_TARGETS = {
    1: NodeId.DISCOVERY_SELECT_STATE,
    2: NodeId.REPORT_LOADING,
}


def _menu_option_target(context: ConversationContext, payload: Any) -> NodeId:
    # Options 3 and 4 navigate away; the brain handles them before the table
    return MENU_OPTION_TARGETS.get(payload, NodeId.MENU)


# Guards

def _is_state(context: ConversationContext, payload: Any) -> bool:
    return isinstance(payload, USState)


def _is_county_or_place(context: ConversationContext, payload: Any) -> bool:
    return isinstance(payload, (USCounty, USPlace))


def _is_text(context: ConversationContext, payload: Any) -> bool:
    return isinstance(payload, str) and bool(payload.strip())


def _has_report_context(context: ConversationContext, payload: Any) -> bool:
    return can_proceed_with_report_issue(context)


# Actions

def _select_state(context: ConversationContext, payload: USState) -> None:
    context.select_state(payload)


def _select_location(context: ConversationContext, payload: Union[USCounty, USPlace]) -> None:
    if isinstance(payload, USCounty):
        context.select_county(payload)
        return

    context.select_place(payload, county_for_place(payload, context.available_counties))


def _set_description(context: ConversationContext, payload: str) -> None:
    context.set_report_description(payload)


def _set_category(context: ConversationContext, payload: str) -> None:
    context.set_report_category(payload)


BACK_TO_MENU_SOURCES: Tuple[NodeId, ...] = tuple(node for node in NodeId if node != NodeId.MENU)


TRANSITIONS: Tuple[Transition, ...] = (
    # Menu
    Transition(NodeId.MENU, ActionType.MENU_OPTION, _menu_option_target),
    Transition(
        NodeId.MENU,
        ActionType.FREE_TEXT_INPUT,
        NodeId.UNKNOWN_INPUT_RECOVERY,
    ),

    # Discovery
    Transition(
        NodeId.DISCOVERY_SELECT_STATE,
        ActionType.STATE_SELECTED,
        NodeId.DISCOVERY_SELECT_LOCATION,
        guard=_is_state,
        actions=(_select_state,),
    ),
    Transition(
        NodeId.DISCOVERY_SELECT_LOCATION,
        ActionType.LOCATION_SELECTED,
        NodeId.DISCOVERY_RESULT,
        guard=_is_county_or_place,
        actions=(_select_location,),
    ),
    Transition(NodeId.DISCOVERY_RESULT, ActionType.VIEW_TOP_ISSUES, NodeId.DISCOVERY_TOP_ISSUES),
    Transition(NodeId.DISCOVERY_RESULT, ActionType.REPORT_ISSUE, NodeId.REPORT_LOADING),
    Transition(NodeId.DISCOVERY_TOP_ISSUES, ActionType.REPORT_ISSUE, NodeId.REPORT_LOADING),

    # Report issue
    Transition(
        NodeId.REPORT_LOADING,
        ActionType.REPORT_ISSUE,
        NodeId.REPORT_TOP_ISSUES,
        guard=_has_report_context,
    ),
    Transition(
        NodeId.REPORT_TOP_ISSUES,
        ActionType.TOP_ISSUE_SELECTED,
        NodeId.REPORT_COMPLETE,
        guard=_is_text,
        actions=(_set_category,),
    ),
    Transition(NodeId.REPORT_TOP_ISSUES, ActionType.REPORT_ISSUE, NodeId.REPORT_COLLECT_DESCRIPTION),
    Transition(
        NodeId.REPORT_COLLECT_DESCRIPTION,
        ActionType.DESCRIPTION_SUBMITTED,
        NodeId.REPORT_SHOW_SUGGESTIONS,
        guard=_is_text,
        actions=(_set_description,),
    ),
    Transition(
        NodeId.REPORT_SHOW_SUGGESTIONS,
        ActionType.SUGGESTION_SELECTED,
        NodeId.REPORT_COMPLETE,
        guard=_is_text,
        actions=(_set_category,),
    ),
    Transition(NodeId.REPORT_SHOW_SUGGESTIONS, ActionType.SOMETHING_ELSE, NodeId.REPORT_CUSTOM_CATEGORY),
    Transition(
        NodeId.REPORT_CUSTOM_CATEGORY,
        ActionType.CUSTOM_CATEGORY_SUBMITTED,
        NodeId.REPORT_COMPLETE,
        guard=_is_text,
        actions=(_set_category,),
    ),

    # Recovery
    Transition(
        NodeId.UNKNOWN_INPUT_RECOVERY,
        ActionType.FREE_TEXT_INPUT,
        NodeId.UNKNOWN_INPUT_RECOVERY,
    ),
) + tuple(
    Transition(node, ActionType.BACK_TO_MENU, NodeId.MENU) for node in BACK_TO_MENU_SOURCES
)


def find_transition(
    from_node: NodeId,
    action: ActionType,
    transitions: Tuple[Transition, ...] = TRANSITIONS,
) -> Optional[Transition]:
    """First transition declared for ``(from_node, action)``."""
    for transition in transitions:
        if transition.from_node == from_node and transition.action == action:
            return transition
    return None


__all__ = [
    "Transition",
    "TRANSITIONS",
    "BACK_TO_MENU_SOURCES",
    "MENU_OPTION_TARGETS",
    "find_transition",
]
