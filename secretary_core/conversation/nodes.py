"""
Flow graph nodes.

Each ``NodeId`` has exactly one ``NodeDefinition``: an optional enter hook and
exit hook (which may append messages but never change the node) and a pure
function from context to ``ViewModel``.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from secretary_core.conversation.base import Action, ActionType, NodeId
from secretary_core.conversation.context import ConversationContext
from secretary_core.conversation.prompts import COPY, build_discovery_result_prompt
from secretary_core.conversation.view_model import (
    Button,
    ButtonVariant,
    ViewModel,
    back_to_menu_button,
    county_options,
    place_options,
    state_options,
)
from secretary_core.exceptions import UnknownNodeError
from secretary_core.geography import location_label


NodeHook = Callable[[ConversationContext], None]
NodeView = Callable[[ConversationContext], ViewModel]


@dataclass(frozen=True)
class NodeDefinition:
    """Hooks and view for one node."""

    node_id: NodeId
    view: NodeView
    on_enter: Optional[NodeHook] = None
    on_exit: Optional[NodeHook] = None


def _back() -> Button:
    return back_to_menu_button(COPY["back_to_menu"])


# Menu

def _enter_menu(context: ConversationContext) -> None:
    context.finish_intent()
    context.reset_discovery_state()
    context.reset_report_state()


def _menu_view(context: ConversationContext) -> ViewModel:
    return ViewModel(
        assistant_messages=[COPY["menu_greeting"]],
        show_text_input=True,
        text_input_placeholder="Type a command or ask a question...",
        buttons=[
            Button(COPY["menu_discovery"], Action(ActionType.MENU_OPTION, 1), icon="MapPin"),
            Button(COPY["menu_report_issue"], Action(ActionType.MENU_OPTION, 2), icon="AlertTriangle"),
            Button(COPY["menu_view_proposals"], Action(ActionType.MENU_OPTION, 3), icon="FileText"),
            Button(COPY["menu_create_instance"], Action(ActionType.MENU_OPTION, 4), icon="Plus"),
        ],
    )


# Discovery

def _enter_select_state(context: ConversationContext) -> None:
    context.add_assistant_message(COPY["discovery_prompt_state"])


def _select_state_view(context: ConversationContext) -> ViewModel:
    return ViewModel(
        show_typeahead=True,
        typeahead_placeholder="Type to search states...",
        typeahead_options=state_options(context.available_states),
        buttons=[_back()],
    )


def _enter_select_location(context: ConversationContext) -> None:
    context.add_assistant_message(COPY["discovery_prompt_location"])


def _select_location_view(context: ConversationContext) -> ViewModel:
    return ViewModel(
        show_typeahead=True,
        typeahead_placeholder="Type to search counties or cities...",
        typeahead_options=(
            county_options(context.available_counties)
            + place_options(context.available_places)
        ),
        buttons=[_back()],
    )


def _enter_discovery_result(context: ConversationContext) -> None:
    label = location_label(
        context.selected_state, context.selected_county, context.selected_place
    )
    if label:
        context.add_assistant_message(build_discovery_result_prompt(label))


def _discovery_result_view(context: ConversationContext) -> ViewModel:
    return ViewModel(
        buttons=[
            Button(COPY["view_top_issues"], Action(ActionType.VIEW_TOP_ISSUES), ButtonVariant.DEFAULT),
            Button(COPY["report_an_issue_here"], Action(ActionType.REPORT_ISSUE)),
            _back(),
        ],
    )


def _discovery_top_issues_view(context: ConversationContext) -> ViewModel:
    return ViewModel(
        buttons=[
            Button(COPY["report_an_issue_here"], Action(ActionType.REPORT_ISSUE)),
            _back(),
        ],
        show_top_issues=True,
        top_issues=list(context.report_issue_top_issues),
    )


# Report issue

def _report_loading_view(context: ConversationContext) -> ViewModel:
    return ViewModel(assistant_messages=[COPY["report_loading"]])


def _report_top_issues_view(context: ConversationContext) -> ViewModel:
    return ViewModel(
        buttons=[
            Button(COPY["report_describe_something_else"], Action(ActionType.REPORT_ISSUE)),
            _back(),
        ],
        show_top_issues=True,
        top_issues=list(context.report_issue_top_issues),
    )


def _enter_collect_description(context: ConversationContext) -> None:
    context.add_assistant_message(COPY["report_description_prompt"])


def _collect_description_view(context: ConversationContext) -> ViewModel:
    return ViewModel(
        show_text_input=True,
        text_input_placeholder="Describe the issue...",
        buttons=[_back()],
    )


def _show_suggestions_view(context: ConversationContext) -> ViewModel:
    suggestions = list(context.report_issue_suggestions)
    if not suggestions:
        return ViewModel(buttons=[_back()])

    return ViewModel(
        assistant_messages=[COPY["report_suggestions_prompt"]],
        buttons=[
            Button(COPY["report_something_else"], Action(ActionType.SOMETHING_ELSE)),
            _back(),
        ],
        show_suggestions=True,
        suggestions=suggestions,
    )


def _enter_custom_category(context: ConversationContext) -> None:
    context.add_assistant_message(COPY["report_custom_category_prompt"])


def _custom_category_view(context: ConversationContext) -> ViewModel:
    return ViewModel(
        show_text_input=True,
        text_input_placeholder="Enter a custom category...",
        buttons=[_back()],
    )


def _report_complete_view(context: ConversationContext) -> ViewModel:
    return ViewModel(
        assistant_messages=[COPY["report_category_selected"]],
        buttons=[back_to_menu_button(COPY["back_to_menu"], ButtonVariant.DEFAULT)],
    )


# Recovery and slot filling

def _recovery_view(context: ConversationContext) -> ViewModel:
    return ViewModel(
        assistant_messages=[COPY["unknown_input_recovery"]],
        show_text_input=True,
        text_input_placeholder="Try again...",
        buttons=[back_to_menu_button(COPY["back_to_menu"], ButtonVariant.DEFAULT)],
    )


def _exit_slot_filling(context: ConversationContext) -> None:
    context.set_repair_focus(None)


def _slot_filling_view(context: ConversationContext) -> ViewModel:
    return ViewModel(
        show_text_input=True,
        text_input_placeholder="Type your response...",
        buttons=[_back()],
    )


NODE_DEFINITIONS: Dict[NodeId, NodeDefinition] = {
    node.node_id: node
    for node in (
        NodeDefinition(NodeId.MENU, _menu_view, on_enter=_enter_menu),
        NodeDefinition(NodeId.DISCOVERY_SELECT_STATE, _select_state_view, on_enter=_enter_select_state),
        NodeDefinition(NodeId.DISCOVERY_SELECT_LOCATION, _select_location_view, on_enter=_enter_select_location),
        NodeDefinition(NodeId.DISCOVERY_RESULT, _discovery_result_view, on_enter=_enter_discovery_result),
        NodeDefinition(NodeId.DISCOVERY_TOP_ISSUES, _discovery_top_issues_view),
        NodeDefinition(NodeId.REPORT_LOADING, _report_loading_view),
        NodeDefinition(NodeId.REPORT_TOP_ISSUES, _report_top_issues_view),
        NodeDefinition(NodeId.REPORT_COLLECT_DESCRIPTION, _collect_description_view, on_enter=_enter_collect_description),
        NodeDefinition(NodeId.REPORT_SHOW_SUGGESTIONS, _show_suggestions_view),
        NodeDefinition(NodeId.REPORT_CUSTOM_CATEGORY, _custom_category_view, on_enter=_enter_custom_category),
        NodeDefinition(NodeId.REPORT_COMPLETE, _report_complete_view),
        NodeDefinition(NodeId.UNKNOWN_INPUT_RECOVERY, _recovery_view),
        NodeDefinition(NodeId.INTENT_SLOT_FILLING, _slot_filling_view, on_exit=_exit_slot_filling),
    )
}

_undefined = [node.value for node in NodeId if node not in NODE_DEFINITIONS]
if _undefined:
    raise UnknownNodeError(f"Nodes without a definition: {_undefined}")


def get_node_definition(node_id: NodeId) -> NodeDefinition:
    try:
        return NODE_DEFINITIONS[node_id]
    except KeyError:
        raise UnknownNodeError(f"Unknown node: {node_id}") from None


__all__ = [
    "NodeDefinition",
    "NODE_DEFINITIONS",
    "get_node_definition",
]
