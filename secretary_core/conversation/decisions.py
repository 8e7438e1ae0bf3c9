"""
Pure decision helpers for flow branching.

Given the context (and sometimes an input), return the next node or a
derived value. No I/O and no node changes happen here.
"""

from typing import Optional, Sequence, Tuple

from secretary_core.conversation.base import NodeId
from secretary_core.conversation.context import ConversationContext
from secretary_core.geography import HierarchyLevel, most_specific_level


def decide_report_issue_next_node(context: ConversationContext) -> NodeId:
    """Show top issues when there are any, otherwise ask for a description."""
    if context.report_issue_top_issues:
        return NodeId.REPORT_TOP_ISSUES
    return NodeId.REPORT_COLLECT_DESCRIPTION


def decide_suggestions_or_custom(suggestions: Sequence[str]) -> NodeId:
    """Show suggestion chips when there are any, otherwise ask for a custom category."""
    if suggestions:
        return NodeId.REPORT_SHOW_SUGGESTIONS
    return NodeId.REPORT_CUSTOM_CATEGORY


def handle_unknown_input(context: ConversationContext, text: str) -> NodeId:
    """Record unrecognized input and return the recovery node."""
    context.last_user_input = text
    return NodeId.UNKNOWN_INPUT_RECOVERY


def determine_geography_from_discovery(
    context: ConversationContext,
) -> Tuple[Optional[HierarchyLevel], Optional[str]]:
    """Most specific discovery selection as ``(level, hierarchical_id)``."""
    return most_specific_level(
        context.selected_state,
        context.selected_county,
        context.selected_place,
    )


def can_proceed_with_report_issue(context: ConversationContext) -> bool:
    """A report needs at least a description or a geography."""
    return bool(context.report_issue_description.strip()) or (
        context.report_issue_geography_level is not None
    )


__all__ = [
    "decide_report_issue_next_node",
    "decide_suggestions_or_custom",
    "handle_unknown_input",
    "determine_geography_from_discovery",
    "can_proceed_with_report_issue",
]
