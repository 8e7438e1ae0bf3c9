"""
Secretary copy and prompt builders.

Static strings live in ``COPY``; prompts that depend on conversation state are
built by the functions below.
"""

from typing import Optional, Sequence

from secretary_core.conversation.base import SlotName
from secretary_core.geography import USCounty, USState


COPY = {
    # Greeting and menu
    "greeting": "Hello! I'm your Secretary. How can I help you today?",
    "menu_greeting": "How can I help you today?",
    "menu_discovery": "Discover Your City",
    "menu_report_issue": "Report an Issue",
    "menu_view_proposals": "View Proposals",
    "menu_create_instance": "Create Instance",
    "back_to_menu": "Back to Menu",

    # Discovery flow
    "discovery_prompt_state": "Which state would you like to explore?",
    "discovery_prompt_location": "Great! Now, which county or city would you like to learn about?",
    "view_top_issues": "View Top Issues",
    "report_an_issue_here": "Report an Issue Here",

    # Report issue flow
    "report_loading": "Let me check the top issues for your location...",
    "report_top_issues_prompt": "Here are the most common issues in your area. Select one or describe something else:",
    "report_no_top_issues": "No common issues have been recorded for this location yet.",
    "report_description_prompt": "Please describe the issue you'd like to report:",
    "report_suggestions_prompt": "Here are some suggested categories based on your description:",
    "report_something_else": "Something else",
    "report_describe_something_else": "Describe something else",
    "report_custom_category_prompt": "Please enter a custom category for your issue:",
    "report_category_selected": "Great! I'll help you create an Issue Project for that.",

    # Intent/slot flow
    "intent_complete_report_issue": "Great! I'll help you create an Issue Project for that.",
    "intent_complete_create_instance": "Taking you to Create Instance...",
    "intent_complete_find_instance": "Let me show you what's happening in your area...",
    "intent_complete_top_issues": "Let me pull up the top issues for that location...",
    "repair_ambiguous": (
        "Which detail would you like to change? "
        "You can say state, county, city, description, or category."
    ),
    "task_repair_ambiguous": (
        "Which detail would you like to change? "
        "You can say title, description, category, location, task ID, or status."
    ),

    # Recovery
    "unknown_input_recovery": (
        "I'm not sure I understood that. Could you rephrase, "
        "or would you like to return to the main menu?"
    ),
    "no_match_found": "I couldn't find a match for that. Try rephrasing or return to the menu.",
    "error": "Something went wrong. Please return to the menu.",

    # Tasks
    "task_not_connected": "I need to be connected to {operation}. Please try again.",
    "task_missing_info": "I'm missing some required information to {operation}.",
}

SLOT_PROMPTS = {
    SlotName.STATE: "Which state are you interested in?",
    SlotName.ISSUE_DESCRIPTION: "Please describe the issue you'd like to report.",
    SlotName.ISSUE_CATEGORY: "What category best describes this issue?",
    SlotName.TASK_TITLE: "What should I call this task?",
    SlotName.TASK_DESCRIPTION: "Can you describe the task in a bit more detail?",
    SlotName.TASK_CATEGORY: 'What category does this task belong to? (You can also skip this by saying "General")',
    SlotName.TASK_LOCATION_ID: "Which location should this task be associated with? Please tell me the state, county, or city.",
    SlotName.TASK_ID: "Which task would you like to update? (Please provide the task ID)",
    SlotName.TASK_STATUS: "What status should I set for this task? (open, in_progress, blocked, or resolved)",
}

SLOT_PLACEHOLDERS = {
    SlotName.STATE: "Type to search states...",
    SlotName.COUNTY: "Type to search counties...",
    SlotName.PLACE: "Type to search cities...",
    SlotName.ISSUE_DESCRIPTION: "Describe the issue...",
    SlotName.ISSUE_CATEGORY: "Enter a category...",
    SlotName.TASK_TITLE: "Task title...",
    SlotName.TASK_DESCRIPTION: "Describe the task...",
    SlotName.TASK_CATEGORY: "Task category...",
    SlotName.TASK_LOCATION_ID: "State, county, or city...",
    SlotName.TASK_ID: "Task ID...",
    SlotName.TASK_STATUS: "open, in_progress, blocked, or resolved",
}


def build_slot_prompt(
    slot: SlotName,
    state: Optional[USState] = None,
    county: Optional[USCounty] = None,
) -> str:
    """Prompt for a missing slot, personalized by any filled parent slots."""
    if slot == SlotName.COUNTY:
        if state is not None:
            return f"Which county in {state.long_name}?"
        return "Which county?"

    if slot == SlotName.PLACE:
        if county is not None:
            return f"Which city or place in {county.short_name}?"
        if state is not None:
            return f"Which city or place in {state.long_name}?"
        return "Which city or place?"

    return SLOT_PROMPTS.get(slot, "Please provide more information.")


def build_top_issues_prompt(location_name: str, issues: Sequence[str]) -> str:
    if not issues:
        return f"No top issues are currently tracked for {location_name}."
    lines = "\n".join(f"{i}. {issue}" for i, issue in enumerate(issues, start=1))
    return f"Here are the top issues in {location_name}:\n{lines}"


def build_discovery_result_prompt(location_name: str) -> str:
    return f"Great! I found information about {location_name}."


def build_category_suggestions_prompt(suggestions: Sequence[str]) -> str:
    if not suggestions:
        return "Please enter a category for your issue."
    return (
        "Here are some suggested categories based on your description. "
        "Choose one or enter a custom category:"
    )


def build_repair_confirmation_prompt(slot: SlotName) -> str:
    return f"Got it, let's update your {slot.label}."


def build_use_selector_prompt(slot: SlotName) -> str:
    return f"Please choose a {slot.label} from the list below."


def build_navigation_prompt(destination_label: str) -> str:
    return f"Taking you to {destination_label}..."


def build_location_outside_state_prompt(state: USState) -> str:
    return f"That location isn't in {state.long_name}. Please choose one from the list below."


__all__ = [
    "COPY",
    "SLOT_PROMPTS",
    "SLOT_PLACEHOLDERS",
    "build_slot_prompt",
    "build_top_issues_prompt",
    "build_discovery_result_prompt",
    "build_category_suggestions_prompt",
    "build_repair_confirmation_prompt",
    "build_use_selector_prompt",
    "build_navigation_prompt",
    "build_location_outside_state_prompt",
]
