"""
Secretary Conversation - Base Classes and Types

This module defines the closed enumerations and small value types shared by
the flow graph, the slot-filling runner and the brain.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional


class NodeId(str, Enum):
    """Nodes of the conversation flow graph."""

    MENU = "menu"

    # Discovery flow
    DISCOVERY_SELECT_STATE = "discovery-select-state"
    DISCOVERY_SELECT_LOCATION = "discovery-select-location"
    DISCOVERY_RESULT = "discovery-result"
    DISCOVERY_TOP_ISSUES = "discovery-top-issues"

    # Report issue flow
    REPORT_LOADING = "report-loading"
    REPORT_TOP_ISSUES = "report-top-issues"
    REPORT_COLLECT_DESCRIPTION = "report-collect-description"
    REPORT_SHOW_SUGGESTIONS = "report-show-suggestions"
    REPORT_CUSTOM_CATEGORY = "report-custom-category"
    REPORT_COMPLETE = "report-complete"

    # Recovery and intent-driven flow
    UNKNOWN_INPUT_RECOVERY = "unknown-input-recovery"
    INTENT_SLOT_FILLING = "intent-slot-filling"


class ActionType(str, Enum):
    """Inbound UI actions."""

    MENU_OPTION = "menu-option"
    STATE_SELECTED = "state-selected"
    LOCATION_SELECTED = "location-selected"
    VIEW_TOP_ISSUES = "view-top-issues"
    REPORT_ISSUE = "report-issue"
    TOP_ISSUE_SELECTED = "top-issue-selected"
    DESCRIPTION_SUBMITTED = "description-submitted"
    SUGGESTION_SELECTED = "suggestion-selected"
    SOMETHING_ELSE = "something-else"
    CUSTOM_CATEGORY_SUBMITTED = "custom-category-submitted"
    BACK_TO_MENU = "back-to-menu"
    NAVIGATE_EXTERNAL = "navigate-external"
    FREE_TEXT_INPUT = "free-text-input"


class SecretaryIntent(str, Enum):
    """User goals the classifier can recognize."""

    REPORT_ISSUE = "report_issue"
    FIND_INSTANCE = "find_instance"
    CREATE_INSTANCE = "create_instance"
    ASK_CATEGORY = "ask_category"
    TOP_ISSUES = "top_issues"
    CREATE_TASK = "create_task"
    FIND_TASKS = "find_tasks"
    UPDATE_TASK = "update_task"

    @property
    def is_task(self) -> bool:
        return self in TASK_INTENTS


TASK_INTENTS = frozenset(
    {
        SecretaryIntent.CREATE_TASK,
        SecretaryIntent.FIND_TASKS,
        SecretaryIntent.UPDATE_TASK,
    }
)


class SlotName(str, Enum):
    """Named pieces of information collected during a conversation."""

    STATE = "state"
    COUNTY = "county"
    PLACE = "place"
    ISSUE_DESCRIPTION = "issue_description"
    ISSUE_CATEGORY = "issue_category"
    TASK_TITLE = "task_title"
    TASK_DESCRIPTION = "task_description"
    TASK_CATEGORY = "task_category"
    TASK_LOCATION_ID = "task_location_id"
    TASK_ID = "task_id"
    TASK_STATUS = "task_status"

    @property
    def is_geography(self) -> bool:
        return self in GEOGRAPHY_SLOTS

    @property
    def label(self) -> str:
        """Name used when talking to the user about this slot."""
        return SLOT_LABELS[self]


GEOGRAPHY_SLOTS = frozenset({SlotName.STATE, SlotName.COUNTY, SlotName.PLACE})

SLOT_LABELS: Dict[SlotName, str] = {
    SlotName.STATE: "state",
    SlotName.COUNTY: "county",
    SlotName.PLACE: "city or place",
    SlotName.ISSUE_DESCRIPTION: "description",
    SlotName.ISSUE_CATEGORY: "category",
    SlotName.TASK_TITLE: "task title",
    SlotName.TASK_DESCRIPTION: "task description",
    SlotName.TASK_CATEGORY: "task category",
    SlotName.TASK_LOCATION_ID: "location",
    SlotName.TASK_ID: "task ID",
    SlotName.TASK_STATUS: "task status",
}


class Role(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


class FlowEventType(str, Enum):
    """Events emitted to flow listeners."""

    NODE_ENTERED = "node-entered"
    ACTION_TAKEN = "action-taken"
    NAVIGATION_REQUESTED = "navigation-requested"


@dataclass
class Message:
    """A single chat message."""

    role: Role
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class Action:
    """A structured UI action with an optional payload."""

    type: ActionType
    payload: Any = None

    def to_dict(self) -> Dict[str, Any]:
        payload = self.payload
        if hasattr(payload, "to_dict"):
            payload = payload.to_dict()
        return {"type": self.type.value, "payload": payload}


@dataclass
class NavigationRequest:
    """Request for the host application to route elsewhere."""

    destination_id: str
    should_close: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "destination_id": self.destination_id,
            "should_close": self.should_close,
        }


@dataclass
class FlowEvent:
    """Event delivered to flow listeners."""

    type: FlowEventType
    node_id: Optional[NodeId] = None
    action: Optional[Action] = None
    destination_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "node_id": self.node_id.value if self.node_id else None,
            "action": self.action.to_dict() if self.action else None,
            "destination_id": self.destination_id,
            "timestamp": self.timestamp,
        }


FlowEventListener = Callable[[FlowEvent], None]
NavigationHandler = Callable[[NavigationRequest], None]


__all__ = [
    "NodeId",
    "ActionType",
    "SecretaryIntent",
    "TASK_INTENTS",
    "SlotName",
    "GEOGRAPHY_SLOTS",
    "SLOT_LABELS",
    "Role",
    "FlowEventType",
    "Message",
    "Action",
    "NavigationRequest",
    "FlowEvent",
    "FlowEventListener",
    "NavigationHandler",
]
