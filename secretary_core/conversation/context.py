"""Conversation context: the single mutable record of one Secretary session."""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from secretary_core.conversation.base import (
    Message,
    NodeId,
    Role,
    SecretaryIntent,
    SlotName,
)
from secretary_core.conversation.slots import SlotStore
from secretary_core.geography import (
    HierarchyLevel,
    USCounty,
    USPlace,
    USState,
)

logger = structlog.get_logger()


@dataclass
class ConversationContext:
    """
    State of one Secretary conversation.

    Tracks:
    - Current node in the flow graph
    - Message history (append-only until reset)
    - Active intent and its slot store
    - Discovery and report-issue selections used by the menu-driven flows
    - Geography options loaded for the typeahead
    """

    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    # Current position
    current_node: NodeId = NodeId.MENU

    # History
    messages: List[Message] = field(default_factory=list)
    last_user_input: str = ""

    # Intent-driven slot filling
    active_intent: Optional[SecretaryIntent] = None
    intent_completed: bool = False
    repair_focus: Optional[SlotName] = None
    slots: SlotStore = field(default_factory=SlotStore)

    # Discovery flow
    selected_state: Optional[USState] = None
    selected_county: Optional[USCounty] = None
    selected_place: Optional[USPlace] = None

    # Report issue flow
    report_issue_description: str = ""
    report_issue_category: str = ""
    report_issue_top_issues: List[str] = field(default_factory=list)
    report_issue_geography_level: Optional[HierarchyLevel] = None
    report_issue_geography_id: Optional[str] = None
    report_issue_suggestions: List[str] = field(default_factory=list)

    # Typeahead options
    available_states: List[USState] = field(default_factory=list)
    available_counties: List[USCounty] = field(default_factory=list)
    available_places: List[USPlace] = field(default_factory=list)

    # Messages

    def add_message(self, role: Role, content: str) -> None:
        self.messages.append(Message(role=role, content=content))

    def add_user_message(self, content: str) -> None:
        self.add_message(Role.USER, content)
        self.last_user_input = content

    def add_assistant_message(self, content: str) -> None:
        self.add_message(Role.ASSISTANT, content)

    def last_assistant_message(self) -> Optional[str]:
        for message in reversed(self.messages):
            if message.role == Role.ASSISTANT:
                return message.content
        return None

    # Navigation

    def set_node(self, node_id: NodeId, trigger: str = "auto") -> None:
        """Move to a node; hooks are the flow graph's business."""
        from_node = self.current_node
        self.current_node = node_id
        logger.debug(
            "flow_transition",
            session_id=self.session_id,
            from_node=from_node.value,
            to_node=node_id.value,
            trigger=trigger,
        )

    # Intents

    def start_intent(self, intent: SecretaryIntent) -> None:
        """Begin a fresh intent with an empty slot store."""
        self.active_intent = intent
        self.intent_completed = False
        self.repair_focus = None
        self.slots.reset()

    def mark_intent_completed(self) -> bool:
        """Flag completion; returns False if it was already flagged."""
        if self.intent_completed:
            return False
        self.intent_completed = True
        return True

    def finish_intent(self) -> None:
        self.active_intent = None
        self.intent_completed = False
        self.repair_focus = None
        self.slots.reset()

    def set_repair_focus(self, slot: Optional[SlotName]) -> None:
        self.repair_focus = slot

    # Discovery

    def select_state(self, state: USState) -> None:
        self.selected_state = state
        self.selected_county = None
        self.selected_place = None
        self.available_counties = []
        self.available_places = []

    def select_county(self, county: USCounty) -> None:
        self.selected_county = county
        self.selected_place = None

    def select_place(self, place: USPlace, county: Optional[USCounty] = None) -> None:
        self.selected_place = place
        if county is not None:
            self.selected_county = county

    def copy_slots_to_discovery(self) -> None:
        """Carry slot-filled geography over to the discovery selections."""
        self.selected_state = self.slots.state
        self.selected_county = self.slots.county
        self.selected_place = self.slots.place

    def reset_discovery_state(self) -> None:
        self.selected_state = None
        self.selected_county = None
        self.selected_place = None

    # Report issue

    def set_report_geography(
        self,
        level: Optional[HierarchyLevel],
        location_id: Optional[str],
    ) -> None:
        self.report_issue_geography_level = level
        self.report_issue_geography_id = location_id

    def set_top_issues(self, issues: List[str]) -> None:
        self.report_issue_top_issues = list(issues)

    def set_report_description(self, description: str) -> None:
        self.report_issue_description = description.strip()

    def set_report_category(self, category: str) -> None:
        self.report_issue_category = category.strip()

    def set_report_suggestions(self, suggestions: List[str]) -> None:
        self.report_issue_suggestions = list(suggestions)

    def reset_report_state(self) -> None:
        self.report_issue_description = ""
        self.report_issue_category = ""
        self.report_issue_top_issues = []
        self.report_issue_geography_level = None
        self.report_issue_geography_id = None
        self.report_issue_suggestions = []

    # Geography options

    def set_geography_options(
        self,
        states: Optional[List[USState]] = None,
        counties: Optional[List[USCounty]] = None,
        places: Optional[List[USPlace]] = None,
    ) -> None:
        """Replace whichever option lists are given."""
        if states is not None:
            self.available_states = list(states)
        if counties is not None:
            self.available_counties = list(counties)
        if places is not None:
            self.available_places = list(places)

    # Lifecycle

    def return_to_menu(self) -> None:
        """Drop intent, slots and flow selections; keep the message history."""
        self.finish_intent()
        self.reset_discovery_state()
        self.reset_report_state()
        self.set_node(NodeId.MENU, trigger="return_to_menu")

    def reset(self) -> None:
        """Return to the freshly created state, history included."""
        self.return_to_menu()
        self.session_id = str(uuid.uuid4())
        self.messages = []
        self.last_user_input = ""
        self.available_states = []
        self.available_counties = []
        self.available_places = []

    def to_dict(self) -> Dict[str, Any]:
        def record(value: Any) -> Any:
            return value.to_dict() if value is not None else None

        return {
            "session_id": self.session_id,
            "current_node": self.current_node.value,
            "messages": [m.to_dict() for m in self.messages],
            "last_user_input": self.last_user_input,
            "active_intent": self.active_intent.value if self.active_intent else None,
            "slots": self.slots.to_dict(),
            "selected_state": record(self.selected_state),
            "selected_county": record(self.selected_county),
            "selected_place": record(self.selected_place),
            "report_issue_description": self.report_issue_description,
            "report_issue_category": self.report_issue_category,
            "report_issue_top_issues": list(self.report_issue_top_issues),
            "report_issue_suggestions": list(self.report_issue_suggestions),
        }


__all__ = ["ConversationContext"]
