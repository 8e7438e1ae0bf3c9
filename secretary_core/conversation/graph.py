"""
Flow Graph

Finite-state machine over ``NodeId``. Inbound actions are resolved against
the ordered transition table; a taken transition runs the transition
actions, the exit hook of the current node, the enter hook of the target,
notifies listeners and finally runs the target's async loader, which may
fetch backend data and move on again.
"""

from typing import Awaitable, Callable, Dict, List, Optional

import structlog

from secretary_core.backend.gateway import BackendGateway
from secretary_core.config import Settings
from secretary_core.conversation.base import (
    Action,
    ActionType,
    FlowEvent,
    FlowEventListener,
    FlowEventType,
    NodeId,
)
from secretary_core.conversation.context import ConversationContext
from secretary_core.conversation.decisions import (
    decide_report_issue_next_node,
    decide_suggestions_or_custom,
    determine_geography_from_discovery,
)
from secretary_core.conversation.nodes import get_node_definition
from secretary_core.conversation.prompts import COPY, build_top_issues_prompt
from secretary_core.conversation.transitions import TRANSITIONS, Transition, find_transition
from secretary_core.geography import location_label

logger = structlog.get_logger()


class FlowGraph:
    """Runs node transitions for one conversation context."""

    def __init__(
        self,
        context: ConversationContext,
        gateway: BackendGateway,
        settings: Settings,
        transitions: Optional[tuple] = None,
    ):
        self.context = context
        self.gateway = gateway
        self.settings = settings
        self.transitions = transitions or TRANSITIONS
        self._listeners: List[FlowEventListener] = []
        self._loaders: Dict[NodeId, Callable[[], Awaitable[None]]] = {
            NodeId.DISCOVERY_SELECT_STATE: self._load_states,
            NodeId.DISCOVERY_SELECT_LOCATION: self._load_locations,
            NodeId.DISCOVERY_TOP_ISSUES: self._load_discovery_top_issues,
            NodeId.REPORT_LOADING: self._load_report_issue_data,
            NodeId.REPORT_SHOW_SUGGESTIONS: self._load_category_suggestions,
        }

    # Listeners

    def add_listener(self, listener: FlowEventListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: FlowEventListener) -> None:
        self._listeners = [existing for existing in self._listeners if existing != listener]

    def emit(self, event: FlowEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(
                    "flow_listener_failed",
                    event_type=event.type.value,
                    error=str(e),
                )

    # Transitions

    def find_transition(self, action_type: ActionType) -> Optional[Transition]:
        return find_transition(self.context.current_node, action_type, self.transitions)

    async def handle_action(self, action: Action) -> bool:
        """Apply an action; returns True if a transition was taken."""
        transition = self.find_transition(action.type)
        if transition is None:
            logger.debug(
                "no_transition",
                node=self.context.current_node.value,
                action=action.type.value,
            )
            return False

        if not transition.can_transition(self.context, action.payload):
            logger.debug(
                "transition_guard_rejected",
                node=self.context.current_node.value,
                action=action.type.value,
            )
            return False

        self.emit(FlowEvent(type=FlowEventType.ACTION_TAKEN, action=action))
        target = transition.resolve_target(self.context, action.payload)
        for run_action in transition.actions:
            run_action(self.context, action.payload)

        await self._move(target, trigger=action.type.value)
        return True

    async def enter_node(self, node_id: NodeId, trigger: str = "direct") -> None:
        """Move to a node without consulting the transition table."""
        await self._move(node_id, trigger=trigger)

    async def _move(self, target: NodeId, trigger: str) -> None:
        current = get_node_definition(self.context.current_node)
        if current.on_exit:
            current.on_exit(self.context)

        self.context.set_node(target, trigger=trigger)

        node = get_node_definition(target)
        if node.on_enter:
            node.on_enter(self.context)

        self.emit(FlowEvent(type=FlowEventType.NODE_ENTERED, node_id=target))

        loader = self._loaders.get(target)
        if loader is not None:
            await loader()

    # Loaders

    async def _load_states(self) -> None:
        if self.context.available_states:
            return
        states = await self.gateway.get_all_states()
        self.context.set_geography_options(states=states)

    async def _load_locations(self) -> None:
        state = self.context.selected_state
        if state is None:
            return
        counties = await self.gateway.get_counties_for_state(state.hierarchical_id)
        places = await self.gateway.get_places_for_state(state.hierarchical_id)
        self.context.set_geography_options(counties=counties, places=places)

    async def _load_discovery_top_issues(self) -> None:
        level, location_id = determine_geography_from_discovery(self.context)
        issues: List[str] = []
        if level is not None and location_id is not None:
            issues = await self.gateway.get_top_issues(
                level, location_id, self.settings.top_issues_limit
            )
        self.context.set_top_issues(issues)

        label = location_label(
            self.context.selected_state,
            self.context.selected_county,
            self.context.selected_place,
        )
        self.context.add_assistant_message(
            build_top_issues_prompt(label or "this location", issues)
        )

    async def _load_report_issue_data(self) -> None:
        level, location_id = determine_geography_from_discovery(self.context)
        self.context.set_report_geography(level, location_id)

        if level is None or location_id is None:
            await self._move(NodeId.REPORT_COLLECT_DESCRIPTION, trigger="report_without_geography")
            return

        issues = await self.gateway.get_top_issues(
            level, location_id, self.settings.top_issues_limit
        )
        self.context.set_top_issues(issues)

        next_node = decide_report_issue_next_node(self.context)
        if next_node == NodeId.REPORT_TOP_ISSUES:
            self.context.add_assistant_message(COPY["report_top_issues_prompt"])
            await self.handle_action(Action(ActionType.REPORT_ISSUE))
        else:
            self.context.add_assistant_message(COPY["report_no_top_issues"])
            await self._move(next_node, trigger="report_loaded")

    async def _load_category_suggestions(self) -> None:
        suggestions = await self.gateway.get_complaint_categories(
            self.context.report_issue_geography_level,
            self.context.report_issue_description,
        )
        self.context.set_report_suggestions(suggestions)

        next_node = decide_suggestions_or_custom(suggestions)
        if next_node != NodeId.REPORT_SHOW_SUGGESTIONS:
            await self._move(next_node, trigger="no_suggestions")


__all__ = ["FlowGraph"]
