"""
Secretary Brain

Entry point for the widget. Routes free text and UI actions to the intent
classifier, the slot-filling loop or the flow graph, and exposes the view
model and message log for rendering.

One brain owns exactly one session. ``reset()`` tears the session scope
down, which cancels backend calls still in flight, and starts over.
"""

from typing import Any, Callable, List, Optional, Union

import structlog

from secretary_core.backend.base import SecretaryBackend
from secretary_core.backend.gateway import BackendGateway, SessionScope
from secretary_core.config import Settings, get_settings
from secretary_core.conversation.base import (
    Action,
    ActionType,
    FlowEvent,
    FlowEventListener,
    FlowEventType,
    Message,
    NavigationHandler,
    NavigationRequest,
    NodeId,
    SecretaryIntent,
    SlotName,
)
from secretary_core.conversation.context import ConversationContext
from secretary_core.conversation.decisions import handle_unknown_input
from secretary_core.conversation.geography_lookup import GeographyLookup
from secretary_core.conversation.graph import FlowGraph
from secretary_core.conversation.intents import classify_intent
from secretary_core.conversation.matching import (
    county_for_place,
    extract_issue_description,
    filter_to_state,
    find_county_in_text,
    find_place_in_text,
    find_state_in_text,
)
from secretary_core.conversation.navigation import (
    DeepLink,
    SecretaryOption,
    find_option_by_keyword,
    get_option,
    parse_deep_link,
)
from secretary_core.conversation.projection import project_view_model
from secretary_core.conversation.prompts import (
    COPY,
    build_category_suggestions_prompt,
    build_location_outside_state_prompt,
    build_navigation_prompt,
    build_repair_confirmation_prompt,
    build_use_selector_prompt,
)
from secretary_core.conversation.registry import build_flow_registry
from secretary_core.conversation.repair import (
    apply_repair,
    looks_like_repair,
    parse_repair_slot,
    parse_task_repair_slot,
)
from secretary_core.conversation.slot_filling import SlotFillingRunner
from secretary_core.conversation.tasks import TaskExecutor, TaskSlotFiller
from secretary_core.conversation.trace import TraceEventType, TraceRecorder
from secretary_core.conversation.view_model import TypeaheadOption, ViewModel
from secretary_core.exceptions import SessionClosedError
from secretary_core.geography import USCounty, USPlace, USState, most_specific_level

logger = structlog.get_logger()


KeywordFinder = Callable[[str], Optional[SecretaryOption]]
DeepLinkParser = Callable[[str], Optional[DeepLink]]

# Menu buttons that leave the widget instead of entering a flow
MENU_DESTINATIONS = {
    3: "proposals",
    4: "create-instance",
}

SLOT_ACTIONS = frozenset(
    {
        ActionType.STATE_SELECTED,
        ActionType.LOCATION_SELECTED,
        ActionType.SUGGESTION_SELECTED,
    }
)

# Intents that hand over to a discovery node once their slots are filled
DISCOVERY_COMPLETIONS = {
    SecretaryIntent.FIND_INSTANCE: NodeId.DISCOVERY_RESULT,
    SecretaryIntent.TOP_ISSUES: NodeId.DISCOVERY_TOP_ISSUES,
}


class SecretaryBrain:
    """
    Conversational core of the Secretary widget.

    Usage:
        brain = SecretaryBrain(backend=InMemoryBackend(), navigate=router.go)
        await brain.handle_user_text("I want to report a broken streetlight")
        view = brain.get_view_model()
    """

    def __init__(
        self,
        backend: Optional[SecretaryBackend] = None,
        navigate: Optional[NavigationHandler] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self._backend = backend
        self._navigation_handler = navigate
        self._keyword_finder: Optional[KeywordFinder] = find_option_by_keyword
        self._deep_link_parser: Optional[DeepLinkParser] = parse_deep_link
        self._listeners: List[FlowEventListener] = []

        self.registry = build_flow_registry(self._navigate)
        self.runner = SlotFillingRunner(self.registry)
        self.trace = TraceRecorder(
            max_events=self.settings.max_trace_events,
            enabled=self.settings.trace_enabled,
        )

        self.context = ConversationContext()
        self._start_session()

    def _start_session(self) -> None:
        """Wire a fresh scope, gateway and graph around the context and greet."""
        self.scope = SessionScope()
        self.gateway = BackendGateway(self._backend, self.scope)
        self.graph = FlowGraph(self.context, self.gateway, self.settings)
        for listener in self._listeners:
            self.graph.add_listener(listener)

        lookup = GeographyLookup(self.gateway)
        self.task_filler = TaskSlotFiller(lookup)
        self.task_executor = TaskExecutor(self.gateway, self.settings.task_list_preview)

        self.context.add_assistant_message(COPY["greeting"])
        logger.info(
            "secretary_session_started",
            session_id=self.context.session_id,
            backend_connected=self.gateway.connected,
        )

    # Wiring

    def get_context(self) -> ConversationContext:
        return self.context

    def set_backend(self, backend: Optional[SecretaryBackend]) -> None:
        self._backend = backend
        self.gateway.backend = backend

    def set_navigation_handler(self, navigate: Optional[NavigationHandler]) -> None:
        self._navigation_handler = navigate

    def set_keyword_finder(self, finder: Optional[KeywordFinder]) -> None:
        self._keyword_finder = finder

    def set_deep_link_parser(self, parser: Optional[DeepLinkParser]) -> None:
        self._deep_link_parser = parser

    def set_geography_data(
        self,
        states: Optional[List[USState]] = None,
        counties: Optional[List[USCounty]] = None,
        places: Optional[List[USPlace]] = None,
    ) -> None:
        self.context.set_geography_options(states=states, counties=counties, places=places)

    def set_complaint_suggestions(self, suggestions: List[str]) -> None:
        self.context.set_report_suggestions(suggestions)

    def add_listener(self, listener: FlowEventListener) -> None:
        self._listeners.append(listener)
        self.graph.add_listener(listener)

    def remove_listener(self, listener: FlowEventListener) -> None:
        self._listeners = [existing for existing in self._listeners if existing != listener]
        self.graph.remove_listener(listener)

    # Rendering

    def get_view_model(self) -> ViewModel:
        return project_view_model(self.context, self.runner)

    def get_messages(self) -> List[Message]:
        return list(self.context.messages)

    def is_showing_menu(self) -> bool:
        return self.context.current_node == NodeId.MENU

    def get_typeahead_options(self) -> List[TypeaheadOption]:
        return self.get_view_model().typeahead_options

    def get_suggestions(self) -> List[str]:
        return self.get_view_model().suggestions

    # Lifecycle

    def reset(self) -> None:
        """Cancel in-flight work and start a new session from the menu."""
        old_session = self.context.session_id
        self.scope.close()
        self.trace.clear()
        self.context.reset()
        self._start_session()
        logger.info(
            "secretary_session_reset",
            previous_session_id=old_session,
            session_id=self.context.session_id,
        )

    def close(self) -> None:
        """Cancel in-flight work; the brain accepts no further backend calls."""
        self.scope.close()
        logger.info("secretary_session_closed", session_id=self.context.session_id)

    # Inputs

    async def handle_user_text(self, text: str) -> None:
        text = (text or "").strip()
        if not text:
            return

        session_id = self.context.session_id
        self.context.add_user_message(text)
        try:
            await self._route_text(text)
        except SessionClosedError:
            logger.info("action_cancelled", session_id=session_id, input="text")

    async def handle_action(self, action: Action) -> None:
        session_id = self.context.session_id
        try:
            await self._dispatch(action)
        except SessionClosedError:
            logger.info(
                "action_cancelled",
                session_id=session_id,
                action=action.type.value,
            )

    async def handle_geography_selection(self, option: Union[TypeaheadOption, USState, USCounty, USPlace]) -> None:
        """Dispatch a typeahead pick as the matching selection action."""
        record = option.data if isinstance(option, TypeaheadOption) else option
        if isinstance(record, USState):
            await self.handle_action(Action(ActionType.STATE_SELECTED, record))
        else:
            await self.handle_action(Action(ActionType.LOCATION_SELECTED, record))

    async def handle_category_suggestion_selection(self, suggestion: str) -> None:
        await self.handle_action(Action(ActionType.SUGGESTION_SELECTED, suggestion))

    # Text routing

    async def _route_text(self, text: str) -> None:
        context = self.context
        intent = context.active_intent
        node = context.current_node

        if intent is not None and intent.is_task:
            await self._task_turn(intent, text)
        elif node == NodeId.INTENT_SLOT_FILLING and intent is not None:
            await self._slot_filling_turn(intent, text)
        elif node in (NodeId.MENU, NodeId.UNKNOWN_INPUT_RECOVERY):
            await self._menu_text(text)
        else:
            await self._flow_text(text)

    async def _menu_text(self, text: str) -> None:
        intent = classify_intent(text)
        if intent is not None:
            await self._start_intent(intent, text)
            return

        link = self._deep_link_parser(text) if self._deep_link_parser else None
        if link is not None:
            logger.info("deep_link_followed", destination=link.id, identifier=link.identifier)
            self._announce_navigation(link.id)
            return

        option = self._keyword_finder(text) if self._keyword_finder else None
        if option is not None:
            if option.confirmation_message:
                self.context.add_assistant_message(option.confirmation_message)
            self._navigate(NavigationRequest(destination_id=option.id))
            return

        target = handle_unknown_input(self.context, text)
        if not await self.graph.handle_action(Action(ActionType.FREE_TEXT_INPUT, text)):
            await self.graph.enter_node(target, trigger="unknown_input")

    async def _flow_text(self, text: str) -> None:
        """Free text inside the menu-driven flows, mapped onto the node's action."""
        context = self.context
        node = context.current_node
        action: Optional[Action] = None

        if node == NodeId.DISCOVERY_SELECT_STATE:
            state = find_state_in_text(text, context.available_states)
            if state is not None:
                action = Action(ActionType.STATE_SELECTED, state)

        elif node == NodeId.DISCOVERY_SELECT_LOCATION and context.selected_state is not None:
            state = context.selected_state
            location = find_place_in_text(
                text, filter_to_state(context.available_places, state)
            ) or find_county_in_text(text, filter_to_state(context.available_counties, state))
            if location is not None:
                action = Action(ActionType.LOCATION_SELECTED, location)

        elif node == NodeId.REPORT_TOP_ISSUES:
            issue = _pick(text, context.report_issue_top_issues)
            if issue is not None:
                action = Action(ActionType.TOP_ISSUE_SELECTED, issue)

        elif node == NodeId.REPORT_COLLECT_DESCRIPTION:
            action = Action(ActionType.DESCRIPTION_SUBMITTED, text)

        elif node == NodeId.REPORT_SHOW_SUGGESTIONS:
            suggestion = _pick(text, context.report_issue_suggestions)
            if suggestion is not None:
                action = Action(ActionType.SUGGESTION_SELECTED, suggestion)

        elif node == NodeId.REPORT_CUSTOM_CATEGORY:
            action = Action(ActionType.CUSTOM_CATEGORY_SUBMITTED, text)

        if action is None:
            context.add_assistant_message(COPY["no_match_found"])
            return
        await self._dispatch(action)

    # Intents

    async def _start_intent(self, intent: SecretaryIntent, text: str) -> None:
        context = self.context
        context.start_intent(intent)
        self.trace.record(TraceEventType.INTENT_RECOGNIZED, intent=intent.value, text=text)
        logger.info("intent_recognized", session_id=context.session_id, intent=intent.value)

        await self.graph.enter_node(NodeId.INTENT_SLOT_FILLING, trigger="intent_recognized")

        if intent.is_task:
            await self._task_turn(intent, text, opening=True)
            return

        if intent == SecretaryIntent.ASK_CATEGORY:
            suggestions = await self.gateway.get_complaint_categories(None, text)
            context.set_report_suggestions(suggestions)
            context.add_assistant_message(build_category_suggestions_prompt(suggestions))
            return

        if intent == SecretaryIntent.REPORT_ISSUE:
            description = extract_issue_description(
                text, min_length=self.settings.min_issue_description_length
            )
            self._fill_slot(SlotName.ISSUE_DESCRIPTION, description)

        await self._advance()

    async def _advance(self) -> None:
        """Complete the intent if nothing is missing, otherwise prompt for the next slot."""
        context = self.context
        intent = context.active_intent
        if intent is None or intent == SecretaryIntent.ASK_CATEGORY:
            return

        if self.runner.are_all_required_slots_filled(intent, context.slots):
            await self._complete_intent(intent)
            return

        slot = self.runner.current_slot(intent, context.slots, context.repair_focus)
        if slot is not None:
            await self._prompt(slot)

    async def _prompt(self, slot: SlotName) -> None:
        await self._load_slot_options(slot)
        self.context.add_assistant_message(self.runner.get_slot_prompt(slot, self.context.slots))

    async def _load_slot_options(self, slot: SlotName) -> None:
        context = self.context
        if slot == SlotName.ISSUE_CATEGORY:
            if not context.report_issue_suggestions:
                slots = context.slots
                level, _ = most_specific_level(slots.state, slots.county, slots.place)
                context.set_report_suggestions(
                    await self.gateway.get_complaint_categories(
                        level, slots.get(SlotName.ISSUE_DESCRIPTION) or ""
                    )
                )
            return

        if slot == SlotName.STATE:
            if not context.available_states:
                context.set_geography_options(states=await self.gateway.get_all_states())
            return

        state = context.slots.state
        if slot in (SlotName.COUNTY, SlotName.PLACE) and state is not None:
            if filter_to_state(context.available_counties, state):
                return
            counties = await self.gateway.get_counties_for_state(state.hierarchical_id)
            places = await self.gateway.get_places_for_state(state.hierarchical_id)
            context.set_geography_options(counties=counties, places=places)

    def _fill_slot(self, slot: SlotName, value: Any) -> None:
        context = self.context
        if context.repair_focus == slot:
            context.set_repair_focus(None)
        self.runner.fill_slot(context.active_intent, context.slots, slot, value)
        self.trace.record(TraceEventType.SLOT_FILLED, slot=slot.value)

    async def _complete_intent(self, intent: SecretaryIntent) -> None:
        context = self.context
        if not context.mark_intent_completed():
            return

        self.trace.record(TraceEventType.INTENT_COMPLETED, intent=intent.value)
        completion_copy = COPY.get(f"intent_complete_{intent.value}")
        if completion_copy:
            context.add_assistant_message(completion_copy)

        discovery_node = DISCOVERY_COMPLETIONS.get(intent)
        if discovery_node is not None:
            context.copy_slots_to_discovery()
            context.finish_intent()
            await self.graph.enter_node(discovery_node, trigger="intent_completed")
            return

        await self.scope.sleep(self.settings.completion_delay_seconds)
        self.runner.execute_completion(intent, context.slots)
        await self.graph.enter_node(NodeId.MENU, trigger="intent_completed")

    # Slot filling

    async def _slot_filling_turn(self, intent: SecretaryIntent, text: str) -> None:
        context = self.context

        if looks_like_repair(text):
            await self._repair(intent, parse_repair_slot(text), COPY["repair_ambiguous"])
            return

        if intent == SecretaryIntent.ASK_CATEGORY:
            await self._choose_category(text)
            return

        slot = self.runner.current_slot(intent, context.slots, context.repair_focus)
        if slot is None:
            await self._advance()
            return

        if slot.is_geography:
            # Geography comes from the typeahead so ids stay exact
            context.add_assistant_message(build_use_selector_prompt(slot))
            await self._prompt(slot)
            return

        self._fill_slot(slot, text)
        await self._advance()

    async def _repair(
        self,
        intent: SecretaryIntent,
        slot: Optional[SlotName],
        ambiguous_copy: str,
    ) -> None:
        context = self.context
        flow = self.registry.get(intent)
        if slot is None or flow is None or slot not in flow.prompt_order:
            logger.info("repair_ambiguous", session_id=context.session_id, intent=intent.value)
            context.add_assistant_message(ambiguous_copy)
            return

        apply_repair(context.slots, slot)
        if slot == SlotName.TASK_LOCATION_ID:
            # The location is derived from geography slots when they are set
            apply_repair(context.slots, SlotName.STATE)
        context.set_repair_focus(slot)
        self.trace.record(TraceEventType.SLOT_REPAIRED, slot=slot.value)
        logger.info("slot_repaired", session_id=context.session_id, slot=slot.value)

        context.add_assistant_message(build_repair_confirmation_prompt(slot))
        await self._prompt(slot)

    async def _choose_category(self, category: str) -> None:
        context = self.context
        category = category.strip()
        if not category:
            return

        if context.active_intent == SecretaryIntent.ASK_CATEGORY:
            context.start_intent(SecretaryIntent.REPORT_ISSUE)
            self.trace.record(
                TraceEventType.INTENT_RECOGNIZED,
                intent=SecretaryIntent.REPORT_ISSUE.value,
                text=category,
            )
        elif context.active_intent != SecretaryIntent.REPORT_ISSUE:
            logger.debug("category_ignored", intent=context.active_intent.value)
            return

        self._fill_slot(SlotName.ISSUE_CATEGORY, category)
        await self._advance()

    async def _handle_slot_action(self, action: Action) -> None:
        context = self.context
        slots = context.slots
        payload = action.payload

        if action.type == ActionType.SUGGESTION_SELECTED:
            if isinstance(payload, str):
                await self._choose_category(payload)
            return

        if action.type == ActionType.STATE_SELECTED and isinstance(payload, USState):
            if slots.state != payload:
                slots.clear_dependents(SlotName.STATE)
            self._fill_slot(SlotName.STATE, payload)

        elif action.type == ActionType.LOCATION_SELECTED and isinstance(payload, (USCounty, USPlace)):
            self._fill_parent_state(payload.hierarchical_id)
            if not self._within_state(payload.hierarchical_id):
                await self._reject_location(payload.hierarchical_id)
                return
            self._fill_location(payload)

        else:
            logger.debug("slot_action_ignored", action=action.type.value)
            return

        await self._advance()

    def _fill_location(self, payload: Union[USCounty, USPlace]) -> None:
        context = self.context
        slots = context.slots
        if isinstance(payload, USCounty):
            if slots.county != payload:
                slots.clear_dependents(SlotName.COUNTY)
            self._fill_slot(SlotName.COUNTY, payload)
            return

        county = county_for_place(payload, context.available_counties)
        if county is not None:
            self._fill_slot(SlotName.COUNTY, county)
        self._fill_slot(SlotName.PLACE, payload)

    def _within_state(self, hierarchical_id: str) -> bool:
        """County and place ids only count inside the filled state."""
        state = self.context.slots.state
        return state is None or hierarchical_id.startswith(f"{state.hierarchical_id}-")

    async def _reject_location(self, hierarchical_id: str) -> None:
        context = self.context
        state = context.slots.state
        logger.warning(
            "location_outside_state",
            session_id=context.session_id,
            location_id=hierarchical_id,
            state=state.hierarchical_id,
        )
        context.add_assistant_message(build_location_outside_state_prompt(state))
        slot = self.runner.current_slot(context.active_intent, context.slots, context.repair_focus)
        if slot is not None:
            await self._prompt(slot)

    def _fill_parent_state(self, hierarchical_id: str) -> None:
        if self.context.slots.state is not None:
            return
        for state in self.context.available_states:
            if hierarchical_id.startswith(f"{state.hierarchical_id}-"):
                self._fill_slot(SlotName.STATE, state)
                return

    # Tasks

    async def _task_turn(self, intent: SecretaryIntent, text: str, opening: bool = False) -> None:
        context = self.context
        slots = context.slots

        if not opening and looks_like_repair(text):
            await self._repair(intent, parse_task_repair_slot(text), COPY["task_repair_ambiguous"])
            return

        asking = None if opening else self.runner.current_slot(intent, slots, context.repair_focus)
        filled_before = {s for s in SlotName if slots.is_filled(s)}
        await self.task_filler.fill(intent, slots, text, asking, opening=opening)

        for slot in SlotName:
            if slot not in filled_before and slots.is_filled(slot):
                self.trace.record(TraceEventType.SLOT_FILLED, slot=slot.value)
        if context.repair_focus is not None and slots.is_filled(context.repair_focus):
            context.set_repair_focus(None)

        if self.runner.are_all_required_slots_filled(intent, slots):
            if not context.mark_intent_completed():
                return
            reply = await self.task_executor.execute(intent, slots)
            context.add_assistant_message(reply)
            self.trace.record(TraceEventType.INTENT_COMPLETED, intent=intent.value)
            await self.graph.enter_node(NodeId.MENU, trigger="task_completed")
            return

        slot = self.runner.current_slot(intent, slots, context.repair_focus)
        if slot is not None:
            await self._prompt(slot)

    # Actions

    async def _dispatch(self, action: Action) -> None:
        context = self.context
        self.trace.record(
            TraceEventType.FLOW_ACTION,
            action=action.type.value,
            node=context.current_node.value,
        )

        if action.type == ActionType.NAVIGATE_EXTERNAL:
            if action.payload:
                self._navigate(NavigationRequest(destination_id=str(action.payload)))
            return

        if context.current_node == NodeId.MENU and action.type == ActionType.MENU_OPTION:
            destination = MENU_DESTINATIONS.get(action.payload)
            if destination is not None:
                self._announce_navigation(destination)
                return

        if (
            context.current_node == NodeId.INTENT_SLOT_FILLING
            and context.active_intent is not None
            and not context.active_intent.is_task
            and action.type in SLOT_ACTIONS
        ):
            await self._handle_slot_action(action)
            return

        await self.graph.handle_action(action)

    # Navigation

    def _announce_navigation(self, destination_id: str) -> None:
        option = get_option(destination_id)
        self.context.add_assistant_message(
            build_navigation_prompt(option.label if option else destination_id)
        )
        self._navigate(NavigationRequest(destination_id=destination_id))

    def _navigate(self, request: NavigationRequest) -> None:
        logger.info(
            "navigation_requested",
            session_id=self.context.session_id,
            destination=request.destination_id,
        )
        self.graph.emit(
            FlowEvent(
                type=FlowEventType.NAVIGATION_REQUESTED,
                destination_id=request.destination_id,
            )
        )
        if self._navigation_handler is None:
            logger.warning("navigation_unhandled", destination=request.destination_id)
            return
        self._navigation_handler(request)


def _pick(text: str, choices: List[str]) -> Optional[str]:
    """Choice whose text equals the input, ignoring case."""
    wanted = text.strip().lower()
    for choice in choices:
        if choice.lower() == wanted:
            return choice
    return None


__all__ = [
    "KeywordFinder",
    "DeepLinkParser",
    "SecretaryBrain",
]
