"""Unit tests for the flow graph."""

import pytest

from secretary_core.backend import BackendGateway, SessionScope
from secretary_core.conversation.base import Action, ActionType, FlowEventType, NodeId
from secretary_core.conversation.graph import FlowGraph
from secretary_core.conversation.nodes import NODE_DEFINITIONS
from secretary_core.conversation.prompts import COPY
from secretary_core.conversation.transitions import BACK_TO_MENU_SOURCES, find_transition
from secretary_core.geography import HierarchyLevel


@pytest.fixture
def graph(context, gateway, settings) -> FlowGraph:
    return FlowGraph(context, gateway, settings)


async def _select(graph, state, location):
    await graph.handle_action(Action(ActionType.MENU_OPTION, 1))
    await graph.handle_action(Action(ActionType.STATE_SELECTED, state))
    await graph.handle_action(Action(ActionType.LOCATION_SELECTED, location))


class TestTransitionTable:
    """Tests for the static transition table."""

    def test_every_node_defined(self):
        """Test each node id has a definition."""
        assert set(NODE_DEFINITIONS) == set(NodeId)

    @pytest.mark.parametrize("node", BACK_TO_MENU_SOURCES)
    def test_back_to_menu_everywhere(self, node):
        """Test back-to-menu is declared for every non-menu node."""
        transition = find_transition(node, ActionType.BACK_TO_MENU)

        assert transition is not None
        assert transition.to == NodeId.MENU

    def test_menu_has_no_back_to_menu(self):
        """Test the menu itself has no back-to-menu edge."""
        assert find_transition(NodeId.MENU, ActionType.BACK_TO_MENU) is None


class TestDiscoveryFlow:
    """Tests for the discovery nodes."""

    @pytest.mark.asyncio
    async def test_menu_option_loads_states(self, graph, context, memory_backend):
        """Test discovery starts by loading states and prompting."""
        taken = await graph.handle_action(Action(ActionType.MENU_OPTION, 1))

        assert taken
        assert context.current_node == NodeId.DISCOVERY_SELECT_STATE
        assert [s.short_name for s in context.available_states] == ["CA", "IN", "NY"]
        assert context.last_assistant_message() == COPY["discovery_prompt_state"]
        assert memory_backend.calls == ["get_all_states"]

    @pytest.mark.asyncio
    async def test_state_selection_loads_locations(self, graph, context, california):
        """Test selecting a state loads its counties and places."""
        await graph.handle_action(Action(ActionType.MENU_OPTION, 1))
        await graph.handle_action(Action(ActionType.STATE_SELECTED, california))

        assert context.current_node == NodeId.DISCOVERY_SELECT_LOCATION
        assert context.selected_state == california
        assert {c.short_name for c in context.available_counties} == {"Alameda", "Los Angeles"}
        assert {p.short_name for p in context.available_places} == {"Oakland", "Pasadena"}

    @pytest.mark.asyncio
    async def test_guard_rejects_wrong_payload(self, graph, context):
        """Test a state-selected action without a state is refused."""
        await graph.handle_action(Action(ActionType.MENU_OPTION, 1))

        taken = await graph.handle_action(Action(ActionType.STATE_SELECTED, "California"))

        assert not taken
        assert context.current_node == NodeId.DISCOVERY_SELECT_STATE

    @pytest.mark.asyncio
    async def test_place_selection_infers_county(self, graph, context, california, los_angeles, pasadena):
        """Test selecting a place also selects its county."""
        await _select(graph, california, pasadena)

        assert context.current_node == NodeId.DISCOVERY_RESULT
        assert context.selected_place == pasadena
        assert context.selected_county == los_angeles
        assert "Pasadena" in context.last_assistant_message()

    @pytest.mark.asyncio
    async def test_view_top_issues(self, graph, context, california, pasadena):
        """Test top issues are fetched for the most specific selection."""
        await _select(graph, california, pasadena)
        await graph.handle_action(Action(ActionType.VIEW_TOP_ISSUES))

        assert context.current_node == NodeId.DISCOVERY_TOP_ISSUES
        assert context.report_issue_top_issues == ["Potholes", "Streetlights", "Noise"]
        assert "1. Potholes" in context.last_assistant_message()


class TestReportFlow:
    """Tests for the report-issue nodes."""

    @pytest.mark.asyncio
    async def test_report_with_top_issues(self, graph, context, california, pasadena):
        """Test a location with top issues lands on report-top-issues."""
        await _select(graph, california, pasadena)
        await graph.handle_action(Action(ActionType.REPORT_ISSUE))

        assert context.current_node == NodeId.REPORT_TOP_ISSUES
        assert context.report_issue_geography_level == HierarchyLevel.PLACE
        assert context.report_issue_geography_id == "US-CA-037-56000"

        await graph.handle_action(Action(ActionType.TOP_ISSUE_SELECTED, "Potholes"))

        assert context.current_node == NodeId.REPORT_COMPLETE
        assert context.report_issue_category == "Potholes"

    @pytest.mark.asyncio
    async def test_report_without_top_issues(self, graph, context, california, alameda):
        """Test a location without top issues asks for a description."""
        await _select(graph, california, alameda)
        await graph.handle_action(Action(ActionType.REPORT_ISSUE))

        assert context.current_node == NodeId.REPORT_COLLECT_DESCRIPTION
        messages = [m.content for m in context.messages]
        assert COPY["report_no_top_issues"] in messages
        assert messages[-1] == COPY["report_description_prompt"]

    @pytest.mark.asyncio
    async def test_report_from_menu_without_geography(self, graph, context):
        """Test reporting from the menu skips straight to the description."""
        await graph.handle_action(Action(ActionType.MENU_OPTION, 2))

        assert context.current_node == NodeId.REPORT_COLLECT_DESCRIPTION
        assert context.report_issue_geography_level is None

    @pytest.mark.asyncio
    async def test_description_to_suggestions(self, graph, context):
        """Test a description leads to matching category suggestions."""
        await graph.handle_action(Action(ActionType.MENU_OPTION, 2))
        await graph.handle_action(
            Action(ActionType.DESCRIPTION_SUBMITTED, "broken streetlight near the park")
        )

        assert context.current_node == NodeId.REPORT_SHOW_SUGGESTIONS
        assert context.report_issue_description == "broken streetlight near the park"
        assert context.report_issue_suggestions == ["Streetlights", "Parks"]

        await graph.handle_action(Action(ActionType.SUGGESTION_SELECTED, "Parks"))

        assert context.current_node == NodeId.REPORT_COMPLETE
        assert context.report_issue_category == "Parks"

    @pytest.mark.asyncio
    async def test_no_suggestions_goes_to_custom_category(self, graph, context):
        """Test an unmatched description asks for a custom category."""
        await graph.handle_action(Action(ActionType.MENU_OPTION, 2))
        await graph.handle_action(Action(ActionType.DESCRIPTION_SUBMITTED, "zzzz qqqq"))

        assert context.current_node == NodeId.REPORT_CUSTOM_CATEGORY

        await graph.handle_action(Action(ActionType.CUSTOM_CATEGORY_SUBMITTED, "Graffiti"))

        assert context.current_node == NodeId.REPORT_COMPLETE
        assert context.report_issue_category == "Graffiti"

    @pytest.mark.asyncio
    async def test_something_else(self, graph, context):
        """Test skipping suggestions for a custom category."""
        await graph.handle_action(Action(ActionType.MENU_OPTION, 2))
        await graph.handle_action(Action(ActionType.DESCRIPTION_SUBMITTED, "broken streetlight"))
        await graph.handle_action(Action(ActionType.SOMETHING_ELSE))

        assert context.current_node == NodeId.REPORT_CUSTOM_CATEGORY


class TestGraphBehavior:
    """Tests for table misses, back-to-menu, listeners and failures."""

    @pytest.mark.asyncio
    async def test_unknown_action_is_noop(self, graph, context):
        """Test an action with no transition changes nothing."""
        taken = await graph.handle_action(Action(ActionType.VIEW_TOP_ISSUES))

        assert not taken
        assert context.current_node == NodeId.MENU

    @pytest.mark.asyncio
    @pytest.mark.parametrize("node", BACK_TO_MENU_SOURCES)
    async def test_back_to_menu_resets_flow_state(self, graph, context, california, node):
        """Test back-to-menu from any node clears selections and keeps messages."""
        context.add_assistant_message("earlier")
        context.current_node = node
        context.select_state(california)
        context.set_report_description("something")

        await graph.handle_action(Action(ActionType.BACK_TO_MENU))

        assert context.current_node == NodeId.MENU
        assert context.selected_state is None
        assert context.report_issue_description == ""
        assert context.messages[0].content == "earlier"

    @pytest.mark.asyncio
    async def test_listeners(self, graph):
        """Test listeners see actions and node entries; failing ones are skipped."""
        events = []

        def broken(event):
            raise RuntimeError("listener bug")

        graph.add_listener(broken)
        graph.add_listener(events.append)
        await graph.handle_action(Action(ActionType.MENU_OPTION, 1))

        assert [e.type for e in events] == [FlowEventType.ACTION_TAKEN, FlowEventType.NODE_ENTERED]
        assert events[1].node_id == NodeId.DISCOVERY_SELECT_STATE

        graph.remove_listener(events.append)
        await graph.handle_action(Action(ActionType.BACK_TO_MENU))
        assert len(events) == 2

    @pytest.mark.asyncio
    async def test_rejected_actions_are_not_reported(self, graph):
        """Test actions with no transition or a failing guard emit no events."""
        events = []
        graph.add_listener(events.append)

        assert await graph.handle_action(Action(ActionType.BACK_TO_MENU)) is False
        assert events == []

        await graph.handle_action(Action(ActionType.MENU_OPTION, 1))
        events.clear()

        assert await graph.handle_action(Action(ActionType.STATE_SELECTED, "California")) is False
        assert events == []
        assert graph.context.current_node == NodeId.DISCOVERY_SELECT_STATE

    @pytest.mark.asyncio
    async def test_backend_failure_degrades(self, context, failing_backend, settings):
        """Test a failing backend leaves empty options instead of raising."""
        graph = FlowGraph(context, BackendGateway(failing_backend, SessionScope()), settings)

        await graph.handle_action(Action(ActionType.MENU_OPTION, 1))

        assert context.current_node == NodeId.DISCOVERY_SELECT_STATE
        assert context.available_states == []
