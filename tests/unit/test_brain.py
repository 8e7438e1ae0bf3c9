"""Scenario tests for SecretaryBrain."""

import asyncio

import pytest

from secretary_core.conversation.base import (
    Action,
    ActionType,
    FlowEventType,
    NodeId,
    Role,
    SecretaryIntent,
    SlotName,
)
from secretary_core.conversation.brain import SecretaryBrain
from secretary_core.conversation.prompts import COPY, SLOT_PROMPTS
from secretary_core.conversation.trace import TraceEventType
from secretary_core.geography import USCounty


def _last(brain: SecretaryBrain) -> str:
    return brain.get_messages()[-1].content


class TestSession:
    """Tests for session start, reset and listeners."""

    def test_greets_on_start(self, brain):
        """Test a new brain shows the menu with a greeting."""
        messages = brain.get_messages()

        assert len(messages) == 1
        assert messages[0].role == Role.ASSISTANT
        assert messages[0].content == COPY["greeting"]
        assert brain.is_showing_menu()

    @pytest.mark.asyncio
    async def test_empty_text_ignored(self, brain):
        """Test blank input adds nothing."""
        await brain.handle_user_text("   ")

        assert len(brain.get_messages()) == 1

    @pytest.mark.asyncio
    async def test_reset_cancels_in_flight_call(self, hanging_backend, navigations, settings):
        """Test reset cancels a pending lookup and discards its continuation."""
        brain = SecretaryBrain(hanging_backend, navigations.append, settings)
        session_id = brain.context.session_id

        pending = asyncio.ensure_future(brain.handle_action(Action(ActionType.MENU_OPTION, 1)))
        while not hanging_backend.started:
            await asyncio.sleep(0)

        brain.reset()
        await pending

        assert hanging_backend.cancelled
        assert brain.is_showing_menu()
        assert [m.content for m in brain.get_messages()] == [COPY["greeting"]]
        assert brain.context.available_states == []
        assert brain.context.session_id != session_id

    @pytest.mark.asyncio
    async def test_reset_clears_trace(self, brain):
        """Test reset drops the recorded trace."""
        await brain.handle_user_text("I want to report a problem")
        assert len(brain.trace) > 0

        brain.reset()

        assert len(brain.trace) == 0
        assert brain.context.active_intent is None

    @pytest.mark.asyncio
    async def test_listener_survives_reset(self, brain):
        """Test listeners receive navigation events across a reset."""
        events = []
        brain.add_listener(events.append)
        brain.reset()

        await brain.handle_action(Action(ActionType.MENU_OPTION, 3))

        navigated = [e for e in events if e.type == FlowEventType.NAVIGATION_REQUESTED]
        assert [e.destination_id for e in navigated] == ["proposals"]

    @pytest.mark.asyncio
    async def test_remove_listener(self, brain):
        """Test a removed listener receives nothing."""
        events = []
        brain.add_listener(events.append)
        brain.remove_listener(events.append)

        await brain.handle_action(Action(ActionType.MENU_OPTION, 1))

        assert events == []

    @pytest.mark.asyncio
    async def test_view_model_is_pure(self, brain):
        """Test projecting twice gives equal view models and no new messages."""
        await brain.handle_user_text("there's a broken streetlight near Main St")
        count = len(brain.get_messages())

        assert brain.get_view_model() == brain.get_view_model()
        assert len(brain.get_messages()) == count


class TestMenu:
    """Tests for menu text and buttons."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "option,destination,label",
        [(3, "proposals", "View Proposals"), (4, "create-instance", "Create Instance")],
    )
    async def test_navigating_options(self, brain, navigations, option, destination, label):
        """Test options 3 and 4 leave the widget."""
        await brain.handle_action(Action(ActionType.MENU_OPTION, option))

        assert navigations[-1].destination_id == destination
        assert _last(brain) == f"Taking you to {label}..."
        assert brain.is_showing_menu()

    @pytest.mark.asyncio
    async def test_unknown_text_enters_recovery(self, brain):
        """Test unclassified text moves to the recovery node."""
        await brain.handle_user_text("blorp")

        assert brain.context.current_node == NodeId.UNKNOWN_INPUT_RECOVERY
        assert brain.context.last_user_input == "blorp"
        assert brain.get_view_model().assistant_messages == [COPY["unknown_input_recovery"]]

    @pytest.mark.asyncio
    async def test_recovery_back_to_menu_keeps_history(self, brain):
        """Test returning to the menu keeps earlier messages."""
        await brain.handle_user_text("blorp")
        await brain.handle_action(Action(ActionType.BACK_TO_MENU))

        assert brain.is_showing_menu()
        assert [m.content for m in brain.get_messages()] == [COPY["greeting"], "blorp"]

    @pytest.mark.asyncio
    async def test_deep_link(self, brain, navigations):
        """Test a deep link navigates with a confirmation."""
        await brain.handle_user_text("#secretary:foia")

        assert navigations[-1].destination_id == "foia"
        assert _last(brain) == "Taking you to FOIA Request..."

    @pytest.mark.asyncio
    async def test_keyword_finder(self, brain, navigations):
        """Test keyword matches navigate after the confirmation message."""
        await brain.handle_user_text("I need help")

        assert navigations[-1].destination_id == "support"
        assert _last(brain) == "I'll connect you with support."

    @pytest.mark.asyncio
    async def test_keyword_finder_can_be_removed(self, brain, navigations):
        """Test without a keyword finder the text falls through to recovery."""
        brain.set_keyword_finder(None)

        await brain.handle_user_text("I need help")

        assert navigations == []
        assert brain.context.current_node == NodeId.UNKNOWN_INPUT_RECOVERY


class TestMenuFlows:
    """Tests for free text inside the button-driven flows."""

    @pytest.mark.asyncio
    async def test_state_typed_in_discovery(self, brain, california):
        """Test typing a state name selects it."""
        await brain.handle_action(Action(ActionType.MENU_OPTION, 1))
        await brain.handle_user_text("California")

        assert brain.context.current_node == NodeId.DISCOVERY_SELECT_LOCATION
        assert brain.context.selected_state == california

    @pytest.mark.asyncio
    async def test_unmatched_text_in_discovery(self, brain):
        """Test unmatched text keeps the node and says so."""
        await brain.handle_action(Action(ActionType.MENU_OPTION, 1))
        await brain.handle_user_text("Atlantis")

        assert brain.context.current_node == NodeId.DISCOVERY_SELECT_STATE
        assert _last(brain) == COPY["no_match_found"]


class TestIntentSlotFilling:
    """Tests for intent recognition and the slot-filling loop."""

    @pytest.mark.asyncio
    async def test_report_issue_prompts_for_state(self, brain):
        """Test a report asks for the state and offers states."""
        await brain.handle_user_text("there's a broken streetlight near Main St")

        context = brain.get_context()
        assert context.current_node == NodeId.INTENT_SLOT_FILLING
        assert context.active_intent == SecretaryIntent.REPORT_ISSUE
        assert "broken streetlight" in context.slots.get(SlotName.ISSUE_DESCRIPTION)
        assert _last(brain) == SLOT_PROMPTS[SlotName.STATE]

        view = brain.get_view_model()
        assert view.show_typeahead
        assert len(view.typeahead_options) == 3

        recognized = brain.trace.events_by_type(TraceEventType.INTENT_RECOGNIZED)
        assert recognized[0].data["intent"] == "report_issue"

    @pytest.mark.asyncio
    async def test_report_issue_completes(self, brain, navigations, california):
        """Test state then category completes the report and returns to the menu."""
        await brain.handle_user_text("there's a broken streetlight near Main St")
        await brain.handle_geography_selection(california)

        assert _last(brain) == SLOT_PROMPTS[SlotName.ISSUE_CATEGORY]
        assert brain.get_suggestions() == ["Streetlights"]

        await brain.handle_category_suggestion_selection("Streetlights")

        contents = [m.content for m in brain.get_messages()]
        assert COPY["intent_complete_report_issue"] in contents
        assert navigations[-1].destination_id == "proposals"
        assert brain.is_showing_menu()
        assert brain.context.active_intent is None
        assert len(brain.trace.events_by_type(TraceEventType.INTENT_COMPLETED)) == 1

    @pytest.mark.asyncio
    async def test_typed_geography_points_to_selector(self, brain):
        """Test typing a state while one is asked for points to the list."""
        await brain.handle_user_text("I want to report a problem")
        await brain.handle_user_text("California")

        messages = [m.content for m in brain.get_messages()]
        assert messages[-2] == "Please choose a state from the list below."
        assert messages[-1] == SLOT_PROMPTS[SlotName.STATE]
        assert brain.context.slots.state is None

    @pytest.mark.asyncio
    async def test_create_instance_navigates(self, brain, navigations, california, los_angeles):
        """Test create-instance needs state and county, then navigates."""
        await brain.handle_user_text("I want to create an instance")
        assert brain.context.active_intent == SecretaryIntent.CREATE_INSTANCE

        await brain.handle_geography_selection(california)
        assert _last(brain) == "Which county in California?"
        assert [o.label for o in brain.get_typeahead_options()] == ["Alameda (County)", "Los Angeles (County)"]

        await brain.handle_geography_selection(los_angeles)

        assert navigations[-1].destination_id == "create-instance"
        assert navigations[-1].should_close
        assert brain.is_showing_menu()

    @pytest.mark.asyncio
    async def test_county_from_another_state_is_rejected(self, brain, navigations, california):
        """Test a county outside the chosen state is not filled and the county is asked again."""
        marion = USCounty(hierarchical_id="US-IN-097", full_name="Marion County", short_name="Marion")
        await brain.handle_user_text("I want to create an instance")
        await brain.handle_geography_selection(california)

        await brain.handle_geography_selection(marion)

        messages = brain.get_messages()
        assert navigations == []
        assert brain.context.slots.county is None
        assert brain.context.slots.state == california
        assert messages[-2].content == "That location isn't in California. Please choose one from the list below."
        assert messages[-1].content == "Which county in California?"
        assert brain.context.current_node == NodeId.INTENT_SLOT_FILLING

    @pytest.mark.asyncio
    async def test_find_instance_hands_over_to_discovery(self, brain, california):
        """Test find-instance completion shows the discovery result."""
        await brain.handle_user_text("I want to explore my area")
        await brain.handle_geography_selection(california)

        context = brain.context
        assert context.current_node == NodeId.DISCOVERY_RESULT
        assert context.selected_state == california
        assert context.active_intent is None
        assert _last(brain).startswith("Great! I found information about")

    @pytest.mark.asyncio
    async def test_top_issues_hands_over_to_discovery(self, brain, california):
        """Test top-issues completion loads issues for the chosen state."""
        await brain.handle_user_text("what are the top issues")
        assert brain.context.active_intent == SecretaryIntent.TOP_ISSUES

        await brain.handle_geography_selection(california)

        assert brain.context.current_node == NodeId.DISCOVERY_TOP_ISSUES
        assert _last(brain) == "No top issues are currently tracked for California."

    @pytest.mark.asyncio
    async def test_ask_category_becomes_report(self, brain):
        """Test picking a suggested category starts a report."""
        await brain.handle_user_text("what category is noise")

        assert brain.context.active_intent == SecretaryIntent.ASK_CATEGORY
        assert brain.get_suggestions() == ["Noise"]

        await brain.handle_category_suggestion_selection("Noise")

        context = brain.context
        assert context.active_intent == SecretaryIntent.REPORT_ISSUE
        assert context.slots.get(SlotName.ISSUE_CATEGORY) == "Noise"
        assert _last(brain) == SLOT_PROMPTS[SlotName.STATE]

    @pytest.mark.asyncio
    async def test_failing_backend_still_prompts(self, failing_backend, navigations, settings):
        """Test lookups that fail leave an empty list but keep the prompt."""
        brain = SecretaryBrain(failing_backend, navigations.append, settings)

        await brain.handle_user_text("I want to report a problem")

        assert _last(brain) == SLOT_PROMPTS[SlotName.STATE]
        assert brain.get_typeahead_options() == []

    @pytest.mark.asyncio
    async def test_without_backend(self, navigations, settings):
        """Test the brain works with no backend attached."""
        brain = SecretaryBrain(None, navigations.append, settings)

        await brain.handle_user_text("I want to report a problem")

        assert brain.context.current_node == NodeId.INTENT_SLOT_FILLING
        assert brain.get_typeahead_options() == []


class TestRepair:
    """Tests for corrections during slot filling."""

    @pytest.mark.asyncio
    async def test_ambiguous_repair_changes_nothing(self, brain, california):
        """Test a correction without a slot only asks which detail."""
        await brain.handle_user_text("there's a broken streetlight near Main St")
        await brain.handle_geography_selection(california)

        await brain.handle_user_text("sorry")

        assert _last(brain) == COPY["repair_ambiguous"]
        assert brain.context.slots.state == california
        assert brain.trace.events_by_type(TraceEventType.SLOT_REPAIRED) == []

    @pytest.mark.asyncio
    async def test_repair_clears_slot_and_dependents(self, brain, california, alameda):
        """Test changing the state also clears the county."""
        await brain.handle_user_text("there's a broken streetlight near Main St")
        await brain.handle_geography_selection(california)
        await brain.handle_geography_selection(alameda)
        assert brain.context.slots.county == alameda

        await brain.handle_user_text("actually change the state")

        slots = brain.context.slots
        assert slots.state is None
        assert slots.county is None
        assert slots.is_filled(SlotName.ISSUE_DESCRIPTION)

        messages = [m.content for m in brain.get_messages()]
        assert messages[-2] == "Got it, let's update your state."
        assert messages[-1] == SLOT_PROMPTS[SlotName.STATE]
        assert brain.get_view_model().show_typeahead
        assert len(brain.trace.events_by_type(TraceEventType.SLOT_REPAIRED)) == 1


class TestTasks:
    """Tests for the task intents end to end."""

    @pytest.mark.asyncio
    async def test_create_task(self, brain, memory_backend):
        """Test a task is created from the request and a description."""
        await brain.handle_user_text("create a task to fix the bench in Pasadena, California")

        assert brain.context.active_intent == SecretaryIntent.CREATE_TASK
        assert _last(brain) == SLOT_PROMPTS[SlotName.TASK_DESCRIPTION]

        await brain.handle_user_text("The slats are cracked")

        assert _last(brain).startswith("Task created successfully! Task ID: 1.")
        assert brain.is_showing_menu()

        task = memory_backend.tasks[1]
        assert task.title == "fix the bench"
        assert task.description == "The slats are cracked"
        assert task.location_id == "US-CA-037-56000"
        assert task.category == "General"

    @pytest.mark.asyncio
    async def test_find_tasks(self, brain, memory_backend):
        """Test tasks are listed for an explicit location id."""
        await memory_backend.create_task("Fix bench", "Broken slats", "Parks", "US-CA-037")

        await brain.handle_user_text("show tasks for US-CA-037")

        assert "1. Fix bench (open)" in _last(brain)
        assert brain.is_showing_menu()

    @pytest.mark.asyncio
    async def test_update_task_asks_for_location(self, brain, memory_backend):
        """Test a missing location is asked for before the update runs."""
        await memory_backend.create_task("Fix bench", "Broken slats", "Parks", "US-CA-037")

        await brain.handle_user_text("mark task 1 as done")
        assert _last(brain) == SLOT_PROMPTS[SlotName.TASK_LOCATION_ID]

        await brain.handle_user_text("US-CA-037")

        assert _last(brain) == "Task 1 updated successfully! Status is now: resolved."
        assert memory_backend.tasks[1].status.value == "resolved"

    @pytest.mark.asyncio
    async def test_connector_word_does_not_pick_a_state(self, brain, memory_backend):
        """Test "in my neighborhood" asks for a location instead of searching Indiana."""
        await brain.handle_user_text("show the tasks in my neighborhood")

        assert brain.context.active_intent == SecretaryIntent.FIND_TASKS
        assert _last(brain) == SLOT_PROMPTS[SlotName.TASK_LOCATION_ID]
        assert not any("No tasks found" in m.content for m in brain.get_messages())

    @pytest.mark.asyncio
    async def test_task_repair_reprompts(self, brain):
        """Test a task correction clears the named slot and asks again."""
        await brain.handle_user_text("create a task to fix the bench in Pasadena, California")

        await brain.handle_user_text("actually change the title")

        assert not brain.context.slots.is_filled(SlotName.TASK_TITLE)
        assert _last(brain) == SLOT_PROMPTS[SlotName.TASK_TITLE]

        await brain.handle_user_text("Repair the bench")
        assert brain.context.slots.get(SlotName.TASK_TITLE) == "Repair the bench"
        assert _last(brain) == SLOT_PROMPTS[SlotName.TASK_DESCRIPTION]

    @pytest.mark.asyncio
    async def test_task_without_backend(self, navigations, settings):
        """Test the not-connected reply when no backend is attached."""
        brain = SecretaryBrain(None, navigations.append, settings)

        await brain.handle_user_text("show tasks for US-CA-037")

        assert _last(brain) == "I need to be connected to find tasks. Please try again."
