"""
Flow Registry

Per-intent declaration of required slots, prompt order and the completion
closure run once every required slot is filled.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import structlog

from secretary_core.conversation.base import (
    NavigationHandler,
    NavigationRequest,
    SecretaryIntent,
    SlotName,
)
from secretary_core.conversation.slots import SlotStore

logger = structlog.get_logger()


CompletionAction = Callable[[SlotStore], None]


@dataclass
class IntentFlow:
    """Slot requirements and completion behavior for one intent."""

    intent: SecretaryIntent
    required_slots: Tuple[SlotName, ...]
    prompt_order: Tuple[SlotName, ...]
    optional_slots: Tuple[SlotName, ...] = ()
    on_complete: Optional[CompletionAction] = None

    def __post_init__(self):
        missing = [s for s in self.required_slots if s not in self.prompt_order]
        if missing:
            raise ValueError(
                f"Required slots {missing} missing from prompt order of {self.intent.value}"
            )


@dataclass
class FlowRegistry:
    """Lookup table from intent to ``IntentFlow``."""

    flows: Dict[SecretaryIntent, IntentFlow] = field(default_factory=dict)

    def register(self, flow: IntentFlow) -> None:
        self.flows[flow.intent] = flow
        logger.debug(
            "intent_flow_registered",
            intent=flow.intent.value,
            required_slots=[s.value for s in flow.required_slots],
        )

    def get(self, intent: Optional[SecretaryIntent]) -> Optional[IntentFlow]:
        if intent is None:
            return None
        return self.flows.get(intent)

    def intents(self) -> List[SecretaryIntent]:
        return list(self.flows)


def _navigate_to(navigate: NavigationHandler, destination_id: str) -> CompletionAction:
    def complete(slots: SlotStore) -> None:
        navigate(NavigationRequest(destination_id=destination_id, should_close=True))

    return complete


GEOGRAPHY_ORDER = (SlotName.STATE, SlotName.COUNTY, SlotName.PLACE)


def build_flow_registry(navigate: NavigationHandler) -> FlowRegistry:
    """Build the registry with every intent's flow bound to ``navigate``."""
    registry = FlowRegistry()

    registry.register(
        IntentFlow(
            intent=SecretaryIntent.REPORT_ISSUE,
            required_slots=(SlotName.STATE, SlotName.ISSUE_CATEGORY, SlotName.ISSUE_DESCRIPTION),
            optional_slots=(SlotName.COUNTY, SlotName.PLACE),
            prompt_order=GEOGRAPHY_ORDER + (SlotName.ISSUE_CATEGORY, SlotName.ISSUE_DESCRIPTION),
            on_complete=_navigate_to(navigate, "proposals"),
        )
    )
    registry.register(
        IntentFlow(
            intent=SecretaryIntent.CREATE_INSTANCE,
            required_slots=(SlotName.STATE, SlotName.COUNTY),
            optional_slots=(SlotName.PLACE,),
            prompt_order=GEOGRAPHY_ORDER,
            on_complete=_navigate_to(navigate, "create-instance"),
        )
    )
    registry.register(
        IntentFlow(
            intent=SecretaryIntent.FIND_INSTANCE,
            required_slots=(SlotName.STATE,),
            optional_slots=(SlotName.COUNTY, SlotName.PLACE),
            prompt_order=GEOGRAPHY_ORDER,
            on_complete=_navigate_to(navigate, "geography"),
        )
    )
    registry.register(
        IntentFlow(
            intent=SecretaryIntent.TOP_ISSUES,
            required_slots=(SlotName.STATE,),
            optional_slots=(SlotName.COUNTY, SlotName.PLACE),
            prompt_order=GEOGRAPHY_ORDER,
            on_complete=_navigate_to(navigate, "proposals"),
        )
    )
    registry.register(
        IntentFlow(
            intent=SecretaryIntent.ASK_CATEGORY,
            required_slots=(),
            optional_slots=(SlotName.ISSUE_CATEGORY,),
            prompt_order=(SlotName.ISSUE_CATEGORY,),
        )
    )

    # Task intents complete through the task executor, not navigation
    registry.register(
        IntentFlow(
            intent=SecretaryIntent.CREATE_TASK,
            required_slots=(SlotName.TASK_LOCATION_ID, SlotName.TASK_TITLE, SlotName.TASK_DESCRIPTION),
            optional_slots=(SlotName.TASK_CATEGORY,),
            prompt_order=(
                SlotName.TASK_LOCATION_ID,
                SlotName.TASK_TITLE,
                SlotName.TASK_DESCRIPTION,
                SlotName.TASK_CATEGORY,
            ),
        )
    )
    registry.register(
        IntentFlow(
            intent=SecretaryIntent.FIND_TASKS,
            required_slots=(SlotName.TASK_LOCATION_ID,),
            prompt_order=(SlotName.TASK_LOCATION_ID,),
        )
    )
    registry.register(
        IntentFlow(
            intent=SecretaryIntent.UPDATE_TASK,
            required_slots=(SlotName.TASK_LOCATION_ID, SlotName.TASK_ID, SlotName.TASK_STATUS),
            prompt_order=(SlotName.TASK_LOCATION_ID, SlotName.TASK_ID, SlotName.TASK_STATUS),
        )
    )

    return registry


__all__ = [
    "CompletionAction",
    "IntentFlow",
    "FlowRegistry",
    "build_flow_registry",
]
