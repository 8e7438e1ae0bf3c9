"""
Task intents.

Parsing helpers that fill task slots from free text, and the executor that
runs create/find/update against the backend once the slots are complete.
"""

import re
from typing import Dict, Optional

import structlog

from secretary_core.backend.base import TaskStatus
from secretary_core.backend.gateway import BackendGateway
from secretary_core.conversation.base import SecretaryIntent, SlotName
from secretary_core.conversation.geography_lookup import GeographyLookup
from secretary_core.conversation.matching import extract_issue_description
from secretary_core.conversation.slots import SlotStore
from secretary_core.exceptions import BackendUnavailableError, SessionClosedError
from secretary_core.geography import derive_location_id

logger = structlog.get_logger()


_TASK_ID_PATTERNS = (
    re.compile(r"task\s*#?(\d+)", re.IGNORECASE),
    re.compile(r"\bid\s*#?(\d+)", re.IGNORECASE),
    re.compile(r"#(\d+)"),
    re.compile(r"^(\d+)$"),
)

_LOCATION_ID = re.compile(r"\bUS-[A-Z]{2}(?:-\d{3})?(?:-\d{5})?\b", re.IGNORECASE)

_TASK_COMMAND_PREFIX = re.compile(
    r"^\s*(?:please\s+)?(?:create|make|add|new)\s+(?:a\s+)?(?:new\s+)?task\s*"
    r"(?:about|for|to|called|named)?\s*",
    re.IGNORECASE,
)

# Checked in order
STATUS_KEYWORDS = (
    (("open", "new"), TaskStatus.OPEN),
    (("in progress", "in_progress", "working"), TaskStatus.IN_PROGRESS),
    (("blocked", "stuck"), TaskStatus.BLOCKED),
    (("resolved", "done", "completed", "closed"), TaskStatus.RESOLVED),
)

CATEGORY_KEYWORDS: Dict[str, str] = {
    "maintenance": "Maintenance",
    "repair": "Repair",
    "safety": "Safety",
    "infrastructure": "Infrastructure",
    "community": "Community",
    "environment": "Environment",
    "transportation": "Transportation",
    "utilities": "Utilities",
    "parks": "Parks",
    "roads": "Roads",
    "water": "Water",
    "sewer": "Sewer",
    "lighting": "Lighting",
    "traffic": "Traffic",
    "zoning": "Zoning",
    "permits": "Permits",
    "health": "Health",
    "emergency": "Emergency",
}

MAX_TITLE_LENGTH = 150
DEFAULT_TASK_CATEGORY = "General"


def parse_task_id(text: str) -> Optional[str]:
    normalized = text.strip()
    for pattern in _TASK_ID_PATTERNS:
        match = pattern.search(normalized)
        if match:
            return match.group(1)
    return None


def parse_task_status(text: str) -> Optional[TaskStatus]:
    normalized = text.lower().strip()
    for keywords, status in STATUS_KEYWORDS:
        if any(keyword in normalized for keyword in keywords):
            return status
    return None


def parse_location_id(text: str) -> Optional[str]:
    match = _LOCATION_ID.search(text)
    return match.group(0).upper() if match else None


def parse_task_category(text: str, allow_free_form: bool = False) -> Optional[str]:
    """Category from keywords; a single free-form word only when ``allow_free_form``."""
    normalized = text.lower().strip()
    for keyword, category in CATEGORY_KEYWORDS.items():
        if keyword in normalized:
            return category

    if allow_free_form and normalized and len(normalized) < 30 and " " not in normalized:
        return normalized.capitalize()
    return None


def strip_task_command(text: str) -> str:
    """Drop a leading "create a task to ..." style command."""
    return _TASK_COMMAND_PREFIX.sub("", text, count=1).strip()


class TaskSlotFiller:
    """Fills task slots from one utterance."""

    def __init__(self, lookup: GeographyLookup):
        self.lookup = lookup

    async def fill(
        self,
        intent: SecretaryIntent,
        slots: SlotStore,
        text: str,
        asking: Optional[SlotName],
        opening: bool = False,
    ) -> None:
        """
        Fill what the text supports.

        ``asking`` is the slot the last prompt asked for; ``opening`` marks
        the utterance that started the intent.
        """
        stripped = text.strip()

        if intent == SecretaryIntent.UPDATE_TASK:
            if not slots.is_filled(SlotName.TASK_ID):
                task_id = parse_task_id(stripped)
                if task_id:
                    slots.set(SlotName.TASK_ID, task_id)
            # "New York" would otherwise read as status "new"
            if not slots.is_filled(SlotName.TASK_STATUS) and (
                opening or asking == SlotName.TASK_STATUS
            ):
                status = parse_task_status(stripped)
                if status is not None:
                    slots.set(SlotName.TASK_STATUS, status)

        if not slots.is_filled(SlotName.TASK_LOCATION_ID):
            await self._fill_location(slots, stripped)

        if intent != SecretaryIntent.CREATE_TASK:
            return

        if not slots.is_filled(SlotName.TASK_TITLE):
            title = self._title_from(slots, stripped, asking, opening)
            if title:
                slots.set(SlotName.TASK_TITLE, title)
        elif asking == SlotName.TASK_DESCRIPTION and not slots.is_filled(SlotName.TASK_DESCRIPTION):
            slots.set(SlotName.TASK_DESCRIPTION, stripped)

        if not slots.is_filled(SlotName.TASK_CATEGORY):
            category = parse_task_category(
                stripped, allow_free_form=asking == SlotName.TASK_CATEGORY
            )
            if category:
                slots.set(SlotName.TASK_CATEGORY, category)

    async def _fill_location(self, slots: SlotStore, text: str) -> None:
        location_id = derive_location_id(slots.state, slots.county, slots.place)
        if location_id is None:
            location_id = parse_location_id(text)

        if location_id is None:
            match = await self.lookup.lookup(text)
            if match.found:
                slots.set(SlotName.STATE, match.state)
                slots.set(SlotName.COUNTY, match.county)
                slots.set(SlotName.PLACE, match.place)
                location_id = match.location_id

        if location_id:
            slots.set(SlotName.TASK_LOCATION_ID, location_id)

    def _title_from(
        self,
        slots: SlotStore,
        text: str,
        asking: Optional[SlotName],
        opening: bool,
    ) -> Optional[str]:
        if opening:
            candidate = strip_task_command(text)
            if candidate == text.strip():
                # Not phrased as "create a task ..."; nothing to take
                return None
            candidate = extract_issue_description(
                candidate, slots.state, slots.county, slots.place
            )
        elif asking == SlotName.TASK_TITLE:
            candidate = text
        else:
            return None

        candidate = candidate.strip()
        if not candidate or len(candidate) >= MAX_TITLE_LENGTH:
            return None
        return candidate


class TaskExecutor:
    """Runs completed task intents and phrases the outcome."""

    def __init__(self, gateway: BackendGateway, preview: int = 5):
        self.gateway = gateway
        self.preview = preview

    async def execute(self, intent: SecretaryIntent, slots: SlotStore) -> str:
        if intent == SecretaryIntent.CREATE_TASK:
            return await self.create(slots)
        if intent == SecretaryIntent.FIND_TASKS:
            return await self.find(slots)
        if intent == SecretaryIntent.UPDATE_TASK:
            return await self.update(slots)
        raise ValueError(f"Not a task intent: {intent.value}")

    async def create(self, slots: SlotStore) -> str:
        title = slots.get(SlotName.TASK_TITLE)
        description = slots.get(SlotName.TASK_DESCRIPTION)
        location_id = slots.get(SlotName.TASK_LOCATION_ID)
        category = slots.get(SlotName.TASK_CATEGORY) or DEFAULT_TASK_CATEGORY

        if not (title and description and location_id):
            return "I'm missing some required information to create the task."

        try:
            task_id = await self.gateway.create_task(title, description, category, location_id)
        except SessionClosedError:
            raise
        except BackendUnavailableError:
            return "I need to be connected to create a task. Please try again."
        except Exception as e:
            logger.error("task_create_failed", location_id=location_id, error=str(e))
            return f"I encountered an error creating the task: {e or 'Unknown error'}"

        logger.info("task_created", task_id=task_id, location_id=location_id)
        return f"Task created successfully! Task ID: {task_id}. You can view it in the Tasks section."

    async def find(self, slots: SlotStore) -> str:
        location_id = slots.get(SlotName.TASK_LOCATION_ID)
        if not location_id:
            return "I need a location to find tasks."

        try:
            tasks = await self.gateway.list_tasks_by_location(location_id)
        except SessionClosedError:
            raise
        except BackendUnavailableError:
            return "I need to be connected to find tasks. Please try again."
        except Exception as e:
            logger.error("task_list_failed", location_id=location_id, error=str(e))
            return f"I encountered an error finding tasks: {e or 'Unknown error'}"

        if not tasks:
            return f"No tasks found for location {location_id}."

        summary = "\n".join(
            f"{i}. {task.title} ({task.status.label})"
            for i, task in enumerate(tasks[: self.preview], start=1)
        )
        more = ""
        if len(tasks) > self.preview:
            more = f"\n\n...and {len(tasks) - self.preview} more tasks."
        return (
            f"Here are the tasks for location {location_id}:\n\n{summary}{more}"
            "\n\nYou can view all tasks in the Tasks section."
        )

    async def update(self, slots: SlotStore) -> str:
        task_id = slots.get(SlotName.TASK_ID)
        location_id = slots.get(SlotName.TASK_LOCATION_ID)
        status = slots.get(SlotName.TASK_STATUS)

        if not (task_id and location_id and status):
            return "I'm missing some required information to update the task."

        try:
            await self.gateway.update_task_status(int(task_id), location_id, status)
        except SessionClosedError:
            raise
        except BackendUnavailableError:
            return "I need to be connected to update a task. Please try again."
        except Exception as e:
            logger.error("task_update_failed", task_id=task_id, error=str(e))
            return f"I encountered an error updating the task: {e or 'Unknown error'}"

        logger.info("task_updated", task_id=task_id, status=status.value)
        return f"Task {task_id} updated successfully! Status is now: {status.label}."


__all__ = [
    "CATEGORY_KEYWORDS",
    "DEFAULT_TASK_CATEGORY",
    "parse_task_id",
    "parse_task_status",
    "parse_location_id",
    "parse_task_category",
    "strip_task_command",
    "TaskSlotFiller",
    "TaskExecutor",
]
