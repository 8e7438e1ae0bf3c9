"""
In-memory backend for tests and local wiring.

Serves a small seeded geography and keeps proposals and tasks in dicts so the
engine can run end to end without a remote backend.
"""
from typing import Dict, List, Optional

import structlog

from secretary_core.backend.base import SecretaryBackend, Task, TaskStatus
from secretary_core.geography import HierarchyLevel, USCounty, USPlace, USState

logger = structlog.get_logger()


DEFAULT_STATES: List[USState] = [
    USState(hierarchical_id="US-CA", short_name="CA", long_name="California"),
    USState(hierarchical_id="US-IN", short_name="IN", long_name="Indiana"),
    USState(hierarchical_id="US-NY", short_name="NY", long_name="New York"),
]

DEFAULT_COUNTIES: List[USCounty] = [
    USCounty(hierarchical_id="US-CA-001", full_name="Alameda County", short_name="Alameda"),
    USCounty(hierarchical_id="US-CA-037", full_name="Los Angeles County", short_name="Los Angeles"),
    USCounty(hierarchical_id="US-IN-097", full_name="Marion County", short_name="Marion"),
    USCounty(hierarchical_id="US-NY-061", full_name="New York County", short_name="New York"),
]

DEFAULT_PLACES: List[USPlace] = [
    USPlace(
        hierarchical_id="US-CA-001-53000",
        full_name="Oakland city",
        short_name="Oakland",
        county_full_name="Alameda County",
    ),
    USPlace(
        hierarchical_id="US-CA-037-56000",
        full_name="Pasadena city",
        short_name="Pasadena",
        county_full_name="Los Angeles County",
    ),
    USPlace(
        hierarchical_id="US-IN-097-36003",
        full_name="Indianapolis city",
        short_name="Indianapolis",
        county_full_name="Marion County",
    ),
]

DEFAULT_CATEGORIES: List[str] = [
    "Streetlights",
    "Potholes",
    "Noise",
    "Parks",
    "Trash Collection",
    "Traffic Signals",
    "Water Service",
]


class InMemoryBackend(SecretaryBackend):
    """
    Deterministic backend backed by plain Python collections.

    Records every call in ``calls`` so tests can assert on traffic.
    """

    def __init__(
        self,
        states: Optional[List[USState]] = None,
        counties: Optional[List[USCounty]] = None,
        places: Optional[List[USPlace]] = None,
        top_issues: Optional[Dict[str, List[str]]] = None,
        categories: Optional[List[str]] = None,
    ) -> None:
        self.states = list(DEFAULT_STATES if states is None else states)
        self.counties = list(DEFAULT_COUNTIES if counties is None else counties)
        self.places = list(DEFAULT_PLACES if places is None else places)
        self.top_issues: Dict[str, List[str]] = dict(top_issues or {})
        self.categories = list(DEFAULT_CATEGORIES if categories is None else categories)

        self.proposals: Dict[str, Dict[str, str]] = {}
        self.tasks: Dict[int, Task] = {}
        self.calls: List[str] = []
        self._next_task_id = 1

    def _record(self, operation: str) -> None:
        self.calls.append(operation)

    async def get_all_states(self) -> List[USState]:
        self._record("get_all_states")
        return list(self.states)

    async def get_counties_for_state(self, state_id: str) -> List[USCounty]:
        self._record("get_counties_for_state")
        return [c for c in self.counties if c.hierarchical_id.startswith(f"{state_id}-")]

    async def get_places_for_state(self, state_id: str) -> List[USPlace]:
        self._record("get_places_for_state")
        return [p for p in self.places if p.hierarchical_id.startswith(f"{state_id}-")]

    async def get_places_for_county(self, county_id: str) -> List[USPlace]:
        self._record("get_places_for_county")
        return [p for p in self.places if p.hierarchical_id.startswith(f"{county_id}-")]

    async def get_top_issues_for_location(
        self,
        level: HierarchyLevel,
        location_id: str,
    ) -> List[str]:
        self._record("get_top_issues_for_location")
        return list(self.top_issues.get(location_id, []))

    async def get_complaint_categories(
        self,
        level: Optional[HierarchyLevel],
        search_term: str,
    ) -> List[str]:
        self._record("get_complaint_categories")
        words = [w for w in search_term.lower().split() if len(w) > 3]
        if not words:
            return list(self.categories)
        return [
            category
            for category in self.categories
            if any(w in category.lower() or category.lower().rstrip("s") in w for w in words)
        ]

    async def submit_proposal(
        self,
        instance_name: str,
        description: str,
        level: HierarchyLevel,
        location_id: str,
    ) -> str:
        self._record("submit_proposal")
        proposal_id = f"proposal-{len(self.proposals) + 1}"
        self.proposals[proposal_id] = {
            "instance_name": instance_name,
            "description": description,
            "level": level.value,
            "location_id": location_id,
        }
        logger.info("proposal_submitted", proposal_id=proposal_id, location_id=location_id)
        return proposal_id

    async def create_task(
        self,
        title: str,
        description: str,
        category: str,
        location_id: str,
    ) -> int:
        self._record("create_task")
        task_id = self._next_task_id
        self._next_task_id += 1
        self.tasks[task_id] = Task(
            id=task_id,
            title=title,
            description=description,
            category=category,
            location_id=location_id,
        )
        return task_id

    async def list_tasks_by_location(self, location_id: str) -> List[Task]:
        self._record("list_tasks_by_location")
        return [t for t in self.tasks.values() if t.location_id == location_id]

    async def get_task(self, task_id: int, location_id: str) -> Task:
        self._record("get_task")
        task = self.tasks.get(task_id)
        if task is None or task.location_id != location_id:
            raise KeyError(f"Task {task_id} not found at {location_id}")
        return task

    async def update_task(
        self,
        task_id: int,
        title: str,
        description: str,
        category: str,
        location_id: str,
        status: TaskStatus,
    ) -> None:
        self._record("update_task")
        task = await self.get_task(task_id, location_id)
        task.title = title
        task.description = description
        task.category = category
        task.status = status


__all__ = [
    "DEFAULT_STATES",
    "DEFAULT_COUNTIES",
    "DEFAULT_PLACES",
    "DEFAULT_CATEGORIES",
    "InMemoryBackend",
]
