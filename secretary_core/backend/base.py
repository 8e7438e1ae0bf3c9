"""
Backend Interface - Abstract capability consumed by the Secretary.

The backend owns geography data, issue statistics, complaint categories,
proposals and tasks. Every operation is asynchronous and may fail; callers
go through ``BackendGateway`` which turns failures into neutral results.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from secretary_core.geography import HierarchyLevel, USCounty, USPlace, USState


class TaskStatus(str, Enum):
    """Lifecycle states of a civic task."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    RESOLVED = "resolved"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


@dataclass
class Task:
    """A task attached to a location."""

    id: int
    title: str
    description: str
    category: str
    location_id: str
    status: TaskStatus = TaskStatus.OPEN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "location_id": self.location_id,
            "status": self.status.value,
        }


class SecretaryBackend(ABC):
    """
    Abstract base class for the Secretary's backend collaborator.

    Implementations should handle:
    - Transport and authentication
    - Mapping remote records onto the geography and task dataclasses
    - Raising on failure (the gateway handles degradation)
    """

    # Geography

    @abstractmethod
    async def get_all_states(self) -> List[USState]:
        """Return every state."""
        pass

    @abstractmethod
    async def get_counties_for_state(self, state_id: str) -> List[USCounty]:
        """Return the counties of a state."""
        pass

    @abstractmethod
    async def get_places_for_state(self, state_id: str) -> List[USPlace]:
        """Return the places of a state."""
        pass

    @abstractmethod
    async def get_places_for_county(self, county_id: str) -> List[USPlace]:
        """Return the places of a county."""
        pass

    # Issues and proposals

    @abstractmethod
    async def get_top_issues_for_location(
        self,
        level: HierarchyLevel,
        location_id: str,
    ) -> List[str]:
        """Return the most reported issues for a location, most common first."""
        pass

    @abstractmethod
    async def get_complaint_categories(
        self,
        level: Optional[HierarchyLevel],
        search_term: str,
    ) -> List[str]:
        """Return complaint categories matching a search term."""
        pass

    @abstractmethod
    async def submit_proposal(
        self,
        instance_name: str,
        description: str,
        level: HierarchyLevel,
        location_id: str,
    ) -> str:
        """Submit an instance proposal and return its id."""
        pass

    # Tasks

    @abstractmethod
    async def create_task(
        self,
        title: str,
        description: str,
        category: str,
        location_id: str,
    ) -> int:
        """Create a task and return its id."""
        pass

    @abstractmethod
    async def list_tasks_by_location(self, location_id: str) -> List[Task]:
        """Return the tasks attached to a location."""
        pass

    @abstractmethod
    async def get_task(self, task_id: int, location_id: str) -> Task:
        """Return a single task."""
        pass

    @abstractmethod
    async def update_task(
        self,
        task_id: int,
        title: str,
        description: str,
        category: str,
        location_id: str,
        status: TaskStatus,
    ) -> None:
        """Update a task in place."""
        pass


__all__ = [
    "TaskStatus",
    "Task",
    "SecretaryBackend",
]
