"""
Backend Gateway - Session-scoped, failure-tolerant backend access.

Every outbound call runs as a task owned by the session's ``SessionScope`` so
that tearing the session down cancels work still in flight. Failures are
logged and reduced to neutral results; only ``SessionClosedError`` escapes.
"""
import asyncio
from dataclasses import replace
from typing import Any, Awaitable, Callable, List, Optional, Set, TypeVar

import structlog

from secretary_core.backend.base import SecretaryBackend, Task, TaskStatus
from secretary_core.exceptions import BackendUnavailableError, SessionClosedError
from secretary_core.geography import HierarchyLevel, USCounty, USPlace, USState

logger = structlog.get_logger()

T = TypeVar("T")


class SessionScope:
    """Owns the asyncio tasks started on behalf of one conversation session."""

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Run an awaitable as a tracked task and return its result."""
        if self._closed:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise SessionClosedError("Session scope is closed")

        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        try:
            result = await task
        except asyncio.CancelledError:
            if self._closed:
                raise SessionClosedError("Session closed while a call was in flight") from None
            raise
        finally:
            self._tasks.discard(task)

        # The task may have finished just before close() ran
        if self._closed:
            raise SessionClosedError("Session closed while a call was in flight")
        return result

    async def sleep(self, delay: float) -> None:
        """Pause for ``delay`` seconds; cancelled when the scope closes."""
        await self.run(asyncio.sleep(max(delay, 0.0)))

    def close(self) -> None:
        """Cancel all pending tasks and refuse new ones."""
        if self._closed:
            return
        self._closed = True
        cancelled = 0
        for task in list(self._tasks):
            if not task.done():
                task.cancel()
                cancelled += 1
        if cancelled:
            logger.info("session_scope_closed", cancelled_calls=cancelled)


class BackendGateway:
    """
    Failure-tolerant wrapper around a ``SecretaryBackend``.

    Lookups degrade to empty results with a logged warning. Task writes
    raise so that the caller can put the error into its reply.
    """

    def __init__(
        self,
        backend: Optional[SecretaryBackend],
        scope: Optional[SessionScope] = None,
    ) -> None:
        self.backend = backend
        self.scope = scope or SessionScope()

    @property
    def connected(self) -> bool:
        return self.backend is not None

    def _require_backend(self) -> SecretaryBackend:
        if self.backend is None:
            raise BackendUnavailableError("No backend attached")
        return self.backend

    async def _call(
        self,
        operation: str,
        factory: Callable[[SecretaryBackend], Awaitable[T]],
        default: T,
        **log_context: Any,
    ) -> T:
        try:
            backend = self._require_backend()
            return await self.scope.run(factory(backend))
        except SessionClosedError:
            raise
        except BackendUnavailableError:
            logger.warning("backend_unavailable", operation=operation, **log_context)
            return default
        except Exception as e:
            logger.warning(
                "backend_call_failed",
                operation=operation,
                error=str(e),
                **log_context,
            )
            return default

    # Geography

    async def get_all_states(self) -> List[USState]:
        return await self._call("get_all_states", lambda b: b.get_all_states(), [])

    async def get_counties_for_state(self, state_id: str) -> List[USCounty]:
        return await self._call(
            "get_counties_for_state",
            lambda b: b.get_counties_for_state(state_id),
            [],
            state_id=state_id,
        )

    async def get_places_for_state(self, state_id: str) -> List[USPlace]:
        return await self._call(
            "get_places_for_state",
            lambda b: b.get_places_for_state(state_id),
            [],
            state_id=state_id,
        )

    async def get_places_for_county(self, county_id: str) -> List[USPlace]:
        return await self._call(
            "get_places_for_county",
            lambda b: b.get_places_for_county(county_id),
            [],
            county_id=county_id,
        )

    # Issues

    async def get_top_issues(
        self,
        level: HierarchyLevel,
        location_id: str,
        limit: int,
    ) -> List[str]:
        issues = await self._call(
            "get_top_issues_for_location",
            lambda b: b.get_top_issues_for_location(level, location_id),
            [],
            level=level.value,
            location_id=location_id,
        )
        return list(issues)[:limit]

    async def get_complaint_categories(
        self,
        level: Optional[HierarchyLevel],
        search_term: str,
    ) -> List[str]:
        return await self._call(
            "get_complaint_categories",
            lambda b: b.get_complaint_categories(level, search_term),
            [],
            level=level.value if level else None,
        )

    async def submit_proposal(
        self,
        instance_name: str,
        description: str,
        level: HierarchyLevel,
        location_id: str,
    ) -> Optional[str]:
        """Submit an instance proposal; None when the backend is missing or fails."""
        return await self._call(
            "submit_proposal",
            lambda b: b.submit_proposal(instance_name, description, level, location_id),
            None,
            level=level.value,
            location_id=location_id,
        )

    # Tasks

    async def create_task(
        self,
        title: str,
        description: str,
        category: str,
        location_id: str,
    ) -> int:
        """Create a task. Raises on failure so the caller can report it."""
        backend = self._require_backend()
        return await self.scope.run(
            backend.create_task(title, description, category, location_id)
        )

    async def list_tasks_by_location(self, location_id: str) -> List[Task]:
        backend = self._require_backend()
        return await self.scope.run(backend.list_tasks_by_location(location_id))

    async def update_task_status(
        self,
        task_id: int,
        location_id: str,
        status: TaskStatus,
    ) -> Task:
        """Fetch a task and write it back with a new status."""
        backend = self._require_backend()
        task = await self.scope.run(backend.get_task(task_id, location_id))
        await self.scope.run(
            backend.update_task(
                task_id,
                task.title,
                task.description,
                task.category,
                location_id,
                status,
            )
        )
        return replace(task, status=status)


__all__ = [
    "SessionScope",
    "BackendGateway",
]
