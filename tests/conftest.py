"""Shared pytest fixtures for testing."""

import asyncio
from typing import List

import pytest

from secretary_core.backend import BackendGateway, InMemoryBackend, SessionScope
from secretary_core.config import Settings
from secretary_core.conversation.base import NavigationRequest
from secretary_core.conversation.brain import SecretaryBrain
from secretary_core.conversation.context import ConversationContext
from secretary_core.geography import USCounty, USPlace, USState


# =============================================================================
# Geography Fixtures
# =============================================================================


@pytest.fixture
def california() -> USState:
    return USState(hierarchical_id="US-CA", short_name="CA", long_name="California")


@pytest.fixture
def indiana() -> USState:
    return USState(hierarchical_id="US-IN", short_name="IN", long_name="Indiana")


@pytest.fixture
def alameda() -> USCounty:
    return USCounty(hierarchical_id="US-CA-001", full_name="Alameda County", short_name="Alameda")


@pytest.fixture
def los_angeles() -> USCounty:
    return USCounty(
        hierarchical_id="US-CA-037",
        full_name="Los Angeles County",
        short_name="Los Angeles",
    )


@pytest.fixture
def pasadena() -> USPlace:
    return USPlace(
        hierarchical_id="US-CA-037-56000",
        full_name="Pasadena city",
        short_name="Pasadena",
        county_full_name="Los Angeles County",
    )


@pytest.fixture
def states(california, indiana) -> List[USState]:
    return [california, indiana]


@pytest.fixture
def counties(alameda, los_angeles) -> List[USCounty]:
    return [alameda, los_angeles]


@pytest.fixture
def places(pasadena) -> List[USPlace]:
    return [pasadena]


# =============================================================================
# Backend Fixtures
# =============================================================================


class FailingBackend(InMemoryBackend):
    """Backend whose every call raises."""

    async def get_all_states(self):
        raise RuntimeError("backend down")

    async def get_counties_for_state(self, state_id):
        raise RuntimeError("backend down")

    async def get_places_for_state(self, state_id):
        raise RuntimeError("backend down")

    async def get_places_for_county(self, county_id):
        raise RuntimeError("backend down")

    async def get_top_issues_for_location(self, level, location_id):
        raise RuntimeError("backend down")

    async def get_complaint_categories(self, level, search_term):
        raise RuntimeError("backend down")

    async def submit_proposal(self, instance_name, description, level, location_id):
        raise RuntimeError("backend down")

    async def create_task(self, title, description, category, location_id):
        raise RuntimeError("backend down")

    async def list_tasks_by_location(self, location_id):
        raise RuntimeError("backend down")


class HangingBackend(InMemoryBackend):
    """Backend whose state lookup never returns until cancelled."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.started = False
        self.cancelled = False

    async def get_all_states(self):
        self.started = True
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return []


@pytest.fixture
def memory_backend() -> InMemoryBackend:
    """Seeded backend with top issues for Pasadena."""
    return InMemoryBackend(
        top_issues={
            "US-CA-037-56000": ["Potholes", "Streetlights", "Noise"],
        }
    )


@pytest.fixture
def failing_backend() -> FailingBackend:
    return FailingBackend()


@pytest.fixture
def hanging_backend() -> HangingBackend:
    return HangingBackend()


@pytest.fixture
def gateway(memory_backend) -> BackendGateway:
    return BackendGateway(memory_backend, SessionScope())


# =============================================================================
# Brain Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Test settings with no completion pause."""
    return Settings(environment="test", completion_delay_seconds=0)


@pytest.fixture
def navigations() -> List[NavigationRequest]:
    return []


@pytest.fixture
def brain(memory_backend, navigations, settings) -> SecretaryBrain:
    """Brain over the in-memory backend, recording navigation requests."""
    return SecretaryBrain(
        backend=memory_backend,
        navigate=navigations.append,
        settings=settings,
    )


@pytest.fixture
def context() -> ConversationContext:
    return ConversationContext()
