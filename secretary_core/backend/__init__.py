"""Backend collaborator interface, gateway and in-memory implementation."""

from secretary_core.backend.base import SecretaryBackend, Task, TaskStatus
from secretary_core.backend.gateway import BackendGateway, SessionScope
from secretary_core.backend.memory import InMemoryBackend

__all__ = [
    "SecretaryBackend",
    "Task",
    "TaskStatus",
    "BackendGateway",
    "SessionScope",
    "InMemoryBackend",
]
