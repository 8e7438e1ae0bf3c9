"""In-memory trace of notable conversation events, kept in a ring buffer."""

import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, List

import structlog

logger = structlog.get_logger()


class TraceEventType(str, Enum):
    INTENT_RECOGNIZED = "intent-recognized"
    SLOT_FILLED = "slot-filled"
    SLOT_REPAIRED = "slot-repaired"
    INTENT_COMPLETED = "intent-completed"
    FLOW_ACTION = "flow-action"


@dataclass
class TraceEvent:
    type: TraceEventType
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "data": dict(self.data), "timestamp": self.timestamp}


class TraceRecorder:
    """Keeps the most recent ``max_events`` trace events."""

    def __init__(self, max_events: int = 100, enabled: bool = False):
        self._events: Deque[TraceEvent] = deque(maxlen=max_events)
        self.enabled = enabled

    def record(self, event_type: TraceEventType, **data: Any) -> TraceEvent:
        event = TraceEvent(type=event_type, data=data)
        self._events.append(event)
        if self.enabled:
            logger.debug("secretary_trace", trace_type=event_type.value, **data)
        return event

    def events(self) -> List[TraceEvent]:
        return list(self._events)

    def events_by_type(self, event_type: TraceEventType) -> List[TraceEvent]:
        return [e for e in self._events if e.type == event_type]

    def recent(self, count: int) -> List[TraceEvent]:
        if count <= 0:
            return []
        return list(self._events)[-count:]

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)


__all__ = [
    "TraceEventType",
    "TraceEvent",
    "TraceRecorder",
]
