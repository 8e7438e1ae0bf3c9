"""
Conversation engine for the Secretary.

Intent classification, slot filling with repair, the menu-driven flow graph
and the brain that ties them to a backend.
"""

from secretary_core.conversation.base import (
    Action,
    ActionType,
    FlowEvent,
    FlowEventType,
    Message,
    NavigationRequest,
    NodeId,
    Role,
    SecretaryIntent,
    SlotName,
)
from secretary_core.conversation.brain import SecretaryBrain
from secretary_core.conversation.context import ConversationContext
from secretary_core.conversation.graph import FlowGraph
from secretary_core.conversation.intents import classify_intent
from secretary_core.conversation.registry import FlowRegistry, IntentFlow, build_flow_registry
from secretary_core.conversation.slot_filling import SlotFillingRunner
from secretary_core.conversation.slots import SlotStore
from secretary_core.conversation.trace import TraceEventType, TraceRecorder
from secretary_core.conversation.view_model import Button, TypeaheadOption, ViewModel

__all__ = [
    # Types
    "Action",
    "ActionType",
    "FlowEvent",
    "FlowEventType",
    "Message",
    "NavigationRequest",
    "NodeId",
    "Role",
    "SecretaryIntent",
    "SlotName",
    # Engine
    "SecretaryBrain",
    "ConversationContext",
    "FlowGraph",
    "classify_intent",
    "FlowRegistry",
    "IntentFlow",
    "build_flow_registry",
    "SlotFillingRunner",
    "SlotStore",
    "TraceEventType",
    "TraceRecorder",
    # View
    "Button",
    "TypeaheadOption",
    "ViewModel",
]
