"""
View model types.

A ``ViewModel`` is a plain, serializable description of what the widget
should render. It carries no behavior and is rebuilt from the context on
every render.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from secretary_core.conversation.base import Action, ActionType
from secretary_core.geography import GeographyRecord, USCounty, USPlace, USState


class ButtonVariant(str, Enum):
    DEFAULT = "default"
    OUTLINE = "outline"
    GHOST = "ghost"


@dataclass(frozen=True)
class Button:
    """A clickable button that dispatches an action."""

    label: str
    action: Action
    variant: ButtonVariant = ButtonVariant.OUTLINE
    icon: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "action": self.action.to_dict(),
            "variant": self.variant.value,
            "icon": self.icon,
        }


@dataclass(frozen=True)
class TypeaheadOption:
    """A selectable geography option."""

    id: str
    label: str
    data: GeographyRecord

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label, "data": self.data.to_dict()}


@dataclass
class ViewModel:
    """What the widget should currently render."""

    assistant_messages: List[str] = field(default_factory=list)
    show_text_input: bool = False
    text_input_placeholder: Optional[str] = None
    show_typeahead: bool = False
    typeahead_placeholder: Optional[str] = None
    typeahead_options: List[TypeaheadOption] = field(default_factory=list)
    buttons: List[Button] = field(default_factory=list)
    show_top_issues: bool = False
    top_issues: List[str] = field(default_factory=list)
    show_suggestions: bool = False
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assistant_messages": list(self.assistant_messages),
            "show_text_input": self.show_text_input,
            "text_input_placeholder": self.text_input_placeholder,
            "show_typeahead": self.show_typeahead,
            "typeahead_placeholder": self.typeahead_placeholder,
            "typeahead_options": [o.to_dict() for o in self.typeahead_options],
            "buttons": [b.to_dict() for b in self.buttons],
            "show_top_issues": self.show_top_issues,
            "top_issues": list(self.top_issues),
            "show_suggestions": self.show_suggestions,
            "suggestions": list(self.suggestions),
        }


def back_to_menu_button(
    label: str,
    variant: ButtonVariant = ButtonVariant.GHOST,
) -> Button:
    return Button(label=label, action=Action(ActionType.BACK_TO_MENU), variant=variant)


def state_options(states: Sequence[USState]) -> List[TypeaheadOption]:
    return [TypeaheadOption(id=s.hierarchical_id, label=s.long_name, data=s) for s in states]


def county_options(counties: Sequence[USCounty]) -> List[TypeaheadOption]:
    return [
        TypeaheadOption(id=c.hierarchical_id, label=f"{c.short_name} (County)", data=c)
        for c in counties
    ]


def place_options(places: Sequence[USPlace]) -> List[TypeaheadOption]:
    return [
        TypeaheadOption(id=p.hierarchical_id, label=f"{p.short_name} (City)", data=p)
        for p in places
    ]


def default_view_model(message: str, back_label: str) -> ViewModel:
    """Fallback rendered when a node cannot produce its own view."""
    return ViewModel(
        assistant_messages=[message],
        buttons=[back_to_menu_button(back_label, ButtonVariant.OUTLINE)],
    )


__all__ = [
    "ButtonVariant",
    "Button",
    "TypeaheadOption",
    "ViewModel",
    "back_to_menu_button",
    "state_options",
    "county_options",
    "place_options",
    "default_view_model",
]
