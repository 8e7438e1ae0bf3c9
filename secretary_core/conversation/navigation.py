"""
Navigation helpers.

Keyword lookup of the host application's destinations and parsing of
``#secretary:<destination>[:<identifier>]`` deep links.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

DEEP_LINK_PREFIX = "#secretary:"


@dataclass(frozen=True)
class SecretaryOption:
    """A destination the Secretary can route the user to."""

    id: str
    label: str
    keywords: Tuple[str, ...]
    confirmation_message: str = ""


SECRETARY_OPTIONS: Tuple[SecretaryOption, ...] = (
    SecretaryOption(
        id="create-instance",
        label="Create Instance",
        keywords=("create", "instance", "proposal", "new", "start", "begin", "setup"),
        confirmation_message="I'll help you create a new instance.",
    ),
    SecretaryOption(
        id="your-city-discovery",
        label="Your City on Whisper?",
        keywords=("city", "town", "my city", "find", "discover", "is my city", "location", "where", "place"),
        confirmation_message="Let me help you find your city on Whisper.",
    ),
    SecretaryOption(
        id="proposals",
        label="View Proposals",
        keywords=("proposals", "view", "list", "browse", "see", "show", "instances"),
        confirmation_message="I'll show you all proposals.",
    ),
    SecretaryOption(
        id="report-issue",
        label="Report an Issue",
        keywords=("report", "issue", "problem", "bug", "complaint", "concern"),
        confirmation_message="I'll help you report an issue.",
    ),
    SecretaryOption(
        id="complaint",
        label="File a Complaint",
        keywords=("complaint", "file", "formal", "grievance"),
        confirmation_message="I'll help you file a complaint.",
    ),
    SecretaryOption(
        id="foia",
        label="FOIA Request",
        keywords=("foia", "freedom", "information", "records", "request", "public records"),
        confirmation_message="I'll help you with a FOIA request.",
    ),
    SecretaryOption(
        id="support",
        label="Get Support",
        keywords=("support", "help", "contact", "assistance", "question"),
        confirmation_message="I'll connect you with support.",
    ),
    SecretaryOption(
        id="governance",
        label="Governance",
        keywords=("governance", "vote", "voting", "govern", "policy", "policies"),
        confirmation_message="I'll take you to governance proposals.",
    ),
)


def find_option_by_keyword(text: str) -> Optional[SecretaryOption]:
    """First option with a keyword contained in the text."""
    normalized = text.lower().strip()
    for option in SECRETARY_OPTIONS:
        if any(keyword in normalized for keyword in option.keywords):
            return option
    return None


def get_option(destination_id: str) -> Optional[SecretaryOption]:
    for option in SECRETARY_OPTIONS:
        if option.id == destination_id:
            return option
    return None


@dataclass(frozen=True)
class DeepLink:
    """Parsed ``#secretary:`` link."""

    id: str
    identifier: Optional[str] = None


def create_deep_link(destination_id: str, identifier: Optional[str] = None) -> str:
    if identifier:
        return f"{DEEP_LINK_PREFIX}{destination_id}:{identifier}"
    return f"{DEEP_LINK_PREFIX}{destination_id}"


def parse_deep_link(text: str) -> Optional[DeepLink]:
    """Parse a deep link; anything not starting with the prefix yields None."""
    text = text.strip()
    if not text.startswith(DEEP_LINK_PREFIX):
        return None

    parts = text[len(DEEP_LINK_PREFIX):].split(":")
    if not parts[0]:
        return None
    identifier = parts[1] if len(parts) > 1 and parts[1] else None
    return DeepLink(id=parts[0], identifier=identifier)


__all__ = [
    "DEEP_LINK_PREFIX",
    "SecretaryOption",
    "SECRETARY_OPTIONS",
    "find_option_by_keyword",
    "get_option",
    "DeepLink",
    "create_deep_link",
    "parse_deep_link",
]
