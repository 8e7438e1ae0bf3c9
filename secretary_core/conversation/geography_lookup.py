"""
Backend-driven geography lookup.

Matches state, county and place names in free text by fetching the candidate
lists on demand, so a geography can be recognized before any typeahead data
has been loaded.
"""

import structlog

from secretary_core.backend.gateway import BackendGateway
from secretary_core.conversation.matching import (
    GeographyMatch,
    extract_geography_from_text,
    find_state_mention,
)

logger = structlog.get_logger()


class GeographyLookup:
    """Resolve the most specific geography mentioned in a piece of text."""

    def __init__(self, gateway: BackendGateway):
        self.gateway = gateway

    async def lookup(self, text: str) -> GeographyMatch:
        states = await self.gateway.get_all_states()
        state = find_state_mention(text, states)
        if state is None:
            return GeographyMatch()

        # Failed fetches come back empty, leaving a state-only match
        counties = await self.gateway.get_counties_for_state(state.hierarchical_id)
        places = await self.gateway.get_places_for_state(state.hierarchical_id)

        match = extract_geography_from_text(text, [state], counties, places)
        logger.debug(
            "geography_lookup",
            state=state.hierarchical_id,
            location_id=match.location_id,
        )
        return match


__all__ = ["GeographyLookup"]
