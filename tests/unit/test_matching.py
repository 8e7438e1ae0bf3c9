"""Unit tests for geography and text matchers."""

from secretary_core.conversation.matching import (
    contains_word,
    county_for_place,
    extract_geography_from_text,
    extract_issue_description,
    filter_to_state,
    find_county_in_text,
    find_place_in_text,
    find_state_in_text,
    find_state_mention,
    normalize_text,
)


class TestNormalizeText:
    """Tests for normalize_text and contains_word."""

    def test_normalize(self):
        """Test lowercasing, trimming and punctuation removal."""
        assert normalize_text("  Hello, World!  ") == "hello world"

    def test_contains_word_is_whole_word(self):
        """Test word matching respects word boundaries."""
        assert contains_word("I live in CA", "ca")
        assert not contains_word("cats are nice", "ca")


class TestFindState:
    """Tests for state matching."""

    def test_long_name(self, states, california):
        """Test matching the full state name."""
        assert find_state_in_text("I live in California", states) == california

    def test_abbreviation(self, states, california):
        """Test matching the abbreviation as a whole word."""
        assert find_state_in_text("I live in CA", states) == california

    def test_no_match(self, states):
        """Test unrelated text matches nothing."""
        assert find_state_in_text("banana", states) is None

    def test_long_name_wins_over_abbreviation(self, states, indiana):
        """Test long names are checked before abbreviations."""
        assert find_state_in_text("Indiana in the spring", states) == indiana

    def test_mention_ignores_lowercase_abbreviation(self, states):
        """Test the word "in" inside a sentence is not Indiana."""
        assert find_state_in_text("show the tasks in my neighborhood", states) is not None
        assert find_state_mention("show the tasks in my neighborhood", states) is None
        assert find_state_mention("fix the lights in the park", states) is None

    def test_mention_accepts_capitals_and_long_names(self, states, california, indiana):
        """Test written abbreviations and full names still match."""
        assert find_state_mention("fix the bench in Pasadena, CA", states) == california
        assert find_state_mention("potholes in IN", states) == indiana
        assert find_state_mention("I live in california", states) == california


class TestFindCountyAndPlace:
    """Tests for county and place matching."""

    def test_county_full_name(self, counties, los_angeles):
        """Test matching a county by full name."""
        assert find_county_in_text("Los Angeles County please", counties) == los_angeles

    def test_county_short_name(self, counties, alameda):
        """Test matching a county by short name."""
        assert find_county_in_text("somewhere in alameda", counties) == alameda

    def test_place_short_name(self, places, pasadena):
        """Test matching a place by short name."""
        assert find_place_in_text("near Pasadena", places) == pasadena

    def test_place_no_partial_word(self, places):
        """Test short names must match whole words."""
        assert find_place_in_text("pasadenas", places) is None


class TestHierarchyHelpers:
    """Tests for hierarchy filters."""

    def test_filter_to_state(self, counties, california, indiana):
        """Test filtering records by state prefix."""
        assert filter_to_state(counties, california) == counties
        assert filter_to_state(counties, indiana) == []

    def test_county_for_place(self, pasadena, counties, los_angeles):
        """Test inferring a place's county."""
        assert county_for_place(pasadena, counties) == los_angeles


class TestExtractGeography:
    """Tests for extract_geography_from_text."""

    def test_place_infers_county(self, states, counties, places, california, los_angeles, pasadena):
        """Test a place match carries its county."""
        match = extract_geography_from_text(
            "pothole in Pasadena, California", states, counties, places
        )

        assert match.state == california
        assert match.county == los_angeles
        assert match.place == pasadena
        assert match.location_id == "US-CA-037-56000"

    def test_county_only(self, states, counties, places, alameda):
        """Test falling back to a county match."""
        match = extract_geography_from_text("Alameda County, California", states, counties, places)

        assert match.county == alameda
        assert match.place is None
        assert match.location_id == "US-CA-001"

    def test_state_only(self, states, counties, places, california):
        """Test a state without county or place."""
        match = extract_geography_from_text("California", states, counties, places)

        assert match.state == california
        assert match.county is None
        assert match.location_id == "US-CA"

    def test_no_state_means_no_match(self, states, counties, places):
        """Test nothing is matched without a state."""
        match = extract_geography_from_text("Pasadena", states, counties, places)

        assert not match.found
        assert match.place is None
        assert match.location_id is None


class TestExtractIssueDescription:
    """Tests for extract_issue_description."""

    def test_strips_geography_and_connectors(self, california, los_angeles, pasadena):
        """Test names and connectors are removed."""
        description = extract_issue_description(
            "broken streetlight in Pasadena, California",
            california,
            los_angeles,
            pasadena,
        )

        assert description == "broken streetlight"

    def test_short_result_falls_back(self, california):
        """Test the original text is kept when too little survives."""
        assert extract_issue_description("in CA", state=california) == "in CA"

    def test_without_geography(self):
        """Test text without geography only loses connectors."""
        assert extract_issue_description("broken light near the park") == "broken light the park"
