"""Tests for place and profession canonicalization."""

import pytest

from kingraph.canon.aliases import build_alias_map, coerce_definitions, lookup
from kingraph.canon.places import PlaceCategory, PlaceDefinition, parse_place
from kingraph.canon.professions import ProfessionDefinition, parse_profession


class TestParsePlace:
    """Tests for parse_place against the template and custom dictionaries."""

    def test_template_fragments(self):
        """Test each comma fragment resolves independently."""
        parsed = parse_place("Le Mans, Sarthe, France")
        assert parsed.place == "Le Mans, Sarthe, France"
        assert parsed.tokens == ["Sarthe", "France"]
        assert [m.category for m in parsed.matches] == [PlaceCategory.DEPARTMENT, PlaceCategory.COUNTRY]

    def test_department_code(self):
        """Test INSEE codes resolve to their department."""
        assert parse_place("72").tokens == ["Sarthe"]
        assert parse_place("75").tokens == ["Paris"]

    def test_diacritics_and_hyphens(self):
        """Test lookup ignores accents, case and hyphenation."""
        assert parse_place("ile de france").tokens == ["Île-de-France"]
        assert parse_place("ILE-DE-FRANCE").tokens == ["Île-de-France"]

    def test_custom_dictionary_replaces_template(self):
        """Test a country-only dictionary matches only the country."""
        definitions = [{"label": "France", "aliases": ["FR"], "category": "country"}]
        parsed = parse_place("Paris, France", definitions)
        assert parsed.tokens == ["France"]
        assert parsed.matches[0].fragment == "France"

    def test_empty_custom_dictionary_matches_nothing(self):
        """Test an explicit empty dictionary does not fall back to the template."""
        assert parse_place("Paris", []).tokens == []

    def test_space_collapsed_alias(self):
        """Test the space-free secondary key."""
        definitions = [PlaceDefinition(label="New York", aliases=["NYC"], category=PlaceCategory.STATE)]
        assert parse_place("NewYork", definitions).tokens == ["New York"]
        assert parse_place("nyc", definitions).tokens == ["New York"]

    def test_unknown_and_blank(self):
        """Test unknown fragments are dropped."""
        assert parse_place("Atlantis").tokens == []
        blank = parse_place("   ")
        assert blank.place == ""
        assert blank.tokens == []

    def test_duplicates_collapse(self):
        """Test the same place named twice yields one token."""
        assert parse_place("Paris; Ville de Paris").tokens == ["Paris"]

    @pytest.mark.parametrize("text", ["Sarthe", "72 Sarthe", "Paris (75)", "FRA", "Belgium"])
    def test_canonical_label_is_a_fixed_point(self, text):
        """Test parsing a canonical label returns that label."""
        label = parse_place(text).tokens[0]
        assert parse_place(label).tokens == [label]


class TestParseProfession:
    """Tests for parse_profession."""

    def test_template_aliases(self):
        """Test fragments resolve to their canonical profession."""
        parsed = parse_profession("Cultivateur; Marchand")
        assert parsed.tokens == ["Agriculteur", "Marchand"]
        assert parsed.matches[0].fragment == "Cultivateur"

    def test_apostrophes(self):
        """Test aliases with apostrophes and accents."""
        assert parse_profession("maître d'école").tokens == ["Instituteur"]

    def test_word_fallback(self):
        """Test a single known word inside a longer fragment."""
        parsed = parse_profession("cultivateur propriétaire")
        assert parsed.tokens == ["Agriculteur"]
        assert parsed.matches[0].fragment == "cultivateur"

    def test_custom_dictionary(self):
        """Test a caller dictionary replaces the template."""
        definitions = [ProfessionDefinition(label="Farmer", aliases=["Husbandman", "Yeoman"])]
        assert parse_profession("yeoman", definitions).tokens == ["Farmer"]
        assert parse_profession("Cultivateur", definitions).tokens == []

    def test_unknown(self):
        """Test unknown professions yield no tokens."""
        assert parse_profession("astronaut").tokens == []
        assert parse_profession(None).profession == ""


class TestAliasHelpers:
    """Tests for dictionary validation and lookup."""

    def test_invalid_entries_are_skipped(self):
        """Test entries that fail validation are dropped, not raised."""
        entries = [{"label": ""}, {"aliases": ["x"]}, "nonsense", {"label": "Lyon", "category": "city"}]
        definitions = coerce_definitions(entries, PlaceDefinition)
        assert [d.label for d in definitions] == ["Lyon"]

    def test_later_definitions_win(self):
        """Test a key claimed twice resolves to the later definition."""
        alias_map = build_alias_map(
            [
                ProfessionDefinition(label="Docteur", aliases=["Médecin"]),
                ProfessionDefinition(label="Médecin"),
            ]
        )
        assert lookup("medecin", alias_map).label == "Médecin"
        assert lookup("", alias_map) is None
