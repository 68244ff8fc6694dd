"""Tests for personal name parsing."""

from kingraph.utils.names import parse_name


class TestParseName:
    """Tests for parse_name."""

    def test_nickname_and_suffix(self):
        """Test quoted nicknames become aliases and suffixes are dropped."""
        parts = parse_name('Elizabeth "Liz" Carter Jr.')
        assert parts.given_names == ["Elizabeth"]
        assert parts.surname == "Carter"
        assert parts.aliases == ["Liz"]
        assert parts.maiden_name is None

    def test_surname_first_with_comma(self):
        """Test the "Surname, Given" register order."""
        parts = parse_name("Dupont, Jean Pierre")
        assert parts.surname == "Dupont"
        assert parts.given_names == ["Jean", "Pierre"]

    def test_parenthetical_nee(self):
        """Test a "née" parenthetical is the maiden name."""
        parts = parse_name("Mary Smith (née Johnson)")
        assert parts.given_names == ["Mary"]
        assert parts.surname == "Smith"
        assert parts.maiden_name == "Johnson"

    def test_bracketed_maiden_name_keeps_brackets(self):
        """Test a bracketed surname is kept with its brackets."""
        parts = parse_name("Mary Smith [Johnson]")
        assert parts.maiden_name == "[Johnson]"
        assert parts.surname == "Smith"

    def test_inline_nee(self):
        """Test an inline "née" marker."""
        parts = parse_name("Marie Curie née Skłodowska")
        assert parts.maiden_name == "Skłodowska"
        assert parts.given_names == ["Marie"]
        assert parts.surname == "Curie"

    def test_parenthetical_alias(self):
        """Test other parentheticals become aliases."""
        parts = parse_name("John (Jack) Smith")
        assert parts.aliases == ["Jack"]
        assert parts.given_names == ["John"]

    def test_lifespan_parentheses_ignored(self):
        """Test a trailing lifespan is not taken as an alias."""
        parts = parse_name("Jean Dupont (1850-1910)")
        assert parts.given_names == ["Jean"]
        assert parts.surname == "Dupont"
        assert parts.aliases == []

    def test_single_token(self):
        """Test a single name is a given name."""
        parts = parse_name("Cher")
        assert parts.given_names == ["Cher"]
        assert parts.surname is None

    def test_empty(self):
        """Test blank input."""
        assert parse_name("").is_empty
        assert parse_name(None).is_empty
        assert parse_name("1850").is_empty
