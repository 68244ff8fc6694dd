"""Tests for GEDCOM export functionality."""

from datetime import UTC, datetime

import pytest

from kingraph.export.gedcom import (
    NOTE_WIDTH,
    build_families,
    build_gedcom,
    clamp_month,
    export_gedcom,
    format_gedcom_date,
    record_to_gedcom,
)
from kingraph.extraction import extract_individual
from kingraph.models.record import DateFragment, Sex
from kingraph.store import IndividualProfile, LinkRole, RecordStore

NOW = datetime(2024, 5, 1, 12, 30, 5, tzinfo=UTC)


@pytest.fixture
def family_store():
    store = RecordStore()
    father = store.create_individual("Pierre Dupont", IndividualProfile(given_names=["Pierre"], surname="Dupont", sex=Sex.MALE))
    mother = store.create_individual("Marie Martin", IndividualProfile(given_names=["Marie"], surname="Martin", sex=Sex.FEMALE))
    child = store.create_individual("Jean Dupont", IndividualProfile(given_names=["Jean"], surname="Dupont"))
    store.link_individuals(child.id, father.id, LinkRole.FATHER)
    store.link_individuals(child.id, mother.id, LinkRole.MOTHER)
    store.link_individuals(father.id, mother.id, LinkRole.SPOUSE)
    store.link_individuals(father.id, child.id, LinkRole.CHILD)
    return store, father, mother, child


class TestFormatGedcomDate:
    """Tests for GEDCOM date formatting."""

    def test_full_date(self):
        """Test day precision."""
        assert format_gedcom_date(DateFragment(year=1901, month=3, day=17)) == "17 MAR 1901"

    def test_month_and_year(self):
        """Test month and year precision."""
        assert format_gedcom_date(DateFragment(year=1850, month=3)) == "MAR 1850"
        assert format_gedcom_date(DateFragment(year=1850)) == "1850"

    def test_approximate(self):
        """Test approximate dates get ABT."""
        assert format_gedcom_date(DateFragment(year=1902, approx=True)) == "ABT 1902"
        assert format_gedcom_date(DateFragment(year=1902, month=6, day=1, approx=True)) == "ABT 1 JUN 1902"

    def test_no_year(self):
        """Test a fragment without a year has no GEDCOM date."""
        assert format_gedcom_date(DateFragment(month=3, day=17)) is None
        assert format_gedcom_date(DateFragment(raw="unknown")) is None

    def test_month_clamped(self):
        """Test out-of-range months are clamped."""
        assert clamp_month(0) == 1
        assert clamp_month(13) == 12
        assert format_gedcom_date(DateFragment(year=1900, month=13)) == "DEC 1900"


class TestBuildGedcom:
    """Tests for document assembly."""

    def test_header_and_trailer(self):
        """Test the HEAD block and the final TRLR."""
        lines = build_gedcom([], now=NOW).split("\n")
        assert lines[:9] == [
            "0 HEAD",
            "1 SOUR KinGraph",
            "2 NAME KinGraph",
            "1 GEDC",
            "2 VERS 5.5.1",
            "2 FORM LINEAGE-LINKED",
            "1 CHAR UTF-8",
            "1 DATE 1 MAY 2024",
            "2 TIME 12:30:05",
        ]
        assert lines[-1] == "0 TRLR"

    def test_extracted_record(self, table_html):
        """Test a tabular record's facts."""
        record = extract_individual(table_html)
        lines = record_to_gedcom(record, now=NOW).split("\n")

        assert "0 @I1@ INDI" in lines
        assert "1 NAME Elizabeth /Carter/" in lines
        assert "2 GIVN Elizabeth" in lines
        assert "2 SURN Carter" in lines
        assert "1 SEX F" in lines

        birth = lines.index("1 BIRT")
        assert lines[birth + 1 : birth + 4] == [
            "2 DATE 17 MAR 1901",
            "2 PLAC Lyon, France",
            "2 NOTE 17 Mar 1901, Lyon, France",
        ]
        death = lines.index("1 DEAT")
        assert lines[death + 1] == "2 DATE ABT 1975"

        residence = lines.index("1 RESI")
        assert lines[residence + 1 : residence + 4] == ["2 DATE 1920", "2 PLAC Paris", "2 NOTE 1920 Paris"]

        assert "1 ALIA Liz" in lines
        assert "1 OCCU Cultivateur" in lines
        assert "1 NOTE Parent (father): John Carter" in lines
        assert "1 NOTE Parent (mother): Mary Carter" in lines
        assert "1 NOTE Spouse: Thomas Reed" in lines
        assert "1 NOTE Child: Anne Reed" in lines
        assert not any(line.endswith(" FAM") for line in lines)

    def test_maiden_name(self):
        """Test the maiden name is a second NAME of type birth."""
        store = RecordStore()
        store.create_individual(
            "Mary Smith", IndividualProfile(given_names=["Mary"], surname="Smith", maiden_name="[Johnson]")
        )
        lines = build_gedcom(store.state, now=NOW).split("\n")
        assert "1 NAME Mary /Smith/" in lines
        maiden = lines.index("1 NAME Mary /Johnson/")
        assert lines[maiden + 1] == "2 TYPE birth"

    def test_name_falls_back_to_individual_name(self):
        """Test an individual without given names uses its stored name."""
        store = RecordStore()
        store.create_individual("Unknown child", IndividualProfile(surname="Dupont"))
        assert "1 NAME Unknown child /Dupont/" in build_gedcom(store.state, now=NOW).split("\n")

    def test_long_notes_wrap(self):
        """Test notes are split into CONT lines."""
        store = RecordStore()
        notes = " ".join(["Recorded in the parish register of Saint Longis by the curate."] * 5)
        store.create_individual("Jean Dupont", IndividualProfile(given_names=["Jean"], notes=notes))
        lines = build_gedcom(store.state, now=NOW).split("\n")
        start = next(i for i, line in enumerate(lines) if line.startswith("1 NOTE Recorded"))
        continued = [line for line in lines[start + 1 :] if line.startswith("2 CONT ")]
        assert continued
        assert all(len(line.split(" ", 2)[2]) <= NOTE_WIDTH for line in [lines[start], *continued])
        rebuilt = " ".join([lines[start][len("1 NOTE ") :], *(line[len("2 CONT ") :] for line in continued)])
        assert rebuilt == notes

    def test_families(self, family_store):
        """Test linked individuals produce one family with both parents and the child."""
        store, father, mother, child = family_store
        lines = build_gedcom(store.state, now=NOW).split("\n")

        family = lines.index("0 @F1@ FAM")
        assert lines[family + 1 : family + 4] == ["1 HUSB @I1@", "1 WIFE @I2@", "1 CHIL @I3@"]
        assert "0 @F2@ FAM" not in lines

        child_start = lines.index("0 @I3@ INDI")
        assert "1 FAMC @F1@" in lines[child_start:family]
        father_block = lines[lines.index("0 @I1@ INDI") : lines.index("0 @I2@ INDI")]
        assert "1 FAMS @F1@" in father_block
        assert "1 NOTE Spouse: Marie Martin (see @I2@)" in father_block
        assert "1 NOTE Child: Jean Dupont (see @I3@)" in father_block

    def test_spouse_roles_by_sex(self, family_store):
        """Test the husband is the male partner whichever side holds the link."""
        store, father, mother, _ = family_store
        families = build_families(list(store.state.individuals))
        assert len(families) == 1
        assert (families[0].husband_id, families[0].wife_id) == (father.id, mother.id)

    def test_spouse_roles_without_sex(self):
        """Test partners of unknown sex are ordered by id."""
        store = RecordStore()
        first = store.create_individual("A")
        second = store.create_individual("B")
        store.link_individuals(first.id, second.id, LinkRole.SPOUSE)
        families = build_families(list(store.state.individuals))
        assert len(families) == 1
        assert (families[0].husband_id, families[0].wife_id) == tuple(sorted((first.id, second.id)))

    def test_single_parent_family(self):
        """Test a child linked to one parent."""
        store = RecordStore()
        mother = store.create_individual("Marie Martin", IndividualProfile(sex=Sex.FEMALE))
        child = store.create_individual("Jean Martin")
        store.link_individuals(child.id, mother.id, LinkRole.MOTHER)
        lines = build_gedcom(store.state, now=NOW).split("\n")
        family = lines.index("0 @F1@ FAM")
        assert lines[family + 1 : family + 3] == ["1 WIFE @I1@", "1 CHIL @I2@"]

    def test_individual_filter(self, family_store):
        """Test exporting a subset keeps only links inside it."""
        store, father, _, child = family_store
        lines = build_gedcom(store.state, individual_ids=[father.id, child.id], now=NOW).split("\n")
        assert sum(1 for line in lines if line.endswith(" INDI")) == 2
        family = lines.index("0 @F1@ FAM")
        assert lines[family + 1 : family + 3] == ["1 HUSB @I1@", "1 CHIL @I2@"]
        assert "1 NOTE Parent (mother): Linked individual @I2@" not in lines


class TestExportGedcom:
    """Tests for writing GEDCOM files."""

    def test_writes_file(self, tmp_path, family_store):
        """Test the document is written with a trailing newline."""
        store = family_store[0]
        out = export_gedcom(store.state, tmp_path / "out" / "family.ged", now=NOW)
        assert out.exists()
        content = out.read_text(encoding="utf-8")
        assert content.startswith("0 HEAD\n")
        assert content.endswith("0 TRLR\n")
        assert content.count(" INDI") == 3
