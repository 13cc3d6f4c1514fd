from __future__ import annotations
import pytest

from sales_import.models.config_models import ParserConfig
from sales_import.models.roster import RosterEntry
from sales_import.models.row_data import RawRow
from sales_import.services.staff import (
    Roster,
    cell_text,
    coerce_roster,
    extract_staff_ids,
    extract_tag_identifiers,
    resolve_staff,
    staff_candidates,
)


def test_resolution_is_case_insensitive():
    roster = coerce_roster({"alice": 7})
    assert roster.resolve("ALICE").user_id == 7
    assert roster.resolve("  Alice ").user_id == 7
    assert "aLiCe" in roster


def test_entries_resolve_by_identifier_and_display_name(roster: Roster):
    assert roster.resolve("Bob Lee").user_id == 2
    assert roster.resolve("1042").user_id == 2
    assert roster.resolve(1042.0).user_id == 2
    assert roster.resolve("bob") is None


def test_conflicting_roster_keys_are_rejected():
    with pytest.raises(ValueError):
        Roster.from_entries(
            [
                RosterEntry(identifier="sam", display_name="Sam", user_id=1),
                RosterEntry(identifier="sam2", display_name="sam", user_id=2),
            ]
        )


@pytest.mark.parametrize("bad", [None, "alice"])
def test_coerce_roster_rejects_programming_errors(bad):
    with pytest.raises(TypeError):
        coerce_roster(bad)


def test_extract_tag_identifiers_uses_configured_pattern():
    pattern = ParserConfig().staff_tag_regex
    tags = "VIP, WVREFERRED_BY_STAFF_1042, referredbystaff_77"
    assert extract_tag_identifiers(tags, pattern) == ["1042", "77"]
    assert extract_tag_identifiers(None, pattern) == []


def test_salesperson_is_tried_before_tag_identifier(roster: Roster):
    row = RawRow(row_index=2, values={"Salesperson": "Carol", "CustomerTags": "REFERRED_BY_STAFF_1042"})
    lookup = staff_candidates(row, ParserConfig())
    assert lookup.candidates == ["Carol", "1042"]
    assert resolve_staff(lookup, roster).user_id == 3


def test_tag_identifier_is_used_when_salesperson_is_unknown(roster: Roster):
    row = RawRow(row_index=2, values={"Salesperson": "Online Store", "CustomerTags": "REFERRED_BY_STAFF_1042"})
    assert resolve_staff(staff_candidates(row, ParserConfig()), roster).user_id == 2


def test_cell_text_drops_float_suffix():
    assert cell_text(1042.0) == "1042"
    assert cell_text("  ") is None


def test_extract_staff_ids_lists_distinct_sorted_ids():
    text = (
        "Order Date,Tags,Subtotal\n"
        "2026-01-15,REFERRED_BY_STAFF_20,10\n"
        "2026-01-16,\"VIP, REFERRED_BY_STAFF_3\",10\n"
        "2026-01-17,REFERRED_BY_STAFF_20,10\n"
    )
    assert extract_staff_ids(text) == ["20", "3"]
    assert extract_staff_ids("Date,Salesperson,Total\n2026-01-15,alice,1\n") == []
