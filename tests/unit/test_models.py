from __future__ import annotations
import json

import pytest

from sales_import.models import Diagnostic, DiagnosticKind, NormalizedSaleRecord, ParserConfig, RawRow, RunResult


def test_diagnostic_message_prefix():
    w = Diagnostic.warning(7, "UNKNOWN_SALESPERSON", "Unknown salesperson: Zed", column="Salesperson")
    assert w.kind is DiagnosticKind.WARNING
    assert w.message == "Row 7: Unknown salesperson: Zed"
    assert not w.is_error
    e = Diagnostic.error(-1, "EMPTY_SOURCE", "Source is empty")
    assert e.message == "Source is empty"
    assert e.is_error


def test_diagnostic_json_line_has_fixed_keys():
    data = json.loads(Diagnostic.error(2, "INVALID_DATE", "bad").to_json_line())
    assert set(data) == {"row_index", "kind", "message", "code", "column"}
    assert data["kind"] == "error"


def test_run_result_diagnostics_are_in_row_order():
    result = RunResult(
        success=True,
        warnings=[Diagnostic.warning(1, "DUPLICATE_HEADER", "dup"), Diagnostic.warning(6, "NO_STAFF_TAG", "x")],
        errors=[Diagnostic.error(3, "INVALID_DATE", "y")],
    )
    assert [d.row_index for d in result.diagnostics] == [1, 3, 6]


def test_sale_record_serialization_is_stable():
    rec = NormalizedSaleRecord(user_id=1, staff_name="Alice", sale_date="2026-01-15T00:00:00Z", total_amount="10.00")
    assert rec.to_dict()["quantity"] == 1
    assert json.loads(rec.to_json())["total_amount"] == "10.00"
    assert rec.to_json() == rec.to_json()


def test_raw_row_accessors():
    row = RawRow(row_index=2, values={"Total": "5", "Date": None})
    assert row.get("Total") == "5"
    assert row.get("Quantity") is None
    assert row.has("Date") and not row.has("Quantity")


def test_parser_config_validation():
    with pytest.raises(ValueError):
        ParserConfig(date_order="YMD")
    with pytest.raises(ValueError):
        ParserConfig(staff_tag_pattern="STAFF_\\d+")
    assert ParserConfig().staff_tag_regex.search("wvreferred_by_staff_12").group(1) == "12"
