from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from sales_import.models.config_models import ParserConfig
from sales_import.services.orchestrator import run_import
from sales_import.services.summary import summarize
from sales_import.tabular.reader import read_excel_file, read_text_file

"""End-to-end runs over real files: POS workbook and e-commerce CSV export."""


def test_pos_workbook_end_to_end(excel_factory, roster):
    path: Path = excel_factory(
        "pos.xlsx",
        {
            "Sales": [
                ["Daily POS export", None, None, None, None, None],
                [None, None, None, None, None, None],
                ["Sale Date", "Staff", "Item", "Qty", "Unit Price", "Amount"],
                [44958, "ALICE", "Soap, Natural", 2, 5, 10],
                [datetime(2023, 2, 2, 14, 30), "Carol Wong", "Tray", 4, 25, None],
                ["03/02/2023", "1042", "Candle", None, None, "HK$50.00"],
                [None, "Grand Total", None, None, None, 160],
            ]
        },
    )
    df = read_excel_file(path)["Sales"]
    result = run_import(df, roster)
    # the title row is the first non-empty row, so no canonical headers are found
    assert result.success is False
    assert any("Date" in e.message for e in result.errors)

    trimmed = df.iloc[2:]
    result = run_import(trimmed, roster)
    assert result.success
    assert [(r.user_id, r.total_amount, r.quantity) for r in result.records] == [
        (1, "10.00", 2),
        (3, "100.00", 4),
        (2, "50.00", 1),
    ]
    assert result.records[0].sale_date == "2023-02-01T00:00:00Z"
    assert result.records[1].sale_date == "2023-02-02T14:30:00Z"
    assert result.records[2].sale_date == "2023-02-03T00:00:00Z"
    assert [w.code for w in result.warnings] == ["SUMMARY_ROW"]
    assert summarize(result.records).grand_total == Decimal("160.00")


def test_shop_csv_end_to_end(temp_workdir: Path, roster):
    path = temp_workdir / "data" / "orders_export.csv"
    path.write_text(
        "\ufeffOrder Name,Created at,Order Date,Sales Channel,Gross Sales,Net Sales,Total Sales,Refund Adjustment Amount,Tags\n"
        "#1001,x,2026-01-15 10:00:00 +0800,Online Store,120,100,100,,\"VIP, WVReferredByStaff_1042\"\n"
        "#1002,x,2026-01-16,Wholesale,300,300,300,,REFERRED_BY_STAFF_1042\n"
        "#1003,x,2026-01-17,Online Store,50,-20,-20,-70,REFERRED_BY_STAFF_1042\n"
        "#1004,x,2026-01-18,Online Store,40,40,40,,\n",
        encoding="utf-8",
    )
    cfg = ParserConfig(exclude_channels=("wholesale",))
    result = run_import(read_text_file(path), roster, cfg)
    assert result.success
    assert len(result.records) == 1
    rec = result.records[0]
    assert rec.user_id == 2
    assert rec.order_reference == "#1001"
    assert rec.total_amount == "100.00"
    assert rec.gross_amount == "100.00"
    assert rec.sale_date == "2026-01-15T02:00:00Z"
    assert rec.sales_channel == "Online Store"
    assert [w.code for w in result.warnings] == ["EXCLUDED_CHANNEL", "NON_POSITIVE_SALES", "NO_STAFF_TAG"]
    assert result.errors == []


def test_runs_are_deterministic(excel_factory, roster):
    path = excel_factory(
        "again.xlsx",
        {"S": [["Date", "Salesperson", "Total"], ["15/01/2026", "alice", "5"], ["bad", "carol", "7"], ["16/01/2026", "x", 1]]},
    )
    df = read_excel_file(path)["S"]
    assert run_import(df, roster) == run_import(df, roster)
