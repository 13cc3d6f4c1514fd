# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path

import pandas as pd
import pytest

from sales_import.logging.init import reset_logging
from sales_import.models.roster import RosterEntry
from sales_import.services.staff import Roster


@pytest.fixture(autouse=True)
def _fresh_logging():
    # the stdout handler binds sys.stdout at setup time; capsys swaps it per test
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("SALES_IMPORT_CONFIG", raising=False)
        monkeypatch.delenv("SALES_IMPORT_ROSTER", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """prefer_net_over_gross: true
date_order: DMY
exclude_channels: [wholesale]
roster_file: config/roster.yml
"""


@pytest.fixture()
def sample_roster_yaml() -> str:
    return """staff:
  - identifier: alice
    display_name: Alice Chan
    user_id: 1
  - identifier: "1042"
    display_name: Bob Lee
    user_id: 2
  - identifier: carol
    display_name: Carol Wong
    user_id: 3
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str, sample_roster_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    (temp_workdir / "config" / "roster.yml").write_text(sample_roster_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def roster() -> Roster:
    return Roster.from_entries(
        [
            RosterEntry(identifier="alice", display_name="Alice Chan", user_id=1),
            RosterEntry(identifier="1042", display_name="Bob Lee", user_id=2),
            RosterEntry(identifier="carol", display_name="Carol Wong", user_id=3),
        ]
    )


def make_excel(tmp_path: Path, name: str, sheets: dict[str, list[list[object]]]) -> Path:
    """Write a workbook whose sheets hold exactly the given rows (no pandas header)."""
    p = tmp_path / name
    with pd.ExcelWriter(p, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return p


@pytest.fixture()
def excel_factory(temp_workdir: Path):
    def _factory(name: str, sheets: dict[str, list[list[object]]]) -> Path:
        return make_excel(temp_workdir / "data", name, sheets)
    return _factory
