from __future__ import annotations
import pytest
from pathlib import Path

from sales_import.config.loader import ConfigError, load_config, load_roster


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.parser.prefer_net_over_gross is True
    assert cfg.parser.date_order == "DMY"
    assert cfg.parser.exclude_channels == ("wholesale",)
    assert cfg.roster_file == "config/roster.yml"
    assert cfg.output_directory is None


def test_empty_config_uses_defaults(temp_workdir: Path):
    p = temp_workdir / "config" / "import.yml"
    p.write_text("", encoding="utf-8")
    cfg = load_config(p)
    assert cfg.parser.date_order == "DMY"
    assert cfg.parser.delimiter is None
    assert cfg.parser.header_synonyms == {}


def test_load_config_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError) as e:
        load_config(temp_workdir / "config" / "not_exists.yml")
    assert "not found" in str(e.value)


def test_load_config_unknown_key(write_config: Path):
    write_config.write_text("source_directory: ./data\n", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value)


def test_load_config_bad_date_order(write_config: Path):
    write_config.write_text("date_order: YMD\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(write_config)


def test_load_config_pattern_without_group(write_config: Path):
    write_config.write_text("staff_tag_pattern: 'STAFF_\\d+'\n", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "capturing group" in str(e.value)


def test_load_config_invalid_yaml(write_config: Path):
    write_config.write_text("date_order: [DMY\n", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "invalid yaml" in str(e.value)


def test_header_synonyms_are_loaded(write_config: Path):
    write_config.write_text("header_synonyms:\n  Salesperson: [Vendedor, Staff Member]\n", encoding="utf-8")
    cfg = load_config(write_config)
    assert cfg.parser.header_synonyms == {"Salesperson": ("Vendedor", "Staff Member")}


def test_header_synonyms_reject_unknown_canonical(write_config: Path):
    write_config.write_text("header_synonyms:\n  Discount: [disc]\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(write_config)


def test_load_roster(write_config: Path, temp_workdir: Path):
    entries = load_roster(temp_workdir / "config" / "roster.yml")
    assert [e.user_id for e in entries] == [1, 2, 3]
    assert entries[1].identifier == "1042"


def test_load_roster_integer_identifier(temp_workdir: Path):
    p = temp_workdir / "config" / "roster.yml"
    p.write_text("staff:\n  - {identifier: 7, display_name: Dee, user_id: 4}\n", encoding="utf-8")
    assert load_roster(p)[0].identifier == "7"


def test_load_roster_requires_user_id(temp_workdir: Path):
    p = temp_workdir / "config" / "roster.yml"
    p.write_text("staff:\n  - {identifier: dee, display_name: Dee}\n", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_roster(p)
    assert "required property" in str(e.value)
