"""Tests for the command line interface."""

import json
import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from vaffaschool.cli.main import cli_main


def run_cli(args: list[str], env: dict[str, str]) -> int:
    with patch.dict(os.environ, env), patch.object(sys, "argv", ["vaffaschool", *args]):
        with pytest.raises(SystemExit) as exc_info:
            cli_main()
    return exc_info.value.code


@pytest.fixture
def cli_env(temp_dir: Path) -> dict[str, str]:
    return {"VS_DATA_DIR": str(temp_dir / "data")}


class TestCli:
    """Tests for ingest and search commands."""

    def test_ingest_then_search(self, raw_data_dir: Path, cli_env: dict[str, str], capsys):
        assert run_cli(["--json", "ingest", str(raw_data_dir)], cli_env) == 0
        report = json.loads(capsys.readouterr().out)
        assert report["schools_saved"] == 2

        assert run_cli(["--json", "search", "Ponte a Sieve"], cli_env) == 0
        results = json.loads(capsys.readouterr().out)
        assert results[0]["school"]["id"] == "FIEE123"
        assert "fuzzy_search_score" in results[0]["breakdown"]

    def test_search_without_database(self, cli_env: dict[str, str], capsys):
        assert run_cli(["--json", "search", "Firenze"], cli_env) == 1
        output = json.loads(capsys.readouterr().out)
        assert output["success"] is False
        assert "not readable" in output["error"]

    def test_search_raw_files(self, raw_data_dir: Path, cli_env: dict[str, str], capsys):
        env = dict(cli_env, VS_SEARCH_USE_DB="false", VS_RAW_DATA_DIR=str(raw_data_dir))
        assert run_cli(["--json", "search", "Compagni"], env) == 0
        results = json.loads(capsys.readouterr().out)
        assert [r["school"]["id"] for r in results] == ["FIEE84201X"]

    def test_blank_query(self, cli_env: dict[str, str], capsys):
        assert run_cli(["search", "  "], cli_env) == 1

    def test_json_after_subcommand(self, raw_data_dir: Path, cli_env: dict[str, str], capsys):
        assert run_cli(["ingest", str(raw_data_dir), "--json"], cli_env) == 0
        assert json.loads(capsys.readouterr().out)["schools_saved"] == 2

        assert run_cli(["search", "pnote a sieve", "--limit", "5", "--json"], cli_env) == 0
        results = json.loads(capsys.readouterr().out)
        assert results[0]["school"]["id"] == "FIEE123"

    def test_missing_geo_catalog(self, raw_data_dir: Path, cli_env: dict[str, str], temp_dir: Path, capsys):
        env = dict(cli_env, VS_GEO_CATALOG_PATH=str(temp_dir / "missing.json"))
        assert run_cli(["ingest", str(raw_data_dir), "--json"], env) == 1
        output = json.loads(capsys.readouterr().out)
        assert output["success"] is False
        assert "missing.json" in output["error"]
