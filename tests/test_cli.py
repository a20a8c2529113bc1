from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from scrnatools_db.cli import app
from scrnatools_db.core import config as config_module
from scrnatools_db.core.errors import SchemaError, ScrapeError

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config_module, "_config", None)


def test_convert_success(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_run(config: Any, timestamp: Any) -> list[Path]:
        return [config.database_dir / "tools.tsv"]

    monkeypatch.setattr("scrnatools_db.cli.run_conversion", fake_run)
    result = runner.invoke(app, ["--quiet", "--test", "convert"])

    assert result.exit_code == 0
    assert "Wrote 1 tables to test_data/database" in result.output


def test_convert_bad_input_exits_2(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_run(config: Any, timestamp: Any) -> list[Path]:
        raise SchemaError("Column 'RNA-seq' is not boolean")

    monkeypatch.setattr("scrnatools_db.cli.run_conversion", fake_run)
    result = runner.invoke(app, ["--quiet", "convert"])

    assert result.exit_code == 2
    assert "Invalid input" in result.output


def test_convert_scrape_failure_exits_1(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_run(config: Any, timestamp: Any) -> list[Path]:
        raise ScrapeError("Failed to fetch https://pypi.org/simple/")

    monkeypatch.setattr("scrnatools_db.cli.run_conversion", fake_run)
    result = runner.invoke(app, ["--quiet", "convert"])

    assert result.exit_code == 1
    assert "no files written" in result.output
