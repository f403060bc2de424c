# tests/test_cli.py
import json

from typer.testing import CliRunner

from equity_screener.cli.main import app

runner = CliRunner()


def init_sample_db(tmp_path):
    db = tmp_path / "screener.db"
    result = runner.invoke(app, ["init-db", "--db", str(db), "--sample"])
    assert result.exit_code == 0, result.output
    return db


def test_init_db_and_screen_json(tmp_path, monkeypatch):
    monkeypatch.setenv("EQUITY_SCREENER_DATA__PATHS__BASE_DIR", str(tmp_path))
    db = init_sample_db(tmp_path)

    result = runner.invoke(
        app,
        ["screen", "--db", str(db), "--filters", '[["pe_ratio","<",15],["roe",">",0.15]]', "--format", "json"],
    )

    assert result.exit_code == 0, result.output
    envelope = json.loads(result.stdout)
    assert [row["ticker"] for row in envelope["data"]] == ["KO", "JPM", "JNJ", "MSFT", "GOOGL", "AAPL"]


def test_screen_preset_csv_to_file(tmp_path, monkeypatch):
    monkeypatch.setenv("EQUITY_SCREENER_DATA__PATHS__BASE_DIR", str(tmp_path))
    db = init_sample_db(tmp_path)
    out = tmp_path / "out.csv"

    result = runner.invoke(
        app, ["screen", "--db", str(db), "--preset", "value", "--format", "csv", "--output", str(out)]
    )

    assert result.exit_code == 0, result.output
    assert out.read_text().splitlines()[0].startswith("ticker,pe_ratio")


def test_screen_invalid_limit_exits_nonzero(tmp_path, monkeypatch):
    monkeypatch.setenv("EQUITY_SCREENER_DATA__PATHS__BASE_DIR", str(tmp_path))
    db = init_sample_db(tmp_path)

    result = runner.invoke(app, ["screen", "--db", str(db), "--limit", "5000"])

    assert result.exit_code == 1
    assert "INVALID_LIMIT" in result.output


def test_presets_lists_names(tmp_path, monkeypatch):
    monkeypatch.setenv("EQUITY_SCREENER_DATA__PATHS__BASE_DIR", str(tmp_path))
    result = runner.invoke(app, ["presets"])
    assert result.exit_code == 0
    assert "undervalued" in result.output
