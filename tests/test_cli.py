"""
Smoke tests for the certprep command line interface.
"""

import os
import sys

import pytest
from click.testing import CliRunner

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import cli as cli_module
from cli import cli
from config import Config


@pytest.fixture
def runner(monkeypatch):
    # Wide console so table cells are not wrapped
    monkeypatch.setattr(cli_module.console, "width", 200)
    return CliRunner()


@pytest.fixture
def temp_db(tmp_path, monkeypatch):
    path = tmp_path / "certprep.db"
    monkeypatch.setattr(Config, "DB_PATH", path)
    return path


def test_init_creates_database(runner, temp_db, tmp_path, monkeypatch):
    """Test init creates the data directory and an empty session database."""
    monkeypatch.setattr(Config, "DATA_DIR", tmp_path / "data")
    result = runner.invoke(cli, ["init"])
    assert result.exit_code == 0, result.output
    assert "CertPrep initialized" in result.output
    assert (tmp_path / "data").is_dir()
    assert temp_db.exists()

    listed = runner.invoke(cli, ["sessions"])
    assert "No saved sessions" in listed.output
    print("✓ test_init_creates_database passed")


def test_exams_lists_catalog(runner):
    result = runner.invoke(cli, ["exams"])
    assert result.exit_code == 0, result.output
    assert "cfa-l1" in result.output
    print("✓ test_exams_lists_catalog passed")


def test_plan(runner):
    result = runner.invoke(cli, ["plan", "--exam", "cfa-l1", "--mode", "efficient"])
    assert result.exit_code == 0, result.output
    assert "Strategy is valid" in result.output


def test_plan_unknown_exam(runner):
    result = runner.invoke(cli, ["plan", "--exam", "nope"])
    assert result.exit_code != 0
    assert "Unknown exam" in result.output


def test_plan_unknown_focus(runner):
    result = runner.invoke(cli, ["plan", "-e", "cfa-l1", "--focus", "astrology"])
    assert result.exit_code != 0
    assert "astrology" in result.output


def test_simulate_and_predict(runner, temp_db):
    """Test a simulated run can be saved, listed and predicted again."""
    result = runner.invoke(
        cli,
        ["simulate", "-e", "aws-saa", "-m", "efficient", "-n", "12", "--seed", "7", "--flashcards", "--save"],
    )
    assert result.exit_code == 0, result.output
    assert "Predicted score" in result.output
    assert "Saved session" in result.output
    assert temp_db.exists()

    listed = runner.invoke(cli, ["sessions"])
    assert listed.exit_code == 0, listed.output
    assert "aws-saa" in listed.output

    from storage.database import Database

    with Database(temp_db) as db:
        session_id = db.list_sessions()[0]["session_id"]

    predicted = runner.invoke(cli, ["predict", "--session-id", session_id])
    assert predicted.exit_code == 0, predicted.output
    assert "Predicted score" in predicted.output

    progress = runner.invoke(cli, ["progress", "-e", "aws-saa"])
    assert progress.exit_code == 0, progress.output
    print("✓ test_simulate_and_predict passed")


def test_simulate_prep_run_length(runner):
    result = runner.invoke(cli, ["simulate", "-e", "cfa-l1", "-m", "prep", "-n", "15", "--seed", "1"])
    assert result.exit_code == 0, result.output
    assert "Answered: 15" in result.output


def test_predict_missing_session(runner, temp_db):
    result = runner.invoke(cli, ["predict", "-s", "does-not-exist"])
    assert result.exit_code != 0
    assert "not found" in result.output


def test_sessions_empty(runner, temp_db):
    result = runner.invoke(cli, ["sessions"])
    assert result.exit_code == 0
    assert "No saved sessions" in result.output
