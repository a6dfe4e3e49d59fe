"""End-to-end CLI tests for focusfuel commands.

Tests invoke the Typer CLI via CliRunner with temp paths and verify exit
codes, printed output and written files.  The AI stage is never reached:
every classify call either passes ``--no-ai`` or has no API key.
"""

from __future__ import annotations

import datetime as dt
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from focusfuel.cli.main import app
from focusfuel.core.types import DistractionEvent, EventType
from focusfuel.sinks.store import JsonlEventStore

runner = CliRunner()


@pytest.fixture(autouse=True)
def _no_api_key(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------

class TestConfigCommands:
    def test_init_writes_file(self, tmp_path: Path) -> None:
        path = tmp_path / "cfg" / "focusfuel.yaml"
        result = runner.invoke(app, ["config", "init", "--path", str(path)])
        assert result.exit_code == 0, result.output
        assert path.exists()
        assert "sensitivity: medium" in path.read_text()

    def test_init_refuses_overwrite(self, tmp_path: Path) -> None:
        path = tmp_path / "focusfuel.yaml"
        path.write_text("sensitivity: low\n")
        result = runner.invoke(app, ["config", "init", "--path", str(path)])
        assert result.exit_code == 1
        assert path.read_text() == "sensitivity: low\n"

        forced = runner.invoke(app, ["config", "init", "--path", str(path), "--force"])
        assert forced.exit_code == 0
        assert "sensitivity: medium" in path.read_text()

    def test_show_uses_defaults_when_missing(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["config", "show", "--path", str(tmp_path / "none.yaml")])
        assert result.exit_code == 0
        assert "facebook.com" in result.output

    def test_validate_ok(self, tmp_path: Path) -> None:
        path = tmp_path / "focusfuel.yaml"
        path.write_text("sensitivity: high\nblacklist: [a.com]\n")
        result = runner.invoke(app, ["config", "validate", "--path", str(path)])
        assert result.exit_code == 0
        assert "sensitivity=high" in result.output
        assert "1 blacklisted" in result.output

    def test_validate_invalid(self, tmp_path: Path) -> None:
        path = tmp_path / "focusfuel.yaml"
        path.write_text("sensitivity: extreme\n")
        result = runner.invoke(app, ["config", "validate", "--path", str(path)])
        assert result.exit_code == 1

    def test_validate_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["config", "validate", "--path", str(tmp_path / "none.yaml")])
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# classify / patterns
# ---------------------------------------------------------------------------

class TestClassify:
    def test_blacklisted_url(self, tmp_path: Path) -> None:
        result = runner.invoke(app, [
            "classify", "--url", "https://www.facebook.com/feed",
            "--config", str(tmp_path / "none.yaml"), "--no-ai",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["is_distracting"] is True
        assert data["confidence"] == 95
        assert data["source"] == "list"

    def test_pattern_match(self, tmp_path: Path) -> None:
        result = runner.invoke(app, [
            "classify", "--url", "https://example.org/",
            "--time-spent", "100", "--tab-switches", "15", "--hour", "14",
            "--config", str(tmp_path / "none.yaml"),
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["source"] == "pattern"
        assert data["matched_pattern"]["pattern_id"] == "rapid_tab_switching"

    def test_undetermined(self, tmp_path: Path) -> None:
        result = runner.invoke(app, [
            "classify", "--url", "https://example.org/", "--time-spent", "120", "--hour", "14",
            "--config", str(tmp_path / "none.yaml"), "--no-ai",
        ])
        data = json.loads(result.output)
        assert data["reason"] == "undetermined"
        assert data["confidence"] == 50


class TestPatterns:
    def test_lists_matches(self) -> None:
        result = runner.invoke(app, [
            "patterns", "--time-spent", "30", "--tab-switches", "11", "--hour", "23",
        ])
        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert lines[0].startswith("rapid_tab_switching")
        assert lines[-1].startswith("late_night_browsing")

    def test_no_matches(self) -> None:
        result = runner.invoke(app, ["patterns", "--time-spent", "120"])
        assert result.exit_code == 0
        assert "No patterns matched" in result.output

    def test_unknown_sensitivity(self) -> None:
        result = runner.invoke(app, ["patterns", "--time-spent", "1", "--sensitivity", "extreme"])
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# report
# ---------------------------------------------------------------------------

class TestReportDaily:
    def test_writes_report(self, tmp_path: Path) -> None:
        store = JsonlEventStore(tmp_path / "events.jsonl")
        for i, url in enumerate(["https://youtube.com/", "https://reddit.com/"]):
            store.append(DistractionEvent(
                id=f"distraction_{i}",
                timestamp=dt.datetime(2025, 6, 15, 10 + i),
                url=url,
                duration_seconds=120,
                type=EventType.distraction,
                confidence=95,
            ))

        out_dir = tmp_path / "artifacts"
        result = runner.invoke(app, [
            "report", "daily", "--events-file", str(store.path), "--out-dir", str(out_dir),
        ])
        assert result.exit_code == 0, result.output
        assert "Loaded 2 events" in result.output
        report = json.loads((out_dir / "report_2025-06-15.json").read_text())
        assert report["distraction_count"] == 2
        assert report["distracted_minutes"] == 4.0

    def test_missing_events_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["report", "daily", "--events-file", str(tmp_path / "none.jsonl")])
        assert result.exit_code == 1

    def test_empty_events_file(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        path.write_text("")
        result = runner.invoke(app, ["report", "daily", "--events-file", str(path)])
        assert result.exit_code == 1

    def test_invalid_date_exits_cleanly(self, tmp_path: Path) -> None:
        store = JsonlEventStore(tmp_path / "events.jsonl")
        store.append(DistractionEvent(
            id="distraction_0",
            timestamp=dt.datetime(2025, 6, 15, 10),
            url="https://youtube.com/",
            duration_seconds=60,
            type=EventType.distraction,
            confidence=95,
        ))
        result = runner.invoke(app, [
            "report", "daily", "--events-file", str(store.path), "--date", "2025-13-99",
            "--out-dir", str(tmp_path / "out"),
        ])
        assert result.exit_code == 1
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert not (tmp_path / "out").exists()
