"""Tests for profiling metrics and Telegram message formatting."""

import asyncio
import csv
import json

import pytest

from distribute_vms.monitoring import (
    ProfileMetrics,
    RunMetrics,
    export_to_csv,
    export_to_json,
    format_error,
    format_final_summary,
    format_profile_start,
    format_run_milestone,
    print_summary,
    send_telegram,
)


def _run(index, deviation, rejected=0, time_ms=0.05):
    return RunMetrics(
        run_index=index,
        num_hypervisors=10,
        num_vms=100,
        vms_placed=100 - rejected,
        vms_rejected=rejected,
        avg_time_ms=time_ms,
        avg_load_pct=50.0,
        avg_deviation_pct=deviation,
    )


@pytest.fixture
def profile():
    pm = ProfileMetrics("prof_test", total_runs=3)
    pm.add_run(_run(0, 2.0, rejected=1, time_ms=0.01))
    pm.add_run(_run(1, 6.0, time_ms=0.03))
    pm.add_run(_run(2, 4.0, rejected=2, time_ms=0.05))
    return pm


class TestProfileMetrics:
    def test_aggregates(self, profile):
        assert profile.completed_runs == 3
        assert profile.total_rejected == 3
        assert profile.avg_deviation_pct == pytest.approx(4.0)
        assert profile.median_deviation_pct == pytest.approx(4.0)
        assert profile.min_deviation_pct == pytest.approx(2.0)
        assert profile.max_deviation_pct == pytest.approx(6.0)
        assert profile.avg_time_ms == pytest.approx(0.03)

    def test_mark_complete(self, profile):
        assert profile.completed_at is None
        profile.mark_complete()
        assert profile.completed_at is not None
        assert profile.runtime_seconds >= 0

    def test_summary_dict_drops_runs(self, profile):
        assert "runs" not in profile.to_summary_dict()
        assert len(profile.to_dict()["runs"]) == 3

    def test_export_json(self, profile, tmp_path):
        path = tmp_path / "nested" / "metrics.json"
        export_to_json(profile, path)
        data = json.loads(path.read_text())
        assert data["profile_id"] == "prof_test"
        assert data["completed_at"] is None
        assert [r["run_index"] for r in data["runs"]] == [0, 1, 2]

    def test_export_csv(self, profile, tmp_path):
        path = tmp_path / "runs.csv"
        export_to_csv(profile, path)
        with path.open() as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 3
        assert rows[2]["vms_rejected"] == "2"

    def test_export_csv_empty(self, tmp_path):
        path = tmp_path / "runs.csv"
        export_to_csv(ProfileMetrics("empty"), path)
        assert path.read_text().splitlines()[0].startswith("run_index,")

    def test_print_summary(self, profile):
        summary = print_summary(profile)
        assert "Profile: prof_test" in summary
        assert "Runs: 3/3" in summary
        assert "In Progress" in summary


class TestTelegram:
    def test_no_token_returns_false(self, monkeypatch):
        monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
        assert asyncio.run(send_telegram("hello")) is False

    def test_no_chat_returns_false(self, monkeypatch):
        monkeypatch.delenv("TELEGRAM_CHAT_ID", raising=False)
        assert asyncio.run(send_telegram("hello", token="abc")) is False

    def test_messages(self):
        assert "Runs: 200" in format_profile_start(200, 250, 1000)
        assert "(10%)" in format_run_milestone(20, 200, 3.25)
        assert "Context: vm=vm7" in format_error("X", "msg", {"vm": "vm7"})
        final = format_final_summary(200, 0.0412, 2.5, 0, 90)
        assert "Average deviation: 2.50%" in final
        assert "Runtime: 1.5 minutes" in final
