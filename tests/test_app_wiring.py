from __future__ import annotations

import logging

import pytest
import schedule

import app
import settings
from core.config import AppConfig, MeetingConfig
from core.errors import ConfigError


class _Job:
    def __init__(self) -> None:
        self.ticks = 0

    def tick(self) -> None:
        self.ticks += 1

    def daily_cleanup(self) -> None:
        pass


class _StubRuntime:
    """Builds jobs through the same config checks as the real runtime."""

    def __init__(self, config: AppConfig) -> None:
        self.raw: dict = {}
        self.config = config
        self.jobs: dict[str, _Job] = {}

    def watcher(self) -> _Job:
        settings.require(self.config, "calendar")
        return self.jobs.setdefault("calendar", _Job())

    def organizer(self) -> _Job:
        settings.require(self.config, "files")
        return self.jobs.setdefault("files", _Job())


def _config(**overrides) -> AppConfig:
    meeting = MeetingConfig(prefix="[X] sig-foo", slack_webhook="W1", target_folder_id="target")
    values = {"meetings": (meeting,), "source_folder_id": "inbox", "calendar_id": "cal"}
    values.update(overrides)
    return AppConfig(**values)


def test_both_jobs_scheduled_when_configured() -> None:
    runtime = _StubRuntime(_config())
    scheduler = schedule.Scheduler()

    ticks = app._schedule_jobs(runtime, scheduler)

    assert len(ticks) == 2
    assert len(scheduler.get_jobs("calendar")) == 1
    assert len(scheduler.get_jobs("daily-cleanup")) == 1
    assert len(scheduler.get_jobs("files")) == 1


def test_file_job_still_runs_without_calendar_id(caplog) -> None:
    runtime = _StubRuntime(_config(calendar_id=""))
    scheduler = schedule.Scheduler()

    with caplog.at_level(logging.ERROR, logger="app"):
        ticks = app._schedule_jobs(runtime, scheduler)

    assert ticks == [runtime.jobs["files"].tick]
    assert scheduler.get_jobs("calendar") == []
    assert scheduler.get_jobs("daily-cleanup") == []
    assert len(scheduler.get_jobs("files")) == 1
    assert "calendar_id" in caplog.text

    scheduler.run_all()
    assert runtime.jobs["files"].ticks == 1


def test_calendar_job_still_runs_without_file_folders() -> None:
    runtime = _StubRuntime(_config(source_folder_id=""))
    scheduler = schedule.Scheduler()

    ticks = app._schedule_jobs(runtime, scheduler)

    assert ticks == [runtime.jobs["calendar"].tick]
    assert scheduler.get_jobs("files") == []
    assert len(scheduler.get_jobs("calendar")) == 1


def test_run_refuses_to_start_with_no_usable_job() -> None:
    runtime = _StubRuntime(_config(calendar_id="", source_folder_id=""))

    with pytest.raises(ConfigError, match="No job"):
        app._run(runtime)

    assert runtime.jobs == {}


def test_log_lines_mask_webhooks() -> None:
    formatter = app._RedactingFormatter(["https://hooks.example/a", ""])
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "posting to %s", ("https://hooks.example/a/b",), None)

    assert formatter.format(record).endswith("posting to ***/b")
