"""Application entry point for the meetwatch jobs."""

from __future__ import annotations

import argparse
import logging
import os
from datetime import datetime, timedelta, timezone
from logging.handlers import RotatingFileHandler
from typing import Callable, Iterable, List, Optional

import schedule
from art import tprint
from dotenv import load_dotenv

import settings
from adapters.dry_run import DryRunDrive, DryRunVideoHost
from adapters.google_auth import build_service, load_credentials
from adapters.google_calendar import GoogleCalendarSource
from adapters.google_drive import GoogleDriveFiles
from adapters.notification_formatting import format_debug_message
from adapters.scheduler import run_forever, schedule_daily, schedule_periodic
from adapters.slack_notifier import (
    SimulatedDelivery,
    SlackErrorReporter,
    SlackNotifier,
    SlackWebhookClient,
    build_delivery,
)
from adapters.sqlite_properties import SQLitePropertyStore
from adapters.youtube import YouTubeUploader
from core.calendar_watcher import CalendarWatcher
from core.channels import resolve_channels
from core.config import AppConfig
from core.dedup import NotificationStore
from core.errors import ConfigError
from core.file_organizer import FileOrganizer
from core.window import find_next_meeting, search_window

NAME = "MEETWATCH"
FONT = "tarty-1"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    """Masks webhook URLs and named environment secrets in every log line."""

    def __init__(self, secrets: Iterable[str]) -> None:
        super().__init__(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
        # Longest first so a secret containing another is masked whole.
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _log_file_handler(file_cfg: dict) -> Optional[logging.Handler]:
    if not file_cfg.get("enabled", False):
        return None
    path = file_cfg.get("path", "logs/meetwatch.log")
    if not os.path.isabs(path):
        path = os.path.join(settings.PROJECT_ROOT, path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 1_000_000)),
        backupCount=int(file_cfg.get("backup_count", 3)),
        encoding="utf-8",
    )


def _configure_logging(log_cfg: dict, webhooks: list[str]) -> None:
    """Route logs to the console and an optional rotating file, with secrets masked."""

    if not log_cfg.get("enabled", False):
        return

    secrets = list(webhooks)
    redact = log_cfg.get("redact", {})
    if redact.get("enabled", True):
        secrets.extend(os.getenv(name, "") for name in redact.get("patterns", []))
    formatter = _RedactingFormatter(secrets)

    handlers: list[logging.Handler] = []
    if log_cfg.get("console", True):
        handlers.append(logging.StreamHandler())
    file_handler = _log_file_handler(log_cfg.get("file", {}))
    if file_handler is not None:
        handlers.append(file_handler)
    if not handlers:
        return

    for handler in handlers:
        handler.setFormatter(formatter)
    level = getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, handlers=handlers)


class _Runtime:
    """Lazily wires adapters for one CLI invocation."""

    def __init__(self, raw: dict, config: AppConfig) -> None:
        self.raw = raw
        self.config = config
        self.messenger = SlackWebhookClient()
        self.reporter = SlackErrorReporter(self.messenger, config.default_webhook)
        self._credentials = None
        self._drive: Optional[GoogleDriveFiles] = None

    def _creds(self):
        if self._credentials is None:
            credentials_path, token_path = settings.google_paths(self.raw)
            self._credentials = load_credentials(credentials_path, token_path)
        return self._credentials

    def google_drive(self) -> GoogleDriveFiles:
        if self._drive is None:
            service = build_service("drive", "v3", self._creds())
            self._drive = GoogleDriveFiles(service, self.config.source_folder_id)
        return self._drive

    def store(self) -> NotificationStore:
        properties = SQLitePropertyStore(settings.db_path(self.raw), quota=self.config.retention.quota)
        properties.init_db()
        return NotificationStore(properties, self.config.retention, self.config.window)

    def notifier(self) -> SlackNotifier:
        return SlackNotifier(build_delivery(self.messenger, self.config), self.config)

    def calendar(self) -> GoogleCalendarSource:
        service = build_service("calendar", "v3", self._creds())
        return GoogleCalendarSource(service, self.config.calendar_id, self.google_drive().get_item_name)

    def watcher(self) -> CalendarWatcher:
        settings.require(self.config, "calendar")
        return CalendarWatcher(self.calendar(), self.store(), self.notifier(), self.reporter, self.config)

    def organizer(self) -> FileOrganizer:
        settings.require(self.config, "files")
        drive = self.google_drive()
        video_host = None
        if any(meeting.upload_to_youtube for meeting in self.config.meetings):
            if self.config.debug_mode:
                video_host = DryRunVideoHost()
            else:
                service = build_service("youtube", "v3", self._creds())
                video_host = YouTubeUploader(service, self.config.announcements.video_privacy)
        if self.config.debug_mode:
            drive = DryRunDrive(drive)
        return FileOrganizer(drive, self.notifier(), self.reporter, self.config, video_host)


def _schedule_jobs(runtime: _Runtime, scheduler: schedule.Scheduler) -> List[Callable[[], object]]:
    """Register every job whose configuration is complete; return their tick functions."""

    cadence = runtime.config.schedule
    started: List[Callable[[], object]] = []

    try:
        watcher = runtime.watcher()
    except ConfigError as exc:
        _report_config_error(runtime.raw, exc)
    else:
        schedule_periodic(scheduler, "calendar", cadence.calendar_interval_seconds, watcher.tick)
        schedule_daily(scheduler, "daily-cleanup", cadence.daily_cleanup_at, watcher.daily_cleanup)
        started.append(watcher.tick)

    try:
        organizer = runtime.organizer()
    except ConfigError as exc:
        _report_config_error(runtime.raw, exc)
    else:
        schedule_periodic(scheduler, "files", cadence.files_interval_seconds, organizer.tick)
        started.append(organizer.tick)

    return started


def _run(runtime: _Runtime) -> None:
    scheduler = schedule.Scheduler()
    ticks = _schedule_jobs(runtime, scheduler)
    if not ticks:
        raise ConfigError("No job has a complete configuration")

    LOGGER.info(
        "Starting meetwatch: %s jobs, %s meetings, debug_mode=%s",
        len(ticks),
        len(runtime.config.meetings),
        runtime.config.debug_mode,
    )
    for tick in ticks:
        tick()
    run_forever(scheduler)


def _print_storage(runtime: _Runtime) -> None:
    report = runtime.store().storage_report()
    print(f"Status: {report.status} ({report.utilization_percent}% of {report.quota} slots)")
    print(f"Notification records: {report.notification_records}")
    print(f"Other properties: {report.other_properties}")
    print(f"Corrupted records: {report.corrupted_records}")
    if report.oldest:
        print(f"Oldest: {report.oldest.meeting_title} (notified {report.oldest.notified_at.isoformat()})")
    if report.newest:
        print(f"Newest: {report.newest.meeting_title} (notified {report.newest.notified_at.isoformat()})")
    for recommendation in report.recommendations:
        print(f"- {recommendation}")


def _records(runtime: _Runtime, clear: bool) -> None:
    store = runtime.store()
    if clear:
        removed = store.clear_all()
        print(f"Cleared {removed} notification records.")
        return

    records, corrupted = store.list_records()
    if not records and not corrupted:
        print("No notification records.")
        return
    now = datetime.now(timezone.utc)
    for index, record in enumerate(records, start=1):
        age_hours = (now - record.notified_at).total_seconds() / 3600
        print(f"{index}. {record.meeting_title} | starts {record.meeting_start.isoformat()} | {age_hours:.1f}h ago")
    for key in corrupted:
        print(f"corrupted | {key}")


def _check_config(runtime: _Runtime) -> None:
    config = runtime.config
    settings.require(config, "calendar")
    settings.require(config, "files")
    for meeting in config.meetings:
        channel = meeting.slack_channel or "(no channel)"
        webhook = "webhook set" if meeting.slack_webhook else "NO WEBHOOK"
        print(f"{meeting.prefix} -> {channel}, {webhook}, youtube={meeting.upload_to_youtube}")
    if not config.default_webhook:
        print("No default_webhook configured; errors will only be logged.")
        return
    runtime.messenger.send_message(
        config.default_webhook,
        format_debug_message(f"Configuration check passed: {len(config.meetings)} meetings configured."),
    )
    print("Sent a test message to the default webhook.")


def _timing(config: AppConfig) -> None:
    now = datetime.now(timezone.utc).replace(microsecond=0)
    window_start, window_end = search_window(now, config.window)
    tolerance = config.window.tolerance_seconds
    print(f"Now: {now.isoformat()}")
    print(f"Search window: {window_start.isoformat()} .. {window_end.isoformat()}")
    print(f"Notify when |start - now| <= {tolerance}s")
    for offset in (-tolerance - 1, -tolerance, 0, tolerance, tolerance + 1):
        start = now + timedelta(seconds=offset)
        verdict = "notify" if abs(offset) <= tolerance else "skip"
        print(f"  start {start.isoformat()} ({offset:+d}s): {verdict}")


def _next_meeting(runtime: _Runtime) -> None:
    config = runtime.config
    settings.require(config, "calendar")
    now = datetime.now(timezone.utc)
    occurrences = runtime.calendar().list_upcoming_occurrences(now, now + timedelta(days=7))
    meeting = find_next_meeting(occurrences, config.meetings)
    if meeting is None:
        print("No configured meeting in the next 7 days.")
        return

    print(f"Next meeting: {meeting.occurrence.title} at {meeting.occurrence.start.isoformat()}")
    if not config.default_webhook:
        print("No default_webhook configured; not sending a preview.")
        return
    notifier = SlackNotifier(SimulatedDelivery(runtime.messenger, config.default_webhook), config)
    for channel in resolve_channels(meeting.match, config.meetings, config.announcements.community_prefix):
        notifier.announce_meeting(meeting, channel)
        print(f"Sent preview for {channel.name}")


def _report_config_error(raw: Optional[dict], exc: Exception) -> None:
    LOGGER.error("Configuration error: %s", exc)
    webhook = ""
    if raw:
        try:
            webhook = settings.resolve_secret(raw.get("default_webhook", "")) or ""
        except ConfigError:
            webhook = ""
    if webhook:
        SlackErrorReporter(SlackWebhookClient(), webhook).report("Configuration error", str(exc))


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="meetwatch")
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Reroute messages to the default webhook and skip Drive/YouTube writes",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the scheduler loop")
    subparsers.add_parser("calendar", help="Run one calendar check")
    subparsers.add_parser("files", help="Run one file organizer pass")
    subparsers.add_parser("daily-cleanup", help="Run the end-of-day record cleanup")
    subparsers.add_parser("storage", help="Show property storage health")
    records_parser = subparsers.add_parser("records", help="List notification records")
    records_parser.add_argument("--clear", action="store_true", help="Delete every notification record")
    subparsers.add_parser("check-config", help="Validate config and send a test message")
    subparsers.add_parser("timing", help="Explain the detection windows")
    subparsers.add_parser("next-meeting", help="Preview the next meeting's announcement")

    args = parser.parse_args(argv)
    command = args.command or "run"

    _print_banner()
    load_dotenv()
    raw: Optional[dict] = None
    try:
        raw = settings.load_json_config()
        config = settings.build_app_config(raw, debug_override=args.simulate)
        _configure_logging(settings.logging_config(raw), settings.webhook_urls(config))

        if command == "timing":
            _timing(config)
            return

        runtime = _Runtime(raw, config)
        if command == "run":
            _run(runtime)
        elif command == "calendar":
            runtime.watcher().tick()
        elif command == "files":
            runtime.organizer().tick()
        elif command == "daily-cleanup":
            runtime.watcher().daily_cleanup()
        elif command == "storage":
            _print_storage(runtime)
        elif command == "records":
            _records(runtime, args.clear)
        elif command == "check-config":
            _check_config(runtime)
        elif command == "next-meeting":
            _next_meeting(runtime)
    except ConfigError as exc:
        _report_config_error(raw, exc)
        raise SystemExit(2) from exc


if __name__ == "__main__":
    main()
