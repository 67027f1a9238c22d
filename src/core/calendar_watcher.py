"""Calendar watcher job.

Each tick enforces a strict order:
1) Cleanup of the notification store on the first tick and then every
   cleanup interval (before any new write)
2) Fetch candidates for a window wider than the tolerance
3) Keep configured meetings that are starting now
4) Skip occurrences already in the store
5) Announce on every resolved channel
6) Record the occurrence, even if some channels failed

Nothing escapes a tick: failures are reported per meeting and the scheduler
simply runs the next tick.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from core.channels import resolve_channels
from core.config import AppConfig
from core.dedup import CleanupResult, NotificationStore
from core.models import MatchedOccurrence
from core.ports import CalendarPort, ErrorReporterPort, NotifierPort
from core.window import detect_starting_meetings, search_window

LOGGER = logging.getLogger(__name__)


@dataclass
class CalendarTickSummary:
    """Counters for one calendar tick, mainly for logs and tests."""

    candidates: int = 0
    starting: int = 0
    notified: int = 0
    skipped: int = 0
    failed: int = 0
    cleaned: bool = False


class CalendarWatcher:
    """Orchestrates detection, dedup, announcement and bookkeeping."""

    def __init__(
        self,
        calendar: CalendarPort,
        store: NotificationStore,
        notifier: NotifierPort,
        reporter: ErrorReporterPort,
        config: AppConfig,
    ) -> None:
        self._calendar = calendar
        self._store = store
        self._notifier = notifier
        self._reporter = reporter
        self._config = config
        self._last_cleanup: Optional[datetime] = None

    def tick(self, now: Optional[datetime] = None) -> CalendarTickSummary:
        """Run one poll of the calendar."""

        now = now or datetime.now(timezone.utc)
        summary = CalendarTickSummary()

        if self._cleanup_due(now):
            self.maintain(now)
            self._last_cleanup = now
            summary.cleaned = True

        window_start, window_end = search_window(now, self._config.window)
        try:
            candidates = self._calendar.list_upcoming_occurrences(window_start, window_end)
        except Exception as exc:
            LOGGER.exception("Calendar fetch failed")
            self._reporter.report("Calendar check failed", str(exc))
            return summary
        summary.candidates = len(candidates)

        starting = detect_starting_meetings(
            now, candidates, self._config.meetings, self._config.window
        )
        summary.starting = len(starting)
        if not starting:
            LOGGER.debug("No meetings starting now (%s candidates)", len(candidates))
            return summary

        LOGGER.info("Found %s meeting(s) starting now", len(starting))
        for meeting in starting:
            self._process(meeting, now, summary)
        return summary

    def _cleanup_due(self, now: datetime) -> bool:
        """First tick, then once per cleanup interval however the ticks drift."""

        if self._last_cleanup is None:
            return True
        interval = timedelta(minutes=self._config.schedule.cleanup_interval_minutes)
        return now - self._last_cleanup >= interval

    def _process(self, meeting: MatchedOccurrence, now: datetime, summary: CalendarTickSummary) -> None:
        occurrence = meeting.occurrence
        try:
            key = self._store.key_for(occurrence)
            if self._store.has_notified(key):
                LOGGER.info("Already notified for %r, skipping", occurrence.title)
                summary.skipped += 1
                return

            channels = resolve_channels(
                meeting.match,
                self._config.meetings,
                self._config.announcements.community_prefix,
            )
            failures: List[str] = []
            for channel in channels:
                try:
                    self._notifier.announce_meeting(meeting, channel)
                    LOGGER.info("Announced %r on %s", occurrence.title, channel.name)
                except Exception as exc:
                    LOGGER.exception("Announcement to %s failed", channel.name)
                    failures.append(f"{channel.name}: {exc}")

            # Recorded even after partial failure; failed channels are not retried.
            self._store.record_notified(key, occurrence.title, occurrence.start, now)
            summary.notified += 1

            if failures:
                summary.failed += 1
                self._reporter.report(
                    f"Partial delivery for meeting: {occurrence.title}",
                    "\n".join(failures),
                )
        except Exception as exc:
            LOGGER.exception("Failed to process meeting %r", occurrence.title)
            summary.failed += 1
            self._reporter.report(f"Failed to process meeting: {occurrence.title}", str(exc))

    def maintain(self, now: Optional[datetime] = None) -> Optional[CleanupResult]:
        """Adaptive cleanup plus the storage high-water check."""

        now = now or datetime.now(timezone.utc)
        retention = self._config.retention
        try:
            result = self._store.cleanup(now)
        except Exception as exc:
            LOGGER.exception("Notification cleanup failed")
            self._reporter.report("Notification cleanup failed", str(exc))
            return None

        if result.removed and result.horizon_hours < retention.normal_hours:
            self._reporter.warn(
                f"⚠️ Used aggressive cleanup ({result.horizon_hours}h) - had {result.total} records, "
                f"now {result.remaining}"
            )

        try:
            report = self._store.storage_report()
        except Exception as exc:
            LOGGER.exception("Storage health check failed")
            self._reporter.report("Storage health check failed", str(exc))
            return result

        if report.utilization_percent >= retention.warning_percent:
            self._reporter.warn(
                f"⚠️ Property storage is {report.utilization_percent}% full "
                f"({report.total_properties}/{report.quota} properties)"
            )
        return result

    def daily_cleanup(self, now: Optional[datetime] = None) -> Optional[CleanupResult]:
        """Fixed-horizon end-of-day cleanup."""

        now = now or datetime.now(timezone.utc)
        try:
            result = self._store.daily_cleanup(now)
        except Exception as exc:
            LOGGER.exception("Daily cleanup failed")
            self._reporter.report("Daily cleanup failed", str(exc))
            return None

        retention = self._config.retention
        if result.remaining > retention.moderate_threshold:
            self._reporter.warn(
                f"⚠️ Storage still high after daily cleanup: {result.remaining}/{retention.quota} "
                "records remaining"
            )
        return result
