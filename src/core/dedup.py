"""Duplicate-suppression store for meeting notifications (core domain).

Records live in a key-value store whose slot quota is shared with everything
else the process persists. A record that cannot be written looks, on the next
poll, exactly like a meeting that was never announced, so the store trades
retention length for headroom as utilization rises.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from core.config import RetentionConfig, WindowConfig
from core.models import MeetingOccurrence, NotificationRecord
from core.ports import PropertyStorePort

LOGGER = logging.getLogger(__name__)


def format_instant(value: datetime) -> str:
    """Render an instant as UTC ISO-8601 with milliseconds and a ``Z`` suffix."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_instant(text: str) -> datetime:
    """Parse an instant written by ``format_instant`` (or any ISO-8601 form)."""

    if not isinstance(text, str) or not text:
        raise ValueError(f"Not an instant: {text!r}")
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def notification_key(occurrence: MeetingOccurrence, key_prefix: str = "notified_") -> str:
    """Return the stable record key for one meeting occurrence."""

    return f"{key_prefix}{occurrence.event_id}_{format_instant(occurrence.start)}"


@dataclass(frozen=True)
class CleanupResult:
    """Outcome of one cleanup pass."""

    total: int
    removed: int
    corrupted: int
    horizon_hours: int
    emergency_removed: int
    remaining: int
    slots_used: int


@dataclass(frozen=True)
class StorageReport:
    """Snapshot of property store health."""

    quota: int
    total_properties: int
    notification_records: int
    other_properties: int
    corrupted_records: int
    oldest: Optional[NotificationRecord]
    newest: Optional[NotificationRecord]
    utilization_percent: int
    status: str
    recommendations: List[str] = field(default_factory=list)


class NotificationStore:
    """Bounded record of which meeting occurrences were already announced.

    This is the only component that reads or writes keys under the record
    prefix; other keys in the shared store are counted but never touched.
    Check-then-record is not atomic: callers must not run overlapping ticks.
    """

    def __init__(
        self,
        properties: PropertyStorePort,
        retention: RetentionConfig,
        window: Optional[WindowConfig] = None,
    ) -> None:
        self._properties = properties
        self._retention = retention
        self._window = window or WindowConfig()

    @property
    def retention(self) -> RetentionConfig:
        return self._retention

    def key_for(self, occurrence: MeetingOccurrence) -> str:
        return notification_key(occurrence, self._retention.key_prefix)

    def has_notified(self, key: str) -> bool:
        """Return True iff a record with this key currently exists."""

        return self._properties.get_property(key) is not None

    def record_notified(self, key: str, title: str, start: datetime, now: datetime) -> None:
        """Upsert the record for one occurrence."""

        payload = {
            "meetingTitle": title,
            "meetingStart": format_instant(start),
            "notifiedAt": format_instant(now),
        }
        self._properties.set_property(key, json.dumps(payload))
        LOGGER.info("Recorded notification for %r", title)

    def _load(self) -> Tuple[List[NotificationRecord], List[str], int]:
        """Return (valid records, corrupted keys, count of foreign properties)."""

        records: List[NotificationRecord] = []
        corrupted: List[str] = []
        other = 0
        for key, value in self._properties.list_properties().items():
            if not key.startswith(self._retention.key_prefix):
                other += 1
                continue
            record = _parse_record(key, value)
            if record is None:
                corrupted.append(key)
            else:
                records.append(record)
        return records, corrupted, other

    def horizon_hours(self, record_count: int) -> int:
        """Pick the retention horizon for the current load."""

        retention = self._retention
        if record_count >= retention.aggressive_threshold:
            return retention.aggressive_hours
        if record_count >= retention.moderate_threshold:
            return retention.moderate_hours
        return retention.normal_hours

    def _in_window(self, record: NotificationRecord, now: datetime) -> bool:
        """True while the meeting could still be detected as starting."""

        return record.meeting_start >= now - timedelta(seconds=self._window.tolerance_seconds)

    def _delete(self, key: str, reason: str) -> None:
        self._properties.delete_property(key)
        LOGGER.info("Removed notification record %s (%s)", key, reason)

    def _sweep(
        self,
        records: List[NotificationRecord],
        corrupted: List[str],
        now: datetime,
        horizon_hours: int,
    ) -> List[NotificationRecord]:
        """Drop corrupted and expired records and return the survivors."""

        for key in corrupted:
            self._delete(key, "corrupted")

        cutoff = now - timedelta(hours=horizon_hours)
        survivors: List[NotificationRecord] = []
        for record in records:
            if record.notified_at < cutoff:
                self._delete(record.key, f"older than {horizon_hours}h")
            else:
                survivors.append(record)
        return survivors

    def cleanup(self, now: datetime) -> CleanupResult:
        """Run the adaptive horizon pass followed by the emergency pass.

        Records younger than the smallest horizon are only ever removed by the
        emergency pass, which runs when occupied slots (records plus foreign
        properties) reach the emergency threshold and evicts oldest-first until
        occupancy is at the target. A record whose meeting can still be
        detected as starting is never evicted, even if the target is missed.
        """

        records, corrupted, other = self._load()
        total = len(records) + len(corrupted)
        horizon = self.horizon_hours(total)
        if horizon < self._retention.normal_hours:
            LOGGER.warning("Notification store holds %s records, using %sh retention", total, horizon)

        survivors = self._sweep(records, corrupted, now, horizon)
        removed = total - len(survivors)

        emergency_removed = 0
        slots_used = other + len(survivors)
        if slots_used >= self._retention.emergency_threshold:
            LOGGER.warning(
                "Property store still at %s/%s slots after cleanup, evicting oldest records",
                slots_used,
                self._retention.quota,
            )
            survivors.sort(key=lambda record: record.notified_at)
            kept: List[NotificationRecord] = []
            for record in survivors:
                if slots_used <= self._retention.emergency_target or self._in_window(record, now):
                    kept.append(record)
                    continue
                self._delete(record.key, "emergency eviction")
                emergency_removed += 1
                slots_used -= 1
            survivors = kept
            if slots_used > self._retention.emergency_target:
                LOGGER.warning(
                    "Emergency cleanup stopped at %s/%s slots; remaining records belong to meetings "
                    "that are still starting",
                    slots_used,
                    self._retention.quota,
                )

        result = CleanupResult(
            total=total,
            removed=removed + emergency_removed,
            corrupted=len(corrupted),
            horizon_hours=horizon,
            emergency_removed=emergency_removed,
            remaining=len(survivors),
            slots_used=slots_used,
        )
        LOGGER.info(
            "Cleanup removed %s/%s notification records using %sh horizon",
            result.removed,
            result.total,
            horizon,
        )
        return result

    def daily_cleanup(self, now: datetime) -> CleanupResult:
        """Fixed-horizon pass run once a day regardless of load."""

        horizon = self._retention.daily_hours
        records, corrupted, other = self._load()
        total = len(records) + len(corrupted)
        survivors = self._sweep(records, corrupted, now, horizon)
        removed = total - len(survivors)
        LOGGER.info("Daily cleanup removed %s/%s notification records", removed, total)
        return CleanupResult(
            total=total,
            removed=removed,
            corrupted=len(corrupted),
            horizon_hours=horizon,
            emergency_removed=0,
            remaining=len(survivors),
            slots_used=other + len(survivors),
        )

    def list_records(self) -> Tuple[List[NotificationRecord], List[str]]:
        """Return (records oldest first, corrupted keys)."""

        records, corrupted, _ = self._load()
        records.sort(key=lambda record: record.notified_at)
        return records, sorted(corrupted)

    def clear_all(self) -> int:
        """Delete every notification record; other properties are untouched."""

        records, corrupted, _ = self._load()
        keys = [record.key for record in records] + corrupted
        for key in keys:
            self._delete(key, "manual clear")
        return len(keys)

    def storage_report(self) -> StorageReport:
        records, corrupted, other = self._load()
        quota = self._retention.quota
        total = len(records) + len(corrupted) + other
        utilization = round(total / quota * 100) if quota else 100

        recommendations: List[str] = []
        if utilization >= 90:
            status = "CRITICAL"
            recommendations.append("Run emergency cleanup immediately")
            recommendations.append("Consider shorter retention period")
        elif utilization >= 70:
            status = "WARNING"
            recommendations.append("Monitor closely")
            recommendations.append("Consider running daily cleanup more frequently")
        elif utilization >= 50:
            status = "MODERATE"
            recommendations.append("Storage usage is moderate")
        else:
            status = "HEALTHY"
        if corrupted:
            recommendations.append(f"Clean up {len(corrupted)} corrupted records")

        ordered = sorted(records, key=lambda record: record.notified_at)
        return StorageReport(
            quota=quota,
            total_properties=total,
            notification_records=len(records) + len(corrupted),
            other_properties=other,
            corrupted_records=len(corrupted),
            oldest=ordered[0] if ordered else None,
            newest=ordered[-1] if ordered else None,
            utilization_percent=utilization,
            status=status,
            recommendations=recommendations,
        )


def _parse_record(key: str, value: Optional[str]) -> Optional[NotificationRecord]:
    try:
        data = json.loads(value or "")
        return NotificationRecord(
            key=key,
            meeting_title=str(data.get("meetingTitle", "")),
            meeting_start=parse_instant(data["meetingStart"]),
            notified_at=parse_instant(data["notifiedAt"]),
        )
    except (ValueError, KeyError, TypeError, AttributeError):
        return None
