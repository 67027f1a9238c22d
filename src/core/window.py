"""Meeting-start detection (core domain).

Polling every minute with a symmetric tolerance means each occurrence is
seen by at least one tick (usually two or three) around its start, so
exactly-once delivery is the job of the dedup store, not of tick timing.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from core.config import MeetingConfig, WindowConfig
from core.matching import PREFIX, find_matching_config
from core.models import MatchedOccurrence, MeetingOccurrence


def search_window(now: datetime, window: WindowConfig) -> Tuple[datetime, datetime]:
    """Return the calendar query range, a superset of the tolerance window."""

    return (
        now - timedelta(seconds=window.tolerance_seconds),
        now + timedelta(seconds=window.lookahead_seconds),
    )


def seconds_until_start(start: datetime, now: datetime) -> float:
    return (start - now).total_seconds()


def is_starting_now(start: datetime, now: datetime, tolerance_seconds: int) -> bool:
    return abs(start - now) <= timedelta(seconds=tolerance_seconds)


def detect_starting_meetings(
    now: datetime,
    occurrences: Iterable[MeetingOccurrence],
    meetings: Iterable[MeetingConfig],
    window: WindowConfig,
) -> List[MatchedOccurrence]:
    """Return configured occurrences whose start is within tolerance of now."""

    meetings = list(meetings)
    starting: List[MatchedOccurrence] = []
    for occurrence in occurrences:
        if not is_starting_now(occurrence.start, now, window.tolerance_seconds):
            continue
        match = find_matching_config(occurrence.title, meetings, PREFIX)
        if match is None:
            continue
        starting.append(MatchedOccurrence(occurrence=occurrence, match=match))
    return starting


def find_next_meeting(
    occurrences: Iterable[MeetingOccurrence],
    meetings: Iterable[MeetingConfig],
) -> Optional[MatchedOccurrence]:
    """Return the earliest occurrence that matches a configured prefix."""

    meetings = list(meetings)
    for occurrence in sorted(occurrences, key=lambda item: item.start):
        match = find_matching_config(occurrence.title, meetings, PREFIX)
        if match is not None:
            return MatchedOccurrence(occurrence=occurrence, match=match)
    return None
