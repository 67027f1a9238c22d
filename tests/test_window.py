from __future__ import annotations

from datetime import datetime, timedelta, timezone

from core.config import MeetingConfig, WindowConfig
from core.models import MeetingOccurrence
from core.window import (
    detect_starting_meetings,
    find_next_meeting,
    is_starting_now,
    search_window,
    seconds_until_start,
)

NOW = datetime(2025, 3, 4, 15, 0, 0, tzinfo=timezone.utc)
MEETINGS = (MeetingConfig(prefix="[X] sig-foo"), MeetingConfig(prefix="[X] Community Meeting"))


def _occurrence(title: str, offset_seconds: int, event_id: str = "evt") -> MeetingOccurrence:
    return MeetingOccurrence(event_id=event_id, title=title, start=NOW + timedelta(seconds=offset_seconds))


def test_search_window_is_wider_than_tolerance() -> None:
    start, end = search_window(NOW, WindowConfig())
    assert start == NOW - timedelta(seconds=90)
    assert end == NOW + timedelta(seconds=180)


def test_tolerance_boundaries_are_inclusive() -> None:
    for offset in (-90, 0, 90):
        assert is_starting_now(NOW + timedelta(seconds=offset), NOW, 90)
    for offset in (-91, 91):
        assert not is_starting_now(NOW + timedelta(seconds=offset), NOW, 90)


def test_seconds_until_start_sign() -> None:
    assert seconds_until_start(NOW + timedelta(seconds=30), NOW) == 30
    assert seconds_until_start(NOW - timedelta(seconds=30), NOW) == -30


def test_detect_keeps_only_configured_meetings_in_tolerance() -> None:
    occurrences = [
        _occurrence("[X] sig-foo: standup", 30, "a"),
        _occurrence("[X] sig-foo: later", 150, "b"),
        _occurrence("Unrelated sync", 0, "c"),
        _occurrence("Re: [X] sig-foo", 0, "d"),
    ]

    starting = detect_starting_meetings(NOW, occurrences, MEETINGS, WindowConfig())

    assert [m.occurrence.event_id for m in starting] == ["a"]
    assert starting[0].match.prefix == "[X] sig-foo"


def test_find_next_meeting_returns_earliest_match() -> None:
    occurrences = [
        _occurrence("Unrelated", 60, "x"),
        _occurrence("[X] Community Meeting", 7200, "late"),
        _occurrence("[X] sig-foo: weekly", 3600, "soon"),
    ]

    found = find_next_meeting(occurrences, MEETINGS)

    assert found is not None
    assert found.occurrence.event_id == "soon"
    assert find_next_meeting([_occurrence("Unrelated", 0)], MEETINGS) is None
