from __future__ import annotations

from datetime import datetime, timezone

from adapters.notification_formatting import (
    extract_group_name,
    format_error_message,
    format_files_message,
    format_meeting_message,
    with_test_prefix,
)
from core.config import AnnouncementConfig, MeetingConfig
from core.models import AttachedDocument, Channel, MatchedConfig, MatchedOccurrence, MeetingOccurrence, SourceItem

FOO = MeetingConfig(prefix="[X] sig-foo", slack_channel="#sig-foo", slack_webhook="W1")
ANNOUNCEMENTS = AnnouncementConfig(organization="llm-d", shared_drive_url="https://drive.example/shared")


def _meeting(title: str, *, meet_link=None, documents=()) -> MatchedOccurrence:
    occurrence = MeetingOccurrence(
        event_id="evt",
        title=title,
        start=datetime(2025, 3, 4, 15, 0, tzinfo=timezone.utc),
        meet_link=meet_link,
        documents=tuple(documents),
    )
    return MatchedOccurrence(occurrence=occurrence, match=MatchedConfig(prefix=FOO.prefix, config=FOO))


def _text(payload: dict) -> str:
    return payload["blocks"][0]["text"]["text"]


def test_extract_group_name() -> None:
    assert extract_group_name("[X] llm-d sig-foo: standup") == "sig-foo"
    assert extract_group_name("[PUBLIC] llm-d Community Meeting") == "Community Meeting"
    assert extract_group_name("Office hours") == "Office hours"


def test_meeting_message_on_own_channel() -> None:
    payload = format_meeting_message(
        _meeting("[X] sig-foo: standup"), Channel("#sig-foo", "W1"), "#community", ANNOUNCEMENTS
    )
    assert payload["text"] == ":bell: The weekly public llm-d sig-foo meeting is starting NOW! Join us!"
    assert payload["blocks"][0]["type"] == "section"
    assert payload["blocks"][0]["text"]["type"] == "mrkdwn"


def test_meeting_message_on_community_channel_points_to_group_channel() -> None:
    payload = format_meeting_message(
        _meeting("[X] sig-foo: standup"), Channel("#community", "W0"), "#community", ANNOUNCEMENTS
    )
    assert "Join the #sig-foo channel for detailed discussion." in _text(payload)


def test_meeting_message_includes_link_and_documents() -> None:
    documents = [
        AttachedDocument(url="https://docs.google.com/document/d/abc/edit", display_name="Agenda <draft>", icon="📄"),
    ]
    payload = format_meeting_message(
        _meeting("[X] sig-foo: standup", meet_link="https://meet.google.com/abc-defg-hij", documents=documents),
        Channel("#sig-foo", "W1"),
        None,
        ANNOUNCEMENTS,
    )
    text = _text(payload)
    assert ":video_camera: <https://meet.google.com/abc-defg-hij|Join Google Meet>" in text
    assert ":memo: Meeting Notes:" in text
    assert "• 📄 <https://docs.google.com/document/d/abc/edit|Agenda &lt;draft&gt;>" in text


def test_files_message_lists_items_as_bullets() -> None:
    items = [
        SourceItem(id="1", name="[X] sig-foo Notes by Gemini", web_link="https://drive/1"),
        SourceItem(id="2", name="[X] sig-foo Recording", web_link="https://drive/2"),
    ]
    payload = format_files_message(items, ANNOUNCEMENTS)
    text = _text(payload)
    assert "<https://drive.example/shared|shared google drive>" in text
    assert "• <https://drive/1|[X] sig-foo Notes by Gemini>" in text
    assert "• <https://drive/2|[X] sig-foo Recording>" in text
    assert "Recording" not in payload["text"]


def test_error_message_shape() -> None:
    now = datetime(2025, 3, 4, 15, 0, tzinfo=timezone.utc)
    payload = format_error_message("Calendar check failed", "boom", now)
    assert [block["type"] for block in payload["blocks"]] == ["header", "section", "context"]
    assert "```boom```" in payload["blocks"][1]["text"]["text"]
    assert payload["blocks"][2]["elements"][0]["text"].endswith("2025-03-04T15:00:00.000Z")


def test_test_prefix_marks_text_and_first_block_without_mutating() -> None:
    payload = format_meeting_message(
        _meeting("[X] sig-foo: standup"), Channel("#sig-foo", "W1"), None, ANNOUNCEMENTS
    )
    marked = with_test_prefix(payload, "#sig-foo")
    prefix = "🧪 *TEST NOTIFICATION* - This would normally be posted to #sig-foo\n\n"
    assert marked["text"].startswith(prefix)
    assert _text(marked).startswith(prefix)
    assert not payload["text"].startswith(prefix)
