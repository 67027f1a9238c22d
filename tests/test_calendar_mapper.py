from __future__ import annotations

from datetime import datetime, timezone

from adapters.google_calendar import (
    DEFAULT_DOCUMENT_NAME,
    build_documents,
    document_icon,
    event_to_occurrence,
    extract_file_id,
    extract_meet_link,
)


def test_meet_link_prefers_conference_video_entry() -> None:
    event = {
        "conferenceData": {
            "entryPoints": [
                {"entryPointType": "phone", "uri": "tel:+1-555"},
                {"entryPointType": "video", "uri": "https://meet.google.com/abc-defg-hij"},
            ]
        },
        "description": "backup https://meet.google.com/zzz-zzzz-zzz",
    }
    assert extract_meet_link(event) == "https://meet.google.com/abc-defg-hij"


def test_meet_link_falls_back_to_description_then_location() -> None:
    assert extract_meet_link({"description": "Join at https://meet.google.com/aaa-bbbb-ccc now"}) == (
        "https://meet.google.com/aaa-bbbb-ccc"
    )
    assert extract_meet_link({"location": "https://meet.google.com/xyz-abcd-efg"}) == (
        "https://meet.google.com/xyz-abcd-efg"
    )
    assert extract_meet_link({"description": "no link here"}) is None


def test_extract_file_id_patterns() -> None:
    assert extract_file_id("https://docs.google.com/document/d/DOC_1/edit") == "DOC_1"
    assert extract_file_id("https://docs.google.com/spreadsheets/d/SHEET-2/edit") == "SHEET-2"
    assert extract_file_id("https://drive.google.com/file/d/FILE3/view") == "FILE3"
    assert extract_file_id("https://drive.google.com/open?id=OPEN4") == "OPEN4"
    assert extract_file_id("https://example.com/nothing") is None


def test_document_icon_by_kind() -> None:
    assert document_icon("https://docs.google.com/document/d/x") == "📄"
    assert document_icon("https://docs.google.com/spreadsheets/d/x") == "📊"
    assert document_icon("https://docs.google.com/presentation/d/x") == "📑"
    assert document_icon("https://drive.google.com/file/d/x") == "📁"


def test_documents_merge_attachments_and_description_links() -> None:
    event = {
        "attachments": [
            {"fileUrl": "https://docs.google.com/document/d/AGENDA/edit", "title": "Agenda"},
        ],
        "description": (
            "Notes: https://docs.google.com/document/d/AGENDA/edit and "
            "slides (https://docs.google.com/presentation/d/SLIDES/edit)"
        ),
    }
    names = {"SLIDES": "Roadmap deck"}

    documents = build_documents(event, names.get)

    assert [(d.display_name, d.icon) for d in documents] == [("Agenda", "📄"), ("Roadmap deck", "📑")]


def test_unresolved_document_name_falls_back() -> None:
    def lookup(file_id: str):
        raise RuntimeError("forbidden")

    event = {"description": "https://drive.google.com/file/d/PRIVATE/view"}
    documents = build_documents(event, lookup)
    assert documents[0].display_name == DEFAULT_DOCUMENT_NAME


def test_event_to_occurrence_skips_all_day_events() -> None:
    assert event_to_occurrence({"id": "a", "summary": "Holiday", "start": {"date": "2025-03-04"}}) is None


def test_event_to_occurrence_maps_timed_event() -> None:
    event = {
        "id": "evt1",
        "summary": "[X] sig-foo: standup",
        "start": {"dateTime": "2025-03-04T10:00:00-05:00"},
        "hangoutLink": "https://meet.google.com/abc-defg-hij",
    }
    occurrence = event_to_occurrence(event)
    assert occurrence is not None
    assert occurrence.start == datetime(2025, 3, 4, 15, 0, tzinfo=timezone.utc)
    assert occurrence.meet_link == "https://meet.google.com/abc-defg-hij"
    assert occurrence.documents == ()
