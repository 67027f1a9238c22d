from __future__ import annotations

from datetime import datetime, timezone

from adapters.dry_run import DryRunDrive, DryRunVideoHost
from adapters.google_drive import marker_from_properties
from core.models import SourceItem

from fakes import FakeDrive


def test_marker_from_app_properties() -> None:
    marker = marker_from_properties(
        {
            "youtube_uploaded": "true",
            "youtube_video_id": "yt1",
            "youtube_upload_date": "2025-03-04T15:00:00.000Z",
        }
    )
    assert marker.uploaded
    assert marker.video_id == "yt1"
    assert marker.uploaded_at == datetime(2025, 3, 4, 15, tzinfo=timezone.utc)


def test_missing_or_false_marker() -> None:
    assert not marker_from_properties(None).uploaded
    assert not marker_from_properties({"youtube_uploaded": "false"}).uploaded


def test_dry_run_drive_reads_through_and_skips_writes() -> None:
    wrapped = FakeDrive([SourceItem(id="1", name="a")])
    drive = DryRunDrive(wrapped)

    assert [item.id for item in drive.list_source_items()] == ["1"]
    drive.move_item("1", "F1")
    drive.set_upload_marker("1", "yt", datetime(2025, 3, 4, tzinfo=timezone.utc))

    assert wrapped.moves == []
    assert wrapped.markers == {}
    assert drive.moves == [("1", "F1")]


def test_dry_run_video_host_returns_placeholder() -> None:
    host = DryRunVideoHost()
    assert host.upload_video(None, "video/mp4", "title", "desc") == DryRunVideoHost.PLACEHOLDER_ID
    assert host.uploads == ["title"]
