"""Ports (interfaces) used by the core jobs.

Ports define the minimal contracts for calendar, drive, video hosting, chat
and storage adapters so that the core can be reused with different backends
and unit-tested with in-memory fakes.
"""

from __future__ import annotations

from datetime import datetime
from typing import BinaryIO, Optional, Protocol

from core.models import Channel, FileGroup, MatchedOccurrence, MeetingOccurrence, SourceItem, UploadMarker


class CalendarPort(Protocol):
    """Read access to the shared calendar."""

    def list_upcoming_occurrences(
        self, window_start: datetime, window_end: datetime
    ) -> list[MeetingOccurrence]:
        ...


class DrivePort(Protocol):
    """File storage operations required by the file organizer."""

    def list_source_items(self) -> list[SourceItem]:
        ...

    def move_item(self, item_id: str, destination_folder_id: str) -> None:
        """Remove the item from all current folders and add it to the destination."""
        ...

    def read_item_content(self, item_id: str) -> BinaryIO:
        ...

    def get_item_name(self, item_id: str) -> Optional[str]:
        ...

    def get_upload_marker(self, item_id: str) -> UploadMarker:
        ...

    def set_upload_marker(self, item_id: str, video_id: str, uploaded_at: datetime) -> None:
        ...


class VideoHostPort(Protocol):
    """Third-party video hosting used for recordings."""

    def upload_video(self, content: BinaryIO, mime_type: str, title: str, description: str) -> Optional[str]:
        ...

    def add_to_playlist(self, video_id: str, playlist_id: str) -> None:
        ...


class MessengerPort(Protocol):
    """Raw webhook transport."""

    def send_message(self, webhook_url: str, payload: dict) -> int:
        ...


class PropertyStorePort(Protocol):
    """Bounded key-value store shared with other configuration."""

    def get_property(self, key: str) -> Optional[str]:
        ...

    def set_property(self, key: str, value: str) -> None:
        ...

    def delete_property(self, key: str) -> None:
        ...

    def list_properties(self) -> dict[str, str]:
        ...


class NotifierPort(Protocol):
    """Announcement operations required by the jobs."""

    def announce_meeting(self, meeting: MatchedOccurrence, channel: Channel) -> None:
        ...

    def announce_files(self, group: FileGroup, items: list[SourceItem], channel: Channel) -> None:
        ...


class ErrorReporterPort(Protocol):
    """Out-of-band reporting channel for failures and warnings."""

    def report(self, title: str, detail: str) -> None:
        ...

    def warn(self, message: str) -> None:
        ...
