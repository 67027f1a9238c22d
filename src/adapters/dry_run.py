"""Simulate-mode wrappers: reads pass through, writes are only logged."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import BinaryIO, List, Optional

from core.models import SourceItem, UploadMarker
from core.ports import DrivePort

LOGGER = logging.getLogger(__name__)


class DryRunDrive:
    """DrivePort that lists real items but never moves or marks them."""

    def __init__(self, wrapped: DrivePort) -> None:
        self._wrapped = wrapped
        self.moves: List[tuple[str, str]] = []

    def list_source_items(self) -> List[SourceItem]:
        return self._wrapped.list_source_items()

    def move_item(self, item_id: str, destination_folder_id: str) -> None:
        LOGGER.info("[simulate] would move %s to folder %s", item_id, destination_folder_id)
        self.moves.append((item_id, destination_folder_id))

    def read_item_content(self, item_id: str) -> BinaryIO:
        return self._wrapped.read_item_content(item_id)

    def get_item_name(self, item_id: str) -> Optional[str]:
        return self._wrapped.get_item_name(item_id)

    def get_upload_marker(self, item_id: str) -> UploadMarker:
        return self._wrapped.get_upload_marker(item_id)

    def set_upload_marker(self, item_id: str, video_id: str, uploaded_at: datetime) -> None:
        LOGGER.info("[simulate] would mark %s as uploaded (video %s)", item_id, video_id)


class DryRunVideoHost:
    """VideoHostPort that returns a placeholder id without uploading."""

    PLACEHOLDER_ID = "simulated-video"

    def __init__(self) -> None:
        self.uploads: List[str] = []

    def upload_video(self, content: BinaryIO, mime_type: str, title: str, description: str) -> Optional[str]:
        LOGGER.info("[simulate] would upload %r (%s)", title, mime_type or "unknown type")
        self.uploads.append(title)
        return self.PLACEHOLDER_ID

    def add_to_playlist(self, video_id: str, playlist_id: str) -> None:
        LOGGER.info("[simulate] would add %s to playlist %s", video_id, playlist_id)
