"""Google Drive adapter for the file organizer."""

from __future__ import annotations

import logging
import tempfile
from datetime import datetime
from typing import BinaryIO, List, Optional

from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload

from core.dedup import format_instant, parse_instant
from core.models import SourceItem, UploadMarker

LOGGER = logging.getLogger(__name__)

UPLOADED = "youtube_uploaded"
VIDEO_ID = "youtube_video_id"
UPLOAD_DATE = "youtube_upload_date"


def marker_from_properties(properties: Optional[dict]) -> UploadMarker:
    """Read an UploadMarker out of a file's appProperties."""

    properties = properties or {}
    if properties.get(UPLOADED) != "true":
        return UploadMarker()
    uploaded_at = None
    if properties.get(UPLOAD_DATE):
        try:
            uploaded_at = parse_instant(properties[UPLOAD_DATE])
        except ValueError:
            uploaded_at = None
    return UploadMarker(uploaded=True, video_id=properties.get(VIDEO_ID), uploaded_at=uploaded_at)


class GoogleDriveFiles:
    """DrivePort backed by the Drive v3 API, scoped to one drop folder."""

    def __init__(self, service, source_folder_id: str) -> None:
        self._service = service
        self._source_folder_id = source_folder_id

    def list_source_items(self) -> List[SourceItem]:
        items: List[SourceItem] = []
        page_token = None
        while True:
            result = (
                self._service.files()
                .list(
                    q=f"'{self._source_folder_id}' in parents and trashed = false",
                    fields="nextPageToken, files(id, name, mimeType, webViewLink)",
                    pageSize=100,
                    pageToken=page_token,
                    supportsAllDrives=True,
                    includeItemsFromAllDrives=True,
                )
                .execute()
            )
            for entry in result.get("files", []):
                items.append(
                    SourceItem(
                        id=entry["id"],
                        name=entry.get("name", ""),
                        mime_type=entry.get("mimeType", ""),
                        web_link=entry.get("webViewLink", ""),
                    )
                )
            page_token = result.get("nextPageToken")
            if not page_token:
                break
        return items

    def move_item(self, item_id: str, destination_folder_id: str) -> None:
        """Replace every current parent with the destination folder."""

        current = (
            self._service.files()
            .get(fileId=item_id, fields="parents", supportsAllDrives=True)
            .execute()
        )
        parents = ",".join(current.get("parents", []))
        self._service.files().update(
            fileId=item_id,
            addParents=destination_folder_id,
            removeParents=parents,
            fields="id, parents",
            supportsAllDrives=True,
        ).execute()

    def read_item_content(self, item_id: str) -> BinaryIO:
        """Download the file into a spooled temp file and rewind it."""

        buffer = tempfile.SpooledTemporaryFile(max_size=64 * 1024 * 1024)
        request = self._service.files().get_media(fileId=item_id, supportsAllDrives=True)
        downloader = MediaIoBaseDownload(buffer, request, chunksize=16 * 1024 * 1024)
        done = False
        while not done:
            status, done = downloader.next_chunk()
            if status:
                LOGGER.debug("Downloaded %d%% of %s", int(status.progress() * 100), item_id)
        buffer.seek(0)
        return buffer

    def get_item_name(self, item_id: str) -> Optional[str]:
        try:
            result = (
                self._service.files()
                .get(fileId=item_id, fields="name", supportsAllDrives=True)
                .execute()
            )
        except HttpError as error:
            LOGGER.info("Could not read name of %s: %s", item_id, error)
            return None
        return result.get("name")

    def get_upload_marker(self, item_id: str) -> UploadMarker:
        result = (
            self._service.files()
            .get(fileId=item_id, fields="appProperties", supportsAllDrives=True)
            .execute()
        )
        return marker_from_properties(result.get("appProperties"))

    def set_upload_marker(self, item_id: str, video_id: str, uploaded_at: datetime) -> None:
        self._service.files().update(
            fileId=item_id,
            body={
                "appProperties": {
                    UPLOADED: "true",
                    VIDEO_ID: video_id,
                    UPLOAD_DATE: format_instant(uploaded_at),
                }
            },
            fields="id",
            supportsAllDrives=True,
        ).execute()
        LOGGER.info("Marked %s as uploaded (video %s)", item_id, video_id)
