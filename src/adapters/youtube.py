"""YouTube Data API v3 adapter for recording uploads."""

from __future__ import annotations

import logging
from typing import BinaryIO, Optional

from googleapiclient.http import MediaIoBaseUpload

LOGGER = logging.getLogger(__name__)

SCIENCE_AND_TECHNOLOGY = "28"


class YouTubeUploader:
    """VideoHostPort using a resumable upload."""

    def __init__(self, service, privacy_status: str = "public", chunk_size: int = 16 * 1024 * 1024) -> None:
        self._service = service
        self._privacy_status = privacy_status
        self._chunk_size = chunk_size

    def upload_video(self, content: BinaryIO, mime_type: str, title: str, description: str) -> Optional[str]:
        body = {
            "snippet": {
                "title": title[:100],
                "description": description,
                "categoryId": SCIENCE_AND_TECHNOLOGY,
            },
            "status": {"privacyStatus": self._privacy_status},
        }
        media = MediaIoBaseUpload(
            content,
            mimetype=mime_type or "video/mp4",
            chunksize=self._chunk_size,
            resumable=True,
        )
        request = self._service.videos().insert(part="snippet,status", body=body, media_body=media)
        response = None
        while response is None:
            status, response = request.next_chunk()
            if status:
                LOGGER.info("Uploading %r: %d%%", title, int(status.progress() * 100))
        return response.get("id")

    def add_to_playlist(self, video_id: str, playlist_id: str) -> None:
        self._service.playlistItems().insert(
            part="snippet",
            body={
                "snippet": {
                    "playlistId": playlist_id,
                    "resourceId": {"kind": "youtube#video", "videoId": video_id},
                }
            },
        ).execute()
        LOGGER.info("Added video %s to playlist %s", video_id, playlist_id)
