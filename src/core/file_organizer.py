"""File organizer job.

Per tick: list the drop folder, build complete groups, then for each group
upload recordings (when enabled), move the items and announce them. Uploads
always happen before the move so a failed upload leaves the group untouched
in the drop folder and the whole group is retried on the next tick.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from core.config import AppConfig
from core.errors import UploadError
from core.matching import actionable_groups, items_with_role
from core.models import Channel, FileGroup, SourceItem
from core.ports import DrivePort, ErrorReporterPort, NotifierPort, VideoHostPort

LOGGER = logging.getLogger(__name__)


@dataclass
class OrganizeSummary:
    """Counters for one file organizer tick."""

    items: int = 0
    groups: int = 0
    moved: int = 0
    announced: int = 0
    failed_groups: int = 0


class FileOrganizer:
    """Moves complete meeting artifact groups to their destination folders."""

    def __init__(
        self,
        drive: DrivePort,
        notifier: NotifierPort,
        reporter: ErrorReporterPort,
        config: AppConfig,
        video_host: Optional[VideoHostPort] = None,
    ) -> None:
        self._drive = drive
        self._notifier = notifier
        self._reporter = reporter
        self._config = config
        self._video_host = video_host

    def tick(self) -> OrganizeSummary:
        """Run one pass over the drop folder."""

        summary = OrganizeSummary()
        try:
            items = self._drive.list_source_items()
        except Exception as exc:
            LOGGER.exception("Listing the source folder failed")
            self._reporter.report("Listing meeting files failed", str(exc))
            return summary
        summary.items = len(items)

        groups = actionable_groups(items, self._config.meetings, self._config.pairing)
        summary.groups = len(groups)
        if not groups:
            LOGGER.info("No complete meeting groups to process (%s items listed)", len(items))
            return summary

        for group in groups:
            try:
                self._process(group, summary)
            except Exception as exc:
                LOGGER.exception("Processing %r failed", group.key)
                summary.failed_groups += 1
                self._reporter.report(f"Processing failed for {group.key!r}", str(exc))
        return summary

    def _process(self, group: FileGroup, summary: OrganizeSummary) -> None:
        LOGGER.info("Processing %s files for %r", len(group.items), group.key)

        if not self._upload_recordings(group):
            LOGGER.warning("Skipping move for %r because an upload failed", group.key)
            summary.failed_groups += 1
            return

        moved: List[SourceItem] = []
        failures: List[str] = []
        for item in group.items:
            try:
                self._drive.move_item(item.id, group.config.target_folder_id)
                moved.append(item)
                LOGGER.info("Moved %r", item.name)
            except Exception as exc:
                LOGGER.exception("Moving %r failed", item.name)
                failures.append(f"{item.name}: {exc}")
        summary.moved += len(moved)

        if failures:
            summary.failed_groups += 1
            self._reporter.report(f"Moving files failed for {group.key!r}", "\n".join(failures))

        if group.is_auxiliary:
            LOGGER.info("Not announcing auxiliary files for %r", group.key)
            return
        if not moved:
            return
        if not group.config.slack_webhook:
            LOGGER.info("No webhook configured for %r, skipping announcement", group.prefix)
            return

        channel = Channel(name=group.config.slack_channel, webhook=group.config.slack_webhook)
        self._notifier.announce_files(group, moved, channel)
        summary.announced += 1

    def _upload_recordings(self, group: FileGroup) -> bool:
        """Push recordings to video hosting; False when any upload failed."""

        if group.is_auxiliary or not group.config.upload_to_youtube:
            return True
        if self._video_host is None:
            LOGGER.warning("Uploads enabled for %r but no video host is configured", group.prefix)
            return True

        pairing = self._config.pairing
        recordings = items_with_role(group, pairing.upload_role, pairing)
        succeeded = True
        for item in recordings:
            try:
                self._upload_one(item, group)
            except Exception as exc:
                LOGGER.exception("Upload of %r failed", item.name)
                self._reporter.report(f"Video upload failed for {item.name}", str(exc))
                succeeded = False
        return succeeded

    def _upload_one(self, item: SourceItem, group: FileGroup) -> None:
        marker = self._drive.get_upload_marker(item.id)
        if marker.uploaded:
            LOGGER.info("Skipping %r, already uploaded as %s", item.name, marker.video_id)
            return

        content = self._drive.read_item_content(item.id)
        try:
            video_id = self._video_host.upload_video(
                content,
                item.mime_type,
                item.name,
                self._config.announcements.video_description,
            )
        finally:
            content.close()
        if not video_id:
            raise UploadError(f"No video id returned for {item.name}")

        LOGGER.info("Uploaded %r as video %s", item.name, video_id)
        try:
            self._drive.set_upload_marker(item.id, video_id, datetime.now(timezone.utc))
        except Exception as exc:
            # The video exists now; failing the group here would upload it again.
            LOGGER.exception("Marking %r as uploaded failed", item.name)
            self._reporter.report(f"Error marking {item.name} as uploaded", str(exc))

        playlist_id = group.config.youtube_playlist_id
        if playlist_id:
            try:
                self._video_host.add_to_playlist(video_id, playlist_id)
            except Exception as exc:
                LOGGER.exception("Adding video %s to playlist failed", video_id)
                self._reporter.report(f"Failed to add {item.name} to playlist", str(exc))
