"""Google Calendar adapter and event mapping.

The mapping helpers are plain functions over the API's event dicts so they
can be tested without the client library doing any network calls.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Callable, List, Optional

from googleapiclient.errors import HttpError

from core.dedup import format_instant
from core.models import AttachedDocument, MeetingOccurrence

LOGGER = logging.getLogger(__name__)

_MEET_LINK = re.compile(r"https://meet\.google\.com/[a-z-]+")
_DRIVE_LINK = re.compile(r"https://(?:docs|drive)\.google\.com/[^\s)>\"]+")
_FILE_ID_PATTERNS = [
    re.compile(r"/file/d/([a-zA-Z0-9_-]+)"),
    re.compile(r"/document/d/([a-zA-Z0-9_-]+)"),
    re.compile(r"/spreadsheets/d/([a-zA-Z0-9_-]+)"),
    re.compile(r"/presentation/d/([a-zA-Z0-9_-]+)"),
    re.compile(r"[?&]id=([a-zA-Z0-9_-]+)"),
]

DEFAULT_DOCUMENT_NAME = "Google Drive File"

NameLookup = Callable[[str], Optional[str]]


def extract_file_id(url: str) -> Optional[str]:
    """Return the Drive file id embedded in a Docs/Drive URL, if any."""

    for pattern in _FILE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def document_icon(url: str) -> str:
    if "/document/" in url:
        return "📄"
    if "/spreadsheets/" in url:
        return "📊"
    if "/presentation/" in url:
        return "📑"
    return "📁"


def extract_meet_link(event: dict) -> Optional[str]:
    """Prefer conference entry points, then fall back to description/location text."""

    conference = event.get("conferenceData") or {}
    for entry in conference.get("entryPoints", []) or []:
        uri = entry.get("uri") or ""
        if entry.get("entryPointType") == "video" and "meet.google.com" in uri:
            return uri

    if event.get("hangoutLink"):
        return event["hangoutLink"]

    for text in (event.get("description") or "", event.get("location") or ""):
        match = _MEET_LINK.search(text)
        if match:
            return match.group(0)
    return None


def extract_document_links(event: dict) -> List[str]:
    """Collect attachment URLs plus any Docs/Drive links in the description."""

    links: List[str] = []
    for attachment in event.get("attachments", []) or []:
        url = attachment.get("fileUrl")
        if url and url not in links:
            links.append(url)
    for url in _DRIVE_LINK.findall(event.get("description") or ""):
        if url not in links:
            links.append(url)
    return links


def build_documents(event: dict, name_lookup: Optional[NameLookup] = None) -> List[AttachedDocument]:
    titles = {
        attachment.get("fileUrl"): attachment.get("title")
        for attachment in event.get("attachments", []) or []
    }
    documents: List[AttachedDocument] = []
    for url in extract_document_links(event):
        name = titles.get(url)
        file_id = extract_file_id(url)
        if not name and file_id and name_lookup is not None:
            try:
                name = name_lookup(file_id)
            except Exception:
                LOGGER.warning("Could not resolve a name for Drive file %s", file_id)
                name = None
        icon = document_icon(url) if file_id else "📁"
        documents.append(AttachedDocument(url=url, display_name=name or DEFAULT_DOCUMENT_NAME, icon=icon))
    return documents


def parse_event_start(event: dict) -> Optional[datetime]:
    """Return the aware start instant, or None for all-day events."""

    start = (event.get("start") or {}).get("dateTime")
    if not start:
        return None
    parsed = datetime.fromisoformat(start.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def event_to_occurrence(event: dict, name_lookup: Optional[NameLookup] = None) -> Optional[MeetingOccurrence]:
    """Map one API event to a MeetingOccurrence; None if it has no instant start."""

    start = parse_event_start(event)
    if start is None or event.get("status") == "cancelled":
        return None
    return MeetingOccurrence(
        event_id=event.get("id", ""),
        title=event.get("summary", ""),
        start=start,
        meet_link=extract_meet_link(event),
        documents=tuple(build_documents(event, name_lookup)),
    )


class GoogleCalendarSource:
    """CalendarPort backed by the Calendar v3 API."""

    def __init__(self, service, calendar_id: str, name_lookup: Optional[NameLookup] = None) -> None:
        self._service = service
        self._calendar_id = calendar_id
        self._name_lookup = name_lookup

    def list_upcoming_occurrences(
        self, window_start: datetime, window_end: datetime
    ) -> List[MeetingOccurrence]:
        occurrences: List[MeetingOccurrence] = []
        page_token = None
        try:
            while True:
                result = (
                    self._service.events()
                    .list(
                        calendarId=self._calendar_id,
                        timeMin=format_instant(window_start),
                        timeMax=format_instant(window_end),
                        singleEvents=True,
                        orderBy="startTime",
                        supportsAttachments=True,
                        pageToken=page_token,
                    )
                    .execute()
                )
                for event in result.get("items", []):
                    occurrence = event_to_occurrence(event, self._name_lookup)
                    if occurrence is not None:
                        occurrences.append(occurrence)
                page_token = result.get("nextPageToken")
                if not page_token:
                    break
        except HttpError as error:
            raise RuntimeError(f"Calendar API error for {self._calendar_id}: {error}") from error
        LOGGER.debug("Fetched %s occurrences between %s and %s", len(occurrences), window_start, window_end)
        return occurrences
