"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from core.config import MeetingConfig


@dataclass(frozen=True)
class AttachedDocument:
    """A document linked from a calendar event."""

    url: str
    display_name: str
    icon: str = "📁"


@dataclass(frozen=True)
class MeetingOccurrence:
    """One scheduled instance of a (possibly recurring) calendar meeting.

    Identity is ``(event_id, start)``: a weekly series yields a new occurrence
    every week. Occurrences are recomputed on every poll and never persisted.
    """

    event_id: str
    title: str
    start: datetime
    meet_link: Optional[str] = None
    documents: Tuple[AttachedDocument, ...] = ()


@dataclass(frozen=True)
class SourceItem:
    """A file sitting in the shared drop folder."""

    id: str
    name: str
    mime_type: str = ""
    web_link: str = ""


@dataclass(frozen=True)
class MatchedConfig:
    """Result of classifying a name against the configured prefix table."""

    prefix: str
    config: MeetingConfig
    is_auxiliary: bool = False


@dataclass(frozen=True)
class MatchedOccurrence:
    """A meeting starting now together with the configuration it matched."""

    occurrence: MeetingOccurrence
    match: MatchedConfig


@dataclass(frozen=True)
class FileGroup:
    """Items sharing one matched prefix, split by auxiliary classification."""

    prefix: str
    config: MeetingConfig
    is_auxiliary: bool
    items: Tuple[SourceItem, ...] = field(default_factory=tuple)

    @property
    def key(self) -> str:
        return f"{self.prefix}_chat" if self.is_auxiliary else self.prefix


@dataclass(frozen=True)
class Channel:
    """A chat destination: display name plus its webhook credential."""

    name: str
    webhook: str


@dataclass(frozen=True)
class NotificationRecord:
    """Durable marker meaning "this occurrence has been announced"."""

    key: str
    meeting_title: str
    meeting_start: datetime
    notified_at: datetime


@dataclass(frozen=True)
class UploadMarker:
    """Records that a source item has already been pushed to video hosting."""

    uploaded: bool = False
    video_id: Optional[str] = None
    uploaded_at: Optional[datetime] = None
