"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class MeetingConfig:
    """One configured meeting series, keyed by its title prefix."""

    prefix: str
    target_folder_id: str = ""
    slack_webhook: str = ""
    slack_channel: str = ""
    upload_to_youtube: bool = False
    youtube_playlist_id: Optional[str] = None


@dataclass(frozen=True)
class WindowConfig:
    """Meeting-start detection window, in seconds around "now"."""

    tolerance_seconds: int = 90
    lookahead_seconds: int = 180


@dataclass(frozen=True)
class RetentionConfig:
    """Slot quota and adaptive retention horizons for notification records."""

    quota: int = 50
    key_prefix: str = "notified_"
    aggressive_threshold: int = 45
    aggressive_hours: int = 4
    moderate_threshold: int = 30
    moderate_hours: int = 8
    normal_hours: int = 24
    emergency_threshold: int = 48
    emergency_target: int = 40
    daily_hours: int = 6
    warning_percent: int = 80


@dataclass(frozen=True)
class Role:
    """A required artifact category, detected by a marker substring."""

    name: str
    marker: str


@dataclass(frozen=True)
class PairingConfig:
    """Which roles make a regular file group complete."""

    required_roles: Tuple[Role, ...] = (
        Role("notes", "Notes by Gemini"),
        Role("recording", "Recording"),
    )
    auxiliary_marker: str = "Chat"
    upload_role: str = "recording"

    def marker_for(self, role_name: str) -> str:
        for role in self.required_roles:
            if role.name == role_name:
                return role.marker
        raise KeyError(role_name)


@dataclass(frozen=True)
class ScheduleConfig:
    """Trigger cadence for the scheduler loop."""

    calendar_interval_seconds: int = 60
    files_interval_seconds: int = 900
    cleanup_interval_minutes: int = 10
    daily_cleanup_at: str = "23:30"


@dataclass(frozen=True)
class AnnouncementConfig:
    """Wording used by the chat messages."""

    organization: str = "llm-d"
    community_prefix: str = ""
    files_message: str = (
        "Today's community meeting recording, transcript and AI summary are now available on the"
    )
    shared_drive_url: str = ""
    shared_drive_label: str = "shared google drive"
    video_description: str = (
        "Recording from our community meeting.\n\n"
        "Transcript and meeting notes are available on our shared Google Drive."
    )
    video_privacy: str = "public"


@dataclass(frozen=True)
class AppConfig:
    """Immutable configuration value passed to every component."""

    meetings: Tuple[MeetingConfig, ...]
    default_webhook: str = ""
    debug_mode: bool = False
    calendar_id: str = ""
    source_folder_id: str = ""
    window: WindowConfig = field(default_factory=WindowConfig)
    retention: RetentionConfig = field(default_factory=RetentionConfig)
    pairing: PairingConfig = field(default_factory=PairingConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    announcements: AnnouncementConfig = field(default_factory=AnnouncementConfig)

    def meeting(self, prefix: str) -> Optional[MeetingConfig]:
        for meeting in self.meetings:
            if meeting.prefix == prefix:
                return meeting
        return None
