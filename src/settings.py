"""Static configuration for meetwatch.

All user-editable settings (meetings, webhooks, windows, retention) live in a
single JSON file for quick edits without touching Python. Secrets can be kept
out of the file by writing "env:NAME", which is resolved from the environment
(and .env) at load time.
"""

from __future__ import annotations

import json
import os
import re
from typing import Any, Optional

from dotenv import load_dotenv

from core.config import (
    AnnouncementConfig,
    AppConfig,
    MeetingConfig,
    PairingConfig,
    RetentionConfig,
    Role,
    ScheduleConfig,
    WindowConfig,
)
from core.errors import ConfigError

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# config.json sits at the project root unless MEETWATCH_CONFIG points elsewhere.
CONFIG_PATH = os.getenv("MEETWATCH_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))

# Where to store the SQLite property store.
DB_PATH = os.path.join(os.path.dirname(__file__), "meetwatch.db")

ENV_PREFIX = "env:"

_DAILY_TIME = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def load_json_config(path: Optional[str] = None) -> dict:
    """Load config.json with a flat, user-friendly schema."""

    path = path or CONFIG_PATH
    if not os.path.exists(path):
        raise ConfigError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as handle:
        try:
            return json.load(handle)
        except json.JSONDecodeError as e:
            raise ConfigError(f"{path} is not valid JSON: {e}") from e


def resolve_secret(value: Any) -> Any:
    """Expand "env:NAME" references; other values pass through untouched."""

    if not isinstance(value, str) or not value.startswith(ENV_PREFIX):
        return value
    load_dotenv()
    name = value[len(ENV_PREFIX):]
    resolved = os.getenv(name)
    if resolved is None:
        raise ConfigError(f"Environment variable {name} is referenced in config but not set")
    return resolved


def _int(section: dict, key: str, default: int) -> int:
    raw = section.get(key, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from e


def _parse_meetings(raw_meetings: Any) -> tuple[MeetingConfig, ...]:
    # A list keeps configuration order, which decides overlapping prefixes.
    if not isinstance(raw_meetings, list):
        raise ConfigError("meetings must be a list of objects")

    meetings: list[MeetingConfig] = []
    seen: set[str] = set()
    for entry in raw_meetings:
        prefix = (entry or {}).get("prefix")
        if not prefix:
            raise ConfigError("every meeting needs a non-empty prefix")
        if prefix in seen:
            raise ConfigError(f"duplicate meeting prefix: {prefix}")
        seen.add(prefix)
        if not entry.get("enabled", True):
            continue
        meetings.append(
            MeetingConfig(
                prefix=prefix,
                target_folder_id=entry.get("target_folder_id", ""),
                slack_webhook=resolve_secret(entry.get("slack_webhook", "")) or "",
                slack_channel=entry.get("slack_channel", ""),
                upload_to_youtube=bool(entry.get("upload_to_youtube", False)),
                youtube_playlist_id=entry.get("youtube_playlist_id") or None,
            )
        )
    return tuple(meetings)


def _parse_pairing(raw: dict) -> PairingConfig:
    defaults = PairingConfig()
    roles = raw.get("roles")
    required = defaults.required_roles
    if roles:
        required = tuple(Role(name, marker) for name, marker in roles.items())
    pairing = PairingConfig(
        required_roles=required,
        auxiliary_marker=raw.get("auxiliary_marker", defaults.auxiliary_marker),
        upload_role=raw.get("upload_role", defaults.upload_role),
    )
    try:
        pairing.marker_for(pairing.upload_role)
    except KeyError as e:
        raise ConfigError(f"upload_role {pairing.upload_role!r} is not a configured role") from e
    return pairing


def _parse_retention(raw: dict) -> RetentionConfig:
    defaults = RetentionConfig()
    retention = RetentionConfig(
        **{name: _int(raw, name, getattr(defaults, name)) for name in (
            "quota",
            "aggressive_threshold",
            "aggressive_hours",
            "moderate_threshold",
            "moderate_hours",
            "normal_hours",
            "emergency_threshold",
            "emergency_target",
            "daily_hours",
            "warning_percent",
        )},
        key_prefix=raw.get("key_prefix", defaults.key_prefix),
    )
    if not retention.emergency_target < retention.emergency_threshold <= retention.quota:
        raise ConfigError("retention needs emergency_target < emergency_threshold <= quota")
    if not retention.moderate_threshold < retention.aggressive_threshold:
        raise ConfigError("retention needs moderate_threshold < aggressive_threshold")
    return retention


def _parse_schedule(raw: dict) -> ScheduleConfig:
    defaults = ScheduleConfig()
    daily = raw.get("daily_cleanup_at", defaults.daily_cleanup_at)
    if not _DAILY_TIME.match(daily):
        raise ConfigError(f"daily_cleanup_at must be HH:MM, got {daily!r}")
    schedule = ScheduleConfig(
        calendar_interval_seconds=_int(raw, "calendar_interval_seconds", defaults.calendar_interval_seconds),
        files_interval_seconds=_int(raw, "files_interval_seconds", defaults.files_interval_seconds),
        cleanup_interval_minutes=_int(raw, "cleanup_interval_minutes", defaults.cleanup_interval_minutes),
        daily_cleanup_at=daily,
    )
    if schedule.cleanup_interval_minutes <= 0:
        raise ConfigError("cleanup_interval_minutes must be positive")
    return schedule


def build_app_config(raw: dict, debug_override: bool = False) -> AppConfig:
    """Turn the raw JSON document into the immutable AppConfig."""

    window_raw = raw.get("window", {})
    window_defaults = WindowConfig()
    window = WindowConfig(
        tolerance_seconds=_int(window_raw, "tolerance_seconds", window_defaults.tolerance_seconds),
        lookahead_seconds=_int(window_raw, "lookahead_seconds", window_defaults.lookahead_seconds),
    )

    announcements_raw = raw.get("announcements", {})
    announcement_defaults = AnnouncementConfig()
    announcements = AnnouncementConfig(
        **{
            name: announcements_raw.get(name, getattr(announcement_defaults, name))
            for name in (
                "organization",
                "community_prefix",
                "files_message",
                "shared_drive_url",
                "shared_drive_label",
                "video_description",
                "video_privacy",
            )
        }
    )

    return AppConfig(
        meetings=_parse_meetings(raw.get("meetings", [])),
        default_webhook=resolve_secret(raw.get("default_webhook", "")) or "",
        debug_mode=bool(raw.get("debug_mode", False)) or debug_override,
        calendar_id=raw.get("calendar_id", ""),
        source_folder_id=raw.get("source_folder_id", ""),
        window=window,
        retention=_parse_retention(raw.get("retention", {})),
        pairing=_parse_pairing(raw.get("pairing", {})),
        schedule=_parse_schedule(raw.get("schedule", {})),
        announcements=announcements,
    )


def require(config: AppConfig, job: str) -> None:
    """Raise ConfigError when a field the given job needs is missing."""

    missing: list[str] = []
    if not config.meetings:
        missing.append("meetings")
    if job == "calendar":
        if not config.calendar_id:
            missing.append("calendar_id")
    elif job == "files":
        if not config.source_folder_id:
            missing.append("source_folder_id")
        for meeting in config.meetings:
            if not meeting.target_folder_id:
                missing.append(f"meetings[{meeting.prefix}].target_folder_id")
    if config.debug_mode and not config.default_webhook:
        missing.append("default_webhook (required in debug mode)")
    if missing:
        raise ConfigError(f"Missing required configuration for {job}: {', '.join(missing)}")


def webhook_urls(config: AppConfig) -> list[str]:
    """Every configured webhook, for log redaction."""

    urls = [config.default_webhook] + [meeting.slack_webhook for meeting in config.meetings]
    return [url for url in urls if url]


def logging_config(raw: dict) -> dict:
    return raw.get("logging", {})


def google_paths(raw: dict) -> tuple[str, str]:
    """Return (credentials_path, token_path), relative paths anchored at the project root."""

    google = raw.get("google", {})
    paths = []
    for key, default in (("credentials_path", "credentials.json"), ("token_path", "token.json")):
        path = google.get(key, default)
        if not os.path.isabs(path):
            path = os.path.join(PROJECT_ROOT, path)
        paths.append(path)
    return paths[0], paths[1]


def db_path(raw: dict) -> str:
    path = raw.get("storage", {}).get("db_path", DB_PATH)
    if not os.path.isabs(path):
        path = os.path.join(PROJECT_ROOT, path)
    return path
