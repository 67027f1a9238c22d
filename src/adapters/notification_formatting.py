"""Shared Slack message formatting helpers.

Keeping formatting here prevents drift between the two jobs and keeps
messages consistent regardless of which webhook they end up on.
"""

from __future__ import annotations

import copy
import re
from datetime import datetime, timezone
from typing import Iterable, Optional

from core.config import AnnouncementConfig
from core.models import Channel, MatchedOccurrence, SourceItem

TEST_PREFIX = "🧪 *TEST NOTIFICATION* - This would normally be posted to {channel}\n\n"

_GROUP_NAME = re.compile(r"sig-([a-z-]+)", re.IGNORECASE)


def escape_mrkdwn(value: str) -> str:
    """Escape the three characters Slack treats as control sequences."""

    return value.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _link(url: str, label: str) -> str:
    return f"<{url}|{escape_mrkdwn(label)}>"


def section_payload(text: str, fallback: Optional[str] = None) -> dict:
    """Build the standard ``{text, blocks: [section]}`` webhook payload."""

    return {
        "text": fallback if fallback is not None else text,
        "blocks": [
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": text},
            }
        ],
    }


def extract_group_name(title: str) -> str:
    """Return ``sig-<name>``, ``Community Meeting`` or the full title."""

    match = _GROUP_NAME.search(title)
    if match:
        return f"sig-{match.group(1)}"
    if "Community Meeting" in title:
        return "Community Meeting"
    return title


def format_meeting_message(
    meeting: MatchedOccurrence,
    channel: Channel,
    community_channel: Optional[str],
    announcements: AnnouncementConfig,
) -> dict:
    """Create the "meeting is starting now" payload for one channel."""

    occurrence = meeting.occurrence
    group_name = extract_group_name(occurrence.title)
    org = f"{announcements.organization} " if announcements.organization else ""
    posted_to_community = bool(community_channel) and channel.name == community_channel

    if group_name.startswith("sig-") and posted_to_community:
        text = (
            f":bell: The weekly public {org}{group_name} meeting is starting NOW!\n\n"
            f"Join the {meeting.match.config.slack_channel} channel for detailed discussion."
        )
    else:
        text = f":bell: The weekly public {org}{group_name} meeting is starting NOW! Join us!"

    if occurrence.meet_link:
        text += f"\n\n:video_camera: <{occurrence.meet_link}|Join Google Meet>"

    if occurrence.documents:
        text += "\n\n:memo: Meeting Notes:"
        for document in occurrence.documents:
            text += f"\n• {document.icon} {_link(document.url, document.display_name)}"

    return section_payload(text)


def format_files_message(items: Iterable[SourceItem], announcements: AnnouncementConfig) -> dict:
    """Create the "files are now available" payload for a moved group."""

    lines = [
        f"• {_link(item.web_link, item.name)}" if item.web_link else f"• {escape_mrkdwn(item.name)}"
        for item in items
    ]
    intro = announcements.files_message
    if announcements.shared_drive_url:
        headline = f"{intro} {_link(announcements.shared_drive_url, announcements.shared_drive_label)}:"
        fallback = f"{intro} {announcements.shared_drive_label}:"
    else:
        headline = f"{intro} {announcements.shared_drive_label}:"
        fallback = headline
    return section_payload(headline + "\n" + "\n".join(lines), fallback=fallback)


def _timestamp(now: Optional[datetime]) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_error_message(title: str, detail: str, now: Optional[datetime] = None) -> dict:
    """Create the error payload sent to the default webhook."""

    return {
        "text": "❌ meetwatch error",
        "blocks": [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": "❌ meetwatch error"},
            },
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*{title}*\n```{detail}```"},
            },
            {
                "type": "context",
                "elements": [{"type": "mrkdwn", "text": f"🕐 {_timestamp(now)}"}],
            },
        ],
    }


def format_debug_message(message: str, now: Optional[datetime] = None) -> dict:
    """Create the warning/diagnostic payload sent to the default webhook."""

    return section_payload(
        f"🧪 *meetwatch*\n{message}\n🕐 {_timestamp(now)}",
        fallback="🧪 meetwatch",
    )


def with_test_prefix(payload: dict, channel_name: str) -> dict:
    """Return a copy of ``payload`` marked as a test for ``channel_name``."""

    marked = copy.deepcopy(payload)
    prefix = TEST_PREFIX.format(channel=channel_name)
    marked["text"] = prefix + marked.get("text", "")
    blocks = marked.get("blocks") or []
    if blocks and isinstance(blocks[0].get("text"), dict):
        blocks[0]["text"]["text"] = prefix + blocks[0]["text"].get("text", "")
    return marked
