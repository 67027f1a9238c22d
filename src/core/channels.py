"""Notification channel resolution."""

from __future__ import annotations

from typing import Iterable, List

from core.config import MeetingConfig
from core.models import Channel, MatchedConfig


def resolve_channels(
    match: MatchedConfig,
    meetings: Iterable[MeetingConfig],
    community_prefix: str,
) -> List[Channel]:
    """Return every destination that must hear about a matched meeting.

    Group meetings go to their own channel and to the community channel; the
    community meeting itself only goes to its own channel.
    """

    channels = [Channel(name=match.config.slack_channel, webhook=match.config.slack_webhook)]
    if community_prefix and match.prefix != community_prefix:
        for meeting in meetings:
            if meeting.prefix == community_prefix:
                channels.append(Channel(name=meeting.slack_channel, webhook=meeting.slack_webhook))
                break
    return [channel for channel in channels if channel.webhook]
