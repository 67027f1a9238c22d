from __future__ import annotations

from core.channels import resolve_channels
from core.config import MeetingConfig
from core.models import Channel, MatchedConfig

COMMUNITY = MeetingConfig(prefix="[X] Community Meeting", slack_channel="#community", slack_webhook="W0")
FOO = MeetingConfig(prefix="[X] sig-foo", slack_channel="#sig-foo", slack_webhook="W1")
SILENT = MeetingConfig(prefix="[X] sig-quiet", slack_channel="#sig-quiet")
MEETINGS = (COMMUNITY, FOO, SILENT)


def _match(config: MeetingConfig) -> MatchedConfig:
    return MatchedConfig(prefix=config.prefix, config=config)


def test_group_meeting_fans_out_to_community() -> None:
    channels = resolve_channels(_match(FOO), MEETINGS, COMMUNITY.prefix)
    assert channels == [Channel("#sig-foo", "W1"), Channel("#community", "W0")]


def test_community_meeting_only_goes_to_its_own_channel() -> None:
    channels = resolve_channels(_match(COMMUNITY), MEETINGS, COMMUNITY.prefix)
    assert channels == [Channel("#community", "W0")]


def test_destinations_without_webhook_are_dropped() -> None:
    channels = resolve_channels(_match(SILENT), MEETINGS, COMMUNITY.prefix)
    assert channels == [Channel("#community", "W0")]


def test_no_community_prefix_means_no_fan_out() -> None:
    channels = resolve_channels(_match(FOO), MEETINGS, "")
    assert channels == [Channel("#sig-foo", "W1")]
