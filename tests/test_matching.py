from __future__ import annotations

from core.config import MeetingConfig, PairingConfig
from core.matching import (
    PREFIX,
    actionable_groups,
    find_matching_config,
    group_items,
    is_auxiliary,
    items_with_role,
    missing_roles,
)
from core.models import SourceItem

MEETINGS = (
    MeetingConfig(prefix="[X] sig-foo", target_folder_id="F1"),
    MeetingConfig(prefix="[X] sig-bar", target_folder_id="F2"),
)


def _item(item_id: str, name: str) -> SourceItem:
    return SourceItem(id=item_id, name=name)


def test_contains_match_finds_prefix_anywhere() -> None:
    match = find_matching_config("Copy of [X] sig-foo Recording", MEETINGS)
    assert match is not None
    assert match.prefix == "[X] sig-foo"


def test_prefix_match_requires_start() -> None:
    assert find_matching_config("Copy of [X] sig-foo", MEETINGS, PREFIX) is None
    match = find_matching_config("[X] sig-foo: standup", MEETINGS, PREFIX)
    assert match is not None and match.config.target_folder_id == "F1"


def test_no_match_returns_none() -> None:
    assert find_matching_config("Quarterly planning", MEETINGS) is None


def test_first_configured_prefix_wins_on_overlap() -> None:
    meetings = (
        MeetingConfig(prefix="[X] sig"),
        MeetingConfig(prefix="[X] sig-foo"),
    )
    match = find_matching_config("[X] sig-foo Recording", meetings)
    assert match is not None
    assert match.prefix == "[X] sig"


def test_auxiliary_flag_is_substring_of_marker() -> None:
    assert is_auxiliary("[X] sig-foo Chat", "Chat")
    assert not is_auxiliary("[X] sig-foo Recording", "Chat")
    assert not is_auxiliary("anything", "")

    match = find_matching_config("[X] sig-foo Chat", MEETINGS, auxiliary_marker="Chat")
    assert match is not None and match.is_auxiliary


def test_group_items_splits_auxiliary_and_drops_unmatched() -> None:
    pairing = PairingConfig()
    items = [
        _item("1", "[X] sig-foo Notes by Gemini"),
        _item("2", "[X] sig-foo Recording"),
        _item("3", "[X] sig-foo Chat"),
        _item("4", "Holiday photos"),
        _item("5", "[X] sig-bar Recording"),
    ]

    groups = group_items(items, MEETINGS, pairing)

    assert [(g.prefix, g.is_auxiliary) for g in groups] == [
        ("[X] sig-foo", False),
        ("[X] sig-bar", False),
        ("[X] sig-foo", True),
    ]
    assert [i.id for i in groups[0].items] == ["1", "2"]
    assert groups[2].key == "[X] sig-foo_chat"


def test_missing_roles_and_actionable_groups() -> None:
    pairing = PairingConfig()
    items = [
        _item("1", "[X] sig-foo Notes by Gemini"),
        _item("2", "[X] sig-foo Recording"),
        _item("5", "[X] sig-bar Recording"),
        _item("6", "[X] sig-bar Chat"),
    ]

    groups = group_items(items, MEETINGS, pairing)
    bar = [g for g in groups if g.prefix == "[X] sig-bar" and not g.is_auxiliary][0]
    assert missing_roles(bar, pairing) == ["notes"]

    ready = actionable_groups(items, MEETINGS, pairing)
    assert [(g.prefix, g.is_auxiliary) for g in ready] == [
        ("[X] sig-foo", False),
        ("[X] sig-bar", True),
    ]


def test_items_with_role_selects_recordings() -> None:
    pairing = PairingConfig()
    groups = group_items(
        [_item("1", "[X] sig-foo Notes by Gemini"), _item("2", "[X] sig-foo Recording")],
        MEETINGS,
        pairing,
    )
    assert [i.id for i in items_with_role(groups[0], "recording", pairing)] == ["2"]
