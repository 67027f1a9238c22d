"""Prefix matching and file grouping logic (core domain)."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from core.config import MeetingConfig, PairingConfig
from core.models import FileGroup, MatchedConfig, SourceItem

LOGGER = logging.getLogger(__name__)

CONTAINS = "contains"
PREFIX = "prefix"


def is_auxiliary(name: str, marker: str) -> bool:
    """Return True for items that never need a pairing partner (chat logs)."""

    return bool(marker) and marker in name


def find_matching_config(
    name: str,
    meetings: Iterable[MeetingConfig],
    mode: str = CONTAINS,
    auxiliary_marker: str = "",
) -> Optional[MatchedConfig]:
    """Return the first configured meeting whose prefix matches ``name``.

    Matching logic:
    - ``contains``: the prefix appears anywhere in the name (file organizer).
    - ``prefix``: the name starts with the prefix (calendar watcher).
    - Configuration order is the tie-break when prefixes overlap.
    """

    if mode == CONTAINS:
        def hit(prefix: str) -> bool:
            return prefix in name
    elif mode == PREFIX:
        def hit(prefix: str) -> bool:
            return name.startswith(prefix)
    else:
        raise ValueError(f"Unsupported match mode: {mode}")

    for meeting in meetings:
        if meeting.prefix and hit(meeting.prefix):
            return MatchedConfig(
                prefix=meeting.prefix,
                config=meeting,
                is_auxiliary=is_auxiliary(name, auxiliary_marker),
            )
    return None


def group_items(
    items: Iterable[SourceItem],
    meetings: Iterable[MeetingConfig],
    pairing: PairingConfig,
) -> List[FileGroup]:
    """Partition matched items by prefix, keeping auxiliary items apart.

    Groups come back in configuration order, regular groups before auxiliary
    ones. Items matching no prefix are dropped.
    """

    meetings = list(meetings)
    buckets: dict[tuple[str, bool], list[SourceItem]] = {}
    for item in items:
        match = find_matching_config(item.name, meetings, CONTAINS, pairing.auxiliary_marker)
        if match is None:
            continue
        buckets.setdefault((match.prefix, match.is_auxiliary), []).append(item)

    groups: List[FileGroup] = []
    for auxiliary in (False, True):
        for meeting in meetings:
            bucket = buckets.get((meeting.prefix, auxiliary))
            if bucket:
                groups.append(
                    FileGroup(
                        prefix=meeting.prefix,
                        config=meeting,
                        is_auxiliary=auxiliary,
                        items=tuple(bucket),
                    )
                )
    return groups


def missing_roles(group: FileGroup, pairing: PairingConfig) -> List[str]:
    """Return the names of required roles with no item in the group."""

    if group.is_auxiliary:
        return []
    return [
        role.name
        for role in pairing.required_roles
        if not any(role.marker in item.name for item in group.items)
    ]


def is_actionable(group: FileGroup, pairing: PairingConfig) -> bool:
    return not missing_roles(group, pairing)


def items_with_role(group: FileGroup, role_name: str, pairing: PairingConfig) -> List[SourceItem]:
    marker = pairing.marker_for(role_name)
    return [item for item in group.items if marker in item.name]


def actionable_groups(
    items: Iterable[SourceItem],
    meetings: Iterable[MeetingConfig],
    pairing: PairingConfig,
) -> List[FileGroup]:
    """Return the groups ready to be acted on this tick.

    Incomplete groups are deferred, not failed: they are re-evaluated from the
    live listing on every tick and become actionable once the missing item
    shows up.
    """

    ready: List[FileGroup] = []
    for group in group_items(items, meetings, pairing):
        missing = missing_roles(group, pairing)
        if missing:
            LOGGER.info(
                "Incomplete pair for %r (missing: %s), waiting for a later run",
                group.prefix,
                ", ".join(missing),
            )
            continue
        ready.append(group)
    return ready
