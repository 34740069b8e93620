"""Badge vocabulary shared by the catalog, the event processor and the stats view."""
from __future__ import annotations

from enum import Enum
from typing import Any, Mapping


class BadgeCategory(str, Enum):
    """Closed set of badge categories."""

    QUEST_COMPLETION = "quest_completion"
    WAYPOINT_MILESTONE = "waypoint_milestone"
    EXPLORER = "explorer"
    SOCIAL = "social"
    STREAK = "streak"
    SPECIAL = "special"


class BadgeRarity(str, Enum):
    """Badge scarcity, declared from most common to rarest."""

    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

    @property
    def rank(self) -> int:
        return _RARITY_RANK[self]


_RARITY_RANK = {rarity: index for index, rarity in enumerate(BadgeRarity)}


class TriggerKind(str, Enum):
    """Event kinds that can advance badge progress."""

    QUEST_COMPLETED = "quest_completed"
    WAYPOINT_REACHED = "waypoint_reached"
    FRIEND_ADDED = "friend_added"
    LOGIN_STREAK = "login_streak"
    QUEST_CREATED = "quest_created"


def rarity_rank(value: str | BadgeRarity) -> int:
    """Return the ordinal of a rarity (0 for common, 4 for legendary)."""

    return BadgeRarity(value).rank


def filters_match(filters: Mapping[str, Any] | None, payload: Mapping[str, Any]) -> bool:
    """Return True when every criteria filter equals the same field of the event."""

    if not filters:
        return True
    for key, expected in filters.items():
        if key not in payload:
            return False
        if str(payload[key]) != str(expected):
            return False
    return True


__all__ = [
    "BadgeCategory",
    "BadgeRarity",
    "TriggerKind",
    "filters_match",
    "rarity_rank",
]
