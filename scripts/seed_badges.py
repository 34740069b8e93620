"""Seed the default badge catalog into the database."""
from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

from app.db.session import SessionLocal
from app.schemas.badge import BadgeCreate
from app.services.badge_catalog import BadgeCatalog


def get_default_badges() -> list[BadgeCreate]:
    """Return the default badge set."""

    return [
        BadgeCreate(
            id="quest_first_complete",
            name="First Quest",
            description="Complete your first quest",
            category="quest_completion",
            rarity="common",
            points=10,
            icon="🏆",
            criteria={"event_type": "quest_completed", "threshold": 1},
        ),
        BadgeCreate(
            id="quest_veteran",
            name="Quest Veteran",
            description="Complete 25 quests",
            category="quest_completion",
            rarity="epic",
            points=150,
            icon="🎖️",
            criteria={"event_type": "quest_completed", "threshold": 25},
        ),
        BadgeCreate(
            id="waypoint_first",
            name="First Steps",
            description="Reach your first waypoint",
            category="waypoint_milestone",
            rarity="common",
            points=5,
            icon="📍",
            criteria={"event_type": "waypoint_reached", "threshold": 1},
        ),
        BadgeCreate(
            id="explorer_10_waypoints",
            name="Explorer",
            description="Visit 10 waypoints",
            category="explorer",
            rarity="uncommon",
            points=25,
            icon="🗺️",
            criteria={"event_type": "waypoint_reached", "threshold": 10},
        ),
        BadgeCreate(
            id="pathfinder_100_waypoints",
            name="Pathfinder",
            description="Visit 100 waypoints",
            category="explorer",
            rarity="legendary",
            points=500,
            icon="🧭",
            criteria={"event_type": "waypoint_reached", "threshold": 100},
        ),
        BadgeCreate(
            id="social_butterfly",
            name="Social Butterfly",
            description="Add 5 friends",
            category="social",
            rarity="rare",
            points=50,
            icon="🦋",
            criteria={"event_type": "friend_added", "threshold": 5},
        ),
        BadgeCreate(
            id="streak_week",
            name="Week Warrior",
            description="Log in on 7 days",
            category="streak",
            rarity="uncommon",
            points=30,
            icon="🔥",
            criteria={"event_type": "login_streak", "threshold": 7},
        ),
        BadgeCreate(
            id="quest_author",
            name="Cartographer",
            description="Create your first quest",
            category="special",
            rarity="rare",
            points=40,
            icon="✏️",
            criteria={"event_type": "quest_created", "threshold": 1},
        ),
        BadgeCreate(
            id="secret_trailblazer",
            name="Trailblazer",
            description="Create 10 quests",
            category="special",
            rarity="epic",
            points=200,
            icon="🌄",
            criteria={"event_type": "quest_created", "threshold": 10},
            hidden=True,
        ),
    ]


def main() -> None:
    db = SessionLocal()
    try:
        created = BadgeCatalog(db).seed_badges(get_default_badges())
        print(f"Seeded badge catalog ({created} new badges).")
    finally:
        db.close()


if __name__ == "__main__":
    main()
