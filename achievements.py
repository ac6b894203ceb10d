"""Badge catalog and awarding rules."""
import logging
from typing import List

from database import db, to_object_id, utcnow

logger = logging.getLogger(__name__)

ACHIEVEMENTS = [
    {"id": "ach-1", "title": "First Share", "description": "Posted your first food item.", "icon": "fas fa-seedling"},
    {"id": "ach-2", "title": "Community Pioneer", "description": "Completed a successful share.", "icon": "fas fa-handshake-angle"},
    {"id": "ach-3", "title": "Good Samaritan", "description": "Shared 5 items with the community.", "icon": "fas fa-heart"},
    {"id": "ach-4", "title": "Generous Giver", "description": "Shared 10 items with the community.", "icon": "fas fa-gift"},
]
ACHIEVEMENTS_BY_ID = {a["id"]: a for a in ACHIEVEMENTS}

FIRST_SHARE = "ach-1"
# delivered-claim count (including the one just delivered) -> badge
DELIVERY_MILESTONES = {1: "ach-2", 5: "ach-3", 10: "ach-4"}


def award_achievement(user_id: str, achievement_id: str) -> bool:
    """Give a badge to a user once. Returns True only when it was newly added."""
    if achievement_id not in ACHIEVEMENTS_BY_ID:
        raise KeyError(f"Unknown achievement {achievement_id}")
    oid = to_object_id(user_id)
    if oid is None:
        return False
    user = db["user"].find_one({"_id": oid})
    if not user:
        return False
    if any(a.get("achievement_id") == achievement_id for a in user.get("achievements", [])):
        return False
    db["user"].update_one(
        {"_id": oid},
        {"$push": {"achievements": {"achievement_id": achievement_id, "unlocked_at": utcnow()}}},
    )
    logger.info("%s unlocked achievement %s", user.get("name", user_id), achievement_id)
    return True


def on_food_posted(user_id: str, previous_count: int) -> List[str]:
    if previous_count == 0 and award_achievement(user_id, FIRST_SHARE):
        return [FIRST_SHARE]
    return []


def on_claim_delivered(poster_id: str, delivered_count: int) -> List[str]:
    achievement_id = DELIVERY_MILESTONES.get(delivered_count)
    if achievement_id and award_achievement(poster_id, achievement_id):
        return [achievement_id]
    return []


def achievements_for(user: dict) -> List[dict]:
    """Catalog entries a user has unlocked, with their unlock time."""
    unlocked = []
    for record in user.get("achievements", []):
        entry = ACHIEVEMENTS_BY_ID.get(record.get("achievement_id"))
        if entry:
            unlocked.append({**entry, "unlocked_at": record.get("unlocked_at")})
    return unlocked
