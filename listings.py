"""Food item posting and browsing."""
import logging
import re
from datetime import timedelta
from math import atan2, cos, radians, sin, sqrt
from typing import List, Optional

import achievements
from database import as_utc, create_document, db, utcnow
from schemas import FoodItem, FoodStatus

logger = logging.getLogger(__name__)

NEARBY_RADIUS_KM = 5.0
EXPIRY_WARNING = timedelta(hours=24)
SORT_OPTIONS = ("recent", "expiring", "distance")


def distance_km(a, b):
    """Haversine distance between two (lat, lng) pairs."""
    R = 6371.0
    dlat = radians(b[0] - a[0])
    dlon = radians(b[1] - a[1])
    x = sin(dlat / 2) ** 2 + cos(radians(a[0])) * cos(radians(b[0])) * sin(dlon / 2) ** 2
    return 2 * R * atan2(sqrt(x), sqrt(1 - x))


def add_food_item(item: FoodItem) -> str:
    previous = db["fooditem"].count_documents({"posted_by": item.posted_by})
    data = item.model_copy(update={"status": FoodStatus.AVAILABLE.value, "posted_at": utcnow()})
    item_id = create_document("fooditem", data)
    logger.info("Food item %s posted by %s", item_id, item.posted_by)
    achievements.on_food_posted(item.posted_by, previous)
    return item_id


def _item_distance(item: dict, lat: float, lng: float) -> Optional[float]:
    loc = item.get("location")
    if not loc or "lat" not in loc or "lng" not in loc:
        return None
    return distance_km((lat, lng), (loc["lat"], loc["lng"]))


def browse(q: Optional[str] = None, sort: str = "recent", lat: Optional[float] = None, lng: Optional[float] = None) -> List[dict]:
    """Available items, optionally filtered by title and sorted."""
    if sort not in SORT_OPTIONS:
        raise ValueError(f"sort must be one of {', '.join(SORT_OPTIONS)}")
    filt = {"status": FoodStatus.AVAILABLE.value}
    if q:
        filt["title"] = {"$regex": re.escape(q), "$options": "i"}
    items = list(db["fooditem"].find(filt))
    if lat is not None and lng is not None:
        for item in items:
            item["distance_km"] = _item_distance(item, lat, lng)

    if sort == "expiring":
        items.sort(key=lambda i: as_utc(i["expires_at"]))
    elif sort == "distance" and lat is not None and lng is not None:
        items.sort(key=lambda i: float("inf") if i["distance_km"] is None else i["distance_km"])
    else:
        items.sort(key=lambda i: as_utc(i.get("posted_at") or i["created_at"]), reverse=True)
    return items


def nearby(lat: float, lng: float, radius_km: float = NEARBY_RADIUS_KM) -> List[dict]:
    results = []
    for item in db["fooditem"].find({"status": FoodStatus.AVAILABLE.value}):
        dist = _item_distance(item, lat, lng)
        if dist is not None and dist <= radius_km:
            item["distance_km"] = dist
            results.append(item)
    results.sort(key=lambda i: i["distance_km"])
    return results


def expiring_soon(user_id: str, now=None) -> List[dict]:
    """A poster's open items that expire within the next 24 hours."""
    now = now or utcnow()
    open_items = db["fooditem"].find({
        "posted_by": user_id,
        "status": {"$in": [FoodStatus.AVAILABLE.value, FoodStatus.RESERVED.value]},
    })
    soon = []
    for item in open_items:
        left = as_utc(item["expires_at"]) - now
        if timedelta(0) < left <= EXPIRY_WARNING:
            soon.append(item)
    soon.sort(key=lambda i: as_utc(i["expires_at"]))
    return soon
