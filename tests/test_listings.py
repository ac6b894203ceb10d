from datetime import timedelta

import pytest

import listings
from conftest import make_food_item
from database import find_by_id, utcnow
from schemas import Address, FoodItem, FoodStatus


def titles(items):
    return [i["title"] for i in items]


def test_distance_km_matches_known_value():
    # Los Angeles to New York
    assert listings.distance_km((34.0522, -118.2437), (40.7128, -74.0060)) == pytest.approx(3936, rel=0.01)
    assert listings.distance_km((34.0, -118.0), (34.0, -118.0)) == 0


def test_add_food_item_forces_available_and_awards_first_share(poster):
    item = FoodItem(posted_by=poster, title="Soup", quantity="2 servings", status=FoodStatus.COLLECTED,
                    expires_at=utcnow() + timedelta(days=1), location=Address(lat=34.0, lng=-118.0))
    item_id = listings.add_food_item(item)

    doc = find_by_id("fooditem", item_id)
    assert doc["status"] == FoodStatus.AVAILABLE.value
    assert doc["posted_at"] is not None
    assert [a["achievement_id"] for a in find_by_id("user", poster)["achievements"]] == ["ach-1"]

    listings.add_food_item(item.model_copy(update={"title": "Bread"}))
    assert len(find_by_id("user", poster)["achievements"]) == 1


def test_browse_shows_only_available_and_searches_titles(poster):
    make_food_item(poster, title="Sourdough Bread")
    make_food_item(poster, title="Banana bread")
    make_food_item(poster, title="Apples")
    make_food_item(poster, title="Reserved Bread", status=FoodStatus.RESERVED)

    assert sorted(titles(listings.browse(q="BREAD"))) == ["Banana bread", "Sourdough Bread"]
    assert len(listings.browse()) == 3
    assert listings.browse(q="(") == []


def test_browse_sorts(poster):
    make_food_item(poster, title="Far", lat=34.5, lng=-118.25, expires_in=timedelta(hours=5),
                   posted_ago=timedelta(hours=3))
    make_food_item(poster, title="Near", lat=34.061, lng=-118.25, expires_in=timedelta(days=3),
                   posted_ago=timedelta(hours=2))
    make_food_item(poster, title="Middle", lat=34.2, lng=-118.25, expires_in=timedelta(days=1),
                   posted_ago=timedelta(hours=1))

    assert titles(listings.browse(sort="recent")) == ["Middle", "Near", "Far"]
    assert titles(listings.browse(sort="expiring")) == ["Far", "Middle", "Near"]
    assert titles(listings.browse(sort="distance", lat=34.06, lng=-118.25)) == ["Near", "Middle", "Far"]
    with pytest.raises(ValueError):
        listings.browse(sort="popular")


def test_nearby_limits_to_radius(poster):
    make_food_item(poster, title="Two blocks", lat=34.062, lng=-118.25)
    make_food_item(poster, title="Next door", lat=34.0601, lng=-118.25)
    make_food_item(poster, title="Other city", lat=34.152, lng=-118.255)

    found = listings.nearby(34.06, -118.25)
    assert titles(found) == ["Next door", "Two blocks"]
    assert all(i["distance_km"] <= listings.NEARBY_RADIUS_KM for i in found)


def test_expiring_soon_only_open_items_within_a_day(poster, claimer):
    make_food_item(poster, title="Soon", expires_in=timedelta(hours=3))
    make_food_item(poster, title="Later", expires_in=timedelta(hours=30))
    make_food_item(poster, title="Gone", expires_in=timedelta(hours=-1))
    make_food_item(poster, title="Held", expires_in=timedelta(hours=10), status=FoodStatus.RESERVED)
    make_food_item(poster, title="Picked up", expires_in=timedelta(hours=2), status=FoodStatus.COLLECTED)
    make_food_item(claimer, title="Not mine", expires_in=timedelta(hours=1))

    assert titles(listings.expiring_soon(poster)) == ["Soon", "Held"]
