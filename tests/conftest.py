from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from database import create_document, reset_database, utcnow
from main import app
from schemas import (
    Address,
    DeliveryPartnerProfile,
    FoodItem,
    GeoPoint,
    User,
    UserRole,
    VerificationStatus,
)


@pytest.fixture(autouse=True)
def clean_db():
    reset_database()
    yield


@pytest.fixture
def client():
    return TestClient(app)


def make_user(name="Alice", lat=34.06, lng=-118.25, **kwargs):
    return create_document("user", User(name=name, email=f"{name.lower()}@nourish.net",
                                        location=GeoPoint(lat=lat, lng=lng), **kwargs))


def make_partner(name="Diana", verified=True, lat=34.05, lng=-118.23):
    status = VerificationStatus.VERIFIED if verified else VerificationStatus.NOT_SUBMITTED
    return make_user(name, lat=lat, lng=lng, role=UserRole.DELIVERY_PARTNER,
                     delivery_partner=DeliveryPartnerProfile(verification_status=status, vehicle_type="Sedan"))


def make_food_item(posted_by, title="Sourdough Bread", lat=34.06, lng=-118.25, expires_in=timedelta(days=2),
                   posted_ago=timedelta(0), **kwargs):
    now = utcnow()
    item = FoodItem(posted_by=posted_by, title=title, quantity="1 Loaf", posted_at=now - posted_ago,
                    expires_at=now + expires_in, location=Address(lat=lat, lng=lng, address="123 Bakery Ln"),
                    **kwargs)
    return create_document("fooditem", item)


@pytest.fixture
def poster():
    return make_user("Alice")


@pytest.fixture
def claimer():
    return make_user("Charlie", lat=34.07, lng=-118.26)


@pytest.fixture
def partner():
    return make_partner("Diana")
