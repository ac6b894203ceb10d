import pytest

import claims
import delivery
from conftest import make_food_item, make_partner, make_user
from database import db, find_by_id
from schemas import ClaimStatus, DeliveryOption, PartnerAvailability, VerificationStatus


@pytest.fixture
def open_job(poster, claimer):
    item = make_food_item(poster)
    claim_id = claims.add_claim(item, claimer, poster, "Shelter treat", DeliveryOption.PLATFORM_DELIVERY)
    claims.update_claim_status(claim_id, ClaimStatus.ACCEPTED)
    return claim_id


def job_ids(jobs, bucket):
    return {str(j["_id"]) for j in jobs[bucket]}


def test_accepting_job_assigns_partner_and_joins_chat(open_job, poster, claimer, partner):
    claim = delivery.accept_delivery_job(open_job, partner)

    assert claim["delivery_partner_id"] == partner
    conversation = db["conversation"].find_one({"claim_id": open_job})
    assert conversation["participant_ids"] == [poster, claimer, partner]
    notice = db["chatmessage"].find_one({"conversation_id": str(conversation["_id"])})
    assert notice["is_system_message"] is True
    assert notice["sender_id"] == "system"
    assert notice["text"] == "Diana has accepted the delivery job and joined the chat."


def test_two_partners_racing_for_one_job(open_job, partner):
    rival = make_partner("Dave")
    delivery.accept_delivery_job(open_job, partner)

    with pytest.raises(delivery.JobConflict):
        delivery.accept_delivery_job(open_job, rival)
    assert find_by_id("claim", open_job)["delivery_partner_id"] == partner


def test_job_must_be_accepted_platform_delivery(poster, claimer, partner):
    item = make_food_item(poster)
    pending = claims.add_claim(item, claimer, poster, "", DeliveryOption.PLATFORM_DELIVERY)
    with pytest.raises(delivery.JobConflict):
        delivery.accept_delivery_job(pending, partner)

    pickup_item = make_food_item(poster, title="Soup")
    pickup = claims.add_claim(pickup_item, claimer, poster, "", DeliveryOption.CLAIMER_PICKUP)
    claims.update_claim_status(pickup, ClaimStatus.ACCEPTED)
    with pytest.raises(delivery.JobConflict):
        delivery.accept_delivery_job(pickup, partner)


def test_unknown_partner_or_claim_degrades_to_none(open_job, partner):
    assert delivery.accept_delivery_job(open_job, "000000000000000000000000") is None
    assert delivery.accept_delivery_job("000000000000000000000000", partner) is None
    assert find_by_id("claim", open_job).get("delivery_partner_id") is None


def test_job_partition(poster, claimer, partner):
    other = make_partner("Dave")
    ids = {}
    for name in ("open", "mine_active", "mine_moving", "mine_done", "theirs"):
        item = make_food_item(poster, title=name)
        ids[name] = claims.add_claim(item, claimer, poster, "", DeliveryOption.PLATFORM_DELIVERY)
        claims.update_claim_status(ids[name], ClaimStatus.ACCEPTED)
    delivery.accept_delivery_job(ids["mine_active"], partner)
    delivery.accept_delivery_job(ids["mine_moving"], partner)
    delivery.accept_delivery_job(ids["mine_done"], partner)
    delivery.accept_delivery_job(ids["theirs"], other)
    claims.update_claim_status(ids["mine_moving"], ClaimStatus.OUT_FOR_DELIVERY)
    claims.update_claim_status(ids["mine_done"], ClaimStatus.OUT_FOR_DELIVERY)
    claims.update_claim_status(ids["mine_done"], ClaimStatus.DELIVERED)

    jobs = delivery.delivery_jobs(partner)

    assert job_ids(jobs, "available") == {ids["open"]}
    assert job_ids(jobs, "active") == {ids["mine_active"], ids["mine_moving"]}
    assert job_ids(jobs, "history") == {ids["mine_done"]}
    assert not job_ids(jobs, "available") & job_ids(jobs, "active")
    assert not job_ids(jobs, "active") & job_ids(jobs, "history")
    assert jobs["available"][0]["distance_km"] == pytest.approx(1.4, abs=0.1)


def test_verification_flow():
    dave = make_partner("Dave", verified=False)

    doc = delivery.submit_verification_docs(dave, "/docs/license.pdf", "/docs/insurance.pdf")
    assert doc["delivery_partner"]["verification_status"] == VerificationStatus.PENDING.value
    assert doc["delivery_partner"]["drivers_license_url"] == "/docs/license.pdf"
    assert [str(u["_id"]) for u in delivery.pending_verifications()] == [dave]

    doc = delivery.update_verification_status(dave, VerificationStatus.VERIFIED)
    assert delivery.is_verified_partner(doc)
    assert delivery.pending_verifications() == []


def test_verification_decision_must_be_final():
    dave = make_partner("Dave", verified=False)
    with pytest.raises(ValueError):
        delivery.update_verification_status(dave, VerificationStatus.PENDING)


def test_partner_profile_changes_ignore_regular_members():
    member = make_user("Bob")
    assert delivery.submit_verification_docs(member, "a", "b") is None
    assert delivery.set_availability(member, PartnerAvailability.ONLINE) is None


def test_availability_toggle(partner):
    doc = delivery.set_availability(partner, "Online")
    assert doc["delivery_partner"]["availability"] == "Online"
    doc = delivery.set_availability(partner, PartnerAvailability.OFFLINE)
    assert doc["delivery_partner"]["availability"] == "Offline"
