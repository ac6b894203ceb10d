"""Delivery jobs for platform-delivery claims and delivery partner profiles."""
import logging
from typing import Dict, List, Optional

from pymongo import ReturnDocument

import conversations
from database import db, find_by_id, to_object_id, utcnow
from listings import distance_km
from schemas import ClaimStatus, DeliveryOption, PartnerAvailability, VerificationStatus

logger = logging.getLogger(__name__)

IN_PROGRESS = [ClaimStatus.ACCEPTED.value, ClaimStatus.OUT_FOR_DELIVERY.value]


class JobConflict(Exception):
    """Another partner already took the job, or it is no longer open."""


def is_verified_partner(user: Optional[dict]) -> bool:
    profile = (user or {}).get("delivery_partner") or {}
    return profile.get("verification_status") == VerificationStatus.VERIFIED.value


def accept_delivery_job(claim_id: str, partner_id: str) -> Optional[dict]:
    """Assign partner_id to an open job.

    Only succeeds while the claim is Accepted, uses platform delivery and has
    no partner. Returns the updated claim, or None if the claim or partner
    does not exist.
    """
    partner = find_by_id("user", partner_id)
    if not partner or not find_by_id("claim", claim_id):
        return None

    claim = db["claim"].find_one_and_update(
        {
            "_id": to_object_id(claim_id),
            "status": ClaimStatus.ACCEPTED.value,
            "delivery_option": DeliveryOption.PLATFORM_DELIVERY.value,
            "delivery_partner_id": None,
        },
        {"$set": {"delivery_partner_id": partner_id, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if claim is None:
        raise JobConflict(f"Delivery job {claim_id} is not open")

    logger.info("Partner %s accepted delivery job %s", partner_id, claim_id)
    conversation = conversations.conversation_for_claim(claim_id)
    if conversation:
        conversations.add_participant(conversation["_id"], partner_id)
        conversations.add_system_message(
            str(conversation["_id"]),
            f"{partner.get('name', 'Your delivery partner')} has accepted the delivery job and joined the chat.",
        )
    return claim


def _with_distance(claim: dict, users: Dict[str, dict]) -> dict:
    job = dict(claim)
    poster = users.get(claim.get("poster_id")) or {}
    claimer = users.get(claim.get("claimer_id")) or {}
    a, b = poster.get("location"), claimer.get("location")
    if a and b:
        job["distance_km"] = round(distance_km((a["lat"], a["lng"]), (b["lat"], b["lng"])), 1)
    else:
        job["distance_km"] = None
    return job


def delivery_jobs(partner_id: str) -> Dict[str, List[dict]]:
    """Split platform-delivery claims into available, active and history for one partner."""
    platform = list(db["claim"].find({"delivery_option": DeliveryOption.PLATFORM_DELIVERY.value}).sort("requested_at", -1))
    user_ids = {c.get("poster_id") for c in platform} | {c.get("claimer_id") for c in platform}
    oids = [o for o in (to_object_id(u) for u in user_ids) if o is not None]
    users = {str(u["_id"]): u for u in db["user"].find({"_id": {"$in": oids}})}

    jobs = {"available": [], "active": [], "history": []}
    for claim in platform:
        partner = claim.get("delivery_partner_id")
        if not partner:
            if claim["status"] == ClaimStatus.ACCEPTED.value:
                jobs["available"].append(_with_distance(claim, users))
        elif partner == partner_id:
            bucket = "active" if claim["status"] in IN_PROGRESS else "history"
            jobs[bucket].append(_with_distance(claim, users))
    return jobs


# ------------------------
# Partner profile
# ------------------------
def submit_verification_docs(user_id: str, license_url: str, insurance_url: str) -> Optional[dict]:
    return db["user"].find_one_and_update(
        {"_id": to_object_id(user_id), "delivery_partner": {"$ne": None}},
        {"$set": {
            "delivery_partner.verification_status": VerificationStatus.PENDING.value,
            "delivery_partner.drivers_license_url": license_url,
            "delivery_partner.insurance_url": insurance_url,
            "updated_at": utcnow(),
        }},
        return_document=ReturnDocument.AFTER,
    )


def update_verification_status(partner_id: str, status) -> Optional[dict]:
    status = VerificationStatus(status)
    if status not in (VerificationStatus.VERIFIED, VerificationStatus.REJECTED):
        raise ValueError("Verification can only be approved or rejected")
    doc = db["user"].find_one_and_update(
        {"_id": to_object_id(partner_id), "delivery_partner": {"$ne": None}},
        {"$set": {"delivery_partner.verification_status": status.value, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if doc:
        logger.info("Partner %s verification: %s", partner_id, status.value)
    return doc


def set_availability(partner_id: str, availability) -> Optional[dict]:
    availability = PartnerAvailability(availability)
    return db["user"].find_one_and_update(
        {"_id": to_object_id(partner_id), "delivery_partner": {"$ne": None}},
        {"$set": {"delivery_partner.availability": availability.value, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )


def pending_verifications() -> List[dict]:
    return list(db["user"].find({"delivery_partner.verification_status": VerificationStatus.PENDING.value}))
