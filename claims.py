"""
Claim lifecycle.

A claim moves Pending -> Accepted -> Out for Delivery -> Delivered, or ends
early as Rejected (from Pending) or Delivery Failed (from Out for Delivery).
Each status change and its side effects on the food item, the claim
conversation and the poster's achievements happen in one call.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from pymongo import ReturnDocument

import achievements
import conversations
from database import create_document, db, to_object_id, utcnow
from schemas import Claim, ClaimStatus, DeliveryOption, FoodStatus

logger = logging.getLogger(__name__)

DELIVERY_FEE = 5

TRANSITIONS = {
    ClaimStatus.PENDING: {ClaimStatus.ACCEPTED, ClaimStatus.REJECTED},
    ClaimStatus.ACCEPTED: {ClaimStatus.OUT_FOR_DELIVERY},
    ClaimStatus.OUT_FOR_DELIVERY: {ClaimStatus.DELIVERED, ClaimStatus.DELIVERY_FAILED},
}
TERMINAL = {ClaimStatus.REJECTED, ClaimStatus.DELIVERED, ClaimStatus.DELIVERY_FAILED}
# claims in these states hold their food item as Reserved
ACTIVE = {ClaimStatus.ACCEPTED, ClaimStatus.OUT_FOR_DELIVERY}


class InvalidTransition(ValueError):
    def __init__(self, current, requested):
        super().__init__(f"Cannot move a claim from {current} to {requested}")
        self.current = current
        self.requested = requested


class ClaimConflict(Exception):
    """The claim or its food item changed underneath the requested update."""


@dataclass
class ClaimUpdate:
    success: bool
    claim: dict
    conversation_id: Optional[str] = None


def can_transition(current, new) -> bool:
    return ClaimStatus(new) in TRANSITIONS.get(ClaimStatus(current), set())


def add_claim(food_item_id: str, claimer_id: str, poster_id: str, reason: str, delivery_option) -> str:
    delivery_option = DeliveryOption(delivery_option)
    claim = Claim(
        food_item_id=food_item_id,
        claimer_id=claimer_id,
        poster_id=poster_id,
        reason=reason,
        delivery_option=delivery_option,
        requested_at=utcnow(),
        delivery_fee=DELIVERY_FEE if delivery_option is DeliveryOption.PLATFORM_DELIVERY else None,
    )
    claim_id = create_document("claim", claim)
    logger.info("Claim %s requested on food item %s by %s", claim_id, food_item_id, claimer_id)
    return claim_id


def _active_claim_exists(food_item_id: str) -> bool:
    return db["claim"].count_documents(
        {"food_item_id": food_item_id, "status": {"$in": [s.value for s in ACTIVE]}}
    ) > 0


def sync_food_status(food_item_id: str) -> str:
    """Reserved while any claim holds the item, Available otherwise. Collected is final."""
    oid = to_object_id(food_item_id)
    new_status = FoodStatus.RESERVED if _active_claim_exists(food_item_id) else FoodStatus.AVAILABLE
    db["fooditem"].update_one(
        {"_id": oid, "status": {"$ne": FoodStatus.COLLECTED.value}},
        {"$set": {"status": new_status.value, "updated_at": utcnow()}},
    )
    return new_status.value


def _reserve_food_item(claim: dict):
    reserved = db["fooditem"].find_one_and_update(
        {"_id": to_object_id(claim["food_item_id"]), "status": FoodStatus.AVAILABLE.value},
        {"$set": {"status": FoodStatus.RESERVED.value, "updated_at": utcnow()}},
    )
    if reserved is None:
        raise ClaimConflict(f"Food item {claim['food_item_id']} is no longer available")


def _on_delivered(claim: dict):
    db["fooditem"].update_one(
        {"_id": to_object_id(claim["food_item_id"])},
        {"$set": {"status": FoodStatus.COLLECTED.value, "updated_at": utcnow()}},
    )
    delivered = db["claim"].count_documents(
        {"poster_id": claim["poster_id"], "status": ClaimStatus.DELIVERED.value}
    )
    achievements.on_claim_delivered(claim["poster_id"], delivered)

    partner_id = claim.get("delivery_partner_id")
    fee = claim.get("delivery_fee")
    if partner_id and fee:
        db["user"].update_one(
            {"_id": to_object_id(partner_id), "delivery_partner": {"$ne": None}},
            {"$inc": {"delivery_partner.earnings": fee}},
        )


def update_claim_status(claim_id: str, new_status) -> Optional[ClaimUpdate]:
    """Move a claim to new_status and apply its side effects.

    Returns None when the claim does not exist. Raises InvalidTransition for a
    move the lifecycle does not allow and ClaimConflict when the claim or its
    food item was changed concurrently.
    """
    new_status = ClaimStatus(new_status)
    oid = to_object_id(claim_id)
    if oid is None:
        return None
    claim = db["claim"].find_one({"_id": oid})
    if not claim:
        return None
    current = ClaimStatus(claim["status"])
    if not can_transition(current, new_status):
        raise InvalidTransition(current.value, new_status.value)

    if new_status is ClaimStatus.ACCEPTED:
        _reserve_food_item(claim)

    updated = db["claim"].find_one_and_update(
        {"_id": oid, "status": current.value},
        {"$set": {"status": new_status.value, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        if new_status is ClaimStatus.ACCEPTED:
            sync_food_status(claim["food_item_id"])
        raise ClaimConflict(f"Claim {claim_id} changed while updating")

    logger.info("Claim %s: %s -> %s", claim_id, current.value, new_status.value)
    conversation_id = None
    if new_status is ClaimStatus.ACCEPTED:
        conversation = conversations.ensure_claim_conversation(
            claim_id, [updated["poster_id"], updated["claimer_id"]]
        )
        conversation_id = str(conversation["_id"])
    elif new_status in (ClaimStatus.REJECTED, ClaimStatus.DELIVERY_FAILED):
        sync_food_status(updated["food_item_id"])
    elif new_status is ClaimStatus.DELIVERED:
        _on_delivered(updated)

    return ClaimUpdate(success=True, claim=updated, conversation_id=conversation_id)


def get_claim(claim_id: str) -> Optional[dict]:
    oid = to_object_id(claim_id)
    if oid is None:
        return None
    return db["claim"].find_one({"_id": oid})


def claims_made_by(user_id: str):
    return list(db["claim"].find({"claimer_id": user_id}).sort("requested_at", -1))


def claims_received_by(user_id: str, status: Optional[str] = None):
    filt = {"poster_id": user_id}
    if status:
        filt["status"] = ClaimStatus(status).value
    return list(db["claim"].find(filt).sort("requested_at", -1))
