"""Conversations, chat messages and direct chat requests."""
import logging
from typing import List, Optional

from pymongo import ASCENDING, DESCENDING, ReturnDocument

from database import create_document, db, to_object_id, utcnow
from schemas import ChatMessage, ChatRequest, ChatRequestStatus, Conversation

logger = logging.getLogger(__name__)

SYSTEM_SENDER = "system"


def create_conversation(participant_ids: List[str]) -> str:
    return create_document("conversation", Conversation(participant_ids=participant_ids))


def ensure_claim_conversation(claim_id: str, participant_ids: List[str]) -> dict:
    """Get or create the single conversation tied to a claim."""
    now = utcnow()
    doc = db["conversation"].find_one_and_update(
        {"claim_id": claim_id},
        {"$setOnInsert": {"participant_ids": participant_ids, "created_at": now, "updated_at": now}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return doc


def conversation_for_claim(claim_id: str) -> Optional[dict]:
    return db["conversation"].find_one({"claim_id": claim_id})


def add_participant(conversation_id, user_id: str):
    db["conversation"].update_one(
        {"_id": to_object_id(conversation_id)},
        {"$addToSet": {"participant_ids": user_id}, "$set": {"updated_at": utcnow()}},
    )


def add_chat_message(conversation_id: str, sender_id: str, text: str, is_system_message: bool = False) -> str:
    message = ChatMessage(
        conversation_id=str(conversation_id),
        sender_id=sender_id,
        text=text,
        timestamp=utcnow(),
        is_system_message=is_system_message,
    )
    return create_document("chatmessage", message)


def add_system_message(conversation_id: str, text: str) -> str:
    return add_chat_message(conversation_id, SYSTEM_SENDER, text, is_system_message=True)


def messages_for(conversation_id: str, limit: int = 200) -> List[dict]:
    cursor = db["chatmessage"].find({"conversation_id": conversation_id}).sort("timestamp", ASCENDING)
    return list(cursor.limit(limit))


def conversations_for_user(user_id: str) -> List[dict]:
    return list(db["conversation"].find({"participant_ids": user_id}).sort("created_at", DESCENDING))


# ------------------------
# Chat requests
# ------------------------
def send_chat_request(from_user_id: str, to_user_id: str) -> str:
    # dedup of pending requests is left to the caller
    return create_document("chatrequest", ChatRequest(from_user_id=from_user_id, to_user_id=to_user_id))


def answer_chat_request(request_id: str, answer: str) -> Optional[str]:
    """Resolve a pending request. Accepting returns the new conversation id."""
    if answer not in ("accept", "reject"):
        raise ValueError("answer must be 'accept' or 'reject'")
    oid = to_object_id(request_id)
    if oid is None:
        return None
    new_status = ChatRequestStatus.ACCEPTED if answer == "accept" else ChatRequestStatus.REJECTED
    request = db["chatrequest"].find_one_and_update(
        {"_id": oid, "status": ChatRequestStatus.PENDING.value},
        {"$set": {"status": new_status.value, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not request:
        return None
    if new_status is ChatRequestStatus.REJECTED:
        return None
    conversation_id = create_conversation([request["from_user_id"], request["to_user_id"]])
    logger.info("Chat request %s accepted, conversation %s", request_id, conversation_id)
    return conversation_id


def chat_requests_for(user_id: str, status: Optional[str] = ChatRequestStatus.PENDING.value) -> List[dict]:
    filt = {"to_user_id": user_id}
    if status:
        filt["status"] = status
    return list(db["chatrequest"].find(filt).sort("created_at", DESCENDING))
