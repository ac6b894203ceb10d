import logging
import os
from datetime import datetime
from typing import Dict, Literal, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

import achievements
import claims as claim_service
import conversations
import delivery
import genai
import listings
from database import create_document, db, find_by_id, get_documents, to_object_id, utcnow
from schemas import (
    ChatMessage,
    Claim,
    ClaimStatus,
    CommunityPost,
    Conversation,
    DeliveryOption,
    DeliveryPartnerProfile,
    FoodItem,
    FoodStatus,
    GeoPoint,
    PartnerAvailability,
    Report,
    User,
    UserRole,
    VerificationStatus,
)
from seed import seed_sample

logger = logging.getLogger(__name__)

app = FastAPI(title="NourishNet Food Sharing API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------
# Helpers
# ------------------------
def serialize_doc(doc):
    if not doc:
        return doc
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    # convert datetimes to isoformat
    for k, v in list(doc.items()):
        if isinstance(v, datetime):
            doc[k] = v.isoformat()
        if isinstance(v, list):
            doc[k] = [serialize_doc(i) if isinstance(i, dict) else i for i in v]
        if isinstance(v, dict):
            doc[k] = serialize_doc(v)
    return doc


def require(collection: str, id_value: str, label: str) -> dict:
    doc = find_by_id(collection, id_value)
    if not doc:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return doc


# ------------------------
# Health
# ------------------------
@app.get("/")
def read_root():
    return {"message": "NourishNet API is running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        if db is not None:
            response["database"] = "✅ Available"
            response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "⚠️ Not Set (in-memory)"
            response["database_name"] = db.name
            response["connection_status"] = "Connected"
            try:
                collections = db.list_collection_names()
                response["collections"] = collections[:10]
                response["database"] = "✅ Connected & Working"
            except Exception as e:
                response["database"] = f"⚠️ Connected but Error: {str(e)[:50]}"
        else:
            response["database"] = "⚠️ Available but not initialized"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:50]}"
    return response


@app.get("/schema")
def get_schema():
    models = {
        "user": User, "fooditem": FoodItem, "claim": Claim, "conversation": Conversation,
        "chatmessage": ChatMessage, "communitypost": CommunityPost, "report": Report,
    }
    return {
        "collections": list(models),
        "models": {name: model.model_json_schema() for name, model in models.items()},
    }


@app.post("/seed")
def seed():
    ids = seed_sample()
    return {"inserted": ids}


@app.get("/achievements")
def list_achievements():
    return {"items": achievements.ACHIEVEMENTS}


# ------------------------
# Users
# ------------------------
class CreateUserRequest(User):
    pass


class RegisterRequest(BaseModel):
    name: str
    email: str


class LoginRequest(BaseModel):
    user_id: str


class UpdateUserRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[GeoPoint] = None
    social_links: Optional[Dict[str, str]] = None


class RoleRequest(BaseModel):
    role: UserRole


class FollowRequest(BaseModel):
    follower_id: str


def public_user(doc):
    data = serialize_doc(doc)
    data["achievements"] = [serialize_doc(a) for a in achievements.achievements_for(doc)]
    return data


@app.post("/users")
def create_user(payload: CreateUserRequest):
    user_id = create_document("user", payload)
    return public_user(find_by_id("user", user_id))


@app.post("/auth/register")
def register(body: RegisterRequest):
    existing = db["user"].find_one({"email": body.email})
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")
    user = User(
        name=body.name,
        email=body.email,
        avatar_url=f"https://picsum.photos/seed/{body.name}/100",
        role=UserRole.APPLICANT,
        location=GeoPoint(lat=40.7128, lng=-74.0060),
        bio="A new member of the NourishNet community!",
    )
    user_id = create_document("user", user)
    return public_user(find_by_id("user", user_id))


@app.post("/auth/login")
def login(body: LoginRequest):
    doc = find_by_id("user", body.user_id)
    if not doc:
        raise HTTPException(status_code=401, detail="Unknown user")
    return public_user(doc)


@app.get("/users")
def list_users(role: Optional[UserRole] = None):
    filt = {"role": role.value} if role else {}
    return {"items": [public_user(d) for d in get_documents("user", filt)]}


@app.get("/users/{user_id}")
def get_user(user_id: str):
    return public_user(require("user", user_id, "User"))


@app.patch("/users/{user_id}")
def update_user(user_id: str, body: UpdateUserRequest):
    require("user", user_id, "User")
    changes = body.model_dump(exclude_none=True)
    if changes:
        changes["updated_at"] = utcnow()
        db["user"].update_one({"_id": to_object_id(user_id)}, {"$set": changes})
    return public_user(find_by_id("user", user_id))


@app.put("/users/{user_id}/role")
def update_user_role(user_id: str, body: RoleRequest):
    user = require("user", user_id, "User")
    changes = {"role": body.role.value, "updated_at": utcnow()}
    if body.role is UserRole.DELIVERY_PARTNER and not user.get("delivery_partner"):
        changes["delivery_partner"] = DeliveryPartnerProfile().model_dump(exclude_none=True)
    db["user"].update_one({"_id": to_object_id(user_id)}, {"$set": changes})
    return public_user(find_by_id("user", user_id))


@app.delete("/users/{user_id}")
def remove_user(user_id: str):
    result = db["user"].delete_one({"_id": to_object_id(user_id)})
    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail="User not found")
    db["user"].update_many({}, {"$pull": {"following": user_id, "followers": user_id}})
    return {"removed": user_id}


@app.post("/users/{user_id}/follow")
def toggle_follow_user(user_id: str, body: FollowRequest):
    if body.follower_id == user_id:
        raise HTTPException(status_code=400, detail="Users cannot follow themselves")
    follower = require("user", body.follower_id, "Follower")
    require("user", user_id, "User")
    following = user_id in follower.get("following", [])
    if following:
        db["user"].update_one({"_id": to_object_id(body.follower_id)}, {"$pull": {"following": user_id}})
        db["user"].update_one({"_id": to_object_id(user_id)}, {"$pull": {"followers": body.follower_id}})
    else:
        db["user"].update_one({"_id": to_object_id(body.follower_id)}, {"$addToSet": {"following": user_id}})
        db["user"].update_one({"_id": to_object_id(user_id)}, {"$addToSet": {"followers": body.follower_id}})
    return {"following": not following}


@app.get("/users/{user_id}/expiring-items")
def expiring_items(user_id: str):
    return {"items": [serialize_doc(d) for d in listings.expiring_soon(user_id)]}


# ------------------------
# Food items
# ------------------------
class CreateFoodItemRequest(FoodItem):
    pass


class DescribeRequest(BaseModel):
    title: str = Field(..., min_length=1)


@app.post("/food-items")
def create_food_item(payload: CreateFoodItemRequest):
    require("user", payload.posted_by, "Poster")
    item_id = listings.add_food_item(payload)
    return serialize_doc(find_by_id("fooditem", item_id))


@app.get("/food-items")
def list_food_items(q: Optional[str] = None, sort: Literal["recent", "expiring", "distance"] = "recent",
                    lat: Optional[float] = None, lng: Optional[float] = None):
    items = listings.browse(q=q, sort=sort, lat=lat, lng=lng)
    return {"items": [serialize_doc(d) for d in items]}


@app.get("/food-items/nearby")
def nearby_food_items(lat: float, lng: float, radius_km: float = listings.NEARBY_RADIUS_KM):
    return {"items": [serialize_doc(d) for d in listings.nearby(lat, lng, radius_km)]}


@app.post("/food-items/describe")
def describe_food_item(body: DescribeRequest):
    return {"description": genai.generate_food_description(body.title)}


@app.get("/food-items/{item_id}")
def get_food_item(item_id: str):
    return serialize_doc(require("fooditem", item_id, "Food item"))


# ------------------------
# Claims
# ------------------------
class CreateClaimRequest(BaseModel):
    food_item_id: str
    claimer_id: str
    reason: str = ""
    delivery_option: DeliveryOption


class ClaimStatusRequest(BaseModel):
    status: ClaimStatus


@app.post("/claims")
def create_claim(body: CreateClaimRequest):
    item = require("fooditem", body.food_item_id, "Food item")
    require("user", body.claimer_id, "Claimer")
    if item["posted_by"] == body.claimer_id:
        raise HTTPException(status_code=400, detail="You cannot claim your own item")
    if item.get("status") != FoodStatus.AVAILABLE.value:
        raise HTTPException(status_code=400, detail="Only available items can be claimed")
    claim_id = claim_service.add_claim(
        body.food_item_id, body.claimer_id, item["posted_by"], body.reason, body.delivery_option
    )
    return serialize_doc(claim_service.get_claim(claim_id))


@app.get("/claims")
def list_claims(claimer_id: Optional[str] = None, poster_id: Optional[str] = None, status: Optional[ClaimStatus] = None):
    if claimer_id:
        docs = claim_service.claims_made_by(claimer_id)
    elif poster_id:
        docs = claim_service.claims_received_by(poster_id, status.value if status else None)
    else:
        filt = {"status": status.value} if status else {}
        docs = get_documents("claim", filt, sort=[("requested_at", -1)])
    return {"items": [serialize_doc(d) for d in docs]}


@app.get("/claims/{claim_id}")
def get_claim(claim_id: str):
    return serialize_doc(require("claim", claim_id, "Claim"))


@app.post("/claims/{claim_id}/status")
def update_claim_status(claim_id: str, body: ClaimStatusRequest):
    try:
        result = claim_service.update_claim_status(claim_id, body.status)
    except claim_service.InvalidTransition as e:
        raise HTTPException(status_code=400, detail=str(e))
    except claim_service.ClaimConflict as e:
        raise HTTPException(status_code=409, detail=str(e))
    if result is None:
        raise HTTPException(status_code=404, detail="Claim not found")
    return {
        "success": result.success,
        "claim": serialize_doc(result.claim),
        "new_chat_id": result.conversation_id,
    }


# ------------------------
# Delivery partners and jobs
# ------------------------
class AcceptJobRequest(BaseModel):
    partner_id: str


class VerificationDocsRequest(BaseModel):
    license_url: str
    insurance_url: str


class VerificationDecision(BaseModel):
    status: VerificationStatus


class AvailabilityRequest(BaseModel):
    availability: PartnerAvailability


@app.get("/delivery/jobs")
def delivery_jobs(partner_id: str):
    jobs = delivery.delivery_jobs(partner_id)
    return {bucket: [serialize_doc(d) for d in docs] for bucket, docs in jobs.items()}


@app.post("/delivery/jobs/{claim_id}/accept")
def accept_delivery_job(claim_id: str, body: AcceptJobRequest):
    partner = require("user", body.partner_id, "Delivery partner")
    if not delivery.is_verified_partner(partner):
        raise HTTPException(status_code=403, detail="You must be a verified partner to accept jobs")
    try:
        claim = delivery.accept_delivery_job(claim_id, body.partner_id)
    except delivery.JobConflict as e:
        raise HTTPException(status_code=409, detail=str(e))
    if claim is None:
        raise HTTPException(status_code=404, detail="Claim not found")
    return serialize_doc(claim)


@app.post("/delivery/partners/{user_id}/verification")
def submit_verification_docs(user_id: str, body: VerificationDocsRequest):
    require("user", user_id, "User")
    doc = delivery.submit_verification_docs(user_id, body.license_url, body.insurance_url)
    if doc is None:
        raise HTTPException(status_code=400, detail="User is not a delivery partner")
    return public_user(doc)


@app.put("/delivery/partners/{user_id}/verification")
def update_verification_status(user_id: str, body: VerificationDecision):
    require("user", user_id, "User")
    try:
        doc = delivery.update_verification_status(user_id, body.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if doc is None:
        raise HTTPException(status_code=400, detail="User is not a delivery partner")
    return public_user(doc)


@app.put("/delivery/partners/{user_id}/availability")
def set_partner_availability(user_id: str, body: AvailabilityRequest):
    require("user", user_id, "User")
    doc = delivery.set_availability(user_id, body.availability)
    if doc is None:
        raise HTTPException(status_code=400, detail="User is not a delivery partner")
    return public_user(doc)


@app.get("/delivery/verifications")
def pending_verifications():
    return {"items": [public_user(d) for d in delivery.pending_verifications()]}


# ------------------------
# Conversations and chat requests
# ------------------------
class SendMessageRequest(BaseModel):
    sender_id: str
    text: str = Field(..., min_length=1)


class ChatRequestBody(BaseModel):
    from_user_id: str
    to_user_id: str


class AnswerRequest(BaseModel):
    answer: Literal["accept", "reject"]


@app.get("/users/{user_id}/conversations")
def list_conversations(user_id: str):
    return {"items": [serialize_doc(d) for d in conversations.conversations_for_user(user_id)]}


@app.get("/conversations/{conversation_id}/messages")
def list_messages(conversation_id: str, limit: int = 200):
    require("conversation", conversation_id, "Conversation")
    return {"messages": [serialize_doc(d) for d in conversations.messages_for(conversation_id, limit)]}


@app.post("/conversations/{conversation_id}/messages")
def add_chat_message(conversation_id: str, body: SendMessageRequest):
    conversation = require("conversation", conversation_id, "Conversation")
    if body.sender_id not in conversation.get("participant_ids", []):
        raise HTTPException(status_code=403, detail="Sender is not part of this conversation")
    message_id = conversations.add_chat_message(conversation_id, body.sender_id, body.text)
    return {"message_id": message_id}


@app.post("/chat-requests")
def send_chat_request(body: ChatRequestBody):
    if body.from_user_id == body.to_user_id:
        raise HTTPException(status_code=400, detail="Cannot send a chat request to yourself")
    require("user", body.from_user_id, "User")
    require("user", body.to_user_id, "User")
    return {"request_id": conversations.send_chat_request(body.from_user_id, body.to_user_id)}


@app.get("/users/{user_id}/chat-requests")
def list_chat_requests(user_id: str):
    return {"items": [serialize_doc(d) for d in conversations.chat_requests_for(user_id)]}


@app.post("/chat-requests/{request_id}/answer")
def answer_chat_request(request_id: str, body: AnswerRequest):
    require("chatrequest", request_id, "Chat request")
    conversation_id = conversations.answer_chat_request(request_id, body.answer)
    return {"conversation_id": conversation_id}


# ------------------------
# Community feed and reports
# ------------------------
class CreatePostRequest(BaseModel):
    author_id: str
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    image_url: Optional[str] = None
    claim_id: Optional[str] = None


class CreateReportRequest(Report):
    pass


@app.post("/community-posts")
def add_community_post(body: CreatePostRequest):
    require("user", body.author_id, "Author")
    post_id = create_document("communitypost", CommunityPost(**body.model_dump(), likes=0))
    return serialize_doc(find_by_id("communitypost", post_id))


@app.get("/community-posts")
def list_community_posts(limit: int = 50):
    docs = get_documents("communitypost", {}, limit, sort=[("created_at", -1)])
    return {"items": [serialize_doc(d) for d in docs]}


@app.post("/community-posts/{post_id}/like")
def add_like_to_post(post_id: str):
    require("communitypost", post_id, "Post")
    db["communitypost"].update_one({"_id": to_object_id(post_id)}, {"$inc": {"likes": 1}})
    return serialize_doc(find_by_id("communitypost", post_id))


@app.post("/reports")
def create_report(payload: CreateReportRequest):
    if payload.target_type not in ("fooditem", "communitypost"):
        raise HTTPException(status_code=400, detail="Reports target a food item or a community post")
    require(payload.target_type, payload.target_id, "Reported item")
    report_id = create_document("report", payload)
    logger.info("Report %s filed on %s %s", report_id, payload.target_type, payload.target_id)
    return {"report_id": report_id}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
