"""
Database Schemas for the NourishNet food sharing platform

Each Pydantic model maps to a MongoDB collection (lowercased class name).
- User -> "user"
- FoodItem -> "fooditem"
- Claim -> "claim"
- Conversation -> "conversation"
- ChatMessage -> "chatmessage"
- ChatRequest -> "chatrequest"
- CommunityPost -> "communitypost"
- Report -> "report"
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    ADMIN = "Admin"
    VERIFIED_MEMBER = "Verified Member"
    APPLICANT = "Applicant"
    DELIVERY_PARTNER = "Delivery Partner"


class FoodStatus(str, Enum):
    AVAILABLE = "Available"
    RESERVED = "Reserved"
    COLLECTED = "Collected"


class ClaimStatus(str, Enum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    DELIVERY_FAILED = "Delivery Failed"


class DeliveryOption(str, Enum):
    CLAIMER_PICKUP = "Claimer to pick up"
    DONOR_DELIVERY = "Donor can deliver"
    MEETUP = "Meet at a public place"
    PLATFORM_DELIVERY = "Platform delivery partner"


class VerificationStatus(str, Enum):
    VERIFIED = "Verified"
    PENDING = "Pending"
    REJECTED = "Rejected"
    NOT_SUBMITTED = "Not Submitted"


class ChatRequestStatus(str, Enum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class PartnerAvailability(str, Enum):
    ONLINE = "Online"
    OFFLINE = "Offline"


class Collection(BaseModel):
    # enum members are stored as their plain string values
    model_config = ConfigDict(use_enum_values=True, validate_default=True)


class GeoPoint(BaseModel):
    lat: float = Field(..., ge=-90, le=90, description="Latitude")
    lng: float = Field(..., ge=-180, le=180, description="Longitude")


class Address(GeoPoint):
    address: str = Field("", description="Street address shown to claimers")


class DeliveryPartnerProfile(Collection):
    verification_status: VerificationStatus = VerificationStatus.NOT_SUBMITTED
    vehicle_type: str = ""
    availability: PartnerAvailability = PartnerAvailability.OFFLINE
    phone: str = ""
    earnings: float = Field(0.0, ge=0)
    drivers_license_url: Optional[str] = None
    insurance_url: Optional[str] = None


class UserAchievement(BaseModel):
    achievement_id: str
    unlocked_at: datetime


class User(Collection):
    name: str = Field(..., description="Display name")
    email: Optional[str] = Field(None, description="Email address")
    avatar_url: Optional[str] = None
    role: UserRole = UserRole.APPLICANT
    rating: float = Field(0.0, ge=0, le=5)
    location: Optional[GeoPoint] = Field(None, description="Home location")
    social_links: Dict[str, str] = Field(default_factory=dict)
    bio: str = ""
    achievements: List[UserAchievement] = Field(default_factory=list)
    following: List[str] = Field(default_factory=list, description="User ids this user follows")
    followers: List[str] = Field(default_factory=list, description="User ids following this user")
    delivery_partner: Optional[DeliveryPartnerProfile] = None


class FoodItem(Collection):
    posted_by: str = Field(..., description="Poster user id (string)")
    title: str
    description: str = ""
    image_url: Optional[str] = None
    quantity: str
    status: FoodStatus = FoodStatus.AVAILABLE
    posted_at: Optional[datetime] = None
    expires_at: datetime
    location: Address


class Claim(Collection):
    food_item_id: str
    claimer_id: str
    poster_id: str
    status: ClaimStatus = ClaimStatus.PENDING
    reason: str = ""
    delivery_option: DeliveryOption
    requested_at: Optional[datetime] = None
    delivery_fee: Optional[float] = None
    delivery_partner_id: Optional[str] = None


class Conversation(Collection):
    participant_ids: List[str]
    claim_id: Optional[str] = None


class ChatMessage(Collection):
    conversation_id: str
    sender_id: str = Field(..., description="User id, or 'system' for automated notices")
    text: str
    timestamp: Optional[datetime] = None
    is_system_message: bool = False


class ChatRequest(Collection):
    from_user_id: str
    to_user_id: str
    status: ChatRequestStatus = ChatRequestStatus.PENDING


class CommunityPost(Collection):
    author_id: str
    title: str
    content: str
    image_url: Optional[str] = None
    likes: int = Field(0, ge=0)
    claim_id: Optional[str] = None


class Report(Collection):
    target_type: str = Field(..., description="fooditem | communitypost")
    target_id: str
    reporter_id: Optional[str] = None
    reason: str
    comments: Optional[str] = None
