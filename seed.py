"""Demo data set for /seed."""
from datetime import timedelta

from database import create_document, reset_database, utcnow
from schemas import (
    Address,
    ChatMessage,
    ChatRequest,
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
    User,
    UserAchievement,
    UserRole,
    VerificationStatus,
)


def hours(n):
    return timedelta(hours=n)


def seed_sample():
    """Wipe the store and load a small community. Returns inserted ids by key."""
    reset_database()
    now = utcnow()

    ids = {}

    users = {
        "admin": User(name="Admin User", email="admin@nourish.net", role=UserRole.ADMIN, rating=5,
                      location=GeoPoint(lat=34.0522, lng=-118.2437),
                      bio="Administrator of NourishNet. Keeping the community safe and running smoothly."),
        "alice": User(name="Alice Donor", email="alice@nourish.net", role=UserRole.VERIFIED_MEMBER, rating=4.8,
                      location=GeoPoint(lat=34.06, lng=-118.25),
                      bio="Passionate home baker. Happy to share surplus goodies!",
                      achievements=[UserAchievement(achievement_id="ach-1", unlocked_at=now - hours(72)),
                                    UserAchievement(achievement_id="ach-2", unlocked_at=now - hours(48))]),
        "bob": User(name="Bob Applicant", email="bob@nourish.net", role=UserRole.APPLICANT,
                    location=GeoPoint(lat=40.7128, lng=-74.0060),
                    bio="New to the community. Looking forward to participating!"),
        "charlie": User(name="Charlie Claimer", email="charlie@nourish.net", role=UserRole.VERIFIED_MEMBER, rating=4.5,
                        location=GeoPoint(lat=34.07, lng=-118.26),
                        bio="Community volunteer. I help distribute food to local shelters."),
        "grace": User(name="Grace Gardener", email="grace@nourish.net", role=UserRole.VERIFIED_MEMBER, rating=4.9,
                      location=GeoPoint(lat=34.04, lng=-118.22),
                      bio="Urban gardener with more produce than I can use."),
        "frank": User(name="Frank Familyman", email="frank@nourish.net", role=UserRole.VERIFIED_MEMBER, rating=4.7,
                      location=GeoPoint(lat=34.03, lng=-118.20),
                      bio="Father of three. Always grateful for this community."),
        "diana": User(name="Diana Driver", email="diana@nourish.net", role=UserRole.DELIVERY_PARTNER, rating=5,
                      location=GeoPoint(lat=34.05, lng=-118.23),
                      bio="I run a small local delivery service.",
                      delivery_partner=DeliveryPartnerProfile(
                          verification_status=VerificationStatus.VERIFIED, vehicle_type="Sedan",
                          availability=PartnerAvailability.ONLINE, phone="555-0103", earnings=125.5)),
        "peter": User(name="Peter Poster", email="peter@nourish.net", role=UserRole.VERIFIED_MEMBER, rating=4.6,
                      location=GeoPoint(lat=34.152, lng=-118.255),
                      bio="I manage a local cafe with surplus pastries at the end of the day."),
        "dave": User(name="Dave Driver", email="dave@nourish.net", role=UserRole.DELIVERY_PARTNER,
                     location=GeoPoint(lat=34.10, lng=-118.30),
                     bio="New delivery partner, ready to get verified!",
                     delivery_partner=DeliveryPartnerProfile(vehicle_type="Motorcycle", phone="555-0104")),
    }
    for key, user in users.items():
        ids[key] = create_document("user", user)

    food = {
        "bread": FoodItem(posted_by=ids["alice"], title="Freshly Baked Sourdough Bread",
                          description="A large loaf of homemade sourdough bread, baked this morning.",
                          quantity="1 Loaf", posted_at=now - hours(2), expires_at=now + hours(48),
                          location=Address(lat=34.06, lng=-118.25, address="123 Bakery Ln, Los Angeles, CA")),
        "apples": FoodItem(posted_by=ids["admin"], title="Organic Apples from Backyard Tree",
                           description="A bag of crisp organic apples. No pesticides used.",
                           quantity="Approx. 2 lbs", posted_at=now - hours(8), expires_at=now + hours(120),
                           location=Address(lat=34.05, lng=-118.24, address="456 Orchard Ave, Los Angeles, CA")),
        "soup": FoodItem(posted_by=ids["alice"], title="Homemade Vegetable Soup",
                         description="Hearty vegetable soup in a sealed container.", status=FoodStatus.COLLECTED,
                         quantity="2 servings (32 oz)", posted_at=now - hours(24), expires_at=now + hours(24),
                         location=Address(lat=40.72, lng=-74.01, address="789 Garden St, New York, NY")),
        "tomatoes": FoodItem(posted_by=ids["grace"], title="Fresh Garden Tomatoes",
                             description="A basket of ripe tomatoes straight from my garden.", status=FoodStatus.RESERVED,
                             quantity="Approx. 3 lbs", posted_at=now - hours(4), expires_at=now + hours(72),
                             location=Address(lat=34.04, lng=-118.22, address="321 Bloom St, Los Angeles, CA")),
        "zucchini": FoodItem(posted_by=ids["grace"], title="Bag of Zucchini",
                             description="My zucchini plants have gone wild! Please take some.",
                             quantity="Approx. 4 large zucchini", posted_at=now - hours(24), expires_at=now + hours(96),
                             location=Address(lat=34.04, lng=-118.22, address="321 Bloom St, Los Angeles, CA")),
        "pastries": FoodItem(posted_by=ids["peter"], title="Box of Assorted Pastries",
                             description="Croissants, muffins and scones from today's bake.", status=FoodStatus.RESERVED,
                             quantity="1 box (6-8 pastries)", posted_at=now - hours(6), expires_at=now + hours(18),
                             location=Address(lat=34.152, lng=-118.255, address="555 Cafe Ave, Glendale, CA")),
    }
    for key, item in food.items():
        ids[key] = create_document("fooditem", item)

    claims = {
        "claim_soup": Claim(food_item_id=ids["soup"], claimer_id=ids["charlie"], poster_id=ids["alice"],
                            status=ClaimStatus.DELIVERED, delivery_option=DeliveryOption.CLAIMER_PICKUP,
                            reason="For my elderly neighbor who is feeling unwell.", requested_at=now - hours(22)),
        "claim_tomatoes": Claim(food_item_id=ids["tomatoes"], claimer_id=ids["frank"], poster_id=ids["grace"],
                                status=ClaimStatus.OUT_FOR_DELIVERY, delivery_option=DeliveryOption.PLATFORM_DELIVERY,
                                reason="My kids love fresh tomatoes.", requested_at=now - hours(3),
                                delivery_fee=5, delivery_partner_id=ids["diana"]),
        "claim_pastries": Claim(food_item_id=ids["pastries"], claimer_id=ids["charlie"], poster_id=ids["peter"],
                                status=ClaimStatus.ACCEPTED, delivery_option=DeliveryOption.PLATFORM_DELIVERY,
                                reason="A treat for the volunteers at our shelter.", requested_at=now - hours(5),
                                delivery_fee=5),
    }
    for key, claim in claims.items():
        ids[key] = create_document("claim", claim)

    conversations = {
        "conv_soup": Conversation(participant_ids=[ids["alice"], ids["charlie"]], claim_id=ids["claim_soup"]),
        "conv_tomatoes": Conversation(participant_ids=[ids["grace"], ids["frank"], ids["diana"]],
                                      claim_id=ids["claim_tomatoes"]),
        "conv_pastries": Conversation(participant_ids=[ids["charlie"], ids["peter"]], claim_id=ids["claim_pastries"]),
    }
    for key, conv in conversations.items():
        ids[key] = create_document("conversation", conv)

    messages = [
        ChatMessage(conversation_id=ids["conv_soup"], sender_id=ids["alice"], timestamp=now - hours(21),
                    text="Hi Charlie! Thanks for claiming. When would be a good time to pick up the soup?"),
        ChatMessage(conversation_id=ids["conv_soup"], sender_id=ids["charlie"], timestamp=now - hours(20),
                    text="I can come by this evening around 6 PM, if that works for you?"),
        ChatMessage(conversation_id=ids["conv_tomatoes"], sender_id="system", is_system_message=True,
                    timestamp=now - timedelta(minutes=35), text="Diana Driver has joined the chat."),
        ChatMessage(conversation_id=ids["conv_tomatoes"], sender_id=ids["diana"], timestamp=now - timedelta(minutes=30),
                    text="I've just picked up the tomatoes from Grace and I'm on my way!"),
    ]
    for message in messages:
        create_document("chatmessage", message)

    ids["req_bob_alice"] = create_document("chatrequest", ChatRequest(from_user_id=ids["bob"], to_user_id=ids["alice"]))

    posts = [
        CommunityPost(author_id=ids["charlie"], title="Shared a wonderful soup!", likes=27, claim_id=ids["claim_soup"],
                      content="A big thank you to Alice for the delicious homemade soup."),
        CommunityPost(author_id=ids["alice"], title="So happy my bread found a good home!", likes=15,
                      content="Just wanted to share the joy of giving."),
        CommunityPost(author_id=ids["diana"], title="Your Friendly Neighborhood Delivery Partner!", likes=31,
                      content="I'm available for platform deliveries in the LA area."),
    ]
    for post in posts:
        create_document("communitypost", post)

    return ids
