import pytest

import conversations
from conftest import make_user
from database import db, find_by_id
from schemas import ChatRequestStatus


@pytest.fixture
def pair():
    return make_user("Bob"), make_user("Alice")


def test_accepting_chat_request_opens_conversation(pair):
    bob, alice = pair
    request_id = conversations.send_chat_request(bob, alice)
    assert find_by_id("chatrequest", request_id)["status"] == ChatRequestStatus.PENDING.value

    conversation_id = conversations.answer_chat_request(request_id, "accept")

    assert find_by_id("chatrequest", request_id)["status"] == ChatRequestStatus.ACCEPTED.value
    conversation = find_by_id("conversation", conversation_id)
    assert conversation["participant_ids"] == [bob, alice]
    assert "claim_id" not in conversation


def test_rejecting_chat_request_returns_none(pair):
    bob, alice = pair
    request_id = conversations.send_chat_request(bob, alice)

    assert conversations.answer_chat_request(request_id, "reject") is None
    assert find_by_id("chatrequest", request_id)["status"] == ChatRequestStatus.REJECTED.value
    assert db["conversation"].count_documents({}) == 0


def test_request_is_answered_only_once(pair):
    bob, alice = pair
    request_id = conversations.send_chat_request(bob, alice)
    conversations.answer_chat_request(request_id, "reject")

    assert conversations.answer_chat_request(request_id, "accept") is None
    assert find_by_id("chatrequest", request_id)["status"] == ChatRequestStatus.REJECTED.value


def test_unknown_request_and_bad_answer(pair):
    assert conversations.answer_chat_request("000000000000000000000000", "accept") is None
    bob, alice = pair
    request_id = conversations.send_chat_request(bob, alice)
    with pytest.raises(ValueError):
        conversations.answer_chat_request(request_id, "maybe")


def test_duplicate_requests_are_not_merged(pair):
    bob, alice = pair
    conversations.send_chat_request(bob, alice)
    conversations.send_chat_request(bob, alice)
    assert len(conversations.chat_requests_for(alice)) == 2
    assert conversations.chat_requests_for(bob) == []


def test_direct_conversations_do_not_collide_on_claim_index(pair):
    bob, alice = pair
    first = conversations.create_conversation([bob, alice])
    second = conversations.create_conversation([alice, bob])
    assert first != second


def test_claim_conversation_is_get_or_create(pair):
    bob, alice = pair
    first = conversations.ensure_claim_conversation("claim-1", [alice, bob])
    second = conversations.ensure_claim_conversation("claim-1", [bob])
    assert first["_id"] == second["_id"]
    assert second["participant_ids"] == [alice, bob]


def test_messages_come_back_oldest_first(pair):
    bob, alice = pair
    conversation_id = conversations.create_conversation([bob, alice])
    conversations.add_chat_message(conversation_id, bob, "Hi!")
    conversations.add_chat_message(conversation_id, alice, "Hello Bob")
    conversations.add_system_message(conversation_id, "Diana has joined the chat.")

    messages = conversations.messages_for(conversation_id)
    assert [m["text"] for m in messages] == ["Hi!", "Hello Bob", "Diana has joined the chat."]
    assert [m["is_system_message"] for m in messages] == [False, False, True]
    assert [str(c["_id"]) for c in conversations.conversations_for_user(bob)] == [conversation_id]
