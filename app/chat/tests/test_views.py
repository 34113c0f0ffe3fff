"""
Tests for chat API views.

This module tests RoomViewSet endpoints:
- Room list with display name, last message and unread count
- Private room find-or-create and group creation
- Member list/add/remove
- Message history and REST send

Testing Philosophy:
    Tests focus on observable HTTP behavior:
    - Response status codes (mapped from service error codes)
    - Response body structure
    - Database state changes
"""

import pytest
from rest_framework import status

from chat.models import ChatRoom, Message
from chat.repositories import MessageRepository


# =============================================================================
# URL Constants
# =============================================================================


ROOMS_URL = "/api/v1/chat/rooms/"
PRIVATE_URL = f"{ROOMS_URL}private/"
GROUP_URL = f"{ROOMS_URL}group/"


def members_url(room_id):
    return f"{ROOMS_URL}{room_id}/members/"


def member_detail_url(room_id, user_id):
    return f"{ROOMS_URL}{room_id}/members/{user_id}/"


def messages_url(room_id):
    return f"{ROOMS_URL}{room_id}/messages/"


def read_url(room_id):
    return f"{ROOMS_URL}{room_id}/read/"


# =============================================================================
# Rooms
# =============================================================================


class TestRoomList:
    def test_lists_rooms_with_computed_fields(self, alice_client, alice, bob, private_room, group_room):
        MessageRepository.create_message(private_room.id, bob.id, "hey alice")

        response = alice_client.get(ROOMS_URL)

        assert response.status_code == status.HTTP_200_OK
        first = response.data[0]
        assert first["id"] == private_room.id
        assert first["display_name"] == "Bob Builder"
        assert first["last_message"]["content"] == "hey alice"
        assert first["unread_count"] == 1
        assert {m["id"] for m in first["members"]} == {alice.id, bob.id}
        assert response.data[1]["display_name"] == "Team"

    def test_requires_authentication(self, db, api_client):
        assert api_client.get(ROOMS_URL).status_code == status.HTTP_401_UNAUTHORIZED


class TestPrivateRoom:
    def test_open_private_room_is_idempotent(self, alice_client, bob_client, alice, bob):
        first = alice_client.post(PRIVATE_URL, {"user_id": bob.id}, format="json")
        second = bob_client.post(PRIVATE_URL, {"user_id": alice.id}, format="json")

        assert first.status_code == status.HTTP_200_OK
        assert first.data["id"] == second.data["id"]
        assert ChatRoom.objects.filter(is_private=True).count() == 1

    def test_self_chat_is_bad_request(self, alice_client, alice):
        response = alice_client.post(PRIVATE_URL, {"user_id": alice.id}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INVALID_ARGUMENT"

    def test_unknown_user_is_not_found(self, alice_client):
        response = alice_client.post(PRIVATE_URL, {"user_id": 999999}, format="json")

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestGroupRoom:
    def test_create_group(self, alice_client, alice, bob):
        response = alice_client.post(GROUP_URL, {"name": "Book club", "member_ids": [bob.id]}, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["is_private"] is False
        assert response.data["created_by_id"] == alice.id
        assert [m["id"] for m in response.data["members"]] == [alice.id, bob.id]

    def test_blank_name_is_bad_request(self, alice_client):
        response = alice_client.post(GROUP_URL, {"name": " "}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "name" in response.data["errors"]


# =============================================================================
# Members
# =============================================================================


class TestMembers:
    def test_list_members_in_join_order(self, alice_client, group_room, alice, bob, carol):
        response = alice_client.get(members_url(group_room.id))

        assert response.status_code == status.HTTP_200_OK
        assert [m["id"] for m in response.data] == [alice.id, bob.id, carol.id]

    def test_outsider_cannot_list_members(self, outsider_client, group_room):
        response = outsider_client.get(members_url(group_room.id))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_creator_adds_members(self, alice_client, group_room, outsider):
        response = alice_client.post(members_url(group_room.id), {"user_ids": [outsider.id]}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert outsider.id in [m["id"] for m in response.data]

    def test_non_creator_cannot_add(self, bob_client, group_room, outsider):
        response = bob_client.post(members_url(group_room.id), {"user_ids": [outsider.id]}, format="json")

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_member_leaves(self, bob_client, group_room, bob):
        response = bob_client.delete(member_detail_url(group_room.id, bob.id))

        assert response.status_code == status.HTTP_204_NO_CONTENT

    def test_creator_cannot_leave(self, alice_client, group_room, alice):
        response = alice_client.delete(member_detail_url(group_room.id, alice.id))

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_missing_room_is_not_found(self, alice_client):
        assert alice_client.get(members_url(999999)).status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Messages
# =============================================================================


class TestMessageHistory:
    def test_history_oldest_first_with_limit(self, alice_client, group_room, alice, bob):
        for text in ("one", "two", "three"):
            MessageRepository.create_message(group_room.id, bob.id, text)

        response = alice_client.get(messages_url(group_room.id), {"limit": 2})

        assert response.status_code == status.HTTP_200_OK
        assert [m["content"] for m in response.data] == ["two", "three"]
        assert response.data[0]["sender"]["id"] == bob.id
        assert MessageRepository.unread_count(group_room.id, alice.id) == 0

    def test_limit_out_of_range_is_bad_request(self, alice_client, group_room):
        response = alice_client.get(messages_url(group_room.id), {"limit": 0})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_outsider_is_forbidden(self, outsider_client, group_room):
        response = outsider_client.get(messages_url(group_room.id))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data == {"error": "Access denied", "error_code": "FORBIDDEN"}


@pytest.mark.django_db(transaction=True)
class TestSendMessageOverRest:
    def test_send_message(self, bob_client, group_room, bob):
        response = bob_client.post(messages_url(group_room.id), {"content": "from the web"}, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["content"] == "from the web"
        assert response.data["sender"]["id"] == bob.id
        assert Message.objects.filter(room=group_room).count() == 1

    def test_blank_message_is_bad_request(self, bob_client, group_room):
        response = bob_client.post(messages_url(group_room.id), {"content": "   "}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not Message.objects.exists()

    def test_outsider_cannot_send(self, outsider_client, group_room):
        response = outsider_client.post(messages_url(group_room.id), {"content": "hi"}, format="json")

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestMarkRead:
    def test_marks_messages_from_others(self, alice_client, group_room, alice, bob):
        MessageRepository.create_message(group_room.id, bob.id, "one")
        MessageRepository.create_message(group_room.id, bob.id, "two")
        MessageRepository.create_message(group_room.id, alice.id, "mine")

        response = alice_client.post(read_url(group_room.id))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"marked": 2}
        assert MessageRepository.unread_count(group_room.id, alice.id) == 0

    def test_outsider_is_forbidden(self, outsider_client, group_room):
        response = outsider_client.post(read_url(group_room.id))

        assert response.status_code == status.HTTP_403_FORBIDDEN
