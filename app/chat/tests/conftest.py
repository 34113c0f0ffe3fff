"""
Test configuration and fixtures for chat tests.

This module provides:
- User fixtures for the people in a room
- Room fixtures (private and group)
- API client helpers for authenticated requests
- JWT access tokens for WebSocket handshakes

Usage:
    def test_example(group_room, alice_client):
        response = alice_client.get(f'/api/v1/chat/rooms/{group_room.id}/members/')
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from authentication.tests.factories import UserFactory
from chat.repositories import RoomRepository
from chat.tests.factories import GroupRoomFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def alice(db):
    """Room creator in most tests."""
    return UserFactory(full_name="Alice Liddell", username="alice")


@pytest.fixture
def bob(db):
    return UserFactory(full_name="Bob Builder", username="bob")


@pytest.fixture
def carol(db):
    return UserFactory(full_name="Carol Danvers", username="carol")


@pytest.fixture
def outsider(db):
    """A user who is not a member of any test room."""
    return UserFactory(full_name="Oscar Outsider", username="oscar")


# =============================================================================
# Room Fixtures
# =============================================================================


@pytest.fixture
def private_room(alice, bob):
    """Private room between alice and bob."""
    return RoomRepository.create_private_room(alice.id, bob.id)


@pytest.fixture
def group_room(alice, bob, carol):
    """Group room created by alice with bob and carol."""
    return GroupRoomFactory(name="Team", created_by=alice, members=[bob, carol])


# =============================================================================
# API Client Fixtures
# =============================================================================


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def alice_client(alice):
    return _client_for(alice)


@pytest.fixture
def bob_client(bob):
    return _client_for(bob)


@pytest.fixture
def outsider_client(outsider):
    return _client_for(outsider)


@pytest.fixture
def access_token_for():
    """
    Factory for raw JWT access tokens (WebSocket ``?token=``).

    Usage:
        token = access_token_for(alice)
    """

    def _make(user):
        return str(AccessToken.for_user(user))

    return _make
