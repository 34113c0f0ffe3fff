"""
Tests for UserRepository.

The repository is the only place user rows are read or written. These tests
check it reports failures as core.exceptions errors, never raw database
exceptions.
"""

from unittest.mock import patch

import pytest
from django.db import OperationalError
from freezegun import freeze_time

from core.exceptions import ConflictError, NotFoundError, StorageError
from authentication.models import User
from authentication.repositories import UserRepository
from authentication.tests.factories import UserFactory


class TestCreateUser:
    def test_creates_user_with_hashed_password(self, db):
        user = UserRepository.create_user(
            email="erin@example.com",
            username="erin",
            full_name="Erin Example",
            password="CorrectHorse9",
        )

        assert User.objects.filter(id=user.id).exists()
        assert user.check_password("CorrectHorse9")
        assert user.full_name == "Erin Example"

    def test_duplicate_email_is_conflict(self, db):
        UserFactory(email="taken@example.com")

        with pytest.raises(ConflictError):
            UserRepository.create_user(email="TAKEN@example.com", username="fresh")

    def test_duplicate_username_is_conflict(self, db):
        UserFactory(username="taken")

        with pytest.raises(ConflictError):
            UserRepository.create_user(email="fresh@example.com", username="taken")


class TestLookups:
    def test_get_by_id_returns_user(self, user):
        assert UserRepository.get_by_id(user.id) == user

    def test_get_by_id_missing_raises_not_found(self, db):
        with pytest.raises(NotFoundError):
            UserRepository.get_by_id(999999)

    def test_get_by_email_is_case_insensitive(self, user):
        assert UserRepository.get_by_email(user.email.upper()) == user

    def test_get_by_email_missing_raises_not_found(self, db):
        with pytest.raises(NotFoundError):
            UserRepository.get_by_email("ghost@example.com")

    def test_existing_ids_filters_unknown(self, user, other_user):
        assert UserRepository.existing_ids([user.id, other_user.id, 999999]) == {user.id, other_user.id}

    def test_list_users_excludes_caller_and_inactive(self, user, other_user, deactivated_user):
        users = UserRepository.list_users(exclude_user_id=user.id)

        assert users == [other_user]


class TestOnlineStatus:
    def test_update_online_status_sets_flag_and_last_seen(self, user):
        with freeze_time("2026-03-01 12:00:00"):
            UserRepository.update_online_status(user.id, True)

        user.refresh_from_db()
        assert user.is_online is True
        assert user.last_seen.isoformat() == "2026-03-01T12:00:00+00:00"

    def test_update_online_status_unknown_user(self, db):
        with pytest.raises(NotFoundError):
            UserRepository.update_online_status(999999, True)

    def test_reset_online_status_counts_changed_rows(self, db):
        UserFactory(is_online=True)
        UserFactory(is_online=True)
        UserFactory(is_online=False)

        assert UserRepository.reset_online_status() == 2
        assert not User.objects.filter(is_online=True).exists()

    def test_database_failure_becomes_storage_error(self, user):
        """
        Driver errors surface as StorageError.

        Why it matters: Presence updates must be able to tell a storage
        outage apart from a missing user.
        """
        with patch.object(User.objects, "filter", side_effect=OperationalError("db down")):
            with pytest.raises(StorageError) as exc_info:
                UserRepository.update_online_status(user.id, True)

        assert exc_info.value.details["operation"] == "UserRepository.update_online_status"
