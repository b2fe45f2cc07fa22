"""Unit tests for the actor directory."""

from __future__ import annotations

from uuid import uuid4

import pytest
from django.test import override_settings

from modules.accounts.constants import Role
from modules.accounts.exceptions import InvalidActorRole, UserNotFound
from modules.accounts.models import User

pytestmark = pytest.mark.unit


class TestGetActor:
    def test_resolves_role_and_display_data(self, directory, salesperson):
        actor = directory.get_actor(salesperson.id)

        assert actor.id == salesperson.id
        assert actor.role == Role.SALESPERSON
        assert actor.name == "Ravi Sales"
        assert actor.email == "sales@example.com"

    def test_unknown_id(self, directory):
        with pytest.raises(UserNotFound):
            directory.get_actor(uuid4())

    def test_malformed_id(self, directory):
        with pytest.raises(UserNotFound):
            directory.get_actor("not-a-uuid")


class TestRequireRole:
    def test_accepts_matching_role(self, directory, distributor):
        actor = directory.require_role(distributor.id, Role.DISTRIBUTOR)
        assert actor.role == Role.DISTRIBUTOR

    def test_accepts_any_listed_role(self, directory, admin_user):
        actor = directory.require_role(admin_user.id, Role.SALESPERSON, Role.ADMIN)
        assert actor.role == Role.ADMIN

    def test_rejects_other_role(self, directory, salesperson):
        with pytest.raises(InvalidActorRole):
            directory.require_role(salesperson.id, Role.DISTRIBUTOR)


class TestListings:
    def test_list_distributors(self, directory, distributor, other_distributor, salesperson):
        ids = {user.id for user in directory.list_distributors()}
        assert ids == {distributor.id, other_distributor.id}

    def test_list_staff_excludes_admins(
        self, directory, admin_user, salesperson, distributor
    ):
        ids = {user.id for user in directory.list_staff()}
        assert ids == {salesperson.id, distributor.id}


class TestSystemActor:
    def test_created_once_as_inactive_admin(self, directory):
        first = directory.get_system_actor()
        second = directory.get_system_actor()

        assert first.id == second.id
        assert first.role == Role.ADMIN
        system_user = User.objects.get(id=first.id)
        assert not system_user.is_active
        assert not system_user.has_usable_password()

    @override_settings(TIMELINE_SYSTEM_ACTOR_USERNAME="backfill-bot")
    def test_username_from_settings(self, directory):
        actor = directory.get_system_actor()
        assert User.objects.get(id=actor.id).username == "backfill-bot"


class TestUserModel:
    def test_display_name_falls_back_to_username(self):
        user = User(username="plain")
        assert user.display_name == "plain"

    def test_superuser_is_admin(self):
        user = User.objects.create_superuser("root", password="testpass123")
        assert user.role == Role.ADMIN
        assert user.is_admin_role
