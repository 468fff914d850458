"""Shared helpers for tests (member creation, token clients, fake Redis)."""

from __future__ import annotations

from typing import Dict
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from access_control.models import MembershipType, SubGroup, SubGroupCategory
from authentication.managers import UserManager
from authentication.services import TokenService

User = get_user_model()

DEFAULT_PASSWORD = "StrongPass123"


class FakeRedis:
    """Minimal Redis stub supporting the commands used by TokenService."""

    def __init__(self):
        self._store: Dict[str, str] = {}

    def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        """Mimic Redis SETEX; TTL is ignored in tests, value stored in-memory."""
        self._store[key] = value

    def get(self, key: str):
        """Return stored value for key or None, matching Redis GET semantics."""
        return self._store.get(key)


class RedisPatchedTestCase(TestCase):
    """TestCase with Redis replaced by ``FakeRedis`` and the four sub-groups created."""

    @classmethod
    def setUpClass(cls):
        """Patch Redis clients to use in-memory fake for all tests."""
        super().setUpClass()
        cls.fake_redis = FakeRedis()
        cls.patchers = [
            mock.patch("core.redis_client.get_redis_client", return_value=cls.fake_redis),
            mock.patch("authentication.services.get_redis_client", return_value=cls.fake_redis),
        ]
        for patcher in cls.patchers:
            patcher.start()

    @classmethod
    def tearDownClass(cls):
        """Stop Redis patches after all tests complete."""
        for patcher in cls.patchers:
            patcher.stop()
        super().tearDownClass()

    @classmethod
    def setUpTestData(cls):
        cls.subgroups = create_subgroups()

    def setUp(self):
        """Fresh DRF APIClient per test."""
        self.api_client: APIClient = APIClient()


def create_subgroups() -> Dict[str, SubGroup]:
    return {name: SubGroup.objects.create(name=name) for name in SubGroupCategory.values}


def create_user(
    email: str,
    membership_type: str = MembershipType.MASON,
    subgroup: SubGroup | None = None,
    password: str = DEFAULT_PASSWORD,
    **extra,
):
    """Create a member with a bcrypt-hashed password for tests."""

    extra.setdefault("name", email.split("@", 1)[0].title())
    return User.objects.create(
        email=email,
        password_hash=UserManager.hash_password(password),
        membership_type=membership_type,
        subgroup=subgroup,
        **extra,
    )


def auth_client(user) -> APIClient:
    """APIClient carrying a fresh access token for ``user``."""

    access, _ = TokenService.generate_tokens(user)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
    return client
