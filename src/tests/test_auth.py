"""Tests for authentication flows (login, refresh, logout, profile, password)."""

from __future__ import annotations

import time
from datetime import date
from unittest import mock

import jwt
from django.conf import settings
from django.db import DatabaseError
from rest_framework.test import APIClient

from access_control.models import MembershipType, SubGroupCategory
from authentication.services import BlocklistUnavailable, TokenService
from events.models import Event
from tests.utils import DEFAULT_PASSWORD, RedisPatchedTestCase, auth_client, create_user


class AuthFlowTests(RedisPatchedTestCase):
    """End-to-end tests covering the auth endpoints."""

    @classmethod
    def setUpTestData(cls):
        """Create a default active member in the Masonic session sub-group."""
        super().setUpTestData()
        cls.password = DEFAULT_PASSWORD
        cls.user = create_user(
            "user@example.com",
            MembershipType.MASON,
            cls.subgroups[SubGroupCategory.MASONIC_SESSION],
            name="José da Silva",
        )

    def _login(self, email=None, password=None):
        return self.api_client.post(
            "/auth/login/",
            {"email": email or self.user.email, "password": password or self.password},
            format="json",
        )

    def _login_two_devices(self):
        """Helper to perform two logins for the same user."""
        return self._login().json()["data"], self._login().json()["data"]

    def test_login_success_returns_tokens_and_profile(self):
        """Valid credentials return access and refresh tokens plus the profile."""
        response = self._login()
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertIn("access", body["data"])
        self.assertIn("refresh", body["data"])
        self.assertEqual(body["data"]["user"]["membership_type"], MembershipType.MASON)
        self.assertEqual(body["data"]["user"]["subgroup_name"], SubGroupCategory.MASONIC_SESSION)
        self.assertFalse(body["data"]["user"]["is_admin"])
        self.assertEqual(body["errors"], [])

    def test_login_email_is_case_insensitive(self):
        response = self._login(email="USER@example.com")
        self.assertEqual(response.status_code, 200)

    def test_login_invalid_credentials_401(self):
        """Bad password returns 401 with null data."""
        response = self._login(password="wrongpass")
        body = response.json()

        self.assertEqual(response.status_code, 401)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_login_inactive_user_401(self):
        """Inactive user cannot log in and receives 401."""
        self.user.is_active = False
        self.user.save(update_fields=["is_active"])

        response = self._login()

        self.assertEqual(response.status_code, 401)
        self.assertIsNone(response.json()["data"])

    def test_token_of_deactivated_member_is_rejected(self):
        client = auth_client(self.user)
        self.user.is_active = False
        self.user.save(update_fields=["is_active"])

        response = client.get("/auth/me/")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["errors"], ["Member account is missing or inactive."])

    def test_me_requires_authentication(self):
        response = self.api_client.get("/auth/me/")
        body = response.json()

        self.assertEqual(response.status_code, 401)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_refresh_with_valid_refresh_token(self):
        """Refresh endpoint issues new access/refresh tokens."""
        login = self._login().json()["data"]

        response = self.api_client.post("/auth/refresh/", {"refresh": login["refresh"]}, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertIn("access", body["data"])
        self.assertIn("refresh", body["data"])
        self.assertNotEqual(body["data"]["access"], login["access"])

    def test_refresh_with_access_token_rejected(self):
        """Providing an access token to refresh endpoint returns 401."""
        tokens = self._login().json()["data"]

        response = self.api_client.post("/auth/refresh/", {"refresh": tokens["access"]}, format="json")

        self.assertEqual(response.status_code, 401)
        self.assertIsNone(response.json()["data"])

    def test_expired_refresh_token_returns_401(self):
        """Expired refresh tokens should be rejected with 401 Unauthorized."""
        now = int(time.time())
        payload = {
            "sub": str(self.user.id),
            "jti": "expired-jti",
            "exp": now - 60,
            "iat": now - 120,
            "membership_type": self.user.membership_type,
            "type": "refresh",
            "ver": self.user.token_version,
        }
        expired_refresh = jwt.encode(payload, settings.SECRET_KEY, algorithm=TokenService.ALGORITHM)

        response = self.api_client.post("/auth/refresh/", {"refresh": expired_refresh}, format="json")

        self.assertEqual(response.status_code, 401)
        self.assertIsNone(response.json()["data"])

    def test_logout_blocklists_token(self):
        """Logout blocklists current access token causing subsequent 401."""
        tokens = self._login().json()["data"]
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        logout_response = self.api_client.post("/auth/logout/")
        self.assertEqual(logout_response.status_code, 204)

        # Reusing the same token should now fail because it was blocklisted.
        response = self.api_client.get("/auth/me/")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["errors"], ["Token has been revoked."])

    def test_logout_all_revokes_access_and_refresh_tokens_across_devices(self):
        """logout-all invalidates all existing tokens (access and refresh)."""
        login_a, login_b = self._login_two_devices()

        client_a = APIClient()
        client_a.credentials(HTTP_AUTHORIZATION=f"Bearer {login_a['access']}")
        self.assertEqual(client_a.post("/auth/logout-all/").status_code, 204)

        # Device B's access token is invalid after the token_version bump.
        client_b = APIClient()
        client_b.credentials(HTTP_AUTHORIZATION=f"Bearer {login_b['access']}")
        response = client_b.get("/auth/me/")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["errors"], ["Sessions for this member were revoked."])

        for refresh in (login_a["refresh"], login_b["refresh"]):
            response = self.api_client.post("/auth/refresh/", {"refresh": refresh}, format="json")
            self.assertEqual(response.status_code, 401)

    def test_logout_redis_down_returns_503(self):
        """If Redis is unavailable during logout, the API should fail-closed."""
        access = self._login().json()["data"]["access"]
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

        with mock.patch.object(
                TokenService,
                "block_token",
                side_effect=BlocklistUnavailable("Redis unavailable while blocklisting"),
        ):
            response = self.api_client.post("/auth/logout/")

        body = response.json()
        self.assertEqual(response.status_code, 503)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_refresh_when_database_unavailable_returns_503_with_envelope(self):
        """Database errors during refresh should surface as 503 with JSON envelope."""
        refresh_token = self._login().json()["data"]["refresh"]

        with mock.patch(
                "authentication.views._get_active_user",
                side_effect=DatabaseError("DB down"),
        ):
            response = self.api_client.post("/auth/refresh/", {"refresh": refresh_token}, format="json")

        body = response.json()
        self.assertEqual(response.status_code, 503)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_patch_me_updates_name_and_subgroup(self):
        client = auth_client(self.user)
        target = self.subgroups[SubGroupCategory.DEMOLAY_MEETING]

        response = client.patch("/auth/me/", {"name": "José Santos", "subgroup": target.pk}, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["data"]["name"], "José Santos")
        self.assertEqual(body["data"]["subgroup"], target.pk)

    def test_patch_me_cannot_change_email(self):
        """PATCH /auth/me/ must not allow changing email."""
        response = auth_client(self.user).patch("/auth/me/", {"email": "new@example.com"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertIsNone(response.json()["data"])

    def test_patch_me_cannot_change_membership_type(self):
        response = auth_client(self.user).patch(
            "/auth/me/",
            {"membership_type": MembershipType.GENERAL_ADMIN},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.user.refresh_from_db()
        self.assertEqual(self.user.membership_type, MembershipType.MASON)

    def test_patch_me_birth_date_creates_birthday_event(self):
        response = auth_client(self.user).patch("/auth/me/", {"birth_date": "1980-05-17"}, format="json")

        self.assertEqual(response.status_code, 200)
        event = Event.objects.get(birthday_of=self.user)
        self.assertTrue(event.is_public)
        self.assertEqual(event.title, "🎂 Aniversário: José")

    def test_patch_me_clearing_birth_date_removes_birthday_event(self):
        self.user.birth_date = date(1980, 5, 17)
        self.user.save(update_fields=["birth_date"])
        auth_client(self.user).patch("/auth/me/", {"birth_date": "1981-01-02"}, format="json")

        response = auth_client(self.user).patch("/auth/me/", {"birth_date": None}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertFalse(Event.objects.filter(birthday_of=self.user).exists())

    def test_change_password_with_wrong_current_password_400(self):
        response = auth_client(self.user).post(
            "/auth/change-password/",
            {"current_password": "nope-nope", "new_password": "AnotherPass123"},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertIsNone(response.json()["data"])

    def test_change_password_allows_login_with_new_password(self):
        response = auth_client(self.user).post(
            "/auth/change-password/",
            {"current_password": self.password, "new_password": "AnotherPass123"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)

        self.assertEqual(self._login(password="AnotherPass123").status_code, 200)
        self.assertEqual(self._login().status_code, 401)
