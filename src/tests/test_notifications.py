"""Fan-out, web push delivery and notification inbox tests."""

from __future__ import annotations

import binascii
from datetime import datetime, timezone
from unittest import mock

from django.test import override_settings
from pywebpush import WebPushException

from access_control.models import MembershipType, SubGroupCategory
from bulletin.models import Comment, Post
from events.models import Event
from notifications import fanout
from notifications.models import Notification, PushSubscription
from notifications.webpush import DeliveryStatus, send
from tests.utils import RedisPatchedTestCase, auth_client, create_user

STARTS_AT = datetime(2030, 6, 1, 20, 0, tzinfo=timezone.utc)

PUSH_ENABLED = override_settings(
    VAPID_PUBLIC_KEY="test-public-key",
    VAPID_PRIVATE_KEY="test-private-key",
)


def push_error(status_code):
    response = mock.Mock(status_code=status_code)
    return WebPushException(f"Push failed: {status_code}", response=response)


def subscribe(user, name):
    return PushSubscription.objects.create(
        user=user,
        endpoint=f"https://push.example.com/{name}",
        p256dh="p256dh-key",
        auth="auth-secret",
    )


class FanOutTests(RedisPatchedTestCase):

    @classmethod
    def setUpTestData(cls):
        super().setUpTestData()
        cls.demolay = cls.subgroups[SubGroupCategory.DEMOLAY_MEETING]
        cls.admin = create_user("admin@example.com", MembershipType.GENERAL_ADMIN)
        cls.fdj_admin = create_user("fdjadmin@example.com", MembershipType.JOBS_DAUGHTERS_ADMIN)
        cls.mason = create_user(
            "mason@example.com", MembershipType.MASON, cls.subgroups[SubGroupCategory.MASONIC_SESSION]
        )
        cls.dm_member = create_user("dm@example.com", MembershipType.DEMOLAY_MEMBER, cls.demolay)
        cls.fraterna_member = create_user(
            "fr@example.com",
            MembershipType.FRATERNA_MEMBER,
            cls.subgroups[SubGroupCategory.FRATERNA_MEETING],
        )
        cls.inactive = create_user("gone@example.com", MembershipType.MASON, is_active=False)

    def _event(self, **fields):
        fields.setdefault("subgroup", self.demolay)
        return Event.objects.create(title="Iniciação", starts_at=STARTS_AT, author=self.admin, **fields)

    def test_subgroup_event_reaches_members_allow_list_and_admins_but_not_creator(self):
        event = self._event()

        result = fanout.notify_new_event(event)

        recipients = set(Notification.objects.filter(event=event).values_list("user_id", flat=True))
        self.assertEqual(recipients, {self.fdj_admin.pk, self.mason.pk, self.dm_member.pk})
        self.assertEqual(result.records_created, 3)
        self.assertEqual(result.push_sent, 0)

    def test_fan_out_never_includes_the_author(self):
        for author in (self.admin, self.mason, self.dm_member):
            post = Post.objects.create(text="Oi", is_global=True, author=author)
            with self.subTest(author=author.email):
                fanout.notify_new_post(post)
                self.assertFalse(Notification.objects.filter(post=post, user=author).exists())

    def test_private_content_without_subgroup_reaches_admins_only(self):
        event = self._event(subgroup=None)

        fanout.notify_new_event(event)

        recipients = set(Notification.objects.filter(event=event).values_list("user_id", flat=True))
        self.assertEqual(recipients, {self.fdj_admin.pk})

    def test_messages_follow_the_event_and_post_formats(self):
        event = self._event()
        fanout.notify_new_event(event)
        record = Notification.objects.filter(event=event).first()
        self.assertEqual(record.title, "Novo Evento Adicionado")
        self.assertTrue(record.message.startswith("Evento: Iniciação (Reunião DeMolay) - "))

        post = Post.objects.create(text="x" * 60, subgroup=self.demolay, author=self.dm_member)
        fanout.notify_new_post(post)
        record = Notification.objects.filter(post=post).first()
        self.assertEqual(record.title, "Novo Recado no Mural")
        self.assertEqual(record.message, f"[Reunião DeMolay] {'x' * 50}... - por {self.dm_member.name}")

    @PUSH_ENABLED
    def test_push_counts_and_expired_subscription_is_deleted(self):
        subscribe(self.mason, "mason")
        expired = subscribe(self.dm_member, "dm")
        subscribe(self.fdj_admin, "admin")
        subscribe(self.admin, "author")

        def fake_webpush(subscription_info, **kwargs):
            if subscription_info["endpoint"].endswith("/dm"):
                raise push_error(410)
            if subscription_info["endpoint"].endswith("/admin"):
                raise push_error(500)

        with mock.patch("notifications.webpush.webpush", side_effect=fake_webpush) as webpush_mock:
            result = fanout.notify_new_event(self._event())

        self.assertEqual(webpush_mock.call_count, 3)
        self.assertEqual(
            (result.push_sent, result.push_failed, result.push_expired, result.records_created),
            (1, 1, 1, 3),
        )
        self.assertFalse(PushSubscription.objects.filter(pk=expired.pk).exists())

        # Later fan-outs skip the removed subscription.
        with mock.patch("notifications.webpush.webpush") as webpush_mock:
            fanout.notify_new_event(self._event())
        endpoints = {call.kwargs["subscription_info"]["endpoint"] for call in webpush_mock.call_args_list}
        self.assertNotIn(expired.endpoint, endpoints)

    @PUSH_ENABLED
    def test_unusable_keys_do_not_stop_delivery_or_expiry_cleanup(self):
        broken = PushSubscription.objects.create(
            user=self.mason, endpoint="https://push.example.com/broken", p256dh="not-a-key", auth="x"
        )
        expired = subscribe(self.dm_member, "dm")
        subscribe(self.fdj_admin, "admin")

        def fake_webpush(subscription_info, **kwargs):
            if subscription_info["keys"]["p256dh"] == "not-a-key":
                raise binascii.Error("Invalid base64-encoded string")
            if subscription_info["endpoint"].endswith("/dm"):
                raise push_error(410)

        with mock.patch("notifications.webpush.webpush", side_effect=fake_webpush) as webpush_mock:
            result = fanout.notify_new_event(self._event())

        self.assertEqual(webpush_mock.call_count, 3)
        self.assertEqual((result.push_sent, result.push_failed, result.push_expired), (1, 1, 1))
        self.assertFalse(PushSubscription.objects.filter(pk=expired.pk).exists())
        self.assertTrue(PushSubscription.objects.filter(pk=broken.pk).exists())

    @PUSH_ENABLED
    def test_push_failure_keeps_the_records(self):
        subscribe(self.mason, "mason")

        with mock.patch("notifications.webpush.webpush", side_effect=push_error(500)):
            result = fanout.notify_new_event(self._event())

        self.assertEqual(result.push_failed, 1)
        self.assertEqual(Notification.objects.count(), 3)

    def test_push_disabled_creates_records_without_push_attempts(self):
        subscribe(self.mason, "mason")

        with mock.patch("notifications.webpush.webpush") as webpush_mock:
            result = fanout.notify_new_event(self._event())

        webpush_mock.assert_not_called()
        self.assertEqual(result.records_created, 3)

    @PUSH_ENABLED
    def test_create_endpoint_succeeds_when_fan_out_raises(self):
        with mock.patch("events.views.notify_new_event", side_effect=RuntimeError("boom")):
            response = auth_client(self.admin).post(
                "/events/",
                {"title": "Mesmo assim", "starts_at": STARTS_AT.isoformat(), "is_public": True},
                format="json",
            )

        self.assertEqual(response.status_code, 201)
        self.assertTrue(Event.objects.filter(title="Mesmo assim").exists())

    def test_comment_notifies_only_the_post_author(self):
        post = Post.objects.create(text="Oi", is_global=True, author=self.mason)
        comment = Comment.objects.create(post=post, author=self.dm_member, text="Olá")

        record = fanout.notify_post_author(comment)

        self.assertEqual(record.user_id, self.mason.pk)
        self.assertEqual(Notification.objects.count(), 1)


class WebPushTransportTests(RedisPatchedTestCase):

    @classmethod
    def setUpTestData(cls):
        super().setUpTestData()
        cls.subscription = subscribe(create_user("u@example.com"), "u")

    @PUSH_ENABLED
    def test_send_maps_transport_outcomes(self):
        cases = [
            (None, DeliveryStatus.SENT),
            (push_error(404), DeliveryStatus.EXPIRED),
            (push_error(410), DeliveryStatus.EXPIRED),
            (push_error(413), DeliveryStatus.FAILED),
        ]
        for side_effect, expected in cases:
            with self.subTest(expected=expected):
                with mock.patch("notifications.webpush.webpush", side_effect=side_effect):
                    self.assertIs(send(self.subscription, {"title": "t"}), expected)

    @PUSH_ENABLED
    def test_send_reports_malformed_keys_as_failed(self):
        broken = PushSubscription.objects.create(
            user=self.subscription.user,
            endpoint="https://push.example.com/broken",
            p256dh="not-a-key",
            auth="not-a-secret",
        )

        self.assertIs(send(broken, {"title": "t"}), DeliveryStatus.FAILED)

        with mock.patch("notifications.webpush.webpush", side_effect=ValueError("bad key")):
            self.assertIs(send(self.subscription, {"title": "t"}), DeliveryStatus.FAILED)

    @PUSH_ENABLED
    def test_send_uses_fresh_vapid_claims(self):
        with mock.patch("notifications.webpush.webpush") as webpush_mock:
            send(self.subscription, {"title": "a"})
            send(self.subscription, {"title": "b"})

        first, second = (call.kwargs["vapid_claims"] for call in webpush_mock.call_args_list)
        self.assertIsNot(first, second)
        self.assertEqual(first["sub"], "mailto:admin@agendajd.com")


class NotificationEndpointTests(RedisPatchedTestCase):

    @classmethod
    def setUpTestData(cls):
        super().setUpTestData()
        cls.user = create_user("user@example.com")
        cls.other = create_user("other@example.com")
        cls.admin = create_user("admin@example.com", MembershipType.DEMOLAY_ADMIN)
        cls.mine = Notification.objects.create(user=cls.user, title="A", message="a")
        Notification.objects.create(user=cls.user, title="B", message="b")
        cls.theirs = Notification.objects.create(user=cls.other, title="C", message="c")

    def test_list_returns_only_own_records_newest_first(self):
        response = auth_client(self.user).get("/notifications/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["title"] for item in response.json()["data"]], ["B", "A"])

    def test_mark_read(self):
        response = auth_client(self.user).post(f"/notifications/{self.mine.pk}/read/")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["data"]["is_read"])

    def test_mark_someone_elses_record_is_403(self):
        response = auth_client(self.user).post(f"/notifications/{self.theirs.pk}/read/")

        self.assertEqual(response.status_code, 403)
        self.theirs.refresh_from_db()
        self.assertFalse(self.theirs.is_read)

    def test_read_all_only_touches_own_records(self):
        response = auth_client(self.user).post("/notifications/read-all/")

        self.assertEqual(response.json()["data"]["updated"], 2)
        self.theirs.refresh_from_db()
        self.assertFalse(self.theirs.is_read)

    def test_subscribe_upserts_by_endpoint(self):
        payload = {
            "endpoint": "https://push.example.com/device",
            "keys": {"p256dh": "k1", "auth": "a1"},
            "expirationTime": None,
        }
        self.assertEqual(
            auth_client(self.user).post("/push/subscriptions/", payload, format="json").status_code, 201
        )

        payload["keys"] = {"p256dh": "k2", "auth": "a2"}
        auth_client(self.other).post("/push/subscriptions/", payload, format="json")

        subscription = PushSubscription.objects.get(endpoint=payload["endpoint"])
        self.assertEqual(subscription.user_id, self.other.pk)
        self.assertEqual(subscription.p256dh, "k2")

    def test_unsubscribe_only_by_owner(self):
        subscription = subscribe(self.user, "device")
        url = f"/push/subscriptions/?endpoint={subscription.endpoint}"

        self.assertEqual(auth_client(self.other).delete(url).status_code, 403)
        self.assertEqual(auth_client(self.user).delete(url).status_code, 204)
        self.assertFalse(PushSubscription.objects.exists())

    def test_vapid_key_is_null_when_push_disabled(self):
        response = auth_client(self.user).get("/push/vapid-key/")
        self.assertIsNone(response.json()["data"]["public_key"])

    def test_send_is_503_when_push_disabled(self):
        response = auth_client(self.admin).post(
            "/push/send/", {"title": "T", "message": "M"}, format="json"
        )
        body = response.json()

        self.assertEqual(response.status_code, 503)
        self.assertIsNone(body["data"])

    @PUSH_ENABLED
    def test_send_is_admin_only_and_targets_selected_users(self):
        subscribe(self.user, "user")
        subscribe(self.other, "other")

        self.assertEqual(
            auth_client(self.user).post("/push/send/", {"title": "T", "message": "M"}, format="json").status_code,
            403,
        )

        with mock.patch("notifications.webpush.webpush") as webpush_mock:
            response = auth_client(self.admin).post(
                "/push/send/",
                {"title": "T", "message": "M", "user_ids": [str(self.user.pk)]},
                format="json",
            )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["sent"], 1)
        webpush_mock.assert_called_once()
