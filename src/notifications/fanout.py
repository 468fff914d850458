"""Notify everyone who can see a new event or post.

The audience of a resource is derived from the same allow-list the read
checks use (``access_control.policy.audience_filter``), minus the author.
Delivery runs in two phases: the in-app records are written first in one
statement, then every push subscription of the audience is tried once. A
push failure never undoes the records.
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from django.contrib.auth import get_user_model
from django.utils import timezone

from access_control import policy
from . import webpush
from .models import Notification, PushSubscription
from .webpush import DeliveryStatus

logger = logging.getLogger(__name__)

User = get_user_model()

PREVIEW_LENGTH = 50


@dataclass(frozen=True)
class FanOutResult:
    push_sent: int = 0
    push_failed: int = 0
    push_expired: int = 0
    records_created: int = 0


def _payload(title: str, message: str, url: str) -> dict:
    return {
        "title": title,
        "message": message,
        "url": url or "/",
        "timestamp": timezone.now().isoformat(),
    }


def _push(subscriptions, payload: dict) -> tuple[int, int, int]:
    """Send ``payload`` to every subscription; returns (sent, failed, expired)."""
    if not webpush.is_configured():
        webpush.warn_disabled()
        return 0, 0, 0

    sent = failed = 0
    expired_ids = []
    try:
        for subscription in subscriptions:
            result = webpush.send(subscription, payload)
            if result is DeliveryStatus.SENT:
                sent += 1
            elif result is DeliveryStatus.EXPIRED:
                logger.info("Removing expired push subscription %s", subscription.endpoint)
                expired_ids.append(subscription.pk)
            else:
                failed += 1
    finally:
        if expired_ids:
            PushSubscription.objects.filter(pk__in=expired_ids).delete()
    return sent, failed, len(expired_ids)


def audience_of(resource):
    """Active users who can view ``resource``, excluding its author."""
    return (
        User.objects.filter(is_active=True)
        .filter(policy.audience_filter(resource))
        .exclude(pk=resource.author_id)
    )


def fan_out(resource, *, title: str, message: str, url: str) -> FanOutResult:
    """Create one notification per audience member, then push to their devices."""
    user_ids = list(audience_of(resource).values_list("pk", flat=True))

    # Notification has one nullable FK per notifiable model, named after it.
    link = {resource._meta.model_name: resource}
    records = Notification.objects.bulk_create(
        [Notification(user_id=user_id, title=title, message=message, **link) for user_id in user_ids]
    )

    subscriptions = PushSubscription.objects.filter(user_id__in=user_ids)
    sent, failed, expired = _push(subscriptions, _payload(title, message, url))

    result = FanOutResult(
        push_sent=sent,
        push_failed=failed,
        push_expired=expired,
        records_created=len(records),
    )
    logger.info(
        "Fan-out for %s %s: audience=%d records=%d sent=%d failed=%d expired=%d",
        resource._meta.model_name,
        resource.pk,
        len(user_ids),
        result.records_created,
        result.push_sent,
        result.push_failed,
        result.push_expired,
    )
    return result


def notify_new_event(event) -> FanOutResult:
    message = f"Evento: {event.title}"
    if not event.is_public and event.subgroup_id is not None:
        message += f" ({event.subgroup.name})"
    message += f" - {timezone.localtime(event.starts_at):%d/%m/%Y}"
    return fan_out(
        event,
        title="Novo Evento Adicionado",
        message=message,
        url=f"/calendario?evento={event.pk}",
    )


def notify_new_post(post) -> FanOutResult:
    message = post.text[:PREVIEW_LENGTH]
    if len(post.text) > PREVIEW_LENGTH:
        message += "..."
    if post.author.name:
        message += f" - por {post.author.name}"
    if not post.is_global and post.subgroup_id is not None:
        message = f"[{post.subgroup.name}] {message}"
    return fan_out(
        post,
        title="Novo Recado no Mural",
        message=message,
        url=f"/recados/{post.pk}",
    )


def notify_post_author(comment) -> Notification | None:
    """Tell the post's author about a new comment, unless they wrote it."""
    post = comment.post
    if comment.author_id == post.author_id:
        return None
    preview = comment.text[:PREVIEW_LENGTH]
    if len(comment.text) > PREVIEW_LENGTH:
        preview += "..."
    return Notification.objects.create(
        user_id=post.author_id,
        title="Novo comentário no seu recado",
        message=f"{comment.author.name}: {preview}",
        post=post,
    )


def send_to_users(users: Iterable, title: str, message: str, url: str = "/") -> FanOutResult:
    """Push a message to every device of ``users``; no in-app records are written."""
    user_ids = [getattr(user, "pk", user) for user in users]
    subscriptions = PushSubscription.objects.filter(user_id__in=user_ids)
    sent, failed, expired = _push(subscriptions, _payload(title, message, url))
    logger.info(
        "Broadcast to %d users: sent=%d failed=%d expired=%d",
        len(user_ids),
        sent,
        failed,
        expired,
    )
    return FanOutResult(push_sent=sent, push_failed=failed, push_expired=expired)


__all__ = [
    "FanOutResult",
    "audience_of",
    "fan_out",
    "notify_new_event",
    "notify_new_post",
    "notify_post_author",
    "send_to_users",
]
