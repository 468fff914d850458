"""Mirror members' birth dates as public calendar events.

Each member with a ``birth_date`` owns at most one birthday event, dated on
this year's anniversary. Birthday events are written directly and never go
through the notification fan-out.
"""

import calendar
import logging
from datetime import date, datetime, time
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from access_control.models import MembershipType
from .models import Event

logger = logging.getLogger(__name__)

User = get_user_model()


def anniversary(birth_date: date, year: int) -> date:
    """``birth_date`` moved to ``year``; 29 February falls back to the 28th."""
    if birth_date.month == 2 and birth_date.day == 29 and not calendar.isleap(year):
        return date(year, 2, 28)
    return birth_date.replace(year=year)


def _birthday_author(user):
    admin = (
        User.objects.filter(membership_type=MembershipType.GENERAL_ADMIN, is_active=True)
        .order_by("date_joined")
        .first()
    )
    return admin or user


@transaction.atomic
def sync_birthday(user, year: Optional[int] = None) -> Optional[Event]:
    """Create, update or remove ``user``'s birthday event.

    Returns the event, or None when the user has no birth date (any existing
    birthday event is deleted).
    """
    if user.birth_date is None:
        deleted, _ = Event.objects.filter(birthday_of=user).delete()
        if deleted:
            logger.info("Removed birthday event for user %s", user.pk)
        return None

    year = year or timezone.localdate().year
    day = anniversary(user.birth_date, year)
    fields = {
        "title": f"🎂 Aniversário: {user.first_name}",
        "description": f"Aniversário de {user.name}.",
        "starts_at": timezone.make_aware(datetime.combine(day, time.min)),
        "is_public": True,
        "subgroup_id": user.subgroup_id,
    }

    event = Event.objects.filter(birthday_of=user).first()
    if event is None:
        event = Event.objects.create(birthday_of=user, author=_birthday_author(user), **fields)
        logger.info("Created birthday event %s for user %s", event.pk, user.pk)
        return event

    for name, value in fields.items():
        setattr(event, name, value)
    event.save()
    return event


def sync_all_birthdays(year: Optional[int] = None) -> int:
    """Sync every member that has a birth date; returns how many were synced."""
    count = 0
    for user in User.objects.filter(birth_date__isnull=False).iterator():
        sync_birthday(user, year=year)
        count += 1
    logger.info("Synced %d birthday events", count)
    return count


__all__ = ["anniversary", "sync_birthday", "sync_all_birthdays"]
