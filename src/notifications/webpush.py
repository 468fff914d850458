"""Web push transport over VAPID using pywebpush.

Settings are read on every call so that tests can toggle push with
``override_settings``.
"""

import enum
import json
import logging
from typing import Any

import requests
from django.conf import settings
from pywebpush import WebPushException, webpush

logger = logging.getLogger(__name__)

_EXPIRED_STATUS_CODES = (404, 410)

_warned_disabled = False


class DeliveryStatus(str, enum.Enum):
    SENT = "sent"
    EXPIRED = "expired"
    FAILED = "failed"


def is_configured() -> bool:
    """True when both VAPID keys are set."""
    return bool(
        getattr(settings, "VAPID_PUBLIC_KEY", "") and getattr(settings, "VAPID_PRIVATE_KEY", "")
    )


def warn_disabled() -> None:
    """Log once per process that push delivery is switched off."""
    global _warned_disabled
    if not _warned_disabled:
        logger.warning("VAPID keys are not configured; push notifications are disabled.")
        _warned_disabled = True


def send(subscription, payload: dict[str, Any]) -> DeliveryStatus:
    """Deliver ``payload`` to one subscription.

    A 404 or 410 from the push service means the browser dropped the
    subscription and is reported as EXPIRED. Every other transport error is
    logged and reported as FAILED, as is a subscription whose keys cannot be
    used for encryption; nothing is raised.
    """
    try:
        webpush(
            subscription_info=subscription.to_subscription_info(),
            data=json.dumps(payload),
            vapid_private_key=settings.VAPID_PRIVATE_KEY,
            # pywebpush writes "aud" and "exp" into the claims dict.
            vapid_claims={"sub": settings.VAPID_SUBJECT},
            timeout=settings.PUSH_TIMEOUT_SECONDS,
        )
    except WebPushException as exc:
        status_code = getattr(exc.response, "status_code", None)
        if status_code in _EXPIRED_STATUS_CODES:
            return DeliveryStatus.EXPIRED
        logger.warning(
            "Push to %s failed (status %s): %s", subscription.endpoint, status_code, exc
        )
        return DeliveryStatus.FAILED
    except requests.RequestException as exc:
        logger.warning("Push to %s failed: %s", subscription.endpoint, exc)
        return DeliveryStatus.FAILED
    except Exception:
        # Malformed keys surface as ValueError/binascii.Error from the encryptor.
        logger.exception("Push to %s could not be encoded", subscription.endpoint)
        return DeliveryStatus.FAILED
    return DeliveryStatus.SENT


__all__ = ["DeliveryStatus", "is_configured", "warn_disabled", "send"]
