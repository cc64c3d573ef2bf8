"""
Customer notifications (SMS / email).

Services only call ``notify(recipient, template_id, params)``. The provider
behind each channel is picked from settings; only mock providers exist so
far, they validate the recipient and log the message instead of sending it.
"""

import re
import time
from dataclasses import dataclass
from typing import Optional

from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)

_PHONE_RE = re.compile(r"^(\+91)?[6-9]\d{9}$")


@dataclass(frozen=True)
class NotificationResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


# template_id -> (email subject, message body)
TEMPLATES: dict[str, tuple[str, str]] = {
    "order_ready": (
        "Your order is ready for pickup",
        "Hi {customer_name}, your order for {medicine_name} is ready for pickup "
        "at {pharmacy_name}. Show pickup code {pickup_code} at the counter.",
    ),
    "order_completed": (
        "Order collected",
        "Hi {customer_name}, your order {pickup_code} for {medicine_name} was "
        "collected. Thank you for choosing {pharmacy_name}!",
    ),
    "membership_created": (
        "Welcome to {pharmacy_name} rewards",
        "Welcome! Your membership code is {membership_code}. "
        "Current balance: {points_balance} points.",
    ),
}


def validate_phone_number(phone: str) -> bool:
    return bool(_PHONE_RE.match(phone.replace(" ", "")))


def render(template_id: str, params: dict) -> tuple[str, str]:
    """Return (subject, body) for a template. Raises KeyError on unknown ids."""
    subject, body = TEMPLATES[template_id]
    values = {"pharmacy_name": get_settings().PHARMACY_NAME, **params}
    return subject.format(**values), body.format(**values)


class MockSMSProvider:
    """Logs the SMS instead of sending it."""

    async def send(self, to: str, message: str) -> NotificationResult:
        if not validate_phone_number(to):
            return NotificationResult(success=False, error="Invalid phone number format")
        logger.info(
            "[MOCK SMS] From: %s To: %s, Message: %s",
            get_settings().SMS_SENDER_ID,
            to,
            message,
        )
        return NotificationResult(success=True, message_id=f"mock_sms_{time.time_ns()}")


class MockEmailProvider:
    """Logs the email instead of sending it."""

    async def send(self, to: str, subject: str, body: str) -> NotificationResult:
        sender = get_settings().DEFAULT_FROM_EMAIL
        logger.info("[MOCK EMAIL] From: %s To: %s Subject: %s", sender, to, subject)
        logger.debug("[MOCK EMAIL] Body: %s", body)
        return NotificationResult(success=True, message_id=f"mock_email_{time.time_ns()}")


_SMS_PROVIDERS = {"mock": MockSMSProvider}
_EMAIL_PROVIDERS = {"mock": MockEmailProvider}


def get_sms_provider():
    return _SMS_PROVIDERS[get_settings().SMS_PROVIDER]()


def get_email_provider():
    return _EMAIL_PROVIDERS[get_settings().EMAIL_PROVIDER]()


async def notify(recipient: str, template_id: str, params: dict) -> NotificationResult:
    """Send ``template_id`` to ``recipient`` (email address or phone number).

    Never raises for delivery problems: callers fire and forget, failures come
    back as ``NotificationResult(success=False)`` and are logged here.
    """
    try:
        subject, body = render(template_id, params)
    except KeyError as exc:
        logger.error("Cannot render notification %s: missing %s", template_id, exc)
        return NotificationResult(success=False, error=f"Unknown template or field: {exc}")

    if "@" in recipient:
        result = await get_email_provider().send(recipient, subject, body)
    else:
        result = await get_sms_provider().send(recipient, body)

    if not result.success:
        logger.warning(
            "Notification %s to %s failed: %s", template_id, recipient, result.error
        )
    return result
