"""
WhatsApp transport.

Calls the whatsapp-bot service over HTTP to deliver a message.  All failures
are logged and swallowed so a WhatsApp outage never breaks payment recording.
"""

import logging
import re

import requests

from kost.core.config import settings

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(phone: str | None) -> str | None:
    """``0812-3456-789`` → ``+628123456789``; returns None when nothing usable is left."""
    if not phone:
        return None
    digits = _NON_DIGITS.sub("", phone)
    if not digits:
        return None
    if digits.startswith("0"):
        digits = "62" + digits[1:]
    return f"+{digits}"


def send_whatsapp(to: str, message: str) -> bool:
    """
    Send ``message`` to ``to`` (any Indonesian or E.164 number).

    Returns True on success, False on any error (logs the reason).
    Safe to call when whatsapp_enabled=False: returns False silently.
    """
    if not settings.whatsapp_enabled:
        return False
    number = normalize_phone(to)
    if not number or not message:
        return False
    try:
        resp = requests.post(
            f"{settings.whatsapp_bot_url}/send",
            json={"to": number, "message": message},
            timeout=10,
        )
        if resp.status_code == 200:
            return True
        logger.warning(
            "WhatsApp /send returned %d: %s", resp.status_code, resp.text[:200]
        )
        return False
    except requests.RequestException as exc:
        logger.warning("WhatsApp send failed (to=%s): %s", number, exc)
        return False
