"""
Phone number keys for the messaging channel.

Every session, user lookup and message log entry is keyed by the national
10-digit number. Inbound senders look like "whatsapp:+919876543210"; the
transport needs the E.164 form back when we reply.

    normalize_phone("whatsapp:+919876543210")  -> "9876543210"
    to_whatsapp_address("9876543210")          -> "whatsapp:+919876543210"
"""

import re
import logging

import phonenumbers
from phonenumbers.phonenumberutil import NumberParseException

from .config import DEFAULT_COUNTRY_CODE, DEFAULT_PHONE_REGION, PHONE_KEY_LENGTH

logger = logging.getLogger(__name__)

TRANSPORT_PREFIX = "whatsapp:"


def normalize_phone(raw: str) -> str:
    """
    Reduce a sender address to its canonical key.

    Non-digits (including the transport prefix and a leading "+") are
    removed. A 12-digit number that starts with the default country code
    collapses to its trailing 10 digits. Anything else is returned as the
    remaining digits, so malformed input degrades rather than raising.
    The function is idempotent.
    """
    digits = re.sub(r"\D", "", raw or "")
    expected_length = len(DEFAULT_COUNTRY_CODE) + PHONE_KEY_LENGTH
    if len(digits) == expected_length and digits.startswith(DEFAULT_COUNTRY_CODE):
        digits = digits[len(DEFAULT_COUNTRY_CODE):]
    return digits


def is_valid_phone_key(key: str) -> bool:
    """True when key is exactly PHONE_KEY_LENGTH digits."""
    return bool(key) and key.isdigit() and len(key) == PHONE_KEY_LENGTH


def to_whatsapp_address(key: str) -> str:
    """Format a phone key as a transport address in E.164 form."""
    try:
        parsed = phonenumbers.parse(key, DEFAULT_PHONE_REGION)
        e164 = phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
    except NumberParseException as e:
        logger.warning("Could not parse phone key %s (%s), using country code prefix", key, e)
        e164 = f"+{DEFAULT_COUNTRY_CODE}{key}"
    return f"{TRANSPORT_PREFIX}{e164}"
