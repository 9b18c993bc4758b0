"""
Configuration Module for Food Order Bot
=======================================

This module centralizes the configuration settings, environment variables and
constants used throughout the Food Order Bot application. Values are parsed
once at import time so misconfiguration shows up at startup.

Configuration Categories:
-------------------------
- **Messaging Transport**: Twilio WhatsApp credentials. When they are missing
  the transport runs in simulated mode and only logs outbound messages.

- **Phone Numbers**: The country code stripped from inbound senders and the
  region used to format outbound addresses.

- **Ordering**: Currency symbol and the static UPI collection identifier
  shown to customers who choose UPI.

- **Session Management**: Which session backend to use and an optional TTL.
  A TTL of 0 keeps sessions for the life of the process.

- **Rate Limiting**: Throttling for the public flow-start endpoint.

- **CORS / Admin**: Dashboard integration settings.

Environment Variables:
----------------------
- TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN / TWILIO_WHATSAPP_NUMBER
- DEFAULT_COUNTRY_CODE: Country calling code stripped from senders (default: "91")
- DEFAULT_PHONE_REGION: Region used for outbound formatting (default: "IN")
- UPI_PAYMENT_ID: UPI id shown for UPI orders
- CURRENCY_SYMBOL: Currency symbol used in messages (default: "₹")
- SESSION_BACKEND: "memory" or "database" (default: "memory")
- SESSION_TTL_SECONDS: Idle session expiry, 0 disables (default: 0)
- RATE_LIMIT_START_ORDER: Flow-start rate limit (default: "10 per minute")
- RATE_LIMIT_ENABLED: Enable/disable rate limiting (default: "true")
- CORS_ORIGINS: Comma-separated allowed origins (default: "*")
- ADMIN_USERNAME / ADMIN_PASSWORD: Dashboard HTTP Basic credentials

Usage:
------
    from food_order_bot.config import (
        DEFAULT_COUNTRY_CODE,
        SESSION_BACKEND,
        UPI_PAYMENT_ID,
    )
"""

import os
from typing import List


# =============================================================================
# Messaging Transport Configuration
# =============================================================================
# Twilio's WhatsApp API. Without an account SID and auth token the transport
# logs would-be messages instead of sending them.

TWILIO_ACCOUNT_SID: str = os.getenv("TWILIO_ACCOUNT_SID", "")
TWILIO_AUTH_TOKEN: str = os.getenv("TWILIO_AUTH_TOKEN", "")
TWILIO_WHATSAPP_NUMBER: str = os.getenv("TWILIO_WHATSAPP_NUMBER", "whatsapp:+14155238886")


def is_twilio_configured() -> bool:
    """Check if Twilio credentials are present."""
    return bool(TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN)


# =============================================================================
# Phone Number Configuration
# =============================================================================
# Session and user keys are national 10-digit numbers. Senders arrive as
# "whatsapp:+91XXXXXXXXXX", so the country code is stripped on the way in and
# added back (via phonenumbers) on the way out.

DEFAULT_COUNTRY_CODE: str = os.getenv("DEFAULT_COUNTRY_CODE", "91")
DEFAULT_PHONE_REGION: str = os.getenv("DEFAULT_PHONE_REGION", "IN")
PHONE_KEY_LENGTH: int = 10


# =============================================================================
# Ordering Configuration
# =============================================================================

CURRENCY_SYMBOL: str = os.getenv("CURRENCY_SYMBOL", "₹")

# UPI payments are not processed; customers are shown this id and the
# restaurant confirms payment with the PAID command.
UPI_PAYMENT_ID: str = os.getenv("UPI_PAYMENT_ID", "foodorder@upi")


# =============================================================================
# Session Management Configuration
# =============================================================================
# "memory" keeps sessions in a process-wide dict (lost on restart).
# "database" stores them as JSON rows so several workers can share them.

SESSION_BACKEND: str = os.getenv("SESSION_BACKEND", "memory").strip().lower()

# Idle time after which a session is discarded and the customer starts over.
# 0 means sessions never expire.
SESSION_TTL_SECONDS: int = int(os.getenv("SESSION_TTL_SECONDS", "0"))


# =============================================================================
# Rate Limiting Configuration
# =============================================================================
# Only the public flow-start endpoint is throttled. The webhook is never
# rate limited because the transport expects every call to be acknowledged.

RATE_LIMIT_START_ORDER: str = os.getenv("RATE_LIMIT_START_ORDER", "10 per minute")
RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"


def get_rate_limit_start_order() -> str:
    """
    Return the current flow-start rate limit.

    This function allows dynamic override in tests without modifying
    the module-level constant.
    """
    return RATE_LIMIT_START_ORDER


# =============================================================================
# CORS Configuration
# =============================================================================

_cors_origins_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS: List[str] = [
    origin.strip()
    for origin in _cors_origins_env.split(",")
    if origin.strip()
] or ["*"]


# =============================================================================
# Admin Authentication Configuration
# =============================================================================
# Credentials for HTTP Basic Auth on the dashboard order endpoints.
# ADMIN_PASSWORD must be set for admin access to work.

ADMIN_USERNAME: str = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")
