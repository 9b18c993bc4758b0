"""
Authentication for the dashboard order endpoints.

All /admin/* routes use HTTP Basic Auth against ADMIN_USERNAME and
ADMIN_PASSWORD (see config.py). If ADMIN_PASSWORD is not configured the
routes answer 503 instead of allowing unauthenticated access.

Usage:
    from food_order_bot.auth import verify_admin_credentials

    @router.get("/admin/orders")
    def list_orders(admin: str = Depends(verify_admin_credentials)):
        ...
"""

import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from . import config


# Shared realm so browsers reuse credentials across dashboard paths
security = HTTPBasic(realm="Food Order Admin")


def verify_admin_credentials(
    credentials: HTTPBasicCredentials = Depends(security),
) -> str:
    """
    Verify HTTP Basic Auth credentials for admin endpoints.

    Returns:
        str: The authenticated username.

    Raises:
        HTTPException (503): ADMIN_PASSWORD is not set.
        HTTPException (401): Credentials do not match.
    """
    if not config.ADMIN_PASSWORD:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin authentication not configured. Set ADMIN_PASSWORD environment variable.",
        )

    # Constant-time comparison
    username_correct = secrets.compare_digest(
        credentials.username.encode("utf-8"),
        config.ADMIN_USERNAME.encode("utf-8"),
    )
    password_correct = secrets.compare_digest(
        credentials.password.encode("utf-8"),
        config.ADMIN_PASSWORD.encode("utf-8"),
    )

    if not (username_correct and password_correct):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username
