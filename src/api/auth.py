"""
Admin key guard for the rate-limit administration endpoints.

The key is read from HERALD_ADMIN_KEY. When it is unset a development key is
accepted and the guard says so in the log at start-up.
"""

import hashlib
import logging
import os
import secrets

from fastapi import Header, HTTPException, status

logger = logging.getLogger(__name__)

ADMIN_KEY_ENV = "HERALD_ADMIN_KEY"
DEFAULT_ADMIN_KEY = "change-me-in-production"


def key_fingerprint(key: str) -> str:
    """Short digest for logs; the key itself is never logged."""
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:12]


class AdminAuth:
    def __init__(self, admin_key: str | None = None):
        configured = admin_key or os.getenv(ADMIN_KEY_ENV)
        self.uses_default_key: bool = not configured
        self.admin_key: str = configured or DEFAULT_ADMIN_KEY

        if self.uses_default_key:
            logger.warning(f"[AUTH] {ADMIN_KEY_ENV} is not set; admin endpoints accept the development key")
        else:
            logger.info(f"[AUTH] Admin key configured (fingerprint {key_fingerprint(self.admin_key)})")

    def verify_key(self, provided_key: str | None) -> bool:
        if not provided_key:
            return False
        return secrets.compare_digest(provided_key.encode("utf-8"), self.admin_key.encode("utf-8"))


_admin_auth: AdminAuth | None = None


def get_admin_auth() -> AdminAuth:
    global _admin_auth
    if _admin_auth is None:
        _admin_auth = AdminAuth()
    return _admin_auth


def verify_admin_key(x_admin_key: str = Header(..., description="Admin API key")) -> None:
    """FastAPI dependency: 403 unless X-Admin-Key matches the configured key."""
    if get_admin_auth().verify_key(x_admin_key):
        return None

    logger.warning(f"[AUTH] Rejected admin request (key fingerprint {key_fingerprint(x_admin_key)})")
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Invalid admin key: send the configured key in the X-Admin-Key header",
    )
