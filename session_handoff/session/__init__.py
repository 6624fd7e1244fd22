"""
Session seeding and publishing.

Builds the authentication cookie, materializes it inside a one-session pool
(``seeder``) and publishes it to a key-value store where a downstream run
can read it (``publisher``).
"""

from .models import (
    CookieRecord,
    SharedSessionPayload,
    StorageRef,
    SESSION_COOKIE_NAME,
    build_cookie,
    mask_secret,
)

__all__ = [
    "CookieRecord",
    "SharedSessionPayload",
    "StorageRef",
    "SESSION_COOKIE_NAME",
    "build_cookie",
    "mask_secret",
]
