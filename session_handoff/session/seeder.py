"""
Materializes a single pre-authenticated session inside the platform's
session pool.
"""

import logging

from session_handoff.backends.interfaces import Platform, SessionHandle
from session_handoff.errors import SeedingError
from session_handoff.session.models import CookieRecord

logger = logging.getLogger(__name__)

# Exactly one logical user is modeled
SESSION_POOL_SIZE = 1


class SessionSeeder:
    """Creates one session carrying the session cookie. No pages are fetched."""

    def __init__(self, platform: Platform):
        self._platform = platform
        self._logger = logger.getChild("seeder")

    async def seed(self, cookie: CookieRecord) -> SessionHandle:
        """
        Create a session holding exactly ``cookie`` in a pool of size one.

        The pool is closed before returning so its state is persisted by the
        platform and visible to whatever runs next in the same storage scope.

        Raises:
            SeedingError: If the pool or the cookie attachment fails
        """
        self._logger.info(
            f"Seeding session with {cookie.name}={cookie.masked_value} for domain {cookie.domain}"
        )
        try:
            async with self._platform.create_session_pool(max_size=SESSION_POOL_SIZE) as pool:
                session = await pool.new_session()
                session.set_cookies([cookie])
        except Exception as e:
            raise SeedingError(f"Failed to seed session: {e}") from e

        self._logger.info(f"Session {session.id} seeded")
        return session
