"""
Publishes the session cookie to a key-value store for downstream runs.
"""

import hashlib
import logging
import re
from typing import Optional

from session_handoff.backends.interfaces import KeyValueStore, Platform
from session_handoff.session.models import CookieRecord, SharedSessionPayload, StorageRef

logger = logging.getLogger(__name__)

# Record holding the full SharedSessionPayload
SESSION_PAYLOAD_KEY = "SESSION_COOKIE"
# Record holding only the cookie value
SESSION_VALUE_KEY = "PHPSESSID"

# Platform limit for named storages
STORE_NAME_MAX_LENGTH = 63


def store_name_for_run(run_id: str) -> str:
    """
    Deterministic store name for a run.

    Store names allow [a-z0-9-] only, may not start or end with a hyphen and
    are at most 63 characters long. A run id with nothing usable falls back
    to a digest of the id; an overlong name is cut and suffixed with the
    digest so distinct run ids keep distinct stores.
    """
    slug = re.sub(r"[^a-z0-9-]+", "-", run_id.lower()).strip("-")
    digest = hashlib.sha1(run_id.encode("utf-8")).hexdigest()[:10]
    name = f"session-{slug or digest}"
    if len(name) > STORE_NAME_MAX_LENGTH:
        head = name[: STORE_NAME_MAX_LENGTH - len(digest) - 1].rstrip("-")
        name = f"{head}-{digest}"
    return name


class SessionPublisher:
    """Writes the shared session payload. Re-publishing overwrites."""

    def __init__(self, platform: Platform):
        self._platform = platform
        self._logger = logger.getChild("publisher")

    async def publish(self, cookie: CookieRecord, store_name: Optional[str] = None) -> StorageRef:
        """
        Persist the cookie for a downstream run.

        Args:
            cookie: The session cookie
            store_name: Named store to open (created if absent); the default
                store is used when omitted

        Returns:
            Reference identifying the store
        """
        store = await self._platform.open_key_value_store(store_name)
        payload = SharedSessionPayload(cookie=cookie)
        await store.set(SESSION_PAYLOAD_KEY, payload.to_dict())
        await store.set(SESSION_VALUE_KEY, cookie.value)

        ref = store.ref
        self._logger.info(f"Published session to store {ref.name or ref.id or 'default'}")
        return ref

    @staticmethod
    async def read(store: KeyValueStore) -> Optional[SharedSessionPayload]:
        """Read a published payload back, or None when nothing was published."""
        data = await store.get(SESSION_PAYLOAD_KEY)
        if data is None:
            return None
        return SharedSessionPayload.from_dict(data)
