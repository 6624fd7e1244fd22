"""
Apify platform backend.

Maps the platform contracts onto the Apify SDK (``apify.Actor``) and the
Crawlee session pool. Only usable inside an initialized Actor.
"""

import logging
from typing import Any, Dict, List, Mapping, NoReturn, Optional

from apify import Actor
from crawlee.sessions import Session, SessionPool as CrawleeSessionPool

from session_handoff.backends.interfaces import (
    Dataset,
    KeyValueStore,
    SESSION_POOL_STATE_KEY,
    Platform,
    SessionHandle,
    SessionPool,
)
from session_handoff.jobs.models import JobRun, RunStatus
from session_handoff.session.models import CookieRecord, StorageRef

logger = logging.getLogger(__name__)


def _field(data: Any, camel: str, snake: str) -> Any:
    """Read a field from an API dict (camelCase) or an SDK model (snake_case)."""
    if isinstance(data, Mapping):
        return data.get(camel, data.get(snake))
    return getattr(data, snake, None)


def to_job_run(data: Any) -> JobRun:
    """Convert an Apify run object into a JobRun."""
    status = _field(data, "status", "status")
    return JobRun(
        run_id=_field(data, "id", "id"),
        status=RunStatus(getattr(status, "value", status)),
        output_dataset_ref=_field(data, "defaultDatasetId", "default_dataset_id"),
    )


class CrawleeSessionHandle(SessionHandle):
    def __init__(self, session: Session):
        self._session = session

    @property
    def id(self) -> str:
        return self._session.id

    def set_cookies(self, cookies: List[CookieRecord]) -> None:
        for cookie in cookies:
            self._session.cookies.set(
                name=cookie.name,
                value=cookie.value,
                domain=cookie.domain,
                path=cookie.path,
                http_only=cookie.http_only,
                secure=cookie.secure,
            )


class CrawleeSessionPoolAdapter(SessionPool):
    """Crawlee session pool with persistence into the run's default store."""

    def __init__(self, max_size: int):
        self._max_size = max_size
        self._pool = CrawleeSessionPool(
            max_pool_size=max_size,
            persistence_enabled=True,
            persist_state_key=SESSION_POOL_STATE_KEY,
        )

    @property
    def max_size(self) -> int:
        return self._max_size

    async def new_session(self) -> SessionHandle:
        session = await self._pool.get_session()
        return CrawleeSessionHandle(session)

    async def __aenter__(self) -> "CrawleeSessionPoolAdapter":
        await self._pool.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self._pool.__aexit__(exc_type, exc_val, exc_tb)


class ApifyKeyValueStore(KeyValueStore):
    def __init__(self, store: Any):
        self._store = store

    @property
    def ref(self) -> StorageRef:
        return StorageRef(id=self._store.id, name=self._store.name)

    async def set(self, key: str, value: Any) -> None:
        await self._store.set_value(key, value)

    async def get(self, key: str) -> Optional[Any]:
        return await self._store.get_value(key)


class ApifyDataset(Dataset):
    def __init__(self, dataset: Any):
        self._dataset = dataset

    async def read_all(self) -> List[Dict[str, Any]]:
        return [item async for item in self._dataset.iterate_items()]


class ApifyPlatform(Platform):
    """The current Apify actor run."""

    @property
    def run_id(self) -> Optional[str]:
        return Actor.configuration.actor_run_id

    async def get_input(self) -> Dict[str, Any]:
        return await Actor.get_input() or {}

    def create_session_pool(self, max_size: int) -> SessionPool:
        return CrawleeSessionPoolAdapter(max_size)

    async def open_key_value_store(self, name: Optional[str] = None) -> KeyValueStore:
        store = await Actor.open_key_value_store(name=name)
        return ApifyKeyValueStore(store)

    async def replace_identity(self, target_actor_id: str, run_input: Dict[str, Any]) -> NoReturn:
        # On the platform the container is replaced and this never returns
        await Actor.metamorph(target_actor_id, run_input=run_input)

    async def invoke_child(
        self,
        target_actor_id: str,
        run_input: Dict[str, Any],
        memory_mbytes: Optional[int] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> JobRun:
        if env:
            # The run API has no per-run environment; the same values travel in the input
            logger.debug(f"Per-run environment not supported, skipping {sorted(env)}")
        run = await Actor.start(target_actor_id, run_input=run_input, memory_mbytes=memory_mbytes)
        return to_job_run(run)

    async def get_run(self, run_id: str) -> JobRun:
        data = await Actor.apify_client.run(run_id).get()
        if data is None:
            raise ValueError(f"Run {run_id} not found")
        return to_job_run(data)

    async def open_dataset(self, ref: str) -> Dataset:
        dataset = await Actor.open_dataset(id=ref, force_cloud=True)
        return ApifyDataset(dataset)

    async def push_data(self, records: List[Dict[str, Any]]) -> None:
        await Actor.push_data(records)

    async def exit(self) -> None:
        await Actor.exit()

    async def fail(self, message: str) -> None:
        await Actor.fail(exit_code=1, status_message=message)
