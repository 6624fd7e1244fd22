"""
In-process platform backend.

Runs the whole workflow without the hosting platform: storages live in
memory, target actors are registered async callables executed as asyncio
tasks, and an identity transfer runs the target against the caller's own
storages before raising ProcessReplaced.
"""

import asyncio
import copy
import logging
import threading
import time
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Mapping, NoReturn, Optional

from session_handoff.backends.interfaces import (
    Dataset,
    KeyValueStore,
    SESSION_POOL_STATE_KEY,
    Platform,
    SessionHandle,
    SessionPool,
)
from session_handoff.errors import ProcessReplaced
from session_handoff.jobs.models import JobRun, RunStatus
from session_handoff.session.models import CookieRecord, StorageRef

logger = logging.getLogger(__name__)

LocalActor = Callable[["LocalPlatform"], Awaitable[None]]


class InMemoryKeyValueStore(KeyValueStore):
    """Thread-safe in-memory key-value store."""

    def __init__(self, name: Optional[str] = None):
        self._ref = StorageRef(id=uuid.uuid4().hex, name=name)
        self._store: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.RLock()

    @property
    def ref(self) -> StorageRef:
        return self._ref

    async def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._store[key] = {
                "value": copy.deepcopy(value),
                "created_at": time.time(),
            }

    async def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._store.get(key)
            return copy.deepcopy(entry["value"]) if entry else None

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._store)


class InMemoryDataset(Dataset):
    """Append-only list of records."""

    def __init__(self):
        self.id = uuid.uuid4().hex
        self._items: List[Dict[str, Any]] = []
        self._lock = threading.RLock()

    def push(self, records: List[Dict[str, Any]]) -> None:
        with self._lock:
            self._items.extend(copy.deepcopy(records))

    async def read_all(self) -> List[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._items)


class MemorySession(SessionHandle):
    def __init__(self):
        self._id = f"session_{uuid.uuid4().hex[:10]}"
        self.cookies: List[CookieRecord] = []

    @property
    def id(self) -> str:
        return self._id

    def set_cookies(self, cookies: List[CookieRecord]) -> None:
        for cookie in cookies:
            self.cookies = [c for c in self.cookies if (c.name, c.domain, c.path) != (cookie.name, cookie.domain, cookie.path)]
            self.cookies.append(cookie)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "cookies": [c.to_dict() for c in self.cookies]}


class MemorySessionPool(SessionPool):
    """Session pool persisting its state into the owner's default store on exit."""

    def __init__(self, store: InMemoryKeyValueStore, max_size: int):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._store = store
        self._max_size = max_size
        self.sessions: List[MemorySession] = []

    @property
    def max_size(self) -> int:
        return self._max_size

    async def new_session(self) -> SessionHandle:
        if len(self.sessions) >= self._max_size:
            raise RuntimeError(f"Session pool is full ({self._max_size} sessions)")
        session = MemorySession()
        self.sessions.append(session)
        return session

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            await self._store.set(
                SESSION_POOL_STATE_KEY,
                {
                    "maxPoolSize": self._max_size,
                    "sessions": [s.to_dict() for s in self.sessions],
                },
            )


class LocalStorage:
    """Storages shared by every local run, addressable by name or id."""

    def __init__(self):
        self.named_stores: Dict[str, InMemoryKeyValueStore] = {}
        self.datasets: Dict[str, InMemoryDataset] = {}
        self._lock = threading.RLock()

    def open_store(self, name: str) -> InMemoryKeyValueStore:
        with self._lock:
            if name not in self.named_stores:
                self.named_stores[name] = InMemoryKeyValueStore(name)
            return self.named_stores[name]

    def new_dataset(self) -> InMemoryDataset:
        dataset = InMemoryDataset()
        with self._lock:
            self.datasets[dataset.id] = dataset
        return dataset


class LocalPlatform(Platform):
    """
    A platform run executing in the current process.

    Child runs get their own LocalPlatform sharing the same LocalStorage,
    so named stores written by the parent are visible to the child.
    """

    def __init__(
        self,
        run_input: Optional[Dict[str, Any]] = None,
        env: Optional[Mapping[str, str]] = None,
        storage: Optional[LocalStorage] = None,
        actors: Optional[Dict[str, LocalActor]] = None,
        run_id: Optional[str] = None,
        child_timeout: Optional[float] = None,
    ):
        """
        Args:
            run_input: Input returned by get_input()
            env: Environment values visible to this run
            storage: Shared storages; a fresh one is created when omitted
            actors: Registry of target actors by id
            run_id: Identifier of this run
            child_timeout: Seconds after which a child run is TIMED-OUT
        """
        self.input = dict(run_input or {})
        self.env: Dict[str, str] = dict(env or {})
        self.storage = storage or LocalStorage()
        self.actors: Dict[str, LocalActor] = actors if actors is not None else {}
        self._run_id = run_id or f"run_{uuid.uuid4().hex[:12]}"
        self._child_timeout = child_timeout
        self.default_store = InMemoryKeyValueStore()
        self.dataset = self.storage.new_dataset()
        self.runs: Dict[str, JobRun] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self.exit_code: Optional[int] = None
        self.status_message: Optional[str] = None
        self._logger = logger.getChild(self._run_id)

    def register_actor(self, actor_id: str, actor: LocalActor) -> "LocalPlatform":
        self.actors[actor_id] = actor
        return self

    @property
    def run_id(self) -> Optional[str]:
        return self._run_id

    async def get_input(self) -> Dict[str, Any]:
        return copy.deepcopy(self.input)

    def create_session_pool(self, max_size: int) -> SessionPool:
        return MemorySessionPool(self.default_store, max_size)

    async def open_key_value_store(self, name: Optional[str] = None) -> KeyValueStore:
        if name is None:
            return self.default_store
        return self.storage.open_store(name)

    def _get_actor(self, actor_id: str) -> LocalActor:
        if actor_id not in self.actors:
            raise ValueError(f"Actor {actor_id} not found")
        return self.actors[actor_id]

    async def replace_identity(self, target_actor_id: str, run_input: Dict[str, Any]) -> NoReturn:
        actor = self._get_actor(target_actor_id)
        self._logger.info(f"Replacing run {self._run_id} with actor {target_actor_id}")
        self.input = copy.deepcopy(run_input)
        await actor(self)
        raise ProcessReplaced(target_actor_id)

    async def invoke_child(
        self,
        target_actor_id: str,
        run_input: Dict[str, Any],
        memory_mbytes: Optional[int] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> JobRun:
        actor = self._get_actor(target_actor_id)
        child = LocalPlatform(
            run_input=copy.deepcopy(run_input),
            env=env,
            storage=self.storage,
            actors=self.actors,
        )
        run = JobRun(run_id=child.run_id, status=RunStatus.READY, output_dataset_ref=child.dataset.id)
        self.runs[run.run_id] = run
        self._tasks[run.run_id] = asyncio.create_task(self._execute_child(run, actor, child))
        self._logger.info(f"Started child run {run.run_id} of actor {target_actor_id} ({memory_mbytes} MB)")
        return JobRun(run.run_id, run.status, run.output_dataset_ref)

    async def _execute_child(self, run: JobRun, actor: LocalActor, child: "LocalPlatform") -> None:
        run.status = RunStatus.RUNNING
        try:
            await asyncio.wait_for(actor(child), timeout=self._child_timeout)
            run.status = RunStatus.FAILED if child.exit_code else RunStatus.SUCCEEDED
        except asyncio.CancelledError:
            run.status = RunStatus.ABORTED
        except asyncio.TimeoutError:
            run.status = RunStatus.TIMED_OUT
            self._logger.error(f"Child run {run.run_id} timed out")
        except Exception as e:
            run.status = RunStatus.FAILED
            self._logger.error(f"Child run {run.run_id} failed with error: {e}")

    async def get_run(self, run_id: str) -> JobRun:
        if run_id not in self.runs:
            raise ValueError(f"Run {run_id} not found")
        run = self.runs[run_id]
        return JobRun(run.run_id, run.status, run.output_dataset_ref)

    async def abort_run(self, run_id: str) -> None:
        task = self._tasks.get(run_id)
        if task and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def open_dataset(self, ref: str) -> Dataset:
        if ref not in self.storage.datasets:
            raise ValueError(f"Dataset {ref} not found")
        return self.storage.datasets[ref]

    async def push_data(self, records: List[Dict[str, Any]]) -> None:
        self.dataset.push(records)

    async def exit(self) -> None:
        self.exit_code = 0

    async def fail(self, message: str) -> None:
        self.exit_code = 1
        self.status_message = message

    async def shutdown(self) -> None:
        """Abort child runs that are still going."""
        for run_id in list(self._tasks):
            await self.abort_run(run_id)
