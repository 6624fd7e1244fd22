"""
Contracts of the external platform the workflow composes.

The session pool, storages and the orchestrator are owned by the platform;
the workflow only reads and writes through these interfaces.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, NoReturn, Optional

from session_handoff.jobs.models import JobRun
from session_handoff.session.models import CookieRecord, StorageRef

# Default-store record where a session pool persists its sessions. JavaScript
# SDK actors read this key, so a target finds the pool after a metamorph
SESSION_POOL_STATE_KEY = "SDK_SESSION_POOL_STATE"


class SessionHandle(ABC):
    """A session inside a pool, holding cookies."""

    @property
    @abstractmethod
    def id(self) -> str:
        pass

    @abstractmethod
    def set_cookies(self, cookies: List[CookieRecord]) -> None:
        """Attach cookies to the session."""
        pass


class SessionPool(ABC):
    """
    A pool of sessions. Used as an async context manager; leaving the
    context persists the pool state wherever the platform keeps it.
    """

    @property
    @abstractmethod
    def max_size(self) -> int:
        pass

    @abstractmethod
    async def new_session(self) -> SessionHandle:
        pass

    async def __aenter__(self) -> "SessionPool":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None


class KeyValueStore(ABC):
    """A durable key-value record store."""

    @property
    @abstractmethod
    def ref(self) -> StorageRef:
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        pass


class Dataset(ABC):
    """An append-only sequence of output records."""

    @abstractmethod
    async def read_all(self) -> List[Dict[str, Any]]:
        """Return every record in original order."""
        pass


class Platform(ABC):
    """The job-orchestration platform hosting the current run."""

    @property
    @abstractmethod
    def run_id(self) -> Optional[str]:
        """Identifier of the current run as reported by the platform."""
        pass

    @abstractmethod
    async def get_input(self) -> Dict[str, Any]:
        pass

    @abstractmethod
    def create_session_pool(self, max_size: int) -> SessionPool:
        pass

    @abstractmethod
    async def open_key_value_store(self, name: Optional[str] = None) -> KeyValueStore:
        """Open the named store, creating it if absent, or the default store."""
        pass

    @abstractmethod
    async def replace_identity(self, target_actor_id: str, run_input: Dict[str, Any]) -> NoReturn:
        """
        Replace the current run with the target actor.

        Never returns on success. Implementations raise ProcessReplaced
        where the process cannot actually be replaced.
        """
        pass

    @abstractmethod
    async def invoke_child(
        self,
        target_actor_id: str,
        run_input: Dict[str, Any],
        memory_mbytes: Optional[int] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> JobRun:
        """Start the target actor as a child run without waiting for it."""
        pass

    @abstractmethod
    async def get_run(self, run_id: str) -> JobRun:
        pass

    @abstractmethod
    async def open_dataset(self, ref: str) -> Dataset:
        pass

    @abstractmethod
    async def push_data(self, records: List[Dict[str, Any]]) -> None:
        """Append records to the current run's output dataset."""
        pass

    @abstractmethod
    async def exit(self) -> None:
        pass

    @abstractmethod
    async def fail(self, message: str) -> None:
        pass
