"""Key-value store clients the reporter writes to."""

import logging
from typing import Any, Dict, List, Optional, Protocol, Tuple

import redis

logger = logging.getLogger(__name__)


class StoreUnavailableError(Exception):
    """Raised when the store cannot complete a write or connection check."""
    pass


class KeyValueStore(Protocol):
    """The narrow write capability the reporter needs."""

    def set(self, key: str, value: str) -> bool:
        ...


class RedisStore:
    """Blocking Redis client wrapper owned by a single reporter.

    The client is created on construction without touching the network;
    ``open()`` checks the server is reachable and ``close()`` releases the
    connection pool.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        socket_timeout_s: Optional[float] = None,
        client: Optional[Any] = None,
    ) -> None:
        """Initialize the store.

        Args:
            host: Redis server host
            port: Redis server port
            db: Database index
            password: Optional AUTH password
            socket_timeout_s: Timeout applied to every command, None to block
            client: Pre-configured ``redis.Redis`` client (mostly for tests)
        """
        self.host = host
        self.port = port
        self.db = db
        self._client = client or redis.Redis(
            host=host,
            port=port,
            db=db,
            password=password,
            socket_timeout=socket_timeout_s,
            socket_connect_timeout=socket_timeout_s,
            decode_responses=True,
        )
        self._closed = False

    @classmethod
    def from_config(cls, config: Any) -> "RedisStore":
        """Build a store from a ReporterConfig."""
        return cls(
            host=config.host,
            port=config.port,
            db=config.db,
            password=config.password,
            socket_timeout_s=config.socket_timeout_s,
        )

    @property
    def target(self) -> str:
        return f"{self.host}:{self.port}/{self.db}"

    def open(self) -> None:
        """Check the server answers before reporting starts."""
        try:
            self._client.ping()
        except redis.exceptions.RedisError as e:
            raise StoreUnavailableError(f"Redis at {self.target} is unavailable: {e}") from e
        self._closed = False
        logger.info(f"Connected to Redis at {self.target}")

    def set(self, key: str, value: str) -> bool:
        if self._closed:
            raise StoreUnavailableError(f"Store for {self.target} is closed")
        try:
            return bool(self._client.set(key, value))
        except redis.exceptions.RedisError as e:
            raise StoreUnavailableError(f"Failed to set {key} on {self.target}: {e}") from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._client.close()
        logger.info(f"Closed Redis connection to {self.target}")

    def __enter__(self) -> "RedisStore":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class InMemoryStore:
    """Dictionary-backed store for dry runs and tests."""

    def __init__(self) -> None:
        self.data: Dict[str, str] = {}
        self.writes: List[Tuple[str, str]] = []
        self.target = "memory"

    def open(self) -> None:
        pass

    def set(self, key: str, value: str) -> bool:
        self.data[key] = value
        self.writes.append((key, value))
        return True

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def close(self) -> None:
        pass

    def __enter__(self) -> "InMemoryStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
