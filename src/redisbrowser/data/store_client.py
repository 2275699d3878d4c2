"""Store client abstraction for the browser.

Provides the abstract base class the controller talks to, and the redis-py
implementation used for real servers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

import redis
from redis.exceptions import RedisError

from ..debug_trace import get_logger, perf_timer
from ..models.errors import FetchError, StoreConnectionError, WriteError

if TYPE_CHECKING:
    from ..settings import ConnectionConfig

logger = get_logger(__name__)

# Hint to the server for SCAN batch size
SCAN_BATCH_SIZE = 500


def _decode(raw: bytes | str) -> str:
    """Decode a reply as strict UTF-8.

    Raises:
        UnicodeDecodeError: If the bytes are not valid UTF-8.
    """
    if isinstance(raw, bytes):
        return raw.decode("utf-8")
    return raw


class ValueType(Enum):
    """Value type tags as reported by the Redis TYPE command."""

    STRING = "string"
    LIST = "list"
    SET = "set"
    SORTED_SET = "zset"
    HASH = "hash"
    NONE = "none"

    @classmethod
    def from_reply(cls, reply: str | bytes) -> ValueType:
        """Map a TYPE reply to a tag. Unknown types (streams, modules) map to NONE."""
        if isinstance(reply, bytes):
            reply = reply.decode("utf-8", errors="replace")
        try:
            return cls(reply)
        except ValueError:
            return cls.NONE

    @property
    def is_composite(self) -> bool:
        return self in (ValueType.LIST, ValueType.SET, ValueType.SORTED_SET, ValueType.HASH)


@dataclass(frozen=True)
class StoreValue:
    """A value read from the store.

    Payload shape by type:
        STRING: str
        LIST, SET: list[str]
        SORTED_SET: list[tuple[str, float]] (member, score)
        HASH: dict[str, str]
    """

    type_tag: ValueType
    payload: Any = None


class StoreClient(ABC):
    """Abstract base class for key-value store connections.

    One client belongs to exactly one session and is closed with it.
    """

    @property
    @abstractmethod
    def description(self) -> str:
        """Return a short description of the server (no credentials)."""

    @abstractmethod
    def list_keys(self) -> list[str]:
        """Return every key on the server.

        Raises:
            FetchError: If the key list cannot be read.
        """

    @abstractmethod
    def get_value(self, key: str) -> StoreValue | None:
        """Read a key's type and value.

        Returns:
            The value, or None if the key does not exist.

        Raises:
            FetchError: If the read fails.
        """

    @abstractmethod
    def set_string(self, key: str, value: str) -> None:
        """Store a string value, overwriting any existing key.

        Raises:
            WriteError: If the write fails.
        """

    @abstractmethod
    def delete_key(self, key: str) -> None:
        """Delete a key.

        Raises:
            WriteError: If the delete fails.
        """

    def close(self) -> None:  # noqa: B027
        """Release the connection. Default does nothing."""


class RedisStoreClient(StoreClient):
    """StoreClient backed by a synchronous redis-py client.

    Usage:
        client = RedisStoreClient.connect(ConnectionConfig.from_url("redis://127.0.0.1"))
        keys = client.list_keys()
        client.close()
    """

    def __init__(self, redis_client: redis.Redis, description: str = "redis"):
        """Wrap an existing redis-py client.

        Args:
            redis_client: Client created with decode_responses=False
            description: Server description for logs
        """
        self._redis = redis_client
        self._description = description

    @classmethod
    def connect(cls, config: ConnectionConfig) -> RedisStoreClient:
        """Open a connection and verify it with PING.

        Raises:
            StoreConnectionError: If the server is unreachable or rejects
                the credentials.
        """
        redis_client = redis.Redis(
            host=config.host,
            port=config.port,
            db=config.db,
            username=config.username,
            password=config.password,
            ssl=config.ssl,
            socket_timeout=config.socket_timeout,
            socket_connect_timeout=config.socket_timeout,
            decode_responses=False,  # Keys and values are binary-safe; decoded per reply
        )
        try:
            redis_client.ping()
        except RedisError as e:
            redis_client.close()
            logger.error("Failed to connect to %s: %s", config.display_address, e)
            raise StoreConnectionError(
                f"Could not connect to {config.display_address}: {e}"
            ) from e

        logger.info("Connected to %s", config.display_address)
        return cls(redis_client, description=config.display_address)

    @property
    def description(self) -> str:
        return self._description

    def list_keys(self) -> list[str]:
        """List keys with SCAN so the server is never blocked by KEYS *.

        Keys that are not valid UTF-8 are skipped and logged. They cannot be
        shown, and a lossy decode would make SET/DEL address a different key.
        """
        raw_keys: list[bytes | str] = []
        cursor = 0
        try:
            with perf_timer(f"list_keys {self._description}"):
                while True:
                    cursor, batch = self._redis.scan(cursor, match="*", count=SCAN_BATCH_SIZE)
                    raw_keys.extend(batch)
                    # cursor == 0 indicates scan is complete
                    if cursor == 0:
                        break
        except RedisError as e:
            raise FetchError(f"Could not list keys on {self._description}: {e}") from e

        keys: list[str] = []
        skipped = 0
        for raw in raw_keys:
            try:
                keys.append(_decode(raw))
            except UnicodeDecodeError:
                skipped += 1
                logger.warning("Skipping non-UTF-8 key %r on %s", raw, self._description)

        # SCAN may return a key more than once
        unique = list(dict.fromkeys(keys))
        logger.debug(
            "SCAN found %d keys on %s (%d skipped)", len(unique), self._description, skipped
        )
        return unique

    def _read_payload(self, key: str, type_tag: ValueType) -> Any:
        """Read the value with the command matching its type and decode it."""
        r = self._redis
        if type_tag is ValueType.STRING:
            raw = r.get(key)
            return None if raw is None else _decode(raw)
        if type_tag is ValueType.LIST:
            return [_decode(item) for item in r.lrange(key, 0, -1)]
        if type_tag is ValueType.SET:
            return sorted(_decode(member) for member in r.smembers(key))
        if type_tag is ValueType.SORTED_SET:
            scored = r.zrange(key, 0, -1, withscores=True)
            return [(_decode(member), float(score)) for member, score in scored]
        if type_tag is ValueType.HASH:
            return {_decode(field): _decode(value) for field, value in r.hgetall(key).items()}
        return None

    def get_value(self, key: str) -> StoreValue | None:
        try:
            type_tag = ValueType.from_reply(self._redis.type(key))
            if type_tag is ValueType.NONE:
                return None
            payload = self._read_payload(key, type_tag)
        except RedisError as e:
            raise FetchError(f"Could not read {key!r}: {e}") from e
        except UnicodeDecodeError as e:
            raise FetchError(f"Value of {key!r} is not valid UTF-8 text: {e}") from e

        # Key vanished between TYPE and the read
        if payload is None:
            return None
        return StoreValue(type_tag, payload)

    def set_string(self, key: str, value: str) -> None:
        try:
            self._redis.set(key, value)
        except RedisError as e:
            raise WriteError(f"Could not save {key!r}: {e}") from e
        logger.debug("SET %r (%d chars)", key, len(value))

    def delete_key(self, key: str) -> None:
        try:
            self._redis.delete(key)
        except RedisError as e:
            raise WriteError(f"Could not delete {key!r}: {e}") from e
        logger.debug("DEL %r", key)

    def close(self) -> None:
        try:
            self._redis.close()
        except RedisError as e:
            logger.warning("Error closing connection to %s: %s", self._description, e)
