"""
Record Store - durable key-value persistence for the deposit workflow.

Every component reads and writes through a RecordStore. Keys are namespaced
per entity type and values are raw bytes (JSON-encoded records):

    {namespace}:{entity}:{id}                 -> record
    {namespace}:{entity}:_index               -> JSON list of ids
    {namespace}:{entity}:by_{field}:{value}   -> id (secondary lookup)

Supports:
1. In-memory (development/testing, default)
2. Redis (shared across app instances)
3. SQL via SQLAlchemy (one key/value table)

The store has no transactions across keys. Callers follow a
read-modify-write discipline per record and order multi-record writes so
that an interrupted operation can be retried safely.

Usage:
    store = build_record_store(settings)
    deposits = RecordCollection(store, "deposit", Deposit)

    await deposits.put(deposit.id, deposit)
    deposit = await deposits.get(deposit_id)
"""
import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from pydantic import ValidationError
from sqlalchemy import select, delete as sa_delete

from evdock.config import Settings, settings as default_settings
from evdock.core.exceptions import RecordStoreError
from evdock.database import build_engine, build_session_factory, init_db
from evdock.models.record import StoredRecord
from evdock.schemas.base import RecordSchema

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=RecordSchema)


class RecordStore(ABC):
    """Abstract record store interface."""

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Get raw value for key, or None."""
        pass

    @abstractmethod
    async def put(self, key: str, value: bytes) -> None:
        """Write raw value for key."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete key. Deleting a missing key is not an error."""
        pass

    async def close(self) -> None:
        """Release backend resources."""
        pass


class InMemoryRecordStore(RecordStore):
    """
    In-memory record store for development/testing.

    Note: Data is lost on restart and not shared across processes.
    """

    def __init__(self):
        self._data: Dict[str, bytes] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[bytes]:
        async with self._lock:
            return self._data.get(key)

    async def put(self, key: str, value: bytes) -> None:
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError("Record store values must be bytes")
        async with self._lock:
            self._data[key] = bytes(value)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._data.pop(key, None)


class RedisRecordStore(RecordStore):
    """Redis record store backend."""

    def __init__(self, redis_url: str, client=None):
        self._redis_url = redis_url
        self._client = client

    async def _get_client(self):
        if self._client is None:
            import redis.asyncio as redis
            self._client = redis.from_url(self._redis_url, decode_responses=False)
        return self._client

    async def get(self, key: str) -> Optional[bytes]:
        try:
            client = await self._get_client()
            return await client.get(key)
        except Exception as e:
            logger.error(f"Redis get failed for {key}: {e}")
            raise RecordStoreError(f"Redis get failed: {e}", key) from e

    async def put(self, key: str, value: bytes) -> None:
        try:
            client = await self._get_client()
            await client.set(key, value)
        except Exception as e:
            logger.error(f"Redis set failed for {key}: {e}")
            raise RecordStoreError(f"Redis set failed: {e}", key) from e

    async def delete(self, key: str) -> None:
        try:
            client = await self._get_client()
            await client.delete(key)
        except Exception as e:
            logger.error(f"Redis delete failed for {key}: {e}")
            raise RecordStoreError(f"Redis delete failed: {e}", key) from e

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class SQLRecordStore(RecordStore):
    """Record store backed by the `records` table through SQLAlchemy."""

    def __init__(self, engine):
        self.engine = engine
        self._session_factory = build_session_factory(engine)

    async def create_tables(self) -> None:
        await init_db(self.engine)

    async def get(self, key: str) -> Optional[bytes]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(StoredRecord.value).where(StoredRecord.key == key)
                )
                return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"SQL get failed for {key}: {e}")
            raise RecordStoreError(f"SQL get failed: {e}", key) from e

    async def put(self, key: str, value: bytes) -> None:
        try:
            async with self._session_factory() as session:
                record = await session.get(StoredRecord, key)
                if record is None:
                    session.add(StoredRecord(key=key, value=value))
                else:
                    record.value = value
                await session.commit()
        except Exception as e:
            logger.error(f"SQL put failed for {key}: {e}")
            raise RecordStoreError(f"SQL put failed: {e}", key) from e

    async def delete(self, key: str) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(sa_delete(StoredRecord).where(StoredRecord.key == key))
                await session.commit()
        except Exception as e:
            logger.error(f"SQL delete failed for {key}: {e}")
            raise RecordStoreError(f"SQL delete failed: {e}", key) from e

    async def close(self) -> None:
        await self.engine.dispose()


class RecordCollection(Generic[R]):
    """
    Typed view of one entity type inside a record store.

    Handles key building, JSON encoding, the id index and secondary lookup
    keys. Every read decodes through the record schema, so a stored record
    that violates its invariants raises instead of being returned.
    """

    def __init__(
        self,
        store: RecordStore,
        entity: str,
        model: Type[R],
        namespace: Optional[str] = None,
    ):
        self.store = store
        self.entity = entity
        self.model = model
        self.namespace = namespace or default_settings.STORE_NAMESPACE

    def key(self, record_id: str) -> str:
        return f"{self.namespace}:{self.entity}:{record_id}"

    @property
    def index_key(self) -> str:
        return f"{self.namespace}:{self.entity}:_index"

    def lookup_key(self, field: str, value: str) -> str:
        return f"{self.namespace}:{self.entity}:by_{field}:{value}"

    async def get(self, record_id: str) -> Optional[R]:
        raw = await self.store.get(self.key(record_id))
        if raw is None:
            return None
        try:
            return self.model.from_json_bytes(raw)
        except ValidationError as e:
            logger.error(f"Corrupt {self.entity} record {record_id}: {e}")
            raise RecordStoreError(
                f"Stored {self.entity} '{record_id}' failed validation", self.key(record_id)
            ) from e

    async def put(self, record_id: str, record: R) -> None:
        await self.store.put(self.key(record_id), record.to_json_bytes())
        ids = await self.ids()
        if record_id not in ids:
            ids.append(record_id)
            await self.store.put(self.index_key, json.dumps(ids).encode("utf-8"))

    async def delete(self, record_id: str) -> None:
        await self.store.delete(self.key(record_id))
        ids = await self.ids()
        if record_id in ids:
            ids.remove(record_id)
            await self.store.put(self.index_key, json.dumps(ids).encode("utf-8"))

    async def ids(self) -> List[str]:
        raw = await self.store.get(self.index_key)
        return json.loads(raw) if raw else []

    async def all(self) -> List[R]:
        records = []
        for record_id in await self.ids():
            record = await self.get(record_id)
            # Index may briefly list an id whose record write never landed
            if record is not None:
                records.append(record)
        return records

    async def link(self, field: str, value: str, record_id: str) -> None:
        await self.store.put(self.lookup_key(field, value), record_id.encode("utf-8"))

    async def unlink(self, field: str, value: str) -> None:
        await self.store.delete(self.lookup_key(field, value))

    async def lookup(self, field: str, value: str) -> Optional[str]:
        raw = await self.store.get(self.lookup_key(field, value))
        return raw.decode("utf-8") if raw else None

    async def lookup_record(self, field: str, value: str) -> Optional[R]:
        record_id = await self.lookup(field, value)
        return await self.get(record_id) if record_id else None

    async def claim(
        self, field: str, value: str, new_id: Callable[[], Awaitable[str]]
    ) -> Tuple[str, Optional[R]]:
        """
        Id bound to `value`, and its record if that record was written.

        A fresh id is linked before any record exists, so an interrupted
        create leaves a lookup that the retry completes under the same id.
        """
        record_id = await self.lookup(field, value)
        if record_id is None:
            record_id = await new_id()
            await self.link(field, value, record_id)
            return record_id, None
        return record_id, await self.get(record_id)

    async def next_sequence(self, name: str) -> int:
        """Increment and return a counter stored under this entity."""
        key = f"{self.namespace}:{self.entity}:_seq:{name}"
        raw = await self.store.get(key)
        value = int(raw) + 1 if raw else 1
        await self.store.put(key, str(value).encode("utf-8"))
        return value


def build_record_store(config: Settings = None) -> RecordStore:
    """Select a record store backend from settings."""
    config = config or default_settings
    backend = config.RECORD_STORE_BACKEND

    if backend == "redis":
        if not config.REDIS_URL:
            raise RecordStoreError("REDIS_URL is required for the redis record store")
        logger.info("Using Redis record store")
        return RedisRecordStore(config.REDIS_URL)

    if backend == "sql":
        logger.info("Using SQL record store")
        return SQLRecordStore(build_engine(config.DATABASE_URL, echo=config.DEBUG))

    logger.info("Using in-memory record store")
    return InMemoryRecordStore()
