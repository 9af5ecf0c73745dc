"""
Record store: generic CRUD over named collections of flat JSON records.

Every collection behaves like one JSON document holding an array of
records with integer ``id`` fields.  Three backends share the interface:

* ``MemoryStore`` keeps each document as JSON text in a dict (tests).
* ``FileStore`` keeps ``<data_dir>/<collection>.json`` on disk.
* ``MongoStore`` maps each collection onto a MongoDB collection via Motor.

Read-modify-write primitives are serialised per collection with an
``asyncio.Lock``, so two concurrent ``create`` calls never hand out the
same id.  Nothing spans collections: callers that touch several
collections (see ``services.lending``) get no atomicity from the store.
"""

import asyncio
import json
import logging
import os
import re
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pydantic_core import to_jsonable_python
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from errors import StorageError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

USERS = "users"
BOOKS = "books"
TRANSACTIONS = "transactions"
TOURS = "tours"
BOOKINGS = "bookings"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def coerce_id(value):
    """Numeric strings (path parameters) compare equal to integer ids."""
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return value


def _matches(record: Record, query: Record) -> bool:
    for key, expected in query.items():
        if key in ("id", "_id"):
            if record.get("id") != coerce_id(expected):
                return False
        elif record.get(key) != expected:
            return False
    return True


def _contains(record: Record, fields: Iterable[str], needle: str) -> bool:
    for field in fields:
        value = record.get(field)
        if value is None or value == "":
            continue
        if needle in str(value).lower():
            return True
    return False


class RecordStore(ABC):
    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock(self, collection: str) -> asyncio.Lock:
        return self._locks.setdefault(collection, asyncio.Lock())

    @abstractmethod
    async def exists(self, collection: str) -> bool:
        """Whether the collection has ever been written, even if it is now empty."""

    @abstractmethod
    async def read_all(self, collection: str) -> List[Record]: ...

    @abstractmethod
    async def find_one(self, collection: str, query: Record) -> Optional[Record]: ...

    @abstractmethod
    async def find_all(self, collection: str, query: Optional[Record] = None) -> List[Record]: ...

    @abstractmethod
    async def search(self, collection: str, fields: Iterable[str], term: str) -> List[Record]: ...

    @abstractmethod
    async def create(self, collection: str, fields: Record) -> Record: ...

    @abstractmethod
    async def update(self, collection: str, record_id, patch: Record) -> Optional[Record]: ...

    @abstractmethod
    async def delete_one(self, collection: str, record_id) -> Optional[Record]: ...

    async def close(self) -> None:
        pass


class DocumentStore(RecordStore):
    """Store whose collections are whole JSON documents.

    Each operation reads the entire document, works on the parsed list
    and (for writes) serialises the entire list back.  Subclasses only
    provide raw text access to a document.
    """

    @abstractmethod
    async def _read_text(self, collection: str) -> Optional[str]:
        """Return the document text, or ``None`` if it does not exist yet."""

    @abstractmethod
    async def _write_text(self, collection: str, text: str) -> None: ...

    async def exists(self, collection: str) -> bool:
        return await self._read_text(collection) is not None

    async def read_all(self, collection: str) -> List[Record]:
        text = await self._read_text(collection)
        if text is None:
            return []
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageError(f"Collection '{collection}' is not valid JSON: {e}") from e
        if not isinstance(data, list):
            raise StorageError(f"Collection '{collection}' must contain a JSON array")
        return data

    async def _write_all(self, collection: str, records: List[Record]) -> List[Record]:
        encoded = to_jsonable_python(records)
        await self._write_text(collection, json.dumps(encoded, indent=2))
        return encoded

    async def find_one(self, collection: str, query: Record) -> Optional[Record]:
        for record in await self.read_all(collection):
            if _matches(record, query):
                return record
        return None

    async def find_all(self, collection: str, query: Optional[Record] = None) -> List[Record]:
        records = await self.read_all(collection)
        if not query:
            return records
        return [record for record in records if _matches(record, query)]

    async def search(self, collection: str, fields: Iterable[str], term: str) -> List[Record]:
        needle = term.lower()
        fields = list(fields)
        return [r for r in await self.read_all(collection) if _contains(r, fields, needle)]

    async def create(self, collection: str, fields: Record) -> Record:
        async with self._lock(collection):
            records = await self.read_all(collection)
            new_id = max((record.get("id") or 0 for record in records), default=0) + 1
            data = {key: value for key, value in fields.items() if key != "id"}
            records.append({"id": new_id, **data, "created_at": self.clock()})
            stored = await self._write_all(collection, records)
        logger.debug("Created %s #%s", collection, new_id)
        return stored[-1]

    async def update(self, collection: str, record_id, patch: Record) -> Optional[Record]:
        target = coerce_id(record_id)
        async with self._lock(collection):
            records = await self.read_all(collection)
            for index, record in enumerate(records):
                if record.get("id") == target:
                    records[index] = {**record, **patch, "id": record["id"]}
                    stored = await self._write_all(collection, records)
                    return stored[index]
        return None

    async def delete_one(self, collection: str, record_id) -> Optional[Record]:
        target = coerce_id(record_id)
        async with self._lock(collection):
            records = await self.read_all(collection)
            for index, record in enumerate(records):
                if record.get("id") == target:
                    deleted = records.pop(index)
                    await self._write_all(collection, records)
                    logger.debug("Deleted %s #%s", collection, target)
                    return deleted
        return None


class MemoryStore(DocumentStore):
    def __init__(self, documents: Optional[Dict[str, str]] = None, clock: Callable[[], datetime] = utcnow):
        super().__init__(clock)
        self.documents: Dict[str, str] = dict(documents or {})

    async def _read_text(self, collection: str) -> Optional[str]:
        return self.documents.get(collection)

    async def _write_text(self, collection: str, text: str) -> None:
        self.documents[collection] = text


class FileStore(DocumentStore):
    def __init__(self, data_dir, clock: Callable[[], datetime] = utcnow):
        super().__init__(clock)
        self.data_dir = Path(data_dir)

    def path_for(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    async def _read_text(self, collection: str) -> Optional[str]:
        path = self.path_for(collection)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Cannot read {path}: {e}") from e

    async def _write_text(self, collection: str, text: str) -> None:
        path = self.path_for(collection)
        try:
            await asyncio.to_thread(self._write_file, path, text)
        except OSError as e:
            raise StorageError(f"Cannot write {path}: {e}") from e

    @staticmethod
    def _write_file(path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        # readers never see a half-written document
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(text, encoding="utf-8")
        os.replace(tmp_path, path)


@contextmanager
def _mongo_errors(collection: str):
    try:
        yield
    except PyMongoError as e:
        raise StorageError(f"MongoDB operation on '{collection}' failed: {e}") from e


class MongoStore(RecordStore):
    """Collections live in MongoDB; ``_id`` never leaves this class.

    Records are stored in their JSON form (timestamps as ISO strings) so
    that every backend hands the services identical records.
    """

    def __init__(
        self,
        url: str,
        db_name: str = "library_db",
        clock: Callable[[], datetime] = utcnow,
        client: Optional[AsyncIOMotorClient] = None,
    ):
        super().__init__(clock)
        self.client = client or AsyncIOMotorClient(url)
        self.db = self.client[db_name]

    @staticmethod
    def _query(query: Optional[Record]) -> Record:
        translated = {}
        for key, value in (query or {}).items():
            if key in ("id", "_id"):
                translated["id"] = coerce_id(value)
            else:
                translated[key] = value
        return translated

    async def ping(self) -> None:
        with _mongo_errors("admin"):
            await self.client.admin.command("ping")
        logger.info("MongoDB connection successful")

    async def exists(self, collection: str) -> bool:
        with _mongo_errors(collection):
            return collection in await self.db.list_collection_names()

    async def read_all(self, collection: str) -> List[Record]:
        return await self.find_all(collection)

    async def find_one(self, collection: str, query: Record) -> Optional[Record]:
        with _mongo_errors(collection):
            return await self.db[collection].find_one(self._query(query), {"_id": 0})

    async def find_all(self, collection: str, query: Optional[Record] = None) -> List[Record]:
        with _mongo_errors(collection):
            return [doc async for doc in self.db[collection].find(self._query(query), {"_id": 0})]

    async def search(self, collection: str, fields: Iterable[str], term: str) -> List[Record]:
        pattern = {"$regex": re.escape(term), "$options": "i"}
        clauses = [{field: pattern} for field in fields]
        if not clauses:
            return []
        with _mongo_errors(collection):
            return [doc async for doc in self.db[collection].find({"$or": clauses}, {"_id": 0})]

    async def create(self, collection: str, fields: Record) -> Record:
        data = {key: value for key, value in fields.items() if key != "id"}
        async with self._lock(collection):
            with _mongo_errors(collection):
                latest = await self.db[collection].find_one({}, {"_id": 0, "id": 1}, sort=[("id", DESCENDING)])
                new_id = (latest or {}).get("id", 0) + 1
                record = to_jsonable_python({"id": new_id, **data, "created_at": self.clock()})
                # insert_one adds "_id" to the document it is given
                await self.db[collection].insert_one(dict(record))
        logger.debug("Created %s #%s", collection, new_id)
        return record

    async def update(self, collection: str, record_id, patch: Record) -> Optional[Record]:
        changes = to_jsonable_python({key: value for key, value in patch.items() if key not in ("id", "_id")})
        query = self._query({"id": record_id})
        with _mongo_errors(collection):
            if not changes:
                return await self.db[collection].find_one(query, {"_id": 0})
            return await self.db[collection].find_one_and_update(
                query,
                {"$set": changes},
                projection={"_id": 0},
                return_document=ReturnDocument.AFTER,
            )

    async def delete_one(self, collection: str, record_id) -> Optional[Record]:
        with _mongo_errors(collection):
            return await self.db[collection].find_one_and_delete(
                self._query({"id": record_id}), projection={"_id": 0}
            )

    async def close(self) -> None:
        self.client.close()


def build_store(settings) -> RecordStore:
    """Instantiate the backend named by ``settings.storage_backend``."""
    backend = settings.storage_backend.lower()
    if backend == "file":
        return FileStore(settings.data_dir)
    if backend == "mongo":
        return MongoStore(settings.mongo_url, settings.mongo_db)
    if backend == "memory":
        return MemoryStore()
    raise ValueError(f"Unknown STORAGE_BACKEND '{settings.storage_backend}'")
