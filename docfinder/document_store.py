from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional, Union
from dataclasses import dataclass, field
import datetime
import json
import logging
import uuid

from pymongo import MongoClient
from pymongo.read_concern import ReadConcern

from docfinder.conditions import Predicate
from docfinder.errors import KeyNotFound

logger = logging.getLogger(__name__)

Quorum = Union[int, str, None]


@dataclass
class OperationParams:
    metadata: Dict[str, Any] = field(default_factory=dict)

@dataclass
class PutParams(OperationParams):
    pass

@dataclass
class GetParams(OperationParams):
    r: Quorum = None

@dataclass
class DeleteParams(OperationParams):
    pass


@dataclass
class RawRecord:
    """A stored record as read back from a bucket. ``metadata`` is opaque to callers."""
    bucket: str
    key: str
    data: Any
    metadata: Dict[str, Any] = field(default_factory=dict)


def _new_metadata() -> Dict[str, Any]:
    return {
        "etag": uuid.uuid4().hex,
        "last_modified": datetime.datetime.now(datetime.timezone.utc).isoformat(),
    }


def _with_key(data: Any, key: str) -> Dict[str, Any]:
    attrs = dict(data) if isinstance(data, dict) else {}
    attrs["key"] = key
    return attrs


class DocumentStore(ABC):
    """
    Schemaless key -> record store organised in buckets.

    ``get`` raises ``KeyNotFound`` for a missing key; any other backend error
    is left to propagate.
    """

    @abstractmethod
    def list_keys(self, bucket: str) -> Iterator[str]:
        pass

    @abstractmethod
    def get(self, bucket: str, key: str, params: Optional[GetParams] = None) -> RawRecord:
        pass

    @abstractmethod
    def evaluate(self, bucket: str, predicate: Predicate, params: Optional[GetParams] = None) -> List[Dict[str, Any]]:
        """
        Returns the attribute maps of every record in ``bucket`` that satisfies
        ``predicate``. ``"key"`` in each map is set to the record key,
        replacing any stored attribute of that name.
        """
        pass

    @abstractmethod
    def put(self, bucket: str, key: str, data: Dict[str, Any], params: Optional[PutParams] = None) -> RawRecord:
        pass

    @abstractmethod
    def delete(self, bucket: str, key: str, params: Optional[DeleteParams] = None):
        pass

    @abstractmethod
    def drop_bucket(self, bucket: str):
        pass

    @abstractmethod
    def close(self):
        pass


class InMemoryDocumentStore(DocumentStore):
    def __init__(self):
        # Storage: bucket -> key -> {"data": ..., "meta": ...}
        self._buckets: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def list_keys(self, bucket: str) -> Iterator[str]:
        # Snapshot so callers may write while iterating
        for key in list(self._buckets.get(bucket, {})):
            yield key

    def get(self, bucket: str, key: str, params: Optional[GetParams] = None) -> RawRecord:
        entry = self._buckets.get(bucket, {}).get(key)
        if entry is None:
            raise KeyNotFound(bucket, key)
        return RawRecord(bucket, key, dict(entry["data"]), dict(entry["meta"]))

    def evaluate(self, bucket: str, predicate: Predicate, params: Optional[GetParams] = None) -> List[Dict[str, Any]]:
        results = []
        for key, entry in self._buckets.get(bucket, {}).items():
            if predicate.matches(entry["data"]):
                results.append(_with_key(entry["data"], key))
        return results

    def put(self, bucket: str, key: str, data: Dict[str, Any], params: Optional[PutParams] = None) -> RawRecord:
        entry = {"data": dict(data), "meta": _new_metadata()}
        self._buckets.setdefault(bucket, {})[key] = entry
        return RawRecord(bucket, key, dict(entry["data"]), dict(entry["meta"]))

    def delete(self, bucket: str, key: str, params: Optional[DeleteParams] = None):
        self._buckets.get(bucket, {}).pop(key, None)

    def drop_bucket(self, bucket: str):
        self._buckets.pop(bucket, None)

    def close(self):
        pass


def read_concern_for(r: Quorum) -> Optional[ReadConcern]:
    """Maps a read quorum to a MongoDB read concern. ``None`` keeps the collection default."""
    if r is None or r == "default":
        return None
    if r == "one" or r == 1:
        return ReadConcern("local")
    if r in ("quorum", "all") or (isinstance(r, int) and r > 1):
        return ReadConcern("majority")
    raise ValueError(f"Unsupported read quorum: {r!r}")


class MongoDocumentStore(DocumentStore):
    """
    One collection per bucket; documents are stored as
    ``{"_id": key, "data": {...}, "meta": {...}}``.
    """

    def __init__(
        self,
        client: Optional[MongoClient] = None,
        database_name: str = "docfinder",
        connection_string: str = "mongodb://localhost:27017/",
    ):
        self.client = client if client is not None else MongoClient(connection_string)
        self.db = self.client[database_name]

    def _collection(self, bucket: str, params: Optional[GetParams] = None):
        collection = self.db[bucket]
        concern = read_concern_for(params.r) if params else None
        if concern is not None:
            collection = collection.with_options(read_concern=concern)
        return collection

    def list_keys(self, bucket: str) -> Iterator[str]:
        for doc in self.db[bucket].find({}, {"_id": 1}):
            yield doc["_id"]

    def get(self, bucket: str, key: str, params: Optional[GetParams] = None) -> RawRecord:
        doc = self._collection(bucket, params).find_one({"_id": key})
        if doc is None:
            raise KeyNotFound(bucket, key)
        return RawRecord(bucket, key, doc.get("data") or {}, doc.get("meta") or {})

    def evaluate(self, bucket: str, predicate: Predicate, params: Optional[GetParams] = None) -> List[Dict[str, Any]]:
        cursor = self._collection(bucket, params).find(predicate.to_mongo_filter(), {"data": 1})
        return [_with_key(doc.get("data"), doc["_id"]) for doc in cursor]

    def put(self, bucket: str, key: str, data: Dict[str, Any], params: Optional[PutParams] = None) -> RawRecord:
        doc = {"_id": key, "data": dict(data), "meta": _new_metadata()}
        self.db[bucket].replace_one({"_id": key}, doc, upsert=True)
        return RawRecord(bucket, key, dict(data), dict(doc["meta"]))

    def delete(self, bucket: str, key: str, params: Optional[DeleteParams] = None):
        self.db[bucket].delete_one({"_id": key})

    def drop_bucket(self, bucket: str):
        self.db[bucket].drop()

    def close(self):
        if hasattr(self, 'client'):
            self.client.close()


class RedisDocumentStore(DocumentStore):
    """
    One hash per bucket: field is the key, value is JSON
    ``{"data": {...}, "meta": {...}}``. Predicates are applied locally while
    scanning the hash. Read quorums are accepted and ignored.
    """

    def __init__(self, host: str = "localhost", port: int = 6379, db: int = 0, prefix: str = "docfinder:", **kwargs):
        import redis
        self.client = redis.Redis(host=host, port=port, db=db, decode_responses=True, **kwargs)
        self.prefix = prefix

    def _hash(self, bucket: str) -> str:
        return f"{self.prefix}{bucket}"

    def list_keys(self, bucket: str) -> Iterator[str]:
        for key, _ in self.client.hscan_iter(self._hash(bucket)):
            yield key

    def get(self, bucket: str, key: str, params: Optional[GetParams] = None) -> RawRecord:
        raw = self.client.hget(self._hash(bucket), key)
        if raw is None:
            raise KeyNotFound(bucket, key)
        entry = json.loads(raw)
        return RawRecord(bucket, key, entry.get("data") or {}, entry.get("meta") or {})

    def evaluate(self, bucket: str, predicate: Predicate, params: Optional[GetParams] = None) -> List[Dict[str, Any]]:
        results = []
        for key, raw in self.client.hscan_iter(self._hash(bucket)):
            data = json.loads(raw).get("data") or {}
            if predicate.matches(data):
                results.append(_with_key(data, key))
        return results

    def put(self, bucket: str, key: str, data: Dict[str, Any], params: Optional[PutParams] = None) -> RawRecord:
        entry = {"data": dict(data), "meta": _new_metadata()}
        self.client.hset(self._hash(bucket), key, json.dumps(entry))
        return RawRecord(bucket, key, dict(data), dict(entry["meta"]))

    def delete(self, bucket: str, key: str, params: Optional[DeleteParams] = None):
        self.client.hdel(self._hash(bucket), key)

    def drop_bucket(self, bucket: str):
        self.client.delete(self._hash(bucket))

    def close(self):
        self.client.close()


def get_document_store(store_type: str = "memory", **kwargs) -> DocumentStore:
    logger.debug(f"Creating document store: {store_type}")
    if store_type == "memory":
        return InMemoryDocumentStore()
    elif store_type == "mongo":
        return MongoDocumentStore(**kwargs)
    elif store_type == "redis":
        return RedisDocumentStore(**kwargs)
    else:
        raise ValueError(f"Unknown store type: {store_type}")
