import logging
from typing import Any, Callable, Generic, List, Mapping, Optional, Type, TypeVar

from docfinder.conditions import compile_conditions
from docfinder.document_store import DocumentStore, GetParams, RawRecord
from docfinder.errors import KeyNotFound
from docfinder.instantiator import instantiate

logger = logging.getLogger(__name__)

D = TypeVar("D")


class Retriever(Generic[D]):
    """
    The retrieval shapes behind the finders, bound to one bucket and one
    expected document class.

    Every read is a separate blocking round-trip; scans issue one ``get`` per
    key with no batching. Only a missing key is turned into ``None``. Any other
    store error aborts the call, including in the middle of a scan.
    """

    def __init__(self, store: DocumentStore, bucket: str, document_class: Type[D], read_params: Optional[GetParams] = None):
        self.store = store
        self.bucket = bucket
        self.document_class = document_class
        self.read_params = read_params or GetParams()

    def get_one(self, key: str, params: Optional[GetParams] = None) -> Optional[RawRecord]:
        try:
            return self.store.get(self.bucket, key, params or self.read_params)
        except KeyNotFound:
            logger.debug(f"Key '{key}' not found in bucket '{self.bucket}'")
            return None

    def find_one(self, key: str, params: Optional[GetParams] = None) -> Optional[D]:
        robject = self.get_one(key, params)
        return instantiate(robject, self.document_class) if robject is not None else None

    def scan_all(self) -> List[D]:
        logger.debug(f"Scanning all documents in bucket '{self.bucket}'")
        results = []
        for key in self.store.list_keys(self.bucket):
            doc = self.find_one(key)
            if doc is not None:
                results.append(doc)
        return results

    def scan_all_streaming(self, visit: Callable[[D], Any]) -> None:
        logger.debug(f"Streaming all documents in bucket '{self.bucket}'")
        for key in self.store.list_keys(self.bucket):
            doc = self.find_one(key)
            if doc is not None:
                visit(doc)

    def query(self, conditions: Optional[Mapping[str, Any]]) -> List[D]:
        predicate = compile_conditions(conditions)
        logger.debug(f"Querying bucket '{self.bucket}' with {len(predicate.conditions)} condition(s)")
        matches = self.store.evaluate(self.bucket, predicate, self.read_params) or []
        return [
            instantiate(RawRecord(self.bucket, attrs["key"], attrs), self.document_class)
            for attrs in matches
        ]
