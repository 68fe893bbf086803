"""
Error classes for docfinder.

Only a missing record is absorbed into an absent result (``KeyNotFound`` inside
``Retriever.get_one``). Everything else the store raises propagates unchanged.
"""
from typing import Any, Iterable, List, Optional, Sequence

MESSAGES = {
    "document_not_found.no_key": "Couldn't find document without a key",
    "document_not_found.one_key": "Couldn't find document with key: {key}",
    "document_not_found.many_keys": "Couldn't find documents with keys: {keys}",
    "invalid_argument.no_args": "Calling find with no arguments is invalid",
    "invalid_argument.nil": "Calling find with None is invalid",
    "key_not_found": "Key '{key}' not found in bucket '{bucket}'",
}


def t(message_key: str, **kwargs: Any) -> str:
    return MESSAGES[message_key].format(**kwargs)


class DocFinderError(Exception):
    """Base exception for docfinder."""
    pass


class InvalidArgument(DocFinderError, ValueError):
    """A finder was called with arguments it cannot act on."""
    pass


class InvalidConditions(InvalidArgument):
    """A condition set could not be compiled into a predicate."""
    pass


class DocumentNotFound(DocFinderError):
    """
    Raised by ``find_or_raise`` / ``first_or_raise`` when a requested document is missing.

        try:
            Person.find_or_raise("badkey")
        except DocumentNotFound:
            print("No document here!")
    """

    def __init__(self, keys: Sequence[Any], found: Any = None):
        self.keys: List[Any] = list(keys)
        if not self.keys:
            self.missing: List[Any] = []
            message = t("document_not_found.no_key")
        elif len(self.keys) == 1:
            self.missing = list(self.keys)
            message = t("document_not_found.one_key", key=self.keys[0])
        else:
            found_keys = {doc.key for doc in _as_list(found) if doc is not None}
            self.missing = [k for k in self.keys if k not in found_keys]
            message = t("document_not_found.many_keys", keys=", ".join(str(k) for k in self.missing))
        super().__init__(message)


class StoreError(DocFinderError):
    """Error reported by a store backend, with an HTTP-style status code."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class KeyNotFound(StoreError):
    def __init__(self, bucket: str, key: str):
        super().__init__(t("key_not_found", bucket=bucket, key=key), code=404)
        self.bucket = bucket
        self.key = key


def _as_list(found: Any) -> Iterable[Any]:
    if found is None:
        return []
    if isinstance(found, (list, tuple)):
        return found
    return [found]
