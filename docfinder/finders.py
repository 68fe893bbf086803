import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from docfinder import config
from docfinder.document_store import GetParams
from docfinder.errors import DocumentNotFound, InvalidArgument, t
from docfinder.retrieval import Retriever

logger = logging.getLogger(__name__)


class Position(Enum):
    FIRST = "first"
    LAST = "last"
    ALL = "all"


FIRST = Position.FIRST
LAST = Position.LAST
ALL = Position.ALL


def _requested_keys(args: Sequence[Any]) -> List[Any]:
    keys: List[Any] = []
    for arg in args:
        if isinstance(arg, (Position, Mapping)):
            continue
        if isinstance(arg, (list, tuple)):
            keys.extend(arg)
        else:
            keys.append(arg)
    return keys


class Finders:
    """
    Class-level finders for documents. The host class supplies
    ``get_store()``, ``get_bucket_name()`` and ``quorums``.
    """

    @classmethod
    def retriever(cls) -> Retriever:
        r = cls.quorums.r if cls.quorums.r is not None else config.get_config().read_quorum
        return Retriever(cls.get_store(), cls.get_bucket_name(), cls, GetParams(r=r))

    @classmethod
    def find(cls, *args: Any, conditions: Optional[Mapping[str, Any]] = None):
        """
        Retrieve one or more documents.

            Person.find("alice")                  # document or None
            Person.find("alice", "bob")           # list aligned with the keys, None for misses
            Person.find(FIRST, conditions={"status": "active"})
            Person.find(LAST)
            Person.find(conditions={"status": "active"})

        ``FIRST`` and ``LAST`` follow the store's key enumeration order (or the
        query's result order), which is not insertion order.
        """
        if not args and conditions is None:
            raise InvalidArgument(t("invalid_argument.no_args"))
        if args and args[0] is None:
            raise InvalidArgument(t("invalid_argument.nil"))

        if args and isinstance(args[0], Position):
            position, rest = args[0], args[1:]
            if rest:
                if len(rest) == 1 and isinstance(rest[0], Mapping) and conditions is None:
                    conditions = rest[0]
                else:
                    raise InvalidArgument(f"Unexpected arguments after {position.value}: {rest!r}")
            found = cls.all(conditions)
            if position is Position.FIRST:
                return found[0] if found else None
            if position is Position.LAST:
                return found[-1] if found else None
            return found

        if not args or (len(args) == 1 and isinstance(args[0], Mapping)):
            if args and conditions is not None:
                raise InvalidArgument("Conditions given twice")
            return cls.all(args[0] if args else conditions)

        if conditions is not None or any(isinstance(arg, Mapping) for arg in args):
            raise InvalidArgument("Cannot combine keys with conditions")
        keys = _requested_keys(args)
        if any(k is None for k in keys):
            raise InvalidArgument(t("invalid_argument.nil"))

        retriever = cls.retriever()
        if len(args) == 1 and not isinstance(args[0], (list, tuple)):
            return retriever.find_one(args[0])
        return [retriever.find_one(k) for k in keys]

    @classmethod
    def find_or_raise(cls, *args: Any, conditions: Optional[Mapping[str, Any]] = None):
        """Like ``find``, but raises ``DocumentNotFound`` if anything requested is missing."""
        found = cls.find(*args, conditions=conditions)
        if found is None or (isinstance(found, list) and any(doc is None for doc in found)):
            raise DocumentNotFound(_requested_keys(args), found)
        return found

    @classmethod
    def _first_key(cls) -> Optional[str]:
        keys = iter(cls.get_store().list_keys(cls.get_bucket_name()))
        try:
            return next(keys, None)
        finally:
            close = getattr(keys, "close", None)
            if close is not None:
                close()

    @classmethod
    def first(cls):
        """
        Find the document at the first key the store lists for the bucket.
        Don't expect this to be the first document added.
        """
        key = cls._first_key()
        return cls.find(key) if key is not None else None

    @classmethod
    def first_or_raise(cls):
        key = cls._first_key()
        if key is None:
            raise DocumentNotFound([])
        return cls.find_or_raise(key)

    @classmethod
    def all(cls, conditions: Optional[Mapping[str, Any]] = None, visit: Optional[Callable[[Any], Any]] = None) -> List[Any]:
        """
        All documents in the bucket, or those matching ``conditions``.

        With ``visit`` and no conditions, each document is passed to ``visit``
        as it is read and an empty list is returned. ``visit`` is ignored when
        conditions are given.
        """
        retriever = cls.retriever()
        if not conditions:
            if visit is not None:
                retriever.scan_all_streaming(visit)
                return []
            return retriever.scan_all()
        return retriever.query(conditions)

    @classmethod
    def find_or_initialize(cls, attrs: Optional[Dict[str, Any]] = None):
        """First document matching ``attrs``, or a new unsaved one built from them."""
        attrs = attrs or {}
        return cls.find(Position.FIRST, conditions=attrs) or cls(attrs)
