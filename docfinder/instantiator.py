"""
Rebuilds typed documents from raw records.

A record names its concrete class in the ``_type`` attribute. Classes are looked
up in a registry that every ``Document`` subclass joins when it is defined; a
missing or unknown tag falls back to the class the finder was called on.
"""
import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional, Type, TypeVar

from docfinder.document_store import RawRecord

logger = logging.getLogger(__name__)

TYPE_ATTR = "_type"

T = TypeVar("T")

_registry: Dict[str, type] = {}


def register_document_type(name: Optional[str] = None) -> Callable[[Type[T]], Type[T]]:
    """Class decorator registering a document class under ``name`` (default: class name)."""
    def decorator(cls: Type[T]) -> Type[T]:
        _registry[name or cls.__name__] = cls
        return cls
    return decorator


def unregister_document_type(name: str):
    _registry.pop(name, None)


def resolve_type(name: Any, default: Type[T]) -> Type[T]:
    if name is None:
        return default
    cls = _registry.get(name) if isinstance(name, str) else None
    if cls is None:
        logger.warning(f"Unknown document type {name!r}, falling back to {default.__name__}")
        return default
    return cls


def instantiate(robject: RawRecord, default_cls: Type[T]) -> T:
    data = robject.data if isinstance(robject.data, Mapping) else {}
    klass = resolve_type(data.get(TYPE_ATTR), default_cls)

    attrs = {k: v for k, v in data.items() if k != TYPE_ATTR}
    # The raw key only fills in a missing "key"; it is forced onto the object below
    attrs.setdefault("key", robject.key)

    doc = klass(attrs)
    doc.key = robject.key
    doc._new = False
    doc._robject = robject
    return doc
