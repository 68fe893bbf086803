from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional

from docfinder import config
from docfinder.document_store import DocumentStore, Quorum, RawRecord
from docfinder.finders import Finders
from docfinder.instantiator import TYPE_ATTR, register_document_type


@dataclass(frozen=True)
class Quorums:
    """Read quorum for finders. ``None`` defers to the configured ``read_quorum``."""
    r: Quorum = None


class Document(Finders):
    """
    Base class for typed documents.

        class Person(Document):
            bucket_name = "people"

        class Employee(Person):   # stored in "people" with _type "Employee"
            pass

    Subclasses register themselves under their class name so a record's
    ``_type`` tag can be turned back into the right class.
    """

    bucket_name: ClassVar[Optional[str]] = None
    quorums: ClassVar[Quorums] = Quorums()
    store: ClassVar[Optional[DocumentStore]] = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        register_document_type()(cls)

    def __init__(self, attributes: Optional[Dict[str, Any]] = None, **kwargs: Any):
        self._new = True
        self._robject: Optional[RawRecord] = None
        attrs = dict(attributes or {})
        attrs.update(kwargs)
        attrs.pop(TYPE_ATTR, None)
        attrs.setdefault("key", None)
        self._attributes = attrs

    @classmethod
    def get_bucket_name(cls) -> str:
        if cls.bucket_name:
            return cls.bucket_name
        # Subclasses share the bucket of the topmost document class
        root = cls
        for klass in cls.__mro__:
            if isinstance(klass, type) and issubclass(klass, Document) and klass is not Document:
                root = klass
        return root.__name__.lower()

    @classmethod
    def get_store(cls) -> DocumentStore:
        return cls.store if cls.store is not None else config.get_client()

    @property
    def key(self) -> Any:
        return self._attributes.get("key")

    @key.setter
    def key(self, value: Any):
        self._attributes["key"] = value

    @property
    def attributes(self) -> Dict[str, Any]:
        return dict(self._attributes)

    @property
    def new_record(self) -> bool:
        return self._new

    @property
    def robject(self) -> Optional[RawRecord]:
        return self._robject

    def __getitem__(self, name: str) -> Any:
        return self._attributes[name]

    def __setitem__(self, name: str, value: Any):
        self._attributes[name] = value

    def __getattr__(self, name: str) -> Any:
        attrs = self.__dict__.get("_attributes", {})
        if name in attrs:
            return attrs[name]
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def to_dict(self) -> Dict[str, Any]:
        """Storable attribute map. The key is a copy of the record key and is not serialized."""
        data = {k: v for k, v in self._attributes.items() if k != "key"}
        data[TYPE_ATTR] = type(self).__name__
        return data

    def __repr__(self) -> str:
        return f"<{type(self).__name__} key={self.key!r} {self._attributes!r}>"
