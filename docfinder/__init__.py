from docfinder.conditions import Condition, Predicate, compile_conditions
from docfinder.config import StoreConfig, get_client, get_config, reset_client, set_client, set_config
from docfinder.document import Document, Quorums
from docfinder.document_store import (
    DocumentStore,
    GetParams,
    InMemoryDocumentStore,
    MongoDocumentStore,
    RawRecord,
    RedisDocumentStore,
    get_document_store,
)
from docfinder.errors import (
    DocFinderError,
    DocumentNotFound,
    InvalidArgument,
    InvalidConditions,
    KeyNotFound,
    StoreError,
)
from docfinder.finders import ALL, FIRST, LAST, Position
from docfinder.instantiator import instantiate, register_document_type, resolve_type
from docfinder.retrieval import Retriever

__version__ = "0.1.0"
