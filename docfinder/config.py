import os
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from docfinder.document_store import DocumentStore, Quorum, get_document_store

logger = logging.getLogger(__name__)


def _parse_quorum(value: Optional[str]) -> Quorum:
    if not value:
        return None
    return int(value) if value.isdigit() else value


@dataclass
class StoreConfig:
    """Connection settings for the process-wide document store."""

    store_type: str = "memory"
    mongo_uri: str = "mongodb://localhost:27017/"
    mongo_database: str = "docfinder"
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    # Used for reads by document classes that set no quorums.r of their own
    read_quorum: Quorum = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StoreConfig":
        env = os.environ if environ is None else environ
        return cls(
            store_type=env.get("DOCFINDER_STORE", cls.store_type),
            mongo_uri=env.get("DOCFINDER_MONGO_URI", cls.mongo_uri),
            mongo_database=env.get("DOCFINDER_MONGO_DB", cls.mongo_database),
            redis_host=env.get("DOCFINDER_REDIS_HOST", cls.redis_host),
            redis_port=int(env.get("DOCFINDER_REDIS_PORT", cls.redis_port)),
            redis_db=int(env.get("DOCFINDER_REDIS_DB", cls.redis_db)),
            read_quorum=_parse_quorum(env.get("DOCFINDER_READ_QUORUM")),
        )

    def build_store(self) -> DocumentStore:
        if self.store_type == "mongo":
            return get_document_store("mongo", connection_string=self.mongo_uri, database_name=self.mongo_database)
        if self.store_type == "redis":
            return get_document_store("redis", host=self.redis_host, port=self.redis_port, db=self.redis_db)
        return get_document_store(self.store_type)


_config: Optional[StoreConfig] = None
_client: Optional[DocumentStore] = None


def get_config() -> StoreConfig:
    global _config
    if _config is None:
        _config = StoreConfig.from_env()
    return _config


def set_config(store_config: StoreConfig):
    global _config
    _config = store_config


def get_client() -> DocumentStore:
    """Returns the shared store, building it from the configuration on first use."""
    global _client
    if _client is None:
        store_config = get_config()
        logger.info(f"Initializing {store_config.store_type} document store")
        _client = store_config.build_store()
    return _client


def set_client(store: DocumentStore):
    global _client
    _client = store


def reset_client():
    """Closes the shared store and forgets it along with the loaded configuration."""
    global _client, _config
    if _client is not None:
        _client.close()
    _client = None
    _config = None
