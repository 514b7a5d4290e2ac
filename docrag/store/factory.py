"""Document store factory."""

from docrag.core.config import AppConfig
from docrag.core.protocols import DocumentStore
from docrag.core.registry import Registry


class StoreFactory(Registry):
    """Creates the document store named by ``STORE_BACKEND``."""

    kind = "store backend"

    @classmethod
    def create(cls, config: AppConfig) -> DocumentStore:
        store_cls = cls.lookup(config.store.backend)
        if config.store.backend == "supabase":
            return store_cls(url=config.supabase.url, service_key=config.supabase.service_key)
        return store_cls()

    @classmethod
    def available_backends(cls) -> list[str]:
        return cls.available()
