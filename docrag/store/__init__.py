"""Document store backends.

Importing this package registers every backend with ``StoreFactory``.
"""

from .factory import StoreFactory
from .in_memory_store import InMemoryDocumentStore
from .supabase_store import SupabaseDocumentStore

__all__ = ["InMemoryDocumentStore", "StoreFactory", "SupabaseDocumentStore"]
