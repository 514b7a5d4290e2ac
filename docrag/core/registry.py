"""Name-to-class registry shared by the provider factories."""

from collections.abc import Callable
from typing import ClassVar

from docrag.core.exceptions import ConfigurationError


class Registry:
    """Decorator-based registration of implementations under a config name.

    Each subclass gets its own table::

        @StoreFactory.register("supabase")
        class SupabaseDocumentStore: ...

        StoreFactory.lookup("supabase")  # -> SupabaseDocumentStore
    """

    kind: ClassVar[str] = "provider"
    _registry: ClassVar[dict[str, type]]

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        cls._registry = {}

    @classmethod
    def register(cls, name: str) -> Callable[[type], type]:
        def decorator(impl: type) -> type:
            cls._registry[name] = impl
            return impl

        return decorator

    @classmethod
    def lookup(cls, name: str) -> type:
        """Return the class registered under ``name``.

        Raises:
            ConfigurationError: If nothing is registered under that name
        """
        impl = cls._registry.get(name)
        if impl is None:
            available = ", ".join(sorted(cls._registry)) or "none registered"
            raise ConfigurationError(f"Unknown {cls.kind}: '{name}'. Available: {available}")
        return impl

    @classmethod
    def available(cls) -> list[str]:
        return sorted(cls._registry)
