"""Random source registry with entry-point discovery.

Built-in sources register themselves at import time with
``@register_random_source``. Sources shipped by other packages are found
lazily through the ``sampler_chain.random_sources`` entry-point group the
first time a name is not found among the built-ins.
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from collections.abc import Callable

    from sampler_chain.rng.base import RandomSource

logger = logging.getLogger("sampler_chain")

_ENTRY_POINT_GROUP = "sampler_chain.random_sources"


class RandomSourceRegistry:
    """Maps source names to :class:`RandomSource` subclasses.

    Lookup order:

    1. Classes registered with ``@register_random_source``
    2. Entry points in ``sampler_chain.random_sources`` (loaded once, on demand)
    """

    _registry: ClassVar[dict[str, type[RandomSource]]] = {}
    _entry_points_loaded: ClassVar[bool] = False

    @classmethod
    def register(cls, name: str) -> Callable[[type[RandomSource]], type[RandomSource]]:
        """Decorator registering a source class under *name*.

        Example::

            @RandomSourceRegistry.register("hardware")
            class HardwareSource(RandomSource):
                ...

        Raises:
            ValueError: If a different class already holds *name*.
        """

        def decorator(source_cls: type[RandomSource]) -> type[RandomSource]:
            existing = cls._registry.get(name)
            if existing is not None and existing is not source_cls:
                raise ValueError(f"Random source '{name}' is already registered")
            cls._registry[name] = source_cls
            return source_cls

        return decorator

    @classmethod
    def get(cls, name: str) -> type[RandomSource]:
        """Return the class registered under *name*.

        Raises:
            KeyError: If *name* is unknown after entry-point discovery.
        """
        source_cls = cls._registry.get(name)
        if source_cls is None and not cls._entry_points_loaded:
            cls._load_entry_points()
            source_cls = cls._registry.get(name)
        if source_cls is None:
            available = ", ".join(sorted(cls._registry)) or "(none)"
            raise KeyError(f"Unknown random source: {name!r}. Available: {available}")
        return source_cls

    @classmethod
    def create(cls, name: str, **kwargs: Any) -> RandomSource:
        """Instantiate the source registered under *name* with *kwargs*."""
        return cls.get(name)(**kwargs)

    @classmethod
    def list_available(cls) -> list[str]:
        """Sorted names of all known sources, including entry points."""
        if not cls._entry_points_loaded:
            cls._load_entry_points()
        return sorted(cls._registry)

    @classmethod
    def _load_entry_points(cls) -> None:
        cls._entry_points_loaded = True
        try:
            eps = importlib.metadata.entry_points(group=_ENTRY_POINT_GROUP)
        except Exception:  # Broken metadata must not break lookup of built-ins.
            logger.warning("Failed to read entry points for %s", _ENTRY_POINT_GROUP, exc_info=True)
            return

        for ep in eps:
            if ep.name in cls._registry:
                continue
            try:
                cls._registry[ep.name] = ep.load()
            except Exception:  # One bad plugin must not hide the others.
                logger.warning(
                    "Skipping random source entry point %r (%s)", ep.name, ep.value, exc_info=True
                )
            else:
                logger.debug("Registered random source %r from entry point", ep.name)

    @classmethod
    def _reset(cls) -> None:
        """Clear all registrations. Test-only."""
        cls._registry.clear()
        cls._entry_points_loaded = False


register_random_source = RandomSourceRegistry.register
