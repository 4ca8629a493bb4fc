"""Registry for sampler implementations.

Uses a decorator pattern for registration so that built-in and third-party
samplers can make themselves available by name, e.g. for building a chain
from a textual description.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from collections.abc import Callable

    from sampler_chain.config import SamplerChainConfig
    from sampler_chain.samplers.base import Sampler


class SamplerRegistry:
    """Registry mapping string names to Sampler classes.

    Built-in samplers register via the ``@SamplerRegistry.register()``
    decorator. :meth:`build` instantiates a sampler, taking its parameters
    from configuration when one is given.
    """

    _registry: ClassVar[dict[str, type[Sampler]]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[type[Sampler]], type[Sampler]]:
        """Decorator that registers a Sampler class under *name*.

        Args:
            name: Identifier used in chain descriptions (e.g. ``'top_k'``).

        Raises:
            ValueError: If *name* is already registered.
        """

        def decorator(klass: type[Sampler]) -> type[Sampler]:
            if name in cls._registry:
                raise ValueError(f"Sampler '{name}' is already registered")
            cls._registry[name] = klass
            return klass

        return decorator

    @classmethod
    def get(cls, name: str) -> type[Sampler]:
        """Return the sampler class registered under *name*.

        Raises:
            KeyError: If *name* is not registered.
        """
        if name not in cls._registry:
            available = ", ".join(sorted(cls._registry)) or "(none)"
            raise KeyError(f"Unknown sampler '{name}'. Available: {available}")
        return cls._registry[name]

    @classmethod
    def build(cls, name: str, config: SamplerChainConfig | None = None) -> Sampler:
        """Instantiate the sampler registered under *name*.

        Args:
            name: Registered sampler name.
            config: Source of parameter defaults. ``None`` uses the
                sampler's own constructor defaults.

        Returns:
            A fully constructed Sampler instance.
        """
        klass = cls.get(name)
        if config is None:
            return klass()
        return klass.from_config(config)

    @classmethod
    def list_registered(cls) -> list[str]:
        """Return sorted list of registered sampler names."""
        return sorted(cls._registry)
