"""Base class shared by every sampler.

A sampler is one step of a chain. It mutates a
:class:`~sampler_chain.logits.Logits` in place, may consult the resource set
(random source, token history), and may select a token. Selection is reported
through :attr:`Sampler.sampled_token_id` after :meth:`Sampler.sample`
returns, so a chain can run filters and selectors uniformly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

import numpy as np

from sampler_chain.exceptions import ConfigValidationError, InvalidInputError
from sampler_chain.samplers.options import (
    SamplerOption,
    coerce_value,
    find_option,
    split_option_string,
)

if TYPE_CHECKING:
    from sampler_chain.config import SamplerChainConfig
    from sampler_chain.logits import Logits
    from sampler_chain.resources import SamplerResources


class Sampler(ABC):
    """Abstract base class for samplers.

    Subclasses implement :meth:`sample`. Selecting samplers also override
    :attr:`sampled_token_id`. Tunable parameters are declared in
    :attr:`options` and stored as instance attributes of the same name;
    :meth:`_validate` checks them at construction and after every
    :meth:`set_option`.
    """

    name: ClassVar[str] = "sampler"
    description: ClassVar[str | None] = None
    options: ClassVar[tuple[SamplerOption, ...]] = ()

    @abstractmethod
    def sample(self, res: SamplerResources, logits: Logits) -> Logits:
        """Apply this sampler to *logits* in place.

        Args:
            res: Resource set to borrow the random source or history from.
            logits: Candidate set for the current generation step.

        Returns:
            The same *logits* object, for call chaining.

        Raises:
            InvalidInputError: If the data cannot be processed.
            ResourceUnavailableError: If a needed resource is missing.
            InternalSamplerError: On an invariant violation.
        """

    @property
    def sampled_token_id(self) -> int | None:
        """Token chosen by the most recent :meth:`sample` call, if any."""
        return None

    def sample_token(self, res: SamplerResources, logits: Logits) -> int | None:
        """Run :meth:`sample` and return the selected token id (or ``None``)."""
        self.sample(res, logits)
        return self.sampled_token_id

    @classmethod
    def from_config(cls, config: SamplerChainConfig) -> Sampler:
        """Build an instance from configuration defaults.

        Samplers without parameters need not override this.
        """
        return cls()

    # --- Options ---

    def _validate(self) -> None:
        """Check parameter values. Raise InvalidInputError when invalid."""

    def _post_set_option(self, key: str) -> None:
        """Hook run after an option has been set and validated."""

    def get_option(self, key: str) -> Any:
        """Return the value of the option matching *key*.

        Raises:
            ConfigValidationError: If *key* is unknown or ambiguous.
        """
        return getattr(self, find_option(self.options, key).key)

    def set_option(self, key: str, value: Any) -> None:
        """Set the option matching *key*, rolling back if validation fails.

        Raises:
            ConfigValidationError: If *key* is unknown/ambiguous or *value*
                has the wrong type.
            InvalidInputError: If the new value fails the sampler's checks.
        """
        option = find_option(self.options, key)
        new_value = coerce_value(option, value)
        old_value = getattr(self, option.key)
        setattr(self, option.key, new_value)
        try:
            self._validate()
        except InvalidInputError:
            setattr(self, option.key, old_value)
            raise
        self._post_set_option(option.key)

    def configure(self, spec: str) -> None:
        """Apply options from a ``'key1=value1:key2=value2'`` string.

        A bare value without ``key=`` targets the only option of samplers
        that have exactly one.

        Raises:
            ConfigValidationError: On unknown, ambiguous or unparsable parts.
        """
        for key, raw in split_option_string(spec):
            if not self.options:
                raise ConfigValidationError(f"Sampler {self.name!r} has no options")
            self.set_option(find_option(self.options, key).key, raw)

    def option_values(self) -> dict[str, Any]:
        """Current values of all declared options."""
        return {option.key: getattr(self, option.key) for option in self.options}

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in self.option_values().items())
        return f"{type(self).__name__}({params})"


def recent_tokens(res: SamplerResources, last_n: int) -> np.ndarray:
    """The most recent *last_n* history entries as an int64 array.

    Raises:
        ResourceUnavailableError: If the resource set has no history.
    """
    window = res.with_last_tokens(lambda tokens: tokens[-last_n:] if last_n > 0 else ())
    return np.asarray(window, dtype=np.int64)
