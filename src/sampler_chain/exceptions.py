"""Exception hierarchy for sampler-chain.

All exceptions derive from SamplerChainError, enabling broad catch patterns
at the application boundary while allowing fine-grained handling internally.
"""


class SamplerChainError(Exception):
    """Base exception for all sampler-chain errors."""


class InvalidInputError(SamplerChainError):
    """Malformed or semantically impossible data or configuration.

    Raised for empty logits, non-finite scores, zero-length truncation
    targets, non-positive temperatures and similar. Always raised before
    the operation mutates anything.
    """


class ResourceUnavailableError(SamplerChainError):
    """A sampler needed a resource the resource set does not provide.

    Raised only when a sampler actually needs the random source or the
    token history, so chains that never touch a resource need not supply it.

    Attributes:
        resource: Name of the missing resource (``'rng'`` or ``'last_tokens'``).
    """

    def __init__(self, resource: str, message: str | None = None) -> None:
        self.resource = resource
        super().__init__(message or f"Missing sampler resource: {resource}")


class InternalSamplerError(SamplerChainError):
    """Arithmetic or invariant violation that should be unreachable.

    Signals a defect rather than a recoverable condition.
    """


class ConfigValidationError(SamplerChainError):
    """Configuration validation failed.

    Raised for unknown or ambiguous sampler option keys, unknown sampler
    names in a chain description, and overrides that attempt to change
    infrastructure fields.
    """
