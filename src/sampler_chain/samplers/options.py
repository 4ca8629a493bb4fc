"""Named, typed options for samplers.

Every sampler publishes its tunable parameters as :class:`SamplerOption`
metadata. This module resolves option keys and parses values so that a
sampler can be adjusted by name::

    sampler.set_option("k", 20)
    sampler.configure("k=20:min_keep=2")

Keys may be abbreviated to any unambiguous prefix. In the string form a bare
value with no ``key=`` addresses the sampler's only option.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from sampler_chain.exceptions import ConfigValidationError

if TYPE_CHECKING:
    from collections.abc import Sequence

OptionType = Literal["float", "uint", "bool"]

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True, slots=True)
class SamplerOption:
    """Metadata for one sampler option.

    Attributes:
        key: Option name; also the sampler attribute holding the value.
        option_type: ``'float'``, ``'uint'`` or ``'bool'``.
        description: Optional human-readable help text.
    """

    key: str
    option_type: OptionType
    description: str | None = None


def find_option(options: Sequence[SamplerOption], key: str) -> SamplerOption:
    """Resolve *key* (or a unique prefix of it) against *options*.

    An exact match always wins over prefix matches.

    Raises:
        ConfigValidationError: If no option matches or the prefix is ambiguous.
    """
    key = key.strip()
    for option in options:
        if option.key == key:
            return option
    matches = [option for option in options if option.key.startswith(key)]
    if not matches:
        shown = key or "<unspecified>"
        available = ", ".join(o.key for o in options) or "(none)"
        raise ConfigValidationError(f"Unknown option {shown!r}. Available: {available}")
    if len(matches) > 1:
        names = ", ".join(o.key for o in matches)
        raise ConfigValidationError(f"Ambiguous option key {key!r} matches: {names}")
    return matches[0]


def coerce_value(option: SamplerOption, value: Any) -> float | int | bool:
    """Convert a Python value (or a string) to the option's type.

    Raises:
        ConfigValidationError: If the value cannot represent the type.
    """
    if isinstance(value, str):
        return parse_value(option, value)
    if option.option_type == "bool":
        if isinstance(value, bool):
            return value
        raise ConfigValidationError(f"Option {option.key!r} expects a bool, got {value!r}")
    if isinstance(value, bool):
        raise ConfigValidationError(f"Option {option.key!r} expects a number, got {value!r}")
    if option.option_type == "uint":
        if isinstance(value, float) and not value.is_integer():
            raise ConfigValidationError(f"Option {option.key!r} expects an integer, got {value!r}")
        try:
            ivalue = int(value)
        except (TypeError, ValueError) as exc:
            raise ConfigValidationError(f"Option {option.key!r}: {exc}") from exc
        if ivalue < 0:
            raise ConfigValidationError(f"Option {option.key!r} must be >= 0, got {ivalue}")
        return ivalue
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigValidationError(f"Option {option.key!r}: {exc}") from exc


def parse_value(option: SamplerOption, raw: str) -> float | int | bool:
    """Parse the string form of an option value.

    Floats accept ``inf``/``-inf``; bools accept ``true/false``, ``yes/no``,
    ``on/off`` and ``1/0``.

    Raises:
        ConfigValidationError: If *raw* does not parse as the option's type.
    """
    text = raw.strip()
    if option.option_type == "bool":
        lowered = text.lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ConfigValidationError(f"Option {option.key!r}: cannot parse {raw!r} as bool")
    if option.option_type == "uint":
        if not text.isdigit():
            raise ConfigValidationError(
                f"Option {option.key!r}: cannot parse {raw!r} as unsigned integer"
            )
        return int(text)
    try:
        value = float(text)
    except ValueError as exc:
        raise ConfigValidationError(f"Option {option.key!r}: cannot parse {raw!r} as float") from exc
    if math.isnan(value):
        raise ConfigValidationError(f"Option {option.key!r}: NaN is not allowed")
    return value


def split_option_string(spec: str) -> list[tuple[str, str]]:
    """Split ``'key1=value1:key2=value2'`` into ``(key, value)`` pairs.

    Empty parts are skipped. A part with no ``=`` yields an empty key.
    """
    pairs: list[tuple[str, str]] = []
    for part in spec.strip().split(":"):
        part = part.strip()
        if not part:
            continue
        key, sep, value = part.partition("=")
        if not sep:
            key, value = "", part
        pairs.append((key.strip(), value.strip()))
    return pairs
