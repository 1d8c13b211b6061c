"""Coercion of option mappings into typed option dataclasses."""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any, Mapping, Optional, Type, TypeVar, Union

__all__ = ["coerce_options"]

T = TypeVar("T")


def coerce_options(cls: Type[T], opts: Optional[Union[T, Mapping[str, Any]]]) -> T:
    """Build `cls` from None, an existing instance, or a mapping of field names.

    Unknown keys raise ValueError so a misspelt option is never silently ignored.
    Mapping values of None fall back to the field default.
    """
    assert is_dataclass(cls), "options class must be a dataclass"
    if opts is None:
        return cls()
    if isinstance(opts, cls):
        return opts
    if not isinstance(opts, Mapping):
        raise ValueError(f"{cls.__name__} expects a mapping or {cls.__name__}, got {type(opts).__name__}")
    known = {f.name for f in fields(cls) if f.init}
    unknown = sorted(str(k) for k in opts.keys() if k not in known)
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} option(s): {', '.join(unknown)}")
    kwargs = {str(k): v for k, v in opts.items() if v is not None}
    return cls(**kwargs)
