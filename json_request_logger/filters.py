"""
Redaction of request parameters before they reach a log record.

Values under a sensitive key are replaced wholesale, at any depth.
Long strings are cut so a single field can't blow up a log line.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

FILTERED = "[FILTERED]"
MAX_STRING_LENGTH = 501


@runtime_checkable
class Fieldable(Protocol):
    """Record-like value that can describe itself as a plain mapping."""

    def to_fields(self) -> dict[str, Any]: ...


def filter_values(value: Any, filtered_keys: Iterable[str]) -> Any:
    """
    Return a copy of value with sensitive keys redacted.

    Args:
        value: Scalar, list/tuple, mapping or Fieldable, nested arbitrarily
        filtered_keys: Exact key names whose values are replaced by [FILTERED]

    Returns:
        The filtered value; mappings stay mappings, sequences become lists
    """
    if not isinstance(filtered_keys, (set, frozenset)):
        filtered_keys = frozenset(filtered_keys)
    return _filter(value, filtered_keys)


def _filter(value: Any, filtered_keys: frozenset[str] | set[str]) -> Any:
    if isinstance(value, Fieldable):
        value = value.to_fields()

    if isinstance(value, Mapping):
        return {
            key: FILTERED
            if isinstance(key, str) and key in filtered_keys
            else _filter(item, filtered_keys)
            for key, item in value.items()
        }

    if isinstance(value, (list, tuple)):
        return [_filter(item, filtered_keys) for item in value]

    return format_value(value)


def format_value(value: Any) -> Any:
    """Truncate strings; leave every other scalar alone."""
    if isinstance(value, str):
        return value[:MAX_STRING_LENGTH]
    return value
