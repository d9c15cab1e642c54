"""Property bag protocol and the dict-backed implementation.

A property bag is the typed key/value view that the error model decodes
problem documents from and encodes them back into. Any object with the
getters and setter below satisfies :class:`PropertyBag`; :class:`DictBag`
wraps a decoded JSON object.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Iterator, Mapping, Protocol


class PropertyBagError(Exception):
    """Base class for failures raised by a property bag."""


class FieldAbsentError(PropertyBagError, KeyError):
    """The requested key is not present in the bag."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class FieldTypeMismatchError(PropertyBagError, TypeError):
    """The key is present but its value is not of the expected type."""


class DuplicateKeyError(PropertyBagError, ValueError):
    """A value has already been written under this key."""


class PropertyBag(Protocol):
    """Protocol for typed key/value access used by the error model."""

    def get_string(self, key: str) -> str: ...

    def get_int(self, key: str) -> int: ...

    def get_value(self, key: str, expected_type: type | tuple[type, ...]) -> Any: ...

    def set_value(self, key: str, value: Any) -> None: ...


class DictBag:
    """Property bag backed by a plain dict.

    A stored ``None`` is treated the same as a missing key, which is how
    JSON ``null`` shows up after decoding.

    Args:
        data: Initial contents. The mapping is copied.
    """

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data) if data else {}

    def _lookup(self, key: str) -> Any:
        value = self._data.get(key)
        if value is None:
            raise FieldAbsentError(f"no value stored under {key!r}")
        return value

    def get_string(self, key: str) -> str:
        value = self._lookup(key)
        if not isinstance(value, str):
            raise FieldTypeMismatchError(
                f"{key!r} holds {type(value).__name__}, expected str"
            )
        return value

    def get_int(self, key: str) -> int:
        value = self._lookup(key)
        # bool is an int subclass but never a valid status
        if isinstance(value, bool) or not isinstance(value, int):
            raise FieldTypeMismatchError(
                f"{key!r} holds {type(value).__name__}, expected int"
            )
        return value

    def get_value(self, key: str, expected_type: type | tuple[type, ...]) -> Any:
        value = self._lookup(key)
        if not isinstance(value, expected_type):
            raise FieldTypeMismatchError(
                f"{key!r} holds {type(value).__name__}, expected {expected_type!r}"
            )
        return value

    def set_value(self, key: str, value: Any) -> None:
        if key in self._data:
            raise DuplicateKeyError(f"a value is already stored under {key!r}")
        self._data[key] = value

    def keys(self) -> list[str]:
        return list(self._data)

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible copy, with dataclass items as dicts."""
        return {key: _plain(value) for key, value in self._data.items()}

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"DictBag({self._data!r})"


def _plain(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value
