"""Problem detail documents returned by the Mailchimp API.

Failed API calls return a JSON body of the form::

    {
        "type": "https://mailchimp.com/developer/marketing/docs/errors/",
        "title": "Invalid Resource",
        "status": 400,
        "detail": "The resource submitted could not be validated.",
        "instance": "c1234",
        "errors": [{"field": "email_address", "message": "is invalid"}]
    }

:func:`decode` turns a property bag holding such a body into a
:class:`ProblemDetail`. The body comes from a server that is already
failing, so decoding is best-effort: each field is read on its own, a
field that is missing or has the wrong type keeps its default, and
:func:`decode` itself never raises. Every decode writes a one-line summary
to the ``mailchimp_net.trace`` logger and to the error stream.

The trace record is a DEBUG record handed to the logger's handlers
whatever the logger's level, so it always reaches the handlers attached to
``mailchimp_net.trace`` or its parents. Handlers keep their own levels: the
fallback handler used when logging is unconfigured only shows WARNING and
above, so attach a DEBUG handler to see the trace.

:func:`encode` is the inverse and writes every field back into a bag.
"""

from __future__ import annotations

import dataclasses
import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, TextIO

from mailchimp_net._bag import (
    DictBag,
    FieldAbsentError,
    FieldTypeMismatchError,
    PropertyBag,
)

logger = logging.getLogger(__name__)
trace_logger = logging.getLogger("mailchimp_net.trace")

__all__ = ["FieldError", "ProblemDetail", "decode", "encode"]


@dataclass(frozen=True)
class FieldError:
    """A validation failure on a single request field."""

    field: str
    message: str

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FieldError:
        """Build from a decoded JSON object with ``field`` and ``message``.

        Raises:
            FieldTypeMismatchError: If either key is missing or not a string.
        """
        name = data.get("field")
        message = data.get("message")
        if not isinstance(name, str) or not isinstance(message, str):
            raise FieldTypeMismatchError(
                f"field error needs string 'field' and 'message', got {dict(data)!r}"
            )
        return cls(field=name, message=message)

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass
class ProblemDetail:
    """Structured description of a failed API call.

    All fields except ``errors`` are read-only after construction.

    Attributes:
        title: Short, human-readable summary of the problem type.
        type: Absolute URI identifying the problem type.
        status: HTTP status generated by the origin server, ``0`` if unknown.
        detail: Explanation specific to this occurrence of the problem.
        instance: Identifier of this occurrence. Quote it when contacting
            support.
        errors: Field-level validation failures, possibly empty.
    """

    title: str = ""
    type: str = ""
    status: int = 0
    detail: str = ""
    instance: str = ""
    errors: list[FieldError] = field(default_factory=list)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "errors":
            # an absent list is stored as empty
            super().__setattr__(name, [] if value is None else value)
            return
        if name in self.__dict__ or name not in _PROBLEM_FIELDS:
            raise dataclasses.FrozenInstanceError(f"cannot assign to field {name!r}")
        super().__setattr__(name, value)

    def __delattr__(self, name: str) -> None:
        raise dataclasses.FrozenInstanceError(f"cannot delete field {name!r}")

    @classmethod
    def from_bag(cls, bag: PropertyBag) -> ProblemDetail:
        return decode(bag)

    def to_bag(self, bag: PropertyBag | None = None) -> PropertyBag:
        return encode(self, bag)

    def diagnostic(self, *, include_errors: bool = True) -> str:
        """Render the one-line summary written on every decode.

        The errors segment is appended only when ``include_errors`` is set,
        and is dropped if ``errors`` cannot be rendered.
        """
        line = (
            f"Title: {self.title}; Type: {self.type}; "
            f"Status: {self.status}; Detail: {self.detail}"
        )
        if include_errors:
            try:
                line += "; Errors: " + " : ".join(
                    f"{error.field} {error.message}" for error in self.errors
                )
            except Exception:
                logger.debug("Could not render problem errors", exc_info=True)
        return line


_PROBLEM_FIELDS = frozenset(f.name for f in dataclasses.fields(ProblemDetail))


def decode(bag: PropertyBag, *, stream: TextIO | None = None) -> ProblemDetail:
    """Decode a problem document from ``bag``.

    Fields are read independently; one that cannot be read keeps its
    default (``""``, ``0`` or ``[]``) and the others are unaffected.

    Args:
        bag: Property bag holding the decoded response body.
        stream: Error stream for the diagnostic line. Defaults to
            ``sys.stderr``.

    Returns:
        The decoded problem. This function never raises.
    """
    readers: list[tuple[str, Callable[[], Any]]] = [
        ("detail", lambda: _read_string(bag, "detail")),
        ("title", lambda: _read_string(bag, "title")),
        ("type", lambda: _read_string(bag, "type")),
        ("status", lambda: _read_int(bag, "status")),
        ("instance", lambda: _read_string(bag, "instance")),
        ("errors", lambda: _read_errors(bag)),
    ]

    values: dict[str, Any] = {}
    for key, read in readers:
        try:
            values[key] = read()
        except Exception as exc:
            # a bad key must not stop the remaining ones
            logger.debug("Problem field %r not decoded: %s", key, exc)

    problem = ProblemDetail(**values)
    _emit(problem.diagnostic(include_errors="errors" in values), stream)
    return problem


def encode(problem: ProblemDetail, bag: PropertyBag | None = None) -> PropertyBag:
    """Write every field of ``problem`` into ``bag``.

    Keys are written in a fixed order and none is skipped. Errors raised by
    the bag, such as a duplicate key, propagate to the caller.

    Args:
        problem: The problem to encode.
        bag: Destination bag. A new :class:`~mailchimp_net._bag.DictBag`
            is used when omitted.

    Returns:
        The bag that was written to.
    """
    if bag is None:
        bag = DictBag()
    bag.set_value("detail", problem.detail)
    bag.set_value("title", problem.title)
    bag.set_value("type", problem.type)
    bag.set_value("status", problem.status)
    bag.set_value("instance", problem.instance)
    bag.set_value("errors", list(problem.errors or []))
    return bag


def _read_string(bag: PropertyBag, key: str) -> str:
    value = bag.get_string(key)
    if value is None:
        raise FieldAbsentError(f"no value stored under {key!r}")
    if not isinstance(value, str):
        raise FieldTypeMismatchError(f"{key!r} is not a string")
    return value


def _read_int(bag: PropertyBag, key: str) -> int:
    value = bag.get_int(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise FieldTypeMismatchError(f"{key!r} is not an integer")
    return value


def _read_errors(bag: PropertyBag) -> list[FieldError]:
    items = bag.get_value("errors", (list, tuple))
    if not isinstance(items, (list, tuple)):
        raise FieldTypeMismatchError("'errors' is not a list")
    return [_to_field_error(item) for item in items]


def _to_field_error(item: Any) -> FieldError:
    if isinstance(item, FieldError):
        return item
    if isinstance(item, Mapping):
        return FieldError.from_mapping(item)
    raise FieldTypeMismatchError(f"{type(item).__name__} is not a field error")


def _emit(line: str, stream: TextIO | None) -> None:
    """Write ``line`` to the trace logger and the error stream.

    Sink failures are logged and dropped. The stream is not flushed.
    """
    try:
        record = trace_logger.makeRecord(
            trace_logger.name, logging.DEBUG, __file__, 0, line, None, None, "_emit"
        )
        trace_logger.handle(record)
    except Exception:
        logger.debug("Trace sink rejected diagnostic line", exc_info=True)

    try:
        (stream if stream is not None else sys.stderr).write(line + "\n")
    except Exception:
        logger.debug("Error stream rejected diagnostic line", exc_info=True)
