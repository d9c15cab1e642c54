"""Exception classes for the Mailchimp SDK."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

import httpx

from mailchimp_net._bag import (
    DictBag,
    DuplicateKeyError,
    FieldAbsentError,
    FieldTypeMismatchError,
    PropertyBag,
    PropertyBagError,
)
from mailchimp_net.error_model import FieldError, ProblemDetail, decode, encode

__all__ = [
    "DuplicateKeyError",
    "FieldAbsentError",
    "FieldTypeMismatchError",
    "MailChimpError",
    "PropertyBagError",
]


class MailChimpError(Exception):
    """Raised when a Mailchimp API request fails.

    The decoded problem document is available as :attr:`problem`; the
    common fields are mirrored as attributes for convenience.

    Attributes:
        problem: The decoded :class:`~mailchimp_net.error_model.ProblemDetail`.
        status: HTTP status reported by the API (``0`` if unknown).
        title: Short summary of the problem type.
        detail: Explanation specific to this occurrence.
        instance: Occurrence identifier, quoted when contacting support.
    """

    def __init__(self, problem: ProblemDetail) -> None:
        self.problem = problem
        super().__init__(str(self))

    @property
    def status(self) -> int:
        return self.problem.status

    @property
    def title(self) -> str:
        return self.problem.title

    @property
    def type(self) -> str:
        return self.problem.type

    @property
    def detail(self) -> str:
        return self.problem.detail

    @property
    def instance(self) -> str:
        return self.problem.instance

    @property
    def errors(self) -> list[FieldError]:
        return self.problem.errors

    @property
    def message(self) -> str:
        return str(self)

    @classmethod
    def from_bag(cls, bag: PropertyBag) -> MailChimpError:
        """Build an error from a property bag. Never raises while decoding."""
        return cls(decode(bag))

    @classmethod
    def from_response(cls, response: httpx.Response) -> MailChimpError:
        """Build an error from a failed HTTP response.

        The body is expected to be a problem document. Anything else
        (HTML error pages, empty bodies, JSON arrays) decodes as an empty
        bag, and the HTTP status line fills in the status and title.

        The diagnostic line written while decoding shows the body as
        received, before those fallbacks; the clients log the final
        problem when they raise.
        """
        try:
            parsed = response.json()
        except ValueError:
            parsed = None

        problem = decode(DictBag(parsed if isinstance(parsed, dict) else None))
        if not problem.status:
            problem = replace(problem, status=response.status_code)
        if not problem.title:
            problem = replace(problem, title=response.reason_phrase)
        return cls(problem)

    def __reduce__(self) -> tuple[Any, ...]:
        bag = DictBag()
        encode(self.problem, bag)
        return (_restore_error, (bag.as_dict(),))

    def __repr__(self) -> str:
        return (
            f"MailChimpError(status={self.status}, title={self.title!r}, "
            f"instance={self.instance!r})"
        )

    def __str__(self) -> str:
        head = f"{self.status} {self.title}" if self.title else f"HTTP {self.status}"
        return f"{head}: {self.detail}" if self.detail else head


def _restore_error(data: dict[str, Any]) -> MailChimpError:
    return MailChimpError.from_bag(DictBag(data))
