"""Mailchimp Marketing API SDK.

Provides synchronous and asynchronous transports for the Mailchimp
Marketing API v3, and a defensive decoder for the problem documents the
API returns when a call fails.

Quick start::

    from mailchimp_net import MailChimpClient, MailChimpError

    with MailChimpClient("0123abcd-us6") as client:
        try:
            client.ping()
        except MailChimpError as err:
            print(err.status, err.title, err.instance)
"""

from __future__ import annotations

from mailchimp_net._bag import DictBag, PropertyBag
from mailchimp_net.async_client import MailChimpAsyncClient
from mailchimp_net.client import MailChimpClient
from mailchimp_net.error_model import FieldError, ProblemDetail, decode, encode
from mailchimp_net.exceptions import MailChimpError

__all__ = [
    "DictBag",
    "FieldError",
    "MailChimpAsyncClient",
    "MailChimpClient",
    "MailChimpError",
    "ProblemDetail",
    "PropertyBag",
    "decode",
    "encode",
]

__version__ = "0.1.0"
