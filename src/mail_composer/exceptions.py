# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exception hierarchy for the mail composer.

All errors raised by this package derive from MailComposerError:

- InvalidAttachmentError: an attachment input has a shape no parser accepts.
- CompositionError: rendering a template or building the message failed.
- TransportError: the delivery backend reported a failure. Captured into
  MailResult.exception instead of being raised from MailService.send().
- ConfigurationError: invalid configuration or unknown email preset.
"""

from __future__ import annotations

from collections.abc import Iterable


class MailComposerError(Exception):
    """Base class for every error raised by the mail composer."""


class InvalidAttachmentError(MailComposerError, ValueError):
    """Raised when an attachment input does not match the expected shape.

    Attributes:
        expected: Descriptions of the attachment kinds that were expected.
    """

    def __init__(self, message: str, expected: Iterable[str] = ()):
        super().__init__(message)
        self.expected = tuple(expected)

    @classmethod
    def from_expected_type(cls, expected_type: str) -> InvalidAttachmentError:
        """Build the error raised by a single parser rejecting its input."""
        return cls(
            f"Provided attachment is not valid. Expected {expected_type}",
            expected=(expected_type,),
        )

    @classmethod
    def from_expected_types(cls, expected_types: Iterable[str]) -> InvalidAttachmentError:
        """Build the error raised when no registered parser accepts an input."""
        expected = tuple(expected_types)
        return cls(
            "Provided attachment is not valid. Expected one of: " + ", ".join(expected),
            expected=expected,
        )


class CompositionError(MailComposerError):
    """Raised when a message body cannot be rendered or the message cannot be built."""


class TransportError(MailComposerError):
    """Wraps a failure reported by the underlying mail transport."""

    @classmethod
    def from_exception(cls, exc: BaseException) -> TransportError:
        error = cls(f"Error while sending email: {exc}")
        error.__cause__ = exc
        return error


class ConfigurationError(MailComposerError):
    """Raised for malformed configuration or references to unknown presets."""
