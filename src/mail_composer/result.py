# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Outcome of a single send attempt.

Every call to ``MailService.send()`` yields exactly one MailResult:

- sent: ``valid=True``, no exception
- cancelled by a pre-send listener: ``valid=False``, no exception
- failed: ``valid=False`` with the captured exception

A valid result carrying an exception is rejected at construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Email


@dataclass(frozen=True)
class MailResult:
    """Immutable result of a send attempt.

    Attributes:
        email: The email that was tried to be sent.
        valid: Whether the email was handed to the transport successfully.
        exception: The failure cause, if sending failed with an error.
    """

    email: Email
    valid: bool = True
    exception: BaseException | None = None

    def __post_init__(self) -> None:
        if self.valid and self.exception is not None:
            raise ValueError("A valid MailResult cannot carry an exception")

    @classmethod
    def sent(cls, email: Email) -> MailResult:
        return cls(email)

    @classmethod
    def cancelled(cls, email: Email) -> MailResult:
        return cls(email, valid=False)

    @classmethod
    def failed(cls, email: Email, exception: BaseException) -> MailResult:
        return cls(email, valid=False, exception=exception)

    @property
    def is_valid(self) -> bool:
        return self.valid

    @property
    def has_exception(self) -> bool:
        return self.exception is not None

    @property
    def is_cancelled(self) -> bool:
        """True when sending was vetoed, usually by a pre-send listener."""
        return not self.valid and self.exception is None
