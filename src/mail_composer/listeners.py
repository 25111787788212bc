# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Listeners hooking into the send lifecycle.

Subclass MailListener and override the hooks you need:

- ``on_pre_render(email)``: before the body template is rendered
- ``on_pre_send(email)``: before the message is composed; returning
  ``False`` cancels the send
- ``on_post_send(result)``: after a successful send
- ``on_send_error(result)``: after a failed send

Hooks may be plain or ``async`` methods.

Example:
    Vetoing emails without recipients::

        class RequireRecipients(MailListener):
            def on_pre_send(self, email):
                return bool(email.to)

        service.attach_listener(RequireRecipients(), priority=10)
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import Email
    from .result import MailResult


class MailListener:
    """Base listener; every hook is a no-op."""

    def on_pre_render(self, email: Email) -> None:
        return None

    def on_pre_send(self, email: Email) -> bool | None:
        return None

    def on_post_send(self, result: MailResult) -> None:
        return None

    def on_send_error(self, result: MailResult) -> None:
        return None


class ListenerRegistry:
    """Listeners ordered by priority, higher first, ties in attach order."""

    def __init__(self) -> None:
        self._entries: list[tuple[int, int, MailListener]] = []
        self._counter = 0

    def attach(self, listener: MailListener, priority: int = 1) -> None:
        self._counter += 1
        self._entries.append((priority, self._counter, listener))
        self._entries.sort(key=lambda entry: (-entry[0], entry[1]))

    def detach(self, listener: MailListener) -> bool:
        before = len(self._entries)
        self._entries = [entry for entry in self._entries if entry[2] is not listener]
        return len(self._entries) != before

    def __iter__(self):
        return iter([entry[2] for entry in self._entries])

    def __len__(self) -> int:
        return len(self._entries)

    async def notify(self, hook: str, *args: Any) -> list[Any]:
        """Call ``hook`` on every listener and return their results."""
        results = []
        for listener in self:
            result = getattr(listener, hook)(*args)
            if inspect.isawaitable(result):
                result = await result
            results.append(result)
        return results

    async def allow_send(self, email: Email) -> bool:
        """Run pre-send hooks, stopping at the first veto."""
        for listener in self:
            result = listener.on_pre_send(email)
            if inspect.isawaitable(result):
                result = await result
            if result is False:
                return False
        return True
