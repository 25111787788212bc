# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Mail transports delivering composed messages.

A transport is any object with an ``async send(message)`` method taking an
``email.message.EmailMessage``. Failures are raised as-is; MailService
converts them into a failed MailResult.

Transports provided:
- SmtpTransport: delivery through an SMTP server using aiosmtplib
- FileTransport: writes each message as an ``.eml`` file
- MemoryTransport: keeps messages in a list, for tests and previews

TLS behavior of SmtpTransport:
- port 465 with TLS: implicit TLS
- other ports with TLS: STARTTLS
- TLS disabled: plain SMTP
"""

from __future__ import annotations

import asyncio
import time
import uuid
from email.message import EmailMessage
from pathlib import Path
from typing import Protocol, runtime_checkable

import aiosmtplib

from .config_loader import MailerConfig, SmtpConfig
from .exceptions import ConfigurationError
from .logger import get_logger

logger = get_logger("MailTransport")


@runtime_checkable
class Transport(Protocol):
    """Delivers one composed message."""

    async def send(self, message: EmailMessage) -> None: ...


class SmtpTransport:
    """Sends messages through an SMTP server, one connection per message.

    Attributes:
        config: SMTP host, credentials, TLS mode and timeout.
    """

    def __init__(self, config: SmtpConfig | None = None):
        self.config = config or SmtpConfig()

    @property
    def use_tls(self) -> bool:
        if self.config.use_tls is None:
            return int(self.config.port) == 465
        return bool(self.config.use_tls)

    def _client(self) -> aiosmtplib.SMTP:
        host, port, timeout = self.config.host, int(self.config.port), self.config.timeout
        if self.use_tls and port == 465:
            return aiosmtplib.SMTP(hostname=host, port=port, start_tls=False, use_tls=True, timeout=timeout)
        if self.use_tls:
            return aiosmtplib.SMTP(hostname=host, port=port, start_tls=True, use_tls=False, timeout=timeout)
        return aiosmtplib.SMTP(hostname=host, port=port, start_tls=False, use_tls=False, timeout=timeout)

    async def send(self, message: EmailMessage) -> None:
        """Connect, authenticate when credentials are set, send and quit.

        Raises:
            asyncio.TimeoutError: If connecting or sending exceeds the timeout.
            aiosmtplib.SMTPException: If the server rejects the message.
        """
        smtp = self._client()
        timeout = self.config.timeout

        async def _connect() -> None:
            await smtp.connect()
            if self.config.user and self.config.password:
                await smtp.login(self.config.user, self.config.password)

        try:
            await asyncio.wait_for(_connect(), timeout=timeout)
            await asyncio.wait_for(smtp.send_message(message), timeout=timeout)
        finally:
            if smtp.is_connected:
                try:
                    await smtp.quit()
                except aiosmtplib.SMTPException:
                    logger.debug("SMTP QUIT failed for %s", self.config.host, exc_info=True)
        logger.debug("Message %s handed to %s:%s", message.get("Message-ID"), self.config.host, self.config.port)


class FileTransport:
    """Writes every message into ``directory`` as ``<timestamp>_<uuid>.eml``."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    async def send(self, message: EmailMessage) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / f"{time.strftime('%Y%m%d%H%M%S')}_{uuid.uuid4().hex}.eml"
        await asyncio.to_thread(path.write_bytes, message.as_bytes())
        logger.debug("Message written to %s", path)


class MemoryTransport:
    """Keeps sent messages in ``messages``."""

    def __init__(self) -> None:
        self.messages: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        self.messages.append(message)


def create_transport(config: MailerConfig) -> Transport:
    """Instantiate the transport named by ``config.transport``.

    Raises:
        ConfigurationError: For unknown transports, or a file transport
            without ``file_path``.
    """
    if config.transport == "smtp":
        return SmtpTransport(config.smtp)
    if config.transport == "file":
        if not config.file_path:
            raise ConfigurationError("The file transport requires mailer.file_path")
        return FileTransport(config.file_path)
    if config.transport == "memory":
        return MemoryTransport()
    raise ConfigurationError(f"Unknown transport: {config.transport}")
