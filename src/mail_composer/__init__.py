# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Email composition with templated bodies and normalized attachments.

This package assembles email messages and hands them to a pluggable
transport:

- AttachmentNormalizer: turns file paths, prebuilt parts, byte streams and
  descriptor mappings into canonical MimePart values
- MailService: renders bodies, runs listeners, composes and sends messages
- MailResult: outcome of a send attempt (sent, failed or cancelled)
- Jinja2-based view rendering with an application override
- SMTP (aiosmtplib), file and in-memory transports
- INI configuration with ``MAILER_*`` environment overrides

Example:
    Sending an email with an attachment::

        from mail_composer import Email, MailService, load_mailer_config

        service = MailService.from_config(load_mailer_config("mailer.ini"))
        email = Email(from_address="noreply@example.com", to="alice@example.com",
                      subject="Invoice", body="Please find the invoice attached.")
        email.add_attachment("/srv/invoices/2024-05.pdf", "invoice.pdf")
        result = await service.send(email)
"""

from .attachments import AttachmentNormalizer, ByteStream, Disposition, MimePart, TransferEncoding
from .builder import EmailBuilder
from .config_loader import MailerConfig, load_mailer_config
from .exceptions import (
    CompositionError,
    ConfigurationError,
    InvalidAttachmentError,
    MailComposerError,
    TransportError,
)
from .listeners import MailListener
from .models import Email
from .result import MailResult
from .service import MailService
from .transport import FileTransport, MemoryTransport, SmtpTransport
from .view import create_view_renderer

__all__ = [
    "AttachmentNormalizer",
    "ByteStream",
    "CompositionError",
    "ConfigurationError",
    "Disposition",
    "Email",
    "EmailBuilder",
    "FileTransport",
    "InvalidAttachmentError",
    "MailComposerError",
    "MailListener",
    "MailResult",
    "MailService",
    "MailerConfig",
    "MemoryTransport",
    "MimePart",
    "SmtpTransport",
    "TransferEncoding",
    "TransportError",
    "create_view_renderer",
    "load_mailer_config",
]
