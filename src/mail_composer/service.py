# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Mail service composing emails and handing them to a transport.

MailService ties the pieces together:

- EmailBuilder resolves preset names into Email models
- the view renderer turns templates into bodies
- AttachmentNormalizer turns attachment inputs into MimeParts
- listeners observe the lifecycle and may veto a send
- the transport delivers the composed EmailMessage

``send()`` always returns a MailResult for delivery outcomes:

- sent: ``MailResult(valid=True)``
- vetoed by a pre-send listener: ``MailResult(valid=False)``, no exception
- message building or transport failure: ``MailResult(valid=False)`` with a
  CompositionError or TransportError as ``exception``

Unknown presets and template rendering failures are raised, not captured.

Example:
    Sending a preset email::

        config = load_mailer_config("/etc/mail-composer/mailer.ini")
        service = MailService.from_config(config)
        result = await service.send("welcome", to=["alice@example.com"])
        if result.is_cancelled:
            ...
"""

from __future__ import annotations

import asyncio
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Any

from pydantic import ValidationError

from .attachments import AttachmentNormalizer, MimePart
from .builder import EmailBuilder
from .config_loader import MailerConfig
from .exceptions import CompositionError, ConfigurationError, MailComposerError, TransportError
from .listeners import ListenerRegistry, MailListener
from .logger import get_logger
from .models import Email
from .prometheus import MailMetrics
from .result import MailResult
from .transport import Transport, create_transport
from .view import MailViewRenderer, create_view_renderer


def _format_address(address: str | None, name: str | None) -> str | None:
    if not address:
        return None
    return formataddr((name, address)) if name else address


class MailService:
    """Composes Email models into messages and sends them.

    Attributes:
        transport: Delivery backend.
        renderer: View renderer used for templated bodies.
        normalizer: Attachment normalizer.
        builder: Preset-aware Email builder.
        metrics: Prometheus counters for send outcomes.
        listeners: Registered lifecycle listeners.
    """

    def __init__(
        self,
        transport: Transport,
        renderer: MailViewRenderer | None = None,
        normalizer: AttachmentNormalizer | None = None,
        builder: EmailBuilder | None = None,
        metrics: MailMetrics | None = None,
    ):
        self.transport = transport
        self.renderer = renderer or create_view_renderer()
        self.normalizer = normalizer or AttachmentNormalizer()
        self.builder = builder or EmailBuilder()
        self.metrics = metrics or MailMetrics()
        self.listeners = ListenerRegistry()
        self.logger = get_logger("MailService")

    @classmethod
    def from_config(
        cls,
        config: MailerConfig,
        *,
        renderer: Any = None,
        transport: Transport | None = None,
        metrics: MailMetrics | None = None,
    ) -> MailService:
        """Create a service wired from a MailerConfig.

        Args:
            config: Loaded configuration.
            renderer: Optional application renderer, see create_view_renderer().
            transport: Optional transport replacing the configured one.
            metrics: Optional metrics collector.
        """
        return cls(
            transport=transport or create_transport(config),
            renderer=create_view_renderer(config.view, renderer),
            builder=EmailBuilder(config.emails),
            metrics=metrics,
        )

    def attach_listener(self, listener: MailListener, priority: int = 1) -> None:
        self.listeners.attach(listener, priority)

    def detach_listener(self, listener: MailListener) -> bool:
        return self.listeners.detach(listener)

    def resolve_email(self, email: Email | str, **overrides: Any) -> Email:
        """Return an Email from a model or a preset name plus overrides."""
        if isinstance(email, str):
            return self.builder.build(email, **overrides)
        if not overrides:
            return email
        fields = {name: getattr(email, name) for name in Email.model_fields}
        fields.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return Email(**fields)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid email definition: {e}") from e

    def render_body(self, email: Email) -> None:
        """Render the email template into ``email.body`` when one is set.

        Raises:
            CompositionError: If the template cannot be rendered.
        """
        if not email.has_template:
            return
        try:
            email.body = self.renderer.render(email.template, email.template_params)
        except MailComposerError:
            raise
        except Exception as e:
            raise CompositionError(f"Error rendering template '{email.template}': {e}") from e

    def compose(self, email: Email) -> EmailMessage:
        """Build the EmailMessage for ``email``, attachments included.

        All attachment streams are closed before this returns, whether or
        not composition succeeds.

        Raises:
            CompositionError: If headers or attachments cannot be built.
        """
        try:
            msg = EmailMessage()
            if sender := _format_address(email.from_address, email.from_name):
                msg["From"] = sender
            if email.to:
                msg["To"] = ", ".join(email.to)
            if email.cc:
                msg["Cc"] = ", ".join(email.cc)
            if email.bcc:
                msg["Bcc"] = ", ".join(email.bcc)
            if reply_to := _format_address(email.reply_to, email.reply_to_name):
                msg["Reply-To"] = reply_to
            msg["Subject"] = email.subject
            msg["Message-ID"] = make_msgid()
            msg.set_content(email.body, subtype="html" if email.is_html else "plain", charset=email.charset)
            for header, value in email.headers.items():
                if value is None:
                    continue
                if header in msg:
                    msg.replace_header(header, str(value))
                else:
                    msg[header] = str(value)

            parts = self.normalizer.normalize_all(email.compute_attachments())
        except MailComposerError as e:
            raise CompositionError(f"Error composing email: {e}") from e
        except (ValueError, TypeError, OSError) as e:
            raise CompositionError(f"Error composing email: {e}") from e

        try:
            for part in parts:
                self._add_part(msg, part)
        except (ValueError, TypeError, OSError) as e:
            raise CompositionError(f"Error adding attachment: {e}") from e
        finally:
            for part in parts:
                part.close()
        return msg

    @staticmethod
    def _add_part(msg: EmailMessage, part: MimePart) -> None:
        content_type = part.type.split(";", 1)[0].strip()
        maintype, _, subtype = content_type.partition("/")
        if not subtype:
            maintype, subtype = "application", "octet-stream"

        cid = part.id
        if cid and not cid.startswith("<"):
            cid = f"<{cid}>"
        msg.add_attachment(
            part.read(),
            maintype=maintype,
            subtype=subtype,
            cte=part.encoding.value,
            disposition=part.disposition.value,
            filename=part.filename,
            cid=cid,
            params={"charset": part.charset} if part.charset else None,
        )
        if part.description:
            msg.get_payload()[-1]["Content-Description"] = part.description

    async def send(self, email: Email | str, **overrides: Any) -> MailResult:
        """Compose and send an email.

        Message composition, attachment file reads included, runs in a worker
        thread.

        Args:
            email: An Email model, or the name of a configured preset.
            **overrides: Email fields overriding the preset or model values.

        Returns:
            The MailResult of this attempt.

        Raises:
            ConfigurationError: If the preset is unknown or invalid.
            CompositionError: If the body template cannot be rendered.
        """
        preset = email if isinstance(email, str) else None
        email = self.resolve_email(email, **overrides)

        await self.listeners.notify("on_pre_render", email)
        self.render_body(email)

        if not await self.listeners.allow_send(email):
            self.logger.info("Sending of email '%s' cancelled by a listener", email.subject)
            self.metrics.inc_cancelled(preset)
            return MailResult.cancelled(email)

        try:
            message = await asyncio.to_thread(self.compose, email)
            await self.transport.send(message)
        except CompositionError as exc:
            return await self._failed(email, exc, preset)
        except Exception as exc:
            return await self._failed(email, TransportError.from_exception(exc), preset)

        self.logger.info("Email '%s' sent to %s", email.subject, ", ".join(email.to) or "-")
        self.metrics.inc_sent(preset)
        result = MailResult.sent(email)
        await self.listeners.notify("on_post_send", result)
        return result

    async def _failed(self, email: Email, exc: MailComposerError, preset: str | None) -> MailResult:
        self.logger.error("Failed to send email '%s': %s", email.subject, exc)
        self.metrics.inc_error(preset)
        result = MailResult.failed(email, exc)
        await self.listeners.notify("on_send_error", result)
        return result
