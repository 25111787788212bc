# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pydantic model describing an email to be composed.

The Email model holds everything needed to compose a message: addressing,
subject, either a literal body or a template reference, custom headers and
attachment inputs. Attachment inputs are kept raw and only normalized when
the message is composed. Paths, prebuilt bytes and descriptors with bytes
content can be sent any number of times; stream inputs (file objects,
``BytesIO``, parts wrapping a stream) are read and closed by the first send,
and a later send of the same Email fails with a CompositionError.

Example:
    Building an email with a templated body::

        email = Email(
            from_address="noreply@example.com",
            to="alice@example.com, bob@example.com",
            subject="Monthly report",
            template="report.html",
            template_params={"month": "May"},
        )
        email.add_attachment("/srv/reports/may.pdf", "report-may.pdf")
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _split_addresses(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple, set)):
        return [str(addr).strip() for addr in value if addr and str(addr).strip()]
    return [str(value)]


class Email(BaseModel):
    """An email waiting to be composed and sent.

    Attributes:
        from_address: Sender address.
        from_name: Optional sender display name.
        reply_to: Optional Reply-To address.
        reply_to_name: Optional Reply-To display name.
        to: Recipient addresses.
        cc: Carbon-copy addresses.
        bcc: Blind carbon-copy addresses.
        subject: Subject line.
        body: Literal body, used when no template is set.
        template: Template name rendered into the body.
        template_params: Variables passed to the template.
        is_html: Whether the body, literal or rendered, is HTML.
        charset: Body charset.
        headers: Extra headers; None values are skipped.
        attachments: Attachment inputs or ``(input, name)`` pairs.
        attachments_dir: Directory whose files are all attached.
        attachments_dir_recursive: Whether to descend into subdirectories
            of ``attachments_dir``.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    from_address: Annotated[str | None, Field(default=None, description="Sender address")]
    from_name: Annotated[str | None, Field(default=None, description="Sender display name")]
    reply_to: Annotated[str | None, Field(default=None, description="Reply-To address")]
    reply_to_name: Annotated[str | None, Field(default=None, description="Reply-To display name")]
    to: Annotated[list[str], Field(default_factory=list, description="Recipients")]
    cc: Annotated[list[str], Field(default_factory=list, description="Carbon-copy recipients")]
    bcc: Annotated[list[str], Field(default_factory=list, description="Blind carbon-copy recipients")]
    subject: Annotated[str, Field(default="", description="Subject line")]
    body: Annotated[str, Field(default="", description="Literal message body")]
    template: Annotated[str | None, Field(default=None, description="Body template name")]
    template_params: Annotated[dict[str, Any], Field(default_factory=dict)]
    is_html: Annotated[bool, Field(default=False, description="Whether the body is HTML")]
    charset: Annotated[str, Field(default="utf-8", description="Body charset")]
    headers: Annotated[dict[str, Any], Field(default_factory=dict)]
    attachments: Annotated[list[Any], Field(default_factory=list)]
    attachments_dir: Annotated[str | None, Field(default=None)]
    attachments_dir_recursive: Annotated[bool, Field(default=False)]

    @field_validator("to", "cc", "bcc", mode="before")
    @classmethod
    def split_address_list(cls, value: Any) -> list[str]:
        """Accept comma-separated strings as well as sequences."""
        return _split_addresses(value)

    @property
    def has_template(self) -> bool:
        return bool(self.template)

    def add_attachment(self, attachment: Any, name: str | None = None) -> Email:
        """Queue an attachment input, optionally under a display name.

        A stream input is consumed and closed by the first send.
        """
        self.attachments.append((attachment, name) if name is not None else attachment)
        return self

    def compute_attachments(self) -> list[Any]:
        """Return explicit attachments followed by files from attachments_dir."""
        attachments = list(self.attachments)
        if not self.attachments_dir:
            return attachments

        directory = Path(self.attachments_dir)
        if not directory.is_dir():
            return attachments
        pattern = "**/*" if self.attachments_dir_recursive else "*"
        attachments.extend(str(path) for path in sorted(directory.glob(pattern)) if path.is_file())
        return attachments
