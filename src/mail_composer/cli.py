# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Command-line interface for the mail composer.

Usage:
    mail-composer --config mailer.ini send --preset welcome --to alice@example.com
    mail-composer send --to bob@example.com --subject Hi --body "Hello" \\
        --attach ./report.pdf --attach ./data.csv=totals.csv
    mail-composer --config mailer.ini preview --template invoice.html --param number=42

Exit codes of ``send``: 0 sent, 1 failed, 3 cancelled by a listener.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any

import click
from rich.console import Console

from .config_loader import MailerConfig, load_mailer_config
from .exceptions import MailComposerError
from .models import Email
from .service import MailService

console = Console()
err_console = Console(stderr=True)

EXIT_FAILED = 1
EXIT_CANCELLED = 3


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def _parse_params(values: tuple[str, ...]) -> dict[str, str]:
    params: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {item!r}", param_hint="--param")
        params[key] = value
    return params


def _parse_attachments(values: tuple[str, ...]) -> list[Any]:
    attachments: list[Any] = []
    for item in values:
        path, sep, name = item.partition("=")
        attachments.append((path, name) if sep and name else path)
    return attachments


def message_options(func):
    """Options shared by every command that builds an email."""
    options = [
        click.option("--preset", help="Email preset defined in the [emails] config section."),
        click.option("--from", "from_address", help="Sender address."),
        click.option("--to", multiple=True, help="Recipient address (repeatable)."),
        click.option("--cc", multiple=True, help="Carbon-copy address (repeatable)."),
        click.option("--bcc", multiple=True, help="Blind carbon-copy address (repeatable)."),
        click.option("--subject", help="Subject line."),
        click.option("--body", help="Literal body."),
        click.option("--html/--text", "is_html", default=None, help="Body is HTML or plain text."),
        click.option("--template", help="Template rendered into the body."),
        click.option("--param", "params", multiple=True, help="Template variable as key=value (repeatable)."),
        click.option("--attach", "attachments", multiple=True, help="Attachment path, optionally path=name."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_email(service: MailService, preset: str | None, **fields: Any) -> Email:
    params = _parse_params(fields.pop("params"))
    attachments = _parse_attachments(fields.pop("attachments"))
    overrides = {key: (list(value) if isinstance(value, tuple) else value) for key, value in fields.items()}
    overrides = {key: value for key, value in overrides.items() if value not in (None, [])}

    email = service.builder.build(preset, **overrides)
    if params:
        email.template_params.update(params)
    for attachment in attachments:
        if isinstance(attachment, tuple):
            email.add_attachment(*attachment)
        else:
            email.add_attachment(attachment)
    return email


@click.group()
@click.option("--config", "config_path", envvar="MAILER_CONFIG", type=click.Path(dir_okay=False),
              help="Path of the INI configuration file.")
@click.option("--log-level", default=None, help="Logging level (overrides configuration).")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, log_level: str | None) -> None:
    """Compose and send emails with templated bodies and attachments."""
    try:
        config = load_mailer_config(config_path)
    except (FileNotFoundError, MailComposerError) as e:
        print_error(str(e))
        ctx.exit(EXIT_FAILED)

    level = (log_level or config.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    ctx.obj = config


@main.command()
@message_options
@click.pass_obj
def send(config: MailerConfig, preset: str | None, **fields: Any) -> None:
    """Send an email through the configured transport."""
    try:
        service = MailService.from_config(config)
        email = _build_email(service, preset, **fields)
        result = asyncio.run(service.send(email))
    except MailComposerError as e:
        print_error(str(e))
        sys.exit(EXIT_FAILED)

    if result.is_valid:
        print_success(f"Email sent to {', '.join(email.to) or '-'}")
        return
    if result.is_cancelled:
        err_console.print("[yellow]Email sending was cancelled[/yellow]")
        sys.exit(EXIT_CANCELLED)
    print_error(str(result.exception))
    sys.exit(EXIT_FAILED)


@main.command()
@message_options
@click.pass_obj
def preview(config: MailerConfig, preset: str | None, **fields: Any) -> None:
    """Print the composed message without sending it."""
    try:
        service = MailService.from_config(config)
        email = _build_email(service, preset, **fields)
        service.render_body(email)
        message = service.compose(email)
    except MailComposerError as e:
        print_error(str(e))
        sys.exit(EXIT_FAILED)

    console.print(message.as_string(), markup=False, highlight=False, soft_wrap=True)


if __name__ == "__main__":
    main()
