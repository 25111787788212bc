# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration loader for transports, view rendering and email presets.

Settings are read from an INI file and may be overridden by environment
variables prefixed with ``MAILER_``.

Example:
    Configuration file format (mailer.ini)::

        [mailer]
        transport = smtp            ; smtp | file | memory
        file_path = /var/mail-composer/outbox
        log_level = INFO

        [smtp]
        host = smtp.example.com
        port = 587
        user = mailer@example.com
        password = secret
        use_tls = true
        timeout = 30

        [view]
        template_path_stack = templates, shared/templates
        template_map.welcome = /srv/templates/welcome.html

        [emails]
        email.welcome.from_address = noreply@example.com
        email.welcome.subject = Welcome aboard
        email.welcome.template = welcome
        email.welcome.template_params = {"product": "Acme"}
        email.reminder.extends = welcome
        email.reminder.subject = Don't forget

    Environment overrides::

        MAILER_CONFIG          path of the INI file
        MAILER_TRANSPORT       transport name
        MAILER_FILE_PATH       output directory of the file transport
        MAILER_LOG_LEVEL       logging level used by the CLI
        MAILER_SMTP_HOST       SMTP host
        MAILER_SMTP_PORT       SMTP port
        MAILER_SMTP_USER       SMTP username
        MAILER_SMTP_PASSWORD   SMTP password
        MAILER_SMTP_USE_TLS    force TLS on or off

    Loading::

        config = load_mailer_config("/etc/mail-composer/mailer.ini")
        config.smtp.host
        config.emails["welcome"]["subject"]
"""

from __future__ import annotations

import configparser
import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .exceptions import ConfigurationError
from .logger import get_logger

logger = get_logger("MailerConfigLoader")

ENV_PREFIX = "MAILER_"
TRANSPORTS = ("smtp", "file", "memory")

_JSON_FIELDS = {"template_params", "headers"}
_BOOL_FIELDS = {"is_html", "attachments_dir_recursive"}
_LIST_FIELDS = {"attachments"}
_PRESET_FIELDS = {
    "extends",
    "from_address",
    "from_name",
    "reply_to",
    "reply_to_name",
    "to",
    "cc",
    "bcc",
    "subject",
    "body",
    "template",
    "charset",
    "attachments_dir",
} | _JSON_FIELDS | _BOOL_FIELDS | _LIST_FIELDS

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: str, key: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean for {key}: {value!r}")


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class SmtpConfig:
    """SMTP transport settings.

    Attributes:
        host: SMTP server hostname.
        port: SMTP server port.
        user: Username for authentication, or None for no auth.
        password: Password for authentication.
        use_tls: Force TLS on or off. None means TLS only on port 465.
        timeout: Timeout in seconds for connecting and sending.
    """

    host: str = "localhost"
    port: int = 25
    user: str | None = None
    password: str | None = None
    use_tls: bool | None = None
    timeout: float = 30.0


@dataclass
class ViewConfig:
    """Template lookup settings for the default view renderer.

    Attributes:
        template_map: Template name to file path.
        template_path_stack: Directories searched for template names.
    """

    template_map: dict[str, str] = field(default_factory=dict)
    template_path_stack: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.template_map and not self.template_path_stack


@dataclass
class MailerConfig:
    """Complete mail composer configuration.

    Attributes:
        transport: Transport name (smtp, file, memory).
        file_path: Output directory for the file transport.
        log_level: Logging level applied by the CLI.
        smtp: SMTP transport settings.
        view: Template lookup settings.
        emails: Email presets by name, as raw field mappings.
    """

    transport: str = "smtp"
    file_path: str | None = None
    log_level: str = "INFO"
    smtp: SmtpConfig = field(default_factory=SmtpConfig)
    view: ViewConfig = field(default_factory=ViewConfig)
    emails: dict[str, dict[str, Any]] = field(default_factory=dict)


class MailerConfigLoader:
    """Parser for INI-based mail composer configuration files.

    Attributes:
        config_path: Filesystem path to the configuration file.
        config: ConfigParser instance holding the parsed configuration.
    """

    def __init__(self, config_path: str | os.PathLike[str]):
        self.config_path = str(config_path)
        self.config = configparser.ConfigParser(inline_comment_prefixes=(";",))
        # Keep template and preset names case-sensitive
        self.config.optionxform = str  # type: ignore[assignment,method-assign]

    def load_config(self) -> None:
        """Read and parse the configuration file.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            ConfigurationError: If the file is not valid INI.
        """
        if not Path(self.config_path).exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")
        try:
            self.config.read(self.config_path)
        except configparser.Error as e:
            raise ConfigurationError(f"Invalid config file {self.config_path}: {e}") from e

    def _get(self, section: str, key: str) -> str | None:
        value = self.config.get(section, key, fallback=None)
        if value is None:
            return None
        value = value.strip()
        return value or None

    def parse_mailer(self, config: MailerConfig) -> None:
        """Apply the [mailer] section to ``config``."""
        if transport := self._get("mailer", "transport"):
            config.transport = transport.lower()
        if file_path := self._get("mailer", "file_path"):
            config.file_path = file_path
        if log_level := self._get("mailer", "log_level"):
            config.log_level = log_level.upper()

    def parse_smtp(self) -> SmtpConfig:
        """Parse the [smtp] section, using defaults for missing values."""
        smtp = SmtpConfig()
        if not self.config.has_section("smtp"):
            return smtp

        smtp.host = self._get("smtp", "host") or smtp.host
        smtp.user = self._get("smtp", "user")
        smtp.password = self._get("smtp", "password")
        try:
            if port := self._get("smtp", "port"):
                smtp.port = int(port)
            if timeout := self._get("smtp", "timeout"):
                smtp.timeout = float(timeout)
        except ValueError as e:
            raise ConfigurationError(f"Invalid number in [smtp] section: {e}") from e
        if use_tls := self._get("smtp", "use_tls"):
            smtp.use_tls = _parse_bool(use_tls, "smtp.use_tls")
        return smtp

    def parse_view(self) -> ViewConfig:
        """Parse the [view] section.

        ``template_path_stack`` is a comma-separated list of directories;
        each ``template_map.<name>`` key maps a template name to a file.
        """
        view = ViewConfig()
        if not self.config.has_section("view"):
            return view

        for key, value in self.config.items("view"):
            value = value.strip()
            if key == "template_path_stack":
                view.template_path_stack = _split_list(value)
            elif key.startswith("template_map."):
                view.template_map[key.split(".", 1)[1]] = value
            else:
                logger.warning("Ignoring unknown key in [view] section: %s", key)
        return view

    def parse_presets(self) -> dict[str, dict[str, Any]]:
        """Parse email presets from the [emails] section.

        Expected format::

            [emails]
            email.name.field = value

        Returns:
            Mapping of preset name to its field values.

        Raises:
            ConfigurationError: On malformed JSON or boolean values.
        """
        if not self.config.has_section("emails"):
            logger.info("No [emails] section found in config file")
            return {}

        presets: dict[str, dict[str, Any]] = {}
        for key, value in self.config.items("emails"):
            parts = key.split(".", 2)
            if len(parts) != 3 or parts[0] != "email":
                logger.warning("Ignoring invalid key in [emails] section: %s", key)
                continue

            _, preset_name, field_name = parts
            if field_name not in _PRESET_FIELDS:
                logger.warning("Unknown email preset field: %s (in %s)", field_name, key)
                continue

            preset = presets.setdefault(preset_name, {})
            value = value.strip()
            if field_name in _JSON_FIELDS:
                try:
                    preset[field_name] = json.loads(value) if value else {}
                except json.JSONDecodeError as e:
                    raise ConfigurationError(f"Invalid JSON in {key}: {e}") from e
            elif field_name in _BOOL_FIELDS:
                preset[field_name] = _parse_bool(value, key)
            elif field_name in _LIST_FIELDS:
                preset[field_name] = _split_list(value)
            else:
                preset[field_name] = value

        logger.info("Parsed %d email presets from config", len(presets))
        return presets


def apply_environment(config: MailerConfig, environ: Mapping[str, str]) -> MailerConfig:
    """Override ``config`` with ``MAILER_*`` environment variables."""

    def env(name: str) -> str | None:
        value = environ.get(ENV_PREFIX + name)
        return value.strip() if value and value.strip() else None

    if transport := env("TRANSPORT"):
        config.transport = transport.lower()
    if file_path := env("FILE_PATH"):
        config.file_path = file_path
    if log_level := env("LOG_LEVEL"):
        config.log_level = log_level.upper()
    if host := env("SMTP_HOST"):
        config.smtp.host = host
    if port := env("SMTP_PORT"):
        try:
            config.smtp.port = int(port)
        except ValueError as e:
            raise ConfigurationError(f"Invalid {ENV_PREFIX}SMTP_PORT: {port!r}") from e
    if user := env("SMTP_USER"):
        config.smtp.user = user
    if password := env("SMTP_PASSWORD"):
        config.smtp.password = password
    if use_tls := env("SMTP_USE_TLS"):
        config.smtp.use_tls = _parse_bool(use_tls, f"{ENV_PREFIX}SMTP_USE_TLS")
    return config


def load_mailer_config(
    config_path: str | os.PathLike[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> MailerConfig:
    """Load the mail composer configuration.

    Args:
        config_path: INI file to read. Defaults to ``MAILER_CONFIG``; when
            neither is set only defaults and environment overrides apply.
        environ: Environment mapping, ``os.environ`` by default.

    Returns:
        The resolved MailerConfig.

    Raises:
        FileNotFoundError: If an explicit config file does not exist.
        ConfigurationError: If a value is invalid.
    """
    environ = os.environ if environ is None else environ
    config = MailerConfig()

    path = config_path or environ.get(ENV_PREFIX + "CONFIG")
    if path:
        loader = MailerConfigLoader(path)
        loader.load_config()
        loader.parse_mailer(config)
        config.smtp = loader.parse_smtp()
        config.view = loader.parse_view()
        config.emails = loader.parse_presets()

    apply_environment(config, environ)
    if config.transport not in TRANSPORTS:
        raise ConfigurationError(
            f"Unknown transport {config.transport!r}, expected one of: {', '.join(TRANSPORTS)}"
        )
    return config
