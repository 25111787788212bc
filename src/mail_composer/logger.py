# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Logging utilities for the mail composer.

This module provides a centralized logging helper. The actual logging setup
(level, handlers, format) is configured via ``logging.basicConfig()`` in the
CLI entry point, so library code never installs handlers of its own.

Example:
    Typical usage in a module::

        from mail_composer.logger import get_logger

        logger = get_logger("Attachments")
        logger.debug("Attachment normalized")
"""

import logging


def get_logger(name: str = "MailComposer") -> logging.Logger:
    """Retrieve a logger instance.

    Args:
        name: The logger name. Defaults to "MailComposer".

    Returns:
        A ``logging.Logger`` instance bound to the given name.
    """
    return logging.getLogger(name)
