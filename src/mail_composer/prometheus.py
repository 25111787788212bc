# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Prometheus metrics for send outcomes.

Metrics exposed, all labelled by ``preset`` ("none" for ad-hoc emails):
    - ``mailer_sent_total``: emails handed to the transport.
    - ``mailer_errors_total``: send attempts that failed.
    - ``mailer_cancelled_total``: send attempts vetoed by a listener.
"""

from prometheus_client import CollectorRegistry, Counter, generate_latest


class MailMetrics:
    """Prometheus counters for MailService outcomes.

    Attributes:
        registry: The CollectorRegistry holding the metrics.
        sent: Counter of successful sends.
        errors: Counter of failed sends.
        cancelled: Counter of cancelled sends.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()
        self.sent = Counter("mailer_sent_total", "Total sent emails", ["preset"], registry=self.registry)
        self.errors = Counter("mailer_errors_total", "Total send errors", ["preset"], registry=self.registry)
        self.cancelled = Counter(
            "mailer_cancelled_total", "Total cancelled sends", ["preset"], registry=self.registry
        )

    def inc_sent(self, preset: str | None) -> None:
        self.sent.labels(preset=preset or "none").inc()

    def inc_error(self, preset: str | None) -> None:
        self.errors.labels(preset=preset or "none").inc()

    def inc_cancelled(self, preset: str | None) -> None:
        self.cancelled.labels(preset=preset or "none").inc()

    def generate_latest(self) -> bytes:
        """Return the metrics in Prometheus text exposition format."""
        return generate_latest(self.registry)
