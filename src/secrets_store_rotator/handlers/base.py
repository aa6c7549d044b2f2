"""Base handler class with logging and outcome reporting."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from .. import metrics
from ..constants import CONTROLLER_NAME
from ..logging import log_resource_event
from ..utils.errors import sanitize_error_message, sanitize_exception
from ..utils.events import emit_event

EventEmitter = Callable[[Any, str, str, str], None]


@dataclass
class PendingEvent:
    """An event the pipeline decided to emit against the pod."""

    type: str
    reason: str
    message: str


@dataclass
class ReconcileOutcome:
    """What one reconcile attempt did, consumed by the reporting step."""

    key: str
    provider: str = ""
    stage: str = "start"
    reason: str = ""
    error: Exception | None = None
    requires_update: bool = False
    skipped: bool = False
    duration: float = 0.0
    pod: Any = None
    events: list[PendingEvent] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.error is not None


class BaseHandler:
    """Base class providing structured logs and outcome reporting."""

    def __init__(self, kind: str, emit: EventEmitter | None = None):
        """Initialize base handler.

        Args:
            kind: The Kubernetes resource kind being reconciled
            emit: Event emitter, posts through kopf by default
        """
        self.kind = kind
        self.emit = emit or emit_event
        self.logger = logging.getLogger(__name__)

    def _log(self, level: int, key: str, message: str, event: str, reason: str, **kwargs: Any) -> None:
        namespace, _, name = key.rpartition("/")
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind,
            resource_name=name,
            namespace=namespace,
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def log_info(self, key: str, message: str, event: str = "info", reason: str = "Info", **kwargs: Any) -> None:
        """Log an info-level structured log message for a queue key."""
        self._log(logging.INFO, key, message, event, reason, **kwargs)

    def log_debug(self, key: str, message: str, event: str = "debug", reason: str = "Debug", **kwargs: Any) -> None:
        """Log a debug-level structured log message for a queue key."""
        self._log(logging.DEBUG, key, message, event, reason, **kwargs)

    def log_error(
        self,
        key: str,
        message: str,
        error: BaseException | None = None,
        event: str = "error",
        reason: str = "Error",
        **kwargs: Any,
    ) -> None:
        """Log an error-level structured log message.

        Args:
            key: Queue key of the resource
            message: Log message
            error: Optional exception to include sanitized error details
            event: Event type (default: "error")
            reason: Reason for the event (default: "Error")
            **kwargs: Additional fields to include in the log
        """
        if error is not None:
            kwargs["error"] = sanitize_exception(error)
            kwargs["error_type"] = type(error).__name__
        self._log(logging.ERROR, key, message, event, reason, **kwargs)

    def report(self, outcome: ReconcileOutcome) -> None:
        """Emit the events, metrics and log lines for a reconcile outcome."""
        if outcome.pod is not None:
            for pending in outcome.events:
                try:
                    self.emit(outcome.pod, pending.type, pending.reason, sanitize_error_message(pending.message))
                except Exception as e:
                    self.log_error(outcome.key, "Failed to emit event", error=e, reason=pending.reason)

        rotated = str(outcome.requires_update).lower()
        if outcome.failed:
            metrics.rotation_reconcile_error_total.labels(
                provider=outcome.provider, error_type=outcome.reason, rotated=rotated
            ).inc()
            self.log_error(
                outcome.key,
                "Failed to reconcile SecretProviderClassPodStatus",
                error=outcome.error,
                event="reconcile_failed",
                reason=outcome.reason,
                stage=outcome.stage,
                provider=outcome.provider,
            )
            return

        metrics.rotation_reconcile_total.labels(provider=outcome.provider, rotated=rotated).inc()
        metrics.rotation_reconcile_duration_seconds.observe(outcome.duration)
        self.log_debug(
            outcome.key,
            "Reconcile completed",
            event="reconcile_completed",
            reason="Skipped" if outcome.skipped else "Completed",
            stage=outcome.stage,
            provider=outcome.provider,
            rotated=outcome.requires_update,
            duration=round(outcome.duration, 4),
        )
