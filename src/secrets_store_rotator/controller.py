"""Rotation controller: periodic scheduler plus queue workers."""

from __future__ import annotations

import contextvars
import logging
import threading
from typing import Any

from . import metrics
from .constants import (
    MAX_NUM_OF_REQUEUES,
    REASON_FAILED_TO_ROTATE,
    REASON_POD_NOT_FOUND,
    REASON_SPC_POD_STATUS_NOT_FOUND,
    REQUEUE_DELAY_SECONDS,
)
from .handlers.base import ReconcileOutcome
from .handlers.rotation import RotationHandler
from .policy import Action, decide
from .utils.errors import is_not_found, sanitize_exception
from .workqueue import RateLimitingQueue

logger = logging.getLogger(__name__)

# Failures that mean the pod status or its pod is gone. These only get a
# limited number of retries because a deleted pod's status will not be listed
# again by the scheduler.
NOT_FOUND_REASONS = {REASON_SPC_POD_STATUS_NOT_FOUND, REASON_POD_NOT_FOUND}


class RotationController:
    """Discovers pod statuses on this node and feeds them to the rotation handler."""

    def __init__(
        self,
        store: Any,
        handler: RotationHandler,
        poll_interval: float,
        workers: int = 1,
        queue: RateLimitingQueue | None = None,
        max_requeues: int = MAX_NUM_OF_REQUEUES,
        requeue_delay: float = REQUEUE_DELAY_SECONDS,
    ) -> None:
        self.store = store
        self.handler = handler
        self.poll_interval = poll_interval
        self.workers = workers
        self.queue = queue if queue is not None else RateLimitingQueue(name="rotation")
        self.max_requeues = max_requeues
        self.requeue_delay = requeue_delay
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []

    def start(self) -> None:
        """Start the scheduler and worker threads."""
        logger.info(
            f"Starting rotation controller with poll interval {self.poll_interval}s "
            f"and {self.workers} worker(s)"
        )
        targets = [(self.run_worker, f"rotation-worker-{i}") for i in range(self.workers)]
        targets.append((self.run_scheduler, "rotation-scheduler"))
        for target, name in targets:
            # Each thread runs in a copy of the caller's context so kopf.event
            # can reach the operator's event queue.
            context = contextvars.copy_context()
            thread = threading.Thread(target=context.run, args=(target,), name=name, daemon=True)
            thread.start()
            self._threads.append(thread)

    @property
    def running(self) -> bool:
        return bool(self._threads) and not self._stop.is_set()

    def stop(self, timeout: float | None = None) -> None:
        """Stop scheduling, let in-flight reconciles finish and join the threads."""
        logger.info("Stopping rotation controller")
        self._stop.set()
        self.queue.shut_down()
        for thread in self._threads:
            thread.join(timeout)
        self._threads.clear()

    def run_scheduler(self) -> None:
        """Enqueue every pod status once per poll interval until stopped."""
        while not self._stop.wait(self.poll_interval):
            self.enqueue_pod_statuses()

    def enqueue_pod_statuses(self) -> int:
        """List this node's pod statuses and enqueue their keys.

        Returns:
            Number of keys handed to the queue
        """
        try:
            pod_statuses = self.store.list_secret_provider_class_pod_statuses()
        except Exception as e:
            logger.error(f"Failed to list secret provider class pod status for node: {sanitize_exception(e)}")
            return 0
        for pod_status in pod_statuses:
            self.queue.add(pod_status.key)
        return len(pod_statuses)

    def run_worker(self) -> None:
        """Process queue items until the queue shuts down."""
        while self.process_next_item():
            pass

    def process_next_item(self) -> bool:
        """Reconcile the next key in the queue.

        Returns:
            False once the queue has been shut down, True otherwise
        """
        key, shutdown = self.queue.get()
        if shutdown:
            return False
        try:
            outcome = self._reconcile_key(key)
            self.handle_outcome(key, outcome)
        except Exception as e:
            # Keep the worker alive and retry the key on the fixed delay.
            self.handler.log_error(
                key, "Unexpected error while processing queue item", error=e, reason=REASON_FAILED_TO_ROTATE
            )
            metrics.queue_requeues_total.labels(policy="delayed").inc()
            self.queue.add_after(key, self.requeue_delay)
        finally:
            self.queue.done(key)
        return True

    def _reconcile_key(self, key: Any) -> ReconcileOutcome:
        try:
            pod_status = self.store.get_secret_provider_class_pod_status(key)
        except Exception as e:
            if is_not_found(e):
                self.handler.log_debug(
                    key,
                    "Spc pod status not found",
                    reason=REASON_SPC_POD_STATUS_NOT_FOUND,
                    error=sanitize_exception(e),
                )
                return ReconcileOutcome(key=key, stage="get_pod_status", reason=REASON_SPC_POD_STATUS_NOT_FOUND, error=e)
            outcome = ReconcileOutcome(key=key, stage="get_pod_status", reason=REASON_FAILED_TO_ROTATE, error=e)
            self.handler.report(outcome)
            return outcome

        self.handler.log_debug(key, "Reconciler started", event="reconcile_started")
        outcome = self.handler.reconcile(pod_status)
        self.handler.report(outcome)
        return outcome

    def handle_outcome(self, key: Any, outcome: ReconcileOutcome) -> None:
        """Apply the retry policy to a reconcile outcome."""
        decision = decide(
            failed=outcome.failed,
            not_found=outcome.reason in NOT_FOUND_REASONS,
            num_requeues=self.queue.num_requeues(key),
            max_requeues=self.max_requeues,
            requeue_delay=self.requeue_delay,
        )
        if decision.action == Action.FORGET:
            if decision.budget_exhausted:
                logger.info(f"Retry budget exceeded, dropping {key} from queue")
            self.queue.forget(key)
        elif decision.action == Action.RATE_LIMIT:
            metrics.queue_requeues_total.labels(policy="rate_limited").inc()
            self.queue.add_rate_limited(key)
        else:
            metrics.queue_requeues_total.labels(policy="delayed").inc()
            self.queue.add_after(key, decision.delay)
