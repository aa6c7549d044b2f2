"""Rate limiting utilities for Kubernetes API calls."""

from __future__ import annotations

import os
import threading
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from .. import metrics

_F = TypeVar("_F", bound=Callable[..., Any])

# Rate limit configuration
_K8S_RATE_LIMIT_PER_SECOND = float(os.getenv("K8S_RATE_LIMIT_PER_SECOND", "20.0"))
_RATE_LIMIT_RETRY_DELAY_SECONDS = 1.0

# Track last call time
_k8s_last_call_time: float = 0.0
_k8s_lock = threading.Lock()


def rate_limit_k8s(func: _F) -> _F:
    """Decorator to rate limit Kubernetes API calls.

    Spaces calls at least ``1 / K8S_RATE_LIMIT_PER_SECOND`` apart across all
    threads to prevent overwhelming the Kubernetes API server.
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        global _k8s_last_call_time
        with _k8s_lock:
            min_interval = 1.0 / _K8S_RATE_LIMIT_PER_SECOND
            time_since_last_call = time.time() - _k8s_last_call_time
            if time_since_last_call < min_interval:
                time.sleep(min_interval - time_since_last_call)
            _k8s_last_call_time = time.time()
        return func(*args, **kwargs)

    return wrapper  # type: ignore


def is_rate_limit_error(e: BaseException) -> bool:
    """Check if an API exception is a rate limit error.

    Kubernetes API rate limit errors typically return 429 or a 503 mentioning
    rate limiting.
    """
    status = getattr(e, "status", None)
    return status == 429 or (status == 503 and "rate limit" in str(e).lower())


def call_with_rate_limit_retry(api_type: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call a rate limited API function, retrying once after a rate limit error."""
    try:
        return rate_limit_k8s(func)(*args, **kwargs)
    except Exception as e:
        if not is_rate_limit_error(e):
            raise
        metrics.rate_limit_hits_total.labels(api_type=api_type).inc()
        time.sleep(_RATE_LIMIT_RETRY_DELAY_SECONDS)
        return rate_limit_k8s(func)(*args, **kwargs)
