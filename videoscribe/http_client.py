"""Outbound HTTP calls with explicit timeouts and transient-error retries."""

import logging
from typing import Any, Dict, Optional, Tuple, Type

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import RetryConfig

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (requests.ConnectionError, requests.Timeout)

# A read timeout on a POST may mean the server already acted on it, so
# non-idempotent requests are only retried when the connection never opened.
# ConnectTimeout is a subclass of ConnectionError.
CONNECT_ERRORS = (requests.ConnectionError,)

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})


def send(
    method: str,
    url: str,
    *,
    retry: RetryConfig,
    timeout: float,
    **kwargs: Any,
) -> requests.Response:
    """Send a request, retrying transport failures.

    Idempotent methods are retried on connection failures and timeouts; other
    methods only on connection failures.  HTTP error statuses are returned to
    the caller untouched.  Once attempts run out the last ``requests``
    exception is re-raised.
    """
    retrying = Retrying(
        stop=stop_after_attempt(max(retry.attempts, 1)),
        wait=wait_exponential(multiplier=retry.backoff_seconds),
        retry=retry_if_exception_type(retryable_errors(method)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    return retrying(requests.request, method, url, timeout=timeout, **kwargs)


def retryable_errors(method: str) -> Tuple[Type[Exception], ...]:
    if method.upper() in IDEMPOTENT_METHODS:
        return TRANSIENT_ERRORS
    return CONNECT_ERRORS


def json_body(response: requests.Response) -> Optional[Dict[str, Any]]:
    """Decode a JSON object body, or return ``None`` if it is not one."""
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None
