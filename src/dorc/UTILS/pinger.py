"""
Polls an HTTP endpoint until it responds or a deadline passes.
"""
import logging
import time

import httpx
from tenacity import Retrying, retry_if_result, stop_before_delay, wait_exponential

logger = logging.getLogger(__name__)

# lower bound on a request timeout once the deadline is nearly spent
MIN_REQUEST_TIMEOUT_S = 0.01


def _responds(url: str, request_timeout_s: float) -> bool:
    try:
        with httpx.Client(timeout=request_timeout_s, follow_redirects=False) as client:
            resp = client.get(url)
    except httpx.HTTPError as e:
        logger.debug("No response from %s: %s", url, e)
        return False
    # any answer short of a server error means the service is listening
    return resp.status_code < 500


def ping(url: str, timeout_ms: int) -> bool:
    """
    Polls ``url`` with exponential backoff (capped at one second) until it
    responds or ``timeout_ms`` elapses.

    No request or backoff wait runs past the deadline: each request's own
    timeout is clamped to the time left, and no retry is started whose wait
    would end after it.

    Returns True if the endpoint responded in time.
    """
    timeout_s = max(timeout_ms, 0) / 1000.0
    deadline = time.monotonic() + timeout_s

    def attempt() -> bool:
        remaining = deadline - time.monotonic()
        return _responds(url, min(1.0, max(remaining, MIN_REQUEST_TIMEOUT_S)))

    retrying = Retrying(
        stop=stop_before_delay(timeout_s),
        wait=wait_exponential(multiplier=0.1, max=1.0),
        retry=retry_if_result(lambda ok: not ok),
        retry_error_callback=lambda state: False,
    )
    return retrying(attempt)
