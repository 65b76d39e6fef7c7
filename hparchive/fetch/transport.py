"""Transport strategies shared by the HTTP clients: retry decision and logging."""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    stop_after_attempt,
)
from tenacity.wait import wait_base

logger = logging.getLogger(__name__)

# Failures to reach the server at all
CONNECT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


def is_retryable_status(status: int) -> bool:
    """Server errors and request timeouts are worth another attempt."""
    return status >= 500 or status == 408


def is_retryable_download_status(status: int) -> bool:
    """The image host answers 302 for renditions that are not published yet."""
    return status == 302 or is_retryable_status(status)


@dataclass(frozen=True)
class RetryPolicy:
    """Decides whether a failed attempt should be retried."""

    max_attempts: int = 3
    status_decider: Callable[[int], bool] = is_retryable_status

    def __call__(
        self,
        attempt: int,
        status: Optional[int],
        error: Optional[BaseException],
    ) -> bool:
        """Pure decision for attempt number "attempt" (1-based)."""
        if attempt >= self.max_attempts:
            return False
        if isinstance(error, CONNECT_ERRORS):
            return True
        if status is not None and self.status_decider(status):
            return True
        return False

    def should_retry(self, retry_state: RetryCallState) -> bool:
        """Adapter for tenacity's "retry" argument."""
        outcome = retry_state.outcome
        if outcome is None or not outcome.failed:
            return False
        error = outcome.exception()
        status = None
        if isinstance(error, httpx.HTTPStatusError):
            status = error.response.status_code
        return self(retry_state.attempt_number, status, error)


async def log_request(request: httpx.Request) -> None:
    """Log every outgoing attempt."""
    logger.debug(f"> {request.method} {request.url}")


async def log_response(response: httpx.Response) -> None:
    """Log every response summary."""
    request = response.request
    length = response.headers.get("content-length", "-")
    logger.debug(
        f"< {response.status_code} {response.reason_phrase} "
        f"{request.method} {request.url} ({length} bytes)"
    )


def logging_hooks() -> dict[str, list]:
    """Event hooks for httpx clients."""
    return {"request": [log_request], "response": [log_response]}


async def send_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    policy: RetryPolicy,
    wait: wait_base,
    **kwargs: Any,
) -> httpx.Response:
    """Send a request, raising for non-2xx statuses, retrying as "policy" decides."""
    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait,
        retry=policy.should_retry,
        before_sleep=before_sleep_log(logger, logging.DEBUG),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            response = await client.request(method, url, **kwargs)
            response.raise_for_status()
    return response
