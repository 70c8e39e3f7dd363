from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from llmgrep.config import Config
from llmgrep.constants import (
    MAX_ATTEMPTS,
    REQUEST_TIMEOUT,
    RETRY_INITIAL_WAIT,
    RETRY_MAX_WAIT,
    RETRYABLE_STATUS_CODES,
)
from llmgrep.logging import get_logger

_logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = MAX_ATTEMPTS
    timeout: float = REQUEST_TIMEOUT
    initial_wait: float = RETRY_INITIAL_WAIT
    max_wait: float = RETRY_MAX_WAIT

    @classmethod
    def from_config(cls, config: Config) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            timeout=config.request_timeout,
            initial_wait=config.retry_initial_wait,
            max_wait=config.retry_max_wait,
        )


def _retryable_status(status: int) -> bool:
    return status in RETRYABLE_STATUS_CODES or status >= 500


def is_retryable(exc: BaseException) -> bool:
    from anthropic import APIConnectionError as AnthropicConnectionError
    from anthropic import APIStatusError as AnthropicStatusError
    from openai import APIConnectionError as OpenAIConnectionError
    from openai import APIStatusError as OpenAIStatusError

    if isinstance(exc, TimeoutError | httpx.TransportError | OpenAIConnectionError | AnthropicConnectionError):
        return True

    if isinstance(exc, httpx.HTTPStatusError):
        return _retryable_status(exc.response.status_code)

    if isinstance(exc, OpenAIStatusError | AnthropicStatusError):
        return _retryable_status(exc.status_code)

    return False


def _log_retry(retry_state) -> None:
    exc = retry_state.outcome.exception()
    _logger.warning(
        "Scoring call failed (attempt %d), retrying: %s",
        retry_state.attempt_number,
        str(exc) or type(exc).__name__,
    )


async def with_retry(fn: Callable[[], Awaitable[T]], policy: RetryPolicy) -> T:
    retrying = AsyncRetrying(
        retry=retry_if_exception(is_retryable),
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential_jitter(initial=policy.initial_wait, max=policy.max_wait, jitter=policy.initial_wait),
        reraise=True,
        before_sleep=_log_retry,
    )
    return await retrying(fn)
