"""Retry utilities for calls to external services."""

from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from decksmith.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0  # seconds
DEFAULT_MAX_DELAY = 30.0  # seconds


def always_retry(exc: BaseException) -> bool:
    return True


def format_exception(e: BaseException) -> str:
    """Format an exception for logging, including a chained cause if present."""
    msg = str(e).strip() or type(e).__name__

    if e.__cause__ is not None:
        cause_msg = str(e.__cause__).strip()
        if cause_msg:
            msg = f"{msg} (caused by: {cause_msg})"

    code = getattr(e, "code", None)
    if isinstance(code, int):
        msg = f"Error {code}: {msg}"

    return msg


async def with_retry(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    is_retryable: Callable[[BaseException], bool] = always_retry,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    operation_name: str = "operation",
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    **kwargs: Any,
) -> T:
    """
    Run an async function, retrying failures that `is_retryable` accepts.

    Waits `base_delay` seconds before the second attempt and doubles the wait
    for each attempt after that, capped at `max_delay`. Non-retryable
    failures are re-raised immediately.

    Args:
        func: Async function to execute
        *args: Positional arguments for the function
        max_attempts: Total number of attempts (first call included)
        is_retryable: Predicate deciding whether a failure is worth retrying
        base_delay: Wait before the first retry, in seconds
        max_delay: Upper bound on any single wait
        operation_name: Name for logging purposes
        sleep: Override for the async sleep used between attempts
        **kwargs: Keyword arguments for the function

    Returns:
        Result of the first successful call

    Raises:
        The last exception once attempts are exhausted or a failure is
        not retryable
    """
    max_attempts = max(1, max_attempts)

    def _should_retry(exc: BaseException) -> bool:
        # Cancellation and interpreter exits are never retried
        return isinstance(exc, Exception) and is_retryable(exc)

    retrying_kwargs: Dict[str, Any] = dict(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, min=0, max=max_delay),
        retry=retry_if_exception(_should_retry),
        reraise=True,
    )
    if sleep is not None:
        retrying_kwargs["sleep"] = sleep

    async for attempt in AsyncRetrying(**retrying_kwargs):
        with attempt:
            attempt_number = attempt.retry_state.attempt_number
            if attempt_number > 1:
                logger.info(f"Retrying {operation_name} (attempt {attempt_number}/{max_attempts})")
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if not _should_retry(e):
                    logger.error(
                        f"{operation_name} failed with non-retryable error "
                        f"(attempt {attempt_number}/{max_attempts}): {format_exception(e)}"
                    )
                else:
                    logger.warning(
                        f"{operation_name} failed (attempt {attempt_number}/{max_attempts}): "
                        f"{format_exception(e)}"
                    )
                raise

    raise RuntimeError(f"{operation_name} failed after {max_attempts} attempts")
