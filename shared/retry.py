"""
Retry mechanism for resilient operations.
"""

import asyncio
import functools
import random
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

from shared.logging import get_logger


T = TypeVar("T")

BACKOFF_STRATEGIES = ("exponential", "linear", "fixed")


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(self,
                 max_attempts: int = 3,
                 base_delay: float = 1.0,
                 max_delay: float = 60.0,
                 exponential_base: float = 2.0,
                 jitter: bool = False,
                 backoff_strategy: str = "exponential",
                 attempt_timeout: Optional[float] = None):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if backoff_strategy not in BACKOFF_STRATEGIES:
            raise ValueError(f"Unknown backoff strategy: {backoff_strategy}")
        if attempt_timeout is not None and attempt_timeout <= 0:
            raise ValueError("attempt_timeout must be positive")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.backoff_strategy = backoff_strategy
        self.attempt_timeout = attempt_timeout


async def with_retry(operation: Callable[[], Awaitable[T]],
                     config: Optional[RetryConfig] = None,
                     *,
                     exceptions: Tuple[Type[BaseException], ...] = (Exception,),
                     name: Optional[str] = None,
                     sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep) -> T:
    """Run ``operation`` until it succeeds or the attempts run out.

    Each attempt is bounded by ``config.attempt_timeout`` when set; a timed out
    attempt is cancelled and counts as a failure. Exceptions outside
    ``exceptions`` propagate immediately. When every attempt fails, the last
    exception is re-raised as is.
    """
    if config is None:
        config = RetryConfig()
    name = name or getattr(operation, "__name__", "operation")
    logger = get_logger(f"retry.{name}")

    for attempt in range(1, config.max_attempts + 1):
        try:
            if config.attempt_timeout is not None:
                result = await asyncio.wait_for(operation(), timeout=config.attempt_timeout)
            else:
                result = await operation()

            if attempt > 1:
                logger.info("Retry succeeded", attempt=attempt, function=name)

            return result

        except exceptions as e:
            if attempt == config.max_attempts:
                logger.error(
                    "All retry attempts exhausted",
                    attempt=attempt,
                    max_attempts=config.max_attempts,
                    function=name,
                    error=str(e) or type(e).__name__
                )
                raise

            delay = calculate_delay(attempt, config)

            logger.warning(
                "Retry attempt failed, waiting before next attempt",
                attempt=attempt,
                delay=delay,
                function=name,
                error=str(e) or type(e).__name__
            )

            await sleep(delay)

    raise AssertionError("unreachable")  # pragma: no cover


def retry_on_exception(exceptions: tuple = (Exception,),
                       config: Optional[RetryConfig] = None) -> Callable:
    """Decorator for retrying async functions on exceptions."""

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            return await with_retry(
                lambda: func(*args, **kwargs),
                config,
                exceptions=exceptions,
                name=func.__name__,
            )

        return wrapper

    return decorator


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Calculate delay between retry attempts."""
    if config.backoff_strategy == "exponential":
        delay = config.base_delay * (config.exponential_base ** (attempt - 1))
    elif config.backoff_strategy == "linear":
        delay = config.base_delay * attempt
    else:
        delay = config.base_delay

    delay = min(delay, config.max_delay)

    if config.jitter:
        jitter_amount = delay * 0.1  # 10% jitter
        delay += random.uniform(-jitter_amount, jitter_amount)

    return max(0.0, delay)
