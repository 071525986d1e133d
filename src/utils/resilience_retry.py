"""
Retry with backoff
Automatic retries for flaky I/O with pluggable backoff strategies
"""

import asyncio
import logging
import random
from typing import Callable, TypeVar, Optional, Any, List
from enum import Enum

logger = logging.getLogger(__name__)

T = TypeVar('T')


class BackoffStrategy(Enum):
    """Backoff strategy"""
    FIXED = "fixed"              # constant delay
    LINEAR = "linear"            # base * attempt
    EXPONENTIAL = "exponential"  # base * 2^(attempt-1)
    SCHEDULE = "schedule"        # explicit per-attempt delays


class RetryCondition:
    """Retry predicates"""

    @staticmethod
    def on_any_exception() -> Callable[[Exception], bool]:
        """Retry on every exception"""
        def should_retry(exc: Exception) -> bool:
            return True
        return should_retry


class RetryConfig:
    """Retry settings"""

    def __init__(
        self,
        max_attempts: int = 3,
        max_delay: float = 60.0,
        backoff_strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL,
        base_delay: float = 1.0,
        max_jitter: float = 0.0,
        delay_schedule: Optional[List[float]] = None,
        retry_on_exception: Optional[Callable[[Exception], bool]] = None,
        on_retry: Optional[Callable[[int, Exception], None]] = None,
    ):
        self.max_attempts = max_attempts
        self.max_delay = max_delay
        self.backoff_strategy = backoff_strategy
        self.base_delay = base_delay
        self.max_jitter = max_jitter
        self.delay_schedule = delay_schedule or []
        self.retry_on_exception = retry_on_exception or RetryCondition.on_any_exception()
        self.on_retry = on_retry


class RetryExecutor:
    """Runs a callable until it succeeds, fails permanently or runs out of attempts"""

    def __init__(self, config: RetryConfig, sleep: Optional[Callable[[float], Any]] = None):
        self.config = config
        self._sleep = sleep

    def calculate_delay(self, attempt: int) -> float:
        """Delay before the retry that follows the given (1-based) attempt"""
        strategy = self.config.backoff_strategy

        if strategy == BackoffStrategy.SCHEDULE:
            schedule = self.config.delay_schedule
            if not schedule:
                delay = self.config.base_delay
            else:
                delay = schedule[min(attempt - 1, len(schedule) - 1)]
        elif strategy == BackoffStrategy.LINEAR:
            delay = self.config.base_delay * attempt
        elif strategy == BackoffStrategy.EXPONENTIAL:
            delay = self.config.base_delay * (2 ** (attempt - 1))
        else:
            delay = self.config.base_delay

        delay = min(delay, self.config.max_delay)

        if self.config.max_jitter > 0 and delay > 0:
            delay -= random.uniform(0, min(self.config.max_jitter, delay * 0.1))

        return delay

    async def execute_async(self, func: Callable[..., T], *args, **kwargs) -> T:
        """Await an async callable with retries"""
        for attempt in range(1, self.config.max_attempts + 1):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if attempt < self.config.max_attempts and self.config.retry_on_exception(e):
                    delay = self.calculate_delay(attempt)
                    self._handle_retry(attempt, delay, e)
                    await (self._sleep or asyncio.sleep)(delay)
                    continue
                raise

        raise RuntimeError("max_attempts must be at least 1")

    def _handle_retry(self, attempt: int, delay: float, exception: Exception) -> None:
        if self.config.on_retry:
            self.config.on_retry(attempt, exception)

        logger.warning(
            f"Retry attempt {attempt}/{self.config.max_attempts - 1}"
            f" after {delay:.2f}s delay: {exception}"
        )

