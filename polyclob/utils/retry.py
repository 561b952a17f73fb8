"""
Retry with exponential backoff, guarded by a circuit breaker.

Used only by the HTTP transport; signing code never retries.
"""

import random
import threading
import time
from typing import Callable, Optional, TypeVar
import logging

from ..exceptions import (
    APIError,
    AuthenticationError,
    CircuitBreakerError,
    PolyClobError,
    RateLimitError,
    TimeoutError,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')


class CircuitBreaker:
    """
    Stops calling a failing endpoint for `timeout` seconds.

    States: CLOSED (normal), OPEN (failing), HALF_OPEN (testing recovery)
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        timeout: float = 60.0,
        name: str = "default"
    ):
        self.failure_threshold = failure_threshold
        self.timeout = timeout
        self.name = name

        self._failures = 0
        self._last_failure_time: Optional[float] = None
        self._state = "CLOSED"
        self._lock = threading.Lock()

    def call(self, func: Callable[..., T], *args, **kwargs) -> T:
        """
        Call function with circuit breaker protection.

        Raises:
            CircuitBreakerError: If circuit is open
        """
        with self._lock:
            if self._state == "OPEN":
                if time.time() - self._last_failure_time >= self.timeout:
                    logger.info(f"Circuit breaker {self.name}: OPEN -> HALF_OPEN")
                    self._state = "HALF_OPEN"
                else:
                    raise CircuitBreakerError(f"Circuit breaker {self.name} is OPEN")

        try:
            result = func(*args, **kwargs)
        except (APIError, TimeoutError):
            self._record_failure()
            raise

        with self._lock:
            if self._state == "HALF_OPEN":
                logger.info(f"Circuit breaker {self.name}: HALF_OPEN -> CLOSED")
            self._state = "CLOSED"
            self._failures = 0
        return result

    def _record_failure(self) -> None:
        with self._lock:
            self._failures += 1
            self._last_failure_time = time.time()

            if self._state == "HALF_OPEN" or self._failures >= self.failure_threshold:
                if self._state != "OPEN":
                    logger.warning(
                        f"Circuit breaker {self.name}: {self._state} -> OPEN "
                        f"({self._failures} failures)"
                    )
                self._state = "OPEN"

    def reset(self) -> None:
        """Reset circuit breaker to closed state."""
        with self._lock:
            self._failures = 0
            self._last_failure_time = None
            self._state = "CLOSED"

    @property
    def state(self) -> str:
        return self._state

    @property
    def failures(self) -> int:
        return self._failures


class RetryStrategy:
    """Exponential backoff with jitter for transient transport failures."""

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
        circuit_breaker: Optional[CircuitBreaker] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.circuit_breaker = circuit_breaker
        self._sleep = sleep

    def _calculate_delay(self, attempt: int, exception: Optional[Exception] = None) -> float:
        delay = min(
            self.base_delay * (self.exponential_base ** attempt),
            self.max_delay
        )

        if self.jitter:
            # ±25%
            jitter_amount = delay * 0.25
            delay += random.uniform(-jitter_amount, jitter_amount)

        # Never come back before the server said we may
        if isinstance(exception, RateLimitError) and exception.retry_after:
            delay = max(delay, exception.retry_after)

        return max(0, delay)

    def _should_retry(self, exception: Exception, attempt: int) -> bool:
        if attempt >= self.max_retries:
            return False

        # Rejected proofs and open breakers are not transient
        if isinstance(exception, (AuthenticationError, CircuitBreakerError)):
            return False

        if isinstance(exception, APIError):
            # 4xx other than 429 will fail the same way again
            status = exception.status_code
            return status is None or status == 429 or status >= 500

        return isinstance(exception, TimeoutError)

    def execute(self, func: Callable[..., T], *args, **kwargs) -> T:
        """
        Execute function with retry logic.

        Raises:
            Last exception if all retries exhausted
        """
        for attempt in range(self.max_retries + 1):
            try:
                if self.circuit_breaker:
                    return self.circuit_breaker.call(func, *args, **kwargs)
                return func(*args, **kwargs)

            except PolyClobError as e:
                if not self._should_retry(e, attempt):
                    raise

                delay = self._calculate_delay(attempt, e)
                logger.warning(
                    f"Retry {attempt + 1}/{self.max_retries} for {getattr(func, '__name__', func)} "
                    f"after {type(e).__name__}: {e}. Waiting {delay:.2f}s"
                )
                self._sleep(delay)

        raise PolyClobError("Retry logic error")
