"""Bounded retry with exponential backoff for workflow steps."""
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from contentflow.config import RetrySettings
from contentflow.errors import is_retryable

logger = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = ["RetryPolicy", "is_retryable", "run_with_retry"]


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_base: float = 1.0
    backoff_max: float = 30.0
    jitter: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay_for(self, attempt: int, rand: Callable[[], float] = random.random) -> float:
        """Delay after the given failed attempt (1-based), full jitter."""
        ceiling = min(self.backoff_max, self.backoff_base * (2 ** (attempt - 1)))
        if self.jitter:
            return ceiling * rand()
        return ceiling

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.max_attempts,
            backoff_base=settings.backoff_base,
            backoff_max=settings.backoff_max,
        )


def run_with_retry(
    fn: Callable[[], T],
    policy: RetryPolicy,
    *,
    label: str = "step",
    sleep: Callable[[float], None] = time.sleep,
    retry_if: Callable[[BaseException], bool] = is_retryable,
) -> T:
    """Call ``fn`` until it succeeds or ``policy.max_attempts`` is used up.

    Non-retryable errors propagate on the first failure. The last error is
    re-raised once attempts are exhausted.
    """
    attempt = 1
    while True:
        try:
            return fn()
        except Exception as e:
            if not retry_if(e) or attempt >= policy.max_attempts:
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                f"{label} failed, retrying in {delay:.2f}s",
                extra={
                    "step": label,
                    "attempt": attempt,
                    "max_attempts": policy.max_attempts,
                    "error": str(e),
                },
            )
            sleep(delay)
            attempt += 1
