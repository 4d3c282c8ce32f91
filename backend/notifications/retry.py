"""
Retry policy applied uniformly around every pipeline stage.

Defaults are 5 attempts, 1s initial backoff doubling up to 10s, and a
60s limit per attempt.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TypeVar

from .errors import PipelineStageError, TrafficNotifierError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 5
    initial_interval: float = 1.0
    maximum_interval: float = 10.0
    backoff_coefficient: float = 2.0
    start_to_close_timeout: float = 60.0
    sleep: Callable[[float], Awaitable[Any]] = field(default=asyncio.sleep, compare=False, repr=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_interval < 0 or self.maximum_interval < 0:
            raise ValueError("intervals must be >= 0")
        if self.backoff_coefficient < 1:
            raise ValueError("backoff_coefficient must be >= 1")
        if self.start_to_close_timeout <= 0:
            raise ValueError("start_to_close_timeout must be > 0")

    def backoff(self, attempt: int) -> float:
        """Delay to wait after failed attempt number ``attempt`` (1-based)."""
        delay = self.initial_interval * (self.backoff_coefficient ** (attempt - 1))
        return min(delay, self.maximum_interval)

    @staticmethod
    def is_retryable(error: BaseException) -> bool:
        # Unclassified exceptions are retried, classified ones say for themselves
        if isinstance(error, TrafficNotifierError):
            return error.retryable
        return True

    async def run(self, stage: str, func: Callable[..., Awaitable[T]], *args: Any) -> T:
        """
        Run ``func(*args)`` under this policy.

        Raises:
            TrafficNotifierError: The first non-retryable failure, tagged with ``stage``
            PipelineStageError: All attempts failed with retryable errors
        """
        last_error: BaseException = RuntimeError("no attempt made")
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await asyncio.wait_for(func(*args), timeout=self.start_to_close_timeout)
            except asyncio.TimeoutError as e:
                last_error = e
                logger.warning(
                    f"Stage {stage} attempt {attempt}/{self.max_attempts} timed out "
                    f"after {self.start_to_close_timeout}s"
                )
            except Exception as e:
                if not self.is_retryable(e):
                    if isinstance(e, TrafficNotifierError) and e.stage is None:
                        e.stage = stage
                    logger.error(f"Stage {stage} failed with non-retryable error: {e}")
                    raise
                last_error = e
                logger.warning(f"Stage {stage} attempt {attempt}/{self.max_attempts} failed: {e}")

            if attempt < self.max_attempts:
                delay = self.backoff(attempt)
                logger.info(f"Retrying stage {stage} in {delay:.1f}s")
                await self.sleep(delay)

        logger.error(f"Stage {stage} gave up after {self.max_attempts} attempts")
        raise PipelineStageError(stage, self.max_attempts, last_error) from last_error
