"""
Retry Executor

Runs one fallible coroutine up to ``max_attempts`` times with linear backoff.
Used around speech synthesis, where the service sometimes answers with a
success response that carries no audio.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar

from studycast.config import TTS_MAX_ATTEMPTS, TTS_RETRY_BASE_SECONDS
from studycast.core.exceptions import GenerationError, RetryExhaustedError
from studycast.core.logging import get_logger

logger = get_logger(__name__, component="retry")

T = TypeVar("T")


class SoftFailure(GenerationError):
    """A call returned normally but its result was rejected."""
    pass


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and linear backoff base (seconds)"""
    max_attempts: int = TTS_MAX_ATTEMPTS
    base_delay: float = TTS_RETRY_BASE_SECONDS

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay cannot be negative")

    def delay_after(self, attempt: int) -> Optional[float]:
        """Seconds to wait after failed ``attempt`` (1-based); None after the last one."""
        if attempt >= self.max_attempts:
            return None
        return self.base_delay * attempt


@dataclass
class RetryOutcome(Generic[T]):
    value: T
    attempts: int
    errors: List[BaseException] = field(default_factory=list)


class RetryExecutor:
    """
    Sequential retry wrapper.

    An attempt fails when the operation raises or when ``accept`` rejects its
    result. Failures are logged and retried until the budget is spent, then
    ``RetryExhaustedError`` is raised naming the last cause and the count.
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self.attempts = 0

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        accept: Optional[Callable[[T], bool]] = None,
        description: str = "operation",
    ) -> RetryOutcome[T]:
        errors: List[BaseException] = []
        self.attempts = 0

        for attempt in range(1, self.policy.max_attempts + 1):
            self.attempts = attempt
            try:
                result = await operation()
                if accept is not None and not accept(result):
                    raise SoftFailure(f"{description} returned an unusable result")
                if attempt > 1:
                    logger.info(
                        f"{description} succeeded after retry",
                        extra={"attempt": attempt},
                    )
                return RetryOutcome(value=result, attempts=attempt, errors=errors)
            except SoftFailure as e:
                errors.append(e)
                logger.warning(
                    f"{description} attempt {attempt} was rejected",
                    extra={"attempt": attempt, "error": str(e)},
                )
            except Exception as e:
                errors.append(e)
                logger.warning(
                    f"{description} attempt {attempt} failed",
                    extra={"attempt": attempt, "error": str(e), "error_type": type(e).__name__},
                )

            delay = self.policy.delay_after(attempt)
            if delay is not None:
                logger.debug(f"Waiting {delay:.1f}s before retrying {description}")
                await self._sleep(delay)

        last_error = errors[-1] if errors else None
        raise RetryExhaustedError(
            f"Failed {description} after {self.policy.max_attempts} attempts. Last error: {last_error}",
            attempts=self.policy.max_attempts,
            last_error=last_error,
        ) from last_error
