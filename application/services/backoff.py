"""Backoff policy applied after a failed drain attempt."""
from dataclasses import dataclass

from tenacity import RetryCallState, wait_exponential, wait_fixed
from tenacity.wait import wait_base

EXPONENTIAL = "exponential"
FIXED = "fixed"

DEFAULT_BASE_SECONDS = 1.0
DEFAULT_MAX_SECONDS = 60.0


def _validate_backoff_params(strategy: str, base_seconds: float, max_seconds: float) -> None:
    """
    Validate backoff parameters.

    Raises:
        ValueError: If any parameter is invalid
    """
    if strategy not in (EXPONENTIAL, FIXED):
        raise ValueError(
            f"Unknown backoff strategy '{strategy}'. Must be one of: {EXPONENTIAL}, {FIXED}"
        )
    if base_seconds < 0:
        raise ValueError(f"base_seconds must be >= 0, got {base_seconds}")
    if max_seconds <= 0:
        raise ValueError(f"max_seconds must be positive, got {max_seconds}")
    if base_seconds > max_seconds:
        raise ValueError(
            f"base_seconds ({base_seconds}) cannot exceed max_seconds ({max_seconds})"
        )


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Delay inserted after a failure before the next drain attempt.

    Exponential: base * 2 ** (attempt - 1), capped at max_seconds.
    Fixed: base for every attempt.
    """

    strategy: str = EXPONENTIAL
    base_seconds: float = DEFAULT_BASE_SECONDS
    max_seconds: float = DEFAULT_MAX_SECONDS

    def __post_init__(self) -> None:
        _validate_backoff_params(self.strategy, self.base_seconds, self.max_seconds)

    @classmethod
    def from_millis(cls, strategy: str, base_ms: int, max_ms: int) -> "BackoffPolicy":
        return cls(strategy=strategy, base_seconds=base_ms / 1000, max_seconds=max_ms / 1000)

    def wait_strategy(self) -> wait_base:
        """The tenacity wait strategy for this policy."""
        if self.strategy == FIXED:
            return wait_fixed(self.base_seconds)
        return wait_exponential(multiplier=self.base_seconds, max=self.max_seconds)

    def delay(self, attempt: int) -> float:
        """
        Seconds to wait after the given (1-based) failed attempt.

        Args:
            attempt: Number of attempts made so far

        Returns:
            Delay in seconds; 0 when no attempt has been made
        """
        if attempt <= 0:
            return 0.0
        retry_state = RetryCallState(retry_object=None, fn=None, args=(), kwargs={})
        # Past 2 ** 32 every delay is already capped.
        retry_state.attempt_number = min(attempt, 33)
        return float(self.wait_strategy()(retry_state))
