"""Core exceptions for readyexec.

Library errors share one base class that carries an optional actionable hint.
Failures raised by user callables are never wrapped in these types: they
propagate (sync operations) or are captured into futures (async operations)
unchanged.
"""


class ReadyExecError(Exception):
    """Base exception for all library-specific errors."""

    def __init__(self, message: str | None, hint: str | None = None):
        """Initialize with an optional actionable hint."""
        self.hint = hint
        msg_str = str(message) if message is not None else "None"
        super().__init__(msg_str)

    def __str__(self) -> str:
        """Return the full error message including the hint."""
        msg = super().__str__()
        return f"{msg}. {self.hint}" if self.hint else msg


# --- Actionable Hints ---

HINTS = {
    "future_consumed": (
        "A ready future yields its result once. Keep the value returned by the "
        "first get() instead of calling get() again"
    ),
    "bulk_count": "Pass a non-negative int as the bulk invocation count",
    "bulk_policy": "Use 'stop' or 'complete' for bulk_failure_policy",
}


class FutureConsumedError(ReadyExecError):
    """Raised when get() is called on a future whose result was already taken."""

    def __init__(self, message: str = "Future result was already retrieved"):
        """Create a consumed-future error with the standard hint."""
        super().__init__(message, hint=HINTS["future_consumed"])


class BulkShapeError(ReadyExecError, ValueError):
    """Raised when a bulk call is issued with an invalid invocation count."""


class ConfigurationError(ReadyExecError):
    """Raised for invalid or missing configuration."""


class InvariantViolationError(ReadyExecError):
    """Raised when an internal executor invariant is violated.

    Only surfaced when dev-time validation is enabled, or by the benchmark
    client when a variant produces a wrong result.
    """

    def __init__(
        self, message: str, operation: str | None = None, hint: str | None = None
    ):
        """Create an invariant violation error.

        Args:
            message: Human-readable description of the violated invariant.
            operation: Optional executor operation where the issue was detected.
            hint: Optional actionable hint for resolution.
        """
        self.operation = operation
        msg = message if operation is None else f"[{operation}] {message}"
        super().__init__(msg, hint=hint)
