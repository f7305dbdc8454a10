"""Structured error types for the adjacency search.

Configuration problems are fatal and raised before any search work starts.
Independence test failures are recovered inside each search stage.
"""


class FastAdjError(Exception):
    """Base error for all adjacency search failures."""

    def __init__(self, message: str, recoverable: bool = False) -> None:
        self.recoverable = recoverable
        super().__init__(message)


class SearchConfigurationError(FastAdjError, ValueError):
    """Raised when a search is constructed with invalid parameters."""

    def __init__(self, parameter: str, message: str) -> None:
        self.parameter = parameter
        super().__init__(f"Invalid '{parameter}': {message}", recoverable=False)


class IndependenceTestError(FastAdjError):
    """Raised by an independence test that cannot reach a decision (e.g. non-convergence)."""

    def __init__(self, x: str, y: str, z: list[str] | tuple[str, ...], message: str) -> None:
        self.x = x
        self.y = y
        self.z = tuple(z)
        cond = ", ".join(self.z) if self.z else "{}"
        super().__init__(f"Test {x} _||_ {y} | {cond} failed: {message}", recoverable=True)
