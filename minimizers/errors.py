from enum import IntEnum


class InfinityKind(IntEnum):
    # which check failed and why
    SCALAR_INFINITE = 0
    SCALAR_NAN = 1
    VECTOR_INFINITE = 2
    VECTOR_NAN = 3

    @property
    def scalar(self) -> bool:
        return self in (InfinityKind.SCALAR_INFINITE, InfinityKind.SCALAR_NAN)

    @property
    def vector(self) -> bool:
        return not self.scalar

    @property
    def nan(self) -> bool:
        return self in (InfinityKind.SCALAR_NAN, InfinityKind.VECTOR_NAN)


class MinimizerError(Exception):
    """Base class of all errors raised by the minimizers."""


class DimensionMismatchError(MinimizerError, ValueError):
    def __init__(self, operation: str, size_a, size_b):
        self.operation, self.size_a, self.size_b = operation, size_a, size_b
        super().__init__(f"{operation}: vectors of different sizes ({size_a} vs {size_b})")


class InvalidStateError(MinimizerError, RuntimeError):
    pass


class InfinityError(MinimizerError, ArithmeticError):
    def __init__(self, kind: InfinityKind, message: str = None):
        self.kind = InfinityKind(kind)
        if message is None:
            what = "scalar" if self.kind.scalar else "vector"
            why = "NaN" if self.kind.nan else "infinity"
            message = f"{why} detected in {what}"
        super().__init__(message)

    @property
    def scalar(self) -> bool:
        return self.kind.scalar

    @property
    def vector(self) -> bool:
        return self.kind.vector

    @property
    def nan(self) -> bool:
        return self.kind.nan


class LineSearchError(MinimizerError):
    def __init__(self, reason: str, alpha: float = 0.0, evals: int = 0):
        self.reason, self.alpha, self.evals = reason, alpha, evals
        super().__init__(f"line search failed: {reason} (alpha={alpha:.3e}, evals={evals})")


class IterationLimitError(MinimizerError):
    def __init__(self, iterations: int, g_norm: float):
        self.iterations, self.g_norm = iterations, g_norm
        super().__init__(f"no convergence after {iterations} iterations (|g|={g_norm:.3e})")


class InvariantViolation(MinimizerError, AssertionError):
    """Internal bug: corrupted history or mismatched two-loop passes."""
