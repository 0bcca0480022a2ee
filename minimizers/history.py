from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Iterator, Optional
import tensorflow as tf
from minimizers import vectors
from minimizers.errors import InvariantViolation


@dataclass(frozen=True, eq=False)
class IterationRecord:
    """One L-BFGS pair: s = x_k - x_{k-1} and y = g_k - g_{k-1}."""
    point_diff: tf.Tensor
    gradient_diff: tf.Tensor

    def __post_init__(self):
        # own copies, never views of the engine's working vectors
        s, y = vectors.paired("IterationRecord", self.point_diff, self.gradient_diff)
        object.__setattr__(self, "point_diff", tf.identity(s))
        object.__setattr__(self, "gradient_diff", tf.identity(y))

    @classmethod
    def from_steps(cls, point, previous_point, gradient, previous_gradient) -> IterationRecord:
        return cls(vectors.subtract(point, previous_point), vectors.subtract(gradient, previous_gradient))

    @property
    def curvature(self) -> float:
        """s^T y"""
        return vectors.dot(self.point_diff, self.gradient_diff)


class IterationHistory:
    """
    Bounded window of the last `capacity` IterationRecords, oldest at the left.
    The two-loop recursion walks it in both directions, so traversal is offered
    as plain iterators over the deque (no copies).
    """

    def __init__(self, capacity: int = 20):
        if int(capacity) < 1:
            raise ValueError("history capacity must be >= 1")
        self.capacity = int(capacity)
        self._records = deque()

    def push(self, record: IterationRecord):
        self._records.append(record)
        if len(self._records) > self.capacity:
            self._records.popleft()
        if len(self._records) > self.capacity:
            raise InvariantViolation(f"history holds {len(self._records)} records, capacity is {self.capacity}")

    def oldest_first(self) -> Iterator[IterationRecord]:
        return iter(self._records)

    def newest_first(self) -> Iterator[IterationRecord]:
        return reversed(self._records)

    def newest(self) -> Optional[IterationRecord]:
        return self._records[-1] if self._records else None

    def clear(self):
        self._records.clear()

    def __len__(self):
        return len(self._records)

    def __bool__(self):
        return len(self._records) > 0

    def __repr__(self):
        return f"IterationHistory(size={len(self)}, capacity={self.capacity})"
