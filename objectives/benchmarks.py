import tensorflow as tf
from runtime.tensorflow_config import tf_compile
from minimizers.vectors import as_vector
from minimizers.errors import DimensionMismatchError
from objectives.function import DerivableFunction


# ---------------------------------------
# Analytic test objectives
# ---------------------------------------

@tf_compile
def _quadratic(x, c, w):
    r = x - c
    return tf.reduce_sum(w * r * r), 2.0 * w * r


@tf_compile
def _rosenbrock(x, a, b):
    x0, x1 = x[:-1], x[1:]
    t = x1 - x0 * x0
    f = tf.reduce_sum(b * t * t + (a - x0) ** 2)
    head = -4.0 * b * x0 * t - 2.0 * (a - x0)
    tail = 2.0 * b * t
    g = tf.concat([head, tf.zeros([1], x.dtype)], axis=0) + tf.concat([tf.zeros([1], x.dtype), tail], axis=0)
    return f, g


class QuadraticFunction(DerivableFunction):
    """f(x) = sum_i w_i (x_i - c_i)^2, minimum 0 at x = c (for positive weights)."""

    def __init__(self, center, weights=None, dtype=tf.float64):
        self.center = as_vector(center, dtype)
        self.weights = tf.ones_like(self.center) if weights is None else as_vector(weights, dtype)
        if self.weights.shape[0] != self.center.shape[0]:
            raise DimensionMismatchError("QuadraticFunction", self.center.shape[0], self.weights.shape[0])
        self.dtype = dtype

    @classmethod
    def bowl(cls, size: int, dtype=tf.float64):
        """|x|^2"""
        return cls(tf.zeros([int(size)], dtype), dtype=dtype)

    def size(self) -> int:
        return int(self.center.shape[0])

    def _eval(self, point):
        x = as_vector(point, self.dtype)
        if x.shape[0] != self.size():
            raise DimensionMismatchError("QuadraticFunction", self.size(), x.shape[0])
        return _quadratic(x, self.center, self.weights)

    def value(self, point) -> float:
        return float(self._eval(point)[0])

    def gradient(self, point) -> tf.Tensor:
        return self._eval(point)[1]


class RosenbrockFunction(DerivableFunction):
    """Chained Rosenbrock, minimum 0 at x = (a, a, ..., a)."""

    def __init__(self, size: int = 2, a: float = 1.0, b: float = 100.0, dtype=tf.float64):
        if int(size) < 2:
            raise ValueError("Rosenbrock needs at least 2 variables")
        self._size = int(size)
        self.a = tf.constant(a, dtype)
        self.b = tf.constant(b, dtype)
        self.dtype = dtype

    def size(self) -> int:
        return self._size

    def _eval(self, point):
        x = as_vector(point, self.dtype)
        if x.shape[0] != self._size:
            raise DimensionMismatchError("RosenbrockFunction", self._size, x.shape[0])
        return _rosenbrock(x, self.a, self.b)

    def value(self, point) -> float:
        return float(self._eval(point)[0])

    def gradient(self, point) -> tf.Tensor:
        return self._eval(point)[1]
