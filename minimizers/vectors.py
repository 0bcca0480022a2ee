"""
Vector algebra over 1-D tensors. Every function returns a new tensor and never
touches its inputs. Sizes are checked in python before the compiled kernel runs,
so a mismatch raises DimensionMismatchError instead of a TF shape error.
"""
import math
import numpy as np
import tensorflow as tf
from runtime.tensorflow_config import tf_compile
from minimizers.errors import DimensionMismatchError, InfinityError, InfinityKind


# ======================= small math kernels ==================================

@tf_compile
def _dot(a, b):
    return tf.tensordot(a, b, axes=1)


@tf_compile
def _scale(c, v):
    return c * v


@tf_compile
def _add(a, b):
    return a + b


@tf_compile
def _subtract(a, b):
    return a - b


@tf_compile
def _axpy(alpha, x, y):
    return y + alpha * x


# ======================= conversions =========================================

def as_vector(values, dtype=tf.float64) -> tf.Tensor:
    if tf.is_tensor(values) or isinstance(values, tf.Variable):
        v = tf.cast(values, dtype)
    else:
        v = tf.convert_to_tensor(np.asarray(values, dtype=dtype.as_numpy_dtype))
    if v.shape.rank != 1:
        raise ValueError(f"expected a 1-D vector, got shape {v.shape}")
    return v


def zeros(size: int, dtype=tf.float64) -> tf.Tensor:
    return tf.zeros([int(size)], dtype=dtype)


def paired(operation, a, b):
    a = a if tf.is_tensor(a) else as_vector(a)
    b = as_vector(b, a.dtype) if (not tf.is_tensor(b) or b.dtype != a.dtype) else b
    if a.shape.rank != 1 or b.shape.rank != 1:
        raise ValueError(f"{operation}: expected 1-D vectors, got shapes {a.shape} and {b.shape}")
    na, nb = a.shape[0], b.shape[0]
    if na != nb:
        raise DimensionMismatchError(operation, na, nb)
    return a, b


def _scalar_like(c, v):
    return tf.cast(tf.convert_to_tensor(c), v.dtype)


# ======================= public primitives ===================================

def dot(a, b) -> float:
    a, b = paired("dot", a, b)
    return float(_dot(a, b).numpy())


def scale(c, v) -> tf.Tensor:
    v = v if tf.is_tensor(v) else as_vector(v)
    return _scale(_scalar_like(c, v), v)


def add(a, b) -> tf.Tensor:
    a, b = paired("add", a, b)
    return _add(a, b)


def subtract(a, b) -> tf.Tensor:
    a, b = paired("subtract", a, b)
    return _subtract(a, b)


def axpy(alpha, x, y) -> tf.Tensor:
    """y + alpha * x"""
    x, y = paired("axpy", x, y)
    return _axpy(_scalar_like(alpha, x), x, y)


def norm_squared(v) -> float:
    return dot(v, v)


def norm(v) -> float:
    n = norm_squared(v)
    return 0.0 if n < 0.0 else math.sqrt(n)  # NaN passes through


def safe_divide(numerator, divisor) -> float:
    """
    Division that refuses to produce a non-finite quotient: a zero divisor (or any
    overflow / NaN) raises InfinityError instead of letting inf flow into a direction.
    """
    n, d = float(numerator), float(divisor)
    if d == 0.0:
        kind = InfinityKind.SCALAR_NAN if n == 0.0 else InfinityKind.SCALAR_INFINITE
        raise InfinityError(kind, f"division by zero ({n!r} / 0)")
    q = n / d
    if math.isnan(q):
        raise InfinityError(InfinityKind.SCALAR_NAN, f"NaN quotient ({n!r} / {d!r})")
    if math.isinf(q):
        raise InfinityError(InfinityKind.SCALAR_INFINITE, f"infinite quotient ({n!r} / {d!r})")
    return q
