import math
import numpy as np
import pytest
import tensorflow as tf

from minimizers import vectors
from minimizers.errors import DimensionMismatchError, InfinityError, InfinityKind

rng = np.random.default_rng(1)


def test_add_subtract_round_trip():
    for n in (1, 3, 17):
        a = vectors.as_vector(rng.normal(size=n))
        b = vectors.as_vector(rng.normal(size=n))
        np.testing.assert_allclose(vectors.add(vectors.subtract(a, b), b).numpy(), a.numpy(), rtol=1e-12, atol=1e-12)


def test_dot_is_symmetric_and_matches_norm():
    a = vectors.as_vector([1.0, -2.0, 0.5])
    b = vectors.as_vector([4.0, 1.0, 2.0])
    assert vectors.dot(a, b) == vectors.dot(b, a) == 3.0
    assert vectors.norm_squared(a) == 5.25
    assert vectors.norm(a) == pytest.approx(math.sqrt(5.25))


def test_scale_and_axpy():
    x = vectors.as_vector([1.0, 2.0])
    y = vectors.as_vector([10.0, 20.0])
    np.testing.assert_array_equal(vectors.scale(-0.5, x).numpy(), [-0.5, -1.0])
    np.testing.assert_array_equal(vectors.axpy(2.0, x, y).numpy(), [12.0, 24.0])
    # inputs are untouched
    np.testing.assert_array_equal(x.numpy(), [1.0, 2.0])
    np.testing.assert_array_equal(y.numpy(), [10.0, 20.0])


@pytest.mark.parametrize("operation", [vectors.dot, vectors.add, vectors.subtract])
def test_size_mismatch_raises(operation):
    a = vectors.as_vector([1.0, 2.0, 3.0])
    b = vectors.as_vector([1.0, 2.0])
    with pytest.raises(DimensionMismatchError) as e:
        operation(a, b)
    assert (e.value.size_a, e.value.size_b) == (3, 2)
    np.testing.assert_array_equal(a.numpy(), [1.0, 2.0, 3.0])
    np.testing.assert_array_equal(b.numpy(), [1.0, 2.0])


def test_axpy_mismatch_raises():
    with pytest.raises(DimensionMismatchError):
        vectors.axpy(1.0, [1.0, 2.0], [1.0])


def test_as_vector_rejects_matrices():
    with pytest.raises(ValueError):
        vectors.as_vector([[1.0, 2.0], [3.0, 4.0]])
    v = vectors.as_vector(tf.constant([1, 2], tf.int32))
    assert v.dtype == tf.float64


def test_zeros():
    z = vectors.zeros(4)
    assert z.shape == (4,)
    assert vectors.norm_squared(z) == 0.0


def test_safe_divide():
    assert vectors.safe_divide(3.0, 2.0) == 1.5
    with pytest.raises(InfinityError) as e:
        vectors.safe_divide(1.0, 0.0)
    assert e.value.kind == InfinityKind.SCALAR_INFINITE
    with pytest.raises(InfinityError) as e:
        vectors.safe_divide(0.0, 0.0)
    assert e.value.kind == InfinityKind.SCALAR_NAN
    with pytest.raises(InfinityError) as e:
        vectors.safe_divide(1e308, 1e-308)
    assert e.value.scalar and not e.value.nan


def test_norm_keeps_nan():
    assert math.isnan(vectors.norm([1.0, math.nan]))
    assert math.isinf(vectors.norm([math.inf, 0.0]))
