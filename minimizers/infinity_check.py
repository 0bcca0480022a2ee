"""
Finite-value guard.

Use the module functions ``check_scalars``, ``check_vectors`` or ``check``.
They return the checker itself, so calls can be chained::

    check_scalars(f).check_vectors(g, d)

A violation raises InfinityError whose ``kind`` tells whether a scalar or a
vector failed the check, and whether the offending value was NaN or infinite.
The checker holds no state and can be shared between threads.
"""
import math
import tensorflow as tf
from minimizers.errors import InfinityError, InfinityKind


class _InfinityChecker:
    __slots__ = ()

    def check_scalars(self, *values):
        for value in values:
            v = float(value)
            if math.isinf(v):
                raise InfinityError(InfinityKind.SCALAR_INFINITE)
            if math.isnan(v):
                raise InfinityError(InfinityKind.SCALAR_NAN)
        return self

    def check_vectors(self, *vectors):
        for vector in vectors:
            v = tf.reshape(tf.convert_to_tensor(vector), [-1])
            if not v.dtype.is_floating:
                continue  # integer tensors are always finite
            bad = tf.where(tf.logical_not(tf.math.is_finite(v)))
            if int(tf.size(bad)) == 0:
                continue
            first = v[int(bad[0, 0])]
            if bool(tf.math.is_nan(first)):
                raise InfinityError(InfinityKind.VECTOR_NAN)
            raise InfinityError(InfinityKind.VECTOR_INFINITE)
        return self

    def check(self, *values):
        for value in values:
            t = tf.convert_to_tensor(value)
            if t.shape.rank == 0:
                self.check_scalars(t)
            else:
                self.check_vectors(t)
        return self


_CHECKER = _InfinityChecker()


def check_scalars(*values):
    return _CHECKER.check_scalars(*values)


def check_vectors(*vectors):
    return _CHECKER.check_vectors(*vectors)


def check(*values):
    return _CHECKER.check(*values)
