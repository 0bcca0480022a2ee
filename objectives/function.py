from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable, Tuple
import tensorflow as tf
from runtime.tensorflow_config import tf_compile
from minimizers.vectors import as_vector
from minimizers.errors import DimensionMismatchError


class DerivableFunction(ABC):
    """
    Objective consumed by the minimizers: a scalar function of a 1-D point with its gradient.
    """

    @abstractmethod
    def size(self) -> int:
        """Number of parameters (length of the point)."""

    @abstractmethod
    def value(self, point) -> float:
        pass

    @abstractmethod
    def gradient(self, point) -> tf.Tensor:
        pass

    def value_and_gradient(self, point) -> Tuple[float, tf.Tensor]:
        return self.value(point), self.gradient(point)


class LastPointCache(DerivableFunction):
    """
    Remembers the value of the last point asked for, and separately the gradient of
    the last point asked for, so asking twice in a row for the same point costs one
    evaluation. Points are compared element by element.
    """

    def __init__(self, function: DerivableFunction):
        self.function = function
        self._value_point, self._value = None, None
        self._gradient_point, self._gradient = None, None
        self.value_evals = 0
        self.gradient_evals = 0

    def size(self) -> int:
        return self.function.size()

    @staticmethod
    def _same(cached, point) -> bool:
        if cached is None or cached.dtype != point.dtype or cached.shape != point.shape:
            return False
        return bool(tf.reduce_all(tf.equal(cached, point)))

    def value(self, point) -> float:
        point = point if tf.is_tensor(point) else as_vector(point)
        if not self._same(self._value_point, point):
            self._value = float(self.function.value(point))
            self._value_point = tf.identity(point)
            self.value_evals += 1
        return self._value

    def gradient(self, point) -> tf.Tensor:
        point = point if tf.is_tensor(point) else as_vector(point)
        if not self._same(self._gradient_point, point):
            self._gradient = tf.identity(self.function.gradient(point))
            self._gradient_point = tf.identity(point)
            self.gradient_evals += 1
        return self._gradient

    def reset_counters(self):
        self.value_evals = 0
        self.gradient_evals = 0


class TapeFunction(DerivableFunction):
    """
    Wraps a TF loss `loss(x) -> scalar tensor` over a flat parameter vector x;
    gradients come from tf.GradientTape. Missing gradients are replaced with zeros.
    Set compile=False for losses that are not graph-traceable.
    """

    def __init__(self, loss: Callable[[tf.Tensor], tf.Tensor], size: int, dtype=tf.float64, compile: bool = True):
        self.loss = loss
        self._size = int(size)
        self.dtype = dtype

        def loss_and_grad(x):
            with tf.GradientTape() as tape:
                tape.watch(x)
                f = self.loss(x)
            g = tape.gradient(f, x)
            if g is None:
                g = tf.zeros_like(x)
            return f, g

        self._loss = tf_compile(loss) if compile else loss
        self._loss_and_grad = tf_compile(loss_and_grad) if compile else loss_and_grad

    def size(self) -> int:
        return self._size

    def _point(self, point) -> tf.Tensor:
        x = as_vector(point, self.dtype)
        if x.shape[0] != self._size:
            raise DimensionMismatchError(type(self).__name__, self._size, x.shape[0])
        return x

    def value(self, point) -> float:
        return float(self._loss(self._point(point)))

    def gradient(self, point) -> tf.Tensor:
        return self.value_and_gradient(point)[1]

    def value_and_gradient(self, point) -> Tuple[float, tf.Tensor]:
        f, g = self._loss_and_grad(self._point(point))
        return float(f), g
