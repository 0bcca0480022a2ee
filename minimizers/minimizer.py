from abc import ABC, abstractmethod
import tensorflow as tf
from minimizers.states import MinimizerState, terminal
from minimizers.errors import InvalidStateError


class Minimizer(ABC):
    """
    Finds a point minimizing `function` (an objective exposing size/value/gradient).
    run() searches; result_value() / result_point() are valid only after run() succeeded.
    """

    def __init__(self, function):
        self.function = function
        self.state = MinimizerState.initialized
        self._point = None
        self._value = None

    @abstractmethod
    def run(self):
        raise NotImplementedError

    @property
    def calculated(self) -> bool:
        return self.state in terminal

    def result_value(self) -> float:
        if not self.calculated: raise InvalidStateError("Not calculated.")
        return self._value

    def result_point(self) -> tf.Tensor:
        if not self.calculated: raise InvalidStateError("Not calculated.")
        return self._point
