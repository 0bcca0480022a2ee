from enum import IntEnum


class MinimizerState(IntEnum):
    # names chosen with fixed length
    initialized = 0
    iterating__ = 1
    converged__ = 2


terminal = [MinimizerState.converged__]
