import tensorflow as tf
from minimizers.history import IterationHistory
from minimizers.vectors import dot, scale, axpy, safe_divide
from minimizers.errors import InvariantViolation


def initial_gamma(history: IterationHistory) -> float:
    """gamma = s^T y / y^T y of the newest pair, 1.0 for an empty history."""
    newest = history.newest()
    if newest is None:
        return 1.0
    s, y = newest.point_diff, newest.gradient_diff
    return safe_divide(dot(s, y), dot(y, y))


def two_loop_recursion(gradient: tf.Tensor, history: IterationHistory) -> tf.Tensor:
    """
    Returns r ~ H^{-1} g built from the (s, y) pairs of `history` without forming H.
    The first pass runs newest -> oldest, the second oldest -> newest and consumes
    the (rho, alpha) of the first pass in reverse.
    With an empty history r == g, i.e. the caller's direction -r is steepest descent.
    """
    q = tf.identity(gradient)
    alphas, rhos = [], []
    for record in history.newest_first():
        s, y = record.point_diff, record.gradient_diff
        rho = safe_divide(1.0, dot(y, s))
        a = rho * dot(s, q)
        rhos.append(rho)
        alphas.append(a)
        q = axpy(-a, y, q)

    r = scale(initial_gamma(history), q)

    visited = 0
    for record, rho, a in zip(history.oldest_first(), reversed(rhos), reversed(alphas)):
        s, y = record.point_diff, record.gradient_diff
        b = rho * dot(y, r)
        r = axpy(a - b, s, r)
        visited += 1

    if visited != len(rhos) or visited != len(history):
        raise InvariantViolation(
            f"two-loop passes disagree: first={len(rhos)} second={visited} history={len(history)}")
    return r
