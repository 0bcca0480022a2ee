import math
import threading
import numpy as np
import pytest
import tensorflow as tf

from minimizers.lbfgs import LBFGS, LBFGSConfig, DEFAULT_MEMORY, DEFAULT_CONVERGENCE
from minimizers.line_searches import LineSearchBase, LineSearchResult
from minimizers.history import IterationRecord
from minimizers.states import MinimizerState
from minimizers.errors import (DimensionMismatchError, InfinityError, InfinityKind, InvalidStateError,
                               IterationLimitError, LineSearchError)
from minimizers.vectors import as_vector
from objectives.function import DerivableFunction
from objectives.benchmarks import QuadraticFunction, RosenbrockFunction


class _Broken(DerivableFunction):
    def __init__(self, value=1.0, gradient=(1.0, 1.0, 1.0), size=3):
        self._v, self._g, self._n = value, gradient, size

    def size(self):
        return self._n

    def value(self, point):
        return self._v

    def gradient(self, point):
        return as_vector(self._g)


class _FixedStep(LineSearchBase):
    def __init__(self, alpha):
        self.alpha = alpha

    def search(self, function, x, d, f=None, g=None):
        return LineSearchResult(self.alpha, float("nan"), 1, 0, True, "fixed")


def test_defaults():
    cfg = LBFGSConfig()
    assert (cfg.m, cfg.convergence) == (DEFAULT_MEMORY, DEFAULT_CONVERGENCE) == (20, 0.01)
    assert cfg.max_iters is None and cfg.debug_checks


def test_bowl_converges_immediately():
    minimizer = LBFGS(QuadraticFunction.bowl(4))
    result = minimizer.run()
    assert result.iters == 0
    assert minimizer.result_value() == 0.0
    np.testing.assert_array_equal(minimizer.result_point().numpy(), np.zeros(4))
    assert minimizer.state == MinimizerState.converged__ and minimizer.calculated


def test_shifted_quadratic():
    minimizer = LBFGS(QuadraticFunction([3.0, -2.0]))
    result = minimizer.run()
    np.testing.assert_allclose(minimizer.result_point().numpy(), [3.0, -2.0], atol=1e-2)
    assert minimizer.result_value() == pytest.approx(0.0, abs=1e-4)
    assert result.g_norm <= DEFAULT_CONVERGENCE


def test_results_before_run():
    minimizer = LBFGS(QuadraticFunction.bowl(2))
    assert minimizer.state == MinimizerState.initialized and not minimizer.calculated
    with pytest.raises(InvalidStateError):
        minimizer.result_value()
    with pytest.raises(InvalidStateError):
        minimizer.result_point()
    with pytest.raises(InvalidStateError):
        minimizer.result()


def test_ill_conditioned_quadratic():
    f = QuadraticFunction([1.0, -1.0, 0.5, 2.0], weights=[1.0, 10.0, 100.0, 1000.0])
    minimizer = LBFGS(f, convergence=1e-8, max_iters=500)
    result = minimizer.run()
    np.testing.assert_allclose(result.x.numpy(), [1.0, -1.0, 0.5, 2.0], atol=1e-8)
    assert result.g_norm <= 1e-8
    assert all(b >= a for a, b in zip(result.history['f'][1:], result.history['f']))


def test_rosenbrock():
    minimizer = LBFGS(RosenbrockFunction(2), convergence=1e-6, line_search="strong_wolfe", max_iters=2000)
    result = minimizer.run()
    np.testing.assert_allclose(result.x.numpy(), [1.0, 1.0], atol=1e-3)
    assert result.f < 1e-8


def test_history_is_bounded_by_memory():
    minimizer = LBFGS(RosenbrockFunction(4), m=3, convergence=1e-5, line_search="strong_wolfe", max_iters=2000)
    result = minimizer.run()
    assert max(result.history['m']) == 3
    assert len(minimizer.history) == 3
    assert result.history['m'][:3] == [1, 2, 3]


def test_evaluations_are_cached():
    minimizer = LBFGS(QuadraticFunction([3.0, -2.0], weights=[1.0, 4.0]), convergence=1e-8)
    result = minimizer.run()
    # the engine's value at the accepted point is served from the cache
    assert result.total_evals == 1 + sum(result.history['evals'])
    assert result.gradient_evals == 1 + result.iters


def test_debug_info_is_called_every_iteration(capsys):
    points = []

    def debug_info(x):
        points.append(x.numpy())
        return f"x={x.numpy()}"

    minimizer = LBFGS(RosenbrockFunction(2), line_search="strong_wolfe", verbose=True, max_iters=2000)
    result = minimizer.run()
    assert len(points) == result.iters > 0
    np.testing.assert_array_equal(points[-1], result.x.numpy())
    out = capsys.readouterr().out
    assert "[debug] x=" in out and "[iter" in out


def test_iteration_limit():
    minimizer = LBFGS(RosenbrockFunction(2), max_iters=3)
    with pytest.raises(IterationLimitError) as e:
        minimizer.run()
    assert e.value.iterations == 3
    assert not minimizer.calculated
    with pytest.raises(InvalidStateError):
        minimizer.result_value()


def test_zero_iteration_cap():
    with pytest.raises(IterationLimitError) as e:
        LBFGS(QuadraticFunction([1.0]), max_iters=0).run()
    assert e.value.iterations == 0
    # a cap of zero is fine when the start point is already optimal
    assert LBFGS(QuadraticFunction.bowl(1), max_iters=0).run().iters == 0


def test_gradient_of_wrong_size():
    minimizer = LBFGS(_Broken(gradient=(1.0, 1.0)))
    with pytest.raises(DimensionMismatchError):
        minimizer.run()
    assert not minimizer.calculated


def test_nan_gradient_is_caught():
    with pytest.raises(InfinityError) as e:
        LBFGS(_Broken(gradient=(1.0, math.nan, 0.0))).run()
    assert e.value.kind == InfinityKind.VECTOR_NAN


def test_infinite_value_is_caught():
    with pytest.raises(InfinityError) as e:
        LBFGS(_Broken(value=math.inf)).run()
    assert e.value.kind == InfinityKind.SCALAR_INFINITE


def test_unchecked_nan_ends_in_line_search_error():
    with pytest.raises(LineSearchError):
        LBFGS(_Broken(gradient=(1.0, math.nan, 0.0)), debug_checks=False).run()


def test_line_search_failure_is_fatal():
    # constant value with a nonzero gradient: no step decreases the value
    minimizer = LBFGS(_Broken(), max_evals_per_iter=4)
    with pytest.raises(LineSearchError) as e:
        minimizer.run()
    assert e.value.evals == 4
    assert minimizer.state == MinimizerState.iterating__


def test_value_increase_is_reported(capsys):
    minimizer = LBFGS(QuadraticFunction([1.0]), line_search=_FixedStep(2.0), max_iters=1)
    with pytest.raises(IterationLimitError):
        minimizer.run()
    out = capsys.readouterr().out
    assert "[warn]" in out and "previous value" in out


def test_non_descent_direction_falls_back_to_steepest_descent(capsys):
    minimizer = LBFGS(QuadraticFunction.bowl(2))
    # negative curvature pair: the two-loop direction points uphill
    minimizer.history.push(IterationRecord(as_vector([1.0, 0.0]), as_vector([-1.0, 0.0])))
    g = as_vector([1.0, 0.0])
    np.testing.assert_array_equal(minimizer.direction(g, 1).numpy(), [-1.0, 0.0])
    assert "not a descent direction" in capsys.readouterr().out


def test_rerun_starts_over():
    minimizer = LBFGS(RosenbrockFunction(2), line_search="strong_wolfe", max_iters=2000)
    first = minimizer.run()
    second = minimizer.run()
    assert first.iters == second.iters
    assert first.total_evals == second.total_evals
    np.testing.assert_array_equal(first.x.numpy(), second.x.numpy())


def test_config_and_overrides():
    base = LBFGSConfig(m=7, convergence=1e-3)
    minimizer = LBFGS(QuadraticFunction.bowl(2), base, m=5)
    assert minimizer.cfg.m == 5 and minimizer.cfg.convergence == 1e-3
    assert minimizer.history.capacity == 5
    assert LBFGS(QuadraticFunction.bowl(2), m=9).cfg.m == 9
    d = base.get_config()
    assert d['dtype'] == 'float64' and d['m'] == 7


@pytest.mark.parametrize("kwargs", [dict(m=0), dict(convergence=0.0), dict(line_search="newton"),
                                    dict(armijo_c1=1.0), dict(backtrack_factor=0.0), dict(armijo_window=0),
                                    dict(max_evals_per_iter=0), dict(max_iters=-1), dict(dtype=tf.int32)])
def test_invalid_config(kwargs):
    with pytest.raises(ValueError):
        LBFGSConfig(**kwargs)


def test_independent_instances_in_threads():
    centers = {"a": [3.0, -2.0, 1.0], "b": [-1.0, 0.5, 4.0]}
    results, errors = {}, []

    def run(name):
        try:
            f = QuadraticFunction(centers[name], weights=[1.0, 5.0, 20.0])
            results[name] = LBFGS(f, convergence=1e-8, max_iters=500).run()
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=run, args=(name,)) for name in centers]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    for name, center in centers.items():
        np.testing.assert_allclose(results[name].x.numpy(), center, atol=1e-8)
