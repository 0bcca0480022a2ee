"""
L-BFGS minimizer (eager).

L-BFGS ("limited memory BFGS") approximates Newton's method: the product of the
inverse Hessian with the gradient is rebuilt at every iteration from the last m
pairs s = x_k - x_{k-1}, y = g_k - g_{k-1} by the two-loop recursion, so neither
the Hessian nor its approximation is ever stored: memory is O(m n) instead of O(n^2).
Reference: Nocedal & Wright, Numerical Optimization, chapter 9.

The loop runs in plain python with small compiled vector kernels: the cost of the
direction and of the line search is small compared with evaluating the objective,
and python-side control keeps the curvature and finiteness checks readable.

Termination is convergence-driven only (|g|^2 <= convergence^2). `max_iters` is an
opt-in safety cap; reaching it raises IterationLimitError.
"""
from __future__ import annotations
import math
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Dict, List, Optional
import tensorflow as tf

from minimizers.minimizer import Minimizer
from minimizers.states import MinimizerState
from minimizers.history import IterationHistory, IterationRecord
from minimizers.two_loop import two_loop_recursion
from minimizers.line_searches import LineSearchBase, make_line_search
from minimizers.vectors import as_vector, zeros, dot, scale, axpy, norm_squared
from minimizers.errors import DimensionMismatchError, InvalidStateError, LineSearchError, IterationLimitError
from minimizers import infinity_check
from objectives.function import LastPointCache

DEFAULT_MEMORY = 20
DEFAULT_CONVERGENCE = 0.01


@dataclass(frozen=True)
class LBFGSConfig:
    m: int = DEFAULT_MEMORY
    convergence: float = DEFAULT_CONVERGENCE  # stop when |g| <= convergence
    line_search: str = 'armijo'  # 'armijo' | 'strong_wolfe'
    armijo_c1: float = 1e-4
    armijo_window: int = 1  # 1 for monotone armijo, >1 otherwise
    backtrack_factor: float = 0.5
    wolfe_c2: float = 0.9
    max_evals_per_iter: int = 60
    max_iters: Optional[int] = None  # None: run to convergence
    debug_checks: bool = True  # finite checks on f, g, d at every iteration
    verbose: bool = False
    dtype: tf.dtypes.DType = tf.float64

    def __post_init__(self):
        if int(self.m) < 1: raise ValueError("m must be >= 1")
        if not self.convergence > 0.0: raise ValueError("convergence must be positive")
        if self.line_search not in ("armijo", "strong_wolfe"): raise ValueError("line_search must be 'armijo' or 'strong_wolfe'")
        if not 0.0 < self.armijo_c1 < 1.0: raise ValueError("armijo_c1 must be in (0, 1)")
        if not 0.0 < self.backtrack_factor < 1.0: raise ValueError("backtrack_factor must be in (0, 1)")
        if int(self.armijo_window) < 1: raise ValueError("armijo_window must be >= 1")
        if int(self.max_evals_per_iter) < 1: raise ValueError("max_evals_per_iter must be >= 1")
        if self.max_iters is not None and int(self.max_iters) < 0: raise ValueError("max_iters must be >= 0")
        if not tf.as_dtype(self.dtype).is_floating: raise ValueError("dtype must be a floating dtype")

    def get_config(self) -> dict:
        """Return configuration as a plain dictionary (safe for JSON)."""
        d = {f.name: getattr(self, f.name) for f in fields(self)}
        d['dtype'] = tf.as_dtype(self.dtype).name
        return d


@dataclass
class LBFGSResult:
    x: tf.Tensor
    f: float
    g_norm: float
    iters: int
    total_evals: int
    gradient_evals: int
    state: MinimizerState
    history: Dict[str, List[Any]] = field(default_factory=dict)


class LBFGS(Minimizer):
    def __init__(self, function, config: Optional[LBFGSConfig] = None,
                 line_search: Optional[LineSearchBase] = None,
                 debug_info: Optional[Callable[[tf.Tensor], Optional[str]]] = None,
                 **kwargs):
        if config is None:
            config = LBFGSConfig(**kwargs)
        elif kwargs:
            config = replace(config, **kwargs)
        if not isinstance(function, LastPointCache):
            function = LastPointCache(function)
        super().__init__(function)
        self.cfg = config
        self.ls = line_search if line_search is not None else make_line_search(config)
        self.history = IterationHistory(config.m)
        self.debug_info = debug_info
        self._result: Optional[LBFGSResult] = None

    def set_debug_info(self, debug_info: Optional[Callable[[tf.Tensor], Optional[str]]]):
        """Observer called with the current point after every iteration (no effect on the algorithm)."""
        self.debug_info = debug_info

    def _dbg(self, *vals):
        if self.cfg.verbose:
            print(*vals)

    def _check(self, f, g, d=None):
        if not self.cfg.debug_checks:
            return
        checker = infinity_check.check_scalars(f).check_vectors(g)
        if d is not None:
            checker.check_vectors(d)

    def _gradient(self, x) -> tf.Tensor:
        g = as_vector(self.function.gradient(x), self.cfg.dtype)
        if g.shape[0] != x.shape[0]:
            raise DimensionMismatchError("gradient", x.shape[0], g.shape[0])
        return g

    def direction(self, g: tf.Tensor, k: int = 0) -> tf.Tensor:
        """-H^{-1} g from the current history; falls back to -g if that is not a descent direction."""
        d = scale(-1.0, two_loop_recursion(g, self.history))
        gTd = dot(g, d)
        if not gTd < 0.0:
            print(f"[warn] LBFGS iteration {k}: not a descent direction (g.d={gTd:.3e}), using -g")
            d = scale(-1.0, g)
        return d

    def run(self) -> LBFGSResult:
        cfg = self.cfg
        self.state = MinimizerState.initialized
        self._result = None
        self.history.clear()
        self.ls.reset()
        self.function.reset_counters()

        x = zeros(self.function.size(), cfg.dtype)
        f = float(self.function.value(x))
        g = self._gradient(x)
        self._check(f, g)
        self._dbg(f"[lbfgs] initial value = {f:.3f}")

        history = {k: [] for k in ['f', 'g_norm', 'alpha', 'evals', 'backtracks', 'm']}
        convergence_sq = cfg.convergence * cfg.convergence
        g_norm_sq = norm_squared(g)
        k = 0

        self.state = MinimizerState.iterating__
        while not g_norm_sq <= convergence_sq:  # NaN keeps iterating
            if cfg.max_iters is not None and k >= cfg.max_iters:
                raise IterationLimitError(k, math.sqrt(g_norm_sq))
            self._dbg(f"[lbfgs] gradient norm square = {g_norm_sq:.7e}")
            x_prev, g_prev, f_prev = x, g, f

            # 1. Update point
            d = self.direction(g, k + 1)
            self._check(f, g, d)
            ls_res = self.ls.search(self.function, x, d, f, g)
            if not ls_res.success:
                raise LineSearchError(ls_res.reason, ls_res.alpha, ls_res.evals)
            x = axpy(ls_res.alpha, d, x)

            # 2. Prepare next iteration
            f = float(self.function.value(x))
            g = self._gradient(x)
            self._check(f, g)
            self.history.push(IterationRecord.from_steps(x, x_prev, g, g_prev))
            g_norm_sq = norm_squared(g)
            k += 1

            # 3. Diagnostics
            if f > f_prev:
                print(f"[warn] LBFGS iteration {k}: value {f:.6e} > previous value {f_prev:.6e}")
            history['f'].append(f)
            history['g_norm'].append(math.sqrt(g_norm_sq))
            history['alpha'].append(ls_res.alpha)
            history['evals'].append(ls_res.evals)
            history['backtracks'].append(ls_res.backtracks)
            history['m'].append(len(self.history))
            self._dbg(f"[iter {k:5d}] f={f:.6e} |g|={math.sqrt(g_norm_sq):.3e} alpha={ls_res.alpha:.2e} "
                      f"evals={ls_res.evals} back={ls_res.backtracks} m={len(self.history)}")
            if self.debug_info is not None:
                info = self.debug_info(x)
                if info is not None:
                    self._dbg(f"[debug] {info}")

        self._point, self._value = x, f
        self.state = MinimizerState.converged__
        self._result = LBFGSResult(x=x, f=f, g_norm=math.sqrt(g_norm_sq), iters=k,
                                   total_evals=self.function.value_evals,
                                   gradient_evals=self.function.gradient_evals,
                                   state=self.state, history=history)
        self._dbg(f"[lbfgs] converged after {k} iterations: value = {f:.3f}")
        return self._result

    def result(self) -> LBFGSResult:
        if self._result is None: raise InvalidStateError("Not calculated.")
        return self._result
