from __future__ import annotations
import math
from collections import deque
from dataclasses import dataclass
from typing import Deque
from minimizers.vectors import dot, axpy
from minimizers.errors import LineSearchError

# =================== Line searches ====================
# All searches work on phi(alpha) = f(x + alpha d) and only read the objective
# through function.value / function.gradient, so a caching objective can serve
# the engine's next evaluation at the accepted point.


@dataclass
class LineSearchResult:
    alpha: float
    f: float
    evals: int
    backtracks: int
    success: bool
    reason: str = ""


class LineSearchBase:

    def search(self, function, x, d, f=None, g=None) -> LineSearchResult:
        raise NotImplementedError

    def find_rate(self, function, x, d) -> float:
        """Positive step length along d, raises LineSearchError when none is found."""
        res = self.search(function, x, d)
        if not res.success:
            raise LineSearchError(res.reason, res.alpha, res.evals)
        return res.alpha

    def reset(self):
        pass

    @staticmethod
    def _start(function, x, d, f, g):
        f0 = float(function.value(x)) if f is None else float(f)
        g0 = function.gradient(x) if g is None else g
        return f0, dot(g0, d)


class ArmijoLineSearch(LineSearchBase):
    """
    Backtracking on the sufficient decrease condition
        f(x + alpha d) <= f_ref + c1 alpha g^T d
    f_ref is f(x) for window == 1, else the max of the last `window` values seen
    at the start of a search (non-monotone Grippo-Lampariello-Lucidi),
    kept in a deque bounded by the window.
    Non-finite trial values count as failed trials.
    """

    def __init__(self, c1=1e-4, backtrack=0.5, initial_step=1.0, window=1, max_evals=60):
        if not 0.0 < c1 < 1.0: raise ValueError("c1 must be in (0, 1)")
        if not 0.0 < backtrack < 1.0: raise ValueError("backtrack must be in (0, 1)")
        if not initial_step > 0.0: raise ValueError("initial_step must be positive")
        if int(window) < 1: raise ValueError("window must be >= 1")
        if int(max_evals) < 1: raise ValueError("max_evals must be >= 1")
        self.c1 = float(c1)
        self.backtrack = float(backtrack)
        self.initial_step = float(initial_step)
        self.window = int(window)
        self.max_evals = int(max_evals)
        self.f_hist: Deque[float] = deque(maxlen=self.window)

    def reset(self):
        self.f_hist.clear()

    def search(self, function, x, d, f=None, g=None) -> LineSearchResult:
        f0, gTd = self._start(function, x, d, f, g)
        if not gTd < 0.0:
            return LineSearchResult(0.0, f0, 0, 0, False, "non-descent direction")
        self.f_hist.append(f0)
        f_ref = max(self.f_hist)
        alpha = self.initial_step
        backtracks, evals = 0, 0
        while True:
            f_try = float(function.value(axpy(alpha, d, x)))
            evals += 1
            if math.isfinite(f_try) and f_try <= f_ref + self.c1 * alpha * gTd:
                return LineSearchResult(alpha, f_try, evals, backtracks, True, "accepted")
            if evals >= self.max_evals:
                return LineSearchResult(alpha, f_try, evals, backtracks, False,
                                        f"no sufficient decrease within {evals} evaluations")
            alpha *= self.backtrack
            backtracks += 1


class StrongWolfeLineSearch(LineSearchBase):
    """Bracketing then bisection zoom on the strong Wolfe conditions (c1, c2)."""

    def __init__(self, c1=1e-4, c2=0.9, initial_step=1.0, max_step=1e10, max_evals=20):
        if not 0.0 < c1 < c2 < 1.0: raise ValueError("need 0 < c1 < c2 < 1")
        if not 0.0 < initial_step <= max_step: raise ValueError("need 0 < initial_step <= max_step")
        if int(max_evals) < 1: raise ValueError("max_evals must be >= 1")
        self.c1, self.c2 = float(c1), float(c2)
        self.initial_step, self.max_step = float(initial_step), float(max_step)
        self.max_evals = int(max_evals)

    @staticmethod
    def _phi(function, x, d, a):
        x_try = axpy(a, d, x)
        return float(function.value(x_try)), function.gradient(x_try)

    def _armijo_ok(self, f_a, a, f0, g0Td):
        return math.isfinite(f_a) and f_a <= f0 + self.c1 * a * g0Td

    def search(self, function, x, d, f=None, g=None) -> LineSearchResult:
        f0, g0Td = self._start(function, x, d, f, g)
        if not g0Td < 0.0:
            return LineSearchResult(0.0, f0, 0, 0, False, "non-descent direction")
        a0, a1 = 0.0, self.initial_step
        f_a0 = f0
        f_a1, g_a1 = self._phi(function, x, d, a1)
        evals = 1
        while True:
            if not self._armijo_ok(f_a1, a1, f0, g0Td) or (evals > 1 and f_a1 >= f_a0):
                return self._zoom(function, x, d, a0, a1, f_a0, f0, g0Td, evals)
            g_a1Td = dot(g_a1, d)
            if abs(g_a1Td) <= -self.c2 * g0Td:
                return LineSearchResult(a1, f_a1, evals, 0, True, "accepted")
            if g_a1Td >= 0.0:
                return self._zoom(function, x, d, a1, a0, f_a1, f0, g0Td, evals)
            if evals >= self.max_evals or a1 >= self.max_step:
                # sufficient decrease holds at a1, only curvature is missing
                return LineSearchResult(a1, f_a1, evals, 0, True, "eval_cap")
            a0, f_a0 = a1, f_a1
            a1 = min(self.max_step, 2.0 * a1)
            f_a1, g_a1 = self._phi(function, x, d, a1)
            evals += 1

    def _zoom(self, function, x, d, alo, ahi, flo, f0, g0Td, evals):
        # invariant: alo (when > 0) satisfies sufficient decrease and has the lowest value so far
        backtracks = 0
        aj, f_aj = alo, flo
        while evals < self.max_evals:
            aj = 0.5 * (alo + ahi)
            f_aj, g_aj = self._phi(function, x, d, aj)
            evals += 1
            backtracks += 1
            if not self._armijo_ok(f_aj, aj, f0, g0Td) or f_aj >= flo:
                ahi = aj
            else:
                g_ajTd = dot(g_aj, d)
                if abs(g_ajTd) <= -self.c2 * g0Td:
                    return LineSearchResult(aj, f_aj, evals, backtracks, True, "zoom")
                if g_ajTd * (ahi - alo) >= 0.0:
                    ahi = alo
                alo, flo = aj, f_aj
        if alo > 0.0:
            return LineSearchResult(alo, flo, evals, backtracks, True, "eval_cap")
        return LineSearchResult(aj, f_aj, evals, backtracks, False,
                                f"no sufficient decrease within {evals} evaluations")


def make_line_search(cfg) -> LineSearchBase:
    if cfg.line_search == "armijo":
        return ArmijoLineSearch(c1=cfg.armijo_c1, backtrack=cfg.backtrack_factor,
                                window=cfg.armijo_window, max_evals=cfg.max_evals_per_iter)
    if cfg.line_search == "strong_wolfe":
        return StrongWolfeLineSearch(c1=cfg.armijo_c1, c2=cfg.wolfe_c2, max_evals=cfg.max_evals_per_iter)
    raise ValueError("line_search must be 'armijo' or 'strong_wolfe'")
