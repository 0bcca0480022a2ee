import tensorflow as tf
from minimizers.lbfgs import LBFGSConfig, DEFAULT_MEMORY, DEFAULT_CONVERGENCE


class FitConfig:
    def __init__(
            self,
            model_dir: str = "no name",
            log_csv: str = "lbfgs_trace.csv",

            # model
            l2: float = 1e-3,
            fit_intercept: bool = True,

            # limited memory BFGS
            memory: int = DEFAULT_MEMORY,
            convergence: float = DEFAULT_CONVERGENCE,
            line_search: str = "armijo",  # "armijo" or "strong_wolfe"
            armijo_c1: float = 1e-4,
            armijo_window: int = 1,  # 1 for monotone armijo, >1 otherwise
            backtrack_factor: float = 0.5,
            wolfe_c2: float = 0.9,
            max_evals_per_iter: int = 60,
            max_iters: int = None,  # None → run to convergence
            debug_checks: bool = True,  # runtime finite/NaN checks
            verbose: bool = False,
            dtype=tf.float64,

            # convergence chart
            save_chart: bool = False,
            show_chart: bool = False,
            chart_pdf: str = "convergence.pdf",
    ):
        self.model_dir = model_dir
        self.log_csv = log_csv
        self.l2 = l2
        self.fit_intercept = fit_intercept
        self.memory = memory
        self.convergence = convergence
        self.line_search = line_search
        self.armijo_c1 = armijo_c1
        self.armijo_window = armijo_window
        self.backtrack_factor = backtrack_factor
        self.wolfe_c2 = wolfe_c2
        self.max_evals_per_iter = max_evals_per_iter
        self.max_iters = max_iters
        self.debug_checks = debug_checks
        self.verbose = verbose
        self.dtype = dtype
        self.save_chart = save_chart
        self.show_chart = show_chart
        self.chart_pdf = chart_pdf

    def lbfgs_config(self) -> LBFGSConfig:
        return LBFGSConfig(m=self.memory, convergence=self.convergence, line_search=self.line_search,
                           armijo_c1=self.armijo_c1, armijo_window=self.armijo_window,
                           backtrack_factor=self.backtrack_factor, wolfe_c2=self.wolfe_c2,
                           max_evals_per_iter=self.max_evals_per_iter, max_iters=self.max_iters,
                           debug_checks=self.debug_checks, verbose=self.verbose, dtype=self.dtype)

    def get_config(self) -> dict:
        """Return configuration as a plain dictionary (safe for JSON)."""
        d = dict(self.__dict__)
        d["dtype"] = tf.as_dtype(self.dtype).name
        return d

    def __repr__(self):
        return f"FitConfig({self.get_config()})"
