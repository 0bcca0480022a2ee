import json
from pathlib import Path
from typing import Callable, Optional
import tensorflow as tf

from minimizers.lbfgs import LBFGS, LBFGSResult
from objectives.fit_config import FitConfig
from objectives.logistic import LogisticRegressionObjective
from runtime.misc import jsonable, trace_to_csv
from runtime.charts import plot_trace


def fit_logistic_regression(features, labels, cfg: FitConfig,
                            debug_info: Optional[Callable[[tf.Tensor], Optional[str]]] = None) -> LBFGSResult:
    """
    Fit a logistic regression by L-BFGS and leave a trace of the run in cfg.model_dir:
    hyperparams.json, the per-iteration CSV and (optionally) the convergence chart.
    """
    objective = LogisticRegressionObjective(features, labels, l2=cfg.l2,
                                            fit_intercept=cfg.fit_intercept, dtype=cfg.dtype)

    out_dir = Path(cfg.model_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    lbfgs_cfg = cfg.lbfgs_config()
    with open(out_dir / "hyperparams.json", "w") as f:
        json.dump({
            "fit": jsonable(cfg),
            "lbfgs": jsonable(lbfgs_cfg),
            "samples": int(objective.X.shape[0]),
            "parameters": objective.size(),
        }, f, indent=2)

    minimizer = LBFGS(objective, lbfgs_cfg, debug_info=debug_info)
    result = minimizer.run()

    trace_to_csv(out_dir / cfg.log_csv, result.history)
    if cfg.save_chart or cfg.show_chart:
        plot_trace(result.history, path=out_dir / cfg.chart_pdf if cfg.save_chart else None,
                   show=cfg.show_chart)

    print(f"[fit] {result.iters} iterations, {result.total_evals} evaluations, "
          f"f={result.f:.6e} |g|={result.g_norm:.3e} -> {out_dir}")
    return result
