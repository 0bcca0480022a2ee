import runtime.tensorflow_config as cfg
import os

if __name__ == "__main__":

    # ----------------------------------------------------
    # Configure tensorflow for debugging or reproducibility
    # ----------------------------------------------------

    cfg.configure(mode=os.environ.get("LBFGS_TF_MODE", "eager"), seed=1)

    # ----------------------------------------------------
    # note: The imports below must be done after call to configure()
    # ----------------------------------------------------
    import numpy as np
    from objectives.fit_config import FitConfig
    from objectives.fitting import fit_logistic_regression

    rng = np.random.default_rng(1)
    n, d = 2000, 5
    true_w = rng.normal(size=d)
    X = rng.normal(size=(n, d))
    p = 1.0 / (1.0 + np.exp(-(X @ true_w + 0.5)))
    y = (rng.uniform(size=n) < p).astype(np.float64)

    print("----------------------------------------------------------------------------")
    print("Fitting a logistic regression by L-BFGS on synthetic data.")
    print("----------------------------------------------------------------------------")

    c = FitConfig(model_dir="experiment/logistic", l2=1e-3, convergence=1e-6, verbose=True, save_chart=True)
    result = fit_logistic_regression(X, y, c)

    print("true weights:     ", np.round(np.append(true_w, 0.5), 3))
    print("estimated weights:", np.round(result.x.numpy(), 3))
