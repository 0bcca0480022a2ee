import matplotlib

matplotlib.use("Agg")

import runtime.tensorflow_config as cfg

# must run before anything imports tensorflow
cfg.configure(mode="graph", precision="float64", deterministic_ops=True, seed=1, show_summary=False)
