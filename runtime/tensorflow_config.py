import os, sys

# ------------------------------------------------------------------------
# Configure tensorflow
# ------------------------------------------------------------------------

# Instructions:
# Call configure once in the __main__ file before importing the rest of the project
# Then use @tf_compile as decorator for the small vector kernels
#
# ------------------------------------------------------------------------
# Example: in __main__
#
# import runtime.tensorflow_config as cfg
#  if __name__ == "__main__":
#    cfg.configure(mode="eager")
#    from objectives.fitting import fit_logistic_regression   # rest of the project
#
# ------------------------------------------------------------------------
# Example: in any other file:
#
# from runtime.tensorflow_config import tf_compile
# @tf_compile
# def _dot(a, b):
#    ...


_MODE = "graph"
_REDUCE_RETRACING = True
_JIT_DEFAULT = False


# ---------- Public API ----------

def configure(*,
              mode: str = "eager",
              use_onednn: bool = True,
              use_gpu: bool = False,
              reduce_retracing: bool = True,
              jit_compile: bool = False,
              log_level: str = "2",
              precision: str = "float64",  # "float32" | "float64"
              num_threads_CPU: int = None,
              deterministic_ops: bool = True,
              seed: int = 0,
              show_summary: bool = True):
    """
    Global TensorFlow runtime configuration for the minimizers.
    Must be called before TensorFlow is imported anywhere.

    By default, the configuration is for debugging (eager, fp64, CPU only).

    :param mode: 'eager' (use for debugging), 'graph' (fast), 'graph_xla'
    :param use_onednn: True to apply intel OneDNN on CPU (no effect on GPU)
    :param use_gpu: False hides all GPUs
    :param reduce_retracing: True (fewer retraces of the vector kernels)
    :param jit_compile: True to XLA-compile the vector kernels
    :param log_level: value of TF_CPP_MIN_LOG_LEVEL
    :param precision: "float32" | "float64" (keras floatx)
    :param num_threads_CPU: integer to limit the number of threads if running on CPU
    :param deterministic_ops: True for reproducible kernels
    :param seed: int (-1 for no seed) (Set the seed for numpy, tensorflow and random)
    :param show_summary: True to print a one-line summary of the configuration
    """

    global _REDUCE_RETRACING, _JIT_DEFAULT
    if "tensorflow" in sys.modules:
        raise RuntimeError("configure() must run before importing TensorFlow")
    if precision not in ("float32", "float64"):
        raise ValueError("precision must be 'float32' or 'float64'")

    _REDUCE_RETRACING = reduce_retracing
    _JIT_DEFAULT = bool(jit_compile) or (mode == "graph_xla")

    # ---- Env flags (must be set before TF import) ----
    if use_onednn:
        os.environ["TF_ENABLE_ONEDNN_OPTS"] = "1"
    else:
        os.environ.pop("TF_ENABLE_ONEDNN_OPTS", None)

    os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", log_level)

    if deterministic_ops:
        os.environ["TF_DETERMINISTIC_OPS"] = "1"
    else:
        os.environ.pop("TF_DETERMINISTIC_OPS", None)

    # ---- Import TF AFTER env flags ----
    import tensorflow as tf

    if not use_gpu:
        tf.config.set_visible_devices([], "GPU")

    set_tf_mode(mode)
    tf.keras.backend.set_floatx(precision)

    if num_threads_CPU is not None:
        tf.config.threading.set_intra_op_parallelism_threads(num_threads_CPU)
        tf.config.threading.set_inter_op_parallelism_threads(num_threads_CPU)

    if seed != -1:
        import random, numpy as np
        random.seed(seed)
        np.random.seed(seed)
        tf.random.set_seed(seed)

    if show_summary:
        print_tf_summary(seed)


def print_tf_summary(seed_used: int = -1):
    import tensorflow as tf

    py_ver = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    gpus = tf.config.get_visible_devices("GPU")
    det_ops = os.environ.get("TF_DETERMINISTIC_OPS", "0")
    one_dnn = os.environ.get("TF_ENABLE_ONEDNN_OPTS", "1")
    seed_used_str = f"{seed_used}" if seed_used != -1 else "None"

    print(
        f"[TF] py={py_ver} tf={tf.__version__} | floatx={tf.keras.backend.floatx()} | "
        f"GPUs={len(gpus)} | oneDNN={one_dnn} | exec={_MODE} | XLA={_JIT_DEFAULT} | "
        f"det_ops={det_ops} | seed={seed_used_str}"
    )


def set_tf_mode(mode: str):
    import tensorflow as tf
    global _MODE
    if mode not in {"eager", "graph", "graph_xla"}:
        raise ValueError("mode must be 'eager', 'graph', or 'graph_xla'")
    _MODE = mode
    tf.config.run_functions_eagerly(mode == "eager")


def get_mode() -> str:
    return _MODE


def tf_compile(fn=None, *, reduce_retracing=None, jit=None):
    """
        Decorator: uses per-function overrides if provided, else global defaults.
        - reduce_retracing: True/False or None (use global)
        - jit: True/False or None (use global)
    """

    def _wrap(f):
        import tensorflow as tf  # deferred import
        if _MODE == "eager":
            return f
        rr = _REDUCE_RETRACING if (reduce_retracing is None) else bool(reduce_retracing)
        jc = _JIT_DEFAULT if (jit is None) else bool(jit)
        return tf.function(f, reduce_retracing=rr, jit_compile=jc)

    return _wrap(fn) if fn is not None else _wrap
