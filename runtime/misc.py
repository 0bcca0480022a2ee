import csv, json
import tensorflow as tf


# ---------------------------------------
# Casting
# ---------------------------------------

def cast_all(*variable_list, dtype):
    r = []
    for b in variable_list:
        r.append(tf.cast(tf.convert_to_tensor(b), dtype))
    return tuple(r)


# ---------------------------------------
# Serialization
# ---------------------------------------

def jsonable(obj):
    if isinstance(obj, tf.dtypes.DType): return obj.name
    if hasattr(obj, "get_config"): return jsonable(obj.get_config())
    if isinstance(obj, (list, tuple)): return [jsonable(x) for x in obj]
    if isinstance(obj, dict): return {k: jsonable(v) for k, v in obj.items()}
    try:
        _ = json.dumps(obj)
        return obj
    except (TypeError, ValueError):
        return str(obj)


def to_csv(csv_path, mode, data):
    with open(csv_path, mode, newline="") as f:
        csv.writer(f).writerow(data)


def trace_to_csv(csv_path, trace: dict):
    """Write a per-iteration trace (dict of equal-length lists) as a CSV file with a header row."""
    keys = list(trace.keys())
    to_csv(csv_path, "w", ["iter"] + keys)
    n = len(trace[keys[0]]) if keys else 0
    for i in range(n):
        to_csv(csv_path, "a", [i + 1] + [trace[k][i] for k in keys])
