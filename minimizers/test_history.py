import numpy as np
import pytest
import tensorflow as tf

from minimizers.history import IterationHistory, IterationRecord
from minimizers.errors import DimensionMismatchError


def _record(tag):
    return IterationRecord(tf.constant([float(tag), 0.0], tf.float64), tf.constant([1.0, float(tag)], tf.float64))


def _tags(records):
    return [int(r.point_diff[0]) for r in records]


def test_keeps_the_most_recent_records_in_order():
    history = IterationHistory(3)
    for i in range(1, 8):
        history.push(_record(i))
        assert len(history) <= 3
    assert len(history) == 3
    assert _tags(history.oldest_first()) == [5, 6, 7]
    assert _tags(history.newest_first()) == [7, 6, 5]
    assert _tags([history.newest()]) == [7]


def test_capacity_one():
    history = IterationHistory(1)
    history.push(_record(1))
    history.push(_record(2))
    assert _tags(history.oldest_first()) == [2]


def test_empty_history():
    history = IterationHistory()
    assert history.capacity == 20
    assert len(history) == 0 and not history
    assert history.newest() is None
    assert list(history.newest_first()) == []
    history.push(_record(1))
    history.clear()
    assert not history


def test_invalid_capacity():
    with pytest.raises(ValueError):
        IterationHistory(0)


def test_record_from_steps():
    x, x_prev = tf.constant([1.0, 3.0], tf.float64), tf.constant([0.5, 1.0], tf.float64)
    g, g_prev = tf.constant([2.0, 0.0], tf.float64), tf.constant([1.0, 4.0], tf.float64)
    record = IterationRecord.from_steps(x, x_prev, g, g_prev)
    np.testing.assert_array_equal(record.point_diff.numpy(), [0.5, 2.0])
    np.testing.assert_array_equal(record.gradient_diff.numpy(), [1.0, -4.0])
    assert record.curvature == 0.5 - 8.0


def test_record_sizes_must_match():
    with pytest.raises(DimensionMismatchError):
        IterationRecord(tf.constant([1.0], tf.float64), tf.constant([1.0, 2.0], tf.float64))
