import tensorflow as tf
from runtime.misc import cast_all
from objectives.function import TapeFunction


class LogisticRegressionObjective(TapeFunction):
    """
    Mean negative log-likelihood of a binary log-linear model plus an L2 penalty
    on the feature weights:

        f(w) = mean_i [ softplus(z_i) - y_i z_i ] + l2/2 |w_features|^2,   z = X w + b

    The parameter vector is [w_features, b] when fit_intercept is True.
    """

    def __init__(self, features, labels, l2: float = 0.0, fit_intercept: bool = True, dtype=tf.float64):
        X, y = cast_all(features, labels, dtype=dtype)
        if X.shape.rank != 2:
            raise ValueError("features must be a 2-D array (samples, features)")
        y = tf.reshape(y, [-1])
        if y.shape[0] != X.shape[0]:
            raise ValueError(f"{X.shape[0]} samples but {y.shape[0]} labels")
        if l2 < 0.0:
            raise ValueError("l2 must be >= 0")
        self.X, self.y = X, y
        self.n_features = int(X.shape[1])
        self.fit_intercept = bool(fit_intercept)
        self.l2 = tf.constant(l2, dtype)
        super().__init__(self._nll, self.n_features + int(self.fit_intercept), dtype=dtype)

    def logits(self, w):
        z = tf.linalg.matvec(self.X, w[:self.n_features])
        if self.fit_intercept:
            z = z + w[self.n_features]
        return z

    def _nll(self, w):
        z = self.logits(w)
        nll = tf.reduce_mean(tf.nn.sigmoid_cross_entropy_with_logits(labels=self.y, logits=z))
        w_f = w[:self.n_features]
        return nll + 0.5 * self.l2 * tf.reduce_sum(w_f * w_f)

    def predict_proba(self, weights) -> tf.Tensor:
        return tf.sigmoid(self.logits(self._point(weights)))
