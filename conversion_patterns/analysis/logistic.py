"""Univariate logistic regression fitted by Newton-Raphson."""

from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np
from scipy.special import expit


ArrayLike = Union[Sequence[float], np.ndarray]

SINGULAR_DET = 1e-10
STEP_TOLERANCE = 1e-6
LOG_EPSILON = 1e-10


@dataclass(frozen=True)
class LogisticFit:
    """Fitted intercept/slope and the Bernoulli log-likelihood."""
    beta0: float
    beta1: float
    log_likelihood: float
    iterations: int = 0
    converged: bool = False
    singular: bool = False  # stopped on a near-singular Hessian

    @property
    def odds_ratio(self) -> float:
        """exp(beta1), saturating to inf instead of overflowing."""
        with np.errstate(over="ignore"):
            return float(np.exp(self.beta1))


def log_likelihood(x: np.ndarray, y: np.ndarray, beta0: float, beta1: float) -> float:
    """Bernoulli log-likelihood with 1e-10 added inside each log."""
    p = expit(beta0 + beta1 * x)
    return float(np.sum(y * np.log(p + LOG_EPSILON) + (1.0 - y) * np.log(1.0 - p + LOG_EPSILON)))


def fit_logistic_regression(
    x: ArrayLike,
    y: ArrayLike,
    max_iterations: int = 20,
) -> LogisticFit:
    """
    Fit P(y=1 | x) = sigmoid(beta0 + beta1 * x).

    Newton-Raphson from (0, 0) with the 2x2 system solved through the
    closed-form inverse. Iteration stops when the Hessian determinant drops
    below 1e-10 (no variation, or a saturated separable fit) or when both
    steps are below 1e-6. Never raises for non-convergence: the parameters
    reached so far are returned.

    Args:
        x: Exposure indicator per user (whole population)
        y: Outcome per user, same length as x
        max_iterations: Newton step budget

    Returns:
        LogisticFit
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if x.shape != y.shape:
        raise ValueError(f"x and y must have identical shapes, got {x.shape} and {y.shape}")
    if x.ndim != 1:
        raise ValueError("x and y must be one-dimensional")

    beta0 = 0.0
    beta1 = 0.0
    iterations = 0
    converged = False
    singular = False

    for _ in range(max_iterations):
        p = expit(beta0 + beta1 * x)
        diff = y - p
        w = p * (1.0 - p)

        g0 = float(diff.sum())
        g1 = float((diff * x).sum())
        h00 = float(w.sum())
        h01 = float((w * x).sum())
        h11 = float((w * x * x).sum())

        det = h00 * h11 - h01 * h01
        if abs(det) < SINGULAR_DET:
            singular = True
            break

        delta0 = (h11 * g0 - h01 * g1) / det
        delta1 = (h00 * g1 - h01 * g0) / det
        beta0 += delta0
        beta1 += delta1
        iterations += 1

        if abs(delta0) < STEP_TOLERANCE and abs(delta1) < STEP_TOLERANCE:
            converged = True
            break

    return LogisticFit(
        beta0=beta0,
        beta1=beta1,
        log_likelihood=log_likelihood(x, y, beta0, beta1),
        iterations=iterations,
        converged=converged,
        singular=singular,
    )
