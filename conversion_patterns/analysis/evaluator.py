"""Combination evaluator: model fit plus business metrics for one entity pair."""

from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

import numpy as np

from contracts import CombinationResult, Observation, UserRecord
from conversion_patterns.analysis.aggregator import index_pair_counts
from conversion_patterns.analysis.logistic import fit_logistic_regression


# intercept + slope
NUM_PARAMETERS = 2


class CombinationEvaluator:
    """
    Scores entity pairs against a fixed user population.

    The population is laid out once: user order, the outcome vector and one
    boolean membership column per candidate entity. Evaluating a pair is
    then an AND of two columns followed by a 2-parameter fit. Instances are
    read-only after construction and safe to share between worker threads.
    """

    def __init__(
        self,
        users: Mapping[str, UserRecord],
        entity_ids: Sequence[str],
        observations: Optional[Iterable[Observation]] = None,
        max_iterations: int = 20,
    ):
        self.max_iterations = max_iterations
        self.user_ids = list(users)
        self._columns: Dict[str, int] = {eid: col for col, eid in enumerate(entity_ids)}

        records = list(users.values())
        n_users = len(records)
        self._converted = np.fromiter((u.converted for u in records), dtype=bool, count=n_users)
        self._y = self._converted.astype(np.float64)

        self._membership = np.zeros((n_users, len(self._columns)), dtype=bool)
        for row, user in enumerate(records):
            for eid in user.entity_ids:
                col = self._columns.get(eid)
                if col is not None:
                    self._membership[row, col] = True

        # Business totals need the raw rows; without them the totals stay None
        self._views: Optional[np.ndarray] = None
        self._outcome_counts: Optional[np.ndarray] = None
        if observations is not None:
            self._index_business_counts(observations)

    @property
    def population_size(self) -> int:
        return len(self.user_ids)

    @property
    def has_business_totals(self) -> bool:
        return self._views is not None

    def _index_business_counts(self, observations: Iterable[Observation]) -> None:
        rows = {uid: i for i, uid in enumerate(self.user_ids)}
        shape = self._membership.shape
        self._views = np.zeros(shape, dtype=np.int64)
        self._outcome_counts = np.zeros(shape, dtype=np.int64)
        for (uid, eid), (views, outcomes) in index_pair_counts(observations, self._columns).items():
            row = rows.get(uid)
            if row is None:
                continue
            col = self._columns[eid]
            self._views[row, col] = views
            self._outcome_counts[row, col] = outcomes

    def _column(self, entity_id: str) -> int:
        try:
            return self._columns[entity_id]
        except KeyError:
            raise ValueError(f"Entity is not a search candidate: {entity_id!r}") from None

    def exposure_vector(self, combination: Tuple[str, str]) -> np.ndarray:
        """True for users exposed to both entities."""
        first, second = combination
        return self._membership[:, self._column(first)] & self._membership[:, self._column(second)]

    def evaluate(self, combination: Tuple[str, str]) -> CombinationResult:
        """
        Fit and score one pair.

        Precision and recall treat the raw exposure indicator as the
        prediction; the fitted probabilities are not thresholded. All ratios
        fall back to 0 on a zero denominator.
        """
        exposed = self.exposure_vector(combination)
        converted = self._converted

        fit = fit_logistic_regression(
            exposed.astype(np.float64), self._y, max_iterations=self.max_iterations
        )
        aic = 2 * NUM_PARAMETERS - 2 * fit.log_likelihood

        n = self.population_size
        overall_rate = float(np.count_nonzero(converted)) / n if n else 0.0

        true_positives = int(np.count_nonzero(exposed & converted))
        false_positives = int(np.count_nonzero(exposed & ~converted))
        false_negatives = int(np.count_nonzero(~exposed & converted))

        predicted = true_positives + false_positives
        actual = true_positives + false_negatives
        precision = true_positives / predicted if predicted > 0 else 0.0
        recall = true_positives / actual if actual > 0 else 0.0

        exposed_total = predicted
        exposed_converters = true_positives
        rate_in_group = exposed_converters / exposed_total if exposed_total > 0 else 0.0
        lift = rate_in_group / overall_rate if overall_rate > 0 else 0.0

        total_views_1 = total_views_2 = total_copies = None
        if self.has_business_totals:
            first, second = self._column(combination[0]), self._column(combination[1])
            total_views_1 = int(self._views[exposed, first].sum())
            total_views_2 = int(self._views[exposed, second].sum())
            total_copies = int(
                self._outcome_counts[exposed, first].sum()
                + self._outcome_counts[exposed, second].sum()
            )

        return CombinationResult(
            combination=(combination[0], combination[1]),
            log_likelihood=fit.log_likelihood,
            aic=aic,
            odds_ratio=fit.odds_ratio,
            precision=precision,
            recall=recall,
            lift=lift,
            users_with_exposure=exposed_total,
            conversion_rate_in_group=rate_in_group,
            overall_conversion_rate=overall_rate,
            total_conversions=exposed_converters,
            total_views_1=total_views_1,
            total_views_2=total_views_2,
            total_copies=total_copies,
        )


def evaluate_combination(
    combination: Tuple[str, str],
    users: Mapping[str, UserRecord],
    max_iterations: int = 20,
) -> CombinationResult:
    """One-off evaluation without building a shared evaluator first."""
    evaluator = CombinationEvaluator(users, list(combination), max_iterations=max_iterations)
    return evaluator.evaluate(combination)
