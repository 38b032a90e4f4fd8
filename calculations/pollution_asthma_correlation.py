import math
from dataclasses import dataclass
from datetime import date, timedelta

from scipy import stats

MIN_SERIES_POINTS = 5
MIN_ALIGNED_PAIRS = 3
DEFAULT_MAX_LAG = 7
# Shown when no lag produced a result; a display policy, not a statistic.
DEFAULT_OPTIMAL_LAG = 1
SIGNIFICANCE_LEVEL = 0.05


@dataclass(frozen=True)
class CorrelationResult:
    pollutant: str
    outcome_metric: str
    correlation_coefficient: float
    significance: float
    lag: int
    start_date: date
    end_date: date
    sample_size: int
    p_value: float

    @property
    def is_significant(self):
        return self.significance < SIGNIFICANCE_LEVEL


def _check_lag(lag, name='lag'):
    if isinstance(lag, bool) or not isinstance(lag, int):
        raise ValueError(f"{name} must be a whole number of days, got {lag!r}")


def align_series(pollution, outcome, lag):
    """
    Pair each pollution reading with the outcome recorded exactly `lag` days later.

    Only exact calendar-day matches count. Pairs come back in the pollution
    series order.
    """
    _check_lag(lag)
    outcome_by_date = {}
    for point in outcome:
        outcome_by_date.setdefault(point.date, point.value)

    shift = timedelta(days=lag)
    pairs = []
    for point in pollution:
        match = outcome_by_date.get(point.date + shift)
        if match is not None:
            pairs.append((point.value, match))
    return pairs


def pearson_correlation(pairs):
    n = len(pairs)
    if n < MIN_ALIGNED_PAIRS:
        return None
    xs = [x for x, _ in pairs]
    ys = [y for _, y in pairs]
    # A flat series has no variance; rounding can hide that from the sums.
    if len(set(xs)) < 2 or len(set(ys)) < 2:
        return None

    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in pairs)
    sum_xx = sum(x * x for x in xs)
    sum_yy = sum(y * y for y in ys)

    numerator = n * sum_xy - sum_x * sum_y
    spread = (n * sum_xx - sum_x * sum_x) * (n * sum_yy - sum_y * sum_y)
    if spread <= 0:
        return None
    denominator = math.sqrt(spread)
    if denominator == 0:
        return None
    return max(-1.0, min(1.0, numerator / denominator))


def _t_statistic(r, n):
    remainder = 1 - r * r
    if remainder <= 0:
        return math.copysign(math.inf, r)
    return r * math.sqrt((n - 2) / remainder)


def significance_estimate(r, n):
    """
    Rough significance score in [0.02, 2]; lower means stronger evidence.

    This is the dashboard's long-standing heuristic, not a p-value. Thresholds
    like "< 0.05" downstream were tuned against it, so keep the formula as is.
    """
    t = _t_statistic(r, n)
    return 2 * (1 - min(0.99, abs(t) / 10))


def student_t_p_value(r, n):
    """Two-sided p-value for r under a Student's t distribution with n - 2 dof."""
    t = _t_statistic(r, n)
    return float(2 * stats.t.sf(abs(t), n - 2))


def calculate_pollution_asthma_correlation(
    pollution,
    outcome,
    lag=0,
    pollutant="PM2.5",
    outcome_metric="Emergency Visits",
):
    """
    Correlate pollution with the outcome series shifted by `lag` days.

    Returns None when either series is too short, too few days line up, or
    one side is flat.
    """
    _check_lag(lag)
    if lag < 0:
        raise ValueError(f"lag must be non-negative, got {lag}")
    if len(pollution) < MIN_SERIES_POINTS or len(outcome) < MIN_SERIES_POINTS:
        return None

    pairs = align_series(pollution, outcome, lag)
    r = pearson_correlation(pairs)
    if r is None:
        return None

    n = len(pairs)
    return CorrelationResult(
        pollutant=pollutant,
        outcome_metric=outcome_metric,
        correlation_coefficient=r,
        significance=significance_estimate(r, n),
        lag=lag,
        start_date=pollution[0].date,
        end_date=pollution[-1].date,
        sample_size=n,
        p_value=student_t_p_value(r, n),
    )


def generate_time_lag_analysis(
    pollution,
    outcome,
    max_lag=DEFAULT_MAX_LAG,
    pollutant="PM2.5",
    outcome_metric="Emergency Visits",
):
    """
    Correlate at every lag from 0 to max_lag and rank by |r|, strongest first.

    Lags without enough data are skipped. Ties stay in ascending lag order.
    """
    _check_lag(max_lag, 'max_lag')
    if max_lag < 0:
        raise ValueError(f"max_lag must be non-negative, got {max_lag}")

    results = []
    for lag in range(max_lag + 1):
        result = calculate_pollution_asthma_correlation(pollution, outcome, lag, pollutant, outcome_metric)
        if result is not None:
            results.append(result)

    results.sort(key=lambda item: abs(item.correlation_coefficient), reverse=True)
    return results


def optimal_lag(results, default=DEFAULT_OPTIMAL_LAG):
    if not results:
        return default
    return results[0].lag


def report_time_lag_analysis(
    pollution,
    outcome,
    max_lag=DEFAULT_MAX_LAG,
    pollutant="PM2.5",
    outcome_metric="Emergency Visits",
    verbose=True,
):
    results = generate_time_lag_analysis(pollution, outcome, max_lag, pollutant, outcome_metric)
    if verbose:
        if not results:
            print(
                f"Not enough overlapping data to correlate {pollutant} with {outcome_metric} "
                f"(need {MIN_SERIES_POINTS}+ points per series and {MIN_ALIGNED_PAIRS}+ aligned days)."
            )
        else:
            print(f"{pollutant} vs {outcome_metric} by lag (strongest first):")
            for entry in results:
                flag = "*" if entry.is_significant else " "
                print(
                    f"{flag} lag {entry.lag}d: r={entry.correlation_coefficient:+.3f} "
                    f"significance={entry.significance:.3f} p={entry.p_value:.4f} (n={entry.sample_size})"
                )
            print(
                f"Optimal lag: {optimal_lag(results)} day(s), "
                f"{results[0].start_date.isoformat()} to {results[0].end_date.isoformat()}"
            )
    return results
