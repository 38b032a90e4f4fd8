import math
from collections import Counter
from dataclasses import dataclass
from datetime import date
from enum import Enum

DEFAULT_POLLUTION_THRESHOLD = 35  # PM2.5 AQI
DEFAULT_OUTCOME_PERCENTILE = 75


class AlertLevel(str, Enum):
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


@dataclass(frozen=True)
class AlertDay:
    date: date
    pollution_value: float
    outcome_value: float
    alert_level: AlertLevel


def percentile_threshold(values, percentile):
    """
    Value sitting at `percentile` of the ascending-sorted values.

    Uses index floor(n * percentile / 100), clamped into range. Empty input gives 0.
    """
    ordered = sorted(values)
    if not ordered:
        return 0
    index = math.floor(len(ordered) * percentile / 100)
    index = max(0, min(len(ordered) - 1, index))
    return ordered[index]


def classify_alert_level(pollution_value, outcome_value, pollution_threshold, outcome_threshold):
    polluted = pollution_value >= pollution_threshold
    elevated = outcome_value >= outcome_threshold
    if polluted and elevated:
        return AlertLevel.HIGH
    if polluted or elevated:
        return AlertLevel.MODERATE
    return AlertLevel.LOW


def identify_alert_days(
    pollution,
    outcome,
    pollution_threshold=DEFAULT_POLLUTION_THRESHOLD,
    outcome_percentile=DEFAULT_OUTCOME_PERCENTILE,
):
    """
    Label each pollution day high/moderate/low against same-day outcomes.

    The outcome cut-off adapts to the outcome series itself (its percentile),
    while pollution uses a fixed threshold. Days with no outcome reading are
    compared as 0.
    """
    outcome_threshold = percentile_threshold([point.value for point in outcome], outcome_percentile)
    outcome_by_date = {point.date: point.value for point in outcome}

    alert_days = []
    for point in pollution:
        outcome_value = outcome_by_date.get(point.date, 0)
        alert_days.append(
            AlertDay(
                date=point.date,
                pollution_value=point.value,
                outcome_value=outcome_value,
                alert_level=classify_alert_level(point.value, outcome_value, pollution_threshold, outcome_threshold),
            )
        )
    return alert_days


def summarize_alert_days(alert_days, verbose=True):
    counts = Counter(day.alert_level for day in alert_days)
    summary = {level.value: counts.get(level, 0) for level in AlertLevel}
    if verbose:
        if not alert_days:
            print("No pollution days to classify.")
            return summary
        print(
            f"Alert days: {summary['high']} high, {summary['moderate']} moderate, "
            f"{summary['low']} low (of {len(alert_days)})"
        )
        high_days = [day for day in alert_days if day.alert_level is AlertLevel.HIGH]
        for day in high_days[:10]:
            print(f"  {day.date.isoformat()}: pollution {day.pollution_value:.1f}, outcome {day.outcome_value:.2f}")
    return summary
