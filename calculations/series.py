import math
from dataclasses import dataclass
from datetime import date, datetime


class SeriesValidationError(ValueError):
    """Raised when raw rows can't be turned into a clean daily series."""


@dataclass(frozen=True)
class TimePoint:
    date: date
    value: float


def parse_date(value):
    """
    Accept a date, or an ISO "YYYY-MM-DD" string, and return a calendar day.
    """
    if isinstance(value, datetime):
        # Datetimes carry a time of day; the series are strictly daily.
        raise SeriesValidationError(f"Expected a calendar date, got datetime {value!r}")
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise SeriesValidationError(f"Expected an ISO date string, got {value!r}")
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise SeriesValidationError(f"Malformed date {value!r}; expected YYYY-MM-DD") from None


def parse_value(value):
    if isinstance(value, bool) or value is None:
        raise SeriesValidationError(f"Missing or invalid value {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise SeriesValidationError(f"Value {value!r} is not numeric") from None
    if not math.isfinite(number):
        raise SeriesValidationError(f"Value {value!r} is not finite")
    return number


def parse_series(rows):
    """
    Turn loose {date, value} rows into a list of TimePoint.

    Rows can be dicts or TimePoint instances. Input order is preserved and
    duplicate dates are rejected instead of silently picking a winner.
    """
    points = []
    seen = set()
    for index, row in enumerate(rows):
        if isinstance(row, TimePoint):
            day, value = row.date, row.value
        else:
            if not isinstance(row, dict) or 'date' not in row or 'value' not in row:
                raise SeriesValidationError(f"Row {index} needs 'date' and 'value' keys: {row!r}")
            day = parse_date(row['date'])
            value = parse_value(row['value'])
        if day in seen:
            raise SeriesValidationError(f"Duplicate date {day.isoformat()} at row {index}")
        seen.add(day)
        points.append(TimePoint(day, value))
    return points


def series_to_rows(points):
    return [{'date': point.date.isoformat(), 'value': point.value} for point in points]
