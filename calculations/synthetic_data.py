"""
Synthetic stand-ins for when AirNow/CDC don't return enough data.

Everything here is clearly fake and seeded: pass the same seed, get the same
series. The correlation engine itself never touches randomness.
"""

import random
from datetime import timedelta

from calculations.asthma_statistics import ADULTS, CHILDREN, PREVALENCE
from calculations.seasonal_trends import seasonal_factor
from calculations.series import TimePoint, parse_date

DEFAULT_SEED = 2024
MAJOR_COUNTIES = ['Denver', 'El Paso', 'Jefferson', 'Arapahoe', 'Adams', 'Boulder', 'Larimer']


def generate_pollution_series(start, days, seed=DEFAULT_SEED):
    """
    Daily AQI readings in the typical Colorado 25-64 band.
    """
    rng = random.Random(seed)
    first_day = parse_date(start)
    return [TimePoint(first_day + timedelta(days=offset), float(rng.randint(25, 64))) for offset in range(days)]


def generate_current_aqi(zip_code, seed=DEFAULT_SEED):
    # Seeded per zip so every city gets its own, repeatable reading.
    rng = random.Random(f"{seed}:{zip_code}")
    return rng.randint(25, 64)


def generate_emergency_visit_series(pollution, seed=DEFAULT_SEED):
    # ED visits show up the day after the exposure.
    rng = random.Random(seed)
    series = []
    for point in pollution:
        rate = 5 + point.value * 0.2 + (rng.random() - 0.5) * 2
        series.append(TimePoint(point.date + timedelta(days=1), rate * seasonal_factor(point.date)))
    return series


def generate_hospitalization_series(pollution, seed=DEFAULT_SEED):
    # Hospitalizations trail ED visits, so they land two days out and only climb past AQI 35.
    rng = random.Random(seed)
    series = []
    for point in pollution:
        lagged_day = point.date + timedelta(days=2)
        if point.value > 50:
            base_rate = 1.5 + (point.value - 50) * 0.05
        elif point.value > 35:
            base_rate = 1.0 + (point.value - 35) * 0.03
        else:
            base_rate = 1.0
        noise = (rng.random() - 0.5) * 0.5
        series.append(TimePoint(lagged_day, (base_rate + noise) * seasonal_factor(lagged_day)))
    return series


def generate_prevalence_records(year, seed=DEFAULT_SEED):
    rng = random.Random(seed)
    records = []
    for county in MAJOR_COUNTIES:
        records.append(
            {
                'county': county,
                'year': year,
                'rate': rng.random() * 4 + 8,
                'age_group': ADULTS,
                'data_type': PREVALENCE,
            }
        )
        records.append(
            {
                'county': county,
                'year': year,
                'rate': rng.random() * 4 + 6,
                'age_group': CHILDREN,
                'data_type': PREVALENCE,
            }
        )
    return records
