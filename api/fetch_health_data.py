import math
from datetime import date

import pandas as pd
import requests

from calculations.asthma_statistics import ADULTS, CHILDREN, EMERGENCY_VISITS, HOSPITALIZATIONS, PREVALENCE
from calculations.seasonal_trends import seasonal_factor
from calculations.series import SeriesValidationError, parse_date, parse_series

BASE_URL = "https://ephtracking.cdc.gov/apigateway/api/v1"
COLORADO_STATE_CODE = "08"
STATE_NAME = "Colorado"
# CDC usually publishes about two years behind.
REPORTING_DELAY_YEARS = 2

ADULT_PREVALENCE = "296"
CHILD_PREVALENCE = "297"
EMERGENCY_VISIT_MEASURE = "298"
HOSPITALIZATION_MEASURE = "299"

EVENT_MEASURES = {
    EMERGENCY_VISIT_MEASURE: EMERGENCY_VISITS,
    HOSPITALIZATION_MEASURE: HOSPITALIZATIONS,
}


def _latest_year():
    return date.today().year - REPORTING_DELAY_YEARS


def _parse_float(value):
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    # CDC marks suppressed cells with "NaN"; treat those like blanks.
    return number if math.isfinite(number) else None


def _parse_year(value, default):
    number = _parse_float(value)
    return int(number) if number else default


def parse_cdc_rows(rows, measure_id, default_year):
    """
    Convert CDC tracking dataRows into flat asthma records.

    Prevalence rows carry the age group; event rows (ED visits, hospitalizations)
    get a date (mid-year when the row only has a year) and its seasonal factor.
    Unparseable rates become 0 so one bad cell doesn't sink the batch.
    """
    records = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        rate = _parse_float(row.get('dataValue')) or 0.0
        county = row.get('geoName') or STATE_NAME
        year = _parse_year(row.get('yearStart') or row.get('year'), default_year)
        if measure_id in EVENT_MEASURES:
            day = parse_date(row['date']) if row.get('date') else date(year, 7, 1)
            records.append(
                {
                    'county': county,
                    'year': year,
                    'rate': rate,
                    'count': _parse_float(row.get('count')),
                    'age_group': "All Ages",
                    'data_type': EVENT_MEASURES[measure_id],
                    'date': day.isoformat(),
                    'seasonal_factor': seasonal_factor(day),
                }
            )
        else:
            records.append(
                {
                    'county': county,
                    'year': year,
                    'rate': rate,
                    'age_group': ADULTS if measure_id == ADULT_PREVALENCE else CHILDREN,
                    'data_type': PREVALENCE,
                }
            )
    return records


def _fetch_measure(measure_id, start_year, end_year, cache=None):
    url = f"{BASE_URL}/getCoreHolder/{measure_id}/{COLORADO_STATE_CODE}/0/{start_year}/{end_year}"

    def _download():
        response = requests.get(url, timeout=30)
        response.raise_for_status()
        return response.json()

    try:
        payload = cache.get_or_compute(url, _download) if cache is not None else _download()
    except requests.RequestException as exc:
        print(f"CDC tracking request failed for measure {measure_id}: {exc}")
        return []

    table = payload.get('tableResults') if isinstance(payload, dict) else None
    rows = table.get('dataRows') if isinstance(table, dict) else None
    if not rows:
        return []
    try:
        return parse_cdc_rows(rows, measure_id, end_year)
    except SeriesValidationError as exc:
        print(f"Skipping malformed CDC rows for measure {measure_id}: {exc}")
        return []


def fetch_asthma_prevalence(measure_id=ADULT_PREVALENCE, year=None, cache=None):
    year = year or _latest_year()
    return _fetch_measure(measure_id, year, year, cache)


def fetch_asthma_events(measure_id=EMERGENCY_VISIT_MEASURE, start_year=None, end_year=None, cache=None):
    end_year = end_year or _latest_year()
    start_year = start_year or end_year - 1
    return _fetch_measure(measure_id, start_year, end_year, cache)


def fetch_colorado_asthma_data(cache=None):
    """
    Prevalence (adults + children) plus ED visits and hospitalizations, in one list.
    """
    records = []
    records.extend(fetch_asthma_prevalence(ADULT_PREVALENCE, cache=cache))
    records.extend(fetch_asthma_prevalence(CHILD_PREVALENCE, cache=cache))
    records.extend(fetch_asthma_events(EMERGENCY_VISIT_MEASURE, cache=cache))
    records.extend(fetch_asthma_events(HOSPITALIZATION_MEASURE, cache=cache))
    return records


def records_to_outcome_series(records, data_type=EMERGENCY_VISITS, county=None):
    """
    Build a daily outcome series out of event records.

    With no county, rows sharing a date (one per county) are averaged into a
    statewide value.
    """
    rows = [
        record
        for record in records
        if record.get('data_type') == data_type and record.get('date') and (county is None or record.get('county') == county)
    ]
    if not rows:
        return []
    df = pd.DataFrame(rows)[['date', 'rate']]
    daily = df.groupby('date', as_index=False)['rate'].mean().sort_values('date')
    return parse_series({'date': row.date, 'value': row.rate} for row in daily.itertuples(index=False))
