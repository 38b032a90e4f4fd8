import json
import os
from datetime import date, timedelta
from pathlib import Path

import requests

from calculations.series import SeriesValidationError, parse_date, parse_series
from calculations.synthetic_data import DEFAULT_SEED, generate_current_aqi
from db.db_operations import AIRNOW, SYNTHETIC

API_KEY = os.environ.get("AIRNOW_API_KEY", "")
BASE_URL = "https://www.airnowapi.org/aq/observation/zipCode/historical/"
CURRENT_URL = "https://www.airnowapi.org/aq/observation/zipCode/current/"
ZIP_CODES_FILE = Path(__file__).resolve().parents[1] / "config" / "colorado_zip_codes.json"
SEARCH_DISTANCE_MILES = 25
MAX_DAYS_PER_RUN = 60

AQI_CATEGORIES = (
    (50, "Good"),
    (100, "Moderate"),
    (150, "Unhealthy for Sensitive Groups"),
    (200, "Unhealthy"),
    (300, "Very Unhealthy"),
)


def get_aqi_category(aqi):
    for upper, label in AQI_CATEGORIES:
        if aqi <= upper:
            return label
    return "Hazardous"


def load_zip_codes(path=ZIP_CODES_FILE):
    """
    Load the Colorado zip codes (and their city names) we query AirNow for.
    """
    try:
        with open(path, 'r', encoding='utf-8') as file:
            data = json.load(file)
    except FileNotFoundError:
        raise FileNotFoundError(f"{path} is missing; add Colorado zip codes to fetch air quality.")
    if not isinstance(data, list) or not all(isinstance(entry, dict) and 'zip' in entry for entry in data):
        raise ValueError("colorado_zip_codes.json must contain a list of {zip, city} entries.")
    return {entry['zip']: entry.get('city') or 'Unknown' for entry in data}


def parse_airnow_observations(payload, parameter="PM2.5"):
    """
    Reduce raw AirNow rows to {date, value} rows for one pollutant.

    AirNow pads DateObserved with a trailing space and uses -1 for "no reading";
    when a day has several reporting areas we keep the worst AQI.
    """
    if not isinstance(payload, list):
        raise SeriesValidationError(f"Expected a list of AirNow observations, got {type(payload).__name__}")

    by_date = {}
    for row in payload:
        if not isinstance(row, dict) or row.get('ParameterName') != parameter:
            continue
        aqi = row.get('AQI')
        if isinstance(aqi, bool) or not isinstance(aqi, (int, float)) or aqi < 0:
            continue
        day = parse_date(str(row.get('DateObserved', '')))
        by_date[day] = max(by_date.get(day, aqi), aqi)
    return [{'date': day.isoformat(), 'value': value} for day, value in sorted(by_date.items())]


def _fetch_day(zip_code, day):
    params = {
        'format': 'application/json',
        'zipCode': zip_code,
        'date': f"{day.isoformat()}T00-0000",
        'distance': SEARCH_DISTANCE_MILES,
        'API_KEY': API_KEY,
    }
    response = requests.get(BASE_URL, params=params, timeout=30)
    response.raise_for_status()
    return response.json()


def fetch_pollution_series(zip_code, start, days, parameter="PM2.5", cache=None):
    """
    Pull one AirNow reading per day for a zip code and return a TimePoint series.

    Days that fail or come back empty are just missing from the result.
    """
    first_day = parse_date(start)
    days = min(days, MAX_DAYS_PER_RUN)
    rows = []
    for offset in range(days):
        day = first_day + timedelta(days=offset)
        try:
            if cache is not None:
                payload = cache.get_or_compute(('airnow', zip_code, day), lambda: _fetch_day(zip_code, day))
            else:
                payload = _fetch_day(zip_code, day)
        except requests.RequestException as exc:
            print(f"AirNow request failed for {zip_code} on {day.isoformat()}: {exc}")
            continue
        try:
            rows.extend(parse_airnow_observations(payload, parameter))
        except SeriesValidationError as exc:
            print(f"Skipping malformed AirNow payload for {zip_code} on {day.isoformat()}: {exc}")

    # Each request is for a single day, but a stray row for a neighbouring date could repeat one.
    unique = {}
    for row in rows:
        unique.setdefault(row['date'], row)
    return parse_series(sorted(unique.values(), key=lambda row: row['date']))


def _current_reading(zip_code, city, aqi, pollutant, source):
    return {
        'zip': zip_code,
        'city': city,
        'aqi': aqi,
        'pollutant': pollutant,
        'category': get_aqi_category(aqi),
        'date': date.today().isoformat(),
        'source': source,
    }


def fallback_air_quality(zip_code, city='Unknown', seed=DEFAULT_SEED):
    """
    SYNTHETIC current reading for when AirNow can't answer for a zip code.
    """
    return _current_reading(zip_code, city, generate_current_aqi(zip_code, seed), "PM2.5", SYNTHETIC)


def _fetch_current(zip_code):
    params = {
        'format': 'application/json',
        'zipCode': zip_code,
        'distance': SEARCH_DISTANCE_MILES,
        'API_KEY': API_KEY,
    }
    response = requests.get(CURRENT_URL, params=params, timeout=30)
    response.raise_for_status()
    return response.json()


def fetch_current_air_quality(zip_code, city='Unknown', cache=None, seed=DEFAULT_SEED):
    """
    Latest AQI for a zip code; the worst pollutant reported wins.

    Falls back to a seeded synthetic reading (source "synthetic") when the
    request fails or returns nothing usable.
    """
    try:
        if cache is not None:
            payload = cache.get_or_compute(('airnow-current', zip_code), lambda: _fetch_current(zip_code))
        else:
            payload = _fetch_current(zip_code)
    except requests.RequestException as exc:
        print(f"AirNow current request failed for {zip_code}: {exc}; using SYNTHETIC reading.")
        return fallback_air_quality(zip_code, city, seed)

    readings = []
    if isinstance(payload, list):
        for row in payload:
            if not isinstance(row, dict):
                continue
            aqi = row.get('AQI')
            if isinstance(aqi, bool) or not isinstance(aqi, (int, float)) or aqi < 0:
                continue
            readings.append((aqi, row.get('ParameterName') or "PM2.5"))
    if not readings:
        print(f"AirNow had no current reading for {zip_code}; using SYNTHETIC reading.")
        return fallback_air_quality(zip_code, city, seed)

    aqi, pollutant = max(readings, key=lambda reading: reading[0])
    return _current_reading(zip_code, city, aqi, pollutant, AIRNOW)


def fetch_multiple_cities(zip_codes, cache=None, seed=DEFAULT_SEED, offline=False):
    """
    Current readings for every {zip: city} entry, in config order.
    """
    readings = []
    for zip_code, city in zip_codes.items():
        if offline:
            readings.append(fallback_air_quality(zip_code, city, seed))
        else:
            readings.append(fetch_current_air_quality(zip_code, city, cache=cache, seed=seed))
    return readings


def rank_cities(readings, limit=5, most_polluted=True):
    # sorted() is stable, so equal AQIs keep config order.
    return sorted(readings, key=lambda reading: reading['aqi'], reverse=most_polluted)[:limit]


def most_polluted_cities(readings, limit=5):
    return rank_cities(readings, limit, most_polluted=True)


def cleanest_cities(readings, limit=5):
    return rank_cities(readings, limit, most_polluted=False)
