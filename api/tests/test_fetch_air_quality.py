import json
import tempfile
import unittest
from datetime import date
from pathlib import Path
from unittest.mock import MagicMock, patch

import requests

from api.cache import TTLCache
from api.fetch_air_quality import (
    cleanest_cities,
    fallback_air_quality,
    fetch_current_air_quality,
    fetch_multiple_cities,
    fetch_pollution_series,
    get_aqi_category,
    load_zip_codes,
    most_polluted_cities,
    parse_airnow_observations,
    rank_cities,
)
from calculations.series import SeriesValidationError, TimePoint
from calculations.synthetic_data import generate_current_aqi


def _airnow_response(url, params=None, timeout=None):
    day = params['date'][:10]
    response = MagicMock()
    response.json.return_value = [
        {"DateObserved": f"{day} ", "ParameterName": "O3", "AQI": 12},
        {"DateObserved": f"{day} ", "ParameterName": "PM2.5", "AQI": 30 + int(day[-2:])},
    ]
    return response


class TestAqiCategory(unittest.TestCase):
    def test_epa_bands(self):
        self.assertEqual(get_aqi_category(0), "Good")
        self.assertEqual(get_aqi_category(50), "Good")
        self.assertEqual(get_aqi_category(51), "Moderate")
        self.assertEqual(get_aqi_category(150), "Unhealthy for Sensitive Groups")
        self.assertEqual(get_aqi_category(200), "Unhealthy")
        self.assertEqual(get_aqi_category(300), "Very Unhealthy")
        self.assertEqual(get_aqi_category(301), "Hazardous")


class TestLoadZipCodes(unittest.TestCase):
    def test_default_config(self):
        zip_codes = load_zip_codes()
        self.assertEqual(zip_codes["80202"], "Denver")

    def test_missing_and_malformed(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(FileNotFoundError):
                load_zip_codes(Path(tmp) / "nope.json")
            bad = Path(tmp) / "bad.json"
            bad.write_text(json.dumps({"zip": "80202"}), encoding='utf-8')
            with self.assertRaises(ValueError):
                load_zip_codes(bad)


class TestParseAirnowObservations(unittest.TestCase):
    def test_filters_parameter_and_missing_readings(self):
        payload = [
            {"DateObserved": "2024-01-02 ", "ParameterName": "PM2.5", "AQI": 41},
            {"DateObserved": "2024-01-02 ", "ParameterName": "PM2.5", "AQI": 55},
            {"DateObserved": "2024-01-01 ", "ParameterName": "PM2.5", "AQI": -1},
            {"DateObserved": "2024-01-01 ", "ParameterName": "O3", "AQI": 33},
            "garbage",
        ]

        rows = parse_airnow_observations(payload)

        self.assertEqual(rows, [{'date': "2024-01-02", 'value': 55}])
        self.assertEqual(parse_airnow_observations(payload, "O3"), [{'date': "2024-01-01", 'value': 33}])

    def test_rejects_non_list(self):
        with self.assertRaises(SeriesValidationError):
            parse_airnow_observations({"error": "bad key"})

    def test_rejects_malformed_date(self):
        with self.assertRaises(SeriesValidationError):
            parse_airnow_observations([{"DateObserved": "Jan 1", "ParameterName": "PM2.5", "AQI": 3}])


class TestFetchPollutionSeries(unittest.TestCase):
    @patch("requests.get", side_effect=_airnow_response)
    def test_builds_daily_series(self, mock_get):
        series = fetch_pollution_series("80202", date(2024, 1, 1), 5)

        self.assertEqual(mock_get.call_count, 5)
        self.assertEqual(series[0], TimePoint(date(2024, 1, 1), 31.0))
        self.assertEqual([point.date.day for point in series], [1, 2, 3, 4, 5])
        self.assertEqual(mock_get.call_args.kwargs['params']['zipCode'], "80202")

    @patch("requests.get", side_effect=_airnow_response)
    def test_uses_cache(self, mock_get):
        cache = TTLCache(300)

        first = fetch_pollution_series("80202", "2024-01-01", 3, cache=cache)
        second = fetch_pollution_series("80202", "2024-01-01", 3, cache=cache)

        self.assertEqual(first, second)
        self.assertEqual(mock_get.call_count, 3)

    @patch("requests.get")
    def test_failed_days_are_skipped(self, mock_get):
        ok = _airnow_response(None, params={'date': "2024-01-02T00-0000"})
        mock_get.side_effect = [requests.ConnectionError("down"), ok, requests.Timeout("slow")]

        series = fetch_pollution_series("80202", "2024-01-01", 3)

        self.assertEqual(series, [TimePoint(date(2024, 1, 2), 32.0)])

    @patch("requests.get")
    def test_http_error_status(self, mock_get):
        mock_get.return_value.raise_for_status.side_effect = requests.HTTPError("401")

        self.assertEqual(fetch_pollution_series("80202", "2024-01-01", 2), [])


def _current_response(rows):
    response = MagicMock()
    response.json.return_value = rows
    return response


class TestFetchCurrentAirQuality(unittest.TestCase):
    @patch("requests.get")
    def test_worst_pollutant_wins(self, mock_get):
        mock_get.return_value = _current_response([
            {"ParameterName": "O3", "AQI": 48, "ReportingArea": "Denver"},
            {"ParameterName": "PM2.5", "AQI": 72, "ReportingArea": "Denver"},
            {"ParameterName": "PM10", "AQI": -1},
        ])

        reading = fetch_current_air_quality("80202", "Denver")

        self.assertEqual(reading['aqi'], 72)
        self.assertEqual(reading['pollutant'], "PM2.5")
        self.assertEqual(reading['category'], "Moderate")
        self.assertEqual(reading['city'], "Denver")
        self.assertEqual(reading['source'], "airnow")
        self.assertIn("/observation/zipCode/current/", mock_get.call_args.args[0])
        self.assertEqual(mock_get.call_args.kwargs['params']['zipCode'], "80202")

    @patch("requests.get")
    def test_failure_falls_back_to_seeded_reading(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("down")

        reading = fetch_current_air_quality("80301", "Boulder", seed=5)

        self.assertEqual(reading['source'], "synthetic")
        self.assertEqual(reading['aqi'], generate_current_aqi("80301", 5))
        self.assertEqual(reading, fallback_air_quality("80301", "Boulder", seed=5))

    @patch("requests.get")
    def test_empty_payload_falls_back(self, mock_get):
        mock_get.return_value = _current_response([])

        self.assertEqual(fetch_current_air_quality("80202")['source'], "synthetic")

    @patch("requests.get")
    def test_uses_cache(self, mock_get):
        mock_get.return_value = _current_response([{"ParameterName": "PM2.5", "AQI": 30}])
        cache = TTLCache(300)

        fetch_current_air_quality("80202", cache=cache)
        fetch_current_air_quality("80202", cache=cache)

        self.assertEqual(mock_get.call_count, 1)


class TestCityRankings(unittest.TestCase):
    ZIP_CODES = {
        "80202": "Denver",
        "80013": "Aurora",
        "80301": "Boulder",
        "80525": "Fort Collins",
        "80918": "Colorado Springs",
        "80634": "Greeley",
        "80701": "Fort Morgan",
    }

    def test_fallback_aqi_is_seeded_per_zip(self):
        for zip_code in self.ZIP_CODES:
            aqi = generate_current_aqi(zip_code, 11)
            self.assertTrue(25 <= aqi <= 64)
            self.assertEqual(aqi, generate_current_aqi(zip_code, 11))

    @patch("requests.get")
    def test_multiple_cities(self, mock_get):
        def _by_zip(url, params=None, timeout=None):
            return _current_response([{"ParameterName": "PM2.5", "AQI": int(params['zipCode'][-2:])}])

        mock_get.side_effect = _by_zip

        readings = fetch_multiple_cities(self.ZIP_CODES)

        self.assertEqual([reading['city'] for reading in readings], list(self.ZIP_CODES.values()))
        self.assertEqual(readings[0]['aqi'], 2)
        self.assertEqual(mock_get.call_count, len(self.ZIP_CODES))

    @patch("requests.get")
    def test_offline_never_calls_airnow(self, mock_get):
        readings = fetch_multiple_cities(self.ZIP_CODES, offline=True)

        mock_get.assert_not_called()
        self.assertTrue(all(reading['source'] == "synthetic" for reading in readings))

    def test_top_five_rankings(self):
        readings = [{'zip': zip_code, 'city': city, 'aqi': aqi}
                    for (zip_code, city), aqi in zip(self.ZIP_CODES.items(), [40, 80, 25, 60, 25, 90, 55])]

        self.assertEqual(
            [reading['aqi'] for reading in most_polluted_cities(readings)],
            [90, 80, 60, 55, 40],
        )
        cleanest = cleanest_cities(readings)
        self.assertEqual([reading['aqi'] for reading in cleanest], [25, 25, 40, 55, 60])
        # Ties keep config order.
        self.assertEqual([reading['city'] for reading in cleanest[:2]], ["Boulder", "Colorado Springs"])
        self.assertEqual(len(rank_cities(readings, limit=2, most_polluted=False)), 2)
        self.assertEqual(most_polluted_cities([]), [])
