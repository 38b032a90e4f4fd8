import argparse
from datetime import date, timedelta
from pathlib import Path

from api.cache import TTLCache
from api.fetch_air_quality import (
    API_KEY,
    cleanest_cities,
    fetch_multiple_cities,
    fetch_pollution_series,
    get_aqi_category,
    load_zip_codes,
    most_polluted_cities,
)
from api.fetch_health_data import fetch_colorado_asthma_data, records_to_outcome_series
from calculations.alert_days import (
    DEFAULT_OUTCOME_PERCENTILE,
    DEFAULT_POLLUTION_THRESHOLD,
    identify_alert_days,
    summarize_alert_days,
)
from calculations.asthma_statistics import EMERGENCY_VISITS, PREVALENCE, describe_series, summarize_asthma_statistics
from calculations.pollution_asthma_correlation import DEFAULT_MAX_LAG, MIN_SERIES_POINTS, report_time_lag_analysis
from calculations.series import SeriesValidationError
from calculations.synthetic_data import (
    DEFAULT_SEED,
    generate_emergency_visit_series,
    generate_pollution_series,
    generate_prevalence_records,
)
from db.db_operations import AIRNOW, CDC, OUTCOME, POLLUTION, SYNTHETIC, store_data_in_db, store_series
from db.db_setup import DB_FILE

CACHE_TTL_SECONDS = 15 * 60
PARAMETER = "PM2.5"
RANKING_SIZE = 5


def non_negative_int(text):
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{text!r} is not an integer")
    if value < 0:
        raise argparse.ArgumentTypeError(f"{value} must be zero or more")
    return value


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Correlate Colorado air quality with asthma events.")
    parser.add_argument('--zip', default="80202", help="Colorado zip code to pull AirNow readings for.")
    parser.add_argument(
        '--start',
        type=date.fromisoformat,
        default=date.today() - timedelta(days=31),
        help="First day of the window (YYYY-MM-DD).",
    )
    parser.add_argument('--days', type=non_negative_int, default=30, help="Number of days in the window.")
    parser.add_argument('--max-lag', type=non_negative_int, default=DEFAULT_MAX_LAG, help="Largest lag (days) to test.")
    parser.add_argument('--pollution-threshold', type=float, default=DEFAULT_POLLUTION_THRESHOLD)
    parser.add_argument('--percentile', type=float, default=DEFAULT_OUTCOME_PERCENTILE)
    parser.add_argument('--seed', type=int, default=DEFAULT_SEED, help="Seed for synthetic fallback data.")
    parser.add_argument('--offline', action='store_true', help="Skip the APIs and use synthetic data only.")
    parser.add_argument('--cities', action='store_true', help="Also rank the configured cities by current AQI.")
    parser.add_argument('--db', type=Path, default=DB_FILE, help="SQLite file to store series in.")
    return parser.parse_args(argv)


def collect_series(args, cache):
    """
    Returns (pollution, pollution_source, outcome, outcome_source, records).
    """
    location = args.zip
    pollution = []
    pollution_source = AIRNOW
    records = []
    if args.offline:
        print("Offline mode: using synthetic data.")
    elif not API_KEY:
        print("AIRNOW_API_KEY is not set; skipping AirNow.")
    else:
        pollution = fetch_pollution_series(location, args.start, args.days, PARAMETER, cache=cache)
    if not args.offline:
        records = fetch_colorado_asthma_data(cache=cache)

    if len(pollution) < MIN_SERIES_POINTS:
        if not args.offline:
            print(f"Only {len(pollution)} AirNow day(s) for {location}; substituting SYNTHETIC pollution data.")
        pollution = generate_pollution_series(args.start, args.days, seed=args.seed)
        pollution_source = SYNTHETIC

    try:
        outcome = records_to_outcome_series(records, EMERGENCY_VISITS)
    except SeriesValidationError as exc:
        print(f"CDC ED visit records are unusable: {exc}")
        outcome = []
    outcome_source = CDC
    # CDC publishes annual figures, so a daily series almost always needs the synthetic stand-in.
    if len(outcome) < MIN_SERIES_POINTS:
        print("Daily asthma ED visits unavailable; substituting SYNTHETIC outcome data.")
        outcome = generate_emergency_visit_series(pollution, seed=args.seed)
        outcome_source = SYNTHETIC

    if not any(record.get('data_type') == PREVALENCE for record in records):
        records = records + generate_prevalence_records(args.start.year - 2, seed=args.seed)
    return pollution, pollution_source, outcome, outcome_source, records


def report_city_rankings(zip_codes, cache, seed, offline):
    readings = fetch_multiple_cities(zip_codes, cache=cache, seed=seed, offline=offline or not API_KEY)
    for title, ranked in (
        ("Most polluted", most_polluted_cities(readings, RANKING_SIZE)),
        ("Cleanest", cleanest_cities(readings, RANKING_SIZE)),
    ):
        print(f"\n{title} cities right now:")
        for reading in ranked:
            marker = " (SYNTHETIC)" if reading['source'] == SYNTHETIC else ""
            print(f"  {reading['city']} ({reading['zip']}): AQI {reading['aqi']} {reading['category']}{marker}")
    return readings


def main(argv=None):
    args = parse_args(argv)
    zip_codes = load_zip_codes()
    city = zip_codes.get(args.zip, 'Unknown')

    # Spin up the SQLite schema so our inserts don't explode on a fresh clone.
    store_data_in_db(args.db)

    cache = TTLCache(CACHE_TTL_SECONDS)
    pollution, pollution_source, outcome, outcome_source, records = collect_series(args, cache)

    # Stored for later runs; this run analyzes exactly what it just collected.
    store_series(pollution, POLLUTION, PARAMETER, args.zip, pollution_source, db_file=args.db)
    store_series(outcome, OUTCOME, EMERGENCY_VISITS, args.zip, outcome_source, db_file=args.db)

    summary = describe_series(pollution)
    if summary:
        print(
            f"{city} ({args.zip}) {PARAMETER}: {summary['count']} days, mean AQI {summary['mean']:.1f} "
            f"({get_aqi_category(summary['mean'])}), max {summary['max']:.0f}"
        )

    report_time_lag_analysis(pollution, outcome, args.max_lag, PARAMETER, EMERGENCY_VISITS)
    alert_days = identify_alert_days(pollution, outcome, args.pollution_threshold, args.percentile)
    summarize_alert_days(alert_days)
    summarize_asthma_statistics(records)

    if args.cities:
        report_city_rankings(zip_codes, cache, args.seed, args.offline)


if __name__ == "__main__":
    main()
