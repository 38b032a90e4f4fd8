import pandas as pd

PREVALENCE = "Prevalence"
EMERGENCY_VISITS = "Emergency Visits"
HOSPITALIZATIONS = "Hospitalizations"
ADULTS = "Adults 18+"
CHILDREN = "Children 0-17"

# National figures used whenever Colorado data is missing.
FALLBACK_ADULT_PREVALENCE = 8.7
FALLBACK_CHILD_PREVALENCE = 7.5
FALLBACK_EMERGENCY_VISIT_RATE = 49.3
FALLBACK_HOSPITALIZATION_RATE = 8.2
COLORADO_COUNTY_COUNT = 64

RECORD_COLUMNS = ["county", "year", "rate", "age_group", "data_type"]


def _records_dataframe(records):
    if not records:
        return pd.DataFrame(columns=RECORD_COLUMNS)
    df = pd.DataFrame(records)
    for column in RECORD_COLUMNS:
        if column not in df.columns:
            df[column] = None
    df["rate"] = pd.to_numeric(df["rate"], errors="coerce").fillna(0.0)
    return df


def _mean_or(series, fallback):
    return float(series.mean()) if len(series) else fallback


def calculate_asthma_statistics(records):
    """
    Roll asthma records (prevalence + ED visits + hospitalizations) into headline numbers.
    """
    df = _records_dataframe(records)
    if df.empty:
        return {
            "average_prevalence": FALLBACK_ADULT_PREVALENCE,
            "total_counties": COLORADO_COUNTY_COUNT,
            "data_available": False,
            "emergency_visit_rate": FALLBACK_EMERGENCY_VISIT_RATE,
            "hospitalization_rate": FALLBACK_HOSPITALIZATION_RATE,
            "event_data_available": False,
        }

    prevalence = df[df["data_type"] == PREVALENCE]
    adult = prevalence[prevalence["age_group"] == ADULTS]["rate"]
    child = prevalence[prevalence["age_group"] == CHILDREN]["rate"]
    emergency = df[df["data_type"] == EMERGENCY_VISITS]["rate"]
    hospital = df[df["data_type"] == HOSPITALIZATIONS]["rate"]

    adult_prevalence = _mean_or(adult, FALLBACK_ADULT_PREVALENCE)
    child_prevalence = _mean_or(child, FALLBACK_CHILD_PREVALENCE)

    return {
        "average_prevalence": (adult_prevalence + child_prevalence) / 2,
        "adult_prevalence": adult_prevalence,
        "child_prevalence": child_prevalence,
        "emergency_visit_rate": _mean_or(emergency, FALLBACK_EMERGENCY_VISIT_RATE),
        "hospitalization_rate": _mean_or(hospital, FALLBACK_HOSPITALIZATION_RATE),
        "total_counties": max(len(adult), len(child), len(emergency), len(hospital), 1),
        "data_available": len(prevalence) > 0,
        "event_data_available": len(emergency) > 0 or len(hospital) > 0,
    }


def describe_series(points):
    if not points:
        return None
    df = pd.DataFrame({"date": [point.date for point in points], "value": [point.value for point in points]})
    return {
        "count": int(df["value"].count()),
        "mean": float(df["value"].mean()),
        "min": float(df["value"].min()),
        "max": float(df["value"].max()),
        "start_date": df["date"].min(),
        "end_date": df["date"].max(),
    }


def summarize_asthma_statistics(records, verbose=True):
    stats = calculate_asthma_statistics(records)
    if verbose:
        if not stats["data_available"]:
            print("No Colorado prevalence data available; showing national fallbacks.")
        print(f"Average asthma prevalence: {stats['average_prevalence']:.2f}%")
        if "adult_prevalence" in stats:
            print(f"  adults {stats['adult_prevalence']:.2f}%, children {stats['child_prevalence']:.2f}%")
        print(
            f"ED visit rate {stats['emergency_visit_rate']:.1f} / hospitalization rate "
            f"{stats['hospitalization_rate']:.1f} per 10,000 ({stats['total_counties']} counties)"
        )
    return stats
