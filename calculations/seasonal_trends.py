from calculations.series import parse_date

SEASONS = {
    12: "Winter",
    1: "Winter",
    2: "Winter",
    3: "Spring",
    4: "Spring",
    5: "Spring",
    6: "Summer",
    7: "Summer",
    8: "Summer",
    9: "Fall",
    10: "Fall",
    11: "Fall",
}

# Allergy seasons push respiratory visits up in spring and fall.
SEASONAL_FACTORS = {
    "Spring": 1.3,
    "Fall": 1.2,
    "Winter": 1.1,
    "Summer": 0.9,
}


def season_for(day):
    return SEASONS[parse_date(day).month]


def seasonal_factor(day):
    """
    Fixed multiplier for asthma events on a given day (Northern Hemisphere).

    Only meant to shape synthetic fallback data, not a fitted estimate.
    """
    return SEASONAL_FACTORS[season_for(day)]
