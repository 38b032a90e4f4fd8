import sqlite3

from calculations.series import TimePoint, parse_date
from db.db_setup import DB_FILE, create_db

POLLUTION = "pollution"
OUTCOME = "outcome"

# Where a series came from; synthetic stand-ins never share rows with real data.
AIRNOW = "airnow"
CDC = "cdc"
SYNTHETIC = "synthetic"


def _get_connection(db_file):
    conn = sqlite3.connect(db_file)
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def _get_or_create_series(cursor, kind, label, location, source):
    cursor.execute(
        '''
        SELECT id FROM series
        WHERE kind = ? AND label = ? AND location = ? AND source = ?
    ''',
        (kind, label, location, source),
    )
    row = cursor.fetchone()
    if row:
        return row[0]

    cursor.execute(
        '''
        INSERT INTO series (kind, label, location, source)
        VALUES (?, ?, ?, ?)
    ''',
        (kind, label, location, source),
    )
    return cursor.lastrowid


def store_series(points, kind, label, location, source, db_file=DB_FILE):
    """
    Save a daily series; days already stored for the same source are overwritten.
    """
    conn = _get_connection(db_file)
    cursor = conn.cursor()
    series_id = _get_or_create_series(cursor, kind, label, location, source)
    stored = 0
    for point in points:
        cursor.execute(
            '''
            INSERT INTO observations (series_id, date, value)
            VALUES (?, ?, ?)
            ON CONFLICT(series_id, date) DO UPDATE SET value = excluded.value
        ''',
            (series_id, point.date.isoformat(), point.value),
        )
        stored += cursor.rowcount
    conn.commit()
    conn.close()
    return stored


def load_series(kind, label, location, source, db_file=DB_FILE):
    conn = _get_connection(db_file)
    cursor = conn.cursor()
    cursor.execute(
        '''
        SELECT o.date, o.value
        FROM observations o
        JOIN series s ON s.id = o.series_id
        WHERE s.kind = ? AND s.label = ? AND s.location = ? AND s.source = ?
        ORDER BY o.date
    ''',
        (kind, label, location, source),
    )
    rows = cursor.fetchall()
    conn.close()
    return [TimePoint(parse_date(day), value) for day, value in rows]


def count_observations(db_file=DB_FILE):
    conn = _get_connection(db_file)
    cursor = conn.cursor()
    cursor.execute(
        '''
        SELECT s.kind, s.label, s.location, s.source, COUNT(o.id)
        FROM series s
        LEFT JOIN observations o ON o.series_id = s.id
        GROUP BY s.id
        ORDER BY s.kind, s.label, s.location, s.source
    '''
    )
    rows = cursor.fetchall()
    conn.close()
    return {(kind, label, location, source): total for kind, label, location, source, total in rows}


def store_data_in_db(db_file=DB_FILE):
    """
    Ensure the database and tables exist before storing.
    """
    create_db(db_file)
