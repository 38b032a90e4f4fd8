import sqlite3
from pathlib import Path

DB_FILE = Path(__file__).resolve().parents[1] / "project.db"


def create_db(db_file=DB_FILE):
    """
    Keep the database schema ready for storing daily series.
    """
    conn = sqlite3.connect(db_file)
    conn.execute("PRAGMA foreign_keys = ON")
    cursor = conn.cursor()

    cursor.execute(
        '''
        CREATE TABLE IF NOT EXISTS series (
            id INTEGER PRIMARY KEY,
            kind TEXT NOT NULL,
            label TEXT NOT NULL,
            location TEXT NOT NULL,
            source TEXT NOT NULL,
            UNIQUE(kind, label, location, source)
        )
    '''
    )

    cursor.execute(
        '''
        CREATE TABLE IF NOT EXISTS observations (
            id INTEGER PRIMARY KEY,
            series_id INTEGER NOT NULL,
            date TEXT NOT NULL,
            value REAL NOT NULL,
            UNIQUE(series_id, date),
            FOREIGN KEY(series_id) REFERENCES series(id)
        )
    '''
    )

    conn.commit()
    conn.close()
