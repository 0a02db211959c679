import os
import pandas as pd
from datetime import date
from typing import Optional

DATA_PATH = os.path.join(os.path.dirname(os.path.dirname(
    os.path.dirname(__file__))), "data", "sample_showtimes.csv")

SHOWTIME_COLUMNS = [
    "cinema_code", "play_date", "movie_id", "title", "duration",
    "showtime_id", "time", "session_type",
]


def load_showtimes(
    cinema_code: str,
    play_date: date,
    path: Optional[str] = None,
) -> pd.DataFrame:
    """
    Load showtimes from a local CSV and keep the rows for one cinema and day.

    Expected columns:
      cinema_code, play_date, movie_id, title, duration, showtime_id, time,
      session_type
    """
    csv_path = path or DATA_PATH
    if not os.path.exists(csv_path):
        # If file is missing, return empty DataFrame and let the caller decide
        return pd.DataFrame(columns=SHOWTIME_COLUMNS)

    # Everything as text: times like "09:05" and ids like "0013" must survive.
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)

    missing = [c for c in SHOWTIME_COLUMNS if c not in df.columns and c != "session_type"]
    if missing:
        raise ValueError(f"{csv_path} is missing columns: {', '.join(missing)}")
    if "session_type" not in df.columns:
        df["session_type"] = ""

    df["cinema_code"] = df["cinema_code"].str.strip().str.upper()
    df["time"] = df["time"].str.strip()
    df["play_date"] = pd.to_datetime(df["play_date"], errors="coerce").dt.date

    df = df[(df["cinema_code"] == cinema_code.strip().upper())
            & (df["play_date"] == play_date)]

    return df.reset_index(drop=True)
