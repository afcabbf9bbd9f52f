import json
import os

import numpy as np
import pandas as pd

from logics.data_model import Dataset


CSV_ENCODINGS = ['utf-8', 'utf-8-sig', 'latin-1', 'cp1252', 'iso-8859-1']
DATABASE_EXTENSIONS = ('.db', '.sqlite', '.sqlite3', '.sql')
SIMULATED_DB_NAME = 'PostgreSQL: public.campaign_metrics'


def frame_to_rows(df):
    """
    Convert a DataFrame to a list of row dicts with native Python values.

    NaN cells become None so they read as missing rather than as numbers.
    """
    clean = df.astype(object).where(pd.notna(df), None)
    return clean.to_dict('records')


def _read_csv(path, filename):
    # Try multiple encodings to handle international characters
    for enc in CSV_ENCODINGS:
        try:
            df = pd.read_csv(path, encoding=enc, skip_blank_lines=True)
            print(f"[LOAD] {filename} loaded with encoding: {enc}")
            return df
        except (UnicodeDecodeError, LookupError):
            continue
    raise ValueError(f"Could not load {filename} with any supported encoding")


def _read_json(path, filename):
    with open(path, encoding='utf-8') as fh:
        try:
            payload = json.load(fh)
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse JSON file {filename}: {e}") from e

    if not isinstance(payload, list) or not payload or not isinstance(payload[0], dict):
        raise ValueError("Invalid JSON structure. Expected an array of objects.")
    columns = list(payload[0].keys())
    rows = [dict(item) for item in payload if isinstance(item, dict)]
    return Dataset(filename, columns, rows)


def load_dataset(path, progress_callback=None):
    """
    Load a file into a Dataset.

    Supports:
        - CSV (encoding fallback)
        - Excel (.xlsx / .xls)
        - JSON array of objects (columns from the first object)
        - Database files (.db/.sqlite/.sqlite3/.sql): simulated import of the sample table

    Args:
        path: file path.
        progress_callback: Optional callable(current_idx, total, label).

    Returns:
        Dataset

    Raises:
        ValueError: unsupported format, unreadable or empty file.
    """
    filename = os.path.basename(path)
    extension = os.path.splitext(filename)[1].lower()

    if progress_callback:
        progress_callback(0, 1, filename)

    if extension == '.csv':
        df = _read_csv(path, filename)
        dataset = Dataset(filename, [str(c) for c in df.columns], frame_to_rows(df))
    elif extension in ('.xlsx', '.xls'):
        df = pd.read_excel(path)
        dataset = Dataset(filename, [str(c) for c in df.columns], frame_to_rows(df))
    elif extension == '.json':
        dataset = _read_json(path, filename)
    elif extension in DATABASE_EXTENSIONS:
        dataset = generate_sample_dataset(name=f"{filename} (Simulated Import)")
    else:
        raise ValueError("Unsupported file format. Please upload .csv, .xlsx, .json, .sql, or .db files.")

    if not dataset.rows:
        raise ValueError(f"{filename} contains no data rows.")

    if progress_callback:
        progress_callback(1, 1, filename)
    print(f"[LOAD] {dataset.name}: {len(dataset.rows)} rows, {len(dataset.columns)} columns")
    return dataset


def generate_sample_dataset(size=100, seed=None, name='Sample campaigns'):
    """
    Build an ad-spend vs revenue campaign table with a few planted outliers.

    Row 15 has an unusually high return, row 42 a very poor one and row 88
    a suspicious fixed revenue of 50000.
    """
    rng = np.random.default_rng(seed)
    rows = []
    for i in range(size):
        ad_spend = int(rng.integers(500, 5500))
        revenue = ad_spend * (2.5 + rng.random()) + rng.random() * 1000

        if i == 15:
            revenue *= 3
        if i == 42:
            revenue *= 0.2
        if i == 88:
            revenue = 50000.0

        rows.append({
            'id': i + 1,
            'campaign_name': f"Campaign {i + 1}",
            'ad_spend': ad_spend,
            'revenue': round(float(revenue), 2),
            'clicks': int(ad_spend / (rng.random() * 2 + 0.5)),
            'impressions': ad_spend * 100,
        })
    columns = ['id', 'campaign_name', 'ad_spend', 'revenue', 'clicks', 'impressions']
    return Dataset(name, columns, rows)


def connect_simulated_database(seed=None):
    """Stand-in for a live database connection; returns the sample table."""
    print(f"[LOAD] Connecting to {SIMULATED_DB_NAME} (simulated)")
    return generate_sample_dataset(seed=seed, name=SIMULATED_DB_NAME)
