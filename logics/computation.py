import math
from dataclasses import dataclass

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class FieldStats:
    """Summary statistics of one numeric field over the current rows."""
    mean: float = 0.0
    standard_deviation: float = 0.0
    min: float = 0.0
    max: float = 0.0


def to_number(value):
    """
    Coerce a cell value to a float.

    Numbers pass through, booleans map to 1.0/0.0, strings are parsed after
    stripping whitespace. Anything else (None, empty or unparsable text,
    inf/nan) yields NaN so callers can drop or neutralise it.
    """
    if value is None:
        return np.nan
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return np.nan
        try:
            number = float(text)
        except ValueError:
            return np.nan
    else:
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            # ints beyond float range (e.g. long JSON literals) count as unusable
            return np.nan
    if not math.isfinite(number):
        return np.nan
    return number


def field_values(rows, field_name):
    """Return a float Series of the coerced values of field_name (NaN where coercion failed)."""
    return pd.Series([to_number(row.get(field_name)) for row in rows], dtype=float)


def compute_stats(rows, field_name):
    """
    Compute mean, population standard deviation, min and max of a field.

    - Values that do not coerce to a finite number are skipped silently
    - Uses ddof=0 (divides by n): the loaded table is the whole population
    - With no usable values every statistic is 0

    Args:
        rows: sequence of row dicts.
        field_name: column to summarise.

    Returns:
        FieldStats
    """
    values = field_values(rows, field_name).dropna()
    if values.empty:
        return FieldStats()

    low, high = float(values.min()), float(values.max())
    # A constant column must report exactly zero spread, not rounding noise
    std = 0.0 if low == high else float(values.std(ddof=0))
    return FieldStats(
        mean=float(values.mean()),
        standard_deviation=std,
        min=low,
        max=high,
    )
