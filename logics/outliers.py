import numpy as np

from logics.computation import compute_stats, field_values


DEFAULT_THRESHOLD = 2.5
JOINT_DISTANCE_MULTIPLIER = 1.4


def _z_scores(values, stats):
    """Z-scores for a float array; NaN entries and zero-spread columns score 0."""
    if stats.standard_deviation == 0:
        return np.zeros(len(values))
    z = (values - stats.mean) / stats.standard_deviation
    return np.where(np.isnan(z), 0.0, z)


def detect_outliers(rows, x_field, y_field, threshold=DEFAULT_THRESHOLD,
                    joint_multiplier=JOINT_DISTANCE_MULTIPLIER):
    """
    Flag rows that deviate strongly on either axis or on both together.

    A row is an outlier when |z_x| > threshold, |z_y| > threshold, or the
    Euclidean norm of (z_x, z_y) exceeds threshold * joint_multiplier.

    Args:
        rows: sequence of row dicts (not modified).
        x_field: column plotted on the X axis.
        y_field: column plotted on the Y axis.
        threshold: z-score cut-off per axis.
        joint_multiplier: factor applied to threshold for the joint test.

    Returns:
        tuple: (scored_rows, outlier_indices)
        - scored_rows: one dict per input row, in input order, with the axis
          fields replaced by their numeric value (0.0 when not numeric) plus
          'is_outlier', 'z_score_x' and 'z_score_y'
        - outlier_indices: ascending positions of flagged rows
    """
    rows = list(rows)
    if not rows:
        return [], []

    x_stats = compute_stats(rows, x_field)
    y_stats = compute_stats(rows, y_field)

    x_values = field_values(rows, x_field).to_numpy()
    y_values = field_values(rows, y_field).to_numpy()

    z_x = _z_scores(x_values, x_stats)
    z_y = _z_scores(y_values, y_stats)
    joint = np.hypot(z_x, z_y)

    flags = (
        (np.abs(z_x) > threshold)
        | (np.abs(z_y) > threshold)
        | (joint > threshold * joint_multiplier)
    )

    x_plot = np.where(np.isnan(x_values), 0.0, x_values)
    y_plot = np.where(np.isnan(y_values), 0.0, y_values)

    scored_rows = []
    for i, row in enumerate(rows):
        scored = dict(row)
        scored[x_field] = float(x_plot[i])
        scored[y_field] = float(y_plot[i])
        scored['is_outlier'] = bool(flags[i])
        scored['z_score_x'] = float(z_x[i])
        scored['z_score_y'] = float(z_y[i])
        scored_rows.append(scored)

    outlier_indices = [int(i) for i in np.flatnonzero(flags)]
    print(f"[OUTLIERS] {x_field} vs {y_field} @ {threshold}: "
          f"{len(outlier_indices)}/{len(rows)} rows flagged")
    return scored_rows, outlier_indices
