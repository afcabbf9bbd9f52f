import numbers
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


Row = Dict[str, Any]


def is_numeric_value(value) -> bool:
    """True for int/float cells (numpy scalars included); booleans are not numeric."""
    if isinstance(value, bool):
        return False
    # numpy.bool_ is not registered as numbers.Real, so it falls through here
    return isinstance(value, numbers.Real)


@dataclass
class Dataset:
    """
    A named table held in memory for the session.

    Columns keep insertion order (display order); duplicate names collapse
    to their first occurrence. Rows may omit columns or hold None.
    """
    name: str
    columns: List[str]
    rows: List[Row] = field(default_factory=list)

    def __post_init__(self):
        self.columns = list(dict.fromkeys(str(c) for c in self.columns))
        if not self.columns:
            raise ValueError(f"Dataset '{self.name}' has no columns.")
        self.rows = list(self.rows)

    def with_rows(self, rows) -> "Dataset":
        """Return a new dataset with the same name and columns but replaced rows."""
        return Dataset(self.name, list(self.columns), list(rows))

    def __len__(self):
        return len(self.rows)


def numeric_columns(dataset: Optional[Dataset]) -> List[str]:
    """
    Columns whose value in the first row is numeric.

    Only the first row is inspected; a column that is blank in row 0
    is not considered numeric even if later rows are.
    """
    if dataset is None or not dataset.rows:
        return []
    first_row = dataset.rows[0]
    return [col for col in dataset.columns if is_numeric_value(first_row.get(col))]


class DataModel:
    """Shared state container for the application."""

    def __init__(self, orchestrator):
        self.orchestrator = orchestrator            # Owns the authoritative dataset
        self.source_path = None                     # File the dataset came from (None for simulated sources)

    def reset(self):
        self.source_path = None
        self.orchestrator.unload()

    @property
    def source_label(self):
        """Header text for the loaded dataset: its name plus the file it came from, if any."""
        dataset = self.orchestrator.dataset
        if dataset is None:
            return ""
        if self.source_path:
            return f"{dataset.name} ({self.source_path})"
        return dataset.name
