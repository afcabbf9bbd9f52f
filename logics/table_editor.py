import itertools
import math

from logics.data_model import is_numeric_value


def display_value(value):
    """String form of a cell, used for searching and as the initial edit text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _parse_number(text):
    """Parse edit text as int or finite float; None if it is not a number."""
    stripped = text.strip()
    if not stripped:
        return None
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        number = float(stripped)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def coerce_edit(original, text):
    """
    Convert edit text back to the type of the cell it replaces.

    - Numeric cell: store a number when the text parses, otherwise the raw text
    - Boolean cell: True only for "true" (any case), anything else is False
    - Other cells: raw text
    """
    if is_numeric_value(original):
        number = _parse_number(text)
        return text if number is None else number
    if isinstance(original, bool):
        return text.lower() == "true"
    return text


class TableEditModel:
    """
    Paginated, searchable working copy of a dataset's rows.

    Each row is paired with a generated id so edits target the exact row
    even when several rows hold identical values. Committed edits replace
    the row (never mutate it) and push the full working copy to on_commit.

    Args:
        rows: initial rows (copied).
        columns: column names in display order.
        page_size: rows per page.
        on_commit: callable(list_of_rows) invoked after every commit.
    """

    def __init__(self, rows, columns, *, page_size=10, on_commit=None):
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.page_size = page_size
        self.on_commit = on_commit
        self._ids = itertools.count(1)
        self._entries = []      # [(row_id, row_dict)] in dataset order
        self._columns = []
        self._search_term = ""
        self._page = 1
        self._editing = None    # (row_id, column)
        self._edit_buffer = ""
        self.reset(rows, columns)

    # ── Public API ────────────────────────────────────────────

    @property
    def columns(self):
        return list(self._columns)

    @property
    def page(self):
        return self._page

    @property
    def search_term(self):
        return self._search_term

    @property
    def editing(self):
        """(row_id, column) of the in-progress edit, or None."""
        return self._editing

    @property
    def edit_buffer(self):
        return self._edit_buffer

    @property
    def filtered_count(self):
        return len(self._filtered())

    @property
    def total_pages(self):
        return max(1, math.ceil(self.filtered_count / self.page_size))

    @property
    def page_start(self):
        """Zero-based position of the first visible row within the filtered rows."""
        return (self._page - 1) * self.page_size

    def rows(self):
        """Copy of the whole working set, in order."""
        return [dict(row) for _, row in self._entries]

    def visible_rows(self):
        """List of (row_id, row) on the current page."""
        start = self.page_start
        return self._filtered()[start:start + self.page_size]

    def reset(self, rows, columns=None):
        """Adopt new authoritative rows, e.g. after the dataset changed elsewhere."""
        if columns is not None:
            self._columns = list(columns)
        self._entries = [(next(self._ids), dict(row)) for row in rows]
        self.cancel_edit()
        self._page = min(self._page, self.total_pages)

    def search(self, term):
        self._search_term = term or ""
        self._page = 1
        self.cancel_edit()

    def set_page(self, page):
        """Go to page (1-based). Out-of-range pages are ignored; returns True on change."""
        if page < 1 or page > self.total_pages:
            return False
        self._page = page
        self.cancel_edit()
        return True

    def begin_edit(self, row_id, column):
        """Start editing a visible cell, cancelling any edit already in progress."""
        if self._editing is not None:
            self.cancel_edit()
        if column not in self._columns:
            raise KeyError(f"Unknown column: {column}")
        row = dict(self.visible_rows()).get(row_id)
        if row is None:
            raise KeyError(f"Row {row_id} is not on the current page")
        self._editing = (row_id, column)
        self._edit_buffer = display_value(row.get(column))

    def update_edit_buffer(self, text):
        if self._editing is not None:
            self._edit_buffer = text

    def commit_edit(self):
        """
        Write the edit buffer into the working copy and push all rows to on_commit.

        Returns:
            True if an edit was committed, False if none was in progress.
        """
        if self._editing is None:
            return False

        row_id, column = self._editing
        position = self._position_of(row_id)
        if position is None:
            # Row vanished under a reset; nothing to write
            self.cancel_edit()
            return False

        _, row = self._entries[position]
        value = coerce_edit(row.get(column), self._edit_buffer)
        self._entries[position] = (row_id, {**row, column: value})
        print(f"[EDIT] Row {position + 1}, {column} = {value!r}")

        self.cancel_edit()
        if self.on_commit:
            self.on_commit(self.rows())
        return True

    def cancel_edit(self):
        self._editing = None
        self._edit_buffer = ""

    # ── Internals ─────────────────────────────────────────────

    def _matches(self, row, term):
        return any(term in display_value(row.get(col)).lower() for col in self._columns)

    def _filtered(self):
        term = self._search_term.lower()
        if not term:
            return list(self._entries)
        return [(row_id, row) for row_id, row in self._entries if self._matches(row, term)]

    def _position_of(self, row_id):
        for position, (entry_id, _) in enumerate(self._entries):
            if entry_id == row_id:
                return position
        return None
