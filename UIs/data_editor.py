import tkinter as tk
from tkinter import ttk

from logics.table_editor import TableEditModel, display_value


class DataEditorView:
    """
    Paginated table with search and in-place cell editing.

    Double-click a cell to edit; Enter commits, Escape cancels. Commits are
    pushed to on_update_rows(rows) as a full replacement of the table.
    """

    def __init__(self, parent, dataset, *, page_size, on_update_rows):
        self.parent = parent
        self.model = TableEditModel(
            dataset.rows, dataset.columns, page_size=page_size, on_commit=on_update_rows,
        )
        self._entry = None
        self._build_ui()
        self._refresh()

    def reload(self, dataset):
        """Show new authoritative data (e.g. after another view replaced the dataset)."""
        self._close_entry()
        self.model.reset(dataset.rows, dataset.columns)
        self._refresh()

    # ── Layout ───────────────────────────────────────────────

    def _build_ui(self):
        toolbar = ttk.Frame(self.parent)
        toolbar.pack(fill='x', padx=10, pady=(10, 5))
        tk.Label(toolbar, text="Data Editor", font=("Arial", 11, "bold")).pack(side='left')

        self._search_var = tk.StringVar()
        search_entry = ttk.Entry(toolbar, textvariable=self._search_var, width=30)
        search_entry.pack(side='right')
        tk.Label(toolbar, text="Search:").pack(side='right', padx=(0, 4))
        self._search_var.trace_add("write", lambda *_: self._on_search())

        columns = ["#"] + self.model.columns
        self._tree = ttk.Treeview(self.parent, columns=columns, show="headings", height=self.model.page_size)
        for col in columns:
            self._tree.heading(col, text=col)
            self._tree.column(col, width=50 if col == "#" else 120, anchor='w')
        self._tree.pack(fill='both', expand=True, padx=10)
        self._tree.bind("<Double-1>", self._on_double_click)

        pager = ttk.Frame(self.parent)
        pager.pack(fill='x', padx=10, pady=8)
        self._info_label = tk.Label(pager, text="", fg="gray")
        self._info_label.pack(side='left')
        ttk.Button(pager, text="Next >", command=lambda: self._go(self.model.page + 1)).pack(side='right')
        self._page_label = tk.Label(pager, text="")
        self._page_label.pack(side='right', padx=8)
        ttk.Button(pager, text="< Prev", command=lambda: self._go(self.model.page - 1)).pack(side='right')

    def _refresh(self):
        self._tree.delete(*self._tree.get_children())
        start = self.model.page_start
        for offset, (row_id, row) in enumerate(self.model.visible_rows()):
            values = [start + offset + 1] + [display_value(row.get(c)) for c in self.model.columns]
            self._tree.insert("", "end", iid=str(row_id), values=values)

        total = self.model.filtered_count
        shown = len(self.model.visible_rows())
        self._info_label.config(
            text=f"Showing {start + 1 if shown else 0}-{start + shown} of {total} rows",
        )
        self._page_label.config(text=f"Page {self.model.page} of {self.model.total_pages}")

    # ── Events ───────────────────────────────────────────────

    def _on_search(self):
        self._close_entry()
        self.model.search(self._search_var.get())
        self._refresh()

    def _go(self, page):
        if self.model.set_page(page):
            self._close_entry()
            self._refresh()

    def _on_double_click(self, event):
        item = self._tree.identify_row(event.y)
        col_ref = self._tree.identify_column(event.x)   # '#1', '#2', ...
        if not item or not col_ref:
            return
        col_index = int(col_ref[1:]) - 1
        if col_index == 0:
            return  # row number column
        column = self.model.columns[col_index - 1]

        self._close_entry()
        self.model.begin_edit(int(item), column)

        x, y, width, height = self._tree.bbox(item, col_ref)
        self._entry = ttk.Entry(self._tree)
        self._entry.insert(0, self.model.edit_buffer)
        self._entry.select_range(0, tk.END)
        self._entry.place(x=x, y=y, width=width, height=height)
        self._entry.focus_set()
        self._entry.bind("<Return>", lambda _: self._commit())
        self._entry.bind("<Escape>", lambda _: self._cancel())
        self._entry.bind("<FocusOut>", lambda _: self._commit())

    def _commit(self):
        if self._entry is None:
            return
        self.model.update_edit_buffer(self._entry.get())
        self._close_entry()
        # on_update_rows may call reload(); the tree is refreshed either way
        self.model.commit_edit()
        self._refresh()

    def _cancel(self):
        self.model.cancel_edit()
        self._close_entry()

    def _close_entry(self):
        if self._entry is not None:
            entry, self._entry = self._entry, None
            entry.destroy()
