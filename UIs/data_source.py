import tkinter as tk
from tkinter import ttk, filedialog


class DataSourceScreen:
    """First screen – pick a file or connect to the (simulated) database."""

    def __init__(self, root, *, on_file_selected, on_connect, on_sample):
        self.root = root
        self.on_file_selected = on_file_selected
        self.on_connect = on_connect
        self.on_sample = on_sample

        self._build_ui()

    def _build_ui(self):
        frame = ttk.Frame(self.root)
        frame.pack(pady=20, padx=20, fill='both', expand=True)

        tk.Label(frame, text="Data Analysis", font=("Arial", 16, "bold")).pack(pady=(10, 4))
        tk.Label(
            frame,
            text="Upload a CSV or connect your database. Statistical outliers are detected "
                 "automatically and the AI explains the \"why\" behind them.",
            fg="gray", wraplength=600,
        ).pack(pady=(0, 20))

        notebook = ttk.Notebook(frame)
        notebook.pack(fill='both', expand=True)

        # ── File upload ──────────────────────────────────────
        file_tab = ttk.Frame(notebook, padding=20)
        notebook.add(file_tab, text="Upload File")
        tk.Label(file_tab, text="CSV, Excel or JSON (array of objects)").pack(anchor='w')
        ttk.Button(file_tab, text="Select File...", command=self._browse).pack(anchor='w', pady=10)

        # ── Database ─────────────────────────────────────────
        db_tab = ttk.Frame(notebook, padding=20)
        notebook.add(db_tab, text="Database Source")

        form = ttk.LabelFrame(db_tab, text="Remote Connection", padding=10)
        form.pack(fill='x')
        tk.Label(form, text="Enter any credentials to simulate a database connection.", fg="gray").grid(
            row=0, column=0, columnspan=2, sticky='w', pady=(0, 6),
        )
        self._conn_vars = {}
        for i, label in enumerate(["Host", "Database", "User", "Password"], start=1):
            tk.Label(form, text=f"{label}:").grid(row=i, column=0, sticky='e', pady=2)
            var = tk.StringVar()
            ttk.Entry(form, textvariable=var, width=40, show='*' if label == "Password" else '').grid(
                row=i, column=1, sticky='w', padx=5,
            )
            self._conn_vars[label] = var
        ttk.Button(form, text="Connect", command=self.on_connect).grid(row=5, column=1, sticky='w', pady=8)

        upload = ttk.LabelFrame(db_tab, text="Upload DB File", padding=10)
        upload.pack(fill='x', pady=10)
        ttk.Button(upload, text="Select .db / .sqlite / .sql / .json...", command=self._browse_db).pack(anchor='w')

        ttk.Button(frame, text="Try the sample dataset", command=self.on_sample).pack(pady=15)

    def _browse(self):
        path = filedialog.askopenfilename(
            filetypes=[("Data files", "*.csv *.xlsx *.xls *.json")],
        )
        if path:
            self.on_file_selected(path)

    def _browse_db(self):
        path = filedialog.askopenfilename(
            filetypes=[("Database files", "*.db *.sqlite *.sqlite3 *.sql *.json")],
        )
        if path:
            self.on_file_selected(path)
