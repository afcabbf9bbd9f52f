import tkinter as tk
from tkinter import ttk

from UIs.data_editor import DataEditorView
from UIs.widgets import InsightPanel, ScatterChart


class AnalysisDashboard:
    """Second screen – axis/threshold controls, scatter chart, AI insights and the data editor tab."""

    def __init__(self, root, orchestrator, *, on_change_source, source_label=None):
        self.root = root
        self.orchestrator = orchestrator
        self.source_label = source_label or orchestrator.dataset.name
        self.on_change_source = on_change_source
        self.settings = orchestrator.settings
        self._pushing_edit = False
        self._shown_dataset = orchestrator.dataset

        self._build_ui()
        orchestrator.on_change = self._on_state_change
        self._on_state_change()

    # ── Layout ───────────────────────────────────────────────

    def _build_ui(self):
        dataset = self.orchestrator.dataset

        header = ttk.Frame(self.root)
        header.pack(fill='x', padx=15, pady=(10, 0))
        tk.Label(header, text=f"Dataset: {self.source_label}", font=("Arial", 11, "bold")).pack(side='left')
        ttk.Button(header, text="Change Source", command=self.on_change_source).pack(side='right')

        notebook = ttk.Notebook(self.root)
        notebook.pack(fill='both', expand=True, padx=10, pady=10)

        analysis_tab = ttk.Frame(notebook)
        data_tab = ttk.Frame(notebook)
        notebook.add(analysis_tab, text="Analysis & Insights")
        notebook.add(data_tab, text="Data Editor")

        self._build_analysis_tab(analysis_tab)
        self.editor = DataEditorView(
            data_tab, dataset,
            page_size=self.settings.page_size,
            on_update_rows=self._on_rows_edited,
        )

    def _build_analysis_tab(self, parent):
        left = ttk.Frame(parent)
        left.pack(side='left', fill='both', expand=True, padx=(5, 10), pady=5)

        controls = ttk.Frame(left)
        controls.pack(fill='x', pady=(0, 8))

        tk.Label(controls, text="X Axis:").grid(row=0, column=0, sticky='e')
        self.combo_x = ttk.Combobox(controls, state='readonly', width=20)
        self.combo_x.grid(row=0, column=1, padx=5)
        self.combo_x.bind("<<ComboboxSelected>>",
                          lambda _: self.orchestrator.select_x_field(self.combo_x.get()))

        tk.Label(controls, text="Y Axis:").grid(row=0, column=2, sticky='e')
        self.combo_y = ttk.Combobox(controls, state='readonly', width=20)
        self.combo_y.grid(row=0, column=3, padx=5)
        self.combo_y.bind("<<ComboboxSelected>>",
                          lambda _: self.orchestrator.select_y_field(self.combo_y.get()))

        tk.Label(controls, text="Sensitivity (Z-Score):").grid(row=1, column=0, sticky='e', pady=(6, 0))
        self._threshold_var = tk.DoubleVar(value=self.orchestrator.threshold)
        ttk.Scale(
            controls, from_=self.settings.threshold_min, to=self.settings.threshold_max,
            variable=self._threshold_var, orient='horizontal', length=220,
            command=lambda _: self._on_threshold_moved(),
        ).grid(row=1, column=1, columnspan=2, sticky='w', pady=(6, 0))
        self._threshold_label = tk.Label(controls, text="")
        self._threshold_label.grid(row=1, column=3, sticky='w', pady=(6, 0))

        self._count_label = tk.Label(controls, text="", fg="#b91c1c", font=("Arial", 14, "bold"))
        self._count_label.grid(row=0, column=4, rowspan=2, padx=20)

        self.chart = ScatterChart(left)
        self.chart.pack(fill='both', expand=True)

        self.insight_panel = InsightPanel(
            parent,
            on_generate=self._on_generate_insight,
            on_clear=self.orchestrator.clear_insight,
        )
        self.insight_panel.pack(side='right', fill='y', padx=(0, 5), pady=5)

    # ── Events ───────────────────────────────────────────────

    def _on_threshold_moved(self):
        step = self.settings.threshold_step
        value = round(round(self._threshold_var.get() / step) * step, 2)
        self.orchestrator.set_threshold(value)

    def _on_generate_insight(self):
        self.orchestrator.request_insight(schedule=lambda fn: self.root.after(0, fn))

    def _on_rows_edited(self, rows):
        self._pushing_edit = True
        try:
            self.orchestrator.replace_rows(rows)
        finally:
            self._pushing_edit = False

    def _on_state_change(self):
        orch = self.orchestrator
        if orch.dataset is not self._shown_dataset and not self._pushing_edit:
            self.editor.reload(orch.dataset)
        self._shown_dataset = orch.dataset

        numeric = orch.numeric_columns
        self.combo_x.config(values=numeric)
        self.combo_y.config(values=numeric)
        self.combo_x.set(orch.x_field)
        self.combo_y.set(orch.y_field)
        self._threshold_label.config(text=f"{orch.threshold:.1f}")

        if not orch.is_enabled:
            self._count_label.config(text="")
            self.chart.show_message("Insufficient numeric data.\n"
                                    "At least two numeric columns are needed for outlier analysis.")
        else:
            self._count_label.config(text=f"{orch.outlier_count} Outliers Found")
            self.chart.plot(orch.result.scored_rows, orch.x_field, orch.y_field)

        self.insight_panel.render(orch.insight, pending=orch.insight_pending, enabled=orch.is_enabled)
