import tkinter as tk
from tkinter import ttk

from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg
from matplotlib.figure import Figure


INLIER_COLOR = '#3b82f6'
OUTLIER_COLOR = '#ef4444'


class ScatterChart(ttk.LabelFrame):
    """
    Labeled frame holding a matplotlib scatter plot of scored rows.

    Outliers are drawn larger and in red; inliers in translucent blue.

    Example:
        chart = ScatterChart(frame, title="Data Distribution & Outliers")
        chart.pack(fill='both', expand=True)
        chart.plot(result.scored_rows, 'ad_spend', 'revenue')
    """

    def __init__(self, parent, *, title="Data Distribution & Outliers"):
        super().__init__(parent, text=title, padding=5)
        self._figure = Figure(figsize=(6, 4), dpi=100)
        self._ax = self._figure.add_subplot(111)
        self._canvas = FigureCanvasTkAgg(self._figure, master=self)
        self._canvas.get_tk_widget().pack(fill='both', expand=True)

    def plot(self, scored_rows, x_field, y_field):
        ax = self._ax
        ax.clear()

        inliers = [r for r in scored_rows if not r['is_outlier']]
        outliers = [r for r in scored_rows if r['is_outlier']]

        ax.scatter([r[x_field] for r in inliers], [r[y_field] for r in inliers],
                   s=16, color=INLIER_COLOR, alpha=0.6, label='Data points')
        if outliers:
            ax.scatter([r[x_field] for r in outliers], [r[y_field] for r in outliers],
                       s=40, color=OUTLIER_COLOR, edgecolors='#b91c1c', linewidths=1.5,
                       label='Outliers')

        ax.set_xlabel(x_field)
        ax.set_ylabel(y_field)
        ax.grid(True, alpha=0.3, linestyle='--')
        ax.legend(loc='upper left', fontsize=8)
        self._figure.tight_layout()
        self._canvas.draw_idle()

    def show_message(self, text):
        self._ax.clear()
        self._ax.set_axis_off()
        self._ax.text(0.5, 0.5, text, ha='center', va='center', color='gray')
        self._canvas.draw_idle()


class InsightPanel(ttk.LabelFrame):
    """
    AI insight area: a generate button until an insight is available, then its text.

    Args:
        parent: Parent widget.
        on_generate: callable() when the user asks for an analysis.
        on_clear: callable() when the user dismisses the current one.
    """

    def __init__(self, parent, *, on_generate, on_clear):
        super().__init__(parent, text="AI Insights", padding=8)
        self._on_generate = on_generate
        self._on_clear = on_clear

        tk.Label(
            self,
            text="Generate explanations for detected outliers and get actionable insights.",
            fg="gray", wraplength=280, justify='left',
        ).pack(anchor='w', pady=(0, 6))

        self._text = tk.Text(self, height=18, width=40, wrap=tk.WORD, state='disabled')
        self._text.pack(fill='both', expand=True)

        btn_frame = ttk.Frame(self)
        btn_frame.pack(fill='x', pady=(6, 0))
        self._generate_btn = ttk.Button(btn_frame, text="Generate Insights", command=self._on_generate)
        self._generate_btn.pack(side='left')
        self._clear_btn = ttk.Button(btn_frame, text="Clear Analysis", command=self._on_clear)
        self._clear_btn.pack(side='right')

    def render(self, insight, *, pending=False, enabled=True):
        if pending:
            body = "Analyzing..."
        elif insight is None:
            body = "Click the button below to send the detected outlier data to Gemini for reasoning."
        else:
            lines = ["Summary", insight.summary, "", "Outlier Analysis", insight.outlier_analysis]
            if insight.actionable_insights:
                lines += ["", "Actionable Insights"]
                lines += [f"{i}. {tip}" for i, tip in enumerate(insight.actionable_insights, 1)]
            body = "\n".join(lines)

        self._text.config(state='normal')
        self._text.delete("1.0", tk.END)
        self._text.insert("1.0", body)
        self._text.config(state='disabled')

        can_generate = enabled and not pending and insight is None
        self._generate_btn.config(state='normal' if can_generate else 'disabled')
        self._clear_btn.config(state='normal' if insight is not None else 'disabled')
