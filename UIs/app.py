from tkinter import messagebox

from logics.data_model import DataModel
from logics.file_handler import connect_simulated_database, generate_sample_dataset, load_dataset
from logics.insight_service import GeminiInsightClient
from logics.orchestrator import AnalysisOrchestrator
from logics.settings import AnalysisSettings

from UIs.analysis_dashboard import AnalysisDashboard
from UIs.data_source import DataSourceScreen
from UIs.progress_dialog import ProgressDialog


class OutlierLensApp:
    """Main application controller that manages navigation between views."""

    def __init__(self, root, settings=None):
        self.root = root
        self.root.title("OutlierLens - Outlier Detection & AI Insights")
        self.root.geometry("1200x800")

        self.settings = settings or AnalysisSettings()
        if not self.settings.has_api_key:
            print("[INSIGHT] API_KEY is not defined in the environment.")
        client = GeminiInsightClient(self.settings.api_key, self.settings.gemini_model)
        self.model = DataModel(AnalysisOrchestrator(client, self.settings))

        self.show_data_source()

    # ── Navigation ──────────────────────────────────────────

    def show_data_source(self):
        self.model.orchestrator.on_change = None
        self.model.reset()
        self._clear_window()
        DataSourceScreen(
            self.root,
            on_file_selected=self._on_file_selected,
            on_connect=self._on_connect,
            on_sample=self._on_sample,
        )

    def show_dashboard(self):
        self._clear_window()
        AnalysisDashboard(
            self.root, self.model.orchestrator,
            on_change_source=self.show_data_source,
            source_label=self.model.source_label,
        )

    # ── Logic callbacks ─────────────────────────────────────

    def _on_file_selected(self, path):
        def on_success(dataset):
            self._open(dataset, source_path=path)

        ProgressDialog(self.root, "Loading...", "Reading data...").run(
            lambda progress_cb: load_dataset(path, progress_callback=progress_cb),
            on_success=on_success,
            on_error=lambda err: messagebox.showerror("Load error", err),
        )

    def _on_connect(self):
        ProgressDialog(self.root, "Connecting...", "Connecting to database...").run(
            lambda progress_cb: connect_simulated_database(),
            on_success=self._open,
            on_error=lambda err: messagebox.showerror("Connection error", err),
        )

    def _on_sample(self):
        self._open(generate_sample_dataset())

    def _open(self, dataset, source_path=None):
        self.model.source_path = source_path
        self.model.orchestrator.load_dataset(dataset)
        self.show_dashboard()

    # ── Helpers ──────────────────────────────────────────────

    def _clear_window(self):
        for widget in self.root.winfo_children():
            widget.destroy()
