import itertools
import math
import threading
import traceback
from dataclasses import dataclass
from typing import List, Optional

from logics.data_model import Dataset, numeric_columns
from logics.insight_service import (
    Insight,
    MissingApiKeyError,
    failure_insight,
    missing_key_insight,
)
from logics.outliers import detect_outliers
from logics.settings import AnalysisSettings


# ── Results & requests ───────────────────────────────────────

@dataclass(frozen=True)
class AnalysisResult:
    scored_rows: List[dict]
    outlier_indices: List[int]

    @property
    def outlier_count(self):
        return len(self.outlier_indices)


@dataclass(frozen=True)
class InsightRequest:
    """Token for one AI call; only applied while its generation is current."""
    request_id: int
    generation: int
    row_sample: List[dict]
    columns: List[str]
    outlier_indices: List[int]     # positions within row_sample
    x_field: str
    y_field: str


# ── Events ───────────────────────────────────────────────────

@dataclass(frozen=True)
class DatasetLoaded:
    dataset: Optional[Dataset]


@dataclass(frozen=True)
class XFieldSelected:
    field_name: str


@dataclass(frozen=True)
class YFieldSelected:
    field_name: str


@dataclass(frozen=True)
class ThresholdChanged:
    threshold: float


@dataclass(frozen=True)
class InsightReceived:
    request: InsightRequest
    insight: Insight


@dataclass(frozen=True)
class InsightCleared:
    pass


def recompute(dataset, x_field, y_field, threshold, joint_multiplier):
    """
    Score the dataset for the given axes, or return None when analysis is not possible.

    Analysis needs rows, two axis fields and at least two numeric columns.
    """
    if dataset is None or not dataset.rows or not x_field or not y_field:
        return None
    if len(numeric_columns(dataset)) < 2:
        return None
    scored_rows, outlier_indices = detect_outliers(
        dataset.rows, x_field, y_field, threshold, joint_multiplier
    )
    return AnalysisResult(scored_rows, outlier_indices)


class AnalysisOrchestrator:
    """
    Single owner of the dataset, axis selection, threshold and cached results.

    Every input change arrives as an event through dispatch(). An effective
    change bumps the generation, drops the cached insight and recomputes the
    scored rows synchronously. AI requests carry the generation they were
    issued under; a reply for an older generation is discarded.

    Args:
        insight_client: object with analyze(row_sample, columns, outlier_indices,
            x_field, y_field) -> Insight. None means no AI service is configured.
        settings: AnalysisSettings (defaults if None).
        on_change: optional callable() invoked after any state change.
    """

    def __init__(self, insight_client=None, settings: Optional[AnalysisSettings] = None, on_change=None):
        self.settings = settings or AnalysisSettings()
        self.insight_client = insight_client
        self.on_change = on_change

        self.dataset = None
        self.x_field = ""
        self.y_field = ""
        self.threshold = self.settings.default_threshold
        self.result = None
        self.insight = None

        self._generation = 0
        self._request_ids = itertools.count(1)
        self._pending_request = None

        self._handlers = {
            DatasetLoaded: self._on_dataset_loaded,
            XFieldSelected: self._on_x_selected,
            YFieldSelected: self._on_y_selected,
            ThresholdChanged: self._on_threshold_changed,
            InsightReceived: self._on_insight_received,
            InsightCleared: self._on_insight_cleared,
        }

    # ── State queries ────────────────────────────────────────

    @property
    def generation(self):
        return self._generation

    @property
    def numeric_columns(self):
        return numeric_columns(self.dataset)

    @property
    def is_enabled(self):
        """False when there is no data or fewer than two numeric columns."""
        return self.result is not None

    @property
    def outlier_count(self):
        return self.result.outlier_count if self.result else 0

    @property
    def insight_pending(self):
        return self._pending_request is not None

    # ── Event dispatch ───────────────────────────────────────

    def dispatch(self, event):
        """Apply one event; returns True if state changed."""
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported event: {event!r}")
        changed = handler(event)
        if changed and self.on_change:
            self.on_change()
        return changed

    def load_dataset(self, dataset):
        return self.dispatch(DatasetLoaded(dataset))

    def unload(self):
        return self.dispatch(DatasetLoaded(None))

    def replace_rows(self, rows):
        """Adopt edited rows as the new authoritative dataset (same name and columns)."""
        if self.dataset is None:
            raise ValueError("No dataset loaded")
        return self.dispatch(DatasetLoaded(self.dataset.with_rows(rows)))

    def select_x_field(self, field_name):
        return self.dispatch(XFieldSelected(field_name))

    def select_y_field(self, field_name):
        return self.dispatch(YFieldSelected(field_name))

    def set_threshold(self, threshold):
        return self.dispatch(ThresholdChanged(threshold))

    def clear_insight(self):
        return self.dispatch(InsightCleared())

    # ── Handlers ─────────────────────────────────────────────

    def _on_dataset_loaded(self, event):
        self.dataset = event.dataset
        self._repair_axes()
        self._invalidate()
        return True

    def _on_x_selected(self, event):
        if event.field_name == self.x_field:
            return False
        if event.field_name not in self.numeric_columns:
            print(f"[ANALYSIS] Ignoring non-numeric X field: {event.field_name}")
            return False
        self.x_field = event.field_name
        self._invalidate()
        return True

    def _on_y_selected(self, event):
        if event.field_name == self.y_field:
            return False
        if event.field_name not in self.numeric_columns:
            print(f"[ANALYSIS] Ignoring non-numeric Y field: {event.field_name}")
            return False
        self.y_field = event.field_name
        self._invalidate()
        return True

    def _on_threshold_changed(self, event):
        threshold = float(event.threshold)
        if not math.isfinite(threshold) or threshold < 0:
            raise ValueError(f"Threshold must be a non-negative number, got {event.threshold!r}")
        if threshold == self.threshold:
            return False
        self.threshold = threshold
        self._invalidate()
        return True

    def _on_insight_received(self, event):
        request = event.request
        if request is not self._pending_request or request.generation != self._generation:
            print(f"[INSIGHT] Discarding stale response for request {request.request_id}")
            return False
        self._pending_request = None
        self.insight = event.insight
        return True

    def _on_insight_cleared(self, event):
        if self.insight is None:
            return False
        self.insight = None
        return True

    def _repair_axes(self):
        numeric = self.numeric_columns
        if not numeric:
            return
        if self.x_field not in numeric:
            self.x_field = numeric[0]
        if self.y_field not in numeric:
            self.y_field = numeric[1] if len(numeric) > 1 else numeric[0]

    def _invalidate(self):
        """Start a new generation: drop cached outputs and rescore."""
        self._generation += 1
        self._pending_request = None
        self.insight = None
        self.result = recompute(
            self.dataset, self.x_field, self.y_field,
            self.threshold, self.settings.joint_multiplier,
        )
        if self.result is None and self.dataset is not None:
            print(f"[ANALYSIS] Insufficient numeric data in '{self.dataset.name}'")

    # ── AI insight ───────────────────────────────────────────

    def build_insight_request(self):
        """
        Capture the current analysis as an InsightRequest and mark it in flight.

        Returns None when analysis is disabled or a request is already pending.
        """
        if self.result is None:
            return None
        if self._pending_request is not None:
            print("[INSIGHT] Request already in progress, ignoring duplicate")
            return None

        flagged = set(self.result.outlier_indices)
        outlier_rows = [dict(self.dataset.rows[i]) for i in self.result.outlier_indices]
        normal_rows = [
            dict(row) for i, row in enumerate(self.dataset.rows) if i not in flagged
        ][:self.settings.inlier_sample_size]

        request = InsightRequest(
            request_id=next(self._request_ids),
            generation=self._generation,
            row_sample=outlier_rows + normal_rows,
            columns=list(self.dataset.columns),
            outlier_indices=list(range(len(outlier_rows))),
            x_field=self.x_field,
            y_field=self.y_field,
        )
        self._pending_request = request
        return request

    def fetch_insight(self, request):
        """
        Call the AI collaborator for a request, never raising.

        Missing credentials, timeouts and any service error become fallback insights.
        The call runs on a daemon thread so a hung service never blocks shutdown.
        """
        if self.insight_client is None:
            print("[INSIGHT] No AI service configured")
            return missing_key_insight()

        outcome = {}

        def call():
            try:
                outcome['insight'] = self.insight_client.analyze(
                    request.row_sample, request.columns, request.outlier_indices,
                    request.x_field, request.y_field,
                )
            except MissingApiKeyError as e:
                print(f"[INSIGHT] {e}")
                outcome['insight'] = missing_key_insight()
            except Exception as e:
                print(f"\n[ERROR] Insight request failed: {e}")
                traceback.print_exc()
                outcome['insight'] = failure_insight()

        worker = threading.Thread(target=call, name="insight-request", daemon=True)
        worker.start()
        worker.join(self.settings.insight_timeout_s)
        if worker.is_alive() or 'insight' not in outcome:
            print(f"[INSIGHT] No reply within {self.settings.insight_timeout_s}s")
            return failure_insight()
        return outcome['insight']

    def request_insight(self, on_complete=None, *, schedule=None, background=True):
        """
        Ask the AI collaborator to explain the current outliers.

        Args:
            on_complete: optional callable(applied: bool) run after the reply is handled.
            schedule: callable(fn) that runs fn on the owner's thread, e.g.
                lambda fn: root.after(0, fn). Defaults to calling fn directly.
            background: run the call on a worker thread (True) or inline (False).

        Returns:
            The InsightRequest issued, or None if nothing was sent.
        """
        request = self.build_insight_request()
        if request is None:
            return None
        if self.on_change:
            self.on_change()
        deliver = schedule or (lambda fn: fn())

        def run():
            insight = self.fetch_insight(request)

            def apply():
                applied = self.dispatch(InsightReceived(request, insight))
                if on_complete:
                    on_complete(applied)

            deliver(apply)

        if background:
            threading.Thread(target=run, daemon=True).start()
        else:
            run()
        return request
