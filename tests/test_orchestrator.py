"""Tests for the analysis orchestrator: recomputation, axis repair and AI insight handling."""

import threading
import time

import pytest

from conftest import FakeInsightClient, make_campaign_rows
from logics.data_model import DataModel, Dataset
from logics.insight_service import InsightServiceError, MissingApiKeyError, failure_insight, missing_key_insight
from logics.orchestrator import (
    AnalysisOrchestrator,
    InsightReceived,
    ThresholdChanged,
    XFieldSelected,
    recompute,
)
from logics.settings import AnalysisSettings


# ── Recomputation ───────────────────────────────────────────

def test_load_picks_first_numeric_axes(orchestrator):
    """Axes default to the first two numeric columns; scores are ready immediately."""
    assert orchestrator.numeric_columns == ['id', 'ad_spend', 'revenue']
    assert orchestrator.x_field == 'id'
    assert orchestrator.y_field == 'ad_spend'
    assert orchestrator.is_enabled
    assert len(orchestrator.result.scored_rows) == 20


def test_axis_change_recomputes(orchestrator):
    orchestrator.select_x_field('ad_spend')
    orchestrator.select_y_field('revenue')
    assert orchestrator.result.outlier_indices == [19]
    assert orchestrator.outlier_count == 1


def test_non_numeric_axis_selection_is_ignored(orchestrator):
    generation = orchestrator.generation
    assert orchestrator.select_x_field('name') is False
    assert orchestrator.x_field == 'id'
    assert orchestrator.generation == generation


def test_reselecting_same_value_is_not_a_change(orchestrator):
    generation = orchestrator.generation
    assert orchestrator.set_threshold(orchestrator.threshold) is False
    assert orchestrator.select_y_field(orchestrator.y_field) is False
    assert orchestrator.generation == generation


def test_threshold_change_recomputes(orchestrator):
    orchestrator.select_x_field('ad_spend')
    orchestrator.select_y_field('revenue')
    orchestrator.set_threshold(10.0)
    assert orchestrator.outlier_count == 0
    orchestrator.set_threshold(2.5)
    assert orchestrator.outlier_count == 1


def test_invalid_threshold_raises(orchestrator):
    with pytest.raises(ValueError):
        orchestrator.set_threshold(float('nan'))
    with pytest.raises(ValueError):
        orchestrator.set_threshold(-1)


def test_axis_repair_when_column_disappears(orchestrator, campaign_dataset):
    """Dropping the selected X column reselects a valid numeric column."""
    orchestrator.select_x_field('revenue')
    rows = [{k: v for k, v in row.items() if k != 'revenue'} for row in campaign_dataset.rows]
    orchestrator.load_dataset(Dataset("trimmed", ['id', 'name', 'ad_spend', 'active'], rows))
    assert orchestrator.x_field == 'id'
    assert orchestrator.y_field == 'ad_spend'
    assert orchestrator.x_field in orchestrator.numeric_columns


def test_axis_repair_after_edit_changes_type(orchestrator, campaign_dataset):
    """Editing the first row to text removes the column from the numeric set."""
    orchestrator.select_y_field('revenue')
    rows = [dict(r) for r in campaign_dataset.rows]
    rows[0]['revenue'] = "unknown"
    orchestrator.replace_rows(rows)
    assert orchestrator.numeric_columns == ['id', 'ad_spend']
    assert orchestrator.y_field == 'ad_spend'


def test_single_numeric_column_disables_analysis():
    orch = AnalysisOrchestrator(FakeInsightClient(), AnalysisSettings(api_key="k"))
    orch.load_dataset(Dataset("one", ['a', 'b'], [{'a': 1, 'b': 'x'}, {'a': 2, 'b': 'y'}]))
    assert orch.x_field == 'a' and orch.y_field == 'a'
    assert not orch.is_enabled
    assert orch.result is None
    assert orch.outlier_count == 0
    assert orch.request_insight(background=False) is None


def test_empty_dataset_disables_analysis():
    orch = AnalysisOrchestrator(FakeInsightClient(), AnalysisSettings(api_key="k"))
    orch.load_dataset(Dataset("empty", ['a', 'b'], []))
    assert not orch.is_enabled


def test_replace_rows_keeps_name_and_columns(orchestrator, campaign_dataset):
    original = orchestrator.dataset
    rows = [dict(r) for r in campaign_dataset.rows]
    orchestrator.replace_rows(rows)
    assert orchestrator.dataset is not original
    assert orchestrator.dataset.name == "campaigns"
    assert orchestrator.dataset.columns == original.columns


def test_recompute_is_pure(campaign_dataset):
    first = recompute(campaign_dataset, 'ad_spend', 'revenue', 2.5, 1.4)
    second = recompute(campaign_dataset, 'ad_spend', 'revenue', 2.5, 1.4)
    assert first == second
    assert recompute(None, 'a', 'b', 2.5, 1.4) is None


def test_dispatch_rejects_unknown_events(orchestrator):
    with pytest.raises(TypeError):
        orchestrator.dispatch(object())


def test_on_change_fires_for_effective_changes(fake_client, settings, campaign_dataset):
    calls = []
    orch = AnalysisOrchestrator(fake_client, settings, on_change=lambda: calls.append(1))
    orch.load_dataset(campaign_dataset)
    orch.dispatch(ThresholdChanged(3.0))
    orch.dispatch(XFieldSelected('name'))      # ignored
    assert len(calls) == 2


# ── AI insight ──────────────────────────────────────────────

def test_insight_payload_is_bounded(fake_client, settings):
    """Outlier rows come first, followed by at most ten ordinary rows."""
    rows = make_campaign_rows(40, spike_at=5)
    orch = AnalysisOrchestrator(fake_client, settings)
    orch.load_dataset(Dataset("c", ['id', 'name', 'ad_spend', 'revenue', 'active'], rows))
    orch.select_x_field('ad_spend')
    orch.select_y_field('revenue')
    assert orch.result.outlier_indices == [5]

    orch.request_insight(background=False)
    call = fake_client.calls[0]
    assert len(call['row_sample']) == 11
    assert call['row_sample'][0]['id'] == 6
    assert call['outlier_indices'] == [0]
    assert [r['id'] for r in call['row_sample'][1:]] == [1, 2, 3, 4, 5, 7, 8, 9, 10, 11]
    assert call['x_field'] == 'ad_spend' and call['y_field'] == 'revenue'
    assert call['columns'] == ['id', 'name', 'ad_spend', 'revenue', 'active']
    # The sample carries authoritative values, not the scored view
    assert 'is_outlier' not in call['row_sample'][0]


def test_successful_insight_is_cached(orchestrator, fake_client):
    applied = []
    request = orchestrator.request_insight(on_complete=applied.append, background=False)
    assert request is not None
    assert orchestrator.insight == fake_client.insight
    assert not orchestrator.insight_pending
    assert applied == [True]


def test_threshold_change_clears_insight(orchestrator):
    orchestrator.request_insight(background=False)
    assert orchestrator.insight is not None
    orchestrator.set_threshold(3.0)
    assert orchestrator.insight is None


def test_clear_insight(orchestrator):
    orchestrator.request_insight(background=False)
    assert orchestrator.clear_insight() is True
    assert orchestrator.insight is None
    assert orchestrator.clear_insight() is False


def test_duplicate_request_rejected_while_pending(orchestrator):
    first = orchestrator.build_insight_request()
    assert first is not None
    assert orchestrator.insight_pending
    assert orchestrator.build_insight_request() is None
    assert orchestrator.request_insight(background=False) is None


def test_stale_response_is_discarded(orchestrator, fake_client):
    """A reply issued before an axis change is not shown for the new axes."""
    request = orchestrator.build_insight_request()
    orchestrator.select_x_field('revenue')
    assert not orchestrator.insight_pending

    applied = orchestrator.dispatch(InsightReceived(request, fake_client.insight))
    assert applied is False
    assert orchestrator.insight is None


def test_new_request_allowed_after_inputs_change(orchestrator):
    orchestrator.build_insight_request()
    orchestrator.set_threshold(3.0)
    assert orchestrator.build_insight_request() is not None


def test_missing_credentials_fallback(orchestrator):
    orchestrator.insight_client = FakeInsightClient(error=MissingApiKeyError("no key"))
    orchestrator.request_insight(background=False)
    assert orchestrator.insight == missing_key_insight()
    assert orchestrator.insight.is_fallback


def test_no_client_fallback(campaign_dataset, settings):
    orch = AnalysisOrchestrator(None, settings)
    orch.load_dataset(campaign_dataset)
    orch.request_insight(background=False)
    assert orch.insight == missing_key_insight()


@pytest.mark.parametrize("error", [InsightServiceError("bad json"), RuntimeError("boom"), ConnectionError("down")])
def test_collaborator_failure_fallback(orchestrator, error):
    orchestrator.insight_client = FakeInsightClient(error=error)
    orchestrator.request_insight(background=False)
    assert orchestrator.insight == failure_insight()
    assert not orchestrator.insight_pending


def test_timeout_becomes_failure(campaign_dataset):
    class SlowClient(FakeInsightClient):
        def analyze(self, *args):
            time.sleep(1.0)
            return self.insight

    orch = AnalysisOrchestrator(SlowClient(), AnalysisSettings(api_key="k", insight_timeout_s=0.05))
    orch.load_dataset(campaign_dataset)
    orch.request_insight(background=False)
    assert orch.insight == failure_insight()
    # The abandoned call must not keep the interpreter alive on exit
    stragglers = [t for t in threading.enumerate() if t.name == "insight-request"]
    assert stragglers and all(t.daemon for t in stragglers)


def test_background_request_delivers_through_schedule(orchestrator, fake_client):
    """The worker thread hands the reply to the scheduler, which applies it."""
    done = threading.Event()
    scheduled = []

    def schedule(fn):
        scheduled.append(fn)
        done.set()

    request = orchestrator.request_insight(schedule=schedule)
    assert request is not None
    assert orchestrator.insight_pending
    assert done.wait(5)
    assert orchestrator.insight is None     # not applied until the owner runs it

    scheduled[0]()
    assert orchestrator.insight == fake_client.insight


def test_data_model_reset_unloads(orchestrator):
    """Going back to the source screen drops the dataset and all derived state."""
    model = DataModel(orchestrator)
    model.source_path = "/tmp/x.csv"
    model.reset()
    assert model.source_path is None
    assert orchestrator.dataset is None
    assert orchestrator.result is None
    assert orchestrator.numeric_columns == []


def test_data_model_source_label(orchestrator):
    """The header shows the dataset name, plus the file path when it came from a file."""
    model = DataModel(orchestrator)
    assert model.source_label == "campaigns"
    model.source_path = "/data/campaigns.csv"
    assert model.source_label == "campaigns (/data/campaigns.csv)"
    model.reset()
    assert model.source_label == ""


def test_load_survives_int_beyond_float_range(settings):
    """A column holding an integer too large for a float still loads and scores."""
    orch = AnalysisOrchestrator(None, settings)
    orch.load_dataset(Dataset("huge", ['a', 'b'], [{'a': 10 ** 400, 'b': 2}, {'a': 1, 'b': 3}]))
    assert orch.is_enabled
    assert orch.outlier_count == 0
    assert orch.result.scored_rows[0]['a'] == 0.0
