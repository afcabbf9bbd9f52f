"""Shared fixtures for the analysis tests."""

import pytest

from logics.data_model import Dataset
from logics.insight_service import Insight
from logics.orchestrator import AnalysisOrchestrator
from logics.settings import AnalysisSettings


class FakeInsightClient:
    """Records calls and returns a canned insight (or raises a given error)."""

    def __init__(self, insight=None, error=None):
        self.insight = insight or Insight(
            summary="Spend and revenue move together.",
            outlier_analysis="Row 20 looks like a data entry error.",
            actionable_insights=["Check row 20", "Re-run after cleanup", "Review campaign mix"],
        )
        self.error = error
        self.calls = []

    def analyze(self, row_sample, columns, outlier_indices, x_field, y_field):
        self.calls.append({
            'row_sample': row_sample,
            'columns': columns,
            'outlier_indices': outlier_indices,
            'x_field': x_field,
            'y_field': y_field,
        })
        if self.error is not None:
            raise self.error
        return self.insight


def make_campaign_rows(n=20, spike_at=None):
    """Linear spend/revenue rows with an optional extreme revenue value."""
    rows = []
    for i in range(n):
        revenue = 3.0 * (100 + i * 10) + (i % 3)
        if spike_at is not None and i == spike_at:
            revenue = 50000.0
        rows.append({
            'id': i + 1,
            'name': f"Campaign {i + 1}",
            'ad_spend': 100 + i * 10,
            'revenue': revenue,
            'active': i % 2 == 0,
        })
    return rows


@pytest.fixture
def campaign_dataset():
    rows = make_campaign_rows(20, spike_at=19)
    return Dataset("campaigns", ['id', 'name', 'ad_spend', 'revenue', 'active'], rows)


@pytest.fixture
def fake_client():
    return FakeInsightClient()


@pytest.fixture
def settings():
    return AnalysisSettings(api_key="test-key", insight_timeout_s=5.0)


@pytest.fixture
def orchestrator(fake_client, settings, campaign_dataset):
    orch = AnalysisOrchestrator(fake_client, settings)
    orch.load_dataset(campaign_dataset)
    return orch
