"""
Configuration for outlier analysis and the data editor.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class AnalysisSettings:
    """
    Tunable parameters shared by the orchestrator, the editor and the UI.
    """
    # Outlier scoring
    default_threshold: float = 2.5
    joint_multiplier: float = 1.4  # widens the joint z-distance test (~sqrt(2))

    # Threshold slider range
    threshold_min: float = 1.5
    threshold_max: float = 4.0
    threshold_step: float = 0.1

    # Data editor
    page_size: int = 10

    # AI insight
    inlier_sample_size: int = 10
    insight_timeout_s: float = 30.0
    gemini_model: str = "gemini-2.5-flash"
    api_key: Optional[str] = None

    def __post_init__(self):
        """Pick up the API key from the environment when not given explicitly."""
        if self.api_key is None:
            self.api_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")
        if self.page_size < 1:
            raise ValueError(f"page_size must be positive, got {self.page_size}")

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)
