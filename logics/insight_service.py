"""
AI commentary on detected outliers, backed by Google Gemini.
"""

import json
from dataclasses import dataclass, field
from typing import List, Optional

import google.generativeai as genai


DEFAULT_MODEL = "gemini-2.5-flash"


class InsightServiceError(Exception):
    """Raised when the AI service fails or returns something unusable."""
    pass


class MissingApiKeyError(InsightServiceError):
    """Raised when no API key is configured."""
    pass


@dataclass(frozen=True)
class Insight:
    summary: str
    outlier_analysis: str
    actionable_insights: List[str] = field(default_factory=list)
    is_fallback: bool = False


def missing_key_insight():
    return Insight(
        summary="API Key missing. Cannot generate AI insights.",
        outlier_analysis="Please check your configuration.",
        actionable_insights=[],
        is_fallback=True,
    )


def failure_insight():
    return Insight(
        summary="Failed to generate analysis.",
        outlier_analysis="An error occurred while communicating with the AI model.",
        actionable_insights=["Try again later."],
        is_fallback=True,
    )


def build_prompt(row_sample, columns, outlier_indices, x_field, y_field):
    """
    Build the analysis prompt.

    row_sample holds the flagged rows and a few ordinary ones;
    outlier_indices are positions within row_sample.
    """
    flagged = set(outlier_indices)
    outliers = [row for i, row in enumerate(row_sample) if i in flagged]
    normal = [row for i, row in enumerate(row_sample) if i not in flagged]

    return f"""
You are a senior data scientist. I have a dataset with columns: {', '.join(columns)}.
We are analyzing the relationship between "{x_field}" and "{y_field}".

Here is a sample of "normal" data points:
{json.dumps(normal, default=str)}

Here are the detected statistical outliers (High Z-Score):
{json.dumps(outliers, default=str)}

Please provide a structured analysis in JSON format containing:
1. "summary": A brief overview of the data relationship observed.
2. "outlierAnalysis": Specific commentary on why these points might be outliers in this context (e.g., data errors, anomalies, or high-performers).
3. "actionableInsights": A list of 3 specific recommendations based on this data.

Do not include markdown code blocks. Just return the JSON object.
"""


def parse_insight_response(text):
    """
    Parse the model's JSON reply into an Insight.

    Raises:
        InsightServiceError: on empty text, invalid JSON or missing fields.
    """
    if not text or not text.strip():
        raise InsightServiceError("No response from the AI model")

    cleaned = text.strip()
    if cleaned.startswith("```"):
        # Models sometimes wrap JSON in a fenced block despite instructions
        cleaned = cleaned.strip("`")
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:]

    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise InsightServiceError(f"Malformed response: {e}") from e

    if not isinstance(payload, dict):
        raise InsightServiceError("Expected a JSON object")

    summary = payload.get("summary")
    analysis = payload.get("outlierAnalysis")
    insights = payload.get("actionableInsights", [])
    if not isinstance(summary, str) or not isinstance(analysis, str):
        raise InsightServiceError("Response is missing 'summary' or 'outlierAnalysis'")
    if not isinstance(insights, list):
        raise InsightServiceError("'actionableInsights' must be a list")

    return Insight(
        summary=summary,
        outlier_analysis=analysis,
        actionable_insights=[str(item) for item in insights],
    )


class GeminiInsightClient:
    """
    Sends an outlier sample to Gemini and returns its commentary.

    Args:
        api_key: Gemini API key; calls raise MissingApiKeyError without one.
        model_name: Gemini model id.
    """

    def __init__(self, api_key: Optional[str], model_name: str = DEFAULT_MODEL):
        self._api_key = api_key
        self._model_name = model_name
        self._model = None

    def _get_model(self):
        if self._model is None:
            genai.configure(api_key=self._api_key)
            self._model = genai.GenerativeModel(
                self._model_name,
                generation_config={"response_mime_type": "application/json"},
            )
        return self._model

    def analyze(self, row_sample, columns, outlier_indices, x_field, y_field) -> Insight:
        if not self._api_key:
            raise MissingApiKeyError("API_KEY is not defined in the environment.")

        prompt = build_prompt(row_sample, columns, outlier_indices, x_field, y_field)
        print(f"[INSIGHT] Sending {len(row_sample)} rows ({len(outlier_indices)} outliers) to {self._model_name}")
        response = self._get_model().generate_content(prompt)
        return parse_insight_response(response.text)
