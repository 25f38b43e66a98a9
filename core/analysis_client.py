"""
Gemini analysis client for the FocusFlow application.
Turns a batch of study session notes into concentration/stress/mood ratings.
"""

import json
import logging
import math
import os
from typing import Any, Callable, List, Optional, Sequence

from google import genai
from google.genai import types

from .errors import MissingCredentialError, RemoteError, ValidationError
from .models import Analysis, Session, utc_now_iso

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-pro"
DEFAULT_TIMEOUT_MS = 60_000

RATING_FIELDS = ("concentration", "studyCapacity", "stress", "happiness")

ANALYSIS_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "concentration": types.Schema(
            type=types.Type.INTEGER,
            description="A rating of the user's concentration on a scale of 1 to 100, based on their notes.",
        ),
        "studyCapacity": types.Schema(
            type=types.Type.INTEGER,
            description="A rating of the user's study capacity or productivity on a scale of 1 to 100.",
        ),
        "stress": types.Schema(
            type=types.Type.INTEGER,
            description=(
                "An inferred rating of the user's stress level on a scale of 1 to 100 "
                "(where 1 is low stress and 100 is high stress)."
            ),
        ),
        "happiness": types.Schema(
            type=types.Type.INTEGER,
            description="An inferred rating of the user's happiness or mood on a scale of 1 to 100.",
        ),
        "summary": types.Schema(
            type=types.Type.STRING,
            description="A brief, encouraging summary of the study period, highlighting trends or key points.",
        ),
        "suggestions": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(type=types.Type.STRING),
            description=(
                "A list of 2-3 actionable and personalized suggestions for the user "
                "to improve their next study sessions."
            ),
        ),
    },
    required=["concentration", "studyCapacity", "stress", "happiness", "summary", "suggestions"],
)

PROMPT_TEMPLATE = """
Analyze the following study session notes from a user. The user is tracking their productivity and well-being.
Based on their notes, provide a detailed analysis.

Session Data:
{session_data}

Your task is to infer their state of mind and productivity during these sessions.
Return a JSON object with ratings for concentration, study capacity, stress, and happiness (all from 1-100).
Also provide a brief summary and some actionable suggestions for them to improve.
Be encouraging and supportive in your tone.
"""


def build_prompt(sessions: Sequence[Session]) -> str:
    """Build the instruction prompt. Only duration and notes are sent."""
    payload = [{"duration": s.duration, "notes": s.notes} for s in sessions]
    return PROMPT_TEMPLATE.format(session_data=json.dumps(payload, indent=2, ensure_ascii=False))


def _clamp_rating(value: float) -> int:
    return max(1, min(100, round(value)))


def _is_number(value: Any) -> bool:
    # json.loads accepts NaN and Infinity
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def parse_analysis(text: Optional[str], sessions: Sequence[Session]) -> Analysis:
    """
    Validate the model's JSON text and build an Analysis from it.

    Raises:
        RemoteError: if the text is empty, not JSON, or does not match the schema.
    """
    if not text or not text.strip():
        raise RemoteError("The AI response was empty.")

    try:
        data = json.loads(text.strip())
    except ValueError as e:
        raise RemoteError(f"The AI response was not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise RemoteError("The AI response was not a JSON object.")
    for name in RATING_FIELDS:
        if not _is_number(data.get(name)):
            raise RemoteError(f"The AI response has no numeric '{name}'.")
    if not isinstance(data.get("summary"), str):
        raise RemoteError("The AI response has no 'summary' text.")
    suggestions = data.get("suggestions")
    if not isinstance(suggestions, list) or not all(isinstance(s, str) for s in suggestions):
        raise RemoteError("The AI response has no 'suggestions' list.")

    return Analysis(
        date=utc_now_iso(),
        concentration=_clamp_rating(data["concentration"]),
        study_capacity=_clamp_rating(data["studyCapacity"]),
        stress=_clamp_rating(data["stress"]),
        happiness=_clamp_rating(data["happiness"]),
        summary=data["summary"],
        suggestions=tuple(suggestions),
        total_study_duration=sum(s.duration for s in sessions),
        session_count=len(sessions),
    )


class AnalysisClient:
    """
    Sends pending study sessions to Gemini and returns a validated Analysis.

    The API key is looked up on every call so that a key saved in settings
    is picked up without restarting.
    """

    def __init__(
        self,
        api_key_provider: Callable[[], Optional[str]],
        model: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        client_factory: Optional[Callable[[str], Any]] = None,
    ):
        """
        Args:
            api_key_provider: Returns the stored Gemini API key, or None.
            model: Gemini model name (defaults to FOCUSFLOW_GEMINI_MODEL).
            timeout_ms: Request timeout (defaults to FOCUSFLOW_GEMINI_TIMEOUT_MS).
            client_factory: Builds a genai client from an API key.
        """
        self._api_key_provider = api_key_provider
        self.model = model or os.environ.get("FOCUSFLOW_GEMINI_MODEL", DEFAULT_MODEL)
        if timeout_ms is None:
            timeout_ms = int(os.environ.get("FOCUSFLOW_GEMINI_TIMEOUT_MS", DEFAULT_TIMEOUT_MS))
        self.timeout_ms = timeout_ms
        self._client_factory = client_factory or self._default_client

    def _default_client(self, api_key: str):
        return genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=self.timeout_ms),
        )

    def analyze(self, sessions: List[Session]) -> Analysis:
        """
        Analyze a batch of study sessions.

        Raises:
            ValidationError: if the batch is empty.
            MissingCredentialError: if no API key is stored.
            RemoteError: on any transport or response problem.
        """
        if not sessions:
            raise ValidationError("You need at least one study session for the analysis.")

        api_key = (self._api_key_provider() or "").strip()
        if not api_key:
            raise MissingCredentialError("No Gemini API key configured.")

        prompt = build_prompt(sessions)
        logger.info("Requesting analysis of %d sessions from %s", len(sessions), self.model)

        try:
            client = self._client_factory(api_key)
            response = client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=ANALYSIS_SCHEMA,
                ),
            )
            text = response.text
        except Exception as e:
            logger.error("Error calling Gemini API: %s", e)
            raise RemoteError("Could not get the analysis from the AI.") from e

        try:
            return parse_analysis(text, sessions)
        except RemoteError as e:
            logger.error("Invalid analysis response: %s", e)
            raise
