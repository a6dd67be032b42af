# L10: LLM Layer - External model column role classifier
import httpx
import json
import logging
from typing import Dict, Any, List, Optional, Sequence
from pydantic import BaseModel, ValidationError
from rapidfuzz import fuzz, process, utils

from autotablero.config import Settings
from autotablero.core.exceptions import LLMException
from autotablero.layers.l2_classification.binding_selector import select_bindings
from autotablero.layers.l2_classification.domain_classifier import classify_domain
from autotablero.layers.l2_classification.role_classifier import (
    ColumnRoleClassifier,
    KeywordHeuristicClassifier,
)
from autotablero.models.schemas import Bindings, ClassificationResult, ColumnMetadata, DomainFamily

logger = logging.getLogger(__name__)

GROQ_API_URL = "https://api.groq.com/openai/v1/chat/completions"

# Minimum rapidfuzz score for a model-suggested column name to be accepted
COLUMN_MATCH_THRESHOLD = 80

SYSTEM_PROMPT = """Eres un sistema experto en análisis de datos para tableros ejecutivos de gobierno.
Tu salida siempre es un objeto JSON puro, sin explicaciones."""


class ModelSuggestion(BaseModel):
    """Shape the model is asked to answer with."""
    family: DomainFamily
    dimension: Optional[str] = None
    metric1: Optional[str] = None
    metric2: Optional[str] = None


class ExternalModelClassifier(ColumnRoleClassifier):
    """
    Asks an OpenAI-compatible chat completion endpoint (Groq by default)
    for the dataset family and the dimension/metric columns.

    Any transport, HTTP or parsing failure falls back to the keyword
    heuristic, and every suggested column is snapped to a real column,
    so callers always get a valid family and valid bindings.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "llama-3.3-70b-versatile",
        api_url: str = GROQ_API_URL,
        timeout: float = 60.0,
        sample_rows: int = 15,
        client: Optional[httpx.Client] = None,
        fallback: Optional[ColumnRoleClassifier] = None
    ):
        self.api_key = api_key
        self.model = model
        self.api_url = api_url
        self.sample_rows = sample_rows
        self.client = client or httpx.Client(timeout=timeout)
        self.fallback = fallback or KeywordHeuristicClassifier()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExternalModelClassifier":
        return cls(
            api_key=settings.GROQ_API_KEY,
            model=settings.GROQ_MODEL,
            api_url=settings.GROQ_API_URL,
            timeout=settings.LLM_TIMEOUT_SECONDS,
            sample_rows=settings.LLM_SAMPLE_ROWS,
            fallback=KeywordHeuristicClassifier(settings)
        )

    def classify(self, column_names, rows=()):
        names = [str(n) for n in column_names]
        try:
            suggestion = self._suggest(names, rows)
        except LLMException as e:
            logger.warning(f"External classification failed, using keyword heuristic: {e.message}")
            return self.fallback.classify(names, rows)
        return self._to_classification(names, suggestion)

    def select_bindings(self, columns, rows=()):
        try:
            suggestion = self._suggest(list(columns.keys()), rows)
        except LLMException as e:
            logger.warning(f"External binding selection failed, using keyword heuristic: {e.message}")
            return self.fallback.select_bindings(columns, rows)
        return self._to_bindings(columns, suggestion)

    def classify_table(self, columns, rows=()):
        names = list(columns.keys())
        try:
            suggestion = self._suggest(names, rows)
        except LLMException as e:
            logger.warning(f"External classification failed, using keyword heuristic: {e.message}")
            return self.fallback.classify_table(columns, rows)
        return self._to_classification(names, suggestion), self._to_bindings(columns, suggestion)

    def _suggest(self, column_names: List[str], rows: Sequence[Dict[str, Any]]) -> ModelSuggestion:
        """Single chat completion round trip."""
        sample = list(rows[:self.sample_rows])

        user_prompt = f"""Recibí un conjunto de datos con estas columnas: {", ".join(column_names)}
Muestra representativa: {json.dumps(sample, ensure_ascii=False, default=str)}

Responde con un objeto JSON con estas llaves:
- "family": una de OBRA_PUBLICA, FINANCIERO, PROGRAMA_SOCIAL, GENERICO
- "dimension": la mejor columna para agrupar (alcaldías, tipos, estatus, nombres)
- "metric1": la métrica numérica más importante (montos, importes)
- "metric2": la segunda métrica numérica (cantidades, avances, porcentajes)

Usa exactamente los nombres de columna recibidos."""

        try:
            response = self.client.post(
                self.api_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json"
                },
                json={
                    "model": self.model,
                    "messages": [
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": user_prompt}
                    ],
                    "temperature": 0,
                    "max_tokens": 300,
                    "response_format": {"type": "json_object"}
                }
            )
        except httpx.HTTPError as e:
            raise LLMException(f"Request to {self.api_url} failed: {e}")

        if response.status_code != 200:
            logger.error(f"Groq API error: {response.status_code} - {response.text}")
            raise LLMException(f"API Error: {response.status_code}")

        try:
            content = response.json()["choices"][0]["message"]["content"]
            return ModelSuggestion.model_validate(json.loads(_strip_fences(content)))
        except (KeyError, IndexError, TypeError, AttributeError, ValueError, ValidationError) as e:
            raise LLMException("Model answer is not a valid suggestion", {"error": str(e)})

    def _to_classification(self, column_names: List[str], suggestion: ModelSuggestion) -> ClassificationResult:
        # Keyword scores are still reported so both strategies share one output shape.
        keyword_result = classify_domain(column_names)
        return ClassificationResult(
            family=suggestion.family,
            scores=keyword_result.scores,
            confidence=keyword_result.confidence,
            operational_profile=keyword_result.operational_profile
        )

    def _to_bindings(self, columns: Dict[str, ColumnMetadata], suggestion: ModelSuggestion) -> Bindings:
        heuristic = select_bindings(columns)
        names = list(columns.keys())

        dimension = _snap_column(suggestion.dimension, names) or heuristic.dimension
        metric1 = _snap_column(suggestion.metric1, names) or heuristic.metric1
        metric2 = _snap_column(suggestion.metric2, names) or metric1

        return Bindings(dimension=dimension, metric1=metric1, metric2=metric2)

    def close(self):
        """Close the HTTP client."""
        self.client.close()


def _snap_column(suggested: Optional[str], column_names: List[str]) -> Optional[str]:
    """Map a model-suggested column name onto a real column, or None."""
    if not suggested or not column_names:
        return None
    if suggested in column_names:
        return suggested

    match = process.extractOne(
        suggested, column_names, scorer=fuzz.WRatio, processor=utils.default_process
    )
    if match and match[1] >= COLUMN_MATCH_THRESHOLD:
        return match[0]

    logger.info(f"Discarding suggested column '{suggested}' (no close match)")
    return None


def _strip_fences(content: str) -> str:
    """Remove a ```json fence some models wrap around their answer."""
    text = content.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        text = text.rsplit("```", 1)[0]
    return text.strip()
