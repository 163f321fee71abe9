"""OpenAI-backed prediction capability.

Serializes the guide plus the issues found so far into a prompt, asks the
model for a JSON array of additional issues and converts its 0-100
probability scale to the engine's 0-1 scale. Malformed, empty or non-JSON
responses mean "no predictions"; they never stop validation.
"""

import json
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError

from glosa_engine.schemas import GlosaPrediction

logger = logging.getLogger(__name__)

# Keys under which a model may wrap the array when it answers with an object
_WRAPPER_KEYS = ("predictions", "issues", "glosas")


@dataclass
class OpenAIPredictorConfig:
    """Configuration for the OpenAI glosa predictor."""

    prompt_name: str = "glosa_prediction"  # Prompt file name (without .md)
    model: Optional[str] = None  # None -> client factory default
    temperature: float = 0.2
    max_tokens: int = 800
    timeout_seconds: float = 20.0
    # Retry config for transient failures (rate limits, 5xx)
    max_retries: int = 2
    retry_base_delay: float = 1.0  # seconds, doubles each attempt
    retry_max_delay: float = 8.0

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "OpenAIPredictorConfig":
        """Create config from dictionary."""
        return cls(
            prompt_name=config.get("prompt_name", "glosa_prediction"),
            model=config.get("model"),
            temperature=config.get("temperature", 0.2),
            max_tokens=config.get("max_tokens", 800),
            timeout_seconds=config.get("timeout_seconds", 20.0),
            max_retries=config.get("max_retries", 2),
            retry_base_delay=config.get("retry_base_delay", 1.0),
            retry_max_delay=config.get("retry_max_delay", 8.0),
        )


class _RawPrediction(BaseModel):
    """One item of the model's JSON answer (probability on a 0-100 scale)."""

    issue_type: str = "ai_prediction"
    description: str
    glosa_code: str = "AI"
    probability: float = Field(..., ge=0.0)


def _strip_code_fence(content: str) -> str:
    if "```json" in content:
        return content.split("```json")[1].split("```")[0]
    if "```" in content:
        return content.split("```")[1].split("```")[0]
    return content


def parse_predictions(content: Optional[str]) -> List[GlosaPrediction]:
    """Parse the model's answer into predictions.

    Accepts a bare JSON array or an object wrapping the array under
    ``predictions``/``issues``/``glosas``. Invalid items are skipped.

    Args:
        content: Raw response content (may be None or empty)

    Returns:
        Parsed predictions, never auto-fixable; [] for unusable answers
    """
    if not content or not content.strip():
        return []

    try:
        data = json.loads(_strip_code_fence(content).strip())
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse prediction response: {e}")
        return []

    if isinstance(data, dict):
        data = next((data[k] for k in _WRAPPER_KEYS if isinstance(data.get(k), list)), None)
    if not isinstance(data, list):
        logger.warning("Prediction response is not a JSON array, ignoring it")
        return []

    predictions: List[GlosaPrediction] = []
    for item in data:
        try:
            raw = _RawPrediction.model_validate(item)
        except ValidationError as e:
            logger.debug(f"Skipping malformed prediction item: {e.errors()[:1]}")
            continue
        predictions.append(
            GlosaPrediction(
                issue_type=raw.issue_type,
                description=raw.description,
                glosa_code=raw.glosa_code,
                probability=min(raw.probability / 100.0, 1.0),
                auto_fixable=False,
            )
        )
    return predictions


class OpenAIGlosaPredictor:
    """Prediction capability backed by an OpenAI chat model."""

    def __init__(
        self,
        config: Optional[OpenAIPredictorConfig] = None,
        client: Optional[Any] = None,
    ):
        """Initialize the predictor.

        Args:
            config: Predictor configuration
            client: Optional pre-configured OpenAI client (created lazily otherwise)
        """
        self.config = config or OpenAIPredictorConfig()
        self._client = client
        self._model = self.config.model

    def is_configured(self) -> bool:
        """True when a client was injected or credentials are available."""
        if self._client is not None:
            return True
        from glosa_engine.services.openai_client import is_openai_configured

        return is_openai_configured()

    def _get_client(self) -> Any:
        if self._client is None:
            from glosa_engine.services.openai_client import get_client_and_model

            self._client, self._model = get_client_and_model(
                model=self.config.model, timeout=self.config.timeout_seconds
            )
        return self._client

    def _model_name(self) -> str:
        if self._model is None:
            from glosa_engine.services.openai_client import get_default_model

            self._model = get_default_model()
        return self._model

    def build_messages(
        self,
        guide: Mapping[str, Any],
        operator_name: str,
        existing_issues: Sequence[GlosaPrediction],
    ) -> List[Dict[str, str]]:
        """Build the chat messages for a guide, preferring the prompt file."""
        guide_json = json.dumps(dict(guide), indent=2, ensure_ascii=False, default=str)
        try:
            from glosa_engine.utils.prompt_loader import load_prompt

            prompt_data = load_prompt(
                self.config.prompt_name,
                operator_name=operator_name,
                guide_json=guide_json,
                existing_issues=list(existing_issues),
            )
            return prompt_data["messages"]
        except FileNotFoundError:
            logger.debug(
                f"Prompt file '{self.config.prompt_name}' not found, using inline prompt"
            )

        issues_text = "\n".join(f"- {i.description}" for i in existing_issues) or "- none"
        user_prompt = (
            f"Analyze the following TISS guide submitted to {operator_name}:\n\n"
            f"{guide_json}\n\n"
            f"Issues already identified:\n{issues_text}\n\n"
            "Identify OTHER potential problems that may cause a glosa. Return only a "
            'JSON array: [{"issue_type": "...", "description": "...", '
            '"glosa_code": "...", "probability": 85}] with probability from 0 to 100.'
        )
        return [
            {
                "role": "system",
                "content": "You are a TISS auditor specialized in preventing glosas. "
                "Always answer with valid JSON only.",
            },
            {"role": "user", "content": user_prompt},
        ]

    def predict(
        self,
        guide: Mapping[str, Any],
        operator_name: str,
        existing_issues: Sequence[GlosaPrediction],
    ) -> List[GlosaPrediction]:
        """Ask the model for additional glosa risks.

        Returns [] without a network call when no credentials are configured.
        API errors are retried with exponential backoff; the last error is
        re-raised for the augmentor to isolate.
        """
        if not self.is_configured():
            logger.debug("OpenAI not configured, skipping AI glosa prediction")
            return []

        messages = self.build_messages(guide, operator_name, existing_issues)
        client = self._get_client()
        max_attempts = max(1, self.config.max_retries)

        for attempt in range(max_attempts):
            try:
                response = client.chat.completions.create(
                    model=self._model_name(),
                    messages=messages,
                    temperature=self.config.temperature,
                    max_tokens=self.config.max_tokens,
                )
                content = response.choices[0].message.content if response.choices else None
                predictions = parse_predictions(content)
                logger.info(
                    f"AI glosa prediction for {operator_name}: {len(predictions)} issue(s)"
                )
                return predictions
            except Exception as e:
                if attempt >= max_attempts - 1:
                    raise
                # Exponential backoff with full jitter
                base_delay = min(
                    self.config.retry_base_delay * (2 ** attempt),
                    self.config.retry_max_delay,
                )
                delay = random.uniform(0, base_delay)
                logger.warning(
                    "Glosa prediction call failed (attempt %d/%d): %s. Retrying in %.1fs...",
                    attempt + 1, max_attempts, e, delay,
                )
                time.sleep(delay)
        return []
