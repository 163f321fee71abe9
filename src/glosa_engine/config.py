"""Engine settings schema and loader.

Settings come from, in increasing precedence:
1. Schema defaults
2. A YAML file ($GLOSA_CONFIG, an explicit path, or ./glosa.yaml)
3. Environment overrides (GLOSA_DEFAULT_OPERATOR, GLOSA_HIGH_VALUE_THRESHOLD,
   GLOSA_PREDICTION_ENABLED)

A .env file in the working directory is loaded first, so OpenAI
credentials and overrides can live there.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from glosa_engine.schemas import GuideType

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "GLOSA_CONFIG"
DEFAULT_CONFIG_FILENAME = "glosa.yaml"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class GlosaConfigError(Exception):
    """Raised when the settings file is unreadable or invalid."""


class PredictionSettings(BaseModel):
    """Settings for the external prediction service."""

    enabled: bool = Field(True, description="Use AI predictions when credentials exist")
    model: Optional[str] = Field(None, description="Model/deployment; None uses the client default")
    temperature: float = Field(0.2, ge=0.0, le=2.0)
    max_tokens: int = Field(800, gt=0)
    timeout_seconds: float = Field(20.0, gt=0.0, description="Upper bound per prediction call")
    max_concurrent: int = Field(3, ge=1, description="Concurrent calls to the prediction service")
    max_retries: int = Field(2, ge=1)
    retry_base_delay: float = Field(1.0, ge=0.0)
    retry_max_delay: float = Field(8.0, ge=0.0)
    prompt_name: str = Field("glosa_prediction", min_length=1)


class GlosaSettings(BaseModel):
    """Top-level engine settings."""

    default_operator: str = Field("UNIMED", min_length=1)
    default_guide_type: GuideType = Field(GuideType.CONSULTATION)
    high_value_threshold: float = Field(10000.0, gt=0.0)
    batch_workers: int = Field(4, ge=1, description="Guides scored in parallel by a batch run")
    prediction: PredictionSettings = Field(default_factory=PredictionSettings)

    @field_validator("default_operator")
    @classmethod
    def normalize_operator(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("default_guide_type", mode="before")
    @classmethod
    def parse_guide_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return GuideType.parse(v)
        return v


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise GlosaConfigError(f"Failed to read settings file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise GlosaConfigError(f"Settings file {path} must contain a mapping")
    return data


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    operator = os.getenv("GLOSA_DEFAULT_OPERATOR")
    if operator:
        overrides["default_operator"] = operator
    threshold = os.getenv("GLOSA_HIGH_VALUE_THRESHOLD")
    if threshold:
        overrides["high_value_threshold"] = threshold
    enabled = os.getenv("GLOSA_PREDICTION_ENABLED")
    if enabled:
        overrides["prediction"] = {"enabled": enabled.strip().lower() in _TRUE_VALUES}
    return overrides


def _resolve_path(path: Optional[Union[str, Path]]) -> Optional[Path]:
    if path is not None:
        return Path(path)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    default = Path.cwd() / DEFAULT_CONFIG_FILENAME
    return default if default.exists() else None


def load_settings(path: Optional[Union[str, Path]] = None) -> GlosaSettings:
    """Load engine settings.

    Args:
        path: Optional YAML settings file. Falls back to $GLOSA_CONFIG, then
            ./glosa.yaml if it exists, then defaults only.

    Returns:
        Validated GlosaSettings

    Raises:
        GlosaConfigError: If the file is missing, unreadable or invalid
    """
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.debug(f"Loaded environment from {env_path}")

    data: Dict[str, Any] = {}
    config_path = _resolve_path(path)
    if config_path is not None:
        if not config_path.exists():
            raise GlosaConfigError(f"Settings file not found: {config_path}")
        data = _read_yaml(config_path)
        logger.debug(f"Loaded settings from {config_path}")

    overrides = _env_overrides()
    prediction_override = overrides.pop("prediction", None)
    data.update(overrides)
    if prediction_override:
        existing = data.get("prediction")
        prediction = dict(existing) if isinstance(existing, dict) else {}
        prediction.update(prediction_override)
        data["prediction"] = prediction

    try:
        return GlosaSettings.model_validate(data)
    except ValidationError as e:
        raise GlosaConfigError(f"Invalid settings: {e}") from e
