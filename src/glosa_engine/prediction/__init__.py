"""External glosa prediction: capability protocol, OpenAI adapter and augmentor."""

from glosa_engine.prediction.augmentor import AugmentorConfig, RiskAugmentor
from glosa_engine.prediction.base import PredictionCapability
from glosa_engine.prediction.openai_predictor import (
    OpenAIGlosaPredictor,
    OpenAIPredictorConfig,
    parse_predictions,
)

__all__ = [
    "AugmentorConfig",
    "OpenAIGlosaPredictor",
    "OpenAIPredictorConfig",
    "PredictionCapability",
    "RiskAugmentor",
    "parse_predictions",
]
