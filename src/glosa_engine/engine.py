"""Engine facade wiring validator, rules, augmentor and batch orchestration.

``create_engine`` builds a GlosaEngine from settings; the module-level
functions (``validate_guide``, ``validate_batch``, ``analyze_risk``,
``auto_fix``) run on a shared rules-only engine created on first use.
"""

import logging
import threading
from typing import Any, Iterable, Optional, Sequence

from glosa_engine.autofix import auto_fix_guide
from glosa_engine.batch import BatchOrchestrator
from glosa_engine.config import GlosaSettings
from glosa_engine.prediction.augmentor import AugmentorConfig, RiskAugmentor
from glosa_engine.prediction.base import PredictionCapability
from glosa_engine.prediction.openai_predictor import (
    OpenAIGlosaPredictor,
    OpenAIPredictorConfig,
)
from glosa_engine.risk import DEFAULT_OPERATOR, RiskAggregator
from glosa_engine.rules.operators import default_registry
from glosa_engine.rules.registry import OperatorRuleRegistry
from glosa_engine.schemas import (
    AutoFixResult,
    BatchAnalysisResult,
    BatchGuide,
    GlosaRisk,
    ValidationResult,
)
from glosa_engine.validation.schema_validator import SchemaValidator, ValidatorConfig

logger = logging.getLogger(__name__)


class GlosaEngine:
    """Single entry point for guide validation, risk analysis and auto-fix."""

    def __init__(
        self,
        validator: Optional[SchemaValidator] = None,
        registry: Optional[OperatorRuleRegistry] = None,
        augmentor: Optional[RiskAugmentor] = None,
        default_operator: str = DEFAULT_OPERATOR,
        batch_workers: int = 4,
    ):
        self.validator = validator or SchemaValidator()
        self.registry = registry or default_registry(self.validator.today)
        self.augmentor = augmentor or RiskAugmentor()
        self.aggregator = RiskAggregator(
            validator=self.validator,
            registry=self.registry,
            augmentor=self.augmentor,
            default_operator=default_operator,
        )
        self.orchestrator = BatchOrchestrator(self.aggregator, max_workers=batch_workers)

    @property
    def default_operator(self) -> str:
        return self.aggregator.default_operator

    def validate_guide(self, guide: Any, guide_type: Optional[Any] = None) -> ValidationResult:
        return self.validator.validate(guide, guide_type)

    def validate_batch(self, guides: Iterable[Any]) -> ValidationResult:
        return self.orchestrator.validate_batch(list(guides))

    def analyze_risk(self, guide: Any, operator_name: Optional[str] = None) -> GlosaRisk:
        return self.aggregator.analyze(guide, operator_name)

    def auto_fix(self, guide: Any) -> AutoFixResult:
        return auto_fix_guide(guide)

    def analyze_batch(
        self,
        guides: Sequence[BatchGuide],
        auto_fix: bool = False,
        include_validation: bool = True,
        **kwargs,
    ) -> BatchAnalysisResult:
        return self.orchestrator.analyze_batch(
            guides, auto_fix=auto_fix, include_validation=include_validation, **kwargs
        )

    def close(self) -> None:
        self.augmentor.close()

    def __enter__(self) -> "GlosaEngine":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def build_predictor(settings: GlosaSettings) -> OpenAIGlosaPredictor:
    """OpenAI predictor configured from the prediction settings."""
    return OpenAIGlosaPredictor(
        OpenAIPredictorConfig.from_dict(settings.prediction.model_dump())
    )


def create_engine(
    settings: Optional[GlosaSettings] = None,
    predictor: Optional[PredictionCapability] = None,
) -> GlosaEngine:
    """Build an engine from settings.

    Args:
        settings: Engine settings; defaults if not provided
        predictor: Prediction capability to inject. When omitted and
            prediction is enabled, the OpenAI predictor is used (it makes no
            call without credentials).

    Returns:
        Configured GlosaEngine
    """
    settings = settings or GlosaSettings()

    validator = SchemaValidator(
        ValidatorConfig(
            high_value_threshold=settings.high_value_threshold,
            default_guide_type=settings.default_guide_type,
        )
    )

    if settings.prediction.enabled:
        predictor = predictor or build_predictor(settings)
    else:
        predictor = None
    augmentor = RiskAugmentor(
        predictor,
        AugmentorConfig.from_dict(settings.prediction.model_dump()),
    )

    logger.debug(
        f"Glosa engine created: operator={settings.default_operator}, "
        f"augmentation={'on' if augmentor.enabled else 'off'}"
    )
    return GlosaEngine(
        validator=validator,
        augmentor=augmentor,
        default_operator=settings.default_operator,
        batch_workers=settings.batch_workers,
    )


_default_engine: Optional[GlosaEngine] = None
_default_engine_lock = threading.Lock()


def get_default_engine() -> GlosaEngine:
    """Shared rules-only engine used by the module-level functions."""
    global _default_engine
    with _default_engine_lock:
        if _default_engine is None:
            _default_engine = GlosaEngine()
        return _default_engine


def validate_guide(guide: Any, guide_type: Optional[Any] = None) -> ValidationResult:
    """Validate one guide against the required fields of ``guide_type``."""
    return get_default_engine().validate_guide(guide, guide_type)


def validate_batch(guides: Iterable[Any]) -> ValidationResult:
    """Validate a batch; findings are labelled "Guide #n - field"."""
    return get_default_engine().validate_batch(guides)


def analyze_risk(guide: Any, operator_name: str = DEFAULT_OPERATOR) -> GlosaRisk:
    """Glosa risk of ``guide`` for ``operator_name`` (rules and schema only)."""
    return get_default_engine().analyze_risk(guide, operator_name)


def auto_fix(guide: Any) -> AutoFixResult:
    """Fixed copy of ``guide`` and the list of changes applied."""
    return auto_fix_guide(guide)
