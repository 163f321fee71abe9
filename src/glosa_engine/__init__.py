"""
Glosa Engine - TISS guide validation and glosa risk prediction.

Validates guides against the TISS schema, scores the probability that an
insurance operator rejects them (glosa) and applies safe automatic fixes.
"""

__version__ = "0.1.0"

from glosa_engine.engine import (
    GlosaEngine,
    analyze_risk,
    auto_fix,
    create_engine,
    validate_batch,
    validate_guide,
)
from glosa_engine.schemas import (
    AutoFixResult,
    BatchAnalysisResult,
    BatchGuide,
    GlosaPrediction,
    GlosaRisk,
    GuideType,
    RiskLevel,
    ValidationFinding,
    ValidationResult,
)

__all__ = [
    "AutoFixResult",
    "BatchAnalysisResult",
    "BatchGuide",
    "GlosaEngine",
    "GlosaPrediction",
    "GlosaRisk",
    "GuideType",
    "RiskLevel",
    "ValidationFinding",
    "ValidationResult",
    "analyze_risk",
    "auto_fix",
    "create_engine",
    "validate_batch",
    "validate_guide",
]
