"""Pydantic schemas for guide validation and glosa risk analysis.

These schemas define the value objects produced by the engine: validation
findings, glosa predictions, the aggregated risk verdict and batch results.
All of them are created fresh per call and never mutated afterwards.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field


class GuideType(str, Enum):
    """TISS guide types with their own required-field sets."""

    CONSULTATION = "CONSULTA"
    ANCILLARY_SERVICE = "SADT"
    PRIOR_AUTHORIZATION_REQUEST = "SP_SADT"
    HOSPITALIZATION = "INTERNACAO"

    @classmethod
    def parse(cls, value: Any, default: Optional["GuideType"] = None) -> "GuideType":
        """Resolve a declared guide type, falling back to ``default``.

        Accepts enum members, TISS values ("SADT") and member names
        ("ANCILLARY_SERVICE"), case-insensitively. Never raises.
        """
        fallback = default or cls.CONSULTATION
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return fallback
        key = value.strip().upper().replace("-", "_")
        for member in cls:
            if key in (member.value, member.name):
                return member
        return fallback


class FindingSeverity(str, Enum):
    """Severity of a schema validation finding."""

    ERROR = "error"  # Blocks "valid", must be fixed before resubmission
    WARNING = "warning"  # Informational, never blocks


class RuleSeverity(str, Enum):
    """Severity tier of an operator rule."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"


class RiskLevel(str, Enum):
    """Deterministic banding of a glosa probability."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ValidationFinding(BaseModel):
    """A single schema validation finding."""

    model_config = ConfigDict(frozen=True)

    field: str = Field(..., description="Guide field the finding refers to")
    code: str = Field(..., description="Finding code, e.g. MISSING_REQUIRED_FIELD")
    message: str = Field(..., description="Human-readable message")
    severity: FindingSeverity = Field(..., description="error or warning")


class ValidationResult(BaseModel):
    """Outcome of validating one guide or a whole batch."""

    valid: bool = Field(..., description="True iff there are no errors")
    errors: List[ValidationFinding] = Field(default_factory=list)
    warnings: List[ValidationFinding] = Field(default_factory=list)

    @classmethod
    def from_findings(
        cls,
        errors: List[ValidationFinding],
        warnings: List[ValidationFinding],
    ) -> "ValidationResult":
        """Build a result whose ``valid`` flag is derived from ``errors``."""
        return cls(valid=not errors, errors=list(errors), warnings=list(warnings))


class GlosaPrediction(BaseModel):
    """A predicted rejection reason for a guide."""

    issue_type: str = Field(
        ..., description="rule_violation, validation_error or a free-text type from the augmentor"
    )
    description: str = Field(..., description="Human-readable description of the issue")
    glosa_code: str = Field(..., description="Rule code, finding code or payer glosa code")
    probability: float = Field(
        ..., ge=0.0, le=1.0, description="Probability that this issue causes a glosa"
    )
    auto_fixable: bool = Field(False, description="Whether the auto-fixer can correct it")
    suggested_fix: Optional[str] = Field(None, description="Suggested correction, if known")


class GlosaRisk(BaseModel):
    """Unified glosa risk verdict for a guide."""

    probability: float = Field(
        0.0, ge=0.0, le=1.0, description="Maximum probability across predicted issues"
    )
    risk_level: RiskLevel = Field(RiskLevel.LOW, description="Banding of probability")
    predicted_issues: List[GlosaPrediction] = Field(default_factory=list)
    can_auto_fix: bool = Field(False, description="True iff any issue is auto-fixable")
    estimated_loss: float = Field(0.0, description="Guide value times probability")


class AutoFixResult(NamedTuple):
    """Fixed copy of a guide plus the list of applied changes.

    Unpacks as ``fixed, changes = auto_fix(guide)``.
    """

    fixed: Dict[str, Any]
    changes: List[str]


class BatchGuide(BaseModel):
    """One entry of a batch risk analysis request."""

    id: str = Field(..., description="Caller-supplied guide identifier")
    data: Dict[str, Any] = Field(default_factory=dict, description="The guide record")
    operator_name: str = Field("UNIMED", description="Target insurance operator")


class BatchGuideResult(BaseModel):
    """Per-guide outcome of a batch risk analysis."""

    guide_id: str
    status: Literal["success", "error"]
    risk_analysis: Optional[GlosaRisk] = None
    validation: Optional[ValidationResult] = None
    auto_fix_applied: bool = False
    fixes: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class BatchSummary(BaseModel):
    """Summary statistics of a batch risk analysis."""

    total_guides: int = 0
    successful: int = 0
    failed: int = 0
    high_risk: int = Field(0, description="Guides with risk level high or critical")
    auto_fixed: int = 0
    total_estimated_loss: float = 0.0


class BatchAnalysisResult(BaseModel):
    """Complete result of a batch risk analysis."""

    results: List[BatchGuideResult] = Field(default_factory=list)
    summary: BatchSummary = Field(default_factory=BatchSummary)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
