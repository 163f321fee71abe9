"""Batch orchestrator for glosa risk analysis.

Runs validation, risk analysis and optional auto-fix for many guides.
Guides are scored in parallel on a thread pool; schema and rule evaluation
have no external dependency, while augmentor calls are limited separately
by the augmentor's own bounded pool. Results keep the input order.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Sequence

from glosa_engine import fields
from glosa_engine.autofix import auto_fix_guide
from glosa_engine.risk import RiskAggregator
from glosa_engine.schemas import (
    BatchAnalysisResult,
    BatchGuide,
    BatchGuideResult,
    BatchSummary,
    RiskLevel,
    ValidationResult,
)
from glosa_engine.validation.batch import validate_batch
from glosa_engine.validation.schema_validator import SchemaValidator

logger = logging.getLogger(__name__)

HIGH_RISK_LEVELS = frozenset({RiskLevel.HIGH, RiskLevel.CRITICAL})


class BatchOrchestrator:
    """Applies the validation / risk pipeline to a sequence of guides."""

    def __init__(
        self,
        aggregator: Optional[RiskAggregator] = None,
        max_workers: int = 4,
    ):
        """Initialize the orchestrator.

        Args:
            aggregator: Risk aggregator (its validator is reused for validation)
            max_workers: Guides processed in parallel (1 = sequential)
        """
        self.aggregator = aggregator or RiskAggregator()
        self.max_workers = max(1, max_workers)

    @property
    def validator(self) -> SchemaValidator:
        return self.aggregator.validator

    def validate_batch(self, guides: Sequence[dict]) -> ValidationResult:
        """Schema-only validation of a batch, findings labelled by position."""
        return validate_batch(guides, self.validator)

    def process_guide(
        self,
        guide: BatchGuide,
        auto_fix: bool = False,
        include_validation: bool = True,
    ) -> BatchGuideResult:
        """Validate, analyze and optionally auto-fix one guide.

        When ``auto_fix`` is set and the risk is auto-fixable, the fixed guide
        is re-analyzed and its risk is reported instead.
        """
        data = guide.data
        validation = None
        if include_validation:
            validation = self.validator.validate(data, data.get(fields.GUIDE_TYPE))

        risk = self.aggregator.analyze(data, guide.operator_name)

        if auto_fix and risk.can_auto_fix:
            fixed, changes = auto_fix_guide(data)
            if changes:
                logger.info(f"Guide {guide.id}: auto-fix applied {len(changes)} change(s)")
                return BatchGuideResult(
                    guide_id=guide.id,
                    status="success",
                    risk_analysis=self.aggregator.analyze(fixed, guide.operator_name),
                    validation=validation,
                    auto_fix_applied=True,
                    fixes=changes,
                )

        return BatchGuideResult(
            guide_id=guide.id,
            status="success",
            risk_analysis=risk,
            validation=validation,
        )

    def _process_safely(
        self, guide: BatchGuide, auto_fix: bool, include_validation: bool
    ) -> BatchGuideResult:
        try:
            return self.process_guide(guide, auto_fix, include_validation)
        except Exception as e:
            logger.error(f"Guide {guide.id}: processing failed: {e}", exc_info=True)
            return BatchGuideResult(guide_id=guide.id, status="error", error=str(e))

    def analyze_batch(
        self,
        guides: Sequence[BatchGuide],
        auto_fix: bool = False,
        include_validation: bool = True,
        on_progress: Optional[Callable[[int], None]] = None,
    ) -> BatchAnalysisResult:
        """Analyze glosa risk for every guide of a batch.

        A failure on one guide yields an ``error`` result for that guide only.

        Args:
            guides: Guides with their ids and target operators
            auto_fix: Apply auto-fixes to auto-fixable guides and re-analyze
            include_validation: Attach the schema validation result per guide
            on_progress: Optional callback called with 1 after each guide

        Returns:
            BatchAnalysisResult with per-guide results (input order) and summary
        """
        logger.info(
            f"Processing batch: {len(guides)} guides, auto_fix={auto_fix}, "
            f"workers={min(self.max_workers, max(len(guides), 1))}"
        )

        if self.max_workers <= 1 or len(guides) <= 1:
            results = []
            for guide in guides:
                results.append(self._process_safely(guide, auto_fix, include_validation))
                if on_progress:
                    on_progress(1)
        else:
            results = self._analyze_parallel(guides, auto_fix, include_validation, on_progress)

        summary = summarize(results)
        logger.info(
            f"Batch completed: {summary.successful}/{summary.total_guides} successful, "
            f"{summary.high_risk} high risk, {summary.auto_fixed} auto-fixed, "
            f"estimated loss R$ {summary.total_estimated_loss:,.2f}"
        )
        return BatchAnalysisResult(results=results, summary=summary)

    def _analyze_parallel(
        self,
        guides: Sequence[BatchGuide],
        auto_fix: bool,
        include_validation: bool,
        on_progress: Optional[Callable[[int], None]],
    ) -> List[BatchGuideResult]:
        progress_lock = threading.Lock()
        results: List[Optional[BatchGuideResult]] = [None] * len(guides)

        with ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(guides)),
            thread_name_prefix="glosa-batch",
        ) as executor:
            futures = {
                executor.submit(self._process_safely, guide, auto_fix, include_validation): i
                for i, guide in enumerate(guides)
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()
                if on_progress:
                    with progress_lock:
                        on_progress(1)

        return results


def summarize(results: Sequence[BatchGuideResult]) -> BatchSummary:
    """Summary statistics over per-guide batch results."""
    risks = [r.risk_analysis for r in results if r.risk_analysis is not None]
    return BatchSummary(
        total_guides=len(results),
        successful=sum(1 for r in results if r.status == "success"),
        failed=sum(1 for r in results if r.status == "error"),
        high_risk=sum(1 for risk in risks if risk.risk_level in HIGH_RISK_LEVELS),
        auto_fixed=sum(1 for r in results if r.auto_fix_applied),
        total_estimated_loss=sum(risk.estimated_loss for risk in risks),
    )
