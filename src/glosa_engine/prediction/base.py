"""Prediction capability protocol consumed by the risk augmentor.

The augmentor depends only on this interface, so the rule-based pipeline
runs deterministically without network access and the concrete provider
can be swapped without touching the aggregator.
"""

from typing import Any, List, Mapping, Protocol, Sequence, runtime_checkable

from glosa_engine.schemas import GlosaPrediction


@runtime_checkable
class PredictionCapability(Protocol):
    """External source of additional glosa predictions."""

    def predict(
        self,
        guide: Mapping[str, Any],
        operator_name: str,
        existing_issues: Sequence[GlosaPrediction],
    ) -> List[GlosaPrediction]:
        """Propose issues beyond ``existing_issues`` for a guide.

        Args:
            guide: The guide under analysis.
            operator_name: Target insurance operator.
            existing_issues: Issues already found by rules and validation,
                so the provider can avoid duplicating them.

        Returns:
            Additional predictions with probabilities in [0, 1].
        """
        ...
