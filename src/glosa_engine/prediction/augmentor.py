"""Risk augmentor: best-effort external glosa predictions.

Wraps a PredictionCapability behind a failure boundary. Calls run on a
bounded worker pool (the rate limiter for the external service) and are
time-bounded. Timeouts, provider errors and missing configuration all
degrade to "no additional predictions"; nothing propagates to the caller.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from glosa_engine.prediction.base import PredictionCapability
from glosa_engine.schemas import GlosaPrediction

logger = logging.getLogger(__name__)


@dataclass
class AugmentorConfig:
    """Configuration for the risk augmentor."""

    # Upper bound on one augment() call, including the wait for a free slot
    timeout_seconds: float = 20.0
    # Max concurrent calls to the prediction service
    max_concurrent: int = 3

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "AugmentorConfig":
        """Create config from dictionary."""
        return cls(
            timeout_seconds=config.get("timeout_seconds", 20.0),
            max_concurrent=config.get("max_concurrent", 3),
        )


class RiskAugmentor:
    """Best-effort adapter around an injected prediction capability."""

    def __init__(
        self,
        predictor: Optional[PredictionCapability] = None,
        config: Optional[AugmentorConfig] = None,
    ):
        """Initialize the augmentor.

        Args:
            predictor: Prediction capability; None disables augmentation
            config: Augmentor configuration
        """
        self.predictor = predictor
        self.config = config or AugmentorConfig()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()
        self._slots = threading.BoundedSemaphore(max(1, self.config.max_concurrent))

    @property
    def enabled(self) -> bool:
        return self.predictor is not None

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=max(1, self.config.max_concurrent),
                    thread_name_prefix="glosa-augment",
                )
            return self._executor

    def augment(
        self,
        guide: Mapping[str, Any],
        operator_name: str,
        existing_issues: Sequence[GlosaPrediction],
    ) -> List[GlosaPrediction]:
        """Fetch additional predictions, never raising.

        Args:
            guide: The guide under analysis
            operator_name: Target insurance operator
            existing_issues: Issues collected so far (passed to the provider)

        Returns:
            Additional predictions (never auto-fixable), or [] on any failure
        """
        if self.predictor is None:
            return []

        # A slot is held until the call really finishes, so a timed-out call
        # still counts against the concurrency limit. Waiting for a slot and
        # waiting for the result share one deadline.
        deadline = time.monotonic() + self.config.timeout_seconds
        if not self._slots.acquire(timeout=self.config.timeout_seconds):
            logger.warning(
                f"Glosa augmentation slots busy for {self.config.timeout_seconds:.1f}s "
                f"for {operator_name}, using rules only"
            )
            return []
        try:
            future = self._get_executor().submit(
                self.predictor.predict, guide, operator_name, list(existing_issues)
            )
        except RuntimeError as e:
            self._slots.release()
            logger.warning(f"Glosa augmentation unavailable: {e}")
            return []
        future.add_done_callback(lambda _: self._slots.release())

        try:
            predictions = future.result(timeout=max(0.0, deadline - time.monotonic()))
        except FutureTimeoutError:
            future.cancel()
            logger.warning(
                f"Glosa augmentation timed out after {self.config.timeout_seconds:.1f}s "
                f"for {operator_name}, using rules only"
            )
            return []
        except Exception as e:
            logger.warning(f"Glosa augmentation failed for {operator_name}, using rules only: {e}")
            return []

        return self._sanitize(predictions)

    @staticmethod
    def _sanitize(predictions: Any) -> List[GlosaPrediction]:
        """Keep only well-formed predictions and force ``auto_fixable=False``."""
        if not isinstance(predictions, (list, tuple)):
            if predictions is not None:
                logger.warning(
                    f"Prediction capability returned {type(predictions).__name__}, ignoring it"
                )
            return []
        cleaned = []
        for p in predictions:
            if not isinstance(p, GlosaPrediction):
                logger.debug(f"Dropping non-prediction item: {p!r}")
                continue
            cleaned.append(p.model_copy(update={"auto_fixable": False}))
        return cleaned

    def close(self) -> None:
        """Shut down the worker pool without waiting for pending calls."""
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False, cancel_futures=True)
                self._executor = None
