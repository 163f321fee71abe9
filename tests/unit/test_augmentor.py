"""Tests for the risk augmentor failure boundary."""

import threading
import time

import pytest

from glosa_engine.prediction import AugmentorConfig, PredictionCapability, RiskAugmentor
from glosa_engine.schemas import GlosaPrediction


def make_prediction(probability=0.6, auto_fixable=True):
    return GlosaPrediction(
        issue_type="ai_prediction",
        description="Missing clinical justification",
        glosa_code="1801",
        probability=probability,
        auto_fixable=auto_fixable,
    )


class BlockingPredictor:
    """Blocks until released, tracking the number of concurrent calls."""

    def __init__(self):
        self.release = threading.Event()
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def predict(self, guide, operator_name, existing_issues):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            self.release.wait(timeout=5)
            return [make_prediction()]
        finally:
            with self._lock:
                self.active -= 1


class ReturningPredictor:
    def __init__(self, value):
        self.value = value

    def predict(self, guide, operator_name, existing_issues):
        return self.value


class SleepingPredictor:
    def __init__(self, seconds):
        self.seconds = seconds

    def predict(self, guide, operator_name, existing_issues):
        time.sleep(self.seconds)
        return [make_prediction()]


@pytest.fixture
def blocking_predictor():
    predictor = BlockingPredictor()
    yield predictor
    predictor.release.set()


class TestAugmentor:
    def test_disabled_without_predictor(self):
        augmentor = RiskAugmentor()
        assert augmentor.enabled is False
        assert augmentor.augment({}, "UNIMED", []) == []

    def test_predictions_are_returned_not_auto_fixable(self):
        augmentor = RiskAugmentor(ReturningPredictor([make_prediction()]))
        result = augmentor.augment({}, "UNIMED", [])
        assert len(result) == 1
        assert result[0].glosa_code == "1801"
        assert result[0].auto_fixable is False
        augmentor.close()

    def test_predictor_satisfies_protocol(self):
        assert isinstance(ReturningPredictor([]), PredictionCapability)

    def test_exception_yields_empty(self, caplog):
        class Broken:
            def predict(self, guide, operator_name, existing_issues):
                raise ConnectionError("unreachable")

        augmentor = RiskAugmentor(Broken())
        with caplog.at_level("WARNING"):
            assert augmentor.augment({}, "UNIMED", []) == []
        assert "unreachable" in caplog.text
        augmentor.close()

    def test_timeout_yields_empty(self, blocking_predictor, caplog):
        augmentor = RiskAugmentor(blocking_predictor, AugmentorConfig(timeout_seconds=0.05))
        start = time.monotonic()
        with caplog.at_level("WARNING"):
            result = augmentor.augment({}, "UNIMED", [])
        assert result == []
        assert time.monotonic() - start < 2
        assert "timed out" in caplog.text
        blocking_predictor.release.set()
        augmentor.close()

    def test_hung_call_does_not_block_later_calls(self, blocking_predictor, caplog):
        augmentor = RiskAugmentor(
            blocking_predictor, AugmentorConfig(timeout_seconds=0.2, max_concurrent=1)
        )
        assert augmentor.augment({}, "UNIMED", []) == []

        # The first call still holds the only slot
        start = time.monotonic()
        with caplog.at_level("WARNING"):
            result = augmentor.augment({}, "UNIMED", [])
        elapsed = time.monotonic() - start

        assert result == []
        assert elapsed < 1.0
        assert "slots busy" in caplog.text
        assert blocking_predictor.max_active == 1
        blocking_predictor.release.set()
        augmentor.close()

    def test_slot_wait_counts_against_the_timeout(self):
        augmentor = RiskAugmentor(
            SleepingPredictor(0.3), AugmentorConfig(timeout_seconds=0.45, max_concurrent=1)
        )
        first = threading.Thread(target=augmentor.augment, args=({}, "UNIMED", []))
        first.start()
        time.sleep(0.05)

        # ~0.25s waiting for the slot plus a 0.3s call overruns 0.45s
        start = time.monotonic()
        result = augmentor.augment({}, "UNIMED", [])
        elapsed = time.monotonic() - start

        first.join(timeout=2)
        assert result == []
        assert elapsed < 0.6
        augmentor.close()

    @pytest.mark.parametrize("value", [None, "not a list", [{"probability": 0.5}, 42]])
    def test_malformed_results_are_dropped(self, value):
        augmentor = RiskAugmentor(ReturningPredictor(value))
        assert augmentor.augment({}, "UNIMED", []) == []
        augmentor.close()

    def test_concurrency_is_bounded(self, blocking_predictor):
        augmentor = RiskAugmentor(
            blocking_predictor, AugmentorConfig(timeout_seconds=5, max_concurrent=2)
        )
        results = []

        def call():
            results.append(augmentor.augment({}, "UNIMED", []))

        threads = [threading.Thread(target=call) for _ in range(5)]
        for t in threads:
            t.start()
        time.sleep(0.2)
        assert blocking_predictor.max_active <= 2

        blocking_predictor.release.set()
        for t in threads:
            t.join(timeout=5)

        assert blocking_predictor.max_active <= 2
        assert len(results) == 5
        assert all(len(r) == 1 for r in results)
        augmentor.close()

    def test_config_from_dict(self):
        config = AugmentorConfig.from_dict({"timeout_seconds": 3.5, "max_concurrent": 7, "other": 1})
        assert config.timeout_seconds == 3.5
        assert config.max_concurrent == 7
