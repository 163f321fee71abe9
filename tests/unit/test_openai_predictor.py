"""Tests for the OpenAI-backed glosa predictor (no network)."""

import json
from unittest.mock import MagicMock, patch

import pytest

from glosa_engine.prediction.openai_predictor import (
    OpenAIGlosaPredictor,
    OpenAIPredictorConfig,
    parse_predictions,
)
from glosa_engine.schemas import GlosaPrediction


def make_response(content):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


def make_client(*contents):
    client = MagicMock()
    client.chat.completions.create.side_effect = [make_response(c) for c in contents]
    return client


EXISTING = [
    GlosaPrediction(
        issue_type="rule_violation",
        description="Consultation value above the Unimed fee table",
        glosa_code="UNI_001",
        probability=0.75,
    )
]


class TestParsePredictions:
    def test_array(self):
        content = json.dumps([
            {"issue_type": "documentation", "description": "Missing report", "glosa_code": "1801", "probability": 85}
        ])
        predictions = parse_predictions(content)

        assert len(predictions) == 1
        assert predictions[0].glosa_code == "1801"
        assert predictions[0].probability == pytest.approx(0.85)
        assert predictions[0].auto_fixable is False

    def test_code_fence_is_stripped(self):
        content = '```json\n[{"description": "Duplicate billing", "probability": 40}]\n```'
        predictions = parse_predictions(content)
        assert predictions[0].description == "Duplicate billing"
        assert predictions[0].issue_type == "ai_prediction"
        assert predictions[0].probability == pytest.approx(0.4)

    def test_wrapped_array(self):
        content = json.dumps({"predictions": [{"description": "x", "probability": 10}]})
        assert len(parse_predictions(content)) == 1

    def test_probability_is_clamped(self):
        content = json.dumps([{"description": "x", "probability": 250}])
        assert parse_predictions(content)[0].probability == 1.0

    def test_malformed_items_are_skipped(self):
        content = json.dumps([
            {"description": "ok", "probability": 50},
            {"probability": 50},
            {"description": "negative", "probability": -5},
            "text",
        ])
        predictions = parse_predictions(content)
        assert [p.description for p in predictions] == ["ok"]

    @pytest.mark.parametrize("content", [None, "", "   ", "not json", '{"answer": 1}', "42"])
    def test_unusable_content(self, content):
        assert parse_predictions(content) == []


class TestPredictor:
    def test_not_configured_makes_no_call(self):
        predictor = OpenAIGlosaPredictor()
        assert predictor.is_configured() is False
        with patch("glosa_engine.services.openai_client.get_openai_client") as factory:
            assert predictor.predict({}, "UNIMED", []) == []
        factory.assert_not_called()

    def test_predict_calls_chat_completions(self, consultation_guide):
        client = make_client('[{"description": "Missing report", "glosa_code": "1801", "probability": 70}]')
        predictor = OpenAIGlosaPredictor(OpenAIPredictorConfig(model="gpt-test"), client=client)

        predictions = predictor.predict(consultation_guide, "UNIMED", EXISTING)

        assert [p.glosa_code for p in predictions] == ["1801"]
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 800
        user_message = kwargs["messages"][-1]["content"]
        assert "UNIMED" in user_message
        assert "Maria da Silva" in user_message
        assert "[UNI_001] Consultation value above the Unimed fee table" in user_message

    def test_messages_from_prompt_file(self):
        predictor = OpenAIGlosaPredictor(client=MagicMock())
        messages = predictor.build_messages({"codigoCID": "J069"}, "BRADESCO", [])

        assert [m["role"] for m in messages] == ["system", "user"]
        assert "BRADESCO" in messages[1]["content"]
        assert "J069" in messages[1]["content"]
        assert "- none" in messages[1]["content"]

    def test_inline_prompt_when_file_missing(self):
        predictor = OpenAIGlosaPredictor(
            OpenAIPredictorConfig(prompt_name="does_not_exist"), client=MagicMock()
        )
        messages = predictor.build_messages({}, "SULAMERICA", EXISTING)
        assert messages[0]["role"] == "system"
        assert "SULAMERICA" in messages[1]["content"]
        assert "Consultation value above the Unimed fee table" in messages[1]["content"]

    @patch("glosa_engine.prediction.openai_predictor.time.sleep")
    def test_retries_then_succeeds(self, mock_sleep):
        client = MagicMock()
        client.chat.completions.create.side_effect = [
            RuntimeError("rate limited"),
            make_response('[{"description": "x", "probability": 20}]'),
        ]
        predictor = OpenAIGlosaPredictor(
            OpenAIPredictorConfig(model="m", max_retries=2), client=client
        )

        predictions = predictor.predict({}, "UNIMED", [])

        assert len(predictions) == 1
        assert client.chat.completions.create.call_count == 2
        mock_sleep.assert_called_once()

    @patch("glosa_engine.prediction.openai_predictor.time.sleep")
    def test_last_error_is_raised(self, mock_sleep):
        client = MagicMock()
        client.chat.completions.create.side_effect = RuntimeError("server error")
        predictor = OpenAIGlosaPredictor(
            OpenAIPredictorConfig(model="m", max_retries=3), client=client
        )

        with pytest.raises(RuntimeError, match="server error"):
            predictor.predict({}, "UNIMED", [])
        assert client.chat.completions.create.call_count == 3

    def test_configured_with_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        assert OpenAIGlosaPredictor().is_configured() is True

    def test_config_from_dict(self):
        config = OpenAIPredictorConfig.from_dict({"model": "gpt-4o", "max_retries": 5, "enabled": True})
        assert config.model == "gpt-4o"
        assert config.max_retries == 5
        assert config.prompt_name == "glosa_prediction"
