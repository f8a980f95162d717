"""
Unit tests for the Gemini provider (no network: the client is mocked)
"""

import json
import pytest
from unittest.mock import MagicMock, patch

import engine
from engine import (
    AnalysisError, analyze_stock, build_analysis_prompt, is_quota_or_rate_limit_error,
    parse_analysis_response, _redact_api_secrets, _sanitize_valuation_language,
)


def fake_client(text=None, error=None):
    client = MagicMock()
    if error is not None:
        client.models.generate_content.side_effect = error
    else:
        client.models.generate_content.return_value = MagicMock(text=text)
    return client


@pytest.fixture
def with_client():
    """Patch key lookup and client creation; yields a setter for the fake client."""
    def install(client, api_key="test-key"):
        patches = [
            patch.object(engine, "config_genai", return_value=api_key),
            patch.object(engine, "get_gemini_model", return_value=(client, "gemini-test")),
        ]
        for p in patches:
            p.start()
        installed.extend(patches)
        return client

    installed = []
    yield install
    for p in installed:
        p.stop()


class TestParseAnalysisResponse:

    def test_plain_json(self):
        assert parse_analysis_response('{"symbol": "ACME"}') == {"symbol": "ACME"}

    def test_code_fenced_json(self):
        text = '```json\n{"symbol": "ACME", "price": 10}\n```'
        assert parse_analysis_response(text)["price"] == 10

    def test_json_wrapped_in_prose(self):
        text = 'Here is the analysis: {"symbol": "ACME"} Hope this helps.'
        assert parse_analysis_response(text) == {"symbol": "ACME"}

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_response(self, text):
        with pytest.raises(AnalysisError):
            parse_analysis_response(text)

    @pytest.mark.parametrize("text", ["not json at all", "{broken", "[1, 2, 3]"])
    def test_invalid_response(self, text):
        with pytest.raises(AnalysisError):
            parse_analysis_response(text)


class TestAnalyzeStock:

    def test_success(self, with_client, payload):
        client = with_client(fake_client(text=json.dumps(payload)))
        snapshot = analyze_stock("acme", "standalone")
        assert snapshot.symbol == "ACME"
        assert snapshot.report_type == "standalone"
        assert snapshot.last_updated
        kwargs = client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert kwargs["config"].temperature == 0
        assert kwargs["config"].tools[0].google_search is not None
        assert "STANDALONE" in kwargs["contents"]

    def test_fenced_reply(self, with_client, payload):
        with_client(fake_client(text="```json\n" + json.dumps(payload) + "\n```"))
        assert analyze_stock("acme").price == 100.0

    def test_missing_api_key(self, with_client):
        client = with_client(fake_client(text="{}"), api_key=None)
        with pytest.raises(AnalysisError, match="API key"):
            analyze_stock("acme")
        client.models.generate_content.assert_not_called()

    def test_sdk_error_is_wrapped_and_redacted(self, with_client):
        with_client(fake_client(error=RuntimeError("bad request for key=test-key")), api_key="test-key")
        with pytest.raises(AnalysisError) as excinfo:
            analyze_stock("acme")
        assert "test-key" not in str(excinfo.value)

    def test_quota_error(self, with_client):
        with_client(fake_client(error=RuntimeError("429 RESOURCE_EXHAUSTED")))
        with pytest.raises(AnalysisError, match="quota"):
            analyze_stock("acme")

    def test_empty_reply(self, with_client):
        with_client(fake_client(text=""))
        with pytest.raises(AnalysisError):
            analyze_stock("acme")

    def test_invalid_report_type(self, with_client):
        client = with_client(fake_client(text="{}"))
        with pytest.raises(ValueError):
            analyze_stock("acme", "annual")
        client.models.generate_content.assert_not_called()

    def test_client_setup_error_is_wrapped(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        with patch.object(engine.genai, "Client", side_effect=RuntimeError("transport init failed for test-key")):
            with pytest.raises(AnalysisError) as excinfo:
                analyze_stock("acme")
        assert "test-key" not in str(excinfo.value)

    def test_blank_query(self):
        with pytest.raises(ValueError):
            analyze_stock("   ")


class TestHelpers:

    def test_prompt_mentions_query_and_keys(self):
        prompt = build_analysis_prompt("Infosys", "consolidated")
        assert "Infosys" in prompt
        assert '"totalShares"' in prompt
        assert '"segments"' in prompt
        assert "CONSOLIDATED" in prompt

    def test_quota_detection(self):
        assert is_quota_or_rate_limit_error("429 Too Many Requests")
        assert not is_quota_or_rate_limit_error("invalid argument")

    def test_redaction(self):
        assert _redact_api_secrets("url?key=abc123&x=1") == "url?key=[REDACTED]&x=1"
        assert "secret" not in _redact_api_secrets("failed with secret", "secret")

    def test_sanitize_nested_text(self):
        cleaned = _sanitize_valuation_language({"review": ["A fundamental floor of 50"], "price": 10})
        assert "fundamental floor" not in cleaned["review"][0]
        assert cleaned["price"] == 10
