"""Tests for the LLM gateway, providers and response normalization."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from config.llm import ProviderConfig, get_provider_configs
from schemas.finding import FindingSource
from services.llm_service import (
    LLMGateway,
    OllamaProvider,
    OpenAICompatibleProvider,
    build_prompt,
    build_providers,
    coerce_confidence,
    parse_audit_content,
)
from utils.errors import ParseError, ProviderError

AUDIT = {
    "riskScore": 8.5,
    "findings": [
        {
            "line": 1,
            "severity": "CRITICAL",
            "type": "RCE",
            "issue": "eval executes attacker-controlled input.",
            "fix_instruction": "Replace eval with JSON.parse.",
        }
    ],
}


def completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def provider_config(name: str = "groq", **overrides) -> ProviderConfig:
    values = dict(
        name=name,
        enabled=True,
        base_url=f"https://{name}.test/v1",
        model=f"{name}-model",
        api_key="key-123",
        timeout=5.0,
    )
    values.update(overrides)
    return ProviderConfig(**values)


class TestBuildPrompt:
    def test_prompt_pins_taxonomy_and_code(self):
        prompt = build_prompt("eval(x)", "app.js", "javascript")
        for label in ("RCE", "SQL_INJECTION", "SECRET", "LOGIC"):
            assert f'"{label}"' in prompt
        assert "eval(x)" in prompt
        assert "app.js" in prompt
        assert "riskScore" in prompt
        assert "fix_instruction" in prompt


class TestParseAuditContent:
    def test_canonical_object(self):
        result = parse_audit_content(json.dumps(AUDIT))
        assert result.risk_score == 8.5
        assert len(result.findings) == 1
        finding = result.findings[0]
        assert finding.severity == "critical"
        assert finding.source == FindingSource.LLM
        assert finding.fix_instruction == "Replace eval with JSON.parse."

    def test_single_object_instead_of_array(self):
        content = json.dumps({"riskScore": 3, "findings": AUDIT["findings"][0]})
        result = parse_audit_content(content)
        assert len(result.findings) == 1

    def test_bare_array(self):
        result = parse_audit_content(json.dumps(AUDIT["findings"]))
        assert len(result.findings) == 1
        assert result.risk_score == 0.0

    def test_snake_case_score_and_string_line(self):
        content = json.dumps({"risk_score": "4.5", "findings": [{"line": "12", "severity": "high", "type": "SECRET"}]})
        result = parse_audit_content(content)
        assert result.risk_score == 4.5
        assert result.findings[0].line == 12

    def test_malformed_findings_dropped(self):
        content = json.dumps({
            "riskScore": 2,
            "findings": [
                {"severity": "high", "type": "RCE"},
                {"line": 0, "severity": "high", "type": "RCE"},
                "not an object",
                {"line": 4, "severity": "low", "type": "LOGIC"},
            ],
        })
        result = parse_audit_content(content)
        assert [f.line for f in result.findings] == [4]

    def test_fractional_confidence_keeps_finding(self):
        content = json.dumps({
            "riskScore": 8,
            "findings": [{"line": 2, "severity": "critical", "type": "RCE",
                          "issue": "eval of request input", "confidence": 0.9}],
        })
        result = parse_audit_content(content)
        assert [(f.line, f.confidence) for f in result.findings] == [(2, 90)]

    def test_out_of_range_confidence_is_cleared(self):
        content = json.dumps({"findings": [
            {"line": 3, "severity": "high", "type": "SECRET", "confidence": 250},
            {"line": 5, "severity": "low", "type": "LOGIC", "confidence": "very"},
        ]})
        result = parse_audit_content(content)
        assert [(f.line, f.confidence) for f in result.findings] == [(3, None), (5, None)]

    def test_coerce_confidence(self):
        assert coerce_confidence(85) == 85
        assert coerce_confidence("0.75") == 75
        assert coerce_confidence(1) == 1
        assert coerce_confidence(-3) is None
        assert coerce_confidence(True) is None
        assert coerce_confidence(None) is None

    def test_invalid_json_raises(self):
        with pytest.raises(ParseError):
            parse_audit_content("Sure! Here are the findings: ...")

    def test_non_object_root_raises(self):
        with pytest.raises(ParseError):
            parse_audit_content("42")


class TestOpenAICompatibleProvider:
    def test_request_shape_and_result(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion(json.dumps(AUDIT)))

        provider = OpenAICompatibleProvider(provider_config(), httpx.MockTransport(handler))
        result = asyncio.run(provider.analyze("prompt"))

        assert seen["url"] == "https://groq.test/v1/chat/completions"
        assert seen["auth"] == "Bearer key-123"
        assert seen["body"]["temperature"] == 0
        assert seen["body"]["response_format"] == {"type": "json_object"}
        assert seen["body"]["messages"][-1] == {"role": "user", "content": "prompt"}
        assert result.provider == "groq"
        assert result.model == "groq-model"
        assert len(result.findings) == 1

    def test_http_error_status_is_provider_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(429, text="rate limited"))
        provider = OpenAICompatibleProvider(provider_config(), transport)
        with pytest.raises(ProviderError):
            asyncio.run(provider.analyze("prompt"))

    def test_invalid_json_content_is_provider_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=completion("not json")))
        provider = OpenAICompatibleProvider(provider_config(), transport)
        with pytest.raises(ProviderError):
            asyncio.run(provider.analyze("prompt"))

    def test_unexpected_shape_is_provider_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"error": "nope"}))
        provider = OpenAICompatibleProvider(provider_config(), transport)
        with pytest.raises(ProviderError):
            asyncio.run(provider.analyze("prompt"))

    def test_connection_error_is_provider_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = OpenAICompatibleProvider(provider_config(), httpx.MockTransport(handler))
        with pytest.raises(ProviderError):
            asyncio.run(provider.analyze("prompt"))

    def test_timeout_is_provider_error(self):
        class SlowProvider(OpenAICompatibleProvider):
            async def complete(self, prompt):
                await asyncio.sleep(5)
                return "{}"

        provider = SlowProvider(provider_config(timeout=0.05))
        with pytest.raises(ProviderError, match="timed out"):
            asyncio.run(provider.analyze("prompt"))

    def test_availability_requires_enabled_and_key(self):
        assert asyncio.run(OpenAICompatibleProvider(provider_config()).is_available())
        assert not asyncio.run(OpenAICompatibleProvider(provider_config(enabled=False)).is_available())
        assert not asyncio.run(OpenAICompatibleProvider(provider_config(api_key=None)).is_available())


class TestOllamaProvider:
    def config(self, **overrides):
        return provider_config(
            "ollama",
            base_url="http://ollama.test",
            api_key=None,
            requires_api_key=False,
            local=True,
            **overrides,
        )

    def test_reachable(self):
        def handler(request):
            assert request.url.path == "/api/tags"
            return httpx.Response(200, json={"models": []})

        provider = OllamaProvider(self.config(), httpx.MockTransport(handler))
        assert asyncio.run(provider.is_available())
        assert provider.endpoint() == "http://ollama.test/v1/chat/completions"

    def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = OllamaProvider(self.config(), httpx.MockTransport(handler))
        assert not asyncio.run(provider.is_available())


class TestLLMGateway:
    def test_falls_through_to_next_provider(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.host)
            if request.url.host == "groq.test":
                return httpx.Response(500, text="boom")
            return httpx.Response(200, json=completion(json.dumps(AUDIT)))

        transport = httpx.MockTransport(handler)
        gateway = LLMGateway(providers=[
            OpenAICompatibleProvider(provider_config("groq"), transport),
            OpenAICompatibleProvider(provider_config("openai"), transport),
        ])

        result = asyncio.run(gateway.analyze("eval(x)", "a.js", "javascript"))

        assert calls == ["groq.test", "openai.test"]
        assert result.provider == "openai"
        assert result.risk_score == 8.5

    def test_skips_unavailable_providers(self):
        calls = []

        def handler(request):
            calls.append(request.url.host)
            return httpx.Response(200, json=completion(json.dumps(AUDIT)))

        transport = httpx.MockTransport(handler)
        gateway = LLMGateway(providers=[
            OpenAICompatibleProvider(provider_config("groq", api_key=None), transport),
            OpenAICompatibleProvider(provider_config("openai"), transport),
        ])

        result = asyncio.run(gateway.analyze("x", "a.js", "javascript"))
        assert calls == ["openai.test"]
        assert result.provider == "openai"

    def test_all_providers_down_returns_empty_result(self, settings):
        gateway = LLMGateway(settings=settings)
        result = asyncio.run(gateway.analyze("eval(x)", "a.js", "javascript"))
        assert result.findings == []
        assert result.risk_score == 0.0
        assert result.provider == "none"

    def test_all_providers_failing_returns_empty_result(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        gateway = LLMGateway(providers=[OpenAICompatibleProvider(provider_config(), transport)])
        result = asyncio.run(gateway.analyze("x", "a.js", "javascript"))
        assert result.provider == "none"

    def test_provider_table_order(self, settings):
        providers = build_providers(get_provider_configs(settings))
        assert [p.name for p in providers] == ["groq", "ollama", "openai"]
        assert isinstance(providers[1], OllamaProvider)
