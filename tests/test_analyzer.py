"""Tests for the analyzer package.

Covers:
- OpenRouterAnalyzer request shape and response mapping (httpx.MockTransport)
- degraded results for timeouts, HTTP errors and malformed replies
- prompt building / JSON extraction
- local vulnerability scanner
- create_analyzer() factory
"""

from __future__ import annotations

import json

import httpx
import pytest

from analyzer.catalog import MODELS, list_models
from analyzer.engine import AnalyzerConfigError, create_analyzer
from analyzer.openrouter.openrouter_analyzer import (
    API_ERROR_SUMMARY,
    DEGRADED_SCORE,
    TIMEOUT_ERROR,
    TIMEOUT_SUMMARY,
    OpenRouterAnalyzer,
)
from analyzer.prompt import SYSTEM_PROMPT, build_review_prompt, extract_json_object
from analyzer.scanner import detect_vulnerabilities

MODEL = "openai/gpt-4o-mini"


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _analyzer(handler, api_key: str = "test-key") -> OpenRouterAnalyzer:
    client = httpx.AsyncClient(
        base_url="https://openrouter.test/api/v1",
        transport=httpx.MockTransport(handler),
    )
    return OpenRouterAnalyzer(api_key=api_key, client=client, max_tokens=100, temperature=0.1)


class TestOpenRouterAnalyzer:
    @pytest.mark.asyncio
    async def test_successful_review(self):
        seen: list[httpx.Request] = []
        reply = {
            "score": 85,
            "issues": [
                {
                    "line": 3,
                    "type": "security",
                    "severity": "high",
                    "message": "eval on input",
                    "code": "eval(x)",
                    "suggestion": "don't",
                },
                {"line": "7", "type": "style", "severity": "low", "message": "naming"},
            ],
            "strengths": ["small functions"],
            "summary": "Mostly fine.",
        }

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_completion(f"Sure!\n```json\n{json.dumps(reply)}\n```"))

        analyzer = _analyzer(handler)
        result = await analyzer.analyze("password = 'x'\nok\neval(x)\n", "src/app.py", MODEL)

        assert result.error is None
        assert result.file == "src/app.py"
        assert result.score == 85
        assert [i.line for i in result.issues] == [3, 7]
        assert result.strengths == ["small functions"]
        assert result.summary == "Mostly fine."
        # scanner findings first, then model-reported security issues
        assert [(v.type, v.line) for v in result.vulnerabilities] == [
            ("Hardcoded credentials", 1),
            ("Code injection risk (eval)", 3),
            ("security", 3),
        ]

        assert seen[0].url.path == "/api/v1/chat/completions"
        body = json.loads(seen[0].content)
        assert body["model"] == MODEL
        assert body["max_tokens"] == 100
        assert body["temperature"] == 0.1
        assert body["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert "File: src/app.py" in body["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_score_is_clamped(self):
        analyzer = _analyzer(lambda r: httpx.Response(200, json=_completion('{"score": "150"}')))
        result = await analyzer.analyze("x = 1", "a.py", MODEL)
        assert result.score == 100
        assert result.issues == []

    @pytest.mark.asyncio
    async def test_timeout_is_degraded(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        result = await _analyzer(handler).analyze("api_key = 'abc'\n", "a.py", MODEL)

        assert result.score == DEGRADED_SCORE
        assert result.error == TIMEOUT_ERROR
        assert result.summary == TIMEOUT_SUMMARY
        assert result.issues == [] and result.strengths == []
        assert [v.type for v in result.vulnerabilities] == ["Hardcoded API key"]

    @pytest.mark.asyncio
    async def test_http_error_is_degraded(self):
        analyzer = _analyzer(lambda r: httpx.Response(500, text="upstream down"))
        result = await analyzer.analyze("x = 1", "a.py", MODEL)
        assert result.degraded
        assert result.error == "OpenRouter API returned status 500"
        assert result.summary == API_ERROR_SUMMARY

    @pytest.mark.asyncio
    async def test_connection_error_is_degraded(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = await _analyzer(handler).analyze("x = 1", "a.py", MODEL)
        assert result.error == "connection refused"
        assert result.score == DEGRADED_SCORE

    @pytest.mark.asyncio
    async def test_non_json_reply_is_degraded(self):
        analyzer = _analyzer(lambda r: httpx.Response(200, json=_completion("I cannot review this.")))
        result = await analyzer.analyze("x = 1", "a.py", MODEL)
        assert result.error == "Invalid JSON response from AI model"

    @pytest.mark.asyncio
    async def test_missing_choices_is_degraded(self):
        analyzer = _analyzer(lambda r: httpx.Response(200, json={"choices": []}))
        result = await analyzer.analyze("x = 1", "a.py", MODEL)
        assert "missing completion data" in result.error

    @pytest.mark.asyncio
    async def test_malformed_fields_are_degraded(self):
        reply = '{"score": 90, "issues": [{"message": ["not", "a", "string"]}]}'
        analyzer = _analyzer(lambda r: httpx.Response(200, json=_completion(reply)))
        result = await analyzer.analyze("x = 1", "a.py", MODEL)
        assert result.degraded
        assert "Malformed analysis" in result.error

    @pytest.mark.asyncio
    async def test_missing_api_key_raises(self):
        analyzer = _analyzer(lambda r: httpx.Response(200), api_key="")
        with pytest.raises(AnalyzerConfigError):
            await analyzer.analyze("x = 1", "a.py", MODEL)

    @pytest.mark.asyncio
    async def test_default_client_headers_and_close(self):
        analyzer = OpenRouterAnalyzer(api_key="k", base_url="https://openrouter.test/api/v1")
        client = analyzer._get_client()
        assert client.headers["Authorization"] == "Bearer k"
        assert client.headers["X-Title"] == "AI Code Reviewer"
        assert "HTTP-Referer" in client.headers

        await analyzer.close()
        assert client.is_closed
        assert analyzer._client is None

    def test_name(self):
        assert OpenRouterAnalyzer(api_key="k").name == "OpenRouter"


class TestPrompt:
    def test_build_review_prompt(self):
        prompt = build_review_prompt("def f(): pass", "pkg/mod.py")
        assert "File: pkg/mod.py" in prompt
        assert "def f(): pass" in prompt
        assert '"score": <overall code quality score 0-100>' in prompt
        assert prompt.endswith("Return ONLY valid JSON, no markdown formatting.")

    def test_prompt_with_braces_in_content(self):
        prompt = build_review_prompt("x = {'a': 1}", "a.py")
        assert "x = {'a': 1}" in prompt

    def test_extract_plain(self):
        assert extract_json_object('{"score": 1}') == {"score": 1}

    def test_extract_fenced(self):
        assert extract_json_object('```json\n{"score": 1}\n```') == {"score": 1}

    def test_extract_with_prose(self):
        assert extract_json_object('Here: {"a": {"b": 2}} hope it helps') == {"a": {"b": 2}}

    @pytest.mark.parametrize("text", ["", "no json", "[1, 2]", "{broken"])
    def test_extract_rejects(self, text):
        with pytest.raises(ValueError, match="Invalid JSON response"):
            extract_json_object(text)


class TestScanner:
    def test_finds_patterns_with_line_numbers(self):
        content = "ok\nel.innerHTML = html\nconst r = Math.random()\n"
        findings = detect_vulnerabilities(content)
        assert [(v.line, v.type, v.severity) for v in findings] == [
            (2, "XSS vulnerability", "medium"),
            (3, "Weak random number generator", "medium"),
        ]

    def test_grouped_by_pattern_then_line(self):
        content = "eval(a)\npassword = 1\neval(b)\n"
        findings = detect_vulnerabilities(content)
        assert [(v.type, v.line) for v in findings] == [
            ("Hardcoded credentials", 2),
            ("Code injection risk (eval)", 1),
            ("Code injection risk (eval)", 3),
        ]

    def test_snippet_is_trimmed(self):
        line = "    password = '" + "x" * 200 + "'"
        (finding,) = detect_vulnerabilities(line)
        assert finding.code == line.strip()[:100]
        assert len(finding.code) == 100

    def test_clean_file(self):
        assert detect_vulnerabilities("def add(a, b):\n    return a + b\n") == []


class TestFactory:
    def test_openrouter(self):
        assert isinstance(create_analyzer("openrouter"), OpenRouterAnalyzer)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown analyzer backend"):
            create_analyzer("nope")


class TestCatalog:
    def test_models(self):
        models = list_models()
        assert [m.id for m in models] == [m.id for m in MODELS]
        assert "anthropic/claude-3.5-sonnet" in [m.id for m in models]
        assert all(m.provider for m in models)
