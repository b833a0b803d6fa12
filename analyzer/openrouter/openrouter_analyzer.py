"""
OpenRouterAnalyzer — reviews one file through OpenRouter's chat-completions API.

One POST per file, with its own timeout. Anything that goes wrong with the
call or with the model's output (timeout, HTTP error, non-JSON reply) turns
into a degraded result rather than an exception, so a batch keeps going:

    score 70, no issues/strengths, an explanatory summary, the locally
    scanned vulnerabilities, and ``error`` set.
"""

from __future__ import annotations

import time
from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError

from analyzer.engine import AnalyzerConfigError, FileAnalyzer
from analyzer.prompt import SYSTEM_PROMPT, build_review_prompt, extract_json_object
from analyzer.scanner import detect_vulnerabilities
from review_api.models.analysis import FileAnalysis, Issue, Vulnerability
from review_api.services.config import get_settings

logger = structlog.get_logger()

_APP_TITLE = "AI Code Reviewer"
_CONNECT_TIMEOUT = 10.0  # seconds

DEGRADED_SCORE = 70
TIMEOUT_SUMMARY = "Analysis timed out. The AI model took too long to respond."
TIMEOUT_ERROR = "Request timeout - AI model response exceeded time limit"
API_ERROR_SUMMARY = "Analysis completed with limited AI insights due to API error."


class OpenRouterAnalyzer(FileAnalyzer):
    """
    Sends the file plus a JSON-format instruction to the chosen model and
    maps the reply onto ``FileAnalysis``. Issues of type ``security`` are
    appended to the scanner's findings as vulnerabilities.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.openrouter_api_key
        self.base_url = base_url or settings.openrouter_base_url
        self.timeout = timeout or settings.analysis_timeout_seconds
        self.max_tokens = max_tokens or settings.analysis_max_tokens
        self.temperature = temperature if temperature is not None else settings.analysis_temperature
        self.site_url = settings.site_url
        self.debug_logs = settings.debug_analysis_logs
        self._client = client

    @property
    def name(self) -> str:
        return "OpenRouter"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout, connect=_CONNECT_TIMEOUT),
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "HTTP-Referer": self.site_url,
                    "X-Title": _APP_TITLE,
                },
            )
        return self._client

    async def analyze(self, content: str, file_path: str, model: str) -> FileAnalysis:
        if not self.api_key:
            raise AnalyzerConfigError("OPENROUTER_API_KEY environment variable is required")

        vulnerabilities = detect_vulnerabilities(content)
        line_count = content.count("\n") + 1
        await logger.ainfo(
            "Sending file for review",
            file=file_path,
            model=model,
            chars=len(content),
            lines=line_count,
        )
        if self.debug_logs:
            await logger.adebug("Code preview", file=file_path, preview=content[:500])

        started = time.monotonic()
        try:
            response = await self._get_client().post(
                "/chat/completions",
                json={
                    "model": model,
                    "messages": [
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": build_review_prompt(content, file_path)},
                    ],
                    "max_tokens": self.max_tokens,
                    "temperature": self.temperature,
                },
            )
            response.raise_for_status()
            reply = _completion_text(response.json())
            await logger.ainfo(
                "Review response received",
                file=file_path,
                elapsed_ms=int((time.monotonic() - started) * 1000),
            )
            try:
                parsed = extract_json_object(reply)
            except ValueError:
                if self.debug_logs:
                    await logger.adebug("Unparseable model reply", file=file_path, reply=reply[:1000])
                raise
            return _to_analysis(file_path, parsed, vulnerabilities)

        except httpx.TimeoutException:
            await logger.awarning("Review request timed out", file=file_path, model=model)
            return _degraded(file_path, TIMEOUT_SUMMARY, TIMEOUT_ERROR, vulnerabilities)
        except httpx.HTTPStatusError as e:
            error = f"OpenRouter API returned status {e.response.status_code}"
            await logger.awarning("Review request failed", file=file_path, model=model, error=error)
            return _degraded(file_path, API_ERROR_SUMMARY, error, vulnerabilities)
        except (httpx.HTTPError, ValueError) as e:
            error = str(e) or type(e).__name__
            await logger.awarning("Review request failed", file=file_path, model=model, error=error)
            return _degraded(file_path, API_ERROR_SUMMARY, error, vulnerabilities)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _completion_text(body: Any) -> str:
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise ValueError("Invalid response structure from AI model: missing completion data") from e
    if not isinstance(content, str) or not content:
        raise ValueError("Invalid response structure from AI model: missing or invalid content")
    return content


def _to_analysis(
    file_path: str, parsed: dict[str, Any], vulnerabilities: list[Vulnerability]
) -> FileAnalysis:
    raw_issues = parsed.get("issues")
    issues = [i for i in raw_issues if isinstance(i, dict)] if isinstance(raw_issues, list) else []
    raw_strengths = parsed.get("strengths")
    strengths = [s for s in raw_strengths if isinstance(s, str)] if isinstance(raw_strengths, list) else []

    try:
        security = [
            Vulnerability(
                line=issue.get("line"),
                type=issue.get("type") or "security",
                severity=issue.get("severity") or "medium",
                code=issue.get("code"),
            )
            for issue in issues
            if issue.get("type") == "security"
        ]
        return FileAnalysis(
            file=file_path,
            score=parsed.get("score"),
            issues=[Issue.model_validate(issue) for issue in issues],
            strengths=strengths,
            summary=parsed.get("summary"),
            vulnerabilities=[*vulnerabilities, *security],
        )
    except ValidationError as e:
        raise ValueError(f"Malformed analysis from AI model: {e.error_count()} invalid field(s)") from e


def _degraded(
    file_path: str, summary: str, error: str, vulnerabilities: list[Vulnerability]
) -> FileAnalysis:
    return FileAnalysis(
        file=file_path,
        score=DEGRADED_SCORE,
        issues=[],
        strengths=[],
        summary=summary,
        vulnerabilities=vulnerabilities,
        error=error,
    )
