"""Prompt text for single-file reviews and parsing of the model's reply."""

from __future__ import annotations

import json
from typing import Any

SYSTEM_PROMPT = "You are an expert code reviewer. Always respond with valid JSON only."

_REVIEW_TEMPLATE = """You are an expert code reviewer. Analyze the following code and provide a detailed review:

File: {file_path}

{content}

Please provide your analysis in the following JSON format:
{{
  "score": <overall code quality score 0-100>,
  "issues": [
    {{
      "line": <line number>,
      "type": "bug|performance|style|security|bestpractice",
      "severity": "low|medium|high|critical",
      "message": "<brief description>",
      "code": "<the exact line or snippet of code where the issue is found, INCLUDING 2-3 lines of surrounding context for better understanding>",
      "suggestion": "<how to fix>"
    }}
  ],
  "strengths": ["<list of good practices observed>"],
  "summary": "<2-3 sentence overall summary>"
}}

Focus on:
1. Potential bugs and edge cases
2. Performance issues
3. Security vulnerabilities
4. Code style and best practices
5. Maintainability concerns

Return ONLY valid JSON, no markdown formatting."""


def build_review_prompt(content: str, file_path: str) -> str:
    return _REVIEW_TEMPLATE.format(file_path=file_path, content=content)


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the JSON object in a model reply.

    Models wrap JSON in prose or markdown fences, so everything outside the
    first ``{`` and the last ``}`` is dropped before parsing.

    Raises:
        ValueError: the reply holds no JSON object.
    """
    cleaned = text.strip()
    first = cleaned.find("{")
    last = cleaned.rfind("}")
    if first != -1 and last > first:
        cleaned = cleaned[first : last + 1]

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ValueError("Invalid JSON response from AI model") from e

    if not isinstance(parsed, dict):
        raise ValueError("Invalid JSON response from AI model")
    return parsed
