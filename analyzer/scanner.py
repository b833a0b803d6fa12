"""Local pattern scan for risky lines, run before (and independently of) the model."""

from __future__ import annotations

import re

from review_api.models.analysis import Vulnerability

# (pattern, severity, type), applied in this order
VULNERABILITY_PATTERNS: list[tuple[re.Pattern[str], str, str]] = [
    (re.compile(r"password\s*=", re.I), "high", "Hardcoded credentials"),
    (re.compile(r"api[_-]?key\s*=", re.I), "high", "Hardcoded API key"),
    (re.compile(r"secret\s*=", re.I), "high", "Hardcoded secret"),
    (re.compile(r"eval\s*\(", re.I), "high", "Code injection risk (eval)"),
    (re.compile(r"exec\s*\(", re.I), "high", "Command injection risk"),
    (re.compile(r"innerHTML", re.I), "medium", "XSS vulnerability"),
    (re.compile(r"dangerouslySetInnerHTML", re.I), "medium", "XSS vulnerability"),
    (re.compile(r"sql\s*injection", re.I), "high", "SQL injection"),
    (re.compile(r"SELECT.*FROM.*WHERE.*\+", re.I), "medium", "SQL injection risk"),
    (re.compile(r"\.env", re.I), "medium", "Environment file access"),
    (re.compile(r"process\.env", re.I), "low", "Environment variable usage"),
    (re.compile(r"crypto\.createHash\('md5'", re.I), "medium", "Weak hashing algorithm (MD5)"),
    (re.compile(r"Math\.random\(\)", re.I), "medium", "Weak random number generator"),
    (re.compile(r"http://", re.I), "medium", "Insecure HTTP protocol"),
]

MAX_SNIPPET_CHARS = 100


def detect_vulnerabilities(content: str) -> list[Vulnerability]:
    """Return one finding per (pattern, matching line), grouped by pattern.

    Lines are numbered from 1; ``code`` is the stripped line cut to 100 chars.
    """
    lines = content.split("\n")
    findings: list[Vulnerability] = []
    for pattern, severity, vuln_type in VULNERABILITY_PATTERNS:
        for index, line in enumerate(lines, start=1):
            if pattern.search(line):
                findings.append(
                    Vulnerability(
                        line=index,
                        type=vuln_type,
                        severity=severity,
                        code=line.strip()[:MAX_SNIPPET_CHARS],
                    )
                )
    return findings
