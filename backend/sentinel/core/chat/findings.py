"""Best-effort extraction of structured findings from model text.

The model is asked to mark problems with ``**Issue: SEVERITY**`` headers and
to put code in fenced blocks. That is a convention, not a schema: when the
model does not follow it the parser returns empty lists, never an error.
Category is a keyword guess over the description and can misclassify (a
performance note that mentions "token" lands in security).
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from .models import CodeSnippet, StructuredFinding


@dataclass
class ExtractedFindings:
    issues: List[StructuredFinding] = field(default_factory=list)
    code_snippets: List[CodeSnippet] = field(default_factory=list)


class ResponseParser:
    """Pulls severity-tagged issues and code blocks out of a raw model answer."""

    ISSUE_PATTERN = re.compile(
        r"\*\*Issue:\s*\[?(CRITICAL|WARNING|INFO)\]?\*\*[:\s]*([\s\S]*?)(?=\*\*Issue:|```|\Z)",
        re.IGNORECASE,
    )
    CODE_BLOCK_PATTERN = re.compile(r"```(\w+)?\n([\s\S]*?)```")
    LINE_PATTERN = re.compile(r"\blines?\s+(\d+)", re.IGNORECASE)

    SECURITY_KEYWORDS = ("sql", "injection", "auth", "xss", "csrf", "secret", "token")
    SCALABILITY_KEYWORDS = ("scale", "performance", "memory", "n+1", "bottleneck")

    DEFAULT_SNIPPET_PATH = "suggested"
    SNIPPET_EXPLANATION = "See Sentinel's analysis above."

    def parse(self, raw_response: str, file_path: Optional[str] = None) -> ExtractedFindings:
        """Extract issues and code snippets from raw (untranslated) model text.

        Args:
            raw_response: Model answer as returned by the gateway
            file_path: File the conversation is scoped to, if any

        Returns:
            ExtractedFindings, possibly with both lists empty
        """
        return ExtractedFindings(
            issues=self._extract_issues(raw_response),
            code_snippets=self._extract_snippets(raw_response, file_path),
        )

    def _extract_issues(self, text: str) -> List[StructuredFinding]:
        issues = []
        for match in self.ISSUE_PATTERN.finditer(text):
            description = match.group(2).strip()
            issues.append(
                StructuredFinding(
                    severity=match.group(1).lower(),
                    category=self._categorize(description),
                    description=description,
                    line=self._find_line(description),
                )
            )
        return issues

    def _categorize(self, description: str) -> str:
        lowered = description.lower()
        if any(keyword in lowered for keyword in self.SECURITY_KEYWORDS):
            return "security"
        if any(keyword in lowered for keyword in self.SCALABILITY_KEYWORDS):
            return "scalability"
        return "logic"

    def _find_line(self, description: str) -> Optional[int]:
        match = self.LINE_PATTERN.search(description)
        return int(match.group(1)) if match else None

    def _extract_snippets(self, text: str, file_path: Optional[str]) -> List[CodeSnippet]:
        return [
            CodeSnippet(
                file_path=file_path or self.DEFAULT_SNIPPET_PATH,
                original_code="",
                suggested_code=match.group(2).strip(),
                explanation=self.SNIPPET_EXPLANATION,
            )
            for match in self.CODE_BLOCK_PATTERN.finditer(text)
        ]


def extract_findings(raw_response: str, file_path: Optional[str] = None) -> ExtractedFindings:
    """Convenience wrapper around ResponseParser.parse."""
    return ResponseParser().parse(raw_response, file_path)
