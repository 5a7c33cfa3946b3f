"""Extraction of legal references and actionable suggestions from generated text."""

import re
from typing import Any, List

# "Section 12", "Article 21A", "Section 12 of the Contract Act"
SECTION_PATTERN = re.compile(
    r"\b(?i:section|article)\s+\d+[A-Za-z]?\b(?:\s+of\s+the\s+(?:[A-Z][A-Za-z]*\s+)+Act\b)?"
)
# "Smith v. Jones"
CASE_PATTERN = re.compile(r"\b[A-Z][a-zA-Z]+\s+v\.\s+[A-Z][a-zA-Z]+")
# "Indian Contract Act", "Labour Relations Act, 1995"
ACT_PATTERN = re.compile(r"\b(?:[A-Z][a-zA-Z]*\s+)+Act\b(?:,?\s*\d{4})?")

ACTION_VERBS = (
    "Consider",
    "Ensure",
    "Review",
    "Verify",
    "Confirm",
    "Add",
    "Remove",
    "Update",
    "Check",
    "Include",
    "Exclude",
)


def extract_references(text: Any) -> List[str]:
    """Section/article references, case citations and Act names, each listed once."""
    if not text or not isinstance(text, str):
        return []

    matches: List[str] = []
    for pattern in (SECTION_PATTERN, CASE_PATTERN, ACT_PATTERN):
        matches.extend(m.group(0).strip() for m in pattern.finditer(text))

    # dict keeps first-seen order
    return list(dict.fromkeys(matches))


def extract_suggestions(text: Any) -> List[str]:
    """Lines that start with an action verb, trimmed, in original order."""
    if not text or not isinstance(text, str):
        return []

    suggestions = []
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith(ACTION_VERBS):
            suggestions.append(stripped)
    return suggestions
