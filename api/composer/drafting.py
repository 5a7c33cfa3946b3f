"""
Contract drafting helpers built on the generation provider.

Each helper has its own fallback policy: when every model fails, section
generation returns a standard outline, rewriting returns the original text
and clause suggestion returns a canned clause.
"""

from __future__ import annotations

import json
import re
from typing import Any, List, Optional, Sequence

import structlog
from pydantic import BaseModel, Field

from api.llm.gemini_provider import GenerationOptions
from libs.common.errors import APIError

logger = structlog.get_logger(__name__)

SECTIONS_OPTIONS = GenerationOptions(
    system_prompt="You are a legal expert. Generate comprehensive contract sections in JSON format.",
    temperature=0.5,
)
REWRITE_OPTIONS = GenerationOptions(
    system_prompt="You are a legal writing expert. Rewrite contract sections while maintaining legal accuracy.",
    temperature=0.6,
)
CLAUSE_OPTIONS = GenerationOptions(
    system_prompt="You are a legal expert. Suggest appropriate contract clauses.",
    temperature=0.7,
)

FALLBACK_SECTIONS = (
    ("Parties", "Contract parties information"),
    ("Term", "Contract duration and terms"),
    ("Obligations", "Party obligations and responsibilities"),
    ("Payment Terms", "Payment schedules and methods"),
    ("Termination", "Contract termination conditions"),
    ("Miscellaneous", "Standard boilerplate clauses"),
)

FALLBACK_CLAUSES = {
    "confidentiality": "All parties agree to maintain the confidentiality of proprietary information.",
    "termination": "This agreement may be terminated by either party with written notice.",
    "payment": "Payment shall be made according to the terms specified in this agreement.",
    "liability": "Liability shall be limited to the extent permitted by applicable law.",
    "default": "Standard legal clause for the specified context.",
}

# A heading line looks like "Payment Terms:" at the start of a line.
_HEADING_SPLIT = re.compile(r"\n(?=[A-Z][A-Za-z\s]+:)")
_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class ContractSection(BaseModel):
    title: str
    content: str = ""
    order: int = Field(ge=1)


def fallback_sections() -> List[ContractSection]:
    return [
        ContractSection(title=title, content=content, order=index)
        for index, (title, content) in enumerate(FALLBACK_SECTIONS, start=1)
    ]


def fallback_clause(clause_type: Optional[str]) -> str:
    return FALLBACK_CLAUSES.get((clause_type or "").lower(), FALLBACK_CLAUSES["default"])


def parse_sections_from_text(text: str) -> List[ContractSection]:
    """Split free text into sections at ``Heading:`` lines."""
    sections = []
    for index, chunk in enumerate(_HEADING_SPLIT.split(text.strip()), start=1):
        title, _, content = chunk.partition("\n")
        sections.append(
            ContractSection(title=title.replace(":", "", 1).strip(), content=content.strip(), order=index)
        )
    return sections


def parse_sections_json(text: str) -> Optional[List[ContractSection]]:
    """Sections from a JSON list (or ``{"sections": [...]}``); None if the text isn't that shape."""
    try:
        data: Any = json.loads(_CODE_FENCE.sub("", text.strip()))
    except ValueError:
        return None

    if isinstance(data, dict):
        data = data.get("sections")
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        return None

    sections = []
    for index, item in enumerate(data, start=1):
        title = item.get("title") or item.get("name")
        if not title:
            return None
        sections.append(ContractSection(title=str(title), content=str(item.get("content", "")), order=index))
    return sections


class ContractDrafter:
    """Drafting operations that never surface provider failures."""

    def __init__(self, provider):
        self.provider = provider

    async def generate_contract_sections(self, contract_type: str, parties: Sequence[Any]) -> List[ContractSection]:
        prompt = (
            f"Generate contract sections for a {contract_type} contract with {len(parties)} parties. "
            "Include all necessary legal sections."
        )
        try:
            result = await self.provider.generate_single_turn(prompt, SECTIONS_OPTIONS)
        except APIError as e:
            logger.error("Error generating contract sections", contract_type=contract_type, error=e.message)
            return fallback_sections()

        sections = parse_sections_json(result.text)
        if sections is None:
            sections = parse_sections_from_text(result.text)
        return sections

    async def rewrite_section(self, section_content: str, style: str) -> str:
        prompt = f"Rewrite the following contract section in {style} style:\n\n{section_content}"
        try:
            result = await self.provider.generate_single_turn(prompt, REWRITE_OPTIONS)
        except APIError as e:
            logger.error("Error rewriting section", style=style, error=e.message)
            return section_content
        return result.text

    async def suggest_clause(self, context: str, clause_type: str) -> str:
        prompt = f"Suggest a {clause_type} clause for the following contract context:\n\n{context}"
        try:
            result = await self.provider.generate_single_turn(prompt, CLAUSE_OPTIONS)
        except APIError as e:
            logger.error("Error suggesting clause", clause_type=clause_type, error=e.message)
            return fallback_clause(clause_type)
        return result.text
