"""
System prompts for the Lexi legal document assistant.

``build_system_prompt`` is pure: the same intent, document type and tone
always produce the same instruction string.
"""

from typing import Dict, Optional

from api.orchestrators.intent_classifier import Intent

BASE_PROMPT = "You are a legal document assistant."
DEFAULT_ADJUST_TONE = "formal"

INTENT_INSTRUCTIONS: Dict[str, str] = {
    "summarize": "Summarize the following text in a clear and concise manner.",
    "explain": "Explain the following legal terms and concepts in plain English.",
    "analyze": "Analyze the following text for potential risks, missing clauses, and enforceability concerns.",
}
GENERAL_INSTRUCTION = "Provide clear, accurate, and helpful legal information."


def _intent_instruction(intent: Intent, tone: Optional[str]) -> str:
    if intent.type in INTENT_INSTRUCTIONS:
        return INTENT_INSTRUCTIONS[intent.type]
    if intent.type == "suggest":
        if intent.clause_type:
            return f"Suggest appropriate {intent.clause_type} clauses based on the following context."
        return "Suggest appropriate clauses based on the following context."
    if intent.type == "adjust":
        return f"Rewrite the following text in a {tone or DEFAULT_ADJUST_TONE} tone while maintaining its legal meaning."
    return GENERAL_INSTRUCTION


def build_system_prompt(intent: Intent, document_type: Optional[str] = None, tone: Optional[str] = None) -> str:
    """Build the system instruction for a classified query.

    Args:
        intent: Classified intent; ``type`` picks the task clause.
        document_type: Optional document kind, e.g. "lease agreement".
        tone: Optional tone. For ``adjust`` it is part of the task clause,
            otherwise it is appended as a separate instruction.

    Returns:
        The instruction string.
    """
    parts = [BASE_PROMPT, _intent_instruction(intent, tone)]

    if document_type:
        parts.append(f"The context is about a {document_type}.")

    if tone and intent.type != "adjust":
        parts.append(f"Use a {tone} tone in your response.")

    return " ".join(parts)
