"""Lexi API Service.

This package contains the FastAPI application and related components
for the Lexi legal document assistant.

Main components:
- main.py: FastAPI application, error handling and health endpoints
- models.py: Pydantic models for requests and responses
- llm/: Gemini generation provider with model fallback
- orchestrators/: intent classification and the LangGraph query pipeline
- composer/: system prompts, answer post-processing and contract drafting
"""

# Avoid importing heavy modules (e.g., FastAPI app) at package import time to
# prevent side effects when tools (like LangGraph Studio) import `api.*`.
# Intentionally do not re-export runtime objects here.
__all__ = []
