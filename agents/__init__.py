"""
Agents package for question generation backends.

Model-backed agents register themselves in the registry on import; the
offline question bank is used when ``GENERATION_BACKEND=question_bank``.
"""

from typing import Optional

from agents.registry import registry, register_agent
from agents.base import BaseAgent

# Import all agents to register them
from agents.exam.agent import ExamGenerationAgent
from agents.exam.question_bank import QuestionBankBackend


def get_generation_backend(name: Optional[str] = None):
    """Return the configured exam generation backend."""
    from core.config import settings

    name = name or settings.generation_backend
    if name == "question_bank":
        return QuestionBankBackend()
    if name == "gemini":
        return registry.get("exam_generation")
    raise ValueError(f"Unknown generation backend: {name}")


__all__ = [
    "registry",
    "register_agent",
    "BaseAgent",
    "ExamGenerationAgent",
    "QuestionBankBackend",
    "get_generation_backend",
]
