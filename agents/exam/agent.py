"""Exam generation agent backed by Gemini."""

import logging
from typing import Any, Dict, Optional

from agents.base import BaseAgent
from agents.common.utils import parse_json_response
from agents.exam.prompts import EXAM_GENERATION_PROMPT, EXAM_GENERATION_SYSTEM_PROMPT
from agents.registry import register_agent
from core.exceptions import GenerationFailure
from evaluation.types import JobRoleProfile

logger = logging.getLogger(__name__)


@register_agent("exam_generation")
class ExamGenerationAgent(BaseAgent):
    """Agent that drafts screening exam questions for a job role."""

    def __init__(self):
        super().__init__(
            name="exam_generation",
            instructions=EXAM_GENERATION_SYSTEM_PROMPT,
        )

    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """Draft questions for a role.

        Args:
            input_data: Dictionary with 'job_role' (a JobRoleProfile or its
                        dict form), 'multiple_choice_count', 'open_ended_count'
                        and optional 'seed'

        Returns:
            Dictionary with the raw 'questions' drafts
        """
        profile = JobRoleProfile.model_validate(input_data["job_role"])
        questions = await self.draft_questions(
            profile,
            multiple_choice_count=input_data.get("multiple_choice_count", 0),
            open_ended_count=input_data.get("open_ended_count", 0),
            seed=input_data.get("seed"),
        )
        return {"status": "success", "questions": questions}

    async def draft_questions(
        self,
        profile: JobRoleProfile,
        multiple_choice_count: int,
        open_ended_count: int,
        seed: Optional[int] = None,
    ) -> list[dict]:
        prompt = EXAM_GENERATION_PROMPT.format(
            title=profile.title,
            description=profile.description or "-",
            responsibilities=profile.responsibilities or "-",
            requirements=profile.requirements or "-",
            key_skills=", ".join(profile.key_skills) or "-",
            multiple_choice_count=multiple_choice_count,
            open_ended_count=open_ended_count,
            total=multiple_choice_count + open_ended_count,
        )

        response = await self.run(prompt, json_output=True, seed=seed)
        result = parse_json_response(response)
        if result is None:
            raise GenerationFailure("model response was not valid JSON")

        questions = result.get("questions")
        if not isinstance(questions, list):
            raise GenerationFailure("model response had no 'questions' array")

        logger.info(
            "Model drafted %d questions for role %r", len(questions), profile.title
        )
        return [q for q in questions if isinstance(q, dict)]
