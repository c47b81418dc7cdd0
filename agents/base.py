"""Base agent class for all Gemini-backed agents."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from google.genai import types


class BaseAgent(ABC):
    """Base class for all AI agents using the Google GenAI SDK."""

    def __init__(
        self,
        name: str,
        instructions: str,
        model: Optional[str] = None,
    ):
        """Initialize the agent.

        Args:
            name: Agent name
            instructions: System instructions for the agent
            model: Gemini model to use, defaults to ``GENERATION_MODEL``
        """
        from core.config import settings

        self.name = name
        self.instructions = instructions
        self.model = model or settings.generation_model
        self._client = None

    def _get_client(self):
        """Get or create the GenAI client."""
        if self._client is None:
            from google import genai
            from core.config import settings

            self._client = genai.Client(
                api_key=settings.google_api_key,
            )
        return self._client

    @abstractmethod
    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """Process input data and return results.

        Args:
            input_data: Input data for the agent

        Returns:
            Processing results
        """
        pass

    async def run(
        self,
        prompt: str,
        context: Optional[Dict[str, Any]] = None,
        json_output: bool = False,
        seed: Optional[int] = None,
    ) -> str:
        """Run the agent with a prompt.

        Args:
            prompt: User prompt
            context: Optional context data prepended to the prompt
            json_output: Ask the model for an ``application/json`` response
            seed: Sampling seed forwarded to the model

        Returns:
            Agent response text
        """
        client = self._get_client()

        contents = prompt
        if context:
            contents = f"Context: {context}\n\n{prompt}"

        config = types.GenerateContentConfig(
            system_instruction=self.instructions,
            response_mime_type="application/json" if json_output else None,
            seed=seed,
            temperature=0 if seed is not None else None,
        )

        response = await client.aio.models.generate_content(
            model=self.model,
            contents=contents,
            config=config,
        )

        return response.text or ""
