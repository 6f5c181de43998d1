"""Base agent class for all Google GenAI backed agents."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from google.genai import types


class BaseAgent(ABC):
    """Base class for all AI agents using Google GenAI."""

    def __init__(
        self,
        name: str,
        instructions: str,
        model: str = "gemini-2.0-flash",
        temperature: float = 0.4,
    ):
        """Initialize the agent.

        Args:
            name: Agent name
            instructions: System instructions for the agent
            model: Google model to use
            temperature: Sampling temperature
        """
        self.name = name
        self.instructions = instructions
        self.model = model
        self.temperature = temperature
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
        model: Optional[str] = None,
        json_output: bool = True,
    ) -> str:
        """Run the agent with a prompt.

        Args:
            prompt: User prompt
            model: Overrides the agent's default model for this call
            json_output: Ask the model for a JSON response body

        Returns:
            Agent response text
        """
        client = self._get_client()

        response = await client.aio.models.generate_content(
            model=model or self.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=self.instructions,
                temperature=self.temperature,
                response_mime_type="application/json" if json_output else None,
            ),
        )

        return response.text or ""
