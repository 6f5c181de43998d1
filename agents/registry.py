"""Registry of interview question generators and answer evaluators."""

import logging
from typing import Any, Dict, Type

from assessments.ports import AnswerEvaluator, QuestionGenerator
from assessments.schemas import JobAssessmentConfig

logger = logging.getLogger(__name__)

QUESTION_BANK = "question_bank"
HEURISTIC_EVALUATOR = "heuristic_evaluator"
GENAI_QUESTIONS = "genai_questions"
GENAI_EVALUATOR = "genai_evaluator"


class AgentRegistry:
    """Registry for managing all interview agents in the system."""

    def __init__(self):
        self._agents: Dict[str, Type[Any]] = {}
        self._instances: Dict[str, Any] = {}

    def register(self, name: str, agent_class: Type[Any]):
        """Register an agent class.

        Args:
            name: Agent name
            agent_class: Agent class, constructible without arguments
        """
        self._agents[name] = agent_class

    def get(self, name: str) -> Any:
        """Get or create an agent instance.

        Args:
            name: Agent name

        Returns:
            Agent instance
        """
        if name not in self._instances:
            if name not in self._agents:
                raise ValueError(f"Agent '{name}' not registered")

            agent_class = self._agents[name]
            self._instances[name] = agent_class()

        return self._instances[name]

    def create(self, name: str, **kwargs: Any) -> Any:
        """Create a new, uncached agent instance with constructor arguments."""
        if name not in self._agents:
            raise ValueError(f"Agent '{name}' not registered")
        return self._agents[name](**kwargs)

    def list_agents(self) -> list[str]:
        """List all registered agents.

        Returns:
            List of agent names
        """
        return list(self._agents.keys())


# Global registry instance
registry = AgentRegistry()


def register_agent(name: str):
    """Decorator to register an agent.

    Args:
        name: Agent name
    """
    def decorator(cls: Type[Any]):
        registry.register(name, cls)
        return cls
    return decorator


def resolve_question_generator(config: JobAssessmentConfig) -> QuestionGenerator:
    """Model-written questions when the job asks for them and a key is set."""
    from core.config import settings

    if config.dynamic_questions_enabled and settings.google_api_key:
        return registry.create(GENAI_QUESTIONS, model=config.ai_model)
    if config.dynamic_questions_enabled:
        logger.warning(
            f"Dynamic questions requested for job {config.job_id} but no Google API key "
            f"is configured; using the question bank"
        )
    return registry.get(QUESTION_BANK)


def resolve_answer_evaluator(config: JobAssessmentConfig) -> AnswerEvaluator:
    from core.config import settings

    if settings.google_api_key:
        return registry.create(
            GENAI_EVALUATOR,
            model=config.ai_model,
            strictness=config.evaluation_strictness,
        )
    return registry.get(HEURISTIC_EVALUATOR)
