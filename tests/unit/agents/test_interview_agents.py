"""
Tests for interview question generators and answer evaluators.
"""

import json
import random

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from agents import (
    HeuristicAnswerEvaluator,
    InterviewEvaluationAgent,
    InterviewQuestionAgent,
    QuestionBankGenerator,
    registry,
    resolve_answer_evaluator,
    resolve_question_generator,
)
from agents.common.utils import clamp_score, parse_json_response
from agents.interview.agent import resolve_model
from agents.interview.heuristic import (
    BASIC_FEEDBACK,
    EXCELLENT_FEEDBACK,
    GOOD_FEEDBACK,
    IMPROVEMENT_SUGGESTIONS,
    feedback_for,
    heuristic_score,
)
from agents.interview.question_bank import QUESTION_BANK_TEXTS
from agents.registry import GENAI_EVALUATOR, HEURISTIC_EVALUATOR, QUESTION_BANK
from assessments.schemas import Answer, Difficulty, Question, QuestionCategory
from core.config import settings
from core.exceptions import EvaluationError

from conftest import make_config


def _question(category=QuestionCategory.CODING, time_limit=100, **kwargs):
    return Question(
        id="q1",
        text="Explain a hash map.",
        category=category,
        difficulty=Difficulty.MEDIUM,
        time_limit=time_limit,
        **kwargs,
    )


def _answer(text, time_spent=10, **kwargs):
    return Answer(question_id="q1", answer=text, time_spent=time_spent, **kwargs)


class TestParsing:

    def test_plain_json(self):
        assert parse_json_response('{"score": 80}') == {"score": 80}

    def test_fenced_json(self):
        assert parse_json_response('```json\n{"score": 75}\n```') == {"score": 75}

    @pytest.mark.parametrize("response", ["", "not json", "[1, 2]", "```\n```"])
    def test_unusable_response(self, response):
        with pytest.raises(EvaluationError):
            parse_json_response(response)

    def test_clamp_score(self):
        assert clamp_score("120") == 100
        assert clamp_score(-3) == 0
        with pytest.raises(EvaluationError):
            clamp_score("high")


class TestHeuristicEvaluator:

    def test_short_quick_answer(self):
        # 30 floor + 10 quick bonus
        assert heuristic_score(_answer("yes", time_spent=10), _question()) == 40

    def test_length_scales_score(self):
        assert heuristic_score(_answer("x" * 500, time_spent=80), _question()) == 50

    def test_long_quick_answer_capped(self):
        assert heuristic_score(_answer("x" * 5000, time_spent=1), _question()) == 100

    @pytest.mark.parametrize("score,feedback", [
        (80, EXCELLENT_FEEDBACK),
        (79, GOOD_FEEDBACK),
        (60, GOOD_FEEDBACK),
        (59, BASIC_FEEDBACK),
    ])
    def test_feedback_tiers(self, score, feedback):
        assert feedback_for(score) == feedback

    @pytest.mark.asyncio
    async def test_evaluation(self):
        evaluator = HeuristicAnswerEvaluator(random.Random(3))
        question = _question(QuestionCategory.ACHIEVEMENTS)

        evaluation = await evaluator.evaluate(question, _answer("x" * 700, time_spent=20))

        assert evaluation.ai_score == 80
        assert evaluation.technical_accuracy == pytest.approx(72)
        assert evaluation.time_management == 90
        assert 60 <= evaluation.creativity <= 100
        assert evaluation.feedback == EXCELLENT_FEEDBACK
        assert evaluation.improvement_suggestions == IMPROVEMENT_SUGGESTIONS[QuestionCategory.ACHIEVEMENTS]


class TestQuestionBank:

    @pytest.mark.asyncio
    async def test_draws_from_configured_difficulty(self):
        generator = QuestionBankGenerator(random.Random(0))
        config = make_config(difficulty_level="hard")

        question = await generator.generate(QuestionCategory.DSA, 2, config)

        assert question.text in QUESTION_BANK_TEXTS[QuestionCategory.DSA][Difficulty.HARD]
        assert question.difficulty == Difficulty.HARD
        assert question.time_limit == 600
        assert question.id.startswith("dsa_2_")

    @pytest.mark.asyncio
    async def test_ids_are_unique(self):
        generator = QuestionBankGenerator(random.Random(0))
        config = make_config()
        first = await generator.generate(QuestionCategory.CODING, 0, config)
        second = await generator.generate(QuestionCategory.CODING, 0, config)
        assert first.id != second.id


class TestGenAIAgents:

    def test_non_gemini_models_use_default(self):
        assert resolve_model("gemini-1.5-pro") == "gemini-1.5-pro"
        assert resolve_model("gpt-4") == settings.default_ai_model
        assert resolve_model(None) == settings.default_ai_model

    @pytest.mark.asyncio
    async def test_question_from_model(self):
        agent = InterviewQuestionAgent(model="gemini-2.0-flash")
        agent.run = AsyncMock(return_value=json.dumps({
            "text": "How would you shard a user table?",
            "expected_answer": "Hash or range partitioning",
        }))
        config = make_config(job_title="Backend Engineer", difficulty_level="easy")

        question = await agent.generate(QuestionCategory.PROBLEM_SOLVING, 0, config)

        assert question.text == "How would you shard a user table?"
        assert question.expected_answer == "Hash or range partitioning"
        assert question.time_limit == 720
        assert question.difficulty == Difficulty.EASY
        prompt = agent.run.await_args.args[0]
        assert "Backend Engineer" in prompt
        assert "problem_solving" in prompt

    @pytest.mark.asyncio
    async def test_question_falls_back_to_bank(self):
        agent = InterviewQuestionAgent(fallback=QuestionBankGenerator(random.Random(1)))
        agent.run = AsyncMock(return_value="Sorry, I can't help with that.")

        question = await agent.generate(QuestionCategory.CODING, 1, make_config())

        assert question.text in QUESTION_BANK_TEXTS[QuestionCategory.CODING][Difficulty.MEDIUM]

    @pytest.mark.asyncio
    async def test_evaluation_from_model(self):
        agent = InterviewEvaluationAgent(strictness="strict")
        agent.run = AsyncMock(return_value=json.dumps({
            "score": 84,
            "creativity": 70,
            "feedback": "Solid answer.",
            "improvement_suggestions": ["a", "b", "c", "d", "e", "f"],
        }))

        evaluation = await agent.evaluate(
            _question(expected_answer="Buckets and hashing"),
            _answer("It hashes keys into buckets.", time_spent=150, auto_submitted=True),
        )

        assert evaluation.ai_score == 84
        assert evaluation.creativity == 70
        assert evaluation.communication == pytest.approx(84 * 0.85)
        assert evaluation.time_management == 60
        assert evaluation.feedback == "Solid answer."
        assert evaluation.improvement_suggestions == ["a", "b", "c", "d", "e"]
        prompt = agent.run.await_args.args[0]
        assert "Buckets and hashing" in prompt
        assert "auto-submitted" in prompt

    @pytest.mark.asyncio
    async def test_evaluation_defaults_suggestions_by_category(self):
        agent = InterviewEvaluationAgent()
        agent.run = AsyncMock(return_value='{"score": 90}')

        evaluation = await agent.evaluate(_question(QuestionCategory.DSA), _answer("answer"))

        assert evaluation.creativity == 90
        assert evaluation.improvement_suggestions == IMPROVEMENT_SUGGESTIONS[QuestionCategory.DSA]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", ["not json", '{"feedback": "no score"}', '{"score": "great"}'])
    async def test_evaluation_falls_back_to_heuristic(self, response):
        agent = InterviewEvaluationAgent(rng=random.Random(0))
        agent.run = AsyncMock(return_value=response)

        evaluation = await agent.evaluate(_question(), _answer("yes", time_spent=10))

        assert evaluation.ai_score == 40
        assert evaluation.feedback == BASIC_FEEDBACK

    @pytest.mark.asyncio
    async def test_run_sends_system_instruction_and_json_mime_type(self):
        agent = InterviewEvaluationAgent(model="gemini-1.5-flash")
        response = MagicMock(text='{"score": 10}')
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(return_value=response)
        agent._client = client

        assert await agent.run("grade this") == '{"score": 10}'

        kwargs = client.aio.models.generate_content.await_args.kwargs
        assert kwargs["model"] == "gemini-1.5-flash"
        assert kwargs["contents"] == "grade this"
        assert kwargs["config"].system_instruction == agent.instructions
        assert kwargs["config"].response_mime_type == "application/json"


class TestRegistry:

    def test_all_agents_registered(self):
        assert set(registry.list_agents()) >= {
            QUESTION_BANK,
            HEURISTIC_EVALUATOR,
            GENAI_EVALUATOR,
        }

    def test_get_caches_instances(self):
        assert registry.get(QUESTION_BANK) is registry.get(QUESTION_BANK)

    def test_unknown_agent(self):
        with pytest.raises(ValueError):
            registry.get("nope")

    def test_without_api_key_uses_local_agents(self):
        config = make_config(dynamic_questions_enabled=True)
        with patch.object(settings, "google_api_key", None):
            assert isinstance(resolve_question_generator(config), QuestionBankGenerator)
            assert isinstance(resolve_answer_evaluator(config), HeuristicAnswerEvaluator)

    def test_with_api_key_uses_model_agents(self):
        config = make_config(
            dynamic_questions_enabled=True, ai_model="gpt-4", evaluation_strictness="lenient"
        )
        with patch.object(settings, "google_api_key", "test-key"):
            generator = resolve_question_generator(config)
            evaluator = resolve_answer_evaluator(config)

        assert isinstance(generator, InterviewQuestionAgent)
        assert isinstance(evaluator, InterviewEvaluationAgent)
        assert evaluator.model == settings.default_ai_model
        assert evaluator.strictness == "lenient"

    def test_static_questions_even_with_api_key(self):
        with patch.object(settings, "google_api_key", "test-key"):
            generator = resolve_question_generator(make_config(dynamic_questions_enabled=False))
        assert isinstance(generator, QuestionBankGenerator)
