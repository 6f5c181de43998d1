"""
Tests for the SQLAlchemy assessment store against in-memory SQLite.
"""

from types import SimpleNamespace

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.pool import StaticPool

from api.services.assessments import AssessmentSessionRegistry, SqlAlchemyAssessmentStore
from assessments.schemas import (
    Answer,
    ApplicationStatus,
    Difficulty,
    Question,
    QuestionCategory,
    QuestionEvaluation,
    TypingTestResult,
)
from assessments.scoring import aggregate_results, derive_sub_scores
from core.exceptions import ConfigurationError, PersistenceError
from database.engine import create_engine, init_db
from database.models import Application, InterviewResult, Job
from database.models.assessments import TypingTestResult as TypingTestResultRow


@pytest_asyncio.fixture
async def session_factory():
    engine = create_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    factory = async_sessionmaker(engine, expire_on_commit=False)

    async with factory() as session:
        session.add(Job(
            id="job-1",
            title="Backend Engineer",
            company_name="Acme",
            typing_test_enabled=True,
            minimum_wpm=35,
            question_distribution='{"coding": 40, "dsa": 30, "education": 10, '
                                  '"achievements": 10, "problem_solving": 10}',
        ))
        session.add(Application(id="app-1", job_id="job-1", candidate={"name": "Ada"}, ai_score=82))
        await session.commit()

    yield factory
    await engine.dispose()


@pytest.fixture
def store(session_factory):
    return SqlAlchemyAssessmentStore(session_factory)


def _interview_results():
    questions = [
        Question(id="coding_0", text="Reverse a list", category=QuestionCategory.CODING,
                 difficulty=Difficulty.MEDIUM, time_limit=900),
        Question(id="dsa_0", text="Explain a heap", category=QuestionCategory.DSA,
                 difficulty=Difficulty.MEDIUM, time_limit=600),
    ]
    answers = [
        Answer(question_id="coding_0", answer="Use slicing", time_spent=120),
        Answer(question_id="dsa_0", answer="", time_spent=600, auto_submitted=True),
    ]
    evaluations = [
        QuestionEvaluation(question_id="coding_0", ai_score=80,
                           **derive_sub_scores(80, 120, 900), creativity=70,
                           feedback="Good", improvement_suggestions=["More detail"]),
        QuestionEvaluation(question_id="dsa_0", ai_score=30,
                           **derive_sub_scores(30, 600, 600), creativity=60),
    ]
    return aggregate_results(questions, answers, evaluations, minimum_passing_score=70)


class TestFetch:

    @pytest.mark.asyncio
    async def test_job_config_from_row(self, store):
        config = await store.fetch_job_config("job-1")

        assert config.job_title == "Backend Engineer"
        assert config.typing_test_enabled is True
        assert config.minimum_wpm == 35
        assert config.minimum_accuracy == 90
        assert config.question_distribution[QuestionCategory.CODING] == 40

    @pytest.mark.asyncio
    async def test_application_from_row(self, store):
        application = await store.fetch_application("app-1")
        assert application.ats_score == 82
        assert application.candidate_profile == {"name": "Ada"}

    @pytest.mark.asyncio
    async def test_missing_rows(self, store):
        with pytest.raises(ConfigurationError):
            await store.fetch_job_config("job-x")
        with pytest.raises(ConfigurationError):
            await store.fetch_application("app-x")


class TestPersist:

    @pytest.mark.asyncio
    async def test_typing_result_row(self, store, session_factory):
        result = TypingTestResult(
            wpm=52, accuracy=94, characters_typed=250, errors_made=15, corrections_made=3,
            time_spent=60, passed=True, fraud_score=0.2,
            fraud_indicators=["Multiple focus losses during test"],
            test_duration=60, paragraph_used="text", minimum_wpm_required=35,
            minimum_accuracy_required=90, focus_lost_count=3,
        )

        result_id = await store.persist_typing_result("app-1", "job-1", result)

        async with session_factory() as session:
            row = await session.get(TypingTestResultRow, result_id)
        assert row.wpm == 52
        assert row.browser_focus_lost_count == 3
        assert row.fraud_indicators == ["Multiple focus losses during test"]
        assert row.passed is True

    @pytest.mark.asyncio
    async def test_interview_result_and_questions(self, store, session_factory):
        results = _interview_results()

        result_id = await store.persist_interview_result("app-1", "job-1", results)

        async with session_factory() as session:
            row = await session.get(InterviewResult, result_id)
        assert row.percentage_score == 55
        assert row.coding_score == 80
        assert row.dsa_score == 30
        assert row.education_score == 0
        assert row.questions_completed == 1
        assert row.questions_auto_submitted == 1
        assert row.passed is False

        questions = await store.latest_interview_questions("app-1")
        assert [q["question_key"] for q in questions] == ["coding_0", "dsa_0"]
        assert questions[0]["candidate_answer"] == "Use slicing"
        assert questions[0]["improvement_suggestions"] == ["More detail"]
        assert questions[1]["auto_submitted"] is True

    @pytest.mark.asyncio
    async def test_status_update(self, store, session_factory):
        await store.update_application_status("app-1", ApplicationStatus.UNDER_REVIEW, 77)

        async with session_factory() as session:
            application = (
                await session.execute(select(Application).where(Application.id == "app-1"))
            ).scalar_one()
        assert application.status == "Under Review"
        assert application.ai_score == 77

    @pytest.mark.asyncio
    async def test_status_update_unknown_application(self, store):
        with pytest.raises(PersistenceError) as exc_info:
            await store.update_application_status("app-x", ApplicationStatus.REJECTED, None)
        assert exc_info.value.operation == "update_application_status"


class TestSessionRegistry:

    def test_add_get_remove(self):
        sessions = AssessmentSessionRegistry()
        coordinator = object()

        session_id = sessions.add(coordinator)

        assert sessions.get(session_id) is coordinator
        assert len(sessions) == 1
        assert sessions.remove(session_id) is coordinator
        assert sessions.get(session_id) is None
        assert sessions.remove(session_id) is None

    def test_finished_sessions_evicted_after_ttl(self, clock):
        sessions = AssessmentSessionRegistry(finished_ttl=60, clock=clock)
        running = sessions.add(SimpleNamespace(finished=False))
        done = sessions.add(SimpleNamespace(finished=False))

        sessions.mark_finished(done)
        clock.advance(59)
        assert sessions.get(done) is not None

        clock.advance(1)
        assert sessions.get(done) is None
        assert sessions.get(running) is not None
        assert len(sessions) == 1

    def test_already_finished_session_is_marked_on_add(self, clock):
        sessions = AssessmentSessionRegistry(finished_ttl=0, clock=clock)

        session_id = sessions.add(SimpleNamespace(finished=True))

        assert sessions.get(session_id) is None
        assert len(sessions) == 0

    def test_mark_unknown_session_is_ignored(self, clock):
        sessions = AssessmentSessionRegistry(clock=clock)
        sessions.mark_finished("nope")
        assert sessions.prune() == 0
