# tests/core/conftest.py
"""
Shared fixtures for core component tests.

Provides sessions, a mocked presenter, in-memory and failing repositories,
engines and orchestrators wired for tests, and the scripted happy-path
answer sequence.
"""

import pytest
from unittest.mock import Mock, AsyncMock

from checkin.models.session_state import SessionState, SessionStore
from checkin.models.response_kinds import (
    AcknowledgementAnswer,
    BooleanAnswer,
    ChoiceAnswer,
    MultiChoiceAnswer,
    NumericAnswer,
    TextAnswer,
)
from checkin.core.flow_engine import FlowEngine
from checkin.core.orchestrator import CheckInOrchestrator
from checkin.core.presentation import Presenter
from checkin.core.reveal import PromptRevealer
from checkin.core.step_registry import StepRegistry
from checkin.services.checkin_store import CheckInRepository, InMemoryCheckInRepository
from checkin.services.sleep_data_service import StaticSleepDataSource


@pytest.fixture
def registry():
    return StepRegistry()


@pytest.fixture
def session():
    return SessionState(session_id="test-session-123")


@pytest.fixture
def presenter():
    """Presenter mock recording every call"""
    return Mock(spec=Presenter)


@pytest.fixture
def repository():
    return InMemoryCheckInRepository()


@pytest.fixture
def failing_repository():
    """Repository whose save always reports failure"""
    mock = AsyncMock(spec=CheckInRepository)
    mock.persist.return_value = False
    mock.health_check.return_value = {"healthy": False, "status": "error"}
    return mock


@pytest.fixture
def engine(registry, presenter, repository):
    return FlowEngine(registry=registry, presenter=presenter, repository=repository)


@pytest.fixture
def engine_with_sleep_data(registry, presenter, repository):
    return FlowEngine(
        registry=registry,
        presenter=presenter,
        repository=repository,
        sleep_source=StaticSleepDataSource(7.5)
    )


@pytest.fixture
def orchestrator(engine):
    """Orchestrator that settles prompts immediately"""
    return CheckInOrchestrator(session_store=SessionStore(), flow_engine=engine, reveal_mode="none")


@pytest.fixture
def fast_revealer():
    return PromptRevealer(word_delay=0, settle_delay=0)


@pytest.fixture
def happy_path_answers():
    """
    Greeting through coping effectiveness with no symptoms and good sleep.
    Twelve answers, ending at the final step.
    """
    return [
        AcknowledgementAnswer(),
        NumericAnswer(value=8),
        ChoiceAnswer(value="happy"),
        ChoiceAnswer(value="joyful"),
        ChoiceAnswer(value="clear"),
        MultiChoiceAnswer(values=["none"]),
        BooleanAnswer(value=True),
        NumericAnswer(value=8),
        NumericAnswer(value=3),
        TextAnswer(text="work"),
        TextAnswer(text="walk"),
        NumericAnswer(value=7),
    ]


@pytest.fixture
def drive():
    """Submit a list of answers through an engine, returning the last result"""
    async def _drive(engine, session, answers):
        result = None
        for answer in answers:
            result = await engine.submit_answer(session, answer)
        return result
    return _drive


@pytest.fixture
def answers_until_symptoms():
    """Answers from the greeting up to (not including) physical symptoms"""
    return [
        AcknowledgementAnswer(),
        NumericAnswer(value=6),
        ChoiceAnswer(value="sad"),
        ChoiceAnswer(value="lonely"),
        ChoiceAnswer(value="foggy"),
    ]
