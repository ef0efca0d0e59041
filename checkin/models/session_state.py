# checkin/models/session_state.py

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_serializer, field_validator

from checkin.models.flow_models import CheckInStep, StepId, INITIAL_STEP, parse_step_id, step_key
from checkin.models.response_kinds import ChoiceOption
from checkin.models.transcript import Transcript
from checkin.core.exceptions import session_error


class SymptomLoop(BaseModel):
    """Symptoms still to be rated and the position of the one being rated"""
    symptoms: List[ChoiceOption] = Field(default_factory=list)
    index: int = 0

    @property
    def is_active(self) -> bool:
        return bool(self.symptoms)

    @property
    def current(self) -> Optional[ChoiceOption]:
        if 0 <= self.index < len(self.symptoms):
            return self.symptoms[self.index]
        return None

    def clear(self) -> None:
        self.symptoms = []
        self.index = 0


class SessionState(BaseModel):
    """
    State of one check-in session: current step, transcript, collected
    answers and the symptom-severity loop. Owned by the flow engine for
    the lifetime of the session; never shared between sessions.
    """
    session_id: str = Field(default_factory=lambda: str(uuid4()))
    current_step: StepId = INITIAL_STEP
    transcript: Transcript = Field(default_factory=Transcript)
    answers: Dict[str, Any] = Field(default_factory=dict)
    symptom_loop: SymptomLoop = Field(default_factory=SymptomLoop)
    current_prompt: str = ""
    current_turn_id: Optional[int] = None
    prompt_settled: bool = False
    persist_attempted: bool = False
    persisted: Optional[bool] = None
    halted: bool = False
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("current_step", mode="before")
    @classmethod
    def _parse_step(cls, value: Any) -> Any:
        # CheckInStep is a str Enum, only raw strings need parsing
        if isinstance(value, str) and not isinstance(value, CheckInStep):
            return parse_step_id(value)
        return value

    @field_serializer("current_step")
    def _serialize_step(self, step_id: StepId) -> str:
        return step_key(step_id)

    @property
    def is_complete(self) -> bool:
        return self.current_step == CheckInStep.FINAL

    def reset(self) -> None:
        """Blank record, empty transcript, back at the greeting"""
        self.current_step = INITIAL_STEP
        self.transcript = Transcript()
        self.answers = {}
        self.symptom_loop = SymptomLoop()
        self.current_prompt = ""
        self.current_turn_id = None
        self.prompt_settled = False
        self.persist_attempted = False
        self.persisted = None
        self.halted = False
        self.started_at = datetime.now(timezone.utc)


class SessionStore:
    """
    Simple in-memory registry of independent sessions.
    """
    def __init__(self):
        self.sessions: Dict[str, SessionState] = {}

    def create_session(self, session_id: Optional[str] = None) -> SessionState:
        session = SessionState(session_id=session_id) if session_id else SessionState()
        self.sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> SessionState:
        if session_id not in self.sessions:
            raise session_error("Unknown session", session_id)
        return self.sessions[session_id]

    def get_or_create(self, session_id: str) -> SessionState:
        if session_id not in self.sessions:
            return self.create_session(session_id)
        return self.sessions[session_id]

    def discard(self, session_id: str) -> bool:
        return self.sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self.sessions)
