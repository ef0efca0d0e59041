# checkin/core/flow_engine.py
"""
Check-in Flow Engine - state machine over the step registry.

The engine owns the transition algorithm for one SessionState at a time:
coerce the answer, pick the next step (including the symptom-severity
loop), record the answer and the turns, emit the next prompt, and hand
the finished record to persistence once the final step is reached.

Transitions are computed before anything is written, so a rejected
answer or a broken graph never leaves a half-applied step behind.
"""

from typing import Any, Dict, List, Optional, Tuple
import logging

from pydantic import BaseModel

from checkin.models.flow_models import (
    CheckInStep,
    Originator,
    StepId,
    SymptomSeverityStep,
    INITIAL_STEP,
    TERMINAL_STEP,
    is_severity_step,
    step_key,
)
from checkin.models.response_kinds import ResponseKind
from checkin.models.session_state import SessionState, SymptomLoop
from checkin.core import coercion
from checkin.core.exceptions import (
    AnswerValidationError,
    FlowIntegrityError,
    PersistenceFailureError,
    SessionNotCompleteError,
)
from checkin.core.presentation import LoggingPresenter, Presenter
from checkin.core.step_registry import (
    PromptContext,
    StepDefinition,
    StepRegistry,
    create_step_registry,
    selected_symptoms,
)
from checkin.services.checkin_store import CheckInRepository, InMemoryCheckInRepository
from checkin.services.sleep_data_service import SleepDataSource

logger = logging.getLogger(__name__)


class TransitionResult(BaseModel):
    """What the caller needs to show after a transition"""
    step_id: str
    prompt: str
    response_kind: ResponseKind
    turn_id: int
    is_complete: bool


class FlowEngine:
    """
    Drives a check-in session through the step registry.

    Collaborators:
    - presenter: receives prompts, input controls and user turns
    - repository: saves the answer record at the final step
    - sleep_source: optional prefill for the sleep-check prompt
    """

    def __init__(
        self,
        registry: Optional[StepRegistry] = None,
        presenter: Optional[Presenter] = None,
        repository: Optional[CheckInRepository] = None,
        sleep_source: Optional[SleepDataSource] = None
    ):
        self.registry = registry or create_step_registry()
        self.presenter = presenter or LoggingPresenter()
        self.repository = repository or InMemoryCheckInRepository()
        self.sleep_source = sleep_source

        logger.info("FlowEngine initialized")

    # ===========================================
    # SESSION LIFECYCLE
    # ===========================================

    async def start_session(self, session: SessionState) -> TransitionResult:
        """
        Reset the session and emit the greeting.

        Returns:
            TransitionResult for the greeting step
        """
        session.reset()
        definition = self._lookup(session, INITIAL_STEP)

        prompt = definition.build_prompt(await self._prompt_context(INITIAL_STEP, session.symptom_loop))
        self._emit_prompt(session, prompt, definition.response_kind)

        logger.info(f"Session {session.session_id} started at {INITIAL_STEP.value}")
        return self._result(session, definition)

    async def submit_answer(self, session: SessionState, answer: Any) -> TransitionResult:
        """
        Apply an answer to the current step and move to the next one.

        Args:
            session: Session to advance
            answer: Answer model matching the current step's response kind

        Returns:
            TransitionResult for the new current step

        Raises:
            IncompleteAnswerError / InvalidAnswerError: Answer rejected, session unchanged
            FlowIntegrityError: The graph leads to an undefined step; the session is halted
            PersistenceFailureError: Final step reached but the save failed
        """
        self._ensure_not_halted(session)
        current = session.current_step
        definition = self._lookup(session, current)

        if current == TERMINAL_STEP:
            logger.info(f"Session {session.session_id} already finished, answer ignored")
            return self._result(session, definition)

        try:
            stored, display = coercion.coerce(definition.response_kind, answer, field=step_key(current))
        except AnswerValidationError as e:
            logger.info(f"Answer rejected at {step_key(current)}: {e}")
            raise

        candidate, loop = self.compute_next_step(current, stored, session.symptom_loop)
        next_definition = self._lookup(session, candidate)
        context = await self._prompt_context(candidate, loop)
        prompt = next_definition.build_prompt(context)

        # Commit
        if definition.response_kind.kind != "none":
            session.transcript.append(Originator.USER, display)
            self.presenter.render_user_turn(display)

        key = self.answer_key(current, definition)
        if key:
            session.answers[key] = stored

        session.symptom_loop = loop
        self._emit_prompt(session, prompt, next_definition.response_kind)
        session.current_step = candidate

        logger.info(f"Transition: {step_key(current)} -> {step_key(candidate)}")

        result = self._result(session, next_definition)

        if candidate == TERMINAL_STEP and not session.persist_attempted:
            await self._persist(session, result)

        return result

    def mark_prompt_settled(self, session: SessionState) -> None:
        """Reveal completion signal: input controls become eligible"""
        session.prompt_settled = True

    async def retry_persist(self, session: SessionState) -> bool:
        """
        Caller-driven retry of a failed save.

        Raises:
            SessionNotCompleteError: If the session has not reached the final step
            PersistenceFailureError: If the save fails again
        """
        if not session.is_complete:
            raise SessionNotCompleteError("Check-in is not complete", session_id=session.session_id)
        if session.persisted:
            return True

        await self._persist(session, self.current_result(session))
        return True

    def current_result(self, session: SessionState) -> TransitionResult:
        """The current step as a TransitionResult, for re-prompting"""
        return self._result(session, self._lookup(session, session.current_step))

    # ===========================================
    # TRANSITIONS
    # ===========================================

    def compute_next_step(
        self,
        current: StepId,
        stored: Any,
        loop: SymptomLoop
    ) -> Tuple[StepId, SymptomLoop]:
        """
        Next step and symptom-loop state for a stored answer. Pure.

        Returns:
            (candidate step, loop state to apply with it)
        """
        definition = self.registry.lookup(current)

        if current == CheckInStep.PHYSICAL_SYMPTOMS:
            values = [stored] if isinstance(stored, str) else stored
            chosen = selected_symptoms(values)
            symptoms = [o for o in definition.response_kind.options if o.value in chosen]
            if not symptoms:
                logger.info("No symptoms selected, skipping severity loop")
                return definition.fallback or definition.next_step(stored), SymptomLoop()

            logger.info(f"Entering severity loop for {[s.value for s in symptoms]}")
            return SymptomSeverityStep(symptom_id=symptoms[0].value), SymptomLoop(symptoms=symptoms, index=0)

        if is_severity_step(current):
            index = loop.index + 1
            if index < len(loop.symptoms):
                next_loop = SymptomLoop(symptoms=list(loop.symptoms), index=index)
                return SymptomSeverityStep(symptom_id=loop.symptoms[index].value), next_loop

            logger.info("Severity loop finished")
            return definition.fallback or definition.next_step(stored), SymptomLoop()

        return definition.next_step(stored), loop

    @staticmethod
    def answer_key(current: StepId, definition: StepDefinition) -> Optional[str]:
        """Record key for the current step's answer"""
        if isinstance(current, SymptomSeverityStep):
            return f"severity_{current.symptom_id}"
        return definition.data_key

    async def _prompt_context(self, step: StepId, loop: SymptomLoop) -> PromptContext:
        if isinstance(step, SymptomSeverityStep):
            current = loop.current
            label = current.label if current and current.value == step.symptom_id else None
            return PromptContext(symptom_label=label)

        if step == CheckInStep.SLEEP_HOURS_CHECK:
            return PromptContext(suggested_sleep_hours=await self._suggested_sleep_hours())

        return PromptContext()

    async def _suggested_sleep_hours(self) -> Optional[float]:
        if self.sleep_source is None:
            return None
        try:
            return await self.sleep_source.suggested_sleep_hours()
        except Exception as e:
            logger.warning(f"Sleep data unavailable: {e}")
            return None

    def _emit_prompt(self, session: SessionState, prompt: str, response_kind) -> int:
        turn_id = session.transcript.append(Originator.ENGINE, prompt)
        session.current_prompt = prompt
        session.current_turn_id = turn_id
        session.prompt_settled = False

        self.presenter.render_prompt(prompt)
        self.presenter.render_input_control(response_kind)
        return turn_id

    def _lookup(self, session: SessionState, step: StepId) -> StepDefinition:
        try:
            return self.registry.lookup(step)
        except FlowIntegrityError:
            session.halted = True
            logger.error(f"Flow integrity error in session {session.session_id}: no definition for {step_key(step)}")
            raise

    def _ensure_not_halted(self, session: SessionState) -> None:
        if session.halted:
            raise FlowIntegrityError(
                "Session was halted after a flow integrity error",
                current_state=step_key(session.current_step)
            )

    def _result(self, session: SessionState, definition: StepDefinition) -> TransitionResult:
        return TransitionResult(
            step_id=step_key(session.current_step),
            prompt=session.current_prompt,
            response_kind=definition.response_kind,
            turn_id=session.current_turn_id,
            is_complete=session.is_complete
        )

    # ===========================================
    # PERSISTENCE
    # ===========================================

    async def _persist(self, session: SessionState, result: TransitionResult) -> None:
        session.persist_attempted = True
        cause = None

        try:
            saved = await self.repository.persist(session.session_id, dict(session.answers))
        except Exception as e:
            saved = False
            cause = e

        session.persisted = bool(saved)
        if not session.persisted:
            logger.error(f"Persisting check-in {session.session_id} failed: {cause or 'repository returned False'}")
            raise PersistenceFailureError(
                "Check-in could not be saved",
                session_id=session.session_id,
                result=result,
                details={"error": str(cause)} if cause else None
            ) from cause

        logger.info(f"Check-in {session.session_id} persisted with {len(session.answers)} answers")

    # ===========================================
    # INTROSPECTION
    # ===========================================

    def get_flow_summary(self) -> Dict[str, Any]:
        return self.registry.get_flow_summary()

    def validate_graph(self) -> List[str]:
        return self.registry.validate_graph()


def create_flow_engine(**kwargs) -> FlowEngine:
    """Create a flow engine over the default check-in graph"""
    return FlowEngine(**kwargs)
