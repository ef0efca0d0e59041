# checkin/core/orchestrator.py
"""
Check-in Orchestrator - session management around the flow engine.

The engine assumes it is only called when input is eligible. This layer
enforces that: it tracks whether the current prompt has settled, runs the
prompt reveal, turns rejected answers into re-prompts and exposes read
access to sessions for the HTTP surface.
"""

from typing import Any, Dict, Optional, Set
import asyncio
import logging

from checkin.models.flow_models import step_key
from checkin.models.session_state import SessionState, SessionStore
from checkin.core.config import settings
from checkin.core.exceptions import (
    AnswerValidationError,
    CheckInBaseException,
    InputNotReadyError,
    PersistenceFailureError,
)
from checkin.core.flow_engine import FlowEngine, TransitionResult, create_flow_engine
from checkin.core.reveal import PromptRevealer
from checkin.services.checkin_store import create_checkin_repository
from checkin.services.sleep_data_service import create_sleep_data_source

logger = logging.getLogger(__name__)

REVEAL_NONE = "none"
REVEAL_CLIENT = "client"
REVEAL_SERVER = "server"


class CheckInOrchestrator:
    """
    Main interface for running check-ins.

    This orchestrator:
    1. Manages independent sessions
    2. Gates answers on prompt readiness
    3. Runs the prompt reveal according to REVEAL_MODE
    4. Converts rejected answers into re-prompts
    5. Reports persistence failures without losing answers
    """

    def __init__(
        self,
        session_store: Optional[SessionStore] = None,
        flow_engine: Optional[FlowEngine] = None,
        reveal_mode: Optional[str] = None,
        revealer: Optional[PromptRevealer] = None
    ):
        """
        Initialize orchestrator.

        Args:
            session_store: Session registry (a new one if not provided)
            flow_engine: Engine to drive sessions (built from settings if not provided)
            reveal_mode: none, client or server (settings.REVEAL_MODE if not provided)
            revealer: Reveal runner for server mode
        """
        # SessionStore defines __len__, so an empty store is falsy
        self.session_store = session_store if session_store is not None else SessionStore()
        if flow_engine is None:
            flow_engine = create_flow_engine(
                repository=create_checkin_repository(),
                sleep_source=create_sleep_data_source()
            )
        self.flow_engine = flow_engine
        self.reveal_mode = reveal_mode or settings.REVEAL_MODE
        if revealer is None:
            revealer = PromptRevealer(
                word_delay=settings.REVEAL_WORD_DELAY,
                settle_delay=settings.REVEAL_SETTLE_DELAY
            )
        self.revealer = revealer
        self._reveal_tasks: Dict[str, asyncio.Task] = {}
        # Sessions with an answer in flight; at most one per session
        self._answering: Set[str] = set()

        logger.info(f"CheckInOrchestrator initialized (reveal mode: {self.reveal_mode})")

    async def start_conversation(self, session_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Start a check-in, or restart an existing session from the greeting.

        Args:
            session_id: Optional session identifier

        Returns:
            Response dict for the greeting step
        """
        if session_id:
            self._cancel_reveal(session_id)
            session = self.session_store.get_or_create(session_id)
        else:
            session = self.session_store.create_session()

        logger.info(f"Starting check-in for session {session.session_id}")

        result = await self.flow_engine.start_session(session)
        self._schedule_reveal(session, result)
        return self._build_response(session, result)

    async def handle_answer(self, session_id: str, answer: Any) -> Dict[str, Any]:
        """
        Submit an answer for the current step.

        Args:
            session_id: Session identifier
            answer: Answer model for the current step

        Returns:
            Response dict for the next step, or an error response that
            re-prompts the current step

        Raises:
            SessionError: Unknown session
            FlowIntegrityError: The session's flow is broken
        """
        session = self.session_store.get(session_id)

        try:
            if session_id in self._answering:
                raise InputNotReadyError(
                    "An answer for this step is already being processed",
                    field=step_key(session.current_step)
                )
            if not session.prompt_settled:
                raise InputNotReadyError(
                    "The current prompt is still being shown",
                    field=step_key(session.current_step)
                )

            self._answering.add(session_id)
            try:
                result = await self.flow_engine.submit_answer(session, answer)
            finally:
                self._answering.discard(session_id)

        except AnswerValidationError as e:
            logger.info(f"Answer for session {session_id} not accepted: {e.message}")
            return self._create_error_response(session, e)

        except PersistenceFailureError as e:
            logger.error(f"Check-in {session_id} reached the end but was not saved")
            self._schedule_reveal(session, e.result)
            response = self._build_response(session, e.result)
            response["error"] = self._error_payload(e, "persistence_failure")
            return response

        self._schedule_reveal(session, result)
        return self._build_response(session, result)

    def prompt_settled(self, session_id: str) -> Dict[str, Any]:
        """Reveal completion signal from the client"""
        session = self.session_store.get(session_id)
        self.flow_engine.mark_prompt_settled(session)
        return {"session_id": session_id, "ready": True}

    async def retry_persist(self, session_id: str) -> Dict[str, Any]:
        """
        Retry saving a finished check-in.

        Raises:
            SessionError: Unknown session or check-in not finished
        """
        session = self.session_store.get(session_id)

        try:
            await self.flow_engine.retry_persist(session)
        except PersistenceFailureError as e:
            return {
                "session_id": session_id,
                "persisted": False,
                "error": self._error_payload(e, "persistence_failure")
            }

        return {"session_id": session_id, "persisted": True}

    def abandon_session(self, session_id: str) -> bool:
        """Cancel any reveal in flight and drop the session"""
        self._cancel_reveal(session_id)
        discarded = self.session_store.discard(session_id)
        if discarded:
            logger.info(f"Session {session_id} abandoned")
        return discarded

    def get_session_info(self, session_id: str) -> Dict[str, Any]:
        """
        Get information about a session.

        Raises:
            SessionError: Unknown session
        """
        session = self.session_store.get(session_id)

        return {
            "session_id": session.session_id,
            "current_step": step_key(session.current_step),
            "answers": dict(session.answers),
            "turn_count": len(session.transcript),
            "symptom_loop": {
                "symptoms": [s.value for s in session.symptom_loop.symptoms],
                "index": session.symptom_loop.index
            },
            "ready": session.prompt_settled,
            "is_complete": session.is_complete,
            "persisted": session.persisted,
            "halted": session.halted,
            "started_at": session.started_at.isoformat()
        }

    def get_transcript(self, session_id: str) -> Dict[str, Any]:
        """
        Transcript of a session, as turns and as a rendered log.

        Raises:
            SessionError: Unknown session
        """
        session = self.session_store.get(session_id)
        return {
            "session_id": session.session_id,
            "turns": [turn.model_dump(mode="json") for turn in session.transcript.turns],
            "rendered": session.transcript.render(
                engine_label=settings.ASSISTANT_NAME,
                user_label=settings.USER_NAME
            )
        }

    # ===========================================
    # PROMPT REVEAL
    # ===========================================

    def _schedule_reveal(self, session: SessionState, result: TransitionResult) -> None:
        if self.reveal_mode == REVEAL_NONE:
            self.flow_engine.mark_prompt_settled(session)
        elif self.reveal_mode == REVEAL_SERVER:
            self._cancel_reveal(session.session_id)
            self._reveal_tasks[session.session_id] = asyncio.create_task(
                self._reveal(session, result)
            )
        # client mode: wait for prompt_settled()

    async def _reveal(self, session: SessionState, result: TransitionResult) -> None:
        try:
            await self.revealer.reveal(session.transcript, result.turn_id, result.prompt)
            self.flow_engine.mark_prompt_settled(session)
        except CheckInBaseException as e:
            logger.warning(f"Reveal for session {session.session_id} stopped: {e}")
        finally:
            task = self._reveal_tasks.get(session.session_id)
            if task is asyncio.current_task():
                del self._reveal_tasks[session.session_id]

    def _cancel_reveal(self, session_id: str) -> None:
        task = self._reveal_tasks.pop(session_id, None)
        if task and not task.done():
            task.cancel()

    def has_pending_reveal(self, session_id: str) -> bool:
        task = self._reveal_tasks.get(session_id)
        return task is not None and not task.done()

    # ===========================================
    # RESPONSES
    # ===========================================

    def _build_response(self, session: SessionState, result: TransitionResult) -> Dict[str, Any]:
        return {
            "session_id": session.session_id,
            "step": result.step_id,
            "prompt": result.prompt,
            "response_kind": result.response_kind.model_dump(),
            "turn_id": result.turn_id,
            "is_complete": result.is_complete,
            "ready": session.prompt_settled,
            "persisted": session.persisted
        }

    def _create_error_response(self, session: SessionState, error: AnswerValidationError) -> Dict[str, Any]:
        """
        Re-prompt the current step with the error attached.

        Args:
            session: Session whose step is re-prompted
            error: The rejection

        Returns:
            Response dict for the unchanged current step
        """
        response = self._build_response(session, self.flow_engine.current_result(session))
        response["error"] = self._error_payload(error, getattr(error, "error_type", "invalid_answer"))
        return response

    @staticmethod
    def _error_payload(error: CheckInBaseException, error_type: str) -> Dict[str, Any]:
        return {
            "type": error_type,
            "message": error.message,
            "details": error.details
        }

    # ===========================================
    # MONITORING
    # ===========================================

    async def health_check(self) -> Dict[str, Any]:
        """
        Check health of the orchestrator and its components.

        Returns:
            Dict with health status
        """
        health_status = {
            "orchestrator": "healthy",
            "flow_engine": "unknown",
            "services": {},
            "overall": "healthy"
        }

        try:
            issues = self.flow_engine.validate_graph()
            if issues:
                health_status["flow_engine"] = f"issues: {len(issues)}"
                health_status["overall"] = "warning"
            else:
                health_status["flow_engine"] = "healthy"

            try:
                store_status = await self.flow_engine.repository.health_check()
                health_status["services"]["persistence"] = store_status.get("status", "unknown")
                if not store_status.get("healthy"):
                    health_status["overall"] = "warning"
            except Exception as e:
                health_status["services"]["persistence"] = f"error: {str(e)[:50]}"
                health_status["overall"] = "warning"

            health_status["summary"] = {
                "total_steps": self.flow_engine.get_flow_summary()["total_steps"],
                "session_count": len(self.session_store),
                "pending_reveals": sum(1 for t in self._reveal_tasks.values() if not t.done())
            }

        except Exception as e:
            health_status["orchestrator"] = f"error: {str(e)}"
            health_status["overall"] = "unhealthy"

        return health_status

    def get_flow_debug_info(self) -> Dict[str, Any]:
        """
        Get debug information about the flow engine.

        Returns:
            Dict with debug information
        """
        return {
            "flow_summary": self.flow_engine.get_flow_summary(),
            "validation_issues": self.flow_engine.validate_graph(),
            "session_count": len(self.session_store),
            "active_sessions": [
                {
                    "session_id": session_id,
                    "current_step": step_key(session.current_step),
                    "turn_count": len(session.transcript)
                }
                for session_id, session in self.session_store.sessions.items()
            ]
        }

    async def shutdown(self) -> None:
        """Cancel pending reveals and close the persistence backend"""
        for session_id in list(self._reveal_tasks):
            self._cancel_reveal(session_id)
        await self.flow_engine.repository.shutdown()


# Global orchestrator instance for easy access
_orchestrator: Optional[CheckInOrchestrator] = None


def get_orchestrator() -> CheckInOrchestrator:
    """
    Get the global orchestrator instance, creating it on first use.
    """
    global _orchestrator

    if _orchestrator is None:
        logger.info("Creating new orchestrator instance")
        _orchestrator = CheckInOrchestrator()

    return _orchestrator


def init_orchestrator(session_store: Optional[SessionStore] = None, **kwargs) -> CheckInOrchestrator:
    """
    Replace the global orchestrator.

    Args:
        session_store: Session store instance
        **kwargs: Passed to CheckInOrchestrator

    Returns:
        CheckInOrchestrator instance
    """
    global _orchestrator
    _orchestrator = CheckInOrchestrator(session_store=session_store, **kwargs)
    return _orchestrator
