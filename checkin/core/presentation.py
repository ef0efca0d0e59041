# checkin/core/presentation.py
"""
Presentation collaborator of the flow engine.

The engine hands every prompt, input control and user turn to a Presenter.
Calls are informational: return values are ignored.
"""

from abc import ABC, abstractmethod
import logging

logger = logging.getLogger(__name__)


class Presenter(ABC):
    """Receives what the engine wants shown"""

    @abstractmethod
    def render_prompt(self, text: str) -> None:
        pass

    @abstractmethod
    def render_input_control(self, response_kind) -> None:
        pass

    @abstractmethod
    def render_user_turn(self, text: str) -> None:
        pass


class LoggingPresenter(Presenter):
    """Default presenter for headless hosts: logs at DEBUG"""

    def render_prompt(self, text: str) -> None:
        logger.debug(f"Prompt: {text}")

    def render_input_control(self, response_kind) -> None:
        logger.debug(f"Input control: {response_kind.kind}")

    def render_user_turn(self, text: str) -> None:
        logger.debug(f"User turn: {text}")
