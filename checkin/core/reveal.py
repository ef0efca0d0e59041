# checkin/core/reveal.py
"""
Incremental "typing" reveal of engine prompts.

The revealer rewrites the latest engine turn with growing word prefixes,
suspending between words, then waits a short settle pause. It runs as a
cancelable asyncio task; a cancelled reveal leaves the partial text in
the transcript, which is a valid final state for that turn.
"""

from typing import Callable, Optional
import asyncio
import logging

from checkin.models.transcript import Transcript

logger = logging.getLogger(__name__)


class PromptRevealer:
    """Word-by-word reveal with a settle pause"""

    def __init__(self, word_delay: float = 0.05, settle_delay: float = 1.5):
        self.word_delay = word_delay
        self.settle_delay = settle_delay

    async def reveal(
        self,
        transcript: Transcript,
        turn_id: int,
        text: str,
        on_update: Optional[Callable[[str], None]] = None
    ) -> str:
        """
        Reveal `text` into the turn `turn_id`.

        Args:
            transcript: Transcript holding the turn
            turn_id: Latest engine turn
            text: Full prompt text
            on_update: Called with each partial text

        Returns:
            The fully revealed text

        Raises:
            InvalidTurnUpdateError: If the turn is no longer the latest engine turn
        """
        words = text.split(" ")

        try:
            for count in range(1, len(words) + 1):
                partial = " ".join(words[:count])
                transcript.update_text(turn_id, partial)
                if on_update:
                    on_update(partial)
                if count < len(words):
                    await asyncio.sleep(self.word_delay)

            await asyncio.sleep(self.settle_delay)

        except asyncio.CancelledError:
            logger.debug(f"Reveal of turn {turn_id} cancelled")
            raise

        return text
