# checkin/models/transcript.py

from typing import List, Optional
import logging

from pydantic import BaseModel, Field

from checkin.models.flow_models import Originator
from checkin.core.exceptions import InvalidTurnUpdateError

logger = logging.getLogger(__name__)


class Turn(BaseModel):
    turn_id: int
    originator: Originator
    text: str


class Transcript(BaseModel):
    """
    Append-only log of engine and user turns.

    The only mutation allowed after append is rewriting the text of the
    latest engine turn while its prompt is being revealed; the turn keeps
    its id while the text grows.
    """
    turns: List[Turn] = Field(default_factory=list)

    def append(self, originator: Originator, text: str) -> int:
        turn = Turn(turn_id=len(self.turns), originator=originator, text=text)
        self.turns.append(turn)
        return turn.turn_id

    def update_text(self, turn_id: int, new_text: str) -> None:
        latest = self.latest
        if latest is None or latest.turn_id != turn_id:
            raise InvalidTurnUpdateError(
                "Only the most recent turn can be updated",
                turn_id=turn_id
            )
        if latest.originator != Originator.ENGINE:
            raise InvalidTurnUpdateError(
                "User turns cannot be updated",
                turn_id=turn_id
            )
        latest.text = new_text

    def get(self, turn_id: int) -> Turn:
        return self.turns[turn_id]

    @property
    def latest(self) -> Optional[Turn]:
        return self.turns[-1] if self.turns else None

    def __len__(self) -> int:
        return len(self.turns)

    def render(self, engine_label: str = "Coach", user_label: str = "You") -> str:
        """Human-readable session log, one line per turn"""
        lines = []
        for turn in self.turns:
            speaker = engine_label if turn.originator == Originator.ENGINE else user_label
            lines.append(f"{speaker}: {turn.text}")
        return "\n".join(lines)
