# checkin/core/coercion.py
"""
Response coercion - turns a captured answer into (stored value, display text).

Three stages per response kind:
1. validate_answer: kind must match, options must exist, numbers must be in range
2. is_complete: the per-kind completeness predicate
3. project: the (stored value, display text) pair

coerce() runs all three and is what the flow engine calls.
"""

from typing import Any, List, Optional, Tuple
import logging

from checkin.models.response_kinds import (
    Acknowledgement,
    BooleanChoice,
    ChoiceOption,
    FreeText,
    MultiChoice,
    NoResponse,
    NumericAnswer,
    NumericRange,
    SingleChoice,
)
from checkin.core.exceptions import (
    InvalidAnswerError,
    ProjectionError,
    incomplete_answer,
    invalid_answer,
)

logger = logging.getLogger(__name__)

# Stored value of an acknowledgement
ACKNOWLEDGED = "ready"


def _kind_of(answer: Any) -> Optional[str]:
    return getattr(answer, "kind", None)


def _option(options: List[ChoiceOption], value: str) -> Optional[ChoiceOption]:
    for option in options:
        if option.value == value:
            return option
    return None


def snap_to_step(value: float, kind: NumericRange) -> float:
    """Nearest multiple of the step counted from the minimum, clamped to the bounds"""
    steps = round((value - kind.minimum) / kind.step)
    snapped = kind.minimum + steps * kind.step
    snapped = min(max(snapped, kind.minimum), kind.maximum)
    return round(snapped, 6)


def validate_answer(response_kind, answer, field: Optional[str] = None):
    """
    Reject answers that do not fit the step's response kind.

    Returns the answer unchanged, except numeric answers which come back
    snapped to the step grid with the default filled in.

    Raises:
        InvalidAnswerError: Wrong kind, unknown option or out-of-range value
    """
    if isinstance(response_kind, NoResponse):
        if answer is not None:
            raise invalid_answer("This step takes no answer", field, _kind_of(answer))
        return answer

    if _kind_of(answer) != response_kind.kind:
        raise InvalidAnswerError(
            f"Expected a {response_kind.kind} answer, got {_kind_of(answer)}",
            field=field,
            value=_kind_of(answer)
        )

    if isinstance(response_kind, NumericRange):
        value = response_kind.default if answer.value is None else answer.value
        if not response_kind.minimum <= value <= response_kind.maximum:
            raise InvalidAnswerError(
                f"Value must be between {response_kind.minimum:g} and {response_kind.maximum:g}",
                field=field,
                value=value
            )
        return NumericAnswer(value=snap_to_step(value, response_kind))

    if isinstance(response_kind, SingleChoice):
        if answer.value is not None and _option(response_kind.options, answer.value) is None:
            raise invalid_answer("Unknown option", field, answer.value)
        return answer

    if isinstance(response_kind, MultiChoice):
        unknown = [v for v in answer.values if _option(response_kind.options, v) is None]
        if unknown:
            raise invalid_answer("Unknown options", field, unknown)
        if not response_kind.allows_multiple and len(set(answer.values)) > 1:
            raise invalid_answer("Only one option may be selected", field, answer.values)
        return answer

    return answer


def is_complete(response_kind, answer) -> bool:
    """Completeness predicate of the response kind"""
    if isinstance(response_kind, (NoResponse, Acknowledgement, NumericRange)):
        return True
    if isinstance(response_kind, SingleChoice):
        return answer.value is not None
    if isinstance(response_kind, MultiChoice):
        return len(answer.values) > 0
    if isinstance(response_kind, BooleanChoice):
        return answer.value is not None
    if isinstance(response_kind, FreeText):
        return bool(answer.text.strip())
    return False


def project(response_kind, answer) -> Tuple[Any, str]:
    """
    Map a complete answer to (stored value, display text).

    Raises:
        ProjectionError: If the answer is incomplete
    """
    if not is_complete(response_kind, answer):
        raise ProjectionError("Cannot project an incomplete answer", response_kind=response_kind.kind)

    if isinstance(response_kind, NoResponse):
        return None, ""

    if isinstance(response_kind, Acknowledgement):
        return ACKNOWLEDGED, response_kind.label

    if isinstance(response_kind, NumericRange):
        value = response_kind.default if answer.value is None else answer.value
        if response_kind.unit:
            return value, f"{value:.1f} {response_kind.unit}"
        return value, f"{value:.1f} / {response_kind.maximum:g}"

    if isinstance(response_kind, SingleChoice):
        return answer.value, _option(response_kind.options, answer.value).label

    if isinstance(response_kind, MultiChoice):
        # catalogue order, duplicates collapsed
        chosen = [o for o in response_kind.options if o.value in answer.values]
        display = ", ".join(o.label for o in chosen)
        if not response_kind.allows_multiple:
            return chosen[0].value, display
        return [o.value for o in chosen], display

    if isinstance(response_kind, BooleanChoice):
        return answer.value, response_kind.yes_label if answer.value else response_kind.no_label

    if isinstance(response_kind, FreeText):
        text = answer.text.strip()
        return text, text

    raise ProjectionError("Unsupported response kind", response_kind=getattr(response_kind, "kind", None))


def coerce(response_kind, answer, field: Optional[str] = None) -> Tuple[Any, str]:
    """
    Validate, gate on completeness and project an answer.

    Raises:
        InvalidAnswerError: Answer does not fit the response kind
        IncompleteAnswerError: Answer fails the completeness predicate
    """
    answer = validate_answer(response_kind, answer, field=field)

    if not is_complete(response_kind, answer):
        raise incomplete_answer(f"Incomplete {response_kind.kind} answer", field, _kind_of(answer))

    return project(response_kind, answer)
