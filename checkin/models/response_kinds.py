# checkin/models/response_kinds.py
"""
Response shapes a step may demand, and the typed answer for each shape.

ResponseKind models describe the input control (bounds, options); answer
models carry what the user captured. Both are discriminated by `kind` so
they can travel over the API as plain JSON.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class ChoiceOption(BaseModel):
    """One selectable option; `value` is stored, `label` is displayed"""
    value: str
    label: str
    emoji: Optional[str] = None

    model_config = {"frozen": True}


# ============================================================================
# RESPONSE KINDS
# ============================================================================

class NoResponse(BaseModel):
    kind: Literal["none"] = "none"

    model_config = {"frozen": True}


class Acknowledgement(BaseModel):
    kind: Literal["acknowledgement"] = "acknowledgement"
    label: str = "Ready!"

    model_config = {"frozen": True}


class NumericRange(BaseModel):
    kind: Literal["numeric"] = "numeric"
    minimum: float
    maximum: float
    step: float = 1.0
    default: float = 5.0
    unit: Optional[str] = None

    model_config = {"frozen": True}


class SingleChoice(BaseModel):
    kind: Literal["single_choice"] = "single_choice"
    options: List[ChoiceOption]

    model_config = {"frozen": True}


class MultiChoice(BaseModel):
    kind: Literal["multi_choice"] = "multi_choice"
    options: List[ChoiceOption]
    allows_multiple: bool = True

    model_config = {"frozen": True}


class BooleanChoice(BaseModel):
    kind: Literal["boolean"] = "boolean"
    yes_label: str = "Yes"
    no_label: str = "No"

    model_config = {"frozen": True}


class FreeText(BaseModel):
    kind: Literal["free_text"] = "free_text"
    placeholder: str = "Type your response..."

    model_config = {"frozen": True}


ResponseKind = Annotated[
    Union[NoResponse, Acknowledgement, NumericRange, SingleChoice, MultiChoice, BooleanChoice, FreeText],
    Field(discriminator="kind")
]


# ============================================================================
# ANSWERS
# ============================================================================

class AcknowledgementAnswer(BaseModel):
    kind: Literal["acknowledgement"] = "acknowledgement"


class NumericAnswer(BaseModel):
    kind: Literal["numeric"] = "numeric"
    value: Optional[float] = None  # None means the slider default


class ChoiceAnswer(BaseModel):
    kind: Literal["single_choice"] = "single_choice"
    value: Optional[str] = None


class MultiChoiceAnswer(BaseModel):
    kind: Literal["multi_choice"] = "multi_choice"
    values: List[str] = Field(default_factory=list)


class BooleanAnswer(BaseModel):
    kind: Literal["boolean"] = "boolean"
    value: Optional[bool] = None  # None is "undecided"


class TextAnswer(BaseModel):
    kind: Literal["free_text"] = "free_text"
    text: str = ""


Answer = Annotated[
    Union[AcknowledgementAnswer, NumericAnswer, ChoiceAnswer, MultiChoiceAnswer, BooleanAnswer, TextAnswer],
    Field(discriminator="kind")
]
