# tests/core/test_coercion.py
"""
Tests for answer validation, completeness and projection per response kind.
"""

import pytest

from checkin.models.response_kinds import (
    Acknowledgement,
    AcknowledgementAnswer,
    BooleanAnswer,
    BooleanChoice,
    ChoiceAnswer,
    ChoiceOption,
    FreeText,
    MultiChoice,
    MultiChoiceAnswer,
    NoResponse,
    NumericAnswer,
    NumericRange,
    SingleChoice,
    TextAnswer,
)
from checkin.core import coercion
from checkin.core.exceptions import (
    IncompleteAnswerError,
    InvalidAnswerError,
    ProjectionError,
)

OPTIONS = [
    ChoiceOption(value="a", label="Alpha"),
    ChoiceOption(value="b", label="Beta"),
    ChoiceOption(value="c", label="Gamma"),
]

RATING = NumericRange(minimum=1, maximum=10, step=1)
HOURS = NumericRange(minimum=0, maximum=16, step=0.5, unit="hours")


@pytest.mark.unit
class TestCompleteness:

    def test_acknowledgement_and_numeric_are_always_complete(self):
        assert coercion.is_complete(Acknowledgement(), AcknowledgementAnswer())
        assert coercion.is_complete(RATING, NumericAnswer())

    def test_single_choice_needs_a_value(self):
        kind = SingleChoice(options=OPTIONS)
        assert not coercion.is_complete(kind, ChoiceAnswer())
        assert coercion.is_complete(kind, ChoiceAnswer(value="a"))

    def test_multi_choice_needs_a_selection(self):
        kind = MultiChoice(options=OPTIONS)
        assert not coercion.is_complete(kind, MultiChoiceAnswer(values=[]))
        assert coercion.is_complete(kind, MultiChoiceAnswer(values=["b"]))

    def test_boolean_undecided_is_incomplete(self):
        kind = BooleanChoice()
        assert not coercion.is_complete(kind, BooleanAnswer())
        assert coercion.is_complete(kind, BooleanAnswer(value=False))

    def test_free_text_is_trimmed(self):
        kind = FreeText()
        assert not coercion.is_complete(kind, TextAnswer(text="   \n"))
        assert coercion.is_complete(kind, TextAnswer(text=" x "))


@pytest.mark.unit
class TestProjection:

    def test_numeric_display(self):
        assert coercion.project(RATING, NumericAnswer(value=7)) == (7, "7.0 / 10")

    def test_numeric_with_unit_display(self):
        assert coercion.project(HOURS, NumericAnswer(value=6.5)) == (6.5, "6.5 hours")

    def test_numeric_default(self):
        assert coercion.project(RATING, NumericAnswer()) == (5.0, "5.0 / 10")

    def test_single_choice_stores_value_and_shows_label(self):
        assert coercion.project(SingleChoice(options=OPTIONS), ChoiceAnswer(value="b")) == ("b", "Beta")

    def test_multi_choice_keeps_catalogue_order_and_collapses_duplicates(self):
        stored, display = coercion.project(
            MultiChoice(options=OPTIONS),
            MultiChoiceAnswer(values=["c", "a", "c"])
        )
        assert stored == ["a", "c"]
        assert display == "Alpha, Gamma"

    def test_multi_choice_without_multiple_collapses_to_value(self):
        kind = MultiChoice(options=OPTIONS, allows_multiple=False)
        assert coercion.project(kind, MultiChoiceAnswer(values=["b"])) == ("b", "Beta")

    def test_boolean_labels(self):
        kind = BooleanChoice()
        assert coercion.project(kind, BooleanAnswer(value=True)) == (True, "Yes")
        assert coercion.project(kind, BooleanAnswer(value=False)) == (False, "No")

    def test_free_text_trimmed(self):
        assert coercion.project(FreeText(), TextAnswer(text="  long day  ")) == ("long day", "long day")

    def test_acknowledgement_marker(self):
        assert coercion.project(Acknowledgement(), AcknowledgementAnswer()) == ("ready", "Ready!")

    def test_projecting_incomplete_answer_is_a_programming_error(self):
        with pytest.raises(ProjectionError):
            coercion.project(FreeText(), TextAnswer(text=""))


@pytest.mark.unit
class TestValidation:

    def test_kind_mismatch(self):
        with pytest.raises(InvalidAnswerError) as exc_info:
            coercion.coerce(RATING, TextAnswer(text="8"), field="energy_level")
        assert exc_info.value.field == "energy_level"

    def test_unknown_single_option(self):
        with pytest.raises(InvalidAnswerError):
            coercion.coerce(SingleChoice(options=OPTIONS), ChoiceAnswer(value="z"))

    def test_unknown_multi_option(self):
        with pytest.raises(InvalidAnswerError):
            coercion.coerce(MultiChoice(options=OPTIONS), MultiChoiceAnswer(values=["a", "z"]))

    def test_several_values_when_only_one_allowed(self):
        with pytest.raises(InvalidAnswerError):
            coercion.coerce(MultiChoice(options=OPTIONS, allows_multiple=False), MultiChoiceAnswer(values=["a", "b"]))

    @pytest.mark.parametrize("value", [0, 10.5, -3])
    def test_out_of_range(self, value):
        with pytest.raises(InvalidAnswerError):
            coercion.coerce(RATING, NumericAnswer(value=value))

    def test_snaps_to_step(self):
        assert coercion.coerce(RATING, NumericAnswer(value=7.4)) == (7.0, "7.0 / 10")
        assert coercion.coerce(HOURS, NumericAnswer(value=7.3)) == (7.5, "7.5 hours")

    def test_no_response_takes_no_answer(self):
        assert coercion.coerce(NoResponse(), None) == (None, "")
        with pytest.raises(InvalidAnswerError):
            coercion.coerce(NoResponse(), AcknowledgementAnswer())

    def test_incomplete_answer(self):
        with pytest.raises(IncompleteAnswerError) as exc_info:
            coercion.coerce(BooleanChoice(), BooleanAnswer(), field="sleep_hours_check")
        assert exc_info.value.error_type == "incomplete_answer"

    def test_invalid_is_checked_before_completeness(self):
        with pytest.raises(InvalidAnswerError):
            coercion.coerce(FreeText(), ChoiceAnswer())
