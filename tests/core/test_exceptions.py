# tests/core/test_exceptions.py
"""Tests for the exception hierarchy and its factory helpers"""
import pytest

from checkin.core.exceptions import (
    AnswerValidationError,
    CheckInBaseException,
    ConfigurationError,
    FlowIntegrityError,
    IncompleteAnswerError,
    InvalidAnswerError,
    PersistenceFailureError,
    RedisServiceError,
    ServiceError,
    SessionError,
    SessionNotCompleteError,
    config_error,
    flow_integrity_error,
    incomplete_answer,
    invalid_answer,
    redis_error,
    session_error,
)


@pytest.mark.unit
class TestExceptionFormatting:

    def test_plain_message(self):
        assert str(CheckInBaseException("boom")) == "boom"

    def test_details_in_str(self):
        error = CheckInBaseException("boom", details={"step": "greeting"})
        assert str(error) == "boom | Details: {'step': 'greeting'}"

    def test_flow_integrity_state_suffix(self):
        error = FlowIntegrityError("missing", current_state="energy_level")

        assert error.details == {"current_state": "energy_level"}
        assert str(error).endswith("[State: energy_level]")

    def test_validation_value_is_stringified(self):
        error = InvalidAnswerError("Value out of range", field="energyLevel", value=12)
        assert error.details == {"field": "energyLevel", "value": "12"}

    def test_persistence_failure_keeps_result(self):
        result = object()
        error = PersistenceFailureError("not saved", session_id="abc", result=result)

        assert error.result is result
        assert error.details["session_id"] == "abc"


@pytest.mark.unit
class TestHierarchy:

    @pytest.mark.parametrize("error_class,error_type", [
        (IncompleteAnswerError, "incomplete_answer"),
        (InvalidAnswerError, "invalid_answer"),
    ])
    def test_answer_errors_carry_type(self, error_class, error_type):
        assert issubclass(error_class, AnswerValidationError)
        assert error_class.error_type == error_type

    def test_not_complete_is_session_error(self):
        assert issubclass(SessionNotCompleteError, SessionError)

    def test_redis_error_is_service_error(self):
        error = RedisServiceError("down", key="checkin:abc", operation="set")

        assert isinstance(error, ServiceError)
        assert error.details == {"service": "Redis", "operation": "set", "key": "checkin:abc"}


@pytest.mark.unit
class TestFactories:

    def test_factories_build_the_right_types(self):
        assert isinstance(flow_integrity_error("x", "final"), FlowIntegrityError)
        assert isinstance(incomplete_answer("x", "stressCause"), IncompleteAnswerError)
        assert isinstance(invalid_answer("x", "moodPrimary", "ecstatic"), InvalidAnswerError)
        assert isinstance(session_error("x", "abc"), SessionError)
        assert isinstance(redis_error("x", key="k"), RedisServiceError)
        assert isinstance(config_error("x", "checkin_store"), ConfigurationError)

    def test_factory_context(self):
        assert session_error("Unknown session", "abc").session_id == "abc"
        assert config_error("bad", "checkin_store").component == "checkin_store"
