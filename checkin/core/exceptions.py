# checkin/core/exceptions.py
"""
Core exceptions - standardized error handling for the check-in service.

This module defines all custom exceptions used by the dialogue engine,
the orchestration layer and the service layer, providing consistent
error handling and debugging information.
"""

from typing import Optional, Dict, Any


class CheckInBaseException(Exception):
    """Base exception for all check-in errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class FlowIntegrityError(CheckInBaseException):
    """The step graph references a step that is not defined. Fatal for the session."""

    def __init__(
        self,
        message: str,
        current_state: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize flow integrity error.

        Args:
            message: Error description
            current_state: Step where the broken transition started
            details: Additional error context
        """
        super().__init__(message, details)
        self.current_state = current_state

        if current_state:
            self.details['current_state'] = current_state

    def __str__(self) -> str:
        """String representation including state context"""
        base_msg = super().__str__()
        if self.current_state:
            return f"{base_msg} [State: {self.current_state}]"
        return base_msg


class AnswerValidationError(CheckInBaseException):
    """Errors in answer validation. Session state is left unchanged."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize validation error.

        Args:
            message: Error description
            field: Step or data key that failed validation
            value: Rejected value
            details: Additional validation context
        """
        super().__init__(message, details)
        self.field = field
        self.value = value

        if field:
            self.details['field'] = field
        if value is not None:
            self.details['value'] = str(value)


class IncompleteAnswerError(AnswerValidationError):
    """The answer does not satisfy the completeness predicate of its step"""

    error_type = "incomplete_answer"


class InvalidAnswerError(AnswerValidationError):
    """The answer has the wrong shape, an unknown option or an out-of-range value"""

    error_type = "invalid_answer"


class InputNotReadyError(AnswerValidationError):
    """An answer arrived before the current prompt finished revealing"""

    error_type = "input_not_ready"


class ProjectionError(CheckInBaseException):
    """An incomplete answer was projected. Indicates a programming error."""

    def __init__(
        self,
        message: str,
        response_kind: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.response_kind = response_kind

        if response_kind:
            self.details['response_kind'] = response_kind


class InvalidTurnUpdateError(CheckInBaseException):
    """Attempt to rewrite a transcript turn that is not the latest engine turn"""

    def __init__(
        self,
        message: str,
        turn_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize turn update error.

        Args:
            message: Error description
            turn_id: Turn that was targeted
            details: Additional transcript context
        """
        super().__init__(message, details)
        self.turn_id = turn_id

        if turn_id is not None:
            self.details['turn_id'] = turn_id


class PersistenceFailureError(CheckInBaseException):
    """The terminal save failed. The answer record stays in memory for a retry."""

    def __init__(
        self,
        message: str,
        session_id: Optional[str] = None,
        result: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize persistence failure.

        Args:
            message: Error description
            session_id: Session whose record could not be saved
            result: Transition result of the step that reached the terminal state
            details: Additional persistence context
        """
        super().__init__(message, details)
        self.session_id = session_id
        self.result = result

        if session_id:
            self.details['session_id'] = session_id


class SessionError(CheckInBaseException):
    """Errors in session management and state handling"""

    def __init__(
        self,
        message: str,
        session_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.session_id = session_id

        if session_id:
            self.details['session_id'] = session_id


class SessionNotCompleteError(SessionError):
    """An operation needs a finished check-in but the session is still in progress"""


class ServiceError(CheckInBaseException):
    """Errors in external service interactions"""

    def __init__(
        self,
        message: str,
        service_name: Optional[str] = None,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize service error.

        Args:
            message: Error description
            service_name: Name of the failing service
            operation: Operation that failed
            details: Additional service context
        """
        super().__init__(message, details)
        self.service_name = service_name
        self.operation = operation

        if service_name:
            self.details['service'] = service_name
        if operation:
            self.details['operation'] = operation


class RedisServiceError(ServiceError):
    """Specific errors for Redis service interactions"""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, service_name="Redis", operation=operation, details=details)
        self.key = key

        if key:
            self.details['key'] = key


class ConfigurationError(CheckInBaseException):
    """Errors in system configuration and initialization"""

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.component = component

        if component:
            self.details['component'] = component


# Convenience functions for creating common errors

def flow_integrity_error(message: str, current_state: str) -> FlowIntegrityError:
    """Create a flow integrity error with current state context."""
    return FlowIntegrityError(message, current_state=current_state)


def incomplete_answer(message: str, field: str, value: Any = None) -> IncompleteAnswerError:
    """Create an incomplete answer error with field context."""
    return IncompleteAnswerError(message, field=field, value=value)


def invalid_answer(message: str, field: str, value: Any = None) -> InvalidAnswerError:
    """Create an invalid answer error with field context."""
    return InvalidAnswerError(message, field=field, value=value)


def session_error(message: str, session_id: str) -> SessionError:
    """Create a session error with session context."""
    return SessionError(message, session_id=session_id)


def redis_error(message: str, key: str = None, operation: str = None) -> RedisServiceError:
    """Create a Redis service error with key context."""
    return RedisServiceError(message, key=key, operation=operation)


def config_error(message: str, component: str) -> ConfigurationError:
    """Create a configuration error with component context."""
    return ConfigurationError(message, component=component)
