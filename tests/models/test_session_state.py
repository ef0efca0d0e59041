# tests/models/test_session_state.py
"""Tests for session state, the session store and step identifiers"""

import pytest

from checkin.models.flow_models import (
    CheckInStep,
    SymptomSeverityStep,
    parse_step_id,
    step_key,
    template_key,
)
from checkin.models.response_kinds import ChoiceOption
from checkin.models.session_state import SessionState, SessionStore, SymptomLoop
from checkin.core.exceptions import SessionError


@pytest.mark.unit
class TestStepIds:

    def test_severity_steps_compare_by_symptom(self):
        assert SymptomSeverityStep("headache") == SymptomSeverityStep("headache")
        assert SymptomSeverityStep("headache") != SymptomSeverityStep("fatigue")
        assert SymptomSeverityStep("headache") != CheckInStep.SYMPTOM_SEVERITY

    def test_template_key(self):
        assert template_key(SymptomSeverityStep("fatigue")) == CheckInStep.SYMPTOM_SEVERITY
        assert template_key(CheckInStep.STRESS_LEVEL) == CheckInStep.STRESS_LEVEL

    @pytest.mark.parametrize("step", [
        CheckInStep.GREETING,
        CheckInStep.SLEEP_HOURS_MANUAL,
        SymptomSeverityStep("joint_pain"),
    ])
    def test_wire_form_parses_back(self, step):
        assert parse_step_id(step_key(step)) == step

    @pytest.mark.parametrize("raw", ["unknown", "symptom_severity:", "mood_primary:happy"])
    def test_parse_rejects_unknown_steps(self, raw):
        with pytest.raises(ValueError):
            parse_step_id(raw)


@pytest.mark.unit
class TestSessionState:

    def test_new_session_is_blank(self):
        session = SessionState()

        assert session.session_id
        assert session.current_step == CheckInStep.GREETING
        assert session.answers == {}
        assert len(session.transcript) == 0
        assert not session.symptom_loop.is_active
        assert not session.is_complete

    def test_reset(self):
        session = SessionState()
        session.current_step = CheckInStep.FINAL
        session.answers["stressLevel"] = 4
        session.symptom_loop = SymptomLoop(symptoms=[ChoiceOption(value="headache", label="Headache")])
        session.persisted = False
        session.halted = True

        session.reset()

        assert session.current_step == CheckInStep.GREETING
        assert session.answers == {}
        assert not session.symptom_loop.is_active
        assert session.persisted is None
        assert not session.halted

    def test_json_round_trip_keeps_severity_step(self):
        session = SessionState(session_id="abc")
        session.current_step = SymptomSeverityStep("headache")
        session.answers["physicalSymptoms"] = ["headache"]

        data = session.model_dump(mode="json")
        assert data["current_step"] == "symptom_severity:headache"

        restored = SessionState.model_validate(data)
        assert restored.current_step == SymptomSeverityStep("headache")
        assert restored.answers == {"physicalSymptoms": ["headache"]}

    def test_unknown_step_is_rejected(self):
        with pytest.raises(ValueError):
            SessionState(current_step="nap_time")

    def test_symptom_loop_current(self):
        loop = SymptomLoop(
            symptoms=[ChoiceOption(value="headache", label="Headache"), ChoiceOption(value="fatigue", label="Fatigue")],
            index=1
        )
        assert loop.current.value == "fatigue"

        loop.clear()
        assert loop.current is None


@pytest.mark.unit
class TestSessionStore:

    def test_sessions_are_independent(self):
        store = SessionStore()
        first = store.create_session()
        second = store.create_session()

        first.answers["energyLevel"] = 9

        assert first.session_id != second.session_id
        assert second.answers == {}
        assert len(store) == 2

    def test_get_unknown_session(self):
        with pytest.raises(SessionError) as exc_info:
            SessionStore().get("nope")
        assert exc_info.value.session_id == "nope"

    def test_get_or_create_and_discard(self):
        store = SessionStore()
        session = store.get_or_create("abc")

        assert store.get_or_create("abc") is session
        assert store.discard("abc") is True
        assert store.discard("abc") is False
