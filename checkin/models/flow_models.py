# checkin/models/flow_models.py

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class CheckInStep(str, Enum):
    GREETING = "greeting"
    ENERGY_LEVEL = "energy_level"
    MOOD_PRIMARY = "mood_primary"
    MOOD_SECONDARY_HAPPY = "mood_secondary_happy"
    MOOD_SECONDARY_NEUTRAL = "mood_secondary_neutral"
    MOOD_SECONDARY_SAD = "mood_secondary_sad"
    MOOD_SECONDARY_ANGRY = "mood_secondary_angry"
    MOOD_SECONDARY_ANXIOUS = "mood_secondary_anxious"
    MENTAL_CLARITY = "mental_clarity"
    PHYSICAL_SYMPTOMS = "physical_symptoms"
    SYMPTOM_SEVERITY = "symptom_severity"  # template key, never a current step
    SLEEP_HOURS_CHECK = "sleep_hours_check"
    SLEEP_HOURS_MANUAL = "sleep_hours_manual"
    SLEEP_QUALITY_RATING = "sleep_quality_rating"
    SLEEP_QUALITY_REASON = "sleep_quality_reason"
    STRESS_LEVEL = "stress_level"
    STRESS_CAUSE = "stress_cause"
    STRESS_COPING = "stress_coping"
    COPING_EFFECTIVENESS = "coping_effectiveness"
    FINAL = "final"


@dataclass(frozen=True)
class SymptomSeverityStep:
    """Severity question for one selected symptom, sharing the severity template"""
    symptom_id: str

    @property
    def value(self) -> str:
        return f"{CheckInStep.SYMPTOM_SEVERITY.value}:{self.symptom_id}"


StepId = Union[CheckInStep, SymptomSeverityStep]

INITIAL_STEP = CheckInStep.GREETING
TERMINAL_STEP = CheckInStep.FINAL


def template_key(step_id: StepId) -> CheckInStep:
    """Registry key of a step: severity instances all resolve to the template"""
    if isinstance(step_id, SymptomSeverityStep):
        return CheckInStep.SYMPTOM_SEVERITY
    return step_id


def step_key(step_id: StepId) -> str:
    """Wire form of a step id, e.g. 'mood_primary' or 'symptom_severity:headache'"""
    return step_id.value


def parse_step_id(raw: str) -> StepId:
    """Inverse of step_key. Raises ValueError for unknown steps."""
    prefix, sep, symptom_id = raw.partition(":")
    if sep:
        if prefix != CheckInStep.SYMPTOM_SEVERITY.value or not symptom_id:
            raise ValueError(f"Unknown step id: {raw}")
        return SymptomSeverityStep(symptom_id=symptom_id)
    return CheckInStep(raw)


def is_severity_step(step_id: Optional[StepId]) -> bool:
    return isinstance(step_id, SymptomSeverityStep)


class Originator(str, Enum):
    ENGINE = "engine"
    USER = "user"
