# checkin/core/step_registry.py
"""
Step Registry - immutable definition of every check-in step.

Each definition is one record of a typed dispatch table:
- a prompt builder taking a PromptContext
- the response kind the step demands
- the data key its answer is stored under (None for greeting, final
  and the severity template)
- a pure next-step function over the step's stored answer

Severity instances (SymptomSeverityStep) all resolve to the single
SYMPTOM_SEVERITY template, whatever symptom they carry.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple
import logging

from checkin.models.flow_models import (
    CheckInStep,
    StepId,
    SymptomSeverityStep,
    INITIAL_STEP,
    TERMINAL_STEP,
    template_key,
    step_key,
)
from checkin.models.response_kinds import (
    Acknowledgement,
    BooleanChoice,
    FreeText,
    MultiChoice,
    NoResponse,
    NumericRange,
    ResponseKind,
    SingleChoice,
)
from checkin.core.exceptions import flow_integrity_error
from checkin.prompts import checkin_prompts as prompts
from checkin.prompts import option_catalog as catalog

logger = logging.getLogger(__name__)

# Ratings at or below this value ask why the sleep was poor
SLEEP_QUALITY_REASON_THRESHOLD = 5.0


@dataclass(frozen=True)
class PromptContext:
    """Context handed to prompt builders"""
    symptom_label: Optional[str] = None
    suggested_sleep_hours: Optional[float] = None


PromptBuilder = Callable[[PromptContext], str]
NextStepFn = Callable[[Any], StepId]


@dataclass(frozen=True)
class StepDefinition:
    """A single node in the check-in graph"""
    step: CheckInStep
    prompt: PromptBuilder
    response_kind: ResponseKind
    data_key: Optional[str]
    next_step: NextStepFn
    successors: Tuple[CheckInStep, ...]
    fallback: Optional[CheckInStep] = None
    description: str = ""

    def build_prompt(self, context: Optional[PromptContext] = None) -> str:
        return self.prompt(context or PromptContext())


# ===========================================
# BRANCH FUNCTIONS
# ===========================================

MOOD_DETAIL_STEPS: Dict[str, CheckInStep] = {
    "happy": CheckInStep.MOOD_SECONDARY_HAPPY,
    "neutral": CheckInStep.MOOD_SECONDARY_NEUTRAL,
    "sad": CheckInStep.MOOD_SECONDARY_SAD,
    "angry": CheckInStep.MOOD_SECONDARY_ANGRY,
    "anxious": CheckInStep.MOOD_SECONDARY_ANXIOUS,
}


def next_after_mood(mood: Optional[str]) -> StepId:
    return MOOD_DETAIL_STEPS.get(mood, CheckInStep.MENTAL_CLARITY)


def selected_symptoms(values: Optional[Sequence[str]]) -> List[str]:
    """Selected symptom ids without the 'none' marker"""
    if not values:
        return []
    return [value for value in values if value != catalog.NO_SYMPTOMS]


def next_after_symptoms(values: Optional[Sequence[str]]) -> StepId:
    symptoms = selected_symptoms(values)
    if not symptoms:
        return CheckInStep.SLEEP_HOURS_CHECK
    return SymptomSeverityStep(symptom_id=symptoms[0])


def next_after_sleep_check(confirmed: Optional[bool]) -> StepId:
    if confirmed is False:
        return CheckInStep.SLEEP_HOURS_MANUAL
    return CheckInStep.SLEEP_QUALITY_RATING


def next_after_sleep_quality(rating: Optional[float]) -> StepId:
    if rating is None:
        return CheckInStep.STRESS_LEVEL
    if rating <= SLEEP_QUALITY_REASON_THRESHOLD:
        return CheckInStep.SLEEP_QUALITY_REASON
    return CheckInStep.STRESS_LEVEL


def _goto(step: CheckInStep) -> NextStepFn:
    return lambda _answer: step


def _text(text: str) -> PromptBuilder:
    return lambda _context: text


def _rating() -> NumericRange:
    return NumericRange(minimum=1, maximum=10, step=1)


def _static(step, prompt_text, response_kind, data_key, next_step, description="") -> StepDefinition:
    """Definition whose next step is the same whatever the answer"""
    return StepDefinition(
        step=step,
        prompt=_text(prompt_text),
        response_kind=response_kind,
        data_key=data_key,
        next_step=_goto(next_step),
        successors=(next_step,),
        description=description
    )


def _mood_detail(step: CheckInStep, prompt_text: str, options) -> StepDefinition:
    return _static(
        step, prompt_text, SingleChoice(options=options), "moodSecondary",
        CheckInStep.MENTAL_CLARITY,
        description=f"Mood detail ({step.value}) -> mental clarity"
    )


def build_default_definitions() -> List[StepDefinition]:
    """The check-in graph"""
    return [
        _static(
            CheckInStep.GREETING, prompts.GREETING,
            Acknowledgement(label=prompts.READY_BUTTON), None,
            CheckInStep.ENERGY_LEVEL,
            description="Greeting -> energy level"
        ),
        _static(
            CheckInStep.ENERGY_LEVEL, prompts.ENERGY_LEVEL, _rating(), "energyLevel",
            CheckInStep.MOOD_PRIMARY,
            description="Energy level -> primary mood"
        ),
        StepDefinition(
            step=CheckInStep.MOOD_PRIMARY,
            prompt=_text(prompts.MOOD_PRIMARY),
            response_kind=SingleChoice(options=catalog.MOOD_PRIMARY_OPTIONS),
            data_key="moodPrimary",
            next_step=next_after_mood,
            successors=tuple(MOOD_DETAIL_STEPS.values()) + (CheckInStep.MENTAL_CLARITY,),
            description="Primary mood -> matching mood detail, unknown mood -> mental clarity"
        ),
        _mood_detail(CheckInStep.MOOD_SECONDARY_HAPPY, prompts.MOOD_SECONDARY_HAPPY, catalog.MOOD_HAPPY_OPTIONS),
        _mood_detail(CheckInStep.MOOD_SECONDARY_NEUTRAL, prompts.MOOD_SECONDARY_NEUTRAL, catalog.MOOD_NEUTRAL_OPTIONS),
        _mood_detail(CheckInStep.MOOD_SECONDARY_SAD, prompts.MOOD_SECONDARY_SAD, catalog.MOOD_SAD_OPTIONS),
        _mood_detail(CheckInStep.MOOD_SECONDARY_ANGRY, prompts.MOOD_SECONDARY_ANGRY, catalog.MOOD_ANGRY_OPTIONS),
        _mood_detail(CheckInStep.MOOD_SECONDARY_ANXIOUS, prompts.MOOD_SECONDARY_ANXIOUS, catalog.MOOD_ANXIOUS_OPTIONS),
        _static(
            CheckInStep.MENTAL_CLARITY, prompts.MENTAL_CLARITY,
            SingleChoice(options=catalog.MENTAL_CLARITY_OPTIONS), "mentalClarity",
            CheckInStep.PHYSICAL_SYMPTOMS,
            description="Mental clarity -> physical symptoms"
        ),
        StepDefinition(
            step=CheckInStep.PHYSICAL_SYMPTOMS,
            prompt=_text(prompts.PHYSICAL_SYMPTOMS),
            response_kind=MultiChoice(options=catalog.PHYSICAL_SYMPTOM_OPTIONS, allows_multiple=True),
            data_key="physicalSymptoms",
            next_step=next_after_symptoms,
            successors=(CheckInStep.SYMPTOM_SEVERITY, CheckInStep.SLEEP_HOURS_CHECK),
            fallback=CheckInStep.SLEEP_HOURS_CHECK,
            description="Physical symptoms -> severity loop, nothing selected -> sleep check"
        ),
        StepDefinition(
            step=CheckInStep.SYMPTOM_SEVERITY,
            prompt=lambda context: prompts.symptom_severity_prompt(context.symptom_label),
            response_kind=_rating(),
            data_key=None,
            next_step=_goto(CheckInStep.SLEEP_HOURS_CHECK),
            successors=(CheckInStep.SYMPTOM_SEVERITY, CheckInStep.SLEEP_HOURS_CHECK),
            fallback=CheckInStep.SLEEP_HOURS_CHECK,
            description="Severity per selected symptom, then sleep check"
        ),
        StepDefinition(
            step=CheckInStep.SLEEP_HOURS_CHECK,
            prompt=lambda context: prompts.sleep_hours_check_prompt(context.suggested_sleep_hours),
            response_kind=BooleanChoice(yes_label=prompts.YES_LABEL, no_label=prompts.NO_LABEL),
            data_key="sleepHoursConfirmed",
            next_step=next_after_sleep_check,
            successors=(CheckInStep.SLEEP_QUALITY_RATING, CheckInStep.SLEEP_HOURS_MANUAL),
            description="Sleep hours confirmed -> quality, rejected -> manual hours"
        ),
        _static(
            CheckInStep.SLEEP_HOURS_MANUAL, prompts.SLEEP_HOURS_MANUAL,
            NumericRange(minimum=0, maximum=16, step=0.5, unit=prompts.HOURS_UNIT), "sleepHoursManual",
            CheckInStep.SLEEP_QUALITY_RATING,
            description="Manual sleep hours -> sleep quality"
        ),
        StepDefinition(
            step=CheckInStep.SLEEP_QUALITY_RATING,
            prompt=_text(prompts.SLEEP_QUALITY_RATING),
            response_kind=_rating(),
            data_key="sleepQualityRating",
            next_step=next_after_sleep_quality,
            successors=(CheckInStep.SLEEP_QUALITY_REASON, CheckInStep.STRESS_LEVEL),
            description="Poor sleep (<= 5) -> reason, otherwise -> stress level"
        ),
        _static(
            CheckInStep.SLEEP_QUALITY_REASON, prompts.SLEEP_QUALITY_REASON,
            MultiChoice(options=catalog.SLEEP_QUALITY_REASON_OPTIONS, allows_multiple=True), "sleepQualityReasons",
            CheckInStep.STRESS_LEVEL,
            description="Sleep quality reasons -> stress level"
        ),
        _static(
            CheckInStep.STRESS_LEVEL, prompts.STRESS_LEVEL, _rating(), "stressLevel",
            CheckInStep.STRESS_CAUSE,
            description="Stress level -> stress cause"
        ),
        _static(
            CheckInStep.STRESS_CAUSE, prompts.STRESS_CAUSE,
            FreeText(placeholder=prompts.TEXT_PLACEHOLDER), "stressCause",
            CheckInStep.STRESS_COPING,
            description="Stress cause -> coping"
        ),
        _static(
            CheckInStep.STRESS_COPING, prompts.STRESS_COPING,
            FreeText(placeholder=prompts.TEXT_PLACEHOLDER), "stressCopingMethod",
            CheckInStep.COPING_EFFECTIVENESS,
            description="Coping method -> coping effectiveness"
        ),
        _static(
            CheckInStep.COPING_EFFECTIVENESS, prompts.COPING_EFFECTIVENESS, _rating(), "copingEffectiveness",
            CheckInStep.FINAL,
            description="Coping effectiveness -> final"
        ),
        _static(
            CheckInStep.FINAL, prompts.FINAL, NoResponse(), None,
            CheckInStep.FINAL,
            description="Terminal step, stays finished"
        ),
    ]


class StepRegistry:
    """Lookup of step definitions by step id"""

    def __init__(self, definitions: Optional[Iterable[StepDefinition]] = None):
        self._definitions: Dict[CheckInStep, StepDefinition] = {}
        for definition in (definitions if definitions is not None else build_default_definitions()):
            if definition.step in self._definitions:
                logger.warning(f"Duplicate definition for {definition.step.value}, keeping the last one")
            self._definitions[definition.step] = definition

        logger.debug(f"StepRegistry initialized with {len(self._definitions)} definitions")

    def get(self, step_id: StepId) -> Optional[StepDefinition]:
        """Definition for a step id, or None when the graph has no such step"""
        return self._definitions.get(template_key(step_id))

    def lookup(self, step_id: StepId) -> StepDefinition:
        """
        Definition for a step id.

        Raises:
            FlowIntegrityError: If the step is not defined
        """
        definition = self.get(step_id)
        if definition is None:
            raise flow_integrity_error(f"No step definition for {step_key(step_id)}", step_key(step_id))
        return definition

    def __contains__(self, step_id: StepId) -> bool:
        return self.get(step_id) is not None

    @property
    def definitions(self) -> List[StepDefinition]:
        return list(self._definitions.values())

    def validate_graph(self) -> List[str]:
        """Check the registry for common graph issues"""
        issues = []

        if INITIAL_STEP not in self._definitions:
            issues.append(f"Missing initial step: {INITIAL_STEP.value}")
        if TERMINAL_STEP not in self._definitions:
            issues.append(f"Missing terminal step: {TERMINAL_STEP.value}")

        for definition in self._definitions.values():
            missing = [s.value for s in definition.successors if s not in self._definitions]
            if missing:
                issues.append(f"{definition.step.value} references undefined steps: {missing}")

            unpersisted = definition.step in (INITIAL_STEP, TERMINAL_STEP, CheckInStep.SYMPTOM_SEVERITY)
            if unpersisted and definition.data_key is not None:
                issues.append(f"{definition.step.value} must not have a data key")
            if not unpersisted and definition.data_key is None:
                issues.append(f"{definition.step.value} has no data key")

        # Reachability from the greeting
        reachable = set()
        pending = [INITIAL_STEP] if INITIAL_STEP in self._definitions else []
        while pending:
            step = pending.pop()
            if step in reachable:
                continue
            reachable.add(step)
            definition = self._definitions.get(step)
            if definition:
                pending.extend(s for s in definition.successors if s in self._definitions)

        unreachable = set(self._definitions) - reachable
        if unreachable:
            issues.append(f"Unreachable steps: {sorted(s.value for s in unreachable)}")

        cycles = self._find_cycles()
        if cycles:
            issues.append(f"Cycles outside the severity loop and terminal step: {cycles}")

        return issues

    def _find_cycles(self) -> List[List[str]]:
        """Cycles in the static graph, ignoring the allowed self-loops"""
        allowed_self_loops = {CheckInStep.SYMPTOM_SEVERITY, TERMINAL_STEP}
        cycles = []
        visiting: List[CheckInStep] = []
        done = set()

        def visit(step: CheckInStep):
            if step in done:
                return
            if step in visiting:
                cycles.append([s.value for s in visiting[visiting.index(step):]] + [step.value])
                return
            visiting.append(step)
            definition = self._definitions.get(step)
            if definition:
                for successor in definition.successors:
                    if successor == step and step in allowed_self_loops:
                        continue
                    visit(successor)
            visiting.pop()
            done.add(step)

        for step in self._definitions:
            visit(step)
        return cycles

    def get_flow_summary(self) -> Dict[str, Any]:
        """Summary of the graph for debugging/monitoring"""
        return {
            "total_steps": len(self._definitions),
            "initial_step": INITIAL_STEP.value,
            "terminal_step": TERMINAL_STEP.value,
            "steps": [
                {
                    "step": d.step.value,
                    "response_kind": d.response_kind.kind,
                    "data_key": d.data_key,
                    "successors": [s.value for s in d.successors],
                    "description": d.description
                }
                for d in self._definitions.values()
            ]
        }


def create_step_registry() -> StepRegistry:
    """Create the registry holding the check-in graph"""
    return StepRegistry()
