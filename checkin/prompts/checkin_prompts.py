# checkin/prompts/checkin_prompts.py
"""
Prompt texts for the daily check-in dialogue.

Templates use str.format placeholders; everything else is literal.
"""

# ============================================================================
# OPENING
# ============================================================================

GREETING = """Hey there! Ready to check in?"""

ENERGY_LEVEL = """How energized did you feel today?"""

# ============================================================================
# MOOD
# ============================================================================

MOOD_PRIMARY = """How has your mood been today?"""

MOOD_SECONDARY_HAPPY = """Glad to hear it! Which of these describe it best?"""
MOOD_SECONDARY_NEUTRAL = """Okay, neutral. Can you pinpoint why?"""
MOOD_SECONDARY_SAD = """I'm sorry to hear that. What felt most prominent?"""
MOOD_SECONDARY_ANGRY = """Anger is valid. What sparked it?"""
MOOD_SECONDARY_ANXIOUS = """Anxiety can be tough. What's it feel like?"""

MENTAL_CLARITY = """How did your mind feel today?"""

# ============================================================================
# BODY
# ============================================================================

PHYSICAL_SYMPTOMS = """How about your body? Anything going on?"""

# Variables: symptom (display label, lowercased)
SYMPTOM_SEVERITY = """How bad was your {symptom} today?"""
SYMPTOM_SEVERITY_GENERIC = """How severe was it?"""

# ============================================================================
# SLEEP
# ============================================================================

# Variables: hours
SLEEP_HOURS_CHECK = """I see you got {hours} hours of sleep last night. Does that sound right to you?"""
SLEEP_HOURS_CHECK_NO_DATA = """I don't have any sleep data for last night. Did you sleep about as much as usual?"""

SLEEP_HOURS_MANUAL = """Oops! How many hours did you get?"""

SLEEP_QUALITY_RATING = """How would you rate your sleep last night?"""

SLEEP_QUALITY_REASON = """Sorry to hear that, what would you say affected your sleep quality last night?"""

# ============================================================================
# STRESS
# ============================================================================

STRESS_LEVEL = """How stressed did you feel today?"""

STRESS_CAUSE = """What caused that stress, if you can identify it?"""

STRESS_COPING = """How did you cope with that stress?"""

COPING_EFFECTIVENESS = """Was that coping method effective?"""

# ============================================================================
# CLOSING
# ============================================================================

FINAL = """Thanks for being honest, you're doing great! Time to fetch your insights."""

# ============================================================================
# INPUT CONTROLS
# ============================================================================

READY_BUTTON = "Ready!"
TEXT_PLACEHOLDER = "Type your response..."
YES_LABEL = "Yes"
NO_LABEL = "No"
HOURS_UNIT = "hours"

# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def format_hours(hours: float) -> str:
    """Render hours without trailing zeros: 7.5 -> '7.5', 8.0 -> '8'."""
    return f"{hours:g}"


def symptom_severity_prompt(symptom_label: str = None) -> str:
    if not symptom_label:
        return SYMPTOM_SEVERITY_GENERIC
    return SYMPTOM_SEVERITY.format(symptom=symptom_label.lower())


def sleep_hours_check_prompt(hours: float = None) -> str:
    if hours is None:
        return SLEEP_HOURS_CHECK_NO_DATA
    return SLEEP_HOURS_CHECK.format(hours=format_hours(hours))
