# checkin/prompts/option_catalog.py
"""
Option catalogue for the choice steps of the check-in.

Order matters: it is the display order and the order in which
multi-choice selections are stored.
"""

from checkin.models.response_kinds import ChoiceOption

# Value marking "no symptoms" in the physical-symptoms selection
NO_SYMPTOMS = "none"

MOOD_PRIMARY_OPTIONS = [
    ChoiceOption(emoji="😊", label="Happy", value="happy"),
    ChoiceOption(emoji="😐", label="Neutral", value="neutral"),
    ChoiceOption(emoji="😢", label="Sad", value="sad"),
    ChoiceOption(emoji="😠", label="Angry", value="angry"),
    ChoiceOption(emoji="😟", label="Anxious", value="anxious"),
]

MOOD_HAPPY_OPTIONS = [
    ChoiceOption(emoji="🥳", label="Joyful", value="joyful"),
    ChoiceOption(emoji="🙏", label="Grateful", value="grateful"),
    ChoiceOption(emoji="🤩", label="Excited", value="excited"),
    ChoiceOption(emoji="🤝", label="Connected", value="connected"),
    ChoiceOption(emoji="😌", label="Calm", value="calm"),
]

MOOD_NEUTRAL_OPTIONS = [
    ChoiceOption(emoji="😴", label="Tired", value="tired"),
    ChoiceOption(emoji="🥱", label="Bored", value="bored"),
    ChoiceOption(emoji="📉", label="Unmotivated", value="unmotivated"),
    ChoiceOption(emoji="🤔", label="Distracted", value="distracted"),
    ChoiceOption(emoji="😶", label="Numb", value="numb"),
]

MOOD_SAD_OPTIONS = [
    ChoiceOption(emoji="🧍", label="Lonely", value="lonely"),
    ChoiceOption(emoji="😞", label="Disappointed", value="disappointed"),
    ChoiceOption(emoji="💔", label="Hopeless", value="hopeless"),
    ChoiceOption(emoji="🤕", label="Hurt", value="hurt"),
    ChoiceOption(emoji="🫣", label="Insecure", value="insecure"),
]

MOOD_ANGRY_OPTIONS = [
    ChoiceOption(emoji="😤", label="Frustrated", value="frustrated"),
    ChoiceOption(emoji="😒", label="Irritated", value="irritated"),
    ChoiceOption(emoji="🙅", label="Disrespected", value="disrespected"),
    ChoiceOption(emoji="🛡️", label="Defensive", value="defensive"),
]

MOOD_ANXIOUS_OPTIONS = [
    ChoiceOption(emoji="😥", label="Worried", value="worried"),
    ChoiceOption(emoji="🤯", label="Overwhelmed", value="overwhelmed"),
    ChoiceOption(emoji="😬", label="Nervous", value="nervous"),
    ChoiceOption(emoji="🧘", label="Unsettled", value="unsettled"),
]

MENTAL_CLARITY_OPTIONS = [
    ChoiceOption(emoji="💡", label="Clear-headed", value="clear"),
    ChoiceOption(emoji="🌫️", label="Foggy", value="foggy"),
    ChoiceOption(emoji="🤯", label="Scattered", value="scattered"),
    ChoiceOption(emoji="😟", label="Anxious Mind", value="anxious_mind"),
    ChoiceOption(emoji="📉", label="Unmotivated Mind", value="unmotivated_mind"),
]

PHYSICAL_SYMPTOM_OPTIONS = [
    ChoiceOption(label="Headache", value="headache"),
    ChoiceOption(label="Fatigue", value="fatigue"),
    ChoiceOption(label="Bloating", value="bloating"),
    ChoiceOption(label="Muscle Soreness", value="muscle_soreness"),
    ChoiceOption(label="Stomach Ache", value="stomach_ache"),
    ChoiceOption(label="Joint Pain", value="joint_pain"),
    ChoiceOption(label="Brain Fog", value="brain_fog"),
    ChoiceOption(label="None today", value=NO_SYMPTOMS),
]

SLEEP_QUALITY_REASON_OPTIONS = [
    ChoiceOption(label="Late Screen Time", value="screen_time"),
    ChoiceOption(label="Racing Thoughts", value="racing_thoughts"),
    ChoiceOption(label="Body Discomfort", value="discomfort"),
    ChoiceOption(label="Bad Dreams", value="bad_dreams"),
    ChoiceOption(label="Substance Use", value="substance_use"),
]
