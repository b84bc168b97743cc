"""
Intervention Content Catalog

Static exercise definitions and narration scripts used by the
intervention tracks.

NOTE: Wording here is user-facing and was reviewed as a whole.
Change scripts together so the voice stays consistent.
"""

from calmcompanion.domain.enums.distress_level import DistressLevel
from calmcompanion.domain.models.escalation import EscalationPhase
from calmcompanion.domain.models.exercise import (
    BreathingPattern,
    GroundingTechnique,
    SelfCareTip,
)

# =============================================================================
# SESSION SCRIPTS
# =============================================================================

INTRO_SCRIPT = (
    "We're here for you. Let's take a moment to understand how you're feeling "
    "so we can provide the right support for you."
)

MILD_WELCOME_SCRIPT = (
    "We've noticed some mild distress. Here are some gentle techniques "
    "to help you feel better."
)

MODERATE_WELCOME_SCRIPT = (
    "Based on your responses, I recommend connecting with professional support. "
    "Here are some resources that can help you right now. You can speak with "
    "trained crisis counselors through hotlines, or connect with a licensed "
    "therapist through our chat service."
)

ESCALATION_SCRIPTS: dict[EscalationPhase, str] = {
    EscalationPhase.SELECTING: (
        "You've indicated you're experiencing severe distress. I'm here to help you "
        "get immediate assistance. You can alert your emergency contacts or connect "
        "directly to crisis services. Please select the contacts you'd like to alert."
    ),
    EscalationPhase.CONFIRMING: (
        "Please confirm that you want to alert these emergency contacts. They will "
        "receive a message with your current location and a request to check on "
        "you immediately."
    ),
    EscalationPhase.SENT: (
        "Alert sent successfully. Your emergency contacts have been notified and help "
        "is on the way. Stay where you are if it's safe to do so. While you wait, try "
        "to take slow, deep breaths and focus on your surroundings."
    ),
}

# =============================================================================
# BREATHING
# =============================================================================

BREATHING_PATTERNS: tuple[BreathingPattern, ...] = (
    BreathingPattern(
        title="Deep Breathing",
        description="A simple breathing technique to help calm your mind and reduce anxiety.",
        inhale_seconds=4,
        hold_seconds=4,
        exhale_seconds=6,
        cycles=5,
    ),
    BreathingPattern(
        title="Box Breathing",
        description="Equal parts inhale, hold, exhale, and hold. Great for stress relief.",
        inhale_seconds=4,
        hold_seconds=4,
        exhale_seconds=4,
        cycles=4,
    ),
    BreathingPattern(
        title="4-7-8 Breathing",
        description="Inhale for 4, hold for 7, exhale for 8. Helps with anxiety and sleep.",
        inhale_seconds=4,
        hold_seconds=7,
        exhale_seconds=8,
        cycles=3,
    ),
)

PHASE_INSTRUCTIONS: dict[str, str] = {
    "inhale": "Inhale slowly through your nose...",
    "hold": "Hold your breath...",
    "exhale": "Exhale slowly through your mouth...",
    "rest": "Rest before next cycle...",
}

BREATHING_COMPLETE_SCRIPT = "Well done. Take a moment to notice how you feel."

# =============================================================================
# GROUNDING
# =============================================================================

GROUNDING_TECHNIQUES: tuple[GroundingTechnique, ...] = (
    GroundingTechnique(
        id="5-4-3-2-1",
        name="5-4-3-2-1 Technique",
        description="Engage all five senses to ground yourself in the present moment.",
        steps=(
            "Acknowledge FIVE things you see around you.",
            "Acknowledge FOUR things you can touch around you.",
            "Acknowledge THREE things you hear.",
            "Acknowledge TWO things you can smell.",
            "Acknowledge ONE thing you can taste.",
        ),
        duration="5 minutes",
    ),
    GroundingTechnique(
        id="body-scan",
        name="Body Scan",
        description="Progressively focus attention on different parts of your body to release tension.",
        steps=(
            "Find a comfortable position sitting or lying down.",
            "Close your eyes and take several deep breaths.",
            "Focus your attention on your feet, noticing any sensations.",
            "Slowly move your attention up through your body: legs, torso, arms, and head.",
            "Notice any areas of tension and consciously relax them.",
        ),
        duration="10 minutes",
    ),
    GroundingTechnique(
        id="deep-breathing",
        name="Deep Breathing",
        description="Slow, deep breathing to activate the parasympathetic nervous system.",
        steps=(
            "Sit or lie down in a comfortable position.",
            "Place one hand on your chest and the other on your abdomen.",
            "Breathe in slowly through your nose for 4 counts.",
            "Hold your breath for 2 counts.",
            "Exhale slowly through your mouth for 6 counts.",
            "Repeat for 5-10 cycles.",
        ),
        duration="3-5 minutes",
    ),
    GroundingTechnique(
        id="object-focus",
        name="Object Focus",
        description="Concentrate deeply on a single object to anchor your attention.",
        steps=(
            "Choose any object in your surroundings.",
            "Examine it closely, noting its color, texture, shape, and weight.",
            "Consider its purpose and how it was made.",
            "Notice any thoughts that arise and gently return focus to the object.",
            "Continue for 3-5 minutes.",
        ),
        duration="3-5 minutes",
    ),
    GroundingTechnique(
        id="hand-warming",
        name="Hand Warming",
        description="A biofeedback technique that helps reduce anxiety through focused attention.",
        steps=(
            "Sit comfortably and rub your hands together vigorously for 15 seconds.",
            "Place your hands palm-up on your lap.",
            "Focus on the sensation of warmth in your palms.",
            "Imagine your hands becoming warmer and heavier.",
            "Continue for 5 minutes, noticing the sensations.",
        ),
        duration="5 minutes",
    ),
    GroundingTechnique(
        id="music-grounding",
        name="Music Grounding",
        description="Use music to reconnect with the present moment and regulate emotions.",
        steps=(
            "Choose a calming or familiar piece of music.",
            "Close your eyes and focus entirely on the music.",
            "Notice the different instruments and sounds.",
            "Pay attention to how the music makes you feel physically.",
            "Allow the music to anchor you to the present moment.",
        ),
        duration="5-10 minutes",
    ),
)

# =============================================================================
# SELF-CARE TIPS
# =============================================================================

SELF_CARE_TIPS: tuple[SelfCareTip, ...] = (
    SelfCareTip(
        title="Deep Breathing",
        description="Take 5 slow, deep breaths. Inhale for 4 counts, hold for 2, exhale for 6.",
        voice_script=(
            "Let's practice deep breathing together. Inhale slowly through your nose for "
            "4 counts. Now hold your breath for 2 counts. And exhale slowly through your "
            "mouth for 6 counts. Let's repeat this 4 more times."
        ),
    ),
    SelfCareTip(
        title="Grounding Exercise",
        description=(
            "Name 5 things you can see, 4 things you can touch, 3 things you can hear, "
            "2 things you can smell, and 1 thing you can taste."
        ),
        voice_script=(
            "Let's try a grounding exercise. Look around you and name 5 things you can see. "
            "Now, identify 4 things you can touch or feel. Listen carefully and notice 3 "
            "things you can hear. Try to identify 2 things you can smell. Finally, notice "
            "1 thing you can taste."
        ),
    ),
    SelfCareTip(
        title="Positive Affirmation",
        description='Repeat to yourself: "This feeling is temporary. I am safe, and I will get through this."',
        voice_script=(
            "Let's practice a positive affirmation. Repeat after me: This feeling is "
            "temporary. I am safe, and I will get through this. Let's say it again: This "
            "feeling is temporary. I am safe, and I will get through this."
        ),
    ),
)

# =============================================================================
# COMPANION CONVERSATION
# =============================================================================

COMPANION_GREETING = "Hi {name}, I'm your voice assistant. "

COMPANION_WELCOME: dict[DistressLevel, str] = {
    DistressLevel.MILD: (
        "I'm here to help you through this mild distress. "
        "Let's try some simple breathing exercises together."
    ),
    DistressLevel.MODERATE: (
        "I understand you're experiencing moderate distress. "
        "I'm here to guide you through some effective coping strategies."
    ),
    DistressLevel.SEVERE: (
        "I can see you're going through a difficult time. I'm here to support you "
        "and connect you with immediate help if needed."
    ),
}

COMPANION_DEFAULT_WELCOME = (
    "How are you feeling today? I'm here to listen and help you through "
    "whatever you're experiencing."
)


def hotline_script(name: str, description: str, number: str) -> str:
    """Narration for a selected hotline, with the number read digit by digit."""
    spelled = " ".join(ch for ch in number if not ch.isspace())
    return f"You've selected {name}. {description} The number is {spelled}."


def format_clock(seconds: int) -> str:
    """Format seconds as m:ss."""
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"
