"""
Responder Service Interface

Defines the contract for the companion's reply generator.

ARCHITECTURE: All reply generation goes through this interface so
a real language model can replace the keyword placeholder without
changing the conversation code. The keyword rules carry no clinical
or contractual weight.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from calmcompanion.config.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResponderReply:
    """
    Reply from a responder.

    Attributes:
        text: Reply shown and spoken to the user
        suggested_action: Optional hint for the client
            (breathing, grounding, talk, crisis_resources)
    """

    text: str
    suggested_action: Optional[str] = None

    def to_dict(self) -> dict:
        return {"text": self.text, "suggested_action": self.suggested_action}


class ResponderService(ABC):
    """Abstract reply generator."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def respond(self, text: str) -> ResponderReply:
        """
        Generate a reply to user text.

        Raises:
            ExternalFailureError: If the backend is unavailable
        """
        pass


class KeywordResponder(ResponderService):
    """
    Placeholder responder matching keywords in order.

    The first rule with a matching keyword wins; crisis keywords are
    checked before the general fallback.
    """

    RULES: tuple[tuple[tuple[str, ...], str, str], ...] = (
        (
            ("anxious", "anxiety"),
            "It's completely normal to feel anxious. Let's try a quick breathing exercise "
            "together. Take a deep breath in for 4 counts, hold for 2, and exhale for 6. "
            "Would you like to try that now?",
            "breathing",
        ),
        (
            ("sad", "depressed"),
            "I'm sorry to hear you're feeling down. Remember that your feelings are valid, "
            "and it's okay to not be okay sometimes. Would you like to explore some "
            "grounding techniques that might help?",
            "grounding",
        ),
        (
            ("angry", "frustrated"),
            "I understand that feeling frustrated can be overwhelming. Let's try to identify "
            "what's triggering these feelings and work through them together. Would you "
            "like to talk more about what's causing this?",
            "talk",
        ),
        (
            ("help", "suicide", "hurt"),
            "I'm concerned about what you're sharing. If you're having thoughts of harming "
            "yourself, it's important to reach out to a crisis helpline immediately. Would "
            "you like me to provide you with some resources?",
            "crisis_resources",
        ),
    )

    FALLBACK = (
        "Thank you for sharing that with me. I'm here to listen and support you. "
        "Would you like to try some coping strategies that might help with what "
        "you're experiencing?"
    )

    @property
    def name(self) -> str:
        return "keyword"

    def respond(self, text: str) -> ResponderReply:
        lowered = text.lower()
        for keywords, reply, action in self.RULES:
            if any(keyword in lowered for keyword in keywords):
                return ResponderReply(text=reply, suggested_action=action)
        return ResponderReply(text=self.FALLBACK)
