"""
Companion Conversation

Text chat with spoken replies, tuned to the assessed distress level.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from calmcompanion.config.logging_config import get_logger
from calmcompanion.domain.enums.distress_level import DistressLevel
from calmcompanion.domain.exceptions import InvalidInputError
from calmcompanion.services.conversation.responder import (
    KeywordResponder,
    ResponderReply,
    ResponderService,
)
from calmcompanion.services.intervention.catalog import (
    COMPANION_DEFAULT_WELCOME,
    COMPANION_GREETING,
    COMPANION_WELCOME,
)
from calmcompanion.services.narration.coordinator import NarrationCoordinator

logger = get_logger(__name__)

MAX_MESSAGE_LENGTH = 2000


@dataclass(frozen=True)
class ConversationMessage:
    """One transcript entry."""

    sender: str  # user, companion
    text: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "sender": self.sender,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
        }


class CompanionConversation:
    """
    Chat transcript plus narration of replies.

    A responder failure never ends the conversation; the fallback
    reply is used instead.
    """

    def __init__(
        self,
        narration: NarrationCoordinator,
        responder: Optional[ResponderService] = None,
        level: Optional[DistressLevel] = None,
        user_name: str = "Friend",
        speak_replies: bool = True,
    ) -> None:
        self._narration = narration
        self._responder = responder or KeywordResponder()
        self._level = level
        self._user_name = user_name
        self._speak_replies = speak_replies
        self._lock = threading.Lock()
        self._messages: list[ConversationMessage] = []

    @property
    def transcript(self) -> list[ConversationMessage]:
        with self._lock:
            return list(self._messages)

    def welcome_message(self) -> str:
        body = COMPANION_WELCOME.get(self._level, COMPANION_DEFAULT_WELCOME)
        return COMPANION_GREETING.format(name=self._user_name) + body

    def start(self) -> str:
        """Post and speak the welcome message once."""
        with self._lock:
            if self._messages:
                return self._messages[0].text
            text = self.welcome_message()
            self._messages.append(ConversationMessage(sender="companion", text=text))

        self._speak(text)
        return text

    def handle_user_input(self, text: str) -> ResponderReply:
        """
        Record user text, generate a reply and speak it.

        Raises:
            InvalidInputError: If text is blank or too long
        """
        cleaned = text.strip()
        if not cleaned:
            raise InvalidInputError("Message must not be empty", value=text)
        if len(cleaned) > MAX_MESSAGE_LENGTH:
            raise InvalidInputError(
                f"Message exceeds {MAX_MESSAGE_LENGTH} characters",
                value=len(cleaned),
            )

        self.start()
        with self._lock:
            self._messages.append(ConversationMessage(sender="user", text=cleaned))

        try:
            reply = self._responder.respond(cleaned)
        except Exception as e:
            logger.warning(
                "Responder failed; using fallback reply",
                responder=self._responder.name,
                error_type=type(e).__name__,
            )
            reply = ResponderReply(text=KeywordResponder.FALLBACK)

        with self._lock:
            self._messages.append(ConversationMessage(sender="companion", text=reply.text))

        logger.debug("Companion replied", suggested_action=reply.suggested_action)
        self._speak(reply.text)
        return reply

    def _speak(self, text: str) -> None:
        if self._speak_replies:
            self._narration.speak(text)
