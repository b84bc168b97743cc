"""Companion conversation and responder services."""

from calmcompanion.services.conversation.companion import CompanionConversation, ConversationMessage
from calmcompanion.services.conversation.responder import (
    KeywordResponder,
    ResponderReply,
    ResponderService,
)

__all__ = [
    "CompanionConversation",
    "ConversationMessage",
    "KeywordResponder",
    "ResponderReply",
    "ResponderService",
]
