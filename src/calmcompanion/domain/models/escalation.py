"""
Escalation Domain Models

State of the emergency-contact escalation workflow and the outcome
of a notifier dispatch.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Optional
from uuid import UUID, uuid4


class EscalationPhase(StrEnum):
    """
    Escalation workflow states.

    SELECTING → CONFIRMING → SENT. SENT is terminal for one
    activation; a reset starts over at SELECTING.
    """

    SELECTING = "selecting"
    """User is choosing which contacts to alert."""

    CONFIRMING = "confirming"
    """User reviews the selection before dispatch."""

    SENT = "sent"
    """Alert handed to the notifier successfully."""


@dataclass(frozen=True)
class EscalationState:
    """Read-only escalation snapshot used for button enablement."""

    phase: EscalationPhase
    selected_contact_ids: frozenset[str]

    @property
    def can_confirm(self) -> bool:
        return self.phase == EscalationPhase.SELECTING and bool(self.selected_contact_ids)

    @property
    def can_send(self) -> bool:
        return self.phase == EscalationPhase.CONFIRMING

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "selected_contact_ids": sorted(self.selected_contact_ids),
            "can_confirm": self.can_confirm,
            "can_send": self.can_send,
        }


@dataclass
class DispatchResult:
    """
    Outcome of handing an alert to a notifier.

    Attributes:
        success: Whether the notifier accepted the alert
        contact_ids: Contacts the alert was addressed to
        detail: Human-readable failure or delivery detail
        dispatch_id: Identifier for audit correlation
        timestamp: When dispatch was attempted
    """

    success: bool
    contact_ids: list[str] = field(default_factory=list)
    detail: Optional[str] = None
    dispatch_id: UUID = field(default_factory=uuid4)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "contact_ids": self.contact_ids,
            "detail": self.detail,
            "dispatch_id": str(self.dispatch_id),
            "timestamp": self.timestamp.isoformat(),
        }
