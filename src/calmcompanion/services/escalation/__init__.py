"""Emergency-contact escalation: contact stores, notifiers and the workflow."""

from calmcompanion.services.escalation.contact_store import (
    DEFAULT_CONTACTS,
    ContactStore,
    InMemoryContactStore,
    JsonContactStore,
)
from calmcompanion.services.escalation.escalation_workflow import EscalationWorkflow
from calmcompanion.services.escalation.notifier import LoggingNotifier, Notifier, WebhookNotifier

__all__ = [
    "DEFAULT_CONTACTS",
    "ContactStore",
    "EscalationWorkflow",
    "InMemoryContactStore",
    "JsonContactStore",
    "LoggingNotifier",
    "Notifier",
    "WebhookNotifier",
]
