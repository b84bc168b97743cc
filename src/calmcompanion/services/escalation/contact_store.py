"""
Emergency Contact Stores

Read-only sources of the user's emergency contacts.

Contact management (create/edit/delete) lives outside this service;
the escalation workflow only lists and resolves contacts by id.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence

from calmcompanion.config.logging_config import get_logger
from calmcompanion.domain.exceptions import InvalidConfigError
from calmcompanion.domain.models.contact import EmergencyContact

logger = get_logger(__name__)


DEFAULT_CONTACTS: tuple[EmergencyContact, ...] = (
    EmergencyContact(id="1", name="Jane Doe", phone="(555) 123-4567", relationship="Family"),
    EmergencyContact(id="2", name="John Smith", phone="(555) 987-6543", relationship="Friend"),
    EmergencyContact(id="3", name="Dr. Wilson", phone="(555) 456-7890", relationship="Therapist"),
)


class ContactStore(ABC):
    """Abstract read-only contact source."""

    @abstractmethod
    def list_contacts(self) -> list[EmergencyContact]:
        """All contacts in display order."""
        pass

    def get(self, contact_id: str) -> Optional[EmergencyContact]:
        """Resolve a contact by id."""
        for contact in self.list_contacts():
            if contact.id == contact_id:
                return contact
        return None

    def contains(self, contact_id: str) -> bool:
        return self.get(contact_id) is not None


class InMemoryContactStore(ContactStore):
    """Contacts held in memory; defaults to the demo contact list."""

    def __init__(self, contacts: Sequence[EmergencyContact] = DEFAULT_CONTACTS) -> None:
        ids = [contact.id for contact in contacts]
        if len(ids) != len(set(ids)):
            raise InvalidConfigError("Contact ids must be unique")
        self._contacts = tuple(contacts)

    def list_contacts(self) -> list[EmergencyContact]:
        return list(self._contacts)


class JsonContactStore(ContactStore):
    """
    Contacts loaded once from a JSON file.

    Expected format:
    {
        "contacts": [
            {"id": "1", "name": "...", "phone": "...", "relationship": "..."}
        ]
    }
    A bare list of contact objects is accepted as well.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._contacts = self._load()

    def list_contacts(self) -> list[EmergencyContact]:
        return list(self._contacts)

    def _load(self) -> tuple[EmergencyContact, ...]:
        try:
            with open(self._path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise InvalidConfigError(f"Cannot read contacts file {self._path}: {e}") from e

        records = data.get("contacts", []) if isinstance(data, dict) else data

        try:
            contacts = tuple(EmergencyContact.from_dict(record) for record in records)
        except (KeyError, TypeError) as e:
            raise InvalidConfigError(f"Malformed contact record in {self._path}: {e}") from e

        ids = [contact.id for contact in contacts]
        if len(ids) != len(set(ids)):
            raise InvalidConfigError(f"Duplicate contact ids in {self._path}")

        logger.info("Loaded emergency contacts", count=len(contacts))
        return contacts
