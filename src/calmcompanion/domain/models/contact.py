"""
Emergency Contact Domain Model

Contacts are owned by an external contact store; the escalation
workflow only references them by id.

PRIVACY: Phone numbers and e-mail addresses are personal data of
third parties and must not be logged.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class EmergencyContact:
    """
    A person the user has chosen to alert in an emergency.

    Attributes:
        id: Stable contact identifier
        name: Display name
        phone: Phone number as entered by the user
        relationship: Relationship to the user (Family, Friend, Therapist)
        email: Optional e-mail address
    """

    id: str
    name: str
    phone: str
    relationship: str
    email: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "relationship": self.relationship,
            "email": self.email,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EmergencyContact":
        """Create contact from dictionary."""
        return cls(
            id=str(data["id"]),
            name=data["name"],
            phone=data.get("phone", ""),
            relationship=data.get("relationship", ""),
            email=data.get("email"),
        )
