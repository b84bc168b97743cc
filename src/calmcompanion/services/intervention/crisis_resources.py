"""
Crisis Resources

Jurisdiction-aware directory of hotlines and crisis services shown
by the moderate and severe tracks.

LEGAL_REVIEW_REQUIRED: Resource information must be verified for
accuracy in each jurisdiction before production use.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from calmcompanion.config.logging_config import get_logger
from calmcompanion.domain.exceptions import InvalidConfigError

logger = get_logger(__name__)


@dataclass(frozen=True)
class CrisisResource:
    """
    A single crisis resource.

    Attributes:
        name: Resource name
        resource_type: hotline, text, website or emergency
        contact: Number, text instruction or URL
        description: Short description read to the user
        available_24_7: Whether available around the clock
    """

    name: str
    resource_type: str
    contact: str
    description: str = ""
    available_24_7: bool = True

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.resource_type,
            "contact": self.contact,
            "description": self.description,
            "available_24_7": self.available_24_7,
        }


@dataclass(frozen=True)
class JurisdictionResources:
    """Crisis resources for one country."""

    country_code: str
    country_name: str
    emergency_number: str = ""
    resources: tuple[CrisisResource, ...] = field(default_factory=tuple)

    def hotlines(self) -> list[CrisisResource]:
        """Phone and text lines, in listed order."""
        return [r for r in self.resources if r.resource_type in ("hotline", "text")]

    def to_dict(self) -> dict:
        return {
            "country_code": self.country_code,
            "country_name": self.country_name,
            "emergency_number": self.emergency_number,
            "resources": [r.to_dict() for r in self.resources],
        }


class CrisisResourceDirectory:
    """
    Resolves crisis resources by country code.

    Built-in entries can be overridden or extended from a JSON file
    keyed by country code.

    Usage:
        directory = CrisisResourceDirectory()
        hotlines = directory.get_resources("US").hotlines()
    """

    DEFAULT_RESOURCES = JurisdictionResources(
        country_code="INTL",
        country_name="International",
        resources=(
            CrisisResource(
                name="International Association for Suicide Prevention",
                resource_type="website",
                contact="https://www.iasp.info/resources/Crisis_Centres/",
                description="Directory of crisis centers worldwide.",
            ),
            CrisisResource(
                name="Befrienders Worldwide",
                resource_type="website",
                contact="https://www.befrienders.org/",
                description="Emotional support centers globally.",
            ),
        ),
    )

    BUILT_IN_RESOURCES: dict[str, JurisdictionResources] = {
        "US": JurisdictionResources(
            country_code="US",
            country_name="United States",
            emergency_number="911",
            resources=(
                CrisisResource(
                    name="988 Suicide & Crisis Lifeline",
                    resource_type="hotline",
                    contact="988",
                    description="Available 24/7 for emotional support during crisis situations.",
                ),
                CrisisResource(
                    name="Crisis Text Line",
                    resource_type="text",
                    contact="Text HOME to 741741",
                    description="Connect with a crisis counselor via text message.",
                ),
                CrisisResource(
                    name="SAMHSA's National Helpline",
                    resource_type="hotline",
                    contact="1-800-662-4357",
                    description=(
                        "Treatment referral and information service for individuals "
                        "facing mental health challenges."
                    ),
                ),
            ),
        ),
        "GB": JurisdictionResources(
            country_code="GB",
            country_name="United Kingdom",
            emergency_number="999",
            resources=(
                CrisisResource(
                    name="Samaritans",
                    resource_type="hotline",
                    contact="116 123",
                    description="Emotional support for anyone in distress.",
                ),
                CrisisResource(
                    name="SHOUT",
                    resource_type="text",
                    contact="Text SHOUT to 85258",
                    description="Text-based mental health support.",
                ),
            ),
        ),
    }

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """
        Initialize directory.

        Args:
            config_path: Optional JSON file with additional jurisdictions

        Raises:
            InvalidConfigError: If the file exists but cannot be parsed
        """
        self._resources = dict(self.BUILT_IN_RESOURCES)
        if config_path is not None:
            self._load_config(Path(config_path))

    def _load_config(self, config_path: Path) -> None:
        try:
            with open(config_path, encoding="utf-8") as f:
                data = json.load(f)

            for country_code, country_data in data.items():
                self._resources[country_code] = JurisdictionResources(
                    country_code=country_code,
                    country_name=country_data.get("country_name", country_code),
                    emergency_number=country_data.get("emergency_number", ""),
                    resources=tuple(
                        CrisisResource(**resource)
                        for resource in country_data.get("resources", [])
                    ),
                )
        except (OSError, ValueError, TypeError, AttributeError) as e:
            raise InvalidConfigError(f"Cannot load crisis resources from {config_path}: {e}") from e

        logger.info(
            "Loaded crisis resources config",
            path=str(config_path),
            jurisdiction_count=len(data),
        )

    def get_resources(self, country_code: str) -> JurisdictionResources:
        """
        Get resources for a country, falling back to international ones.

        Args:
            country_code: ISO country code (e.g., "US", "GB")
        """
        resources = self._resources.get(country_code.upper())
        if resources is not None:
            return resources

        logger.warning("No resources for jurisdiction, using default", country_code=country_code)
        return self.DEFAULT_RESOURCES

    def list_supported_countries(self) -> list[str]:
        return list(self._resources.keys())
