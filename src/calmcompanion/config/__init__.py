"""
CalmCompanion Configuration Module

Provides centralized configuration management with:
- Environment-based settings loading
- Validation of timing and escalation values
- Secure handling of secrets
"""

from calmcompanion.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
