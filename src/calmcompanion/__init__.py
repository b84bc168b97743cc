"""
CalmCompanion - Guided Self-Triage and Intervention Core

This package provides the triage-to-intervention orchestration for
the CalmCompanion platform: a severity assessment, an intervention
router, timed guided exercises, serialized voice narration and an
emergency-contact escalation workflow.

IMPORTANT: The severity heuristic carries no claim of clinical validity.
Emergency alert delivery depends on external notifier integrations.
"""

__version__ = "0.1.0"
__author__ = "CalmCompanion Engineering Team"
