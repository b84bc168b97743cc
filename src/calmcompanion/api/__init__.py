"""CalmCompanion HTTP API layer."""
