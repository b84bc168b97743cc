"""CalmCompanion services package."""
