"""
CalmCompanion Infrastructure Layer

Observability integrations. Domain services only ever call the
track_* helpers and never depend on the metrics backend directly.
"""
