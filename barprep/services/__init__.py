"""Domain services: provider adapter, orchestration, analytics."""
