"""modules: optimization components (resilience, planning, tools, validation, observability)."""
