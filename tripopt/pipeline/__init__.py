"""pipeline: staged optimization orchestrator."""
