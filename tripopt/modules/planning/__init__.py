"""modules/planning: normalization, selection, scheduling and scoring."""
