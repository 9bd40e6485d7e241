"""modules/observability: structured JSONL event log."""
