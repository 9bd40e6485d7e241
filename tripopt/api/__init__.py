"""api: thin FastAPI adapter over the optimization pipeline."""
