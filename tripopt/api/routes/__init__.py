"""api/routes: HTTP route modules."""
