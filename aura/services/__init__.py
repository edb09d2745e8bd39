"""Session-scoped services."""
