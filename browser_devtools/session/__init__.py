"""Browser session lifecycle: manager, idle timer and scenario hooks."""
