"""Command-line interface for browser-devtools."""
