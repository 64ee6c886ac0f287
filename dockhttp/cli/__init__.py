"""Command-line interface for dockhttp."""
