"""Logging helpers for dockhttp."""
