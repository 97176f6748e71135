"""CLI module for anchor."""
