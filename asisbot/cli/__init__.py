"""CLI module for asisbot."""
