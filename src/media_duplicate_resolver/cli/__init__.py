"""Command line interface for media duplicate resolver."""
