"""Command line interface for bintally."""
