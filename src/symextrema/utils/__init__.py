"""Logging, IO and expression-parsing helpers."""
