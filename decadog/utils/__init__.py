"""Logging, retry and prompt helpers."""
