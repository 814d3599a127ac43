"""Prompt text for the extraction service."""
