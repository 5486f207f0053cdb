"""Polling and size helpers."""
