"""Centralized exceptions for the Haven archive viewer."""


class HavenViewerError(Exception):
    """Base exception for all haven-viewer errors."""
