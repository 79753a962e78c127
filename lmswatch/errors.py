"""
Exception types shared across the project.

- ValidationError: a required option is empty (raised before any I/O)
- NotInitializedError: an operation ran before its prerequisite step
"""

from __future__ import annotations


class LmsWatchError(Exception):
    """Base class for all errors raised by lmswatch itself."""


class ValidationError(LmsWatchError):
    def __init__(self, option: str, reason: str = "must not be empty") -> None:
        self.option = option
        super().__init__(f"Option {option!r} {reason}")


class NotInitializedError(LmsWatchError):
    def __init__(self, resource: str) -> None:
        self.resource = resource
        super().__init__(f"{resource} is not initialized")
