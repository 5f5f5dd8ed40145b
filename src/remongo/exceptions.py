"""Custom exception hierarchy for remongo."""

from __future__ import annotations


class RemongoError(Exception):
    """Base exception for all remongo errors."""


class RemongoConfigError(RemongoError):
    """Invalid or missing configuration."""


class RemongoStoreError(RemongoError):
    """A document store call failed (network, validation, driver error).

    The engine does not retry; partially applied layers are not rolled back.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str = "",
        db: str = "",
        collection: str = "",
    ) -> None:
        self.operation = operation
        self.db = db
        self.collection = collection
        super().__init__(message)
