"""Domain exceptions for catalog, storage, and CLI diagnostics."""

from __future__ import annotations


class CatalogStageError(RuntimeError):
    """Raised when a specific catalog stage fails in a user-visible way."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped catalog error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class StoreError(RuntimeError):
    """Raised when a local store read or write cannot be completed."""


class StoreClosedError(StoreError):
    """Raised when an operation is attempted on a closed local store."""
