"""
Error taxonomy for the QC stores.

NotFoundError and PrecheckFailedError surface to the caller. Failures of
secondary side effects (notifications, photo analysis during deficiency
creation) are logged and swallowed by the stores and never reach this module.
"""
from typing import Any, Dict, Iterable, Optional


class QCError(Exception):
    """Base exception for all QC tracker errors."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class NotFoundError(QCError):
    status_code = 404

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found", {"entity": entity, "id": entity_id})
        self.entity = entity
        self.entity_id = entity_id


class PrecheckFailedError(QCError):
    """Validation failed before any mutation; the store is unchanged."""

    status_code = 409


class PrerequisiteNotMetError(PrecheckFailedError):
    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__(
            "Prerequisites must be completed before scheduling this inspection",
            {"missing": self.missing},
        )


class InitializationError(QCError):
    status_code = 500


class BackingStoreError(QCError):
    status_code = 502

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message, {"code": code} if code else None)
        self.code = code
