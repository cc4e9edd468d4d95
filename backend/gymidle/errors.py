"""Error taxonomy shared by the progression service and the HTTP adapter."""

from __future__ import annotations

from typing import Any, Dict, Optional


class GameError(Exception):
    """Base class for every error the core surfaces to callers."""

    code = "game_error"
    retryable = False

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(GameError):
    """Malformed action payload. Raised before any state is read."""

    code = "validation_error"


class PreconditionError(GameError):
    """A game rule rejected the action; ``condition`` names the unmet rule."""

    code = "precondition_failed"

    def __init__(self, condition: str, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        merged = {"condition": condition, **(details or {})}
        super().__init__(message, details=merged)
        self.condition = condition


class NotFoundError(GameError):
    code = "not_found"


class ConcurrencyConflictError(GameError):
    code = "concurrency_conflict"
    retryable = True


class InternalError(GameError):
    code = "internal_error"


__all__ = [
    "ConcurrencyConflictError",
    "GameError",
    "InternalError",
    "NotFoundError",
    "PreconditionError",
    "ValidationError",
]
