"""Error kinds raised or reported by a reconciliation cycle."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    PROVISION = "provision_failure"
    RECREATE = "recreate_failure"
    APPLY = "apply_failure"


class ReconcileError(Exception):
    """Base class; every error is terminal for the current cycle."""

    kind: ErrorKind = ErrorKind.PROVISION

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}


class ValidationError(ReconcileError):
    kind = ErrorKind.VALIDATION


class ProvisionFailure(ReconcileError):
    kind = ErrorKind.PROVISION


class RecreateFailure(ProvisionFailure):
    """The previous cluster was deleted but the replacement could not be created."""

    kind = ErrorKind.RECREATE

    def __init__(self, name: str, cause: str) -> None:
        super().__init__(f"cluster {name} was deleted but recreate failed, recreate required: {cause}")
        self.name = name
        self.cause = cause


class ApplyFailure(ReconcileError):
    kind = ErrorKind.APPLY

    def __init__(self, message: str, output: Optional[str] = None) -> None:
        full = f"{message}\n{output}" if output else message
        super().__init__(full)
        self.output = output or ""
