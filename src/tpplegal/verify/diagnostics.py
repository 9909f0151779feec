#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from dataclasses import dataclass, field
from enum import Enum
import logging

__all__ = [
    "ErrorKind",
    "VerificationError",
    "ShapeMismatch",
    "LayoutUnknown",
    "DegenerateLayout",
    "NonUnitInnerStride",
    "Verdict",
    "Diagnostic",
    "DiagnosticEngine",
]

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    SHAPE_MISMATCH = "ShapeMismatch"
    LAYOUT_UNKNOWN = "LayoutUnknown"
    DEGENERATE_LAYOUT = "DegenerateLayout"
    NON_UNIT_INNER_STRIDE = "NonUnitInnerStride"


class VerificationError(Exception):
    """Base of the verification failures, carries the failing operand."""

    kind: ErrorKind

    def __init__(self, message: str, operand: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.operand = operand


class ShapeMismatch(VerificationError):
    kind = ErrorKind.SHAPE_MISMATCH


class LayoutUnknown(VerificationError):
    kind = ErrorKind.LAYOUT_UNKNOWN


class DegenerateLayout(VerificationError):
    kind = ErrorKind.DEGENERATE_LAYOUT


class NonUnitInnerStride(VerificationError):
    kind = ErrorKind.NON_UNIT_INNER_STRIDE


_ERRORS: dict[ErrorKind, type[VerificationError]] = {
    cls.kind: cls
    for cls in (ShapeMismatch, LayoutUnknown, DegenerateLayout, NonUnitInnerStride)
}


@dataclass(frozen=True)
class Verdict:
    """Result of a verifier: compatible, or incompatible with a reason."""

    error: ErrorKind | None = None
    message: str = ""
    operand: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls) -> "Verdict":
        return cls()

    @classmethod
    def failure(
        cls, error: ErrorKind, message: str, operand: int | None = None
    ) -> "Verdict":
        return cls(error=error, message=message, operand=operand)

    def raise_if_failed(self) -> None:
        if self.error is not None:
            raise _ERRORS[self.error](self.message, operand=self.operand)


@dataclass(frozen=True)
class Diagnostic:
    kind: ErrorKind
    message: str
    operand: int | None = None
    location: str = ""

    def __str__(self) -> str:
        loc = f"{self.location}: " if self.location else ""
        return f"{loc}error: {self.message}"


@dataclass
class DiagnosticEngine:
    """Collects the diagnostics emitted by verifiers."""

    diagnostics: list[Diagnostic] = field(default_factory=list)

    def emit(self, diag: Diagnostic) -> None:
        logger.warning("%s", diag)
        self.diagnostics.append(diag)

    def emit_verdict(self, verdict: Verdict, location: str = "") -> None:
        assert verdict.error is not None
        self.emit(
            Diagnostic(
                kind=verdict.error,
                message=verdict.message,
                operand=verdict.operand,
                location=location,
            )
        )

    @property
    def has_errors(self) -> bool:
        return len(self.diagnostics) > 0

    def clear(self) -> None:
        self.diagnostics.clear()
