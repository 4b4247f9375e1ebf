"""Error records and the per-call error container.

Every public load/save/mutate call gets its own `ErrorContainer`. Core code
reports fatal problems by raising `DocumentError` (which carries an
`ErrorKind`); the lifecycle boundary converts it into a record. Collaborators
may also record errors or warnings directly and keep going.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator


class ErrorKind(str, Enum):
    MISSING_MANDATORY_SHARD = "MissingMandatoryShard"
    CONSISTENCY_VIOLATION = "ConsistencyViolation"
    TEMPLATE_PARSE_FAILURE = "TemplateParseFailure"
    UNSUPPORTED_MUTATION = "UnsupportedMutation"
    INVALID_SOURCE_TREE = "InvalidSourceTree"
    INTERNAL_ERROR = "InternalError"


@dataclass(frozen=True)
class ErrorRecord:
    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class DocumentError(Exception):
    """Fatal document problem of a known kind.

    Raised inside core code; never crosses a public call boundary.
    """

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class ErrorContainer:
    """Ordered errors and warnings collected during a single call."""

    def __init__(self) -> None:
        self._errors: list[ErrorRecord] = []
        self._warnings: list[str] = []

    @property
    def has_errors(self) -> bool:
        return bool(self._errors)

    @property
    def errors(self) -> tuple[ErrorRecord, ...]:
        return tuple(self._errors)

    @property
    def warnings(self) -> tuple[str, ...]:
        return tuple(self._warnings)

    def add(self, kind: ErrorKind, message: str) -> ErrorRecord:
        record = ErrorRecord(kind, message)
        self._errors.append(record)
        return record

    def warn(self, message: str) -> None:
        self._warnings.append(message)

    def kinds(self) -> list[ErrorKind]:
        return [e.kind for e in self._errors]

    # ----------------------------
    # Per-kind helpers
    # ----------------------------

    def missing_mandatory_shard(self, message: str) -> ErrorRecord:
        return self.add(ErrorKind.MISSING_MANDATORY_SHARD, message)

    def consistency_violation(self, message: str) -> ErrorRecord:
        return self.add(ErrorKind.CONSISTENCY_VIOLATION, message)

    def template_parse_failure(self, message: str) -> ErrorRecord:
        return self.add(ErrorKind.TEMPLATE_PARSE_FAILURE, message)

    def unsupported_mutation(self, message: str) -> ErrorRecord:
        return self.add(ErrorKind.UNSUPPORTED_MUTATION, message)

    def internal_error(self, exc: BaseException) -> ErrorRecord:
        return self.add(ErrorKind.INTERNAL_ERROR, f"{type(exc).__name__}: {exc}")

    def __iter__(self) -> Iterator[ErrorRecord]:
        return iter(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        # An empty container is still a valid result object.
        return True

    def __str__(self) -> str:
        if not self._errors:
            return "no errors"
        return "\n".join(str(e) for e in self._errors)
