"""Validation issue model: structured findings about a node graph."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Severity(Enum):
    """Severity level for a validation issue."""

    FATAL = "FATAL"
    ERROR = "ERROR"
    WARNING = "WARNING"


@dataclass(frozen=True)
class ValidationIssue:
    """A single finding about a node graph or its embeds.

    Attributes:
        severity: How serious the issue is. FATAL issues block the paste,
            ERROR issues need repair, WARNING issues are informational.
        code: Machine-readable identifier, e.g. ``DUPLICATE_ID``.
        message: Human-readable description of the problem.
        node_id: The node (or style) involved, if applicable.
        context: Extra location detail such as a style name or embed kind.
        fix: Suggested remediation, if available.
    """

    severity: Severity
    code: str
    message: str
    node_id: str | None = None
    context: str | None = None
    fix: str | None = None

    @property
    def is_fatal(self) -> bool:
        return self.severity is Severity.FATAL

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    @property
    def is_warning(self) -> bool:
        return self.severity is Severity.WARNING

    @property
    def needs_repair(self) -> bool:
        return self.severity in (Severity.FATAL, Severity.ERROR)

    def to_dict(self) -> dict:
        data = {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
        }
        for key in ("node_id", "context", "fix"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    def __str__(self) -> str:
        location = ""
        if self.node_id:
            location = f" [node={self.node_id}]"
        elif self.context:
            location = f" [{self.context}]"
        return f"{self.severity.value} {self.code}{location}: {self.message}"
