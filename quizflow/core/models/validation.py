"""Validation result models shared by the allocation and graph checks.

Issues carry a severity: ERROR blocks export/sampling of the affected node,
WARNING is advisory only. Neither ever aborts a resolution pass.
"""

from enum import Enum

from pydantic import BaseModel, Field


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ValidationIssue(BaseModel):
    """A single problem found in a node, an edge or the graph as a whole."""

    severity: Severity
    category: str = Field(description="Machine-readable issue category, e.g. TOTAL_MISMATCH")
    location: str = Field(description="Node id, edge id, or 'graph'")
    message: str
    suggestion: str | None = None
    value: float | None = Field(
        default=None, description="Numeric detail, e.g. the signed delta to the target"
    )


class ValidationResult(BaseModel):
    """Ordered collection of validation issues."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not any(i.severity == Severity.ERROR for i in self.issues)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def message(self) -> str:
        """First error message, else first warning, else empty string."""
        if self.errors:
            return self.errors[0].message
        if self.warnings:
            return self.warnings[0].message
        return ""

    def add_error(
        self,
        category: str,
        location: str,
        message: str,
        suggestion: str | None = None,
        value: float | None = None,
    ) -> None:
        self.issues.append(
            ValidationIssue(
                severity=Severity.ERROR,
                category=category,
                location=location,
                message=message,
                suggestion=suggestion,
                value=value,
            )
        )

    def add_warning(
        self,
        category: str,
        location: str,
        message: str,
        suggestion: str | None = None,
        value: float | None = None,
    ) -> None:
        self.issues.append(
            ValidationIssue(
                severity=Severity.WARNING,
                category=category,
                location=location,
                message=message,
                suggestion=suggestion,
                value=value,
            )
        )

    def merge(self, other: "ValidationResult") -> None:
        self.issues.extend(other.issues)
