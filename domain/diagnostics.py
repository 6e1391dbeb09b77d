from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DiagnosticLevel = Literal["L1", "L2", "L3"]

STRUCTURAL: DiagnosticLevel = "L1"
ELEMENT: DiagnosticLevel = "L2"
REFERENCE: DiagnosticLevel = "L3"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Diagnostic(_CamelModel):
    level: DiagnosticLevel
    path: str
    element_id: Any = None
    element_type: Any = None
    field: str | None = None
    got: Any
    expected: str | list[str]
    fix: str


class ValidationSummary(_CamelModel):
    total_elements: int = 0
    valid_elements: int = 0
    error_count: int = 0
    warning_count: int = 0


class ValidationResult(_CamelModel):
    valid: bool
    errors: list[Diagnostic] = Field(default_factory=list)
    warnings: list[Diagnostic] = Field(default_factory=list)
    summary: ValidationSummary = ValidationSummary()

    @property
    def structural_errors(self) -> list[Diagnostic]:
        return [error for error in self.errors if error.level == STRUCTURAL]

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def structural_failure(cls, errors: list[Diagnostic]) -> ValidationResult:
        return cls(
            valid=False,
            errors=errors,
            warnings=[],
            summary=ValidationSummary(error_count=len(errors)),
        )
