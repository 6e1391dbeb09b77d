from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

import orjson

from domain.diagnostics import (
    ELEMENT,
    REFERENCE,
    STRUCTURAL,
    Diagnostic,
    ValidationResult,
    ValidationSummary,
)
from domain.schema import (
    DOCUMENT_TYPE,
    KNOWN_ELEMENT_TYPES,
    LINEAR_TYPES,
    MISSING,
    NUMERIC_FIELDS,
    OPACITY_RANGE,
    REQUIRED_BASE_FIELDS,
    REQUIRED_TEXT_FIELDS,
    TEXT_FIELD_HINTS,
    VALID_FILL_STYLES,
    VALID_STROKE_STYLES,
    VALID_TEXT_ALIGN,
    VALID_VERTICAL_ALIGN,
)

Element = Mapping[str, Any]


def describe_type(value: Any) -> str:
    """Name a decoded JSON value's type the way the diagnostics report it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_object(value: Any) -> bool:
    return isinstance(value, Mapping)


def _is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _json_text(value: Any) -> str:
    try:
        return orjson.dumps(value).decode("utf-8")
    except TypeError:
        return json.dumps(value, ensure_ascii=True, default=repr)


def _is_member(value: Any, allowed: Sequence[str]) -> bool:
    return isinstance(value, str) and value in allowed


class ExcalidrawValidator:
    """Three-tier validator for raw Excalidraw scene payloads.

    Tier 1 gates everything else. Tier 2 and tier 3 both run once tier 1 has
    passed; tier 2 errors decide ``valid`` while tier 3 only adds warnings.
    """

    def validate(self, data: Any) -> ValidationResult:
        structural = self._validate_structure(data)
        if structural:
            return ValidationResult.structural_failure(structural)

        elements: list[Any] = list(data["elements"])
        files: Mapping[str, Any] = data["files"]

        errors: list[Diagnostic] = []
        failing_indexes: set[int] = set()
        for index, element in enumerate(elements):
            element_errors = self._validate_element(index, element, files)
            if element_errors:
                failing_indexes.add(index)
                errors.extend(element_errors)

        warnings = self._validate_references(elements)
        total = len(elements)
        return ValidationResult(
            valid=not errors,
            errors=errors,
            warnings=warnings,
            summary=ValidationSummary(
                total_elements=total,
                valid_elements=total - len(failing_indexes),
                error_count=len(errors),
                warning_count=len(warnings),
            ),
        )

    # --- tier 1 ---

    def _validate_structure(self, data: Any) -> list[Diagnostic]:
        if not _is_object(data):
            return [
                Diagnostic(
                    level=STRUCTURAL,
                    path="$",
                    got=describe_type(data),
                    expected="object",
                    fix=(
                        'the file must contain a JSON object with "type", "elements", '
                        '"appState", and "files" fields'
                    ),
                )
            ]

        errors: list[Diagnostic] = []
        if data.get("type") != DOCUMENT_TYPE:
            raw_type = data.get("type")
            errors.append(
                Diagnostic(
                    level=STRUCTURAL,
                    path="$.type",
                    field="type",
                    got=MISSING if raw_type is None else raw_type,
                    expected=DOCUMENT_TYPE,
                    fix=f'set "type" to "{DOCUMENT_TYPE}"',
                )
            )
        if not _is_array(data.get("elements")):
            errors.append(
                self._structural_field_error(
                    data,
                    "elements",
                    expected="array",
                    fix='add "elements" field as an array of element objects',
                )
            )
        if not _is_object(data.get("appState")):
            errors.append(
                self._structural_field_error(
                    data,
                    "appState",
                    expected="object",
                    fix=(
                        'add "appState" field as an object, '
                        'e.g. {"viewBackgroundColor": "#ffffff"}'
                    ),
                )
            )
        if not _is_object(data.get("files")):
            errors.append(
                self._structural_field_error(
                    data,
                    "files",
                    expected="object",
                    fix='add "files" field as an object (can be empty: {})',
                )
            )
        return errors

    def _structural_field_error(
        self,
        data: Mapping[str, Any],
        field: str,
        *,
        expected: str,
        fix: str,
    ) -> Diagnostic:
        got = describe_type(data[field]) if field in data else MISSING
        return Diagnostic(
            level=STRUCTURAL,
            path=f"$.{field}",
            field=field,
            got=got,
            expected=expected,
            fix=fix,
        )

    # --- tier 2 ---

    def _validate_element(
        self,
        index: int,
        element: Any,
        files: Mapping[str, Any],
    ) -> list[Diagnostic]:
        prefix = f"$.elements[{index}]"
        if not _is_object(element):
            return [
                Diagnostic(
                    level=ELEMENT,
                    path=prefix,
                    got=describe_type(element),
                    expected="object",
                    fix=f"replace element at index {index} with an element object",
                )
            ]

        checker = _ElementChecker(prefix, index, element)
        checker.check_required_fields()
        checker.check_type()
        checker.check_numeric_fields()
        checker.check_opacity()
        checker.check_enum("strokeStyle", VALID_STROKE_STYLES)
        checker.check_enum("fillStyle", VALID_FILL_STYLES)

        element_type = element.get("type")
        if element_type == "text":
            checker.check_text()
        elif element_type in LINEAR_TYPES:
            checker.check_points()
        elif element_type == "image":
            checker.check_image_file(files)
        return checker.errors

    # --- tier 3 ---

    def _validate_references(self, elements: list[Any]) -> list[Diagnostic]:
        element_ids = {
            element.get("id")
            for element in elements
            if _is_object(element) and isinstance(element.get("id"), str)
        }
        seen_ids: set[str] = set()
        warnings: list[Diagnostic] = []

        for index, element in enumerate(elements):
            if not _is_object(element):
                continue
            prefix = f"$.elements[{index}]"
            element_id = element.get("id")
            element_type = element.get("type")

            if isinstance(element_id, str):
                if element_id in seen_ids:
                    warnings.append(
                        Diagnostic(
                            level=REFERENCE,
                            path=f"{prefix}.id",
                            element_id=element_id,
                            element_type=element_type,
                            field="id",
                            got=element_id,
                            expected="unique element id",
                            fix=(
                                f'element id "{element_id}" is used by more than one element; '
                                "give each element its own id so references resolve unambiguously"
                            ),
                        )
                    )
                seen_ids.add(element_id)

            bound_elements = element.get("boundElements")
            if _is_array(bound_elements):
                for bound_index, bound in enumerate(bound_elements):
                    if not _is_object(bound):
                        continue
                    bound_id = bound.get("id")
                    if bound_id and not _resolves(bound_id, element_ids):
                        warnings.append(
                            Diagnostic(
                                level=REFERENCE,
                                path=f"{prefix}.boundElements[{bound_index}].id",
                                element_id=element_id,
                                element_type=element_type,
                                field="boundElements",
                                got=bound_id,
                                expected="existing element id",
                                fix=(
                                    f'element "{bound_id}" referenced in boundElements does not '
                                    "exist. Either add it or remove this entry"
                                ),
                            )
                        )

            container_id = element.get("containerId")
            if container_id and not _resolves(container_id, element_ids):
                warnings.append(
                    Diagnostic(
                        level=REFERENCE,
                        path=f"{prefix}.containerId",
                        element_id=element_id,
                        element_type=element_type,
                        field="containerId",
                        got=container_id,
                        expected="existing element id",
                        fix=(
                            f'container element "{container_id}" does not exist. '
                            "Either add it or set containerId to null"
                        ),
                    )
                )

            if element_type == "arrow":
                for side in ("startBinding", "endBinding"):
                    binding = element.get(side)
                    if not _is_object(binding):
                        continue
                    target_id = binding.get("elementId")
                    if target_id and not _resolves(target_id, element_ids):
                        warnings.append(
                            Diagnostic(
                                level=REFERENCE,
                                path=f"{prefix}.{side}.elementId",
                                element_id=element_id,
                                element_type=element_type,
                                field=side,
                                got=target_id,
                                expected="existing element id",
                                fix=(
                                    f'{side} references element "{target_id}" which does not '
                                    f"exist. Either add it or set {side} to null"
                                ),
                            )
                        )
        return warnings


def _resolves(reference: Any, element_ids: set[str]) -> bool:
    return isinstance(reference, str) and reference in element_ids


class _ElementChecker:
    def __init__(self, prefix: str, index: int, element: Element) -> None:
        self.prefix = prefix
        self.element = element
        self.element_id = element.get("id")
        self.element_type = element.get("type")
        self.description = f'"{self.element_id}"' if self.element_id else f"index {index}"
        self.errors: list[Diagnostic] = []

    def _add(
        self,
        field: str,
        got: Any,
        expected: str | list[str],
        fix: str,
        path: str = "",
    ) -> None:
        self.errors.append(
            Diagnostic(
                level=ELEMENT,
                path=path or f"{self.prefix}.{field}",
                element_id=self.element_id,
                element_type=self.element_type,
                field=field,
                got=got,
                expected=expected,
                fix=fix,
            )
        )

    def _value(self, field: str) -> Any:
        return self.element.get(field)

    def check_required_fields(self) -> None:
        for field in REQUIRED_BASE_FIELDS:
            if self._value(field) is None:
                expected: str | list[str] = (
                    list(KNOWN_ELEMENT_TYPES) if field == "type" else "required field"
                )
                self._add(
                    field,
                    MISSING,
                    expected,
                    f'add "{field}" field to element {self.description}',
                )

    def check_type(self) -> None:
        element_type = self.element_type
        if element_type is None or _is_member(element_type, KNOWN_ELEMENT_TYPES):
            return
        self._add(
            "type",
            element_type,
            list(KNOWN_ELEMENT_TYPES),
            f"change type to one of: {', '.join(KNOWN_ELEMENT_TYPES)}",
        )

    def check_numeric_fields(self) -> None:
        for field in NUMERIC_FIELDS:
            value = self._value(field)
            if value is None or is_number(value):
                continue
            self._add(
                field,
                f"{describe_type(value)} ({_json_text(value)})",
                "number",
                f'change "{field}" to a number value',
            )

    def check_opacity(self) -> None:
        opacity = self._value("opacity")
        low, high = OPACITY_RANGE
        if not is_number(opacity) or low <= opacity <= high:
            return
        self._add(
            "opacity",
            opacity,
            f"number in [{low},{high}]",
            f"set opacity to a value between {low} and {high} (got {opacity})",
        )

    def check_enum(self, field: str, allowed: Sequence[str]) -> None:
        value = self._value(field)
        if value is None or _is_member(value, allowed):
            return
        self._add(
            field,
            value,
            list(allowed),
            f"change {field} to one of: {', '.join(allowed)}",
        )

    def check_text(self) -> None:
        for field in REQUIRED_TEXT_FIELDS:
            if self._value(field) is not None:
                continue
            self._add(
                field,
                MISSING,
                "string" if field == "text" else "number > 0",
                f"add {TEXT_FIELD_HINTS[field]} to text element {self.description}",
            )
        self.check_enum("textAlign", VALID_TEXT_ALIGN)
        self.check_enum("verticalAlign", VALID_VERTICAL_ALIGN)

    def check_points(self) -> None:
        points = self._value("points")
        if not _is_array(points):
            self._add(
                "points",
                MISSING if points is None else describe_type(points),
                "array of [x, y] pairs",
                'add "points" as array of [x, y] pairs, e.g. [[0, 0], [100, 50]]',
            )
            return
        for point_index, point in enumerate(points):
            if _is_array(point) and len(point) >= 2 and is_number(point[0]) and is_number(point[1]):
                continue
            self._add(
                "points",
                _json_text(point),
                "[number, number]",
                f"fix points[{point_index}] to be [x, y] pair of numbers",
                path=f"{self.prefix}.points[{point_index}]",
            )

    def check_image_file(self, files: Mapping[str, Any]) -> None:
        file_id = self._value("fileId")
        expected = "string (file ID referencing files object)"
        if not file_id:
            self._add(
                "fileId",
                MISSING,
                expected,
                'add "fileId" field referencing an entry in the "files" object',
            )
            return
        if not isinstance(file_id, str):
            self._add(
                "fileId",
                describe_type(file_id),
                expected,
                'change "fileId" to the string key of an entry in the "files" object',
            )
            return
        if files.get(file_id):
            return
        available = ", ".join(str(key) for key in files) or "none"
        self._add(
            "fileId",
            file_id,
            f"existing key in files object (available: {available})",
            (
                f'add file entry with id "{file_id}" to the "files" object '
                "with mimeType and dataURL"
            ),
        )


def validate_excalidraw(data: Any) -> ValidationResult:
    return ExcalidrawValidator().validate(data)
