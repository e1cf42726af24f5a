"""Parameter descriptors for skills.

A skill declares its inputs as an ordered mapping of ``Param`` descriptors.
From that mapping this module derives two things:

* the JSON-Schema object offered to the model (``to_json_schema``), and
* a validator that turns raw model-supplied arguments into clean keyword
  arguments for the skill executor (``validate_params``).

Exported schemas depend only on declaration order and descriptor values, so
the same skill always serializes to the same bytes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from benchmate.exceptions import ValidationError


class ParamKind(str, Enum):
    """Value kinds a skill parameter can declare."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING_ARRAY = "string_array"
    OBJECT = "object"


# Kinds missing here (currently OBJECT) are offered to the model as strings.
_JSON_TYPES: dict[ParamKind, dict[str, Any]] = {
    ParamKind.STRING: {"type": "string"},
    ParamKind.NUMBER: {"type": "number"},
    ParamKind.BOOLEAN: {"type": "boolean"},
    ParamKind.STRING_ARRAY: {"type": "array", "items": {"type": "string"}},
}

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


@dataclass(frozen=True)
class Param:
    """Declarative description of one skill parameter.

    Args:
        kind: Value kind
        description: Human-readable text shown to the model
        optional: Parameter may be omitted
        coerce: Accept textual numbers/booleans (``"5"``, ``"true"``)
    """

    kind: ParamKind = ParamKind.STRING
    description: str = ""
    optional: bool = False
    coerce: bool = False


def to_json_schema(parameters: Mapping[str, Param]) -> dict[str, Any]:
    """Translate parameter descriptors into a JSON-Schema object."""
    properties: dict[str, Any] = {}
    required: list[str] = []

    for key, param in parameters.items():
        prop = dict(_JSON_TYPES.get(param.kind, {"type": "string"}))
        if prop.get("items"):
            prop["items"] = dict(prop["items"])
        if param.description:
            prop["description"] = param.description
        properties[key] = prop
        if not param.optional:
            required.append(key)

    return {
        "type": "object",
        "properties": properties,
        "required": required,
    }


def _type_label(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _coerce_value(param: Param, value: Any) -> Any:
    """Return the validated value or raise ValueError with a short reason."""
    kind = param.kind

    if kind == ParamKind.STRING:
        if isinstance(value, str):
            return value
        if param.coerce and isinstance(value, (int, float, bool)):
            return str(value)
        raise ValueError(f"expected string, received {_type_label(value)}")

    if kind == ParamKind.NUMBER:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        if param.coerce and isinstance(value, str):
            text = value.strip()
            try:
                return int(text)
            except ValueError:
                pass
            try:
                return float(text)
            except ValueError:
                raise ValueError(f"expected number, received {value!r}") from None
        raise ValueError(f"expected number, received {_type_label(value)}")

    if kind == ParamKind.BOOLEAN:
        if isinstance(value, bool):
            return value
        if param.coerce:
            if isinstance(value, (int, float)):
                return bool(value)
            if isinstance(value, str):
                lowered = value.strip().lower()
                if lowered in _TRUE_STRINGS:
                    return True
                if lowered in _FALSE_STRINGS:
                    return False
                raise ValueError(f"expected boolean, received {value!r}")
        raise ValueError(f"expected boolean, received {_type_label(value)}")

    if kind == ParamKind.STRING_ARRAY:
        if isinstance(value, (list, tuple)):
            items = list(value)
            bad = [idx for idx, item in enumerate(items) if not isinstance(item, str)]
            if bad:
                raise ValueError(f"item {bad[0]} expected string, received {_type_label(items[bad[0]])}")
            return items
        raise ValueError(f"expected array, received {_type_label(value)}")

    if kind == ParamKind.OBJECT:
        if isinstance(value, dict):
            return value
        # The model only sees this as a string, so accept JSON text.
        if isinstance(value, str) and value.strip().startswith("{"):
            try:
                parsed = json.loads(value)
            except json.JSONDecodeError:
                raise ValueError("expected object, received invalid JSON string") from None
            if isinstance(parsed, dict):
                return parsed
        raise ValueError(f"expected object, received {_type_label(value)}")

    return value


def validate_params(parameters: Mapping[str, Param], raw: Any) -> dict[str, Any]:
    """Validate raw arguments against parameter descriptors.

    Undeclared keys are dropped and ``None`` counts as absent.

    Raises:
        ValidationError: listing every problem found
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ValidationError([f"expected object, received {_type_label(raw)}"])

    clean: dict[str, Any] = {}
    problems: list[str] = []

    for key, param in parameters.items():
        value = raw.get(key)
        if value is None:
            if not param.optional:
                problems.append(f"{key}: required")
            continue
        try:
            clean[key] = _coerce_value(param, value)
        except ValueError as e:
            problems.append(f"{key}: {e}")

    if problems:
        raise ValidationError(problems)
    return clean
