"""
models/mapping.py
-----------------
Typed data models for per database-pair object mapping rules.

A rule is looked up by ``MappingKey(source_db, target_db, object_type)`` and
describes how an object is reshaped when it moves between two engines.

Design Decision:
    Using ``@dataclass`` and ``Enum`` instead of plain dicts ensures:
    * A single source of truth for the known transform kinds.
    * Easy serialisation / deserialisation with explicit to_dict / from_dict
      methods, so extra rules can live in a JSON file next to the engine.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from models.database import DatabaseType, ObjectType


class TransformKind(str, Enum):
    """Transform kinds understood by the object mapper."""
    RENAME = "rename"
    FORMAT = "format"
    CONVERT = "convert"
    SPLIT = "split"
    MERGE = "merge"


@dataclass(frozen=True)
class MappingKey:
    """Lookup key of a mapping rule."""
    source_db: DatabaseType
    target_db: DatabaseType
    object_type: ObjectType

    def __str__(self) -> str:
        return f"{self.source_db.value}:{self.target_db.value}:{self.object_type.value}"

    @staticmethod
    def parse(raw: str) -> "MappingKey":
        """
        Parse ``"postgres:mysql:table"`` into a key.

        Raises:
            ValueError: If the string is malformed or names unknown ids.
        """
        parts = raw.split(":")
        if len(parts) != 3:
            raise ValueError(f"Invalid mapping key '{raw}': expected 'source:target:object_type'")
        return MappingKey(
            source_db=DatabaseType(parts[0]),
            target_db=DatabaseType(parts[1]),
            object_type=ObjectType(parts[2]),
        )


@dataclass
class TransformRule:
    """
    One field-level transform.

    ``kind`` is kept as a plain string: kinds outside :class:`TransformKind`
    are carried through serialisation and ignored by the mapper.
    """
    source_field: str
    target_field: str
    kind: str
    parameters: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_field": self.source_field,
            "target_field": self.target_field,
            "transform_type": self.kind,
            "parameters": self.parameters,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "TransformRule":
        return TransformRule(
            source_field=data.get("source_field", ""),
            target_field=data.get("target_field", data.get("source_field", "")),
            kind=str(data.get("transform_type", data.get("kind", ""))).lower(),
            parameters=data.get("parameters", {}),
        )


@dataclass
class MappingRule:
    """
    How one object kind is reshaped between two databases.

    Attributes:
        direct_mapping:   Pass the object through untouched.
        field_mappings:   ``source_field → target_field`` value copies.
        default_values:   Values filled in when the field is empty.
        required_fields:  Fields that must be non-empty after mapping.
        optional_fields:  Informational list of fields the target may use.
        transform_rules:  Executed in list order.
    """
    direct_mapping: bool = False
    field_mappings: dict[str, str] = field(default_factory=dict)
    default_values: dict[str, Any] = field(default_factory=dict)
    required_fields: list[str] = field(default_factory=list)
    optional_fields: list[str] = field(default_factory=list)
    transform_rules: list[TransformRule] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "direct_mapping": self.direct_mapping,
            "field_mappings": self.field_mappings,
            "default_values": self.default_values,
            "required_fields": self.required_fields,
            "optional_fields": self.optional_fields,
            "transform_rules": [t.to_dict() for t in self.transform_rules],
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "MappingRule":
        return MappingRule(
            direct_mapping=bool(data.get("direct_mapping", False)),
            field_mappings=data.get("field_mappings", {}),
            default_values=data.get("default_values", {}),
            required_fields=data.get("required_fields", []),
            optional_fields=data.get("optional_fields", []),
            transform_rules=[
                TransformRule.from_dict(t) for t in data.get("transform_rules", [])
            ],
        )


def rule_from_dict(data: Any) -> MappingRule | None:
    """
    Deserialise a single rule entry from its JSON representation.

    Handles the shorthand forms ``true`` (a direct mapping) and a bare
    ``{"old": "new"}`` dict of field mappings.

    Returns:
        A typed rule, or None if the format is unrecognised.
    """
    if data is True:
        return MappingRule(direct_mapping=True)
    if not isinstance(data, dict):
        return None
    known = {
        "direct_mapping", "field_mappings", "default_values",
        "required_fields", "optional_fields", "transform_rules",
    }
    if data and not (set(data) & known) and all(isinstance(v, str) for v in data.values()):
        return MappingRule(field_mappings=dict(data))
    return MappingRule.from_dict(data)


def load_rules_from_file(path: Path) -> dict[MappingKey, MappingRule]:
    """
    Load and deserialise all mapping rules from a JSON file.

    Args:
        path: Path to the JSON rules file (``{"source:target:kind": {...}}``).

    Returns:
        A dict of ``{MappingKey: MappingRule}``.  Empty dict if file is absent.

    Raises:
        ValueError: If the file contains invalid JSON or an invalid key.
    """
    if not path.exists():
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in mapping rules file '{path}': {exc}") from exc
    if not isinstance(raw, dict):
        raise ValueError(f"Mapping rules file '{path}' must contain a JSON object")

    result: dict[MappingKey, MappingRule] = {}
    for k, v in raw.items():
        rule = rule_from_dict(v)
        if rule is not None:
            result[MappingKey.parse(k)] = rule
    return result


def save_rules_to_file(path: Path, rules: dict[MappingKey, MappingRule]) -> None:
    """
    Serialise mapping rules to JSON and write atomically (write-then-rename).
    """
    raw = {str(k): r.to_dict() for k, r in sorted(rules.items(), key=lambda kv: str(kv[0]))}
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(raw, indent=4), encoding="utf-8")
    tmp.replace(path)
