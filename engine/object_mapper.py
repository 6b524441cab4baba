"""
engine/object_mapper.py
-----------------------
Per database-pair reshaping of individual schema objects.

A :class:`~models.mapping.MappingRule` is looked up by (source db, target
db, object kind). Without a rule, or with ``direct_mapping`` set, objects
pass through unchanged. Rules only exist for asymmetric quirks between two
engines, e.g. PostgreSQL "owner" versus MySQL "schema".

Design Decisions:
    * Rules are data. New database pairs are added with
      :meth:`ObjectMapper.register_rule` or a JSON rules file, never by
      changing the matcher or translator.
    * A field named by a rule is an attribute of the object when the model
      has one, otherwise a key of its ``options`` dict.
    * Transform rules run in list order; unknown kinds are skipped.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from config import CONFIG
from engine.errors import MappingError
from logger import get_logger
from models.database import DatabaseType, ObjectType
from models.mapping import (
    MappingKey,
    MappingRule,
    TransformKind,
    TransformRule,
    load_rules_from_file,
)
from models.unified_model import (
    Collection,
    Constraint,
    CustomType,
    Function,
    Index,
    MaterializedView,
    Node,
    Procedure,
    Sequence,
    Table,
    Trigger,
    View,
)

log = get_logger(__name__)

ObjT = TypeVar("ObjT", bound=BaseModel)

_MISSING = object()


def default_rules() -> dict[MappingKey, MappingRule]:
    """Built-in rules for known asymmetric database-pair quirks."""
    rules: dict[MappingKey, MappingRule] = {}
    for mysql_like in (DatabaseType.MYSQL, DatabaseType.MARIADB):
        rules[MappingKey(DatabaseType.POSTGRES, mysql_like, ObjectType.TABLE)] = MappingRule(
            field_mappings={"owner": "schema"},
            default_values={"engine": "InnoDB"},
            transform_rules=[
                TransformRule("comment", "comment", TransformKind.FORMAT.value, {"max_length": 2048}),
            ],
        )
        rules[MappingKey(mysql_like, DatabaseType.POSTGRES, ObjectType.TABLE)] = MappingRule(
            field_mappings={"schema": "owner"},
        )
    rules[MappingKey(DatabaseType.MONGODB, DatabaseType.POSTGRES, ObjectType.COLLECTION)] = MappingRule(
        default_values={"comment": "Converted from MongoDB collection"},
    )
    return rules


# ---------------------------------------------------------------------------
# Field access helpers
# ---------------------------------------------------------------------------

def _has_attr(obj: BaseModel, name: str) -> bool:
    return name in type(obj).model_fields and name != "options"


def _get_field(obj: BaseModel, name: str) -> Any:
    if _has_attr(obj, name):
        return getattr(obj, name)
    return obj.options.get(name, _MISSING)


def _set_field(obj: BaseModel, name: str, value: Any) -> None:
    if _has_attr(obj, name):
        setattr(obj, name, value)
    else:
        obj.options[name] = value


def _clear_field(obj: BaseModel, name: str) -> None:
    if _has_attr(obj, name):
        default = type(obj).model_fields[name].get_default(call_default_factory=True)
        setattr(obj, name, default)
    else:
        obj.options.pop(name, None)


def _is_empty(value: Any) -> bool:
    return value is _MISSING or value is None or value == "" or value == [] or value == {}


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------

def _transform_rename(obj: BaseModel, rule: TransformRule) -> None:
    value = _get_field(obj, rule.source_field)
    if value is _MISSING:
        return
    _set_field(obj, rule.target_field, value)
    if rule.target_field != rule.source_field:
        _clear_field(obj, rule.source_field)


def _transform_format(obj: BaseModel, rule: TransformRule) -> None:
    value = _get_field(obj, rule.source_field)
    if value is _MISSING or value is None:
        return
    text = str(value)
    params = rule.parameters
    case = params.get("case")
    if case == "lower":
        text = text.lower()
    elif case == "upper":
        text = text.upper()
    text = f"{params.get('prefix', '')}{text}{params.get('suffix', '')}"
    if "max_length" in params:
        text = text[: int(params["max_length"])]
    _set_field(obj, rule.target_field, text)


_CONVERTERS: dict[str, Callable[[Any], Any]] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": lambda v: v if isinstance(v, bool) else str(v).strip().lower() in ("1", "true", "yes", "on"),
}


def _transform_convert(obj: BaseModel, rule: TransformRule) -> None:
    value = _get_field(obj, rule.source_field)
    if value is _MISSING:
        return
    params = rule.parameters
    if "map" in params:
        value = params["map"].get(str(value), value)
    if "to" in params:
        converter = _CONVERTERS.get(params["to"])
        if converter is None:
            raise ValueError(f"unknown conversion target '{params['to']}'")
        value = converter(value)
    _set_field(obj, rule.target_field, value)


def _transform_split(obj: BaseModel, rule: TransformRule) -> None:
    value = _get_field(obj, rule.source_field)
    if value is _MISSING or value is None:
        return
    separator = rule.parameters.get("separator", ".")
    targets = rule.parameters.get("targets") or [rule.target_field]
    parts = str(value).split(separator, len(targets) - 1)
    for name, part in zip(targets, parts):
        _set_field(obj, name, part)


def _transform_merge(obj: BaseModel, rule: TransformRule) -> None:
    sources = rule.parameters.get("sources") or [rule.source_field]
    separator = rule.parameters.get("separator", " ")
    values = [_get_field(obj, name) for name in sources]
    merged = separator.join(str(v) for v in values if not _is_empty(v))
    _set_field(obj, rule.target_field, merged)


_TRANSFORMS: dict[str, Callable[[BaseModel, TransformRule], None]] = {
    TransformKind.RENAME.value: _transform_rename,
    TransformKind.FORMAT.value: _transform_format,
    TransformKind.CONVERT.value: _transform_convert,
    TransformKind.SPLIT.value: _transform_split,
    TransformKind.MERGE.value: _transform_merge,
}


# ---------------------------------------------------------------------------
# Mapper
# ---------------------------------------------------------------------------

class ObjectMapper:
    """
    Applies mapping rules to Unified Model objects.

    Args:
        rules:            Extra rules, applied on top of the built-in ones.
        include_defaults: Start from :func:`default_rules`.
    """

    def __init__(
        self,
        rules: Mapping[MappingKey, MappingRule] | None = None,
        include_defaults: bool = True,
    ) -> None:
        self._rules: dict[MappingKey, MappingRule] = default_rules() if include_defaults else {}
        if rules:
            self._rules.update(rules)

    @classmethod
    def from_config(cls) -> "ObjectMapper":
        """Built-in rules plus the rules file named by ``MAPPING_RULES_FILE``."""
        mapper = cls()
        if CONFIG.engine.mapping_rules_file is not None:
            mapper.load_rules(CONFIG.engine.mapping_rules_file)
        return mapper

    # --- Rule registry ---

    def register_rule(self, key: MappingKey, rule: MappingRule) -> None:
        self._rules[key] = rule
        log.debug("Registered mapping rule %s.", key)

    def load_rules(self, path: Path | str) -> int:
        """
        Merge rules from a JSON file into the registry.

        Returns:
            Number of rules loaded.

        Raises:
            ValueError: On invalid JSON or an invalid rule key.
        """
        loaded = load_rules_from_file(Path(path))
        self._rules.update(loaded)
        log.info("Loaded %d mapping rule(s) from '%s'.", len(loaded), path)
        return len(loaded)

    def get_rule(
        self, source_db: DatabaseType, target_db: DatabaseType, object_type: ObjectType
    ) -> MappingRule | None:
        return self._rules.get(MappingKey(DatabaseType(source_db), DatabaseType(target_db), object_type))

    # --- Per-kind entry points ---

    def map_table(self, obj: Table, source_db: DatabaseType, target_db: DatabaseType) -> Table:
        return self._map(obj, source_db, target_db, ObjectType.TABLE)

    def map_collection(
        self, obj: Collection, source_db: DatabaseType, target_db: DatabaseType
    ) -> Collection:
        return self._map(obj, source_db, target_db, ObjectType.COLLECTION)

    def map_node(self, obj: Node, source_db: DatabaseType, target_db: DatabaseType) -> Node:
        return self._map(obj, source_db, target_db, ObjectType.NODE)

    def map_view(self, obj: View, source_db: DatabaseType, target_db: DatabaseType) -> View:
        return self._map(obj, source_db, target_db, ObjectType.VIEW)

    def map_materialized_view(
        self, obj: MaterializedView, source_db: DatabaseType, target_db: DatabaseType
    ) -> MaterializedView:
        return self._map(obj, source_db, target_db, ObjectType.MATERIALIZED_VIEW)

    def map_function(self, obj: Function, source_db: DatabaseType, target_db: DatabaseType) -> Function:
        return self._map(obj, source_db, target_db, ObjectType.FUNCTION)

    def map_procedure(
        self, obj: Procedure, source_db: DatabaseType, target_db: DatabaseType
    ) -> Procedure:
        return self._map(obj, source_db, target_db, ObjectType.PROCEDURE)

    def map_trigger(self, obj: Trigger, source_db: DatabaseType, target_db: DatabaseType) -> Trigger:
        return self._map(obj, source_db, target_db, ObjectType.TRIGGER)

    def map_index(self, obj: Index, source_db: DatabaseType, target_db: DatabaseType) -> Index:
        return self._map(obj, source_db, target_db, ObjectType.INDEX)

    def map_constraint(
        self, obj: Constraint, source_db: DatabaseType, target_db: DatabaseType
    ) -> Constraint:
        return self._map(obj, source_db, target_db, ObjectType.CONSTRAINT)

    def map_sequence(self, obj: Sequence, source_db: DatabaseType, target_db: DatabaseType) -> Sequence:
        return self._map(obj, source_db, target_db, ObjectType.SEQUENCE)

    def map_type(self, obj: CustomType, source_db: DatabaseType, target_db: DatabaseType) -> CustomType:
        return self._map(obj, source_db, target_db, ObjectType.TYPE)

    # --- Rule application ---

    def _map(
        self, obj: ObjT, source_db: DatabaseType, target_db: DatabaseType, object_type: ObjectType
    ) -> ObjT:
        rule = self.get_rule(source_db, target_db, object_type)
        if rule is None or rule.direct_mapping:
            return obj

        mapped = obj.model_copy(deep=True)
        name = getattr(obj, "name", "?")
        try:
            for source_field, target_field in rule.field_mappings.items():
                value = _get_field(mapped, source_field)
                if value is not _MISSING:
                    _set_field(mapped, target_field, value)

            for field_name, default in rule.default_values.items():
                if _is_empty(_get_field(mapped, field_name)):
                    _set_field(mapped, field_name, default)

            for transform in rule.transform_rules:
                handler = _TRANSFORMS.get(transform.kind)
                if handler is None:
                    log.debug("Ignoring unknown transform kind '%s' for %s '%s'.",
                              transform.kind, object_type.value, name)
                    continue
                handler(mapped, transform)
        except (ValueError, TypeError, ValidationError) as exc:
            raise MappingError(f"Failed to map {object_type.value} '{name}': {exc}") from exc

        missing = [f for f in rule.required_fields if _is_empty(_get_field(mapped, f))]
        if missing:
            raise MappingError(
                f"Failed to map {object_type.value} '{name}': "
                f"missing required field(s) {', '.join(missing)}"
            )
        return mapped
