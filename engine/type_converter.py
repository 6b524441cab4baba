"""
engine/type_converter.py
------------------------
Data type conversion between database engines.

Every native type is first mapped onto a database-agnostic
:class:`UnifiedDataType`, then onto the target engine's native type. When
the target has no native type for that unified type, a fallback chain picks
the closest one it does have. Each conversion is classified as:

    SAFE   – No data loss (e.g. int32 → int64).
    LOSSY  – Succeeds but may lose precision or information
             (e.g. timestamptz → timestamp, decimal → float64).
    UNSAFE – Would produce wrong data; reported as a conversion error.

Design Decision:
    The tables encode domain knowledge as data (dicts + category sets),
    keeping the converter itself a small amount of pure logic.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from engine.errors import TypeConversionError
from models.database import DatabaseType, Paradigm, paradigms_for
from models.unified_model import Column, Field, Property


class ConversionSafety(str, Enum):
    SAFE = "safe"
    LOSSY = "lossy"
    UNSAFE = "unsafe"


class UnifiedDataType(str, Enum):
    BOOLEAN = "boolean"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    DECIMAL = "decimal"
    CHAR = "char"
    STRING = "string"
    TEXT = "text"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    TIMESTAMPTZ = "timestamptz"
    INTERVAL = "interval"
    BINARY = "binary"
    UUID = "uuid"
    JSON = "json"
    ARRAY = "array"
    OBJECT_ID = "object_id"


U = UnifiedDataType

# ---------------------------------------------------------------------------
# Native ↔ unified tables
# ---------------------------------------------------------------------------
_POSTGRES_TO_UNIFIED = {
    "smallint": U.INT16, "int2": U.INT16, "smallserial": U.INT16,
    "integer": U.INT32, "int": U.INT32, "int4": U.INT32, "serial": U.INT32,
    "bigint": U.INT64, "int8": U.INT64, "bigserial": U.INT64,
    "real": U.FLOAT32, "float4": U.FLOAT32,
    "double precision": U.FLOAT64, "float8": U.FLOAT64, "float": U.FLOAT64,
    "decimal": U.DECIMAL, "numeric": U.DECIMAL, "money": U.DECIMAL,
    "char": U.CHAR, "character": U.CHAR, "bpchar": U.CHAR,
    "varchar": U.STRING, "character varying": U.STRING,
    "text": U.TEXT, "citext": U.TEXT,
    "boolean": U.BOOLEAN, "bool": U.BOOLEAN,
    "date": U.DATE,
    "time": U.TIME, "timetz": U.TIME,
    "timestamp": U.TIMESTAMP, "timestamp without time zone": U.TIMESTAMP,
    "timestamptz": U.TIMESTAMPTZ, "timestamp with time zone": U.TIMESTAMPTZ,
    "interval": U.INTERVAL,
    "bytea": U.BINARY,
    "uuid": U.UUID,
    "json": U.JSON, "jsonb": U.JSON,
}
_UNIFIED_TO_POSTGRES = {
    U.BOOLEAN: "boolean", U.INT16: "smallint", U.INT32: "integer", U.INT64: "bigint",
    U.FLOAT32: "real", U.FLOAT64: "double precision", U.DECIMAL: "numeric",
    U.CHAR: "char", U.STRING: "varchar", U.TEXT: "text",
    U.DATE: "date", U.TIME: "time", U.TIMESTAMP: "timestamp", U.TIMESTAMPTZ: "timestamptz",
    U.INTERVAL: "interval", U.BINARY: "bytea", U.UUID: "uuid", U.JSON: "jsonb",
    U.ARRAY: "jsonb",
}

_MYSQL_TO_UNIFIED = {
    "tinyint": U.INT16, "smallint": U.INT16, "year": U.INT16,
    "mediumint": U.INT32, "int": U.INT32, "integer": U.INT32,
    "bigint": U.INT64,
    "float": U.FLOAT32,
    "double": U.FLOAT64, "double precision": U.FLOAT64, "real": U.FLOAT64,
    "decimal": U.DECIMAL, "numeric": U.DECIMAL, "fixed": U.DECIMAL,
    "char": U.CHAR,
    "varchar": U.STRING, "enum": U.STRING, "set": U.STRING,
    "tinytext": U.TEXT, "text": U.TEXT, "mediumtext": U.TEXT, "longtext": U.TEXT,
    "bool": U.BOOLEAN, "boolean": U.BOOLEAN,
    "date": U.DATE, "time": U.TIME,
    "datetime": U.TIMESTAMP, "timestamp": U.TIMESTAMPTZ,
    "binary": U.BINARY, "varbinary": U.BINARY, "tinyblob": U.BINARY, "blob": U.BINARY,
    "mediumblob": U.BINARY, "longblob": U.BINARY, "bit": U.BINARY,
    "json": U.JSON,
}
_UNIFIED_TO_MYSQL = {
    U.BOOLEAN: "boolean", U.INT16: "smallint", U.INT32: "int", U.INT64: "bigint",
    U.FLOAT32: "float", U.FLOAT64: "double", U.DECIMAL: "decimal",
    U.CHAR: "char", U.STRING: "varchar", U.TEXT: "text",
    U.DATE: "date", U.TIME: "time", U.TIMESTAMP: "datetime", U.TIMESTAMPTZ: "timestamp",
    U.BINARY: "blob", U.UUID: "char(36)", U.JSON: "json", U.ARRAY: "json",
    U.OBJECT_ID: "char(24)",
}

_MONGODB_TO_UNIFIED = {
    "int": U.INT32, "int32": U.INT32,
    "long": U.INT64, "int64": U.INT64,
    "double": U.FLOAT64,
    "decimal": U.DECIMAL, "decimal128": U.DECIMAL,
    "string": U.STRING,
    "bool": U.BOOLEAN, "boolean": U.BOOLEAN,
    "date": U.TIMESTAMP, "timestamp": U.TIMESTAMP,
    "objectid": U.OBJECT_ID,
    "object": U.JSON, "document": U.JSON,
    "array": U.ARRAY,
    "bindata": U.BINARY, "binary": U.BINARY,
    "uuid": U.UUID,
}
_UNIFIED_TO_MONGODB = {
    U.BOOLEAN: "bool", U.INT32: "int", U.INT64: "long", U.FLOAT64: "double",
    U.DECIMAL: "decimal", U.STRING: "string", U.TIMESTAMP: "date",
    U.BINARY: "binData", U.UUID: "uuid", U.JSON: "object", U.ARRAY: "array",
    U.OBJECT_ID: "objectId",
}

_TABLES: dict[DatabaseType, tuple[dict[str, UnifiedDataType], dict[UnifiedDataType, str]]] = {
    DatabaseType.POSTGRES: (_POSTGRES_TO_UNIFIED, _UNIFIED_TO_POSTGRES),
    DatabaseType.COCKROACH: (_POSTGRES_TO_UNIFIED, _UNIFIED_TO_POSTGRES),
    DatabaseType.DUCKDB: (_POSTGRES_TO_UNIFIED, _UNIFIED_TO_POSTGRES),
    DatabaseType.MYSQL: (_MYSQL_TO_UNIFIED, _UNIFIED_TO_MYSQL),
    DatabaseType.MARIADB: (_MYSQL_TO_UNIFIED, _UNIFIED_TO_MYSQL),
    DatabaseType.MONGODB: (_MONGODB_TO_UNIFIED, _UNIFIED_TO_MONGODB),
}

# Closest substitutes, tried in order, when a target lacks a unified type.
_FALLBACKS: dict[UnifiedDataType, tuple[UnifiedDataType, ...]] = {
    U.BOOLEAN: (U.INT16, U.INT32, U.STRING),
    U.INT16: (U.INT32, U.INT64, U.DECIMAL, U.STRING),
    U.INT32: (U.INT64, U.DECIMAL, U.STRING),
    U.INT64: (U.DECIMAL, U.STRING),
    U.FLOAT32: (U.FLOAT64, U.DECIMAL, U.STRING),
    U.FLOAT64: (U.DECIMAL, U.STRING),
    U.DECIMAL: (U.FLOAT64, U.STRING),
    U.CHAR: (U.STRING, U.TEXT),
    U.STRING: (U.TEXT,),
    U.TEXT: (U.STRING,),
    U.DATE: (U.TIMESTAMP, U.STRING),
    U.TIME: (U.STRING,),
    U.TIMESTAMP: (U.TIMESTAMPTZ, U.STRING),
    U.TIMESTAMPTZ: (U.TIMESTAMP, U.STRING),
    U.INTERVAL: (U.STRING,),
    U.BINARY: (U.STRING,),
    U.UUID: (U.STRING,),
    U.JSON: (U.TEXT, U.STRING),
    U.ARRAY: (U.JSON, U.TEXT),
    U.OBJECT_ID: (U.STRING,),
}

# ---------------------------------------------------------------------------
# Safety classification
# ---------------------------------------------------------------------------
_INTEGER_TYPES = frozenset({U.BOOLEAN, U.INT16, U.INT32, U.INT64})
_APPROX_NUMERIC = frozenset({U.FLOAT32, U.FLOAT64})
_EXACT_NUMERIC = frozenset({U.DECIMAL})
_STRING_TYPES = frozenset({U.CHAR, U.STRING, U.TEXT, U.UUID, U.OBJECT_ID})
_DATETIME_TYPES = frozenset({U.DATE, U.TIME, U.TIMESTAMP, U.TIMESTAMPTZ, U.INTERVAL})
_BINARY_TYPES = frozenset({U.BINARY})
_JSON_TYPES = frozenset({U.JSON, U.ARRAY})

_CAT_MAP = (
    ("int", _INTEGER_TYPES),
    ("approx", _APPROX_NUMERIC),
    ("exact", _EXACT_NUMERIC),
    ("str", _STRING_TYPES),
    ("dt", _DATETIME_TYPES),
    ("bin", _BINARY_TYPES),
    ("json", _JSON_TYPES),
)

# Value range ordering inside the integer and approximate families.
_WIDTH = {U.BOOLEAN: 1, U.INT16: 16, U.INT32: 32, U.INT64: 64, U.FLOAT32: 24, U.FLOAT64: 53}

_MODIFIERS = frozenset({"unsigned", "signed", "zerofill"})


def get_base_type(dtype_string: str) -> str:
    """
    Extract the base type name from a full type definition string.

    Examples::

        get_base_type("VARCHAR(255)")              →  "varchar"
        get_base_type("INT UNSIGNED")              →  "int"
        get_base_type("Double  Precision")         →  "double precision"
        get_base_type("")                          →  ""
    """
    if not dtype_string:
        return ""
    words = dtype_string.split("(")[0].lower().split()
    return " ".join(w for w in words if w not in _MODIFIERS)


def _type_parameters(dtype_string: str) -> str:
    match = re.search(r"\([^)]*\)", dtype_string)
    return match.group(0).replace(" ", "") if match else ""


def _category(unified: UnifiedDataType) -> str:
    for cat, types in _CAT_MAP:
        if unified in types:
            return cat
    return "other"


def classify_conversion(old: UnifiedDataType, new: UnifiedDataType) -> ConversionSafety:
    """
    Classify the safety of storing *old* values in a *new* type.

    Examples::

        classify_conversion(U.INT32, U.INT64)            → SAFE
        classify_conversion(U.DECIMAL, U.FLOAT64)        → LOSSY
        classify_conversion(U.TEXT, U.INT32)             → UNSAFE
        classify_conversion(U.TIMESTAMPTZ, U.TIMESTAMP)  → LOSSY
    """
    if old == new:
        return ConversionSafety.SAFE

    old_cat = _category(old)
    new_cat = _category(new)

    # --- Anything → String ---
    if new_cat == "str":
        if new in (U.UUID, U.OBJECT_ID):
            return ConversionSafety.SAFE if old_cat == "str" else ConversionSafety.UNSAFE
        return ConversionSafety.LOSSY if old_cat == "bin" else ConversionSafety.SAFE

    # --- Numeric → Numeric ---
    if old_cat in ("int", "approx", "exact") and new_cat in ("int", "approx", "exact"):
        if new_cat == "int":
            if old_cat != "int":
                return ConversionSafety.LOSSY
            return ConversionSafety.SAFE if _WIDTH[new] >= _WIDTH[old] else ConversionSafety.LOSSY
        if new_cat == "approx":
            if old_cat == "exact" or _WIDTH[old] > _WIDTH[new]:
                return ConversionSafety.LOSSY
            return ConversionSafety.SAFE
        if new_cat == "exact":
            return ConversionSafety.LOSSY if old_cat == "approx" else ConversionSafety.SAFE

    # --- DateTime → DateTime ---
    if old_cat == "dt" and new_cat == "dt":
        if old == U.DATE and new in (U.TIMESTAMP, U.TIMESTAMPTZ):
            return ConversionSafety.SAFE
        if {old, new} == {U.TIMESTAMP, U.TIMESTAMPTZ}:
            return ConversionSafety.LOSSY
        return ConversionSafety.UNSAFE

    # --- Binary → Binary / String → Binary ---
    if new_cat == "bin":
        return ConversionSafety.LOSSY if old_cat == "str" else ConversionSafety.UNSAFE

    # --- * → JSON ---
    if new_cat == "json":
        return ConversionSafety.SAFE

    return ConversionSafety.UNSAFE


# ---------------------------------------------------------------------------
# Converter
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConversionResult:
    original_type: str
    converted_type: str
    unified_type: UnifiedDataType | None
    safety: ConversionSafety
    notes: str = ""

    @property
    def is_lossy(self) -> bool:
        return self.safety == ConversionSafety.LOSSY


class TypeConverter(Protocol):
    """
    Converts the data type of one column, field or property.

    Implementations raise :class:`TypeConversionError` for a type with no
    target equivalent. The translator also treats ValueError, TypeError and
    AttributeError from a converter as a failure of that one object.
    """

    def convert_column(
        self, column: Column, source_db: DatabaseType, target_db: DatabaseType
    ) -> Column: ...

    def convert_field(
        self, field: Field, source_db: DatabaseType, target_db: DatabaseType
    ) -> Field: ...

    def convert_property(
        self, prop: Property, source_db: DatabaseType, target_db: DatabaseType
    ) -> Property: ...


# Target base types that keep the source's "(length)" / "(precision,scale)".
_PARAMETERIZED = frozenset(
    {"varchar", "char", "character", "character varying", "decimal", "numeric", "varbinary", "binary"}
)
_MYSQL_VARCHAR_DEFAULT = "(255)"


class DefaultTypeConverter:
    """
    Table-driven :class:`TypeConverter`.

    Supports PostgreSQL-family, MySQL-family and MongoDB types. Conversions
    within one database return the type unchanged.
    """

    def convert_data_type(
        self, source_db: DatabaseType, target_db: DatabaseType, source_type: str
    ) -> ConversionResult:
        """
        Convert *source_type* from *source_db* to *target_db*.

        Raises:
            TypeConversionError: No rule exists, or the only candidates
                would corrupt data.
        """
        source_db, target_db = DatabaseType(source_db), DatabaseType(target_db)
        base = get_base_type(source_type)
        if source_db == target_db:
            known = _TABLES.get(source_db, ({}, {}))[0].get(base)
            return ConversionResult(source_type, source_type, known, ConversionSafety.SAFE,
                                    "same database, type kept")
        if source_db not in _TABLES or target_db not in _TABLES:
            raise TypeConversionError(
                f"no conversion rule found for {source_db.value}.{source_type} -> {target_db.value}",
                source_type,
            )

        to_unified, _ = _TABLES[source_db]
        _, from_unified = _TABLES[target_db]
        unified = to_unified.get(base)
        if unified is None:
            raise TypeConversionError(
                f"unknown {source_db.value} type '{source_type}'", source_type
            )

        for candidate in (unified, *_FALLBACKS.get(unified, ())):
            native = from_unified.get(candidate)
            if native is None:
                continue
            safety = classify_conversion(unified, candidate)
            if safety == ConversionSafety.UNSAFE:
                continue
            converted, notes = self._with_parameters(source_type, native, target_db)
            if candidate != unified:
                notes = f"{unified.value} stored as {candidate.value}" + (f"; {notes}" if notes else "")
            return ConversionResult(source_type, converted, unified, safety, notes)

        raise TypeConversionError(
            f"no safe {target_db.value} type for {source_db.value}.{source_type} ({unified.value})",
            source_type,
        )

    @staticmethod
    def _with_parameters(source_type: str, native: str, target_db: DatabaseType) -> tuple[str, str]:
        if "(" in native or Paradigm.RELATIONAL not in paradigms_for(target_db):
            return native, ""
        if get_base_type(native) not in _PARAMETERIZED:
            return native, ""
        params = _type_parameters(source_type)
        if params:
            return f"{native}{params}", ""
        if native == "varchar" and target_db in (DatabaseType.MYSQL, DatabaseType.MARIADB):
            return f"{native}{_MYSQL_VARCHAR_DEFAULT}", "length defaulted to 255"
        return native, ""

    def _options(self, options: dict, result: ConversionResult) -> dict:
        return {
            **options,
            "original_type": result.original_type,
            "unified_type": result.unified_type.value if result.unified_type else None,
            "conversion_safety": result.safety.value,
            "is_lossy_conversion": result.is_lossy,
            "conversion_notes": result.notes,
        }

    def convert_column(self, column: Column, source_db: DatabaseType, target_db: DatabaseType) -> Column:
        try:
            result = self.convert_data_type(source_db, target_db, column.data_type)
        except TypeConversionError as exc:
            raise TypeConversionError(f"column '{column.name}': {exc}", column.data_type) from exc
        return column.model_copy(
            update={"data_type": result.converted_type, "options": self._options(column.options, result)}
        )

    def convert_field(self, field: Field, source_db: DatabaseType, target_db: DatabaseType) -> Field:
        try:
            result = self.convert_data_type(source_db, target_db, field.type)
        except TypeConversionError as exc:
            raise TypeConversionError(f"field '{field.name}': {exc}", field.type) from exc
        return field.model_copy(
            update={"type": result.converted_type, "options": self._options(field.options, result)}
        )

    def convert_property(
        self, prop: Property, source_db: DatabaseType, target_db: DatabaseType
    ) -> Property:
        try:
            result = self.convert_data_type(source_db, target_db, prop.type)
        except TypeConversionError as exc:
            raise TypeConversionError(f"property '{prop.name}': {exc}", prop.type) from exc
        return prop.model_copy(
            update={"type": result.converted_type, "options": self._options(prop.options, result)}
        )
