"""
models/unified_model.py
-----------------------
Database-agnostic normalized schema representation ("Unified Model").

Every object category is a dict keyed by the object's unique name. The
engine never depends on dict iteration order; it sorts names wherever
order matters.

Design Decision:
    pydantic models give validation plus JSON round-tripping
    (``model_dump(mode="json")`` / ``model_validate``) for documents
    produced by external ingestion adapters.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField

from models.database import DatabaseType, ObjectType


class _SchemaObject(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    options: dict[str, Any] = PydanticField(default_factory=dict)


# ---------------------------------------------------------------------------
# Structural members
# ---------------------------------------------------------------------------

class Column(_SchemaObject):
    name: str
    data_type: str
    nullable: bool = True
    is_primary_key: bool = False
    is_unique: bool = False
    auto_increment: bool = False
    default: str | None = None


class Field(_SchemaObject):
    """A document field; the Collection counterpart of a Column."""
    name: str
    type: str
    required: bool = False


class Property(_SchemaObject):
    """A graph node property; the Node counterpart of a Column."""
    name: str
    type: str


# ---------------------------------------------------------------------------
# Containers of structural members
# ---------------------------------------------------------------------------

class Table(_SchemaObject):
    name: str
    owner: str = ""
    comment: str = ""
    columns: dict[str, Column] = PydanticField(default_factory=dict)


class Collection(_SchemaObject):
    name: str
    owner: str = ""
    comment: str = ""
    fields: dict[str, Field] = PydanticField(default_factory=dict)


class Node(_SchemaObject):
    label: str
    properties: dict[str, Property] = PydanticField(default_factory=dict)

    @property
    def name(self) -> str:
        return self.label


class View(_SchemaObject):
    name: str
    definition: str = ""
    comment: str = ""
    columns: dict[str, Column] = PydanticField(default_factory=dict)


class MaterializedView(_SchemaObject):
    name: str
    definition: str = ""
    refresh_mode: str = ""
    columns: dict[str, Column] = PydanticField(default_factory=dict)


# ---------------------------------------------------------------------------
# Code objects
# ---------------------------------------------------------------------------

class Argument(BaseModel):
    name: str
    data_type: str
    mode: str = "in"


class Function(_SchemaObject):
    name: str
    language: str = "sql"
    returns: str = ""
    arguments: list[Argument] = PydanticField(default_factory=list)
    definition: str = ""


class Procedure(_SchemaObject):
    name: str
    language: str = "sql"
    arguments: list[Argument] = PydanticField(default_factory=list)
    definition: str = ""


class Trigger(_SchemaObject):
    name: str
    table: str = ""
    timing: str = ""
    events: list[str] = PydanticField(default_factory=list)
    procedure: str = ""


# ---------------------------------------------------------------------------
# Auxiliary objects
# ---------------------------------------------------------------------------

class Index(_SchemaObject):
    name: str
    table: str = ""
    columns: list[str] = PydanticField(default_factory=list)
    unique: bool = False


class ConstraintType(str, Enum):
    PRIMARY_KEY = "primary_key"
    FOREIGN_KEY = "foreign_key"
    UNIQUE = "unique"
    CHECK = "check"
    NOT_NULL = "not_null"


class Reference(BaseModel):
    """Target side of a foreign key."""
    table: str
    columns: list[str] = PydanticField(default_factory=list)
    on_delete: str = ""
    on_update: str = ""


class Constraint(_SchemaObject):
    name: str
    type: ConstraintType
    table: str = ""
    columns: list[str] = PydanticField(default_factory=list)
    expression: str = ""
    reference: Reference | None = None


class Sequence(_SchemaObject):
    name: str
    start: int = 1
    increment: int = 1
    min_value: int | None = None
    max_value: int | None = None
    cycle: bool = False


class CustomType(_SchemaObject):
    """A user-defined type (enum, composite, domain...)."""
    name: str
    category: str = ""
    definition: dict[str, Any] = PydanticField(default_factory=dict)


# ---------------------------------------------------------------------------
# The model
# ---------------------------------------------------------------------------

# ObjectType → UnifiedModel attribute holding that category.
CONTAINER_ATTRS: dict[ObjectType, str] = {
    ObjectType.TABLE: "tables",
    ObjectType.COLLECTION: "collections",
    ObjectType.NODE: "nodes",
    ObjectType.VIEW: "views",
    ObjectType.MATERIALIZED_VIEW: "materialized_views",
    ObjectType.FUNCTION: "functions",
    ObjectType.PROCEDURE: "procedures",
    ObjectType.TRIGGER: "triggers",
    ObjectType.INDEX: "indexes",
    ObjectType.CONSTRAINT: "constraints",
    ObjectType.SEQUENCE: "sequences",
    ObjectType.TYPE: "types",
}


class UnifiedModel(BaseModel):
    """A normalized schema for one database."""
    database_type: DatabaseType
    tables: dict[str, Table] = PydanticField(default_factory=dict)
    collections: dict[str, Collection] = PydanticField(default_factory=dict)
    nodes: dict[str, Node] = PydanticField(default_factory=dict)
    views: dict[str, View] = PydanticField(default_factory=dict)
    materialized_views: dict[str, MaterializedView] = PydanticField(default_factory=dict)
    functions: dict[str, Function] = PydanticField(default_factory=dict)
    procedures: dict[str, Procedure] = PydanticField(default_factory=dict)
    triggers: dict[str, Trigger] = PydanticField(default_factory=dict)
    indexes: dict[str, Index] = PydanticField(default_factory=dict)
    constraints: dict[str, Constraint] = PydanticField(default_factory=dict)
    sequences: dict[str, Sequence] = PydanticField(default_factory=dict)
    types: dict[str, CustomType] = PydanticField(default_factory=dict)

    def container(self, object_type: ObjectType) -> dict[str, Any]:
        """Return the (live) dict holding objects of *object_type*."""
        return getattr(self, CONTAINER_ATTRS[object_type])

    def object_count(self) -> int:
        return sum(len(self.container(t)) for t in ObjectType)
