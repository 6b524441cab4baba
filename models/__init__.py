"""models/__init__.py"""
from models.database import DatabaseType, ObjectType, Paradigm, paradigms_for
from models.enrichment import (
    ColumnEnrichment,
    ColumnKey,
    TableEnrichment,
    UnifiedModelEnrichment,
)
from models.mapping import (
    MappingKey,
    MappingRule,
    TransformKind,
    TransformRule,
    load_rules_from_file,
    save_rules_to_file,
)
from models.unified_model import (
    Collection,
    Column,
    Constraint,
    Node,
    Table,
    UnifiedModel,
)

__all__ = [
    "DatabaseType",
    "ObjectType",
    "Paradigm",
    "paradigms_for",
    "ColumnEnrichment",
    "ColumnKey",
    "TableEnrichment",
    "UnifiedModelEnrichment",
    "MappingKey",
    "MappingRule",
    "TransformKind",
    "TransformRule",
    "load_rules_from_file",
    "save_rules_to_file",
    "Collection",
    "Column",
    "Constraint",
    "Node",
    "Table",
    "UnifiedModel",
]
