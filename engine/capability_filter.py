"""
engine/capability_filter.py
---------------------------
Which object kinds each target database supports, with alternatives and
limitations for the ones it does not (fully) support.

Design Decisions:
    * The matrix is data, not code: one read-only mapping built by
      :func:`build_capability_matrix` and handed to :class:`CapabilityFilter`
      (and from there to the translator). Nothing is built at import time.
    * Any (database, object type) pair absent from the matrix is treated as
      supported, so new databases or object kinds never block a translation.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from models.database import DatabaseType, ObjectType


@dataclass(frozen=True)
class ObjectSupport:
    supported: bool
    limitations: tuple[str, ...] = ()
    alternatives: tuple[str, ...] = ()
    notes: str = ""


CapabilityMatrix = Mapping[DatabaseType, Mapping[ObjectType, ObjectSupport]]

_DEFAULT_SUPPORT = ObjectSupport(supported=True)


def _yes(*limitations: str, notes: str = "") -> ObjectSupport:
    return ObjectSupport(supported=True, limitations=tuple(limitations), notes=notes)


def _no(*alternatives: str, notes: str = "") -> ObjectSupport:
    return ObjectSupport(supported=False, alternatives=tuple(alternatives), notes=notes)


_T = ObjectType

_MYSQL = {
    _T.TABLE: _yes(),
    _T.COLLECTION: _no("table", "json_table"),
    _T.NODE: _no("table"),
    _T.VIEW: _yes(),
    _T.MATERIALIZED_VIEW: _no("table_with_triggers"),
    _T.FUNCTION: _yes("limited_language_support"),
    _T.PROCEDURE: _yes(),
    _T.TRIGGER: _yes(),
    _T.INDEX: _yes(),
    _T.CONSTRAINT: _yes("no_check_constraints_before_8.0.16"),
    _T.SEQUENCE: _no("auto_increment"),
    _T.TYPE: _no("enum", "set"),
}

_RAW_MATRIX: dict[DatabaseType, dict[ObjectType, ObjectSupport]] = {
    DatabaseType.POSTGRES: {
        _T.TABLE: _yes(),
        _T.COLLECTION: _no("table", "jsonb_table"),
        _T.NODE: _no("table"),
        _T.VIEW: _yes(),
        _T.MATERIALIZED_VIEW: _yes(),
        _T.FUNCTION: _yes(),
        _T.PROCEDURE: _yes(),
        _T.TRIGGER: _yes(),
        _T.INDEX: _yes(),
        _T.CONSTRAINT: _yes(),
        _T.SEQUENCE: _yes(),
        _T.TYPE: _yes(),
    },
    DatabaseType.MYSQL: _MYSQL,
    DatabaseType.MARIADB: {
        **_MYSQL,
        _T.SEQUENCE: _yes(notes="Sequences available since MariaDB 10.3"),
    },
    DatabaseType.MONGODB: {
        _T.TABLE: _no("collection"),
        _T.COLLECTION: _yes(),
        _T.NODE: _no("document"),
        _T.VIEW: _yes(notes="MongoDB views are read-only aggregation pipelines"),
        _T.MATERIALIZED_VIEW: _no("collection_with_aggregation"),
        _T.FUNCTION: _no("javascript_functions", "aggregation_pipeline"),
        _T.PROCEDURE: _no("javascript_functions"),
        _T.TRIGGER: _no("change_streams", "database_triggers"),
        _T.INDEX: _yes(),
        _T.CONSTRAINT: _no("schema_validation"),
        _T.SEQUENCE: _no("counter_collection", "objectid"),
        _T.TYPE: _no("schema_validation"),
    },
    DatabaseType.REDIS: {
        _T.TABLE: _no("hash", "sorted_set"),
        _T.COLLECTION: _no("list", "set"),
        _T.NODE: _no("hash"),
        _T.VIEW: _no(),
        _T.MATERIALIZED_VIEW: _no(),
        _T.FUNCTION: _no("lua_scripts"),
        _T.PROCEDURE: _no("lua_scripts"),
        _T.TRIGGER: _no("keyspace_notifications"),
        _T.INDEX: _no(notes="Redis uses key patterns for indexing"),
        _T.CONSTRAINT: _no(),
        _T.SEQUENCE: _no("incr_command"),
        _T.TYPE: _no(),
    },
    DatabaseType.NEO4J: {
        _T.TABLE: _no("node_label"),
        _T.COLLECTION: _no("node_label"),
        _T.NODE: _yes(),
        _T.VIEW: _no("cypher_projection"),
        _T.MATERIALIZED_VIEW: _no(),
        _T.FUNCTION: _yes(notes="User-defined functions and procedures"),
        _T.PROCEDURE: _yes(),
        _T.TRIGGER: _no("apoc_triggers"),
        _T.INDEX: _yes(notes="Node and relationship indexes"),
        _T.CONSTRAINT: _yes(notes="Uniqueness and existence constraints"),
        _T.SEQUENCE: _no("id_function"),
        _T.TYPE: _no(),
    },
    DatabaseType.ELASTICSEARCH: {
        _T.TABLE: _no("index"),
        _T.COLLECTION: _no("index"),
        _T.NODE: _no("document"),
        _T.VIEW: _no("index_alias"),
        _T.MATERIALIZED_VIEW: _no(),
        _T.FUNCTION: _no("painless_scripts"),
        _T.PROCEDURE: _no("painless_scripts"),
        _T.TRIGGER: _no("ingest_pipelines"),
        _T.INDEX: _yes(notes="Elasticsearch indexes are the primary data structure"),
        _T.CONSTRAINT: _no("mapping_validation"),
        _T.SEQUENCE: _no("auto_generated_ids"),
        _T.TYPE: _no("mapping_types"),
    },
    DatabaseType.CASSANDRA: {
        _T.TABLE: _yes(),
        _T.COLLECTION: _no("table_with_collections"),
        _T.NODE: _no("table"),
        _T.VIEW: _no("materialized_view"),
        _T.MATERIALIZED_VIEW: _yes(),
        _T.FUNCTION: _yes("user_defined_functions_only"),
        _T.PROCEDURE: _no(),
        _T.TRIGGER: _no(),
        _T.INDEX: _yes("secondary_indexes_only"),
        _T.CONSTRAINT: _no(),
        _T.SEQUENCE: _no("uuid", "timeuuid"),
        _T.TYPE: _yes(notes="User-defined types supported"),
    },
    DatabaseType.DYNAMODB: {
        _T.TABLE: _yes(notes="NoSQL tables with key-value structure"),
        _T.COLLECTION: _no("table"),
        _T.NODE: _no("item"),
        _T.VIEW: _no("global_secondary_index"),
        _T.MATERIALIZED_VIEW: _no(),
        _T.FUNCTION: _no("lambda_functions"),
        _T.PROCEDURE: _no(),
        _T.TRIGGER: _no("dynamodb_streams"),
        _T.INDEX: _yes(notes="Global and local secondary indexes"),
        _T.CONSTRAINT: _no(),
        _T.SEQUENCE: _no("auto_generated_keys"),
        _T.TYPE: _no(),
    },
}


def build_capability_matrix() -> CapabilityMatrix:
    """Return a new read-only capability matrix."""
    return MappingProxyType({
        db: MappingProxyType(dict(entries)) for db, entries in _RAW_MATRIX.items()
    })


class CapabilityFilter:
    """
    Read-only view over a capability matrix.

    Args:
        matrix: The matrix to consult. Defaults to a freshly built
                :func:`build_capability_matrix`.
    """

    def __init__(self, matrix: CapabilityMatrix | None = None) -> None:
        self._matrix = matrix if matrix is not None else build_capability_matrix()

    @property
    def matrix(self) -> CapabilityMatrix:
        return self._matrix

    def supported_databases(self) -> list[DatabaseType]:
        return sorted(self._matrix, key=lambda db: db.value)

    def get_object_support(self, database: DatabaseType, object_type: ObjectType) -> ObjectSupport:
        entries = self._matrix.get(database)
        if entries is None:
            return _DEFAULT_SUPPORT
        return entries.get(object_type, _DEFAULT_SUPPORT)

    def is_object_type_supported(self, database: DatabaseType, object_type: ObjectType) -> bool:
        return self.get_object_support(database, object_type).supported

    def get_unsupported_objects(self, database: DatabaseType) -> list[ObjectType]:
        """Unsupported object kinds of *database*, in :class:`ObjectType` order."""
        entries = self._matrix.get(database, {})
        return [t for t in ObjectType if t in entries and not entries[t].supported]

    def get_alternatives(self, database: DatabaseType, object_type: ObjectType) -> list[str]:
        return list(self.get_object_support(database, object_type).alternatives)

    def get_limitations(self, database: DatabaseType, object_type: ObjectType) -> list[str]:
        return list(self.get_object_support(database, object_type).limitations)
