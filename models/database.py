"""
models/database.py
------------------
Catalogue of supported database engines, the object kinds a Unified Model
can hold, and the structural paradigm(s) each engine belongs to.
"""
from __future__ import annotations

from enum import Enum


class DatabaseType(str, Enum):
    """Identifier of a database engine."""
    POSTGRES = "postgres"
    MYSQL = "mysql"
    MARIADB = "mariadb"
    MSSQL = "mssql"
    ORACLE = "oracle"
    COCKROACH = "cockroach"
    DB2 = "db2"
    DUCKDB = "duckdb"
    CLICKHOUSE = "clickhouse"
    SNOWFLAKE = "snowflake"
    CASSANDRA = "cassandra"
    DYNAMODB = "dynamodb"
    MONGODB = "mongodb"
    REDIS = "redis"
    NEO4J = "neo4j"
    ELASTICSEARCH = "elasticsearch"
    COSMOSDB = "cosmosdb"


class Paradigm(str, Enum):
    """Structural family of a database."""
    RELATIONAL = "relational"
    DOCUMENT = "document"
    KEY_VALUE = "keyvalue"
    GRAPH = "graph"
    COLUMNAR = "columnar"
    WIDE_COLUMN = "widecolumn"
    SEARCH_INDEX = "searchindex"
    TIME_SERIES = "timeseries"


class ObjectType(str, Enum):
    """Kinds of schema objects held by a Unified Model."""
    TABLE = "table"
    COLLECTION = "collection"
    NODE = "node"
    VIEW = "view"
    MATERIALIZED_VIEW = "materialized_view"
    FUNCTION = "function"
    PROCEDURE = "procedure"
    TRIGGER = "trigger"
    INDEX = "index"
    CONSTRAINT = "constraint"
    SEQUENCE = "sequence"
    TYPE = "type"


_PARADIGMS: dict[DatabaseType, tuple[Paradigm, ...]] = {
    DatabaseType.POSTGRES: (Paradigm.RELATIONAL,),
    DatabaseType.MYSQL: (Paradigm.RELATIONAL,),
    DatabaseType.MARIADB: (Paradigm.RELATIONAL,),
    DatabaseType.MSSQL: (Paradigm.RELATIONAL,),
    DatabaseType.ORACLE: (Paradigm.RELATIONAL,),
    DatabaseType.COCKROACH: (Paradigm.RELATIONAL,),
    DatabaseType.DB2: (Paradigm.RELATIONAL,),
    DatabaseType.DUCKDB: (Paradigm.RELATIONAL,),
    DatabaseType.CLICKHOUSE: (Paradigm.COLUMNAR,),
    DatabaseType.SNOWFLAKE: (Paradigm.COLUMNAR,),
    DatabaseType.CASSANDRA: (Paradigm.WIDE_COLUMN, Paradigm.TIME_SERIES),
    DatabaseType.DYNAMODB: (Paradigm.KEY_VALUE, Paradigm.WIDE_COLUMN),
    DatabaseType.MONGODB: (Paradigm.DOCUMENT,),
    DatabaseType.REDIS: (Paradigm.KEY_VALUE, Paradigm.TIME_SERIES),
    DatabaseType.NEO4J: (Paradigm.GRAPH,),
    DatabaseType.ELASTICSEARCH: (Paradigm.SEARCH_INDEX,),
    DatabaseType.COSMOSDB: (Paradigm.DOCUMENT, Paradigm.KEY_VALUE, Paradigm.GRAPH),
}


def paradigms_for(database: DatabaseType | str) -> tuple[Paradigm, ...]:
    """
    Return the paradigm(s) of *database*.

    Raises:
        ValueError: If *database* is not a known database id.
    """
    return _PARADIGMS[DatabaseType(database)]
