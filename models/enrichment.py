"""
models/enrichment.py
--------------------
Classification and privileged-data annotations attached to a Unified Model.

Enrichment is produced externally (table classifier, privileged-data
detector) and is purely advisory: a missing entry means "unknown".

Design Decisions:
    * Column annotations are addressed by a typed ``ColumnKey(table, column)``
      and stored nested per table, so table or column names that contain
      dots are never ambiguous.
    * Documents using the older flat ``{"table.column": {...}}`` layout are
      upgraded on load (split at the first dot).
"""
from __future__ import annotations

from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, Field, model_validator


class TableCategory(str, Enum):
    TRANSACTIONAL = "transactional"
    ANALYTICAL = "analytical"
    TIME_SERIES = "time_series"
    REFERENCE = "reference"
    LOG = "log"
    AUDIT = "audit"
    CACHE = "cache"
    STAGING = "staging"
    ARCHIVE = "archive"
    CONFIGURATION = "configuration"
    METADATA = "metadata"
    SEARCH = "search"
    QUEUE = "queue"
    SESSION = "session"


class AccessPattern(str, Enum):
    READ_HEAVY = "read_heavy"
    WRITE_HEAVY = "write_heavy"
    APPEND_ONLY = "append_only"
    READ_WRITE = "read_write"
    BATCH = "batch"
    REAL_TIME = "real_time"


class DataCategory(str, Enum):
    PII = "pii"
    EMAIL = "email"
    PHONE = "phone"
    ADDRESS = "address"
    NAME = "name"
    BIRTH_DATE = "birth_date"
    SSN = "ssn"
    CREDIT_CARD = "credit_card"
    FINANCIAL = "financial"
    HEALTH = "health"
    PASSWORD = "password"
    TOKEN = "token"
    API_KEY = "api_key"
    BUSINESS = "business"


class RiskLevel(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    MINIMAL = "minimal"


class TableEnrichment(BaseModel):
    primary_category: TableCategory
    classification_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    access_pattern: AccessPattern | None = None
    has_privileged_data: bool = False


class ColumnEnrichment(BaseModel):
    is_privileged_data: bool = False
    data_category: DataCategory | None = None
    privileged_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    risk_level: RiskLevel | None = None


class ColumnKey(NamedTuple):
    """Composite address of a column: (table, column)."""
    table: str
    column: str

    def __str__(self) -> str:
        return f"{self.table}.{self.column}"


class UnifiedModelEnrichment(BaseModel):
    """Side-table of annotations for one Unified Model."""
    table_enrichments: dict[str, TableEnrichment] = Field(default_factory=dict)
    column_enrichments: dict[str, dict[str, ColumnEnrichment]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _upgrade_flat_column_keys(cls, data: Any) -> Any:
        # Legacy: {"column_enrichments": {"users.email": {...}}}
        if not isinstance(data, dict):
            return data
        columns = data.get("column_enrichments")
        if not isinstance(columns, dict):
            return data
        nested: dict[str, dict[str, Any]] = {}
        for key, value in columns.items():
            if _is_flat_column_entry(key, value):
                table, _, column = key.partition(".")
                nested.setdefault(table, {})[column] = value
            elif isinstance(value, dict):
                nested.setdefault(key, {}).update(value)
            else:
                nested[key] = value  # left for pydantic to reject
        return {**data, "column_enrichments": nested}

    def table(self, name: str) -> TableEnrichment | None:
        return self.table_enrichments.get(name)

    def column(self, key: ColumnKey) -> ColumnEnrichment | None:
        return self.column_enrichments.get(key.table, {}).get(key.column)

    def set_table(self, name: str, enrichment: TableEnrichment) -> None:
        self.table_enrichments[name] = enrichment

    def set_column(self, key: ColumnKey, enrichment: ColumnEnrichment) -> None:
        self.column_enrichments.setdefault(key.table, {})[key.column] = enrichment

    def column_keys(self) -> list[ColumnKey]:
        return sorted(
            ColumnKey(table, column)
            for table, columns in self.column_enrichments.items()
            for column in columns
        )


_COLUMN_ENRICHMENT_FIELDS = frozenset(ColumnEnrichment.model_fields)


def _is_flat_column_entry(key: str, value: Any) -> bool:
    if isinstance(value, ColumnEnrichment):
        return True
    return (
        "." in key
        and isinstance(value, dict)
        and bool(value)
        and set(value) <= _COLUMN_ENRICHMENT_FIELDS
        and not any(isinstance(v, (dict, ColumnEnrichment)) for v in value.values())
    )
