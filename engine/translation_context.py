"""
engine/translation_context.py
-----------------------------
Per-request state of a schema translation: inputs, preferences, the
target schema being built, warnings and metrics.

Design Decisions:
    * One context per request; it is never shared between concurrent
      translations, so it needs no locking.
    * The target schema is write-once: the translator sets it when a run
      completes, and a second assignment is an error.
    * Warnings are structured records, so callers can filter by severity
      and decide whether to accept the result.
"""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from engine.paradigm import ParadigmAnalysis
from logger import get_request_logger
from models.database import DatabaseType, ObjectType
from models.enrichment import UnifiedModelEnrichment
from models.unified_model import UnifiedModel


class WarningType(str, Enum):
    DATA_LOSS = "data_loss"
    FEATURE_LOSS = "feature_loss"
    PERFORMANCE = "performance"
    COMPATIBILITY = "compatibility"
    SECURITY = "security"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class TranslationWarning:
    warning_type: WarningType
    object_type: ObjectType
    object_name: str
    message: str
    severity: Severity
    suggestion: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "warning_type": self.warning_type.value,
            "object_type": self.object_type.value,
            "object_name": self.object_name,
            "message": self.message,
            "severity": self.severity.value,
            "suggestion": self.suggestion,
        }


@dataclass
class TranslationPreferences:
    """
    Caller choices for one translation.

    Attributes:
        exclude_objects:        Object names left out of the target on purpose.
        accept_data_loss:       When False, every lossy type conversion is
                                also reported as a low-severity warning.
        include_original_names: Record the source name and database in each
                                converted object's options.
    """
    exclude_objects: list[str] = field(default_factory=list)
    accept_data_loss: bool = False
    include_original_names: bool = False


@dataclass
class TranslationMetrics:
    objects_processed: int = 0
    objects_converted: int = 0
    objects_skipped: int = 0
    objects_dropped: int = 0
    types_converted: int = 0
    lossy_conversions: int = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None
    processing_seconds: float = 0.0
    _t0: float = field(default_factory=time.perf_counter, repr=False, compare=False)

    def finish(self) -> None:
        self.finished_at = datetime.now(timezone.utc)
        self.processing_seconds = time.perf_counter() - self._t0

    def snapshot(self) -> dict[str, Any]:
        return {
            "objects_processed": self.objects_processed,
            "objects_converted": self.objects_converted,
            "objects_skipped": self.objects_skipped,
            "objects_dropped": self.objects_dropped,
            "types_converted": self.types_converted,
            "lossy_conversions": self.lossy_conversions,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "processing_seconds": round(self.processing_seconds, 6),
        }


class TranslationContext:
    """
    Everything one translation request reads and produces.

    Args:
        source_schema:   The model to translate (not modified).
        target_database: Database the target schema is built for.
        analysis:        Paradigm analysis of the database pair; required by
                         the translator.
        preferences:     Caller choices; defaults when omitted.
        enrichment:      Optional annotations of *source_schema*.
        requested_by:    Free-form caller identity for reports.
    """

    def __init__(
        self,
        source_schema: UnifiedModel,
        target_database: DatabaseType | str,
        analysis: ParadigmAnalysis | None = None,
        preferences: TranslationPreferences | None = None,
        enrichment: UnifiedModelEnrichment | None = None,
        requested_by: str = "",
    ) -> None:
        self.request_id = str(uuid.uuid4())
        self.log = get_request_logger(__name__, self.request_id)
        self.requested_by = requested_by
        self.requested_at = datetime.now(timezone.utc)
        self.source_schema = source_schema
        self.source_database = source_schema.database_type
        self.target_database = DatabaseType(target_database)
        self.analysis = analysis
        self.preferences = preferences or TranslationPreferences()
        self.enrichment = enrichment
        self.warnings: list[TranslationWarning] = []
        self.metrics = TranslationMetrics()
        self._target_schema: UnifiedModel | None = None
        self._excluded = frozenset(self.preferences.exclude_objects)

    # --- Target schema ---

    @property
    def target_schema(self) -> UnifiedModel | None:
        return self._target_schema

    def set_target_schema(self, schema: UnifiedModel) -> None:
        if self._target_schema is not None:
            raise RuntimeError(f"target schema of request {self.request_id} is already set")
        self._target_schema = schema

    # --- Warnings ---

    def add_warning(
        self,
        warning_type: WarningType,
        object_type: ObjectType,
        object_name: str,
        message: str,
        severity: Severity,
        suggestion: str = "",
    ) -> TranslationWarning:
        warning = TranslationWarning(
            warning_type, object_type, object_name, message, severity, suggestion
        )
        self.warnings.append(warning)
        self.log.warning("[%s] %s %s '%s': %s", warning_type.value, severity.value,
                    object_type.value, object_name, message)
        return warning

    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def warnings_by_severity(self, severity: Severity) -> list[TranslationWarning]:
        return [w for w in self.warnings if w.severity == severity]

    # --- Metrics ---

    def increment_processed(self) -> None:
        self.metrics.objects_processed += 1

    def increment_converted(self) -> None:
        self.metrics.objects_converted += 1

    def increment_skipped(self) -> None:
        self.metrics.objects_skipped += 1

    def increment_dropped(self) -> None:
        self.metrics.objects_dropped += 1

    def increment_types_converted(self, count: int = 1) -> None:
        self.metrics.types_converted += count

    def increment_lossy_conversions(self, count: int = 1) -> None:
        self.metrics.lossy_conversions += count

    def finish(self) -> None:
        self.metrics.finish()

    def success_rate(self) -> float:
        """Converted objects as a fraction of processed objects (1.0 when idle)."""
        if self.metrics.objects_processed == 0:
            return 1.0
        return self.metrics.objects_converted / self.metrics.objects_processed

    # --- Preferences ---

    def is_object_excluded(self, name: str) -> bool:
        return name in self._excluded

    # --- Reporting ---

    def to_report(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "requested_by": self.requested_by,
            "requested_at": self.requested_at.isoformat(),
            "source_database": self.source_database.value,
            "target_database": self.target_database.value,
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "success_rate": self.success_rate(),
            "metrics": self.metrics.snapshot(),
            "warnings": [w.to_dict() for w in self.warnings],
        }
