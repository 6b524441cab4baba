"""
engine/translator.py
--------------------
Converts a source Unified Model into a target Unified Model for another
database of the same paradigm.

Design Decisions:
    * Collaborators (object mapper, capability filter, type converter) are
      injected. No global state.
    * Categories are processed sequentially in a fixed order and objects
      within a category in sorted-name order, so warnings and metrics are
      reproducible.
    * A failure to enumerate a whole category aborts the run
      (:class:`TranslationError`). A failure on a single object never does:
      it becomes a warning plus a skip or drop count.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from engine.capability_filter import CapabilityFilter
from engine.errors import MappingError, PreconditionError, TranslationError, TypeConversionError
from engine.object_mapper import ObjectMapper
from engine.paradigm import ConversionApproach, analyze_paradigms
from engine.translation_context import (
    Severity,
    TranslationContext,
    TranslationPreferences,
    WarningType,
)
from engine.type_converter import DefaultTypeConverter, TypeConverter
from logger import get_logger, get_request_logger
from models.database import DatabaseType, ObjectType
from models.enrichment import UnifiedModelEnrichment
from models.unified_model import UnifiedModel

log = get_logger(__name__)


@dataclass(frozen=True)
class _Category:
    object_type: ObjectType
    label: str
    mapper_method: str
    # Attribute holding the nested members and the converter method for them.
    members_attr: str | None = None
    converter_method: str | None = None
    feature_loss_severity: Severity = Severity.MEDIUM


_CATEGORIES: tuple[_Category, ...] = (
    _Category(ObjectType.TABLE, "table", "map_table", "columns", "convert_column", Severity.HIGH),
    _Category(ObjectType.COLLECTION, "collection", "map_collection", "fields", "convert_field", Severity.HIGH),
    _Category(ObjectType.NODE, "node", "map_node", "properties", "convert_property", Severity.HIGH),
    _Category(ObjectType.VIEW, "view", "map_view", "columns", "convert_column"),
    _Category(ObjectType.MATERIALIZED_VIEW, "materialized view", "map_materialized_view",
              "columns", "convert_column"),
    _Category(ObjectType.FUNCTION, "function", "map_function",
              feature_loss_severity=Severity.HIGH),
    _Category(ObjectType.PROCEDURE, "procedure", "map_procedure",
              feature_loss_severity=Severity.HIGH),
    _Category(ObjectType.TRIGGER, "trigger", "map_trigger",
              feature_loss_severity=Severity.HIGH),
    _Category(ObjectType.INDEX, "index", "map_index"),
    _Category(ObjectType.CONSTRAINT, "constraint", "map_constraint"),
    _Category(ObjectType.SEQUENCE, "sequence", "map_sequence"),
    _Category(ObjectType.TYPE, "type", "map_type"),
)


class SameParadigmTranslator:
    """
    Translates schemas between databases sharing a paradigm.

    Args:
        object_mapper:     Database-pair reshaping rules.
        capability_filter: Which object kinds the target supports.
        type_converter:    Converts column / field / property data types.
    """

    def __init__(
        self,
        object_mapper: ObjectMapper | None = None,
        capability_filter: CapabilityFilter | None = None,
        type_converter: TypeConverter | None = None,
    ) -> None:
        self.object_mapper = object_mapper or ObjectMapper()
        self.capability_filter = capability_filter or CapabilityFilter()
        self.type_converter = type_converter or DefaultTypeConverter()

    def translate(self, ctx: TranslationContext) -> None:
        """
        Build ``ctx.target_schema`` from ``ctx.source_schema``.

        Raises:
            PreconditionError: Missing analysis or not a same-paradigm pair;
                the target schema is left untouched.
            TranslationError: A whole object category could not be read.
        """
        if ctx.analysis is None:
            raise PreconditionError("paradigm analysis is required")
        approach = ctx.analysis.conversion_approach
        if approach != ConversionApproach.SAME_PARADIGM:
            raise PreconditionError(f"expected same-paradigm conversion, got {approach.value}")

        rlog = get_request_logger(__name__, ctx.request_id)
        rlog.info("Translating %s -> %s.", ctx.source_database.value, ctx.target_database.value)
        target = UnifiedModel(database_type=ctx.target_database)
        for category in _CATEGORIES:
            self._process_category(ctx, category, target)

        ctx.set_target_schema(target)
        ctx.finish()
        m = ctx.metrics
        rlog.info(
            "Translation finished: %d processed, %d converted, %d skipped, %d dropped, "
            "%d warning(s).",
            m.objects_processed, m.objects_converted,
            m.objects_skipped, m.objects_dropped, len(ctx.warnings),
        )

    # ------------------------------------------------------------------
    # Category / object processing
    # ------------------------------------------------------------------

    def _process_category(
        self, ctx: TranslationContext, category: _Category, target: UnifiedModel
    ) -> None:
        try:
            container = ctx.source_schema.container(category.object_type)
            names = sorted(container)
        except (AttributeError, KeyError, TypeError) as exc:
            raise TranslationError(f"failed to read {category.label} objects: {exc}") from exc

        destination = target.container(category.object_type)
        for name in names:
            converted = self._process_object(ctx, category, name, container[name])
            if converted is not None:
                destination[name] = converted
                ctx.increment_converted()

    def _process_object(
        self, ctx: TranslationContext, category: _Category, name: str, obj: Any
    ) -> Any | None:
        ctx.increment_processed()

        if ctx.is_object_excluded(name):
            log.debug("Skipping excluded %s '%s'.", category.label, name)
            ctx.increment_skipped()
            return None

        support = self.capability_filter.get_object_support(ctx.target_database, category.object_type)
        if not support.supported:
            ctx.add_warning(
                WarningType.FEATURE_LOSS,
                category.object_type,
                name,
                f"{category.label.capitalize()} objects are not supported by "
                f"{ctx.target_database.value}",
                category.feature_loss_severity,
                _alternative_suggestion(support.alternatives, support.notes),
            )
            ctx.increment_dropped()
            return None

        mapper: Callable[..., Any] = getattr(self.object_mapper, category.mapper_method)
        try:
            mapped = mapper(obj, ctx.source_database, ctx.target_database)
        except MappingError as exc:
            ctx.add_warning(
                WarningType.COMPATIBILITY,
                category.object_type,
                name,
                f"Failed to map {category.label}: {exc}",
                Severity.MEDIUM,
                "Add or fix the mapping rule for this database pair",
            )
            ctx.increment_skipped()
            return None

        if mapped is obj:
            mapped = obj.model_copy(deep=True)

        if category.members_attr is not None:
            try:
                mapped = self._convert_members(ctx, category, mapped)
            except TypeConversionError as exc:
                ctx.add_warning(
                    WarningType.DATA_LOSS,
                    category.object_type,
                    name,
                    f"Failed to convert data types of {category.label}: {exc}",
                    Severity.HIGH,
                    "Review data type mappings",
                )
                ctx.increment_skipped()
                return None

        if ctx.preferences.include_original_names:
            mapped.options["original_name"] = name
            mapped.options["original_database"] = ctx.source_database.value
        return mapped

    def _convert_members(self, ctx: TranslationContext, category: _Category, obj: Any) -> Any:
        convert = getattr(self.type_converter, category.converter_method)
        members: dict[str, Any] = getattr(obj, category.members_attr)
        converted: dict[str, Any] = {}
        lossy: list[str] = []
        for member_name in sorted(members):
            try:
                result = convert(members[member_name], ctx.source_database, ctx.target_database)
                is_lossy = bool(result.options.get("is_lossy_conversion"))
            except (ValueError, TypeError, AttributeError) as exc:
                raise TypeConversionError(
                    f"{member_name}: {type(exc).__name__}: {exc}"
                ) from exc
            converted[member_name] = result
            if is_lossy:
                lossy.append(member_name)

        ctx.increment_types_converted(len(converted))
        if lossy:
            ctx.increment_lossy_conversions(len(lossy))
            if not ctx.preferences.accept_data_loss:
                for member_name in lossy:
                    ctx.add_warning(
                        WarningType.DATA_LOSS,
                        category.object_type,
                        f"{_name_of(obj)}.{member_name}",
                        "Lossy type conversion "
                        f"{converted[member_name].options.get('original_type', '?')} -> "
                        f"{_member_type(converted[member_name])}",
                        Severity.LOW,
                        converted[member_name].options.get("conversion_notes", ""),
                    )
        return obj.model_copy(update={category.members_attr: converted})


def _alternative_suggestion(alternatives: tuple[str, ...], notes: str) -> str:
    if alternatives:
        return f"Consider using {' or '.join(alternatives)} instead"
    if notes:
        return notes
    return "No equivalent structure exists on the target database"


def _name_of(obj: Any) -> str:
    return getattr(obj, "name", "?")


def _member_type(member: Any) -> str:
    return getattr(member, "data_type", None) or getattr(member, "type", "?")


def translate_schema(
    source: UnifiedModel,
    target_database: DatabaseType | str,
    preferences: TranslationPreferences | None = None,
    enrichment: UnifiedModelEnrichment | None = None,
    translator: SameParadigmTranslator | None = None,
) -> TranslationContext:
    """
    Analyse the database pair, then translate *source* for *target_database*.

    Returns:
        The finished context carrying the target schema, warnings and metrics.

    Raises:
        PreconditionError: If the two databases do not share a paradigm.
    """
    analysis = analyze_paradigms(source.database_type, target_database)
    ctx = TranslationContext(
        source, target_database, analysis=analysis,
        preferences=preferences, enrichment=enrichment,
    )
    (translator or SameParadigmTranslator()).translate(ctx)
    return ctx
