"""engine/__init__.py"""
from engine.capability_filter import CapabilityFilter, ObjectSupport, build_capability_matrix
from engine.errors import (
    MappingError,
    PreconditionError,
    SchemaEngineError,
    TranslationError,
    TypeConversionError,
)
from engine.matcher import MatchOptions, MatchResult, UnifiedModelMatcher, match_unified_models
from engine.object_mapper import ObjectMapper
from engine.paradigm import ConversionApproach, ParadigmAnalysis, analyze_paradigms
from engine.translation_context import (
    TranslationContext,
    TranslationPreferences,
    TranslationWarning,
)
from engine.translator import SameParadigmTranslator, translate_schema
from engine.type_converter import ConversionSafety, DefaultTypeConverter, classify_conversion

__all__ = [
    "CapabilityFilter",
    "ObjectSupport",
    "build_capability_matrix",
    "MappingError",
    "PreconditionError",
    "SchemaEngineError",
    "TranslationError",
    "TypeConversionError",
    "MatchOptions",
    "MatchResult",
    "UnifiedModelMatcher",
    "match_unified_models",
    "ObjectMapper",
    "ConversionApproach",
    "ParadigmAnalysis",
    "analyze_paradigms",
    "TranslationContext",
    "TranslationPreferences",
    "TranslationWarning",
    "SameParadigmTranslator",
    "translate_schema",
    "ConversionSafety",
    "DefaultTypeConverter",
    "classify_conversion",
]
