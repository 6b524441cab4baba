"""
engine/errors.py
----------------
Exception hierarchy of the schema engine.

Fatal errors (:class:`PreconditionError`, :class:`TranslationError`) abort
a call. Per-object errors (:class:`MappingError`,
:class:`TypeConversionError`) are caught by the translator and turned into
warnings plus a skip count.
"""
from __future__ import annotations


class SchemaEngineError(Exception):
    """Base class for all engine errors."""


class PreconditionError(SchemaEngineError):
    """An input required to even start the operation is missing or wrong."""


class TranslationError(SchemaEngineError):
    """A whole object category could not be processed."""


class MappingError(SchemaEngineError):
    """The object mapper could not reshape one object."""


class TypeConversionError(SchemaEngineError):
    """A data type has no conversion to the target database."""

    def __init__(self, message: str, source_type: str = "") -> None:
        super().__init__(message)
        self.source_type = source_type
