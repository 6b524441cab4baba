"""
tests/test_type_converter.py
-----------------------------
Unit tests for engine/type_converter.py.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import pytest

from engine.errors import TypeConversionError
from engine.type_converter import (
    ConversionSafety,
    DefaultTypeConverter,
    UnifiedDataType as U,
    classify_conversion,
    get_base_type,
)
from models.database import DatabaseType
from models.unified_model import Column, Field, Property

PG = DatabaseType.POSTGRES
MY = DatabaseType.MYSQL
MONGO = DatabaseType.MONGODB


@pytest.fixture
def converter() -> DefaultTypeConverter:
    return DefaultTypeConverter()


class TestGetBaseType:
    @pytest.mark.parametrize("raw, expected", [
        ("VARCHAR(255)", "varchar"),
        ("INT UNSIGNED", "int"),
        ("double  precision", "double precision"),
        ("decimal(10, 2)", "decimal"),
        ("", ""),
    ])
    def test_base_type(self, raw: str, expected: str) -> None:
        assert get_base_type(raw) == expected


class TestClassifyConversion:
    @pytest.mark.parametrize("type_", list(U))
    def test_identical_is_safe(self, type_: U) -> None:
        assert classify_conversion(type_, type_) == ConversionSafety.SAFE

    @pytest.mark.parametrize("old, new", [
        (U.INT16, U.INT32),
        (U.INT32, U.INT64),
        (U.BOOLEAN, U.INT16),
        (U.INT64, U.DECIMAL),
        (U.FLOAT32, U.FLOAT64),
        (U.INT32, U.FLOAT64),
        (U.DATE, U.TIMESTAMP),
        (U.UUID, U.STRING),
        (U.TIMESTAMP, U.STRING),
        (U.ARRAY, U.JSON),
        (U.JSON, U.TEXT),
    ])
    def test_safe(self, old: U, new: U) -> None:
        assert classify_conversion(old, new) == ConversionSafety.SAFE

    @pytest.mark.parametrize("old, new", [
        (U.INT64, U.INT32),
        (U.DECIMAL, U.FLOAT64),
        (U.FLOAT64, U.FLOAT32),
        (U.FLOAT64, U.DECIMAL),
        (U.INT64, U.FLOAT64),
        (U.TIMESTAMPTZ, U.TIMESTAMP),
        (U.BINARY, U.STRING),
        (U.STRING, U.BINARY),
    ])
    def test_lossy(self, old: U, new: U) -> None:
        assert classify_conversion(old, new) == ConversionSafety.LOSSY

    @pytest.mark.parametrize("old, new", [
        (U.TEXT, U.INT32),
        (U.TIMESTAMP, U.DATE),
        (U.INT32, U.UUID),
        (U.JSON, U.BINARY),
    ])
    def test_unsafe(self, old: U, new: U) -> None:
        assert classify_conversion(old, new) == ConversionSafety.UNSAFE


class TestConvertDataType:
    @pytest.mark.parametrize("source, expected", [
        ("integer", "int"),
        ("varchar(255)", "varchar(255)"),
        ("character varying(100)", "varchar(100)"),
        ("timestamp", "datetime"),
        ("decimal(10,2)", "decimal(10,2)"),
        ("numeric(12, 4)", "decimal(12,4)"),
        ("text", "text"),
        ("uuid", "char(36)"),
        ("jsonb", "json"),
        ("boolean", "boolean"),
        ("bytea", "blob"),
    ])
    def test_postgres_to_mysql(self, converter: DefaultTypeConverter, source: str, expected: str) -> None:
        result = converter.convert_data_type(PG, MY, source)
        assert result.converted_type == expected
        assert result.safety == ConversionSafety.SAFE
        assert not result.is_lossy

    def test_varchar_without_length_gets_default_for_mysql(self, converter: DefaultTypeConverter) -> None:
        result = converter.convert_data_type(PG, MY, "varchar")
        assert result.converted_type == "varchar(255)"
        assert "255" in result.notes

    @pytest.mark.parametrize("source, expected", [
        ("int(11)", "integer"),
        ("INT UNSIGNED", "integer"),
        ("tinyint(1)", "smallint"),
        ("datetime", "timestamp"),
        ("longtext", "text"),
        ("decimal(8,3)", "numeric(8,3)"),
        ("json", "jsonb"),
    ])
    def test_mysql_to_postgres(self, converter: DefaultTypeConverter, source: str, expected: str) -> None:
        assert converter.convert_data_type(MY, PG, source).converted_type == expected

    def test_interval_falls_back_to_string(self, converter: DefaultTypeConverter) -> None:
        result = converter.convert_data_type(PG, MY, "interval")
        assert result.converted_type == "varchar(255)"
        assert result.unified_type == U.INTERVAL
        assert "stored as string" in result.notes

    def test_timestamptz_to_mongodb_is_lossy(self, converter: DefaultTypeConverter) -> None:
        result = converter.convert_data_type(PG, MONGO, "timestamptz")
        assert result.converted_type == "date"
        assert result.is_lossy

    def test_mongodb_objectid_to_postgres(self, converter: DefaultTypeConverter) -> None:
        result = converter.convert_data_type(MONGO, PG, "objectId")
        assert result.converted_type == "varchar"
        assert result.safety == ConversionSafety.SAFE

    def test_same_database_keeps_type(self, converter: DefaultTypeConverter) -> None:
        result = converter.convert_data_type(PG, PG, "tsvector")
        assert result.converted_type == "tsvector"
        assert result.unified_type is None

    def test_unknown_type_raises(self, converter: DefaultTypeConverter) -> None:
        with pytest.raises(TypeConversionError, match="tsvector"):
            converter.convert_data_type(PG, MY, "tsvector")

    def test_unsupported_database_pair_raises(self, converter: DefaultTypeConverter) -> None:
        with pytest.raises(TypeConversionError, match="no conversion rule"):
            converter.convert_data_type(DatabaseType.ORACLE, MY, "number")


class TestConvertMembers:
    def test_convert_column_sets_options(self, converter: DefaultTypeConverter) -> None:
        column = Column(name="total", data_type="decimal(10,2)", options={"comment": "sum"})
        converted = converter.convert_column(column, PG, MY)
        assert converted.data_type == "decimal(10,2)"
        assert converted.options["original_type"] == "decimal(10,2)"
        assert converted.options["unified_type"] == "decimal"
        assert converted.options["is_lossy_conversion"] is False
        assert converted.options["comment"] == "sum"

    def test_convert_column_does_not_mutate_input(self, converter: DefaultTypeConverter) -> None:
        column = Column(name="id", data_type="integer")
        converter.convert_column(column, PG, MY)
        assert column.data_type == "integer"
        assert column.options == {}

    def test_convert_field(self, converter: DefaultTypeConverter) -> None:
        field = Field(name="created", type="date", required=True)
        converted = converter.convert_field(field, MONGO, PG)
        assert converted.type == "timestamp"
        assert converted.required is True

    def test_convert_property(self, converter: DefaultTypeConverter) -> None:
        prop = Property(name="age", type="integer")
        assert converter.convert_property(prop, PG, MONGO).type == "int"

    def test_error_names_the_column(self, converter: DefaultTypeConverter) -> None:
        with pytest.raises(TypeConversionError, match="column 'doc'"):
            converter.convert_column(Column(name="doc", data_type="tsvector"), PG, MY)
