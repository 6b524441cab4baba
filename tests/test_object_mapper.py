"""
tests/test_object_mapper.py
---------------------------
Unit tests for engine/object_mapper.py.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from engine.errors import MappingError
from engine.object_mapper import ObjectMapper, default_rules
from models.database import DatabaseType, ObjectType
from models.mapping import MappingKey, MappingRule, TransformRule
from models.unified_model import (
    Collection,
    Column,
    Constraint,
    ConstraintType,
    CustomType,
    Function,
    Index,
    MaterializedView,
    Node,
    Procedure,
    Sequence,
    Table,
    Trigger,
    View,
)

PG = DatabaseType.POSTGRES
MY = DatabaseType.MYSQL
MONGO = DatabaseType.MONGODB


@pytest.fixture
def mapper() -> ObjectMapper:
    return ObjectMapper()


@pytest.fixture
def table() -> Table:
    return Table(
        name="users",
        owner="public",
        comment="Registered users",
        columns={"id": Column(name="id", data_type="integer")},
    )


def _key(object_type: ObjectType = ObjectType.TABLE) -> MappingKey:
    return MappingKey(PG, DatabaseType.COCKROACH, object_type)


class TestPassThrough:
    @pytest.mark.parametrize("method, obj", [
        ("map_table", Table(name="t")),
        ("map_collection", Collection(name="c")),
        ("map_node", Node(label="Person")),
        ("map_view", View(name="v")),
        ("map_materialized_view", MaterializedView(name="mv")),
        ("map_function", Function(name="f")),
        ("map_procedure", Procedure(name="p")),
        ("map_trigger", Trigger(name="tr")),
        ("map_index", Index(name="ix")),
        ("map_constraint", Constraint(name="pk", type=ConstraintType.PRIMARY_KEY)),
        ("map_sequence", Sequence(name="seq")),
        ("map_type", CustomType(name="mood")),
    ])
    def test_no_rule_returns_input(self, mapper: ObjectMapper, method: str, obj) -> None:
        assert getattr(mapper, method)(obj, PG, MY) is obj

    def test_direct_mapping_returns_input(self, mapper: ObjectMapper, table: Table) -> None:
        mapper.register_rule(MappingKey(PG, MY, ObjectType.TABLE), MappingRule(direct_mapping=True))
        assert mapper.map_table(table, PG, MY) is table

    def test_without_defaults(self, table: Table) -> None:
        assert ObjectMapper(include_defaults=False).map_table(table, PG, MY) is table


class TestBuiltInRules:
    def test_postgres_to_mysql_table(self, mapper: ObjectMapper, table: Table) -> None:
        mapped = mapper.map_table(table, PG, MY)
        assert mapped is not table
        assert mapped.options["schema"] == "public"
        assert mapped.options["engine"] == "InnoDB"
        assert mapped.comment == "Registered users"
        assert table.options == {}

    def test_long_comment_is_truncated(self, mapper: ObjectMapper, table: Table) -> None:
        table.comment = "x" * 3000
        assert len(mapper.map_table(table, PG, MY).comment) == 2048

    def test_existing_engine_option_kept(self, mapper: ObjectMapper, table: Table) -> None:
        table.options["engine"] = "MyISAM"
        assert mapper.map_table(table, PG, MY).options["engine"] == "MyISAM"

    def test_mysql_to_postgres_table(self, mapper: ObjectMapper) -> None:
        table = Table(name="orders", options={"schema": "shop"})
        assert mapper.map_table(table, MY, PG).owner == "shop"

    def test_mongodb_to_postgres_collection(self, mapper: ObjectMapper) -> None:
        mapped = mapper.map_collection(Collection(name="events"), MONGO, PG)
        assert mapped.comment == "Converted from MongoDB collection"

    def test_mongodb_collection_comment_kept(self, mapper: ObjectMapper) -> None:
        mapped = mapper.map_collection(Collection(name="events", comment="audit trail"), MONGO, PG)
        assert mapped.comment == "audit trail"

    def test_default_rules_cover_mariadb(self) -> None:
        assert MappingKey(PG, DatabaseType.MARIADB, ObjectType.TABLE) in default_rules()


class TestTransforms:
    def _map(self, mapper: ObjectMapper, table: Table, *transforms: TransformRule) -> Table:
        mapper.register_rule(_key(), MappingRule(transform_rules=list(transforms)))
        return mapper.map_table(table, PG, DatabaseType.COCKROACH)

    def test_rename_moves_option(self, mapper: ObjectMapper) -> None:
        table = Table(name="t", options={"tablespace": "fast"})
        mapped = self._map(mapper, table, TransformRule("tablespace", "storage", "rename"))
        assert mapped.options == {"storage": "fast"}

    def test_rename_attribute_into_option(self, mapper: ObjectMapper, table: Table) -> None:
        mapped = self._map(mapper, table, TransformRule("owner", "schema", "rename"))
        assert mapped.options["schema"] == "public"
        assert mapped.owner == ""

    def test_format(self, mapper: ObjectMapper, table: Table) -> None:
        mapped = self._map(mapper, table, TransformRule(
            "comment", "comment", "format", {"case": "upper", "prefix": "[", "suffix": "]"}
        ))
        assert mapped.comment == "[REGISTERED USERS]"

    def test_convert_to_int(self, mapper: ObjectMapper) -> None:
        table = Table(name="t", options={"fillfactor": "70"})
        mapped = self._map(mapper, table, TransformRule("fillfactor", "fillfactor", "convert", {"to": "int"}))
        assert mapped.options["fillfactor"] == 70

    def test_convert_through_map(self, mapper: ObjectMapper) -> None:
        table = Table(name="t", options={"row_format": "dynamic"})
        mapped = self._map(mapper, table, TransformRule(
            "row_format", "row_format", "convert", {"map": {"dynamic": "DYNAMIC"}}
        ))
        assert mapped.options["row_format"] == "DYNAMIC"

    def test_convert_failure_is_mapping_error(self, mapper: ObjectMapper) -> None:
        table = Table(name="t", options={"fillfactor": "high"})
        with pytest.raises(MappingError, match="Failed to map table 't'"):
            self._map(mapper, table, TransformRule("fillfactor", "fillfactor", "convert", {"to": "int"}))

    def test_split(self, mapper: ObjectMapper) -> None:
        table = Table(name="t", owner="analytics.reporting")
        mapped = self._map(mapper, table, TransformRule(
            "owner", "", "split", {"separator": ".", "targets": ["database", "schema"]}
        ))
        assert mapped.options["database"] == "analytics"
        assert mapped.options["schema"] == "reporting"

    def test_merge(self, mapper: ObjectMapper, table: Table) -> None:
        mapped = self._map(mapper, table, TransformRule(
            "", "qualified_name", "merge", {"sources": ["owner", "name"], "separator": "."}
        ))
        assert mapped.options["qualified_name"] == "public.users"

    def test_transforms_run_in_order(self, mapper: ObjectMapper, table: Table) -> None:
        mapped = self._map(
            mapper, table,
            TransformRule("comment", "comment", "format", {"max_length": 4}),
            TransformRule("comment", "comment", "format", {"case": "upper"}),
        )
        assert mapped.comment == "REGI"

    def test_unknown_kind_is_noop(self, mapper: ObjectMapper, table: Table) -> None:
        mapped = self._map(mapper, table, TransformRule("comment", "comment", "explode"))
        assert mapped.model_dump() == table.model_dump()


class TestRuleValidation:
    def test_missing_required_field(self, mapper: ObjectMapper) -> None:
        mapper.register_rule(_key(), MappingRule(required_fields=["comment"]))
        with pytest.raises(MappingError, match="missing required field"):
            mapper.map_table(Table(name="t"), PG, DatabaseType.COCKROACH)

    def test_required_field_satisfied_by_default(self, mapper: ObjectMapper) -> None:
        mapper.register_rule(_key(), MappingRule(
            required_fields=["comment"], default_values={"comment": "n/a"}
        ))
        assert mapper.map_table(Table(name="t"), PG, DatabaseType.COCKROACH).comment == "n/a"

    def test_invalid_attribute_value_is_mapping_error(self, mapper: ObjectMapper) -> None:
        mapper.register_rule(_key(ObjectType.SEQUENCE), MappingRule(default_values={"max_value": "lots"}))
        with pytest.raises(MappingError):
            mapper.map_sequence(Sequence(name="s"), PG, DatabaseType.COCKROACH)


class TestRuleLoading:
    def test_load_rules_from_file(self, mapper: ObjectMapper, tmp_path: Path, table: Table) -> None:
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({
            "postgres:cockroach:table": {"default_values": {"locality": "REGIONAL BY ROW"}},
        }), encoding="utf-8")
        assert mapper.load_rules(path) == 1
        mapped = mapper.map_table(table, PG, DatabaseType.COCKROACH)
        assert mapped.options["locality"] == "REGIONAL BY ROW"

    def test_loaded_rules_override_builtin(self, mapper: ObjectMapper, tmp_path: Path, table: Table) -> None:
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"postgres:mysql:table": True}), encoding="utf-8")
        mapper.load_rules(path)
        assert mapper.map_table(table, PG, MY) is table

    def test_get_rule(self, mapper: ObjectMapper) -> None:
        assert mapper.get_rule(PG, MY, ObjectType.TABLE) is not None
        assert mapper.get_rule(PG, MY, ObjectType.VIEW) is None
