"""
tests/test_mapping_rules.py
---------------------------
Unit tests for models/mapping.py.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from models.database import DatabaseType, ObjectType
from models.mapping import (
    MappingKey,
    MappingRule,
    TransformRule,
    load_rules_from_file,
    rule_from_dict,
    save_rules_to_file,
)


class TestMappingKey:
    def test_parse_and_str(self) -> None:
        key = MappingKey.parse("postgres:mysql:materialized_view")
        assert key == MappingKey(DatabaseType.POSTGRES, DatabaseType.MYSQL, ObjectType.MATERIALIZED_VIEW)
        assert str(key) == "postgres:mysql:materialized_view"

    @pytest.mark.parametrize("raw", ["postgres:mysql", "postgres:nosuchdb:table", "a:b:c:d"])
    def test_parse_invalid(self, raw: str) -> None:
        with pytest.raises(ValueError):
            MappingKey.parse(raw)

    def test_hashable(self) -> None:
        key = MappingKey.parse("mongodb:postgres:collection")
        assert {key: 1}[MappingKey.parse("mongodb:postgres:collection")] == 1


class TestRuleFromDict:
    def test_full_rule(self) -> None:
        rule = rule_from_dict({
            "field_mappings": {"owner": "schema"},
            "default_values": {"engine": "InnoDB"},
            "transform_rules": [
                {"source_field": "comment", "target_field": "comment",
                 "transform_type": "FORMAT", "parameters": {"max_length": "2048"}},
            ],
        })
        assert isinstance(rule, MappingRule)
        assert rule.field_mappings == {"owner": "schema"}
        assert rule.transform_rules[0].kind == "format"

    def test_true_means_direct_mapping(self) -> None:
        rule = rule_from_dict(True)
        assert rule is not None and rule.direct_mapping

    def test_bare_field_mapping_shorthand(self) -> None:
        rule = rule_from_dict({"schema": "owner"})
        assert rule is not None
        assert rule.field_mappings == {"schema": "owner"}

    def test_unrecognised_returns_none(self) -> None:
        assert rule_from_dict(["not", "a", "rule"]) is None
        assert rule_from_dict(False) is None

    def test_transform_target_defaults_to_source(self) -> None:
        transform = TransformRule.from_dict({"source_field": "comment", "kind": "format"})
        assert transform.target_field == "comment"
        assert transform.kind == "format"


class TestRuleFiles:
    def test_missing_file_gives_empty(self, tmp_path: Path) -> None:
        assert load_rules_from_file(tmp_path / "absent.json") == {}

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_rules_from_file(path)

    def test_non_object_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ValueError, match="JSON object"):
            load_rules_from_file(path)

    def test_save_and_reload(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.json"
        key = MappingKey(DatabaseType.MYSQL, DatabaseType.POSTGRES, ObjectType.TABLE)
        rule = MappingRule(
            field_mappings={"schema": "owner"},
            required_fields=["name"],
            transform_rules=[TransformRule("comment", "comment", "format", {"case": "lower"})],
        )
        save_rules_to_file(path, {key: rule})

        assert not path.with_suffix(".tmp").exists()
        raw = json.loads(path.read_text(encoding="utf-8"))
        assert list(raw) == ["mysql:postgres:table"]
        assert load_rules_from_file(path) == {key: rule}
