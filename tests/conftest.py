"""
tests/conftest.py
-----------------
Shared schema builders for the test suite.
"""
from __future__ import annotations

import pytest

from models.database import DatabaseType
from models.unified_model import (
    Column,
    Constraint,
    ConstraintType,
    Reference,
    Sequence,
    Table,
    UnifiedModel,
)


def make_table(name: str, *columns: tuple[str, str], **kwargs) -> Table:
    """Build a table from ``(column_name, data_type)`` pairs."""
    return Table(
        name=name,
        columns={c: Column(name=c, data_type=t) for c, t in columns},
        **kwargs,
    )


def make_model(database: DatabaseType, *tables: Table) -> UnifiedModel:
    return UnifiedModel(database_type=database, tables={t.name: t for t in tables})


@pytest.fixture
def shop_schema() -> UnifiedModel:
    """PostgreSQL users/orders schema with a foreign key and a sequence."""
    users = Table(
        name="users",
        owner="public",
        columns={
            "id": Column(name="id", data_type="integer", nullable=False, is_primary_key=True),
            "email": Column(name="email", data_type="varchar(255)", is_unique=True),
        },
    )
    orders = Table(
        name="orders",
        owner="public",
        columns={
            "id": Column(name="id", data_type="integer", nullable=False, is_primary_key=True),
            "user_id": Column(name="user_id", data_type="integer", nullable=False),
            "total": Column(name="total", data_type="decimal(10,2)"),
        },
    )
    fk = Constraint(
        name="fk_orders_user",
        type=ConstraintType.FOREIGN_KEY,
        table="orders",
        columns=["user_id"],
        reference=Reference(table="users", columns=["id"], on_delete="cascade"),
    )
    return UnifiedModel(
        database_type=DatabaseType.POSTGRES,
        tables={"users": users, "orders": orders},
        constraints={fk.name: fk},
        sequences={"users_id_seq": Sequence(name="users_id_seq")},
    )
