"""
engine/paradigm.py
------------------
Decides how a source database can be converted to a target database,
based on the structural paradigms of both engines.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from models.database import DatabaseType, Paradigm, paradigms_for


class ConversionApproach(str, Enum):
    SAME_PARADIGM = "same_paradigm"
    CROSS_PARADIGM = "cross_paradigm"
    MULTI_STEP = "multi_step"
    IMPOSSIBLE = "impossible"


@dataclass(frozen=True)
class ParadigmAnalysis:
    source_database: DatabaseType
    target_database: DatabaseType
    source_paradigms: tuple[Paradigm, ...]
    target_paradigms: tuple[Paradigm, ...]
    shared_paradigms: tuple[Paradigm, ...]
    conversion_approach: ConversionApproach

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_database": self.source_database.value,
            "target_database": self.target_database.value,
            "source_paradigms": [p.value for p in self.source_paradigms],
            "target_paradigms": [p.value for p in self.target_paradigms],
            "shared_paradigms": [p.value for p in self.shared_paradigms],
            "conversion_approach": self.conversion_approach.value,
        }


def analyze_paradigms(source_db: DatabaseType | str, target_db: DatabaseType | str) -> ParadigmAnalysis:
    """
    Compare the paradigms of two databases.

    Databases sharing at least one paradigm convert as ``same_paradigm``;
    all other pairs need a ``cross_paradigm`` conversion.

    Raises:
        ValueError: If either database id is unknown.
    """
    source_db, target_db = DatabaseType(source_db), DatabaseType(target_db)
    source_paradigms = paradigms_for(source_db)
    target_paradigms = paradigms_for(target_db)
    shared = tuple(p for p in source_paradigms if p in target_paradigms)
    approach = ConversionApproach.SAME_PARADIGM if shared else ConversionApproach.CROSS_PARADIGM
    return ParadigmAnalysis(
        source_database=source_db,
        target_database=target_db,
        source_paradigms=source_paradigms,
        target_paradigms=target_paradigms,
        shared_paradigms=shared,
        conversion_approach=approach,
    )
