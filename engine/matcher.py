"""
engine/matcher.py
-----------------
Structural correspondence between two Unified Models.

Computes a one-to-one assignment of source tables to target tables and,
inside each matched pair, of source columns to target columns, with a
multi-factor similarity score for every assignment.

Design Decisions:
    * Names are always processed in sorted order so identical inputs give
      identical results. Among equally scored candidates the lexically
      smallest target name wins.
    * Assignment is greedy: each source (in sorted order) takes the best
      still-unused target. This is a heuristic, not a global optimum; an
      optimal assignment function can be passed as ``assign=`` without
      changing callers.
    * Every score is a weighted mean normalized by the weights of the
      factors actually applied, so missing enrichment keeps scores in [0, 1].
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from config import CONFIG
from engine.errors import PreconditionError
from engine.similarity import (
    NameSimilarity,
    get_name_similarity,
    types_compatible,
)
from engine.type_converter import get_base_type
from logger import get_logger
from models.enrichment import (
    ColumnEnrichment,
    ColumnKey,
    TableEnrichment,
    UnifiedModelEnrichment,
)
from models.unified_model import Column, Table, UnifiedModel

log = get_logger(__name__)

UNKNOWN_LABEL = "unknown"

# (source, target, score); target is None when the source stayed unassigned.
Assignment = list[tuple[str, str | None, float]]
ScoreFn = Callable[[str, str], float]
AssignFn = Callable[[list[str], list[str], ScoreFn], Assignment]


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MatchOptions:
    """Weights, thresholds and name strategy of one matching run."""
    name_similarity_threshold: float = field(
        default_factory=lambda: CONFIG.matching.name_similarity_threshold
    )
    poor_match_threshold: float = field(
        default_factory=lambda: CONFIG.matching.poor_match_threshold
    )
    name_weight: float = 0.4
    type_weight: float = 0.2
    classification_weight: float = 0.2
    privileged_data_weight: float = 0.15
    structure_weight: float = 0.05
    name_strategy: str = field(default_factory=lambda: CONFIG.matching.name_strategy)

    def __post_init__(self) -> None:
        for name in ("name_similarity_threshold", "poor_match_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        for name in (
            "name_weight", "type_weight", "classification_weight",
            "privileged_data_weight", "structure_weight",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class ColumnMatch:
    source_table: str
    source_column: str
    target_table: str
    target_column: str | None
    score: float
    is_type_compatible: bool = False
    privileged_data_match: bool = False
    data_category_match: str = UNKNOWN_LABEL
    confidence_delta: float = 0.0
    is_poor_match: bool = False
    is_unmatched: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_table": self.source_table,
            "source_column": self.source_column,
            "target_table": self.target_table,
            "target_column": self.target_column,
            "score": self.score,
            "is_type_compatible": self.is_type_compatible,
            "privileged_data_match": self.privileged_data_match,
            "data_category_match": self.data_category_match,
            "confidence_delta": self.confidence_delta,
            "is_poor_match": self.is_poor_match,
            "is_unmatched": self.is_unmatched,
        }


@dataclass
class TableMatch:
    source_table: str
    target_table: str | None
    score: float
    is_poor_match: bool = False
    is_unmatched: bool = False
    classification_match: str = UNKNOWN_LABEL
    confidence_delta: float = 0.0
    matched_columns: int = 0
    total_source_columns: int = 0
    total_target_columns: int = 0
    column_matches: list[ColumnMatch] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_table": self.source_table,
            "target_table": self.target_table,
            "score": self.score,
            "is_poor_match": self.is_poor_match,
            "is_unmatched": self.is_unmatched,
            "classification_match": self.classification_match,
            "confidence_delta": self.confidence_delta,
            "matched_columns": self.matched_columns,
            "total_source_columns": self.total_source_columns,
            "total_target_columns": self.total_target_columns,
            "column_matches": [cm.to_dict() for cm in self.column_matches],
        }


@dataclass
class MatchResult:
    table_matches: list[TableMatch] = field(default_factory=list)
    unmatched_columns: list[ColumnMatch] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    overall_similarity_score: float = 0.0

    @property
    def matched_tables(self) -> list[TableMatch]:
        return [tm for tm in self.table_matches if not tm.is_unmatched]

    def to_dict(self) -> dict[str, Any]:
        return {
            "table_matches": [tm.to_dict() for tm in self.table_matches],
            "unmatched_columns": [cm.to_dict() for cm in self.unmatched_columns],
            "warnings": list(self.warnings),
            "overall_similarity_score": self.overall_similarity_score,
        }


# ---------------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------------

def greedy_assignment(
    sources: list[str], targets: list[str], score: ScoreFn
) -> Assignment:
    """
    Greedy one-to-one assignment.

    Each source, in sorted order, takes the unused target with the strictly
    highest score above zero. Targets are scanned in sorted order and only
    a strictly better score replaces the current best, so ties resolve to
    the lexically smallest target name.
    """
    used: set[str] = set()
    result: Assignment = []
    ordered_targets = sorted(targets)
    for src in sorted(sources):
        best_target: str | None = None
        best_score = 0.0
        for tgt in ordered_targets:
            if tgt in used:
                continue
            s = score(src, tgt)
            if s > best_score:
                best_target, best_score = tgt, s
        if best_target is not None:
            used.add(best_target)
        result.append((src, best_target, best_score))
    return result


def _weighted_mean(factors: Iterable[tuple[float, float]]) -> float:
    total = 0.0
    weight_sum = 0.0
    for value, weight in factors:
        total += value * weight
        weight_sum += weight
    if weight_sum <= 0:
        return 0.0
    return total / weight_sum


def _category_label(a: Any, b: Any) -> str:
    if a is None or b is None:
        return UNKNOWN_LABEL
    a_val = getattr(a, "value", a)
    b_val = getattr(b, "value", b)
    return a_val if a_val == b_val else f"{a_val}->{b_val}"


# ---------------------------------------------------------------------------
# Matcher
# ---------------------------------------------------------------------------

class UnifiedModelMatcher:
    """
    Matches the tables and columns of two Unified Models.

    Stateless between calls; one instance may serve concurrent callers.
    """

    def __init__(self, assign: AssignFn = greedy_assignment) -> None:
        self._assign = assign

    def match(
        self,
        source: UnifiedModel | None,
        target: UnifiedModel | None,
        source_enrichment: UnifiedModelEnrichment | None = None,
        target_enrichment: UnifiedModelEnrichment | None = None,
        options: MatchOptions | None = None,
    ) -> MatchResult:
        """
        Match *source* against *target*.

        Raises:
            PreconditionError: If either model is None.
        """
        if source is None:
            raise PreconditionError("source model is required")
        if target is None:
            raise PreconditionError("target model is required")
        run = _MatchRun(
            source, target, source_enrichment, target_enrichment,
            options or MatchOptions(),
        )
        result = MatchResult()

        assignment = self._assign(
            list(source.tables), list(target.tables), run.table_similarity
        )
        for src_name, tgt_name, score in assignment:
            if tgt_name is None:
                log.debug("No target table for '%s'.", src_name)
                result.table_matches.append(run.unmatched_table(src_name))
                result.warnings.append(f"table '{src_name}' has no counterpart in target")
                continue
            log.debug("Matched table '%s' -> '%s' (%.3f).", src_name, tgt_name, score)
            table_match = run.table_match(src_name, tgt_name, score, self._assign)
            result.table_matches.append(table_match)
            result.unmatched_columns.extend(
                cm for cm in table_match.column_matches if cm.is_unmatched
            )

        matched = result.matched_tables
        if matched:
            mean = sum(tm.score for tm in matched) / len(matched)
            coverage = len(matched) / max(len(source.tables), len(target.tables))
            result.overall_similarity_score = mean * coverage

        log.info(
            "Matched %d of %d source table(s); overall similarity %.3f.",
            len(matched), len(source.tables), result.overall_similarity_score,
        )
        return result


def match_unified_models(
    source: UnifiedModel | None,
    source_enrichment: UnifiedModelEnrichment | None,
    target: UnifiedModel | None,
    target_enrichment: UnifiedModelEnrichment | None,
    options: MatchOptions | None = None,
) -> MatchResult:
    """Module-level entry point using the default greedy matcher."""
    return UnifiedModelMatcher().match(
        source, target, source_enrichment, target_enrichment, options
    )


class _MatchRun:
    """Scoring state for one ``match`` call."""

    def __init__(
        self,
        source: UnifiedModel,
        target: UnifiedModel,
        source_enrichment: UnifiedModelEnrichment | None,
        target_enrichment: UnifiedModelEnrichment | None,
        options: MatchOptions,
    ) -> None:
        self.source = source
        self.target = target
        self.source_enrichment = source_enrichment
        self.target_enrichment = target_enrichment
        self.options = options
        self.name_similarity: NameSimilarity = get_name_similarity(options.name_strategy)

    # --- Enrichment lookups ---

    def _table_enrichments(
        self, src: str, tgt: str
    ) -> tuple[TableEnrichment | None, TableEnrichment | None]:
        s = self.source_enrichment.table(src) if self.source_enrichment else None
        t = self.target_enrichment.table(tgt) if self.target_enrichment else None
        return s, t

    def _column_enrichments(
        self, src: ColumnKey, tgt: ColumnKey
    ) -> tuple[ColumnEnrichment | None, ColumnEnrichment | None]:
        s = self.source_enrichment.column(src) if self.source_enrichment else None
        t = self.target_enrichment.column(tgt) if self.target_enrichment else None
        return s, t

    # --- Factors ---

    def _name_score(self, a: str, b: str) -> float:
        score = self.name_similarity(a, b)
        return score if score >= self.options.name_similarity_threshold else 0.0

    @staticmethod
    def structural_similarity(a: Table, b: Table) -> float:
        count_a, count_b = len(a.columns), len(b.columns)
        if count_a == 0 and count_b == 0:
            return 1.0
        count_score = 1.0 - abs(count_a - count_b) / max(count_a, count_b)

        hist_a = Counter(get_base_type(c.data_type) for c in a.columns.values())
        hist_b = Counter(get_base_type(c.data_type) for c in b.columns.values())
        overlap = sum(min(count, hist_b[t]) for t, count in hist_a.items())
        total = sum(hist_a.values()) + sum(n for t, n in hist_b.items() if t not in hist_a)
        type_score = overlap / total if total else 0.0
        return (count_score + type_score) / 2

    @staticmethod
    def classification_similarity(a: TableEnrichment, b: TableEnrichment) -> float:
        category = 1.0 if a.primary_category == b.primary_category else 0.0
        confidence = 1.0 - abs(a.classification_confidence - b.classification_confidence)
        access = 1.0 if a.access_pattern == b.access_pattern else 0.0
        return (category + confidence + access) / 3

    @staticmethod
    def privileged_similarity(a: ColumnEnrichment, b: ColumnEnrichment) -> float:
        category = 1.0 if a.data_category == b.data_category else 0.0
        risk = 1.0 if a.risk_level == b.risk_level else 0.0
        flag = 1.0 if a.is_privileged_data == b.is_privileged_data else 0.0
        return (category + risk + flag) / 3

    # --- Scores ---

    def table_similarity(self, src: str, tgt: str) -> float:
        a, b = self.source.tables[src], self.target.tables[tgt]
        opts = self.options
        factors = [
            (self._name_score(src, tgt), opts.name_weight),
            (self.structural_similarity(a, b), opts.structure_weight),
        ]
        ea, eb = self._table_enrichments(src, tgt)
        if ea is not None and eb is not None:
            factors.append((self.classification_similarity(ea, eb), opts.classification_weight))
        return _weighted_mean(factors)

    def column_similarity(self, src: ColumnKey, tgt: ColumnKey) -> float:
        a = self.source.tables[src.table].columns[src.column]
        b = self.target.tables[tgt.table].columns[tgt.column]
        opts = self.options
        factors = [
            (self._name_score(src.column, tgt.column), opts.name_weight),
            (1.0 if types_compatible(a.data_type, b.data_type) else 0.0, opts.type_weight),
        ]
        ea, eb = self._column_enrichments(src, tgt)
        if ea is not None and eb is not None:
            factors.append((self.privileged_similarity(ea, eb), opts.privileged_data_weight))
        return _weighted_mean(factors)

    # --- Records ---

    def unmatched_table(self, src: str) -> TableMatch:
        return TableMatch(
            source_table=src,
            target_table=None,
            score=0.0,
            is_poor_match=True,
            is_unmatched=True,
            total_source_columns=len(self.source.tables[src].columns),
        )

    def table_match(self, src: str, tgt: str, score: float, assign: AssignFn) -> TableMatch:
        a, b = self.source.tables[src], self.target.tables[tgt]
        ea, eb = self._table_enrichments(src, tgt)
        record = TableMatch(
            source_table=src,
            target_table=tgt,
            score=score,
            is_poor_match=score < self.options.poor_match_threshold,
            total_source_columns=len(a.columns),
            total_target_columns=len(b.columns),
        )
        if ea is not None and eb is not None:
            record.classification_match = _category_label(ea.primary_category, eb.primary_category)
            record.confidence_delta = abs(
                ea.classification_confidence - eb.classification_confidence
            )

        def score_columns(src_col: str, tgt_col: str) -> float:
            return self.column_similarity(ColumnKey(src, src_col), ColumnKey(tgt, tgt_col))

        for src_col, tgt_col, col_score in assign(list(a.columns), list(b.columns), score_columns):
            if tgt_col is None:
                record.column_matches.append(ColumnMatch(
                    source_table=src,
                    source_column=src_col,
                    target_table=tgt,
                    target_column=None,
                    score=0.0,
                    is_poor_match=True,
                    is_unmatched=True,
                ))
                continue
            record.column_matches.append(
                self._column_match(ColumnKey(src, src_col), ColumnKey(tgt, tgt_col), col_score)
            )
            record.matched_columns += 1
        return record

    def _column_match(self, src: ColumnKey, tgt: ColumnKey, score: float) -> ColumnMatch:
        a: Column = self.source.tables[src.table].columns[src.column]
        b: Column = self.target.tables[tgt.table].columns[tgt.column]
        ea, eb = self._column_enrichments(src, tgt)
        record = ColumnMatch(
            source_table=src.table,
            source_column=src.column,
            target_table=tgt.table,
            target_column=tgt.column,
            score=score,
            is_type_compatible=types_compatible(a.data_type, b.data_type),
            is_poor_match=score < self.options.poor_match_threshold,
        )
        if ea is not None and eb is not None:
            record.privileged_data_match = ea.is_privileged_data and eb.is_privileged_data
            record.data_category_match = _category_label(ea.data_category, eb.data_category)
            record.confidence_delta = abs(ea.privileged_confidence - eb.privileged_confidence)
        return record
