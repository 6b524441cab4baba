"""
engine/similarity.py
--------------------
Name similarity strategies and data type compatibility used by the matcher.

Design Decisions:
    * Name similarity is a pluggable strategy selected by name
      (``MatchOptions.name_strategy``); the Levenshtein strategy is the
      canonical one, the keyword heuristic is kept as a fallback.
    * Type compatibility is binary: the same base type, or two members of
      one type family. Integers and floats are accepted across families.
"""
from __future__ import annotations

import re
from typing import Callable, Protocol

from rapidfuzz.distance import Levenshtein

from engine.type_converter import get_base_type


class NameSimilarity(Protocol):
    def __call__(self, a: str, b: str) -> float: ...


_NON_ALNUM = re.compile(r"[^0-9a-z]")


def normalize_name(name: str) -> str:
    """Lower-case *name* and strip everything that is not a letter or digit."""
    return _NON_ALNUM.sub("", name.lower())


def levenshtein_similarity(a: str, b: str) -> float:
    """
    ``1 - distance / max(len)`` over normalized names.

    Examples::

        levenshtein_similarity("User_ID", "userid")  →  1.0
        levenshtein_similarity("abc", "xyz")         →  0.0
    """
    na, nb = normalize_name(a), normalize_name(b)
    if na == nb:
        return 1.0
    longest = max(len(na), len(nb))
    return 1.0 - Levenshtein.distance(na, nb) / longest


# Shared keywords and the score awarded when both names contain them.
_KEYWORD_SCORES = (("email", 0.8), ("user", 0.7), ("id", 0.6))


def keyword_similarity(a: str, b: str) -> float:
    """
    Containment and shared-keyword heuristic.

    Equal names score 1.0; when one contains the other the score is the
    length ratio; otherwise a fixed score for a shared well-known keyword.
    """
    la, lb = a.lower(), b.lower()
    if la == lb:
        return 1.0
    if la and lb and (la in lb or lb in la):
        return min(len(la), len(lb)) / max(len(la), len(lb))
    for keyword, score in _KEYWORD_SCORES:
        if keyword in la and keyword in lb:
            return score
    return 0.0


_STRATEGIES: dict[str, Callable[[str, str], float]] = {
    "levenshtein": levenshtein_similarity,
    "keyword": keyword_similarity,
}


def get_name_similarity(strategy: str) -> NameSimilarity:
    """
    Return the name similarity function registered as *strategy*.

    Raises:
        ValueError: For an unknown strategy name.
    """
    try:
        return _STRATEGIES[strategy.lower()]
    except KeyError:
        known = ", ".join(sorted(_STRATEGIES))
        raise ValueError(f"Unknown name similarity strategy '{strategy}' (known: {known})") from None


def register_name_similarity(strategy: str, func: Callable[[str, str], float]) -> None:
    """Register an additional strategy under *strategy*."""
    _STRATEGIES[strategy.lower()] = func


# ---------------------------------------------------------------------------
# Type compatibility
# ---------------------------------------------------------------------------
_INTEGER_FAMILY = frozenset(
    {"integer", "int", "bigint", "smallint", "int2", "int4", "int8", "tinyint", "mediumint"}
)
_FLOAT_FAMILY = frozenset(
    {"float", "double", "double precision", "real", "decimal", "numeric", "float4", "float8"}
)
_STRING_FAMILY = frozenset(
    {"varchar", "text", "char", "string", "character", "character varying", "nvarchar", "nchar"}
)
_DATE_FAMILY = frozenset(
    {"date", "datetime", "timestamp", "time", "timestamptz", "timetz",
     "timestamp with time zone", "timestamp without time zone"}
)
_TYPE_FAMILIES = (_INTEGER_FAMILY, _FLOAT_FAMILY, _STRING_FAMILY, _DATE_FAMILY)


def _family(base: str) -> frozenset[str] | None:
    for family in _TYPE_FAMILIES:
        if base in family:
            return family
    return None


def types_compatible(a: str, b: str) -> bool:
    """Return True if *a* and *b* hold the same kind of values."""
    ba, bb = get_base_type(a), get_base_type(b)
    if ba == bb:
        return True
    fa, fb = _family(ba), _family(bb)
    if fa is None or fb is None:
        return False
    if fa is fb:
        return True
    return {fa, fb} == {_INTEGER_FAMILY, _FLOAT_FAMILY}
