from collections.abc import Sequence
from typing import NamedTuple

from chartmaker.core.constants import DEFAULT_SUBJECT_TYPE
from chartmaker.models.recommend import RecommendCellSpec


class QueryGroupKey(NamedTuple):
    """
    Canonical query shape of a recommendation cell.

    Cells with equal keys are interchangeable for fetching and share one
    upstream call. Tags are kept as a sorted tuple rather than a joined
    string, so no separator can collide with tag content.
    """

    tags: tuple[str, ...]
    sort: str
    subject_type: str


def group_key_of(spec: RecommendCellSpec) -> QueryGroupKey:
    """Key depends only on the filter fields; label and skip never affect fetching."""
    tags = tuple(sorted({t.strip() for t in spec.tags if t and t.strip()}))
    subject_type = spec.subject_type
    # An "anything" cell is grouped with other untyped cells instead of
    # acting as a wildcard across groups.
    if not tags and not subject_type:
        subject_type = DEFAULT_SUBJECT_TYPE
    return QueryGroupKey(tags=tags, sort=spec.sort, subject_type=subject_type)


def group_specs(specs: Sequence[RecommendCellSpec]) -> dict[QueryGroupKey, list[int]]:
    """Partition cell positions by group key, keys ordered by first appearance."""
    groups: dict[QueryGroupKey, list[int]] = {}
    for index, spec in enumerate(specs):
        groups.setdefault(group_key_of(spec), []).append(index)
    return groups
