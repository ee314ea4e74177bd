from collections.abc import Iterable, Mapping, Sequence

from chartmaker.models.catalog import BrowseResult, ItemId
from chartmaker.models.recommend import RecommendCellResult, RecommendCellSpec
from chartmaker.services.recommendation.grouping import QueryGroupKey, group_key_of


def allocate(
    specs: Sequence[RecommendCellSpec],
    pools: Mapping[QueryGroupKey, Sequence[BrowseResult]],
    exclude_ids: Iterable[ItemId] = (),
) -> list[RecommendCellResult]:
    """
    Assign at most one item to each cell, in input order.

    Each cell scans its group's pool in returned order, ignores items already
    used (seeded from ``exclude_ids``), passes over ``spec.skip`` of the
    remaining ones and takes the next. The chosen id is marked used before the
    next cell is processed, so no two cells ever share an item. The result is
    a pure function of the arguments.
    """
    used: set[ItemId] = set(exclude_ids)
    results: list[RecommendCellResult] = []

    for spec in specs:
        result = RecommendCellResult(label=spec.label)
        skipped = 0
        for item in pools.get(group_key_of(spec)) or ():
            if item.id in used:
                continue
            if skipped < spec.skip:
                skipped += 1
                continue
            result = RecommendCellResult(label=spec.label, item=item.model_copy(), found=True)
            used.add(item.id)
            break
        results.append(result)

    return results
