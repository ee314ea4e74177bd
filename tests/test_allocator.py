from chartmaker.models.catalog import BrowseResult
from chartmaker.models.recommend import RecommendCellSpec
from chartmaker.services.recommendation.allocator import allocate
from chartmaker.services.recommendation.grouping import group_key_of


def item(item_id):
    return BrowseResult(id=item_id, name=str(item_id))


def cell(tags, skip=0, label=""):
    return RecommendCellSpec(label=label, tags=tuple(tags), skip=skip)


COMEDY = cell(["comedy"])
DRAMA = cell(["drama"])


def pools():
    return {
        group_key_of(COMEDY): [item("A"), item("B"), item("C")],
        group_key_of(DRAMA): [item("X")],
    }


def ids(results):
    return [r.item.id if r.found else None for r in results]


def test_shared_group_with_skip():
    specs = [cell(["comedy"], 0, "c1"), cell(["comedy"], 1, "c2"), cell(["drama"], 0, "c3")]
    results = allocate(specs, pools())

    # c2 skips past B (A is already used), landing on C
    assert ids(results) == ["A", "C", "X"]
    assert [r.label for r in results] == ["c1", "c2", "c3"]


def test_shared_group_without_skip_takes_next_unused():
    specs = [cell(["comedy"]), cell(["comedy"]), cell(["drama"])]
    assert ids(allocate(specs, pools())) == ["A", "B", "X"]


def test_exclusion_seed_is_respected():
    results = allocate([cell(["comedy"])], pools(), exclude_ids=["A"])
    assert ids(results) == ["B"]


def test_exclusion_seed_is_not_mutated():
    seed = ["A"]
    allocate([cell(["comedy"]), cell(["comedy"])], pools(), exclude_ids=seed)
    assert seed == ["A"]


def test_missing_or_empty_pool_is_not_found():
    specs = [cell(["horror"]), cell(["comedy"])]
    p = pools()
    p[group_key_of(cell(["horror"]))] = []
    results = allocate(specs, p)

    assert [r.found for r in results] == [False, True]
    assert results[0].item is None


def test_pool_exhausted_before_skip_is_satisfied():
    assert ids(allocate([cell(["comedy"], skip=3)], pools())) == [None]
    assert ids(allocate([cell(["drama"]), cell(["drama"])], pools())) == ["X", None]


def test_no_duplicates_and_no_seeded_ids_in_output():
    specs = [cell(["comedy"], skip=s % 2) for s in range(6)] + [cell(["drama"])] * 3
    seed = ["B"]
    results = allocate(specs, pools(), exclude_ids=seed)

    assigned = [r.item.id for r in results if r.found]
    assert len(assigned) == len(set(assigned))
    assert not set(assigned) & set(seed)


def test_allocation_is_deterministic():
    specs = [cell(["comedy"], 1), cell(["drama"]), cell(["comedy"]), cell(["comedy"])]
    first = allocate(specs, pools(), exclude_ids=[])
    second = allocate(specs, pools(), exclude_ids=[])
    assert first == second


def test_mixed_id_types_do_not_collide():
    key = group_key_of(cell(["x"]))
    results = allocate([cell(["x"]), cell(["x"])], {key: [item(17), item("v17")]})
    assert ids(results) == [17, "v17"]
