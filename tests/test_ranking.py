from decimal import Decimal

from pysettle.settlement.ranking import assign_ranks


def test_ties_are_separated_by_tiebreak():
    items = [("late", Decimal("10"), 3), ("early", Decimal("10"), 1), ("top", Decimal("12.5"), 2)]
    ranked = assign_ranks(items, score=lambda item: item[1], tiebreak=lambda item: item[2])
    assert [(rank, item[0]) for rank, item in ranked] == [(1, "top"), (2, "early"), (3, "late")]


def test_ranks_form_a_permutation():
    items = [(i, Decimal(i % 4)) for i in range(25)]
    ranked = assign_ranks(items, score=lambda item: item[1], tiebreak=lambda item: item[0])
    assert sorted(rank for rank, _ in ranked) == list(range(1, 26))


def test_empty_pool():
    assert assign_ranks([], score=lambda item: 0, tiebreak=lambda item: 0) == []
