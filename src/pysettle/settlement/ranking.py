"""Ordinal ranking shared by the roster, league and global scopes."""

from __future__ import annotations

from decimal import Decimal
from typing import Callable, Iterable, List, Tuple, TypeVar


T = TypeVar("T")


def assign_ranks(
    items: Iterable[T],
    *,
    score: Callable[[T], Decimal | int],
    tiebreak: Callable[[T], int],
) -> List[Tuple[int, T]]:
    """Rank ``items`` by ``score`` descending, then ``tiebreak`` ascending.

    Every item gets a distinct rank from 1..N; equal scores are separated by
    the tie-break key rather than sharing a rank.
    """

    ordered = sorted(items, key=lambda item: (-Decimal(score(item)), tiebreak(item)))
    return [(position, item) for position, item in enumerate(ordered, start=1)]
