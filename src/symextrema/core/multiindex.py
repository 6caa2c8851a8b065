"""Multi-index helpers.

A multi-index is a tuple of non-negative ints, one entry per variable; its
sum is the differentiation order it denotes.
"""

from __future__ import annotations

from math import factorial
from typing import List, Optional, Sequence, Set, Tuple

MultiIndex = Tuple[int, ...]


def ipartition(m: int, n: int, start: Optional[Sequence[int]] = None,
               frozen: Optional[Sequence[int]] = None) -> Set[MultiIndex]:
    """All length-``n`` multi-indices summing to ``m``.

    Coordinates are grown depth-first from ``start`` (zeros by default);
    coordinates with a non-zero ``frozen`` flag keep their starting value.
    """
    if n <= 0:
        raise ValueError("a multi-index needs at least one coordinate")
    base = tuple(start) if start is not None else (0,) * n
    if len(base) != n or (frozen is not None and len(frozen) != n):
        raise ValueError("start/frozen must have one entry per coordinate")
    free = [i for i in range(n) if not (frozen and frozen[i])]
    remainder = m - sum(base)
    found: Set[MultiIndex] = set()
    if remainder < 0:
        return found
    if not free:
        if remainder == 0:
            found.add(base)
        return found

    current = list(base)

    def spread(pos: int, left: int) -> None:
        i = free[pos]
        if pos == len(free) - 1:
            current[i] += left
            found.add(tuple(current))
            current[i] -= left
            return
        for k in range(left + 1):
            current[i] += k
            spread(pos + 1, left - k)
            current[i] -= k

    spread(0, remainder)
    return found


def sorted_partitions(m: int, n: int) -> List[MultiIndex]:
    """``ipartition(m, n)`` in a fixed (lexicographically descending) order."""
    return sorted(ipartition(m, n), reverse=True)


def order_of(sig: Sequence[int], drop_last: bool = False) -> int:
    """Differentiation order; ``drop_last`` ignores a trailing tag entry."""
    return sum(sig[:-1]) if drop_last else sum(sig)


def unit_index(n: int, i: int) -> MultiIndex:
    return tuple(1 if j == i else 0 for j in range(n))


def excess(sig: Sequence[int], base: Sequence[int]) -> Optional[MultiIndex]:
    """Component-wise ``sig - base``, or None if any component is negative."""
    diff = tuple(a - b for a, b in zip(sig, base))
    if any(d < 0 for d in diff):
        return None
    return diff


def multinomial_factorial(sig: Sequence[int]) -> int:
    result = 1
    for k in sig:
        result *= factorial(k)
    return result
