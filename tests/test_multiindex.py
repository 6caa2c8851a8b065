from math import comb

from symextrema.core.multiindex import (
    excess,
    ipartition,
    multinomial_factorial,
    order_of,
    sorted_partitions,
    unit_index,
)


def test_ipartition_counts_and_sums():
    for m, n in [(0, 3), (1, 2), (3, 2), (4, 3), (5, 1)]:
        parts = ipartition(m, n)
        assert len(parts) == comb(m + n - 1, n - 1)
        assert all(len(p) == n and sum(p) == m and min(p) >= 0 for p in parts)


def test_ipartition_second_order_two_variables():
    assert ipartition(2, 2) == {(2, 0), (1, 1), (0, 2)}


def test_ipartition_frozen_coordinate_keeps_start_value():
    assert ipartition(2, 3, frozen=(0, 1, 0)) == {(2, 0, 0), (1, 0, 1), (0, 0, 2)}
    assert ipartition(3, 2, start=(1, 0)) == {(3, 0), (2, 1), (1, 2)}
    assert ipartition(1, 2, start=(2, 0)) == set()


def test_sorted_partitions_is_deterministic():
    assert sorted_partitions(2, 2) == [(2, 0), (1, 1), (0, 2)]


def test_index_helpers():
    assert unit_index(3, 1) == (0, 1, 0)
    assert order_of((2, 1, 5), drop_last=True) == 3
    assert excess((2, 1), (1, 1)) == (1, 0)
    assert excess((0, 1), (1, 0)) is None
    assert multinomial_factorial((3, 2, 0)) == 12
