from __future__ import annotations

import math

from ipbarrier.blocks.filter import Filter, FilterEntry


def test_empty_filter_accepts_any_finite_point() -> None:
    flt = Filter()

    assert flt.is_acceptable(1e6, 1e6)
    assert flt.is_acceptable(-1.0, 0.0)


def test_dominated_candidates_are_rejected() -> None:
    flt = Filter()
    flt.add_entry(1.0, 0.5, iteration=3)

    assert not flt.is_acceptable(2.0, 0.6)
    # ties count as dominated
    assert not flt.is_acceptable(1.0, 0.5)
    assert flt.is_acceptable(0.9, 0.6)
    assert flt.is_acceptable(2.0, 0.4)


def test_non_finite_candidates_are_rejected() -> None:
    flt = Filter()

    assert not flt.is_acceptable(math.nan, 0.0)
    assert not flt.is_acceptable(0.0, math.inf)


def test_add_entry_prunes_entries_it_dominates() -> None:
    # pruning on insertion follows the usual filter convention
    flt = Filter()
    flt.add_entry(3.0, 0.1, iteration=0)
    flt.add_entry(2.0, 0.5, iteration=1)
    flt.add_entry(1.0, 1.0, iteration=2)

    new = flt.add_entry(1.5, 0.2, iteration=3)

    assert new == FilterEntry(1.5, 0.2, 3)
    assert list(flt) == [FilterEntry(3.0, 0.1, 0), FilterEntry(1.0, 1.0, 2), new]

