"""
Two-criterion dominance filter for the barrier-parameter globalization.

The filter stores pairs (f, θ) (objective, constraint violation) together with
the iteration at which they were recorded. A candidate (f, θ) is acceptable if
no stored pair is at least as good in both criteria, i.e. it is rejected when
some entry (f_i, θ_i) satisfies

    f ≥ f_i   and   θ ≥ θ_i .

Margins are applied by the caller when entries are inserted (see
`FilterTest.remember_current_point_as_accepted`), so the dominance test itself
is exact.

Insertion discards entries that the new entry dominates; the filter therefore
always holds a set of mutually non-dominated pairs.

Notes
-----
- θ ('theta') denotes a nonnegative measure of constraint violation, but
  shifted entries (θ - margin·θ) are stored as-is.
- Non-finite candidates are never acceptable.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, NamedTuple

import numpy as np


class FilterEntry(NamedTuple):
    f: float
    theta: float
    iteration: int

    def dominates(self, f: float, theta: float) -> bool:
        """True if (f, θ) is no better than this entry in both criteria."""
        return f >= self.f and theta >= self.theta


class Filter:
    """
    Filter over (objective, constraint violation) pairs.

    Attributes
    ----------
    entries : List[FilterEntry]
        Mutually non-dominated entries, in insertion order.
    """

    def __init__(self):
        self.entries: List[FilterEntry] = []

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[FilterEntry]:
        return iter(self.entries)

    def is_acceptable(self, f: float, theta: float) -> bool:
        """
        Check if (f, θ) is acceptable w.r.t. the current filter.

        Parameters
        ----------
        f : float
            Objective value (to be minimized).
        theta : float
            Constraint violation.

        Returns
        -------
        bool
            False if some stored entry dominates the candidate, True otherwise.
        """
        if not (np.isfinite(f) and np.isfinite(theta)):
            logging.warning(f"[Filter] invalid point: f={f}, θ={theta}")
            return False
        for entry in self.entries:
            if entry.dominates(f, theta):
                logging.debug(
                    f"[Filter] reject (f={f:.3e}, θ={theta:.3e}) dominated by "
                    f"(f={entry.f:.3e}, θ={entry.theta:.3e}, it={entry.iteration})"
                )
                return False
        return True

    def add_entry(self, f: float, theta: float, iteration: int) -> FilterEntry:
        """
        Insert (f, θ) and discard every stored entry it dominates.

        Returns
        -------
        FilterEntry
            The inserted entry.
        """
        new = FilterEntry(float(f), float(theta), int(iteration))
        kept = [e for e in self.entries if not new.dominates(e.f, e.theta)]
        n_pruned = len(self.entries) - len(kept)
        kept.append(new)
        self.entries = kept
        logging.debug(
            f"[Filter] add (f={new.f:.3e}, θ={new.theta:.3e}, it={new.iteration}); "
            f"pruned={n_pruned}, size={len(self.entries)}"
        )
        return new
