"""
Progress tests that decide whether the free μ mode may continue.

Two variants, selected once through `make_globalization_test`:

1) `ReferenceHistoryTest` (adaptive_globalization = 1)
   - Keeps the last `nonmonotone_mu_max_refs` scaled primal-dual norms.
   - Progress is sufficient if the current norm is a `refs_red_fact` fraction
     of at least one stored reference.

2) `FilterTest` (adaptive_globalization = 2)
   - Keeps a (f, θ) dominance filter of accepted points.
   - Progress is sufficient if the current (f, θ) is not dominated.

Both also provide the caps used by the safeguard and by the choice of the fixed μ.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, List

from .blocks.aux import Globalization, MuUpdateConfig, MuUpdateError
from .blocks.filter import Filter
from .safeguard import scaled_pd_norm


class GlobalizationTest:
    """Interface shared by the two progress tests."""

    def check_sufficient_progress(self, state: "IterateState") -> bool:
        raise NotImplementedError

    def remember_current_point_as_accepted(self, state: "IterateState") -> None:
        raise NotImplementedError

    def safeguard_cap(self) -> float:
        """Upper cap applied to the μ safeguard."""
        raise NotImplementedError

    def fixed_mu_cap(self) -> float:
        """Upper cap applied to μ when entering fixed mode."""
        raise NotImplementedError


class ReferenceHistoryTest(GlobalizationTest):
    """
    Non-monotone test against a bounded FIFO of reference values.

    Parameters
    ----------
    num_refs_max : int
        History capacity. With 0 the history stays empty, every check fails and
        the history-based caps do not apply.
    refs_red_fact : float
        Required reduction factor in (0, 1).
    """

    def __init__(self, num_refs_max: int, refs_red_fact: float):
        self.num_refs_max = int(num_refs_max)
        self.refs_red_fact = float(refs_red_fact)
        self.refs: Deque[float] = deque(maxlen=self.num_refs_max)

    @property
    def values(self) -> List[float]:
        return list(self.refs)

    def is_sufficient(self, curr_norm: float) -> bool:
        return any(curr_norm <= self.refs_red_fact * ref for ref in self.refs)

    def check_sufficient_progress(self, state: "IterateState") -> bool:
        if len(self.refs) < self.num_refs_max:
            return True
        return self.is_sufficient(scaled_pd_norm(state))

    def remember(self, value: float) -> None:
        # deque(maxlen) drops the oldest entry on overflow
        self.refs.append(float(value))
        for k, ref in enumerate(self.refs, start=1):
            logging.debug(f"[MuUpdate] pd system reference[{k:2d}] = {ref:.6e}")

    def remember_current_point_as_accepted(self, state: "IterateState") -> None:
        self.remember(scaled_pd_norm(state))

    def min_ref_val(self) -> float:
        if not self.refs:
            raise MuUpdateError("min_ref_val called with an empty reference history")
        return min(self.refs)

    def max_ref_val(self) -> float:
        if not self.refs:
            raise MuUpdateError("max_ref_val called with an empty reference history")
        return max(self.refs)

    def safeguard_cap(self) -> float:
        if self.num_refs_max == 0:
            return float("inf")
        return self.min_ref_val()

    def fixed_mu_cap(self) -> float:
        if self.num_refs_max == 0:
            return float("inf")
        return 0.1 * self.max_ref_val()


class FilterTest(GlobalizationTest):
    """
    Dominance filter on (f, θ).

    Accepted points enter the filter shifted by `margin·θ` in both criteria so
    a later point must improve on them by a genuine margin.
    """

    def __init__(self, margin: float = 1e-5, unbounded_cap: float = 1e20):
        self.margin = float(margin)
        self.unbounded_cap = float(unbounded_cap)
        self.filter = Filter()

    def check_sufficient_progress(self, state: "IterateState") -> bool:
        return self.filter.is_acceptable(state.f, state.constraint_violation)

    def remember_current_point_as_accepted(self, state: "IterateState") -> None:
        theta = state.constraint_violation
        self.filter.add_entry(state.f - self.margin * theta,
                              theta - self.margin * theta,
                              state.iter_count)

    def safeguard_cap(self) -> float:
        return float("inf")

    def fixed_mu_cap(self) -> float:
        return 0.1 * self.unbounded_cap


def make_globalization_test(cfg: MuUpdateConfig) -> GlobalizationTest:
    """Build the progress test selected by `cfg.adaptive_globalization`."""
    try:
        kind = Globalization(cfg.adaptive_globalization)
    except ValueError:
        raise MuUpdateError(f"Unknown adaptive_globalization value: {cfg.adaptive_globalization}") from None
    if kind is Globalization.REFERENCE_HISTORY:
        return ReferenceHistoryTest(cfg.nonmonotone_mu_max_refs, cfg.nonmonotone_mu_refs_redfact)
    return FilterTest(cfg.filter_margin, cfg.fixed_mu_cap_unbounded)
