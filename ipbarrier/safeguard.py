from __future__ import annotations

import logging
from typing import Optional

from .blocks.aux import MuUpdateError


# ------------------ averaged residual norms ------------------
def _averaged(norm: float, dim: int, what: str) -> float:
    if dim > 0:
        return float(norm) / dim
    if norm != 0.0:
        raise MuUpdateError(f"{what} is {norm} but its dimension is 0")
    return 0.0

def averaged_dual_inf(state: "IterateState") -> float:
    return _averaged(state.dual_infeasibility, state.n_dual, "dual infeasibility")

def averaged_primal_inf(state: "IterateState") -> float:
    return _averaged(state.primal_infeasibility, state.n_primal, "primal infeasibility")

def averaged_complementarity(state: "IterateState") -> float:
    return _averaged(state.complementarity(0.0), state.n_compl, "complementarity")


def scaled_pd_norm(state: "IterateState") -> float:
    """
    Scaled norm of the primal-dual system: the sum of the averaged 1-norms of
    dual infeasibility, primal infeasibility and complementarity.
    """
    dual_inf = averaged_dual_inf(state)
    primal_inf = averaged_primal_inf(state)
    compl = averaged_complementarity(state)
    norm_pd = primal_inf + dual_inf + compl
    logging.debug(
        f"[MuUpdate] avg primal inf={primal_inf:.6e}, avg dual inf={dual_inf:.6e}, "
        f"avg compl={compl:.6e}, scaled pd norm={norm_pd:.6e}"
    )
    return norm_pd


def compute_tau(mu: float, tau_min: float, tau_max: float) -> float:
    """Fraction-to-boundary parameter max(τ_min, min(1 - μ, τ_max))."""
    return max(tau_min, min(1.0 - mu, tau_max))


# ------------------ safeguard ------------------
class SafeguardCalculator:
    """
    Lower bound on μ proportional to the current infeasibility, normalized by
    the infeasibility seen on first use.

    Attributes
    ----------
    factor : float
        `mu_safeguard_factor`; 0 disables the safeguard.
    init_dual_inf, init_primal_inf : Optional[float]
        Baselines, None until the first call, then max(1, observed) for the
        rest of the solve.
    """

    def __init__(self, factor: float):
        self.factor = float(factor)
        self.init_dual_inf: Optional[float] = None
        self.init_primal_inf: Optional[float] = None

    def lower_bound(self, state: "IterateState", cap: float = float("inf")) -> float:
        dual_inf = averaged_dual_inf(state)
        primal_inf = averaged_primal_inf(state)

        if self.init_dual_inf is None:
            self.init_dual_inf = max(1.0, dual_inf)
        if self.init_primal_inf is None:
            self.init_primal_inf = max(1.0, primal_inf)

        bound = max(self.factor * (dual_inf / self.init_dual_inf),
                    self.factor * (primal_inf / self.init_primal_inf))
        return min(bound, cap)
