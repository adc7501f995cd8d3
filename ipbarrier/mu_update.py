# mu_update.py
# Adaptive non-monotone barrier parameter update (free / fixed μ modes).
# - Free mode: μ from an oracle every iteration, safeguarded from below
# - Fixed mode: μ held (or reduced monotonically) until sufficient progress
# - Progress judged by a reference history or a (f, θ) filter
from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from .blocks.aux import MuMode, MuUpdateConfig, MuUpdateError
from .globalization import GlobalizationTest, make_globalization_test
from .safeguard import SafeguardCalculator, compute_tau


# ------------------ diagnostics ------------------
_EVENT_MESSAGES: Dict[str, str] = dict(
    no_bounds="problem has no bounds; mu fixed at {mu:.6e}, tau at {tau:.6e}",
    switch_to_free="switching back to free mu mode",
    stay_fixed="remaining in fixed mu mode",
    fixed_reduce="reducing mu to {mu:.6e} in fixed mu mode; tau becomes {tau:.6e}",
    stay_free="staying in free mu mode",
    switch_to_fixed="switching to fixed mu mode with mu = {mu:.6e} and tau = {tau:.6e}",
    safeguard="mu = {mu:.6e} smaller than safeguard = {safeguard:.6e}; increasing mu",
    oracle_mu="barrier parameter mu computed by oracle is {mu:.6e}",
    free_mu="mu after safeguards is {mu:.6e}; fraction-to-the-boundary tau is {tau:.6e}",
)

_INFO_EVENTS = ("switch_to_free", "switch_to_fixed", "no_bounds")


class LoggingObserver:
    """Default observer: formats barrier-update events through `logging`."""

    def __call__(self, event: str, **data) -> None:
        msg = _EVENT_MESSAGES.get(event, event).format(**data)
        level = logging.INFO if event in _INFO_EVENTS else logging.DEBUG
        logging.log(level, f"[MuUpdate] {msg}")


# ------------------ strategy ------------------
class NonmonotoneMuUpdate:
    """
    Per-iteration barrier parameter update with free/fixed mode switching.

    Parameters
    ----------
    line_search : object
        Anything with `reset()`; called whenever μ or τ change.
    free_mu_oracle : object
        Anything with `calculate_mu() -> float`; required.
    fix_mu_oracle : object, optional
        Oracle for the μ chosen when entering fixed mode. Without it the
        average complementarity of the iterate is used.
    observer : callable, optional
        `observer(event, **data)`, invoked at each decision point.
    """

    def __init__(
        self,
        line_search,
        free_mu_oracle,
        fix_mu_oracle=None,
        observer: Optional[Callable[..., None]] = None,
    ):
        if line_search is None:
            raise ValueError("line_search is required")
        if free_mu_oracle is None:
            raise ValueError("free_mu_oracle is required")
        self.line_search = line_search
        self.free_mu_oracle = free_mu_oracle
        self.fix_mu_oracle = fix_mu_oracle
        self.observer = observer if observer is not None else LoggingObserver()

        self.cfg: Optional[MuUpdateConfig] = None
        self.globalization: Optional[GlobalizationTest] = None
        self.safeguard: Optional[SafeguardCalculator] = None
        self.mode = MuMode.FREE
        self._checked_bounds = False
        self._no_bounds = False

    # ---------- init ----------
    def initialize(self, cfg: MuUpdateConfig, state: "IterateState") -> bool:
        """
        Bind options and reset all per-solve memory.

        Raises `OptionOutOfRange` for an invalid option. Returns False (and
        leaves the strategy unusable) if an oracle fails to initialize.
        """
        self.cfg = None
        cfg = cfg.resolved(state.epsilon_tol)

        for oracle in (self.free_mu_oracle, self.fix_mu_oracle):
            init = getattr(oracle, "initialize", None) if oracle is not None else None
            if init is not None and not init(state, cfg):
                logging.warning(f"[MuUpdate] oracle {type(oracle).__name__} failed to initialize")
                return False

        self.cfg = cfg
        self.globalization = make_globalization_test(cfg)
        self.safeguard = SafeguardCalculator(cfg.mu_safeguard_factor)
        self.mode = MuMode.FREE
        self._checked_bounds = False
        self._no_bounds = False
        state.free_mu_mode = True
        return True

    # ---------- helpers ----------
    def compute_tau(self, mu: float) -> float:
        return compute_tau(mu, self.cfg.tau_min, self.cfg.tau_max)

    def _set_mode(self, state, mode: MuMode) -> None:
        self.mode = mode
        state.free_mu_mode = mode is MuMode.FREE

    def _commit(self, state, mu: float, tau: float) -> None:
        state.mu = mu
        state.tau = tau
        self.line_search.reset()

    def lower_mu_safeguard(self, state) -> float:
        return self.safeguard.lower_bound(state, self.globalization.safeguard_cap())

    def check_sufficient_progress(self, state) -> bool:
        if self.cfg.mu_never_fix:
            return True
        return self.globalization.check_sufficient_progress(state)

    def remember_current_point_as_accepted(self, state) -> None:
        self.globalization.remember_current_point_as_accepted(state)

    def new_fixed_mu(self, state) -> float:
        """μ used when switching into fixed mode."""
        cfg = self.cfg
        max_ref = self.globalization.fixed_mu_cap()
        if self.fix_mu_oracle is not None:
            mu = float(self.fix_mu_oracle.calculate_mu())
        else:
            mu = float(state.avrg_compl)
        mu = max(mu, self.lower_mu_safeguard(state))
        mu = min(mu, max_ref)
        mu = max(mu, cfg.mu_min)
        return min(mu, cfg.mu_max)

    # ---------- main entry ----------
    def update_barrier_parameter(self, state: "IterateState") -> None:
        """Compute and commit μ and τ for the next iteration."""
        if self.cfg is None:
            raise MuUpdateError("update_barrier_parameter called before a successful initialize")
        cfg = self.cfg
        notify = self.observer

        if not self._checked_bounds:
            self._no_bounds = state.n_bounds == 0
            self._checked_bounds = True
        if self._no_bounds:
            if state.mu != cfg.mu_min or state.tau != cfg.tau_min:
                self._commit(state, cfg.mu_min, cfg.tau_min)
                notify("no_bounds", mu=cfg.mu_min, tau=cfg.tau_min)
            return

        # --- mode transition
        if self.mode is MuMode.FIXED:
            if self.check_sufficient_progress(state):
                notify("switch_to_free")
                self._set_mode(state, MuMode.FREE)
                self.remember_current_point_as_accepted(state)
            else:
                notify("stay_fixed")
                mu = state.mu
                if state.barrier_error <= cfg.kappa_epsilon * mu:
                    new_mu = min(cfg.kappa_mu * mu, mu ** cfg.theta_mu)
                    new_mu = max(new_mu, state.epsilon_tol / 10.0, cfg.mu_min)
                    new_mu = min(new_mu, cfg.mu_max)
                    new_tau = self.compute_tau(new_mu)
                    self._commit(state, new_mu, new_tau)
                    notify("fixed_reduce", mu=new_mu, tau=new_tau)
        else:
            if self.check_sufficient_progress(state):
                notify("stay_free")
                self.remember_current_point_as_accepted(state)
            else:
                self._set_mode(state, MuMode.FIXED)
                mu = self.new_fixed_mu(state)
                tau = self.compute_tau(mu)
                self._commit(state, mu, tau)
                notify("switch_to_fixed", mu=mu, tau=tau)

        if self.mode is not MuMode.FREE:
            state.append_info_string("F")
            return

        # --- free mode: oracle μ with safeguards
        mu = float(self.free_mu_oracle.calculate_mu())
        mu = max(mu, cfg.mu_min)
        mu_lower_safe = self.lower_mu_safeguard(state)
        if mu < mu_lower_safe:
            notify("safeguard", mu=mu, safeguard=mu_lower_safe)
            mu = mu_lower_safe
            state.append_info_string("m")
        notify("oracle_mu", mu=mu)

        mu = min(mu, cfg.mu_max)
        tau = self.compute_tau(mu)
        self._commit(state, mu, tau)
        notify("free_mu", mu=mu, tau=tau)
