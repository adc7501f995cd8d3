# Shared configuration, enums and error types for the barrier-parameter update.

from __future__ import annotations

# =========================
# Standard library
# =========================
import logging
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional


# ======================================
# Errors
# ======================================
class OptionOutOfRange(ValueError):
    """An option value violates its declared range."""

    def __init__(self, option: str, value: Any, requirement: str):
        self.option = option
        self.value = value
        super().__init__(f'Option "{option}" = {value!r}: {requirement}')


class MuUpdateError(RuntimeError):
    """Internal invariant of the barrier update was violated."""


# ======================================
# Enums
# ======================================
class MuMode(Enum):
    """Operating modes of the non-monotone barrier update."""

    FREE = "free"
    FIXED = "fixed"


class Globalization(Enum):
    """Progress test guarding the free mode (option `adaptive_globalization`)."""

    REFERENCE_HISTORY = 1
    FILTER = 2


# ======================================
# Configuration
# ======================================
_INT_OPTIONS = ("nonmonotone_mu_max_refs", "adaptive_globalization")
_BOOL_OPTIONS = ("mu_never_fix",)


@dataclass
class MuUpdateConfig:
    """
    Options of the non-monotone μ update.

    Notes
    -----
    • `mu_min=None` means 0.1·ε_tol, resolved against the iterate at initialization.
    • `tau_max=None` means `tau_min`.
    • `mu_safeguard_exp` is validated and stored but not used by the safeguard.
    """

    # ---------------- Barrier bounds ----------------
    mu_max: float = 1e10
    mu_min: Optional[float] = None

    # ---------------- Fraction-to-boundary ----------------
    tau_min: float = 0.99
    tau_max: Optional[float] = None

    # ---------------- Safeguard ----------------
    mu_safeguard_exp: float = 0.0
    mu_safeguard_factor: float = 0.0

    # ---------------- Reference history ----------------
    nonmonotone_mu_refs_redfact: float = 0.9999
    nonmonotone_mu_max_refs: int = 4

    # ---------------- Mode control ----------------
    mu_never_fix: bool = False
    adaptive_globalization: int = 1

    # ---------------- Monotone reduction in fixed mode ----------------
    kappa_epsilon: float = 10.0
    kappa_mu: float = 0.2
    theta_mu: float = 1.5

    # ---------------- Filter globalization ----------------
    filter_margin: float = 1e-5
    fixed_mu_cap_unbounded: float = 1e20

    def validate(self) -> "MuUpdateConfig":
        """Raise `OptionOutOfRange` for the first option outside its range."""
        def check(name: str, ok: bool, requirement: str):
            if not ok:
                raise OptionOutOfRange(name, getattr(self, name), requirement)

        check("mu_max", self.mu_max > 0.0, "This value must be larger than 0.")
        if self.mu_min is not None:
            check("mu_min", 0.0 < self.mu_min < self.mu_max,
                  "This value must be larger than 0 and less than mu_max.")
        check("tau_min", 0.0 < self.tau_min < 1.0, "This value must be between 0 and 1.")
        if self.tau_max is not None:
            check("tau_max", 0.0 < self.tau_max <= 1.0, "This value must be between 0 and 1.")
            check("tau_max", self.tau_max >= self.tau_min, "This value must not be smaller than tau_min.")
        check("mu_safeguard_exp", self.mu_safeguard_exp >= 0.0, "This value must be non-negative.")
        check("mu_safeguard_factor", self.mu_safeguard_factor >= 0.0, "This value must be non-negative.")
        check("nonmonotone_mu_refs_redfact", 0.0 < self.nonmonotone_mu_refs_redfact < 1.0,
              "This value must be between 0 and 1.")
        check("nonmonotone_mu_max_refs", self.nonmonotone_mu_max_refs >= 0, "This value must be non-negative.")
        check("adaptive_globalization",
              self.adaptive_globalization in {g.value for g in Globalization},
              "This value must be 1 (reference history) or 2 (filter).")
        check("kappa_epsilon", self.kappa_epsilon > 0.0, "This value must be larger than 0.")
        check("kappa_mu", 0.0 < self.kappa_mu < 1.0, "This value must be between 0 and 1.")
        check("theta_mu", 1.0 < self.theta_mu < 2.0, "This value must be between 1 and 2.")
        check("filter_margin", self.filter_margin > 0.0, "This value must be larger than 0.")
        check("fixed_mu_cap_unbounded", self.fixed_mu_cap_unbounded > 0.0, "This value must be larger than 0.")
        return self

    def resolved(self, epsilon_tol: float) -> "MuUpdateConfig":
        """Validated copy with the iterate-dependent defaults filled in."""
        self.validate()
        mu_min = self.mu_min if self.mu_min is not None else 0.1 * float(epsilon_tol)
        if not (0.0 < mu_min < self.mu_max):
            raise OptionOutOfRange("mu_min", mu_min, "This value must be larger than 0 and less than mu_max.")
        tau_max = self.tau_max if self.tau_max is not None else self.tau_min
        out = replace(self, mu_min=float(mu_min), tau_max=float(tau_max),
                      mu_never_fix=bool(self.mu_never_fix))
        logging.debug(f"[MuUpdate] options: {out.as_dict()}")
        return out

    @property
    def globalization(self) -> Globalization:
        return Globalization(self.adaptive_globalization)

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_options(cls, options: Mapping[str, Any], prefix: str = "") -> "MuUpdateConfig":
        """
        Build a config from an option mapping.

        With a `prefix` (e.g. "resto." for a restoration phase) the prefixed
        key wins and the plain key is the fallback. Unknown option names raise
        KeyError. Values are coerced to the declared option type; range checks
        happen in `validate`.
        """
        known = {f.name for f in fields(cls)}
        plain: Dict[str, Any] = {}
        prefixed: Dict[str, Any] = {}
        for key, value in options.items():
            if prefix and key.startswith(prefix):
                name, target = key[len(prefix):], prefixed
            else:
                name, target = key, plain
            if name not in known:
                raise KeyError(f"Unknown option: {key}")
            target[name] = value

        kwargs: Dict[str, Any] = {}
        for key, value in {**plain, **prefixed}.items():
            if key in _BOOL_OPTIONS:
                kwargs[key] = bool(int(value))
            elif key in _INT_OPTIONS:
                kwargs[key] = int(value)
            else:
                kwargs[key] = None if value is None else float(value)
        return cls(**kwargs)
