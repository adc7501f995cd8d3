from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np


# ------------------ tiny numerics ------------------
def _as_vec(v) -> np.ndarray:
    if v is None:
        return np.zeros(0, float)
    return np.asarray(v, float).ravel()

def _as_array_or_zeros(v, m: int) -> np.ndarray:
    if m <= 0:
        return np.zeros(0, float)
    if v is None:
        return np.zeros(m, float)
    a = np.asarray(v, float).ravel()
    return a if a.size == m else a.reshape(m)

def _norm1(v: np.ndarray) -> float:
    if v.size == 0:
        return 0.0
    return float(np.add.reduce(np.abs(v)))

def _norm_inf(v: np.ndarray) -> float:
    if v.size == 0:
        return 0.0
    return float(np.linalg.norm(v, np.inf))


# ------------------ iterate state ------------------
@dataclass
class IterateState:
    """
    Primal-dual iterate of the barrier NLP together with its residuals.

    Variables follow the usual split: x (n) and slacks s (m_d) with equality
    multipliers y_c / y_d, bound multipliers z_L / z_U on x and v_L / v_U on s.
    Residual vectors are supplied by the step computation:

      grad_lag_x, grad_lag_s : gradient of the Lagrangian (dual infeasibility)
      c, d_minus_s           : equality and inequality residuals (primal infeasibility)
      slack_x_L, ...         : distances to the bounds paired with z_L, z_U, v_L, v_U

    Missing residuals default to zero vectors of the matching size.

    The barrier update writes `mu`, `tau`, `free_mu_mode` and appends tags to
    `info_string`; everything else is read-only from its point of view.
    """

    x: np.ndarray
    s: Optional[np.ndarray] = None
    y_c: Optional[np.ndarray] = None
    y_d: Optional[np.ndarray] = None
    z_L: Optional[np.ndarray] = None
    z_U: Optional[np.ndarray] = None
    v_L: Optional[np.ndarray] = None
    v_U: Optional[np.ndarray] = None

    f: float = 0.0
    grad_lag_x: Optional[np.ndarray] = None
    grad_lag_s: Optional[np.ndarray] = None
    c: Optional[np.ndarray] = None
    d_minus_s: Optional[np.ndarray] = None
    slack_x_L: Optional[np.ndarray] = None
    slack_x_U: Optional[np.ndarray] = None
    slack_s_L: Optional[np.ndarray] = None
    slack_s_U: Optional[np.ndarray] = None

    epsilon_tol: float = 1e-8
    iter_count: int = 0

    mu: float = 0.1
    tau: float = 0.99
    free_mu_mode: bool = True
    info_string: str = field(default="")

    def __post_init__(self):
        self.x = _as_vec(self.x)
        self.s, self.y_c, self.y_d = _as_vec(self.s), _as_vec(self.y_c), _as_vec(self.y_d)
        self.z_L, self.z_U = _as_vec(self.z_L), _as_vec(self.z_U)
        self.v_L, self.v_U = _as_vec(self.v_L), _as_vec(self.v_U)

        self.grad_lag_x = _as_array_or_zeros(self.grad_lag_x, self.x.size)
        self.grad_lag_s = _as_array_or_zeros(self.grad_lag_s, self.s.size)
        self.c = _as_array_or_zeros(self.c, self.y_c.size)
        self.d_minus_s = _as_array_or_zeros(self.d_minus_s, self.y_d.size)
        self.slack_x_L = _as_array_or_zeros(self.slack_x_L, self.z_L.size)
        self.slack_x_U = _as_array_or_zeros(self.slack_x_U, self.z_U.size)
        self.slack_s_L = _as_array_or_zeros(self.slack_s_L, self.v_L.size)
        self.slack_s_U = _as_array_or_zeros(self.slack_s_U, self.v_U.size)
        self.f = float(self.f)

    # ---------- dimensions ----------
    @property
    def n_dual(self) -> int:
        return self.x.size + self.s.size

    @property
    def n_primal(self) -> int:
        return self.y_c.size + self.y_d.size

    @property
    def n_compl(self) -> int:
        return self.z_L.size + self.z_U.size + self.v_L.size + self.v_U.size

    @property
    def n_bounds(self) -> int:
        return self.n_compl

    # ---------- residual norms ----------
    @property
    def dual_infeasibility(self) -> float:
        """1-norm of the Lagrangian gradient."""
        return _norm1(self.grad_lag_x) + _norm1(self.grad_lag_s)

    @property
    def primal_infeasibility(self) -> float:
        """1-norm of the constraint residuals."""
        return _norm1(self.c) + _norm1(self.d_minus_s)

    @property
    def constraint_violation(self) -> float:
        return self.primal_infeasibility

    def _compl_products(self) -> np.ndarray:
        return np.concatenate([
            self.slack_x_L * self.z_L, self.slack_x_U * self.z_U,
            self.slack_s_L * self.v_L, self.slack_s_U * self.v_U,
        ])

    def complementarity(self, mu: float = 0.0) -> float:
        """1-norm of the (μ-shifted) complementarity products."""
        return _norm1(self._compl_products() - mu)

    @property
    def avrg_compl(self) -> float:
        n = self.n_compl
        if n == 0:
            return 0.0
        return float(np.add.reduce(self._compl_products())) / n

    @property
    def barrier_error(self) -> float:
        """Max-norm optimality error of the barrier subproblem at the current μ."""
        return max(
            _norm_inf(self.grad_lag_x), _norm_inf(self.grad_lag_s),
            _norm_inf(self.c), _norm_inf(self.d_minus_s),
            _norm_inf(self._compl_products() - self.mu),
        )

    # ---------- written by the barrier update ----------
    def append_info_string(self, tag: str) -> None:
        self.info_string += tag
