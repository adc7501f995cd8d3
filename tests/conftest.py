"""Shared fakes for the barrier-update tests."""

from __future__ import annotations

from typing import List, Tuple

import pytest

from ipbarrier.iterate import IterateState


class RecordingLineSearch:
    def __init__(self) -> None:
        self.resets = 0

    def reset(self) -> None:
        self.resets += 1


class ScriptedOracle:
    """Returns the scripted values in order, repeating the last one."""

    def __init__(self, *values: float, init_ok: bool = True) -> None:
        self.values = list(values)
        self.calls = 0
        self.init_ok = init_ok
        self.initialized = False

    def initialize(self, state, cfg) -> bool:
        self.initialized = True
        return self.init_ok

    def calculate_mu(self) -> float:
        value = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        return value


class RecordingObserver:
    def __init__(self) -> None:
        self.events: List[Tuple[str, dict]] = []

    def __call__(self, event: str, **data) -> None:
        self.events.append((event, data))

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.events]


def build_state(dual: float = 0.0, primal: float = 0.0, compl: float = 0.0, f: float = 0.0,
                bounds: bool = True, **kwargs) -> IterateState:
    """One variable, one equality and (optionally) one lower bound.

    The averaged dual/primal/complementarity norms are |dual|, |primal| and
    |compl| respectively, so the scaled primal-dual norm is their sum.
    """
    if bounds:
        return IterateState(x=[1.0], y_c=[0.0], z_L=[1.0], f=f,
                            grad_lag_x=[dual], c=[primal], slack_x_L=[compl], **kwargs)
    return IterateState(x=[1.0], y_c=[0.0], f=f, grad_lag_x=[dual], c=[primal], **kwargs)


def set_residuals(state: IterateState, dual: float = 0.0, primal: float = 0.0,
                  compl: float = 0.0, f: float = None) -> IterateState:
    state.grad_lag_x[0] = dual
    state.c[0] = primal
    if state.slack_x_L.size:
        state.slack_x_L[0] = compl
    if f is not None:
        state.f = f
    return state


@pytest.fixture
def make_state():
    return build_state


@pytest.fixture
def update_residuals():
    return set_residuals


@pytest.fixture
def line_search() -> RecordingLineSearch:
    return RecordingLineSearch()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def oracle_factory():
    return ScriptedOracle
