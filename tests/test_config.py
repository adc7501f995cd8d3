from __future__ import annotations

import pytest

from ipbarrier.blocks.aux import Globalization, MuUpdateConfig, OptionOutOfRange


def test_defaults_resolve_against_tolerance() -> None:
    cfg = MuUpdateConfig().resolved(epsilon_tol=1e-8)

    assert cfg.mu_min == pytest.approx(1e-9)
    assert cfg.tau_max == cfg.tau_min == 0.99
    assert cfg.mu_max == 1e10
    assert cfg.nonmonotone_mu_max_refs == 4
    assert cfg.nonmonotone_mu_refs_redfact == 0.9999
    assert cfg.mu_never_fix is False
    assert cfg.globalization is Globalization.REFERENCE_HISTORY
    assert (cfg.kappa_epsilon, cfg.kappa_mu, cfg.theta_mu) == (10.0, 0.2, 1.5)


def test_resolved_keeps_explicit_values_and_leaves_input_untouched() -> None:
    raw = MuUpdateConfig(mu_min=1e-6, tau_min=0.9, tau_max=0.95)
    cfg = raw.resolved(epsilon_tol=1e-8)

    assert cfg.mu_min == 1e-6
    assert cfg.tau_max == 0.95
    assert raw.tau_max == 0.95
    assert MuUpdateConfig().tau_max is None


@pytest.mark.parametrize(
    "option, value",
    [
        ("mu_max", 0.0),
        ("mu_min", -1.0),
        ("mu_min", 1e11),
        ("tau_min", 0.0),
        ("tau_min", 1.0),
        ("tau_max", 1.5),
        ("tau_max", 0.5),
        ("mu_safeguard_exp", -0.1),
        ("mu_safeguard_factor", -1.0),
        ("nonmonotone_mu_refs_redfact", 1.0),
        ("nonmonotone_mu_max_refs", -1),
        ("adaptive_globalization", 3),
        ("kappa_epsilon", 0.0),
        ("kappa_mu", 1.0),
        ("theta_mu", 2.0),
        ("theta_mu", 1.0),
    ],
)
def test_out_of_range_option_is_named(option: str, value) -> None:
    cfg = MuUpdateConfig(**{option: value})

    with pytest.raises(OptionOutOfRange) as excinfo:
        cfg.validate()

    assert excinfo.value.option == option
    assert option in str(excinfo.value)


def test_default_mu_min_must_stay_below_mu_max() -> None:
    with pytest.raises(OptionOutOfRange) as excinfo:
        MuUpdateConfig(mu_max=1e-3).resolved(epsilon_tol=1.0)

    assert excinfo.value.option == "mu_min"


def test_tau_max_of_one_is_accepted() -> None:
    assert MuUpdateConfig(tau_max=1.0).validate().tau_max == 1.0


def test_from_options_coerces_types() -> None:
    cfg = MuUpdateConfig.from_options({
        "mu_max": "100",
        "nonmonotone_mu_max_refs": "2",
        "mu_never_fix": 3,
        "adaptive_globalization": 2.0,
    })

    assert cfg.mu_max == 100.0
    assert cfg.nonmonotone_mu_max_refs == 2
    assert cfg.mu_never_fix is True
    assert cfg.adaptive_globalization == 2
    assert cfg.globalization is Globalization.FILTER


def test_from_options_prefixed_key_wins_over_plain_key() -> None:
    cfg = MuUpdateConfig.from_options({"resto.mu_min": 1e-4, "mu_min": 1e-7, "resto.mu_never_fix": 0},
                                      prefix="resto.")

    assert cfg.mu_min == 1e-4
    assert cfg.mu_never_fix is False


def test_from_options_with_prefix_falls_back_to_plain_key() -> None:
    cfg = MuUpdateConfig.from_options({"mu_max": 100, "resto.kappa_mu": 0.5}, prefix="resto.")

    assert cfg.mu_max == 100.0
    assert cfg.kappa_mu == 0.5


def test_from_options_rejects_unknown_names() -> None:
    with pytest.raises(KeyError):
        MuUpdateConfig.from_options({"mu_init": 0.1})
