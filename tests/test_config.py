"""Solver configuration and helper tests."""

import logging
import math

import numpy as np
import pytest

from hetpy import SolverConfig, relative_change
from hetpy.config import CHECKPOINT_FILES


def test_defaults_are_valid():
    config = SolverConfig()

    assert config.validate() is config
    assert config.initial_dens_diff_lim == 0.12
    assert config.min_dens_diff == 0.005
    assert config.max_potential_step == math.inf
    assert config.edge_charge_limit is None


@pytest.mark.parametrize("kwargs", [
    {'t_min': 0.0},
    {'t_min': 1.5},
    {'t_damp': 0.0},
    {'t_shrink': 1.0},
    {'t_growth': 0.5},
    {'pot_diff_lim': -1.0},
    {'min_alpha': 0.2, 'initial_alpha': 0.1},
    {'initial_alpha': 1.5},
    {'min_dens_diff': 0.2},
    {'density_floor_fraction': 1.0},
    {'min_iterations': -1},
    {'edge_charge_limit': -0.1},
    {'stall_period': 0},
])
def test_invalid_values_are_rejected(kwargs):
    with pytest.raises(ValueError):
        SolverConfig(**kwargs).validate()


def test_rejected_value_is_logged(caplog):
    with caplog.at_level(logging.ERROR, logger="hetpy"):
        with pytest.raises(ValueError):
            SolverConfig(t_damp=2.0).validate()

    assert "You entered t_damp = 2.0" in caplog.text


def test_as_dict_lists_every_field():
    d = SolverConfig(use_mixing=False).as_dict()

    assert d['use_mixing'] is False
    assert set(d) >= {'t_min', 't_damp', 'initial_alpha', 'min_mixing_diff'}


def test_checkpoint_file_names():
    assert CHECKPOINT_FILES['dopant_density'] == 'dopent_density.tmp'
    assert CHECKPOINT_FILES['t'] == 't_val.tmp'


# ===== DENSITY CHANGE METRIC =====

def test_relative_change_of_identical_densities():
    rho = np.array([-1.0, -2.0, 0.0])
    assert relative_change(rho, rho) == 0.0


def test_relative_change_ignores_points_below_floor():
    new = np.array([-1.0, -1e-4])
    old = np.array([-1.1, -1.0])

    assert relative_change(new, old) == pytest.approx(0.1)
    assert relative_change(new, old, floor_fraction=0.0) == pytest.approx(0.9999 / 1e-4)


def test_relative_change_of_empty_densities():
    assert relative_change(np.zeros(3), np.zeros(3)) == 0.0
    # every point of an empty density is below the floor
    assert relative_change(np.zeros(3), np.ones(3)) == 0.0
    assert relative_change(np.ones(3), np.zeros(3)) == pytest.approx(1.0)
