"""Damping controller tests."""

import numpy as np
import pytest

from hetpy import DampingController, Field, PoissonSolver, SpinResolvedField
from hetpy.interface.damping import bound, edge_nodes

from conftest import uniform_density


def _linear_problem(grid, layers, bc):
    """Fixed density: the residual along x decreases as (1 - t)."""
    solver = PoissonSolver(grid, layers)
    solver.initiate_solver({}, bc)
    density = uniform_density(grid.shape, -0.02)

    chem_pot = solver.get_chemical_potential(SpinResolvedField.zeros(grid.shape))
    g_phi = solver.calculate_residual(chem_pot, density)
    x = solver.calculate_newton_step(Field.zeros(grid.shape), g_phi)

    def evaluate(trial):
        return density, solver.calculate_residual(trial, density)

    return chem_pot, x, density, g_phi, evaluate


def _stub_state(shape=(9,)):
    chem_pot = Field.zeros(shape)
    x = Field.full(shape, 1.0)
    density = uniform_density(shape, -1.0)
    residual = Field.full(shape, 1.0)
    return chem_pot, x, density, residual


def test_bound():
    assert bound(2.0, 0.0, 1.0) == 1.0
    assert bound(-2.0, 0.0, 1.0) == 0.0
    assert bound(0.3, 0.0, 1.0) == 0.3


def test_edge_nodes():
    assert list(edge_nodes((5,))) == [0, 4]
    assert len(edge_nodes((3, 4))) == 10
    assert 5 not in edge_nodes((3, 4))


def test_full_step_is_taken_when_residual_decreases(slab_grid, slab_layers, boundary_conditions):
    chem_pot, x, density, g_phi, evaluate = _linear_problem(slab_grid, slab_layers, boundary_conditions)
    damping = DampingController(t_damp=0.8)

    t = damping.select(0.5, chem_pot, x, density, g_phi, evaluate)

    assert t == pytest.approx(0.8)


def test_first_step_starts_from_t_min(slab_grid, slab_layers, boundary_conditions):
    chem_pot, x, density, g_phi, evaluate = _linear_problem(slab_grid, slab_layers, boundary_conditions)
    damping = DampingController(t_min=1e-3, t_damp=0.8, growth=2.0)

    t = damping.select(0.0, chem_pot, x, density, g_phi, evaluate)

    assert t == pytest.approx(0.8 * 2.0 * 1e-3 / 0.8)


def test_potential_step_is_bounded(slab_grid, slab_layers, boundary_conditions):
    chem_pot, x, density, g_phi, evaluate = _linear_problem(slab_grid, slab_layers, boundary_conditions)
    damping = DampingController(t_damp=0.8, max_potential_step=1.0)

    expected = 1.0
    while expected * x.infinity_norm() > 1.0:
        expected *= 0.5

    t = damping.select(0.8, chem_pot, x, density, g_phi, evaluate)

    assert expected > damping.t_min
    assert t == pytest.approx(0.8 * expected)
    assert t * x.infinity_norm() <= 1.0


def test_saturates_at_t_min_without_raising():
    chem_pot, x, density, residual = _stub_state()
    damping = DampingController(t_min=1e-3, t_damp=0.8)

    def evaluate(trial):
        return density, 2.0 * residual

    t = damping.select(0.8, chem_pot, x, density, residual, evaluate)

    assert t == pytest.approx(0.8 * 1e-3)


def test_sign_flip_is_backtracked():
    chem_pot, x, density, residual = _stub_state()
    damping = DampingController(t_damp=0.8)
    calls = []

    def evaluate(trial):
        calls.append(trial)
        if len(calls) <= 2:
            return -1.0 * density, 0.5 * residual
        return density, 0.5 * residual

    t = damping.select(0.8, chem_pot, x, density, residual, evaluate)

    # 1 and 0.5 are rejected
    assert len(calls) == 3
    assert t == pytest.approx(0.8 * 0.25)


def test_non_finite_density_is_rejected():
    chem_pot, x, density, residual = _stub_state()
    damping = DampingController(t_damp=1.0)
    calls = []

    def evaluate(trial):
        calls.append(trial)
        if len(calls) == 1:
            return uniform_density(chem_pot.shape, np.nan), residual
        return density, 0.5 * residual

    assert damping.select(1.0, chem_pot, x, density, residual, evaluate) == pytest.approx(0.5)


def test_edge_charge_limit():
    chem_pot, x, density, residual = _stub_state()
    edges = edge_nodes(chem_pot.shape)
    damping = DampingController(t_min=1e-3, t_damp=0.8, edge_charge_limit=0.5)

    def evaluate(trial):
        return density, 0.5 * residual

    # |density| = 1 everywhere, never acceptable on the edges
    t = damping.select(0.8, chem_pot, x, density, residual, evaluate, edge_index=edges)
    assert t == pytest.approx(0.8 * 1e-3)

    # without edge indices the limit does not apply
    t = damping.select(0.8, chem_pot, x, density, residual, evaluate)
    assert t == pytest.approx(0.8)


def test_t_min_doubles_on_stall():
    chem_pot, x, density, residual = _stub_state()
    damping = DampingController(t_min=1e-3, t_damp=0.8, double_t_min_on_stall=True, stall_period=2)

    def evaluate(trial):
        return density, 2.0 * residual

    damping.select(0.8, chem_pot, x, density, residual, evaluate)
    assert damping.t_min == pytest.approx(1e-3)
    damping.select(0.8, chem_pot, x, density, residual, evaluate)
    assert damping.t_min == pytest.approx(2e-3)


def test_stall_hook_is_off_by_default():
    chem_pot, x, density, residual = _stub_state()
    damping = DampingController(t_min=1e-3, t_damp=0.8, stall_period=1)

    def evaluate(trial):
        return density, 2.0 * residual

    for _ in range(3):
        damping.select(0.8, chem_pot, x, density, residual, evaluate)
    assert damping.t_min == 1e-3
