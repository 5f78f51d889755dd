"""Finite difference Poisson operator tests."""

import numpy as np
import pytest

from hetpy import DomainCoverageError, Field, GridGeometry, Layer, LayerTable, PoissonOperator, ShapeMismatchError


def _uniform(eps=3.0):
    return LayerTable([Layer(zmin=0.0, zmax=10.0, permittivity=eps)])


def test_quadratic_gives_constant_interior_laplacian():
    eps = 3.0
    a = 0.7
    grid = GridGeometry.from_extent(0.0, 10.0, 21)
    op = PoissonOperator(grid, _uniform(eps))

    z = grid.z()
    lap = op.apply(Field(a * z**2))

    np.testing.assert_allclose(lap.vec[1:-1], 2.0 * a * eps, rtol=1e-10)


def test_boundary_rows_are_scaled_identity():
    eps = 3.0
    grid = GridGeometry.from_extent(0.0, 10.0, 11)
    op = PoissonOperator(grid, _uniform(eps))

    phi = Field(np.linspace(1.0, 2.0, 11))
    lap = op.apply(phi)

    assert lap[0] == pytest.approx(eps / grid.dz**2 * 1.0)
    assert lap[10] == pytest.approx(eps / grid.dz**2 * 2.0)
    assert np.count_nonzero(op.boundary_mask) == 2
    np.testing.assert_allclose(op.boundary_source(1.0, 2.0)[[0, 10]], lap.vec[[0, 10]])


def test_displacement_is_continuous_across_interface(two_layers):
    # eps = 4 below z=5, eps = 1 above: the slope must be 4 times larger above
    grid = GridGeometry.from_extent(0.0, 10.0, 11)
    op = PoissonOperator(grid, two_layers)

    z = grid.z()
    phi = np.where(z <= 5.0, 0.1 * z, 0.5 + 0.4 * (z - 5.0))
    lap = op.apply(Field(phi))

    np.testing.assert_allclose(lap.vec[1:-1], 0.0, atol=1e-12)


def test_operator_is_tridiagonal_in_1d():
    grid = GridGeometry.from_extent(0.0, 10.0, 11)
    op = PoissonOperator(grid, _uniform())

    coo = op.matrix.tocoo()
    assert np.max(np.abs(coo.row - coo.col)) == 1
    assert op.order == 11


def test_lateral_stencil_annihilates_z_only_fields():
    grid_1d = GridGeometry.from_extent(0.0, 10.0, 11)
    grid_2d = GridGeometry(spacing=(1.0, 1.0), origin=(0.0, 0.0), points=(4, 11))
    layers = _uniform()

    z = grid_1d.z()
    profile = np.sin(z)
    lap_1d = PoissonOperator(grid_1d, layers).apply(Field(profile))
    lap_2d = PoissonOperator(grid_2d, layers).apply(Field(np.tile(profile, (4, 1))))

    for row in lap_2d.data:
        np.testing.assert_allclose(row, lap_1d.vec, atol=1e-12)


def test_3d_operator_order_and_boundary_rows():
    grid = GridGeometry(spacing=(1.0, 1.0, 1.0), origin=(0.0, 0.0, 0.0), points=(3, 4, 11))
    op = PoissonOperator(grid, _uniform())

    assert op.order == 3 * 4 * 11
    assert np.count_nonzero(op.boundary_mask) == 2 * 3 * 4
    assert len(op.top_index) == 12


def test_layers_must_cover_the_grid():
    grid = GridGeometry.from_extent(0.0, 12.0, 13)
    with pytest.raises(DomainCoverageError):
        PoissonOperator(grid, _uniform())


def test_apply_checks_the_field_size():
    grid = GridGeometry.from_extent(0.0, 10.0, 11)
    op = PoissonOperator(grid, _uniform())

    with pytest.raises(ShapeMismatchError):
        op.apply(Field.zeros((12,)))


def test_copy_matrix_does_not_alias():
    grid = GridGeometry.from_extent(0.0, 10.0, 11)
    op = PoissonOperator(grid, _uniform())

    m = op.copy_matrix()
    m[1, 1] = 1e6
    assert op.matrix[1, 1] != 1e6
