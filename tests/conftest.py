import numpy as np
import pytest

from hetpy import _constants
from hetpy import DensityProvider, Field, GridGeometry, Layer, LayerTable, SpinResolvedField


GAAS_EPS = 12.9 * _constants.epsilon_0


class FixedDensityProvider(DensityProvider):
    """Density that does not respond to the potential."""

    def __init__(self, density):
        super().__init__()
        self.density = density
        self.calls = 0
        # mixing parameter seen by each density evaluation
        self.alphas = []

    def compute_density(self, layers, chem_pot):
        self.calls += 1
        self.alphas.append(self.mixing_parameter)
        return self.density.copy()

    def compute_density_derivative(self, layers, chem_pot):
        return Field.zeros(chem_pot.shape)

    def set_mixing_reference(self, density):
        pass

    def mixing_difference(self, density):
        return Field.zeros(density.shape)


class OscillatingProvider(DensityProvider):
    """Density swinging between half and one and a half times a base value."""

    def __init__(self, base):
        super().__init__()
        self.base = base
        self.count = 0

    def compute_density(self, layers, chem_pot):
        self.count += 1
        return float(1.0 + 0.5 * np.sin(self.count)) * self.base

    def compute_density_derivative(self, layers, chem_pot):
        return Field.zeros(chem_pot.shape)

    def set_mixing_reference(self, density):
        pass

    def mixing_difference(self, density):
        return Field.full(density.shape, 5.0 * np.sin(self.count))


class WorseningMixingProvider(FixedDensityProvider):
    """Fixed density whose mixing difference grows at every evaluation."""

    def __init__(self, density):
        super().__init__(density)
        self.evaluations = 0

    def mixing_difference(self, density):
        self.evaluations += 1
        return Field.full(density.shape, float(self.evaluations))


class LinearResponseProvider(DensityProvider):
    """Screening charge rho = - c mu, with rho' = - c."""

    def __init__(self, c):
        super().__init__()
        self.c = c

    def compute_density(self, layers, chem_pot):
        return SpinResolvedField.from_total(-self.c * chem_pot)

    def compute_density_derivative(self, layers, chem_pot):
        return Field.full(chem_pot.shape, -self.c)

    def set_mixing_reference(self, density):
        pass

    def mixing_difference(self, density):
        return Field.zeros(density.shape)


def uniform_density(shape, value):
    return SpinResolvedField.from_total(Field.full(shape, value))


@pytest.fixture
def slab_layers():
    """Single GaAs layer between z=-20 and z=0 nm."""
    return LayerTable([Layer(zmin=-20.0, zmax=0.0, permittivity=GAAS_EPS, band_gap=1420.0, layer_no=1)])


@pytest.fixture
def slab_grid():
    return GridGeometry.from_extent(-20.0, 0.0, 41)


@pytest.fixture
def two_layers():
    """eps jumps by a factor 4 at z=5 nm."""
    return LayerTable([
        Layer(zmin=0.0, zmax=5.0, permittivity=4.0, layer_no=2),
        Layer(zmin=5.0, zmax=10.0, permittivity=1.0, layer_no=1),
    ])


@pytest.fixture
def boundary_conditions():
    return {'top_V': 0.02, 'bottom_V': 0.0}
