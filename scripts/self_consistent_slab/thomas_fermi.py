"""
Thomas-Fermi electron density for layered heterostructures.

The conduction band edge is E_c(z) = Eg(z)/2 - mu(z) with the Fermi level at
zero energy, and the zero temperature electron number density of a parabolic
band is

    n = (1 / 3 pi^2) * ( max(0, -E_c) / (hbar^2 / 2 m*) )^(3/2)

The charge density is - q_e n, split evenly between the two spins. A local
exchange potential V_x = - (3/pi)^(1/3) q_e^2 / (4 pi eps) n^(1/3) can be
mixed in with weight mixing_parameter; it is refreshed only through
set_mixing_reference.

Ionised donors give a fixed positive charge q_e N_d in the doped layers.
"""

import logging

import numpy as np

from hetpy import _constants
from hetpy import DensityProvider, Field, SpinResolvedField
from hetpy._database import params

logger = logging.getLogger(__name__)


class ThomasFermiDensity(DensityProvider):
    """
    Parameters
    ----------
    grid : GridGeometry
    layers : LayerTable
        Built with LayerTable.from_materials from the same materials list.
    materials : list of str
        Material of each layer, ordered as the layer numbers (surface first).
    donors : list of float, optional
        Ionised donor density of each layer in cm^-3.
    """

    def __init__(self, grid, layers, materials, donors=None):
        super().__init__()
        self.grid = grid

        if donors is None:
            donors = [0.0] * len(materials)
        if len(donors) != len(materials):
            logger.error(f"You entered donors = {donors}")
            raise ValueError("one donor density per material is needed")

        z = grid.z()
        # node to layer number, layer numbers start from 1 at the surface
        layer_no = np.array([layers.get_layer(zi).layer_no for zi in z])

        mass = np.array([params[m]['me'] if params[m]['me'] is not None else np.nan for m in materials])
        nd = np.array(donors, dtype=float) * _constants.cm3_to_nm3

        me = mass[layer_no - 1]
        self.active = np.isfinite(me)
        self.kinetic = np.where(self.active, _constants.hbar2_over_2m0 / np.where(self.active, me, 1.0), 1.0)
        self.half_gap = 0.5 * layers.band_gap_at(z)
        self.eps = layers.permittivity_at(z)
        self.donor_charge = _constants.q_e * nd[layer_no - 1]

        # exchange potential of the reference density, meV
        self.v_ref = np.zeros(grid.nz)

    # ------------------------------------------------------------------
    # helpers working on the z profile, broadcast over lateral axes
    # ------------------------------------------------------------------
    def _excess(self, chem_pot):
        # energy of the Fermi level above the (exchange shifted) band edge
        x = chem_pot.data - self.half_gap - self.mixing_parameter * self.v_ref
        return np.where(self.active, np.maximum(x, 0.0), 0.0)

    def _number_density(self, excess):
        return (excess / self.kinetic)**1.5 / (3.0 * np.pi**2)

    def exchange_potential(self, density):
        n = np.abs(density.spin_summed.data) / _constants.q_e
        prefactor = (3.0 / np.pi)**(1.0 / 3.0) * _constants.q_e**2 / (4.0 * np.pi * self.eps)
        return -prefactor * np.cbrt(n)

    # ------------------------------------------------------------------
    # density provider
    # ------------------------------------------------------------------
    def compute_density(self, layers, chem_pot):
        rho = -_constants.q_e * self._number_density(self._excess(chem_pot))
        return SpinResolvedField.from_total(Field(rho))

    def compute_density_derivative(self, layers, chem_pot):
        excess = self._excess(chem_pot)
        dn = 1.5 * np.sqrt(excess) / self.kinetic**1.5 / (3.0 * np.pi**2)
        return Field(-_constants.q_e * dn)

    def compute_dopant_density(self, layers, chem_pot):
        rho = np.broadcast_to(self.donor_charge, chem_pot.shape)
        return SpinResolvedField.from_total(Field(rho))

    def set_mixing_reference(self, density):
        self.v_ref = self.exchange_potential(density)

    def mixing_difference(self, density):
        return Field(self.mixing_parameter * (self.exchange_potential(density) - self.v_ref))
