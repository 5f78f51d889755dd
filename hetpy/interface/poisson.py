import abc
import logging

import numpy as np

from hetpy import _constants
from hetpy.config import BOUNDARY_KEYS, DIMENSION_KEYS
from hetpy.errors import ShapeMismatchError
from hetpy.fd.problem import PoissonOperator
from hetpy.fd.solver import LinearSystem, NewtonStep
from hetpy.physics import Field, SpinResolvedField

logger = logging.getLogger(__name__)


class PotentialSolver(abc.ABC):
    """Capabilities the self-consistent cycle needs from a potential solver."""

    @abc.abstractmethod
    def initiate_solver(self, device_dimensions, boundary_conditions):
        pass

    @abc.abstractmethod
    def get_chemical_potential(self, density):
        pass

    @abc.abstractmethod
    def calculate_laplacian(self, potential):
        pass

    @abc.abstractmethod
    def calculate_residual(self, chem_pot, density):
        pass

    @abc.abstractmethod
    def calculate_newton_step(self, rho_prime, g_phi):
        pass


class PoissonSolver(PotentialSolver):
    """
    Finite difference Poisson solver on a regular grid with Dirichlet
    conditions on the bottom and top faces.

    The solver works with the chemical potential mu (meV). The electrostatic
    potential entering the Laplacian is phi = mu / q_e (meV/zC), densities are
    charge densities in zC/nm^3.

    Parameters
    ----------
    grid : GridGeometry
    layers : LayerTable
    """

    def __init__(self, grid, layers):
        self.grid = grid
        self.layers = layers

        # operator and its factorisation, fixed for the whole run
        self.operator = PoissonOperator(grid, layers)
        self.lu_fact = LinearSystem(self.operator.matrix)

        # newton step builder, refactorised at every call
        self.newton = NewtonStep(self.operator, scale=1.0 / _constants.q_e)

        # boundary potentials in meV/zC, set by initiate_solver
        self.top_bc = None
        self.bottom_bc = None
        self.top_eps = None
        self.bottom_eps = None

    @property
    def shape(self):
        return self.grid.shape

    @property
    def initiated(self):
        return self.top_bc is not None and self.bottom_bc is not None

    def initiate_solver(self, device_dimensions, boundary_conditions):
        """
        Set the Dirichlet values of the run.

        Parameters
        ----------
        device_dimensions : dict
            'top_position' and 'bottom_position' in nm. Missing entries
            default to the grid ends.
        boundary_conditions : dict
            'top_V' and 'bottom_V' in volts.
        """
        for key in device_dimensions:
            if key not in DIMENSION_KEYS:
                logger.error(f"You entered device dimension {key}")
                raise ValueError("unknown device dimension {}, valid keys are {}".format(key, DIMENSION_KEYS))
        for key in BOUNDARY_KEYS:
            if key not in boundary_conditions:
                logger.error(f"You entered boundary conditions {boundary_conditions}")
                raise ValueError("missing boundary condition {}".format(key))

        top = device_dimensions.get('top_position', self.grid.zmax)
        bottom = device_dimensions.get('bottom_position', self.grid.zmin)
        self.layers.check_coverage(bottom, top)

        # get permittivities at top and bottom of the domain
        self.top_eps = self.layers.get_layer(top).permittivity
        self.bottom_eps = self.layers.get_layer(bottom).permittivity

        self.top_bc = boundary_conditions['top_V'] * _constants.energy_V_to_meVpzC
        self.bottom_bc = boundary_conditions['bottom_V'] * _constants.energy_V_to_meVpzC

        logger.info(f"Poisson solver initiated: top = {boundary_conditions['top_V']} V, "
                    f"bottom = {boundary_conditions['bottom_V']} V")

    def _check_initiated(self):
        if not self.initiated:
            raise RuntimeError("initiate_solver must be called before solving")

    def _as_density(self, density):
        if isinstance(density, SpinResolvedField):
            density = density.spin_summed
        if len(density) != self.operator.order:
            raise ShapeMismatchError(
                "density of length {} on a grid of {} points".format(len(density), self.operator.order)
            )
        return density

    def boundary_density(self, density):
        """
        Charge density with the Dirichlet rows replaced by the boundary source
        - eps/h^2 phi_bc, so that - L phi - rho vanishes on the boundary
        exactly when phi takes the boundary values.
        """
        self._check_initiated()
        density = self._as_density(density)
        rho = np.array(density.vec, dtype=float)
        source = self.operator.boundary_source(self.bottom_bc, self.top_bc)
        mask = self.operator.boundary_mask
        rho[mask] = -source[mask]
        return Field(rho.reshape(self.shape))

    def get_chemical_potential(self, density):
        """
        Solve L phi = - rho with the boundary values and return mu = q_e phi.

        The returned field carries its Laplacian L phi.
        """
        rho = self.boundary_density(density)
        phi = Field(self.lu_fact.solve(-1.0 * rho.vec).reshape(self.shape))

        chem_pot = _constants.q_e * phi
        chem_pot.laplacian = self.calculate_laplacian(phi)
        return chem_pot

    def calculate_laplacian(self, potential):
        """Return d(eps d(potential)); the input must be a potential, mu / q_e."""
        return self.operator.apply(potential)

    def calculate_residual(self, chem_pot, density):
        """
        g(mu) = - L (mu / q_e) - rho(mu), boundary rows measuring the
        violation of the Dirichlet values.
        """
        if len(chem_pot) != self.operator.order:
            raise ShapeMismatchError(
                "chemical potential of length {} on a grid of {} points".format(len(chem_pot), self.operator.order)
            )
        rho = self.boundary_density(density)
        if chem_pot.laplacian is not None:
            lap = chem_pot.laplacian
        else:
            lap = self.calculate_laplacian(chem_pot / _constants.q_e)
        return -1.0 * lap - rho

    def calculate_newton_step(self, rho_prime, g_phi):
        if isinstance(rho_prime, SpinResolvedField):
            rho_prime = rho_prime.spin_summed
        return self.newton.solve(rho_prime, g_phi)

    def get_surface_charge(self, chem_pot, surface=0.0):
        """
        Surface charge density (zC/nm^2) from the field just below the surface.
        By Gauss' theorem sigma = eps dphi/dz with phi = mu / q_e, positive when
        the potential rises towards the surface.

        Returns a float for 1D grids, an array over the lateral nodes otherwise.
        """
        s = self.grid.index_of(surface)
        if s < 2:
            raise ValueError("the surface at z={} is too close to the bottom of the grid".format(surface))
        eps = self.layers.find_layer_below_surface(surface).permittivity
        phi = chem_pot.data / _constants.q_e
        dphi = (phi[..., s - 1] - phi[..., s - 2]) / self.grid.dz
        surface_charge = eps * dphi
        if np.ndim(surface_charge) == 0:
            return float(surface_charge)
        return surface_charge
