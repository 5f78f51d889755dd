import enum
import logging
import math
from dataclasses import dataclass

from hetpy._common import relative_change, tic, toc
from hetpy.config import SolverConfig
from hetpy.interface.checkpoint import MemoryCheckpoint, load_checkpoint
from hetpy.interface.damping import DampingController, edge_nodes
from hetpy.interface.poisson import PoissonSolver
from hetpy.physics import Field, SpinResolvedField

logger = logging.getLogger(__name__)


class Phase(enum.Enum):
    INITIALIZING = 'initializing'
    DENSITY_UPDATE = 'density update'
    NEWTON_SOLVE = 'newton solve'
    DAMPING = 'damping'
    CONVERGENCE_CHECK = 'convergence check'
    CONVERGED = 'converged'
    MAX_ITER_EXCEEDED = 'max iterations exceeded'


@dataclass
class SolverState:
    """Mutable state of one self-consistent run."""
    chem_pot: Field
    carrier_density: SpinResolvedField
    dopant_density: SpinResolvedField
    density_deriv: Field
    t: float = 0.0
    alpha: float = 0.0
    dens_diff_lim: float = 0.0
    max_mixing_diff: float = math.inf
    count: int = 0
    converged: bool = False
    phase: Phase = Phase.INITIALIZING

    def snapshot(self):
        """Copy of the fields persisted at every iteration."""
        return {
            'chem_pot': self.chem_pot.copy(),
            'carrier_density': self.carrier_density.copy(),
            'dopant_density': self.dopant_density.copy(),
            'density_deriv': self.density_deriv.copy(),
            't': self.t,
        }


def _is_empty(density):
    return density.spin_summed.infinity_norm() == 0.0


class SelfConsistentSolver:
    """
    Self-consistent solution of the nonlinear Poisson equation

        d(eps d(mu / q_e)) = - rho(mu)

    with a damped Newton iteration. The density model is consumed through a
    DensityProvider; the potential problem through a PotentialSolver
    (finite difference PoissonSolver by default).

    The chemical potential is owned by this object: the damping controller
    selects the step length t and the loop applies mu <- mu + t x.

    Parameters
    ----------
    grid : GridGeometry
    layers : LayerTable
    provider : DensityProvider
    config : SolverConfig, optional
    checkpoint : object with a write(snapshot) method, optional
        MemoryCheckpoint by default.
    solver : PotentialSolver, optional
    """

    def __init__(self, grid, layers, provider, config=None, checkpoint=None, solver=None):
        self.grid = grid
        self.layers = layers
        self.provider = provider

        if config is None:
            config = SolverConfig()
        self.config = config.validate()

        if solver is None:
            solver = PoissonSolver(grid, layers)
        self.solver = solver

        if checkpoint is None:
            checkpoint = MemoryCheckpoint()
        self.checkpoint = checkpoint

        self.damping = DampingController.from_config(config)
        self.edge_index = edge_nodes(grid.shape)

        self.state = None
        self.history = []

    # ------------------------------------------------------------------
    # read access to the results
    # ------------------------------------------------------------------
    @property
    def chem_pot(self):
        return self.state.chem_pot

    @property
    def carrier_density(self):
        return self.state.carrier_density

    @property
    def dopant_density(self):
        return self.state.dopant_density

    @property
    def converged(self):
        return self.state is not None and self.state.converged

    # ------------------------------------------------------------------
    # set up
    # ------------------------------------------------------------------
    def initiate_solver(self, device_dimensions, boundary_conditions, initial_density=None):
        """
        Set the boundary conditions and the starting point of the run.

        The starting chemical potential is the Poisson solution for the
        initial density (zero by default).
        """
        self.solver.initiate_solver(device_dimensions, boundary_conditions)

        if initial_density is None:
            initial_density = SpinResolvedField.zeros(self.grid.shape)

        chem_pot = self.solver.get_chemical_potential(initial_density)
        self.state = SolverState(
            chem_pot=chem_pot,
            carrier_density=initial_density.copy(),
            dopant_density=SpinResolvedField.zeros(self.grid.shape),
            density_deriv=Field.zeros(self.grid.shape),
        )
        self.history = []
        return chem_pot

    def bare_potential(self):
        """Chemical potential of the device without any charge."""
        return self.solver.get_chemical_potential(SpinResolvedField.zeros(self.grid.shape))

    def restart_from(self, source):
        """
        Resume from a checkpoint, either a snapshot dict or the directory
        written by TextCheckpoint. initiate_solver must have been called.
        """
        if self.state is None:
            raise RuntimeError("initiate_solver must be called before restart_from")
        if isinstance(source, dict):
            snapshot = source
        else:
            snapshot = load_checkpoint(source, self.grid.shape)

        snapshot['chem_pot'].check_shape(self.state.chem_pot)
        snapshot['density_deriv'].check_shape(self.state.density_deriv)
        for key in ('carrier_density', 'dopant_density'):
            snapshot[key].spin_up.check_shape(getattr(self.state, key).spin_up)

        self.state.chem_pot = snapshot['chem_pot'].copy()
        self.state.chem_pot.laplacian = None
        self.state.carrier_density = snapshot['carrier_density'].copy()
        self.state.dopant_density = snapshot['dopant_density'].copy()
        self.state.density_deriv = snapshot['density_deriv'].copy()
        self.state.t = snapshot['t']
        logger.info(f"Restarting from checkpoint with t = {self.state.t}")

    def _initialize_mixing(self):
        config = self.config
        state = self.state
        state.phase = Phase.INITIALIZING

        # the reference of an empty density is computed without mixing
        state.alpha = 0.0
        if config.use_mixing and not _is_empty(state.carrier_density):
            state.alpha = config.initial_alpha
        self.provider.mixing_parameter = state.alpha

        self.provider.set_mixing_reference(state.carrier_density)
        if config.use_mixing:
            state.carrier_density = self.provider.compute_density(self.layers, state.chem_pot)
            self.provider.set_mixing_reference(state.carrier_density)
            state.alpha = config.initial_alpha
            self.provider.mixing_parameter = state.alpha

        state.dens_diff_lim = config.initial_dens_diff_lim
        state.max_mixing_diff = math.inf
        state.converged = False

    # ------------------------------------------------------------------
    # iteration
    # ------------------------------------------------------------------
    def _evaluate(self, chem_pot):
        """Carrier density and residual at the given chemical potential."""
        carrier = self.provider.compute_density(self.layers, chem_pot)
        dopant = self.provider.compute_dopant_density(self.layers, chem_pot)
        residual = self.solver.calculate_residual(chem_pot, carrier + dopant)
        return carrier, residual

    def run(self, tol=None, max_iterations=100):
        """
        Iterate until convergence or until max_iterations iterations are done.

        Parameters
        ----------
        tol : float, optional
            Largest change of the chemical potential t |x| (meV) accepted at
            convergence. Defaults to config.pot_diff_lim.
        max_iterations : int

        Returns
        -------
        converged : bool
        """
        if self.state is None:
            raise RuntimeError("initiate_solver must be called before run")
        config = self.config
        pot_diff_lim = config.pot_diff_lim if tol is None else tol
        state = self.state

        self._initialize_mixing()

        logger.info("")
        logger.info("Starting self-consistent Poisson cycle")
        logger.info("Legend: 1-Iteration 2-Density change 3-Damping t 4-Potential change [meV] 5-Residual  6-Mixing diff [meV]")
        logger.info(" " + "-"*80)
        logger.info(" (1)    (2)          (3)          (4)          (5)          (6)")

        state.count = 0
        while state.count < max_iterations:
            tic()

            ###### DENSITY UPDATE ######
            state.phase = Phase.DENSITY_UPDATE
            dens_old = state.carrier_density.spin_summed
            state.carrier_density = self.provider.compute_density(self.layers, state.chem_pot)
            state.dopant_density = self.provider.compute_dopant_density(self.layers, state.chem_pot)
            rho_prime = self.provider.compute_density_derivative(self.layers, state.chem_pot)
            if isinstance(rho_prime, SpinResolvedField):
                rho_prime = rho_prime.spin_summed
            state.density_deriv = rho_prime

            ###### NEWTON SOLVE ######
            state.phase = Phase.NEWTON_SOLVE
            total = state.carrier_density + state.dopant_density
            g_phi = self.solver.calculate_residual(state.chem_pot, total)
            x = self.solver.calculate_newton_step(rho_prime, g_phi)

            ###### DAMPING ######
            state.phase = Phase.DAMPING
            state.t = self.damping.select(
                state.t, state.chem_pot, x, state.carrier_density, g_phi, self._evaluate, self.edge_index
            )
            state.chem_pot = state.chem_pot + state.t * x
            pot_change = state.t * x.infinity_norm()

            ###### CONVERGENCE CHECK ######
            state.phase = Phase.CONVERGENCE_CHECK
            dens_change = relative_change(
                state.carrier_density.spin_summed.vec, dens_old.vec, config.density_floor_fraction
            )
            mixing_diff = None
            if (dens_change < state.dens_diff_lim and state.t > 10.0 * self.damping.t_min
                    and state.count > config.min_iterations):
                mixing_diff = self._refresh_mixing()
                if (dens_change < config.min_dens_diff / 2.0 and mixing_diff < config.min_mixing_diff
                        and pot_change < pot_diff_lim):
                    state.converged = True

            self.checkpoint.write(state.snapshot())
            state.count += 1

            elapsed = toc()
            self.history.append({
                'iteration': state.count,
                'density_change': dens_change,
                't': state.t,
                'potential_change': pot_change,
                'residual': g_phi.infinity_norm(),
                'mixing_difference': mixing_diff,
                'dens_diff_lim': state.dens_diff_lim,
                'alpha': state.alpha,
                'elapsed': elapsed,
            })
            mixing_str = f"{mixing_diff:>12.4e}" if mixing_diff is not None else "     N/A    "
            logger.info(f'{state.count:>3} {dens_change:>12.4e} {state.t:>12.4e} '
                        f'{pot_change:>12.4e} {g_phi.infinity_norm():>12.4e} {mixing_str}')

            if state.converged:
                break

        if state.converged:
            state.phase = Phase.CONVERGED
            logger.info("")
            logger.info(f"Convergence criteria met after {state.count} iterations")
        else:
            state.phase = Phase.MAX_ITER_EXCEEDED
            logger.warning('Max iteration number reached - convergence not achieved')
        return state.converged

    def _refresh_mixing(self):
        """
        Refresh the mixing reference once the density has settled and adapt
        the density threshold and the mixing parameter.
        """
        config = self.config
        state = self.state

        self.provider.set_mixing_reference(state.carrier_density)
        current_diff = self.provider.mixing_difference(state.carrier_density).infinity_norm()
        worsened = current_diff > state.max_mixing_diff

        if (worsened or not config.use_mixing) and state.dens_diff_lim / 2.0 > config.min_dens_diff:
            state.dens_diff_lim /= 2.0
            logger.info(f"Minimum relative density difference reduced to {state.dens_diff_lim}")

        if (worsened and config.use_mixing and config.reduce_mixing_on_worsening
                and state.alpha / 3.0 > config.min_alpha):
            state.alpha /= 3.0
            self.provider.mixing_parameter = state.alpha
            logger.info(f"Mixing parameter reduced to {state.alpha}")

        state.max_mixing_diff = current_diff
        return current_diff
