import logging
import math

import numpy as np

from hetpy.physics import SpinResolvedField

logger = logging.getLogger(__name__)


def bound(x, lb, ub):
    """Bound real number x inside the range [lb, ub]."""
    return max(lb, min(ub, x))


def edge_nodes(shape):
    """Flat indices of the nodes on the outer faces of a grid of the given shape."""
    mask = np.zeros(shape, dtype=bool)
    for axis, n in enumerate(shape):
        index = [slice(None)] * len(shape)
        index[axis] = [0, n - 1]
        mask[tuple(index)] = True
    return np.flatnonzero(mask)


def _summed(density):
    if isinstance(density, SpinResolvedField):
        return density.spin_summed.vec
    return density.vec


class DampingController:
    """
    Step length selection for the damped Newton update mu + t x.

    Starting from the previous (undamped) step length enlarged by ``growth``,
    the step is halved until the trial state is acceptable or t_min is
    reached; t_min is then accepted as the best available step. The selected
    value is multiplied by t_damp. The caller applies the step.

    A trial step is acceptable when
        - t |x|_inf does not exceed max_potential_step
        - the trial density is finite and does not change sign with respect
          to the current density
        - the trial density on the domain edges stays within edge_charge_limit
        - the residual infinity norm decreases, |g(mu + t x)| <= (1 - c t) |g(mu)|

    Parameters
    ----------
    t_min : float
        Floor of the undamped step length.
    t_damp : float
        Outer damping factor.
    growth, shrink : float
        Enlargement of the previous step and backtracking reduction.
    max_potential_step : float
        Largest accepted t |x|_inf in meV.
    edge_charge_limit : float or None
        Largest |density| on the edges of the density domain.
    sufficient_decrease : float
        The constant c of the residual test.
    double_t_min_on_stall : bool
        Double t_min every stall_period saturated iterations.
    """

    def __init__(
        self,
        t_min=1e-3,
        t_damp=0.8,
        growth=2.0,
        shrink=0.5,
        max_potential_step=math.inf,
        edge_charge_limit=None,
        sufficient_decrease=1e-4,
        double_t_min_on_stall=False,
        stall_period=5,
    ):
        self.t_min = t_min
        self.t_damp = t_damp
        self.growth = growth
        self.shrink = shrink
        self.max_potential_step = max_potential_step
        self.edge_charge_limit = edge_charge_limit
        self.sufficient_decrease = sufficient_decrease
        self.double_t_min_on_stall = double_t_min_on_stall
        self.stall_period = stall_period

        # number of saturated selections, used by the stall hook
        self.stall_count = 0

        # number of trial evaluations since construction
        self.evaluations = 0

    @classmethod
    def from_config(cls, config):
        return cls(
            t_min=config.t_min,
            t_damp=config.t_damp,
            growth=config.t_growth,
            shrink=config.t_shrink,
            max_potential_step=config.max_potential_step,
            edge_charge_limit=config.edge_charge_limit,
            double_t_min_on_stall=config.double_t_min_on_stall,
            stall_period=config.stall_period,
        )

    def select(self, t_prev, chem_pot, x, density, residual, evaluate, edge_index=None):
        """
        Damped step length for direction x.

        Parameters
        ----------
        t_prev : float
            Damped step length of the previous iteration, 0 on the first one.
        chem_pot : Field
            Current chemical potential.
        x : Field
            Newton direction.
        density : SpinResolvedField
            Density at chem_pot.
        residual : Field
            Residual at chem_pot.
        evaluate : callable
            evaluate(trial_chem_pot) -> (trial_density, trial_residual)
        edge_index : ndarray, optional
            Flat indices of the edges of the density domain.

        Returns
        -------
        t : float
            t_damp times the selected step length.
        """
        if t_prev == 0.0:
            t_prev = self.t_min
        t = self.t_damp * self.optimal_t(t_prev / self.t_damp, chem_pot, x, density, residual, evaluate, edge_index)
        self._check_stall(t)
        return t

    def optimal_t(self, t_start, chem_pot, x, density, residual, evaluate, edge_index=None):
        """Undamped step length in [t_min, 1]."""
        t = bound(self.growth * t_start, self.t_min, 1.0)

        # nothing to test for a direction at round off level
        xnorm = x.infinity_norm()
        if xnorm <= 1e-10 * max(1.0, chem_pot.infinity_norm()):
            return t

        g0 = residual.infinity_norm()
        rho0 = _summed(density)
        while True:
            if self._acceptable(t, xnorm, chem_pot, x, rho0, g0, evaluate, edge_index):
                return t
            if t <= self.t_min:
                logger.debug(f"Damping saturated at t_min = {self.t_min}")
                return self.t_min
            t = max(self.t_min, self.shrink * t)

    def _acceptable(self, t, xnorm, chem_pot, x, rho0, g0, evaluate, edge_index):
        if t * xnorm > self.max_potential_step:
            return False

        trial_density, trial_residual = evaluate(chem_pot + t * x)
        self.evaluations += 1

        rho = _summed(trial_density)
        if not np.all(np.isfinite(rho)):
            return False

        # the carrier type must not flip at any node
        scale = np.max(np.abs(rho0)) if rho0.size > 0 else 0.0
        significant = (np.abs(rho0) > 1e-12 * scale) & (np.abs(rho) > 1e-12 * scale)
        if np.any(rho0[significant] * rho[significant] < 0.0):
            return False

        if self.edge_charge_limit is not None and edge_index is not None:
            if np.any(np.abs(rho[edge_index]) > self.edge_charge_limit):
                return False

        gnorm = trial_residual.infinity_norm()
        if not np.isfinite(gnorm):
            return False
        return gnorm <= (1.0 - self.sufficient_decrease * t) * g0

    def _check_stall(self, t):
        if not self.double_t_min_on_stall:
            return
        if not np.isclose(t, self.t_damp * self.t_min):
            return
        self.stall_count += 1
        if self.stall_count % self.stall_period == 0 and self.t_min < 1.0:
            self.t_min = min(1.0, 2.0 * self.t_min)
            logger.info(f"Iterator has stalled, doubling t_min to {self.t_min}")
