"""
Configuration for the hetpy solver and the scripts based on it.

Constants:
    I/O and Formatting:
        DLM: Standard delimiter for text output and log spacing
        FMT_STR: Template for consistent log message formatting
        LOG_FILE_NAME: Base name for simulation log files
        CHECKPOINT_FILES: Names of the per-iteration checkpoint files

    Validation Lists:
        BOUNDARY_KEYS: Required boundary condition entries
        DIMENSION_KEYS: Accepted device dimension entries

Classes:
    SolverConfig: Tunable thresholds of the self-consistent cycle. One
        instance per run, passed explicitly to the solver.
"""

import logging
import math
from dataclasses import dataclass, asdict
from typing import Optional

logger = logging.getLogger(__name__)

# =============================================================================
# INPUT/OUTPUT FORMATTING CONSTANTS
# =============================================================================

# Text formatting and spacing controls
DLM = '   '                              # Delimiter for text files and log spacings

FMT_STR = "   {:<30} : {}"               # Log message formatting template with two
                                         # placeholders, 1st 30 char, left justified

LOG_FILE_NAME = 'logfile'                # Base name for log file (without extension)

CHECKPOINT_FILES = {                     # Per-iteration state dumps
    'carrier_density': 'carrier_density.tmp',
    'dopant_density': 'dopent_density.tmp',
    'density_deriv': 'density_deriv.tmp',
    'chem_pot': 'chem_pot.tmp',
    't': 't_val.tmp',
}

# =============================================================================
# VALIDATION CONSTANTS
# =============================================================================

BOUNDARY_KEYS = ['top_V', 'bottom_V']                    # Dirichlet values in volts

DIMENSION_KEYS = ['top_position', 'bottom_position']     # Device extent in nm

# =============================================================================
# SELF-CONSISTENT CYCLE PARAMETERS
# =============================================================================

@dataclass
class SolverConfig:
    """
    Thresholds and damping parameters of the self-consistent cycle.

    Attributes:
        initial_dens_diff_lim: relative density change below which the mixing
            reference is refreshed, halved when the mixing difference worsens
        min_dens_diff: lower bound for dens_diff_lim; converged runs reach
            half of it
        pot_diff_lim: largest accepted potential change t*|x| at convergence (meV)
        min_mixing_diff: largest accepted mixing difference at convergence (meV)
        initial_alpha: mixing parameter once the density is not empty
        min_alpha: smallest mixing parameter reached by the reductions
        min_iterations: iterations done before convergence can be declared
        t_min: floor of the damping parameter
        t_damp: outer damping factor multiplying the selected step length
        t_growth: factor by which the previous step length is enlarged before
            the backtracking search
        t_shrink: backtracking reduction factor
        max_potential_step: bound on t*|x|_inf for a single step (meV)
        edge_charge_limit: largest |density| tolerated on the domain edges
            after a step, None to disable
        density_floor_fraction: points with |rho| below this fraction of
            max|rho| are left out of the density change metric
        use_mixing: blend the secondary potential model of the density provider
        reduce_mixing_on_worsening: divide the mixing parameter by 3 when the
            mixing difference grows between two refreshes
        double_t_min_on_stall: double t_min when the damping saturates
        stall_period: iterations between two stall checks
    """
    initial_dens_diff_lim: float = 0.12
    min_dens_diff: float = 0.005
    pot_diff_lim: float = 0.1
    min_mixing_diff: float = 0.1
    initial_alpha: float = 0.1
    min_alpha: float = 0.03
    min_iterations: int = 3
    t_min: float = 1e-3
    t_damp: float = 0.8
    t_growth: float = 2.0
    t_shrink: float = 0.5
    max_potential_step: float = math.inf
    edge_charge_limit: Optional[float] = None
    density_floor_fraction: float = 0.01
    use_mixing: bool = True
    reduce_mixing_on_worsening: bool = True
    double_t_min_on_stall: bool = False
    stall_period: int = 5

    def validate(self):
        """Raise ValueError on inconsistent values."""
        positive = ['initial_dens_diff_lim', 'min_dens_diff', 'pot_diff_lim',
                    'min_mixing_diff', 't_min', 'max_potential_step', 'stall_period']
        for name in positive:
            value = getattr(self, name)
            if not value > 0:
                logger.error(f"You entered {name} = {value}")
                raise ValueError(f"{name} must be positive")
        if not 0.0 < self.t_min <= 1.0:
            logger.error(f"You entered t_min = {self.t_min}")
            raise ValueError("t_min must lie in (0, 1]")
        if not 0.0 < self.t_damp <= 1.0:
            logger.error(f"You entered t_damp = {self.t_damp}")
            raise ValueError("t_damp must lie in (0, 1]")
        if not 0.0 < self.t_shrink < 1.0:
            logger.error(f"You entered t_shrink = {self.t_shrink}")
            raise ValueError("t_shrink must lie in (0, 1)")
        if self.t_growth < 1.0:
            logger.error(f"You entered t_growth = {self.t_growth}")
            raise ValueError("t_growth must be at least 1")
        if not 0.0 <= self.min_alpha <= self.initial_alpha <= 1.0:
            logger.error(f"You entered min_alpha = {self.min_alpha}, initial_alpha = {self.initial_alpha}")
            raise ValueError("mixing parameters must satisfy 0 <= min_alpha <= initial_alpha <= 1")
        if self.min_dens_diff > self.initial_dens_diff_lim:
            logger.error(f"You entered min_dens_diff = {self.min_dens_diff}")
            raise ValueError("min_dens_diff cannot exceed initial_dens_diff_lim")
        if not 0.0 <= self.density_floor_fraction < 1.0:
            logger.error(f"You entered density_floor_fraction = {self.density_floor_fraction}")
            raise ValueError("density_floor_fraction must lie in [0, 1)")
        if self.min_iterations < 0:
            logger.error(f"You entered min_iterations = {self.min_iterations}")
            raise ValueError("min_iterations cannot be negative")
        if self.edge_charge_limit is not None and self.edge_charge_limit < 0:
            logger.error(f"You entered edge_charge_limit = {self.edge_charge_limit}")
            raise ValueError("edge_charge_limit cannot be negative")
        return self

    def as_dict(self):
        return asdict(self)
