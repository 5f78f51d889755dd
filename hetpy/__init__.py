from ._constants import *
from ._common import *
from .errors import HetpyError, ShapeMismatchError, DomainCoverageError, SingularOperatorError
from .physics import Field, SpinResolvedField
from .config import SolverConfig
from .fd import GridGeometry, Layer, LayerTable, PoissonOperator, LinearSystem, NewtonStep
from .interface.poisson import PotentialSolver, PoissonSolver
from .interface.density import DensityProvider
from .interface.damping import DampingController
from .interface.checkpoint import MemoryCheckpoint, TextCheckpoint, load_checkpoint
from .interface.selfconsistent import Phase, SolverState, SelfConsistentSolver

try:
    from mpi4py import MPI
    comm = MPI.COMM_WORLD
    rank = comm.Get_rank()
except ImportError:
    # If MPI is not available, assume single process
    rank = 0

# =============================================================================
# LOGGING SYSTEM SETUP
# =============================================================================
import logging
from datetime import datetime
from importlib import metadata

# =============================================================================
# HEADER
# =============================================================================
def library_header():
    """Output a header for the library to standard output."""

    # Get metadata from installed package
    try:
        pkg_info = metadata.metadata("hetpy")
        name = pkg_info["Name"]
        version = pkg_info["Version"]
    except metadata.PackageNotFoundError:
        name, version = "hetpy", "(not installed)"
    current_date = datetime.now().strftime("%Y-%m-%d")

    header_lines = [
        " ",
        "=" * 80,
        f"{name} v{version} initialized on {current_date}",
        "A Python library for self-consistent Poisson calculations in layered semiconductor devices",
        "=" * 80,
    ]

    logger = logging.getLogger(__name__)

    # Check if logging is properly configured
    if logger.hasHandlers() or logging.getLogger().hasHandlers():
        for line in header_lines:
            logger.info(line)
    else:
        # No logging configuration yet, use print to stdout
        for line in header_lines:
            print(line)
