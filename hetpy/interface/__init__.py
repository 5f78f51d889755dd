from .poisson import PotentialSolver, PoissonSolver
from .density import DensityProvider
from .damping import DampingController
from .checkpoint import MemoryCheckpoint, TextCheckpoint, load_checkpoint
from .selfconsistent import Phase, SolverState, SelfConsistentSolver
