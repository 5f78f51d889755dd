import logging

import numpy as np
from scipy.sparse import csc_matrix, diags
from scipy.sparse.linalg import splu

from hetpy import _constants
from hetpy.errors import ShapeMismatchError, SingularOperatorError
from hetpy.physics import Field

logger = logging.getLogger(__name__)


def bandwidth(mat):
    coo = mat.tocoo()
    if coo.nnz == 0:
        return 0
    return int(np.max(np.abs(coo.row - coo.col)))


######################## SYSTEM SOLVER ######################

class LinearSystem:
    """
    LU factorisation of a square sparse operator, solved for many right hand sides.

    The operator is factorised once when it is set. A tridiagonal operator
    (1D grids) keeps its natural ordering so that the factors stay bidiagonal
    and a solve costs O(n). When the operator changes a new LinearSystem has
    to be built.

    Parameters
    ----------
    matrix : sparse matrix or ndarray
        The operator to factorise.
    pivot_tol : float
        Relative size below which a pivot counts as zero.
    """

    def __init__(self, matrix, pivot_tol=1e-13):
        self.pivot_tol = pivot_tol

        Mgl = csc_matrix(matrix, dtype=float)
        if Mgl.shape[0] != Mgl.shape[1]:
            raise ShapeMismatchError("operator is not square: {}".format(Mgl.shape))
        self.Mgl = Mgl
        self.tridiagonal = bandwidth(Mgl) <= 1

        ###### FACTORISATION ######
        permc_spec = 'NATURAL' if self.tridiagonal else 'COLAMD'
        try:
            self.lu = splu(Mgl, permc_spec=permc_spec)
        except RuntimeError as e:
            raise SingularOperatorError("factorisation failed: {}".format(e)) from e

        pivots = np.abs(self.lu.U.diagonal())
        largest = pivots.max() if pivots.size > 0 else 0.0
        if largest == 0.0 or not np.all(np.isfinite(pivots)):
            raise SingularOperatorError("operator has no usable pivot")
        smallest = pivots.min()
        if smallest <= self.pivot_tol * largest:
            raise SingularOperatorError(
                "near zero pivot {:.3e} (largest {:.3e})".format(smallest, largest)
            )

    @property
    def order(self):
        return self.Mgl.shape[0]

    def solve(self, b):
        """Solve Mgl x = b and return x as a flat array."""
        if isinstance(b, Field):
            b = b.vec
        b = np.asarray(b, dtype=float).reshape(-1)
        if b.shape[0] != self.order:
            raise ShapeMismatchError(
                "right hand side of length {} for an operator of order {}".format(b.shape[0], self.order)
            )
        return self.lu.solve(b)


######################## NEWTON STEP ######################

class NewtonStep:
    """
    Damped Newton direction for the nonlinear Poisson equation.

    With the residual

        g(mu) = - L (mu / q_e) - rho(mu)

    the Jacobian is J = - L / q_e - diag(rho'), rho' = d rho / d mu being
    the spin summed density derivative. The direction x solves J x = - g.
    Dirichlet nodes carry no density response, so rho' is ignored there.

    Parameters
    ----------
    operator : PoissonOperator
        The base operator L. It is never modified; each solve works on a copy.
    scale : float
        Conversion from chemical potential to potential, 1 / q_e by default.
    """

    def __init__(self, operator, scale=None):
        self.operator = operator
        if scale is None:
            scale = 1.0 / _constants.q_e
        self.scale = scale

        # last jacobian and its factorisation
        self.jacobian = None
        self.solver = None

    def build_jacobian(self, rho_prime):
        L = self.operator.copy_matrix()
        if len(rho_prime) != L.shape[0]:
            raise ShapeMismatchError(
                "the Laplacian has order {} but rho_prime has length {}".format(L.shape[0], len(rho_prime))
            )
        d = np.array(rho_prime.vec, dtype=float)
        d[self.operator.boundary_mask] = 0.0
        return csc_matrix(-self.scale * L - diags(d))

    def solve(self, rho_prime, g_phi):
        """
        Parameters
        ----------
        rho_prime : Field
            Spin summed density derivative.
        g_phi : Field
            Residual of the discretised Poisson equation.

        Returns
        -------
        x : Field
            Newton direction, with x.laplacian = L (x / q_e).
        """
        self.jacobian = self.build_jacobian(rho_prime)
        if len(g_phi) != self.jacobian.shape[0]:
            raise ShapeMismatchError(
                "residual of length {} for a Jacobian of order {}".format(len(g_phi), self.jacobian.shape[0])
            )
        self.solver = LinearSystem(self.jacobian)

        x = Field(self.solver.solve(-1.0 * g_phi.vec).reshape(g_phi.shape))
        x.laplacian = self.operator.apply(self.scale * x)
        return x
