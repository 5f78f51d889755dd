import numpy as np
from scipy.sparse import diags, identity, kron, csc_matrix

from hetpy.errors import ShapeMismatchError
from hetpy.physics import Field


############################ POISSON OPERATOR ##########################

"""
The Poisson equation d(eps d(phi)) = - rho is discretised with a three point
stencil along each axis of a regular grid. Energies are in meV, lengths in nm
and charges in zC, so that eps is in zC^2/(meV nm), phi in meV/zC and rho
in zC/nm^3.

Along the growth axis z the permittivity is taken at the mid points between
nodes, so that the displacement field eps * dphi/dz is continuous across
layer interfaces:

    (L phi)_i = [ eps_{i+1/2} (phi_{i+1} - phi_i) - eps_{i-1/2} (phi_i - phi_{i-1}) ] / h^2

The first and last node along z are Dirichlet nodes. Their rows are replaced
by the identity times eps/h^2, the boundary value being carried by the right
hand side. Lateral axes (2D and 3D grids) use the permittivity of the layer
at the node height and zero normal flux at their ends.
"""


def growth_axis_stencil(grid, layers):
    """
    Tridiagonal stencil along z with the Dirichlet rows left empty.

    Returns
    -------
    lower, main, upper : ndarray
        Diagonals of the interior rows.
    """
    nz = grid.nz
    h2 = grid.dz**2

    # permittivity at i + 1/2, length nz - 1
    eps_half = layers.permittivity_at(grid.z_half_steps())

    factor_minus = np.zeros(nz)
    factor_plus = np.zeros(nz)
    factor_minus[1:-1] = eps_half[:-1] / h2
    factor_plus[1:-1] = eps_half[1:] / h2

    main = -factor_minus - factor_plus
    # entry (i, i-1) for i = 1..nz-1
    lower = factor_minus[1:]
    # entry (i, i+1) for i = 0..nz-2
    upper = factor_plus[:-1]
    return lower, main, upper


def lateral_stencil(n, h):
    """Second difference with zero flux (mirror) ends."""
    main = np.full(n, -2.0)
    upper = np.ones(n - 1)
    lower = np.ones(n - 1)
    upper[0] = 2.0
    lower[-1] = 2.0
    return diags([lower, main, upper], [-1, 0, 1], format='csr') / h**2


class PoissonOperator:
    """
    Sparse discretised operator L with L phi = d(eps d(phi)).

    Parameters
    ----------
    grid : GridGeometry
    layers : LayerTable
        Must cover [grid.zmin, grid.zmax], otherwise DomainCoverageError.
    """

    def __init__(self, grid, layers):
        layers.check_coverage(grid.zmin, grid.zmax)

        self.grid = grid
        self.layers = layers

        # permittivity at the two Dirichlet faces
        self.eps_bottom = layers.get_layer(grid.zmin).permittivity
        self.eps_top = layers.get_layer(grid.zmax).permittivity

        self.matrix = self._assemble()

    def _assemble(self):
        grid = self.grid
        shape = grid.shape
        n = grid.size
        nz = grid.nz
        h2 = grid.dz**2

        # growth axis stencil, identical on every lateral node
        lower, main, upper = growth_axis_stencil(grid, self.layers)
        Dz = diags([lower, main, upper], [-1, 0, 1], format='csr')
        nlat = n // nz
        A = kron(identity(nlat, format='csr'), Dz, format='csr')

        # lateral stencils scaled by the permittivity at the node height
        if grid.dimension > 1:
            eps_node = self.layers.permittivity_at(grid.z())
            eps_full = np.broadcast_to(eps_node, shape).reshape(-1)
            for axis in range(grid.dimension - 1):
                before = int(np.prod(shape[:axis]))
                after = int(np.prod(shape[axis + 1:]))
                Da = lateral_stencil(shape[axis], grid.spacing[axis])
                Da = kron(identity(before, format='csr'), kron(Da, identity(after, format='csr')), format='csr')
                A = A + diags(eps_full) @ Da

        # Dirichlet rows on the bottom and top faces
        iz = np.tile(np.arange(nz), nlat)
        self.bottom_index = np.where(iz == 0)[0]
        self.top_index = np.where(iz == nz - 1)[0]

        boundary_mask = np.zeros(n, dtype=bool)
        boundary_mask[self.bottom_index] = True
        boundary_mask[self.top_index] = True
        self.boundary_mask = boundary_mask

        boundary_scale = np.zeros(n)
        boundary_scale[self.bottom_index] = self.eps_bottom / h2
        boundary_scale[self.top_index] = self.eps_top / h2
        self.boundary_scale = boundary_scale

        interior = diags((~boundary_mask).astype(float))
        L = interior @ A + diags(boundary_scale)
        return csc_matrix(L)

    @property
    def order(self):
        return self.matrix.shape[0]

    def copy_matrix(self):
        return self.matrix.copy()

    def apply(self, field):
        """Return L field as a Field of the same shape."""
        if len(field) != self.order:
            raise ShapeMismatchError(
                "field of length {} does not match an operator of order {}".format(len(field), self.order)
            )
        return Field((self.matrix @ field.vec).reshape(field.shape))

    def boundary_source(self, bottom_value, top_value):
        """
        Right hand side entries enforcing phi = value on the Dirichlet faces.

        Returns a flat array, zero on interior nodes.
        """
        b = np.zeros(self.order)
        b[self.bottom_index] = self.boundary_scale[self.bottom_index] * bottom_value
        b[self.top_index] = self.boundary_scale[self.top_index] * top_value
        return b
