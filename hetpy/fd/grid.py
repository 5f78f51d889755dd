import numpy as np


class GridGeometry:
    """
    Uniform regular grid in 1, 2 or 3 dimensions.

    The last axis is the growth direction z along which the layers are
    stacked. For a 1D grid it is the only axis; for 2D the axes are (y, z)
    and for 3D (x, y, z).

    Parameters
    ----------
    spacing : sequence of float
        Grid spacing per axis in nm.
    origin : sequence of float
        Coordinate of the first node per axis in nm.
    points : sequence of int
        Number of nodes per axis.
    """

    def __init__(self, spacing, origin, points):
        spacing = np.atleast_1d(np.asarray(spacing, dtype=float))
        origin = np.atleast_1d(np.asarray(origin, dtype=float))
        points = np.atleast_1d(np.asarray(points, dtype=int))

        if not (len(spacing) == len(origin) == len(points)):
            raise ValueError("spacing, origin and points must have the same length")
        if len(points) not in (1, 2, 3):
            raise ValueError("only 1, 2 and 3 dimensional grids are supported")
        if np.any(spacing <= 0.0):
            raise ValueError("grid spacing must be positive")
        if np.any(points < 3):
            raise ValueError("at least 3 points per axis are needed")

        self._spacing = tuple(spacing)
        self._origin = tuple(origin)
        self._points = tuple(int(n) for n in points)

    @classmethod
    def from_extent(cls, zmin, zmax, nz):
        """1D grid with nz nodes spanning [zmin, zmax]."""
        return cls(spacing=[(zmax - zmin) / (nz - 1)], origin=[zmin], points=[nz])

    @property
    def spacing(self):
        return self._spacing

    @property
    def origin(self):
        return self._origin

    @property
    def points(self):
        return self._points

    @property
    def shape(self):
        return self._points

    @property
    def dimension(self):
        return len(self._points)

    @property
    def size(self):
        return int(np.prod(self._points))

    # growth axis shortcuts
    @property
    def dz(self):
        return self._spacing[-1]

    @property
    def nz(self):
        return self._points[-1]

    @property
    def zmin(self):
        return self._origin[-1]

    @property
    def zmax(self):
        return self._origin[-1] + (self._points[-1] - 1) * self._spacing[-1]

    def axis_coordinates(self, axis=-1):
        return self._origin[axis] + np.arange(self._points[axis]) * self._spacing[axis]

    def z(self):
        return self.axis_coordinates(-1)

    def z_half_steps(self):
        """Positions of the mid points between consecutive nodes along z."""
        z = self.z()
        return 0.5 * (z[1:] + z[:-1])

    def index_of(self, z):
        """Nearest grid index along z for position z."""
        i = int(round((z - self.zmin) / self.dz))
        return min(max(i, 0), self.nz - 1)

    def __repr__(self):
        return "GridGeometry(spacing={}, origin={}, points={})".format(
            self._spacing, self._origin, self._points
        )
