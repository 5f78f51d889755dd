import logging
from dataclasses import dataclass

import numpy as np

from hetpy import _constants
from hetpy import _database
from hetpy.errors import DomainCoverageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Layer:
    """
    Slab of uniform material between zmin and zmax (nm).

    permittivity is the absolute permittivity in zC^2/(meV nm),
    band_gap is in meV.
    """
    zmin: float
    zmax: float
    permittivity: float
    band_gap: float = 0.0
    layer_no: int = 0

    def contains(self, z, closed=False):
        if closed:
            return self.zmin <= z <= self.zmax
        return self.zmin <= z < self.zmax


class LayerTable:
    """
    Ordered stack of layers covering [zmin, zmax] without gaps.

    Every layer owns the half-open interval [zmin, zmax); the topmost layer
    also owns its upper edge so that the last grid node resolves.
    """

    def __init__(self, layers, tol=1e-9):
        layers = sorted(layers, key=lambda l: l.zmin)
        if len(layers) == 0:
            raise DomainCoverageError("the layer table is empty")

        for l in layers:
            if l.zmax <= l.zmin:
                raise DomainCoverageError(
                    "layer {} has non positive thickness".format(l.layer_no)
                )
        for below, above in zip(layers[:-1], layers[1:]):
            if abs(above.zmin - below.zmax) > tol:
                raise DomainCoverageError(
                    "layers {} and {} do not meet: gap or overlap between z={} and z={}".format(
                        below.layer_no, above.layer_no, below.zmax, above.zmin
                    )
                )

        self.layers = tuple(layers)
        self.tol = tol

        # sorted layer edges used for vectorised lookup
        self._edges = np.array([l.zmin for l in layers] + [layers[-1].zmax])

    @classmethod
    def from_materials(cls, materials, thicknesses, surface=0.0, parameters=None):
        """
        Build a table from material names listed from the surface down.

        The surface is at z=surface and layers extend towards negative z,
        the growth axis pointing up as in the heterostructure input files.
        """
        if len(materials) != len(thicknesses):
            raise ValueError("one thickness per material is needed")
        if parameters is None:
            parameters = _database.params

        layers = []
        ztop = surface
        for i, (mat, width) in enumerate(zip(materials, thicknesses)):
            if mat not in parameters:
                logger.error(f"Material {mat} not available")
                logger.error(f"Available materials: {list(parameters.keys())}")
                raise ValueError("unavailable material {}".format(mat))
            p = parameters[mat]
            layers.append(
                Layer(
                    zmin=ztop - width,
                    zmax=ztop,
                    permittivity=p['eps'] * _constants.epsilon_0,
                    band_gap=p['Eg'],
                    layer_no=i + 1,
                )
            )
            ztop -= width
        return cls(layers)

    @property
    def zmin(self):
        return self.layers[0].zmin

    @property
    def zmax(self):
        return self.layers[-1].zmax

    def __len__(self):
        return len(self.layers)

    def __iter__(self):
        return iter(self.layers)

    def __getitem__(self, i):
        return self.layers[i]

    def get_layer(self, z):
        """Return the layer containing position z."""
        if z < self.zmin - self.tol or z > self.zmax + self.tol:
            raise DomainCoverageError(
                "position z={} outside the layer table [{}, {}]".format(z, self.zmin, self.zmax)
            )
        return self.layers[self._locate(np.array([z]))[0]]

    def _locate(self, z):
        # half-open intervals, the top edge belongs to the last layer
        idx = np.searchsorted(self._edges, z, side='right') - 1
        return np.clip(idx, 0, len(self.layers) - 1)

    def permittivity_at(self, z):
        """Vectorised permittivity lookup for an array of positions."""
        z = np.asarray(z, dtype=float)
        if np.any(z < self.zmin - self.tol) or np.any(z > self.zmax + self.tol):
            bad = z[(z < self.zmin - self.tol) | (z > self.zmax + self.tol)]
            raise DomainCoverageError(
                "positions {} outside the layer table [{}, {}]".format(bad, self.zmin, self.zmax)
            )
        eps = np.array([l.permittivity for l in self.layers])
        return eps[self._locate(z)]

    def band_gap_at(self, z):
        z = np.asarray(z, dtype=float)
        gaps = np.array([l.band_gap for l in self.layers])
        return gaps[self._locate(z)]

    def check_coverage(self, zmin, zmax):
        if zmin < self.zmin - self.tol or zmax > self.zmax + self.tol:
            raise DomainCoverageError(
                "the layers cover [{}, {}] but the domain is [{}, {}]".format(
                    self.zmin, self.zmax, zmin, zmax
                )
            )

    def find_layer_below_surface(self, surface=0.0):
        """Layer just below the given surface position."""
        return self.get_layer(surface - self.tol * 10)
