import numbers
import numpy as np

from hetpy.errors import ShapeMismatchError

# This module contains the field objects exchanged by the solver components

_KINDS = {1: 'vector', 2: 'matrix', 3: 'volume'}


class Field:
    """
    Dense scalar field on a regular 1-, 2- or 3-dimensional grid.

    The underlying data is a numpy array whose number of axes is the field
    dimension. Flat indices follow C ordering, the last axis (growth
    direction) running fastest. The values are exposed read-only through
    ``data`` and ``vec``; writes go through the flat index, which drops the
    cached Laplacian.

    Parameters
    ----------
    data : array_like
        Field values, 1 to 3 axes.
    laplacian : Field, optional
        Cached Laplacian d(eps d(field)) of this field.
    """

    # let numpy scalars defer to the reflected operators
    __array_ufunc__ = None

    def __init__(self, data, laplacian=None):
        data = np.array(data, dtype=float)
        if data.ndim not in _KINDS:
            raise ShapeMismatchError(
                "a field must have 1, 2 or 3 dimensions, got {}".format(data.ndim)
            )
        self._data = data

        # cached laplacian, set by the poisson solver
        self.laplacian = laplacian

    @classmethod
    def zeros(cls, shape):
        return cls(np.zeros(shape))

    @classmethod
    def full(cls, shape, value):
        return cls(np.full(shape, float(value)))

    # ------------------------------------------------------------------
    # shape information
    # ------------------------------------------------------------------
    @property
    def dimension(self):
        return self._data.ndim

    @property
    def kind(self):
        return _KINDS[self._data.ndim]

    @property
    def data(self):
        view = self._data.view()
        view.flags.writeable = False
        return view

    @property
    def shape(self):
        return self._data.shape

    @property
    def vec(self):
        """Flattened view of the data."""
        return self.data.reshape(-1)

    def __len__(self):
        return self._data.size

    def check_shape(self, other):
        if self.dimension != other.dimension:
            raise ShapeMismatchError(
                "field dimensions differ: {} and {}".format(self.dimension, other.dimension)
            )
        if self.shape != other.shape:
            raise ShapeMismatchError(
                "field shapes differ: {} and {}".format(self.shape, other.shape)
            )

    # ------------------------------------------------------------------
    # flattened index access
    # ------------------------------------------------------------------
    def __getitem__(self, i):
        return self.vec[i]

    def __setitem__(self, i, value):
        self._data.reshape(-1)[i] = value
        # the cached laplacian no longer matches the values
        self.laplacian = None

    def __iter__(self):
        return iter(self.vec)

    def copy(self):
        lap = None if self.laplacian is None else self.laplacian.copy()
        return Field(self.data.copy(), laplacian=lap)

    # ------------------------------------------------------------------
    # arithmetic
    # ------------------------------------------------------------------
    def _binary(self, other, op):
        if isinstance(other, Field):
            self.check_shape(other)
            lap = None
            if self.laplacian is not None and other.laplacian is not None:
                lap = op(self.laplacian, other.laplacian)
            return Field(op(self.data, other.data), laplacian=lap)
        return NotImplemented

    def _scalar(self, scalar, op):
        if not isinstance(scalar, numbers.Real):
            return NotImplemented
        lap = None if self.laplacian is None else op(self.laplacian, scalar)
        return Field(op(self.data, scalar), laplacian=lap)

    def __add__(self, other):
        return self._binary(other, lambda a, b: a + b)

    def __sub__(self, other):
        return self._binary(other, lambda a, b: a - b)

    def __mul__(self, scalar):
        return self._scalar(scalar, lambda a, s: a * s)

    __rmul__ = __mul__

    def __truediv__(self, scalar):
        return self._scalar(scalar, lambda a, s: a / s)

    def __neg__(self):
        return -1.0 * self

    def __abs__(self):
        return Field(np.abs(self.data))

    # ------------------------------------------------------------------
    # reductions
    # ------------------------------------------------------------------
    def min(self):
        return float(self.data.min())

    def max(self):
        return float(self.data.max())

    def infinity_norm(self):
        return float(np.max(np.abs(self.data)))

    def allclose(self, other, rtol=1e-9, atol=1e-12):
        self.check_shape(other)
        return np.allclose(self.data, other.data, rtol=rtol, atol=atol)

    def __repr__(self):
        return "Field({}, shape={})".format(self.kind, self.shape)


class SpinResolvedField:
    """
    Pair of fields for the spin up and spin down populations.

    The spin summed and spin difference fields are rebuilt at every access,
    so they always reflect the current components.
    """

    __array_ufunc__ = None

    def __init__(self, spin_up, spin_down=None):
        if not isinstance(spin_up, Field):
            spin_up = Field(spin_up)
        if spin_down is None:
            spin_down = Field.zeros(spin_up.shape)
        elif not isinstance(spin_down, Field):
            spin_down = Field(spin_down)
        spin_up.check_shape(spin_down)

        self.spin_up = spin_up
        self.spin_down = spin_down

    @classmethod
    def zeros(cls, shape):
        return cls(Field.zeros(shape), Field.zeros(shape))

    @classmethod
    def from_total(cls, total):
        # split a total density evenly between the two spins
        half = 0.5 * total
        return cls(half.copy(), half.copy())

    @property
    def shape(self):
        return self.spin_up.shape

    @property
    def dimension(self):
        return self.spin_up.dimension

    def __len__(self):
        return len(self.spin_up)

    @property
    def spin_summed(self):
        return Field(self.spin_up.data + self.spin_down.data)

    @property
    def spin_difference(self):
        return Field(self.spin_up.data - self.spin_down.data)

    def copy(self):
        return SpinResolvedField(self.spin_up.copy(), self.spin_down.copy())

    def __add__(self, other):
        if not isinstance(other, SpinResolvedField):
            return NotImplemented
        return SpinResolvedField(self.spin_up + other.spin_up, self.spin_down + other.spin_down)

    def __sub__(self, other):
        if not isinstance(other, SpinResolvedField):
            return NotImplemented
        return SpinResolvedField(self.spin_up - other.spin_up, self.spin_down - other.spin_down)

    def __mul__(self, scalar):
        if not isinstance(scalar, numbers.Real):
            return NotImplemented
        return SpinResolvedField(self.spin_up * scalar, self.spin_down * scalar)

    __rmul__ = __mul__

    def __repr__(self):
        return "SpinResolvedField(shape={})".format(self.shape)
