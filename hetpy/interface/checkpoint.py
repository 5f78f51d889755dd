import logging
import os

import numpy as np

from hetpy.config import CHECKPOINT_FILES
from hetpy.errors import ShapeMismatchError
from hetpy.physics import Field, SpinResolvedField

logger = logging.getLogger(__name__)


class MemoryCheckpoint:
    """Keep the last snapshot of the solver state in memory."""

    def __init__(self):
        self.last = None
        self.count = 0

    def write(self, snapshot):
        self.last = snapshot
        self.count += 1


class TextCheckpoint:
    """
    Dump the solver state to plain text files after every iteration.

    Files (overwritten at each write) in the directory ``path``:
        carrier_density.tmp   two columns, spin up and spin down
        dopent_density.tmp    two columns, spin up and spin down
        density_deriv.tmp     one column
        chem_pot.tmp          one column, meV
        t_val.tmp             damping parameter of the last step

    Values are written in flattened C order.
    """

    def __init__(self, path='./'):
        self.path = path
        os.makedirs(path, exist_ok=True)
        self.count = 0

    def _file(self, key):
        return os.path.join(self.path, CHECKPOINT_FILES[key])

    def write(self, snapshot):
        for key in ('carrier_density', 'dopant_density'):
            density = snapshot[key]
            np.savetxt(self._file(key), np.column_stack([density.spin_up.vec, density.spin_down.vec]))
        np.savetxt(self._file('density_deriv'), snapshot['density_deriv'].vec)
        np.savetxt(self._file('chem_pot'), snapshot['chem_pot'].vec)
        np.savetxt(self._file('t'), np.array([snapshot['t']]))
        self.count += 1
        logger.debug(f"Checkpoint {self.count} written to {self.path}")


def load_checkpoint(path, shape):
    """
    Read the files written by TextCheckpoint.

    Parameters
    ----------
    path : str
        Directory holding the checkpoint files.
    shape : tuple
        Grid shape the flattened data are reshaped to.

    Returns
    -------
    snapshot : dict
        Keys 'chem_pot', 'carrier_density', 'dopant_density',
        'density_deriv' and 't'.
    """
    size = int(np.prod(shape))

    def read(key, columns):
        data = np.loadtxt(os.path.join(path, CHECKPOINT_FILES[key]), ndmin=2)
        if columns == 1 and data.shape[1] != 1:
            data = data.reshape(-1, 1)
        if data.shape != (size, columns):
            raise ShapeMismatchError(
                "{} holds {} values, expected {} on a grid of shape {}".format(
                    CHECKPOINT_FILES[key], data.shape, (size, columns), shape)
            )
        return data

    snapshot = {}
    for key in ('carrier_density', 'dopant_density'):
        data = read(key, 2)
        snapshot[key] = SpinResolvedField(data[:, 0].reshape(shape), data[:, 1].reshape(shape))
    snapshot['density_deriv'] = Field(read('density_deriv', 1)[:, 0].reshape(shape))
    snapshot['chem_pot'] = Field(read('chem_pot', 1)[:, 0].reshape(shape))
    snapshot['t'] = float(np.loadtxt(os.path.join(path, CHECKPOINT_FILES['t'])))

    logger.info(f"Checkpoint read from {path}")
    return snapshot
