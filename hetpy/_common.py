import logging
import time

import numpy as np

logger = logging.getLogger(__name__)


def relative_change(new, old, floor_fraction=0.01):
    """
    Largest relative change |new - old| / |new| over the points where |new|
    exceeds floor_fraction * max|new|. Points below the floor count as
    converged, so an empty new density gives 0.
    """
    new = np.asarray(new, dtype=float).reshape(-1)
    old = np.asarray(old, dtype=float).reshape(-1)
    scale = np.max(np.abs(new)) if new.size > 0 else 0.0
    if scale == 0.0:
        return 0.0
    mask = np.abs(new) > floor_fraction * scale
    return float(np.max(np.abs(new[mask] - old[mask]) / np.abs(new[mask])))


##################### tic() toc() functions #############

def TicTocGenerator():
    # Generator that returns time differences
    ti = 0           # initial time
    tf = time.time() # final time
    while True:
        ti = tf
        tf = time.time()
        yield tf-ti # returns the time difference

TicToc = TicTocGenerator() # create an instance of the TicTocGen generator

# This will be the main function through which we define both tic() and toc()
def toc(tempBool=True):
    # Logs the time difference yielded by generator instance TicToc
    tempTimeInterval = next(TicToc)
    if tempBool:
        logger.debug("Elapsed time: %f seconds." % tempTimeInterval)
    return tempTimeInterval

def tic():
    # Records a time in TicToc, marks the beginning of a time interval
    toc(False)
