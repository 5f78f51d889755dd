"""
In this example the bare electrostatic potential (no free charge) of a gated
layered device is computed on a 1D grid and on a 2D grid with the same
layers. The 2D solution does not depend on the lateral coordinate and must
coincide with the 1D one. Profiles are saved into the folder OUTDATA
"""

################# import section ######################
import os
import logging
import numpy as np
import sys
sys.path.append("../../")
# base
from hetpy import GridGeometry, LayerTable, PoissonSolver, SpinResolvedField
from hetpy import tic, toc
from hetpy.utilities import log_layer_table, log_grid_geometry
from hetpy.visualization import plot_profile

# input file
import indata
################################################################

################### General settings ###############

# where to write output data
path = indata.path
os.makedirs(path, exist_ok=True)

logging.basicConfig(
    format='[%(asctime)s %(levelname)s] %(message)s',
    filename=path+'logfile.log',
    datefmt='%H:%M:%S',
    filemode='w',
    level=logging.INFO
)
logger = logging.getLogger(__name__)

############# Bare potential  #############

def bare_chem_pot(grid, layers):
    solver = PoissonSolver(grid, layers)
    solver.initiate_solver({}, {'top_V': indata.top_V, 'bottom_V': indata.bottom_V})
    return solver.get_chemical_potential(SpinResolvedField.zeros(grid.shape))

def main():

    layers = LayerTable.from_materials(indata.materials, indata.thicknesses)
    log_layer_table(layers)

    grid_1d = GridGeometry.from_extent(layers.zmin, layers.zmax, indata.nz)
    log_grid_geometry(grid_1d)
    mu_1d = bare_chem_pot(grid_1d, layers)

    dx = indata.width / (indata.nx - 1)
    grid_2d = GridGeometry(
        spacing=(dx, grid_1d.dz),
        origin=(-0.5*indata.width, layers.zmin),
        points=(indata.nx, indata.nz),
    )
    log_grid_geometry(grid_2d)
    mu_2d = bare_chem_pot(grid_2d, layers)

    deviation = np.max(np.abs(mu_2d.data - mu_1d.data[np.newaxis, :]))
    logger.info(f"Largest 2D - 1D deviation = {deviation:.3e} meV")

    np.save(path+'chem_pot_1d', mu_1d.data)
    np.save(path+'chem_pot_2d', mu_2d.data)

    fig = plot_profile(grid_1d, mu_1d, layers=layers)
    fig.savefig(path+'bare_profile.png', bbox_inches='tight')


if __name__=='__main__':
    tic()
    main()
    logger.info(f"Elapsed time: {toc():.3f} s")
