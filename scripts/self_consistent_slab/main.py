#!/usr/bin/env python
"""
Self-consistent Thomas-Fermi/Poisson calculation for a gated layered heterostructure

This script sweeps the top gate voltage of a modulation doped device and, for
each voltage, solves the nonlinear Poisson equation self-consistently with a
damped Newton iteration.

Key features:
- Finite difference Poisson operator with piecewise permittivity
- Thomas-Fermi electron density with optional local exchange mixing
- MPI parallelization over gate voltages (independent runs, nothing shared)
- Per-iteration checkpoints, final profiles and surface charge vs voltage
"""

# =============================================================================
# GENERAL IMPORTS AND SETUP
# =============================================================================

import os                               # Operating system interface for file operations
import time                             # Wall clock timing of each gate voltage

import numpy as np                      # Fundamental numerical computing package

# Message Passing Interface for parallel computing
from mpi4py import MPI                  # Python bindings for MPI parallelization

import logging                          # Logging library for structured output control

# =============================================================================
# CORE LIBRARY IMPORTS
# =============================================================================

from hetpy import library_header        # Display library version information
from hetpy import GridGeometry, LayerTable, HetpyError
from hetpy import SelfConsistentSolver, SolverConfig
from hetpy import MemoryCheckpoint, TextCheckpoint
from hetpy.visualization import plot_profile, plot_convergence, plot_surface_charge_vs_voltage

from hetpy._database import params      # Material parameter database

# =============================================================================
# LOCAL IMPORTS
# =============================================================================

from hetpy.utilities import *
from hetpy.config import *

from thomas_fermi import ThomasFermiDensity

# =============================================================================
# SCRIPT PARAMETERS
# =============================================================================

SCRIPT_NAME = 'Self-consistent Thomas-Fermi/Poisson gate sweep'

# =============================================================================
# IMPORT INPUT PARAMETERS
# =============================================================================

from indata import *

# =============================================================================
# OUTPUT DIRECTORY SETUP
# =============================================================================

cdir = os.getcwd()
outdata_path = os.path.join(cdir, directory_name)
log_file = os.path.join(outdata_path, LOG_FILE_NAME + ".log")

# =============================================================================
# MPI SETUP AND PROCESS INITIALIZATION
# =============================================================================

comm = MPI.COMM_WORLD                  # Global communicator including all MPI processes
rank = comm.Get_rank()                 # Process rank, 0 is the master process
size = comm.Get_size()                 # Total number of MPI processes

if rank == 0:
    os.makedirs(outdata_path, exist_ok=True)

comm.Barrier()

# =============================================================================
# CONFIGURE LOGGING SYSTEM
# =============================================================================

logging.basicConfig(
    format='[%(asctime)s %(levelname)s] %(message)s',  # Timestamp and level for each message
    filename=log_file if rank == 0 else os.devnull,    # Only rank 0 writes the log file
    datefmt='%H:%M:%S',                # Time format: hours:minutes:seconds (no date)
    filemode='w',                      # Overwrite existing log file on each run
    level=logging.INFO                 # Minimum logging level (INFO and above)
)
logger = logging.getLogger(__name__)

if rank == 0:
    print(f'\nAll log messages sent to file: {log_file}\n')

comm.Barrier()

# =============================================================================
# INPUT VALIDATION
# =============================================================================

def consistency_checks():
    """
    Perform consistency checks on the input parameters from indata.py.
    Raises:
        ValueError: If any parameter is invalid, inconsistent, or out of range.
    """
    if not isinstance(directory_name, str) or not directory_name:
        logger.error(f"You entered directory_name = {directory_name}")
        raise ValueError("directory_name must be a non-empty string.")

    if not (isinstance(material, list) and len(material) > 0):
        logger.error(f"You entered material = {material}")
        raise ValueError("material must be a non-empty list of material names.")
    if any(m not in params for m in material):
        logger.error(f"You entered material = {material}")
        logger.error(f'Available materials: {list(params.keys())}')
        raise ValueError("Unavailable material(s) - Choose an available material or update the parameters database")

    if not (isinstance(thickness, list) and len(thickness) == len(material)):
        logger.error(f"You entered thickness = {thickness}")
        raise ValueError("thickness must be a list with one value per material.")
    if any(w <= 0 for w in thickness):
        logger.error(f"You entered thickness = {thickness}")
        raise ValueError("layer thicknesses must be positive.")

    if not (isinstance(donors, list) and len(donors) == len(material)):
        logger.error(f"You entered donors = {donors}")
        raise ValueError("donors must be a list with one value per material.")

    if not (isinstance(number_z_pts, int) and number_z_pts >= 3):
        logger.error(f"You entered number_z_pts = {number_z_pts}")
        raise ValueError("number_z_pts must be an integer of at least 3.")

    if not (isinstance(top_gate_set, list) and all(isinstance(v, (float, int)) for v in top_gate_set)):
        logger.error(f"You entered top_gate_set = {top_gate_set}")
        raise ValueError("top_gate_set must be a list of numbers.")

    if not (isinstance(maxiter, int) and maxiter > 0):
        logger.error(f"You entered maxiter = {maxiter}")
        raise ValueError("maxiter must be a positive integer.")

    if not pot_tolerance > 0:
        logger.error(f"You entered pot_tolerance = {pot_tolerance}")
        raise ValueError("pot_tolerance must be positive.")

# =============================================================================
# MAIN
# =============================================================================

def main():

    if rank == 0:
        library_header()
        print_header(SCRIPT_NAME)

    try:
        consistency_checks()
        config = SolverConfig(
            pot_diff_lim=pot_tolerance,
            use_mixing=use_mixing,
            initial_alpha=initial_alpha,
            t_min=t_min,
            t_damp=t_damp,
        ).validate()
    except ValueError as e:
        execution_aborted(e, rank)

    # =========================================================================
    # DEVICE
    # =========================================================================

    layers = LayerTable.from_materials(material, thickness, surface=0.0)
    grid = GridGeometry.from_extent(layers.zmin, layers.zmax, number_z_pts)

    if rank == 0:
        for m in material:
            log_material_params(m, params[m])
        log_layer_table(layers)
        log_grid_geometry(grid)
        log_solver_configuration(config, maxiter)
        logger.info("")
        logger.info('Computational System Configuration')
        host_IP()
        logger.info(f'{DLM}MPI processes  : {size}')

    # =========================================================================
    # GATE SWEEP
    # =========================================================================

    voltages = np.array(top_gate_set, dtype=float)
    local = np.arange(rank, voltages.shape[0], size)

    results = []
    for iv in local:
        top_V = voltages[iv]
        path_v = os.path.join(outdata_path, 'OUT_V_' + str(iv))
        os.makedirs(path_v, exist_ok=True)

        boundary_conditions = {'top_V': top_V, 'bottom_V': bottom_V}
        device_dimensions = {'top_position': layers.zmax, 'bottom_position': layers.zmin}
        log_boundary_conditions(boundary_conditions, device_dimensions)

        if generate_txt_files:
            checkpoint = TextCheckpoint(path_v)
        else:
            checkpoint = MemoryCheckpoint()

        provider = ThomasFermiDensity(grid, layers, material, donors)
        try:
            scs = SelfConsistentSolver(grid, layers, provider, config=config, checkpoint=checkpoint)
            scs.initiate_solver(device_dimensions, boundary_conditions)
            np.save(os.path.join(path_v, 'bare_chem_pot'), scs.bare_potential().data)

            # the cycle times its own iterations with tic/toc
            start = time.time()
            converged = scs.run(tol=pot_tolerance, max_iterations=maxiter)
            elapsed = time.time() - start
        except (HetpyError, ValueError) as e:
            execution_aborted(e, rank)

        sigma = scs.solver.get_surface_charge(scs.chem_pot, surface=0.0)
        logger.info(f'Gate {top_V:.3f} V : converged = {converged}, '
                    f'surface charge = {sigma:.6e} zC/nm^2, time = {elapsed:.2f} s')

        np.save(os.path.join(path_v, 'chem_pot'), scs.chem_pot.data)
        np.save(os.path.join(path_v, 'carrier_density'), scs.carrier_density.spin_summed.data)
        np.save(os.path.join(path_v, 'dopant_density'), scs.dopant_density.spin_summed.data)

        if generate_png_graphs:
            fig = plot_profile(grid, scs.chem_pot, scs.carrier_density, layers)
            fig.savefig(os.path.join(path_v, 'profile.png'), bbox_inches='tight')
            fig = plot_convergence(scs.history)
            fig.savefig(os.path.join(path_v, 'convergence.png'), bbox_inches='tight')

        results.append((iv, sigma, converged))

    # =========================================================================
    # COLLECT RESULTS
    # =========================================================================

    gathered = comm.gather(results, root=0)
    if rank == 0:
        merged = sorted(r for chunk in gathered for r in chunk)
        surface_charge = np.array([r[1] for r in merged])
        n_failed = sum(1 for r in merged if not r[2])
        np.savetxt(os.path.join(outdata_path, 'surface_charge.txt'),
                   np.column_stack([voltages, surface_charge]), delimiter=DLM)
        if n_failed > 0:
            logger.warning(f'{n_failed} gate voltage(s) did not converge')
        if generate_png_graphs:
            fig = plot_surface_charge_vs_voltage(voltages, surface_charge)
            fig.savefig(os.path.join(outdata_path, 'surface_charge.png'), bbox_inches='tight')

    comm.Barrier()
    execution_successful(rank)


if __name__ == '__main__':
    main()
