"""
Utility Functions for scripts based on the hetpy library.

This module provides logging helpers, error handling and system information
display shared by the driver scripts.

Functions:
    execution_aborted: Handle fatal errors and exit gracefully
    execution_successful: Log successful completion
    host_IP: Log hostname and IP for distributed debugging
    print_header: Create formatted header for the script
    log_material_params: Display material parameters
    log_layer_table: Show the layer stack in tabular form
    log_grid_geometry: Display the finite difference grid
    log_boundary_conditions: Show the Dirichlet values of the run
    log_solver_configuration: Display the self-consistent cycle parameters
    get_parameters: Get parameters of the specified materials.
"""

from datetime import datetime            # Date/time stamps for logs
import logging                          # For structured log output
import socket                           # For network debugging information
import sys                              # System-specific parameters and functions

from hetpy import _constants
from hetpy.config import DLM, FMT_STR
from hetpy._database import params      # Material parameter database

# Initialize module logger for consistent formatting
logger = logging.getLogger(__name__)

# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def execution_aborted(e, rank=0):
    """
    Handle execution errors by logging the exception and exiting gracefully.

    Args:
        e (Exception or str): The exception or error message that caused the execution to abort
        rank (int): MPI rank of the caller, only rank 0 logs

    Note:
        All MPI processes must reach this function for proper termination
    """
    if rank == 0:
        logger.error(f"{str(e)}")
        logger.error(f"Execution aborted.")

    # ALL processes exit with error code
    sys.exit(1)

def execution_successful(rank=0):
    """
    Log successful completion of the simulation.

    NOTE: All MPI processes must reach this function for proper termination.
    """
    if rank == 0:
        logger.info("")
        logger.info('Normal successful completion.')
        print('Normal successful completion.')

    sys.exit(0)

def host_IP():
    """
    Log hostname and IP address for debugging distributed calculations.

    Note:
        Network resolution failures are logged as warnings.
    """
    try:
        hname = socket.gethostname()
        hip = socket.gethostbyname(hname)
        logger.info(f'{DLM}Hostname       : {hname}')
        logger.info(f"{DLM}IP Address     : {hip}")
    except OSError:
        # Network resolution can fail in some cluster environments
        logger.warning("Unable to get hostname and IP address")

def print_header(script_name):
    """
    Print formatted header with script name and execution date.

    Args:
        script_name (str): Name of the script being executed
    """
    BAR_LENGTH = 80                      # Total width of header bar

    current_date = datetime.now().strftime("%Y-%m-%d")

    # Center the script name
    shift = (BAR_LENGTH - len(script_name)) // 2

    logger.info('=' * BAR_LENGTH)
    logger.info(f'{" " * shift}{script_name}')
    logger.info(f'{" " * shift}Running on {current_date}')
    logger.info('=' * BAR_LENGTH)

def log_material_params(material_name, material_params):
    """
    Log material parameters on one line.

    Args:
        material_name (str): Name of the material (e.g., 'GaAs', 'InAs')
        material_params (dict): Dictionary of material parameters from database
    """
    cell_width = 12                      # Column width for parameter display

    logger.info("")
    logger.info(f'Material : {material_name}')
    logger.info(f'Note     : {material_params.get("note", "")}')

    items = [f"{key}={value}".ljust(cell_width)
             for key, value in material_params.items() if key in ('eps', 'Eg', 'me')]
    logger.info(f'   {" | ".join(items)}')

def log_layer_table(layers):
    """
    Log the layer stack from the top of the device down.

    Args:
        layers (LayerTable): Layers of the device
    """
    logger.info("")
    logger.info('Layer Structure')
    logger.info("---------------")
    logger.info('  No.   zmin [nm]    zmax [nm]    eps_r        Eg [meV]')
    logger.info('-' * 60)
    for layer in reversed(list(layers)):
        eps_r = layer.permittivity / _constants.epsilon_0
        logger.info(f'{layer.layer_no:>5} {layer.zmin:>11.3f} {layer.zmax:>12.3f} '
                    f'{eps_r:>10.3f} {layer.band_gap:>13.1f}')
    logger.info('-' * 60)

def log_grid_geometry(grid):
    """
    Log the finite difference grid.

    Args:
        grid (GridGeometry): Regular grid of the run
    """
    logger.info("")
    logger.info('Grid Geometry')
    logger.info(FMT_STR.format('Dimension', grid.dimension))
    logger.info(FMT_STR.format('Points', grid.points))
    logger.info(FMT_STR.format('Spacing [nm]', grid.spacing))
    logger.info(FMT_STR.format('Origin [nm]', grid.origin))
    logger.info(FMT_STR.format('Growth axis range [nm]', f'[{grid.zmin:.3f}, {grid.zmax:.3f}]'))

def log_boundary_conditions(boundary_conditions, device_dimensions=None):
    """
    Log the Dirichlet values and the device extent.

    Args:
        boundary_conditions (dict): 'top_V' and 'bottom_V' in volts
        device_dimensions (dict): optional 'top_position' and 'bottom_position' in nm
    """
    logger.info("")
    logger.info('Boundary Conditions')
    for key, value in boundary_conditions.items():
        logger.info(FMT_STR.format(f'{key} [V]', value))
    if device_dimensions:
        for key, value in device_dimensions.items():
            logger.info(FMT_STR.format(f'{key} [nm]', value))

def log_solver_configuration(config, max_iterations=None):
    """
    Log parameters of the self-consistent cycle.

    Args:
        config (SolverConfig): Thresholds of the run
        max_iterations (int): Iteration cap, if known
    """
    logger.info("")
    logger.info("Self-consistent cycle parameters")
    if max_iterations is not None:
        logger.info(FMT_STR.format('max_iterations', max_iterations))
    for key, value in config.as_dict().items():
        logger.info(FMT_STR.format(key, value))

def get_parameters(material):
    """
    Get parameters of the specified materials.

    Args:
        material (list): List of material names (e.g., ['GaAs', 'Al03GaAs'])

    returns:
        dict: Dictionary of material parameters
    """
    parameters = {}
    for m in material:
        parameters[m] = params[m]
    return parameters
