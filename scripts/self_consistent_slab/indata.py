"""
Input Parameters for Self-Consistent Poisson Calculations of a Gated Heterostructure

This configuration file contains all parameters needed for self-consistent
Thomas-Fermi/Poisson calculations of a modulation doped layered device swept
over a set of top gate voltages.

Parameter Categories:
    - File Configuration: Output directory
    - Layer Structure: Materials, thicknesses and doping, surface first
    - Grid: Number of points along the growth axis
    - Boundary Conditions: Gate voltages and bottom contact
    - Self-Consistent Cycle: Convergence criteria and iteration control
    - Plotting: Visualization preferences
"""

# =====================
# FILE CONFIGURATION
# =====================

directory_name = "outdata"        # Directory where all output files will be saved
                                  # Created automatically if it doesn't exist
                                  # One subdirectory per gate voltage: outdata/OUT_V_X/

# =====================
# EXECUTION CONTROL FLAGS
# =====================

generate_txt_files = True         # If True, write the per-iteration checkpoint files
                                  # (carrier_density.tmp, chem_pot.tmp, ...)

generate_png_graphs = False       # If True, generate plots in .png format

# =====================
# LAYER STRUCTURE
# =====================

# Layers listed from the surface (z = 0) down, growth axis pointing up
material = ["GaAs", "Al03GaAs", "Al03GaAs", "GaAs"]
                                  # Must exist in the hetpy material parameter database

thickness = [10.0, 40.0, 20.0, 330.0]
                                  # Layer thicknesses in nm

donors = [0.0, 1.0e18, 0.0, 0.0]  # Ionised donor density in cm^-3 for each layer

# =====================
# GRID
# =====================

number_z_pts = 801                # Grid points along the growth axis
                                  # Spacing is total thickness / (number_z_pts - 1)

# =====================
# BOUNDARY CONDITIONS
# =====================

top_gate_set = [0.0, 0.2, 0.4, 0.6]
                                  # Top gate voltages in V, one run per value
                                  # Runs are distributed over the MPI processes

bottom_V = 0.705                  # Bottom contact voltage in V
                                  # 0.705 V puts the Fermi level 5 meV below
                                  # the GaAs conduction band edge

# =====================
# SELF-CONSISTENT CYCLE
# =====================

maxiter = 500                     # Maximum number of iterations per gate voltage

pot_tolerance = 0.1               # Largest potential change at convergence in meV

use_mixing = True                 # Mix in the local exchange potential

initial_alpha = 0.1               # Starting weight of the exchange potential

t_min = 1e-3                      # Floor of the damping parameter

t_damp = 0.8                      # Outer damping factor
