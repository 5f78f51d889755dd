import numpy as np
import matplotlib.pyplot as plt
import matplotlib.gridspec as gridspec
from matplotlib.ticker import MaxNLocator


def _growth_line(field, lateral_index=None):
    # profile along z through the centre of the lateral axes
    data = field.data
    if data.ndim == 1:
        return data
    if lateral_index is None:
        lateral_index = tuple(n // 2 for n in data.shape[:-1])
    return data[tuple(lateral_index)]


def plot_profile(grid, chem_pot, density=None, layers=None, lateral_index=None):
    """
    Conduction band edge (or chemical potential) and charge density along the
    growth axis.

    With a layer table the band edge 0.5 Eg(z) - mu(z) is drawn, otherwise
    the chemical potential itself. Layer interfaces are marked by vertical
    lines.
    """
    fig = plt.figure(figsize=(7, 7))
    gs = gridspec.GridSpec(1, 1, left=0.15, right=0.85, top=0.95, bottom=0.1, hspace=0.0)
    ax = fig.add_subplot(gs[0,0])

    z = grid.z()
    mu = _growth_line(chem_pot, lateral_index)
    if layers is not None:
        energy = 0.5 * layers.band_gap_at(z) - mu
        ax.set_ylabel('$E_c$ [meV]', size = 20, color='r')
        for layer in list(layers)[1:]:
            ax.axvline(x=layer.zmin, color='black', ls=':', lw=1)
    else:
        energy = mu
        ax.set_ylabel('$\\mu$ [meV]', size = 20, color='r')
    ax.plot(z, energy, color='r', ls='-', alpha=0.8)
    ax.axhline(y=0.0, color='black', ls='--', lw=1)
    ax.set_xlabel('z [nm]', size = 20, color='black')
    ax.tick_params('y', labelsize=15, colors='r')
    ax.tick_params('x', labelsize=15)

    if density is not None:
        if hasattr(density, 'spin_summed'):
            density = density.spin_summed
        ax2 = ax.twinx()
        ax2.plot(z, _growth_line(density, lateral_index), color='b', ls='-', alpha=0.8)
        ax2.set_ylabel('$\\rho$ [zC nm$^{-3}$]', size = 20, color='b')
        ax2.tick_params('y', labelsize=15, colors='b')
        ax2.yaxis.set_major_locator(MaxNLocator(6))

    ax.yaxis.set_major_locator(MaxNLocator(6))
    return fig


def plot_convergence(history):
    """Density change and damping parameter against the iteration number."""
    fig = plt.figure(figsize=(7, 7))
    gs = gridspec.GridSpec(1, 1, left=0.15, right=0.85, top=0.95, bottom=0.1, hspace=0.0)
    ax = fig.add_subplot(gs[0,0])

    iterations = np.array([h['iteration'] for h in history])
    dens_change = np.array([h['density_change'] for h in history])
    t = np.array([h['t'] for h in history])

    # zero changes cannot be drawn on a log axis
    finite = dens_change > 0.0
    ax.semilogy(iterations[finite], dens_change[finite], color='black', ls='-', alpha=0.8, lw=3)
    ax.set_ylabel('Relative density change', size = 18, color='black')
    ax.set_xlabel('Iterations', size = 18, color='black')
    ax.tick_params('y', colors='black', labelsize=15)
    ax.tick_params('x', colors='black', labelsize=15)

    ax2 = ax.twinx()
    ax2.plot(iterations, t, color='blue', ls='-', alpha=0.8, lw=3)
    ax2.set_ylabel('Damping $t$', size = 18, color='blue')
    ax2.tick_params('y', colors='blue', labelsize=15)
    ax.xaxis.set_major_locator(MaxNLocator(integer=True))
    return fig


def plot_surface_charge_vs_voltage(voltages, surface_charge):
    fig = plt.figure(figsize=(7, 7))
    gs = gridspec.GridSpec(1, 1, left=0.15, right=0.95, top=0.95, bottom=0.1, hspace=0.0)
    ax = fig.add_subplot(gs[0,0])
    ax.set_ylabel('$\\sigma$ [zC nm$^{-2}$]', size = 18, color='black')
    ax.set_xlabel('Top gate voltage [V]', size = 18, color='black')

    ax.plot(voltages, surface_charge, color='black', ls='-', marker='o', alpha=0.8, lw=3)

    ax.tick_params('y', colors='black', labelsize=15)
    ax.tick_params('x', colors='black', labelsize=15)
    return fig
