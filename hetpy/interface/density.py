import abc

from hetpy.physics import SpinResolvedField


class DensityProvider(abc.ABC):
    """
    Charge density model consumed by the self-consistent cycle.

    Implementations (Thomas-Fermi, DFT, effective band ...) are opaque to the
    solver. All densities are charge densities in zC/nm^3 on the grid of the
    run, the chemical potential is in meV.

    Attributes
    ----------
    mixing_parameter : float
        Weight of the secondary (exchange-correlation like) potential model.
        The solver sets and adapts it during the run.
    """

    def __init__(self):
        self.mixing_parameter = 0.0

    @abc.abstractmethod
    def compute_density(self, layers, chem_pot):
        """Spin resolved carrier charge density rho(mu)."""

    @abc.abstractmethod
    def compute_density_derivative(self, layers, chem_pot):
        """Spin summed d rho / d mu, a Field (or a SpinResolvedField)."""

    @abc.abstractmethod
    def set_mixing_reference(self, density):
        """Refresh the secondary potential from the given density."""

    @abc.abstractmethod
    def mixing_difference(self, density):
        """Change of the secondary potential implied by density, a Field in meV."""

    def compute_dopant_density(self, layers, chem_pot):
        """Ionised dopant charge density, none by default."""
        return SpinResolvedField.zeros(chem_pot.shape)
