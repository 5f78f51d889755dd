from .grid import GridGeometry
from .layers import Layer, LayerTable
from .problem import PoissonOperator
from .solver import LinearSystem, NewtonStep
