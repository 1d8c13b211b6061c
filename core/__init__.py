"""Core package: special functions, fracture detection and annealing optimizers."""

from .annealing import SimulatedAnnealing
from .baha import BranchAwareOptimizer
from .fracture import FractureDetector

__all__ = ["BranchAwareOptimizer", "FractureDetector", "SimulatedAnnealing"]
