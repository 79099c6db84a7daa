"""FWPN: Newton Frank-Wolfe and proximal gradient for elastic-net logistic regression."""
__version__ = "0.1.0"  # if you modify this, change it also in setup.py

from . import benchmark
from . import constraint
from . import datasets
from . import loss
from . import utils
from .newton_frank_wolfe import minimize_newton_frank_wolfe
from .newton_frank_wolfe import minimize_quadratic_simplex
from .proximal_gradient import minimize_proximal_gradient
