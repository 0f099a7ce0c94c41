# pathwise_aad/__init__.py
# Reverse-mode algorithmic differentiation of path-wise (Monte-Carlo) values

from .config import AADConfig, DiracDeltaApproximationMethod
from .errors import (
    AADError,
    ConfigurationError,
    MissingArgumentValueError,
    NodeOrderError,
    UnsupportedOperatorError,
)
from .stochastic import (
    RandomVariable,
    ConditionalExpectationEstimator,
    LinearRegression,
    RegressionConditionalExpectation,
)
from .core.var import ADVar
from .core.node import OperatorNode
from .core.operators import OperatorType
from .core.counter import NodeIdCounter, global_counter
from .core.factory import ADFactory, get_factory, use_factory
from .core.engine import gradient
from .core.seeds import grad, grads, grads_list, value
from .core.graph_utils import (
    get_graph_stats,
    print_graph_summary,
    analyze_graph_complexity,
    check_id_ordering,
)

# Ensure operator overloading is registered
from . import ops

__version__ = "0.1.0"

__all__ = [
    # Configuration
    'AADConfig',
    'DiracDeltaApproximationMethod',
    # Errors
    'AADError',
    'ConfigurationError',
    'MissingArgumentValueError',
    'NodeOrderError',
    'UnsupportedOperatorError',
    # Values
    'RandomVariable',
    'ConditionalExpectationEstimator',
    'LinearRegression',
    'RegressionConditionalExpectation',
    # Core
    'ADVar',
    'OperatorNode',
    'OperatorType',
    'NodeIdCounter',
    'global_counter',
    'ADFactory',
    'get_factory',
    'use_factory',
    # Engine
    'gradient',
    'grad',
    'grads',
    'grads_list',
    'value',
    # Graph utilities
    'get_graph_stats',
    'print_graph_summary',
    'analyze_graph_complexity',
    'check_id_ordering',
    'ops',
]
