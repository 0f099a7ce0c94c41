"""Pytest configuration and fixtures."""

import numpy as np
import pytest

from pathwise_aad import AADConfig, ADFactory, DiracDeltaApproximationMethod


@pytest.fixture
def rng():
    """Seeded random generator for reproducible paths."""
    return np.random.default_rng(42)


@pytest.fixture
def factory():
    """Factory with the default configuration."""
    return ADFactory()


@pytest.fixture
def full_graph_factory():
    """Factory whose gradients keep internal node adjoints."""
    return ADFactory(AADConfig(is_gradient_retains_leaf_nodes_only=False))


@pytest.fixture
def factory_for():
    """Build a factory for a given Dirac delta approximation method."""
    def make(method: DiracDeltaApproximationMethod, **kwargs) -> ADFactory:
        return ADFactory(AADConfig(dirac_delta_approximation_method=method, **kwargs))
    return make
