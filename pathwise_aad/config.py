# pathwise_aad/config.py

"""
AAD Engine Configuration

Immutable settings shared by every node built through one factory.
Controls how the indicator (barrier) operator approximates the Dirac delta
of its trigger, and whether the gradient map keeps internal node adjoints.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Mapping, Optional

from .errors import ConfigurationError


class DiracDeltaApproximationMethod(str, Enum):
    DISCRETE_DELTA = "discrete_delta"
    REGRESSION_ON_DENSITY = "regression_on_density"
    REGRESSION_ON_DISTRIBUTION = "regression_on_distribution"
    ONE = "one"
    ZERO = "zero"

    @classmethod
    def parse(cls, value: Any) -> "DiracDeltaApproximationMethod":
        """Resolve an enum member from a member, its name or its value (case-insensitive)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper()
            if key == "REGRESSION_ON_DISTRIBUITON":
                # spelling used by older property files
                key = "REGRESSION_ON_DISTRIBUTION"
            if key in cls.__members__:
                return cls.__members__[key]
            for member in cls:
                if member.value == value.strip().lower():
                    return member
        raise ConfigurationError(
            f"Unknown Dirac delta approximation method {value!r}. "
            f"Expected one of {[m.name for m in cls]}."
        )


# camelCase property map keys -> dataclass fields
_PROPERTY_ALIASES = {
    "diracDeltaApproximationMethod": "dirac_delta_approximation_method",
    "diracDeltaApproximationWidthPerStdDev": "dirac_delta_approximation_width_per_std_dev",
    "diracDeltaApproximationDensityRegressionWidthPerStdDev":
        "dirac_delta_approximation_density_regression_width_per_std_dev",
    "isGradientRetainsLeafNodesOnly": "is_gradient_retains_leaf_nodes_only",
    # older name of the discrete delta width
    "barrierDiracWidth": "dirac_delta_approximation_width_per_std_dev",
}


@dataclass(frozen=True)
class AADConfig:
    """
    Configuration of the backward algorithmic differentiation.

    Attributes:
        dirac_delta_approximation_method: How the trigger partial of the
            barrier operator is approximated.
        dirac_delta_approximation_width_per_std_dev: Width of the discrete
            delta (and of the localization band) in units of the trigger's
            standard deviation.
        dirac_delta_approximation_density_regression_width_per_std_dev:
            Width of the sampling interval of the density regression, in
            units of the trigger's standard deviation.
        is_gradient_retains_leaf_nodes_only: If True, the gradient map holds
            adjoints of leaf nodes only.
    """

    dirac_delta_approximation_method: DiracDeltaApproximationMethod = DiracDeltaApproximationMethod.DISCRETE_DELTA
    dirac_delta_approximation_width_per_std_dev: float = 0.05
    dirac_delta_approximation_density_regression_width_per_std_dev: float = 0.5
    is_gradient_retains_leaf_nodes_only: bool = True

    def __post_init__(self):
        # frozen: normalize through object.__setattr__
        method = DiracDeltaApproximationMethod.parse(self.dirac_delta_approximation_method)
        object.__setattr__(self, "dirac_delta_approximation_method", method)

        for name in ("dirac_delta_approximation_width_per_std_dev",
                     "dirac_delta_approximation_density_regression_width_per_std_dev"):
            raw = getattr(self, name)
            try:
                width = float(raw)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e
            if width != width or width < 0.0:
                raise ConfigurationError(f"{name} must be non-negative, got {raw!r}")
            object.__setattr__(self, name, width)

        flag = self.is_gradient_retains_leaf_nodes_only
        if isinstance(flag, str):
            if flag.strip().lower() not in ("true", "false"):
                raise ConfigurationError(f"is_gradient_retains_leaf_nodes_only must be a bool, got {flag!r}")
            flag = flag.strip().lower() == "true"
        object.__setattr__(self, "is_gradient_retains_leaf_nodes_only", bool(flag))

    @classmethod
    def from_properties(cls, properties: Optional[Mapping[str, Any]] = None) -> "AADConfig":
        """
        Build a configuration from a property map.

        Accepts the camelCase property names (e.g. ``diracDeltaApproximationMethod``)
        as well as the dataclass field names. Unknown keys are rejected.
        """
        if not properties:
            return cls()

        field_names = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in properties.items():
            name = _PROPERTY_ALIASES.get(key, key)
            if name not in field_names:
                raise ConfigurationError(f"Unknown AAD property {key!r}")
            kwargs[name] = value
        return cls(**kwargs)

    def to_properties(self) -> dict:
        """Inverse of from_properties, using the camelCase names."""
        return {
            "diracDeltaApproximationMethod": self.dirac_delta_approximation_method.name,
            "diracDeltaApproximationWidthPerStdDev": self.dirac_delta_approximation_width_per_std_dev,
            "diracDeltaApproximationDensityRegressionWidthPerStdDev":
                self.dirac_delta_approximation_density_regression_width_per_std_dev,
            "isGradientRetainsLeafNodesOnly": self.is_gradient_retains_leaf_nodes_only,
        }


DEFAULT_CONFIG = AADConfig()
