# pathwise_aad/ops/special.py
from ..core.operators import OperatorType
from .arithmetic import _apply, _factory_of


def choose(trigger, value_if_non_negative, value_if_negative, factory=None):
    """
    Indicator blend: per path, value_if_non_negative where trigger >= 0,
    value_if_negative elsewhere.

    Local partials:
      d/d(value_if_non_negative) = 1{trigger >= 0}
      d/d(value_if_negative)     = 1{trigger < 0}
      d/d(trigger)               = (value_if_non_negative - value_if_negative) * delta(trigger),
                                   approximated as configured by
                                   AADConfig.dirac_delta_approximation_method
    """
    return _apply(OperatorType.BARRIER, trigger, value_if_non_negative, value_if_negative, factory=factory)


def barrier(trigger, value_if_non_negative, value_if_negative, factory=None):
    """Same as choose(); the factory defaults to that of the first ADVar among the operands."""
    factory = factory or _factory_of((trigger, value_if_non_negative, value_if_negative))
    return choose(trigger, value_if_non_negative, value_if_negative, factory=factory)
