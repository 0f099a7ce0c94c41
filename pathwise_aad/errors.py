# pathwise_aad/errors.py

"""Custom errors for the pathwise AAD engine."""


class AADError(RuntimeError):
    pass


class UnsupportedOperatorError(AADError):
    """An operator tag has no entry in the operator table."""

    def __init__(self, operator_type):
        self.operator_type = operator_type
        name = getattr(operator_type, "name", operator_type)
        super().__init__(f"Operation {name} not supported in differentiation.")


class MissingArgumentValueError(AADError):
    """A backward formula asked for an argument value that was not retained."""

    def __init__(self, operator_type, position: int):
        self.operator_type = operator_type
        self.position = position
        name = getattr(operator_type, "name", operator_type)
        super().__init__(
            f"Value of argument {position} of {name} was not retained for the backward pass."
        )


class NodeOrderError(AADError):
    """A new node would not have an id greater than all of its arguments."""

    def __init__(self, node_id: int, argument_ids):
        self.node_id = node_id
        self.argument_ids = tuple(argument_ids)
        super().__init__(
            f"Node id {node_id} is not greater than argument ids {list(self.argument_ids)}; "
            f"graphs built on different id counters cannot be combined."
        )


class ConfigurationError(AADError, ValueError):
    pass
