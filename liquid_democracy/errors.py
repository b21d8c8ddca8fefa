"""Exceptions raised by the deployment scripts."""


class LiquidDemocracyError(Exception):
    """Base class for all deployment errors."""


class ConfigurationError(LiquidDemocracyError):
    """Invalid settings, plan files or contract interface descriptions."""


class EventDefinitionError(ConfigurationError):
    """The contract ABI does not define exactly one event with a given name."""

    def __init__(self, event_name, message):
        super().__init__(message)
        self.event_name = event_name


class EventNotFoundError(EventDefinitionError):
    pass


class AmbiguousEventError(EventDefinitionError):
    pass


class TransactionFailedError(LiquidDemocracyError):
    """A transaction was mined but reverted."""

    def __init__(self, function_name, tx_hash, receipt=None):
        super().__init__(f"{function_name} reverted in transaction {tx_hash}")
        self.function_name = function_name
        self.tx_hash = tx_hash
        self.receipt = receipt


class DeploymentError(LiquidDemocracyError):
    """A deployment step failed, leaving the DAO partially configured."""

    def __init__(self, step, completed_steps, message):
        super().__init__(f"{step} failed after {len(completed_steps)} completed step(s): {message}")
        self.step = step
        self.completed_steps = list(completed_steps)


class LogDecodeError(LiquidDemocracyError):
    """A log matched an event signature but its topics or data do not fit it."""
