"""
Exception types raised by the calculation graph engine.

Graph construction and analysis are total and never raise on cyclic or
dangling references. Only lookups of entities that must exist fail loudly.
"""


class CalcGraphError(Exception):
    """Base class for all calcgraph errors."""


class NotFoundError(CalcGraphError, LookupError):
    """A requested entity does not exist in the supplied working set."""


class ConfigurationNotFoundError(NotFoundError):
    """A calculation configuration ID is absent from the working set."""

    def __init__(self, configuration_id: str):
        self.configuration_id = configuration_id
        super().__init__(f"Configuration {configuration_id} not found")
