# autoperf/utils/errors.py
class AutoPerfError(RuntimeError):
    """Root of every error raised on purpose by autoperf."""


class UserInputError(AutoPerfError):
    """
    Raised for invalid user-provided input (CLI options, file paths).
    Should NOT print traceback.
    """


class ConfigError(AutoPerfError):
    """Configuration file missing or invalid."""


class RegistryError(AutoPerfError):
    """Unknown or unloadable connector / gatherer / extension name."""


class ConnectorError(AutoPerfError):
    """
    A Connector failed to load or save.

    Fatal for the current action: nothing is assumed persisted.
    """


class GathererError(AutoPerfError):
    """A Gatherer could not audit one Test / Result."""


class FilterSyntaxError(AutoPerfError, ValueError):
    """A filter expression could not be parsed."""

    def __init__(self, expression: str, message: str):
        super().__init__(f"{message} in filter {expression!r}")
        self.expression = expression


class IllegalTransitionError(AutoPerfError):
    """Result status change not allowed by the status machine."""

    def __init__(self, current: str, target: str):
        super().__init__(f"illegal status transition {current} -> {target}")
        self.current = current
        self.target = target


class UnknownFrequencyError(AutoPerfError, KeyError):
    """Recurring frequency label not present in the frequency table."""
