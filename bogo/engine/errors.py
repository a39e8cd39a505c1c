# bogo/engine/errors.py


class BogoError(Exception):
    """Base class for engine faults."""


class ConfigurationFault(BogoError):
    """A BOGO coupon that carries no rules."""


class RecursionFault(BogoError):
    """Re-entrant evaluation went past the depth cap."""


class LineRefused(BogoError):
    """Raised by a cart sink that refuses to add a line."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
