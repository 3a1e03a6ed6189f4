class LoraSatError(Exception):
    """Base class for all errors raised by the lorasat package."""


class ConfigurationError(LoraSatError, ValueError):
    """Simulation parameters are invalid. Raised before any work starts."""


class InvalidInputError(LoraSatError, ValueError):
    """An array handed to a stage is malformed (non-binary bits, bad length...)."""


class ComputationError(LoraSatError, ArithmeticError):
    """A numeric stage produced or would produce NaN/Inf."""


class SweepStateError(LoraSatError, RuntimeError):
    """An SNR point was driven through an illegal state transition."""
