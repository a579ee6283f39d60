"""
Error taxonomy of the geometry & calibration engine.

Validation and persistence failures are recoverable: the caller reports them
and the session state is left untouched so the user can retry.
"""


class PlotDigitizerError(Exception):
    """Base class for all engine errors."""


class ValidationError(PlotDigitizerError, ValueError):
    """User input cannot be accepted as-is."""


class TooFewVerticesError(ValidationError):
    """A polygon needs at least three distinct vertices."""


class CalibrationError(ValidationError):
    """Reference pixels or reference distance are not strictly positive."""


class GeometryError(ValidationError):
    """Persisted geometry is malformed."""


class InvalidTransitionError(PlotDigitizerError, RuntimeError):
    """A state-machine operation was called from a state that does not allow it."""


class PersistenceError(PlotDigitizerError):
    """The persistence collaborator could not store or load data."""
