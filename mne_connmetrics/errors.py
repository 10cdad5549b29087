"""Exceptions raised while computing connectivity."""
# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)


class ConfigurationError(ValueError):
    """Invalid or missing option, raised before any data is processed."""


class ShapeMismatchError(ValueError):
    """Inconsistent rows or time samples across files or blocks."""


class UnsupportedCombinationError(ValueError):
    """Method incompatible with the representation of the input data."""


class DegenerateEstimateError(RuntimeError):
    """Estimation left nothing usable (e.g. no frequency bin kept)."""
