"""Exceptions raised by the SDM pipeline."""


class SDMError(Exception):
    """Base class for pipeline failures."""


class InsufficientDataError(SDMError, ValueError):
    """Not enough data to carry out a step (empty occurrences, missing class, NaNs)."""


class OccurrenceDataError(SDMError, ValueError):
    """The occurrence cache is malformed."""


class LayerIdentityError(SDMError, ValueError):
    """The bioclimatic layers cannot be identified unambiguously."""


class RasterAlignmentError(SDMError, ValueError):
    """Layers of a stack disagree on shape, transform or CRS."""


class InsufficientBackgroundError(SDMError, ValueError):
    """Too few valid raster cells to draw the requested background points."""


class ModelFitError(SDMError, RuntimeError):
    """The regression fit did not converge or the classes are perfectly separated."""
