"""Custom exceptions for terrain tile generation."""


class TilegenError(Exception):
    """Base exception for tile generation errors."""

    pass


class RegionOrderError(TilegenError, ValueError):
    """Raised when a validated region table has decreasing thresholds."""

    pass


class PipelineError(TilegenError):
    """Base exception for production pipeline errors."""

    pass


class PipelineBusyError(PipelineError):
    """Raised when a request would exceed the in-flight request cap."""

    pass


class PipelineClosedError(PipelineError):
    """Raised when a request is made after the pipeline was closed."""

    pass


class GenerationError(PipelineError):
    """Raised at drain time when a worker failed to produce a result."""

    pass
