"""Exceptions raised by the analysis pipeline."""


class DesignPipelineError(Exception):
    """Base class for pipeline errors that reach the caller."""


class NoExtractableStructureError(DesignPipelineError):
    """Raised when the input tree is absent or yields no descriptors.

    This is the only failure that aborts a run; every external-call failure
    downstream degrades to a stage fallback instead.
    """
