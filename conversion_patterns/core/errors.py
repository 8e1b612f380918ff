"""Exceptions raised by the analysis pipeline."""


class AnalysisError(Exception):
    """Base class for analysis pipeline errors."""


class UpstreamIOError(AnalysisError):
    """Loading observations or writing results failed. Never retried here."""


class UnknownAnalysisTypeError(AnalysisError, ValueError):
    """The requested analysis type is not registered."""
