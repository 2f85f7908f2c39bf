"""
Exception hierarchy for model state operations.

Every error raised by the library derives from MLStateError so callers at
the stream boundary can catch one type. Where a builtin category already
exists (ValueError, OSError, KeyError, TypeError) the error also derives
from it.
"""


class MLStateError(Exception):
    """Base class for all model state errors."""


class ConfigurationError(MLStateError, ValueError):
    """Required parameter missing or malformed; nothing was created."""


class DatasetError(MLStateError, OSError):
    """Dataset file missing, unreadable or shorter than its declared size."""


class CapabilityLoadError(MLStateError):
    """Model module or class could not be resolved or instantiated."""


class ModelCallError(MLStateError):
    """
    A call into the model capability failed.

    Attributes
    ----------
    method : str
        Name of the model method that was invoked (e.g. 'fit').
    """

    def __init__(self, method: str, message: str) -> None:
        super().__init__(f"{method}: {message}")
        self.method = method


class StateNotFoundError(MLStateError, KeyError):
    """No state is registered under the requested name."""

    def __str__(self) -> str:
        # KeyError quotes its argument, keep the plain message
        return str(self.args[0]) if self.args else ""


class StateTypeError(MLStateError, TypeError):
    """A state exists under the name but is not a ModelState."""


class StateTerminatedError(MLStateError):
    """Operation attempted on a state after terminate()."""


class StreamHalt(MLStateError):
    """Signal raised by a tuple writer to halt a streaming source."""


class SourceRewound(StreamHalt):
    """The source was rewound; the current emission must stop."""


class SourceStopped(StreamHalt):
    """The source was stopped; no further tuples are accepted."""
