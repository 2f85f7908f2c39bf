"""
Protocol definitions for the collaborators of a model state.

This module defines the interfaces a model state and the dataset source
depend on: the model capability (module and instance handles and their
loader), the named state registry, and the tuple writer sink. Concrete
implementations live in mlstate_infra; tests substitute their own.
"""

from typing import Any, Protocol

from .model import StreamTuple


class ModelInstance(Protocol):
    """
    Handle to an instantiated model object.

    Methods
    -------
    call(method: str, *args) -> Any
        Invoke a method of the model by name.
    release() -> None
        Give up the handle. Must be safe to call more than once.
    """

    def call(self, method: str, *args: Any) -> Any:
        """
        Invoke a model method by name.

        Parameters
        ----------
        method : str
            Method name, e.g. 'fit' or 'predict'. Not validated.
        *args : Any
            Positional arguments passed through unchanged.

        Returns
        -------
        Any
            Whatever the model method returns.

        Raises
        ------
        ModelCallError
            If the method is missing or fails.
        """
        ...

    def release(self) -> None:
        """Release the instance handle."""
        ...


class ModelModule(Protocol):
    """Handle to a loaded model module."""

    def instantiate(self, class_name: str, *args: Any) -> ModelInstance:
        """
        Create an instance of a class defined by the module.

        Raises
        ------
        CapabilityLoadError
            If the class is missing or its constructor fails.
        """
        ...

    def release(self) -> None:
        """Release the module handle."""
        ...


class CapabilityLoader(Protocol):
    """Resolves model modules by path and name."""

    def load(self, module_path: str, module_name: str) -> ModelModule:
        """
        Load a model module.

        Raises
        ------
        CapabilityLoadError
            If the module cannot be resolved.
        """
        ...


class StateRegistry(Protocol):
    """Process-wide table of named shared states."""

    def register(self, name: str, state: Any) -> None:
        """Add a state under a unique name."""
        ...

    def lookup(self, name: str) -> Any:
        """
        Return the state registered under name.

        Raises
        ------
        StateNotFoundError
            If no state has that name.
        """
        ...


class TupleWriter(Protocol):
    """Sink a streaming source emits tuples to."""

    def write(self, tup: StreamTuple) -> None:
        """
        Accept one tuple.

        Raises
        ------
        SourceRewound, SourceStopped
            To halt the emitting source.
        """
        ...
