"""In-process registry of named shared states."""

import logging
import threading
from typing import Any

from .errors import ConfigurationError, StateNotFoundError

logger = logging.getLogger(__name__)


class SharedStateRegistry:
    """
    Thread-safe mapping of state names to shared states.

    The registry holds states but does not manage their lifetime, except
    through terminate_all() at shutdown.
    """

    def __init__(self) -> None:
        self._states: dict[str, Any] = {}
        self._lock = threading.Lock()

    def register(self, name: str, state: Any) -> None:
        """
        Add a state under a unique name.

        Raises
        ------
        ConfigurationError
            If the name is empty or already registered.
        """
        if not name:
            raise ConfigurationError("state name must not be empty")
        with self._lock:
            if name in self._states:
                raise ConfigurationError(f"state '{name}' is already registered")
            self._states[name] = state
        logger.info(f"Registered state '{name}' ({type(state).__name__})")

    def lookup(self, name: str) -> Any:
        with self._lock:
            try:
                return self._states[name]
            except KeyError:
                raise StateNotFoundError(f"state '{name}' was not found") from None

    def remove(self, name: str) -> Any:
        """Unregister a state and return it without terminating it."""
        with self._lock:
            try:
                return self._states.pop(name)
            except KeyError:
                raise StateNotFoundError(f"state '{name}' was not found") from None

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._states)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._states

    def terminate_all(self) -> None:
        """Unregister every state, terminating those that support it."""
        with self._lock:
            states = list(self._states.items())
            self._states.clear()

        for name, state in states:
            terminate = getattr(state, "terminate", None)
            if callable(terminate):
                logger.info(f"Terminating state '{name}'")
                terminate()
