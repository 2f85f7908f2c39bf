"""
Name-addressed model state operations.

These functions are what the host engine exposes to queries: each resolves
a ModelState by name in the given registry and delegates to it. The
registry is passed explicitly so callers (and tests) choose which table of
states is used.
"""

import logging
from collections.abc import Iterable
from typing import Any

from .errors import StateTypeError
from .protocol import StateRegistry
from .state import ModelState

logger = logging.getLogger(__name__)


def lookup_model_state(registry: StateRegistry, state_name: str) -> ModelState:
    """
    Resolve a ModelState by name.

    Raises
    ------
    StateNotFoundError
        If nothing is registered under state_name.
    StateTypeError
        If the registered state is not a ModelState.
    """
    state = registry.lookup(state_name)
    if not isinstance(state, ModelState):
        raise StateTypeError(f"state '{state_name}' isn't a ModelState")
    return state


def fit(registry: StateRegistry, state_name: str, bucket: Iterable[dict]) -> Any:
    """
    Fit the named state's model with a batch of records.

    Parameters
    ----------
    registry : StateRegistry
        Registry holding the state.
    state_name : str
        Name the state was registered under.
    bucket : Iterable[dict]
        Records to fit. The state's own buffer is not touched.

    Returns
    -------
    Any
        Result of the model's fit method; its shape depends on the model.
    """
    return lookup_model_state(registry, state_name).fit(bucket)


def predict(registry: StateRegistry, state_name: str, value: Any) -> Any:
    """Run the named state's model on one input and return its estimate."""
    return lookup_model_state(registry, state_name).predict(value)


def flush(registry: StateRegistry, state_name: str) -> Any:
    """Fit the named state's model with its buffered records."""
    state = lookup_model_state(registry, state_name)
    logger.debug(f"Flushing state '{state_name}' ({state.buffered} buffered)")
    return state.flush()


def call_method(registry: StateRegistry, state_name: str, method: str, *args: Any) -> Any:
    """Invoke an arbitrary model method by name; no validation of the name."""
    return lookup_model_state(registry, state_name).call(method, *args)


OPERATION_NAMES = {
    "pymlstate_fit": fit,
    "pymlstate_predict": predict,
    "pymlstate_flush": flush,
    "pymlstate_call": call_method,
}
