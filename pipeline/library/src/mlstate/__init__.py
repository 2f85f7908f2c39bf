"""
Core model state layer.

This package provides the domain logic for stream-driven model training:
- ModelState buffering records and fitting a model capability in batches
- Name-addressed fit, predict, flush and call operations
- Pydantic parameter models and the error taxonomy
"""

from .creator import STATE_TYPE_NAME, create_model_state
from .errors import (
    CapabilityLoadError,
    ConfigurationError,
    DatasetError,
    MLStateError,
    ModelCallError,
    SourceRewound,
    SourceStopped,
    StateNotFoundError,
    StateTerminatedError,
    StateTypeError,
    StreamHalt,
)
from .operations import OPERATION_NAMES, call_method, fit, flush, lookup_model_state, predict
from .registry import SharedStateRegistry
from .state import ModelState, log_fit_metrics

__all__ = [
    "STATE_TYPE_NAME",
    "create_model_state",
    "CapabilityLoadError",
    "ConfigurationError",
    "DatasetError",
    "MLStateError",
    "ModelCallError",
    "SourceRewound",
    "SourceStopped",
    "StateNotFoundError",
    "StateTerminatedError",
    "StateTypeError",
    "StreamHalt",
    "OPERATION_NAMES",
    "call_method",
    "fit",
    "flush",
    "lookup_model_state",
    "predict",
    "SharedStateRegistry",
    "ModelState",
    "log_fit_metrics",
]
