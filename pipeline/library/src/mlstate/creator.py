"""
Model state creation from raw parameters.

The host engine passes state parameters as an untyped mapping. This module
validates them and builds a ModelState, so configuration errors surface
before any model code is loaded.
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from .errors import ConfigurationError
from .model import ModelStateParams
from .protocol import CapabilityLoader
from .state import ModelState

logger = logging.getLogger(__name__)

STATE_TYPE_NAME = "pymlstate"


def create_model_state(params: Mapping[str, Any], loader: CapabilityLoader | None = None) -> ModelState:
    """
    Validate state parameters and create a ModelState.

    Parameters
    ----------
    params : Mapping[str, Any]
        Keys module_path, module_name, class_name, batch_train_size
        (required) and model_file_path (optional).
    loader : CapabilityLoader | None, optional
        Capability loader; defaults to importing Python modules in-process.

    Returns
    -------
    ModelState
        Newly loaded state with an empty buffer.

    Raises
    ------
    ConfigurationError
        If the parameters fail validation. No model is loaded.
    CapabilityLoadError
        If the model module or class cannot be loaded.
    """
    try:
        validated = ModelStateParams.model_validate(dict(params))
    except ValidationError as exc:
        logger.error(f"Invalid {STATE_TYPE_NAME} parameters: {exc}")
        raise ConfigurationError(f"invalid {STATE_TYPE_NAME} parameters: {exc}") from exc

    if loader is None:
        # Deferred so the core package does not import the infrastructure one at load time
        from mlstate_infra.loader import PythonModuleLoader

        loader = PythonModuleLoader()

    return ModelState.load(
        loader,
        module_path=validated.module_path,
        module_name=validated.module_name,
        class_name=validated.class_name,
        batch_train_size=validated.batch_train_size,
        model_file_path=validated.model_file_path,
    )
