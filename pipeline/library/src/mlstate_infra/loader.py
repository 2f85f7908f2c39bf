"""
In-process Python model capability.

Loads a model class from a Python module found on a given directory and
calls its methods directly. The handles only hold references; releasing a
handle drops the reference so the model object can be collected.
"""

import importlib
import logging
import sys
from types import ModuleType
from typing import Any

from mlstate.errors import CapabilityLoadError, ModelCallError

logger = logging.getLogger(__name__)


class PythonInstance:
    """Instance handle wrapping a model object."""

    def __init__(self, obj: Any) -> None:
        self._obj = obj

    def call(self, method: str, *args: Any) -> Any:
        if self._obj is None:
            raise ModelCallError(method, "instance has been released")

        func = getattr(self._obj, method, None)
        if not callable(func):
            raise ModelCallError(method, f"{type(self._obj).__name__} has no method '{method}'")

        try:
            return func(*args)
        except Exception as exc:
            raise ModelCallError(method, f"{type(exc).__name__}: {exc}") from exc

    def release(self) -> None:
        self._obj = None


class PythonModule:
    """Module handle wrapping an imported Python module."""

    def __init__(self, module: ModuleType) -> None:
        self._module: ModuleType | None = module

    @property
    def name(self) -> str:
        return self._module.__name__ if self._module is not None else ""

    def instantiate(self, class_name: str, *args: Any) -> PythonInstance:
        """
        Construct class_name(*args) from the module.

        Raises
        ------
        CapabilityLoadError
            If the module was released, the class is missing, or its
            constructor raises.
        """
        if self._module is None:
            raise CapabilityLoadError(f"cannot instantiate '{class_name}': module has been released")

        cls = getattr(self._module, class_name, None)
        if cls is None:
            raise CapabilityLoadError(f"module '{self._module.__name__}' has no class '{class_name}'")

        try:
            return PythonInstance(cls(*args))
        except Exception as exc:
            raise CapabilityLoadError(f"cannot instantiate '{class_name}': {exc}") from exc

    def release(self) -> None:
        self._module = None


class PythonModuleLoader:
    """
    Loads model modules with importlib.

    Notes
    -----
    module_path is appended to sys.path (once) so the module and its
    siblings are importable. Modules already imported are reused.
    """

    def load(self, module_path: str, module_name: str) -> PythonModule:
        if module_path and module_path not in sys.path:
            sys.path.append(module_path)
            logger.debug(f"Appended {module_path} to sys.path")

        try:
            module = importlib.import_module(module_name)
        except Exception as exc:
            raise CapabilityLoadError(f"cannot load module '{module_name}': {exc}") from exc

        logger.info(f"Loaded model module '{module_name}'")
        return PythonModule(module)
