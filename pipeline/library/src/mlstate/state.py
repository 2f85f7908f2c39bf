"""
Model state: buffered, batched training against a model capability.

A ModelState owns one model module handle and one instance handle and
accumulates written records until batch_train_size is reached, then fits
the model with the accumulated batch. It also exposes direct fit, predict,
generic method calls and an explicit flush, all serialized by a
per-instance lock.
"""

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from .errors import ConfigurationError, ModelCallError, StateTerminatedError
from .model import FitReport
from .protocol import CapabilityLoader, ModelInstance, ModelModule

logger = logging.getLogger(__name__)

FitHook = Callable[[Any, int], None]


def _check_batch_train_size(batch_train_size: int) -> None:
    if isinstance(batch_train_size, bool) or not isinstance(batch_train_size, int) or batch_train_size <= 0:
        raise ConfigurationError(f"batch_train_size must be a positive integer, got {batch_train_size!r}")


def log_fit_metrics(result: Any, batch_size: int) -> None:
    """
    Log per-record loss and accuracy reported by a fit call.

    Parameters
    ----------
    result : Any
        Value returned by the model's fit method.
    batch_size : int
        Number of records in the fitted batch.

    Notes
    -----
    Best effort only: results that are not mappings, or that lack numeric
    'loss' and 'accuracy' entries, are ignored.
    """
    if not isinstance(result, Mapping):
        return
    try:
        report = FitReport.model_validate(dict(result))
    except ValidationError:
        return
    if report.loss is None or report.accuracy is None:
        return
    logger.debug(f"loss={report.loss / batch_size:.3f} acc={report.accuracy / batch_size:.3f}")


class ModelState:
    """
    Shared state bridging a record stream to a trainable model.

    Attributes
    ----------
    batch_train_size : int
        Buffer length that triggers an automatic fit.
    buffered : int
        Number of records waiting for the next fit.
    terminated : bool
        Whether terminate() has released the model handles.

    Methods
    -------
    write(record: Any) -> Any
        Buffer a record, fitting the model when the batch is full.
    fit(batch: Iterable) -> Any
        Fit the model with the given records.
    predict(value: Any) -> Any
        Run inference on a single value.
    call(method: str, *args) -> Any
        Invoke any model method by name.
    flush() -> Any
        Fit the model with whatever is currently buffered.
    terminate() -> None
        Release the instance and module handles.

    Notes
    -----
    The buffer is cleared before the fit call is made. A batch whose fit
    fails is dropped, not retained for retry, and the error is raised to the
    caller. All operations hold the same lock, so the model is never called
    concurrently through one state.
    """

    def __init__(
        self,
        module: ModelModule,
        instance: ModelInstance,
        batch_train_size: int,
        fit_hook: FitHook | None = log_fit_metrics,
    ) -> None:
        """
        Wrap already-loaded model handles.

        Parameters
        ----------
        module : ModelModule
            Module handle; ownership passes to the state.
        instance : ModelInstance
            Instance handle; ownership passes to the state.
        batch_train_size : int
            Positive number of records per automatic fit.
        fit_hook : FitHook | None, optional
            Called with (result, batch_size) after each successful automatic
            fit (default: log_fit_metrics). Failures are logged and ignored.

        Raises
        ------
        ConfigurationError
            If batch_train_size is not a positive integer.
        """
        _check_batch_train_size(batch_train_size)

        self._module: ModelModule | None = module
        self._instance: ModelInstance | None = instance
        self._batch_train_size = batch_train_size
        self._fit_hook = fit_hook
        self._bucket: list[Any] = []
        self._lock = threading.Lock()

    @classmethod
    def load(
        cls,
        loader: CapabilityLoader,
        module_path: str,
        module_name: str,
        class_name: str,
        batch_train_size: int,
        model_file_path: str = "",
        fit_hook: FitHook | None = log_fit_metrics,
    ) -> "ModelState":
        """
        Load a model capability and create a state owning it.

        Parameters
        ----------
        loader : CapabilityLoader
            Resolves the model module.
        module_path : str
            Location the module is loaded from.
        module_name : str
            Module defining the model class.
        class_name : str
            Model class to instantiate.
        batch_train_size : int
            Records per automatic fit.
        model_file_path : str, optional
            Passed as the single constructor argument of the model class.
        fit_hook : FitHook | None, optional
            Post-fit diagnostics hook.

        Returns
        -------
        ModelState
            New state with an empty buffer.

        Raises
        ------
        ConfigurationError
            If batch_train_size is invalid. Nothing is loaded.
        CapabilityLoadError
            If the module or instance cannot be created. A module that was
            loaded is released before the error propagates.
        """
        _check_batch_train_size(batch_train_size)

        module = loader.load(module_path, module_name)
        try:
            instance = module.instantiate(class_name, model_file_path)
        except Exception:
            try:
                module.release()
            except Exception as exc:
                logger.warning(f"Failed to release model module {module_name}: {exc}")
            raise

        logger.info(f"Loaded model {module_name}.{class_name} (batch_train_size={batch_train_size})")
        return cls(module, instance, batch_train_size, fit_hook=fit_hook)

    @property
    def batch_train_size(self) -> int:
        return self._batch_train_size

    @property
    def buffered(self) -> int:
        with self._lock:
            return len(self._bucket)

    @property
    def terminated(self) -> bool:
        return self._instance is None

    def write(self, record: Any) -> Any:
        """
        Buffer a record and fit the model once the batch is full.

        Parameters
        ----------
        record : Any
            Training record, passed to the model unchanged.

        Returns
        -------
        Any
            The fit result when this write triggered a fit, otherwise None.

        Raises
        ------
        ModelCallError
            If the triggered fit fails. The batch has already been cleared.
        StateTerminatedError
            If the state was terminated.
        """
        with self._lock:
            instance = self._require_instance()
            self._bucket.append(record)
            if len(self._bucket) < self._batch_train_size:
                return None

            batch = self._bucket
            self._bucket = []
            result = self._call(instance, "fit", batch)

        self._run_fit_hook(result, len(batch))
        return result

    def fit(self, batch: Iterable[Any]) -> Any:
        """Fit the model with the given records, bypassing the buffer."""
        with self._lock:
            return self._call(self._require_instance(), "fit", list(batch))

    def predict(self, value: Any) -> Any:
        """Run the model's predict method on a single value."""
        with self._lock:
            return self._call(self._require_instance(), "predict", value)

    def call(self, method: str, *args: Any) -> Any:
        """
        Invoke an arbitrary model method.

        The method name is not validated; an unknown name fails however the
        capability reports it.
        """
        with self._lock:
            return self._call(self._require_instance(), method, *args)

    def flush(self) -> Any:
        """
        Fit the model with the records buffered so far.

        Returns
        -------
        Any
            The fit result, or None if the buffer was empty.

        Raises
        ------
        ModelCallError
            If the fit fails. The buffered records are dropped.
        StateTerminatedError
            If the state was terminated.
        """
        with self._lock:
            instance = self._require_instance()
            if not self._bucket:
                return None

            batch = self._bucket
            self._bucket = []
            logger.debug(f"Flushing {len(batch)} buffered records")
            return self._call(instance, "fit", batch)

    def terminate(self) -> None:
        """
        Release the instance handle, then the module handle.

        Safe to call repeatedly; later calls do nothing. Release failures
        are logged and not raised.
        """
        with self._lock:
            instance, self._instance = self._instance, None
            module, self._module = self._module, None
            dropped = len(self._bucket)
            self._bucket = []

        if instance is None:
            return
        if dropped:
            logger.warning(f"Terminating with {dropped} buffered records not fitted")

        for handle in (instance, module):
            try:
                handle.release()
            except Exception as exc:
                logger.warning(f"Failed to release model handle: {exc}")

    def _require_instance(self) -> ModelInstance:
        if self._instance is None:
            raise StateTerminatedError("model state has been terminated")
        return self._instance

    def _call(self, instance: ModelInstance, method: str, *args: Any) -> Any:
        try:
            return instance.call(method, *args)
        except ModelCallError:
            raise
        except Exception as exc:
            raise ModelCallError(method, str(exc)) from exc

    def _run_fit_hook(self, result: Any, batch_size: int) -> None:
        if self._fit_hook is None:
            return
        try:
            self._fit_hook(result, batch_size)
        except Exception as exc:
            logger.warning(f"Post-fit hook failed: {exc}")
