"""
Pydantic data models for model state and data source parameters.

This module defines the validated parameter sets used to create model states
and dataset sources, the labeled record emitted by the dataset source, and
the timestamped tuple envelope records travel in.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ModelStateParams(BaseModel):
    """
    Parameters for creating a model state.

    Attributes
    ----------
    module_path : str
        Directory appended to the import path before loading the module.
    module_name : str
        Name of the module that defines the model class.
    class_name : str
        Model class to instantiate.
    batch_train_size : int
        Number of buffered records that triggers a fit.
    model_file_path : str
        Argument passed verbatim to the model class constructor.
    """

    model_config = ConfigDict(extra="forbid")

    module_path: str
    module_name: str = Field(min_length=1)
    class_name: str = Field(min_length=1)
    batch_train_size: int = Field(gt=0)
    model_file_path: str = ""


class DataSourceParams(BaseModel):
    """
    Parameters for creating an MNIST data source.

    Attributes
    ----------
    images_file_name : str
        Path of the images file (16-byte header + unsigned pixel bytes).
    labels_file_name : str
        Path of the labels file (8-byte header + unsigned label bytes).
    data_size : int
        Number of examples to read from both files.
    image_element_size : int
        Pixels per image, 28*28 by default.
    batch_size : int
        Records per batch for batched iteration.
    random : bool
        Shuffle the emission order on every stream call.
    """

    model_config = ConfigDict(extra="forbid")

    images_file_name: str = Field(min_length=1)
    labels_file_name: str = Field(min_length=1)
    data_size: int = Field(gt=0)
    image_element_size: int = Field(default=28 * 28, gt=0)
    batch_size: int = Field(gt=0)
    random: bool = True


class LabeledImage(BaseModel):
    """One training example: class label and normalized pixel intensities."""

    label: int
    data: list[float]


class StreamTuple(BaseModel):
    """
    Envelope for a record flowing through the stream.

    Attributes
    ----------
    data : dict
        Record payload.
    timestamp : datetime
        Time the record was created.
    proc_timestamp : datetime
        Time the record entered processing.
    trace : list
        Trace events attached by the host engine.
    """

    data: dict[str, Any]
    timestamp: datetime
    proc_timestamp: datetime
    trace: list[Any] = Field(default_factory=list)

    @classmethod
    def now(cls, data: dict[str, Any]) -> "StreamTuple":
        """Wrap data with both timestamps set to the same current instant."""
        now = datetime.now(timezone.utc)
        return cls(data=data, timestamp=now, proc_timestamp=now)


class FitReport(BaseModel):
    """Diagnostic values reported by a model's fit method."""

    loss: float | None = None
    accuracy: float | None = None
