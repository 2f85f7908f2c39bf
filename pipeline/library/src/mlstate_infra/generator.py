"""MNIST data stream generation.

This module provides a rewindable data source that streams MNIST examples
held in memory, one labeled record per tuple, optionally in a fresh random
order on every pass. It also exposes lazy record and batch iterators over
the same data for consumers that pull instead of being pushed to.
"""

import logging
import random
import threading
from collections.abc import Iterator, Mapping
from typing import Any

import numpy as np
from pydantic import ValidationError

from mlstate.errors import ConfigurationError, SourceRewound, SourceStopped, StreamHalt
from mlstate.model import DataSourceParams, LabeledImage, StreamTuple
from mlstate.protocol import TupleWriter

from .dataset import read_mnist_data

logger = logging.getLogger(__name__)


def random_permutation(size: int, rng: random.Random) -> list[int]:
    """
    Return a uniformly random permutation of range(size).

    Inside-out Fisher-Yates: for each i from 0 upward, swap position i with
    a uniformly chosen position in [0, i].
    """
    perm = list(range(size))
    for i in range(size):
        j = rng.randint(0, i)
        perm[i], perm[j] = perm[j], perm[i]
    return perm


class MNISTDataSource:
    """
    Rewindable source of labeled MNIST records.

    Attributes
    ----------
    labels : np.ndarray
        Class labels, one per example (not copied).
    images : np.ndarray
        Normalized pixel vectors, shape (data_size, element_size) (not copied).
    batch_size : int
        Records per batch in iter_batches().
    randomize : bool
        Whether each pass uses a fresh random order.

    Methods
    -------
    generate_stream(writer: TupleWriter) -> None
        Emit every example once to the writer.
    stop() -> None
        Halt current and future streaming.
    iter_records() -> Iterator[LabeledImage]
        Lazily yield every example once.
    iter_batches(batch_size: int | None) -> Iterator[list[LabeledImage]]
        Lazily yield examples grouped into batches.

    Notes
    -----
    Every pass computes a new permutation, so replays have the same content
    but not necessarily the same order.
    """

    def __init__(
        self,
        labels: np.ndarray,
        images: np.ndarray,
        batch_size: int,
        randomize: bool = True,
        rng: random.Random | None = None,
    ) -> None:
        if len(labels) != len(images):
            raise ConfigurationError(f"labels and images differ in length: {len(labels)} != {len(images)}")
        if batch_size <= 0:
            raise ConfigurationError(f"batch_size must be positive, got {batch_size}")

        self.labels = labels
        self.images = images
        self.batch_size = batch_size
        self.randomize = randomize
        self._rng = rng or random.Random()
        self._stopped = threading.Event()

    @classmethod
    def from_params(cls, params: Mapping[str, Any], rng: random.Random | None = None) -> "MNISTDataSource":
        """
        Validate source parameters and load the dataset files.

        Parameters
        ----------
        params : Mapping[str, Any]
            Keys images_file_name, labels_file_name, data_size, batch_size
            (required), image_element_size and random (optional).
        rng : random.Random | None, optional
            Random generator used for shuffling.

        Raises
        ------
        ConfigurationError
            If the parameters fail validation.
        DatasetError
            If the files cannot be read.
        """
        try:
            validated = DataSourceParams.model_validate(dict(params))
        except ValidationError as exc:
            raise ConfigurationError(f"invalid MNIST source parameters: {exc}") from exc

        labels, images = read_mnist_data(
            validated.images_file_name,
            validated.labels_file_name,
            validated.data_size,
            validated.image_element_size,
        )
        return cls(labels, images, batch_size=validated.batch_size, randomize=validated.random, rng=rng)

    def __len__(self) -> int:
        return len(self.labels)

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def permutation(self) -> list[int]:
        """Return the emission order for one pass."""
        if self.randomize:
            return random_permutation(len(self), self._rng)
        return list(range(len(self)))

    def _record(self, index: int) -> dict[str, Any]:
        return {"label": int(self.labels[index]), "data": self.images[index].tolist()}

    def generate_stream(self, writer: TupleWriter) -> None:
        """
        Emit every example once to the writer.

        Parameters
        ----------
        writer : TupleWriter
            Sink receiving one StreamTuple per example.

        Raises
        ------
        SourceRewound, SourceStopped
            Raised by the writer, or SourceStopped after stop(). Emission
            halts at once and the signal is re-raised.

        Notes
        -----
        Other errors raised by the writer are logged and the pass continues
        with the next example.
        """
        emitted = 0
        for index in self.permutation():
            if self._stopped.is_set():
                raise SourceStopped(f"MNIST source stopped after {emitted} records")

            try:
                writer.write(StreamTuple.now(self._record(index)))
            except StreamHalt:
                logger.info(f"MNIST stream halted by writer after {emitted} records")
                raise
            except Exception as exc:
                logger.warning(f"Failed to write MNIST record {index}: {exc}")
            emitted += 1

        logger.info("all MNIST data has been streamed")

    def stop(self) -> None:
        """Stop streaming; the running pass and later passes emit nothing more."""
        self._stopped.set()

    def iter_records(self) -> Iterator[LabeledImage]:
        """Yield every example once in a fresh pass order."""
        for index in self.permutation():
            if self._stopped.is_set():
                return
            yield LabeledImage(**self._record(index))

    def iter_batches(self, batch_size: int | None = None) -> Iterator[list[LabeledImage]]:
        """
        Yield examples in batches of at most batch_size (default: self.batch_size).

        The last batch of a pass may be shorter.

        Raises
        ------
        ConfigurationError
            If batch_size is zero or negative. Raised by this call, before
            any record is produced.
        """
        size = self.batch_size if batch_size is None else batch_size
        if size <= 0:
            raise ConfigurationError(f"batch_size must be positive, got {size}")
        return self._batches(size)

    def _batches(self, size: int) -> Iterator[list[LabeledImage]]:
        batch: list[LabeledImage] = []
        for record in self.iter_records():
            batch.append(record)
            if len(batch) == size:
                yield batch
                batch = []
        if batch:
            yield batch


def stream_epochs(source: MNISTDataSource, writer: TupleWriter, epochs: int) -> int:
    """
    Stream the whole dataset to the writer epochs times.

    Parameters
    ----------
    source : MNISTDataSource
        Loaded data source.
    writer : TupleWriter
        Destination writer.
    epochs : int
        Number of full passes.

    Returns
    -------
    int
        Number of completed passes. Fewer than epochs if the stream was
        stopped or interrupted.

    Notes
    -----
    A rewound pass does not count as completed; streaming moves on to the
    next epoch. KeyboardInterrupt stops the source and returns the passes
    completed before it.
    """
    completed = 0
    for epoch in range(1, epochs + 1):
        try:
            source.generate_stream(writer)
        except SourceStopped:
            logger.info(f"Source stopped during epoch {epoch}")
            return completed
        except SourceRewound as exc:
            logger.info(f"Epoch {epoch} rewound: {exc}")
            continue
        except KeyboardInterrupt:
            source.stop()
            logger.info(f"Interrupted during epoch {epoch}")
            return completed
        completed += 1
        logger.info(f"Epoch {epoch}/{epochs} complete")
    return completed
