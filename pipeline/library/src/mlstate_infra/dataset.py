"""
MNIST binary file reader.

This module reads the image and label files of the MNIST database layout
into numpy arrays. Image files start with a 16-byte header followed by one
unsigned byte per pixel; label files start with an 8-byte header followed by
one unsigned byte per label. Header contents are not interpreted: record
counts are supplied by the caller and trusted.
"""

import logging

import numpy as np

from mlstate.errors import ConfigurationError, DatasetError

logger = logging.getLogger(__name__)

IMAGES_HEADER_SIZE = 16
LABELS_HEADER_SIZE = 8
DEFAULT_IMAGE_ELEMENT_SIZE = 28 * 28


def _read_payload(path: str, header_size: int, payload_size: int) -> np.ndarray:
    try:
        with open(path, "rb") as f:
            f.seek(header_size)
            payload = f.read(payload_size)
    except OSError as exc:
        raise DatasetError(f"cannot read {path}: {exc}") from exc

    if len(payload) < payload_size:
        raise DatasetError(
            f"{path} is truncated: expected {payload_size} bytes after the {header_size}-byte header, "
            f"got {len(payload)}"
        )
    return np.frombuffer(payload, dtype=np.uint8)


def read_mnist_data(
    images_path: str, labels_path: str, data_size: int, element_size: int = DEFAULT_IMAGE_ELEMENT_SIZE
) -> tuple[np.ndarray, np.ndarray]:
    """
    Read MNIST images and labels into memory.

    Parameters
    ----------
    images_path : str
        Path of the images file.
    labels_path : str
        Path of the labels file.
    data_size : int
        Number of examples to read.
    element_size : int, optional
        Pixels per image (default: 784).

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        Tuple containing:
        - int32 labels of shape (data_size,), values in [0, 255]
        - float32 images of shape (data_size, element_size), values byte/255

    Raises
    ------
    ConfigurationError
        If data_size or element_size is not positive.
    DatasetError
        If either file cannot be opened or holds fewer bytes than declared.

    Notes
    -----
    Bytes past the declared sizes are ignored.
    """
    if data_size <= 0 or element_size <= 0:
        raise ConfigurationError(f"data_size and element_size must be positive, got {data_size} and {element_size}")

    pixels = _read_payload(images_path, IMAGES_HEADER_SIZE, data_size * element_size)
    raw_labels = _read_payload(labels_path, LABELS_HEADER_SIZE, data_size)

    images = (pixels.astype(np.float32) / 255).reshape(data_size, element_size)
    labels = raw_labels.astype(np.int32)

    logger.info(f"Loaded {data_size} MNIST examples ({element_size} pixels each) from {images_path}")
    return labels, images
