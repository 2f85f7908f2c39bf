"""Infrastructure layer for model state pipelines.

This package provides concrete collaborators for the core layer:
- MNIST binary dataset reader and rewindable data source
- In-process and HTTP model capabilities
- Kafka transport for stream tuples
"""

from .api import HttpModelLoader
from .dataset import read_mnist_data
from .generator import MNISTDataSource, random_permutation, stream_epochs
from .kafka import KafkaTupleWriter, decode_tuple, get_kafka_consumer, get_kafka_producer
from .loader import PythonModuleLoader

__all__ = [
    "HttpModelLoader",
    "read_mnist_data",
    "MNISTDataSource",
    "random_permutation",
    "stream_epochs",
    "KafkaTupleWriter",
    "decode_tuple",
    "get_kafka_consumer",
    "get_kafka_producer",
    "PythonModuleLoader",
]
