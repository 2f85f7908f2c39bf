"""
Kafka producer streaming the MNIST training set.

This module loads MNIST image and label files into memory and publishes
every example as a JSON stream tuple to a Kafka topic, one pass per epoch,
in a fresh random order per pass when randomization is enabled.
"""

import logging
import os
import signal

from mlstate_infra import KafkaTupleWriter, MNISTDataSource, get_kafka_producer, stream_epochs

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def main():
    """
    Execute the MNIST producer workflow.

    Environment Variables
    ---------------------
    IMAGES_FILE_NAME : str
        MNIST images file path (required).
    LABELS_FILE_NAME : str
        MNIST labels file path (required).
    DATA_SIZE : int
        Number of examples to read (required).
    IMAGE_ELEMENT_SIZE : int
        Pixels per image (default: 784).
    BATCH_SIZE : int
        Batch size of the source (default: 100).
    RANDOM : str
        'true' to shuffle each epoch (default: 'true').
    EPOCHS : int
        Number of passes over the data (default: 1).
    KAFKA_BOOTSTRAP_SERVERS : str
        Kafka bootstrap servers (default: 'localhost:9092').
    KAFKA_TOPIC : str
        Target Kafka topic (default: 'mnist').

    Notes
    -----
    SIGTERM and Ctrl-C stop the source; the current pass ends after the
    record being written.
    """
    params = {
        "images_file_name": os.environ["IMAGES_FILE_NAME"],
        "labels_file_name": os.environ["LABELS_FILE_NAME"],
        "data_size": os.environ["DATA_SIZE"],
        "image_element_size": os.getenv("IMAGE_ELEMENT_SIZE", "784"),
        "batch_size": os.getenv("BATCH_SIZE", "100"),
        "random": os.getenv("RANDOM", "true"),
    }
    bootstrap_servers = os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092")
    topic = os.getenv("KAFKA_TOPIC", "mnist")
    epochs = int(os.getenv("EPOCHS", "1"))

    source = MNISTDataSource.from_params(params)
    signal.signal(signal.SIGTERM, lambda *_: source.stop())

    logger.info(f"Starting producer - Server: {bootstrap_servers}, Topic: {topic}, Epochs: {epochs}")
    logger.info(f"Examples: {len(source)}, Random: {source.randomize}")

    with get_kafka_producer(bootstrap_servers) as producer:
        writer = KafkaTupleWriter(producer, topic)
        try:
            completed = stream_epochs(source, writer, epochs)
        finally:
            writer.close()

    logger.info(f"Producer finished - {completed} epochs, {writer.written} tuples written")


if __name__ == "__main__":
    main()
