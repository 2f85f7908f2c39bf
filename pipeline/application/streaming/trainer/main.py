"""Kafka consumer training a model state from a tuple stream.

This module creates a named model state, continuously consumes stream
tuples from a Kafka topic, and writes each tuple's record into the state,
which fits its model every batch_train_size records. On shutdown the
remaining buffer is flushed and all states are terminated.
"""

import logging
import os

from confluent_kafka import Consumer
from pydantic import ValidationError

from mlstate import MLStateError, ModelCallError, SharedStateRegistry, create_model_state, flush
from mlstate_infra import HttpModelLoader, decode_tuple, get_kafka_consumer

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def consume(consumer: Consumer, registry: SharedStateRegistry, state_name: str, poll_timeout: float = 1.0):
    """
    Poll Kafka forever and write every decoded record into the named state.

    Parameters
    ----------
    consumer : Consumer
        Kafka consumer already subscribed to the tuple topic.
    registry : SharedStateRegistry
        Registry holding the target state.
    state_name : str
        Name of the ModelState to train.
    poll_timeout : float, optional
        Kafka poll timeout in seconds (default: 1.0).

    Notes
    -----
    Undecodable messages are skipped. A failed fit is logged and
    consumption continues; the failed batch is not retried.
    """
    state = registry.lookup(state_name)
    written = 0
    failed_fits = 0

    while True:
        msg = consumer.poll(poll_timeout)
        if msg is None:
            continue

        if msg.error():
            logger.error(f"Consumer error: {msg.error()}")
            continue

        value = msg.value()
        if value is None:
            logger.warning("Received message with None value, skipping")
            continue

        try:
            tup = decode_tuple(value)
        except ValidationError as exc:
            logger.warning(f"Invalid tuple in message: {exc}")
            continue

        try:
            result = state.write(tup.data)
        except ModelCallError as exc:
            failed_fits += 1
            logger.error(f"Fit failed, batch dropped ({failed_fits} so far): {exc}")
            continue

        written += 1
        if result is not None:
            logger.info(f"Fitted batch - {written} records written")


def main():
    """
    Execute the streaming trainer workflow.

    Environment Variables
    ---------------------
    MODULE_PATH : str
        Directory holding the model module (default: '.').
    MODULE_NAME : str
        Model module name (required).
    CLASS_NAME : str
        Model class name (required).
    BATCH_TRAIN_SIZE : int
        Records per fit (default: 100).
    MODEL_FILE_PATH : str
        Argument for the model constructor (default: '').
    STATE_NAME : str
        Registry name of the state (default: 'mnist_model').
    ML_API_URL : str
        Model server URL; when set the model is reached over HTTP
        instead of imported in-process.
    KAFKA_BOOTSTRAP_SERVERS : str
        Kafka bootstrap servers (default: 'localhost:9092').
    KAFKA_CONSUMER_GROUP : str
        Consumer group ID (default: 'mlstate-trainer-group').
    KAFKA_TOPIC : str
        Source Kafka topic (default: 'mnist').
    """
    params = {
        "module_path": os.getenv("MODULE_PATH", "."),
        "module_name": os.environ["MODULE_NAME"],
        "class_name": os.environ["CLASS_NAME"],
        "batch_train_size": os.getenv("BATCH_TRAIN_SIZE", "100"),
        "model_file_path": os.getenv("MODEL_FILE_PATH", ""),
    }
    state_name = os.getenv("STATE_NAME", "mnist_model")
    ml_api_url = os.getenv("ML_API_URL")
    bootstrap_servers = os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092")
    group_id = os.getenv("KAFKA_CONSUMER_GROUP", "mlstate-trainer-group")
    topic = os.getenv("KAFKA_TOPIC", "mnist")

    loader = HttpModelLoader(ml_api_url) if ml_api_url else None

    registry = SharedStateRegistry()
    registry.register(state_name, create_model_state(params, loader=loader))

    logger.info(f"Trainer started - Server: {bootstrap_servers}, Group: {group_id}, Topic: {topic}")

    try:
        with get_kafka_consumer(bootstrap_servers, group_id, topic) as consumer:
            consume(consumer, registry, state_name)
    except KeyboardInterrupt:
        logger.info("Trainer interrupted, flushing buffered records")
        try:
            flush(registry, state_name)
        except MLStateError as exc:
            logger.error(f"Final flush failed: {exc}")
    finally:
        registry.terminate_all()


if __name__ == "__main__":
    main()
