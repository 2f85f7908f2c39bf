"""
Kafka transport for stream tuples.

This module provides context managers for Kafka clients, a TupleWriter that
publishes stream tuples to a topic, and the matching decoder used by
consumers.
"""

import logging
from contextlib import contextmanager

from confluent_kafka import Consumer, KafkaException, Producer

from mlstate.errors import SourceStopped
from mlstate.model import StreamTuple

logger = logging.getLogger(__name__)


@contextmanager
def get_kafka_producer(bootstrap_servers: str):
    """
    Context manager for Kafka Producer.

    Parameters
    ----------
    bootstrap_servers : str
        Kafka bootstrap servers (e.g., "localhost:9092").

    Yields
    ------
    Producer
        Kafka producer instance.

    Notes
    -----
    Buffered messages are flushed on context exit.
    """
    producer = Producer({"bootstrap.servers": bootstrap_servers})
    try:
        yield producer
    finally:
        remaining = producer.flush()
        if remaining:
            logger.warning(f"{remaining} messages were not delivered before shutdown")


@contextmanager
def get_kafka_consumer(bootstrap_servers: str, group_id: str, topic: str):
    """
    Context manager for Kafka Consumer subscribed to one topic.

    Configured with 'auto.offset.reset' set to 'earliest' to consume from
    the beginning if no offset exists. The consumer closes on context exit.
    """
    c = Consumer({"bootstrap.servers": bootstrap_servers, "group.id": group_id, "auto.offset.reset": "earliest"})

    c.subscribe([topic])

    try:
        yield c
    finally:
        c.close()


def encode_tuple(tup: StreamTuple) -> bytes:
    return tup.model_dump_json().encode("utf-8")


def decode_tuple(value: bytes) -> StreamTuple:
    """
    Decode a Kafka message value into a StreamTuple.

    Raises
    ------
    pydantic.ValidationError
        If the value is not a JSON-encoded stream tuple.
    """
    return StreamTuple.model_validate_json(value)


class KafkaTupleWriter:
    """
    TupleWriter publishing each tuple as a JSON message.

    Attributes
    ----------
    producer : Producer
        Kafka producer used for publishing.
    topic : str
        Destination topic.
    written : int
        Number of tuples handed to the producer.
    """

    def __init__(self, producer: Producer, topic: str) -> None:
        self.producer = producer
        self.topic = topic
        self.written = 0
        self._closed = False

    def write(self, tup: StreamTuple) -> None:
        """
        Produce one tuple.

        Raises
        ------
        SourceStopped
            If the writer has been closed.
        KafkaException
            If the producer rejects the message.
        """
        if self._closed:
            raise SourceStopped(f"writer for topic '{self.topic}' is closed")

        try:
            self.producer.produce(self.topic, value=encode_tuple(tup))
        except BufferError:
            # Local queue full: serve delivery reports and retry once
            self.producer.poll(1.0)
            self.producer.produce(self.topic, value=encode_tuple(tup))
        except KafkaException as exc:
            logger.error(f"Failed to produce to '{self.topic}': {exc}")
            raise

        self.producer.poll(0)
        self.written += 1

    def close(self) -> None:
        self._closed = True
