"""Kafka/Redpanda wire protocol encoding and parsing, with compression codecs."""

__version__ = "0.1.8"