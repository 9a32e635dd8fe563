"""Request encoders and response parsers for the Kafka binary protocol."""