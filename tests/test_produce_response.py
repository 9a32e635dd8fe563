import pytest

from samsa.protocol.base import HeaderResponse, KafkaCode, ParsingError, Reader, Writer
from samsa.protocol.produce_response import (
    PartitionProduceResponse,
    ProduceResponse,
    TopicProduceResponse,
    parse_partition_response,
    parse_produce_response,
    parse_topic_response,
)

BUF = (
    b"\0\0\0\x01\0\0\0\x01\0\x06tester\0\0\0\x01\0\0\0\0\0\0\0\0\0\0\0\0\0\x02"
    b"\xff\xff\xff\xff\xff\xff\xff\xff\0\0\0\0"
)

EXPECTED = ProduceResponse(
    header=HeaderResponse(correlation_id=1),
    responses=[
        TopicProduceResponse(
            name=b"tester",
            partition_responses=[
                PartitionProduceResponse(
                    index=0,
                    error_code=KafkaCode.NONE,
                    base_offset=2,
                    log_append_time=-1,
                )
            ],
        )
    ],
)


def test_parse():
    assert parse_produce_response(Reader(BUF)) == EXPECTED


def test_from_bytes():
    assert ProduceResponse.from_bytes(BUF) == EXPECTED


def test_throttle_time_is_left_unread():
    reader = Reader(BUF)
    parse_produce_response(reader)
    assert reader.remaining() == b"\0\0\0\0"


def test_parse_partition_response_with_error():
    data = Writer().int32(4).int16(3).int64(100).int64(1700).getvalue()
    parsed = parse_partition_response(Reader(data))
    assert parsed == PartitionProduceResponse(
        index=4,
        error_code=KafkaCode.UNKNOWN_TOPIC_OR_PARTITION,
        base_offset=100,
        log_append_time=1700,
    )


def test_parse_topic_response_empty_partitions():
    data = Writer().string("t").int32(0).getvalue()
    parsed = parse_topic_response(Reader(data))
    assert parsed == TopicProduceResponse(name=b"t", partition_responses=[])


def test_truncated_raises():
    with pytest.raises(ParsingError):
        ProduceResponse.from_bytes(BUF[:20])