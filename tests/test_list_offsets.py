import pytest

from samsa.protocol.base import HeaderResponse, KafkaCode, ParsingError, Reader
from samsa.protocol.list_offsets import (
    ListOffsetsRequest,
    ListOffsetsResponse,
    PartitionResponse,
    TopicResponse,
    parse_list_offsets_response,
)

PARSE_BYTES = (
    b"\0\0\0\x01\0\0\0\x01\0\tpurchases\0\0\0\x01\0\0\0\0\0\x03"
    b"\xff\xff\xff\xff\xff\xff\xff\xff\xff\xff\xff\xff\xff\xff\xff\xff"
)


def example_res():
    return ListOffsetsResponse(
        header=HeaderResponse(correlation_id=1),
        topics=[
            TopicResponse(
                name=b"purchases",
                partitions=[
                    PartitionResponse(
                        partition_index=0,
                        error_code=KafkaCode.UNKNOWN_TOPIC_OR_PARTITION,
                        timestamp=-1,
                        offset=-1,
                    )
                ],
            )
        ],
    )


def test_encode():
    expected = bytes(
        [
            0, 2, 0, 1, 0, 0, 0, 1, 0, 4, 114, 117, 115, 116, 0, 0, 0, 0, 0, 0, 0, 1, 0, 9, 112,
            117, 114, 99, 104, 97, 115, 101, 115, 0, 0, 0, 1, 0, 0, 0, 1, 0, 0, 0, 0, 0, 1, 226,
            64,
        ]
    )
    req = ListOffsetsRequest(1, "rust", 0)
    req.add("purchases", 1, 123456)
    assert req.encode() == expected


def test_parse():
    assert parse_list_offsets_response(Reader(PARSE_BYTES)) == example_res()


def test_from_bytes():
    assert ListOffsetsResponse.from_bytes(PARSE_BYTES) == example_res()


def test_from_bytes_truncated_raises():
    with pytest.raises(ParsingError):
        ListOffsetsResponse.from_bytes(PARSE_BYTES[:-3])


def test_add_to_req():
    request = ListOffsetsRequest(1, "rust", 0)
    partitions = [1, 2, 3]
    for p in partitions:
        request.add("purchases", p, 12000)
    for p in partitions:
        request.add("purchases", p, 12000)
    for p in partitions:
        request.add("second topic", p, 12000)

    assert len(request.topics) == 2
    assert request.topics[0].name == "purchases"
    assert len(request.topics[0].partitions) == 3
    for i, partition in enumerate(request.topics[0].partitions):
        assert partition.timestamp == 12000
        assert partition.partition_index == i + 1


def test_add_duplicate_keeps_first_timestamp():
    request = ListOffsetsRequest(1, "rust", 0)
    request.add("purchases", 1, 100)
    request.add("purchases", 1, 200)
    assert [(p.partition_index, p.timestamp) for p in request.topics[0].partitions] == [(1, 100)]


def test_header_fields():
    request = ListOffsetsRequest(7, "client", -1)
    assert (request.header.api_key, request.header.api_version) == (2, 1)
    assert request.header.correlation_id == 7


def test_read_from_res():
    items = list(example_res().iter_partitions())
    assert len(items) == 1
    topic_name, partition = items[0]
    assert topic_name == b"purchases"
    assert partition.offset == -1
    assert partition.partition_index == 0