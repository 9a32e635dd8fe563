import pytest

from samsa.protocol.base import HeaderResponse, KafkaCode, ParsingError, Reader
from samsa.protocol.offset_fetch import (
    OffsetFetchRequest,
    OffsetFetchResponse,
    PartitionOffset,
    TopicOffsets,
    parse_offset_fetch_response,
)

PARSE_BYTES = (
    b"\0\0\0\x01\0\0\0\x01\0\tpurchases\0\0\0\x01\0\0\0\0"
    b"\0\0\0\0\0\0\0\n\0\x0bplease work\0\0\0\0"
)


def example_res():
    return OffsetFetchResponse(
        header=HeaderResponse(correlation_id=1),
        topics=[
            TopicOffsets(
                name=b"purchases",
                partitions=[
                    PartitionOffset(
                        partition_index=0,
                        committed_offset=10,
                        metadata=b"please work",
                        error_code=KafkaCode.NONE,
                    )
                ],
            )
        ],
        error_code=KafkaCode.NONE,
    )


def test_encode():
    expected = bytes(
        [
            0, 9, 0, 2, 0, 0, 0, 1, 0, 4, 114, 117, 115, 116, 0, 8, 66, 105, 103, 32, 68, 111, 103,
            115, 0, 0, 0, 1, 0, 9, 112, 117, 114, 99, 104, 97, 115, 101, 115, 0, 0, 0, 1, 0, 0, 0,
            1,
        ]
    )
    req = OffsetFetchRequest(1, "rust", "Big Dogs")
    req.add("purchases", 1)
    assert req.encode() == expected


def test_parse():
    assert parse_offset_fetch_response(Reader(PARSE_BYTES)) == example_res()


def test_from_bytes():
    assert OffsetFetchResponse.from_bytes(PARSE_BYTES) == example_res()


def test_from_bytes_truncated_raises():
    with pytest.raises(ParsingError):
        OffsetFetchResponse.from_bytes(PARSE_BYTES[:-1])


def test_add_to_req():
    request = OffsetFetchRequest(1, "rust", "Big Dogs")
    partitions = [1, 2, 3]
    for p in partitions:
        request.add("purchases", p)
    assert len(request.topics) == 1
    assert request.topics[0].name == "purchases"
    assert request.topics[0].partition_indexes == partitions


def test_add_ignores_duplicates_and_groups_topics():
    request = OffsetFetchRequest(1, "rust", "Big Dogs")
    request.add("a", 1)
    request.add("a", 1)
    request.add("b", 2)
    assert [(t.name, t.partition_indexes) for t in request.topics] == [("a", [1]), ("b", [2])]


def test_read_from_res():
    items = list(example_res().iter_partitions())
    assert len(items) == 1
    topic_name, partition = items[0]
    assert topic_name == b"purchases"
    assert partition.committed_offset == 10
    assert partition.partition_index == 0


def test_null_metadata_parses_to_none():
    data = (
        b"\0\0\0\x02\0\0\0\x01\0\x01t\0\0\0\x01\0\0\0\x05"
        b"\xff\xff\xff\xff\xff\xff\xff\xff\xff\xff\0\0\0\0"
    )
    res = OffsetFetchResponse.from_bytes(data)
    (name, partition), = res.iter_partitions()
    assert name == b"t"
    assert partition.metadata is None
    assert partition.committed_offset == -1
    assert partition.partition_index == 5