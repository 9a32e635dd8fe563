# samsa

Encoding and parsing for the Kafka/Redpanda binary protocol, together with the
compression codecs and checksum used by record batches.

## Install

```
pip install samsa
```

For running the tests:

```
pip install "samsa[test]"
pytest
```

## Building requests

Every request class writes itself to bytes with `encode()` (or into an
existing `samsa.protocol.base.Writer` with `write_to(writer)`), starting with
the common request header: API key, API version, correlation id and client id.

```python
from samsa.protocol.list_offsets import ListOffsetsRequest

request = ListOffsetsRequest(correlation_id=1, client_id="my-app", replica_id=-1)
request.add("purchases", 0, -1)   # -1: latest offset, -2: earliest
payload = request.encode()
```

`ListOffsetsRequest.add` and `OffsetFetchRequest.add` group partitions by
topic and ignore a partition that is already present.

Producing records goes through `ProduceRequest`, which groups messages per
topic and partition into a single record batch per partition, optionally
compressed:

```python
from samsa.compression import Compression
from samsa.protocol.produce import Attributes, Header, ProduceRequest

request = ProduceRequest(1, 1000, 2, "my-app", Attributes(Compression.GZIP))
request.add("purchases", 0, b"key", b"value", [Header("trace", b"abc")])
payload = request.encode()
```

Request classes available:

- `samsa.protocol.produce.ProduceRequest` (version 3)
- `samsa.protocol.list_offsets.ListOffsetsRequest` (version 1)
- `samsa.protocol.metadata.MetadataRequest` (version 1)
- `samsa.protocol.offset_fetch.OffsetFetchRequest` (version 2)
- `samsa.protocol.sync_group.SyncGroupRequest` (version 2)
- `samsa.protocol.leave_group.LeaveGroupRequest` (version 0)
- `samsa.protocol.sasl_handshake.SaslHandshakeRequest` (version 1)
- `samsa.protocol.sasl_authenticate.SaslAuthenticationRequest` (version 1)

## Parsing responses

Response classes are built from the bytes a broker sent back with
`from_bytes`. Malformed or truncated input raises
`samsa.protocol.base.ParsingError`.

```python
from samsa.protocol.metadata import MetadataResponse

metadata = MetadataResponse.from_bytes(response_bytes)
metadata.is_error()   # raises KafkaError if any topic or partition reports one
for broker in metadata.brokers:
    print(broker.node_id, broker.host, broker.port)
```

Responses that carry offsets per partition can be walked flat:

```python
from samsa.protocol.offset_fetch import OffsetFetchResponse

for topic_name, partition in OffsetFetchResponse.from_bytes(data).iter_partitions():
    print(topic_name, partition.partition_index, partition.committed_offset)
```

Response classes available: `ProduceResponse`
(`samsa.protocol.produce_response`), `ListOffsetsResponse`,
`MetadataResponse`, `OffsetFetchResponse`, `SyncGroupResponse`,
`LeaveGroupResponse`, `SaslHandshakeResponse` and
`SaslAuthenticationResponse`. Strings read from the wire are returned as
`bytes`; error codes as `samsa.protocol.base.KafkaCode` members.

## Errors

All errors derive from `samsa.protocol.base.SamsaError`:

- `ParsingError` — bytes could not be parsed; the input is kept in `.data`.
- `KafkaError` — a broker error code; the code is in `.code`.
- `ArgumentError` — a value cannot be encoded (out of range, too long, or a
  member id that is not valid UTF-8).

## Compression

`samsa.compression` offers `compress`/`uncompress` (gzip),
`compress_snappy`/`uncompress_snappy` (raw Snappy blocks),
`compress_lz4`/`uncompress_lz4` (LZ4 block with the size prepended) and
`compress_zstd`/`uncompress_zstd`, the `Compression` enum used in batch
attributes, `to_crc` (CRC-32C, as used by record batches) and `now()`
(milliseconds since the epoch). Failed decompression raises `SamsaError`.

## What this package does not do

It only turns requests into bytes and bytes into responses. It opens no
connections: there is no broker client, producer, consumer, consumer-group
coordination or SASL mechanism logic, and no client for the Redpanda admin
HTTP API. Sending the encoded bytes (with their length prefix) and reading
replies is left to the caller.