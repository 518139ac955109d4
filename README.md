# whooshgate

whooshgate provides building blocks for an API gateway that proxies HTTP and WebSocket traffic. It has no runtime dependencies.

## What is in it

### WebSocket frames (`whooshgate.websocket`)

- `WsFrame` is a dataclass with the fields `opcode`, `payload`, `fin`, `rsv1`, `rsv2` and `rsv3`. It has these helpers:
  - `is_text()`, `is_binary()` and `is_continuation()`.
  - `text()`.
  - `set_text(data)` and `set_binary(data)`. Both clear the reserved bits.
  - `decompress_with(decompressor)` inflates a permessage-deflate payload. Pass a raw-deflate decompressor such as `zlib.decompressobj(-zlib.MAX_WBITS)`. It returns `None` when the data cannot be inflated.
- `WsOpcode` is an `IntEnum` of the known opcodes. Unknown opcodes are kept as plain ints.
- `parse_ws_frames(buffer)` takes every complete frame from the start of a `bytearray`:
  - It removes the consumed bytes and unmasks masked payloads.
  - It merges continuation frames into the frame before them.
  - An incomplete frame at the end stays in the buffer.
  - An empty list means no complete frame was available.
  - A continuation frame with no frame before it raises `InvalidFrameError`.
- `encode_ws_frame(frame, mask_key=None)` serializes a frame. When you give a 4-byte key, it masks the payload with that key.
- `mask_key_from_time()` returns a 4-byte key taken from the current time.

### Header and query transformers (`whooshgate.parser`, `whooshgate.models`)

Transformer scripts look like this:

```
ReplaceHeader(`Host`, `new-host`) ; DeleteHeader(`X-Old`) ; AppendQuery(`new`, `param`)
```

- `parse_transformers(text)` returns a `RequestTransformer`. It understands six steps:
  - `ReplaceHeader`, `AppendHeader` and `DeleteHeader`
  - `ReplaceQuery`, `AppendQuery` and `DeleteQuery`
- `parse_response_transformers(text)` returns a `ResponseTransformer`. It understands the three header steps.
- A script with several steps becomes a `ChainRequestTransformer` or a `ChainResponseTransformer`.
- If the first step cannot be parsed, `whooshgate.registry.ParseError` is raised. Parsing stops at the first later text that does not continue the script, and that rest is ignored.

`whooshgate.models` also has the types these transformers work on:

- `HeaderMap` is an ordered, case-insensitive multimap. Its methods are `get`, `get_all`, `insert`, `append` and `remove`. It checks header names and values and raises `ValueError` for invalid ones.
- `RequestHeader` holds `method`, `uri` and `headers`.
- `ResponseHeader` holds `status` and `headers`.

### Custom transformers (`whooshgate.registry`)

A custom parser is a callable with these rules:

- It takes the remaining script text.
- It returns a `(transformer, rest)` pair when it matches.
- It raises `ParseError` when it does not match.

Register a parser with `register_request_transformer` or `register_response_transformer`. Both also work as decorators. The script parsers try the registered parsers, in order, after the built-in steps. `clear_registries()` forgets every registered parser.

### WebSocket extensions (`whooshgate.extension`, `whooshgate.wsproxy`, `whooshgate.bodyfilter`)

To write an extension, subclass `WebsocketExtension`:

- `on_message(direction, frame)` may return `Forward(frame)`, `Drop()` or `Close(payload)`.
- `on_error(direction, error)` may return `PassThrough()`, `Drop()` or `Close(payload)`.

`apply_ws_extensions` runs a frame through a list of extensions:

- A compressed frame is inflated first.
- The chain stops at the first extension that does not forward.
- If no extension changed the payload, the original compressed payload is restored.

`handle_ws_error` combines the answers of several extensions. The first `Close` wins. Otherwise any `Drop` wins over `PassThrough`.

`close_frame(payload)` builds a close frame.

`filter_client_chunk(ctx, extensions, chunk, mask_key=None)` and `filter_upstream_chunk(ctx, extensions, chunk)` apply all of this to the raw body chunks of an upgraded connection:

- They keep partial frames buffered in the `RouteContext`.
- They return the bytes to forward, or `None` when nothing should be sent yet.
- Frames sent towards the upstream are masked again.

`PeerOptions` and `merge_peer_options(parent, child)` layer upstream connection options. Every option the child sets wins.

### Shared state (`whooshgate.context`)

- `AppCtx` is a thread-safe store that holds one value per type. Use `insert(value)`, `get(kind)` and `remove(kind)`.
- `RouteContext` holds the state of one proxied request, including the WebSocket buffers and decompressors.

## Examples

```python
from whooshgate.models import RequestHeader
from whooshgate.parser import parse_transformers

req = RequestHeader("GET", "/path?foo=bar&baz=qux")
transformer = parse_transformers(
    "ReplaceQuery(`foo`, `updated`) ; DeleteQuery(`baz`) ; ReplaceHeader(`Host`, `example.com`)"
)
transformer.transform_request(req)
print(req.uri)                  # /path?foo=updated
print(req.headers.get("Host"))  # example.com
```

```python
from whooshgate.websocket import WsFrame, WsOpcode, encode_ws_frame, parse_ws_frames

frame = WsFrame(fin=True, opcode=WsOpcode.TEXT, payload=b"hello")
buffer = bytearray(encode_ws_frame(frame, bytes([1, 2, 3, 4])))
frames = parse_ws_frames(buffer)
assert frames == [frame]
```

## What it does not do

whooshgate is a library of parts, not a running gateway. It does not provide any of these:

- It does not listen on sockets.
- It does not load configuration files.
- It does not route requests to services.
- It does not balance load across upstream servers.
- It does not resolve DNS or open TLS connections.
- It does not collect metrics.

The surrounding server is expected to do those things and to call these functions on its requests, responses and WebSocket body chunks.

## Tests

Install the `test` extra, then run the test suite with pytest.