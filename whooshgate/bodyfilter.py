"""Peer option merging and WebSocket body filtering for proxied upgrades."""

from __future__ import annotations

import dataclasses
import zlib
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from whooshgate.context import RouteContext
from whooshgate.extension import (
    Close,
    Drop,
    Forward,
    WebsocketDirection,
    WebsocketError,
    WebsocketExtension,
)
from whooshgate.websocket import (
    InvalidFrameError,
    encode_ws_frame,
    mask_key_from_time,
    parse_ws_frames,
)
from whooshgate.wsproxy import apply_ws_extensions, close_frame, handle_ws_error


@dataclass
class PeerOptions:
    """Connection options for an upstream peer; None means "not set"."""

    read_timeout: Optional[int] = None
    idle_timeout: Optional[int] = None
    write_timeout: Optional[int] = None
    verify_cert: Optional[bool] = None
    verify_hostname: Optional[bool] = None
    tcp_recv_buf: Optional[int] = None
    curves: Optional[str] = None
    tcp_fast_open: Optional[bool] = None
    cacert: Optional[str] = None
    client_cert: Optional[str] = None
    client_key: Optional[str] = None
    sni: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)


def merge_peer_options(
    parent: Optional[PeerOptions], child: Optional[PeerOptions]
) -> PeerOptions:
    """Layer ``child`` over ``parent``: every option the child sets wins.

    Extra options are merged key by key, the child's values overriding.
    """
    merged = dataclasses.replace(parent) if parent is not None else PeerOptions()
    merged.extra = dict(merged.extra)
    if child is None:
        return merged
    for option in dataclasses.fields(PeerOptions):
        if option.name == "extra":
            continue
        value = getattr(child, option.name)
        if value is not None:
            setattr(merged, option.name, value)
    merged.extra.update(child.extra)
    return merged


def _new_decompressor() -> Any:
    return zlib.decompressobj(-zlib.MAX_WBITS)


def _filter_chunk(
    ctx: RouteContext,
    extensions: Sequence[WebsocketExtension],
    chunk: Optional[bytes],
    direction: WebsocketDirection,
    buffer: bytearray,
    decompressor_attr: str,
    mask_key: Callable[[], Optional[bytes]],
    clear_on_error: Callable[[], None],
) -> Optional[bytes]:
    if not ctx.is_upgrade or chunk is None:
        return chunk
    if not extensions:
        return chunk

    buffer.extend(chunk)
    try:
        frames = parse_ws_frames(buffer)
    except InvalidFrameError:
        action = handle_ws_error(extensions, direction, WebsocketError.INVALID_FRAME)
        if isinstance(action, Close):
            clear_on_error()
            return encode_ws_frame(close_frame(action.payload), mask_key())
        if isinstance(action, Drop):
            clear_on_error()
            return None
        data = bytes(buffer)
        buffer.clear()
        return data or None

    if not frames:
        return None

    out = bytearray()
    for frame in frames:
        decompressor = None
        if frame.rsv1:
            decompressor = getattr(ctx, decompressor_attr)
            if decompressor is None:
                decompressor = _new_decompressor()
                setattr(ctx, decompressor_attr, decompressor)
        result = apply_ws_extensions(extensions, direction, frame, decompressor)
        if isinstance(result, Forward):
            out += encode_ws_frame(result.frame, mask_key())
        elif isinstance(result, Close):
            out += encode_ws_frame(close_frame(result.payload), mask_key())
            break
    return bytes(out) or None


def filter_client_chunk(
    ctx: RouteContext,
    extensions: Sequence[WebsocketExtension],
    chunk: Optional[bytes],
    mask_key: Optional[bytes] = None,
) -> Optional[bytes]:
    """Filter a chunk sent by the client towards the upstream.

    Returns the bytes to forward, or None when nothing should be sent yet.
    Re-encoded frames are masked with ``mask_key``, or with a time-based key
    for each frame when none is given.
    """

    def key() -> bytes:
        return mask_key if mask_key is not None else mask_key_from_time()

    return _filter_chunk(
        ctx,
        extensions,
        chunk,
        WebsocketDirection.DOWNSTREAM_TO_UPSTREAM,
        ctx.ws_client_buf,
        "ws_client_decompressor",
        key,
        ctx.clear_ws_buffers,
    )


def filter_upstream_chunk(
    ctx: RouteContext,
    extensions: Sequence[WebsocketExtension],
    chunk: Optional[bytes],
) -> Optional[bytes]:
    """Filter a chunk sent by the upstream towards the client; frames stay unmasked."""
    return _filter_chunk(
        ctx,
        extensions,
        chunk,
        WebsocketDirection.UPSTREAM_TO_DOWNSTREAM,
        ctx.ws_upstream_buf,
        "ws_upstream_decompressor",
        lambda: None,
        ctx.ws_upstream_buf.clear,
    )