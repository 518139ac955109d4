"""Run WebSocket extensions over frames and errors passing through the proxy."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Optional, Sequence

from whooshgate.extension import (
    Close,
    Drop,
    Forward,
    PassThrough,
    WebsocketDirection,
    WebsocketError,
    WebsocketErrorAction,
    WebsocketExtension,
    WebsocketMessageAction,
)
from whooshgate.websocket import WsFrame, WsOpcode

_log = logging.getLogger(__name__)


def apply_ws_extensions(
    extensions: Sequence[WebsocketExtension],
    direction: WebsocketDirection,
    frame: WsFrame,
    decompressor: Optional[Any] = None,
) -> WebsocketMessageAction:
    """Pass a frame through each extension in turn.

    A compressed frame (RSV1 set) is inflated first. The chain stops at the
    first extension that does not forward. If the forwarded payload is the
    same as the inflated one, the original compressed payload is restored;
    a changed payload is sent uncompressed.
    """
    frame = dataclasses.replace(frame)
    original_payload = frame.payload
    was_compressed = frame.rsv1
    decompressed: Optional[bytes] = None

    if was_compressed:
        if decompressor is None:
            _log.warning("Compressed frame received but no decompressor available")
            return Forward(frame)
        decompressed = frame.decompress_with(decompressor)
        if decompressed is None:
            _log.error("Failed to decompress WebSocket frame")
            return Forward(frame)
        frame.payload = decompressed
        frame.rsv1 = False

    action: WebsocketMessageAction = Forward(frame)
    for ext in extensions:
        action = ext.on_message(direction, action.frame)
        if not isinstance(action, Forward):
            break

    if isinstance(action, Forward):
        final = dataclasses.replace(action.frame)
        reference = decompressed if decompressed is not None else original_payload
        if was_compressed and final.payload == reference:
            final.payload = original_payload
            final.rsv1 = True
        action = Forward(final)

    return action


def handle_ws_error(
    extensions: Sequence[WebsocketExtension],
    direction: WebsocketDirection,
    error: WebsocketError,
) -> WebsocketErrorAction:
    """Ask each extension how to handle an error.

    The first Close wins at once; otherwise any Drop wins over PassThrough.
    """
    action: WebsocketErrorAction = PassThrough()
    for ext in extensions:
        result = ext.on_error(direction, error)
        if isinstance(result, Close):
            return result
        if isinstance(result, Drop):
            action = Drop()
    return action


def close_frame(payload: Optional[bytes] = None) -> WsFrame:
    """A final, uncompressed close frame carrying ``payload``."""
    return WsFrame(opcode=WsOpcode.CLOSE, payload=bytes(payload) if payload else b"", fin=True)