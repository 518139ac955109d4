"""Hooks that inspect or rewrite WebSocket traffic passing through the proxy."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Union

from whooshgate.websocket import WsFrame


class WebsocketDirection(enum.Enum):
    DOWNSTREAM_TO_UPSTREAM = "downstream_to_upstream"
    UPSTREAM_TO_DOWNSTREAM = "upstream_to_downstream"


class WebsocketError(enum.Enum):
    INVALID_FRAME = "invalid_frame"


@dataclass(frozen=True)
class PassThrough:
    """Forward the raw bytes untouched."""


@dataclass(frozen=True)
class Forward:
    """Send this frame on."""

    frame: WsFrame


@dataclass(frozen=True)
class Drop:
    """Discard the message."""


@dataclass(frozen=True)
class Close:
    """Replace the message with a close frame carrying ``payload``."""

    payload: Optional[bytes] = None


WebsocketMessageAction = Union[Forward, Drop, Close]
WebsocketErrorAction = Union[PassThrough, Drop, Close]


class WebsocketExtension:
    """Base class for WebSocket hooks; the defaults leave traffic unchanged."""

    def on_message(self, direction: WebsocketDirection, frame: WsFrame) -> WebsocketMessageAction:
        return Forward(frame)

    def on_error(self, direction: WebsocketDirection, error: WebsocketError) -> WebsocketErrorAction:
        return PassThrough()